"""
Decision Router.

One parameterised state machine replaces the separate light and full
routers.  Evaluation order, each step terminal on match:

1. Uniqueness gate: ``should_add`` False is an unconditional REJECT.
2. Acceptance paths in fixed priority order (Elite Instructor,
   Metrics-Validated, Known Quality).  The first path that returns a
   verdict wins; later paths are never consulted.
3. The profile's fallback: a flat REJECT (``three_path``) or the weighted
   aggregate with per-dimension floors (``full``).

Each path is a tagged variant declaring the dimensions it reads, so the
evaluator only computes what the selected profile needs.

Usage::

    router = DecisionRouter(RouterConfig(profile="full"))
    decision = router.route(candidate, snapshot)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from curation.config import PROFILE_FULL, PROFILE_THREE_PATH, RouterConfig, RouterThresholds
from curation.exceptions import EvaluationError
from curation.models import (
    CoverageIncrement,
    Decision,
    DecisionMetadata,
    Dimension,
    DimensionSnapshot,
    Effect,
    EmergingUpsert,
    InstructorTier,
    Outcome,
    VideoCandidate,
)
from curation.utils import normalize_technique_name

logger = logging.getLogger("DecisionRouter")

PATH_FAILED_UNIQUENESS = "None - Failed Uniqueness"
PATH_NOT_INSTRUCTIONAL = "None - Not Instructional"
PATH_NONE = "None"


class PathKind(str, Enum):
    ELITE_INSTRUCTOR = "Elite Instructor"
    METRICS_VALIDATED = "Metrics-Validated"
    KNOWN_QUALITY_METRICS = "Known Quality + Metrics"
    KNOWN_QUALITY_EARLY = "Known Quality - Early"
    WEIGHTED_FALLBACK = "Weighted Fallback"


@dataclass
class PathVerdict:
    """A terminal verdict produced by a path or fallback."""

    outcome: Outcome
    score: float
    path: str
    reason: str
    boosts_applied: List[str] = field(default_factory=list)
    bad_because: List[str] = field(default_factory=list)


# =============================================================================
# ACCEPTANCE PATHS
# =============================================================================


class AcceptancePath:
    """Base variant: ``check`` returns a verdict to stop, or ``None`` to pass."""

    kind: PathKind
    required: FrozenSet[Dimension] = frozenset()

    def check(
        self, snapshot: DimensionSnapshot, config: RouterConfig
    ) -> Optional[PathVerdict]:
        raise NotImplementedError


class ElitePath(AcceptancePath):
    """Elite instructors are trusted as long as the video actually teaches."""

    kind = PathKind.ELITE_INSTRUCTOR
    required = frozenset({Dimension.INSTRUCTOR, Dimension.CONTENT})

    def check(self, snapshot, config):
        instructor, content = snapshot.instructor, snapshot.content
        if instructor.tier is not InstructorTier.ELITE:
            return None

        if content.is_instructional:
            return PathVerdict(
                outcome=Outcome.ACCEPT,
                score=config.thresholds.elite_accept_score,
                path=self.kind.value,
                reason="Elite tier instructor with instructional content",
            )

        outcome = Outcome(config.elite_failure_outcome)
        reason = (
            f"Elite instructor but {content.content_type.value} content (not instructional)"
        )
        if outcome is Outcome.MANUAL_REVIEW:
            return PathVerdict(
                outcome=outcome,
                score=config.thresholds.elite_review_score,
                path=PATH_NOT_INSTRUCTIONAL,
                reason=f"{reason} - needs review",
            )
        return PathVerdict(
            outcome=outcome,
            score=content.score,
            path=PATH_NOT_INSTRUCTIONAL,
            reason=reason,
        )


class MetricsValidatedPath(AcceptancePath):
    """Enough views to trust engagement, regardless of who teaches."""

    kind = PathKind.METRICS_VALIDATED
    required = frozenset({Dimension.YOUTUBE, Dimension.CONTENT})

    def check(self, snapshot, config):
        t = config.thresholds
        youtube, content = snapshot.youtube, snapshot.content
        if youtube.views < t.metrics_min_views:
            return None

        threshold = t.metrics_special_threshold if youtube.signals.special else t.metrics_threshold
        if youtube.score >= threshold and content.score >= t.metrics_min_content:
            return PathVerdict(
                outcome=Outcome.ACCEPT,
                score=t.metrics_accept_score,
                path=self.kind.value,
                reason="Exceptional user engagement validates quality despite unknown instructor",
            )
        logger.debug(
            "[ROUTER] Metrics path missed: youtube %.1f (need %.0f), content %.0f (need %.0f)",
            youtube.score, threshold, content.score, t.metrics_min_content,
        )
        return None


class KnownQualityPath(AcceptancePath):
    """
    Known high-quality instructors.  Without enough views to corroborate the
    instructor's reputation, the bar is higher.
    """

    kind = PathKind.KNOWN_QUALITY_METRICS
    required = frozenset({Dimension.INSTRUCTOR, Dimension.YOUTUBE, Dimension.CONTENT})

    def check(self, snapshot, config):
        t = config.thresholds
        instructor, youtube, content = snapshot.instructor, snapshot.youtube, snapshot.content
        if instructor.tier is not InstructorTier.HIGH_QUALITY:
            return None

        if youtube.views >= t.known_quality_min_views:
            w = t.known_quality_metrics_weights
            score = (
                instructor.score * w["instructor"]
                + youtube.score * w["youtube"]
                + content.score * w["content"]
            )
            if score >= t.known_quality_with_metrics:
                return PathVerdict(
                    outcome=Outcome.ACCEPT,
                    score=round(score, 1),
                    path=PathKind.KNOWN_QUALITY_METRICS.value,
                    reason="Known quality instructor with validated metrics",
                )
            return None

        w = t.known_quality_early_weights
        score = instructor.score * w["instructor"] + content.score * w["content"]
        if score >= t.known_quality_early:
            return PathVerdict(
                outcome=Outcome.ACCEPT,
                score=round(score, 1),
                path=PathKind.KNOWN_QUALITY_EARLY.value,
                reason="Known quality instructor - early video without metrics yet",
            )
        return None


# =============================================================================
# FALLBACKS
# =============================================================================


class RejectFallback(AcceptancePath):
    kind = PathKind.WEIGHTED_FALLBACK
    required = frozenset()

    def check(self, snapshot, config):
        return PathVerdict(
            outcome=Outcome.REJECT,
            score=config.thresholds.fallback_reject_score,
            path=PATH_NONE,
            reason="Did not meet acceptance criteria on any path",
        )


class WeightedFallback(AcceptancePath):
    """
    Weighted aggregate of the registry-backed dimensions plus capped boosts.
    Hard floors on instructor credibility and taxonomy reject even when the
    clamped total clears the acceptance threshold.
    """

    kind = PathKind.WEIGHTED_FALLBACK
    required = frozenset({
        Dimension.INSTRUCTOR,
        Dimension.TAXONOMY,
        Dimension.COVERAGE,
        Dimension.UNIQUENESS,
        Dimension.USER_FEEDBACK,
        Dimension.BELT_LEVEL,
        Dimension.EMERGING,
    })

    def check(self, snapshot, config):
        t = config.thresholds
        w = t.fallback_weights
        instructor = snapshot.instructor
        taxonomy = snapshot.taxonomy
        coverage = snapshot.coverage
        uniqueness = snapshot.uniqueness
        feedback = snapshot.user_feedback
        belt = snapshot.belt_level
        emerging = snapshot.emerging

        coverage_value = t.coverage_needed_value if coverage.needs_more else t.coverage_covered_value
        score = (
            instructor.score * w["instructor"]
            + taxonomy.score * w["taxonomy"]
            + uniqueness.score * w["uniqueness"]
            + feedback.score * w["user_feedback"]
            + belt.score * w["belt_level"]
            + coverage_value * w["coverage"]
        )

        boosts: List[str] = []
        for label, value in (
            ("Coverage gap", coverage.boost),
            ("Emerging technique", emerging.boost),
            ("User feedback", feedback.boost),
            ("Belt level balance", belt.boost),
        ):
            if value > 0:
                score += value
                boosts.append(f"{label}: +{value:g}")

        if instructor.auto_accept:
            score += t.auto_accept_boost
            boosts.append(f"Elite instructor: +{t.auto_accept_boost:g}")
        if instructor.boost_multiplier > 1.0:
            reputation = (instructor.boost_multiplier - 1.0) * t.reputation_boost_scale
            score += reputation
            boosts.append(f"Instructor reputation: +{reputation:.1f}")

        score = round(min(score, 100.0), 1)

        failed: List[str] = []
        if instructor.score < t.min_instructor_credibility:
            failed.append(
                f"Instructor credibility too low "
                f"({instructor.score:g}/{t.min_instructor_credibility:g} required)"
            )
        if taxonomy.score < t.min_taxonomy_score:
            failed.append(
                f"Taxonomy mapping too weak ({taxonomy.score:g}/{t.min_taxonomy_score:g} required)"
            )
        if failed:
            return PathVerdict(
                outcome=Outcome.REJECT,
                score=score,
                path=PATH_NONE,
                reason=failed[0],
                boosts_applied=boosts,
                bad_because=failed,
            )

        if score >= t.fallback_accept_threshold:
            positives = sum(
                len(result.reasons_good)
                for result in (instructor, coverage, uniqueness, feedback, belt, emerging)
            )
            return PathVerdict(
                outcome=Outcome.ACCEPT,
                score=score,
                path=self.kind.value,
                reason=f"Quality score: {score:.1f}/100 ({positives} positive factors)",
                boosts_applied=boosts,
            )

        too_low = f"Score too low: {score:.1f}/{t.fallback_accept_threshold:g} required"
        return PathVerdict(
            outcome=Outcome.REJECT,
            score=score,
            path=PATH_NONE,
            reason=too_low,
            boosts_applied=boosts,
            bad_because=[too_low],
        )


PROFILE_PATHS: Dict[str, List[AcceptancePath]] = {
    PROFILE_THREE_PATH: [ElitePath(), MetricsValidatedPath(), KnownQualityPath()],
    PROFILE_FULL: [ElitePath(), MetricsValidatedPath(), KnownQualityPath()],
}
PROFILE_FALLBACKS: Dict[str, AcceptancePath] = {
    PROFILE_THREE_PATH: RejectFallback(),
    PROFILE_FULL: WeightedFallback(),
}


# =============================================================================
# ROUTER
# =============================================================================


class DecisionRouter:
    def __init__(self, config: Optional[RouterConfig] = None) -> None:
        self.config = config or RouterConfig()
        self.paths = PROFILE_PATHS[self.config.profile]
        self.fallback = PROFILE_FALLBACKS[self.config.profile]

    @property
    def thresholds(self) -> RouterThresholds:
        return self.config.thresholds

    @property
    def required_dimensions(self) -> FrozenSet[Dimension]:
        """Every dimension this profile may read, the uniqueness gate included."""
        required = {Dimension.UNIQUENESS}
        for path in [*self.paths, self.fallback]:
            required |= path.required
        return frozenset(required)

    def route(self, candidate: VideoCandidate, snapshot: DimensionSnapshot) -> Decision:
        """
        Produce the decision for *candidate* from its dimension snapshot.

        Raises:
            EvaluationError: If the snapshot lacks a dimension the profile reads.
        """
        missing = [d.value for d in self.required_dimensions if not snapshot.has(d)]
        if missing:
            raise EvaluationError(
                f"Snapshot is missing dimensions {sorted(missing)} "
                f"required by profile '{self.config.profile}'",
                video_id=candidate.video_id,
            )

        uniqueness = snapshot.uniqueness
        if not uniqueness.should_add:
            verdict = PathVerdict(
                outcome=Outcome.REJECT,
                score=uniqueness.score,
                path=PATH_FAILED_UNIQUENESS,
                reason=uniqueness.reasons_bad[0] if uniqueness.reasons_bad else "Does not add unique value",
            )
            return self._build(candidate, snapshot, verdict)

        verdict = None
        for path in self.paths:
            verdict = path.check(snapshot, self.config)
            if verdict is not None:
                break
        if verdict is None:
            verdict = self.fallback.check(snapshot, self.config)

        if (
            self.config.degraded_policy == "manual_review"
            and snapshot.degraded
            and verdict.outcome is not Outcome.MANUAL_REVIEW
        ):
            degraded = ", ".join(f.dimension.value for f in snapshot.faults)
            logger.warning(
                "[ROUTER] %s: %s over degraded dimensions (%s), routing to manual review",
                candidate.video_id, verdict.outcome.value, degraded,
            )
            verdict.reason = (
                f"Degraded evaluation ({degraded}); would have been "
                f"{verdict.outcome.value}: {verdict.reason}"
            )
            verdict.outcome = Outcome.MANUAL_REVIEW

        return self._build(candidate, snapshot, verdict)

    def _build(
        self, candidate: VideoCandidate, snapshot: DimensionSnapshot, verdict: PathVerdict
    ) -> Decision:
        effects: List[Effect] = []
        if verdict.outcome is Outcome.ACCEPT:
            key = normalize_technique_name(candidate.technique_name)
            effects.append(CoverageIncrement(key, candidate.skill_level))
            emerging = snapshot.emerging
            if emerging is not None and emerging.newly_detected:
                effects.append(EmergingUpsert(key, candidate.instructor_name))

        logger.info(
            "[ROUTER] %s -> %s (path=%s, score=%.1f)",
            candidate.video_id, verdict.outcome.value, verdict.path, verdict.score,
        )
        return Decision(
            video_id=candidate.video_id,
            outcome=verdict.outcome,
            final_score=round(float(verdict.score), 1),
            path=verdict.path,
            reason=verdict.reason,
            dimensions=snapshot,
            metadata=build_metadata(candidate, snapshot, verdict),
            effects=effects,
        )


def build_metadata(
    candidate: VideoCandidate, snapshot: DimensionSnapshot, verdict: PathVerdict
) -> DecisionMetadata:
    instructor = snapshot.instructor
    tier = instructor.tier if instructor is not None else InstructorTier.UNKNOWN
    if tier is InstructorTier.UNKNOWN:
        display_name = candidate.channel_name or candidate.instructor_name or ""
    else:
        display_name = (
            candidate.instructor_name or instructor.matched_name or candidate.channel_name
        )

    good: List[str] = []
    bad: List[str] = []
    for dimension in Dimension:
        result = snapshot.get(dimension)
        if result is None:
            continue
        good.extend(result.reasons_good)
        bad.extend(result.reasons_bad)
    for reason in verdict.bad_because:
        if reason not in bad:
            bad.append(reason)

    youtube = snapshot.youtube
    uniqueness = snapshot.uniqueness
    return DecisionMetadata(
        primary_technique=candidate.technique_name,
        skill_level=candidate.skill_level,
        instructor_name=display_name,
        instructor_tier=tier.value,
        unique_value=uniqueness.unique_value_reason if uniqueness is not None else None,
        signal_tags=youtube.signals.labels() if youtube is not None else [],
        good_because=good,
        bad_because=bad,
        boosts_applied=list(verdict.boosts_applied),
        all_scores=snapshot.scores(),
    )
