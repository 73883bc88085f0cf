"""
Curation Evaluator.

Orchestrates one candidate evaluation:

1. Registry-backed dimensions concurrently (Instructor, Taxonomy, Coverage,
   Uniqueness, Emerging, User Feedback).
2. Pure dimensions (Belt Level, YouTube Metrics, Content Quality).  Content
   Quality needs the instructor tier from step 1.
3. The decision router.

Only the dimensions the router profile reads are computed.  Evaluation is
read-only: registry writes happen in :func:`curation.effects.apply_effects`
after an ACCEPT.

Usage::

    store = InMemoryRegistry.from_seed("config/registry_seed.yaml")
    evaluator = CurationEvaluator(store, RouterConfig(profile="full"))
    decision = await evaluator.evaluate(candidate)
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Awaitable, Dict, List, Optional, Sequence

from curation.config import RouterConfig, Settings
from curation.database import RegistryStore
from curation.dimensions import (
    BeltLevelAnalyzer,
    ContentQualityAnalyzer,
    CoverageAnalyzer,
    EmergingTechniqueDetector,
    InstructorEvaluator,
    TaxonomyMapper,
    UniquenessAssessor,
    UserFeedbackAnalyzer,
    YouTubeMetricsAnalyzer,
)
from curation.effects import apply_effects
from curation.exceptions import EffectApplicationError, ValidationError
from curation.logging import (
    BatchRunLogger,
    ComponentLogger,
    LogComponent,
    get_logger,
    is_logger_initialized,
)
from curation.models import (
    Decision,
    Dimension,
    DimensionOutcome,
    DimensionSnapshot,
    InstructorTier,
    VideoCandidate,
)
from curation.router import DecisionRouter
from curation.utils import ensure_utc, generate_id, utc_now


class CurationEvaluator:
    """
    Args:
        store: Registry store every registry-backed dimension reads from.
        config: Router profile and thresholds.
        max_concurrency: Upper bound on candidates evaluated at once in
            :meth:`evaluate_batch`.
    """

    def __init__(
        self,
        store: RegistryStore,
        config: Optional[RouterConfig] = None,
        max_concurrency: int = 8,
    ) -> None:
        if max_concurrency < 1:
            raise ValidationError(f"max_concurrency must be positive, got {max_concurrency}")
        self.store = store
        self.router = DecisionRouter(config)
        self.max_concurrency = max_concurrency
        self.logger = logging.getLogger("CurationEvaluator")

        self.instructor = InstructorEvaluator(store)
        self.taxonomy = TaxonomyMapper(store)
        self.coverage = CoverageAnalyzer(store)
        self.uniqueness = UniquenessAssessor(store)
        self.user_feedback = UserFeedbackAnalyzer(store)
        self.emerging = EmergingTechniqueDetector(store)
        self.belt_level = BeltLevelAnalyzer()
        self.youtube = YouTubeMetricsAnalyzer()
        self.content = ContentQualityAnalyzer()

    @classmethod
    def from_settings(cls, store: RegistryStore, settings: Settings) -> "CurationEvaluator":
        return cls(store, settings.router, max_concurrency=settings.max_concurrency)

    @property
    def config(self) -> RouterConfig:
        return self.router.config

    @property
    def required_dimensions(self):
        return self.router.required_dimensions

    # -----------------------------------------------------------------
    # SINGLE CANDIDATE
    # -----------------------------------------------------------------

    async def evaluate(
        self, candidate: VideoCandidate, now: Optional[datetime] = None
    ) -> Decision:
        """Evaluate one candidate.  Never writes to the registry."""
        decision = await self._evaluate(candidate, ensure_utc(now or utc_now()))
        if is_logger_initialized():
            await get_logger().log_decision(decision)
        return decision

    async def _evaluate(
        self, candidate: VideoCandidate, now: datetime, run_id: Optional[str] = None
    ) -> Decision:
        snapshot = await self.collect_dimensions(candidate, now, run_id)
        return self.router.route(candidate, snapshot)

    async def collect_dimensions(
        self, candidate: VideoCandidate, now: datetime, run_id: Optional[str] = None
    ) -> DimensionSnapshot:
        """Run every dimension the router profile reads.

        With the audit logger initialised, each registry-backed dimension is
        timed under its own log component.
        """
        required = self.required_dimensions

        pending: Dict[Dimension, Awaitable[DimensionOutcome]] = {}
        if Dimension.INSTRUCTOR in required or Dimension.CONTENT in required:
            pending[Dimension.INSTRUCTOR] = self.instructor.evaluate(candidate)
        if Dimension.TAXONOMY in required:
            pending[Dimension.TAXONOMY] = self.taxonomy.evaluate(candidate)
        if Dimension.COVERAGE in required:
            pending[Dimension.COVERAGE] = self.coverage.evaluate(candidate)
        if Dimension.UNIQUENESS in required:
            pending[Dimension.UNIQUENESS] = self.uniqueness.evaluate(candidate)
        if Dimension.EMERGING in required:
            pending[Dimension.EMERGING] = self.emerging.evaluate(candidate, now)
        if Dimension.USER_FEEDBACK in required:
            # Neutral without a store call when the video is not in the library
            pending[Dimension.USER_FEEDBACK] = self.user_feedback.evaluate(candidate)

        if is_logger_initialized():
            pending = {
                dimension: self._timed(dimension, work, candidate.video_id, run_id)
                for dimension, work in pending.items()
            }
        results = await asyncio.gather(*pending.values())
        outcomes: Dict[Dimension, DimensionOutcome] = dict(zip(pending.keys(), results))

        if Dimension.BELT_LEVEL in required:
            outcomes[Dimension.BELT_LEVEL] = self.belt_level.evaluate(candidate)
        if Dimension.YOUTUBE in required:
            outcomes[Dimension.YOUTUBE] = self.youtube.evaluate(candidate, now)
        if Dimension.CONTENT in required:
            instructor = outcomes.get(Dimension.INSTRUCTOR)
            tier = instructor.result.tier if instructor is not None else InstructorTier.UNKNOWN
            outcomes[Dimension.CONTENT] = self.content.evaluate(candidate, tier)

        snapshot = DimensionSnapshot(outcomes)
        if snapshot.degraded:
            self.logger.warning(
                "[EVALUATOR] %s: degraded dimensions %s",
                candidate.video_id,
                [f.dimension.value for f in snapshot.faults],
            )
        return snapshot

    async def _timed(
        self,
        dimension: Dimension,
        work: Awaitable[DimensionOutcome],
        video_id: str,
        run_id: Optional[str],
    ) -> DimensionOutcome:
        log = ComponentLogger(LogComponent(dimension.value))
        async with log.timed(f"Evaluating {dimension.value}", video_id=video_id, run_id=run_id):
            return await work

    # -----------------------------------------------------------------
    # BATCH
    # -----------------------------------------------------------------

    async def evaluate_batch(
        self,
        candidates: Sequence[VideoCandidate],
        now: Optional[datetime] = None,
        apply: bool = True,
    ) -> List[Decision]:
        """
        Evaluate candidates with bounded concurrency.

        When *apply* is set, each ACCEPT's effects are written to the store
        as soon as that decision is made.  A failing effect is logged and
        counted; the decision itself stands.

        Returns:
            Decisions in input order.
        """
        now = ensure_utc(now or utc_now())
        semaphore = asyncio.Semaphore(self.max_concurrency)
        run: Optional[BatchRunLogger] = None
        if is_logger_initialized():
            run = BatchRunLogger(generate_id(), profile=self.config.profile)
            await run.start(len(candidates))

        self.logger.info(
            "[EVALUATOR] Evaluating %d candidates (profile=%s, concurrency=%d, apply=%s)",
            len(candidates), self.config.profile, self.max_concurrency, apply,
        )

        async def _one(candidate: VideoCandidate) -> Decision:
            async with semaphore:
                decision = await self._evaluate(
                    candidate, now, run.run_id if run is not None else None
                )
                applied = 0
                error: Optional[EffectApplicationError] = None
                if apply and decision.accepted:
                    try:
                        applied = len(await apply_effects(decision, self.store))
                    except EffectApplicationError as exc:
                        error = exc
                        self.logger.error(
                            "[EVALUATOR] %s: effect application failed: %s",
                            candidate.video_id, exc,
                        )
                if run is not None:
                    await run.record(decision, effects_applied=applied, effect_error=error)
            return decision

        decisions = list(await asyncio.gather(*(_one(c) for c in candidates)))

        if run is not None:
            summary = await run.finish()
            self.logger.info(
                "[EVALUATOR] Batch %s finished in %dms: %s",
                summary["run_id"], summary["total_duration_ms"], summary["outcomes"],
            )
        return decisions


def summarize_decisions(decisions: Sequence[Decision]) -> Dict[str, Any]:
    """Counts per outcome and per path, plus degraded and average score."""
    outcomes = Counter(d.outcome.value for d in decisions)
    paths = Counter(d.path for d in decisions)
    total = len(decisions)
    return {
        "total": total,
        "outcomes": {k: outcomes.get(k, 0) for k in ("ACCEPT", "REJECT", "MANUAL_REVIEW")},
        "paths": dict(paths),
        "degraded": sum(1 for d in decisions if d.degraded),
        "average_score": round(sum(d.final_score for d in decisions) / total, 1) if total else 0.0,
    }
