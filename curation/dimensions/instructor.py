"""
Instructor Authority Evaluator.

Scores how much an instructor can be trusted.  Lookup order: registry by
name, then registry by channel id.  When no name is supplied, a known elite
name is extracted from the title first.  Unregistered instructors fall back
to name heuristics.
"""

import logging
from typing import Dict, List, Optional

from curation.classifiers import (
    GYM_KEYWORDS,
    REGIONAL_NAME_PATTERNS,
    TextClassifier,
    contains_any,
    elite_roster_classifier,
)
from curation.database import RegistryStore, validate_not_empty
from curation.exceptions import ValidationError
from curation.models import (
    Dimension,
    DimensionOutcome,
    InstructorEvaluation,
    InstructorRecord,
    InstructorTier,
    VideoCandidate,
)
from curation.dimensions.base import guarded

UNKNOWN_CREDIBILITY = 40
ANONYMOUS_CREDIBILITY = 30
GYM_BONUS = 10
REGIONAL_NAME_BONUS = 5


def default_instructor_evaluation() -> InstructorEvaluation:
    return InstructorEvaluation(score=UNKNOWN_CREDIBILITY, tier=InstructorTier.UNKNOWN)


class InstructorEvaluator:
    """
    Args:
        store: Registry store used for instructor lookups.
        title_classifier: Extracts a known instructor name from a title.
            Defaults to the fixed elite roster.
    """

    def __init__(
        self,
        store: RegistryStore,
        title_classifier: Optional[TextClassifier] = None,
    ) -> None:
        self.store = store
        self.title_classifier = title_classifier or elite_roster_classifier()
        self.logger = logging.getLogger("InstructorEvaluator")

    async def evaluate(self, candidate: VideoCandidate) -> DimensionOutcome:
        return await guarded(
            Dimension.INSTRUCTOR,
            self._evaluate(candidate),
            default_instructor_evaluation,
            self.logger,
        )

    async def _evaluate(self, candidate: VideoCandidate) -> InstructorEvaluation:
        search_name = candidate.instructor_name
        if not search_name and candidate.title:
            search_name = self.title_classifier.classify(candidate.title)
            if search_name:
                self.logger.debug(
                    "[INSTRUCTOR] Extracted '%s' from title '%s'",
                    search_name, candidate.title[:60],
                )

        if not search_name and not candidate.channel_id:
            return default_instructor_evaluation()

        record: Optional[InstructorRecord] = None
        if search_name:
            record = await self.store.get_instructor_by_name(search_name)
        if record is None and candidate.channel_id:
            record = await self.store.get_instructor_by_channel(candidate.channel_id)

        if record is None:
            return self._evaluate_unregistered(search_name)
        return self._from_record(record)

    @staticmethod
    def _from_record(record: InstructorRecord) -> InstructorEvaluation:
        reasons: List[str] = []
        if record.tier is InstructorTier.ELITE:
            reasons.append("Elite instructor with proven track record")
            if record.achievements.get("adcc"):
                reasons.append(f"ADCC achievements: {', '.join(record.achievements['adcc'])}")
            if record.achievements.get("ibjjf"):
                reasons.append(f"IBJJF achievements: {', '.join(record.achievements['ibjjf'])}")
            if record.achievements.get("specialties"):
                reasons.append(f"Specialist in: {', '.join(record.achievements['specialties'])}")

        return InstructorEvaluation(
            score=float(record.credibility_score),
            tier=record.tier,
            auto_accept=record.auto_accept,
            boost_multiplier=record.boost_multiplier,
            instructor_id=record.id,
            matched_name=record.name,
            reasons_good=reasons,
            tags=[record.tier.value],
        )

    @staticmethod
    def _evaluate_unregistered(name: Optional[str]) -> InstructorEvaluation:
        if not name:
            return InstructorEvaluation(score=ANONYMOUS_CREDIBILITY, tier=InstructorTier.UNKNOWN)

        score = UNKNOWN_CREDIBILITY
        reasons: List[str] = []
        if contains_any(name, GYM_KEYWORDS):
            score += GYM_BONUS
            reasons.append("Associated with reputable gym")
        if contains_any(name, REGIONAL_NAME_PATTERNS):
            score += REGIONAL_NAME_BONUS

        return InstructorEvaluation(
            score=float(score),
            tier=InstructorTier.UNKNOWN,
            matched_name=name,
            reasons_good=reasons,
            tags=["unregistered"],
        )


async def register_instructor(
    store: RegistryStore,
    name: str,
    channel_id: Optional[str],
    tier: InstructorTier,
    credibility_score: int,
    achievements: Optional[Dict[str, List[str]]] = None,
    auto_accept: bool = False,
    boost_multiplier: float = 1.0,
) -> InstructorRecord:
    """
    Persist a newly discovered instructor.

    Never called during evaluation; registering an instructor is an explicit
    curator action.

    Raises:
        ValidationError: On an empty name, an ``unknown`` tier, or a
            credibility score outside 0-100.
    """
    validate_not_empty(name, "name")
    if tier is InstructorTier.UNKNOWN:
        raise ValidationError("Cannot register an instructor with tier 'unknown'")
    if not 0 <= credibility_score <= 100:
        raise ValidationError(
            f"credibility_score must be within 0-100, got {credibility_score}"
        )

    record = InstructorRecord(
        name=name.strip(),
        channel_id=channel_id,
        tier=tier,
        credibility_score=credibility_score,
        auto_accept=auto_accept,
        boost_multiplier=boost_multiplier,
        achievements=dict(achievements or {}),
    )
    saved = await store.save_instructor(record)
    logging.getLogger("InstructorEvaluator").info(
        "[INSTRUCTOR] Registered '%s' as %s (credibility=%d)",
        saved.name, saved.tier.value, saved.credibility_score,
    )
    return saved
