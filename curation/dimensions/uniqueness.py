"""
Uniqueness Assessor: the blocking novelty gate.

``should_add`` False rejects the candidate regardless of every other
dimension.  An exact duplicate of a library video scores 0.
"""

import logging
from typing import Any, Dict, List, Optional

from curation.classifiers import UNIQUE_ANGLES, TextClassifier, unique_angle_classifier
from curation.database import RegistryStore
from curation.models import (
    Dimension,
    DimensionOutcome,
    LibraryVideo,
    UniquenessAnalysis,
    VideoCandidate,
)
from curation.utils import normalize_technique_name
from curation.dimensions.base import guarded

BASE_SCORE = 70
REDUNDANCY_PENALTY = 15
VARIETY_BONUS = 10
NOVEL_DETAIL_BONUS = 20
ANGLE_BONUS = 10
SHOULD_ADD_THRESHOLD = 60
DUPLICATE_RISK_COUNT = 3
SIMILAR_LIMIT = 10


def default_uniqueness_analysis() -> UniquenessAnalysis:
    return UniquenessAnalysis(score=float(BASE_SCORE), should_add=True)


def find_novel_detail(
    key_details: Dict[str, Any], similar: List[LibraryVideo]
) -> Optional[str]:
    """A solved problem or variation none of the similar videos cover."""
    for problem in key_details.get("problems_solved") or []:
        needle = str(problem).lower()
        if not any(
            needle in existing.lower()
            for video in similar
            for existing in video.problems_solved
        ):
            return f"Addresses unique problem: {problem}"

    variation = key_details.get("variation")
    if variation and not any(video.variation == variation for video in similar):
        return f"Shows unique variation: {variation}"
    return None


class UniquenessAssessor:
    """
    Args:
        store: Registry store for duplicate and similar-video lookups.
        angle_classifier: Tags a title with a unique angle
            (see ``classifiers.UNIQUE_ANGLES``).
    """

    def __init__(
        self,
        store: RegistryStore,
        angle_classifier: Optional[TextClassifier] = None,
    ) -> None:
        self.store = store
        self.angle_classifier = angle_classifier or unique_angle_classifier()
        self.logger = logging.getLogger("UniquenessAssessor")

    async def evaluate(self, candidate: VideoCandidate) -> DimensionOutcome:
        return await guarded(
            Dimension.UNIQUENESS,
            self._evaluate(candidate),
            default_uniqueness_analysis,
            self.logger,
        )

    async def _evaluate(self, candidate: VideoCandidate) -> UniquenessAnalysis:
        if await self.store.video_exists(candidate.video_id):
            return UniquenessAnalysis(
                score=0.0,
                should_add=False,
                exact_duplicate=True,
                duplicate_risk=True,
                blocking=True,
                tags=["exact_duplicate"],
                reasons_bad=["Exact duplicate - already in library"],
            )

        similar: List[LibraryVideo] = []
        if candidate.instructor_name:
            similar = await self.store.find_similar_videos(
                normalize_technique_name(candidate.technique_name),
                candidate.instructor_name,
                limit=SIMILAR_LIMIT,
            )

        score = BASE_SCORE
        reasons_good: List[str] = []
        reasons_bad: List[str] = []
        tags: List[str] = []
        unique_value: Optional[str] = None

        if similar:
            score -= REDUNDANCY_PENALTY
            reasons_bad.append(
                f"{len(similar)} existing videos from same instructor on this technique"
            )
            novel = find_novel_detail(candidate.key_details, similar)
            if novel:
                score += NOVEL_DETAIL_BONUS
                unique_value = novel
                reasons_good.append(novel)
                tags.append("novel_detail")
        else:
            score += VARIETY_BONUS
            reasons_good.append("Adds instructor variety to library")

        angle = self.angle_classifier.classify(candidate.title)
        if angle:
            description = UNIQUE_ANGLES.get(angle, angle)
            score += ANGLE_BONUS
            unique_value = unique_value or description
            reasons_good.append(f"Unique angle: {description}")
            tags.append(f"angle:{angle}")

        should_add = score >= SHOULD_ADD_THRESHOLD
        if not should_add:
            reasons_bad.insert(0, f"Insufficient unique value ({score}/{SHOULD_ADD_THRESHOLD})")

        return UniquenessAnalysis(
            score=float(score),
            should_add=should_add,
            duplicate_risk=len(similar) >= DUPLICATE_RISK_COUNT,
            unique_value_reason=unique_value,
            similar_count=len(similar),
            blocking=not should_add,
            tags=tags,
            reasons_good=reasons_good,
            reasons_bad=reasons_bad,
        )
