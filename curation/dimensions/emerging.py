"""
Emerging Technique Detector.

Evaluation is read-only.  A newly detected emerging technique is reported
with ``newly_detected=True``; the registry upsert happens later, in the
post-decision effects step, and only after an ACCEPT.
"""

import logging
from datetime import datetime
from typing import List, Optional

from curation.classifiers import TextClassifier, emerging_elite_classifier, innovation_classifier
from curation.database import RegistryStore
from curation.models import (
    Dimension,
    DimensionOutcome,
    EmergingAnalysis,
    EmergingStatus,
    EmergingTechniqueRecord,
    VideoCandidate,
)
from curation.utils import ensure_utc, normalize_technique_name
from curation.dimensions.base import guarded

NEW_TECHNIQUE_BASE_CONFIDENCE = 40
EMERGING_CONFIDENCE = 60
RECENT_MONTHS = 6
DAYS_PER_MONTH = 30


def default_emerging_analysis() -> EmergingAnalysis:
    return EmergingAnalysis(score=0.0, boost=0.0, is_emerging=False)


class EmergingTechniqueDetector:
    """
    Args:
        store: Registry store for emerging-technique lookups.
        elite_classifier: Recognizes instructors whose new material signals
            an emerging technique.
        innovation_classifier: Tags technique names that suggest novelty.
    """

    def __init__(
        self,
        store: RegistryStore,
        elite_classifier: Optional[TextClassifier] = None,
        innovation: Optional[TextClassifier] = None,
    ) -> None:
        self.store = store
        self.elite_classifier = elite_classifier or emerging_elite_classifier()
        self.innovation = innovation or innovation_classifier()
        self.logger = logging.getLogger("EmergingDetector")

    async def evaluate(self, candidate: VideoCandidate, now: datetime) -> DimensionOutcome:
        return await guarded(
            Dimension.EMERGING,
            self._evaluate(candidate, now),
            default_emerging_analysis,
            self.logger,
        )

    async def _evaluate(self, candidate: VideoCandidate, now: datetime) -> EmergingAnalysis:
        key = normalize_technique_name(candidate.technique_name)
        record = await self.store.get_emerging_technique(key)
        if record is not None:
            return self._from_record(record)
        return self._analyze_new(candidate, now)

    @staticmethod
    def _from_record(record: EmergingTechniqueRecord) -> EmergingAnalysis:
        reasons: List[str] = []
        boost = 0
        if record.status is EmergingStatus.MONITORING:
            boost = 15
            reasons.append(
                f"Emerging technique under monitoring ({record.video_count} videos detected)"
            )
        elif record.status is EmergingStatus.VALIDATED:
            boost = 20
            reasons.append("Validated emerging technique - adds cutting-edge content")

        if record.confidence_score > 70:
            boost += 5
            reasons.append(f"High confidence emerging technique ({record.confidence_score}%)")

        return EmergingAnalysis(
            score=float(record.confidence_score),
            boost=float(boost),
            is_emerging=True,
            status=record.status,
            reasons_good=reasons,
            tags=["emerging", record.status.value],
        )

    def _analyze_new(self, candidate: VideoCandidate, now: datetime) -> EmergingAnalysis:
        reasons: List[str] = []
        confidence = NEW_TECHNIQUE_BASE_CONFIDENCE
        boost = 0

        if candidate.published_at is not None:
            age_days = (ensure_utc(now) - ensure_utc(candidate.published_at)).total_seconds() / 86400
            if age_days / DAYS_PER_MONTH < RECENT_MONTHS:
                confidence += 20
                reasons.append("Recent upload - may be emerging technique")

        if candidate.instructor_name and self.elite_classifier.classify(candidate.instructor_name):
            confidence += 30
            boost = 15
            reasons.append("Elite instructor teaching potential new technique")

        if self.innovation.classify(candidate.technique_name):
            confidence += 10
            reasons.append("Technique name suggests innovation")

        is_emerging = confidence >= EMERGING_CONFIDENCE
        return EmergingAnalysis(
            score=float(confidence),
            boost=float(boost),
            is_emerging=is_emerging,
            status=EmergingStatus.MONITORING if is_emerging else EmergingStatus.UNKNOWN,
            newly_detected=is_emerging,
            reasons_good=reasons,
            tags=["newly_detected"] if is_emerging else [],
        )
