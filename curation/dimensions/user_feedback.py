"""
User Feedback Analyzer.

Only already-persisted videos have performance history; brand-new
candidates get a neutral score.
"""

import logging
from typing import List

from curation.database import RegistryStore
from curation.models import (
    Dimension,
    DimensionOutcome,
    PerformanceRecord,
    UserFeedbackAnalysis,
    VideoCandidate,
)
from curation.utils import clamp
from curation.dimensions.base import guarded

NEUTRAL_SCORE = 50
MIN_VOTES = 5
MIN_RECOMMENDATIONS = 10


def default_user_feedback() -> UserFeedbackAnalysis:
    return UserFeedbackAnalysis(score=float(NEUTRAL_SCORE), has_performance_data=False)


def score_performance(perf: PerformanceRecord) -> UserFeedbackAnalysis:
    score = NEUTRAL_SCORE
    boost = 0
    reasons: List[str] = []

    votes = perf.total_votes
    if votes >= MIN_VOTES:
        helpful_ratio = perf.helpful_count / votes
        if helpful_ratio >= 0.8:
            score += 30
            boost += 15
            reasons.append(
                f"Highly rated: {round(helpful_ratio * 100)}% helpful ({votes} votes)"
            )
        elif helpful_ratio >= 0.6:
            score += 15
            boost += 7
            reasons.append(f"Positive feedback: {round(helpful_ratio * 100)}% helpful")

    if perf.watch_completion_rate > 0.7:
        score += 15
        boost += 5
        reasons.append(
            f"High engagement: {round(perf.watch_completion_rate * 100)}% watch completion"
        )

    if (
        perf.recommendation_success_rate > 0.5
        and perf.recommended_count >= MIN_RECOMMENDATIONS
    ):
        score += 10
        boost += 5
        reasons.append(
            f"Successful recommendations: "
            f"{round(perf.recommendation_success_rate * 100)}% acceptance"
        )

    if perf.saved_count > 10:
        score += 10
        boost += 3
        reasons.append(f"Saved by {perf.saved_count} users")

    return UserFeedbackAnalysis(
        score=clamp(score),
        boost=float(boost),
        has_performance_data=True,
        reasons_good=reasons,
        tags=["has_performance_data"],
    )


class UserFeedbackAnalyzer:
    def __init__(self, store: RegistryStore) -> None:
        self.store = store
        self.logger = logging.getLogger("UserFeedbackAnalyzer")

    async def evaluate(self, candidate: VideoCandidate) -> DimensionOutcome:
        return await guarded(
            Dimension.USER_FEEDBACK,
            self._evaluate(candidate),
            default_user_feedback,
            self.logger,
        )

    async def _evaluate(self, candidate: VideoCandidate) -> UserFeedbackAnalysis:
        if candidate.existing_video_id is None:
            return default_user_feedback()
        perf = await self.store.get_performance(candidate.existing_video_id)
        if perf is None:
            return default_user_feedback()
        return score_performance(perf)
