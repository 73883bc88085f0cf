"""
YouTube Engagement Metrics Analyzer.

Engagement ratios from small samples are unreliable, so the engagement
score is dampened by a confidence multiplier derived from the view count.
Age-based signals are measured against an explicit reference time.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from curation.models import (
    ConfidenceTier,
    Dimension,
    DimensionOutcome,
    VideoCandidate,
    YouTubeMetricsAnalysis,
    YouTubeSignals,
)
from curation.utils import ensure_utc
from curation.dimensions.base import guarded_sync

logger = logging.getLogger("YouTubeMetrics")

# (min views, tier, multiplier), highest first
CONFIDENCE_TIERS: List[Tuple[int, ConfidenceTier, float]] = [
    (5000, ConfidenceTier.HIGH, 1.0),
    (1000, ConfidenceTier.MEDIUM, 0.7),
    (0, ConfidenceTier.LOW, 0.3),
]
LIKE_BUCKETS: List[Tuple[float, float]] = [(0.08, 100), (0.05, 80), (0.03, 60), (0.02, 40)]
LIKE_FLOOR = 20.0
COMMENT_BUCKETS: List[Tuple[float, float]] = [(0.01, 100), (0.005, 80), (0.002, 60)]
COMMENT_FLOOR = 30.0
LIKE_WEIGHT = 0.6
COMMENT_WEIGHT = 0.4


def default_youtube_metrics() -> YouTubeMetricsAnalysis:
    return YouTubeMetricsAnalysis(score=0.0)


def confidence_for(views: int) -> Tuple[ConfidenceTier, float]:
    for minimum, tier, multiplier in CONFIDENCE_TIERS:
        if views >= minimum:
            return tier, multiplier
    return ConfidenceTier.LOW, 0.3


def bucket_score(rate: float, buckets: List[Tuple[float, float]], floor: float) -> float:
    for threshold, score in buckets:
        if rate >= threshold:
            return score
    return floor


def analyze_youtube_metrics(
    views: int,
    likes: int,
    comments: int,
    published_at: Optional[datetime],
    channel_subscribers: int,
    now: datetime,
) -> YouTubeMetricsAnalysis:
    subscribers = channel_subscribers or 1
    days = 0.0
    if published_at is not None:
        days = (ensure_utc(now) - ensure_utc(published_at)).total_seconds() / 86400

    tier, multiplier = confidence_for(views)

    like_rate = likes / views if views > 0 else 0.0
    comment_rate = comments / views if views > 0 else 0.0
    view_to_sub = views / subscribers
    views_per_day = views / days if days > 0 else 0.0

    like_score = bucket_score(like_rate, LIKE_BUCKETS, LIKE_FLOOR)
    comment_score = bucket_score(comment_rate, COMMENT_BUCKETS, COMMENT_FLOOR)
    engagement = like_score * LIKE_WEIGHT + comment_score * COMMENT_WEIGHT

    signals = YouTubeSignals(
        hidden_gem=subscribers < 10000 and view_to_sub > 2.0,
        viral=view_to_sub > 0.5,
        trending=days < 7 and views_per_day > 1000,
        evergreen=days > 365 and views_per_day > 100,
    )

    reasons_good: List[str] = []
    reasons_bad: List[str] = []
    if like_score >= 80:
        reasons_good.append(f"Strong like rate: {like_rate * 100:.1f}%")
    if tier is ConfidenceTier.LOW:
        reasons_bad.append(f"Small sample: {views} views (scores dampened)")

    return YouTubeMetricsAnalysis(
        score=round(engagement * multiplier, 1),
        confidence=tier,
        confidence_multiplier=multiplier,
        views=views,
        likes=likes,
        comments=comments,
        like_rate=like_rate,
        comment_rate=comment_rate,
        view_to_sub_ratio=view_to_sub,
        views_per_day=views_per_day,
        days_since_publish=days,
        like_score=like_score,
        comment_score=comment_score,
        engagement_score=round(engagement, 1),
        signals=signals,
        tags=[label.lower().replace(" ", "_") for label in signals.labels()],
        reasons_good=reasons_good + [f"{label} signal" for label in signals.labels()],
        reasons_bad=reasons_bad,
    )


class YouTubeMetricsAnalyzer:
    def evaluate(self, candidate: VideoCandidate, now: datetime) -> DimensionOutcome:
        return guarded_sync(
            Dimension.YOUTUBE,
            lambda: analyze_youtube_metrics(
                candidate.view_count,
                candidate.like_count,
                candidate.comment_count,
                candidate.published_at,
                candidate.channel_subscribers,
                now,
            ),
            default_youtube_metrics,
            logger,
        )
