"""
Coverage Gap Analyzer.

Boosts candidates for under-represented techniques.  Techniques that
already have many videos ("common") get capped boosts so a large target
count cannot grant unlimited boosts to a saturated technique.
"""

import logging
from typing import Dict, List, Optional, Tuple

from curation.database import RegistryStore
from curation.models import (
    SKILL_LEVELS,
    CoverageAnalysis,
    Dimension,
    DimensionOutcome,
    VideoCandidate,
)
from curation.utils import normalize_technique_name
from curation.dimensions.base import guarded

DEFAULT_TARGET = 50
NEEDS_MORE_RATIO = 0.8
COMMON_TECHNIQUE_COUNT = 10
SKILL_GAP_BONUS = 5

# (ratio upper bound, boost, capped boost for common techniques)
GAP_BANDS: List[Tuple[float, int, int]] = [
    (0.3, 25, 10),
    (0.5, 15, 8),
    (0.8, 5, 3),
]


def default_coverage_analysis() -> CoverageAnalysis:
    return CoverageAnalysis(
        score=0.0,
        boost=10.0,
        current_count=0,
        target_count=DEFAULT_TARGET,
        coverage_ratio=0.0,
        needs_more=True,
    )


def least_represented_level(level_counts: Dict[str, int]) -> str:
    """Bucket with the fewest videos; ties go to the latest level."""
    least = SKILL_LEVELS[0]
    for level in SKILL_LEVELS[1:]:
        if level_counts.get(level, 0) <= level_counts.get(least, 0):
            least = level
    return least


def gap_boost(coverage_ratio: float, current_count: int) -> int:
    common = current_count >= COMMON_TECHNIQUE_COUNT
    for upper, boost, capped in GAP_BANDS:
        if coverage_ratio < upper:
            return capped if common else boost
    return 0


class CoverageAnalyzer:
    def __init__(self, store: RegistryStore) -> None:
        self.store = store
        self.logger = logging.getLogger("CoverageAnalyzer")

    async def evaluate(self, candidate: VideoCandidate) -> DimensionOutcome:
        return await guarded(
            Dimension.COVERAGE,
            self._evaluate(candidate),
            default_coverage_analysis,
            self.logger,
        )

    async def _evaluate(self, candidate: VideoCandidate) -> CoverageAnalysis:
        key = normalize_technique_name(candidate.technique_name)
        record = await self.store.get_coverage(key)

        if record is not None:
            current, target = record.current_count, record.target_count or DEFAULT_TARGET
            level_counts = record.level_counts
        else:
            current, target = await self.store.count_active_videos(key), DEFAULT_TARGET
            level_counts = {level: 0 for level in SKILL_LEVELS}

        ratio = current / target if target > 0 else 0.0
        boost = gap_boost(ratio, current)
        reasons: List[str] = []
        tags: List[str] = []

        if boost:
            percent = round(ratio * 100)
            if ratio < 0.3:
                label = "Moderate gap" if current >= COMMON_TECHNIQUE_COUNT else "High-priority gap"
                reasons.append(f"{label}: {current}/{target} videos ({percent}%)")
            elif ratio < 0.5:
                reasons.append(f"Coverage gap: {current}/{target} videos ({percent}%)")
            else:
                reasons.append(f"Approaching target: {current}/{target} videos")
            tags.append("coverage_gap")
        if current >= COMMON_TECHNIQUE_COUNT:
            tags.append("common")

        skill_needed: Optional[str] = None
        least = least_represented_level(level_counts)
        # Unknown difficulty counts as intermediate
        if candidate.skill_level == least:
            boost += SKILL_GAP_BONUS
            skill_needed = least
            reasons.append(f"Fills {least} level gap (only {level_counts.get(least, 0)} videos)")

        return CoverageAnalysis(
            score=float(min(100, round(ratio * 100))),
            boost=float(boost),
            current_count=current,
            target_count=target,
            coverage_ratio=ratio,
            needs_more=ratio < NEEDS_MORE_RATIO,
            skill_level_needed=skill_needed,
            reasons_good=reasons,
            tags=tags,
        )
