"""Belt-Level Fit Analyzer. Pure function of the candidate, no registry access."""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from curation.classifiers import ADVANCED_KEYWORDS, FUNDAMENTALS_KEYWORDS, contains_any
from curation.models import (
    HIGHER_BELTS,
    BeltLevelAnalysis,
    Dimension,
    DimensionOutcome,
    VideoCandidate,
)
from curation.dimensions.base import guarded_sync

logger = logging.getLogger("BeltLevelAnalyzer")

BASE_SCORE = 70


def default_belt_level() -> BeltLevelAnalysis:
    return BeltLevelAnalysis(score=float(BASE_SCORE))


def _target_levels(
    difficulty: Optional[float], belt_levels: Optional[List[str]], reasons: List[str]
) -> Tuple[List[str], int]:
    if belt_levels:
        return [str(level).lower() for level in belt_levels], 0
    if difficulty is None:
        return [], 0
    if difficulty <= 3:
        reasons.append("Beginner-friendly content")
        return ["white", "blue"], 5
    if difficulty <= 6:
        reasons.append("Intermediate-level technique")
        return ["blue", "purple"], 0
    reasons.append("Advanced technique for experienced practitioners")
    return ["purple", "brown", "black"], 3


def analyze_belt_level(
    difficulty: Optional[float],
    belt_levels: Optional[List[str]],
    key_details: Dict[str, Any],
) -> BeltLevelAnalysis:
    reasons: List[str] = []
    score = BASE_SCORE
    levels, balance = _target_levels(difficulty, belt_levels, reasons)

    if key_details:
        text = json.dumps(key_details, default=str).lower()
        if contains_any(text, FUNDAMENTALS_KEYWORDS) and "white" in levels:
            score += 15
            balance += 5
            reasons.append("Covers fundamentals - excellent for beginners")
        if contains_any(text, ADVANCED_KEYWORDS) and any(l in HIGHER_BELTS for l in levels):
            score += 10
            balance += 3
            reasons.append("Advanced details for higher belts")
        if key_details.get("prerequisites") or key_details.get("progressions_to"):
            score += 5
            reasons.append("Shows technique progression path")

    if len(levels) >= 2:
        balance += 2
        reasons.append(f"Appropriate for multiple levels: {', '.join(levels)}")

    return BeltLevelAnalysis(
        score=float(score),
        boost=float(balance),
        target_levels=levels,
        reasons_good=reasons,
        tags=[f"belt:{level}" for level in levels],
    )


class BeltLevelAnalyzer:
    def evaluate(self, candidate: VideoCandidate) -> DimensionOutcome:
        return guarded_sync(
            Dimension.BELT_LEVEL,
            lambda: analyze_belt_level(
                candidate.difficulty_score, candidate.belt_levels, candidate.key_details
            ),
            default_belt_level,
            logger,
        )
