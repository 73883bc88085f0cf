"""
Content Quality Analyzer.

Pure text classifier over title and description.  Elite instructors are
scored leniently: the only question is whether the video teaches at all.
Everyone else is scored additively from a base of 50.
"""

import logging
from typing import List, Optional

from curation.classifiers import (
    CLICKBAIT_PATTERNS,
    COMPETITION_PATTERNS,
    GENERIC_TITLE,
    MISTAKE_PATTERNS,
    SETUP_PATTERNS,
    STEP_BY_STEP_PATTERNS,
    TROUBLESHOOTING_PATTERNS,
    TextClassifier,
    contains_any,
    content_type_classifier,
    depth_classifier,
)
from curation.models import (
    ContentQualityAnalysis,
    ContentType,
    Dimension,
    DimensionOutcome,
    InstructorTier,
    VideoCandidate,
)
from curation.utils import clamp
from curation.dimensions.base import guarded_sync

logger = logging.getLogger("ContentQuality")

SHORT_TITLE_LENGTH = 15

_NON_INSTRUCTIONAL_REASONS = {
    ContentType.HIGHLIGHT: "Appears to be highlight reel or competition footage",
    ContentType.VLOG: "Appears to be vlog/personal content",
    ContentType.QA: "Appears to be Q&A or discussion",
}


def default_content_quality() -> ContentQualityAnalysis:
    return ContentQualityAnalysis(score=50.0)


class ContentQualityAnalyzer:
    """
    Args:
        type_classifier: Maps title+description to a content type tag
            (``highlight``/``vlog``/``qa``/``instructional``) or ``None``.
        depth: Maps the same text to ``advanced``/``basic`` or ``None``.
    """

    def __init__(
        self,
        type_classifier: Optional[TextClassifier] = None,
        depth: Optional[TextClassifier] = None,
    ) -> None:
        self.type_classifier = type_classifier or content_type_classifier()
        self.depth = depth or depth_classifier()

    def evaluate(self, candidate: VideoCandidate, tier: InstructorTier) -> DimensionOutcome:
        return guarded_sync(
            Dimension.CONTENT,
            lambda: self.analyze(candidate.title, candidate.description, tier),
            default_content_quality,
            logger,
        )

    def analyze(
        self, title: str, description: str, tier: InstructorTier = InstructorTier.UNKNOWN
    ) -> ContentQualityAnalysis:
        text = f"{title} {description}".lower()
        reasons_good: List[str] = []
        reasons_bad: List[str] = []

        tag = self.type_classifier.classify(text)
        try:
            content_type = ContentType(tag) if tag else ContentType.OTHER
        except ValueError:
            content_type = ContentType.OTHER

        if content_type is ContentType.INSTRUCTIONAL:
            is_instructional = True
            reasons_good.append("Contains instructional content signals")
        elif content_type is ContentType.OTHER:
            # Ambiguous text: benefit of the doubt for elite instructors only
            is_instructional = tier is InstructorTier.ELITE
        else:
            is_instructional = False
            reasons_bad.append(_NON_INSTRUCTIONAL_REASONS[content_type])

        step_by_step = contains_any(text, STEP_BY_STEP_PATTERNS)
        setup = contains_any(text, SETUP_PATTERNS)
        troubleshooting = contains_any(text, TROUBLESHOOTING_PATTERNS)
        mistakes = contains_any(text, MISTAKE_PATTERNS)
        competition = contains_any(text, COMPETITION_PATTERNS)
        for flag, reason in (
            (step_by_step, "Contains step-by-step instruction"),
            (setup, "Includes setup/entry details"),
            (troubleshooting, "Includes troubleshooting/tips"),
            (mistakes, "Addresses common mistakes"),
            (competition, "Real competition context"),
        ):
            if flag:
                reasons_good.append(reason)

        clickbait = contains_any(text, CLICKBAIT_PATTERNS)
        if clickbait:
            reasons_bad.append("Clickbait language detected")
        too_short = len(title) < SHORT_TITLE_LENGTH
        if too_short:
            reasons_bad.append("Title too short - lacks detail")
        too_generic = bool(GENERIC_TITLE.match(title.strip()))
        if too_generic:
            reasons_bad.append("Title too generic")

        depth = self.depth.classify(text) or "intermediate"

        analysis = ContentQualityAnalysis(
            content_type=content_type,
            is_instructional=is_instructional,
            has_step_by_step=step_by_step,
            has_setup_details=setup,
            has_troubleshooting=troubleshooting,
            has_common_mistakes=mistakes,
            has_competition_context=competition,
            has_clickbait=clickbait,
            too_short_title=too_short,
            too_generic=too_generic,
            technique_depth=depth,
            reasons_good=reasons_good,
            reasons_bad=reasons_bad,
            tags=[content_type.value, f"depth:{depth}"],
        )
        analysis.score = self._score(analysis, tier)
        return analysis

    @staticmethod
    def _score(analysis: ContentQualityAnalysis, tier: InstructorTier) -> float:
        positives = analysis.positive_flag_count
        if tier is InstructorTier.ELITE:
            if not analysis.is_instructional:
                return 25.0
            return clamp(75 + 5 * positives)

        score = 50 + 10 * positives
        if analysis.has_clickbait:
            score -= 15
        if not analysis.is_instructional:
            score -= 30
        if analysis.too_short_title:
            score -= 10
        if analysis.too_generic:
            score -= 15
        return clamp(score)
