"""The nine independent scoring dimensions."""

from curation.dimensions.belt_level import BeltLevelAnalyzer, analyze_belt_level
from curation.dimensions.content_quality import ContentQualityAnalyzer
from curation.dimensions.coverage import CoverageAnalyzer
from curation.dimensions.emerging import EmergingTechniqueDetector
from curation.dimensions.instructor import InstructorEvaluator, register_instructor
from curation.dimensions.taxonomy import TaxonomyMapper, add_technique
from curation.dimensions.uniqueness import UniquenessAssessor
from curation.dimensions.user_feedback import UserFeedbackAnalyzer
from curation.dimensions.youtube_metrics import YouTubeMetricsAnalyzer, analyze_youtube_metrics

__all__ = [
    "BeltLevelAnalyzer",
    "ContentQualityAnalyzer",
    "CoverageAnalyzer",
    "EmergingTechniqueDetector",
    "InstructorEvaluator",
    "TaxonomyMapper",
    "UniquenessAssessor",
    "UserFeedbackAnalyzer",
    "YouTubeMetricsAnalyzer",
    "add_technique",
    "analyze_belt_level",
    "analyze_youtube_metrics",
    "register_instructor",
]
