"""
Centralized shared data types for the video curation engine.

This module is THE single source of truth for the records that flow between
the registry, the dimension evaluators, the decision router, and callers.

Hierarchy of types
------------------
- **Enums**: ``Outcome``, ``Dimension``, ``InstructorTier``, ``ConfidenceTier``,
  ``ContentType``, ``EmergingStatus``, ``GiApplicability``
- **Input**: ``VideoCandidate``
- **Registry records**: ``InstructorRecord``, ``TaxonomyEntry``,
  ``CoverageRecord``, ``EmergingTechniqueRecord``, ``PerformanceRecord``,
  ``LibraryVideo``
- **Dimension results**: ``DimensionResult`` and one subclass per dimension
- **Outcomes**: ``Fault``, ``Ok``, ``Degraded``, ``DimensionOutcome``,
  ``DimensionSnapshot``
- **Effects**: ``CoverageIncrement``, ``EmergingUpsert``
- **Output**: ``DecisionMetadata``, ``Decision``
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from curation.exceptions import ValidationError
from curation.utils import difficulty_to_skill_level, parse_datetime


# =============================================================================
# ENUMS
# =============================================================================


class Outcome(str, Enum):
    """Final curation verdict for a candidate."""

    ACCEPT = "ACCEPT"
    REJECT = "REJECT"
    MANUAL_REVIEW = "MANUAL_REVIEW"


class Dimension(str, Enum):
    """The nine independent scoring dimensions."""

    INSTRUCTOR = "instructor"
    TAXONOMY = "taxonomy"
    COVERAGE = "coverage"
    UNIQUENESS = "uniqueness"
    USER_FEEDBACK = "user_feedback"
    BELT_LEVEL = "belt_level"
    EMERGING = "emerging"
    YOUTUBE = "youtube"
    CONTENT = "content"


class InstructorTier(str, Enum):
    """Instructor trust classification."""

    ELITE = "elite"
    HIGH_QUALITY = "high_quality"
    EMERGING = "emerging"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "InstructorTier":
        """Lenient parse: unknown strings fall back to ``UNKNOWN``."""
        try:
            return cls(value) if value else cls.UNKNOWN
        except ValueError:
            return cls.UNKNOWN


class ConfidenceTier(str, Enum):
    """Sample-size confidence of YouTube engagement ratios."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class ContentType(str, Enum):
    """Coarse classification of what a video actually is."""

    INSTRUCTIONAL = "instructional"
    HIGHLIGHT = "highlight"
    VLOG = "vlog"
    QA = "qa"
    OTHER = "other"


class EmergingStatus(str, Enum):
    """Lifecycle of a technique in the emerging-technique registry."""

    MONITORING = "monitoring"
    VALIDATED = "validated"
    UNKNOWN = "unknown"


class GiApplicability(str, Enum):
    """Which uniform a technique applies to."""

    GI_ONLY = "gi_only"
    NOGI_ONLY = "nogi_only"
    BOTH = "both"


SKILL_LEVELS: List[str] = ["beginner", "intermediate", "advanced"]
HIGHER_BELTS: List[str] = ["purple", "brown", "black"]


# =============================================================================
# INPUT
# =============================================================================


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key (snake_case or camelCase spelling)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class VideoCandidate:
    """
    Immutable evaluation input assembled by the caller from already-fetched
    YouTube data and the (optional) LLM content extractor output.

    ``key_details`` is opaque free-form extractor output.  A plain list is
    wrapped as ``{"details": [...]}`` by :meth:`from_dict`.
    """

    video_id: str
    title: str
    technique_name: str
    description: str = ""
    channel_id: Optional[str] = None
    channel_name: str = ""
    channel_subscribers: int = 0
    instructor_name: Optional[str] = None
    category: Optional[str] = None
    gi_or_nogi: Optional[str] = None
    difficulty_score: Optional[float] = None
    key_details: Dict[str, Any] = field(default_factory=dict)
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    published_at: Optional[datetime] = None
    belt_levels: Optional[List[str]] = None
    existing_video_id: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.video_id or not self.video_id.strip():
            raise ValidationError("video_id cannot be empty")
        if not self.technique_name or not self.technique_name.strip():
            raise ValidationError("technique_name cannot be empty")
        for name in ("view_count", "like_count", "comment_count", "channel_subscribers"):
            if getattr(self, name) < 0:
                raise ValidationError(f"{name} cannot be negative, got {getattr(self, name)}")
        if self.difficulty_score is not None and not 0 <= self.difficulty_score <= 10:
            raise ValidationError(
                f"difficulty_score must be within 0-10, got {self.difficulty_score}"
            )

    @property
    def skill_level(self) -> str:
        """Skill bucket derived from ``difficulty_score``."""
        return difficulty_to_skill_level(self.difficulty_score)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VideoCandidate":
        """Build a candidate from a JSON/YAML mapping (snake or camel case)."""
        key_details = _pick(data, "key_details", "keyDetails", default={})
        if isinstance(key_details, list):
            key_details = {"details": key_details}
        difficulty = _pick(data, "difficulty_score", "difficultyScore")
        existing_id = _pick(data, "existing_video_id", "existingVideoId")
        return cls(
            video_id=_pick(data, "video_id", "youtube_id", "youtubeId", default=""),
            title=_pick(data, "title", default=""),
            technique_name=_pick(data, "technique_name", "techniqueName", default=""),
            description=_pick(data, "description", default=""),
            channel_id=_pick(data, "channel_id", "channelId"),
            channel_name=_pick(data, "channel_name", "channelName", default=""),
            channel_subscribers=int(
                _pick(data, "channel_subscribers", "channelSubscribers", default=0)
            ),
            instructor_name=_pick(data, "instructor_name", "instructorName"),
            category=_pick(data, "category"),
            gi_or_nogi=_pick(data, "gi_or_nogi", "giOrNogi"),
            difficulty_score=float(difficulty) if difficulty is not None else None,
            key_details=dict(key_details),
            view_count=int(_pick(data, "view_count", "viewCount", default=0)),
            like_count=int(_pick(data, "like_count", "likeCount", default=0)),
            comment_count=int(_pick(data, "comment_count", "commentCount", default=0)),
            published_at=parse_datetime(_pick(data, "published_at", "publishedAt")),
            belt_levels=_pick(data, "belt_levels", "beltLevels"),
            existing_video_id=int(existing_id) if existing_id is not None else None,
        )


# =============================================================================
# REGISTRY RECORDS
# =============================================================================


@dataclass
class InstructorRecord:
    """A known instructor in the instructor registry."""

    name: str
    channel_id: Optional[str] = None
    tier: InstructorTier = InstructorTier.UNKNOWN
    credibility_score: int = 40
    auto_accept: bool = False
    boost_multiplier: float = 1.0
    achievements: Dict[str, List[str]] = field(default_factory=dict)
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "InstructorRecord":
        """Build from a registry row; missing numerics get documented defaults."""
        achievements: Dict[str, List[str]] = {}
        for key, column in (
            ("adcc", "adcc_achievements"),
            ("ibjjf", "ibjjf_achievements"),
            ("specialties", "specialties"),
        ):
            values = row.get(column)
            if isinstance(values, list) and values:
                achievements[key] = list(values)
        return cls(
            id=row.get("id"),
            name=row["name"],
            channel_id=row.get("channel_id"),
            tier=InstructorTier.parse(row.get("tier")),
            credibility_score=int(row.get("credibility_score") or 40),
            auto_accept=bool(row.get("auto_accept") or False),
            boost_multiplier=float(row.get("boost_multiplier") or 1.0),
            achievements=achievements,
        )

    def to_row(self) -> Dict[str, Any]:
        """Serialize for insertion into the ``instructors`` table."""
        return {
            "name": self.name,
            "channel_id": self.channel_id,
            "tier": self.tier.value,
            "credibility_score": self.credibility_score,
            "auto_accept": self.auto_accept,
            "boost_multiplier": self.boost_multiplier,
            "adcc_achievements": self.achievements.get("adcc"),
            "ibjjf_achievements": self.achievements.get("ibjjf"),
            "specialties": self.achievements.get("specialties"),
        }


@dataclass
class TaxonomyEntry:
    """A catalogued technique in the technique taxonomy."""

    technique_name: str
    category: Optional[str] = None
    priority: int = 5
    target_video_count: int = 50
    difficulty_level: Optional[str] = None
    gi_applicability: Optional[str] = None
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TaxonomyEntry":
        return cls(
            id=row.get("id"),
            technique_name=row["technique_name"],
            category=row.get("category"),
            priority=int(row.get("priority") or 5),
            target_video_count=int(row.get("target_video_count") or 50),
            difficulty_level=row.get("difficulty_level"),
            gi_applicability=row.get("gi_applicability"),
        )

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row.pop("id")
        return row


@dataclass
class CoverageRecord:
    """Library coverage of one technique, overall and per skill level."""

    technique_name: str
    current_count: int = 0
    target_count: int = 50
    beginner_count: int = 0
    intermediate_count: int = 0
    advanced_count: int = 0

    @property
    def level_counts(self) -> Dict[str, int]:
        return {
            "beginner": self.beginner_count,
            "intermediate": self.intermediate_count,
            "advanced": self.advanced_count,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CoverageRecord":
        return cls(
            technique_name=row["technique_name"],
            current_count=int(row.get("current_count") or 0),
            target_count=int(row.get("target_count") or 50),
            beginner_count=int(row.get("beginner_count") or 0),
            intermediate_count=int(row.get("intermediate_count") or 0),
            advanced_count=int(row.get("advanced_count") or 0),
        )


@dataclass
class EmergingTechniqueRecord:
    """A technique tracked as potentially emerging."""

    technique_name: str
    status: EmergingStatus = EmergingStatus.MONITORING
    confidence_score: int = 50
    video_count: int = 0
    instructor_count: int = 0
    instructors: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EmergingTechniqueRecord":
        try:
            status = EmergingStatus(row.get("status") or "monitoring")
        except ValueError:
            status = EmergingStatus.MONITORING
        return cls(
            technique_name=row["technique_name"],
            status=status,
            confidence_score=int(row.get("confidence_score") or 50),
            video_count=int(row.get("video_count") or 0),
            instructor_count=int(row.get("instructor_count") or 0),
            instructors=list(row.get("instructors") or []),
        )


@dataclass
class PerformanceRecord:
    """Historical user performance of an already-persisted video."""

    video_id: int
    helpful_count: int = 0
    unhelpful_count: int = 0
    watch_completion_rate: float = 0.0
    recommendation_success_rate: float = 0.0
    recommended_count: int = 0
    saved_count: int = 0

    @property
    def total_votes(self) -> int:
        return self.helpful_count + self.unhelpful_count

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PerformanceRecord":
        return cls(
            video_id=int(row["video_id"]),
            helpful_count=int(row.get("helpful_count") or 0),
            unhelpful_count=int(row.get("unhelpful_count") or 0),
            watch_completion_rate=float(row.get("watch_completion_rate") or 0.0),
            recommendation_success_rate=float(row.get("recommendation_success_rate") or 0.0),
            recommended_count=int(row.get("recommended_count") or 0),
            saved_count=int(row.get("saved_count") or 0),
        )


@dataclass
class LibraryVideo:
    """An active video already in the library (similar-video lookups)."""

    video_id: str
    technique_name: str
    instructor_name: Optional[str] = None
    problems_solved: List[str] = field(default_factory=list)
    variation: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LibraryVideo":
        key_details = row.get("key_details") or {}
        return cls(
            video_id=row["video_id"],
            technique_name=row["technique_name"],
            instructor_name=row.get("instructor_name"),
            problems_solved=list(row.get("problems_solved") or []),
            variation=key_details.get("variation") if isinstance(key_details, dict) else None,
        )


# =============================================================================
# DIMENSION RESULTS
# =============================================================================


@dataclass
class DimensionResult:
    """
    Common shape of every dimension's output.

    ``score`` is 0-100, ``boost`` is the additive bonus the fallback scorer
    may layer on top, ``blocking`` marks a result that terminates evaluation.
    """

    score: float = 0.0
    boost: float = 0.0
    tags: List[str] = field(default_factory=list)
    reasons_good: List[str] = field(default_factory=list)
    reasons_bad: List[str] = field(default_factory=list)
    blocking: bool = False


@dataclass
class InstructorEvaluation(DimensionResult):
    tier: InstructorTier = InstructorTier.UNKNOWN
    auto_accept: bool = False
    boost_multiplier: float = 1.0
    instructor_id: Optional[int] = None
    matched_name: Optional[str] = None

    @property
    def credibility_score(self) -> float:
        return self.score


@dataclass
class TaxonomyMapping(DimensionResult):
    technique_found: bool = False
    technique_name: Optional[str] = None
    category: Optional[str] = None
    priority: int = 3
    target_count: int = 30
    difficulty_level: Optional[str] = None
    gi_applicability: Optional[str] = None


@dataclass
class CoverageAnalysis(DimensionResult):
    current_count: int = 0
    target_count: int = 50
    coverage_ratio: float = 0.0
    needs_more: bool = True
    skill_level_needed: Optional[str] = None

    @property
    def gap_boost(self) -> float:
        return self.boost


@dataclass
class UniquenessAnalysis(DimensionResult):
    should_add: bool = True
    exact_duplicate: bool = False
    duplicate_risk: bool = False
    unique_value_reason: Optional[str] = None
    similar_count: int = 0


@dataclass
class UserFeedbackAnalysis(DimensionResult):
    has_performance_data: bool = False

    @property
    def performance_boost(self) -> float:
        return self.boost


@dataclass
class BeltLevelAnalysis(DimensionResult):
    target_levels: List[str] = field(default_factory=list)

    @property
    def balance_boost(self) -> float:
        return self.boost


@dataclass
class EmergingAnalysis(DimensionResult):
    is_emerging: bool = False
    status: EmergingStatus = EmergingStatus.UNKNOWN
    newly_detected: bool = False

    @property
    def confidence_score(self) -> float:
        return self.score


@dataclass
class YouTubeSignals:
    hidden_gem: bool = False
    viral: bool = False
    trending: bool = False
    evergreen: bool = False

    @property
    def special(self) -> bool:
        """Signals that relax the Metrics-Validated threshold."""
        return self.hidden_gem or self.viral or self.evergreen

    def labels(self) -> List[str]:
        names = [
            ("Hidden Gem", self.hidden_gem),
            ("Viral", self.viral),
            ("Trending", self.trending),
            ("Evergreen", self.evergreen),
        ]
        return [label for label, on in names if on]


@dataclass
class YouTubeMetricsAnalysis(DimensionResult):
    confidence: ConfidenceTier = ConfidenceTier.LOW
    confidence_multiplier: float = 0.3
    views: int = 0
    likes: int = 0
    comments: int = 0
    like_rate: float = 0.0
    comment_rate: float = 0.0
    view_to_sub_ratio: float = 0.0
    views_per_day: float = 0.0
    days_since_publish: float = 0.0
    like_score: float = 0.0
    comment_score: float = 0.0
    engagement_score: float = 0.0
    signals: YouTubeSignals = field(default_factory=YouTubeSignals)


@dataclass
class ContentQualityAnalysis(DimensionResult):
    content_type: ContentType = ContentType.OTHER
    is_instructional: bool = False
    has_step_by_step: bool = False
    has_setup_details: bool = False
    has_troubleshooting: bool = False
    has_common_mistakes: bool = False
    has_competition_context: bool = False
    has_clickbait: bool = False
    too_short_title: bool = False
    too_generic: bool = False
    technique_depth: str = "intermediate"

    @property
    def positive_flag_count(self) -> int:
        return sum(
            (
                self.has_step_by_step,
                self.has_setup_details,
                self.has_troubleshooting,
                self.has_common_mistakes,
                self.has_competition_context,
            )
        )


# =============================================================================
# OUTCOMES
# =============================================================================


@dataclass(frozen=True)
class Fault:
    """An internal fault swallowed by an evaluator."""

    dimension: Dimension
    error_type: str
    message: str


@dataclass(frozen=True)
class Ok:
    """A dimension evaluated normally."""

    result: DimensionResult

    @property
    def degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class Degraded:
    """A dimension that fell back to its safe default after a fault."""

    result: DimensionResult
    fault: Fault

    @property
    def degraded(self) -> bool:
        return True


DimensionOutcome = Union[Ok, Degraded]


@dataclass
class DimensionSnapshot:
    """Outcomes of every dimension that ran for one candidate."""

    outcomes: Dict[Dimension, DimensionOutcome] = field(default_factory=dict)

    def has(self, dimension: Dimension) -> bool:
        return dimension in self.outcomes

    def get(self, dimension: Dimension) -> Any:
        """Return the dimension's result (typed subclass) or ``None``."""
        outcome = self.outcomes.get(dimension)
        return outcome.result if outcome is not None else None

    @property
    def faults(self) -> List[Fault]:
        return [o.fault for o in self.outcomes.values() if isinstance(o, Degraded)]

    @property
    def degraded(self) -> bool:
        return any(o.degraded for o in self.outcomes.values())

    # Typed accessors used by the router
    @property
    def instructor(self) -> Optional[InstructorEvaluation]:
        return self.get(Dimension.INSTRUCTOR)

    @property
    def taxonomy(self) -> Optional[TaxonomyMapping]:
        return self.get(Dimension.TAXONOMY)

    @property
    def coverage(self) -> Optional[CoverageAnalysis]:
        return self.get(Dimension.COVERAGE)

    @property
    def uniqueness(self) -> Optional[UniquenessAnalysis]:
        return self.get(Dimension.UNIQUENESS)

    @property
    def user_feedback(self) -> Optional[UserFeedbackAnalysis]:
        return self.get(Dimension.USER_FEEDBACK)

    @property
    def belt_level(self) -> Optional[BeltLevelAnalysis]:
        return self.get(Dimension.BELT_LEVEL)

    @property
    def emerging(self) -> Optional[EmergingAnalysis]:
        return self.get(Dimension.EMERGING)

    @property
    def youtube(self) -> Optional[YouTubeMetricsAnalysis]:
        return self.get(Dimension.YOUTUBE)

    @property
    def content(self) -> Optional[ContentQualityAnalysis]:
        return self.get(Dimension.CONTENT)

    def scores(self) -> Dict[str, float]:
        return {d.value: round(o.result.score, 1) for d, o in self.outcomes.items()}

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for dimension, outcome in self.outcomes.items():
            entry = _jsonable(asdict(outcome.result))
            entry["degraded"] = outcome.degraded
            if isinstance(outcome, Degraded):
                entry["fault"] = _jsonable(asdict(outcome.fault))
            data[dimension.value] = entry
        return data


# =============================================================================
# EFFECTS
# =============================================================================


@dataclass(frozen=True)
class CoverageIncrement:
    """Bump the coverage counters of an accepted technique."""

    technique_name: str
    skill_level: str


@dataclass(frozen=True)
class EmergingUpsert:
    """Start (or continue) tracking a newly detected emerging technique."""

    technique_name: str
    instructor_name: Optional[str] = None


Effect = Union[CoverageIncrement, EmergingUpsert]


# =============================================================================
# DECISION
# =============================================================================


@dataclass
class DecisionMetadata:
    """Rich per-decision context for downstream recommendation features."""

    primary_technique: str
    skill_level: str
    instructor_name: str
    instructor_tier: str
    unique_value: Optional[str] = None
    signal_tags: List[str] = field(default_factory=list)
    good_because: List[str] = field(default_factory=list)
    bad_because: List[str] = field(default_factory=list)
    boosts_applied: List[str] = field(default_factory=list)
    all_scores: Dict[str, float] = field(default_factory=dict)


@dataclass
class Decision:
    """The router's verdict for one candidate."""

    video_id: str
    outcome: Outcome
    final_score: float
    path: str
    reason: str
    dimensions: DimensionSnapshot
    metadata: DecisionMetadata
    effects: List[Effect] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.outcome is Outcome.ACCEPT

    @property
    def degraded(self) -> bool:
        return self.dimensions.degraded

    @property
    def faults(self) -> List[Fault]:
        return self.dimensions.faults

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output and audit logging."""
        return {
            "video_id": self.video_id,
            "outcome": self.outcome.value,
            "final_score": self.final_score,
            "path": self.path,
            "reason": self.reason,
            "degraded": self.degraded,
            "faults": [_jsonable(asdict(f)) for f in self.faults],
            "dimensions": self.dimensions.to_dict(),
            "metadata": _jsonable(asdict(self.metadata)),
            "effects": [
                {"type": type(e).__name__, **_jsonable(asdict(e))} for e in self.effects
            ],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def _jsonable(value: Any) -> Any:
    """Recursively convert enums and datetimes into JSON-safe values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {
            (k.value if isinstance(k, Enum) else k): _jsonable(v) for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
