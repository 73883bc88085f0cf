"""
Text classifiers behind a single ``classify(text) -> tag`` capability.

The dimension evaluators never match keyword lists themselves; they hold a
:class:`TextClassifier` and ask it for a tag.  The keyword and regex
implementations here reproduce the fixed heuristics, and any object with a
compatible ``classify`` method (for instance a learned model) can be
injected in their place.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern, Protocol, Sequence, Tuple


class TextClassifier(Protocol):
    """Maps free text to a tag, or ``None`` when nothing applies."""

    def classify(self, text: str) -> Optional[str]: ...


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring test against a keyword list."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


# =============================================================================
# GENERIC IMPLEMENTATIONS
# =============================================================================


@dataclass(frozen=True)
class KeywordRule:
    tag: str
    keywords: Tuple[str, ...]


class KeywordClassifier:
    """First rule with any keyword present (case-insensitive substring) wins."""

    def __init__(self, rules: Sequence[KeywordRule]) -> None:
        self.rules = list(rules)

    def classify(self, text: str) -> Optional[str]:
        lowered = text.lower()
        for rule in self.rules:
            if any(keyword in lowered for keyword in rule.keywords):
                return rule.tag
        return None


class RegexClassifier:
    """First matching pattern wins; patterns run against lowercased text."""

    def __init__(self, rules: Sequence[Tuple[str, str]]) -> None:
        self.rules: List[Tuple[str, Pattern[str]]] = [
            (tag, re.compile(pattern)) for tag, pattern in rules
        ]

    def classify(self, text: str) -> Optional[str]:
        lowered = text.lower()
        for tag, pattern in self.rules:
            if pattern.search(lowered):
                return tag
        return None


class RosterClassifier:
    """Returns the canonical roster name that appears inside the text."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = list(names)

    def classify(self, text: str) -> Optional[str]:
        lowered = text.lower()
        for name in self.names:
            if name.lower() in lowered:
                return name
        return None


# =============================================================================
# INSTRUCTOR ROSTERS
# =============================================================================

ELITE_ROSTER: List[str] = [
    "Gordon Ryan",
    "John Danaher",
    "Lachlan Giles",
    "Craig Jones",
    "Mikey Musumeci",
    "Rafael Mendes",
    "Marcelo Garcia",
    "Bernardo Faria",
    "Garry Tonon",
    "Eddie Cummings",
    "Keenan Cornelius",
    "Ryan Hall",
    "Caio Terra",
    "Andre Galvao",
    "Roger Gracie",
]

# Instructors whose new material signals an emerging technique
EMERGING_ELITE: List[str] = ["Gordon Ryan", "Lachlan Giles", "John Danaher", "Craig Jones"]

GYM_KEYWORDS: Tuple[str, ...] = (
    "gracie", "atos", "alliance", "checkmat", "unity", "b-team", "new wave",
)
REGIONAL_NAME_PATTERNS: Tuple[str, ...] = (
    "da silva", "dos santos", "de jesus", "oliveira", "mendes", "ribeiro",
)


# =============================================================================
# UNIQUE ANGLE
# =============================================================================

UNIQUE_ANGLES: Dict[str, str] = {
    "counter": "Specific counter or response",
    "mistakes": "Common mistakes breakdown",
    "beginner": "Beginner-friendly approach",
    "advanced": "Advanced variations",
    "competition": "Competition application",
    "drilling": "Training methodology",
}

_ANGLE_PATTERNS: List[Tuple[str, str]] = [
    ("counter", r"vs|against|counter"),
    ("mistakes", r"mistake|error|wrong"),
    ("beginner", r"beginner|white belt|first"),
    ("advanced", r"advanced|complex|high level"),
    ("competition", r"competition|match|fight"),
    ("drilling", r"drilling|training|practice"),
]


# =============================================================================
# CONTENT TYPE
# =============================================================================

HIGHLIGHT_PATTERNS = (
    "highlights", "highlight reel", "being a wizard", "destroys",
    "compilation", "best of", "greatest", "top 10", "full match",
    "rolling with", "sparring footage",
)
VLOG_PATTERNS = (
    "vlog", "day in the life", "behind the scenes", "my thoughts on",
    "talking about", "reaction", "podcast", "interview",
)
QA_PATTERNS = (
    "q&a", "q and a", "ask me", "answering", "questions",
    "discussion", "debate", "opinion on",
)
INSTRUCTIONAL_PATTERNS = (
    "how to", "tutorial", "technique", "breakdown", "guide",
    "escape", "submission", "guard", "pass", "sweep", "choke",
    "armbar", "kimura", "triangle", "details", "setup",
    "step by step", "instruction", "teaching", "drill",
    "position", "control", "defense", "attack", "entry",
)

_VERSUS_MARKERS = (" vs ", " vs.", "versus")
_MATCH_MARKERS = ("match", "championship", "tournament", "adcc", "worlds", "finals")


def is_competition_match(text: str) -> bool:
    """A "versus" marker together with a match context keyword."""
    lowered = text.lower()
    return contains_any(lowered, _VERSUS_MARKERS) and contains_any(lowered, _MATCH_MARKERS)


class ContentTypeClassifier:
    """
    Ordered content-type classification: highlight (including competition
    matches), vlog, Q&A, instructional.  Returns ``None`` for ambiguous text.
    """

    def __init__(self) -> None:
        self._keywords = KeywordClassifier([
            KeywordRule("highlight", HIGHLIGHT_PATTERNS),
            KeywordRule("vlog", VLOG_PATTERNS),
            KeywordRule("qa", QA_PATTERNS),
            KeywordRule("instructional", INSTRUCTIONAL_PATTERNS),
        ])

    def classify(self, text: str) -> Optional[str]:
        if contains_any(text, HIGHLIGHT_PATTERNS) or is_competition_match(text):
            return "highlight"
        return self._keywords.classify(text)


# Quality flag keyword sets
STEP_BY_STEP_PATTERNS = (
    "step by step", "step-by-step", "breakdown", "how to",
    "complete guide", "full tutorial", "beginners guide",
)
SETUP_PATTERNS = ("setup", "entry", "position", "grip", "control", "establish", "transitions")
TROUBLESHOOTING_PATTERNS = (
    "common mistakes", "avoid", "tip", "secret", "key detail",
    "mistake", "fix", "troubleshoot", "problem",
)
MISTAKE_PATTERNS = (
    "common mistakes", "dont", "don't", "avoid", "wrong way",
    "correct way", "proper technique",
)
COMPETITION_PATTERNS = (
    "adcc", "ibjjf", "worlds", "pan ams", "competition",
    "tournament", "match", "no-gi worlds",
)
CLICKBAIT_PATTERNS = (
    "you wont believe", "won't believe", "insane", "crazy",
    "destroys everyone", "unbelievable", "mind blowing",
)
GENERIC_TITLE = re.compile(r"^(bjj|jiu jitsu|jiujitsu|grappling)\s*(tutorial|technique|move)?$", re.I)

DEPTH_BASIC_PATTERNS = (
    "beginner", "basics", "fundamental", "introduction", "white belt", "getting started",
)
DEPTH_ADVANCED_PATTERNS = (
    "advanced", "high level", "black belt", "purple belt",
    "competition", "mastery", "details", "nuances",
)

# Belt-level key-detail keyword sets
FUNDAMENTALS_KEYWORDS = (
    "basic", "fundamental", "foundation", "beginner", "first", "introduction", "start", "simple",
)
ADVANCED_KEYWORDS = (
    "advanced", "complex", "subtle", "timing", "counter",
    "transition", "combination", "system", "strategy",
)

INNOVATION_KEYWORDS = ("new", "modern", "latest", "2024", "2025", "innovation")


# =============================================================================
# FACTORIES
# =============================================================================


def elite_roster_classifier() -> TextClassifier:
    return RosterClassifier(ELITE_ROSTER)


def emerging_elite_classifier() -> TextClassifier:
    return RosterClassifier(EMERGING_ELITE)


def unique_angle_classifier() -> TextClassifier:
    return RegexClassifier(_ANGLE_PATTERNS)


def content_type_classifier() -> TextClassifier:
    return ContentTypeClassifier()


def depth_classifier() -> TextClassifier:
    """``advanced`` beats ``basic``; ``None`` means intermediate."""
    return KeywordClassifier([
        KeywordRule("advanced", DEPTH_ADVANCED_PATTERNS),
        KeywordRule("basic", DEPTH_BASIC_PATTERNS),
    ])


def innovation_classifier() -> TextClassifier:
    return KeywordClassifier([KeywordRule("innovation", INNOVATION_KEYWORDS)])
