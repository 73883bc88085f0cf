"""
Shared utility functions used throughout the curation engine.

Provides:
    - utc_now(): Timezone-aware UTC datetime
    - generate_id(): UUID4 string generator (batch and run ids)
    - ensure_utc(dt): Convert any datetime to timezone-aware UTC
    - parse_datetime(value): Accept ISO strings, epoch seconds or datetimes
    - normalize_technique_name(name): Canonical technique registry key
    - difficulty_to_skill_level(score): Numeric difficulty -> skill bucket
    - clamp(value, low, high)
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Optional, Union


# ===========================================================================
# TIMEZONE UTILITIES
# All timestamps stored in the registry are timezone-aware (TIMESTAMPTZ)
# ===========================================================================


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    ALWAYS use this instead of ``datetime.now()`` or ``datetime.utcnow()``.

    Returns:
        Timezone-aware datetime in UTC.
    """
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """
    Generate a unique ID for batch runs and log correlation.

    Returns:
        A unique UUID string.
    """
    return str(uuid.uuid4())


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure a datetime is timezone-aware in UTC.

    Args:
        dt: Datetime to convert (naive or aware).

    Returns:
        Timezone-aware datetime in UTC.
    """
    if dt.tzinfo is None:
        # Assume naive datetime is UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value: Union[str, int, float, datetime, None]) -> Optional[datetime]:
    """
    Parse a publish date coming from the YouTube API or a JSON fixture.

    Accepts ISO-8601 strings (``Z`` suffix allowed), epoch seconds, or
    datetime objects.  Returns ``None`` for ``None`` / empty strings.

    Raises:
        ValueError: If a string cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


# ===========================================================================
# TECHNIQUE HELPERS
# ===========================================================================

_WHITESPACE_RE = re.compile(r"\s+")
_NON_KEY_CHARS_RE = re.compile(r"[^a-z0-9_]")
_MULTI_UNDERSCORE_RE = re.compile(r"_+")


def normalize_technique_name(name: str) -> str:
    """
    Normalize a technique name into its registry key.

    ``"  Knee-Cut  Pass "`` -> ``"kneecut_pass"``

    Lowercase, trim, whitespace to underscores, strip everything that is not
    ``[a-z0-9_]``, collapse repeated underscores.
    """
    key = name.lower().strip()
    key = _WHITESPACE_RE.sub("_", key)
    key = _NON_KEY_CHARS_RE.sub("", key)
    return _MULTI_UNDERSCORE_RE.sub("_", key)


def difficulty_to_skill_level(score: Optional[float]) -> str:
    """
    Map a 1-10 difficulty score to a skill bucket.

    Unknown difficulty is treated as intermediate.

    Returns:
        ``"beginner"`` | ``"intermediate"`` | ``"advanced"``
    """
    if score is None:
        return "intermediate"
    if score <= 3:
        return "beginner"
    if score <= 6:
        return "intermediate"
    return "advanced"


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp *value* into ``[low, high]``."""
    return max(low, min(high, value))
