"""
Centralized configuration loader for the video curation engine.

Loads settings from YAML files and environment variables, providing
sensible defaults when configuration files are absent.

Provides:
    - RouterThresholds: Every threshold and weight the decision router uses
    - RouterConfig: Router profile (``three_path`` / ``full``), elite failure
      outcome, and degraded-evaluation policy
    - Settings: Global application settings loaded from YAML + env vars
    - get_settings(): Singleton accessor for Settings
    - validate_env(): Startup validation of registry credentials
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from curation.exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# Load .env file (no-op if file does not exist)
# ---------------------------------------------------------------------------
load_dotenv()

# ---------------------------------------------------------------------------
# Project root directory (parent of curation/)
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent

logger = logging.getLogger(__name__)


PROFILE_THREE_PATH = "three_path"
PROFILE_FULL = "full"
ROUTER_PROFILES = (PROFILE_THREE_PATH, PROFILE_FULL)

# Elite instructor + non-instructional content resolves to one of these.
ELITE_FAILURE_OUTCOMES = ("REJECT", "MANUAL_REVIEW")

# "manual_review" routes decisions computed over degraded dimensions to a human.
DEGRADED_POLICIES = ("manual_review", "ignore")

PROFILE_ELITE_FAILURE_DEFAULTS: Dict[str, str] = {
    PROFILE_THREE_PATH: "MANUAL_REVIEW",
    PROFILE_FULL: "REJECT",
}


# ===========================================================================
# ROUTER THRESHOLDS
# ===========================================================================


@dataclass
class RouterThresholds:
    """
    Single source of truth for all router thresholds and weights.

    Usage::

        thresholds = RouterThresholds()
        if youtube.views >= thresholds.metrics_min_views: ...
    """

    # -----------------------------------------------------------------
    # ELITE INSTRUCTOR PATH
    # -----------------------------------------------------------------
    elite_accept_score: float = 90.0

    # -----------------------------------------------------------------
    # METRICS-VALIDATED PATH
    # -----------------------------------------------------------------
    metrics_min_views: int = 10000
    metrics_threshold: float = 75.0
    metrics_special_threshold: float = 70.0  # hidden gem / viral / evergreen
    metrics_min_content: float = 70.0
    metrics_accept_score: float = 85.0

    # -----------------------------------------------------------------
    # KNOWN-QUALITY PATH
    # -----------------------------------------------------------------
    known_quality_min_views: int = 5000
    known_quality_with_metrics: float = 72.0
    known_quality_early: float = 75.0
    known_quality_metrics_weights: Dict[str, float] = field(default_factory=lambda: {
        "instructor": 0.35,
        "youtube": 0.40,
        "content": 0.25,
    })
    known_quality_early_weights: Dict[str, float] = field(default_factory=lambda: {
        "instructor": 0.60,
        "content": 0.40,
    })

    # -----------------------------------------------------------------
    # FALLBACK
    # -----------------------------------------------------------------
    fallback_reject_score: float = 45.0
    fallback_accept_threshold: float = 71.0
    min_instructor_credibility: float = 40.0
    min_taxonomy_score: float = 40.0
    fallback_weights: Dict[str, float] = field(default_factory=lambda: {
        "instructor": 0.30,
        "taxonomy": 0.15,
        "uniqueness": 0.20,
        "user_feedback": 0.10,
        "belt_level": 0.15,
        "coverage": 0.10,
    })
    coverage_needed_value: float = 70.0
    coverage_covered_value: float = 50.0
    auto_accept_boost: float = 25.0
    reputation_boost_scale: float = 20.0

    # -----------------------------------------------------------------
    # ELITE FAILURE (manual review outcome)
    # -----------------------------------------------------------------
    elite_review_score: float = 65.0

    def __post_init__(self) -> None:
        if self.known_quality_early <= self.known_quality_with_metrics:
            raise ConfigurationError(
                "known_quality_early must be stricter than known_quality_with_metrics "
                f"({self.known_quality_early} <= {self.known_quality_with_metrics})"
            )
        for name in ("fallback_weights", "known_quality_metrics_weights", "known_quality_early_weights"):
            weights = getattr(self, name)
            total = sum(weights.values())
            if abs(total - 1.0) > 1e-6:
                raise ConfigurationError(f"{name} must sum to 1.0, got {total:.3f}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RouterThresholds":
        """Build from a YAML mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown router threshold '%s'", key)
                continue
            if key.endswith("_weights"):
                merged = cls.__dataclass_fields__[key].default_factory()  # type: ignore[misc]
                merged.update(value or {})
                kwargs[key] = merged
            else:
                kwargs[key] = value
        return cls(**kwargs)


# ===========================================================================
# ROUTER CONFIGURATION
# ===========================================================================


@dataclass
class RouterConfig:
    """
    Router profile selection.

    ``elite_failure_outcome`` defaults to the profile's own value when left
    as ``None``: ``full`` rejects, ``three_path`` asks for manual review.
    """

    profile: str = PROFILE_FULL
    elite_failure_outcome: Optional[str] = None
    degraded_policy: str = "manual_review"
    thresholds: RouterThresholds = field(default_factory=RouterThresholds)

    def __post_init__(self) -> None:
        if self.profile not in ROUTER_PROFILES:
            raise ConfigurationError(
                f"Unknown router profile '{self.profile}'. "
                f"Valid profiles: {list(ROUTER_PROFILES)}"
            )
        if self.elite_failure_outcome is None:
            self.elite_failure_outcome = PROFILE_ELITE_FAILURE_DEFAULTS[self.profile]
        if self.elite_failure_outcome not in ELITE_FAILURE_OUTCOMES:
            raise ConfigurationError(
                f"Invalid elite_failure_outcome '{self.elite_failure_outcome}'. "
                f"Valid values: {list(ELITE_FAILURE_OUTCOMES)}"
            )
        if self.degraded_policy not in DEGRADED_POLICIES:
            raise ConfigurationError(
                f"Invalid degraded_policy '{self.degraded_policy}'. "
                f"Valid values: {list(DEGRADED_POLICIES)}"
            )

    @classmethod
    def for_profile(cls, profile: str, **overrides: Any) -> "RouterConfig":
        return cls(profile=profile, **overrides)


# ===========================================================================
# GLOBAL SETTINGS
# ===========================================================================


@dataclass
class Settings:
    """
    Global application settings.

    Loaded from ``config/settings.yaml`` when available, falling back to
    sensible defaults. Environment variables override YAML values for
    secrets and deployment-specific configuration.
    """

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Registry backend: "supabase" or "memory"
    registry_backend: str = "memory"
    seed_path: Optional[str] = None

    # Batch evaluation
    max_concurrency: int = 8

    # Router
    router: RouterConfig = field(default_factory=RouterConfig)

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigurationError(
                f"max_concurrency must be positive, got {self.max_concurrency}"
            )
        if self.registry_backend not in ("supabase", "memory"):
            raise ConfigurationError(
                f"Unknown registry_backend '{self.registry_backend}'"
            )

    @classmethod
    def from_yaml(cls, path: Optional[Path] = None) -> "Settings":
        """
        Load settings from a YAML file.

        If the file does not exist, returns an instance with all defaults.
        Environment variables override YAML values for specific keys.
        Values passed to the constructors directly are never overridden.

        Args:
            path: Path to the YAML file. Defaults to
                ``<PROJECT_ROOT>/config/settings.yaml``.

        Returns:
            Populated Settings instance.

        Raises:
            ConfigurationError: If the YAML file exists but cannot be parsed.
        """
        path = path or PROJECT_ROOT / "config" / "settings.yaml"

        data: Dict[str, Any] = {}
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as fh:
                    data = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    f"Failed to parse settings YAML at {path}: {exc}"
                ) from exc

        # -----------------------------------------------------------------
        # Build RouterConfig from nested YAML section
        # -----------------------------------------------------------------
        router_data = dict(data.get("router", {}) or {})
        thresholds = RouterThresholds.from_dict(router_data.pop("thresholds", {}) or {})
        env_elite = os.environ.get("CURATION_ELITE_FAILURE_OUTCOME")
        router = RouterConfig(
            profile=os.environ.get("CURATION_ROUTER_PROFILE")
            or router_data.get("profile", PROFILE_FULL),
            elite_failure_outcome=env_elite.upper()
            if env_elite
            else router_data.get("elite_failure_outcome"),
            degraded_policy=os.environ.get("CURATION_DEGRADED_POLICY")
            or router_data.get("degraded_policy", "manual_review"),
            thresholds=thresholds,
        )

        max_concurrency = data.get("max_concurrency", 8)
        env_val = os.environ.get("CURATION_MAX_CONCURRENCY")
        if env_val:
            try:
                max_concurrency = int(env_val)
            except (ValueError, TypeError) as exc:
                raise ConfigurationError(
                    f"Invalid value for env var CURATION_MAX_CONCURRENCY='{env_val}': {exc}"
                ) from exc

        registry = data.get("registry", {}) or {}
        return cls(
            log_level=data.get("log_level", "INFO"),
            log_dir=data.get("log_dir", "logs"),
            registry_backend=registry.get("backend", "memory"),
            seed_path=registry.get("seed_path"),
            max_concurrency=max_concurrency,
            router=router,
        )


# ===========================================================================
# SINGLETON SETTINGS ACCESSOR
# ===========================================================================

_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global Settings singleton.

    On first call, loads from ``config/settings.yaml`` (or defaults).
    Subsequent calls return the cached instance.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings.from_yaml()
    return _settings_instance


def reset_settings() -> None:
    """Reset the cached Settings singleton."""
    global _settings_instance
    _settings_instance = None


# ===========================================================================
# ENVIRONMENT VARIABLE VALIDATION
# ===========================================================================

# Required when the supabase registry backend is in use
REQUIRED_ENV_VARS: List[str] = [
    "SUPABASE_URL",
    "SUPABASE_SERVICE_KEY",
]

OPTIONAL_ENV_VARS: List[str] = [
    "CURATION_ROUTER_PROFILE",
    "CURATION_ELITE_FAILURE_OUTCOME",
    "CURATION_DEGRADED_POLICY",
    "CURATION_MAX_CONCURRENCY",
]


def validate_env(strict: bool = True) -> Dict[str, bool]:
    """
    Validate that required environment variables are set.

    Args:
        strict: If ``True``, raise ``ConfigurationError`` when any required
            variable is missing. If ``False``, return the status dict
            without raising.

    Returns:
        Dict mapping variable name to presence status (``True`` if set).

    Raises:
        ConfigurationError: If ``strict=True`` and required vars are missing.
    """
    status: Dict[str, bool] = {}
    missing: List[str] = []

    for var in REQUIRED_ENV_VARS:
        present = bool(os.environ.get(var))
        status[var] = present
        if not present:
            missing.append(var)

    for var in OPTIONAL_ENV_VARS:
        status[var] = bool(os.environ.get(var))

    if strict and missing:
        raise ConfigurationError(
            f"Missing required environment variables: {missing}. "
            f"Copy .env.example to .env and fill in the values."
        )

    return status


# ===========================================================================
# PUBLIC API
# ===========================================================================

__all__ = [
    "RouterThresholds",
    "RouterConfig",
    "Settings",
    "get_settings",
    "reset_settings",
    "validate_env",
    "REQUIRED_ENV_VARS",
    "OPTIONAL_ENV_VARS",
    "ROUTER_PROFILES",
    "PROFILE_THREE_PATH",
    "PROFILE_FULL",
    "ELITE_FAILURE_OUTCOMES",
    "DEGRADED_POLICIES",
    "PROJECT_ROOT",
]
