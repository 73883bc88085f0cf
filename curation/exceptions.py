"""
Custom exception classes for the video curation engine.

Dimension evaluators do not raise on infrastructure faults; they degrade to a
safe default (see ``curation.dimensions.base``).  The exceptions below are for
the places that DO fail fast: malformed input, broken configuration, registry
calls made outside an evaluator, and misuse of the orchestrator.

Hierarchy:
    Exception
    +-- CurationBaseError (base for all curation-specific errors)
    |   +-- RegistryError
    |   +-- EvaluationError
    |   +-- EffectApplicationError
    +-- ValidationError (ValueError)
    +-- ConfigurationError
"""

from typing import Optional


# =============================================================================
# BASE EXCEPTION
# =============================================================================


class CurationBaseError(Exception):
    """Base exception for all curation-related errors."""

    pass


# =============================================================================
# CORE EXCEPTIONS
# =============================================================================


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


class ConfigurationError(Exception):
    """Raised when system configuration is invalid."""

    pass


# =============================================================================
# REGISTRY EXCEPTIONS
# =============================================================================


class RegistryError(CurationBaseError):
    """Raised when a registry read or write fails.

    Attributes:
        operation: Name of the registry operation that failed.
    """

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"Registry operation '{operation}' failed: {message}")


# =============================================================================
# EVALUATION EXCEPTIONS
# =============================================================================


class EvaluationError(CurationBaseError):
    """Raised when the orchestrator is driven incorrectly.

    Attributes:
        video_id: The candidate being evaluated, when known.
    """

    def __init__(self, message: str, video_id: Optional[str] = None):
        self.video_id = video_id
        prefix = f"[{video_id}] " if video_id else ""
        super().__init__(f"{prefix}{message}")


class EffectApplicationError(CurationBaseError):
    """Raised when a post-decision effect cannot be written back.

    Attributes:
        effect: The effect that failed.
        cause: The underlying exception.
    """

    def __init__(self, effect: object, cause: Exception):
        self.effect = effect
        self.cause = cause
        super().__init__(f"Failed to apply {effect!r}: {cause}")
