"""
Guarded evaluation shared by every dimension evaluator.

An evaluator never lets an internal fault (registry unavailable, malformed
record) escape.  :func:`guarded` runs the evaluation, and on failure logs a
warning and returns ``Degraded(safe_default, fault)`` so the router can tell
a confident neutral score from a degraded one.
"""

import logging
from typing import Awaitable, Callable, TypeVar

from curation.models import Degraded, Dimension, DimensionOutcome, DimensionResult, Fault, Ok

R = TypeVar("R", bound=DimensionResult)


async def guarded(
    dimension: Dimension,
    evaluation: Awaitable[R],
    default: Callable[[], R],
    logger: logging.Logger,
) -> DimensionOutcome:
    """Await *evaluation*; fall back to ``default()`` on any exception."""
    try:
        return Ok(await evaluation)
    except Exception as exc:
        logger.warning(
            "[%s] Evaluation degraded to safe default: %s: %s",
            dimension.value.upper(), type(exc).__name__, exc,
        )
        return Degraded(default(), Fault(dimension, type(exc).__name__, str(exc)))


def guarded_sync(
    dimension: Dimension,
    evaluation: Callable[[], R],
    default: Callable[[], R],
    logger: logging.Logger,
) -> DimensionOutcome:
    """Synchronous counterpart of :func:`guarded` for the pure evaluators."""
    try:
        return Ok(evaluation())
    except Exception as exc:
        logger.warning(
            "[%s] Evaluation degraded to safe default: %s: %s",
            dimension.value.upper(), type(exc).__name__, exc,
        )
        return Degraded(default(), Fault(dimension, type(exc).__name__, str(exc)))
