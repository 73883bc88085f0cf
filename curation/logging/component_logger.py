"""Per-component logger wrapper and timed-operation context manager.

``ComponentLogger`` binds a fixed ``LogComponent`` to the global
``CurationLogger``.  ``TimedOperation`` is the async context manager
returned by ``ComponentLogger.timed()`` that logs the elapsed duration and
success or failure of a block of code.
"""

from datetime import datetime
from typing import Any, Optional

from curation.logging.audit_logger import get_logger
from curation.logging.models import LogComponent


class ComponentLogger:
    """Wrapper that binds a fixed ``LogComponent`` to the global logger.

    Usage::

        log = ComponentLogger(LogComponent.BATCH)
        await log.info("Batch started", data={"candidates": 12})
    """

    def __init__(self, component: LogComponent) -> None:
        self.component = component

    async def debug(self, message: str, **kwargs: Any) -> None:
        await get_logger().debug(self.component, message, **kwargs)

    async def info(self, message: str, **kwargs: Any) -> None:
        await get_logger().info(self.component, message, **kwargs)

    async def warning(self, message: str, **kwargs: Any) -> None:
        await get_logger().warning(self.component, message, **kwargs)

    async def error(
        self, message: str, error: Optional[Exception] = None, **kwargs: Any
    ) -> None:
        await get_logger().error(self.component, message, error=error, **kwargs)

    async def critical(
        self, message: str, error: Optional[Exception] = None, **kwargs: Any
    ) -> None:
        await get_logger().critical(self.component, message, error=error, **kwargs)

    def timed(self, message: str, **kwargs: Any) -> "TimedOperation":
        """Return an async context manager that logs start/end with duration.

        Usage::

            async with log.timed("Evaluating coverage", video_id=candidate.video_id):
                outcome = await analyzer.evaluate(candidate)
        """
        return TimedOperation(self, message, **kwargs)


class TimedOperation:
    """Async context manager that measures and logs operation duration.

    On entry, logs a DEBUG message (``"Starting: <message>"``).
    On successful exit, logs an INFO message with ``duration_ms``.
    On exception, logs an ERROR message with ``duration_ms`` and the error,
    then re-raises the exception.
    """

    def __init__(self, logger: ComponentLogger, message: str, **kwargs: Any) -> None:
        self.logger = logger
        self.message = message
        self.kwargs = kwargs
        self.start_time: Optional[datetime] = None
        self.duration_ms: Optional[int] = None

    async def __aenter__(self) -> "TimedOperation":
        self.start_time = datetime.now()
        await self.logger.debug(f"Starting: {self.message}", **self.kwargs)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> None:
        assert self.start_time is not None
        self.duration_ms = int((datetime.now() - self.start_time).total_seconds() * 1000)

        if exc_type is not None:
            await self.logger.error(
                f"Failed: {self.message}",
                error=exc_val if isinstance(exc_val, Exception) else None,
                duration_ms=self.duration_ms,
                **self.kwargs,
            )
        else:
            await self.logger.info(
                f"Completed: {self.message}",
                duration_ms=self.duration_ms,
                **self.kwargs,
            )
