"""Central audit logger with file and registry outputs.

Provides the ``CurationLogger`` class that dispatches structured log
entries to local JSON-lines files (via ``aiofiles``) and, optionally, to
the registry store's ``curation_logs`` sink.  A lightweight in-memory ring
buffer allows fast ``get_recent()`` queries without hitting the store.

Global helpers:
    - ``init_logger()``  -- create and register a singleton ``CurationLogger``
    - ``get_logger()``   -- retrieve the singleton (raises if not initialised)
    - ``is_logger_initialized()`` -- check without raising
"""

import asyncio
import logging
import traceback
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

import aiofiles

from curation.logging.models import LogComponent, LogEntry, LogLevel
from curation.utils import utc_now

_fallback = logging.getLogger("CurationLogger")


class CurationLogger:
    """Audit logging for curation runs.

    Parameters:
        log_dir: Directory for log files (created if missing).
        store: Optional registry store with ``save_curation_log()``.
        min_level: Minimum level for store writes.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        store: Any = None,
        min_level: LogLevel = LogLevel.INFO,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.store = store
        self.min_level = min_level

        self._main_log = self.log_dir / "curation.log"
        self._error_log = self.log_dir / "errors.log"
        self._decision_log = self.log_dir / "decisions.log"

        # In-memory ring buffer for quick access
        self._recent_logs: List[LogEntry] = []
        self._max_recent: int = 1000

        self._handlers: List[Callable[[LogEntry], None]] = []

        # Track pending async tasks to prevent garbage collection
        self._pending_tasks: Set["asyncio.Task[None]"] = set()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def add_handler(self, handler: Callable[[LogEntry], None]) -> None:
        """Register a custom synchronous log handler."""
        self._handlers.append(handler)

    # ------------------------------------------------------------------
    # Core log method
    # ------------------------------------------------------------------

    async def log(
        self,
        level: LogLevel,
        component: LogComponent,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
        duration_ms: Optional[int] = None,
        video_id: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> LogEntry:
        """Log a structured message.

        The logger holds no run context; callers pass ``run_id`` per entry.

        The file write is awaited; the store write is fire-and-forget but
        tracked, see :meth:`flush`.
        """
        entry = LogEntry(
            timestamp=utc_now(),
            level=level,
            component=component,
            message=message,
            run_id=run_id,
            video_id=video_id,
            data=data or {},
            duration_ms=duration_ms,
        )

        if error is not None:
            entry.error_type = type(error).__name__
            entry.error_traceback = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        self._recent_logs.append(entry)
        if len(self._recent_logs) > self._max_recent:
            self._recent_logs.pop(0)

        await self._write_to_file(entry)

        if self.store is not None and level.value >= self.min_level.value:
            task = asyncio.create_task(self._write_to_store(entry))
            self._pending_tasks.add(task)
            task.add_done_callback(self._pending_tasks.discard)

        for handler in self._handlers:
            try:
                handler(entry)
            except Exception:
                _fallback.exception("Audit log handler %r failed", handler)

        return entry

    async def debug(self, component: LogComponent, message: str, **kwargs: Any) -> LogEntry:
        return await self.log(LogLevel.DEBUG, component, message, **kwargs)

    async def info(self, component: LogComponent, message: str, **kwargs: Any) -> LogEntry:
        return await self.log(LogLevel.INFO, component, message, **kwargs)

    async def warning(self, component: LogComponent, message: str, **kwargs: Any) -> LogEntry:
        return await self.log(LogLevel.WARNING, component, message, **kwargs)

    async def error(self, component: LogComponent, message: str, **kwargs: Any) -> LogEntry:
        return await self.log(LogLevel.ERROR, component, message, **kwargs)

    async def critical(self, component: LogComponent, message: str, **kwargs: Any) -> LogEntry:
        return await self.log(LogLevel.CRITICAL, component, message, **kwargs)

    async def log_decision(self, decision: Any, run_id: Optional[str] = None) -> LogEntry:
        """Record a router decision as an audit entry.

        Degraded decisions are logged at WARNING so they stand out in
        ``errors.log``-adjacent reviews.
        """
        level = LogLevel.WARNING if decision.degraded else LogLevel.INFO
        return await self.log(
            level,
            LogComponent.ROUTER,
            f"{decision.outcome.value} via {decision.path} ({decision.final_score:.1f})",
            data=decision.to_dict(),
            video_id=decision.video_id,
            run_id=run_id,
        )

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_recent(
        self,
        limit: int = 20,
        level: Optional[LogLevel] = None,
        component: Optional[LogComponent] = None,
        run_id: Optional[str] = None,
        video_id: Optional[str] = None,
    ) -> List[LogEntry]:
        """Return recent logs from the in-memory ring buffer."""
        logs = self._recent_logs.copy()

        if level is not None:
            logs = [entry for entry in logs if entry.level == level]
        if component is not None:
            logs = [entry for entry in logs if entry.component == component]
        if run_id is not None:
            logs = [entry for entry in logs if entry.run_id == run_id]
        if video_id is not None:
            logs = [entry for entry in logs if entry.video_id == video_id]

        return logs[-limit:]

    async def flush(self) -> None:
        """Wait for all pending store writes.

        Call this before shutdown to ensure every entry has been written.
        """
        if self._pending_tasks:
            await asyncio.gather(*self._pending_tasks, return_exceptions=True)
            self._pending_tasks.clear()

    # ------------------------------------------------------------------
    # Private output methods
    # ------------------------------------------------------------------

    async def _write_to_file(self, entry: LogEntry) -> None:
        """Append the entry as a JSON line.

        - ``curation.log``  -- all entries
        - ``errors.log``    -- ERROR and CRITICAL only
        - ``decisions.log`` -- router decisions only
        """
        json_line = entry.to_json() + "\n"

        async with aiofiles.open(self._main_log, "a", encoding="utf-8") as f:
            await f.write(json_line)

        if entry.level.value >= LogLevel.ERROR.value:
            async with aiofiles.open(self._error_log, "a", encoding="utf-8") as f:
                await f.write(json_line)

        if entry.component == LogComponent.ROUTER:
            async with aiofiles.open(self._decision_log, "a", encoding="utf-8") as f:
                await f.write(json_line)

    async def _write_to_store(self, entry: LogEntry) -> None:
        try:
            await self.store.save_curation_log(entry.to_dict())
        except Exception as exc:
            _fallback.error("[LOGGING] Failed to write audit entry to store: %s", exc)


# ======================================================================
# GLOBAL LOGGER SINGLETON
# ======================================================================

_logger: Optional[CurationLogger] = None


def init_logger(
    log_dir: str = "logs",
    store: Any = None,
    min_level: LogLevel = LogLevel.INFO,
) -> CurationLogger:
    """Initialise and register the global ``CurationLogger`` singleton."""
    global _logger
    _logger = CurationLogger(log_dir=log_dir, store=store, min_level=min_level)
    return _logger


def get_logger() -> CurationLogger:
    """Retrieve the global ``CurationLogger`` singleton.

    Raises:
        RuntimeError: If ``init_logger()`` has not been called yet.
    """
    if _logger is None:
        raise RuntimeError("Logger not initialized. Call init_logger() first.")
    return _logger


def is_logger_initialized() -> bool:
    return _logger is not None


def reset_logger() -> None:
    """Drop the global logger (tests)."""
    global _logger
    _logger = None
