"""Audit logging for the curation engine."""
from curation.logging.models import LogLevel, LogComponent, LogEntry
from curation.logging.audit_logger import (
    CurationLogger,
    get_logger,
    init_logger,
    is_logger_initialized,
    reset_logger,
)
from curation.logging.component_logger import ComponentLogger, TimedOperation
from curation.logging.batch_run_logger import BatchRunLogger

__all__ = [
    "LogLevel", "LogComponent", "LogEntry",
    "CurationLogger", "init_logger", "get_logger", "is_logger_initialized", "reset_logger",
    "ComponentLogger", "TimedOperation",
    "BatchRunLogger",
]
