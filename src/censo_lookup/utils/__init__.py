from .logging import (
    PerformanceLogger,
    StructuredLogger,
    clear_execution_context,
    digest,
    get_logger,
    set_execution_context,
    setup_structured_logging,
    timed_operation,
)

__all__ = [
    # Logging
    "StructuredLogger",
    "PerformanceLogger",
    "get_logger",
    "setup_structured_logging",
    "timed_operation",
    "set_execution_context",
    "clear_execution_context",
    "digest",
]
