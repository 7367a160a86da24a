"""Structured logging with machine-parseable JSON output."""

from __future__ import annotations

import hashlib
import json
import logging
import sys
import time
from collections.abc import Callable, MutableMapping
from contextvars import ContextVar
from datetime import UTC, datetime
from functools import wraps
from pathlib import Path
from typing import Any, TypeVar

# Context variables for request tracking
request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
execution_context: ContextVar[dict[str, Any]] = ContextVar(
    "execution_context", default={}
)

F = TypeVar("F", bound=Callable[..., Any])

# LogRecord attributes that must not be overwritten by ``extra``
_RESERVED_RECORD_KEYS = frozenset(
    {
        "name",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "msg",
        "args",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class StructuredLogger(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that renders every message as one JSON object."""

    def __init__(self, logger: logging.Logger, extra: dict[str, Any] | None = None):
        super().__init__(logger, extra or {})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        """Fold context and ``extra`` fields into a JSON message."""
        try:
            ctx = execution_context.get()
            req_id = request_id.get()

            log_entry: dict[str, Any] = {
                "timestamp": datetime.now(UTC).isoformat(),
                "event": msg,
                "module": self.logger.name,
            }

            if req_id:
                log_entry["request_id"] = req_id

            if ctx:
                log_entry["context"] = ctx

            if self.extra:
                log_entry.update(self.extra)

            if "extra" in kwargs:
                log_entry.update(
                    {
                        k: v
                        for k, v in kwargs["extra"].items()
                        if k not in _RESERVED_RECORD_KEYS
                    }
                )
                kwargs = {k: v for k, v in kwargs.items() if k != "extra"}

            return json.dumps(log_entry, default=str), kwargs
        except (TypeError, ValueError) as e:
            return f"Structured logging error: {e} - Original message: {msg}", kwargs


class PerformanceLogger:
    """Context manager for logging how long an operation took."""

    def __init__(
        self, operation: str, logger: StructuredLogger, threshold_ms: float = 200
    ):
        self.operation = operation
        self.logger = logger
        self.threshold_ms = threshold_ms
        self.start_time: float | None = None
        self.metadata: dict[str, Any] = {}

    def __enter__(self) -> PerformanceLogger:
        self.start_time = time.perf_counter()
        self.logger.debug(
            f"{self.operation}_started",
            extra={"operation": self.operation, "status": "started"},
        )
        return self

    def add_metadata(self, **kwargs: Any) -> None:
        """Add metadata to be logged with the timing."""
        self.metadata.update(kwargs)

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.start_time is None:
            duration_ms = 0.0
        else:
            duration_ms = (time.perf_counter() - self.start_time) * 1000

        extra_data = {
            "operation": self.operation,
            "duration_ms": round(duration_ms, 2),
            "status": "failed" if exc_type else "completed",
            **self.metadata,
        }

        if exc_type:
            extra_data["error"] = str(exc_val)
            extra_data["error_type"] = exc_type.__name__

        if duration_ms > self.threshold_ms:
            self.logger.warning(f"{self.operation}_slow", extra=extra_data)
        else:
            self.logger.info(f"{self.operation}_completed", extra=extra_data)


def timed_operation(threshold_ms: float = 200) -> Callable[[F], F]:
    """Decorator to log the duration of a synchronous call."""

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = get_logger(func.__module__)
            with PerformanceLogger(func.__qualname__, logger, threshold_ms):
                return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def digest(value: Any, length: int = 12) -> str:
    """Short stable fingerprint for identifiers that must not be logged raw."""
    return hashlib.sha256(str(value).encode("utf-8")).hexdigest()[:length]


def setup_structured_logging(
    log_level: str = "INFO",
    log_file: Path | None = None,
    include_stdout: bool = True,
) -> None:
    """Set up JSON logging on the root logger."""

    class StructuredFormatter(logging.Formatter):
        def format(self, record: logging.LogRecord) -> str:
            # Already formatted by StructuredLogger
            if isinstance(record.msg, str) and record.msg.startswith("{"):
                return record.msg
            return json.dumps(
                {
                    "timestamp": datetime.now(UTC).isoformat(),
                    "level": record.levelname,
                    "module": record.name,
                    "event": record.getMessage(),
                }
            )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    formatter = StructuredFormatter()

    if include_stdout:
        # stderr keeps CLI output on stdout clean
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        root_logger.addHandler(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(logging.getLogger(name))


def set_execution_context(**kwargs: Any) -> None:
    """Set execution context for the current async context."""
    ctx = dict(execution_context.get())
    ctx.update(kwargs)
    execution_context.set(ctx)


def clear_execution_context() -> None:
    """Clear execution context."""
    execution_context.set({})
