"""
Structured logging for the publishing core.

JSON lines by default (console rendering for interactive use). Context such
as the correlation id lives in structlog's contextvars, so every protocol
step logged inside a publish call carries it.
"""

import logging
import sys
import time
from uuid import uuid4

import structlog


def configure_logging(service_name: str, level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure stdlib logging and structlog.

    Args:
        service_name: Added to every event as ``service``
        level: Root log level name (DEBUG, INFO, ...)
        json_logs: JSON output when true, human-readable console otherwise
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    def add_service(logger, method_name, event_dict):
        event_dict.setdefault("service", service_name)
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_service,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def current_correlation_id() -> str | None:
    return structlog.contextvars.get_contextvars().get("correlation_id")


def correlation_context(correlation_id: str | None = None, **extra):
    """
    Bind a correlation id (and any extra keys) for the enclosed block.

    An explicit id wins, then one already bound by an outer block (a publish
    job), then a fresh one.
    """
    cid = correlation_id or current_correlation_id() or uuid4().hex[:16]
    return structlog.contextvars.bound_contextvars(correlation_id=cid, **extra)


class Timer:
    """Wall-clock duration of a ``with`` block, exposed as ``duration_ms``."""

    duration_ms: float = 0.0

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *exc_info) -> None:
        self.duration_ms = round((time.perf_counter() - self._started) * 1000, 2)


def redact(value: str, visible: int = 8) -> str:
    """Keep the first ``visible`` characters of a token or signed URL."""
    if not value or len(value) <= visible:
        return value or ""
    return f"{value[:visible]}..."
