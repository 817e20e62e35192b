"""Logging setup with a correlation ID per proxied request or voice generation."""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# Correlation ID of the HTTP request or generation currently being handled
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

NOISY_LOGGERS = ("httpx", "httpcore")


class RequestIDFilter(logging.Filter):
    """Stamp every record with the active correlation ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        return True


def generate_request_id() -> str:
    """Generate a short unique correlation ID."""
    return uuid.uuid4().hex[:12]


@contextmanager
def request_context(request_id: str | None = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of the block and yield it."""
    rid = request_id or generate_request_id()
    token = request_id_var.set(rid)
    try:
        yield rid
    finally:
        request_id_var.reset(token)


def setup_logging(level: str = "INFO") -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s - %(message)s")
    )
    handler.addFilter(RequestIDFilter())

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
