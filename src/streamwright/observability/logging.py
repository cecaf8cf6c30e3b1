"""
Structured logging with trace ID support.

Log lines have the shape::

    t=<ISO8601> level=INFO trace=<id> mod=<module> op=<op> msg="..." key=value

Credentials never reach a line: fields named like a secret are masked both
when logged through ``StructuredLogger`` and when formatted.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

trace_id_ctx: ContextVar[str | None] = ContextVar("trace_id", default=None)

_loggers: dict[str, "StructuredLogger"] = {}

# Attributes every LogRecord carries; only caller fields are rendered
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message"}

# Rendered in the fixed prefix, not as trailing fields
_PREFIX_FIELDS = frozenset({"trace_id", "op", "ms"})

_SECRET_FIELDS = frozenset({"client_secret", "access_token", "authorization", "password"})

_MASK = "***"


def _render(key: str, value: Any) -> str:
    if key in _SECRET_FIELDS:
        value = _MASK
    text = str(value)
    if " " in text or not text:
        text = '"' + text.replace('"', '\\"') + '"'
    return f"{key}={text}"


class StructuredFormatter(logging.Formatter):
    """Single-line ``key=value`` formatter."""

    def format(self, record: logging.LogRecord) -> str:
        trace_id = trace_id_ctx.get() or getattr(record, "trace_id", None) or "-"
        mod = record.name.rsplit(".", 1)[-1]
        op = getattr(record, "op", record.funcName)

        prefix = (
            f"t={datetime.now(UTC).isoformat()} level={record.levelname}"
            f" trace={trace_id} mod={mod} op={op}"
        )
        duration = getattr(record, "ms", None)
        if duration is not None:
            prefix += f" ms={duration:.1f}"

        fields = [
            _render(key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in _PREFIX_FIELDS
        ]
        line = " ".join([prefix, f'msg="{record.getMessage()}"', *fields])
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger:
    """Logger taking structured keyword fields instead of format arguments."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, **fields):
        extra = {
            key: (_MASK if key in _SECRET_FIELDS else value)
            for key, value in fields.items()
            if key not in _RECORD_ATTRS
        }
        extra["trace_id"] = trace_id_ctx.get()
        self.logger.log(level, msg, extra=extra)

    def debug(self, msg: str, **fields):
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields):
        self._log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields):
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, **fields):
        self._log(logging.ERROR, msg, **fields)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for the given module."""
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]


def setup_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    # httpx logs every request at INFO, including the token endpoint
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)


def get_trace_id() -> str | None:
    return trace_id_ctx.get()


@contextmanager
def trace_scope(trace_id: str | None) -> Iterator[None]:
    """Tag log lines with ``trace_id`` until the block exits, then restore the outer id."""
    token = trace_id_ctx.set(trace_id)
    try:
        yield
    finally:
        trace_id_ctx.reset(token)
