"""
Operation probes: timing, span and outcome logging around each client operation.
"""

import contextlib
import functools
import time

from .logging import get_logger
from .tracing import get_tracing_manager

log = get_logger("swr.probe")


@contextlib.contextmanager
def probe(op: str, **labels):
    """
    Time an operation inside a span and log its outcome.

    Args:
        op: Operation name (e.g., "streams.deploy")
        **labels: Extra fields for the log line and span attributes
    """
    start_time = time.perf_counter()
    ok = "true"
    error_type = None

    with get_tracing_manager().span(op, labels):
        try:
            yield
        except Exception as e:
            ok = "false"
            error_type = type(e).__name__
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            fields = dict(labels)
            if error_type:
                fields["error"] = error_type
            log.info(f"{op} finished", op=op, ms=duration_ms, ok=ok, **fields)


def probed(op: str):
    """Decorator form of ``probe`` for coroutine methods."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            with probe(op):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
