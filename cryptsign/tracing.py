"""
Tracing spans around public operations.

``OpenTelemetryTracer`` is the default; without a configured SDK the
OpenTelemetry API hands out non-recording spans, so tracing is inert until the
application installs a tracer provider.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, ContextManager, Iterator, Optional, Protocol

from opentelemetry import trace


logger = logging.getLogger(__name__)

TRACER_NAME = "cryptsign"


class Tracer(Protocol):
    """Anything that can open a named span as a context manager."""

    def span(self, name: str, **attributes: Any) -> ContextManager[Any]:
        ...  # pragma: no cover - interface placeholder


class OpenTelemetryTracer:
    """Tracer backed by the OpenTelemetry API."""

    def __init__(self, tracer: Optional[trace.Tracer] = None):
        self._tracer = tracer or trace.get_tracer(TRACER_NAME)

    @contextmanager
    def span(self, name: str, **attributes: Any) -> Iterator[Any]:
        with self._tracer.start_as_current_span(name, attributes=attributes or None) as span:
            yield span


@contextmanager
def guarded_span(tracer: Optional[Tracer], name: str, **attributes: Any) -> Iterator[None]:
    """
    Bracket a block with a span without letting the tracer change its outcome.

    Errors raised by the tracer while opening or closing the span are logged
    and dropped; errors raised by the block always propagate.
    """
    cm = None
    if tracer is not None:
        try:
            cm = tracer.span(name, **attributes)
            cm.__enter__()
        except Exception as e:
            logger.warning(f"Failed to start span {name}: {e}")
            cm = None
    try:
        yield
    except BaseException:
        _close(cm, name, sys.exc_info())
        raise
    else:
        _close(cm, name, (None, None, None))


def _close(cm, name: str, exc_info) -> None:
    if cm is None:
        return
    try:
        # The return value is ignored: a span must never swallow the error
        cm.__exit__(*exc_info)
    except Exception as e:
        logger.warning(f"Failed to end span {name}: {e}")


__all__ = [
    "Tracer",
    "OpenTelemetryTracer",
    "guarded_span",
    "TRACER_NAME",
]
