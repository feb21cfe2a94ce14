"""Prometheus metrics for signing attempts and certificate operations.

Metrics live in a ``MetricsRegistry`` bound to one ``CollectorRegistry``.
``get_registry()`` returns the process-wide instance registered with the
default Prometheus registry; tests build their own with a fresh
``CollectorRegistry`` to avoid duplicate registration.
"""
from __future__ import annotations

import logging
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

logger = logging.getLogger(__name__)

DURATION_BUCKETS = (0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0)


class MetricsRegistry:
    def __init__(self, registry: Optional[CollectorRegistry] = None, enabled: bool = True):
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY
        if self.enabled:
            self.attempts = Counter(
                "cryptsign_sign_attempts_total",
                "Signing tool invocations by classified outcome",
                ["outcome"],
                registry=self.registry,
            )
            self.requests = Counter(
                "cryptsign_sign_requests_total",
                "Signing requests by final result",
                ["result"],
                registry=self.registry,
            )
            self.tool_duration = Histogram(
                "cryptsign_tool_duration_seconds",
                "Wall time of a single signing tool invocation",
                buckets=DURATION_BUCKETS,
                registry=self.registry,
            )
            self.certificate_ops = Counter(
                "cryptsign_certificate_operations_total",
                "Certificate store operations by operation and result",
                ["operation", "result"],
                registry=self.registry,
            )
        else:
            self.attempts = None
            self.requests = None
            self.tool_duration = None
            self.certificate_ops = None

    # Metric failures must not reach the signing path
    def observe_attempt(self, outcome: str, duration: float) -> None:
        if not self.enabled:
            return
        try:
            self.attempts.labels(outcome=outcome).inc()
            self.tool_duration.observe(duration)
        except Exception as e:  # pragma: no cover - thin wrapper
            logger.debug(f"Failed to record attempt metric: {e}")

    def observe_request(self, result: str) -> None:
        if not self.enabled:
            return
        try:
            self.requests.labels(result=result).inc()
        except Exception as e:  # pragma: no cover - thin wrapper
            logger.debug(f"Failed to record request metric: {e}")

    def observe_certificate(self, operation: str, result: str) -> None:
        if not self.enabled:
            return
        try:
            self.certificate_ops.labels(operation=operation, result=result).inc()
        except Exception as e:  # pragma: no cover - thin wrapper
            logger.debug(f"Failed to record certificate metric: {e}")


_registry: Optional[MetricsRegistry] = None


def get_registry() -> MetricsRegistry:
    global _registry
    if _registry is None:
        _registry = MetricsRegistry()
    return _registry


def disabled_registry() -> MetricsRegistry:
    """Registry that records nothing."""
    return MetricsRegistry(enabled=False)


__all__ = ["get_registry", "disabled_registry", "MetricsRegistry", "DURATION_BUCKETS"]
