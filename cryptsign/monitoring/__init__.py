"""
Monitoring module initialization
"""

from .metrics_exporter import get_registry, disabled_registry, MetricsRegistry

__all__ = [
    "get_registry",
    "disabled_registry",
    "MetricsRegistry",
]
