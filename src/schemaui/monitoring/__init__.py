"""
Performance Monitoring
Prometheus-based metrics collection for the rendering engine
"""

from .metrics import MetricsCollector

__all__ = [
    "MetricsCollector",
]
