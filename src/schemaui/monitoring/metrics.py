"""
Metrics Collection
Prometheus metrics for render passes, nodes and data fetches
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the rendering engine.

    Each collector owns its CollectorRegistry, so several engines (or
    tests) can create collectors without name clashes.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()

        # Render pass metrics
        self.renders_total = Counter(
            "schemaui_renders_total",
            "Total number of render passes",
            ["status"],
            registry=self.registry,
        )
        self.render_duration = Histogram(
            "schemaui_render_duration_seconds",
            "Render pass duration in seconds",
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=self.registry,
        )

        # Node metrics
        self.nodes_total = Counter(
            "schemaui_nodes_total",
            "Nodes reaching a terminal state",
            ["state"],
            registry=self.registry,
        )
        self.unknown_types_total = Counter(
            "schemaui_unknown_types_total",
            "Nodes dispatched to the fallback renderer",
            ["type"],
            registry=self.registry,
        )
        self.expression_failures_total = Counter(
            "schemaui_expression_failures_total",
            "Condition expressions that failed to evaluate",
            ["attribute"],
            registry=self.registry,
        )

        # Data fetch metrics
        self.fetch_duration = Histogram(
            "schemaui_fetch_duration_seconds",
            "Data source fetch duration in seconds",
            ["outcome"],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=self.registry,
        )
        self.stale_results_total = Counter(
            "schemaui_stale_results_total",
            "Results dropped because their generation was superseded",
            registry=self.registry,
        )

        # Error metrics
        self.errors_total = Counter(
            "schemaui_errors_total",
            "Total number of contained errors",
            ["error_code", "component"],
            registry=self.registry,
        )

    def record_render(self, status: str, duration: float) -> None:
        """Record a render pass."""
        self.renders_total.labels(status=status).inc()
        self.render_duration.observe(duration)

    def record_node(self, state: str) -> None:
        """Record a node reaching a terminal state."""
        self.nodes_total.labels(state=state).inc()

    def record_unknown_type(self, type_tag: str) -> None:
        self.unknown_types_total.labels(type=type_tag).inc()

    def record_expression_failure(self, attribute: str) -> None:
        self.expression_failures_total.labels(attribute=attribute).inc()

    def record_fetch(self, outcome: str, duration: float) -> None:
        """Record a data fetch."""
        self.fetch_duration.labels(outcome=outcome).observe(duration)

    def record_stale(self) -> None:
        self.stale_results_total.inc()

    def record_error(self, error_code: str, component: str) -> None:
        """Record an error."""
        self.errors_total.labels(error_code=error_code, component=component).inc()

    def get_sample(self, name: str, labels: Optional[dict] = None) -> Optional[float]:
        """Current value of one sample, or None."""
        return self.registry.get_sample_value(name, labels or {})

    def get_metrics(self) -> bytes:
        """Exposition for the host application's scrape endpoint."""
        return generate_latest(self.registry)
