"""Metrics collector tests."""

import pytest

from schemaui.monitoring import MetricsCollector


@pytest.mark.unit
def test_collectors_are_isolated():
    first = MetricsCollector()
    second = MetricsCollector()

    first.record_render("ok", 0.01)

    assert first.get_sample("schemaui_renders_total", {"status": "ok"}) == 1
    assert second.get_sample("schemaui_renders_total", {"status": "ok"}) is None


@pytest.mark.unit
def test_counters(metrics):
    metrics.record_node("rendered")
    metrics.record_node("rendered")
    metrics.record_node("hidden")
    metrics.record_unknown_type("chart")
    metrics.record_expression_failure("visibleOn")
    metrics.record_error("SCHEMAUI-004", "data")
    metrics.record_stale()

    assert metrics.get_sample("schemaui_nodes_total", {"state": "rendered"}) == 2
    assert metrics.get_sample("schemaui_nodes_total", {"state": "hidden"}) == 1
    assert metrics.get_sample("schemaui_unknown_types_total", {"type": "chart"}) == 1
    assert metrics.get_sample("schemaui_expression_failures_total", {"attribute": "visibleOn"}) == 1
    assert metrics.get_sample("schemaui_errors_total", {"error_code": "SCHEMAUI-004", "component": "data"}) == 1
    assert metrics.get_sample("schemaui_stale_results_total") == 1


@pytest.mark.unit
def test_histograms(metrics):
    metrics.record_fetch("ok", 0.02)
    metrics.record_fetch("error", 0.5)
    metrics.record_render("ok", 0.003)

    assert metrics.get_sample("schemaui_fetch_duration_seconds_count", {"outcome": "ok"}) == 1
    assert metrics.get_sample("schemaui_fetch_duration_seconds_count", {"outcome": "error"}) == 1
    assert metrics.get_sample("schemaui_render_duration_seconds_count") == 1


@pytest.mark.unit
def test_exposition_format(metrics):
    metrics.record_render("ok", 0.01)
    output = metrics.get_metrics()

    assert b"schemaui_renders_total" in output
    assert b"schemaui_render_duration_seconds_bucket" in output
