"""Pytest configuration and fixtures."""

import os

import pytest

from schemaui.core.config import Settings
from schemaui.datasource import ValueDataSource
from schemaui.expression import ExpressionEvaluator
from schemaui.monitoring import MetricsCollector
from schemaui.pipeline import RenderContext, RenderSession, SchemaRenderer
from schemaui.registry import create_default_registry


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["SCHEMAUI_LOG_LEVEL"] = "DEBUG"
    os.environ["SCHEMAUI_BACKEND_URL"] = ""


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def settings():
    """Test settings."""
    return Settings()


@pytest.fixture
def registry():
    """Registry with the built-in components."""
    return create_default_registry()


@pytest.fixture
def metrics():
    """Metrics collector on its own registry."""
    return MetricsCollector()


@pytest.fixture
def evaluator():
    """Fail-open expression evaluator."""
    return ExpressionEvaluator()


@pytest.fixture
def strict_evaluator():
    """Expression evaluator that raises on failure."""
    return ExpressionEvaluator(strict=True)


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def contacts():
    """Sample contact records."""
    return [
        {"id": "1", "name": "Alice", "age": 30, "city": "Berlin", "status": "active"},
        {"id": "2", "name": "Bob", "age": 25, "city": "Paris", "status": "inactive"},
        {"id": "3", "name": "Carol", "age": 35, "city": "Berlin", "status": "active"},
        {"id": "4", "name": "Dave", "age": 41, "city": "Madrid", "status": "active"},
    ]


@pytest.fixture
def value_source(contacts):
    """In-memory data source over the sample contacts."""
    return ValueDataSource(items=contacts)


# ============================================================================
# Pipeline Fixtures
# ============================================================================

@pytest.fixture
def renderer(registry, evaluator, value_source, metrics, settings):
    """Renderer wired to the sample data source."""
    return SchemaRenderer(
        registry=registry,
        evaluator=evaluator,
        data_source=value_source,
        metrics=metrics,
        settings=settings,
    )


@pytest.fixture
def context(value_source):
    """Render context at the lg breakpoint."""
    return RenderContext(
        breakpoint="lg",
        user={"name": "admin", "role": "admin"},
        data_source=value_source,
    )


@pytest.fixture
def session(metrics):
    """Fresh render session."""
    return RenderSession(metrics=metrics)


@pytest.fixture
def sample_document():
    """Sample dashboard schema document."""
    return {
        "type": "container",
        "id": "root",
        "body": [
            {"type": "text", "id": "title", "content": "Contacts", "variant": "h1"},
            {
                "type": "grid",
                "id": "cards",
                "columns": {"xs": 1, "md": 2, "lg": 3},
                "children": [
                    {"type": "card", "id": "summary", "title": "Summary"},
                    {"type": "card", "id": "admin", "title": "Admin", "visibleOn": "user.role == 'admin'"},
                ],
            },
            {"type": "list", "id": "people", "objectName": "contacts", "field": "name"},
        ],
    }
