"""Dependency Injection Container."""

from injector import Injector, Module, provider, singleton

from ..datasource import ApiDataSource, DataSource, ValueDataSource
from ..expression import ExpressionEvaluator
from ..monitoring import MetricsCollector
from ..pipeline import SchemaRenderer
from ..registry import ComponentRegistry, create_default_registry
from .config import Settings, get_settings
from .logging_config import get_logger

logger = get_logger(__name__)


class CoreModule(Module):
    """Core dependencies."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        return self.settings

    @singleton
    @provider
    def provide_registry(self) -> ComponentRegistry:
        """Provide component registry with the built-in components."""
        return create_default_registry()

    @singleton
    @provider
    def provide_metrics(self) -> MetricsCollector:
        return MetricsCollector()

    @singleton
    @provider
    def provide_evaluator(self, metrics: MetricsCollector) -> ExpressionEvaluator:
        return ExpressionEvaluator(
            strict=self.settings.strict_expressions,
            cache_size=self.settings.expression_cache_size,
            on_failure=metrics.record_expression_failure if self.settings.enable_metrics else None,
        )

    @singleton
    @provider
    def provide_data_source(self) -> DataSource:
        """Provide the shared data source: HTTP when a backend is configured."""
        if self.settings.backend_url:
            return ApiDataSource(
                read=self.settings.backend_url,
                timeout=self.settings.backend_timeout,
                fail_max=self.settings.breaker_fail_max,
                reset_timeout=self.settings.breaker_reset_timeout,
                chunk_size=self.settings.upload_chunk_size,
                resource_paths=True,
            )
        logger.info("no_backend_configured", fallback="value")
        return ValueDataSource()

    @singleton
    @provider
    def provide_renderer(
        self,
        registry: ComponentRegistry,
        evaluator: ExpressionEvaluator,
        data_source: DataSource,
        metrics: MetricsCollector,
    ) -> SchemaRenderer:
        """Provide schema renderer with all dependencies."""
        return SchemaRenderer(
            registry=registry,
            evaluator=evaluator,
            data_source=data_source,
            metrics=metrics if self.settings.enable_metrics else None,
            settings=self.settings,
        )


def create_container(settings: Settings | None = None) -> Injector:
    """Create configured injector."""
    return Injector([CoreModule(settings)])
