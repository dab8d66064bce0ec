"""
schemaui
Schema rendering and data-binding engine for declarative UI documents
"""

from .core import (
    Settings,
    get_settings,
    configure_logging,
    create_container,
    SchemaUIError,
    SchemaValidationError,
    ExpressionError,
    DataSourceError,
    CapabilityNotSupported,
)
from .responsive import Breakpoint, breakpoint_for_width
from .schema import SchemaNode, SchemaParser, parse_schema
from .expression import ExpressionContext, ExpressionEvaluator
from .registry import ComponentRegistry, ComponentMeta, RenderProps, create_default_registry
from .datasource import (
    DataSource,
    ValueDataSource,
    ApiDataSource,
    QueryParams,
    QueryResult,
    resolve_data_source,
)
from .pipeline import (
    RenderContext,
    RenderSession,
    RenderedNode,
    NodeState,
    SchemaRenderer,
    resolve_node_props,
)

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "create_container",
    "SchemaUIError",
    "SchemaValidationError",
    "ExpressionError",
    "DataSourceError",
    "CapabilityNotSupported",
    "Breakpoint",
    "breakpoint_for_width",
    "SchemaNode",
    "SchemaParser",
    "parse_schema",
    "ExpressionContext",
    "ExpressionEvaluator",
    "ComponentRegistry",
    "ComponentMeta",
    "RenderProps",
    "create_default_registry",
    "DataSource",
    "ValueDataSource",
    "ApiDataSource",
    "QueryParams",
    "QueryResult",
    "resolve_data_source",
    "RenderContext",
    "RenderSession",
    "RenderedNode",
    "NodeState",
    "SchemaRenderer",
    "resolve_node_props",
]
