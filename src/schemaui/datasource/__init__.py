"""
Data Source Contract
Backend-agnostic data access and the built-in adapters
"""

from .types import (
    AggregateParams,
    FileUploadResult,
    HttpRequest,
    ProgressCallback,
    QueryParams,
    QueryResult,
    ViewData,
)
from .base import DataSource, OPTIONAL_CAPABILITIES, supports, require_capability
from .memory import ValueDataSource
from .api import ApiDataSource
from .resolve import resolve_data_source
from .scope import DataScope, DataScopeManager, RowLevelFilter

__all__ = [
    "AggregateParams",
    "FileUploadResult",
    "HttpRequest",
    "ProgressCallback",
    "QueryParams",
    "QueryResult",
    "ViewData",
    "DataSource",
    "OPTIONAL_CAPABILITIES",
    "supports",
    "require_capability",
    "ValueDataSource",
    "ApiDataSource",
    "resolve_data_source",
    "DataScope",
    "DataScopeManager",
    "RowLevelFilter",
]
