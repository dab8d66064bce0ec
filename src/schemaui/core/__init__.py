"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .errors import (
    ErrorCode,
    SchemaUIError,
    UnknownComponentError,
    SchemaValidationError,
    ExpressionError,
    DataSourceError,
    CapabilityNotSupported,
    RenderError,
    error_message,
)
from .validate import (
    ValidationResult,
    validate_json_size,
    validate_json_depth,
    validate_document,
)
from .logging_config import configure_logging, get_logger, LogContext
from .json import extract_json, safe_json_dumps, JSONParseError
from .hash import Algorithm, digest, cache_key, fingerprint
from .cache import LRUCache, CacheStats
from .id import new_generation_id, new_session_id, is_valid, extract_prefix


def create_container(settings: Settings | None = None):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "SchemaUIError",
    "UnknownComponentError",
    "SchemaValidationError",
    "ExpressionError",
    "DataSourceError",
    "CapabilityNotSupported",
    "RenderError",
    "error_message",
    # Validation
    "ValidationResult",
    "validate_json_size",
    "validate_json_depth",
    "validate_document",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # JSON
    "extract_json",
    "safe_json_dumps",
    "JSONParseError",
    # DI
    "create_container",
    # Hashing
    "Algorithm",
    "digest",
    "cache_key",
    "fingerprint",
    # Caching
    "LRUCache",
    "CacheStats",
    # IDs
    "new_generation_id",
    "new_session_id",
    "is_valid",
    "extract_prefix",
]
