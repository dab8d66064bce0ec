"""Error taxonomy with stable error codes."""

from typing import Any


class ErrorCode:
    """Error code constants."""

    UNKNOWN_TYPE = "SCHEMAUI-001"
    SCHEMA_INVALID = "SCHEMAUI-002"
    EXPRESSION_FAILED = "SCHEMAUI-003"
    DATA_FETCH_FAILED = "SCHEMAUI-004"
    CAPABILITY_ABSENT = "SCHEMAUI-005"
    RENDER_FAILED = "SCHEMAUI-006"


class SchemaUIError(Exception):
    """Base error for the engine."""

    code = "SCHEMAUI-000"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Export for logging and error placeholders."""
        return {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class UnknownComponentError(SchemaUIError):
    """No renderer is registered for a type tag."""

    code = ErrorCode.UNKNOWN_TYPE

    def __init__(self, type_tag: str) -> None:
        super().__init__(f'Unknown component type: "{type_tag}"', {"type": type_tag})
        self.type_tag = type_tag


class SchemaValidationError(SchemaUIError):
    """Schema document failed validation."""

    code = ErrorCode.SCHEMA_INVALID


class ExpressionError(SchemaUIError):
    """Expression could not be parsed or evaluated."""

    code = ErrorCode.EXPRESSION_FAILED

    def __init__(self, message: str, expression: str | None = None) -> None:
        super().__init__(message, {"expression": expression} if expression is not None else None)
        self.expression = expression


class DataSourceError(SchemaUIError):
    """Transport or authorization failure reaching a backend."""

    code = ErrorCode.DATA_FETCH_FAILED

    def __init__(
        self, message: str, resource: str | None = None, status_code: int | None = None
    ) -> None:
        details: dict[str, Any] = {}
        if resource is not None:
            details["resource"] = resource
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.resource = resource
        self.status_code = status_code


class CapabilityNotSupported(SchemaUIError):
    """An optional data source capability was required but is absent."""

    code = ErrorCode.CAPABILITY_ABSENT

    def __init__(self, capability: str, source: str) -> None:
        super().__init__(
            f'Data source "{source}" does not support "{capability}"',
            {"capability": capability, "source": source},
        )
        self.capability = capability


class RenderError(SchemaUIError):
    """A component renderer raised while assembling its output."""

    code = ErrorCode.RENDER_FAILED


def error_message(error: BaseException) -> str:
    """Human-readable message for an error placeholder."""
    if isinstance(error, SchemaUIError):
        return error.message
    return str(error) or type(error).__name__


__all__ = [
    "ErrorCode",
    "SchemaUIError",
    "UnknownComponentError",
    "SchemaValidationError",
    "ExpressionError",
    "DataSourceError",
    "CapabilityNotSupported",
    "RenderError",
    "error_message",
]
