"""Schema document validation with the Result pattern."""

from dataclasses import dataclass
from typing import Any

from returns.result import Result, Success, Failure

from .errors import SchemaValidationError


# Validation limits
MAX_SCHEMA_SIZE = 2 * 1024 * 1024  # 2MB
MAX_SCHEMA_DEPTH = 64


@dataclass(frozen=True)
class ValidationResult:
    """Validation error with details (for Result pattern)."""

    message: str
    path: str | None = None


def validate_json_size(data: str | bytes, max_size: int = MAX_SCHEMA_SIZE, name: str = "Schema") -> None:
    """
    Validate document size.

    Raises:
        SchemaValidationError: If size exceeds limit
    """
    size = len(data.encode("utf-8")) if isinstance(data, str) else len(data)
    if size > max_size:
        raise SchemaValidationError(
            f"{name} size {size} bytes exceeds maximum {max_size} bytes",
            {"size": size, "max_size": max_size},
        )


def validate_json_depth(obj: Any, max_depth: int = MAX_SCHEMA_DEPTH, current_depth: int = 0) -> None:
    """
    Validate nesting depth so the recursive renderer cannot overflow the stack.

    Raises:
        SchemaValidationError: If depth exceeds limit
    """
    if current_depth > max_depth:
        raise SchemaValidationError(
            f"Schema nesting depth {current_depth} exceeds maximum {max_depth}",
            {"max_depth": max_depth},
        )

    if isinstance(obj, dict):
        for value in obj.values():
            validate_json_depth(value, max_depth, current_depth + 1)
    elif isinstance(obj, list):
        for item in obj:
            validate_json_depth(item, max_depth, current_depth + 1)


def _validate_node(obj: Any, path: str) -> None:
    """Every object reachable through body/children must carry a type tag."""
    if isinstance(obj, list):
        for i, item in enumerate(obj):
            _validate_node(item, f"{path}[{i}]")
        return
    if not isinstance(obj, dict):
        return  # primitive leaf

    node_type = obj.get("type")
    if not isinstance(node_type, str) or not node_type:
        raise SchemaValidationError(f"Schema node at {path} is missing a 'type'", {"path": path})

    for slot in ("body", "children"):
        if slot in obj:
            _validate_node(obj[slot], f"{path}.{slot}")


def validate_document(
    document: Any,
    max_depth: int = MAX_SCHEMA_DEPTH,
) -> Result[None, ValidationResult]:
    """
    Validate a parsed schema document.

    Args:
        document: Parsed JSON document (explicit form)
        max_depth: Maximum nesting depth

    Returns:
        Result indicating success or validation error
    """
    try:
        validate_json_depth(document, max_depth)
        _validate_node(document, "$")
        return Success(None)
    except SchemaValidationError as e:
        return Failure(ValidationResult(e.message, e.details.get("path")))


__all__ = [
    "MAX_SCHEMA_SIZE",
    "MAX_SCHEMA_DEPTH",
    "ValidationResult",
    "validate_json_size",
    "validate_json_depth",
    "validate_document",
]
