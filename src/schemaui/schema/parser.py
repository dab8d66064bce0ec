"""Schema Parser - JSON documents to SchemaNode trees with validation."""

from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError
from returns.result import Failure

from ..core import get_logger
from ..core.errors import SchemaValidationError
from ..core.json import extract_json, JSONParseError
from ..core.validate import MAX_SCHEMA_DEPTH, MAX_SCHEMA_SIZE, validate_document, validate_json_size
from .node import SchemaNode

logger = get_logger(__name__)


class SchemaParser:
    """
    Parses schema documents into SchemaNode trees.

    Accepts the explicit form ``{"type": "button", "id": "save", ...}`` and
    two shorthands used in hand-written documents:

    - compact keys: ``{"button#save": {"label": "Save", "@click": "..."}}``
    - bare strings: ``"Hello"`` becomes ``{"type": "text", "content": "Hello"}``

    A top-level list becomes the body of a ``container`` node.
    """

    def __init__(self, max_depth: int = MAX_SCHEMA_DEPTH, max_size: int = MAX_SCHEMA_SIZE):
        self.max_depth = max_depth
        self.max_size = max_size

    def parse(self, content: "str | bytes | Mapping[str, Any] | list[Any]") -> SchemaNode:
        """
        Parse a schema document.

        Args:
            content: JSON text or an already-decoded document

        Returns:
            Root SchemaNode

        Raises:
            SchemaValidationError: If the document is malformed
        """
        if isinstance(content, (str, bytes)):
            validate_json_size(content, self.max_size)
            text = content.decode("utf-8") if isinstance(content, bytes) else content
            try:
                document = extract_json(text, repair=True)
            except JSONParseError as e:
                logger.error("json_parse_failed", error=str(e))
                raise SchemaValidationError(f"Invalid JSON: {e}") from e
        else:
            document = content

        if isinstance(document, list):
            document = {"type": "container", "body": document}

        expanded = self.expand(document)
        if expanded is None:
            logger.error("invalid_format", type=type(document).__name__)
            raise SchemaValidationError("Invalid schema: expected a JSON object or array")

        result = validate_document(expanded, self.max_depth)
        if isinstance(result, Failure):
            failure = result.failure()
            logger.error("schema_invalid", error=failure.message, path=failure.path)
            raise SchemaValidationError(failure.message, {"path": failure.path})

        try:
            return SchemaNode.model_validate(expanded)
        except PydanticValidationError as e:
            logger.error("schema_invalid", error=str(e))
            raise SchemaValidationError(f"Invalid schema: {e}") from e

    def expand(self, node: Any) -> Any:
        """Expand shorthands recursively into the explicit form."""
        if isinstance(node, str):
            return {"type": "text", "content": node}

        if not isinstance(node, Mapping):
            return None

        if "type" not in node:
            node = self._expand_compact(node)
            if node is None:
                return None

        result = dict(node)
        for slot in ("body", "children"):
            if slot in result:
                result[slot] = self._expand_children(result[slot])
        return result

    def _expand_children(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._expand_child(item) for item in value]
        # A lone primitive body is leaf content, as in SchemaNode itself
        if isinstance(value, Mapping):
            return self._expand_child(value)
        return value

    def _expand_child(self, item: Any) -> Any:
        if not isinstance(item, (str, Mapping)):
            return item  # primitive leaf
        expanded = self.expand(item)
        # Leave unexpandable objects as-is so validation reports their path
        return dict(item) if expanded is None else expanded

    def _expand_compact(self, node: Mapping[str, Any]) -> dict[str, Any] | None:
        """
        ``{"type#id": {...props}}`` to explicit form.

        ``@event`` keys are collected into an ``events`` attribute.
        """
        if len(node) != 1:
            return None

        key, props = next(iter(node.items()))
        if not isinstance(props, Mapping):
            props = {}

        node_type, _, node_id = key.partition("#")
        explicit: dict[str, Any] = {"type": node_type}
        if node_id:
            explicit["id"] = node_id

        events: dict[str, Any] = {}
        for k, v in props.items():
            if k.startswith("@"):
                events[k[1:]] = v
            else:
                explicit[k] = v
        if events:
            explicit["events"] = events

        return explicit


def parse_schema(content: "str | bytes | Mapping[str, Any] | list[Any]") -> SchemaNode:
    """
    Convenience function to parse a schema document.

    Args:
        content: JSON text or decoded document

    Returns:
        Root SchemaNode
    """
    return SchemaParser().parse(content)
