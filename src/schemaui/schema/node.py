"""Schema Node Model - the recursive unit every document is built from."""

from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Primitive = Union[str, int, float, bool, None]

CONDITIONAL_ATTRIBUTES = ("visible", "hidden", "disabled", "visibleOn", "hiddenOn", "disabledOn")
STRUCTURAL_ATTRIBUTES = ("type", "id", "name", "body", "children")


@dataclass(frozen=True)
class Empty:
    """No child content."""


@dataclass(frozen=True)
class Leaf:
    """Primitive child content (text, number, boolean, null)."""

    value: Primitive


@dataclass(frozen=True)
class Nodes:
    """Ordered child nodes."""

    nodes: tuple["SchemaNode", ...]


ChildContent = Union[Empty, Leaf, Nodes]

EMPTY = Empty()


def _coerce_children(value: Any) -> Any:
    """Primitives inside a child list become text nodes so Nodes holds one shape."""
    if isinstance(value, (list, tuple)):
        return [
            {"type": "text", "content": item} if not isinstance(item, (dict, SchemaNode)) else item
            for item in value
        ]
    return value


class SchemaNode(BaseModel):
    """
    One node of a declarative UI tree.

    Type-specific attributes are kept as pydantic extras and exposed through
    ``attributes``. Nodes are frozen; ``evolve`` returns a new version.
    """

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    type: str = Field(..., min_length=1, description="Registry type tag")
    id: str | None = Field(default=None, description="Stable identity")
    name: str | None = Field(default=None, description="Stable name")

    body: Union["SchemaNode", list["SchemaNode"], Primitive] = Field(default=None)
    children: Union["SchemaNode", list["SchemaNode"], Primitive] = Field(default=None)

    # Conditionals; booleans may themselves be responsive maps
    visible: bool | dict[str, bool] | None = None
    hidden: bool | dict[str, bool] | None = None
    disabled: bool | dict[str, bool] | None = None
    visible_on: str | None = Field(default=None, alias="visibleOn")
    hidden_on: str | None = Field(default=None, alias="hiddenOn")
    disabled_on: str | None = Field(default=None, alias="disabledOn")

    @field_validator("body", "children", mode="before")
    @classmethod
    def normalize_child_lists(cls, v: Any) -> Any:
        return _coerce_children(v)

    @property
    def attributes(self) -> dict[str, Any]:
        """Type-specific attributes (everything that is not structural or conditional)."""
        return dict(self.model_extra or {})

    @property
    def conditionals(self) -> dict[str, Any]:
        """Conditional attributes that are set, keyed by their document names."""
        values = {
            "visible": self.visible,
            "hidden": self.hidden,
            "disabled": self.disabled,
            "visibleOn": self.visible_on,
            "hiddenOn": self.hidden_on,
            "disabledOn": self.disabled_on,
        }
        return {k: v for k, v in values.items() if v is not None}

    def content(self) -> ChildContent:
        """
        Normalized child content.

        ``body`` and ``children`` are synonyms; ``body`` is consulted first.
        """
        raw = self.body if self.body is not None else self.children
        if raw is None:
            return EMPTY
        if isinstance(raw, SchemaNode):
            return Nodes((raw,))
        if isinstance(raw, list):
            return Nodes(tuple(raw)) if raw else EMPTY
        return Leaf(raw)

    def key(self, index: int = 0) -> str:
        """Reconciliation key: id, then name, then type plus position."""
        return self.id or self.name or f"{self.type}-{index}"

    def to_document(self) -> dict[str, Any]:
        """JSON-serializable document form (document attribute names)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def evolve(self, **changes: Any) -> "SchemaNode":
        """New node version with ``changes`` applied; self is untouched."""
        return SchemaNode.model_validate({**self.to_document(), **changes})

    def walk(self):
        """Depth-first iteration over this node and all descendants."""
        yield self
        content = self.content()
        if isinstance(content, Nodes):
            for child in content.nodes:
                yield from child.walk()


SchemaNode.model_rebuild()


__all__ = [
    "SchemaNode",
    "ChildContent",
    "Empty",
    "Leaf",
    "Nodes",
    "EMPTY",
    "Primitive",
    "CONDITIONAL_ATTRIBUTES",
    "STRUCTURAL_ATTRIBUTES",
]
