"""
Component Registry Type Definitions
Renderer contract and declarative component metadata
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field


InputType = Literal[
    "string", "number", "boolean", "enum", "array", "object",
    "color", "date", "code", "file", "slot",
]


class ComponentInput(BaseModel):
    """An input a component accepts, as shown in a config editor."""
    name: str
    type: InputType = "string"
    label: Optional[str] = None
    default_value: Any = None
    required: bool = False
    enum: Optional[List[Any]] = None
    description: Optional[str] = None
    advanced: bool = False


class ComponentMeta(BaseModel):
    """Declarative metadata stored alongside a renderer."""

    model_config = ConfigDict(frozen=True)

    label: Optional[str] = None
    icon: Optional[str] = None
    category: str = Field(default="general")
    namespace: Optional[str] = None
    inputs: List[ComponentInput] = Field(default_factory=list)
    default_props: Dict[str, Any] = Field(default_factory=dict)
    default_children: List[Dict[str, Any]] = Field(default_factory=list)
    is_container: bool = False


@dataclass(frozen=True)
class RenderProps:
    """Everything a renderer receives for one node."""
    type: str
    key: str
    props: Dict[str, Any]
    children: List[Any] = field(default_factory=list)
    content: Any = None
    data: Any = None
    disabled: bool = False


class ComponentRenderer(Protocol):
    """Protocol for renderer implementations (sync or async callables)."""

    def __call__(self, props: RenderProps) -> Any:
        ...


@dataclass(frozen=True)
class RegistryEntry:
    """A registered component: type tag, renderer and metadata."""
    type_tag: str
    render: Callable[[RenderProps], Any]
    meta: ComponentMeta = field(default_factory=ComponentMeta)


@dataclass(frozen=True)
class Resolution:
    """
    Result of resolving a type tag.

    ``known`` is False when the fallback renderer was substituted for an
    unregistered tag.
    """
    requested: str
    entry: RegistryEntry
    known: bool
