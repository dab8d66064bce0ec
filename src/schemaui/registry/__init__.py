"""
Component Registry
Open, string-keyed dispatch of schema nodes to renderers
"""

from .types import (
    ComponentInput,
    ComponentMeta,
    ComponentRenderer,
    RegistryEntry,
    RenderProps,
    Resolution,
)
from .registry import ComponentRegistry, UNKNOWN_TYPE, render_unknown
from .builtin import register_builtin_components, create_default_registry

__all__ = [
    "ComponentInput",
    "ComponentMeta",
    "ComponentRenderer",
    "RegistryEntry",
    "RenderProps",
    "Resolution",
    "ComponentRegistry",
    "UNKNOWN_TYPE",
    "render_unknown",
    "register_builtin_components",
    "create_default_registry",
]
