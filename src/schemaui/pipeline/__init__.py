"""
Render Pipeline
Schema tree to resolved, data-bound render tree
"""

from .context import RenderContext
from .state import NodeState, RenderedNode, TERMINAL_STATES, can_transition
from .props import ResolvedProps, resolve_conditions, resolve_node_props
from .binding import DataBinding, extract_binding, fetch_binding
from .session import NodeUpdate, RenderSession
from .renderer import SchemaRenderer, error_placeholder

__all__ = [
    "RenderContext",
    "NodeState",
    "RenderedNode",
    "TERMINAL_STATES",
    "can_transition",
    "ResolvedProps",
    "resolve_conditions",
    "resolve_node_props",
    "DataBinding",
    "extract_binding",
    "fetch_binding",
    "NodeUpdate",
    "RenderSession",
    "SchemaRenderer",
    "error_placeholder",
]
