"""Per-node render states and the rendered tree."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class NodeState(str, Enum):
    """Lifecycle of one node within a render pass."""

    PENDING = "pending"
    RESOLVING_VISIBILITY = "resolving_visibility"
    RESOLVING_DATA = "resolving_data"
    DISPATCHING = "dispatching"
    RENDERED = "rendered"
    ERROR = "error"
    HIDDEN = "hidden"

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({NodeState.RENDERED, NodeState.ERROR, NodeState.HIDDEN})

TRANSITIONS: Dict[NodeState, frozenset] = {
    NodeState.PENDING: frozenset({NodeState.RESOLVING_VISIBILITY}),
    NodeState.RESOLVING_VISIBILITY: frozenset(
        {NodeState.RESOLVING_DATA, NodeState.DISPATCHING, NodeState.HIDDEN, NodeState.ERROR}
    ),
    NodeState.RESOLVING_DATA: frozenset({NodeState.DISPATCHING, NodeState.ERROR}),
    NodeState.DISPATCHING: frozenset({NodeState.RENDERED, NodeState.ERROR}),
    NodeState.RENDERED: frozenset(),
    NodeState.ERROR: frozenset(),
    NodeState.HIDDEN: frozenset(),
}


def can_transition(current: Optional[NodeState], target: NodeState) -> bool:
    if current is None:
        return target is NodeState.PENDING
    return target in TRANSITIONS[current]


@dataclass
class RenderedNode:
    """
    Output of one node.

    ``state`` is RENDERED for normal output and ERROR for an error
    placeholder; ``error`` then carries the code and message and
    ``output`` the placeholder element. Hidden nodes produce no
    RenderedNode at all.
    """

    key: str
    type: str
    state: NodeState
    output: Any = None
    children: List["RenderedNode"] = field(default_factory=list)
    props: Dict[str, Any] = field(default_factory=dict)
    data: Any = None
    disabled: bool = False
    known: bool = True
    error: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.state is NodeState.RENDERED

    def find(self, key: str) -> Optional["RenderedNode"]:
        """Depth-first search by key."""
        if self.key == key:
            return self
        for child in self.children:
            found = child.find(key)
            if found is not None:
                return found
        return None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "key": self.key,
            "type": self.type,
            "state": self.state.value,
            "output": self.output,
        }
        if self.error is not None:
            out["error"] = self.error
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        return out
