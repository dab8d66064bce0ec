"""
Render Session
A mounted view: generation tokens, node state store and update listeners
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..core import get_logger
from ..core.id import GenerationID, SessionID, new_generation_id, new_session_id
from ..datasource import DataScopeManager
from ..monitoring import MetricsCollector
from .state import NodeState, RenderedNode, can_transition

logger = get_logger(__name__)


@dataclass(frozen=True)
class NodeUpdate:
    """One state change delivered to listeners."""
    generation: GenerationID
    path: str
    state: NodeState
    node: Optional[RenderedNode] = None
    error: Optional[Dict[str, Any]] = None


UpdateListener = Callable[[NodeUpdate], None]


class RenderSession:
    """
    State of one mounted view across render passes.

    Every render pass starts a new generation. Updates are accepted only
    from the current generation; anything from a superseded generation,
    or arriving after ``teardown()``, is dropped without touching state or
    notifying listeners, and counted in ``stale_dropped``.
    """

    def __init__(
        self,
        session_id: Optional[SessionID] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.id: SessionID = session_id or new_session_id()
        self.metrics = metrics
        self.generation: Optional[GenerationID] = None
        self.scopes = DataScopeManager()
        self.stale_dropped = 0
        self.closed = False
        self._states: Dict[str, NodeState] = {}
        self._errors: Dict[str, Dict[str, Any]] = {}
        self._listeners: List[UpdateListener] = []

    def begin(self) -> GenerationID:
        """Start a render pass; any earlier generation becomes stale."""
        self.generation = new_generation_id()
        self.closed = False
        self._states.clear()
        self._errors.clear()
        logger.debug("render_pass_started", session=self.id, generation=self.generation)
        return self.generation

    def is_current(self, generation: GenerationID) -> bool:
        return not self.closed and generation == self.generation

    def drop(self, generation: GenerationID, path: str) -> None:
        """Account for a late result that will not be applied."""
        self.stale_dropped += 1
        if self.metrics:
            self.metrics.record_stale()
        logger.debug("stale_result_dropped", session=self.id, generation=generation, path=path)

    def update(
        self,
        generation: GenerationID,
        path: str,
        state: NodeState,
        node: Optional[RenderedNode] = None,
        error: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Record a node state change.

        Returns:
            False when the update was stale and dropped
        """
        if not self.is_current(generation):
            self.drop(generation, path)
            return False

        if not can_transition(self._states.get(path), state):
            logger.warning("invalid_transition", path=path, from_state=self._states.get(path), to_state=state)
        self._states[path] = state
        if error is not None:
            self._errors[path] = error

        update = NodeUpdate(generation=generation, path=path, state=state, node=node, error=error)
        for listener in list(self._listeners):
            listener(update)
        return True

    def subscribe(self, listener: UpdateListener) -> Callable[[], None]:
        """Register an update listener. Returns the unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def state_of(self, path: str) -> Optional[NodeState]:
        return self._states.get(path)

    def error_of(self, path: str) -> Optional[Dict[str, Any]]:
        return self._errors.get(path)

    def loading(self) -> List[str]:
        """Paths currently waiting on a data fetch."""
        return [p for p, s in self._states.items() if s is NodeState.RESOLVING_DATA]

    def snapshot(self) -> Dict[str, NodeState]:
        return dict(self._states)

    def teardown(self) -> None:
        """Unmount: invalidate the current generation so in-flight results are discarded."""
        if self.closed:
            return
        logger.info("session_teardown", session=self.id, generation=self.generation)
        self.closed = True
        self.generation = None
        self.scopes.clear()
