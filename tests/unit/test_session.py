"""Tests for render sessions and node states."""

import pytest

from schemaui.core.id import is_valid
from schemaui.pipeline import NodeState, RenderedNode, TERMINAL_STATES, can_transition


@pytest.mark.unit
def test_state_transitions():
    assert can_transition(None, NodeState.PENDING)
    assert not can_transition(None, NodeState.RENDERED)
    assert can_transition(NodeState.RESOLVING_VISIBILITY, NodeState.HIDDEN)
    assert can_transition(NodeState.RESOLVING_DATA, NodeState.ERROR)
    assert not can_transition(NodeState.RESOLVING_DATA, NodeState.HIDDEN)
    assert not can_transition(NodeState.RENDERED, NodeState.PENDING)


@pytest.mark.unit
def test_terminal_states():
    assert TERMINAL_STATES == {NodeState.RENDERED, NodeState.ERROR, NodeState.HIDDEN}
    assert NodeState.HIDDEN.terminal
    assert not NodeState.DISPATCHING.terminal


@pytest.mark.unit
def test_begin_mints_new_generation(session):
    first = session.begin()
    second = session.begin()

    assert first != second
    assert is_valid(first)
    assert session.is_current(second)
    assert not session.is_current(first)
    assert is_valid(session.id)


@pytest.mark.unit
def test_updates_from_current_generation(session):
    updates = []
    session.subscribe(updates.append)
    gen = session.begin()

    assert session.update(gen, "root", NodeState.PENDING) is True
    assert session.update(gen, "root", NodeState.RESOLVING_VISIBILITY) is True

    assert session.state_of("root") is NodeState.RESOLVING_VISIBILITY
    assert [u.state for u in updates] == [NodeState.PENDING, NodeState.RESOLVING_VISIBILITY]
    assert updates[0].path == "root"


@pytest.mark.unit
def test_stale_updates_are_dropped(session, metrics):
    updates = []
    session.subscribe(updates.append)
    old = session.begin()
    session.begin()

    assert session.update(old, "root", NodeState.PENDING) is False
    assert updates == []
    assert session.state_of("root") is None
    assert session.stale_dropped == 1
    assert metrics.get_sample("schemaui_stale_results_total") == 1


@pytest.mark.unit
def test_teardown_discards_later_updates(session):
    updates = []
    session.subscribe(updates.append)
    gen = session.begin()
    session.scopes.register_scope("root/list", data=[1])

    session.teardown()

    assert session.closed
    assert session.generation is None
    assert session.update(gen, "root", NodeState.RENDERED) is False
    assert updates == []
    assert session.scopes.get_scope_names() == []

    # second teardown is a no-op
    session.teardown()
    assert session.stale_dropped == 1


@pytest.mark.unit
def test_errors_and_loading(session):
    gen = session.begin()
    session.update(gen, "a", NodeState.PENDING)
    session.update(gen, "a", NodeState.RESOLVING_VISIBILITY)
    session.update(gen, "a", NodeState.RESOLVING_DATA)
    session.update(gen, "b", NodeState.PENDING)
    session.update(gen, "b", NodeState.RESOLVING_VISIBILITY)
    session.update(gen, "b", NodeState.ERROR, error={"code": "SCHEMAUI-004", "message": "down"})

    assert session.loading() == ["a"]
    assert session.error_of("b") == {"code": "SCHEMAUI-004", "message": "down"}
    assert session.snapshot() == {"a": NodeState.RESOLVING_DATA, "b": NodeState.ERROR}


@pytest.mark.unit
def test_unsubscribe(session):
    updates = []
    unsubscribe = session.subscribe(updates.append)
    gen = session.begin()

    unsubscribe()
    session.update(gen, "root", NodeState.PENDING)

    assert updates == []


@pytest.mark.unit
def test_rendered_node_tree():
    leaf = RenderedNode(key="leaf", type="text", state=NodeState.RENDERED, output={"text": "x"})
    failed = RenderedNode(
        key="bad",
        type="list",
        state=NodeState.ERROR,
        output={"type": "error"},
        error={"code": "SCHEMAUI-004", "message": "down"},
    )
    root = RenderedNode(key="root", type="container", state=NodeState.RENDERED, children=[leaf, failed])

    assert root.find("leaf") is leaf
    assert root.find("missing") is None
    assert not failed.ok

    as_dict = root.to_dict()
    assert as_dict["state"] == "rendered"
    assert as_dict["children"][1]["error"]["code"] == "SCHEMAUI-004"
    assert "children" not in as_dict["children"][0]
