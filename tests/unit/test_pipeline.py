"""Tests for the render pipeline."""

import asyncio

import pytest

from schemaui.core.errors import DataSourceError, ErrorCode, SchemaValidationError
from schemaui.datasource import ValueDataSource
from schemaui.pipeline import NodeState, RenderContext, RenderSession, SchemaRenderer


class FailingSource(ValueDataSource):
    """Every query fails like an unreachable backend."""

    async def find(self, resource, params=None):
        raise DataSourceError("backend unavailable", resource=resource, status_code=503)


class GatedSource(ValueDataSource):
    """Queries block until ``release`` is set."""

    def __init__(self, items):
        super().__init__(items)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def find(self, resource, params=None):
        self.started.set()
        await self.release.wait()
        return await super().find(resource, params)


# ============================================================================
# Rendering
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_render_sample_document(renderer, context, sample_document):
    root = await renderer.render_document(sample_document, context)

    assert root.ok
    assert [c.key for c in root.children] == ["title", "cards", "people"]

    cards = root.find("cards")
    assert cards.output["columns"] == 3
    assert cards.output["gap"] == 0
    assert [c.key for c in cards.children] == ["summary", "admin"]

    people = root.find("people")
    assert people.output["items"] == ["Alice", "Bob", "Carol", "Dave"]
    assert root.find("title").output == {"type": "text", "key": "title", "text": "Contacts", "variant": "h1"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_breakpoint_and_visibility(renderer, sample_document):
    context = RenderContext(breakpoint="sm", user={"role": "guest"})
    root = await renderer.render_document(sample_document, context)

    cards = root.find("cards")
    assert cards.output["columns"] == 1
    assert [c.key for c in cards.children] == ["summary"]
    assert root.find("admin") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_hidden_root_renders_nothing(renderer, context):
    assert await renderer.render_document({"type": "card", "hidden": True}, context) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_disabled_reaches_renderer(renderer, context):
    root = await renderer.render_document(
        {"type": "button", "id": "save", "label": "Save", "disabledOn": "user.role == 'admin'"}, context
    )

    assert root.disabled is True
    assert root.output["disabled"] is True


@pytest.mark.unit
@pytest.mark.asyncio
async def test_leaf_content_is_templated(renderer, context):
    root = await renderer.render_document({"type": "button", "id": "hi", "body": "Hi ${user.name}"}, context)
    assert root.output["label"] == "Hi admin"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_single_record_binding(renderer, context):
    document = {
        "type": "form",
        "id": "contact",
        "objectName": "contacts",
        "recordId": "2",
        "body": [{"type": "text", "id": "name", "content": "${name} (${data.age})"}],
    }
    root = await renderer.render_document(document, context)

    assert root.output["values"]["name"] == "Bob"
    assert root.find("name").output["text"] == "Bob (25)"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_inline_value_provider(renderer, context):
    document = {
        "type": "list",
        "id": "tags",
        "field": "label",
        "data": {"provider": "value", "items": [{"label": "a"}, {"label": "b"}]},
    }
    root = await renderer.render_document(document, context)

    assert root.output["items"] == ["a", "b"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_async_renderer(renderer, registry, context):
    async def render_badge(props):
        await asyncio.sleep(0)
        return {"badge": props.props["text"]}

    registry.register("badge", render_badge)
    root = await renderer.render_document({"type": "badge", "text": "new"}, context)

    assert root.output == {"badge": "new"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_document_raises(renderer, context):
    with pytest.raises(SchemaValidationError):
        await renderer.render_document({"type": "container", "body": [{"label": "x", "id": "y"}]}, context)


# ============================================================================
# Failure containment
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_failing_fetch_renders_placeholder(registry, metrics, settings, contacts):
    renderer = SchemaRenderer(registry, data_source=FailingSource(contacts), metrics=metrics, settings=settings)
    session = RenderSession(metrics=metrics)
    document = {
        "type": "container",
        "id": "root",
        "body": [
            {"type": "list", "id": "people", "objectName": "contacts", "field": "name"},
            {"type": "text", "id": "after", "content": "still here"},
        ],
    }

    root = await renderer.render_document(document, session=session)

    assert root.ok
    people = root.find("people")
    assert people.state is NodeState.ERROR
    assert people.output["type"] == "error"
    assert people.output["code"] == ErrorCode.DATA_FETCH_FAILED
    assert people.output["message"] == "backend unavailable"
    assert root.find("after").output["text"] == "still here"

    assert session.state_of("root/0:people") is NodeState.ERROR
    assert session.error_of("root/0:people")["code"] == ErrorCode.DATA_FETCH_FAILED
    assert session.scopes.get_scope("root/0:people").error == "backend unavailable"
    assert metrics.get_sample("schemaui_errors_total", {"error_code": ErrorCode.DATA_FETCH_FAILED, "component": "data"}) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unknown_type_uses_fallback(renderer, context, metrics):
    root = await renderer.render_document(
        {"type": "container", "id": "root", "body": [{"type": "mystery", "id": "m"}]}, context
    )
    mystery = root.find("m")

    assert mystery.ok
    assert mystery.known is False
    assert mystery.output["type"] == "unknown"
    assert mystery.output["message"] == 'Unknown component type: "mystery"'
    assert metrics.get_sample("schemaui_unknown_types_total", {"type": "mystery"}) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_renderer_exception_is_contained(renderer, registry, context, metrics):
    def render_boom(props):
        raise ValueError("kaboom")

    registry.register("boom", render_boom)
    root = await renderer.render_document(
        {"type": "container", "id": "root", "body": [{"type": "boom", "id": "b"}, {"type": "text", "id": "ok"}]},
        context,
    )

    boom = root.find("b")
    assert boom.state is NodeState.ERROR
    assert boom.error["code"] == ErrorCode.RENDER_FAILED
    assert "kaboom" in boom.error["message"]
    assert root.find("ok").ok
    assert metrics.get_sample("schemaui_errors_total", {"error_code": ErrorCode.RENDER_FAILED, "component": "renderer"}) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_strict_expression_failure_is_contained(registry, strict_evaluator, value_source, settings, context):
    renderer = SchemaRenderer(registry, evaluator=strict_evaluator, data_source=value_source, settings=settings)
    root = await renderer.render_document(
        {
            "type": "container",
            "id": "root",
            "body": [{"type": "card", "id": "bad", "visibleOn": "nobody.role"}, {"type": "card", "id": "good"}],
        },
        context,
    )

    assert root.find("bad").output["code"] == ErrorCode.EXPRESSION_FAILED
    assert root.find("good").ok


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fail_open_expression_counts_failure(registry, value_source, metrics, settings, context):
    renderer = SchemaRenderer(registry, data_source=value_source, metrics=metrics, settings=settings)
    root = await renderer.render_document({"type": "card", "id": "c", "hiddenOn": "nobody.flag"}, context)

    assert root.ok
    assert metrics.get_sample("schemaui_expression_failures_total", {"attribute": "hiddenOn"}) == 1


# ============================================================================
# Sessions and generations
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_node_state_sequence(renderer, context, session):
    updates = []
    session.subscribe(updates.append)

    await renderer.render_document({"type": "text", "id": "t", "content": "x"}, context, session)

    assert [u.state for u in updates] == [
        NodeState.PENDING,
        NodeState.RESOLVING_VISIBILITY,
        NodeState.DISPATCHING,
        NodeState.RENDERED,
    ]
    assert {u.generation for u in updates} == {session.generation}
    assert updates[-1].node.output["text"] == "x"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_data_bound_node_reports_loading(renderer, context, session, sample_document):
    states = []
    session.subscribe(lambda u: states.append(u.state) if u.path == "root/2:people" else None)

    await renderer.render_document(sample_document, context, session)

    assert NodeState.RESOLVING_DATA in states
    assert states[-1] is NodeState.RENDERED
    assert session.loading() == []
    assert len(session.scopes.get_scope("root/2:people").data.data) == 4


@pytest.mark.integration
@pytest.mark.asyncio
async def test_teardown_mid_fetch_discards_results(registry, metrics, settings, contacts, sample_document):
    source = GatedSource(contacts)
    renderer = SchemaRenderer(registry, data_source=source, metrics=metrics, settings=settings)
    session = RenderSession(metrics=metrics)
    updates = []
    session.subscribe(updates.append)

    task = asyncio.create_task(
        renderer.render_document(sample_document, RenderContext(user={"role": "admin"}), session)
    )
    await source.started.wait()
    assert session.loading() == ["root/2:people"]

    session.teardown()
    seen = len(updates)
    source.release.set()
    result = await task

    assert result is None
    assert len(updates) == seen
    assert session.stale_dropped > 0
    assert metrics.get_sample("schemaui_stale_results_total") >= 1
    assert metrics.get_sample("schemaui_renders_total", {"status": "stale"}) == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_newer_render_supersedes_older(registry, metrics, settings, contacts, sample_document):
    gated = GatedSource(contacts)
    renderer = SchemaRenderer(registry, data_source=gated, metrics=metrics, settings=settings)
    session = RenderSession(metrics=metrics)

    first = asyncio.create_task(renderer.render_document(sample_document, None, session))
    await gated.started.wait()

    fresh = RenderContext(user={"role": "admin"}, data_source=ValueDataSource(contacts))
    second = await renderer.render_document(sample_document, fresh, session)

    gated.release.set()
    assert await first is None
    assert second.ok
    assert second.find("people").output["items"] == ["Alice", "Bob", "Carol", "Dave"]
    assert session.state_of("root/2:people") is NodeState.RENDERED


# ============================================================================
# Malformed input stays inside its node
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "broken",
    [
        {"type": "list", "id": "broken", "data": {"provider": "graphql"}},
        {"type": "list", "id": "broken", "objectName": "contacts", "query": {"$top": -1}},
    ],
)
async def test_malformed_binding_is_contained(renderer, context, metrics, broken):
    document = {
        "type": "container",
        "id": "root",
        "body": [broken, {"type": "text", "id": "ok", "content": "fine"}],
    }

    root = await renderer.render_document(document, context)

    assert root.ok
    node = root.find("broken")
    assert node.state is NodeState.ERROR
    assert node.error["code"] == ErrorCode.DATA_FETCH_FAILED
    assert node.output["message"].startswith("Invalid data binding")
    assert root.find("ok").output["text"] == "fine"
    assert metrics.get_sample("schemaui_errors_total", {"error_code": ErrorCode.DATA_FETCH_FAILED, "component": "data"}) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unparseable_leaf_template_does_not_abort_pass(renderer, context):
    document = {
        "type": "container",
        "id": "root",
        "body": [
            {"type": "text", "id": "odd", "body": "${x == ²}"},
            {"type": "text", "id": "ok", "content": "fine"},
        ],
    }

    root = await renderer.render_document(document, context)

    assert root.ok
    assert root.find("odd").output["text"] == ""
    assert root.find("ok").output["text"] == "fine"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unparseable_condition_fails_open(registry, value_source, metrics, settings, context):
    renderer = SchemaRenderer(registry, data_source=value_source, metrics=metrics, settings=settings)
    document = {
        "type": "container",
        "id": "root",
        "body": [
            {"type": "card", "id": "deep", "hiddenOn": "!" * 5000 + "true"},
            {"type": "card", "id": "odd", "visibleOn": "x == ²"},
        ],
    }

    root = await renderer.render_document(document, context)

    assert [c.key for c in root.children] == ["deep", "odd"]
    assert metrics.get_sample("schemaui_expression_failures_total", {"attribute": "hiddenOn"}) == 1
    assert metrics.get_sample("schemaui_expression_failures_total", {"attribute": "visibleOn"}) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_explicit_hidden_beats_true_visible_on(renderer, context, session):
    document = {
        "type": "container",
        "id": "root",
        "body": [
            {"type": "card", "id": "gone", "hidden": True, "visibleOn": "true"},
            {"type": "card", "id": "shown"},
        ],
    }

    root = await renderer.render_document(document, context, session)

    assert [c.key for c in root.children] == ["shown"]
    assert root.find("gone") is None
    assert session.state_of("root/0:gone") is NodeState.HIDDEN


@pytest.mark.unit
@pytest.mark.asyncio
async def test_siblings_with_same_id_keep_separate_state(renderer, context, session):
    def inline(name):
        return {
            "type": "list",
            "id": "dup",
            "field": "name",
            "data": {"provider": "value", "items": [{"id": "1", "name": name}]},
        }

    document = {"type": "container", "id": "root", "body": [inline("Ann"), inline("Ben")]}

    root = await renderer.render_document(document, context, session)

    assert [c.output["items"] for c in root.children] == [["Ann"], ["Ben"]]
    assert sorted(session.scopes.get_scope_names()) == ["root/0:dup", "root/1:dup"]
    assert session.scopes.get_scope("root/0:dup").data.data == [{"id": "1", "name": "Ann"}]
    assert session.scopes.get_scope("root/1:dup").data.data == [{"id": "1", "name": "Ben"}]
    assert session.state_of("root/0:dup") is NodeState.RENDERED
    assert session.state_of("root/1:dup") is NodeState.RENDERED
