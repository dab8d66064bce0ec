"""Built-in components: layout primitives and basic widgets."""

from typing import Any, Dict

from .registry import ComponentRegistry
from .types import ComponentInput, ComponentMeta, RenderProps


def _element(props: RenderProps, **extra: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {"type": props.type, "key": props.key, "props": dict(props.props)}
    if props.children:
        out["children"] = list(props.children)
    elif props.content is not None:
        out["children"] = [props.content]
    if props.disabled:
        out["disabled"] = True
    out.update(extra)
    return out


def render_text(props: RenderProps) -> Dict[str, Any]:
    text = props.props.get("content", props.content)
    return {
        "type": "text",
        "key": props.key,
        "text": "" if text is None else str(text),
        "variant": props.props.get("variant", "body"),
    }


def render_container(props: RenderProps) -> Dict[str, Any]:
    return _element(props, layout=props.props.get("layout", "vertical"))


def render_grid(props: RenderProps) -> Dict[str, Any]:
    return _element(props, columns=props.props.get("columns"), gap=props.props.get("gap"))


def render_card(props: RenderProps) -> Dict[str, Any]:
    return _element(props, title=props.props.get("title"))


def render_form(props: RenderProps) -> Dict[str, Any]:
    return _element(props, values=props.data if isinstance(props.data, dict) else {})


def render_button(props: RenderProps) -> Dict[str, Any]:
    return {
        "type": "button",
        "key": props.key,
        "label": props.props.get("label") or props.props.get("text") or props.content,
        "variant": props.props.get("variant", "default"),
        "disabled": props.disabled,
        "events": props.props.get("events", {}),
    }


def render_list(props: RenderProps) -> Dict[str, Any]:
    rows = props.data if isinstance(props.data, list) else []
    field = props.props.get("field")
    items = [row.get(field) if field and isinstance(row, dict) else row for row in rows]
    return _element(props, items=items)


def register_builtin_components(registry: ComponentRegistry) -> None:
    """Register the built-in component set on a registry."""
    registry.register(
        "text",
        render_text,
        ComponentMeta(
            label="Text",
            category="basic",
            inputs=[
                ComponentInput(name="content", type="string", label="Content"),
                ComponentInput(name="variant", type="enum", enum=["h1", "h2", "h3", "body", "caption"]),
            ],
            default_props={"variant": "body"},
        ),
    )
    registry.register(
        "container",
        render_container,
        ComponentMeta(
            label="Container",
            category="layout",
            inputs=[ComponentInput(name="layout", type="enum", enum=["vertical", "horizontal"])],
            default_props={"layout": "vertical"},
            is_container=True,
        ),
    )
    registry.register(
        "grid",
        render_grid,
        ComponentMeta(
            label="Grid",
            category="layout",
            inputs=[
                ComponentInput(name="columns", type="number", label="Columns"),
                ComponentInput(name="gap", type="number", label="Gap"),
            ],
            default_props={"columns": 1, "gap": 0},
            is_container=True,
        ),
    )
    registry.register(
        "card",
        render_card,
        ComponentMeta(
            label="Card",
            category="layout",
            inputs=[ComponentInput(name="title", type="string", label="Title")],
            is_container=True,
        ),
    )
    registry.register(
        "form",
        render_form,
        ComponentMeta(label="Form", category="data", is_container=True),
    )
    registry.register(
        "button",
        render_button,
        ComponentMeta(
            label="Button",
            category="basic",
            inputs=[
                ComponentInput(name="label", type="string", label="Label", required=True),
                ComponentInput(name="variant", type="enum", enum=["default", "primary", "danger"]),
            ],
            default_props={"variant": "default"},
        ),
    )
    registry.register(
        "list",
        render_list,
        ComponentMeta(
            label="List",
            category="data",
            inputs=[ComponentInput(name="field", type="string", label="Display field")],
        ),
    )


def create_default_registry() -> ComponentRegistry:
    """New registry preloaded with the built-in components."""
    registry = ComponentRegistry()
    register_builtin_components(registry)
    return registry
