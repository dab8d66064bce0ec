"""
Node Property Resolution
Responsive overrides, conditionals and templates for a single node
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .. import responsive
from ..expression import ExpressionContext, ExpressionEvaluator
from ..schema import SchemaNode
from .context import RenderContext


@dataclass(frozen=True)
class ResolvedProps:
    """A node's effective type, key, conditionals and attributes at one breakpoint."""
    type: str
    key: str
    visible: bool
    disabled: bool
    props: Dict[str, Any]


def _explicit(value: Any, breakpoint: responsive.Breakpoint) -> Optional[bool]:
    resolved = responsive.resolve(value, breakpoint)
    return resolved if isinstance(resolved, bool) else None


def resolve_conditions(
    node: SchemaNode,
    context: RenderContext,
    evaluator: ExpressionEvaluator,
    expression_context: Optional[ExpressionContext] = None,
) -> Tuple[bool, bool]:
    """
    Effective ``(visible, disabled)`` for a node.

    An explicit boolean always wins over its expression counterpart, and
    ``hidden`` wins over ``visible``. Expressions that cannot be evaluated
    fail open (see ExpressionEvaluator.evaluate).
    """
    bp = context.breakpoint
    ectx = expression_context or context.expression_context()

    hidden = _explicit(node.hidden, bp)
    if hidden is None:
        hidden = evaluator.evaluate(node.hidden_on, ectx, "hiddenOn") if node.hidden_on else False

    if hidden:
        visible = False
    else:
        visible = _explicit(node.visible, bp)
        if visible is None:
            visible = evaluator.evaluate(node.visible_on, ectx, "visibleOn") if node.visible_on else True

    disabled = _explicit(node.disabled, bp)
    if disabled is None:
        disabled = evaluator.evaluate(node.disabled_on, ectx, "disabledOn") if node.disabled_on else False

    return visible, disabled


def resolve_node_props(
    node: SchemaNode,
    context: RenderContext,
    evaluator: ExpressionEvaluator,
    index: int = 0,
) -> ResolvedProps:
    """
    Resolve a node's props for the context's breakpoint.

    Pure: the node is not modified and no data is fetched, so config
    editors can call this to preview a change.

    A responsive attribute with no qualifying breakpoint is left out, so
    component defaults apply at that size. Top-level string attributes
    containing ``${...}`` are interpolated.

    Raises:
        ExpressionError: only when the evaluator is in strict mode
    """
    ectx = context.expression_context()
    visible, disabled = resolve_conditions(node, context, evaluator, ectx)

    props: Dict[str, Any] = {}
    for name, value in node.attributes.items():
        resolved = responsive.resolve(value, context.breakpoint)
        if resolved is None and responsive.is_responsive(value):
            continue
        if isinstance(resolved, str) and "${" in resolved:
            resolved = evaluator.evaluate_template(resolved, ectx)
        props[name] = resolved

    return ResolvedProps(
        type=node.type,
        key=node.key(index),
        visible=visible,
        disabled=disabled,
        props=props,
    )
