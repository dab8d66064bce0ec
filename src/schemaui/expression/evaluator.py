"""Expression Evaluator - sandboxed conditions and templates."""

import math
import re
from typing import Any, Callable, Mapping

from ..core import get_logger
from ..core.cache import LRUCache
from ..core.errors import ExpressionError
from .functions import METHODS, FormulaRegistry, truthy
from .nodes import Binary, Call, Conditional, Literal, Logical, Member, Name, Node, Unary
from .parser import parse

logger = get_logger(__name__)

_MISSING = object()

_TEMPLATE = re.compile(r"\$\{([^{}]*)\}")

# Result when a condition cannot be evaluated: content stays visible and usable
FAIL_OPEN_DEFAULTS: dict[str, bool] = {
    "visibleOn": True,
    "hiddenOn": False,
    "disabledOn": False,
}


class ExpressionContext:
    """
    Variables visible to an expression, as a stack of scopes.

    Inner scopes shadow outer ones; ``get`` accepts dotted paths.
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._scopes: list[Mapping[str, Any]] = [dict(data or {})]

    def push_scope(self, scope: Mapping[str, Any]) -> None:
        self._scopes.append(scope)

    def pop_scope(self) -> Mapping[str, Any]:
        if len(self._scopes) == 1:
            raise IndexError("Cannot pop the root scope")
        return self._scopes.pop()

    def lookup(self, name: str) -> Any:
        """Value of a root identifier, or the module-level _MISSING sentinel."""
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        return _MISSING

    def has(self, name: str) -> bool:
        return self.lookup(name) is not _MISSING

    def get(self, path: str, default: Any = None) -> Any:
        root, *rest = path.split(".")
        value = self.lookup(root)
        if value is _MISSING:
            return default
        for part in rest:
            if not isinstance(value, Mapping) or part not in value:
                return default
            value = value[part]
        return value


def _to_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse(expression: str) -> Node:
    try:
        return parse(expression)
    except (RecursionError, ValueError) as e:
        raise ExpressionError(f"Cannot parse expression: {type(e).__name__}", expression) from e


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _loose_equals(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is None and right is None
    if _is_number(left) and isinstance(right, str) or isinstance(left, str) and _is_number(right):
        try:
            return float(left) == float(right)
        except ValueError:
            return False
    return left == right


def _strict_equals(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


class Interpreter:
    """Walks an AST against an ExpressionContext. Side-effect free."""

    def __init__(self, context: ExpressionContext, functions: FormulaRegistry) -> None:
        self.context = context
        self.functions = functions

    def eval(self, node: Node) -> Any:
        if isinstance(node, Literal):
            return node.value

        if isinstance(node, Name):
            value = self.context.lookup(node.name)
            if value is _MISSING:
                raise ExpressionError(f"Undefined reference: {node.name}")
            return value

        if isinstance(node, Member):
            return self._member(self.eval(node.obj), self.eval(node.prop))

        if isinstance(node, Unary):
            operand = self.eval(node.operand)
            if node.op == "!":
                return not truthy(operand)
            if not _is_number(operand):
                raise ExpressionError(f"Cannot negate {type(operand).__name__}")
            return -operand

        if isinstance(node, Logical):
            left = self.eval(node.left)
            if node.op == "&&":
                return self.eval(node.right) if truthy(left) else left
            return left if truthy(left) else self.eval(node.right)

        if isinstance(node, Conditional):
            return self.eval(node.then) if truthy(self.eval(node.test)) else self.eval(node.otherwise)

        if isinstance(node, Binary):
            return self._binary(node.op, self.eval(node.left), self.eval(node.right))

        if isinstance(node, Call):
            return self._call(node)

        raise ExpressionError(f"Unsupported expression node: {type(node).__name__}")

    def _member(self, obj: Any, prop: Any) -> Any:
        if obj is None:
            raise ExpressionError(f"Cannot read property {_to_text(prop)!r} of null")
        if prop == "length" and isinstance(obj, (str, list, tuple, dict)):
            return len(obj)
        if isinstance(obj, Mapping):
            return obj.get(prop if isinstance(prop, str) else _to_text(prop))
        if isinstance(obj, (list, tuple, str)):
            if _is_number(prop) and float(prop).is_integer():
                index = int(prop)
                return obj[index] if 0 <= index < len(obj) else None
            return None
        raise ExpressionError(f"Property access on {type(obj).__name__} is not allowed")

    def _binary(self, op: str, left: Any, right: Any) -> Any:
        if op == "==":
            return _loose_equals(left, right)
        if op == "!=":
            return not _loose_equals(left, right)
        if op == "===":
            return _strict_equals(left, right)
        if op == "!==":
            return not _strict_equals(left, right)

        if op == "+":
            if isinstance(left, str) or isinstance(right, str):
                return _to_text(left) + _to_text(right)

        if op in ("<", "<=", ">", ">="):
            comparable = (_is_number(left) and _is_number(right)) or (
                isinstance(left, str) and isinstance(right, str)
            )
            if not comparable:
                raise ExpressionError(
                    f"Cannot compare {type(left).__name__} with {type(right).__name__}"
                )
            return {
                "<": left < right,
                "<=": left <= right,
                ">": left > right,
                ">=": left >= right,
            }[op]

        if not (_is_number(left) and _is_number(right)):
            raise ExpressionError(
                f"Operator {op} requires numbers, got {type(left).__name__} and {type(right).__name__}"
            )
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op in ("/", "%") and right == 0:
            raise ExpressionError("Division by zero")
        if op == "/":
            return left / right
        if op == "%":
            return math.fmod(left, right)
        raise ExpressionError(f"Unknown operator: {op}")

    def _call(self, node: Call) -> Any:
        args = tuple(self.eval(arg) for arg in node.args)

        if isinstance(node.callee, Name):
            if not self.functions.has(node.callee.name):
                raise ExpressionError(f"Unknown function: {node.callee.name}")
            return self.functions.call(node.callee.name, args)

        if isinstance(node.callee, Member) and isinstance(node.callee.prop, Literal):
            method = METHODS.get(node.callee.prop.value)
            if method is None:
                raise ExpressionError(f"Method not allowed: {node.callee.prop.value}")
            target = self.eval(node.callee.obj)
            if target is None:
                raise ExpressionError(f"Cannot call {node.callee.prop.value}() on null")
            return method(target, *args)

        raise ExpressionError("Only named functions and whitelisted methods can be called")


class ExpressionEvaluator:
    """
    Evaluates expression strings against a context.

    ``evaluate`` applies the fail-open policy: when a condition cannot be
    evaluated the node stays visible, not hidden, and enabled. With
    ``strict=True`` the ExpressionError propagates instead.
    """

    def __init__(
        self,
        strict: bool = False,
        cache_size: int = 512,
        functions: FormulaRegistry | None = None,
        on_failure: Callable[[str], None] | None = None,
    ) -> None:
        self.strict = strict
        self.functions = functions or FormulaRegistry()
        self.on_failure = on_failure
        self._cache: LRUCache[Node] = LRUCache(capacity=cache_size)

    def compile(self, expression: str) -> Node:
        """
        Parse an expression, memoized by its text.

        Raises:
            ExpressionError: the expression does not parse (including
                nesting too deep for the parser)
        """
        return self._cache.get_or_compute(expression, lambda: _parse(expression))

    def evaluate_value(self, expression: str, context: "Mapping[str, Any] | ExpressionContext") -> Any:
        """
        Evaluate an expression to its raw value.

        Raises:
            ExpressionError: On syntax errors, undefined references, or
                invalid operations
        """
        if not isinstance(context, ExpressionContext):
            context = ExpressionContext(context)
        try:
            return Interpreter(context, self.functions).eval(self.compile(expression))
        except ExpressionError as e:
            if e.expression is None:
                raise ExpressionError(e.message, expression) from e
            raise
        except Exception as e:
            raise ExpressionError(f"Evaluation failed: {e}", expression) from e

    def evaluate(
        self,
        expression: str,
        context: "Mapping[str, Any] | ExpressionContext",
        attribute: str = "visibleOn",
    ) -> bool:
        """
        Evaluate a condition to a boolean, failing open.

        Args:
            expression: Condition source, optionally wrapped in ``${...}``
            context: Variables (record/data, user, breakpoint, ...)
            attribute: Which conditional attribute the expression belongs
                to; selects the fallback when evaluation fails

        Returns:
            Truthiness of the result, or the fail-open default for
            ``attribute`` on failure
        """
        try:
            return truthy(self.evaluate_value(expression, context))
        except ExpressionError as e:
            if self.strict:
                raise
            fallback = FAIL_OPEN_DEFAULTS.get(attribute, True)
            logger.warning(
                "expression_failed",
                code=e.code,
                attribute=attribute,
                expression=expression,
                error=e.message,
                fallback=fallback,
            )
            if self.on_failure is not None:
                self.on_failure(attribute)
            return fallback

    def evaluate_template(self, template: str, context: "Mapping[str, Any] | ExpressionContext") -> Any:
        """
        Interpolate ``${...}`` placeholders in a string.

        A string that is exactly one placeholder yields the raw value;
        otherwise each placeholder is replaced by its text. Placeholders
        that fail to evaluate become empty.
        """
        if not isinstance(context, ExpressionContext):
            context = ExpressionContext(context)

        whole = _TEMPLATE.fullmatch(template.strip())
        if whole:
            try:
                return self.evaluate_value(whole.group(1), context)
            except ExpressionError as e:
                if self.strict:
                    raise
                logger.warning("template_failed", expression=whole.group(1), error=e.message)
                return None

        def _replace(match: "re.Match[str]") -> str:
            try:
                value = self.evaluate_value(match.group(1), context)
            except ExpressionError as e:
                if self.strict:
                    raise
                logger.warning("template_failed", expression=match.group(1), error=e.message)
                return ""
            return "" if value is None else _to_text(value)

        return _TEMPLATE.sub(_replace, template)

    @property
    def cache_stats(self) -> dict[str, Any]:
        return self._cache.stats.to_dict()
