"""Tests for the expression language."""

import pytest
from hypothesis import given, strategies as st

from schemaui.core.errors import ErrorCode, ExpressionError
from schemaui.expression import (
    FAIL_OPEN_DEFAULTS,
    ExpressionContext,
    ExpressionEvaluator,
    FormulaRegistry,
    parse,
    truthy,
)
from schemaui.expression.nodes import Binary, Conditional, Literal, Member, Name


@pytest.fixture
def scope():
    return {
        "data": {"age": 30, "name": "Alice", "tags": ["vip", "beta"], "address": None},
        "user": {"role": "admin", "permissions": ["read", "write"]},
        "breakpoint": "lg",
        "status": "active",
        "count": 0,
    }


# ============================================================================
# Parser
# ============================================================================

@pytest.mark.unit
def test_parse_precedence():
    """Multiplication binds tighter than addition."""
    node = parse("1 + 2 * 3")
    assert isinstance(node, Binary)
    assert node.op == "+"
    assert node.right == Binary("*", Literal(2), Literal(3))


@pytest.mark.unit
def test_parse_member_access():
    node = parse("data.user['name']")
    assert node == Member(Member(Name("data"), Literal("user")), Literal("name"))


@pytest.mark.unit
def test_parse_ternary():
    node = parse("a ? 1 : 2")
    assert isinstance(node, Conditional)


@pytest.mark.unit
def test_parse_unwraps_template_wrapper():
    assert parse("${a > 1}") == parse("a > 1")


@pytest.mark.unit
@pytest.mark.parametrize("source", ["", "1 +", "(a", "a ? b", "a b", "'unterminated", "a.1", "#"])
def test_parse_errors(source):
    with pytest.raises(ExpressionError):
        parse(source)


# ============================================================================
# Evaluation
# ============================================================================

@pytest.mark.unit
@pytest.mark.parametrize(
    "expression,expected",
    [
        ("1 + 2 * 3", 7),
        ("(1 + 2) * 3", 9),
        ("10 % 4", 2),
        ("-data.age", -30),
        ("'a' + 1", "a1"),
        ("data.age >= 18", True),
        ("data.name == 'Alice'", True),
        ("data.age == '30'", True),
        ("data.age === '30'", False),
        ("data.age !== 30", False),
        ("!data.address", True),
        ("data.tags.length", 2),
        ("data.tags[0]", "vip"),
        ("data.tags[5]", None),
        ("user.role == 'admin' && data.age > 18", True),
        ("count || 'fallback'", "fallback"),
        ("status == 'active' ? 'on' : 'off'", "on"),
        ("data.missing", None),
        ("null == undefined", True),
    ],
)
def test_evaluate_value(evaluator, scope, expression, expected):
    assert evaluator.evaluate_value(expression, scope) == expected


@pytest.mark.unit
def test_whitelisted_functions(evaluator, scope):
    assert evaluator.evaluate_value("LEN(data.tags)", scope) == 2
    assert evaluator.evaluate_value("upper(data.name)", scope) == "ALICE"
    assert evaluator.evaluate_value("SUM(1, 2, 3)", scope) == 6
    assert evaluator.evaluate_value("IF(data.age > 18, 'adult', 'minor')", scope) == "adult"
    assert evaluator.evaluate_value("isEmpty(data.address)", scope) is True
    assert evaluator.evaluate_value("includes(user.permissions, 'write')", scope) is True


@pytest.mark.unit
def test_whitelisted_methods(evaluator, scope):
    assert evaluator.evaluate_value("data.tags.includes('vip')", scope) is True
    assert evaluator.evaluate_value("data.name.startsWith('Al')", scope) is True
    assert evaluator.evaluate_value("data.name.toLowerCase()", scope) == "alice"


@pytest.mark.unit
@pytest.mark.parametrize(
    "expression",
    [
        "undefinedThing == 1",
        "data.address.street",
        "eval('1')",
        "data.name.__class__()",
        "data.age > 'x'",
        "data.age / 0",
        "data.tags * 2",
    ],
)
def test_evaluate_value_raises(evaluator, scope, expression):
    with pytest.raises(ExpressionError) as exc_info:
        evaluator.evaluate_value(expression, scope)
    assert exc_info.value.code == ErrorCode.EXPRESSION_FAILED
    assert exc_info.value.expression is not None


@pytest.mark.unit
def test_custom_function_registration(scope):
    functions = FormulaRegistry()
    functions.register("double", lambda x: x * 2)
    evaluator = ExpressionEvaluator(functions=functions)

    assert evaluator.evaluate_value("DOUBLE(data.age)", scope) == 60


# ============================================================================
# Conditions (fail-open)
# ============================================================================

@pytest.mark.unit
def test_evaluate_truthiness(evaluator, scope):
    assert evaluator.evaluate("data.age > 18", scope) is True
    assert evaluator.evaluate("data.age > 40", scope) is False
    # JavaScript truthiness: empty list is truthy
    assert evaluator.evaluate("data.tags", scope) is True
    assert evaluator.evaluate("count", scope) is False


@pytest.mark.unit
@pytest.mark.parametrize("expression", ["undefinedThing", "data.address.street", "1 +", "nope()"])
def test_failing_expression_fails_open(evaluator, scope, expression):
    """A throwing expression leaves the node visible, not hidden, not disabled."""
    assert evaluator.evaluate(expression, scope, "visibleOn") is True
    assert evaluator.evaluate(expression, scope, "hiddenOn") is False
    assert evaluator.evaluate(expression, scope, "disabledOn") is False


@pytest.mark.unit
def test_fail_open_defaults():
    assert FAIL_OPEN_DEFAULTS == {"visibleOn": True, "hiddenOn": False, "disabledOn": False}


@pytest.mark.unit
def test_failure_callback(scope):
    failures = []
    evaluator = ExpressionEvaluator(on_failure=failures.append)

    evaluator.evaluate("missing.value", scope, "hiddenOn")
    evaluator.evaluate("data.age > 1", scope, "hiddenOn")

    assert failures == ["hiddenOn"]


@pytest.mark.unit
def test_strict_mode_raises(strict_evaluator, scope):
    with pytest.raises(ExpressionError):
        strict_evaluator.evaluate("undefinedThing", scope, "visibleOn")

    assert strict_evaluator.evaluate("data.age > 18", scope) is True


@pytest.mark.unit
@pytest.mark.parametrize("expression", ["x == ²", "x == ٣", "!" * 5000 + "true"])
def test_unparseable_input_is_an_expression_error(strict_evaluator, expression):
    with pytest.raises(ExpressionError):
        strict_evaluator.evaluate(expression, {"x": 1}, "visibleOn")


@pytest.mark.unit
def test_unparseable_input_fails_open():
    failures = []
    evaluator = ExpressionEvaluator(on_failure=failures.append)

    assert evaluator.evaluate("x == ²", {"x": 1}, "visibleOn") is True
    assert evaluator.evaluate("!" * 5000 + "true", {}, "hiddenOn") is False
    assert failures == ["visibleOn", "hiddenOn"]


@pytest.mark.unit
def test_lexer_accepts_only_ascii_digits():
    assert parse("42") == Literal(42)
    with pytest.raises(ExpressionError):
        parse("²")


# ============================================================================
# Context and templates
# ============================================================================

@pytest.mark.unit
def test_context_scope_stack():
    ctx = ExpressionContext({"a": 1, "b": {"c": 2}})
    assert ctx.get("b.c") == 2
    assert ctx.get("b.x", "default") == "default"

    ctx.push_scope({"a": 10})
    assert ctx.lookup("a") == 10
    assert ctx.has("b")

    ctx.pop_scope()
    assert ctx.lookup("a") == 1

    with pytest.raises(IndexError):
        ctx.pop_scope()


@pytest.mark.unit
def test_evaluate_template(evaluator, scope):
    assert evaluator.evaluate_template("Hello ${data.name}!", scope) == "Hello Alice!"
    assert evaluator.evaluate_template("${data.age}", scope) == 30
    assert evaluator.evaluate_template("Age: ${data.age + 1}", scope) == "Age: 31"
    assert evaluator.evaluate_template("No placeholders", scope) == "No placeholders"


@pytest.mark.unit
def test_template_failures_become_empty(evaluator, scope):
    assert evaluator.evaluate_template("Hi ${nobody.name}!", scope) == "Hi !"
    assert evaluator.evaluate_template("${nobody.name}", scope) is None


@pytest.mark.unit
def test_compiled_expressions_are_cached(evaluator, scope):
    evaluator.evaluate("data.age > 18", scope)
    evaluator.evaluate("data.age > 18", scope)

    stats = evaluator.cache_stats
    assert stats["hits"] >= 1
    assert stats["size"] == 1


@pytest.mark.unit
def test_truthy():
    assert truthy([]) is True
    assert truthy({}) is True
    assert truthy("") is False
    assert truthy(0) is False
    assert truthy(None) is False
    assert truthy("0") is True


@given(st.integers(min_value=-10_000, max_value=10_000), st.integers(min_value=-10_000, max_value=10_000))
def test_arithmetic_matches_python(a, b):
    evaluator = ExpressionEvaluator()
    scope = {"a": a, "b": b}

    assert evaluator.evaluate_value("a + b", scope) == a + b
    assert evaluator.evaluate_value("a * b - a", scope) == a * b - a
    assert evaluator.evaluate_value("a < b", scope) == (a < b)
