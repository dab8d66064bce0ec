"""Whitelisted formula functions and methods callable from expressions."""

from typing import Any, Callable

from ..core.errors import ExpressionError

FormulaFunction = Callable[..., Any]


def _numbers(args: tuple[Any, ...]) -> list[float]:
    flat: list[Any] = []
    for arg in args:
        if isinstance(arg, (list, tuple)):
            flat.extend(arg)
        else:
            flat.append(arg)
    return [x for x in flat if isinstance(x, (int, float)) and not isinstance(x, bool)]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _switch(value: Any, *cases: Any) -> Any:
    # SWITCH(expr, case1, result1, case2, result2, ..., default?)
    for i in range(0, len(cases) - 1, 2):
        if value == cases[i]:
            return cases[i + 1]
    return cases[-1] if len(cases) % 2 == 1 else None


class FormulaRegistry:
    """
    Named functions available to expressions.

    Only functions registered here can be called; there is no path from an
    expression to arbitrary Python callables.
    """

    def __init__(self) -> None:
        self.functions: dict[str, FormulaFunction] = {}
        self._register_builtins()

    def register(self, name: str, fn: FormulaFunction) -> None:
        """Register (or replace) a function; names are case-insensitive."""
        self.functions[name.upper()] = fn

    def get(self, name: str) -> FormulaFunction | None:
        return self.functions.get(name.upper())

    def has(self, name: str) -> bool:
        return name.upper() in self.functions

    def call(self, name: str, args: tuple[Any, ...]) -> Any:
        fn = self.get(name)
        if fn is None:
            raise ExpressionError(f"Unknown function: {name}")
        return fn(*args)

    def _register_builtins(self) -> None:
        # Aggregates
        self.register("SUM", lambda *a: sum(_numbers(a)))
        self.register("AVG", lambda *a: (sum(_numbers(a)) / len(_numbers(a))) if _numbers(a) else 0)
        self.register("COUNT", lambda *a: len(_numbers(a)))
        self.register("MIN", lambda *a: min(_numbers(a)) if _numbers(a) else 0)
        self.register("MAX", lambda *a: max(_numbers(a)) if _numbers(a) else 0)

        # Logic
        self.register("IF", lambda cond, then, otherwise=None: then if truthy(cond) else otherwise)
        self.register("AND", lambda *a: all(truthy(x) for x in a))
        self.register("OR", lambda *a: any(truthy(x) for x in a))
        self.register("NOT", lambda x: not truthy(x))
        self.register("SWITCH", _switch)
        self.register("ISBLANK", lambda x: x is None or x == "" or x == [] or x == {})

        # Text
        self.register("CONCAT", lambda *a: "".join(_text(x) for x in a))
        self.register("LEFT", lambda s, count=1: _text(s)[: int(count)])
        self.register("RIGHT", lambda s, count=1: _text(s)[-int(count):] if int(count) > 0 else "")
        self.register("TRIM", lambda s: _text(s).strip())
        self.register("UPPER", lambda s: _text(s).upper())
        self.register("LOWER", lambda s: _text(s).lower())
        self.register("LEN", lambda x: len(x) if isinstance(x, (str, list, dict)) else 0)
        self.register("ISEMPTY", self.get("ISBLANK"))
        self.register("INCLUDES", lambda target, item: _includes(target, item))
        self.register("STARTSWITH", lambda s, prefix: METHODS["startsWith"](s, prefix))


def truthy(value: Any) -> bool:
    """JavaScript-style truthiness: empty containers are truthy."""
    if isinstance(value, (list, dict)):
        return True
    return bool(value)


def _includes(target: Any, item: Any) -> bool:
    if isinstance(target, str):
        return _text(item) in target
    if isinstance(target, (list, tuple)):
        return item in target
    raise ExpressionError("includes() requires a string or list")


# Methods callable as obj.name(...) on plain values
METHODS: dict[str, Callable[..., Any]] = {
    "includes": _includes,
    "startsWith": lambda s, p: isinstance(s, str) and s.startswith(_text(p)),
    "endsWith": lambda s, p: isinstance(s, str) and s.endswith(_text(p)),
    "toLowerCase": lambda s: _text(s).lower(),
    "toUpperCase": lambda s: _text(s).upper(),
    "trim": lambda s: _text(s).strip(),
}
