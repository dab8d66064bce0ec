"""
Responsive Resolver
Maps breakpoint-indexed values to the effective value for a viewport class.
"""

from enum import Enum
from typing import Any, Mapping


class Breakpoint(str, Enum):
    """Viewport classes, smallest first."""

    XS = "xs"
    SM = "sm"
    MD = "md"
    LG = "lg"
    XL = "xl"
    XXL = "2xl"

    @property
    def rank(self) -> int:
        return BREAKPOINT_ORDER.index(self)


BREAKPOINT_ORDER: tuple[Breakpoint, ...] = (
    Breakpoint.XS,
    Breakpoint.SM,
    Breakpoint.MD,
    Breakpoint.LG,
    Breakpoint.XL,
    Breakpoint.XXL,
)

# Minimum viewport width (px) of each breakpoint
BREAKPOINT_VALUES: dict[Breakpoint, int] = {
    Breakpoint.XS: 0,
    Breakpoint.SM: 640,
    Breakpoint.MD: 768,
    Breakpoint.LG: 1024,
    Breakpoint.XL: 1280,
    Breakpoint.XXL: 1536,
}

_NAMES = frozenset(bp.value for bp in Breakpoint)


def parse_breakpoint(value: "str | Breakpoint") -> Breakpoint:
    """
    Coerce a breakpoint name.

    Raises:
        ValueError: If the name is not a known breakpoint
    """
    if isinstance(value, Breakpoint):
        return value
    try:
        return Breakpoint(value)
    except ValueError:
        raise ValueError(
            f"Unknown breakpoint '{value}'. Must be one of: {sorted(_NAMES)}"
        ) from None


def breakpoint_for_width(width: float) -> Breakpoint:
    """Breakpoint active at a viewport width in pixels."""
    for bp in reversed(BREAKPOINT_ORDER):
        if width >= BREAKPOINT_VALUES[bp]:
            return bp
    return Breakpoint.XS


def is_responsive(value: Any) -> bool:
    """True for a non-empty mapping whose keys are all breakpoint names."""
    return (
        isinstance(value, Mapping)
        and len(value) > 0
        and all(isinstance(k, str) and k in _NAMES for k in value)
    )


def resolve(value: Any, active: "str | Breakpoint") -> Any:
    """
    Resolve a possibly-responsive value for the active breakpoint.

    Plain values pass through unchanged. For a responsive value the entry
    at the greatest defined breakpoint not above ``active`` wins
    (mobile-first cascade: ``sm`` stays in effect at ``md`` unless ``md``
    is set). Returns None when no defined breakpoint qualifies, meaning
    "no override at this size".

    Examples:
        >>> resolve({"xs": 1, "lg": 3}, "sm")
        1
        >>> resolve({"md": 2}, "xs") is None
        True
        >>> resolve("plain", "xl")
        'plain'
    """
    if not is_responsive(value):
        return value

    rank = parse_breakpoint(active).rank
    for bp in reversed(BREAKPOINT_ORDER[: rank + 1]):
        if bp.value in value:
            return value[bp.value]
    return None


def resolve_props(props: Mapping[str, Any], active: "str | Breakpoint") -> dict[str, Any]:
    """Resolve every attribute of a props map (one level deep)."""
    return {key: resolve(value, active) for key, value in props.items()}


__all__ = [
    "Breakpoint",
    "BREAKPOINT_ORDER",
    "BREAKPOINT_VALUES",
    "parse_breakpoint",
    "breakpoint_for_width",
    "is_responsive",
    "resolve",
    "resolve_props",
]
