"""Render context: the environment a node is resolved against."""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..datasource import DataSource
from ..expression import ExpressionContext
from ..responsive import Breakpoint, parse_breakpoint


@dataclass(frozen=True)
class RenderContext:
    """
    Immutable per-subtree render environment.

    Children receive the parent's context, augmented by ``child()`` when a
    data-bound ancestor supplied a record or a result set.
    """

    breakpoint: Breakpoint = Breakpoint.LG
    user: Mapping[str, Any] = field(default_factory=dict)
    record: Optional[Mapping[str, Any]] = None
    data: Any = None
    scopes: Mapping[str, Any] = field(default_factory=dict)
    variables: Mapping[str, Any] = field(default_factory=dict)
    data_source: Optional[DataSource] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "breakpoint", parse_breakpoint(self.breakpoint))

    def child(self, **changes: Any) -> "RenderContext":
        """Derived context for a subtree."""
        return dataclasses.replace(self, **changes)

    def expression_context(self) -> ExpressionContext:
        """
        Variables visible to expressions.

        Record fields are addressable as bare identifiers; the named
        variables (``data``, ``record``, ``user``, ``breakpoint``, scopes)
        shadow a record field of the same name.
        """
        record = dict(self.record or {})
        context = ExpressionContext(record)
        context.push_scope({
            **self.variables,
            **self.scopes,
            "data": self.data if self.data is not None else record,
            "record": record,
            "user": dict(self.user),
            "breakpoint": self.breakpoint.value,
        })
        return context
