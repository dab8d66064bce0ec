"""
Data Scopes
Named data state (data, loading, error) shared between nodes of a view
"""

import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional, Set

from .base import DataSource


FilterOperator = Literal["eq", "ne", "gt", "lt", "gte", "lte", "in", "nin", "contains"]


@dataclass
class DataScope:
    """State of one named scope."""
    data_source: Optional[DataSource] = None
    data: Any = None
    loading: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class RowLevelFilter:
    """Predicate applied to every row read through a scope."""
    field: str
    operator: FilterOperator
    value: Any


ScopeListener = Callable[[DataScope], None]


def _ordered(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(a: Any, b: Any) -> bool:
        try:
            return bool(op(a, b))
        except TypeError:
            return False
    return check


_FILTER_OPS: Dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "gt": _ordered(operator.gt),
    "lt": _ordered(operator.lt),
    "gte": _ordered(operator.ge),
    "lte": _ordered(operator.le),
    "in": lambda v, t: isinstance(t, (list, tuple, set)) and v in t,
    "nin": lambda v, t: isinstance(t, (list, tuple, set)) and v not in t,
    "contains": lambda v, t: isinstance(v, str) and str(t) in v,
}


def evaluate_filter(value: Any, op: str, target: Any) -> bool:
    check = _FILTER_OPS.get(op)
    return check(value, target) if check else True


class DataScopeManager:
    """
    Registry of named data scopes with change notification.

    Scopes may be marked read-only, in which case ``update_scope_data``
    refuses to replace their data. Row-level filters are applied on read
    through ``apply_filters``.
    """

    def __init__(self) -> None:
        self.scopes: Dict[str, DataScope] = {}
        self._filters: Dict[str, List[RowLevelFilter]] = {}
        self._read_only: Set[str] = set()
        self._listeners: Dict[str, List[ScopeListener]] = {}

    def register_scope(
        self,
        name: str,
        scope: Optional[DataScope] = None,
        *,
        data_source: Optional[DataSource] = None,
        data: Any = None,
        filters: Optional[List[RowLevelFilter]] = None,
        read_only: bool = False,
    ) -> DataScope:
        """Register (or replace) a scope and notify its listeners."""
        scope = scope or DataScope(data_source=data_source, data=data)
        if filters:
            self._filters[name] = list(filters)
        if read_only:
            self._read_only.add(name)
        self.scopes[name] = scope
        self._notify(name, scope)
        return scope

    def get_scope(self, name: str) -> Optional[DataScope]:
        return self.scopes.get(name)

    def remove_scope(self, name: str) -> None:
        self.scopes.pop(name, None)
        self._filters.pop(name, None)
        self._read_only.discard(name)
        self._listeners.pop(name, None)

    def is_read_only(self, name: str) -> bool:
        return name in self._read_only

    def get_filters(self, name: str) -> List[RowLevelFilter]:
        return list(self._filters.get(name, []))

    def set_filters(self, name: str, filters: List[RowLevelFilter]) -> None:
        self._filters[name] = list(filters)

    def apply_filters(self, name: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        filters = self._filters.get(name)
        if not filters:
            return rows
        return [
            row for row in rows
            if all(evaluate_filter(row.get(f.field), f.operator, f.value) for f in filters)
        ]

    def update_scope_data(self, name: str, data: Any) -> None:
        scope = self.scopes.get(name)
        if scope is None:
            return
        if name in self._read_only:
            raise PermissionError(f"Cannot update read-only scope: {name}")
        scope.data = data
        self._notify(name, scope)

    def update_scope_loading(self, name: str, loading: bool) -> None:
        scope = self.scopes.get(name)
        if scope is None:
            return
        scope.loading = loading
        self._notify(name, scope)

    def update_scope_error(self, name: str, error: Optional[str]) -> None:
        scope = self.scopes.get(name)
        if scope is None:
            return
        scope.error = error
        self._notify(name, scope)

    def on_scope_change(self, name: str, listener: ScopeListener) -> Callable[[], None]:
        """Subscribe to a scope. Returns the unsubscribe function."""
        self._listeners.setdefault(name, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(name)
            if listeners and listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def get_scope_names(self) -> List[str]:
        return list(self.scopes.keys())

    def clear(self) -> None:
        self.scopes.clear()
        self._filters.clear()
        self._read_only.clear()
        self._listeners.clear()

    def _notify(self, name: str, scope: DataScope) -> None:
        for listener in list(self._listeners.get(name, [])):
            listener(scope)
