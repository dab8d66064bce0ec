"""
In-memory Data Source
Adapter for the ``value`` provider: filtering, ordering and paging over a list
"""

import copy
import operator
from typing import Any, Callable, Dict, List, Optional

from ..core.errors import DataSourceError
from ..core.id import generate_prefixed
from .base import DataSource
from .types import AggregateParams, BulkOperation, OrderBy, QueryParams, QueryResult


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(value: Any, target: Any) -> bool:
        try:
            return bool(op(value, target))
        except TypeError:
            return False
    return check


def _contains(value: Any, target: Any) -> bool:
    return isinstance(value, str) and str(target).lower() in value.lower()


def _startswith(value: Any, target: Any) -> bool:
    return isinstance(value, str) and value.lower().startswith(str(target).lower())


def _between(value: Any, target: Any) -> bool:
    if not isinstance(target, (list, tuple)) or len(target) != 2:
        return False
    return _compare(operator.ge)(value, target[0]) and _compare(operator.le)(value, target[1])


AST_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "=": lambda v, t: v == t,
    "!=": lambda v, t: v != t,
    ">": _compare(operator.gt),
    ">=": _compare(operator.ge),
    "<": _compare(operator.lt),
    "<=": _compare(operator.le),
    "in": lambda v, t: isinstance(t, (list, tuple)) and v in t,
    "not in": lambda v, t: isinstance(t, (list, tuple)) and v not in t,
    "notin": lambda v, t: isinstance(t, (list, tuple)) and v not in t,
    "contains": _contains,
    "notcontains": lambda v, t: isinstance(v, str) and not _contains(v, t),
    "startswith": _startswith,
    "between": _between,
}

MAPPING_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "$gt": _compare(operator.gt),
    "$gte": _compare(operator.ge),
    "$lt": _compare(operator.lt),
    "$lte": _compare(operator.le),
    "$ne": lambda v, t: v != t,
    "$in": AST_OPERATORS["in"],
    "$contains": _contains,
}


def matches_ast_filter(record: Dict[str, Any], node: Any) -> bool:
    """Evaluate an AST filter: ``["and", ...]``, ``["or", ...]`` or ``[field, op, value]``."""
    if not isinstance(node, (list, tuple)) or not node:
        return True

    head = node[0]
    if head == "and":
        return all(matches_ast_filter(record, sub) for sub in node[1:])
    if head == "or":
        return any(matches_ast_filter(record, sub) for sub in node[1:])

    if len(node) == 3 and isinstance(head, str):
        field, op, target = node
        check = AST_OPERATORS.get(op)
        # unknown operators do not filter
        return check(record.get(field), target) if check else True

    return True


def matches_filter(record: Dict[str, Any], conditions: Dict[str, Any]) -> bool:
    """Evaluate a mapping filter with equality and ``$``-operators."""
    for field, condition in conditions.items():
        value = record.get(field)
        if isinstance(condition, dict):
            for op, target in condition.items():
                check = MAPPING_OPERATORS.get(op)
                if check and not check(value, target):
                    return False
        elif value != condition:
            return False
    return True


def normalize_orderby(orderby: Optional[OrderBy]) -> List[tuple[str, str]]:
    """Normalize the accepted ordering forms to ``[(field, "asc"|"desc"), ...]``."""
    if not orderby:
        return []
    if isinstance(orderby, dict):
        return [(field, str(order).lower()) for field, order in orderby.items()]

    sorts = []
    for item in orderby:
        if isinstance(item, str):
            if item.startswith("-"):
                sorts.append((item[1:], "desc"))
            else:
                sorts.append((item, "asc"))
        else:
            sorts.append((item["field"], str(item.get("order", "asc")).lower()))
    return sorts


def apply_sort(rows: List[Dict[str, Any]], orderby: Optional[OrderBy]) -> List[Dict[str, Any]]:
    """Stable multi-key sort; missing values sort first ascending."""
    result = list(rows)
    for field, order in reversed(normalize_orderby(orderby)):
        result.sort(
            key=lambda r: (r.get(field) is not None, r.get(field)),
            reverse=(order == "desc"),
        )
    return result


def select_fields(record: Dict[str, Any], fields: Optional[List[str]]) -> Dict[str, Any]:
    if not fields:
        return dict(record)
    return {f: record[f] for f in fields if f in record}


def _to_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class ValueDataSource(DataSource):
    """
    Data source over a static list of records.

    Items are deep-copied on construction so callers cannot mutate the
    store from outside. Records are matched by ``id_field`` when given,
    otherwise by ``_id`` then ``id``.
    """

    def __init__(self, items: Optional[List[Dict[str, Any]]] = None, id_field: Optional[str] = None):
        self._items: List[Dict[str, Any]] = copy.deepcopy(list(items or []))
        self.id_field = id_field

    def _record_id(self, record: Dict[str, Any]) -> Any:
        if self.id_field:
            return record.get(self.id_field)
        return record.get("_id", record.get("id"))

    def _index_of(self, id: Any) -> int:
        for index, record in enumerate(self._items):
            if str(self._record_id(record)) == str(id):
                return index
        return -1

    async def find(self, resource: str, params: Optional[QueryParams] = None) -> QueryResult:
        params = params or QueryParams()
        rows = list(self._items)

        if params.filter:
            if isinstance(params.filter, list):
                rows = [r for r in rows if matches_ast_filter(r, params.filter)]
            else:
                rows = [r for r in rows if matches_filter(r, params.filter)]

        if params.search:
            query = params.search.lower()
            rows = [
                r for r in rows
                if any(isinstance(v, str) and query in v.lower() for v in r.values())
            ]

        total = len(rows)
        rows = apply_sort(rows, params.orderby)

        skip = params.skip or 0
        if skip:
            rows = rows[skip:]
        if params.top is not None:
            rows = rows[: params.top]

        rows = [select_fields(r, params.select) for r in rows]
        consumed = skip + (params.top if params.top is not None else len(rows))

        return QueryResult(data=copy.deepcopy(rows), total=total, has_more=consumed < total)

    async def find_one(
        self, resource: str, id: Any, params: Optional[QueryParams] = None
    ) -> Optional[Dict[str, Any]]:
        index = self._index_of(id)
        if index < 0:
            return None
        fields = params.select if params else None
        return copy.deepcopy(select_fields(self._items[index], fields))

    async def create(self, resource: str, data: Dict[str, Any]) -> Dict[str, Any]:
        record = copy.deepcopy(dict(data))
        if not self._record_id(record):
            record[self.id_field or "_id"] = generate_prefixed("auto")
        self._items.append(record)
        return copy.deepcopy(record)

    async def update(self, resource: str, id: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        index = self._index_of(id)
        if index < 0:
            raise DataSourceError(f'Record with id "{id}" not found', resource=resource, status_code=404)
        self._items[index] = {**self._items[index], **copy.deepcopy(dict(data))}
        return copy.deepcopy(self._items[index])

    async def delete(self, resource: str, id: Any) -> bool:
        index = self._index_of(id)
        if index < 0:
            return False
        del self._items[index]
        return True

    async def bulk(
        self, resource: str, operation: BulkOperation, data: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        results = []
        for item in data:
            if operation == "create":
                results.append(await self.create(resource, item))
                continue
            id = self._record_id(item)
            if id is None:
                continue
            if operation == "update":
                results.append(await self.update(resource, id, item))
            elif operation == "delete":
                await self.delete(resource, id)
        return results

    async def aggregate(self, resource: str, params: AggregateParams) -> List[Dict[str, Any]]:
        rows = self._items
        if isinstance(params.filter, list):
            rows = [r for r in rows if matches_ast_filter(r, params.filter)]
        elif isinstance(params.filter, dict):
            rows = [r for r in rows if matches_filter(r, params.filter)]

        groups: Dict[str, List[Dict[str, Any]]] = {}
        for record in rows:
            value = record.get(params.group_by)
            groups.setdefault("Unknown" if value is None else str(value), []).append(record)

        out = []
        for key, group in groups.items():
            values = [_to_number(r.get(params.field)) for r in group]
            if params.function == "count":
                result: float = len(group)
            elif params.function == "avg":
                result = sum(values) / len(values) if values else 0
            elif params.function == "min":
                result = min(values) if values else 0
            elif params.function == "max":
                result = max(values) if values else 0
            else:
                result = sum(values)
            out.append({params.group_by: key, params.field: result})
        return out

    async def get_object_schema(self, object_name: str) -> Dict[str, Any]:
        """Minimal schema inferred from the first record."""
        if not self._items:
            return {"name": object_name, "fields": {}}
        fields = {key: {"type": type(value).__name__} for key, value in self._items[0].items()}
        return {"name": object_name, "fields": fields}

    async def get_view(self, object_name: str, view_id: str) -> Optional[Dict[str, Any]]:
        return None

    async def get_app(self, app_id: str) -> Optional[Dict[str, Any]]:
        return None

    @property
    def count(self) -> int:
        return len(self._items)

    def get_all(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._items)
