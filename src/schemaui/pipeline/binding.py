"""Data binding declarations on schema nodes."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ..core.errors import DataSourceError
from ..datasource import DataSource, QueryParams, ViewData, resolve_data_source

DEFAULT_RESOURCE = "default"


@dataclass(frozen=True)
class DataBinding:
    """
    What a node fetches before it renders.

    With ``record_id`` set the node loads one record (``find_one``),
    otherwise a result set (``find``).
    """
    resource: str
    view_data: ViewData
    params: Optional[QueryParams] = None
    record_id: Any = None

    @property
    def single(self) -> bool:
        return self.record_id is not None


def extract_binding(props: Mapping[str, Any]) -> Optional[DataBinding]:
    """
    Read a binding from resolved props, or None for an unbound node.

    Recognized forms: ``data: {"provider": ..., ...}`` and the
    ``objectName`` shorthand for the shared object source. Query
    parameters come from ``query`` and a single record from ``recordId``.
    """
    declared = props.get("data")
    object_name = props.get("objectName")
    query = props.get("query")

    try:
        if isinstance(declared, Mapping) and "provider" in declared:
            view_data = ViewData.model_validate(dict(declared))
        elif isinstance(object_name, str) and object_name:
            view_data = ViewData(provider="object", object=object_name)
        else:
            return None
        params = QueryParams.model_validate(query) if isinstance(query, Mapping) else None
    except ValidationError as e:
        resource = object_name if isinstance(object_name, str) else None
        raise DataSourceError(
            f"Invalid data binding: {e.errors()[0]['msg']}",
            resource=resource,
        ) from e

    return DataBinding(
        resource=view_data.object or object_name or DEFAULT_RESOURCE,
        view_data=view_data,
        params=params,
        record_id=props.get("recordId"),
    )


async def fetch_binding(binding: DataBinding, fallback: Optional[DataSource]) -> Any:
    """
    Run a binding against its data source.

    Returns the record (or None) for single bindings and the QueryResult
    otherwise. Adapters created for the binding are closed afterwards.

    Raises:
        DataSourceError: no source is available, or the fetch failed
    """
    source = resolve_data_source(binding.view_data, fallback)
    if source is None:
        raise DataSourceError(
            f'No data source available for "{binding.resource}"', resource=binding.resource
        )

    try:
        if binding.single:
            return await source.find_one(binding.resource, binding.record_id, binding.params)
        return await source.find(binding.resource, binding.params)
    finally:
        if source is not fallback:
            await source.close()
