"""
Data Source Type Definitions
Query, result and view-data models shared by every adapter
"""

from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


FilterCondition = Union[Dict[str, Any], List[Any]]
"""Mapping predicate ``{field: value | {"$gt": ...}}`` or AST list ``["and", [f, op, v], ...]``"""

OrderBy = Union[Dict[str, str], List[str], List[Dict[str, str]]]

ProgressCallback = Callable[[int, int], None]
"""Upload progress: ``(bytes_sent, bytes_total)``"""

BulkOperation = Literal["create", "update", "delete"]
AggregateFunction = Literal["sum", "count", "avg", "min", "max"]
HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


class QueryParams(BaseModel):
    """OData-style query parameters, serialized with ``$`` aliases."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    select: Optional[List[str]] = Field(default=None, alias="$select")
    filter: Optional[FilterCondition] = Field(default=None, alias="$filter")
    orderby: Optional[OrderBy] = Field(default=None, alias="$orderby")
    skip: Optional[int] = Field(default=None, ge=0, alias="$skip")
    top: Optional[int] = Field(default=None, ge=0, alias="$top")
    expand: Optional[List[str]] = Field(default=None, alias="$expand")
    search: Optional[str] = Field(default=None, alias="$search")
    count: bool = Field(default=False, alias="$count")


class QueryResult(BaseModel):
    """
    Result of ``find``.

    ``has_more`` is only meaningful when the source sets it; a short page
    does not by itself mean the data is exhausted.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    data: List[Any] = Field(default_factory=list)
    total: Optional[int] = None
    page: Optional[int] = None
    page_size: Optional[int] = Field(default=None, alias="pageSize")
    has_more: Optional[bool] = Field(default=None, alias="hasMore")
    cursor: Optional[Any] = None
    metadata: Optional[Dict[str, Any]] = None

    def exhausted(self) -> Optional[bool]:
        """True/False when the source reported it, None when unknown."""
        if self.has_more is None:
            return None
        return not self.has_more


class FileUploadResult(BaseModel):
    """Descriptor of a stored file."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    filename: str
    mime_type: str = Field(default="application/octet-stream", alias="mimeType")
    size: int = 0
    url: str = ""
    thumbnail_url: Optional[str] = Field(default=None, alias="thumbnailUrl")
    metadata: Optional[Dict[str, Any]] = None


class AggregateParams(BaseModel):
    """Group-by aggregation request."""

    model_config = ConfigDict(populate_by_name=True)

    field: str
    function: AggregateFunction = "sum"
    group_by: str = Field(alias="groupBy")
    filter: Optional[Union[FilterCondition, str]] = None


class HttpRequest(BaseModel):
    """Endpoint configuration for the ``api`` provider."""

    url: str
    method: HttpMethod = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    params: Dict[str, Any] = Field(default_factory=dict)


class ViewData(BaseModel):
    """Where a view gets its data: the shared object source, a raw API, or inline values."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    provider: Literal["object", "api", "value"] = "object"
    object: Optional[str] = None
    items: Optional[List[Any]] = None
    read: Optional[HttpRequest] = None
    write: Optional[HttpRequest] = None
    id_field: Optional[str] = Field(default=None, alias="idField")
