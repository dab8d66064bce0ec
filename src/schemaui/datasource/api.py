"""
HTTP Data Source
Adapter for the ``api`` provider with circuit breaker protection
"""

import asyncio
import functools
import mimetypes
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Union

import httpx
import pybreaker

from ..core import get_logger
from ..core.errors import DataSourceError
from ..core.json import safe_json_dumps
from .base import DataSource
from .types import (
    AggregateParams,
    FileUploadResult,
    HttpRequest,
    ProgressCallback,
    QueryParams,
    QueryResult,
)

logger = get_logger(__name__)

UploadFile = Union[bytes, BinaryIO]
ENVELOPE_KEYS = ("data", "items", "results", "records", "value")


class BreakerListener(pybreaker.CircuitBreakerListener):
    """Listener for circuit breaker state changes."""

    def state_change(self, cb, old_state, new_state):
        """Called when circuit breaker state changes."""
        logger.warning(
            "breaker_state_change",
            breaker=cb.name,
            from_state=str(old_state),
            to_state=str(new_state),
        )


def build_url(base: str, path_suffix: Optional[str] = None) -> str:
    if not path_suffix:
        return base
    return base.rstrip("/") + "/" + path_suffix.lstrip("/")


def query_params_to_record(params: Optional[QueryParams]) -> Dict[str, Any]:
    """Flatten QueryParams into ``$select=a,b`` style query string values."""
    if params is None:
        return {}

    out: Dict[str, Any] = {}
    if params.select:
        out["$select"] = ",".join(params.select)
    if params.filter:
        out["$filter"] = safe_json_dumps(params.filter)
    if params.orderby:
        orderby = params.orderby
        if isinstance(orderby, dict):
            out["$orderby"] = ",".join(f"{field} {order}" for field, order in orderby.items())
        elif orderby and isinstance(orderby[0], str):
            out["$orderby"] = ",".join(orderby)
        else:
            out["$orderby"] = ",".join(f"{s['field']} {s.get('order') or 'asc'}" for s in orderby)
    if params.skip is not None:
        out["$skip"] = params.skip
    if params.top is not None:
        out["$top"] = params.top
    if params.expand:
        out["$expand"] = ",".join(params.expand)
    if params.search:
        out["$search"] = params.search
    if params.count:
        out["$count"] = "true"
    for key, value in (params.model_extra or {}).items():
        if value is not None:
            out[key] = value
    return out


def normalize_query_result(raw: Any) -> QueryResult:
    """
    Normalize the response shapes APIs commonly return.

    Accepts a bare list, a QueryResult-like object, the envelopes
    ``{data|items|results|records|value: [...]}``, or a single object.
    """
    if isinstance(raw, list):
        return QueryResult(data=raw, total=len(raw))

    if isinstance(raw, dict):
        if isinstance(raw.get("data"), list) and ("total" in raw or "totalCount" in raw):
            total = raw.get("total", raw.get("totalCount"))
            return QueryResult(
                data=raw["data"],
                total=len(raw["data"]) if total is None else total,
                has_more=raw.get("hasMore"),
                cursor=raw.get("cursor"),
            )

        for key in ENVELOPE_KEYS:
            rows = raw.get(key)
            if isinstance(rows, list):
                total = raw.get("total", raw.get("totalCount", raw.get("count")))
                return QueryResult(
                    data=rows,
                    total=len(rows) if total is None else total,
                    has_more=raw.get("hasMore", raw.get("hasNextPage")),
                )

        return QueryResult(data=[raw], total=1)

    return QueryResult(data=[], total=0)


def _coerce_request(config: Union[HttpRequest, Dict[str, Any], str, None]) -> Optional[HttpRequest]:
    if config is None or isinstance(config, HttpRequest):
        return config
    if isinstance(config, str):
        return HttpRequest(url=config)
    return HttpRequest.model_validate(config)


class ApiDataSource(DataSource):
    """
    Data source over a raw HTTP API.

    CRUD maps onto HTTP verbs against the ``read`` and ``write`` endpoint
    configs; each falls back to the other when only one is given. Requests
    run through a circuit breaker on a worker thread so the event loop is
    never blocked. Timeouts are enforced here, never by the caller.
    """

    def __init__(
        self,
        read: Union[HttpRequest, Dict[str, Any], str, None] = None,
        write: Union[HttpRequest, Dict[str, Any], str, None] = None,
        default_headers: Optional[Dict[str, str]] = None,
        timeout: float = 5.0,
        fail_max: int = 5,
        reset_timeout: int = 30,
        chunk_size: int = 64 * 1024,
        client: Optional[httpx.Client] = None,
        resource_paths: bool = False,
    ) -> None:
        """
        Initialize API data source with circuit breaker.

        Args:
            read: Endpoint for find/find_one/aggregate
            write: Endpoint for create/update/delete/uploads
            default_headers: Headers applied to every request
            timeout: Request timeout in seconds
            fail_max: Consecutive failures before the breaker opens
            reset_timeout: Seconds before an open breaker half-opens
            chunk_size: Upload chunk size in bytes
            client: Pre-configured httpx client
            resource_paths: Address each resource under its own path
                (``{url}/{resource}``); used when one backend serves
                every object
        """
        self.read = _coerce_request(read)
        self.write = _coerce_request(write)
        self.default_headers = dict(default_headers or {})
        self.chunk_size = chunk_size
        self.resource_paths = resource_paths
        self._client = client or httpx.Client(timeout=timeout)

        self._breaker = pybreaker.CircuitBreaker(
            fail_max=fail_max,
            reset_timeout=reset_timeout,
            name="datasource-http",
            listeners=[BreakerListener()],
        )

        logger.info(
            "datasource_init",
            read=self.read.url if self.read else None,
            write=self.write.url if self.write else None,
        )

    @property
    def breaker_state(self) -> str:
        return self._breaker.current_state

    def _request(
        self,
        base: Optional[HttpRequest],
        method: str,
        path_suffix: Optional[str] = None,
        query: Optional[Dict[str, Any]] = None,
        body: Any = None,
        content: Union[bytes, Iterator[bytes], None] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        if base is None:
            raise DataSourceError("No HTTP configuration provided for this operation")

        url = build_url(base.url, path_suffix)
        params = {k: v for k, v in {**base.params, **(query or {})}.items() if v is not None}
        request_headers = {**self.default_headers, **base.headers, **(headers or {})}

        def _make_request():
            response = self._client.request(
                method,
                url,
                params=params,
                json=body,
                content=content,
                headers=request_headers,
            )
            # only server errors count against the breaker
            if response.status_code >= 500:
                response.raise_for_status()
            return response

        try:
            response = self._breaker.call(_make_request)
        except pybreaker.CircuitBreakerError as e:
            logger.error("datasource_circuit_open", url=url)
            raise DataSourceError(f"Circuit open for {url}", resource=url) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("datasource_http_error", url=url, status=status)
            raise DataSourceError(f"HTTP {status} from {url}", resource=url, status_code=status) from e
        except httpx.HTTPError as e:
            logger.error("datasource_request_failed", url=url, error=str(e))
            raise DataSourceError(f"Request to {url} failed: {e}", resource=url) from e

        if response.is_error:
            raise DataSourceError(
                f"HTTP {response.status_code} {response.reason_phrase}: {response.text}",
                resource=url,
                status_code=response.status_code,
            )

        if "application/json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    async def _call(self, *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(self._request, *args, **kwargs))

    def _path(self, resource: str, *parts: str) -> Optional[str]:
        segments = [resource] if self.resource_paths and resource else []
        segments.extend(p for p in parts if p)
        return "/".join(segments) or None

    @property
    def _write_config(self) -> Optional[HttpRequest]:
        return self.write or self.read

    @property
    def _read_config(self) -> Optional[HttpRequest]:
        return self.read or self.write

    async def find(self, resource: str, params: Optional[QueryParams] = None) -> QueryResult:
        raw = await self._call(
            self._read_config, "GET", path_suffix=self._path(resource), query=query_params_to_record(params)
        )
        return normalize_query_result(raw)

    async def find_one(
        self, resource: str, id: Any, params: Optional[QueryParams] = None
    ) -> Optional[Dict[str, Any]]:
        try:
            raw = await self._call(
                self._read_config, "GET", path_suffix=self._path(resource, str(id)), query=query_params_to_record(params)
            )
        except DataSourceError as e:
            if e.status_code == 404:
                return None
            raise
        return raw or None

    async def create(self, resource: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call(self._write_config, "POST", path_suffix=self._path(resource), body=data)

    async def update(self, resource: str, id: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call(self._write_config, "PATCH", path_suffix=self._path(resource, str(id)), body=data)

    async def delete(self, resource: str, id: Any) -> bool:
        try:
            await self._call(self._write_config, "DELETE", path_suffix=self._path(resource, str(id)))
        except DataSourceError as e:
            if e.status_code == 404:
                return False
            raise
        return True

    async def aggregate(self, resource: str, params: AggregateParams) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {
            "field": params.field,
            "function": params.function,
            "groupBy": params.group_by,
        }
        if params.filter:
            query["filter"] = params.filter if isinstance(params.filter, str) else safe_json_dumps(params.filter)

        raw = await self._call(self._read_config, "GET", path_suffix=self._path(resource, "aggregate"), query=query)
        if isinstance(raw, list):
            return raw
        if isinstance(raw, dict):
            for key in ("data", "results"):
                if isinstance(raw.get(key), list):
                    return raw[key]
        return []

    async def get_object_schema(self, object_name: str) -> Dict[str, Any]:
        # plain HTTP endpoints expose no metadata
        return {"name": object_name, "fields": {}}

    async def get_view(self, object_name: str, view_id: str) -> Optional[Dict[str, Any]]:
        return None

    async def get_app(self, app_id: str) -> Optional[Dict[str, Any]]:
        return None

    def _chunks(
        self, data: bytes, on_progress: Optional[ProgressCallback], offset: int = 0, total: Optional[int] = None
    ) -> Iterator[bytes]:
        total = len(data) if total is None else total
        for start in range(0, len(data), self.chunk_size):
            chunk = data[start:start + self.chunk_size]
            yield chunk
            if on_progress is not None:
                on_progress(offset + start + len(chunk), total)

    async def upload_file(
        self,
        resource: str,
        file: UploadFile,
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        record_id: Optional[str] = None,
        field_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        _offset: int = 0,
        _total: Optional[int] = None,
    ) -> FileUploadResult:
        """
        Upload one file in chunks, reporting progress as bytes are sent.

        ``on_progress(sent, total)`` runs on the upload worker thread.
        """
        data = file if isinstance(file, bytes) else file.read()
        filename = filename or getattr(file, "name", None) or "upload.bin"
        mime_type = mime_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"

        query = {
            "resource": resource,
            "filename": filename,
            "recordId": record_id,
            "fieldName": field_name,
            "metadata": safe_json_dumps(metadata) if metadata else None,
        }
        raw = await self._call(
            self._write_config,
            "POST",
            path_suffix="upload",
            query=query,
            content=self._chunks(data, on_progress, _offset, _total),
            headers={"Content-Type": mime_type, "Content-Length": str(len(data))},
        )

        logger.info("file_uploaded", resource=resource, filename=filename, size=len(data))
        base = {"id": filename, "filename": filename, "mimeType": mime_type, "size": len(data)}
        if isinstance(raw, dict):
            base.update(raw)
        return FileUploadResult.model_validate(base)

    async def upload_files(
        self,
        resource: str,
        files: List[UploadFile],
        on_progress: Optional[ProgressCallback] = None,
        **options: Any,
    ) -> List[FileUploadResult]:
        """Upload files one after another; progress is cumulative across all of them."""
        payloads = [f if isinstance(f, bytes) else f.read() for f in files]
        names = [getattr(f, "name", None) or f"upload-{i}.bin" for i, f in enumerate(files)]
        total = sum(len(p) for p in payloads)

        results = []
        offset = 0
        for payload, name in zip(payloads, names):
            results.append(
                await self.upload_file(
                    resource,
                    payload,
                    filename=name,
                    on_progress=on_progress,
                    _offset=offset,
                    _total=total,
                    **options,
                )
            )
            offset += len(payload)
        return results

    async def close(self) -> None:
        self._client.close()
