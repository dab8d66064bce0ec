"""
Data Source Contract
Backend-agnostic interface every data-bound node goes through
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, FrozenSet, Optional

from ..core.errors import CapabilityNotSupported
from .types import QueryParams, QueryResult


OPTIONAL_CAPABILITIES = (
    "bulk",
    "aggregate",
    "get_object_schema",
    "get_view",
    "update_view_config",
    "get_app",
    "get_page",
    "upload_file",
    "upload_files",
)


class DataSource(ABC):
    """
    Abstract data source.

    Required operations are CRUD over named resources. Each operation is
    independent; there is no implicit transaction across calls.

    Optional capabilities (see ``OPTIONAL_CAPABILITIES``) are plain async
    methods an adapter may define. Their absence is not an error: callers
    feature-detect with ``supports()`` before invoking one.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def find(self, resource: str, params: Optional[QueryParams] = None) -> QueryResult:
        """
        Fetch records.

        No matches is a successful result with empty ``data``.

        Raises:
            DataSourceError: transport or authorization failure
        """

    @abstractmethod
    async def find_one(
        self, resource: str, id: Any, params: Optional[QueryParams] = None
    ) -> Optional[Dict[str, Any]]:
        """Fetch one record, or None when it does not exist."""

    @abstractmethod
    async def create(self, resource: str, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update(self, resource: str, id: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def delete(self, resource: str, id: Any) -> bool:
        ...

    def capabilities(self) -> FrozenSet[str]:
        """Optional capabilities this adapter implements."""
        return frozenset(c for c in OPTIONAL_CAPABILITIES if callable(getattr(self, c, None)))

    async def close(self) -> None:
        """Release adapter resources."""


def supports(source: Any, capability: str) -> bool:
    """Feature detection for an optional capability."""
    return callable(getattr(source, capability, None))


def require_capability(source: Any, capability: str) -> Callable[..., Any]:
    """
    Bound method for a capability.

    Raises:
        CapabilityNotSupported: the source does not implement it
    """
    if not supports(source, capability):
        name = getattr(source, "name", type(source).__name__)
        raise CapabilityNotSupported(capability, name)
    return getattr(source, capability)
