"""Pick a data source adapter from a view's data declaration."""

from typing import Any, Dict, Optional, Union

from ..core import get_logger
from .api import ApiDataSource
from .base import DataSource
from .memory import ValueDataSource
from .types import ViewData

logger = get_logger(__name__)


def resolve_data_source(
    view_data: Union[ViewData, Dict[str, Any], None],
    fallback: Optional[DataSource] = None,
    **options: Any,
) -> Optional[DataSource]:
    """
    Resolve the adapter for a ViewData declaration.

    - ``object`` (and unknown providers): the shared ``fallback`` source
    - ``api``: a new ApiDataSource over the read/write endpoints
    - ``value``: a new ValueDataSource over the inline items

    Args:
        view_data: Declaration, as a model or a mapping
        fallback: Source used for ``object`` and anything unrecognised
        **options: Passed to the adapter (``default_headers``, ``id_field``, ...)

    Returns:
        The adapter, or None when nothing applies and there is no fallback
    """
    if view_data is None:
        return fallback

    if isinstance(view_data, dict):
        provider = view_data.get("provider", "object")
        if provider not in ("object", "api", "value"):
            logger.warning("unknown_data_provider", provider=provider)
            return fallback
        view_data = ViewData.model_validate(view_data)

    if view_data.provider == "api":
        return ApiDataSource(read=view_data.read, write=view_data.write, **options)

    if view_data.provider == "value":
        options.setdefault("id_field", view_data.id_field)
        return ValueDataSource(items=view_data.items or [], **options)

    return fallback
