"""ABOUTME: Pagination parameter extraction and standard list metadata.

All list resources share one metadata shape so clients can page through
boards, sprints, spaces, pages, comments and search results the same way.
"""

import re
from typing import Any, Dict, List, Mapping, NamedTuple, Optional
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_LIMIT: int = 20
DEFAULT_OFFSET: int = 0

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class PagingParams(NamedTuple):
    limit: int
    offset: int


# =============================================================================
# Pagination Parameter Extractor
# =============================================================================

def _first_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _parse_int(value: Any) -> Optional[int]:
    """Parse leading digits the lenient way ("5abc" -> 5, "2.9" -> 2)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # digit runs past the interpreter int conversion limit
        return None


def extract_paging_params(
    params: Optional[Mapping[str, Any]],
    default_limit: int = DEFAULT_LIMIT,
    default_offset: int = DEFAULT_OFFSET
) -> PagingParams:
    """Extract (limit, offset) from raw request parameters.

    Each parameter may be missing, a scalar, or a list whose first element is
    used. Invalid values (unparsable, non-positive limit, negative offset)
    fall back to the defaults. Never raises.

    Args:
        params: Raw parameters (tool arguments or parsed query string)
        default_limit: Limit used when none is given or it is invalid
        default_offset: Offset used when none is given or it is invalid

    Returns:
        PagingParams(limit, offset)

    Example:
        extract_paging_params({"limit": ["5"], "offset": "-3"}, 20, 0)  # PagingParams(limit=5, offset=0)
    """
    limit = default_limit
    offset = default_offset

    if not isinstance(params, Mapping):
        return PagingParams(limit, offset)

    parsed_limit = _parse_int(_first_value(params.get("limit")))
    if parsed_limit is not None and parsed_limit > 0:
        limit = parsed_limit

    parsed_offset = _parse_int(_first_value(params.get("offset")))
    if parsed_offset is not None and parsed_offset >= 0:
        offset = parsed_offset

    return PagingParams(limit, offset)


def query_params(uri: str) -> Dict[str, List[str]]:
    """Parse the query component of a resource URI into multi-valued parameters."""
    return parse_qs(urlsplit(uri).query)


def resolve_paging(
    uri: str,
    params: Optional[Mapping[str, Any]] = None,
    default_limit: int = DEFAULT_LIMIT,
    default_offset: int = DEFAULT_OFFSET
) -> PagingParams:
    """Extract paging from the URI query, overridden by explicit parameters."""
    raw: Dict[str, Any] = dict(query_params(uri))
    if isinstance(params, Mapping):
        raw.update({k: v for k, v in params.items() if v is not None})
    return extract_paging_params(raw, default_limit, default_offset)


# =============================================================================
# Metadata Builder
# =============================================================================

class StandardMetadata(BaseModel):
    """Paging and navigation metadata attached to every list resource."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total: int
    limit: int
    offset: int
    uri: str
    next: Optional[str] = None
    previous: Optional[str] = None
    has_more: bool = Field(alias="hasMore")
    ui_url: Optional[str] = Field(default=None, alias="uiUrl")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def with_offset(uri: str, offset: int, limit: Optional[int] = None) -> str:
    """Return the URI with its offset (and, when given, limit) query parameters replaced."""
    parts = urlsplit(uri)
    replaced = {"offset"} if limit is None else {"limit", "offset"}
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in replaced]
    if limit is not None:
        query.append(("limit", str(limit)))
    query.append(("offset", str(offset)))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def create_standard_metadata(
    total: int,
    limit: int,
    offset: int,
    uri: str,
    ui_url: Optional[str] = None
) -> StandardMetadata:
    """Build standard metadata for one page of a list resource.

    hasMore is offset + limit < total. next is present only when hasMore;
    previous is present only when offset > 0 and never goes below zero. Both
    links carry the page limit so that following them keeps the page size.
    """
    has_more = offset + limit < total
    return StandardMetadata(
        total=total,
        limit=limit,
        offset=offset,
        uri=uri,
        next=with_offset(uri, offset + limit, limit) if has_more else None,
        previous=with_offset(uri, max(offset - limit, 0), limit) if offset > 0 else None,
        has_more=has_more,
        ui_url=ui_url,
    )


def create_standard_resource(
    uri: str,
    items: List[Any],
    data_key: str,
    total: int,
    limit: int,
    offset: int,
    ui_url: Optional[str] = None,
    **extra: Any
) -> Dict[str, Any]:
    """Build the {metadata, <data_key>: items} payload of a list resource."""
    payload: Dict[str, Any] = {
        "metadata": create_standard_metadata(total, limit, offset, uri, ui_url).to_dict()
    }
    payload[data_key] = items
    payload.update({k: v for k, v in extra.items() if v is not None})
    return payload


def estimate_total(
    offset: int,
    count: int,
    total: Optional[int] = None,
    has_next: bool = False
) -> int:
    """Derive a total for APIs that do not report one.

    When the API signals another page, the estimate is one past what has been
    seen so that hasMore stays true.
    """
    if isinstance(total, int) and not isinstance(total, bool):
        return total
    return offset + count + (1 if has_next else 0)


__all__ = [
    "DEFAULT_LIMIT",
    "DEFAULT_OFFSET",
    "PagingParams",
    "extract_paging_params",
    "query_params",
    "resolve_paging",
    "StandardMetadata",
    "with_offset",
    "create_standard_metadata",
    "create_standard_resource",
    "estimate_total",
]
