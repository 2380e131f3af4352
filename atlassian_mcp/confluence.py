"""ABOUTME: Confluence operations - pages, comments, spaces and CQL search.

Page content is always Confluence storage format (XML-like HTML such as
<p>text</p> or <ac:structured-macro> blocks); plain text or markdown is
rejected by the remote API.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlencode

import httpx

from .common.config import AtlassianConfig, confluence_base_url
from .common.error_handling import (
    ERROR_VERSION_CONFLICT,
    DomainError,
    ErrorKind,
    create_validation_error,
)
from .common.http_utils import request_json
from .common.pagination import create_standard_resource, estimate_total, resolve_paging
from .common.validation import require_valid, validate_non_empty_string, validate_positive_integer

logger = logging.getLogger(__name__)

SERVICE = "Confluence"

SPACES_URI = "confluence://spaces"
SPACE_PAGES_URI = "confluence://spaces/{space_key}/pages"
PAGE_COMMENTS_URI = "confluence://pages/{page_id}/comments"
SEARCH_URI = "confluence://search"

STORAGE_REPRESENTATION = "storage"


async def _call(
    config: AtlassianConfig,
    method: str,
    path: str,
    json_body: Optional[Any] = None,
    params: Optional[Dict[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Any:
    return await request_json(
        config,
        method,
        f"{confluence_base_url(config)}{path}",
        json_body=json_body,
        params=params,
        client=client,
        service=SERVICE,
    )


def _require_text(value: Any, field_name: str) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    require_valid(validate_non_empty_string(value, field_name), field_name)
    return value.strip()


def _storage_body(content: str) -> Dict[str, str]:
    return {"representation": STORAGE_REPRESENTATION, "value": content}


def _page_url(config: AtlassianConfig, links: Optional[Dict[str, Any]]) -> Optional[str]:
    webui = (links or {}).get("webui")
    return f"{confluence_base_url(config)}{webui}" if webui else None


# =============================================================================
# Page and comment operations
# =============================================================================

async def create_page(
    config: AtlassianConfig,
    space_id: Union[str, int],
    title: str,
    content: str,
    parent_id: Union[str, int],
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """Create a child page in a space.

    space_id must be the numeric space id from API v2, not the space key.
    """
    space = _require_text(space_id, "space_id")
    if not space.isdigit():
        raise create_validation_error(
            "space_id", f"must be the numeric space id, not a space key (got {space!r})"
        )
    title = _require_text(title, "title")
    require_valid(validate_non_empty_string(content, "content"), "content")
    parent = _require_text(parent_id, "parent_id")

    logger.info(f"Creating page '{title}' in space {space} under parent {parent}")
    data = await _call(
        config, "POST", "/api/v2/pages",
        json_body={
            "spaceId": space,
            "status": "current",
            "title": title,
            "parentId": parent,
            "body": _storage_body(content),
        },
        client=client,
    )
    links = data.get("_links") or {}
    return {
        "id": data.get("id"),
        "title": data.get("title"),
        "spaceId": data.get("spaceId", space),
        "version": (data.get("version") or {}).get("number"),
        "url": _page_url(config, links),
    }


async def update_page(
    config: AtlassianConfig,
    page_id: Union[str, int],
    title: Optional[str] = None,
    content: Optional[str] = None,
    version: Optional[int] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """Update the title and/or content of a page.

    The current page is fetched first: the new version number is the current
    one plus one, and a missing title or content keeps the current value. A
    caller-supplied version older than the current one means the page was
    edited concurrently and is reported as a conflict.
    """
    page = _require_text(page_id, "page_id")
    if version is not None:
        require_valid(validate_positive_integer(version, "version"), "version")

    logger.info(f"Updating page with ID: {page}")
    current = await _call(
        config, "GET", f"/api/v2/pages/{page}",
        params={"body-format": STORAGE_REPRESENTATION}, client=client,
    )
    current_version = (current.get("version") or {}).get("number")
    if not isinstance(current_version, int):
        raise DomainError(ErrorKind.UNKNOWN, f"Page {page} did not report a version number")

    if version is not None and version < current_version:
        raise DomainError(
            ErrorKind.CONFLICT,
            f"Page {page} is at version {current_version}; refusing to overwrite with stale version {version}",
            status_code=409,
            code=ERROR_VERSION_CONFLICT,
        )

    new_title = title if title else current.get("title")
    if not new_title:
        raise create_validation_error("title", "missing title for page update")

    new_content = content
    if not new_content:
        new_content = ((current.get("body") or {}).get("storage") or {}).get("value")
    if not new_content:
        raise create_validation_error("content", "missing content for page update")

    data = await _call(
        config, "PUT", f"/api/v2/pages/{page}",
        json_body={
            "id": page,
            "status": "current",
            "title": new_title,
            "body": _storage_body(new_content),
            "version": {"number": current_version + 1},
        },
        client=client,
    )
    links = data.get("_links") or {}
    return {
        "id": data.get("id", page),
        "title": data.get("title", new_title),
        "version": (data.get("version") or {}).get("number", current_version + 1),
        "self": links.get("self", ""),
        "webui": links.get("webui", ""),
        "url": _page_url(config, links),
    }


async def add_comment(
    config: AtlassianConfig,
    page_id: Union[str, int],
    content: str,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """Add a footer comment to a page."""
    page = _require_text(page_id, "page_id")
    require_valid(validate_non_empty_string(content, "content"), "content")

    logger.info(f"Adding comment to page {page}")
    data = await _call(
        config, "POST", "/api/v2/footer-comments",
        json_body={"pageId": page, "body": _storage_body(content)},
        client=client,
    )
    return {
        "id": data.get("id"),
        "pageId": data.get("pageId", page),
        "version": (data.get("version") or {}).get("number"),
        "url": _page_url(config, data.get("_links")),
    }


# =============================================================================
# List resources
# =============================================================================

def _has_next(data: Dict[str, Any]) -> bool:
    return bool((data.get("_links") or {}).get("next"))


async def list_spaces(
    config: AtlassianConfig,
    uri: str = SPACES_URI,
    params: Optional[Mapping[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """List Confluence spaces."""
    limit, offset = resolve_paging(uri, params)
    data = await _call(config, "GET", "/rest/api/space", params={"start": offset, "limit": limit}, client=client)

    spaces = [
        {
            "key": space.get("key"),
            "name": space.get("name"),
            "type": space.get("type"),
            "status": space.get("status"),
            "url": _page_url(config, space.get("_links")),
        }
        for space in data.get("results", [])
    ]
    total = estimate_total(offset, len(spaces), data.get("totalSize"), has_next=_has_next(data))
    return create_standard_resource(
        uri, spaces, "spaces", total, limit, offset,
        ui_url=f"{confluence_base_url(config)}/spaces",
    )


async def list_space_pages(
    config: AtlassianConfig,
    space_key: str,
    uri: Optional[str] = None,
    params: Optional[Mapping[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """List the pages of a space."""
    key = _require_text(space_key, "space_key")
    uri = uri or SPACE_PAGES_URI.format(space_key=key)
    limit, offset = resolve_paging(uri, params)
    data = await _call(
        config, "GET", "/rest/api/content",
        params={"spaceKey": key, "type": "page", "start": offset, "limit": limit, "expand": "version"},
        client=client,
    )

    pages = [
        {
            "id": page.get("id"),
            "title": page.get("title"),
            "status": page.get("status"),
            "version": (page.get("version") or {}).get("number"),
            "url": _page_url(config, page.get("_links")),
        }
        for page in data.get("results", [])
    ]
    total = estimate_total(offset, len(pages), data.get("totalSize"), has_next=_has_next(data))
    return create_standard_resource(
        uri, pages, "pages", total, limit, offset,
        ui_url=f"{confluence_base_url(config)}/spaces/{key}/pages",
        spaceKey=key,
    )


async def list_page_comments(
    config: AtlassianConfig,
    page_id: Union[str, int],
    uri: Optional[str] = None,
    params: Optional[Mapping[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """List the comments of a page."""
    page = _require_text(page_id, "page_id")
    uri = uri or PAGE_COMMENTS_URI.format(page_id=page)
    limit, offset = resolve_paging(uri, params)
    data = await _call(
        config, "GET", f"/rest/api/content/{page}/child/comment",
        params={"start": offset, "limit": limit, "expand": "body.storage,history"},
        client=client,
    )

    comments = []
    for comment in data.get("results", []):
        history = comment.get("history") or {}
        author = history.get("createdBy") or {}
        comments.append({
            "id": comment.get("id"),
            "pageId": page,
            "body": ((comment.get("body") or {}).get("storage") or {}).get("value", ""),
            "bodyType": STORAGE_REPRESENTATION,
            "createdAt": history.get("createdDate"),
            "createdBy": {
                "accountId": author.get("accountId"),
                "displayName": author.get("displayName"),
            },
        })
    total = estimate_total(offset, len(comments), data.get("totalSize"), has_next=_has_next(data))
    return create_standard_resource(uri, comments, "comments", total, limit, offset, pageId=page)


def _space_key_of(result: Dict[str, Any]) -> Optional[str]:
    space = (result.get("content") or {}).get("space") or {}
    if space.get("key"):
        return space["key"]
    display_url = (result.get("resultGlobalContainer") or {}).get("displayUrl") or ""
    if display_url.startswith("/spaces/"):
        return display_url[len("/spaces/"):].split("/")[0] or None
    return None


async def search_content(
    config: AtlassianConfig,
    cql: str,
    uri: Optional[str] = None,
    params: Optional[Mapping[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """Search pages and blog posts with a CQL query (e.g. 'type=page AND text~"release"')."""
    query = _require_text(cql, "cql")
    uri = uri or f"{SEARCH_URI}?{urlencode({'cql': query})}"
    limit, offset = resolve_paging(uri, params)
    data = await _call(
        config, "GET", "/rest/api/search",
        params={"cql": query, "start": offset, "limit": limit},
        client=client,
    )

    results = []
    for result in data.get("results", []):
        content = result.get("content") or {}
        results.append({
            "id": content.get("id"),
            "title": content.get("title") or result.get("title"),
            "type": content.get("type"),
            "spaceKey": _space_key_of(result),
            "url": f"{confluence_base_url(config)}{result['url']}" if result.get("url") else None,
            "excerpt": result.get("excerpt"),
        })
    total = estimate_total(offset, len(results), data.get("totalSize"), has_next=_has_next(data))
    return create_standard_resource(
        uri, results, "results", total, limit, offset,
        ui_url=f"{confluence_base_url(config)}/search?{urlencode({'cql': query})}",
        cql=query,
    )
