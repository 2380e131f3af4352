"""ABOUTME: HTTP client utilities for Atlassian REST calls - the boundary where raw responses become DomainErrors."""

import base64
import json
import logging
from typing import Any, Dict, Optional

import httpx

from .config import AtlassianConfig
from .error_handling import (
    HTTPStatusCodes,
    create_network_error,
    create_rate_limit_error,
    error_from_status,
)

logger = logging.getLogger(__name__)

# Constants
USER_AGENT = "MCP-Atlassian-Server/1.0.0"
MAX_ERROR_DETAIL_LENGTH = 500

# Returned for 2xx responses whose body is empty or not JSON
EMPTY_SUCCESS_BODY: Dict[str, Any] = {"success": True}


def build_auth_headers(config: AtlassianConfig) -> Dict[str, str]:
    """Build Basic auth and JSON headers for Atlassian Cloud."""
    token = base64.b64encode(f"{config.email}:{config.api_token}".encode()).decode()
    return {
        "Authorization": f"Basic {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    }


def get_retry_after_seconds(response: httpx.Response) -> Optional[int]:
    """Extract Retry-After header from response."""
    retry_after = response.headers.get("retry-after")
    if retry_after:
        try:
            return int(retry_after)
        except ValueError:
            return None
    return None


def extract_error_detail(response: httpx.Response) -> str:
    """Pull a readable message out of an Atlassian error body.

    Jira returns {"errorMessages": [...], "errors": {...}}; Confluence returns
    {"message": ...} or {"errors": [{"title": ...}]}. Anything else falls
    back to the (truncated) raw text.
    """
    text = response.text or ""
    try:
        body = response.json()
    except ValueError:
        return text[:MAX_ERROR_DETAIL_LENGTH]

    messages = []
    if isinstance(body, dict):
        messages.extend(str(m) for m in body.get("errorMessages") or [])
        errors = body.get("errors")
        if isinstance(errors, dict):
            messages.extend(f"{k}: {v}" for k, v in errors.items())
        elif isinstance(errors, list):
            messages.extend(
                str(e.get("title") or e.get("detail") or e) if isinstance(e, dict) else str(e)
                for e in errors
            )
        if body.get("message"):
            messages.append(str(body["message"]))

    if messages:
        return "; ".join(messages)
    return text[:MAX_ERROR_DETAIL_LENGTH]


def raise_for_status(response: httpx.Response, service: str = "Atlassian") -> None:
    """Classify a non-2xx response as a DomainError.

    Raises:
        DomainError: kind mapped from the status code
    """
    status = response.status_code
    if HTTPStatusCodes.is_success(status):
        return

    detail = extract_error_detail(response)
    logger.error(f"{service} API error ({status}): {detail}")

    if HTTPStatusCodes.is_rate_limit(status):
        raise create_rate_limit_error(get_retry_after_seconds(response))
    raise error_from_status(status, f"{service} API error: {status} {detail}".rstrip())


def parse_response_body(response: httpx.Response) -> Any:
    """Parse a successful response body leniently.

    204, empty, and non-JSON bodies are reported as EMPTY_SUCCESS_BODY.
    """
    if response.status_code == 204 or response.headers.get("content-length") == "0":
        return dict(EMPTY_SUCCESS_BODY)
    text = response.text
    if not text or not text.strip():
        return dict(EMPTY_SUCCESS_BODY)
    try:
        return json.loads(text)
    except ValueError:
        return dict(EMPTY_SUCCESS_BODY)


async def send_request(
    config: AtlassianConfig,
    method: str,
    url: str,
    json_body: Optional[Any] = None,
    params: Optional[Dict[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None
) -> httpx.Response:
    """Perform one authenticated request and return the raw response.

    Transport failures (connection errors, timeouts) are converted to network
    DomainErrors here; HTTP status codes are left to raise_for_status().

    Args:
        config: Atlassian site and credentials
        method: HTTP method
        url: Absolute URL
        json_body: Optional JSON payload
        params: Optional query parameters (None values are dropped)
        client: Optional shared httpx.AsyncClient (a new one is created otherwise)
    """
    headers = build_auth_headers(config)
    query = {k: v for k, v in (params or {}).items() if v is not None} or None
    logger.debug(f"{method} {url} params={query}")

    try:
        if client is not None:
            return await client.request(method, url, headers=headers, params=query, json=json_body)
        async with httpx.AsyncClient(timeout=config.timeout) as new_client:
            return await new_client.request(method, url, headers=headers, params=query, json=json_body)
    except httpx.TimeoutException as e:
        logger.error(f"Timeout calling {method} {url}: {e}")
        raise create_network_error(url, f"request timed out after {config.timeout} seconds", timed_out=True)
    except httpx.TransportError as e:
        logger.error(f"Transport error calling {method} {url}: {e}")
        raise create_network_error(url, str(e) or type(e).__name__)


async def request_json(
    config: AtlassianConfig,
    method: str,
    url: str,
    json_body: Optional[Any] = None,
    params: Optional[Dict[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None,
    service: str = "Atlassian"
) -> Any:
    """Send a request, classify failures, and return the parsed body."""
    response = await send_request(config, method, url, json_body=json_body, params=params, client=client)
    raise_for_status(response, service)
    return parse_response_body(response)


__all__ = [
    "USER_AGENT",
    "EMPTY_SUCCESS_BODY",
    "build_auth_headers",
    "get_retry_after_seconds",
    "extract_error_detail",
    "raise_for_status",
    "parse_response_body",
    "send_request",
    "request_json",
]
