"""ABOUTME: Pytest configuration and shared fixtures for Atlassian MCP tests.

Provides a fixed Atlassian configuration and an in-memory Atlassian API built
on httpx.MockTransport so domain operations run without network access.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from atlassian_mcp.common.config import AtlassianConfig
from atlassian_mcp.common.mcp_base import MCPServerBase


class FakeAtlassianAPI:
    """Routes (method, path) pairs to canned responses and records every request."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json_body: Optional[Any] = None,
        text: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> None:
        self.routes[(method, path)] = {"status": status, "json_body": json_body, "text": text, "headers": headers}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"errorMessages": [f"No route for {request.method} {request.url.path}"]})
        if route["json_body"] is not None:
            return httpx.Response(route["status"], json=route["json_body"], headers=route["headers"])
        return httpx.Response(route["status"], text=route["text"] or "", headers=route["headers"])

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def body(self, index: int) -> Any:
        """Decoded JSON body of the index-th recorded request."""
        return json.loads(self.requests[index].content)


@pytest.fixture
def atlassian_config():
    """Fixture providing a fixed Atlassian configuration.

    Returns:
        AtlassianConfig for https://example.atlassian.net
    """
    return AtlassianConfig(
        base_url="https://example.atlassian.net",
        email="dev@example.com",
        api_token="secret-token",
        timeout=5.0,
    )


@pytest.fixture
def fake_api():
    """Fixture providing an in-memory Atlassian API.

    Returns:
        FakeAtlassianAPI with no routes registered
    """
    return FakeAtlassianAPI()


@pytest.fixture
def test_server(atlassian_config):
    """Fixture providing a server base whose configuration loader never reads the environment.

    Returns:
        MCPServerBase named "test-atlassian"
    """
    return MCPServerBase("test-atlassian", config_loader=lambda: atlassian_config)


@pytest.fixture
def atlassian_server(monkeypatch, atlassian_config, fake_api):
    """Fixture providing the registered Atlassian server wired to the in-memory API.

    Every httpx.AsyncClient created by the operations is routed to fake_api,
    and the configuration loader returns atlassian_config.

    Returns:
        The atlassian_mcp.server module
    """
    from atlassian_mcp import server as atlassian_server

    real_client = httpx.AsyncClient
    transport = httpx.MockTransport(fake_api.handler)
    monkeypatch.setattr(httpx, "AsyncClient", lambda **kwargs: real_client(**{"transport": transport, **kwargs}))
    monkeypatch.setattr(atlassian_server.server, "config_loader", lambda: atlassian_config)
    return atlassian_server
