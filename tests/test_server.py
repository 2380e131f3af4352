"""ABOUTME: Tests for the server base adapters and the registered Atlassian tools and resources."""

import json

import pytest

from atlassian_mcp.common.error_handling import ConfigurationError, DomainError, ErrorKind
from atlassian_mcp.common.mcp_base import MCPServerBase


class TestRunTool:
    """Tests for MCPServerBase.run_tool()."""

    @pytest.mark.asyncio
    async def test_success(self, test_server, atlassian_config):
        """Test the operation receives the configuration and its result becomes data."""
        async def operation(config, board_id):
            return {"site": config.base_url, "board": board_id}

        result = await test_server.run_tool("listBoardSprints", operation, board_id="7")

        assert result.isError is False
        assert json.loads(result.content[0].text) == {
            "success": True,
            "message": "listBoardSprints executed successfully",
            "data": {"site": atlassian_config.base_url, "board": "7"},
        }

    @pytest.mark.asyncio
    async def test_domain_error(self, test_server):
        """Test domain errors come back as a flagged failure envelope."""
        async def operation(config):
            raise DomainError(ErrorKind.PERMISSION, "Jira API error: 403 Forbidden", status_code=403, code="http_403")

        result = await test_server.run_tool("closeSprint", operation)

        assert result.isError is True
        assert json.loads(result.content[0].text) == {
            "success": False,
            "message": "Jira API error: 403 Forbidden",
            "code": "http_403",
            "statusCode": 403,
            "type": "permission_error",
        }

    @pytest.mark.asyncio
    async def test_missing_configuration(self):
        """Test a configuration failure is reported instead of raised."""
        def missing_config():
            raise ConfigurationError("Missing Atlassian credentials in environment variables: ATLASSIAN_API_TOKEN")

        calls = []

        async def operation(config):
            calls.append(config)

        server = MCPServerBase("test-atlassian", config_loader=missing_config)
        result = await server.run_tool("listBoards", operation)

        envelope = json.loads(result.content[0].text)
        assert result.isError is True
        assert envelope["type"] == "authentication_error"
        assert envelope["code"] == "missing_configuration"
        assert calls == []

    @pytest.mark.asyncio
    async def test_configuration_read_per_call(self, atlassian_config):
        """Test the configuration loader runs once for every invocation."""
        loads = []

        def loader():
            loads.append(1)
            return atlassian_config

        async def operation(config):
            return None

        server = MCPServerBase("test-atlassian", config_loader=loader)
        await server.run_tool("a", operation)
        await server.run_tool("b", operation)
        assert len(loads) == 2


class TestRunResource:
    """Tests for MCPServerBase.run_resource()."""

    @pytest.mark.asyncio
    async def test_resource_receives_uri(self, test_server):
        """Test resources get their URI and render the envelope as JSON text."""
        async def operation(config, uri, board_id):
            return {"uri": uri, "boardId": board_id}

        text = await test_server.run_resource("boardSprints", "jira://boards/7/sprints", operation, board_id="7")

        assert json.loads(text)["data"] == {"uri": "jira://boards/7/sprints", "boardId": "7"}

    @pytest.mark.asyncio
    async def test_resource_failure(self, test_server):
        """Test unexpected failures become a bare failure envelope."""
        async def operation(config, uri):
            raise RuntimeError("boom")

        text = await test_server.run_resource("spaces", "confluence://spaces", operation)
        assert json.loads(text) == {"success": False, "message": "boom"}


class TestRegistration:
    """Tests for the tools and resources registered by the Atlassian server."""

    @pytest.mark.asyncio
    async def test_tools_registered(self):
        """Test every agile and Confluence tool is registered under its camelCase name."""
        from atlassian_mcp.server import mcp

        names = {tool.name for tool in await mcp.list_tools()}
        assert names == {
            "addIssuesToBacklog",
            "addIssueToBoard",
            "rankBacklogIssues",
            "configureBoardColumns",
            "createSprint",
            "startSprint",
            "closeSprint",
            "addIssuesToSprint",
            "moveIssuesBetweenSprints",
            "listBoards",
            "listBoardSprints",
            "listBoardBacklog",
            "createPage",
            "updatePage",
            "addComment",
            "listSpaces",
            "listSpacePages",
            "listPageComments",
            "searchContent",
        }

    @pytest.mark.asyncio
    async def test_resources_registered(self):
        """Test static resources and resource templates are JSON."""
        from atlassian_mcp.server import mcp

        resources = await mcp.list_resources()
        templates = await mcp.list_resource_templates()

        assert {str(r.uri).rstrip("/") for r in resources} == {"jira://boards", "confluence://spaces"}
        assert {t.uriTemplate for t in templates} == {
            "jira://boards{query}",
            "jira://boards/{board_id}/sprints",
            "jira://boards/{board_id}/sprints{query}",
            "jira://boards/{board_id}/backlog",
            "jira://boards/{board_id}/backlog{query}",
            "confluence://spaces{query}",
            "confluence://spaces/{space_key}/pages",
            "confluence://spaces/{space_key}/pages{query}",
            "confluence://pages/{page_id}/comments",
            "confluence://pages/{page_id}/comments{query}",
        }
        assert all(r.mimeType == "application/json" for r in resources)
        assert all(t.mimeType == "application/json" for t in templates)

    @pytest.mark.asyncio
    async def test_tool_call_without_credentials(self, monkeypatch):
        """Test calling a tool with no credentials yields a failure result, not an exception."""
        from atlassian_mcp import server as atlassian_server
        from atlassian_mcp.common.config import AtlassianSettings, get_config

        monkeypatch.setattr(
            atlassian_server.server, "config_loader",
            lambda: get_config(AtlassianSettings(
                _env_file=None, atlassian_site_name="", atlassian_user_email="", atlassian_api_token=""
            )),
        )
        result = await atlassian_server.close_sprint(sprint_id="1")

        assert result.isError is True
        assert json.loads(result.content[0].text)["code"] == "missing_configuration"


AGILE = "/rest/agile/1.0"
WIKI = "/wiki"

# (tool name, server function, arguments)
TOOL_CALLS = [
    ("addIssuesToBacklog", "add_issues_to_backlog", {"issue_keys": ["PROJ-1"], "board_id": "5"}),
    ("addIssueToBoard", "add_issue_to_board", {"board_id": "5", "issue_key": "PROJ-1"}),
    ("rankBacklogIssues", "rank_backlog_issues", {"board_id": "5", "issue_keys": ["PROJ-2"], "rank_before_issue": "PROJ-1"}),
    ("configureBoardColumns", "configure_board_columns", {"board_id": "5", "columns": [{"name": "To Do"}]}),
    ("createSprint", "create_sprint", {"board_id": "5", "name": "Sprint 7", "goal": "Ship it"}),
    ("startSprint", "start_sprint", {
        "sprint_id": "37", "start_date": "2024-05-01T09:00:00.000Z", "end_date": "2024-05-15T17:00:00.000Z",
    }),
    ("closeSprint", "close_sprint", {"sprint_id": "37"}),
    ("addIssuesToSprint", "add_issues_to_sprint", {"sprint_id": "37", "issue_keys": ["PROJ-1"]}),
    ("moveIssuesBetweenSprints", "move_issues_between_sprints", {
        "from_sprint_id": "37", "to_sprint_id": "38", "issue_keys": ["PROJ-1"],
    }),
    ("listBoards", "list_boards", {}),
    ("listBoardSprints", "list_board_sprints", {"board_id": "5", "limit": 5}),
    ("listBoardBacklog", "list_board_backlog", {"board_id": "5"}),
    ("createPage", "create_page", {"space_id": "98304", "title": "Runbook", "content": "<p>x</p>", "parent_id": "100"}),
    ("updatePage", "update_page", {"page_id": "123", "content": "<p>y</p>"}),
    ("addComment", "add_comment", {"page_id": "123", "content": "<p>LGTM</p>"}),
    ("listSpaces", "list_spaces", {}),
    ("listSpacePages", "list_space_pages", {"space_key": "DEV"}),
    ("listPageComments", "list_page_comments", {"page_id": "123", "offset": 20}),
    ("searchContent", "search_content", {"cql": "type=page"}),
]

RESOURCE_URIS = [
    "jira://boards",
    "jira://boards?limit=5&offset=20",
    "jira://boards/5/sprints",
    "jira://boards/5/sprints?offset=20",
    "jira://boards/5/backlog",
    "jira://boards/5/backlog?limit=10",
    "confluence://spaces",
    "confluence://spaces?limit=5&offset=5",
    "confluence://spaces/DEV/pages",
    "confluence://spaces/DEV/pages?offset=40",
    "confluence://pages/123/comments",
    "confluence://pages/123/comments?limit=2",
]


@pytest.fixture
def atlassian_routes(fake_api):
    """Fixture registering a response for every endpoint the server calls.

    Returns:
        FakeAtlassianAPI with Jira agile and Confluence routes
    """
    for method, path in [
        ("POST", f"{AGILE}/backlog/issue"),
        ("POST", f"{AGILE}/backlog/5/issue"),
        ("PUT", f"{AGILE}/issue/rank"),
        ("POST", f"{AGILE}/sprint/37/issue"),
        ("POST", f"{AGILE}/sprint/38/issue"),
    ]:
        fake_api.add(method, path, status=204)
    fake_api.add("GET", f"{AGILE}/board/5/configuration", json_body={"id": 5, "columnConfig": {"columns": []}})
    fake_api.add("PUT", f"{AGILE}/board/5/configuration", json_body={"id": 5})
    fake_api.add("POST", f"{AGILE}/sprint", status=201, json_body={"id": 37, "state": "future"})
    fake_api.add("POST", f"{AGILE}/sprint/37", json_body={"id": 37})
    fake_api.add("GET", f"{AGILE}/board", json_body={"total": 45, "values": [{"id": 5, "name": "Alpha"}]})
    fake_api.add("GET", f"{AGILE}/board/5/sprint", json_body={"isLast": True, "values": [{"id": 37}]})
    fake_api.add("GET", f"{AGILE}/board/5/backlog", json_body={"total": 1, "issues": [{"key": "PROJ-1"}]})

    fake_api.add("POST", f"{WIKI}/api/v2/pages", json_body={"id": "555", "version": {"number": 1}})
    fake_api.add("GET", f"{WIKI}/api/v2/pages/123", json_body={
        "id": "123", "title": "Release notes", "version": {"number": 4},
    })
    fake_api.add("PUT", f"{WIKI}/api/v2/pages/123", json_body={"id": "123", "version": {"number": 5}})
    fake_api.add("POST", f"{WIKI}/api/v2/footer-comments", json_body={"id": "900", "pageId": "123"})
    fake_api.add("GET", f"{WIKI}/rest/api/space", json_body={"results": [{"key": "DEV"}], "totalSize": 1})
    fake_api.add("GET", f"{WIKI}/rest/api/content", json_body={"results": [{"id": "1"}]})
    fake_api.add("GET", f"{WIKI}/rest/api/content/123/child/comment", json_body={"results": []})
    fake_api.add("GET", f"{WIKI}/rest/api/search", json_body={"results": [], "totalSize": 0})
    return fake_api


async def read_envelope(mcp, uri):
    contents = list(await mcp.read_resource(uri))
    assert contents[0].mime_type == "application/json"
    return json.loads(contents[0].content)


class TestRegisteredTools:
    """Tests driving every registered tool against the in-memory API."""

    @pytest.mark.asyncio
    async def test_every_tool_is_exercised(self, atlassian_server):
        """Test the call table below covers every registered tool."""
        names = {tool.name for tool in await atlassian_server.mcp.list_tools()}
        assert names == {tool_name for tool_name, _, _ in TOOL_CALLS}

    @pytest.mark.parametrize("tool_name,function_name,arguments", TOOL_CALLS)
    @pytest.mark.asyncio
    async def test_tool_succeeds(self, atlassian_server, atlassian_routes, tool_name, function_name, arguments):
        """Test each tool returns a success envelope."""
        result = await getattr(atlassian_server, function_name)(**arguments)

        envelope = json.loads(result.content[0].text)
        assert result.isError is False, envelope
        assert envelope["success"] is True
        assert envelope["message"] == f"{tool_name} executed successfully"
        assert atlassian_routes.requests

    @pytest.mark.asyncio
    async def test_create_sprint_name_reaches_jira(self, atlassian_server, atlassian_routes):
        """Test a tool argument called name is passed to the operation, not taken as the tool name."""
        result = await atlassian_server.create_sprint(board_id="5", name="Sprint 7")

        assert result.isError is False
        assert atlassian_routes.body(0) == {"name": "Sprint 7", "originBoardId": 5}

    @pytest.mark.asyncio
    async def test_list_tool_links_keep_limit(self, atlassian_server, atlassian_routes):
        """Test a list tool called with a limit reports links with the same limit."""
        result = await atlassian_server.list_boards(limit=5, offset=0)

        metadata = json.loads(result.content[0].text)["data"]["metadata"]
        assert metadata["next"] == "jira://boards?limit=5&offset=5"


class TestRegisteredResources:
    """Tests reading every registered resource through FastMCP."""

    @pytest.mark.parametrize("uri", RESOURCE_URIS)
    @pytest.mark.asyncio
    async def test_resource_succeeds(self, atlassian_server, atlassian_routes, uri):
        """Test each resource URI, with and without a paging query, returns a success envelope."""
        envelope = await read_envelope(atlassian_server.mcp, uri)

        assert envelope["success"] is True, envelope
        assert envelope["data"]["metadata"]["uri"] == uri

    @pytest.mark.asyncio
    async def test_next_link_can_be_read(self, atlassian_server, atlassian_routes):
        """Test the next link of a resource page opens the following page."""
        first = await read_envelope(atlassian_server.mcp, "jira://boards")
        next_uri = first["data"]["metadata"]["next"]
        assert next_uri == "jira://boards?limit=20&offset=20"

        second = await read_envelope(atlassian_server.mcp, next_uri)

        assert atlassian_routes.requests[-1].url.params["startAt"] == "20"
        assert second["data"]["metadata"]["offset"] == 20
        assert second["data"]["metadata"]["previous"] == "jira://boards?limit=20&offset=0"

    @pytest.mark.asyncio
    async def test_query_paging_reaches_api(self, atlassian_server, atlassian_routes):
        """Test limit and offset of a resource URI become the API paging parameters."""
        await read_envelope(atlassian_server.mcp, "confluence://spaces/DEV/pages?limit=5&offset=40")

        params = atlassian_routes.requests[-1].url.params
        assert params["start"] == "40"
        assert params["limit"] == "5"

    @pytest.mark.asyncio
    async def test_suffix_without_query_is_not_found(self, atlassian_server, atlassian_routes):
        """Test a URI that extends a resource name without a query is reported as not found."""
        envelope = await read_envelope(atlassian_server.mcp, "jira://boardsXYZ")

        assert envelope["success"] is False
        assert envelope["type"] == "not_found_error"
        assert envelope["statusCode"] == 404
        assert atlassian_routes.requests == []


class TestServerBase:
    """Tests for server metadata and logging."""

    def test_version_reported(self, atlassian_config):
        """Test the configured version is reported during initialization."""
        server = MCPServerBase("test-atlassian", config_loader=lambda: atlassian_config, server_version="2.3.4")
        options = server.get_mcp()._mcp_server.create_initialization_options()
        assert options.server_version == "2.3.4"

    @pytest.mark.asyncio
    async def test_long_arguments_are_shortened_in_logs(self, test_server, caplog):
        """Test page bodies are not written to the log in full."""
        async def operation(config, content):
            return None

        with caplog.at_level("INFO"):
            await test_server.run_tool("addComment", operation, content="<p>" + "x" * 5000 + "</p>")

        assert "x" * 200 not in caplog.text
        assert "(5007 chars)" in caplog.text
