"""ABOUTME: Atlassian MCP Server - Jira Software agile and Confluence tools and resources.

Every tool and resource passes its domain operation through the shared handler
wrapper, so clients always receive one JSON envelope:
{"success": true, "message", "data"} or {"success": false, "message", "code", "statusCode", "type"}.
"""

from typing import Any, Dict, List, Optional

from mcp.types import CallToolResult

from . import confluence, jira_agile
from .common.config import AtlassianConfig, AtlassianSettings
from .common.error_handling import create_not_found_error
from .common.mcp_base import MCPServerBase, Operation
from .common.pagination import DEFAULT_LIMIT, DEFAULT_OFFSET
from .common.responses import JSON_MIME_TYPE

settings = AtlassianSettings()

# Initialize MCP server with base class
server = MCPServerBase(
    settings.mcp_server_name,
    log_level=settings.log_level.upper(),
    server_version=settings.mcp_server_version,
)
mcp = server.get_mcp()
logger = server.get_logger()


def _paging(limit: int, offset: int) -> Dict[str, Any]:
    return {"limit": limit, "offset": offset}


# ============================================================================
# JIRA AGILE TOOLS
# ============================================================================

@mcp.tool(name="addIssuesToBacklog")
async def add_issues_to_backlog(issue_keys: List[str], board_id: Optional[str] = None) -> CallToolResult:
    """Move issues to the backlog (optionally the backlog of a specific board).

    Args:
        issue_keys: Issue keys such as ["PROJ-1", "PROJ-2"] (at most 50)
        board_id: Optional board ID
    """
    return await server.run_tool(
        "addIssuesToBacklog", jira_agile.add_issues_to_backlog,
        issue_keys=issue_keys, board_id=board_id,
    )


@mcp.tool(name="addIssueToBoard")
async def add_issue_to_board(board_id: str, issue_key: str) -> CallToolResult:
    """Add an issue to a board by moving it to the board backlog."""
    return await server.run_tool(
        "addIssueToBoard", jira_agile.add_issue_to_board,
        board_id=board_id, issue_key=issue_key,
    )


@mcp.tool(name="rankBacklogIssues")
async def rank_backlog_issues(
    board_id: str,
    issue_keys: List[str],
    rank_before_issue: Optional[str] = None,
    rank_after_issue: Optional[str] = None
) -> CallToolResult:
    """Rank issues before or after another issue in the backlog.

    Give exactly one of rank_before_issue or rank_after_issue.
    """
    return await server.run_tool(
        "rankBacklogIssues", jira_agile.rank_backlog_issues,
        board_id=board_id,
        issue_keys=issue_keys,
        rank_before_issue=rank_before_issue,
        rank_after_issue=rank_after_issue,
    )


@mcp.tool(name="configureBoardColumns")
async def configure_board_columns(board_id: str, columns: List[Dict[str, Any]]) -> CallToolResult:
    """Replace the column configuration of a board.

    Args:
        board_id: Board ID
        columns: Columns such as [{"name": "To Do", "statuses": [{"id": "1"}]}]
    """
    return await server.run_tool(
        "configureBoardColumns", jira_agile.configure_board_columns,
        board_id=board_id, columns=columns,
    )


@mcp.tool(name="createSprint")
async def create_sprint(
    board_id: str,
    name: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    goal: Optional[str] = None
) -> CallToolResult:
    """Create a new sprint on a board. Dates are ISO 8601 (2024-05-01T09:00:00.000Z)."""
    return await server.run_tool(
        "createSprint", jira_agile.create_sprint,
        board_id=board_id, name=name, start_date=start_date, end_date=end_date, goal=goal,
    )


@mcp.tool(name="startSprint")
async def start_sprint(
    sprint_id: str,
    start_date: str,
    end_date: str,
    goal: Optional[str] = None
) -> CallToolResult:
    """Start a future sprint."""
    return await server.run_tool(
        "startSprint", jira_agile.start_sprint,
        sprint_id=sprint_id, start_date=start_date, end_date=end_date, goal=goal,
    )


@mcp.tool(name="closeSprint")
async def close_sprint(sprint_id: str, complete_date: Optional[str] = None) -> CallToolResult:
    """Close an active sprint."""
    return await server.run_tool(
        "closeSprint", jira_agile.close_sprint,
        sprint_id=sprint_id, complete_date=complete_date,
    )


@mcp.tool(name="addIssuesToSprint")
async def add_issues_to_sprint(sprint_id: str, issue_keys: List[str]) -> CallToolResult:
    """Add issues to a future or active sprint."""
    return await server.run_tool(
        "addIssuesToSprint", jira_agile.add_issues_to_sprint,
        sprint_id=sprint_id, issue_keys=issue_keys,
    )


@mcp.tool(name="moveIssuesBetweenSprints")
async def move_issues_between_sprints(
    from_sprint_id: str,
    to_sprint_id: str,
    issue_keys: List[str]
) -> CallToolResult:
    """Move issues from one sprint to another."""
    return await server.run_tool(
        "moveIssuesBetweenSprints", jira_agile.move_issues_between_sprints,
        from_sprint_id=from_sprint_id, to_sprint_id=to_sprint_id, issue_keys=issue_keys,
    )


@mcp.tool(name="listBoards")
async def list_boards(limit: int = DEFAULT_LIMIT, offset: int = DEFAULT_OFFSET) -> CallToolResult:
    """List agile boards with paging metadata."""
    return await server.run_tool("listBoards", jira_agile.list_boards, params=_paging(limit, offset))


@mcp.tool(name="listBoardSprints")
async def list_board_sprints(
    board_id: str,
    limit: int = DEFAULT_LIMIT,
    offset: int = DEFAULT_OFFSET
) -> CallToolResult:
    """List the sprints of a board with paging metadata."""
    return await server.run_tool(
        "listBoardSprints", jira_agile.list_board_sprints,
        board_id=board_id, params=_paging(limit, offset),
    )


@mcp.tool(name="listBoardBacklog")
async def list_board_backlog(
    board_id: str,
    limit: int = DEFAULT_LIMIT,
    offset: int = DEFAULT_OFFSET
) -> CallToolResult:
    """List the backlog issues of a board with paging metadata."""
    return await server.run_tool(
        "listBoardBacklog", jira_agile.list_board_backlog,
        board_id=board_id, params=_paging(limit, offset),
    )


# ============================================================================
# CONFLUENCE TOOLS
# ============================================================================

@mcp.tool(name="createPage")
async def create_page(space_id: str, title: str, content: str, parent_id: str) -> CallToolResult:
    """Create a Confluence page under a parent page.

    Args:
        space_id: Numeric space ID (not the space key)
        title: Page title
        content: Page body in Confluence storage format, e.g. "<p>Hello</p>"
        parent_id: ID of the parent page
    """
    return await server.run_tool(
        "createPage", confluence.create_page,
        space_id=space_id, title=title, content=content, parent_id=parent_id,
    )


@mcp.tool(name="updatePage")
async def update_page(
    page_id: str,
    title: Optional[str] = None,
    content: Optional[str] = None,
    version: Optional[int] = None
) -> CallToolResult:
    """Update the title and/or content of a Confluence page.

    Args:
        page_id: Page ID
        title: New title (keeps the current title when omitted)
        content: New body in storage format (keeps the current body when omitted)
        version: Version the caller last saw; an older version is rejected as a conflict
    """
    return await server.run_tool(
        "updatePage", confluence.update_page,
        page_id=page_id, title=title, content=content, version=version,
    )


@mcp.tool(name="addComment")
async def add_comment(page_id: str, content: str) -> CallToolResult:
    """Add a footer comment (storage format) to a Confluence page."""
    return await server.run_tool("addComment", confluence.add_comment, page_id=page_id, content=content)


@mcp.tool(name="listSpaces")
async def list_spaces(limit: int = DEFAULT_LIMIT, offset: int = DEFAULT_OFFSET) -> CallToolResult:
    """List Confluence spaces with paging metadata."""
    return await server.run_tool("listSpaces", confluence.list_spaces, params=_paging(limit, offset))


@mcp.tool(name="listSpacePages")
async def list_space_pages(
    space_key: str,
    limit: int = DEFAULT_LIMIT,
    offset: int = DEFAULT_OFFSET
) -> CallToolResult:
    """List the pages of a Confluence space with paging metadata."""
    return await server.run_tool(
        "listSpacePages", confluence.list_space_pages,
        space_key=space_key, params=_paging(limit, offset),
    )


@mcp.tool(name="listPageComments")
async def list_page_comments(
    page_id: str,
    limit: int = DEFAULT_LIMIT,
    offset: int = DEFAULT_OFFSET
) -> CallToolResult:
    """List the comments of a Confluence page with paging metadata."""
    return await server.run_tool(
        "listPageComments", confluence.list_page_comments,
        page_id=page_id, params=_paging(limit, offset),
    )


@mcp.tool(name="searchContent")
async def search_content(
    cql: str,
    limit: int = DEFAULT_LIMIT,
    offset: int = DEFAULT_OFFSET
) -> CallToolResult:
    """Search Confluence with CQL, e.g. 'type=page AND space=DEV AND text~"release"'."""
    return await server.run_tool(
        "searchContent", confluence.search_content,
        cql=cql, params=_paging(limit, offset),
    )


# ============================================================================
# RESOURCES
# ============================================================================
# Every list resource is registered twice: the bare URI serves the first page
# and the "{query}" template serves the next/previous links of its metadata,
# e.g. jira://boards?limit=20&offset=20.

def _query_page(operation: Operation) -> Operation:
    """Adapt a list operation to take its paging from a "?limit=..&offset=.." URI suffix."""
    async def read_page(config: AtlassianConfig, uri: str, query: str, **params: Any) -> Any:
        if not query.startswith("?"):
            raise create_not_found_error("resource", f"{uri}{query}")
        return await operation(config, uri=f"{uri}{query}", **params)

    return read_page


@mcp.resource(jira_agile.BOARDS_URI, mime_type=JSON_MIME_TYPE)
async def boards_resource() -> str:
    """Agile boards visible to the user."""
    return await server.run_resource("boards", jira_agile.BOARDS_URI, jira_agile.list_boards)


@mcp.resource(jira_agile.BOARDS_URI + "{query}", mime_type=JSON_MIME_TYPE)
async def boards_page_resource(query: str) -> str:
    """One page of agile boards."""
    return await server.run_resource(
        "boards", jira_agile.BOARDS_URI, _query_page(jira_agile.list_boards), query=query,
    )


@mcp.resource(jira_agile.BOARD_SPRINTS_URI, mime_type=JSON_MIME_TYPE)
async def board_sprints_resource(board_id: str) -> str:
    """Sprints of one board."""
    return await server.run_resource(
        "boardSprints",
        jira_agile.BOARD_SPRINTS_URI.format(board_id=board_id),
        jira_agile.list_board_sprints,
        board_id=board_id,
    )


@mcp.resource(jira_agile.BOARD_SPRINTS_URI + "{query}", mime_type=JSON_MIME_TYPE)
async def board_sprints_page_resource(board_id: str, query: str) -> str:
    """One page of the sprints of a board."""
    return await server.run_resource(
        "boardSprints",
        jira_agile.BOARD_SPRINTS_URI.format(board_id=board_id),
        _query_page(jira_agile.list_board_sprints),
        board_id=board_id,
        query=query,
    )


@mcp.resource(jira_agile.BOARD_BACKLOG_URI, mime_type=JSON_MIME_TYPE)
async def board_backlog_resource(board_id: str) -> str:
    """Backlog issues of one board."""
    return await server.run_resource(
        "boardBacklog",
        jira_agile.BOARD_BACKLOG_URI.format(board_id=board_id),
        jira_agile.list_board_backlog,
        board_id=board_id,
    )


@mcp.resource(jira_agile.BOARD_BACKLOG_URI + "{query}", mime_type=JSON_MIME_TYPE)
async def board_backlog_page_resource(board_id: str, query: str) -> str:
    """One page of the backlog of a board."""
    return await server.run_resource(
        "boardBacklog",
        jira_agile.BOARD_BACKLOG_URI.format(board_id=board_id),
        _query_page(jira_agile.list_board_backlog),
        board_id=board_id,
        query=query,
    )


@mcp.resource(confluence.SPACES_URI, mime_type=JSON_MIME_TYPE)
async def spaces_resource() -> str:
    """Confluence spaces."""
    return await server.run_resource("spaces", confluence.SPACES_URI, confluence.list_spaces)


@mcp.resource(confluence.SPACES_URI + "{query}", mime_type=JSON_MIME_TYPE)
async def spaces_page_resource(query: str) -> str:
    """One page of Confluence spaces."""
    return await server.run_resource(
        "spaces", confluence.SPACES_URI, _query_page(confluence.list_spaces), query=query,
    )


@mcp.resource(confluence.SPACE_PAGES_URI, mime_type=JSON_MIME_TYPE)
async def space_pages_resource(space_key: str) -> str:
    """Pages of one Confluence space."""
    return await server.run_resource(
        "spacePages",
        confluence.SPACE_PAGES_URI.format(space_key=space_key),
        confluence.list_space_pages,
        space_key=space_key,
    )


@mcp.resource(confluence.SPACE_PAGES_URI + "{query}", mime_type=JSON_MIME_TYPE)
async def space_pages_page_resource(space_key: str, query: str) -> str:
    """One page of the pages of a Confluence space."""
    return await server.run_resource(
        "spacePages",
        confluence.SPACE_PAGES_URI.format(space_key=space_key),
        _query_page(confluence.list_space_pages),
        space_key=space_key,
        query=query,
    )


@mcp.resource(confluence.PAGE_COMMENTS_URI, mime_type=JSON_MIME_TYPE)
async def page_comments_resource(page_id: str) -> str:
    """Comments of one Confluence page."""
    return await server.run_resource(
        "pageComments",
        confluence.PAGE_COMMENTS_URI.format(page_id=page_id),
        confluence.list_page_comments,
        page_id=page_id,
    )


@mcp.resource(confluence.PAGE_COMMENTS_URI + "{query}", mime_type=JSON_MIME_TYPE)
async def page_comments_page_resource(page_id: str, query: str) -> str:
    """One page of the comments of a Confluence page."""
    return await server.run_resource(
        "pageComments",
        confluence.PAGE_COMMENTS_URI.format(page_id=page_id),
        _query_page(confluence.list_page_comments),
        page_id=page_id,
        query=query,
    )
