"""ABOUTME: Jira Software (agile) operations - boards, sprints and backlogs.

Every operation takes the Atlassian configuration explicitly, performs its
round trips through the shared HTTP boundary and returns plain JSON data.
Failures surface as DomainErrors for the handler wrapper to render.

Reference:
    https://developer.atlassian.com/cloud/jira/software/rest/
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import httpx

from .common.config import AtlassianConfig
from .common.error_handling import create_validation_error
from .common.http_utils import request_json
from .common.pagination import create_standard_resource, estimate_total, resolve_paging
from .common.validation import (
    require_valid,
    validate_datetime_string,
    validate_issue_keys,
    validate_non_empty_string,
)

logger = logging.getLogger(__name__)

SERVICE = "Jira"

BOARDS_URI = "jira://boards"
BOARD_SPRINTS_URI = "jira://boards/{board_id}/sprints"
BOARD_BACKLOG_URI = "jira://boards/{board_id}/backlog"

BACKLOG_FIELDS = "summary,status,issuetype,assignee,priority"


def _agile_url(config: AtlassianConfig, path: str) -> str:
    return f"{config.base_url}/rest/agile/1.0{path}"


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
        _agile_url(config, path),
        json_body=json_body,
        params=params,
        client=client,
        service=SERVICE,
    )


def _require_id(value: Any, field_name: str) -> str:
    # Jira ids arrive as numbers or strings depending on the client
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    require_valid(validate_non_empty_string(value, field_name), field_name)
    return value.strip()


def _require_issue_keys(issue_keys: Sequence[str]) -> List[str]:
    require_valid(validate_issue_keys(issue_keys), "issue_keys")
    return [key.strip() for key in issue_keys]


# =============================================================================
# Backlog and board operations
# =============================================================================

async def add_issues_to_backlog(
    config: AtlassianConfig,
    issue_keys: Sequence[str],
    board_id: Optional[Union[str, int]] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Any:
    """Move issues to the backlog, optionally of a specific board."""
    keys = _require_issue_keys(issue_keys)
    path = "/backlog/issue"
    if board_id is not None:
        path = f"/backlog/{_require_id(board_id, 'board_id')}/issue"

    logger.debug(f"Adding issues to backlog{f' for board {board_id}' if board_id else ''}: {', '.join(keys)}")
    return await _call(config, "POST", path, json_body={"issues": keys}, client=client)


async def add_issue_to_board(
    config: AtlassianConfig,
    board_id: Union[str, int],
    issue_key: Union[str, Sequence[str]],
    client: Optional[httpx.AsyncClient] = None
) -> Any:
    """Add one or more issues to a board by moving them to its backlog."""
    keys = [issue_key] if isinstance(issue_key, str) else list(issue_key)
    return await add_issues_to_backlog(config, keys, board_id=board_id, client=client)


async def rank_backlog_issues(
    config: AtlassianConfig,
    board_id: Union[str, int],
    issue_keys: Sequence[str],
    rank_before_issue: Optional[str] = None,
    rank_after_issue: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Any:
    """Rank issues before or after another issue on a board."""
    board = _require_id(board_id, "board_id")
    keys = _require_issue_keys(issue_keys)
    if rank_before_issue and rank_after_issue:
        raise create_validation_error(
            "rank_before_issue",
            "only one of rank_before_issue or rank_after_issue may be given"
        )

    payload: Dict[str, Any] = {"issues": keys}
    if rank_before_issue:
        payload["rankBeforeIssue"] = rank_before_issue
    if rank_after_issue:
        payload["rankAfterIssue"] = rank_after_issue

    logger.debug(f"Ranking issues on board {board}: {', '.join(keys)}")
    return await _call(config, "PUT", "/issue/rank", json_body=payload, client=client)


async def configure_board_columns(
    config: AtlassianConfig,
    board_id: Union[str, int],
    columns: List[Dict[str, Any]],
    client: Optional[httpx.AsyncClient] = None
) -> Any:
    """Replace the column configuration of a board, keeping the rest of its settings."""
    board = _require_id(board_id, "board_id")
    if not isinstance(columns, list) or not columns:
        raise create_validation_error("columns", "at least one column is required")

    path = f"/board/{board}/configuration"
    current = await _call(config, "GET", path, client=client)
    payload = {**current, "columnConfig": {**current.get("columnConfig", {}), "columns": columns}}

    logger.debug(f"Configuring {len(columns)} columns for board {board}")
    return await _call(config, "PUT", path, json_body=payload, client=client)


# =============================================================================
# Sprint operations
# =============================================================================

async def create_sprint(
    config: AtlassianConfig,
    board_id: Union[str, int],
    name: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    goal: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Any:
    """Create a future sprint on a board."""
    board = _require_id(board_id, "board_id")
    require_valid(validate_non_empty_string(name, "name"), "name")

    payload: Dict[str, Any] = {"name": name.strip(), "originBoardId": int(board) if board.isdigit() else board}
    if start_date:
        require_valid(validate_datetime_string(start_date, "start_date"), "start_date")
        payload["startDate"] = start_date
    if end_date:
        require_valid(validate_datetime_string(end_date, "end_date"), "end_date")
        payload["endDate"] = end_date
    if goal:
        payload["goal"] = goal

    logger.debug(f"Creating new sprint '{name}' for board {board}")
    return await _call(config, "POST", "/sprint", json_body=payload, client=client)


async def start_sprint(
    config: AtlassianConfig,
    sprint_id: Union[str, int],
    start_date: str,
    end_date: str,
    goal: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Any:
    """Start a future sprint."""
    sprint = _require_id(sprint_id, "sprint_id")
    require_valid(validate_datetime_string(start_date, "start_date"), "start_date")
    require_valid(validate_datetime_string(end_date, "end_date"), "end_date")

    payload: Dict[str, Any] = {"state": "active", "startDate": start_date, "endDate": end_date}
    if goal:
        payload["goal"] = goal

    logger.debug(f"Starting sprint {sprint}")
    return await _call(config, "POST", f"/sprint/{sprint}", json_body=payload, client=client)


async def close_sprint(
    config: AtlassianConfig,
    sprint_id: Union[str, int],
    complete_date: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Any:
    """Close an active sprint."""
    sprint = _require_id(sprint_id, "sprint_id")

    payload: Dict[str, Any] = {"state": "closed"}
    if complete_date:
        require_valid(validate_datetime_string(complete_date, "complete_date"), "complete_date")
        payload["completeDate"] = complete_date

    logger.debug(f"Closing sprint {sprint}")
    return await _call(config, "POST", f"/sprint/{sprint}", json_body=payload, client=client)


async def add_issues_to_sprint(
    config: AtlassianConfig,
    sprint_id: Union[str, int],
    issue_keys: Sequence[str],
    client: Optional[httpx.AsyncClient] = None
) -> Any:
    """Move issues into a future or active sprint."""
    sprint = _require_id(sprint_id, "sprint_id")
    keys = _require_issue_keys(issue_keys)

    logger.debug(f"Adding issues to sprint {sprint}: {', '.join(keys)}")
    return await _call(config, "POST", f"/sprint/{sprint}/issue", json_body={"issues": keys}, client=client)


async def move_issues_between_sprints(
    config: AtlassianConfig,
    from_sprint_id: Union[str, int],
    to_sprint_id: Union[str, int],
    issue_keys: Sequence[str],
    client: Optional[httpx.AsyncClient] = None
) -> Any:
    """Move issues from one sprint to another.

    The issues are first returned to the backlog, then added to the target
    sprint; a failure in either step fails the whole operation.
    """
    source = _require_id(from_sprint_id, "from_sprint_id")
    target = _require_id(to_sprint_id, "to_sprint_id")
    if source == target:
        raise create_validation_error("to_sprint_id", "target sprint must differ from the source sprint")
    keys = _require_issue_keys(issue_keys)

    logger.debug(f"Moving issues from sprint {source} to sprint {target}: {', '.join(keys)}")
    await _call(config, "POST", "/backlog/issue", json_body={"issues": keys}, client=client)
    return await _call(config, "POST", f"/sprint/{target}/issue", json_body={"issues": keys}, client=client)


# =============================================================================
# List resources
# =============================================================================

def _simplify_board(board: Dict[str, Any]) -> Dict[str, Any]:
    location = board.get("location") or {}
    return {
        "id": board.get("id"),
        "name": board.get("name"),
        "type": board.get("type"),
        "projectKey": location.get("projectKey"),
        "self": board.get("self"),
    }


def _simplify_sprint(sprint: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": sprint.get("id"),
        "name": sprint.get("name"),
        "state": sprint.get("state"),
        "startDate": sprint.get("startDate"),
        "endDate": sprint.get("endDate"),
        "completeDate": sprint.get("completeDate"),
        "goal": sprint.get("goal"),
    }


def _simplify_issue(issue: Dict[str, Any]) -> Dict[str, Any]:
    fields = issue.get("fields") or {}
    return {
        "key": issue.get("key"),
        "summary": fields.get("summary"),
        "status": (fields.get("status") or {}).get("name"),
        "issueType": (fields.get("issuetype") or {}).get("name"),
        "priority": (fields.get("priority") or {}).get("name"),
        "assignee": (fields.get("assignee") or {}).get("displayName"),
    }


async def list_boards(
    config: AtlassianConfig,
    uri: str = BOARDS_URI,
    params: Optional[Mapping[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """List agile boards visible to the user."""
    limit, offset = resolve_paging(uri, params)
    data = await _call(config, "GET", "/board", params={"startAt": offset, "maxResults": limit}, client=client)

    boards = [_simplify_board(b) for b in data.get("values", [])]
    total = estimate_total(offset, len(boards), data.get("total"), has_next=data.get("isLast") is False)
    return create_standard_resource(
        uri, boards, "boards", total, limit, offset,
        ui_url=f"{config.base_url}/jira/boards",
    )


async def list_board_sprints(
    config: AtlassianConfig,
    board_id: Union[str, int],
    uri: Optional[str] = None,
    params: Optional[Mapping[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """List the sprints of a board."""
    board = _require_id(board_id, "board_id")
    uri = uri or BOARD_SPRINTS_URI.format(board_id=board)
    limit, offset = resolve_paging(uri, params)
    data = await _call(
        config, "GET", f"/board/{board}/sprint",
        params={"startAt": offset, "maxResults": limit}, client=client,
    )

    sprints = [_simplify_sprint(s) for s in data.get("values", [])]
    total = estimate_total(offset, len(sprints), data.get("total"), has_next=data.get("isLast") is False)
    return create_standard_resource(uri, sprints, "sprints", total, limit, offset, boardId=board)


async def list_board_backlog(
    config: AtlassianConfig,
    board_id: Union[str, int],
    uri: Optional[str] = None,
    params: Optional[Mapping[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """List the backlog issues of a board."""
    board = _require_id(board_id, "board_id")
    uri = uri or BOARD_BACKLOG_URI.format(board_id=board)
    limit, offset = resolve_paging(uri, params)
    data = await _call(
        config, "GET", f"/board/{board}/backlog",
        params={"startAt": offset, "maxResults": limit, "fields": BACKLOG_FIELDS}, client=client,
    )

    issues = [_simplify_issue(i) for i in data.get("issues", [])]
    total = estimate_total(offset, len(issues), data.get("total"))
    return create_standard_resource(
        uri, issues, "issues", total, limit, offset,
        ui_url=f"{config.base_url}/secure/RapidBoard.jspa?rapidView={board}&view=planning",
        boardId=board,
    )
