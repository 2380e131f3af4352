"""ABOUTME: Response envelopes and the handler wrapper shared by every tool and resource.

Every invocation returns exactly one envelope:

    {"success": true, "message"?: str, "data"?: any}
    {"success": false, "message": str, "code"?: str, "statusCode"?: int, "type"?: str}

wrap_with_error_handling() is the single place where failures are turned into
envelopes, so handlers never have to catch exceptions themselves.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from mcp.types import CallToolResult, TextContent

from .error_handling import DomainError

logger = logging.getLogger(__name__)

JSON_MIME_TYPE = "application/json"

Envelope = Dict[str, Any]
Handler = Callable[[Dict[str, Any]], Awaitable[Any]]


# =============================================================================
# Envelope Builders
# =============================================================================

def success(data: Any = None, message: Optional[str] = None) -> Envelope:
    """Create a success envelope.

    Args:
        data: Result of the domain operation (omitted when None)
        message: Optional human-readable message

    Returns:
        Envelope dict with success=True
    """
    envelope: Envelope = {"success": True}
    if message:
        envelope["message"] = message
    if data is not None:
        envelope["data"] = data
    return envelope


def failure(error: Union[DomainError, str]) -> Envelope:
    """Create a failure envelope.

    A DomainError contributes its message, code, status code and kind; a plain
    string produces only {"success": False, "message": ...}.
    """
    if isinstance(error, DomainError):
        envelope: Envelope = {"success": False, "message": error.message}
        if error.code is not None:
            envelope["code"] = error.code
        if error.status_code is not None:
            envelope["statusCode"] = error.status_code
        envelope["type"] = error.kind.value
        return envelope
    return {"success": False, "message": str(error)}


# =============================================================================
# Outcome (tagged union at the wrapper boundary)
# =============================================================================

@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Err:
    """Failed outcome; error is a DomainError or the coerced message of anything else."""
    error: Union[DomainError, str]


Outcome = Union[Ok, Err]


def _message_from_exception(exc: BaseException) -> str:
    message = str(exc)
    return message if message else type(exc).__name__


async def capture_outcome(handler: Handler, params: Dict[str, Any]) -> Outcome:
    """Await the handler and capture its result or failure as an Outcome."""
    try:
        return Ok(await handler(params))
    except DomainError as e:
        return Err(e)
    except Exception as e:
        return Err(_message_from_exception(e))


def envelope_from_outcome(name: str, outcome: Outcome) -> Envelope:
    if isinstance(outcome, Ok):
        return success(outcome.value, f"{name} executed successfully")

    error = outcome.error
    if isinstance(error, DomainError):
        logger.error(f"{name} error [{error.kind.value}]: {error.message}")
    else:
        logger.error(f"{name} error [unclassified]: {error}")
    return failure(error)


def wrap_with_error_handling(name: str, handler: Handler) -> Callable[[Dict[str, Any]], Awaitable[Envelope]]:
    """Wrap a domain handler so that it always resolves to an envelope.

    Args:
        name: Tool or resource name used in the success message and logs
        handler: Async callable taking a params dict

    Returns:
        Async callable taking the same params and returning an envelope dict

    Example:
        wrapped = wrap_with_error_handling("createSprint", handler)
        envelope = await wrapped({"board_id": "1", "name": "Sprint 7"})
    """
    async def wrapped(params: Optional[Dict[str, Any]] = None) -> Envelope:
        outcome = await capture_outcome(handler, params or {})
        return envelope_from_outcome(name, outcome)

    wrapped.__name__ = f"wrapped_{name}"
    return wrapped


# =============================================================================
# Transport Adapters
# =============================================================================

def render_envelope(envelope: Envelope) -> str:
    """Serialize an envelope as JSON text."""
    return json.dumps(envelope, default=str)


def create_tool_response(envelope: Envelope) -> CallToolResult:
    """Convert an envelope into the CallToolResult returned to MCP clients.

    isError mirrors the negated success flag of the envelope.
    """
    return CallToolResult(
        content=[TextContent(type="text", text=render_envelope(envelope))],
        isError=not envelope.get("success", False)
    )


__all__ = [
    "JSON_MIME_TYPE",
    "Envelope",
    "success",
    "failure",
    "Ok",
    "Err",
    "Outcome",
    "capture_outcome",
    "envelope_from_outcome",
    "wrap_with_error_handling",
    "render_envelope",
    "create_tool_response",
]
