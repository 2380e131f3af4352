"""ABOUTME: Base class for the Atlassian MCP server with logging, configuration and envelope adapters.

Uses the official MCP SDK (modelcontextprotocol/python-sdk) FastMCP server.
"""

import logging
import sys
from typing import Any, Awaitable, Callable, Dict, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult

from .config import AtlassianConfig, get_config
from .responses import Envelope, create_tool_response, render_envelope, wrap_with_error_handling

Operation = Callable[..., Awaitable[Any]]
ConfigLoader = Callable[[], AtlassianConfig]

# Longest parameter value written to the tool start log line
MAX_LOGGED_VALUE_LENGTH = 80


def setup_logging(logger_name: str, level: Any = logging.INFO) -> logging.Logger:
    """Configure logging for an MCP server.

    Logs go to stderr so that stdout stays reserved for the stdio transport.

    Args:
        logger_name: Name of the logger (typically __name__)
        level: Logging level or level name (default: logging.INFO)

    Returns:
        Configured logger instance
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    return logging.getLogger(logger_name)


def _shorten(value: Any) -> str:
    text = str(value)
    if len(text) > MAX_LOGGED_VALUE_LENGTH:
        return f"{text[:MAX_LOGGED_VALUE_LENGTH]}... ({len(text)} chars)"
    return text


class MCPServerBase:
    """Base class for the Atlassian MCP server.

    Provides:
    - Standard FastMCP server initialization
    - Consistent logging setup
    - run_tool() / run_resource(), which read the configuration at call entry,
      pass the domain operation through the handler wrapper and convert the
      resulting envelope for the transport
    """

    def __init__(
        self,
        server_name: str,
        config_loader: ConfigLoader = get_config,
        log_level: Any = logging.INFO,
        server_version: Optional[str] = None
    ):
        """Initialize MCP server base.

        Args:
            server_name: Name of the MCP server
            config_loader: Callable returning the Atlassian configuration
            log_level: Logging level for the server logger
            server_version: Version reported to clients during initialization
        """
        self.server_name = server_name
        self.config_loader = config_loader
        self.mcp = FastMCP(server_name)
        if server_version:
            self.mcp._mcp_server.version = server_version
        self.logger = setup_logging(__name__, log_level)

    def get_logger(self) -> logging.Logger:
        return self.logger

    def get_mcp(self) -> FastMCP:
        return self.mcp

    def run(self, transport: str = "stdio") -> None:
        """Run the MCP server.

        Args:
            transport: Transport protocol ("stdio", "streamable-http", "sse")
        """
        self.mcp.run(transport=transport)

    async def invoke(self, name: str, operation: Operation, params: Dict[str, Any], /) -> Envelope:
        """Run a domain operation through the handler wrapper.

        The configuration is loaded once, inside the wrapped handler, so a
        missing configuration also comes back as a failure envelope.
        """
        async def handler(call_params: Dict[str, Any]) -> Any:
            config = self.config_loader()
            return await operation(config, **call_params)

        self.log_tool_start(name, **params)
        envelope = await wrap_with_error_handling(name, handler)(params)
        if envelope["success"]:
            self.log_tool_complete(name)
        return envelope

    async def run_tool(self, name: str, operation: Operation, /, **params: Any) -> CallToolResult:
        """Invoke a tool operation and return the envelope as a CallToolResult."""
        return create_tool_response(await self.invoke(name, operation, params))

    async def run_resource(self, name: str, uri: str, operation: Operation, /, **params: Any) -> str:
        """Invoke a list resource operation and return the envelope as JSON text."""
        return render_envelope(await self.invoke(name, operation, {"uri": uri, **params}))

    def log_tool_start(self, tool_name: str, /, **params) -> None:
        """Log tool invocation with parameters.

        Examples:
            >>> server.log_tool_start("createSprint", board_id="1", name="Sprint 7")
        """
        if params:
            param_str = ", ".join(f"{k}={_shorten(v)}" for k, v in params.items())
            self.logger.info(f"{tool_name} started: {param_str}")
        else:
            self.logger.info(f"{tool_name} started")

    def log_tool_complete(self, tool_name: str, **metrics) -> None:
        if metrics:
            metric_str = ", ".join(f"{k}={v}" for k, v in metrics.items())
            self.logger.info(f"{tool_name} completed: {metric_str}")
        else:
            self.logger.info(f"{tool_name} completed")
