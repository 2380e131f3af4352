"""ABOUTME: MCP server launcher - stdio by default, streamable HTTP for container deployments.

MCP_TRANSPORT selects the transport ("stdio" or "streamable-http"); HOST and
PORT apply to the HTTP transport only.
"""

import logging
import os
import sys

logger = logging.getLogger(__name__)

SUPPORTED_TRANSPORTS = ("stdio", "streamable-http", "sse")


def run_server(transport: str = "stdio", host: str = "0.0.0.0", port: int = 8000) -> None:
    """Run the Atlassian MCP server.

    Args:
        transport: Transport protocol (default: stdio)
        host: Host to bind to for HTTP transports (default: 0.0.0.0 for Docker)
        port: Port to bind to for HTTP transports (default: 8000)
    """
    if transport not in SUPPORTED_TRANSPORTS:
        logger.error(f"Unknown MCP transport '{transport}', expected one of: {', '.join(SUPPORTED_TRANSPORTS)}")
        sys.exit(1)

    from .server import server

    if transport != "stdio":
        settings = server.get_mcp().settings
        settings.host = host
        settings.port = port
        logger.info(f"Starting {server.server_name} MCP server on {host}:{port} (transport: {transport})")
    else:
        logger.info(f"Starting {server.server_name} MCP server (transport: stdio)")

    server.run(transport=transport)


def main() -> None:
    transport = os.getenv("MCP_TRANSPORT", "stdio")
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    run_server(transport, host, port)


if __name__ == "__main__":
    main()
