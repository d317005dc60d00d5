"""live_feed - MCP Server

This module implements the MCP server using FastMCP with multi-transport support
(STDIO, SSE, and Streamable HTTP). The activity sync engine runs for the lifetime
of the server and every tool is wrapped with exception handling and logging.
"""

import asyncio
import logging
import os
import sys
from typing import Optional

import click
from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from live_feed.config import ServerConfig, get_config
from live_feed.decorators import exception_handler, tool_logger
from live_feed.log_system.correlation import (
    clear_initialization_correlation_id,
    generate_correlation_id,
    set_initialization_correlation_id,
)
from live_feed.logging_config import setup_logging
from live_feed.runtime import runtime_lifespan
from live_feed.tools.feed_tools import feed_tools


logger = logging.getLogger(__name__)


def create_mcp_server(config: Optional[ServerConfig] = None) -> FastMCP:
    """Create and configure the MCP server.

    Args:
        config: Optional server configuration

    Returns:
        Configured FastMCP server instance
    """
    if config is None:
        config = get_config()

    set_initialization_correlation_id(generate_correlation_id("startup"))
    setup_logging(config)
    logger.info(f"Server config: {config.name} at log level {config.log_level}")

    # Configure DNS rebinding protection (disabled by default for development)
    dns_protection = os.getenv("MCP_DNS_REBINDING_PROTECTION", "false").lower() == "true"
    allowed_hosts_env = os.getenv("MCP_ALLOWED_HOSTS", "")
    allowed_hosts = [h.strip() for h in allowed_hosts_env.split(",") if h.strip()] if allowed_hosts_env else []

    logger.info(f"DNS rebinding protection: {'enabled' if dns_protection else 'disabled'}")
    if dns_protection and allowed_hosts:
        logger.info(f"Allowed hosts: {allowed_hosts}")

    mcp_server = FastMCP(
        config.name or "live_feed",
        lifespan=lambda server: runtime_lifespan(server, config),
        transport_security=TransportSecuritySettings(
            enable_dns_rebinding_protection=dns_protection,
            allowed_hosts=allowed_hosts
        )
    )

    register_tools(mcp_server)

    logger.info("Server initialization complete")
    clear_initialization_correlation_id()

    return mcp_server


def register_tools(mcp_server: FastMCP) -> None:
    """Register all feed tools with the server.

    Registers decorated functions directly with MCP to preserve function signatures
    for proper parameter introspection.
    """
    for tool_func in feed_tools:
        # Apply decorator chain: exception_handler → tool_logger
        decorated_func = exception_handler(tool_logger(tool_func))

        mcp_server.tool(name=tool_func.__name__)(decorated_func)
        logger.info(f"Registered feed tool: {tool_func.__name__}")

    logger.info(f"Server '{mcp_server.name}' registered {len(feed_tools)} tools")


@click.command()
@click.option(
    "--port",
    default=3001,
    help="Port to listen on for SSE or Streamable HTTP transport"
)
@click.option(
    "--host",
    default="127.0.0.1",
    help="Host to bind to (use 0.0.0.0 for Docker)"
)
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default="stdio",
    help="Transport type (stdio, sse, or streamable-http)"
)
def main(port: int, host: str, transport: str) -> int:
    """Run the live_feed server with specified transport."""
    try:
        server = create_mcp_server()
    except ValueError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        return 2

    async def run_server():
        """Inner async function to run the server and manage the event loop."""
        if transport == "stdio":
            logger.info("Starting server with STDIO transport")
            await server.run_stdio_async()
        elif transport == "sse":
            logger.info(f"Starting server with SSE transport on {host}:{port}")
            server.settings.host = host
            server.settings.port = port
            await server.run_sse_async()
        elif transport == "streamable-http":
            logger.info(f"Starting server with Streamable HTTP transport on {host}:{port}")
            server.settings.host = host
            server.settings.port = port
            server.settings.streamable_http_path = "/mcp"
            await server.run_streamable_http_async()
        else:
            raise ValueError(f"Unknown transport: {transport}")

    try:
        asyncio.run(run_server())
        return 0
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        return 1


def main_stdio() -> int:
    """Entry point for STDIO transport (convenience wrapper)."""
    return main.callback(port=3001, host="127.0.0.1", transport="stdio")


def main_http() -> int:
    """Entry point for Streamable HTTP transport (convenience wrapper)."""
    return main.callback(port=3001, host="127.0.0.1", transport="streamable-http")


if __name__ == "__main__":
    sys.exit(main())
