"""MCP server package initialization"""

from live_feed.server.app import create_mcp_server, main

__all__ = ["create_mcp_server", "main"]
