"""MCP tools for live_feed."""
