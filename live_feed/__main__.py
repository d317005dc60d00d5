"""Main module for live_feed MCP server.

This module allows the server to be run as a Python module using:
python -m live_feed

It delegates to the server application's main function.
"""

from live_feed.server.app import main

if __name__ == "__main__":
    main()
