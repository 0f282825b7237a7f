"""
MS Graph MCP Server - Entry Point
=================================
Thin wrapper that imports and runs the MCP server from the msgraph_mcp package.
See msgraph_mcp/server.py for the full implementation.

Usage:
    python msgraph_mcp_server.py                  # stdio transport
    python msgraph_mcp_server.py --http --port 8000
"""

from msgraph_mcp.server import main

if __name__ == "__main__":
    main()
