"""MCP server for ragshelf."""

from ragshelf.server.mcp_server import create_mcp_server

__all__ = ["create_mcp_server"]
