"""Parallax Search MCP server."""

from .server import create_server, get_container, main

__all__ = ["create_server", "get_container", "main"]
