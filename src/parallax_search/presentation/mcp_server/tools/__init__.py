"""MCP tool modules."""

from .image_search import register_image_search_tools

__all__ = ["register_image_search_tools"]
