"""Presentation layer: MCP server exposing the search engine as tools."""
