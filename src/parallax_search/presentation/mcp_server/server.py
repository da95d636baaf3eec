"""
Parallax Search MCP Server

Model Context Protocol server exposing the unified image search engine.

Features:
- One normalized image search over Google, Serper, Brave (and a mock fallback)
- Two-tier caching (response cache + per-provider raw result cache)
- Optional multi-provider aggregation with dedup and resolution ranking

Architecture:
- tools/: MCP tool implementations
- container: DI container (dependency-injector) for service lifecycle
"""

from __future__ import annotations

import argparse
import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any

from dependency_injector import providers
from mcp.server.fastmcp import FastMCP

from parallax_search.container import ApplicationContainer
from parallax_search.core.config import SearchSettings

from .tools import register_image_search_tools

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from parallax_search.application.search import UnifiedSearchService

logger = logging.getLogger(__name__)

SERVER_INSTRUCTIONS = """\
Image search over several providers with consistent pagination.

Use search_images with a query; page through results with the
nextStartIndex from the pagination block. Later pages of the same query
are served from cache. Pass provider="aggregated" to merge every
configured provider (deduplicated, ranked by resolution).
"""

# ── Module-level DI container ──────────────────────────────────────────────
_container: ApplicationContainer | None = None


def get_container() -> ApplicationContainer:
    """Get the application DI container.

    Raises:
        RuntimeError: If ``create_server()`` has not been called yet.
    """
    if _container is None:
        msg = "Container not initialized. Call create_server() first."
        raise RuntimeError(msg)
    return _container


def _make_lifespan(
    service: UnifiedSearchService,
) -> Callable[[FastMCP[Any]], AbstractAsyncContextManager[UnifiedSearchService]]:
    """Create a FastMCP lifespan handler bound to *service*."""

    @asynccontextmanager
    async def _lifespan(server: FastMCP[Any]) -> AsyncIterator[UnifiedSearchService]:
        """Application lifecycle: startup → yield → shutdown."""
        removed = await service.cleanup_expired()
        logger.info(f"Lifecycle startup: {removed} expired aggregated set(s) removed")
        try:
            yield service
        finally:
            await service.close()
            logger.info("Lifecycle shutdown: provider clients closed")

    return _lifespan


def create_server(
    settings: SearchSettings | None = None,
    name: str = "parallax-search",
    json_response: bool = False,
    stateless_http: bool = False,
) -> FastMCP:
    """
    Create and configure the Parallax Search MCP server.

    Args:
        settings: Engine settings; read from the environment when omitted.
        name: Server name.
        json_response: Use JSON responses instead of SSE.
        stateless_http: Use stateless HTTP mode.

    Returns:
        Configured FastMCP server instance.

    Raises:
        ConfigurationError: no usable provider for the configured selection.
    """
    global _container
    logger.info("Initializing Parallax Search MCP Server...")

    # ── DI container ────────────────────────────────────────────────────
    _container = ApplicationContainer()
    if settings is not None:
        _container.settings.override(providers.Object(settings))

    service = _container.search_service()

    # ── Create MCP server with lifespan ─────────────────────────────────
    mcp = FastMCP(
        name,
        instructions=SERVER_INSTRUCTIONS,
        json_response=json_response,
        stateless_http=stateless_http,
        lifespan=_make_lifespan(service),
    )

    tools = register_image_search_tools(mcp, service)
    logger.info(f"Tool registration complete: {', '.join(tools)}")
    logger.info("Parallax Search MCP Server initialized successfully")
    return mcp


def main() -> None:
    """Run the MCP server."""
    parser = argparse.ArgumentParser(description="Parallax Search MCP server")
    parser.add_argument(
        "--transport",
        choices=("stdio", "sse", "streamable-http"),
        default="stdio",
        help="MCP transport (default: stdio)",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    server = create_server(settings=SearchSettings.from_env())
    logger.info(f"Starting Parallax Search MCP server ({args.transport})")
    server.run(transport=args.transport)


if __name__ == "__main__":
    main()
