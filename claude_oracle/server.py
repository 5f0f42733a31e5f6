"""
MCP stdio server exposing the aggregator as three tools.

Tools:
- search: rank skills, plugins and MCP servers against a query
- browse: list by category, most popular or most recent first
- sources: health of every catalog, from cache only
"""

from contextlib import asynccontextmanager
from typing import Literal, Optional

from mcp.server.fastmcp import FastMCP

from .aggregator import Aggregator
from .config import DEFAULT_BROWSE_LIMIT, DEFAULT_SEARCH_LIMIT, MAX_LIMIT
from .console import console
from .errors import InvalidQueryError
from .formatter import results_to_json

SERVER_INSTRUCTIONS = (
    "Claude Oracle discovers skills, plugins, and MCP servers from many public catalogs. "
    'Use "search" to find tools by query, "browse" to explore by category, '
    'and "sources" to check data source status.'
)

TypeFilter = Literal["skill", "plugin", "mcp", "all"]


async def handle_search(
    aggregator: Aggregator,
    query: str,
    type: str = "all",
    semantic: bool = False,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> str:
    try:
        result = await aggregator.search(query, type=type, semantic=semantic, limit=limit)
    except InvalidQueryError as e:
        return f"Error: {e}"
    return results_to_json(result)


async def handle_browse(
    aggregator: Aggregator,
    category: Optional[str] = None,
    type: str = "all",
    sort: str = "popular",
    limit: int = DEFAULT_BROWSE_LIMIT,
) -> str:
    try:
        result = await aggregator.browse(category=category, type=type, sort=sort, limit=limit)
    except InvalidQueryError as e:
        return f"Error: {e}"
    return results_to_json(result)


def handle_sources(aggregator: Aggregator) -> str:
    return results_to_json(aggregator.get_sources())


def create_server(aggregator: Optional[Aggregator] = None) -> FastMCP:
    """Build the FastMCP server around one long-lived aggregator."""
    aggregator = aggregator or Aggregator()

    @asynccontextmanager
    async def lifespan(server: FastMCP):
        try:
            yield aggregator
        finally:
            await aggregator.close()

    mcp = FastMCP("claude-oracle", instructions=SERVER_INSTRUCTIONS, lifespan=lifespan)

    @mcp.tool()
    async def search(
        query: str,
        type: TypeFilter = "all",
        semantic: bool = False,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> str:
        """
        Search for Claude Code skills, plugins, and MCP servers. Returns install commands.

        Args:
            query: Search term or description
            type: Filter by resource type (default: all)
            semantic: Use AI semantic search (requires SKILLSMP_API_KEY)
            limit: Max results (default: 5, max: 20)
        """
        return await handle_search(aggregator, query, type, semantic, limit)

    @mcp.tool()
    async def browse(
        category: Optional[str] = None,
        type: TypeFilter = "all",
        sort: Literal["popular", "recent"] = "popular",
        limit: int = DEFAULT_BROWSE_LIMIT,
    ) -> str:
        """
        Browse skills, plugins, and MCP servers by category or popularity.

        Args:
            category: Category filter (e.g., testing, database, security)
            type: Filter by resource type (default: all)
            sort: Sort order (default: popular)
            limit: Max results (default: 10, max: 20)
        """
        return await handle_browse(aggregator, category, type, sort, limit)

    @mcp.tool()
    def sources() -> str:
        """Show available data sources and their status."""
        return handle_sources(aggregator)

    return mcp


def main():
    console.print(f"[dim]claude-oracle MCP server running on stdio (max {MAX_LIMIT} results)[/dim]")
    create_server().run()


if __name__ == "__main__":
    main()
