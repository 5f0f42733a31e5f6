"""MCP servers from the Smithery registry (https://registry.smithery.ai)."""

from typing import Optional

from ..cache import ExpiringCache
from ..config import DEFAULT_FETCH_TIMEOUT, TTL
from ..console import console
from ..models import Resource, ResourceType, mcp_config_snippet
from .base import SourceAdapter

SMITHERY_API_URL = "https://registry.smithery.ai/servers"
PAGE_SIZE = 100
MAX_PAGES = 5


def parse_server(server: dict) -> Resource:
    qualified_name = server.get("qualifiedName", "")
    short_name = qualified_name.split("/")[-1] or server.get("displayName", "")
    server_key = short_name.lower()
    if server_key.startswith("server-"):
        server_key = server_key[len("server-"):]

    return Resource(
        name=server.get("displayName") or short_name,
        description=server.get("description") or "No description",
        type=ResourceType.MCP.value,
        install_command=f"npx -y {qualified_name}",
        config_snippet=mcp_config_snippet(server_key, "npx", ["-y", qualified_name]),
        source="smithery.ai",
        url=server.get("homepage") or f"https://smithery.ai/server/{qualified_name}",
        author=qualified_name.split("/")[0].lstrip("@") if "/" in qualified_name else None,
        verified=server.get("verified"),
        last_updated=server.get("createdAt"),
        popularity_score=server.get("useCount"),
    )


class SmitherySource(SourceAdapter):
    name = "smithery.ai"
    type = ResourceType.MCP.value
    ttl = TTL.SMITHERY
    cache_key = "smithery:servers"
    max_requests = MAX_PAGES

    def __init__(
        self,
        cache: ExpiringCache,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        api_key: Optional[str] = None,
    ):
        super().__init__(cache, timeout)
        self.api_key = api_key

    async def load(self) -> list[Resource]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        servers: list[Resource] = []
        page = 1
        while page <= MAX_PAGES:
            response = await self.client.get(
                SMITHERY_API_URL,
                params={"page": page, "pageSize": PAGE_SIZE},
                headers=headers,
            )
            if page > 1 and response.status_code >= 400:
                # Keep what earlier pages returned
                console.print(
                    f"[yellow]Warning: Smithery page {page} returned HTTP {response.status_code}[/yellow]"
                )
                break
            response.raise_for_status()
            data = response.json()

            batch = data.get("servers") or []
            if not batch:
                break
            servers.extend(parse_server(s) for s in batch if isinstance(s, dict))

            total_pages = data.get("pagination", {}).get("totalPages", data.get("totalPages", page))
            if page >= total_pages:
                break
            page += 1

        return servers
