"""Claude Code plugin marketplaces published as GitHub marketplace.json files."""

from typing import Optional

from ..cache import ExpiringCache
from ..config import DEFAULT_FETCH_TIMEOUT, TTL
from ..models import Resource, ResourceType
from .base import SourceAdapter

MARKETPLACES = [
    (
        "claude-code-plugins-plus",
        "https://raw.githubusercontent.com/jeremylongshore/claude-code-plugins-plus/main/.claude-plugin/marketplace.json",
    ),
    (
        "claude-plugins-official",
        "https://raw.githubusercontent.com/anthropics/claude-plugins-official/main/.claude-plugin/marketplace.json",
    ),
    (
        "superpowers-marketplace",
        "https://raw.githubusercontent.com/obra/superpowers-marketplace/main/.claude-plugin/marketplace.json",
    ),
]


def parse_plugin(plugin: dict, marketplace: str) -> Resource:
    """Translate one marketplace.json plugin entry."""
    source = plugin.get("source")
    if isinstance(source, dict):
        source = source.get("url")
    url: Optional[str] = plugin.get("repository") or plugin.get("homepage")
    if not url and isinstance(source, str) and source.startswith("http"):
        url = source

    author = plugin.get("author")
    if isinstance(author, dict):
        author = author.get("name")

    keywords = plugin.get("keywords") or plugin.get("tags") or []

    return Resource(
        name=plugin.get("name", ""),
        description=plugin.get("description") or "No description available",
        type=ResourceType.PLUGIN.value,
        install_command=f"/plugin install {plugin.get('name', '')}@{marketplace}",
        source=marketplace,
        url=url,
        category=plugin.get("category"),
        keywords=[k for k in keywords if isinstance(k, str)],
        author=author if isinstance(author, str) else None,
        version=plugin.get("version"),
    )


class GithubMarketplaceSource(SourceAdapter):
    type = ResourceType.PLUGIN.value
    ttl = TTL.PLUGINS

    def __init__(
        self,
        marketplace: str,
        url: str,
        cache: ExpiringCache,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ):
        super().__init__(cache, timeout)
        self.name = marketplace
        self.url = url
        self.cache_key = f"github:{marketplace}"

    async def load(self) -> list[Resource]:
        response = await self.client.get(self.url)
        response.raise_for_status()
        data = response.json()

        plugins = data.get("plugins", []) if isinstance(data, dict) else []
        return [parse_plugin(p, self.name) for p in plugins if isinstance(p, dict)]


def github_marketplace_sources(
    cache: ExpiringCache, timeout: float = DEFAULT_FETCH_TIMEOUT
) -> list[GithubMarketplaceSource]:
    return [GithubMarketplaceSource(name, url, cache, timeout) for name, url in MARKETPLACES]
