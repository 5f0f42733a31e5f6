"""Packages from the npm registry search API, selected by keyword."""

import re

from ..cache import ExpiringCache
from ..config import DEFAULT_FETCH_TIMEOUT, TTL
from ..models import Resource, ResourceType, mcp_config_snippet
from .base import SourceAdapter

NPM_SEARCH_URL = "https://registry.npmjs.org/-/v1/search"
PAGE_SIZE = 250


def _server_key(package_name: str) -> str:
    key = re.sub(r"^@[^/]+/", "", package_name)
    key = re.sub(r"^mcp-", "", key)
    return re.sub(r"^server-", "", key)


def parse_package(obj: dict, resource_type: str) -> Resource:
    package = obj.get("package") or {}
    name = package.get("name", "")
    links = package.get("links") or {}
    detail = (obj.get("score") or {}).get("detail") or {}
    publisher = package.get("publisher") or {}

    if resource_type == ResourceType.MCP.value:
        install_command = f"npx -y {name}"
        config_snippet = mcp_config_snippet(_server_key(name), "npx", ["-y", name])
    else:
        install_command = f"npm install -g {name}"
        config_snippet = None

    return Resource(
        name=name,
        description=package.get("description") or "No description",
        type=resource_type,
        install_command=install_command,
        config_snippet=config_snippet,
        source="npmjs.com",
        url=(
            links.get("homepage")
            or links.get("repository")
            or links.get("npm")
            or f"https://www.npmjs.com/package/{name}"
        ),
        keywords=[k for k in package.get("keywords") or [] if isinstance(k, str)],
        author=publisher.get("username"),
        version=package.get("version"),
        last_updated=package.get("date"),
        quality_score=detail.get("quality"),
        popularity_score=detail.get("popularity"),
    )


class NpmRegistrySource(SourceAdapter):
    """One npm keyword search; only the first page is fetched."""

    ttl = TTL.NPM_REGISTRY

    def __init__(
        self,
        keyword: str,
        resource_type: str,
        name: str,
        cache_key: str,
        cache: ExpiringCache,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ):
        super().__init__(cache, timeout)
        self.keyword = keyword
        self.type = resource_type
        self.name = name
        self.cache_key = cache_key

    async def load(self) -> list[Resource]:
        response = await self.client.get(
            NPM_SEARCH_URL,
            params={"text": f"keywords:{self.keyword}", "size": PAGE_SIZE, "from": 0},
        )
        response.raise_for_status()
        objects = response.json().get("objects") or []
        return [parse_package(o, self.type) for o in objects if isinstance(o, dict)]


def npm_sources(cache: ExpiringCache, timeout: float = DEFAULT_FETCH_TIMEOUT) -> list[NpmRegistrySource]:
    return [
        NpmRegistrySource(
            keyword="mcp-server",
            resource_type=ResourceType.MCP.value,
            name="npmjs.com (mcp)",
            cache_key="npm-registry:mcp-servers",
            cache=cache,
            timeout=timeout,
        ),
        NpmRegistrySource(
            keyword="claude-code-plugin",
            resource_type=ResourceType.PLUGIN.value,
            name="npmjs.com (plugins)",
            cache_key="npm-registry:claude-plugins",
            cache=cache,
            timeout=timeout,
        ),
    ]
