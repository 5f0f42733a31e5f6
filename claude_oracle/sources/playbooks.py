"""MCP servers listed in the playbooks.com sitemaps."""

import asyncio
import re
from typing import Optional

import defusedxml.ElementTree as ET

from ..config import TTL
from ..console import console
from ..models import Resource, ResourceType, mcp_config_snippet
from .base import SourceAdapter, local_name

PLAYBOOKS_SITEMAPS = [
    "https://playbooks.com/mcp/sitemap/0.xml",
    "https://playbooks.com/mcp/sitemap/1.xml",
    "https://playbooks.com/mcp/sitemap/2.xml",
]
PLAYBOOKS_URL_RE = re.compile(r"playbooks\.com/mcp/([^/]+)/([^/?#]+)")


def display_name(slug: str) -> str:
    """Turn a URL slug like "github-mcp-server" into "Github MCP Server"."""
    words = re.sub(r"mcp", "MCP", slug.replace("-", " "), flags=re.IGNORECASE).split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


def parse_url(loc: str, lastmod: Optional[str]) -> Optional[Resource]:
    match = PLAYBOOKS_URL_RE.search(loc)
    if not match:
        return None
    owner, slug = match.group(1), match.group(2)
    name = display_name(slug)

    return Resource(
        name=name,
        description=f"{name} MCP server by {owner}",
        type=ResourceType.MCP.value,
        install_command="# Visit playbooks.com for install instructions",
        config_snippet=mcp_config_snippet(slug, "See installation docs", []),
        source="playbooks.com",
        url=loc,
        author=owner,
        last_updated=lastmod,
    )


def parse_sitemap(xml_text: str) -> list[Resource]:
    root = ET.fromstring(xml_text)
    resources = []
    for node in root:
        if local_name(node.tag) != "url":
            continue
        fields = {local_name(child.tag): (child.text or "").strip() for child in node}
        resource = parse_url(fields.get("loc", ""), fields.get("lastmod") or None)
        if resource is not None:
            resources.append(resource)
    return resources


class PlaybooksSource(SourceAdapter):
    name = "playbooks.com"
    type = ResourceType.MCP.value
    ttl = TTL.PLAYBOOKS
    cache_key = "playbooks:mcp-servers"

    async def _fetch_sitemap(self, url: str) -> list[Resource]:
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            return parse_sitemap(response.text)
        except Exception as e:
            console.print(f"[yellow]Warning: Playbooks sitemap {url} failed: {e!r}[/yellow]")
            return []

    async def load(self) -> list[Resource]:
        results = await asyncio.gather(*(self._fetch_sitemap(url) for url in PLAYBOOKS_SITEMAPS))
        return [resource for batch in results for resource in batch]
