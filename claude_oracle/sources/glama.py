"""Recently added MCP servers from the Glama.ai RSS feed."""

import defusedxml.ElementTree as ET

from ..config import TTL
from ..models import Resource, ResourceType, mcp_config_snippet
from .base import SourceAdapter, github_repo, local_name, slugify

GLAMA_RSS_URL = "https://glama.ai/mcp/servers/feeds/recent-servers.xml"


def _item_fields(item) -> dict:
    fields: dict = {"category": []}
    for child in item:
        tag = local_name(child.tag)
        text = (child.text or "").strip()
        if tag == "category":
            if text:
                fields["category"].append(text)
        else:
            fields[tag] = text
    return fields


def parse_rss(xml_text: str) -> list[Resource]:
    """Parse the feed into MCP server resources."""
    root = ET.fromstring(xml_text)
    resources = []

    for item in root.iter():
        if local_name(item.tag) != "item":
            continue
        fields = _item_fields(item)
        title = fields.get("title", "")
        link = fields.get("link") or None
        categories = fields["category"]
        repo = github_repo(link) or title

        resources.append(Resource(
            name=title,
            description=fields.get("description", "")[:200] or "No description",
            type=ResourceType.MCP.value,
            install_command=f"npx -y {repo}",
            config_snippet=mcp_config_snippet(slugify(title), "npx", ["-y", repo]),
            source="glama.ai",
            url=link,
            category=categories[0] if categories else None,
            keywords=categories,
            last_updated=fields.get("pubDate") or None,
        ))

    return resources


class GlamaSource(SourceAdapter):
    name = "glama.ai"
    type = ResourceType.MCP.value
    ttl = TTL.MCP_SERVERS
    cache_key = "glama:mcp-servers"

    async def load(self) -> list[Resource]:
        response = await self.client.get(GLAMA_RSS_URL)
        response.raise_for_status()
        return parse_rss(response.text)
