"""Curated "awesome" README lists, parsed from markdown tables and bullet lists."""

import re
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from ..cache import ExpiringCache
from ..config import DEFAULT_FETCH_TIMEOUT, TTL
from ..models import Resource, ResourceType, mcp_config_snippet
from .base import SourceAdapter, github_repo, slugify

# | [Name](url) | description | optional type |
TABLE_LINK_RE = re.compile(r"\|\s*\[([^\]]+)\]\(([^)]+)\)\s*\|([^|]*)\|?([^|]*)?")
# | Name | description | url |
TABLE_PLAIN_RE = re.compile(r"\|\s*([^|]+)\s*\|\s*([^|]+)\s*\|\s*([^|]+)\s*\|?")
# - [Name](url) - description
LIST_ITEM_RE = re.compile(r"^[-*]\s*\[([^\]]+)\]\(([^)]+)\)\s*[-–—]?\s*(.*)$")
SKILL_PATH_RE = re.compile(r"/skills/([^/]+)")

KNOWN_TYPES = {t.value for t in ResourceType if t != ResourceType.ALL}


class Entry(NamedTuple):
    name: str
    url: str
    description: str
    type: Optional[str] = None


def parse_table_row(row: str) -> Optional[Entry]:
    match = TABLE_LINK_RE.search(row)
    if match:
        declared = (match.group(4) or "").strip().lower()
        return Entry(
            name=match.group(1).strip(),
            url=match.group(2).strip(),
            description=match.group(3).strip(),
            type=declared if declared in KNOWN_TYPES else None,
        )

    match = TABLE_PLAIN_RE.search(row)
    if match and match.group(3).strip().startswith("http"):
        return Entry(
            name=match.group(1).strip(),
            url=match.group(3).strip(),
            description=match.group(2).strip(),
        )

    return None


def parse_list_item(line: str) -> Optional[Entry]:
    match = LIST_ITEM_RE.match(line)
    if not match:
        return None
    return Entry(
        name=match.group(1).strip(),
        url=match.group(2).strip(),
        description=match.group(3).strip(),
    )


def infer_claude_code_type(url: str, name: str) -> str:
    url_lower = url.lower()
    name_lower = name.lower()
    if "/skills/" in url_lower or "skill" in name_lower:
        return ResourceType.SKILL.value
    if "/plugins/" in url_lower or ".claude-plugin" in url_lower or "plugin" in name_lower:
        return ResourceType.PLUGIN.value
    return ResourceType.SKILL.value


def infer_type_from_url(url: str, name: str) -> str:
    if "/skills/" in url or "skill" in url:
        return ResourceType.SKILL.value
    if "/plugins/" in url or "plugin" in url:
        return ResourceType.PLUGIN.value
    if "mcp" in url or "model-context-protocol" in url:
        return ResourceType.MCP.value
    return ResourceType.PLUGIN.value


@dataclass
class AwesomeList:
    name: str
    url: str
    type: str
    marketplace: Optional[str] = None
    parse_tables: bool = True
    infer_type: Optional[Callable[[str, str], str]] = None


AWESOME_LISTS = [
    AwesomeList(
        name="awesome-mcp-servers",
        url="https://raw.githubusercontent.com/punkpeye/awesome-mcp-servers/main/README.md",
        type=ResourceType.MCP.value,
    ),
    AwesomeList(
        name="awesome-claude-skills",
        url="https://raw.githubusercontent.com/travisvn/awesome-claude-skills/main/README.md",
        type=ResourceType.SKILL.value,
        marketplace="github",
    ),
    AwesomeList(
        name="awesome-claude-code",
        url="https://raw.githubusercontent.com/hesreallyhim/awesome-claude-code/main/README.md",
        type=ResourceType.SKILL.value,
        marketplace="github",
        infer_type=infer_claude_code_type,
    ),
    AwesomeList(
        name="awesome-agent-skills",
        url="https://raw.githubusercontent.com/VoltAgent/awesome-agent-skills/main/README.md",
        type=ResourceType.SKILL.value,
    ),
    AwesomeList(
        name="wong2/awesome-mcp-servers",
        url="https://raw.githubusercontent.com/wong2/awesome-mcp-servers/main/README.md",
        type=ResourceType.MCP.value,
        parse_tables=False,
    ),
    AwesomeList(
        name="jmanhype/awesome-claude-code",
        url="https://raw.githubusercontent.com/jmanhype/awesome-claude-code/main/README.md",
        type=ResourceType.PLUGIN.value,
        parse_tables=False,
        infer_type=infer_type_from_url,
    ),
    AwesomeList(
        name="collabnix/awesome-mcp-lists",
        url="https://raw.githubusercontent.com/collabnix/awesome-mcp-lists/main/README.md",
        type=ResourceType.MCP.value,
        parse_tables=False,
    ),
]


def _is_docker(entry: Entry) -> bool:
    desc = entry.description.lower()
    return "docker" in entry.url.lower() or "docker" in desc or "container" in desc


def build_resource(entry: Entry, resource_type: str, config: AwesomeList) -> Resource:
    """Pick install command and config snippet for one list entry."""
    repo = github_repo(entry.url)
    config_snippet = None
    keywords: list[str] = []

    if resource_type == ResourceType.SKILL.value:
        # Last match: the repo itself may be named "skills"
        skills = SKILL_PATH_RE.findall(entry.url)
        if repo and skills:
            install_command = (
                f"npx skills add {repo} --skill {skills[-1]} --global --agent claude-code"
            )
        elif config.marketplace:
            install_command = f"/plugin install {entry.name}@{config.marketplace}"
        elif repo:
            install_command = f"npx skills add {repo} --global --agent claude-code"
        else:
            install_command = f"See: {entry.url}"

    elif resource_type == ResourceType.PLUGIN.value:
        if config.marketplace and repo:
            install_command = f"/plugin install {entry.name}@{config.marketplace}"
        else:
            install_command = f"/plugin install {entry.name}"

    else:
        server_name = slugify(entry.name)
        if _is_docker(entry):
            install_command = f"# See {entry.url} for Docker installation"
            config_snippet = mcp_config_snippet(server_name, "docker", ["run", "-i", "See repository"])
            keywords = ["docker", "container"]
        elif repo:
            install_command = f"npx -y {repo}"
            config_snippet = mcp_config_snippet(server_name, "npx", ["-y", repo])
        else:
            install_command = f"# See {entry.url} for installation instructions"
            config_snippet = mcp_config_snippet(server_name, "See repository", [])

    return Resource(
        name=entry.name,
        description=entry.description or "No description",
        type=resource_type,
        install_command=install_command,
        config_snippet=config_snippet,
        source=config.name,
        url=entry.url,
        keywords=keywords,
    )


def parse_markdown(content: str, config: AwesomeList) -> list[Resource]:
    """Extract one resource per distinct entry name, first occurrence wins."""
    resources = []
    seen = set()

    for line in content.splitlines():
        entry = parse_table_row(line) if config.parse_tables else None
        if entry is None:
            entry = parse_list_item(line)
        # In-page anchors are tables of contents, not resources
        if entry is None or entry.url.startswith("#"):
            continue
        if entry.name.lower() in seen:
            continue
        seen.add(entry.name.lower())

        if entry.type:
            resource_type = entry.type
        elif config.infer_type:
            resource_type = config.infer_type(entry.url, entry.name)
        else:
            resource_type = config.type
        resources.append(build_resource(entry, resource_type, config))

    return resources


class AwesomeListSource(SourceAdapter):
    ttl = TTL.AWESOME_LISTS

    def __init__(
        self,
        config: AwesomeList,
        cache: ExpiringCache,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ):
        super().__init__(cache, timeout)
        self.config = config
        self.name = config.name
        self.type = config.type
        self.cache_key = f"awesome:{config.name}"

    async def load(self) -> list[Resource]:
        response = await self.client.get(self.config.url)
        response.raise_for_status()
        return parse_markdown(response.text, self.config)


def awesome_list_sources(
    cache: ExpiringCache, timeout: float = DEFAULT_FETCH_TIMEOUT
) -> list[AwesomeListSource]:
    return [AwesomeListSource(config, cache, timeout) for config in AWESOME_LISTS]
