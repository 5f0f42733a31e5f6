"""Unified schema for discovered resources and source health."""

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Optional


class ResourceType(str, Enum):
    SKILL = "skill"
    PLUGIN = "plugin"
    MCP = "mcp"
    ALL = "all"


class SortOrder(str, Enum):
    POPULAR = "popular"
    RECENT = "recent"


class SourceStatus(str, Enum):
    OK = "ok"
    STALE = "stale"
    ERROR = "error"
    NO_KEY = "no_key"


@dataclass
class Resource:
    """Unified schema for skills, plugins and MCP servers"""
    name: str
    description: str
    type: str
    install_command: str
    source: str
    config_snippet: Optional[str] = None  # JSON text for an MCP client config
    url: Optional[str] = None
    category: Optional[str] = None
    keywords: list = field(default_factory=list)
    author: Optional[str] = None
    version: Optional[str] = None
    stars: Optional[float] = None
    last_updated: Optional[str] = None
    verified: Optional[bool] = None
    quality_score: Optional[float] = None
    popularity_score: Optional[float] = None

    def is_valid(self) -> bool:
        """A resource needs a non-blank name, description and type."""
        return (
            isinstance(self.name, str) and self.name.strip() != ""
            and isinstance(self.description, str) and self.description.strip() != ""
            and bool(self.type)
        )

    def dedup_key(self) -> str:
        type_value = self.type.value if isinstance(self.type, Enum) else str(self.type)
        return f"{type_value.lower()}:{self.name.lower()}"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DataSource:
    """Health descriptor for one catalog, derived from cache contents."""
    name: str
    type: str
    count: int
    last_updated: str
    status: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SearchOutput:
    """Result envelope shared by search and browse."""
    results: list[Resource]
    sources_searched: list[str]
    total_available: int
    cached: bool = False

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "sources_searched": list(self.sources_searched),
            "total_available": self.total_available,
            "cached": self.cached,
        }


@dataclass
class SourcesOutput:
    sources: list[DataSource]
    total: int

    def to_dict(self) -> dict:
        return {
            "sources": [s.to_dict() for s in self.sources],
            "total": self.total,
        }


def mcp_config_snippet(server_name: str, command: str, args: list[str]) -> str:
    """Render the `mcpServers` block a client pastes into its config."""
    return json.dumps(
        {"mcpServers": {server_name: {"command": command, "args": args}}},
        indent=2,
    )
