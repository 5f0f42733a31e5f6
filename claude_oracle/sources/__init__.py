"""Catalog adapters and the default registration order."""

from ..cache import ExpiringCache
from ..config import Settings
from .awesome_lists import AwesomeListSource, awesome_list_sources
from .base import SourceAdapter
from .github_plugins import GithubMarketplaceSource, github_marketplace_sources
from .glama import GlamaSource
from .mcp_registry import McpRegistrySource
from .npm_registry import NpmRegistrySource, npm_sources
from .playbooks import PlaybooksSource
from .skillsmp import SkillsmpSource
from .smithery import SmitherySource


def build_default_sources(cache: ExpiringCache, settings: Settings) -> list[SourceAdapter]:
    """Every free catalog, in the order their results are concatenated."""
    timeout = settings.fetch_timeout
    return [
        *github_marketplace_sources(cache, timeout),
        GlamaSource(cache, timeout),
        *awesome_list_sources(cache, timeout),
        SmitherySource(cache, timeout, api_key=settings.smithery_api_key),
        McpRegistrySource(cache, timeout),
        *npm_sources(cache, timeout),
        PlaybooksSource(cache, timeout),
    ]


__all__ = [
    "AwesomeListSource",
    "GithubMarketplaceSource",
    "GlamaSource",
    "McpRegistrySource",
    "NpmRegistrySource",
    "PlaybooksSource",
    "SkillsmpSource",
    "SmitherySource",
    "SourceAdapter",
    "build_default_sources",
]
