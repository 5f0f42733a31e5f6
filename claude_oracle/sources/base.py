"""Base class for catalog adapters."""

import re
from datetime import datetime, timezone
from typing import Optional

import httpx

from ..cache import ExpiringCache
from ..config import DEFAULT_FETCH_TIMEOUT
from ..console import console
from ..models import DataSource, Resource, SourceStatus

GITHUB_REPO_RE = re.compile(r"github\.com/([^/\s]+/[^/\s#?]+)")


def github_repo(url: Optional[str]) -> Optional[str]:
    """Extract "owner/repo" from a GitHub URL."""
    if not url:
        return None
    match = GITHUB_REPO_RE.search(url)
    if not match:
        return None
    repo = match.group(1)
    return repo[:-4] if repo.endswith(".git") else repo


def local_name(tag: str) -> str:
    """Strip the "{namespace}" prefix ElementTree puts on tags."""
    return tag.rsplit("}", 1)[-1]


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


class SourceAdapter:
    """
    One catalog feeding the aggregator.

    Subclasses set `name`, `type`, `ttl` and `cache_key` and implement
    `load()`, which performs the network calls and translation into
    `Resource`. `fetch()` wraps it with the cache and never raises: any
    failure is logged and yields an empty list.

    Each request is bounded by the client timeout. `max_requests` is the
    number of sequential requests one `load()` may make, so the aggregator
    can size its overall guard for paginated catalogs.
    """

    name: str = ""
    type: str = ""
    ttl: float = 0
    cache_key: str = ""
    max_requests: int = 1

    def __init__(self, cache: ExpiringCache, timeout: float = DEFAULT_FETCH_TIMEOUT):
        self.cache = cache
        self.client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def load(self) -> list[Resource]:
        raise NotImplementedError

    async def fetch(self) -> list[Resource]:
        """Return cached resources, or load and cache them."""
        cached = self.cache.get(self.cache_key)
        if cached is not None:
            return cached

        try:
            resources = await self.load()
        except httpx.HTTPStatusError as e:
            console.print(
                f"[yellow]Warning: {self.name} returned HTTP {e.response.status_code}[/yellow]"
            )
            return []
        except Exception as e:
            console.print(f"[yellow]Warning: Failed to fetch from {self.name}: {e!r}[/yellow]")
            return []

        self.cache.set(self.cache_key, resources, self.ttl)
        console.print(f"[dim]{self.name}: cached {len(resources)} resources[/dim]")
        return resources

    def cache_keys(self) -> list[str]:
        return [self.cache_key]

    def is_cached(self) -> bool:
        return all(self.cache.has(key) for key in self.cache_keys())

    def status(self) -> DataSource:
        """Health snapshot from the cache; never touches the network."""
        cached = self.cache.get(self.cache_key)
        created = self.cache.created_at(self.cache_key)
        if cached is None or created is None:
            return DataSource(
                name=self.name,
                type=self.type,
                count=0,
                last_updated="never",
                status=SourceStatus.STALE.value,
            )
        return DataSource(
            name=self.name,
            type=self.type,
            count=len(cached),
            last_updated=datetime.fromtimestamp(created, tz=timezone.utc).isoformat(),
            status=SourceStatus.OK.value,
        )

    async def close(self):
        await self.client.aclose()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
