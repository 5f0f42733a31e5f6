"""SkillsMP API client (https://skillsmp.com/docs/api), the optional semantic source."""

from datetime import datetime, timezone
from typing import Optional

import httpx

from ..cache import ExpiringCache
from ..config import DEFAULT_FETCH_TIMEOUT, TTL
from ..console import console
from ..models import DataSource, Resource, ResourceType, SourceStatus

SKILLSMP_BASE_URL = "https://skillsmp.com/api/v1/skills"
CACHE_PREFIX = "skillsmp:"


def parse_skill(item: dict) -> Resource:
    # AI search nests skill info under "skill"
    if isinstance(item.get("skill"), dict):
        item = item["skill"]
    name = item.get("name", "")
    marketplace = item.get("marketplace") or "skillsmp"
    description = item.get("description") or "No description"

    return Resource(
        name=name,
        description=description[:200],
        type=ResourceType.SKILL.value,
        install_command=item.get("installCommand") or f"/plugin install {name}@{marketplace}",
        source="skillsmp",
        url=item.get("github_url") or item.get("githubUrl") or item.get("url"),
        category=item.get("category"),
        keywords=[t for t in item.get("tags") or [] if isinstance(t, str)],
        author=item.get("author"),
        stars=item.get("stars", item.get("rating")),
        last_updated=item.get("updatedAt") or item.get("updated_at"),
        popularity_score=item.get("downloads"),
    )


def _extract_items(data) -> list:
    items = data.get("results", data.get("data", data.get("skills", []))) if isinstance(data, dict) else data
    if isinstance(items, dict):
        items = items.get("data", items.get("items", items.get("skills", [])))
    if not isinstance(items, list):
        items = [items] if items else []
    return [i for i in items if isinstance(i, dict)]


class SkillsmpSource:
    """
    Keyword or AI semantic search against SkillsMP.

    Not part of the fan-out: results are query-specific and arrive already
    ranked, so the aggregator merges them without rescoring. Requires an
    API key; without one the source reports `no_key` and returns nothing.
    """

    name = "skillsmp"
    label = "skillsmp (semantic)"
    type = ResourceType.SKILL.value
    ttl = TTL.SKILLSMP

    def __init__(
        self,
        api_key: Optional[str],
        cache: ExpiringCache,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ):
        self.api_key = api_key
        self.cache = cache
        self.client = httpx.AsyncClient(timeout=timeout)

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def cache_key(query: str, semantic: bool, limit: int) -> str:
        return f"{CACHE_PREFIX}{'ai' if semantic else 'kw'}:{query}:{limit}"

    def is_cached(self, query: str, semantic: bool = True, limit: int = 10) -> bool:
        return self.cache.has(self.cache_key(query, semantic, limit))

    async def search(self, query: str, semantic: bool = False, limit: int = 10) -> list[Resource]:
        """Search skills by keyword or AI semantic match."""
        if not self.api_key:
            return []

        key = self.cache_key(query, semantic, limit)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        endpoint = "ai-search" if semantic else "search"
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            response = await self.client.get(
                f"{SKILLSMP_BASE_URL}/{endpoint}",
                params={"q": query, "limit": limit},
                headers=headers,
            )
            response.raise_for_status()
            skills = [parse_skill(item) for item in _extract_items(response.json())]
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                console.print("[yellow]Warning: SkillsMP API key invalid or missing[/yellow]")
            else:
                console.print(f"[yellow]Warning: SkillsMP API error: {e}[/yellow]")
            return []
        except Exception as e:
            console.print(f"[yellow]Warning: Failed to fetch from SkillsMP: {e!r}[/yellow]")
            return []

        self.cache.set(key, skills, self.ttl)
        return skills

    def status(self) -> DataSource:
        if not self.api_key:
            return DataSource(
                name=self.name,
                type=self.type,
                count=0,
                last_updated="never",
                status=SourceStatus.NO_KEY.value,
            )

        names = set()
        newest = None
        for key in self.cache.stats().keys:
            if not key.startswith(CACHE_PREFIX):
                continue
            cached = self.cache.get(key)
            if cached is None:
                continue
            names.update(r.name.lower() for r in cached)
            created = self.cache.created_at(key)
            if created is not None and (newest is None or created > newest):
                newest = created

        return DataSource(
            name=self.name,
            type=self.type,
            count=len(names),
            last_updated=(
                datetime.fromtimestamp(newest, tz=timezone.utc).isoformat() if newest else "never"
            ),
            status=SourceStatus.OK.value,
        )

    async def close(self):
        await self.client.aclose()
