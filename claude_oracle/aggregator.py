"""Fan-out, merge and ranking across every registered catalog."""

import asyncio
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Iterable, Optional

from .cache import ExpiringCache
from .config import (
    DEFAULT_BROWSE_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    MAX_LIMIT,
    Settings,
)
from .console import console
from .errors import InvalidQueryError
from .models import (
    DataSource,
    Resource,
    ResourceType,
    SearchOutput,
    SortOrder,
    SourcesOutput,
    SourceStatus,
)
from .scoring import deduplicate, filter_by_type, match_score
from .sources import SkillsmpSource, SourceAdapter, build_default_sources

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def parse_timestamp(value: Optional[str]) -> datetime:
    """Parse ISO-8601 or RFC 822 timestamps; anything else sorts as earliest."""
    if not value or not isinstance(value, str):
        return EARLIEST
    text = value.strip()
    parsed = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return EARLIEST
    if parsed is None:
        return EARLIEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def interleave(first: list[Resource], second: list[Resource], limit: int) -> list[Resource]:
    """Alternate items from both lists, starting with `first`, up to `limit`."""
    merged: list[Resource] = []
    for i in range(max(len(first), len(second))):
        if len(merged) >= limit:
            break
        if i < len(first):
            merged.append(first[i])
        if i < len(second) and len(merged) < limit:
            merged.append(second[i])
    return merged


def _parse_type(value) -> ResourceType:
    try:
        return ResourceType(value)
    except ValueError as exc:
        valid = ", ".join(t.value for t in ResourceType)
        raise InvalidQueryError(f"Invalid type {value!r}. Expected one of: {valid}") from exc


def _parse_sort(value) -> SortOrder:
    try:
        return SortOrder(value)
    except ValueError as exc:
        valid = ", ".join(s.value for s in SortOrder)
        raise InvalidQueryError(f"Invalid sort {value!r}. Expected one of: {valid}") from exc


def _clamp_limit(limit) -> int:
    if isinstance(limit, bool):
        raise InvalidQueryError(f"limit must be an integer, got {limit!r}")
    try:
        limit = int(limit)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidQueryError(f"limit must be an integer, got {limit!r}") from exc
    return min(limit, MAX_LIMIT)


def _matches_category(resource: Resource, category: str) -> bool:
    if resource.category and category in resource.category.lower():
        return True
    return any(category in k.lower() for k in resource.keywords or [] if k)


class Aggregator:
    """
    Searches and browses the merged catalog of skills, plugins and MCP servers.

    Sources are fetched concurrently on every query; each one answers from
    the shared cache while its TTL holds. A failing or slow source only
    shrinks the result set.
    """

    def __init__(
        self,
        sources: Optional[Iterable[SourceAdapter]] = None,
        cache: Optional[ExpiringCache] = None,
        semantic_source: Optional[SkillsmpSource] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings.from_env()
        self.cache = cache if cache is not None else ExpiringCache()
        self.fetch_timeout = self.settings.fetch_timeout

        if sources is None:
            self.sources = build_default_sources(self.cache, self.settings)
            if semantic_source is None:
                semantic_source = SkillsmpSource(
                    self.settings.skillsmp_api_key, self.cache, self.fetch_timeout
                )
        else:
            self.sources = list(sources)
        self.semantic_source = semantic_source

    @property
    def source_names(self) -> list[str]:
        return [source.name for source in self.sources]

    def is_cached(self) -> bool:
        """True when every source can answer without a network call."""
        return all(source.is_cached() for source in self.sources)

    def _budget(self, source: SourceAdapter) -> float:
        """Overall deadline for one fetch: one request timeout per sequential page."""
        return self.fetch_timeout * max(getattr(source, "max_requests", 1), 1)

    async def _fetch_source(self, source: SourceAdapter) -> list[Resource]:
        return await asyncio.wait_for(source.fetch(), timeout=self._budget(source))

    async def fetch_all_resources(self) -> list[Resource]:
        """Fetch every source in parallel; failures contribute nothing."""
        results = await asyncio.gather(
            *(self._fetch_source(source) for source in self.sources),
            return_exceptions=True,
        )

        all_resources: list[Resource] = []
        for source, result in zip(self.sources, results):
            if isinstance(result, asyncio.TimeoutError):
                console.print(
                    f"[yellow]Warning: {source.name} timed out after {self._budget(source)}s[/yellow]"
                )
            elif isinstance(result, BaseException):
                console.print(f"[yellow]Error fetching {source.name}: {result!r}[/yellow]")
            elif isinstance(result, list):
                all_resources.extend(result)

        return [r for r in deduplicate(all_resources) if r.is_valid()]

    async def search(
        self,
        query: str,
        type: ResourceType | str = ResourceType.ALL,
        semantic: bool = False,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> SearchOutput:
        """Rank the merged catalog against a free-text query."""
        if not isinstance(query, str) or not query.strip():
            raise InvalidQueryError("query parameter is required")
        resource_type = _parse_type(type)
        limit = _clamp_limit(limit)
        query = query.strip()

        sources_searched: list[str] = []
        semantic_results: list[Resource] = []
        cached = self.is_cached()

        use_semantic = (
            semantic
            and limit > 0
            and self.semantic_source is not None
            and self.semantic_source.available
        )
        if use_semantic:
            cached = cached and self.semantic_source.is_cached(query, True, limit)
            semantic_results = await self.semantic_source.search(query, semantic=True, limit=limit)
            if resource_type != ResourceType.ALL:
                semantic_results = filter_by_type(semantic_results, resource_type)
            sources_searched.append(self.semantic_source.label)

        all_resources = await self.fetch_all_resources()
        sources_searched.extend(self.source_names)
        filtered = filter_by_type(all_resources, resource_type)

        scored = [(r, match_score(query, r)) for r in filtered]
        # sorted() is stable, so equal scores keep source order
        ranked = [
            r for r, score in sorted(
                (pair for pair in scored if pair[1] > 0),
                key=lambda pair: pair[1],
                reverse=True,
            )
        ]

        results: list[Resource] = []
        if limit > 0:
            merged = interleave(semantic_results, ranked, limit)
            results = deduplicate(merged)[:limit]

        return SearchOutput(
            results=results,
            sources_searched=sources_searched,
            total_available=len(filtered),
            cached=cached,
        )

    async def browse(
        self,
        category: Optional[str] = None,
        type: ResourceType | str = ResourceType.ALL,
        sort: SortOrder | str = SortOrder.POPULAR,
        limit: int = DEFAULT_BROWSE_LIMIT,
    ) -> SearchOutput:
        """List resources by category, most popular or most recent first."""
        resource_type = _parse_type(type)
        sort_order = _parse_sort(sort)
        limit = _clamp_limit(limit)
        cached = self.is_cached()

        all_resources = await self.fetch_all_resources()
        filtered = filter_by_type(all_resources, resource_type)

        if category and category.strip():
            wanted = category.strip().lower()
            filtered = [r for r in filtered if _matches_category(r, wanted)]

        if sort_order == SortOrder.POPULAR:
            filtered = sorted(filtered, key=lambda r: r.stars or 0, reverse=True)
        else:
            filtered = sorted(filtered, key=lambda r: parse_timestamp(r.last_updated), reverse=True)

        return SearchOutput(
            results=filtered[:limit] if limit > 0 else [],
            sources_searched=self.source_names,
            total_available=len(filtered),
            cached=cached,
        )

    def get_sources(self) -> SourcesOutput:
        """Status of every source from cache contents; never fetches."""
        sources = list(self.sources)
        if self.semantic_source is not None:
            sources.append(self.semantic_source)

        statuses: list[DataSource] = []
        for source in sources:
            try:
                statuses.append(source.status())
            except Exception as e:
                console.print(f"[red]Error reading status of {source.name}: {e!r}[/red]")
                statuses.append(DataSource(
                    name=source.name,
                    type=source.type,
                    count=0,
                    last_updated="never",
                    status=SourceStatus.ERROR.value,
                ))

        return SourcesOutput(sources=statuses, total=sum(s.count for s in statuses))

    async def close(self):
        """Clean up HTTP clients."""
        sources = list(self.sources)
        if self.semantic_source is not None:
            sources.append(self.semantic_source)
        results = await asyncio.gather(
            *(source.close() for source in sources), return_exceptions=True
        )
        for source, result in zip(sources, results):
            if isinstance(result, Exception):
                console.print(f"[yellow]Warning: closing {source.name} failed: {result!r}[/yellow]")
