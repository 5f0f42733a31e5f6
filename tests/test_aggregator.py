"""Tests for the aggregator fan-out, search and browse"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from claude_oracle.aggregator import Aggregator, EARLIEST, interleave, parse_timestamp
from claude_oracle.cache import ExpiringCache
from claude_oracle.config import Settings
from claude_oracle.errors import InvalidQueryError
from claude_oracle.sources import SkillsmpSource, SmitherySource

from conftest import BrokenSource, StaticSource, make_resource, mock_response


def make_aggregator(*sources, cache=None, semantic_source=None, timeout=1.0):
    return Aggregator(
        sources=list(sources),
        cache=cache,
        semantic_source=semantic_source,
        settings=Settings(fetch_timeout=timeout),
    )


class TestHelpers:
    """Test timestamp parsing and interleaving"""

    def test_parse_iso_with_z(self):
        assert parse_timestamp("2024-01-02T03:04:05Z") == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_parse_rfc822(self):
        assert parse_timestamp("Tue, 02 Jan 2024 10:00:00 GMT") == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)

    def test_naive_date_is_utc(self):
        assert parse_timestamp("2024-01-01") == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_unparseable_is_earliest(self):
        assert parse_timestamp("garbage") == EARLIEST
        assert parse_timestamp(None) == EARLIEST
        assert parse_timestamp("") == EARLIEST

    def test_interleave_starts_with_first(self):
        assert interleave([1, 2], ["a", "b", "c"], 10) == [1, "a", 2, "b", "c"]

    def test_interleave_respects_limit(self):
        assert interleave([1, 2, 3], ["a", "b", "c"], 3) == [1, "a", 2]

    def test_interleave_with_empty_side(self):
        assert interleave([], ["a", "b", "c"], 2) == ["a", "b"]


@pytest.mark.asyncio
class TestFanOut:
    """A failing source only shrinks the result set"""

    async def test_failures_are_isolated(self):
        good = StaticSource("good", [make_resource("redis", description="Redis server")])
        http_error = StaticSource("http", error=httpx.ConnectError("down"))
        broken = BrokenSource("broken")
        slow = StaticSource("slow", [make_resource("redis-slow")], delay=5)
        agg = make_aggregator(good, http_error, broken, slow, timeout=0.05)

        result = await agg.search("redis", limit=5)

        assert [r.name for r in result.results] == ["redis"]
        assert result.sources_searched == ["good", "http", "broken", "slow"]
        assert result.total_available == 1
        await agg.close()

    async def test_all_sources_failing_browse(self):
        agg = make_aggregator(
            BrokenSource("one"),
            StaticSource("two", error=ValueError("malformed")),
        )

        result = await agg.browse(type="all", limit=10)

        assert result.results == []
        assert result.total_available == 0
        assert result.sources_searched == ["one", "two"]
        await agg.close()

    async def test_paginated_source_gets_a_budget_per_page(self):
        source = SmitherySource(ExpiringCache(), timeout=0.1)

        async def slow_page(url, params=None, headers=None):
            await asyncio.sleep(0.04)
            page = params["page"]
            return mock_response({
                "servers": [{"qualifiedName": f"acme/server-{page}", "description": f"Server {page}"}],
                "pagination": {"totalPages": 5},
            })

        agg = make_aggregator(source, timeout=0.1)

        with patch.object(source.client, "get", new_callable=AsyncMock, side_effect=slow_page) as get:
            result = await agg.browse(limit=10)

        assert get.await_count == 5
        assert len(result.results) == 5
        assert result.total_available == 5
        assert source.is_cached()
        await agg.close()

    async def test_registration_order_wins_over_completion_order(self):
        first = StaticSource("a", [
            make_resource("shared", description="from a"),
            make_resource("a-only"),
        ], delay=0.05)
        second = StaticSource("b", [
            make_resource("b-only"),
            make_resource("shared", description="from b"),
        ])
        agg = make_aggregator(first, second)

        resources = await agg.fetch_all_resources()

        assert [r.name for r in resources] == ["shared", "a-only", "b-only"]
        assert resources[0].description == "from a"
        await agg.close()

    async def test_invalid_resources_never_reach_results(self):
        source = StaticSource("s", [
            make_resource("valid", description="Has a description"),
            make_resource("empty", description=""),
        ])
        agg = make_aggregator(source)

        resources = await agg.fetch_all_resources()

        assert [r.name for r in resources] == ["valid"]
        await agg.close()


@pytest.mark.asyncio
class TestSearch:
    """Test search ranking, merging and validation"""

    async def test_duplicate_across_sources_keeps_longer_description(self):
        first = StaticSource("a", [make_resource("Foo", description="desc", stars=50)])
        second = StaticSource("b", [make_resource("foo", description="a longer desc", stars=10)])
        agg = make_aggregator(first, second)

        result = await agg.search("foo", type="mcp", limit=5)

        assert len(result.results) == 1
        assert result.results[0].name == "foo"
        assert result.results[0].description == "a longer desc"
        assert result.total_available == 1
        await agg.close()

    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_blank_query_rejected_before_fan_out(self, query):
        source = StaticSource("s", [make_resource("foo")])
        agg = make_aggregator(source)

        with pytest.raises(InvalidQueryError):
            await agg.search(query)

        assert source.calls == 0
        await agg.close()

    async def test_invalid_type_rejected(self):
        source = StaticSource("s")
        agg = make_aggregator(source)

        with pytest.raises(InvalidQueryError):
            await agg.search("foo", type="agent")
        with pytest.raises(InvalidQueryError):
            await agg.search("foo", limit="lots")
        with pytest.raises(InvalidQueryError):
            await agg.search("foo", limit=float("inf"))

        assert source.calls == 0
        await agg.close()

    async def test_ranked_by_score(self):
        source = StaticSource("s", [
            make_resource("legit", description="Checks things"),
            make_resource("github", description="GitHub API"),
            make_resource("git", description="Git tools"),
            make_resource("unrelated", description="Nothing here"),
        ])
        agg = make_aggregator(source)

        result = await agg.search("git", limit=5)

        assert [r.name for r in result.results] == ["git", "github", "legit"]
        assert result.total_available == 4
        await agg.close()

    async def test_ties_keep_source_order(self):
        first = StaticSource("a", [make_resource("alpha", description="about redis")])
        second = StaticSource("b", [make_resource("beta", description="about redis")])
        agg = make_aggregator(first, second)

        result = await agg.search("redis")

        assert [r.name for r in result.results] == ["alpha", "beta"]
        await agg.close()

    async def test_type_filter(self):
        source = StaticSource("s", [
            make_resource("db-skill", type="skill", description="db"),
            make_resource("db-server", type="mcp", description="db"),
        ])
        agg = make_aggregator(source)

        result = await agg.search("db", type="skill")

        assert [r.name for r in result.results] == ["db-skill"]
        assert result.total_available == 1
        await agg.close()

    async def test_limit_is_capped(self):
        source = StaticSource("s", [make_resource(f"tool-{i}", description="tool") for i in range(30)])
        agg = make_aggregator(source)

        result = await agg.search("tool", limit=100)

        assert len(result.results) == 20
        assert result.total_available == 30
        await agg.close()

    async def test_non_positive_limit_returns_nothing(self):
        source = StaticSource("s", [make_resource("tool", description="tool")])
        agg = make_aggregator(source)

        for limit in (0, -3):
            result = await agg.search("tool", limit=limit)
            assert result.results == []
            assert result.total_available == 1
        await agg.close()

    async def test_cached_flag(self):
        source = StaticSource("s", [make_resource("tool", description="tool")])
        agg = make_aggregator(source)

        first = await agg.search("tool")
        second = await agg.search("tool")

        assert first.cached is False
        assert second.cached is True
        assert source.calls == 1
        await agg.close()


@pytest.mark.asyncio
class TestSemanticMerge:
    """Semantic results are interleaved ahead of keyword results"""

    def _keyword_source(self):
        return StaticSource("kw", [
            make_resource("legit", description="Checks things"),
            make_resource("github", description="GitHub API"),
            make_resource("git", description="Git tools"),
        ])

    def _semantic_results(self):
        return [
            make_resource("git-helper", type="skill", description="Helps with git", source="skillsmp"),
            make_resource("git-flow", type="skill", description="Branching model", source="skillsmp"),
        ]

    async def test_interleaves_semantic_first(self, cache):
        semantic = SkillsmpSource("test-key", cache)
        agg = make_aggregator(self._keyword_source(), cache=cache, semantic_source=semantic)

        with patch.object(semantic, "search", new_callable=AsyncMock, return_value=self._semantic_results()) as search:
            result = await agg.search("git", semantic=True, limit=4)
            search.assert_awaited_once_with("git", semantic=True, limit=4)

        assert [r.name for r in result.results] == ["git-helper", "git", "git-flow", "github"]
        assert result.sources_searched == ["skillsmp (semantic)", "kw"]
        await agg.close()

    async def test_semantic_results_follow_type_filter(self, cache):
        semantic = SkillsmpSource("test-key", cache)
        agg = make_aggregator(self._keyword_source(), cache=cache, semantic_source=semantic)

        with patch.object(semantic, "search", new_callable=AsyncMock, return_value=self._semantic_results()):
            result = await agg.search("git", type="mcp", semantic=True, limit=5)

        assert [r.name for r in result.results] == ["git", "github", "legit"]
        await agg.close()

    async def test_overlap_is_deduplicated(self, cache):
        semantic = SkillsmpSource("test-key", cache)
        agg = make_aggregator(self._keyword_source(), cache=cache, semantic_source=semantic)
        overlap = [make_resource("git", description="Git", source="skillsmp")]

        with patch.object(semantic, "search", new_callable=AsyncMock, return_value=overlap):
            result = await agg.search("git", semantic=True, limit=5)

        names = [r.name for r in result.results]
        assert names.count("git") == 1
        assert names[0] == "git"
        assert result.results[0].description == "Git tools"
        await agg.close()

    async def test_skipped_without_api_key(self, cache):
        semantic = SkillsmpSource(None, cache)
        agg = make_aggregator(self._keyword_source(), cache=cache, semantic_source=semantic)

        with patch.object(semantic, "search", new_callable=AsyncMock) as search:
            result = await agg.search("git", semantic=True)
            search.assert_not_awaited()

        assert result.sources_searched == ["kw"]
        await agg.close()

    async def test_skipped_for_zero_limit(self, cache):
        semantic = SkillsmpSource("test-key", cache)
        agg = make_aggregator(self._keyword_source(), cache=cache, semantic_source=semantic)

        with patch.object(semantic, "search", new_callable=AsyncMock) as search:
            result = await agg.search("git", semantic=True, limit=0)
            search.assert_not_awaited()

        assert result.results == []
        await agg.close()


@pytest.mark.asyncio
class TestBrowse:
    """Test category filtering and sort orders"""

    async def test_popular_orders_by_stars(self):
        source = StaticSource("s", [
            make_resource("few", stars=5),
            make_resource("none"),
            make_resource("many", stars=50),
        ])
        agg = make_aggregator(source)

        result = await agg.browse(sort="popular")

        assert [r.name for r in result.results] == ["many", "few", "none"]
        await agg.close()

    async def test_recent_orders_by_timestamp(self):
        source = StaticSource("s", [
            make_resource("jan1", last_updated="2024-01-01T00:00:00Z"),
            make_resource("garbage", last_updated="not a date"),
            make_resource("jan2", last_updated="Tue, 02 Jan 2024 10:00:00 GMT"),
            make_resource("missing"),
        ])
        agg = make_aggregator(source)

        result = await agg.browse(sort="recent")

        assert [r.name for r in result.results] == ["jan2", "jan1", "garbage", "missing"]
        await agg.close()

    async def test_category_matches_category_or_keywords(self):
        source = StaticSource("s", [
            make_resource("pg", category="Database Tools"),
            make_resource("sqlite", keywords=["database", "sql"]),
            make_resource("slack", category="communication"),
        ])
        agg = make_aggregator(source)

        result = await agg.browse(category="DATABASE")

        assert sorted(r.name for r in result.results) == ["pg", "sqlite"]
        assert result.total_available == 2
        await agg.close()

    async def test_limit_and_total(self):
        source = StaticSource("s", [make_resource(f"r{i}", stars=i) for i in range(15)])
        agg = make_aggregator(source)

        result = await agg.browse(limit=3)

        assert [r.name for r in result.results] == ["r14", "r13", "r12"]
        assert result.total_available == 15
        await agg.close()

    async def test_zero_limit(self):
        source = StaticSource("s", [make_resource("r")])
        agg = make_aggregator(source)

        result = await agg.browse(limit=0)

        assert result.results == []
        assert result.total_available == 1
        await agg.close()

    async def test_invalid_sort(self):
        agg = make_aggregator(StaticSource("s"))
        with pytest.raises(InvalidQueryError):
            await agg.browse(sort="alphabetical")
        await agg.close()


@pytest.mark.asyncio
class TestGetSources:
    """Status snapshot derived from the cache"""

    async def test_before_any_fetch(self, cache):
        agg = make_aggregator(StaticSource("a", [make_resource("x")], cache=cache), cache=cache)

        output = agg.get_sources()

        assert output.total == 0
        assert output.sources[0].status == "stale"
        assert output.sources[0].last_updated == "never"
        await agg.close()

    async def test_after_fetch(self, cache):
        a = StaticSource("a", [make_resource("x"), make_resource("y")], cache=cache)
        b = StaticSource("b", [make_resource("z")], cache=cache)
        agg = make_aggregator(a, b, cache=cache)

        await agg.fetch_all_resources()
        output = agg.get_sources()

        assert [(s.name, s.count, s.status) for s in output.sources] == [("a", 2, "ok"), ("b", 1, "ok")]
        assert output.total == 3
        assert a.calls == 1
        await agg.close()

    async def test_never_fetches(self, cache):
        source = StaticSource("a", [make_resource("x")], cache=cache)
        agg = make_aggregator(source, cache=cache)

        agg.get_sources()

        assert source.calls == 0
        await agg.close()

    async def test_status_error_reported(self, cache):
        agg = make_aggregator(
            StaticSource("a", [make_resource("x")], cache=cache),
            BrokenSource("b", cache=cache),
            cache=cache,
        )

        output = agg.get_sources()

        assert [s.status for s in output.sources] == ["stale", "error"]
        await agg.close()

    async def test_includes_semantic_source(self, cache):
        semantic = SkillsmpSource(None, cache)
        agg = make_aggregator(StaticSource("a", cache=cache), cache=cache, semantic_source=semantic)

        output = agg.get_sources()

        assert output.sources[-1].name == "skillsmp"
        assert output.sources[-1].status == "no_key"
        await agg.close()


@pytest.mark.asyncio
class TestClose:
    async def test_one_failing_client_does_not_block_the_rest(self):
        first = StaticSource("a")
        second = StaticSource("b")
        agg = make_aggregator(first, second)

        with patch.object(first, "close", new_callable=AsyncMock, side_effect=RuntimeError("boom")), \
                patch.object(second.client, "aclose", new_callable=AsyncMock) as aclose:
            await agg.close()

        aclose.assert_awaited_once()
