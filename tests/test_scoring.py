"""Tests for relevance scoring and deduplication"""

from dataclasses import replace

from claude_oracle.models import Resource, ResourceType
from claude_oracle.scoring import deduplicate, filter_by_type, match_score

from conftest import make_resource


class TestMatchScore:
    """Test the additive relevance score"""

    def test_exact_name(self):
        r = make_resource("postgres", description="Database server")
        assert match_score("postgres", r) == 100

    def test_name_prefix(self):
        r = make_resource("postgres-mcp", description="Database server")
        assert match_score("postgres", r) == 50

    def test_name_substring(self):
        r = make_resource("my-postgres", description="Database server")
        assert match_score("postgres", r) == 30

    def test_case_insensitive(self):
        r = make_resource("PostGres", description="Database server")
        assert match_score("POSTGRES", r) == 100

    def test_description_match(self):
        r = make_resource("alpha", description="Works with Postgres")
        assert match_score("postgres", r) == 20

    def test_category_match(self):
        r = make_resource("alpha", description="Stores rows", category="Database")
        assert match_score("data", r) == 15

    def test_keywords_match_both_directions(self):
        r = make_resource("alpha", description="Things", keywords=["postgresql", "git", "sql"])
        # "postgres" is inside "postgresql"; "git" is inside "github"
        assert match_score("postgres", r) == 10
        assert match_score("github", r) == 10

    def test_every_rule_sums(self):
        r = make_resource(
            "sql",
            description="Run sql queries",
            category="sql tools",
            keywords=["sql"],
            stars=300,
        )
        assert match_score("sql", r) == 100 + 20 + 15 + 10 + 3

    def test_star_bonus_is_capped(self):
        r = make_resource("postgres", description="Database", stars=50_000)
        assert match_score("postgres", r) == 110

    def test_no_match(self):
        r = make_resource("alpha", description="Something else")
        assert match_score("postgres", r) == 0

    def test_missing_inputs(self):
        r = make_resource("postgres", description="Database")
        assert match_score("", r) == 0
        assert match_score(None, r) == 0
        assert match_score("postgres", None) == 0
        assert match_score("postgres", replace(r, description="")) == 0

    def test_exact_beats_prefix_beats_substring(self):
        exact = make_resource("git", description="x")
        prefix = make_resource("github", description="x")
        substring = make_resource("legit", description="x")
        assert match_score("git", exact) > match_score("git", prefix) > match_score("git", substring)

    def test_adding_a_matching_field_never_lowers_score(self):
        base = make_resource("alpha", description="Something")
        richer = replace(base, description="Something about redis", category="redis", keywords=["redis"])
        assert match_score("redis", richer) >= match_score("redis", base)


class TestDeduplicate:
    """Test cross-source merging"""

    def test_longer_description_wins(self):
        short = make_resource("Foo", description="desc", source="a")
        longer = make_resource("foo", description="a longer desc", source="b")
        result = deduplicate([short, longer])
        assert result == [longer]

    def test_tie_keeps_first(self):
        first = make_resource("foo", description="same", source="a")
        second = make_resource("FOO", description="same", source="b")
        assert deduplicate([first, second]) == [first]

    def test_type_is_part_of_the_key(self):
        mcp = make_resource("foo", type="mcp")
        plugin = make_resource("foo", type="plugin")
        assert len(deduplicate([mcp, plugin])) == 2

    def test_position_of_first_occurrence_is_kept(self):
        a = make_resource("a")
        b = make_resource("b", description="b")
        b_longer = make_resource("b", description="b but longer")
        c = make_resource("c")
        assert deduplicate([a, b, c, b_longer]) == [a, b_longer, c]

    def test_idempotent(self):
        items = [
            make_resource("a"),
            make_resource("A", description="A longer description"),
            make_resource("b"),
        ]
        once = deduplicate(items)
        assert deduplicate(once) == once

    def test_unique_keys(self):
        items = [make_resource(n) for n in ["x", "X", "y", "x ", "Y"]]
        keys = [r.dedup_key() for r in deduplicate(items)]
        assert len(keys) == len(set(keys))

    def test_invalid_resources_dropped(self):
        valid = make_resource("ok")
        blank_name = make_resource("  ")
        blank_desc = make_resource("nodesc", description="")
        assert deduplicate([blank_name, valid, blank_desc, None]) == [valid]

    def test_empty(self):
        assert deduplicate([]) == []

    def test_enum_type_key(self):
        r = Resource(
            name="Foo", description="d", type=ResourceType.MCP,
            install_command="", source="t",
        )
        assert r.dedup_key() == "mcp:foo"


class TestFilterByType:
    def test_all_keeps_everything(self):
        items = [make_resource("a", type="mcp"), make_resource("b", type="skill")]
        assert filter_by_type(items, "all") == items

    def test_single_type(self):
        items = [make_resource("a", type="mcp"), make_resource("b", type="skill")]
        assert [r.name for r in filter_by_type(items, ResourceType.SKILL)] == ["b"]
