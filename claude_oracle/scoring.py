"""Relevance scoring and cross-source deduplication."""

from typing import Iterable, Optional

from .models import Resource, ResourceType


def match_score(query: Optional[str], resource: Optional[Resource]) -> float:
    """
    Score a resource against a free-text query.

    Returns 0 for a non-match, which excludes the resource from search
    results. The name rules are exclusive: exact match beats prefix beats
    substring.
    """
    if not query or resource is None or not resource.name or not resource.description:
        return 0

    q = query.lower()
    name = resource.name.lower()
    desc = resource.description.lower()
    category = (resource.category or "").lower()
    keywords = [k.lower() for k in (resource.keywords or []) if k]

    score = 0.0

    if name == q:
        score += 100
    elif name.startswith(q):
        score += 50
    elif q in name:
        score += 30

    if q in desc:
        score += 20

    if q in category:
        score += 15

    for kw in keywords:
        if q in kw or kw in q:
            score += 10

    if resource.stars:
        score += min(resource.stars / 100, 10)

    return score


def deduplicate(resources: Iterable[Resource]) -> list[Resource]:
    """
    Merge records that share a dedup key across sources.

    The first record seen for a key is kept unless a later one has a
    strictly longer description. Each key keeps the position of its first
    occurrence. Invalid resources are dropped.
    """
    seen: dict[str, Resource] = {}

    for resource in resources:
        if resource is None or not resource.is_valid():
            continue

        key = resource.dedup_key()
        existing = seen.get(key)
        if existing is None or len(resource.description) > len(existing.description):
            seen[key] = resource

    return list(seen.values())


def filter_by_type(resources: list[Resource], resource_type: ResourceType | str) -> list[Resource]:
    """Keep resources of one type; "all" keeps everything."""
    wanted = ResourceType(resource_type)
    if wanted == ResourceType.ALL:
        return resources
    return [r for r in resources if r.type == wanted.value]
