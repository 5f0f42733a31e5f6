"""Shared helpers for claude-oracle tests"""

import asyncio
from unittest.mock import Mock

import httpx
import pytest

from claude_oracle.cache import ExpiringCache
from claude_oracle.models import Resource
from claude_oracle.sources.base import SourceAdapter


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_resource(name, description="A resource", type="mcp", **kwargs) -> Resource:
    kwargs.setdefault("install_command", f"npx -y {name}")
    kwargs.setdefault("source", "test")
    return Resource(name=name, description=description, type=type, **kwargs)


def mock_response(json_data=None, text="", status_code=200):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status = Mock(side_effect=httpx.HTTPStatusError(
            f"HTTP {status_code}", request=Mock(), response=response,
        ))
    else:
        response.raise_for_status = Mock()
    return response


class StaticSource(SourceAdapter):
    """Adapter serving a fixed list, optionally failing or hanging."""

    ttl = 60

    def __init__(self, name, resources=(), cache=None, error=None, delay=0, type="mcp"):
        super().__init__(cache if cache is not None else ExpiringCache())
        self.name = name
        self.type = type
        self.cache_key = f"test:{name}"
        self.resources = list(resources)
        self.error = error
        self.delay = delay
        self.calls = 0

    async def load(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.resources)


class BrokenSource(StaticSource):
    """Adapter whose fetch escapes its own error handling."""

    async def fetch(self):
        self.calls += 1
        raise RuntimeError(f"{self.name} exploded")

    def status(self):
        raise RuntimeError(f"{self.name} status exploded")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ExpiringCache(clock=clock)
