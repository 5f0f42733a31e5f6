"""Runtime configuration, cache TTL policy and query limits."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

HOUR = 60 * 60


class TTL:
    """Per-source cache lifetimes, in seconds."""

    PLUGINS = 24 * HOUR
    MCP_SERVERS = 6 * HOUR
    AWESOME_LISTS = 12 * HOUR
    SKILLSMP = 1 * HOUR
    SMITHERY = 6 * HOUR
    MCP_REGISTRY = 6 * HOUR
    NPM_REGISTRY = 12 * HOUR
    PLAYBOOKS = 12 * HOUR


DEFAULT_FETCH_TIMEOUT = 5.0
DEFAULT_SEARCH_LIMIT = 5
DEFAULT_BROWSE_LIMIT = 10
MAX_LIMIT = 20


@dataclass
class Settings:
    skillsmp_api_key: Optional[str] = None
    smithery_api_key: Optional[str] = None
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        raw_timeout = os.environ.get("ORACLE_FETCH_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_FETCH_TIMEOUT
        except ValueError as exc:
            raise ValueError(
                f"ORACLE_FETCH_TIMEOUT must be a number of seconds, got {raw_timeout!r}"
            ) from exc
        return cls(
            skillsmp_api_key=os.environ.get("SKILLSMP_API_KEY") or None,
            smithery_api_key=os.environ.get("SMITHERY_API_KEY") or None,
            fetch_timeout=timeout,
        )
