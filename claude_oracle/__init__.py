"""claude-oracle - Discover skills, plugins, and MCP servers across many catalogs"""

from .aggregator import Aggregator
from .cache import ExpiringCache
from .cli import cli
from .config import Settings
from .console import Verbosity, get_verbosity, set_verbosity
from .errors import InvalidQueryError, OracleError
from .models import (
    DataSource,
    Resource,
    ResourceType,
    SearchOutput,
    SortOrder,
    SourcesOutput,
    SourceStatus,
)
from .scoring import deduplicate, match_score

__version__ = "0.1.0"
__all__ = [
    "Aggregator",
    "DataSource",
    "ExpiringCache",
    "InvalidQueryError",
    "OracleError",
    "Resource",
    "ResourceType",
    "SearchOutput",
    "Settings",
    "SortOrder",
    "SourceStatus",
    "SourcesOutput",
    "Verbosity",
    "cli",
    "deduplicate",
    "get_verbosity",
    "match_score",
    "set_verbosity",
]
