"""Verbosity-aware rich console shared by the aggregator, sources and front doors."""

import os
import re
from enum import Enum
from typing import Optional

from rich.console import Console


class Verbosity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return list(Verbosity).index(self)


# Checked in order; the first level whose pattern matches wins.
LEVEL_PATTERNS = (
    (Verbosity.ERROR, re.compile(r"\[red\]|\berror\b", re.IGNORECASE)),
    (Verbosity.WARNING, re.compile(r"\[yellow\]|\bwarning\b", re.IGNORECASE)),
)


def _parse_level(value) -> Optional[Verbosity]:
    if isinstance(value, Verbosity):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Verbosity(value.lower())
    except ValueError:
        return None


_current_verbosity = _parse_level(os.environ.get("ORACLE_VERBOSITY")) or Verbosity.INFO


def set_verbosity(level: Verbosity | str):
    """Set the minimum level of diagnostics that reach stderr."""
    global _current_verbosity
    parsed = _parse_level(level)
    if parsed is None:
        names = ", ".join(v.value for v in Verbosity)
        raise ValueError(f"Invalid verbosity level {level!r}. Expected one of: {names}")
    _current_verbosity = parsed


def get_verbosity() -> Verbosity:
    return _current_verbosity


def infer_verbosity(args, kwargs) -> Verbosity:
    """
    Level of one console call.

    An explicit `_verbosity=` keyword wins; an unknown value counts as info.
    Otherwise the first positional argument is matched against rich colour
    tags and keywords: red/"error" is an error, yellow/"warning" a warning.
    """
    if "_verbosity" in kwargs and kwargs["_verbosity"] is not None:
        return _parse_level(kwargs["_verbosity"]) or Verbosity.INFO

    message = args[0] if args else None
    if isinstance(message, str):
        for level, pattern in LEVEL_PATTERNS:
            if pattern.search(message):
                return level
    return Verbosity.INFO


class VerboseConsole(Console):
    """Console that drops messages below the global verbosity."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._raw_console_print = super().print

    def print(self, *args, **kwargs):
        level = infer_verbosity(args, kwargs)
        kwargs.pop("_verbosity", None)
        if level.rank >= _current_verbosity.rank:
            self._raw_console_print(*args, **kwargs)


# Diagnostics go to stderr; stdout belongs to the CLI results and the MCP stdio transport.
console = VerboseConsole(stderr=True)

# Results rendering for the CLI, never filtered.
output_console = Console()
