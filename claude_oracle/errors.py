"""Exceptions surfaced to callers of the aggregator."""


class OracleError(Exception):
    """Base class for errors raised by claude-oracle."""


class InvalidQueryError(OracleError, ValueError):
    """Caller input was rejected before any source was consulted."""
