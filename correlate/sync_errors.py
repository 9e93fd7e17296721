"""
Error types raised while correlating rendered text with its source.

Only ``NoOracleMatch`` and, in strict mode, ``AlignmentInvariantError`` ever
reach the caller of a correlator. The recoverable errors are converted into a
coarse fallback result whose ``reason`` carries the error class name.
"""


class CorrelationError(Exception):
    """Base class for all correlation errors."""


class NoOracleMatch(CorrelationError):
    """The coarse locator has no record for the requested position."""


class AlignmentInvariantError(CorrelationError):
    """The marked index does not fit the alignment it is resolved against."""


class RecoverableCorrelationError(CorrelationError):
    """Errors that only reduce precision to the oracle position."""


class EmptyContext(RecoverableCorrelationError):
    """Tokenization produced no tokens on one side."""


class ResolutionGapExhausted(RecoverableCorrelationError):
    """Neither the marked slot nor its direct neighbours are matched."""


class RegionHeuristicMiss(RecoverableCorrelationError):
    """The partner of a paired markup construct could not be located."""
