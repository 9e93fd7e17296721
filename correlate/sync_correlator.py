"""
Entry points for backward and forward search.

Re-exports the correlators and their result types from ``correlate.heuristic``
and offers ``build_correlators`` to wire them to a set of collaborators.
"""

from typing import Optional, Tuple

from correlate.heuristic import (
    BackwardCorrelator,
    BackwardResult,
    CorrelationObserver,
    ForwardCorrelator,
    ForwardResult,
    LoggingObserver,
)
from correlate.sync_config import CorrelationConfig
from correlate.sync_document import CoarseLocator, ConstructFinder, SourceDocument, TextLayout
from correlate.sync_markup import LatexConstructFinder


def build_correlators(
    oracle: CoarseLocator,
    layout: TextLayout,
    source: SourceDocument,
    config: Optional[CorrelationConfig] = None,
    observer: Optional[CorrelationObserver] = None,
) -> Tuple[BackwardCorrelator, ForwardCorrelator]:
    """
    Create a backward and a forward correlator sharing one configuration.

    A LaTeX construct finder over ``source.text`` widens source regions to
    whole environments.
    """
    config = config or CorrelationConfig()
    finder: ConstructFinder = LatexConstructFinder(source.text, config.enclosing_constructs)
    backward = BackwardCorrelator(oracle, layout, source, config, finder, observer)
    forward = ForwardCorrelator(oracle, layout, source, config, finder, observer)
    return backward, forward


__all__ = [
    "BackwardCorrelator",
    "BackwardResult",
    "CorrelationObserver",
    "ForwardCorrelator",
    "ForwardResult",
    "LoggingObserver",
    "build_correlators",
]
