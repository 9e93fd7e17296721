"""
Observer hooks called by the correlators at fixed points of a correlation.
"""

import logging
from typing import Optional

from .core import Alignment, Context, Resolution

logger = logging.getLogger(__name__)


class CorrelationObserver:
    """
    No-op observer. Subclass and override the hooks of interest.

    ``direction`` is ``"backward"`` or ``"forward"``.
    """

    def before_alignment(self, direction: str, query: Context, target: Context) -> None:
        pass

    def after_alignment(self, direction: str, alignment: Alignment) -> None:
        pass

    def after_resolution(self, direction: str, resolution: Optional[Resolution]) -> None:
        pass


class LoggingObserver(CorrelationObserver):
    """Observer writing every hook to the debug log."""

    def before_alignment(self, direction, query, target):
        logger.debug(
            "%s: query %r (marked %s+%s), target %r",
            direction,
            query.render(),
            query.marked_index,
            query.char_offset,
            target.render(),
        )

    def after_alignment(self, direction, alignment):
        logger.debug(
            "%s: alignment score %s with %s/%s matched pairs",
            direction,
            alignment.score,
            len(alignment.matches),
            len(alignment),
        )

    def after_resolution(self, direction, resolution):
        if resolution is None:
            logger.debug("%s: resolution failed", direction)
        else:
            logger.debug(
                "%s: resolved to %r+%s at position %s",
                direction,
                resolution.token.text,
                resolution.offset,
                resolution.position,
            )
