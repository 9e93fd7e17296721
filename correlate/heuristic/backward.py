"""
Backward correlation: from a point on a rendered page to a source offset.
"""

import logging
import bisect
from typing import Optional

from ..sync_config import CorrelationConfig
from ..sync_errors import (
    AlignmentInvariantError,
    EmptyContext,
    NoOracleMatch,
    RecoverableCorrelationError,
    ResolutionGapExhausted,
)
from .aligner import align
from .core import BackwardResult, Context, SourceLocation
from .glyphs import glyph_text
from .position_resolver import resolve
from .region import source_region
from .scorer import score
from .tokenizer import Tokenizer
from .tracing import CorrelationObserver

logger = logging.getLogger(__name__)


class BackwardCorrelator:
    """
    Resolves a clicked page position to an exact source offset.

    The rendered text around the click is the query, the source region at the
    oracle's line is the target.
    """

    direction = "backward"

    def __init__(
        self,
        oracle,
        layout,
        source,
        config: Optional[CorrelationConfig] = None,
        finder=None,
        observer: Optional[CorrelationObserver] = None,
    ):
        """
        Args:
            oracle: Coarse locator with a ``backward(page, x, y)`` lookup
            layout: Text layout providing the glyphs of each page
            source: Source reader for the document the oracle points into
            config: Correlation settings
            finder: Optional construct finder used to widen source regions
            observer: Optional hooks called around alignment and resolution
        """
        self.oracle = oracle
        self.layout = layout
        self.source = source
        self.config = config or CorrelationConfig()
        self.finder = finder
        self.observer = observer or CorrelationObserver()
        self.rendered_tokenizer = Tokenizer(self.config.rendered_flush, self.config.translations)
        self.source_tokenizer = Tokenizer(self.config.source_flush)

    def correlate(self, page: int, x: float, y: float) -> BackwardResult:
        """
        Find the source position of the point ``(x, y)`` on ``page``.

        Raises:
            NoOracleMatch: If the coarse locator knows nothing about the point
        """
        location = self.oracle.backward(page, x, y)
        if location is None:
            raise NoOracleMatch(f"No source record for page {page} at ({x}, {y})")

        if not self.config.backward_enabled:
            return self._fallback(location, "disabled")

        try:
            offset = self._correlate_precisely(page, x, y, location)
        except RecoverableCorrelationError as e:
            logger.info("Backward search fell back to line %s: %s", location.line, e)
            return self._fallback(location, type(e).__name__)
        except AlignmentInvariantError as e:
            if self.config.strict:
                raise
            logger.error("Backward search hit an internal inconsistency: %s", e)
            return self._fallback(location, type(e).__name__)

        resolved = self.source.line_column(offset)
        logger.info(
            "Backward search resolved page %s (%s, %s) to line %s column %s",
            page,
            x,
            y,
            resolved.line,
            resolved.column,
        )
        return BackwardResult(line=resolved.line, column=resolved.column, offset=offset)

    def rendered_context(self, page: int, x: float, y: float) -> Context:
        """
        Tokenized page text around the point, marked at the clicked glyph.

        The window holds at most ``context_budget`` characters on each side of
        the click, counted after ligatures expand.
        """
        index = self.layout.glyph_at(page, x, y)
        if index is None:
            return Context(tokens=())
        glyphs = self.layout.glyphs(page)
        text, positions = glyph_text(glyphs, range(len(glyphs)))
        marker = bisect.bisect_left(positions, index)
        budget = self.config.context_budget
        start = max(marker - budget, 0)
        stop = min(marker + budget, len(text))
        return self.rendered_tokenizer.tokenize(
            text[start:stop], marker=marker - start, positions=positions[start:stop]
        )

    def source_context(self, location: SourceLocation) -> Context:
        position = self.source.offset_of(location.line, location.column)
        region = source_region(self.source, position, self.finder)
        return self.source_tokenizer.tokenize(
            self.source.slice(region), marker=position - region.begin, base=region.begin
        )

    def _correlate_precisely(
        self, page: int, x: float, y: float, location: SourceLocation
    ) -> int:
        query = self.rendered_context(page, x, y)
        target = self.source_context(location)
        if query.is_empty or target.is_empty:
            raise EmptyContext(
                f"{len(query)} rendered and {len(target)} source tokens"
            )

        self.observer.before_alignment(self.direction, query, target)
        alignment = align(query.tokens, target.tokens, score, mode="infix")
        self.observer.after_alignment(self.direction, alignment)

        resolution = resolve(query.marked_index, query.char_offset, alignment)
        self.observer.after_resolution(self.direction, resolution)
        if resolution is None:
            raise ResolutionGapExhausted(
                f"Rendered token {query.marked_token.text!r} has no source counterpart"
            )
        return resolution.position

    @staticmethod
    def _fallback(location: SourceLocation, reason: str) -> BackwardResult:
        return BackwardResult(line=location.line, column=location.column, reason=reason)
