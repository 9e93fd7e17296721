"""
Forward correlation: from a source position to a word box on a rendered page.
"""

import logging
from typing import List, Optional, Tuple

from ..sync_config import CorrelationConfig
from ..sync_errors import (
    AlignmentInvariantError,
    EmptyContext,
    NoOracleMatch,
    RecoverableCorrelationError,
    ResolutionGapExhausted,
)
from .aligner import align
from .core import Context, ForwardResult, Rect
from .glyphs import glyph_text
from .position_resolver import resolve
from .rects import merge_rects, union_rect
from .region import source_region
from .scorer import score
from .tokenizer import Tokenizer
from .tracing import CorrelationObserver

logger = logging.getLogger(__name__)


class ForwardCorrelator:
    """
    Resolves a source position to the rendered word it produced.

    The source region around the position is the query, the page text inside
    the oracle's (merged) rectangles is the target.
    """

    direction = "forward"

    def __init__(
        self,
        oracle,
        layout,
        source,
        config: Optional[CorrelationConfig] = None,
        finder=None,
        observer: Optional[CorrelationObserver] = None,
    ):
        self.oracle = oracle
        self.layout = layout
        self.source = source
        self.config = config or CorrelationConfig()
        self.finder = finder
        self.observer = observer or CorrelationObserver()
        self.rendered_tokenizer = Tokenizer(self.config.rendered_flush, self.config.translations)
        self.source_tokenizer = Tokenizer(self.config.source_flush)

    def correlate(self, line: int, column: int = 0) -> ForwardResult:
        """
        Find the rendered word for ``line``/``column`` of the source.

        Raises:
            NoOracleMatch: If the coarse locator has no page for the line
        """
        boxes = self.oracle.forward(line, column)
        if not boxes:
            raise NoOracleMatch(f"No page record for line {line}")
        page = boxes[0].page

        if not self.config.forward_enabled:
            return ForwardResult(page=page, reason="disabled")

        merged = [
            box.rect
            for box in merge_rects(boxes, self.config.rect_merge_tolerance)
            if box.page == page
        ]
        try:
            glyph_index, rect = self._correlate_precisely(page, merged, line, column)
        except RecoverableCorrelationError as e:
            logger.info("Forward search fell back to page %s: %s", page, e)
            return ForwardResult(page=page, reason=type(e).__name__)
        except AlignmentInvariantError as e:
            if self.config.strict:
                raise
            logger.error("Forward search hit an internal inconsistency: %s", e)
            return ForwardResult(page=page, reason=type(e).__name__)

        logger.info("Forward search resolved line %s to glyph %s on page %s", line, glyph_index, page)
        return ForwardResult(page=page, rect=rect, glyph_index=glyph_index)

    def source_context(self, line: int, column: int) -> Context:
        position = self.source.offset_of(line, column)
        region = source_region(self.source, position, self.finder)
        return self.source_tokenizer.tokenize(
            self.source.slice(region), marker=position - region.begin, base=region.begin
        )

    def rendered_context(self, page: int, rects: List[Rect]) -> Context:
        """Tokenized page text inside ``rects``, one rectangle after another."""
        glyphs = self.layout.glyphs(page)
        text_parts = []
        positions: List[int] = []
        for rect in rects:
            indices = self.layout.glyphs_in(page, rect)
            if not indices:
                continue
            text, rect_positions = glyph_text(glyphs, indices)
            if text_parts:
                # Keep words of neighbouring rectangles apart.
                text_parts.append(" ")
                positions.append(positions[-1])
            text_parts.append(text)
            positions.extend(rect_positions)
        return self.rendered_tokenizer.tokenize("".join(text_parts), positions=positions)

    def _correlate_precisely(
        self, page: int, rects: List[Rect], line: int, column: int
    ) -> Tuple[int, Rect]:
        query = self.source_context(line, column)
        target = self.rendered_context(page, rects)
        if query.is_empty or target.is_empty:
            raise EmptyContext(f"{len(query)} source and {len(target)} rendered tokens")

        self.observer.before_alignment(self.direction, query, target)
        alignment = align(query.tokens, target.tokens, score, mode="infix")
        self.observer.after_alignment(self.direction, alignment)

        resolution = resolve(query.marked_index, query.char_offset, alignment)
        self.observer.after_resolution(self.direction, resolution)
        if resolution is None:
            raise ResolutionGapExhausted(
                f"Source token {query.marked_token.text!r} has no rendered counterpart"
            )

        token = resolution.token
        glyphs = self.layout.glyphs(page)
        last = min(token.last_position, len(glyphs) - 1)
        glyph_index = min(token.position_at(min(resolution.offset, token.length - 1)), last)
        rect = union_rect(glyphs[i].rect for i in range(token.offset, last + 1))
        return glyph_index, rect
