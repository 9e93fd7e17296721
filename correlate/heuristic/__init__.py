"""
Correlation heuristic package - word-level matching of rendered text and source.

This package holds the pure engine behind backward and forward search,
broken down into focused modules:

- core: Value objects (tokens, contexts, alignments, regions, geometry, results)
- tokenizer: Noise removal, normalization and position-tagged tokenization
- scorer: Pairwise token similarity
- aligner: Semi-global sequence alignment
- position_resolver: Marked position lookup with one-step neighbour fallback
- region: Source slice selection around a position
- rects: Merging of coarse locator rectangles
- glyphs: Page glyphs to tokenizer input
- tracing: Observer hooks around alignment and resolution
- backward / forward: Correlators orchestrating the pipeline
"""

from .aligner import ALIGNMENT_MODES, GAP_PENALTY, align
from .backward import BackwardCorrelator
from .core import (
    AlignedPair,
    Alignment,
    Alternatives,
    BackwardResult,
    Context,
    ForwardResult,
    Glyph,
    PageBox,
    Rect,
    Region,
    Resolution,
    SourceLocation,
    Token,
    Word,
)
from .forward import ForwardCorrelator
from .position_resolver import resolve
from .rects import merge_rects, union_rect
from .region import source_region
from .scorer import score, shared_spelling
from .tokenizer import Tokenizer, tokenize
from .tracing import CorrelationObserver, LoggingObserver

__all__ = [
    "ALIGNMENT_MODES",
    "GAP_PENALTY",
    "AlignedPair",
    "Alignment",
    "Alternatives",
    "BackwardCorrelator",
    "BackwardResult",
    "Context",
    "CorrelationObserver",
    "ForwardCorrelator",
    "ForwardResult",
    "Glyph",
    "LoggingObserver",
    "PageBox",
    "Rect",
    "Region",
    "Resolution",
    "SourceLocation",
    "Token",
    "Tokenizer",
    "Word",
    "align",
    "merge_rects",
    "resolve",
    "score",
    "shared_spelling",
    "source_region",
    "tokenize",
    "union_rect",
]
