"""
Core data structures for the correlation heuristic.

Contains the value objects passed between the tokenizer, the aligner, the
position resolver and the correlators. All of them are immutable and live only
for the duration of a single correlation call.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

# === Tokens ===


class Token:
    """
    Base class for tokens produced by the tokenizer.

    ``positions`` holds the position of every character of the token when the
    tokenizer knows them. Rendered text may map several characters onto one
    glyph, so positions are not always consecutive.
    """

    positions: Tuple[int, ...] = ()

    def position_at(self, index: int) -> int:
        """Position of character ``index`` of the token; past the end continues on."""
        if self.positions:
            if index < len(self.positions):
                return self.positions[max(index, 0)]
            return self.positions[-1] + index - len(self.positions) + 1
        return self.offset + index

    @property
    def last_position(self) -> int:
        return self.position_at(max(self.length - 1, 0))


@dataclass(frozen=True)
class Word(Token):
    """A token carrying one canonical string."""

    text: str
    offset: int
    positions: Tuple[int, ...] = field(default=(), compare=False, repr=False)

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def spellings(self) -> Tuple[str, ...]:
        return (self.text,)


@dataclass(frozen=True)
class Alternatives(Token):
    """
    A translated glyph that may be spelled several ways on the other side.

    The offset and length refer to the glyph itself, not to any spelling.
    """

    spellings: Tuple[str, ...]
    offset: int
    glyph: str
    positions: Tuple[int, ...] = field(default=(), compare=False, repr=False)

    @property
    def text(self) -> str:
        return self.glyph

    @property
    def length(self) -> int:
        return len(self.glyph)


# === Contexts and alignments ===


@dataclass(frozen=True)
class Context:
    """An ordered token sequence plus the token holding the query point."""

    tokens: Tuple[Token, ...]
    marked_index: int = -1
    char_offset: int = 0

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def is_empty(self) -> bool:
        return not self.tokens

    @property
    def marked_token(self) -> Optional[Token]:
        if self.marked_index < 0:
            return None
        return self.tokens[self.marked_index]

    def render(self) -> str:
        """Join the token texts back into normalized text."""
        return " ".join(token.text for token in self.tokens)


@dataclass(frozen=True)
class AlignedPair:
    """One column of an alignment; ``None`` on either side is a gap."""

    left: Optional[Token]
    right: Optional[Token]

    @property
    def is_match(self) -> bool:
        return self.left is not None and self.right is not None


@dataclass(frozen=True)
class Alignment:
    pairs: Tuple[AlignedPair, ...]
    score: int

    def __len__(self) -> int:
        return len(self.pairs)

    def __getitem__(self, index: int) -> AlignedPair:
        return self.pairs[index]

    @property
    def matches(self) -> Tuple[AlignedPair, ...]:
        return tuple(pair for pair in self.pairs if pair.is_match)


@dataclass(frozen=True)
class Resolution:
    """A token on the target side plus the offset of the query point inside it."""

    token: Token
    offset: int

    @property
    def position(self) -> int:
        return self.token.position_at(self.offset)


@dataclass(frozen=True)
class Region:
    """Half-open slice ``[begin, end)`` of the source document."""

    begin: int
    end: int

    def __contains__(self, position: int) -> bool:
        return self.begin <= position < self.end


# === Page geometry ===


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in page units, y growing downwards."""

    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x0 + self.x1) / 2.0, (self.y0 + self.y1) / 2.0)

    def contains(self, x: float, y: float) -> bool:
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    def union(self, other: "Rect") -> "Rect":
        return Rect(
            min(self.x0, other.x0),
            min(self.y0, other.y0),
            max(self.x1, other.x1),
            max(self.y1, other.y1),
        )


@dataclass(frozen=True)
class Glyph:
    """A single rendered character and its bounding box."""

    char: str
    rect: Rect


@dataclass(frozen=True)
class PageBox:
    page: int
    rect: Rect


@dataclass(frozen=True)
class SourceLocation:
    """1-based line and 0-based column in the source document."""

    line: int
    column: int = 0


# === Correlation results ===


@dataclass(frozen=True)
class BackwardResult:
    """
    Destination of a backward search.

    ``offset`` is set only when the heuristic resolved an exact position;
    otherwise ``line``/``column`` are the coarse oracle position and
    ``reason`` names why the heuristic gave up.
    """

    line: int
    column: int
    offset: Optional[int] = None
    reason: Optional[str] = None

    @property
    def precise(self) -> bool:
        return self.offset is not None


@dataclass(frozen=True)
class ForwardResult:
    """Destination of a forward search: a page and, when resolved, a word box."""

    page: int
    rect: Optional[Rect] = None
    glyph_index: Optional[int] = None
    reason: Optional[str] = None

    @property
    def precise(self) -> bool:
        return self.rect is not None
