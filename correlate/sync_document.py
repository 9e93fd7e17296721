"""
Collaborators the correlators query for raw text and coarse positions.

The ``Protocol`` classes describe what the heuristic needs from the outside
world. ``SourceDocument``, ``PageLayout`` and ``RecordOracle`` are in-memory
implementations used by the command line tool and the tests; an editor
integration would provide its own.
"""

import bisect
import json
import logging
import math
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from correlate.heuristic.core import Glyph, PageBox, Rect, Region, SourceLocation

logger = logging.getLogger(__name__)


# === Collaborator contracts ===


class CoarseLocator(Protocol):
    def backward(self, page: int, x: float, y: float) -> Optional[SourceLocation]:
        ...

    def forward(self, line: int, column: int = 0) -> List[PageBox]:
        ...


class TextLayout(Protocol):
    def glyphs(self, page: int) -> Sequence[Glyph]:
        ...

    def glyph_at(self, page: int, x: float, y: float) -> Optional[int]:
        ...

    def glyphs_in(self, page: int, rect: Rect) -> List[int]:
        ...


class ConstructFinder(Protocol):
    def find_enclosing_construct(self, position: int) -> Optional[Region]:
        ...


# === In-memory implementations ===


class SourceDocument:
    """Source text with line/column <-> offset conversion."""

    def __init__(self, text: str):
        self.text = text
        self._line_starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self._line_starts.append(index + 1)

    def __len__(self) -> int:
        return len(self.text)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def slice(self, region: Region) -> str:
        return self.text[region.begin : region.end]

    def line_region(self, position: int) -> Region:
        """Region of the line holding ``position``, without its newline."""
        position = min(max(position, 0), len(self.text))
        index = bisect.bisect_right(self._line_starts, position) - 1
        begin = self._line_starts[index]
        end = self.text.find("\n", begin)
        return Region(begin, len(self.text) if end < 0 else end)

    def offset_of(self, line: int, column: int = 0) -> int:
        """Offset of a 1-based line and 0-based column, clamped to the line."""
        line = min(max(line, 1), self.line_count)
        region = self.line_region(self._line_starts[line - 1])
        return min(region.begin + max(column, 0), region.end)

    def line_column(self, offset: int) -> SourceLocation:
        offset = min(max(offset, 0), len(self.text))
        index = bisect.bisect_right(self._line_starts, offset) - 1
        return SourceLocation(line=index + 1, column=offset - self._line_starts[index])


class PageLayout:
    """Glyphs of each rendered page in reading order."""

    def __init__(self, pages: Dict[int, Sequence[Glyph]]):
        self._pages = {page: list(glyphs) for page, glyphs in pages.items()}

    @property
    def pages(self) -> List[int]:
        return sorted(self._pages)

    def glyphs(self, page: int) -> Sequence[Glyph]:
        return self._pages.get(page, [])

    def glyph_at(self, page: int, x: float, y: float) -> Optional[int]:
        """Index of the glyph containing the point, else of the nearest one."""
        glyphs = self.glyphs(page)
        if not glyphs:
            return None
        for index, glyph in enumerate(glyphs):
            if not glyph.char.isspace() and glyph.rect.contains(x, y):
                return index

        def distance(index: int) -> float:
            cx, cy = glyphs[index].rect.center
            return math.hypot(cx - x, cy - y)

        return min(range(len(glyphs)), key=distance)

    def glyphs_in(self, page: int, rect: Rect) -> List[int]:
        """Indices of glyphs whose centre lies inside ``rect``."""
        return [
            index
            for index, glyph in enumerate(self.glyphs(page))
            if rect.contains(*glyph.rect.center)
        ]


class OracleRecord:
    """One entry of the coarse position table."""

    def __init__(self, page: int, rect: Rect, line: int, column: int = 0):
        self.page = page
        self.rect = rect
        self.line = line
        self.column = column

    def __repr__(self):
        return f"OracleRecord(page={self.page}, rect={self.rect}, line={self.line}, column={self.column})"


class RecordOracle:
    """Coarse locator answering from a flat list of records."""

    def __init__(self, records: Iterable[OracleRecord]):
        self.records = list(records)

    def backward(self, page: int, x: float, y: float) -> Optional[SourceLocation]:
        """Source position of the record containing the point, else the nearest one."""
        candidates = [r for r in self.records if r.page == page]
        if not candidates:
            return None
        for record in candidates:
            if record.rect.contains(x, y):
                return SourceLocation(record.line, record.column)

        def distance(record: OracleRecord) -> float:
            cx, cy = record.rect.center
            return math.hypot(cx - x, cy - y)

        nearest = min(candidates, key=distance)
        return SourceLocation(nearest.line, nearest.column)

    def forward(self, line: int, column: int = 0) -> List[PageBox]:
        """
        Boxes of the closest recorded line at or before ``line``, restricted
        to the first page that line appears on.
        """
        lines = sorted({r.line for r in self.records if r.line <= line})
        if not lines:
            return []
        target_line = lines[-1]
        records = [r for r in self.records if r.line == target_line]
        page = min(r.page for r in records)
        return [PageBox(r.page, r.rect) for r in records if r.page == page]


# === JSON loaders ===


def _rect(values: Sequence[float]) -> Rect:
    if len(values) != 4:
        raise ValueError(f"Expected 4 rectangle coordinates, got {len(values)}")
    return Rect(*(float(v) for v in values))


def load_layout(file_path: str) -> PageLayout:
    """
    Load a page layout dump.

    Format: ``{"pages": {"1": [{"char": "T", "rect": [x0, y0, x1, y1]}, ...]}}``
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    pages = {}
    for page, glyphs in data.get("pages", {}).items():
        pages[int(page)] = [Glyph(g["char"], _rect(g["rect"])) for g in glyphs]
    logger.debug("Loaded layout of %s pages from %s", len(pages), file_path)
    return PageLayout(pages)


def load_records(file_path: str) -> RecordOracle:
    """
    Load coarse locator records.

    Format: ``[{"page": 1, "rect": [x0, y0, x1, y1], "line": 3, "column": 0}, ...]``
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    records = [
        OracleRecord(
            page=int(item["page"]),
            rect=_rect(item["rect"]),
            line=int(item["line"]),
            column=int(item.get("column", 0)),
        )
        for item in data
    ]
    logger.debug("Loaded %s oracle records from %s", len(records), file_path)
    return RecordOracle(records)
