"""
Markup-aware lookup of paired constructs in LaTeX source.

A lark grammar lexes the source into begin/end markers; ``LatexConstructFinder``
uses them to widen a single-line source region to a whole environment when the
line opens or closes one.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError

from correlate.heuristic.core import Region
from correlate.sync_errors import RegionHeuristicMiss

logger = logging.getLogger(__name__)

GRAMMAR_PATH = Path(__file__).parent / "markup.lark"
with open(GRAMMAR_PATH, "r", encoding="utf-8") as f:
    MARKUP_GRAMMAR = f.read()

markup_parser = Lark(MARKUP_GRAMMAR, start="document", parser="lalr", lexer="basic")

RE_ENVIRONMENT_NAME = re.compile(r"\{([^}]*)\}")

DISPLAY_MATH = "\\["


@dataclass(frozen=True)
class Marker:
    """A begin or end marker of a paired construct."""

    kind: str  # "begin" or "end"
    name: str
    start: int
    end: int


def _environment_name(token) -> str:
    match = RE_ENVIRONMENT_NAME.search(str(token))
    return match.group(1).strip() if match else ""


@v_args(inline=True)
class MarkerTransformer(Transformer):
    """Turns the markup parse tree into a flat list of ``Marker`` objects."""

    def document(self, *items):
        return [item for item in items if isinstance(item, Marker)]

    def begin(self, token):
        return Marker("begin", _environment_name(token), token.start_pos, token.end_pos)

    def end(self, token):
        return Marker("end", _environment_name(token), token.start_pos, token.end_pos)

    def display_open(self, token):
        return Marker("begin", DISPLAY_MATH, token.start_pos, token.end_pos)

    def display_close(self, token):
        return Marker("end", DISPLAY_MATH, token.start_pos, token.end_pos)


def scan_markers(text: str) -> List[Marker]:
    """Return every begin/end marker in ``text`` outside of comments."""
    tree = markup_parser.parse(text)
    return MarkerTransformer().transform(tree)


class LatexConstructFinder:
    """
    Finds the environment a source line opens or closes.

    Only environments listed in ``environments`` (and ``\\[ ... \\]`` when
    ``display_math`` is set) are considered.
    """

    def __init__(
        self,
        text: str,
        environments: Iterable[str],
        display_math: bool = True,
    ):
        self.text = text
        self.environments = set(environments)
        if display_math:
            self.environments.add(DISPLAY_MATH)
        self._markers: Optional[List[Marker]] = None

    @property
    def markers(self) -> List[Marker]:
        if self._markers is None:
            self._markers = scan_markers(self.text)
            logger.debug("Found %s construct markers", len(self._markers))
        return self._markers

    def _line_bounds(self, position: int):
        begin = self.text.rfind("\n", 0, position) + 1
        end = self.text.find("\n", position)
        return begin, len(self.text) if end < 0 else end

    def find_enclosing_construct(self, position: int) -> Optional[Region]:
        """
        Region spanning the construct opened or closed at the start of the
        line holding ``position``, or None.
        """
        position = min(max(position, 0), len(self.text))
        try:
            return self._find(position)
        except RegionHeuristicMiss as e:
            logger.debug("Region heuristic miss at %s: %s", position, e)
            return None
        except LarkError as e:
            logger.debug("Could not scan markup for constructs: %s", e)
            return None

    def _find(self, position: int) -> Optional[Region]:
        line_begin, line_end = self._line_bounds(position)
        markers = self.markers
        index = next(
            (i for i, m in enumerate(markers) if line_begin <= m.start < line_end),
            None,
        )
        if index is None:
            return None
        marker = markers[index]
        if self.text[line_begin : marker.start].strip():
            return None
        if marker.name not in self.environments:
            return None

        partner = self._partner(markers, index)
        if marker.kind == "begin":
            return Region(line_begin, self._line_bounds(partner.end)[1])
        return Region(self._line_bounds(partner.start)[0], line_end)

    @staticmethod
    def _partner(markers: List[Marker], index: int) -> Marker:
        marker = markers[index]
        step = 1 if marker.kind == "begin" else -1
        depth = 0
        i = index + step
        while 0 <= i < len(markers):
            other = markers[i]
            if other.name == marker.name:
                if other.kind == marker.kind:
                    depth += 1
                elif depth == 0:
                    return other
                else:
                    depth -= 1
            i += step
        raise RegionHeuristicMiss(
            f"No partner for {marker.kind} of {marker.name!r} at {marker.start}"
        )
