"""
Context tokenization for the correlation heuristic.

Turns a raw context string into an ordered sequence of position-tagged tokens.
Normalization runs in a fixed order:

1. flush noise matched by the flush pattern (each match becomes one space)
2. collapse whitespace runs into a single space
3. isolate every character that is neither alphanumeric nor a space
4. locate the marker (token index plus offset inside the token)
5. split into tokens, each carrying the position of its first character
6. translate single-character tokens through the translation table

Every normalized character keeps the position of the raw character it came
from, so token back-references never require re-scanning the raw text.
"""

import logging
from typing import Dict, List, Mapping, Optional, Pattern, Sequence, Tuple

from .core import Alternatives, Context, Token, Word

logger = logging.getLogger(__name__)

# A normalized character and the position of the raw character it stands for.
_Char = Tuple[str, int]


class Tokenizer:
    """
    Tokenizes context strings using a flush pattern and an optional
    glyph translation table.
    """

    def __init__(
        self,
        flush_pattern: Pattern,
        translations: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        self.flush_pattern = flush_pattern
        self.translations: Dict[str, Tuple[str, ...]] = {
            glyph: tuple(spellings) for glyph, spellings in (translations or {}).items()
        }

    def tokenize(
        self,
        text: str,
        marker: int = 0,
        positions: Optional[Sequence[int]] = None,
        base: int = 0,
    ) -> Context:
        """
        Tokenize text and locate the marker inside the token sequence.

        Args:
            text: Raw context text
            marker: Index into ``text`` of the query point
            positions: Position of each character of ``text``; defaults to
                ``base + index``
            base: Position of the first character when ``positions`` is omitted

        Returns:
            Context whose tokens carry positions from ``positions``
        """
        if positions is None:
            positions = range(base, base + len(text))
        elif len(positions) != len(text):
            raise ValueError(
                f"Expected {len(text)} positions, got {len(positions)}"
            )

        if not text:
            return Context(tokens=())

        chars = self._flush(text, positions)
        chars = self._collapse_whitespace(chars)
        chars = self._isolate_symbols(chars)
        words = self._split(chars)
        if not words:
            logger.debug("No tokens left in %r after normalization", text)
            return Context(tokens=())

        marked_index, char_offset = self._locate_marker(words, text, marker, positions)
        tokens = tuple(self._make_token(word) for word in words)
        return Context(tokens=tokens, marked_index=marked_index, char_offset=char_offset)

    def _flush(self, text: str, positions: Sequence[int]) -> List[_Char]:
        chars: List[_Char] = []
        last = 0
        for match in self.flush_pattern.finditer(text):
            start, end = match.span()
            if start == end:
                continue
            chars.extend(zip(text[last:start], positions[last:start]))
            chars.append((" ", positions[start]))
            last = end
        chars.extend(zip(text[last:], positions[last:]))
        return chars

    @staticmethod
    def _collapse_whitespace(chars: List[_Char]) -> List[_Char]:
        result: List[_Char] = []
        for char, position in chars:
            if char.isspace():
                if result and result[-1][0] == " ":
                    continue
                char = " "
            result.append((char, position))
        return result

    @staticmethod
    def _isolate_symbols(chars: List[_Char]) -> List[_Char]:
        result: List[_Char] = []
        pending_space = False
        for char, position in chars:
            if char == " ":
                pending_space = False
                result.append((char, position))
                continue
            is_symbol = not char.isalnum()
            if (is_symbol or pending_space) and result and result[-1][0] != " ":
                result.append((" ", position))
            result.append((char, position))
            pending_space = is_symbol
        return result

    @staticmethod
    def _split(chars: List[_Char]) -> List[List[_Char]]:
        words: List[List[_Char]] = []
        current: List[_Char] = []
        for char, position in chars:
            if char == " ":
                if current:
                    words.append(current)
                    current = []
            else:
                current.append((char, position))
        if current:
            words.append(current)
        return words

    @staticmethod
    def _locate_marker(
        words: List[List[_Char]],
        text: str,
        marker: int,
        positions: Sequence[int],
    ) -> Tuple[int, int]:
        # Translate the marker into position space; past the end it sits just
        # behind the last character.
        marker = max(marker, 0)
        if marker < len(text):
            marker_position = positions[marker]
        else:
            marker_position = positions[-1] + 1

        marked_index = 0
        for index, word in enumerate(words):
            if word[0][1] <= marker_position:
                marked_index = index
            else:
                break

        word = words[marked_index]
        char_offset = sum(1 for _, position in word if position < marker_position)
        return marked_index, char_offset

    def _make_token(self, word: List[_Char]) -> Token:
        text = "".join(char for char, _ in word)
        positions = tuple(position for _, position in word)
        offset = positions[0]
        if len(text) == 1 and text in self.translations:
            return Alternatives(
                spellings=self.translations[text], offset=offset, glyph=text, positions=positions
            )
        return Word(text=text, offset=offset, positions=positions)


def tokenize(
    text: str,
    marker: int,
    flush_pattern: Pattern,
    translations: Optional[Mapping[str, Sequence[str]]] = None,
    positions: Optional[Sequence[int]] = None,
    base: int = 0,
) -> Context:
    """Tokenize ``text`` with a one-off ``Tokenizer``."""
    return Tokenizer(flush_pattern, translations).tokenize(
        text, marker, positions=positions, base=base
    )
