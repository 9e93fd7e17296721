"""
Conversion of page glyphs into text the tokenizer can consume.
"""

from typing import Iterable, List, Sequence, Tuple

from .core import Glyph


def glyph_text(glyphs: Sequence[Glyph], indices: Iterable[int]) -> Tuple[str, List[int]]:
    """
    Concatenate the glyphs at ``indices``.

    Returns the text and, for every character of it, the index of the glyph it
    came from. A glyph may render several characters (ligatures).
    """
    chars: List[str] = []
    positions: List[int] = []
    for index in indices:
        for char in glyphs[index].char:
            chars.append(char)
            positions.append(index)
    return "".join(chars), positions
