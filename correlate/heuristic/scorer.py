"""
Pairwise similarity between a query token and a target token.
"""

from typing import Optional

from .core import Alternatives, Token, Word


def shared_spelling(a: Token, b: Token) -> Optional[str]:
    """Return the longest spelling both tokens accept, if any."""
    if isinstance(a, Word) and isinstance(b, Word):
        return a.text if a.text == b.text else None
    if isinstance(a, Alternatives) and isinstance(b, Word):
        return b.text if b.text in a.spellings else None
    if isinstance(a, Word) and isinstance(b, Alternatives):
        return a.text if a.text in b.spellings else None
    common = set(a.spellings) & set(b.spellings)
    return max(common, key=len) if common else None


def score(a: Token, b: Token) -> int:
    """
    Score matching query token ``a`` against target token ``b``.

    A confirmed match is rewarded with the squared length of the matched
    spelling; a mismatch costs the length of the query token.
    """
    spelling = shared_spelling(a, b)
    if spelling is not None:
        return len(spelling) ** 2
    return -a.length
