"""
Semi-global sequence alignment of two token sequences.

Dynamic programming over the edit graph with a choice matrix for traceback.
Depending on the mode, runs of gaps at the start and/or end of either sequence
are free, while gaps inside the aligned region cost ``GAP_PENALTY`` each.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from .core import AlignedPair, Alignment, Token
from .scorer import score as default_score

logger = logging.getLogger(__name__)

GAP_PENALTY = -1

ALIGNMENT_MODES = ("global", "prefix", "suffix", "infix")

# Choice matrix moves, listed in tie-breaking order.
_DIAGONAL, _UP, _LEFT = "D", "U", "L"

ScoreFn = Callable[[Token, Token], int]


def align(
    left: Sequence[Token],
    right: Sequence[Token],
    score: Optional[ScoreFn] = None,
    mode: str = "infix",
    gap: int = GAP_PENALTY,
) -> Alignment:
    """
    Align two token sequences.

    Args:
        left: Query tokens
        right: Target tokens
        score: Similarity of a left token against a right token
        mode: ``global`` (every gap costs), ``prefix`` (leading gaps free),
            ``suffix`` (trailing gaps free) or ``infix`` (both free)
        gap: Cost of a gap inside the aligned region

    Returns:
        Alignment covering every token of both sequences in order
    """
    if mode not in ALIGNMENT_MODES:
        raise ValueError(f"Unknown alignment mode: {mode!r}")
    score = score or default_score
    free_leading = mode in ("prefix", "infix")
    free_trailing = mode in ("suffix", "infix")

    n, m = len(left), len(right)
    dp = [[0] * (m + 1) for _ in range(n + 1)]
    ch = [[""] * (m + 1) for _ in range(n + 1)]

    for i in range(1, n + 1):
        dp[i][0] = 0 if free_leading else dp[i - 1][0] + gap
        ch[i][0] = _UP
    for j in range(1, m + 1):
        dp[0][j] = 0 if free_leading else dp[0][j - 1] + gap
        ch[0][j] = _LEFT

    for i in range(1, n + 1):
        for j in range(1, m + 1):
            # max() keeps the first of equal candidates, so diagonal moves win ties.
            candidates = (
                (dp[i - 1][j - 1] + score(left[i - 1], right[j - 1]), _DIAGONAL),
                (dp[i - 1][j] + gap, _UP),
                (dp[i][j - 1] + gap, _LEFT),
            )
            best, move = max(candidates, key=lambda c: c[0])
            dp[i][j] = best
            ch[i][j] = move

    end_i, end_j = _end_cell(dp, n, m) if free_trailing else (n, m)
    pairs = _traceback(left, right, ch, end_i, end_j)
    best_score = dp[end_i][end_j]

    logger.debug(
        "Aligned %s x %s tokens (%s): score %s, %s matches",
        n,
        m,
        mode,
        best_score,
        sum(1 for pair in pairs if pair.is_match),
    )
    return Alignment(pairs=tuple(pairs), score=best_score)


def _end_cell(dp: List[List[int]], n: int, m: int) -> Tuple[int, int]:
    """Best cell on the last row or column, first in row-major order."""
    best = None
    best_cell = (n, m)
    for i in range(n + 1):
        columns = range(m + 1) if i == n else (m,)
        for j in columns:
            if best is None or dp[i][j] > best:
                best = dp[i][j]
                best_cell = (i, j)
    return best_cell


def _traceback(
    left: Sequence[Token],
    right: Sequence[Token],
    ch: List[List[str]],
    end_i: int,
    end_j: int,
) -> List[AlignedPair]:
    trailing = [AlignedPair(token, None) for token in left[end_i:]]
    trailing += [AlignedPair(None, token) for token in right[end_j:]]

    pairs: List[AlignedPair] = []
    i, j = end_i, end_j
    while i > 0 or j > 0:
        move = ch[i][j]
        if move == _DIAGONAL:
            pairs.append(AlignedPair(left[i - 1], right[j - 1]))
            i -= 1
            j -= 1
        elif move == _UP:
            pairs.append(AlignedPair(left[i - 1], None))
            i -= 1
        else:
            pairs.append(AlignedPair(None, right[j - 1]))
            j -= 1
    pairs.reverse()
    return pairs + trailing
