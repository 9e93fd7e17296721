"""
Map a marked query position onto the target side of an alignment.
"""

import logging
from typing import Optional

from ..sync_errors import AlignmentInvariantError
from .core import Alignment, Resolution

logger = logging.getLogger(__name__)


def resolve(marked_index: int, char_offset: int, alignment: Alignment) -> Optional[Resolution]:
    """
    Find the target token corresponding to the marked query token.

    The query is the left side of the alignment. When the marked token is
    aligned to a gap, the next query token's partner is used (offset snaps to
    its start), then the previous one's (offset snaps to its end). The search
    never goes further than one step in either direction.

    Args:
        marked_index: Index of the marked token in the query context
        char_offset: Offset of the query point inside the marked token
        alignment: Alignment with the query on the left

    Returns:
        The resolved target token and offset, or None when nothing matches
        nearby or the query context is empty

    Raises:
        AlignmentInvariantError: If the alignment holds fewer query tokens
            than ``marked_index`` implies
    """
    if marked_index < 0:
        return None

    aligned = [pair for pair in alignment.pairs if pair.left is not None]
    if marked_index >= len(aligned):
        raise AlignmentInvariantError(
            f"Marked index {marked_index} out of range for {len(aligned)} aligned query tokens"
        )

    candidate = aligned[marked_index].right
    if candidate is None:
        following = aligned[marked_index + 1].right if marked_index + 1 < len(aligned) else None
        preceding = aligned[marked_index - 1].right if marked_index > 0 else None
        if following is not None:
            candidate, char_offset = following, 0
        elif preceding is not None:
            candidate, char_offset = preceding, preceding.length
        else:
            logger.debug("No match at or next to query token %s", marked_index)
            return None

    char_offset = min(max(char_offset, 0), candidate.length)
    return Resolution(token=candidate, offset=char_offset)
