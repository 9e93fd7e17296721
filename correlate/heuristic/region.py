"""
Choice of the source slice tokenized around a source position.
"""

import logging

from .core import Region

logger = logging.getLogger(__name__)


def source_region(source, position: int, finder=None) -> Region:
    """
    Region to tokenize around ``position``.

    Defaults to the line holding ``position``. When a construct finder is
    available and the line opens or closes a paired construct, the region
    covers the whole construct instead.
    """
    line = source.line_region(position)
    if finder is None:
        return line
    construct = finder.find_enclosing_construct(position)
    if construct is None:
        return line
    logger.debug(
        "Widened source region %s-%s to construct %s-%s",
        line.begin,
        line.end,
        construct.begin,
        construct.end,
    )
    return construct
