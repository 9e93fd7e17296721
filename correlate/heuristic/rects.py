"""
Merging of page rectangles reported by the coarse locator.
"""

from typing import Iterable, List, Sequence

from .core import PageBox, Rect


def union_rect(rects: Iterable[Rect]) -> Rect:
    """Return the union bounding box of a non-empty collection of rects."""
    rects = list(rects)
    if not rects:
        raise ValueError("union_rect() needs at least one rectangle")
    result = rects[0]
    for rect in rects[1:]:
        result = result.union(rect)
    return result


def merge_rects(boxes: Sequence[PageBox], tolerance: float) -> List[PageBox]:
    """
    Merge consecutive boxes on the same page whose vertical gap is below
    ``tolerance``, in whichever direction the next box lies. Boxes that
    overlap vertically have a negative gap. Order is preserved.
    """
    merged: List[PageBox] = []
    for box in boxes:
        if merged:
            last = merged[-1]
            gap = max(box.rect.y0 - last.rect.y1, last.rect.y0 - box.rect.y1)
            if box.page == last.page and gap < tolerance:
                merged[-1] = PageBox(last.page, last.rect.union(box.rect))
                continue
        merged.append(box)
    return merged
