"""Axis-aligned overlap and containment tests over four-corner rectangles.

Both tests work on the bounding extent of the corners, not on the exact
polygon, so rotated quads that merely share a bounding box still count as
overlapping.
"""

from __future__ import annotations

from typing import Tuple

from .crop_types import Rect4

Extent = Tuple[float, float, float, float]  # (min_x, min_y, max_x, max_y)


def _require_same_space(rect1: Rect4, rect2: Rect4) -> None:
    if rect1.space != rect2.space:
        raise ValueError(
            f"Cannot compare a {rect1.space!r} rectangle with a {rect2.space!r} one"
        )


def bounding_extent(rect: Rect4) -> Extent:
    """Return the min/max x and y spanned by the rectangle's corners."""
    xs = rect.xs
    ys = rect.ys
    return (min(xs), min(ys), max(xs), max(ys))


def overlaps(rect1: Rect4, rect2: Rect4) -> bool:
    """True unless the bounding extents are disjoint on the x or y axis.

    Touching edges count as overlapping.
    """
    _require_same_space(rect1, rect2)
    min_x1, min_y1, max_x1, max_y1 = bounding_extent(rect1)
    min_x2, min_y2, max_x2, max_y2 = bounding_extent(rect2)

    if max_x1 < min_x2 or max_x2 < min_x1:
        return False
    if max_y1 < min_y2 or max_y2 < min_y1:
        return False
    return True


def contains(outer: Rect4, inner: Rect4) -> bool:
    """True iff every corner of ``inner`` lies inside ``outer``'s extent (inclusive)."""
    _require_same_space(outer, inner)
    min_x, min_y, max_x, max_y = bounding_extent(outer)
    for corner in inner.corners:
        if corner.x < min_x or corner.x > max_x:
            return False
        if corner.y < min_y or corner.y > max_y:
            return False
    return True
