"""Derive the region of interest from a caller asset or detected objects."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Sequence

from .crop_types import (
    AssetRegion,
    DetectedObject,
    ImageDimensions,
    NormalizedBox,
    RegionResolution,
)
from .errors import DegenerateRegion
from .geometry import bounding_extent

logger = logging.getLogger(__name__)

EXTREMES = "extremes"
UNION = "union"


def padded_object_box(
    obj: DetectedObject, dimensions: ImageDimensions, padding_px: float = 0
) -> NormalizedBox:
    """Pad a single object's box by ``padding_px`` pixels on every side.

    Padding is all-or-nothing: if the padded box would leave ``[0, 1]`` on
    any edge the object box is used unpadded.
    """
    vertices = obj.normalized_vertices
    x_rate = padding_px / dimensions.width
    y_rate = padding_px / dimensions.height

    left = vertices[0].x - x_rate
    top = vertices[0].y - y_rate
    width = vertices[2].x - vertices[0].x + x_rate * 2
    height = vertices[2].y - vertices[0].y + y_rate * 2

    if (
        left < 0
        or top < 0
        or max(left, 0) + width > 1
        or max(top, 0) + height > 1
    ):
        if padding_px:
            logger.info("Padding of %spx leaves the frame; using unpadded box", padding_px)
        x_rate = 0.0
        y_rate = 0.0

    return NormalizedBox(
        left=max(vertices[0].x - x_rate, 0),
        top=max(vertices[0].y - y_rate, 0),
        width=min(vertices[2].x - vertices[0].x + x_rate * 2, 1),
        height=min(vertices[2].y - vertices[0].y + y_rate * 2, 1),
    )


def aggregate_extremes(objects: Sequence[DetectedObject]) -> NormalizedBox:
    """Combine objects from the extremes of their first and third corners.

    The minimum x/y is taken over every object's top-left corner and the
    maximum x/y over every bottom-right corner, independently per axis. This
    is not a geometric union when objects are not axis-aligned boxes.
    """
    left = 1.0
    top = 1.0
    right = 0.0
    bottom = 0.0
    for obj in objects:
        first = obj.normalized_vertices[0]
        third = obj.normalized_vertices[2]
        left = min(left, first.x)
        top = min(top, first.y)
        right = max(right, third.x)
        bottom = max(bottom, third.y)
    return NormalizedBox(left=left, top=top, width=right - left, height=bottom - top)


def aggregate_union(objects: Sequence[DetectedObject]) -> NormalizedBox:
    """Combine objects as the union of each object's bounding extent."""
    extents = [bounding_extent(obj.normalized_vertices) for obj in objects]
    left = min(extent[0] for extent in extents)
    top = min(extent[1] for extent in extents)
    right = max(extent[2] for extent in extents)
    bottom = max(extent[3] for extent in extents)
    return NormalizedBox(left=left, top=top, width=right - left, height=bottom - top)


AGGREGATION_STRATEGIES: Dict[str, Callable[[Sequence[DetectedObject]], NormalizedBox]] = {
    EXTREMES: aggregate_extremes,
    UNION: aggregate_union,
}


def resolve_aggregation(name: Optional[str]) -> str:
    """Validate an aggregation strategy name, defaulting to extremes."""
    if not name:
        return EXTREMES
    normalized = name.strip().lower()
    if normalized not in AGGREGATION_STRATEGIES:
        raise ValueError(
            f"Unknown aggregation strategy {name!r}. "
            f"Allowed: {sorted(AGGREGATION_STRATEGIES)}"
        )
    return normalized


def resolve_region(
    dimensions: ImageDimensions,
    objects: Optional[Sequence[DetectedObject]] = None,
    *,
    asset: Optional[AssetRegion] = None,
    padding_px: float = 0,
    aggregation: str = EXTREMES,
) -> RegionResolution:
    """Pick the region of interest for an image.

    A caller-supplied ``asset`` wins and is used verbatim. Otherwise zero
    objects yield the full frame, one object a padded box around it, and
    several objects an aggregate box built with ``aggregation``.

    Raises:
        DegenerateRegion: If the chosen region has no area.
    """
    if asset is not None:
        resolution = RegionResolution(region=asset, object_derived=False, source="asset")
    elif not objects:
        logger.info("No objects detected; using the full frame")
        resolution = RegionResolution(
            region=AssetRegion.full_frame(dimensions),
            object_derived=False,
            source="full_frame",
        )
    elif len(objects) == 1:
        obj = objects[0]
        logger.info(
            "Single object detected: %s (confidence %.3f)",
            obj.name,
            obj.confidence_score,
        )
        box = padded_object_box(obj, dimensions, padding_px)
        resolution = RegionResolution(
            region=box.to_pixels(dimensions),
            object_derived=True,
            source="single_object",
        )
    else:
        logger.info("%d objects detected; aggregating with %s", len(objects), aggregation)
        box = AGGREGATION_STRATEGIES[resolve_aggregation(aggregation)](objects)
        resolution = RegionResolution(
            region=box.to_pixels(dimensions),
            object_derived=True,
            source="multi_object",
        )

    if resolution.region.is_degenerate():
        raise DegenerateRegion(
            f"Region from {resolution.source} has no area: {resolution.region}"
        )
    return resolution
