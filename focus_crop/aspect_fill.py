"""Cover-scale resize and region-centered crop computation."""

from __future__ import annotations

import math

from .crop_types import (
    AspectFillPlan,
    AssetRegion,
    CropPlan,
    ImageDimensions,
    TargetDimensions,
    round_half_up,
)
from .errors import DegenerateRegion, InvalidDimensions

# Pixels trimmed from each side of the region before locating its center.
CENTER_INSET_PX = 1


def _check_dimension(name: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidDimensions(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise InvalidDimensions(f"{name} must be positive and finite, got {value!r}")


def cover_scale(source: ImageDimensions, target: TargetDimensions) -> float:
    """Scale factor that makes ``source`` cover ``target`` on both axes."""
    _check_dimension("source width", source.width)
    _check_dimension("source height", source.height)
    _check_dimension("target width", target.width)
    _check_dimension("target height", target.height)
    return max(target.width / source.width, target.height / source.height)


def resized_dimensions(source: ImageDimensions, scale: float) -> ImageDimensions:
    return ImageDimensions(
        width=round_half_up(source.width * scale),
        height=round_half_up(source.height * scale),
    )


def plan_aspect_fill(
    source: ImageDimensions,
    target: TargetDimensions,
    region: AssetRegion,
) -> AspectFillPlan:
    """Compute the resize and final crop that keep ``region`` centered.

    The crop origin is clamped at zero and the extent at the far edge of the
    resized raster, so the crop can come out smaller than ``target`` when the
    region sits near an edge. It never exceeds ``target``.

    Raises:
        InvalidDimensions: If a source or target dimension is not positive.
        DegenerateRegion: If the region lies entirely beyond the resized raster.
    """
    scale = cover_scale(source, target)
    resized = resized_dimensions(source, scale)

    inset = 2 * CENTER_INSET_PX
    center_x = round_half_up(
        region.left * scale + (region.width - inset) * scale / 2
    )
    center_y = round_half_up(
        region.top * scale + (region.height - inset) * scale / 2
    )

    origin_x = max(0, math.floor(center_x - target.width / 2))
    origin_y = max(0, math.floor(center_y - target.height / 2))

    extent_w = min(resized.width - origin_x, target.width)
    extent_h = min(resized.height - origin_y, target.height)
    if extent_w <= 0 or extent_h <= 0:
        raise DegenerateRegion(
            f"Crop window at ({origin_x}, {origin_y}) falls outside the "
            f"{resized.width}x{resized.height} resized image"
        )

    return AspectFillPlan(
        scale=scale,
        resized=resized,
        center_x=center_x,
        center_y=center_y,
        crop=CropPlan(left=origin_x, top=origin_y, width=extent_w, height=extent_h),
    )
