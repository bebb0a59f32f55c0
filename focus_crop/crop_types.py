"""Data structures for crop decisions.

Detection results arrive in normalized coordinates, text boxes and regions
live in source pixels, and the final crop is expressed against the resized
raster. Every point and rectangle carries its coordinate space so the three
never mix silently.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


NORMALIZED = "normalized"
PIXEL = "pixel"
SCALED = "scaled"

COORDINATE_SPACES = (NORMALIZED, PIXEL, SCALED)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Point:
    x: float
    y: float
    space: str = PIXEL

    def __post_init__(self) -> None:
        if self.space not in COORDINATE_SPACES:
            raise ValueError(f"Unknown coordinate space: {self.space!r}")


@dataclass(frozen=True)
class Rect4:
    """Four corners ordered top-left, top-right, bottom-right, bottom-left."""

    corners: Tuple[Point, Point, Point, Point]
    space: str = PIXEL

    def __post_init__(self) -> None:
        if len(self.corners) != 4:
            raise ValueError(f"Rect4 needs 4 corners, got {len(self.corners)}")
        for corner in self.corners:
            if corner.space != self.space:
                raise ValueError(
                    f"Corner in {corner.space!r} space inside a {self.space!r} rectangle"
                )

    @classmethod
    def from_points(
        cls, points: List[Tuple[float, float]], space: str = PIXEL
    ) -> "Rect4":
        corners = tuple(Point(float(x), float(y), space) for x, y in points)
        return cls(corners=corners, space=space)  # type: ignore[arg-type]

    @classmethod
    def from_box(
        cls, left: float, top: float, width: float, height: float, space: str = PIXEL
    ) -> "Rect4":
        right = left + width
        bottom = top + height
        return cls.from_points(
            [(left, top), (right, top), (right, bottom), (left, bottom)], space
        )

    @property
    def xs(self) -> Tuple[float, ...]:
        return tuple(corner.x for corner in self.corners)

    @property
    def ys(self) -> Tuple[float, ...]:
        return tuple(corner.y for corner in self.corners)

    def __getitem__(self, index: int) -> Point:
        return self.corners[index]


@dataclass(frozen=True)
class DetectedObject:
    """A localized object returned by the vision service."""

    name: str
    confidence_score: float
    normalized_vertices: Rect4

    def __post_init__(self) -> None:
        if self.normalized_vertices.space != NORMALIZED:
            raise ValueError("DetectedObject vertices must be normalized")


@dataclass(frozen=True)
class DetectedText:
    """A text region returned by the vision service, in source pixels."""

    pixel_vertices: Rect4
    description: str = ""

    def __post_init__(self) -> None:
        if self.pixel_vertices.space != PIXEL:
            raise ValueError("DetectedText vertices must be in pixel space")


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int


@dataclass(frozen=True)
class TargetDimensions:
    width: int
    height: int


@dataclass(frozen=True)
class NormalizedBox:
    """A box expressed as fractions of the image width and height."""

    left: float
    top: float
    width: float
    height: float

    def to_pixels(self, dimensions: ImageDimensions) -> "AssetRegion":
        return AssetRegion(
            left=round_half_up(self.left * dimensions.width),
            top=round_half_up(self.top * dimensions.height),
            width=round_half_up(self.width * dimensions.width),
            height=round_half_up(self.height * dimensions.height),
        )


@dataclass(frozen=True)
class AssetRegion:
    """Region of interest in source pixel space."""

    left: int
    top: int
    width: int
    height: int

    @classmethod
    def full_frame(cls, dimensions: ImageDimensions) -> "AssetRegion":
        return cls(left=0, top=0, width=dimensions.width, height=dimensions.height)

    def to_rect4(self) -> Rect4:
        return Rect4.from_box(self.left, self.top, self.width, self.height, PIXEL)

    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_dict(self) -> dict:
        return {
            "left": self.left,
            "top": self.top,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class CropPlan:
    """Final crop window, in the coordinate space of the resized raster."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


@dataclass(frozen=True)
class RegionResolution:
    """Region chosen by the resolver and how it was derived."""

    region: AssetRegion
    object_derived: bool
    source: str


@dataclass(frozen=True)
class AspectFillPlan:
    scale: float
    resized: ImageDimensions
    center_x: int
    center_y: int
    crop: CropPlan


@dataclass
class CropDecision:
    """Outcome of the decision engine for one image."""

    resolution: RegionResolution
    region: AssetRegion
    fill: AspectFillPlan
    text_vetoed: bool = False
    pre_crop: Optional[AssetRegion] = None
    text_classifications: List[str] = field(default_factory=list)
