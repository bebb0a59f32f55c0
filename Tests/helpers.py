"""Builders for detections and in-memory images used across the tests."""

from io import BytesIO
from typing import List, Tuple

from PIL import Image

from focus_crop.crop_types import NORMALIZED, PIXEL, DetectedObject, DetectedText, Rect4


def make_object(
    left: float,
    top: float,
    right: float,
    bottom: float,
    name: str = "Product",
    score: float = 0.9,
) -> DetectedObject:
    """Axis-aligned detected object from normalized edges."""
    return make_quad_object(
        [(left, top), (right, top), (right, bottom), (left, bottom)], name, score
    )


def make_quad_object(
    points: List[Tuple[float, float]], name: str = "Product", score: float = 0.9
) -> DetectedObject:
    return DetectedObject(
        name=name,
        confidence_score=score,
        normalized_vertices=Rect4.from_points(points, NORMALIZED),
    )


def make_text(
    left: float, top: float, right: float, bottom: float, description: str = "text"
) -> DetectedText:
    """Axis-aligned text box from pixel edges."""
    return DetectedText(
        pixel_vertices=Rect4.from_points(
            [(left, top), (right, top), (right, bottom), (left, bottom)], PIXEL
        ),
        description=description,
    )


def image_bytes(
    width: int, height: int, color: str = "white", format: str = "PNG"
) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color=color).save(buf, format=format)
    return buf.getvalue()
