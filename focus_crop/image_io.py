"""Pillow helpers to decode, resize, crop and re-encode images."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import cast

from PIL import Image

from .crop_types import AssetRegion, CropPlan, ImageDimensions
from .errors import CollaboratorFailure

DEFAULT_FORMAT = "png"
# Multi-picture JPEGs from cameras decode as MPO but are written back as JPEG.
_FORMAT_ALIASES = {"mpo": "jpeg", "jpg": "jpeg"}
_JPEG_MODES = {"RGB", "L", "CMYK"}


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    format: str
    width: int
    height: int

    @property
    def size_mb(self) -> float:
        return len(self.data) / (1024 * 1024)


def load_image(image_bytes: bytes) -> Image.Image:
    """Decode image bytes, keeping the source format and mode."""
    try:
        img = cast(Image.Image, Image.open(BytesIO(image_bytes)))
        img.load()
    except Exception as exc:
        raise CollaboratorFailure("image_decode", "Invalid image bytes") from exc
    return img


def image_dimensions(img: Image.Image) -> ImageDimensions:
    width, height = img.size
    return ImageDimensions(width=width, height=height)


def image_format(img: Image.Image) -> str:
    """Lowercase codec name of a decoded image, e.g. ``jpeg`` or ``png``."""
    fmt = (img.format or DEFAULT_FORMAT).lower()
    return _FORMAT_ALIASES.get(fmt, fmt)


def extract_region(img: Image.Image, region: AssetRegion) -> Image.Image:
    try:
        return img.crop(
            (region.left, region.top, region.left + region.width, region.top + region.height)
        )
    except Exception as exc:
        raise CollaboratorFailure("image_extract", str(exc)) from exc


def resize_image(img: Image.Image, dimensions: ImageDimensions) -> Image.Image:
    try:
        return img.resize(
            (dimensions.width, dimensions.height), Image.Resampling.LANCZOS
        )
    except Exception as exc:
        raise CollaboratorFailure("image_resize", str(exc)) from exc


def crop_image(img: Image.Image, plan: CropPlan) -> Image.Image:
    try:
        return img.crop((plan.left, plan.top, plan.right, plan.bottom))
    except Exception as exc:
        raise CollaboratorFailure("image_crop", str(exc)) from exc


def encode_image_bytes(
    img: Image.Image, *, format: str = DEFAULT_FORMAT, quality: int = 90
) -> EncodedImage:
    """Encode ``img`` in ``format`` and report the encoded size."""
    fmt = _FORMAT_ALIASES.get(format.lower(), format.lower())
    save_kwargs = {"format": fmt.upper()}
    if fmt == "jpeg":
        save_kwargs["quality"] = quality
        save_kwargs["optimize"] = True
        if img.mode not in _JPEG_MODES:
            img = img.convert("RGB")
    buf = BytesIO()
    try:
        img.save(buf, **save_kwargs)
    except Exception as exc:
        raise CollaboratorFailure("image_encode", str(exc)) from exc
    width, height = img.size
    return EncodedImage(data=buf.getvalue(), format=fmt, width=width, height=height)
