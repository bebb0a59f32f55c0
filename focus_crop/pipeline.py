"""Crop pipeline: region resolution, text veto, aspect-fill crop, and I/O."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence
from urllib.parse import unquote, urlparse

from PIL import Image

from .aspect_fill import CENTER_INSET_PX, plan_aspect_fill
from .config import CropSettings
from .crop_types import (
    AssetRegion,
    CropDecision,
    DetectedObject,
    DetectedText,
    ImageDimensions,
    TargetDimensions,
    round_half_up,
)
from .errors import DegenerateRegion, FocusCropError, InvalidRequest
from .image_io import (
    EncodedImage,
    crop_image,
    encode_image_bytes,
    extract_region,
    image_dimensions,
    image_format,
    load_image,
    resize_image,
)
from .region_resolver import resolve_region
from .storage import BlobObjectStore
from .text_guard import apply_text_guard
from .vision_client import VisionClient

logger = logging.getLogger(__name__)

FAILURE_RESPONSE: Dict[str, Any] = {"isSuccess": False}

_ASSET_FIELDS = ("left", "top", "width", "height")


def _require_int(payload: Mapping[str, Any], name: str) -> int:
    value = payload.get(name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRequest(f"{name} must be an integer, got {value!r}", field=name)
    return value


def _require_str(payload: Mapping[str, Any], name: str) -> str:
    value = payload.get(name)
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequest(f"{name} must be a non-empty string", field=name)
    return value.strip()


def _parse_asset(value: Any) -> Optional[AssetRegion]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise InvalidRequest("asset must be an object", field="asset")
    coords = {}
    for name in _ASSET_FIELDS:
        raw = value.get(name)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not math.isfinite(raw):
            raise InvalidRequest(f"asset.{name} must be a number, got {raw!r}", field="asset")
        coords[name] = round_half_up(raw)
    return AssetRegion(**coords)


@dataclass(frozen=True)
class ResizeRequest:
    """One invocation: where the source lives, where to write, and the target size."""

    image_path: str
    s3_path: str
    new_width: int
    new_height: int
    asset: Optional[AssetRegion] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ResizeRequest":
        if not isinstance(payload, Mapping):
            raise InvalidRequest("Request body must be a JSON object")
        return cls(
            image_path=_require_str(payload, "image_path"),
            s3_path=_require_str(payload, "s3_path"),
            new_width=_require_int(payload, "new_width"),
            new_height=_require_int(payload, "new_height"),
            asset=_parse_asset(payload.get("asset")),
        )

    @property
    def target(self) -> TargetDimensions:
        return TargetDimensions(width=self.new_width, height=self.new_height)

    def source_key(self, container: str) -> str:
        """Blob name of the source image.

        The key is the URL path without its leading slash. When the URL is a
        blob URL whose first segment is ``container`` that segment is dropped.
        """
        path = unquote(urlparse(self.image_path).path).lstrip("/")
        prefix = f"{container}/"
        if container and path.startswith(prefix):
            path = path[len(prefix):]
        if not path:
            raise InvalidRequest("image_path has no object key", field="image_path")
        return path

    @property
    def destination_key(self) -> str:
        key = self.s3_path.lstrip("/")
        if not key:
            raise InvalidRequest("s3_path has no object key", field="s3_path")
        return key


def decide_crop(
    dimensions: ImageDimensions,
    target: TargetDimensions,
    *,
    objects: Optional[Sequence[DetectedObject]] = None,
    fetch_texts: Optional[Callable[[], Sequence[DetectedText]]] = None,
    asset: Optional[AssetRegion] = None,
    settings: Optional[CropSettings] = None,
) -> CropDecision:
    """Decide the crop for one image without touching any external service.

    ``fetch_texts`` is only called when the region was derived from detected
    objects, so text detection is skipped for caller assets and empty frames.
    """
    settings = settings or CropSettings()
    resolution = resolve_region(
        dimensions,
        objects,
        asset=asset,
        padding_px=settings.padding_px,
        aggregation=settings.aggregation,
    )
    logger.info("Resolved region %s from %s", resolution.region, resolution.source)

    region = resolution.region
    text_vetoed = False
    classifications = []
    if resolution.object_derived and fetch_texts is not None:
        guard = apply_text_guard(region, fetch_texts(), dimensions)
        region = guard.region
        text_vetoed = guard.vetoed
        classifications = guard.classifications

    pre_crop = None
    source = dimensions
    centered = region
    if settings.pre_extract:
        inset = 2 * CENTER_INSET_PX
        pre_crop = AssetRegion(
            left=region.left,
            top=region.top,
            width=region.width - inset,
            height=region.height - inset,
        )
        if pre_crop.is_degenerate():
            raise DegenerateRegion(f"Pre-crop of {region} has no area")
        if (
            pre_crop.left < 0
            or pre_crop.top < 0
            or pre_crop.left + pre_crop.width > dimensions.width
            or pre_crop.top + pre_crop.height > dimensions.height
        ):
            raise DegenerateRegion(
                f"Pre-crop {pre_crop} extends outside the "
                f"{dimensions.width}x{dimensions.height} image"
            )
        source = ImageDimensions(width=pre_crop.width, height=pre_crop.height)
        centered = AssetRegion.full_frame(source)
        logger.info("Pre-extracting region %s before resize", pre_crop)

    fill = plan_aspect_fill(source, target, centered)
    logger.info(
        "Scale %.4f -> resized %dx%d, crop %s",
        fill.scale,
        fill.resized.width,
        fill.resized.height,
        fill.crop,
    )
    return CropDecision(
        resolution=resolution,
        region=region,
        fill=fill,
        text_vetoed=text_vetoed,
        pre_crop=pre_crop,
        text_classifications=classifications,
    )


def render_decision(img: Image.Image, decision: CropDecision, fmt: str) -> EncodedImage:
    """Apply a decision to a decoded image and encode the result in ``fmt``."""
    working = extract_region(img, decision.pre_crop) if decision.pre_crop else img
    resized = resize_image(working, decision.fill.resized)
    final = crop_image(resized, decision.fill.crop)
    return encode_image_bytes(final, format=fmt)


def build_success_response(url: Optional[str], encoded: EncodedImage) -> Dict[str, Any]:
    return {
        "statusCode": 200,
        "isSuccess": True,
        "url": url,
        "width": encoded.width,
        "height": encoded.height,
        "file_size": f"{encoded.size_mb:.2f}",
        "file_extension": encoded.format,
    }


class CropPipeline:
    """Run one resize request end to end against storage and vision."""

    def __init__(
        self,
        settings: CropSettings,
        store: BlobObjectStore,
        vision: VisionClient,
    ) -> None:
        self.settings = settings
        self.store = store
        self.vision = vision

    def run(self, request: ResizeRequest) -> Dict[str, Any]:
        stage = "fetch"
        try:
            source_key = request.source_key(self.settings.source_container)
            logger.info("Fetching source %s/%s", self.settings.source_container, source_key)
            source = self.store.get(self.settings.source_container, source_key)

            stage = "decode"
            img = load_image(source.data)
            dimensions = image_dimensions(img)
            fmt = image_format(img)
            logger.info("Source is %dx%d %s", dimensions.width, dimensions.height, fmt)

            stage = "detect"
            objects = None
            if request.asset is None:
                objects = self.vision.object_localization(source.data)
            else:
                logger.info("Using caller asset %s", request.asset)

            stage = "decide"
            decision = decide_crop(
                dimensions,
                request.target,
                objects=objects,
                fetch_texts=lambda: self.vision.text_detection(source.data),
                asset=request.asset,
                settings=self.settings,
            )

            stage = "render"
            encoded = render_decision(img, decision, fmt)

            stage = "upload"
            url = self.store.put(
                self.settings.output_container,
                request.destination_key,
                encoded.data,
                source.content_type,
                public_read=True,
            )
        except FocusCropError as exc:
            logger.error(
                "Crop pipeline failed at %s for %s: %s", stage, request.image_path, exc
            )
            raise
        except Exception:
            logger.exception(
                "Crop pipeline failed at %s for %s: unexpected error",
                stage,
                request.image_path,
            )
            raise

        logger.info(
            "Wrote %s (%dx%d, %d bytes)",
            url,
            encoded.width,
            encoded.height,
            len(encoded.data),
        )
        return build_success_response(url, encoded)
