"""Veto an object-derived region when detected text straddles its border."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from .crop_types import AssetRegion, DetectedText, ImageDimensions, Rect4
from .geometry import contains, overlaps

logger = logging.getLogger(__name__)

CONTAINED = "contained"
OVERLAPPING = "overlapping"
SEPARATE = "separate"


@dataclass
class TextGuardResult:
    region: AssetRegion
    vetoed: bool = False
    classifications: List[str] = field(default_factory=list)


def classify_text_box(roi: Rect4, text_box: Rect4) -> str:
    """Classify a text box as contained in, overlapping, or separate from the ROI."""
    if contains(roi, text_box):
        return CONTAINED
    if overlaps(roi, text_box):
        return OVERLAPPING
    return SEPARATE


def apply_text_guard(
    region: AssetRegion,
    texts: Sequence[DetectedText],
    dimensions: ImageDimensions,
) -> TextGuardResult:
    """Return the full frame if any individual text box overlaps the region.

    The first entry of ``texts`` is the aggregate of all page text and is
    skipped. Evaluation stops at the first overlapping box.
    """
    result = TextGuardResult(region=region)
    if len(texts) < 2:
        logger.info("No individual text regions detected")
        return result

    roi = region.to_rect4()
    for index, text in enumerate(texts[1:], 1):
        kind = classify_text_box(roi, text.pixel_vertices)
        result.classifications.append(kind)
        logger.debug("Text region %d (%r) is %s", index, text.description, kind)
        if kind == OVERLAPPING:
            logger.info(
                "Text region %d straddles the region %s; falling back to full frame",
                index,
                region,
            )
            result.region = AssetRegion.full_frame(dimensions)
            result.vetoed = True
            break
    return result
