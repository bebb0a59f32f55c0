"""Product-focused resize and crop.

This package exposes the crop decision engine and the storage/vision
adapters used by the HTTP function and the local runner.
"""

from .aspect_fill import cover_scale, plan_aspect_fill  # noqa: F401
from .config import CropSettings  # noqa: F401
from .errors import (  # noqa: F401
    CollaboratorFailure,
    DegenerateRegion,
    FocusCropError,
    InvalidDimensions,
    InvalidRequest,
)
from .geometry import contains, overlaps  # noqa: F401
from .pipeline import CropPipeline, ResizeRequest, decide_crop  # noqa: F401
from .region_resolver import resolve_region  # noqa: F401
from .text_guard import apply_text_guard  # noqa: F401
