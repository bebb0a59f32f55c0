"""Runtime settings for the crop pipeline, read from app settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .region_resolver import EXTREMES, resolve_aggregation

DEFAULT_SOURCE_CONTAINER = "assets"
DEFAULT_VISION_API_BASE = "https://vision.googleapis.com"
DEFAULT_VISION_API_KEY_ENV = "GOOGLE_VISION_API_KEY"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def parse_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class CropSettings:
    """Configuration passed explicitly into the pipeline and its clients."""

    source_container: str = DEFAULT_SOURCE_CONTAINER
    output_container: str = DEFAULT_SOURCE_CONTAINER
    padding_px: float = 0.0
    aggregation: str = EXTREMES
    pre_extract: bool = False
    vision_api_base: str = DEFAULT_VISION_API_BASE
    vision_api_key_env: str = DEFAULT_VISION_API_KEY_ENV
    vision_timeout_seconds: float = 60.0
    storage_auth_mode: str = "connection_string"
    storage_account_url: Optional[str] = None

    def __post_init__(self) -> None:
        if self.padding_px < 0:
            raise ValueError(f"padding_px must be >= 0, got {self.padding_px}")
        resolve_aggregation(self.aggregation)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CropSettings":
        env = os.environ if environ is None else environ
        source_container = env.get("SOURCE_CONTAINER_NAME", DEFAULT_SOURCE_CONTAINER)
        return cls(
            source_container=source_container,
            output_container=env.get("OUTPUT_CONTAINER_NAME", source_container),
            padding_px=float(env.get("CROP_PADDING_PX", "0")),
            aggregation=resolve_aggregation(env.get("CROP_AGGREGATION")),
            pre_extract=parse_bool(env.get("CROP_PRE_EXTRACT"), default=False),
            vision_api_base=env.get("VISION_API_BASE", DEFAULT_VISION_API_BASE).rstrip("/"),
            vision_api_key_env=env.get("VISION_API_KEY_ENV", DEFAULT_VISION_API_KEY_ENV),
            vision_timeout_seconds=float(env.get("VISION_TIMEOUT_SECONDS", "60")),
            storage_auth_mode=(
                env.get("STORAGE_AUTH_MODE", "connection_string").strip().lower()
            ),
            storage_account_url=env.get("STORAGE_ACCOUNT_URL"),
        )
