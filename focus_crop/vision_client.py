"""Google Cloud Vision REST client for object localization and text detection."""

from __future__ import annotations

import base64
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from .config import CropSettings, DEFAULT_VISION_API_BASE, DEFAULT_VISION_API_KEY_ENV
from .crop_types import NORMALIZED, PIXEL, DetectedObject, DetectedText, Rect4
from .errors import CollaboratorFailure

logger = logging.getLogger(__name__)

OBJECT_LOCALIZATION = "OBJECT_LOCALIZATION"
TEXT_DETECTION = "TEXT_DETECTION"


def _vertices_to_points(vertices: List[Dict[str, Any]]) -> List[tuple]:
    # The REST API omits coordinates equal to zero.
    points = [(float(v.get("x", 0)), float(v.get("y", 0))) for v in vertices]
    if len(points) != 4:
        raise CollaboratorFailure(
            "vision_response", f"Expected 4 vertices, got {len(points)}"
        )
    return points


def parse_localized_objects(payload: Dict[str, Any]) -> List[DetectedObject]:
    objects: List[DetectedObject] = []
    for annotation in payload.get("localizedObjectAnnotations") or []:
        vertices = (annotation.get("boundingPoly") or {}).get("normalizedVertices") or []
        objects.append(
            DetectedObject(
                name=annotation.get("name", ""),
                confidence_score=float(annotation.get("score", 0.0)),
                normalized_vertices=Rect4.from_points(
                    _vertices_to_points(vertices), NORMALIZED
                ),
            )
        )
    return objects


def parse_text_annotations(payload: Dict[str, Any]) -> List[DetectedText]:
    texts: List[DetectedText] = []
    for annotation in payload.get("textAnnotations") or []:
        vertices = (annotation.get("boundingPoly") or {}).get("vertices") or []
        texts.append(
            DetectedText(
                pixel_vertices=Rect4.from_points(_vertices_to_points(vertices), PIXEL),
                description=annotation.get("description", ""),
            )
        )
    return texts


@dataclass
class VisionClient:
    """Call the ``images:annotate`` endpoint one feature at a time.

    Attributes:
        api_base: Base URL of the Vision API.
        api_key_env: Name of the environment variable holding the API key.
        timeout: Request timeout in seconds.
        client_factory: Factory for the underlying ``httpx.Client``.
    """

    api_base: str = DEFAULT_VISION_API_BASE
    api_key_env: str = DEFAULT_VISION_API_KEY_ENV
    timeout: float = 60.0
    client_factory: Callable[..., httpx.Client] = httpx.Client

    @classmethod
    def from_settings(cls, settings: CropSettings) -> "VisionClient":
        return cls(
            api_base=settings.vision_api_base,
            api_key_env=settings.vision_api_key_env,
            timeout=settings.vision_timeout_seconds,
        )

    def get_api_key(self) -> str:
        api_key = os.getenv(self.api_key_env)
        if not api_key:
            raise CollaboratorFailure(
                "vision_config", f"{self.api_key_env} environment variable is not set"
            )
        return api_key

    def annotate(self, image_bytes: bytes, feature: str) -> Dict[str, Any]:
        """Run a single feature against the image and return its response entry."""
        body = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                    "features": [{"type": feature}],
                }
            ]
        }
        url = f"{self.api_base}/v1/images:annotate"
        try:
            with self.client_factory(timeout=self.timeout) as client:
                resp = client.post(url, params={"key": self.get_api_key()}, json=body)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPError as exc:
            raise CollaboratorFailure(feature.lower(), str(exc)) from exc
        except ValueError as exc:
            raise CollaboratorFailure(feature.lower(), "Response is not JSON") from exc

        responses = payload.get("responses") or [{}]
        result = responses[0]
        error = result.get("error")
        if error:
            raise CollaboratorFailure(
                feature.lower(),
                f"{error.get('code', 'unknown')}: {error.get('message', '')}",
            )
        return result

    def object_localization(self, image_bytes: bytes) -> List[DetectedObject]:
        objects = parse_localized_objects(self.annotate(image_bytes, OBJECT_LOCALIZATION))
        logger.info("Object localization returned %d objects", len(objects))
        return objects

    def text_detection(self, image_bytes: bytes) -> List[DetectedText]:
        texts = parse_text_annotations(self.annotate(image_bytes, TEXT_DETECTION))
        logger.info("Text detection returned %d annotations", len(texts))
        return texts
