import json
import logging
import os
from typing import Any, Dict, Optional

import azure.functions as func

from focus_crop.config import CropSettings
from focus_crop.errors import FocusCropError, InvalidRequest
from focus_crop.pipeline import FAILURE_RESPONSE, CropPipeline, ResizeRequest
from focus_crop.storage import BlobObjectStore, build_service_client
from focus_crop.vision_client import VisionClient

app = func.FunctionApp()


def _resolve_auth_level(value: Optional[str], default: func.AuthLevel) -> func.AuthLevel:
    if not value:
        return default
    normalized = value.strip().upper()
    if normalized in {"ANONYMOUS", "FUNCTION", "ADMIN"}:
        return getattr(func.AuthLevel, normalized)
    logging.warning("Unknown auth level '%s'; defaulting to %s", value, default)
    return default


DEFAULT_AUTH_LEVEL = _resolve_auth_level(
    os.environ.get("HTTP_AUTH_LEVEL"), func.AuthLevel.FUNCTION
)
HEALTH_AUTH_LEVEL = _resolve_auth_level(
    os.environ.get("HEALTH_AUTH_LEVEL"), DEFAULT_AUTH_LEVEL
)


def _json_response(payload: Dict[str, Any], status_code: int) -> func.HttpResponse:
    return func.HttpResponse(
        body=json.dumps(payload), status_code=status_code, mimetype="application/json"
    )


def _build_pipeline(settings: CropSettings) -> CropPipeline:
    """Create storage and vision clients for one invocation."""
    store = BlobObjectStore(build_service_client(settings))
    vision = VisionClient.from_settings(settings)
    return CropPipeline(settings, store, vision)


def _parse_request(req: func.HttpRequest) -> ResizeRequest:
    try:
        payload = req.get_json()
    except ValueError as exc:
        raise InvalidRequest("Request body is not valid JSON") from exc
    return ResizeRequest.from_payload(payload)


@app.function_name(name="ResizeImage")
@app.route(route="resize", methods=["POST"], auth_level=DEFAULT_AUTH_LEVEL)
def resize_image(req: func.HttpRequest) -> func.HttpResponse:
    """Resize a stored image to the requested size, centered on its product.

    JSON body: ``image_path``, ``s3_path``, ``new_width``, ``new_height`` and an
    optional ``asset`` region that skips detection. Any failure returns
    ``{"isSuccess": false}`` without further detail.
    """
    try:
        request = _parse_request(req)
    except InvalidRequest as exc:
        logging.error("Rejected resize request: %s", exc)
        return _json_response(FAILURE_RESPONSE, 400)

    logging.info(
        "Resize request for %s -> %s at %dx%d (asset=%s)",
        request.image_path,
        request.s3_path,
        request.new_width,
        request.new_height,
        request.asset,
    )

    try:
        settings = CropSettings.from_env()
        pipeline = _build_pipeline(settings)
        payload = pipeline.run(request)
    except FocusCropError as exc:
        logging.error("Resize failed for %s: %s", request.image_path, exc)
        return _json_response(FAILURE_RESPONSE, 500)
    except Exception:
        logging.exception("Unexpected error resizing %s", request.image_path)
        return _json_response(FAILURE_RESPONSE, 500)

    return _json_response(payload, 200)


@app.function_name(name="Health")
@app.route(route="health", methods=["GET"], auth_level=HEALTH_AUTH_LEVEL)
def health(req: func.HttpRequest) -> func.HttpResponse:
    """Simple health endpoint for smoke tests."""
    return func.HttpResponse("OK", status_code=200)
