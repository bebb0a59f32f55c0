import json
import logging
from typing import Any, Dict, Optional

import azure.functions as func
import pytest

import function_app
from focus_crop.errors import CollaboratorFailure
from focus_crop.pipeline import ResizeRequest


class _StubRequest:
    def __init__(
        self,
        body: bytes = b"",
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self._body = body
        self.params = params or {}
        self.headers = headers or {}

    def get_body(self) -> bytes:
        return self._body

    def get_json(self) -> Any:
        return json.loads(self._body.decode("utf-8"))


class _StubPipeline:
    def __init__(self, result: Any = None, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.requests = []

    def run(self, request: ResizeRequest) -> Dict[str, Any]:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


VALID_BODY = {
    "image_path": "https://cdn.example.com/products/shoe.jpg",
    "s3_path": "/resized/shoe.jpg",
    "new_width": 300,
    "new_height": 300,
}


def _json_request(payload: Any) -> _StubRequest:
    return _StubRequest(body=json.dumps(payload).encode("utf-8"))


def _payload(resp: func.HttpResponse) -> Dict[str, Any]:
    return json.loads(resp.get_body().decode("utf-8"))


def test_resolve_auth_level_defaults_and_validation() -> None:
    default = func.AuthLevel.FUNCTION
    assert function_app._resolve_auth_level(None, default) == default
    assert (
        function_app._resolve_auth_level("anonymous", default)
        == func.AuthLevel.ANONYMOUS
    )
    assert function_app._resolve_auth_level("admin", default) == func.AuthLevel.ADMIN
    assert function_app._resolve_auth_level("unknown", default) == default


def test_resize_invalid_json_returns_400() -> None:
    resp = function_app.resize_image(_StubRequest(body=b"{not json"))
    assert resp.status_code == 400
    assert _payload(resp) == {"isSuccess": False}


def test_resize_missing_field_returns_400() -> None:
    body = dict(VALID_BODY)
    del body["new_width"]
    resp = function_app.resize_image(_json_request(body))
    assert resp.status_code == 400
    assert _payload(resp) == {"isSuccess": False}


def test_resize_returns_pipeline_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    result = {
        "statusCode": 200,
        "isSuccess": True,
        "url": "https://acct.blob.core.windows.net/assets/resized/shoe.jpg",
        "width": 300,
        "height": 300,
        "file_size": "0.05",
        "file_extension": "jpeg",
    }
    pipeline = _StubPipeline(result=result)
    monkeypatch.setattr(function_app, "_build_pipeline", lambda settings: pipeline)

    body = dict(VALID_BODY, asset={"left": 1, "top": 2, "width": 30, "height": 40})
    resp = function_app.resize_image(_json_request(body))

    assert resp.status_code == 200
    assert resp.mimetype == "application/json"
    assert _payload(resp) == result
    assert pipeline.requests[0].asset.width == 30


def test_resize_collaborator_failure_returns_uniform_failure(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    pipeline = _StubPipeline(error=CollaboratorFailure("storage_get", "blob missing"))
    monkeypatch.setattr(function_app, "_build_pipeline", lambda settings: pipeline)

    with caplog.at_level(logging.ERROR):
        resp = function_app.resize_image(_json_request(VALID_BODY))

    assert resp.status_code == 500
    assert _payload(resp) == {"isSuccess": False}
    assert "storage_get: blob missing" in caplog.text


def test_resize_unexpected_error_returns_uniform_failure(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _boom(settings):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(function_app, "_build_pipeline", _boom)

    resp = function_app.resize_image(_json_request(VALID_BODY))

    assert resp.status_code == 500
    assert _payload(resp) == {"isSuccess": False}


def test_resize_storage_not_configured_returns_500(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("AzureWebJobsStorage", raising=False)
    monkeypatch.delenv("STORAGE_AUTH_MODE", raising=False)

    resp = function_app.resize_image(_json_request(VALID_BODY))

    assert resp.status_code == 500
    assert _payload(resp) == {"isSuccess": False}


def test_health_returns_ok() -> None:
    resp = function_app.health(_StubRequest())
    assert resp.status_code == 200
    assert resp.get_body() == b"OK"
