import argparse
import json
import os
from pathlib import Path

import pytest
from PIL import Image

import local_crop
from focus_crop.crop_types import AssetRegion

from helpers import image_bytes, make_object, make_text


def test_parse_asset():
    assert local_crop.parse_asset("1, 2, 30, 40") == AssetRegion(1, 2, 30, 40)
    assert local_crop.parse_asset(None) is None
    with pytest.raises(argparse.ArgumentTypeError):
        local_crop.parse_asset("1,2,3")
    with pytest.raises(argparse.ArgumentTypeError):
        local_crop.parse_asset("a,b,c,d")


def test_load_local_settings_sets_missing_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    settings_path = tmp_path / "local.settings.json"
    settings_path.write_text(
        json.dumps({"Values": {"CROP_PADDING_PX": "8", "SOURCE_CONTAINER_NAME": "x"}}),
        encoding="utf-8",
    )
    # Registers the variable for cleanup, then removes it for the test.
    monkeypatch.setenv("CROP_PADDING_PX", "unset")
    monkeypatch.delenv("CROP_PADDING_PX")
    monkeypatch.setenv("SOURCE_CONTAINER_NAME", "kept")

    local_crop.load_local_settings_if_needed(settings_path)

    assert os.environ["CROP_PADDING_PX"] == "8"
    assert os.environ["SOURCE_CONTAINER_NAME"] == "kept"


def test_main_writes_crop_and_summary(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(local_crop, "load_local_settings_if_needed", lambda: None)
    source = tmp_path / "shoe.png"
    source.write_bytes(image_bytes(400, 200))
    out_dir = tmp_path / "out"

    local_crop.main(
        [
            "--input",
            str(source),
            "--output",
            str(out_dir),
            "--width",
            "100",
            "--height",
            "100",
            "--asset",
            "0,0,100,100",
        ]
    )

    image_path = out_dir / "shoe_100x100.png"
    summary = json.loads((out_dir / "shoe_100x100.json").read_text(encoding="utf-8"))
    assert Image.open(image_path).size == (100, 100)
    assert summary["region_source"] == "asset"
    assert summary["crop"] == [0, 0, 100, 100]


def test_main_summary_reports_text_classifications(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    class _StubVision:
        def object_localization(self, image_bytes: bytes):
            return [make_object(0.1, 0.1, 0.3, 0.5)]

        def text_detection(self, image_bytes: bytes):
            return [make_text(0, 0, 400, 200), make_text(50, 30, 70, 40)]

    class _StubVisionClient:
        @staticmethod
        def from_settings(settings):
            return _StubVision()

    monkeypatch.setattr(local_crop, "load_local_settings_if_needed", lambda: None)
    monkeypatch.setattr(local_crop, "VisionClient", _StubVisionClient)
    for name in ("CROP_PADDING_PX", "CROP_AGGREGATION", "CROP_PRE_EXTRACT"):
        monkeypatch.delenv(name, raising=False)
    source = tmp_path / "shoe.png"
    source.write_bytes(image_bytes(400, 200))
    out_dir = tmp_path / "out"

    local_crop.main(
        [
            "--input",
            str(source),
            "--output",
            str(out_dir),
            "--width",
            "100",
            "--height",
            "100",
        ]
    )

    summary = json.loads((out_dir / "shoe_100x100.json").read_text(encoding="utf-8"))
    assert summary["region_source"] == "single_object"
    assert summary["region"] == {"left": 40, "top": 20, "width": 80, "height": 80}
    assert summary["text_vetoed"] is False
    assert summary["text_classifications"] == ["contained"]
