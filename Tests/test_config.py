import pytest

from focus_crop.config import CropSettings, parse_bool


def test_defaults_from_empty_environment():
    settings = CropSettings.from_env({})

    assert settings.source_container == "assets"
    assert settings.output_container == "assets"
    assert settings.padding_px == 0
    assert settings.aggregation == "extremes"
    assert settings.pre_extract is False
    assert settings.vision_api_base == "https://vision.googleapis.com"
    assert settings.vision_api_key_env == "GOOGLE_VISION_API_KEY"
    assert settings.storage_auth_mode == "connection_string"


def test_values_from_environment():
    settings = CropSettings.from_env(
        {
            "SOURCE_CONTAINER_NAME": "uploads",
            "OUTPUT_CONTAINER_NAME": "public",
            "CROP_PADDING_PX": "12.5",
            "CROP_AGGREGATION": "UNION",
            "CROP_PRE_EXTRACT": "yes",
            "VISION_API_BASE": "https://vision.internal/",
            "VISION_TIMEOUT_SECONDS": "5",
            "STORAGE_AUTH_MODE": " Managed_Identity ",
            "STORAGE_ACCOUNT_URL": "https://acct.blob.core.windows.net",
        }
    )

    assert settings.source_container == "uploads"
    assert settings.output_container == "public"
    assert settings.padding_px == 12.5
    assert settings.aggregation == "union"
    assert settings.pre_extract is True
    assert settings.vision_api_base == "https://vision.internal"
    assert settings.vision_timeout_seconds == 5
    assert settings.storage_auth_mode == "managed_identity"


def test_output_container_defaults_to_source():
    settings = CropSettings.from_env({"SOURCE_CONTAINER_NAME": "uploads"})
    assert settings.output_container == "uploads"


def test_invalid_settings_are_rejected():
    with pytest.raises(ValueError):
        CropSettings.from_env({"CROP_AGGREGATION": "hull"})
    with pytest.raises(ValueError):
        CropSettings(padding_px=-1)


def test_parse_bool():
    assert parse_bool(None, default=True) is True
    assert parse_bool("On", default=False) is True
    assert parse_bool("0", default=True) is False
