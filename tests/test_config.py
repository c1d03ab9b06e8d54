from pathlib import Path

import pytest

from clothes_detection.config import AppConfig


def test_from_env_defaults() -> None:
    cfg = AppConfig.from_env({})
    assert cfg == AppConfig()
    assert cfg.weights == Path("models/best.pt")
    assert cfg.confidence_threshold == 0.4
    assert cfg.padding == 10.0
    assert cfg.crop_workers is None
    assert cfg.fail_fast is True


def test_from_env_overrides() -> None:
    cfg = AppConfig.from_env(
        {
            "CLOTHES_WEIGHTS": "/models/clothes.pt",
            "CLOTHES_DEVICE": "cpu",
            "CLOTHES_IMG_SIZE": "416",
            "DETECTOR_CONF": "0.1",
            "CONF_THRESHOLD": "0.55",
            "CROP_PADDING": "4",
            "MAX_DIMENSION": "1024",
            "CROP_WORKERS": "3",
            "CROP_FAIL_FAST": "off",
        }
    )
    assert cfg.weights == Path("/models/clothes.pt")
    assert cfg.device == "cpu"
    assert cfg.img_size == 416
    assert cfg.detector_conf == 0.1
    assert cfg.confidence_threshold == 0.55
    assert cfg.padding == 4.0
    assert cfg.max_dimension == 1024
    assert cfg.crop_workers == 3
    assert cfg.fail_fast is False


@pytest.mark.parametrize(
    "env",
    [
        {"CROP_FAIL_FAST": "maybe"},
        {"CONF_THRESHOLD": "high"},
        {"CONF_THRESHOLD": "1.5"},
        {"CROP_PADDING": "-1"},
        {"MAX_DIMENSION": "0"},
    ],
)
def test_from_env_rejects_invalid_values(env: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        AppConfig.from_env(env)
