"""Application configuration loaded from environment variables."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"Invalid {name}={raw!r}; expected 0/1/true/false.")


def _env_number(env: Mapping[str, str], name: str, default: float, cast: type) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ValueError(f"Invalid {name}={raw!r}; expected {cast.__name__}.") from e


@dataclass
class AppConfig:
    """Settings shared by the session and the batch runner.

    Environment variables:
      - `CLOTHES_WEIGHTS` (default: "models/best.pt")
      - `CLOTHES_DEVICE` (default: auto), `CLOTHES_IMG_SIZE` (default: model's)
      - `DETECTOR_CONF` (default: 0.25): confidence floor inside the model
      - `CONF_THRESHOLD` (default: 0.4): item confidence filter
      - `CROP_PADDING` (default: 10), `MAX_DIMENSION` (default: 640)
      - `CROP_WORKERS` (default: sequential), `CROP_FAIL_FAST` (default: 1)
    """

    weights: Path = Path("models/best.pt")
    device: str | None = None
    img_size: int | None = None
    detector_conf: float = 0.25
    confidence_threshold: float = 0.4
    padding: float = 10.0
    max_dimension: int = 640
    crop_workers: int | None = None
    fail_fast: bool = True

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError(
                f"confidence_threshold must be in [0, 1], got {self.confidence_threshold}"
            )
        if self.padding < 0:
            raise ValueError(f"padding must be >= 0, got {self.padding}")
        if self.max_dimension <= 0:
            raise ValueError(f"max_dimension must be > 0, got {self.max_dimension}")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a config from `env` (defaults to ``os.environ``)."""
        env = os.environ if env is None else env
        img_size = env.get("CLOTHES_IMG_SIZE")
        workers = env.get("CROP_WORKERS")
        return cls(
            weights=Path(env.get("CLOTHES_WEIGHTS", "models/best.pt")),
            device=env.get("CLOTHES_DEVICE") or None,
            img_size=int(_env_number(env, "CLOTHES_IMG_SIZE", 0, int)) if img_size else None,
            detector_conf=float(_env_number(env, "DETECTOR_CONF", 0.25, float)),
            confidence_threshold=float(_env_number(env, "CONF_THRESHOLD", 0.4, float)),
            padding=float(_env_number(env, "CROP_PADDING", 10.0, float)),
            max_dimension=int(_env_number(env, "MAX_DIMENSION", 640, int)),
            crop_workers=int(_env_number(env, "CROP_WORKERS", 0, int)) if workers else None,
            fail_fast=_env_bool(env, "CROP_FAIL_FAST", True),
        )
