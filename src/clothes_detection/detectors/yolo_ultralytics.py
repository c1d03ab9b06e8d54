"""Ultralytics YOLO wrapper used as the clothing inference adapter."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image
from ultralytics import YOLO

from clothes_detection.errors import DetectionFailed, InvalidImage, ModelLoadingFailed
from clothes_detection.vision.geometry import from_top_left_normalized
from clothes_detection.vision.types import Detection

LOG = logging.getLogger(__name__)


def _to_numpy(values: Any) -> np.ndarray:
    # Ultralytics returns torch tensors; tests and CPU exports may hand back arrays.
    if hasattr(values, "cpu"):
        values = values.cpu()
    if hasattr(values, "numpy"):
        values = values.numpy()
    return np.asarray(values)


@dataclass
class YoloClothingDetector:
    """Clothing detector backed by an Ultralytics YOLO checkpoint.

    Boxes are returned in normalized coordinates with a bottom-left origin,
    regardless of the top-left convention Ultralytics uses.

    Attributes:
        weights: Path to the trained checkpoint (``.pt`` or an exported model).
        device: Device selector understood by Ultralytics, for example:
            "0" for first GPU, "cpu" for CPU only, or None for auto.
        img_size: Optional square inference size. If None, Ultralytics
            uses the size the model was trained with.
        conf: Confidence floor passed to the model. Detections below it never
            reach the confidence filter.
        model_factory: Builds the model from the weights path.
    """

    weights: Path
    device: str | None = None
    img_size: int | None = None
    conf: float = 0.25
    model_factory: Callable[[str], Any] = field(default=YOLO, repr=False)

    def __post_init__(self) -> None:
        self.weights = Path(self.weights).expanduser().resolve()
        if not self.weights.is_file():
            raise ModelLoadingFailed(
                f"Failed to load the clothing detection model: weights not found at {self.weights}"
            )

        LOG.info("Loading YOLO model for clothing detection: %s", self.weights)
        try:
            self._model = self.model_factory(str(self.weights))
        except Exception as e:
            raise ModelLoadingFailed() from e

    def detect(self, img: Image.Image) -> list[Detection]:
        """Run the model on `img` and return every detection it reports.

        Raises:
            InvalidImage: If `img` is not a readable image with pixels.
            DetectionFailed: If the model raises or returns no result.
        """
        if not isinstance(img, Image.Image) or img.width == 0 or img.height == 0:
            raise InvalidImage()
        try:
            img.load()
        except OSError as e:
            raise InvalidImage() from e

        predict_args: dict[str, Any] = {
            "source": img,
            "conf": self.conf,
            "device": self.device,
            "verbose": False,
        }
        if self.img_size is not None:
            predict_args["imgsz"] = self.img_size

        try:
            results = self._model.predict(**predict_args)
        except Exception as e:
            raise DetectionFailed(str(e)) from e

        results = list(results or [])
        if not results:
            raise DetectionFailed("No results returned")

        r0 = results[0]
        names: dict[int, str] = dict(getattr(r0, "names", None) or {})
        boxes = r0.boxes
        if boxes is None:
            return []

        xyxyn = _to_numpy(boxes.xyxyn).reshape(-1, 4)
        scores = _to_numpy(boxes.conf).reshape(-1)
        classes = _to_numpy(boxes.cls).reshape(-1)

        out: list[Detection] = []
        for (x1, y1, x2, y2), sc, cls in zip(xyxyn, scores, classes, strict=True):
            out.append(
                Detection(
                    label=names.get(int(cls), ""),
                    confidence=float(sc),
                    box=from_top_left_normalized(float(x1), float(y1), float(x2), float(y2)),
                )
            )
        LOG.info("YOLO returned %s detections", len(out))
        return out
