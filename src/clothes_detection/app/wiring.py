"""Explicit construction of the detection session from an `AppConfig`."""

from collections.abc import Callable

from clothes_detection.app.session import DetectionSession
from clothes_detection.config import AppConfig
from clothes_detection.pipelines.steps import SupportsClothingDetection

DetectorFactory = Callable[[AppConfig], SupportsClothingDetection]


def build_detector(cfg: AppConfig) -> SupportsClothingDetection:
    """Load the YOLO clothing detector described by `cfg`."""
    from clothes_detection.detectors.yolo_ultralytics import YoloClothingDetector

    return YoloClothingDetector(
        weights=cfg.weights,
        device=cfg.device,
        img_size=cfg.img_size,
        conf=cfg.detector_conf,
    )


def build_session(
    cfg: AppConfig,
    *,
    detector_factory: DetectorFactory = build_detector,
) -> DetectionSession:
    """Build the detector once and hand it to a new session.

    Raises:
        ModelLoadingFailed: If the detector cannot be initialized.
    """
    return DetectionSession(
        detector_factory(cfg),
        confidence_threshold=cfg.confidence_threshold,
        padding=cfg.padding,
        max_dimension=cfg.max_dimension,
        crop_workers=cfg.crop_workers,
        fail_fast=cfg.fail_fast,
    )
