"""Pipeline steps: detect → confidence filter → padded crop."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from time import perf_counter
from typing import Protocol, TypeVar

from PIL import Image

from clothes_detection.errors import ClothingDetectionError, ProcessingFailed
from clothes_detection.vision.geometry import clamp_rect, expand_rect, overlaps, to_pixel_rect
from clothes_detection.vision.image import crop_to_rect, image_size
from clothes_detection.vision.types import (
    BatchCropResult,
    ClothingItem,
    CropFailure,
    CroppedImage,
    CropRequest,
    Detection,
    DetectionResult,
    ImageProcessingRequest,
    ImageSize,
)

LOG = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.4
DEFAULT_PADDING = 10.0


class SupportsClothingDetection(Protocol):
    """Protocol for an inference adapter returning raw detections."""

    def detect(self, img: Image.Image) -> list[Detection]:
        """Detect clothing on an image (normalized, bottom-left-origin boxes)."""
        ...


class _HasConfidence(Protocol):
    @property
    def confidence(self) -> float: ...


T = TypeVar("T", bound=_HasConfidence)


def filter_by_confidence(
    records: Iterable[T], threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
) -> list[T]:
    """Keep records whose confidence is strictly above `threshold`, in order."""
    return [r for r in records if r.confidence > threshold]


def filter_detections(
    detections: Iterable[Detection],
    image_size: ImageSize,
    threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
) -> list[ClothingItem]:
    """Filter raw detections and map the survivors to clothing items.

    Args:
        detections: Raw adapter output.
        image_size: Pixel size of the image the detections belong to.
        threshold: Detections with confidence <= threshold are dropped.

    Returns:
        One item per retained detection, in input order, each with a fresh id.
    """
    return [
        ClothingItem(
            label=d.label or "Unknown",
            confidence=float(d.confidence),
            box=d.box.clip(),
            image_size=image_size,
        )
        for d in filter_by_confidence(detections, threshold)
    ]


def detect_clothing(
    request: ImageProcessingRequest,
    detector: SupportsClothingDetection,
) -> DetectionResult:
    """Run `detector` on the request image and keep confident detections.

    Adapter errors propagate unchanged.
    """
    size = image_size(request.image)
    t0 = perf_counter()
    detections = detector.detect(request.image)
    items = filter_detections(detections, size, request.confidence_threshold)
    took = perf_counter() - t0
    LOG.info(
        "Detection: raw=%s kept=%s threshold=%.2f took=%.2fs",
        len(detections),
        len(items),
        request.confidence_threshold,
        took,
    )
    return DetectionResult(items=items, processing_time=took, image_size=size)


def crop_item(request: CropRequest) -> CroppedImage:
    """Crop the request's item, padded and clamped to the image bounds.

    Raises:
        ProcessingFailed: If the image has no readable pixels, or the padded
            box does not overlap the image, or the clamped rectangle is empty.
    """
    if not isinstance(request.image, Image.Image):
        raise ProcessingFailed()
    extent = image_size(request.image)
    padded = expand_rect(to_pixel_rect(request.item.box, extent), request.padding)
    if not overlaps(padded, extent):
        raise ProcessingFailed(
            f"Failed to process the image: crop rect {padded} lies outside the image"
        )
    rect = clamp_rect(padded, extent)
    if rect.is_empty():
        raise ProcessingFailed(f"Failed to process the image: crop rect {rect} is empty")
    cropped = crop_to_rect(request.image, rect)
    return CroppedImage(image=cropped, source_item=request.item, crop_rect=rect)


def _crop_or_failure(request: CropRequest) -> CroppedImage | CropFailure:
    try:
        return crop_item(request)
    except ClothingDetectionError as e:
        return CropFailure(request=request, error=e)


def crop_items(
    requests: Sequence[CropRequest],
    *,
    fail_fast: bool = True,
    max_workers: int | None = None,
) -> BatchCropResult:
    """Crop every request independently.

    Args:
        requests: Crop requests; results keep this order.
        fail_fast: If True, the first failure is raised and no partial result
            is returned. If False, failures are collected and the remaining
            requests are still cropped.
        max_workers: Thread count. None or 1 crops sequentially.

    Returns:
        Cropped images in request order plus any best-effort failures.
    """
    if max_workers is not None and max_workers > 1 and len(requests) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(_crop_or_failure, requests))
    else:
        outcomes = [_crop_or_failure(r) for r in requests]

    cropped: list[CroppedImage] = []
    failures: list[CropFailure] = []
    for outcome in outcomes:
        if isinstance(outcome, CropFailure):
            if fail_fast:
                raise outcome.error
            LOG.warning(
                "Crop failed for item=%s label=%s: %s",
                outcome.request.item.id,
                outcome.request.item.label,
                outcome.error,
            )
            failures.append(outcome)
        else:
            cropped.append(outcome)
    return BatchCropResult(cropped=cropped, failures=failures)
