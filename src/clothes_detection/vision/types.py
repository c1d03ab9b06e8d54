"""Core vision data types shared across detection, cropping and the session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from PIL import Image


@dataclass(frozen=True, slots=True)
class NormalizedBox:
    """Bounding box in normalized image coordinates.

    Attributes:
        x, y: Origin as fractions of image width/height. The origin is the
            bottom-left corner and y grows upward.
        w, h: Size as fractions of image width/height.
    """

    x: float
    y: float
    w: float
    h: float

    def clip(self) -> NormalizedBox:
        """Clamp the box into the unit square, shrinking its size if needed."""
        x = float(max(0.0, min(self.x, 1.0)))
        y = float(max(0.0, min(self.y, 1.0)))
        w = float(max(0.0, min(self.w, 1.0 - x)))
        h = float(max(0.0, min(self.h, 1.0 - y)))
        return NormalizedBox(x=x, y=y, w=w, h=h)


@dataclass(frozen=True, slots=True)
class PixelRect:
    """Axis-aligned rectangle in pixels, origin at the top-left corner."""

    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def area(self) -> float:
        """Return the rectangle area in pixels squared."""
        return max(0.0, self.w) * max(0.0, self.h)

    def is_empty(self) -> bool:
        """True when the rectangle has no positive width or height."""
        return self.w <= 0 or self.h <= 0


@dataclass(frozen=True, slots=True)
class ImageSize:
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class Detection:
    """Raw inference output: label, confidence in [0, 1] and normalized box."""

    label: str
    confidence: float
    box: NormalizedBox


@dataclass(frozen=True, slots=True, kw_only=True)
class ClothingItem:
    """A detected clothing item that passed the confidence filter.

    Attributes:
        label: Class label reported by the model ("Unknown" when empty).
        confidence: Model confidence in [0, 1].
        box: Normalized bounding box, clipped into the unit square.
        image_size: Pixel size of the image the detection ran on.
        id: Unique identity, generated per item.
    """

    label: str
    confidence: float
    box: NormalizedBox
    image_size: ImageSize
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True, slots=True, kw_only=True)
class DetectionResult:
    """Items retained for one image, with the time the detection took."""

    items: list[ClothingItem]
    processing_time: float
    image_size: ImageSize


@dataclass(frozen=True, slots=True, kw_only=True)
class ImageProcessingRequest:
    image: Image.Image
    confidence_threshold: float = 0.4


@dataclass(frozen=True, slots=True, kw_only=True)
class CropRequest:
    """Crop one item out of `image`, with `padding` pixels around its box."""

    image: Image.Image
    item: ClothingItem
    padding: float = 10.0


@dataclass(frozen=True, slots=True, kw_only=True)
class CroppedImage:
    """A cropped region and the clamped pixel rectangle it was cut from."""

    image: Image.Image
    source_item: ClothingItem
    crop_rect: PixelRect
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True, slots=True, kw_only=True)
class CropFailure:
    """A crop request that could not be fulfilled in best-effort mode."""

    request: CropRequest
    error: Exception


@dataclass(frozen=True, slots=True, kw_only=True)
class BatchCropResult:
    """Output of a batch crop: successes in request order, then failures."""

    cropped: list[CroppedImage]
    failures: list[CropFailure] = field(default_factory=list)
