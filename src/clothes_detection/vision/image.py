"""Image I/O and pixel-level transforms."""

from __future__ import annotations

import io
import math
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from clothes_detection.errors import InvalidImage, ProcessingFailed

from .types import ImageSize, PixelRect

_SNAP_EPS = 1e-6


def ensure_dir(p: Path) -> None:
    """Create `p` if it doesn't exist."""
    p.mkdir(parents=True, exist_ok=True)


def read_image(path: Path) -> Image.Image:
    """Read an image from disk and convert it to RGB."""
    return Image.open(path).convert("RGB")


def load_image_bytes(data: bytes) -> Image.Image:
    """Decode encoded image bytes into an RGB image.

    Raises:
        ProcessingFailed: If the bytes are not a decodable image.
    """
    try:
        return Image.open(io.BytesIO(data)).convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ProcessingFailed() from e


def image_size(img: Image.Image) -> ImageSize:
    w, h = img.size
    return ImageSize(width=float(w), height=float(h))


def downscale_image(img: Image.Image, max_dimension: int = 640) -> Image.Image:
    """Shrink `img` so that neither side exceeds `max_dimension`. Never upscales.

    Raises:
        InvalidImage: If `img` has no pixels.
    """
    w, h = img.size
    if w == 0 or h == 0:
        raise InvalidImage()
    scale = min(max_dimension / w, max_dimension / h, 1.0)
    if scale >= 1.0:
        return img
    new_w = max(1, round(w * scale))
    new_h = max(1, round(h * scale))
    return img.resize((int(new_w), int(new_h)))


def crop_to_rect(img: Image.Image, rect: PixelRect) -> Image.Image:
    """Cut `rect` out of `img`, rounding outward to whole pixels.

    Raises:
        ProcessingFailed: If the pixels cannot be read or the rect covers no
            pixel of the image.
    """
    w, h = img.size
    # Snap float noise (e.g. 39.999999) before rounding outward.
    x1 = max(0, math.floor(rect.x + _SNAP_EPS))
    y1 = max(0, math.floor(rect.y + _SNAP_EPS))
    x2 = min(w, math.ceil(rect.right - _SNAP_EPS))
    y2 = min(h, math.ceil(rect.bottom - _SNAP_EPS))
    if rect.is_empty() or x2 <= x1 or y2 <= y1:
        raise ProcessingFailed(f"Failed to process the image: empty crop rect {rect}")
    try:
        img.load()
        return img.crop((x1, y1, x2, y2))
    except (OSError, ValueError) as e:
        raise ProcessingFailed() from e
