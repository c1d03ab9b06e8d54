"""Geometry helpers: normalized boxes to pixel rects, padding and clamping."""

from __future__ import annotations

from .types import ImageSize, NormalizedBox, PixelRect


def to_pixel_rect(box: NormalizedBox, extent: ImageSize) -> PixelRect:
    """Map a bottom-left-origin normalized box to a top-left-origin pixel rect.

    A zero width or height yields a degenerate rect, not an error.
    """
    return PixelRect(
        x=box.x * extent.width,
        y=(1.0 - box.y - box.h) * extent.height,
        w=box.w * extent.width,
        h=box.h * extent.height,
    )


def from_top_left_normalized(x1: float, y1: float, x2: float, y2: float) -> NormalizedBox:
    """Convert a top-left-origin normalized corner box (x1, y1, x2, y2)."""
    return NormalizedBox(x=x1, y=1.0 - y2, w=x2 - x1, h=y2 - y1)


def expand_rect(rect: PixelRect, padding: float) -> PixelRect:
    """Grow `rect` by `padding` pixels on every side."""
    return PixelRect(
        x=rect.x - padding,
        y=rect.y - padding,
        w=rect.w + 2.0 * padding,
        h=rect.h + 2.0 * padding,
    )


def clamp_rect(rect: PixelRect, extent: ImageSize) -> PixelRect:
    """Clamp `rect` so that it starts inside and does not run past `extent`.

    The origin is held inside [0, W] x [0, H]. The result may have a
    non-positive width or height when `rect` lies entirely outside the image;
    callers treat that as a failed crop.
    """
    x = min(max(0.0, rect.x), extent.width)
    y = min(max(0.0, rect.y), extent.height)
    return PixelRect(
        x=x,
        y=y,
        w=min(rect.w, extent.width - x),
        h=min(rect.h, extent.height - y),
    )


def crop_rect_for(box: NormalizedBox, extent: ImageSize, padding: float = 10.0) -> PixelRect:
    """Return the padded, clamped pixel crop rectangle for a normalized box."""
    return clamp_rect(expand_rect(to_pixel_rect(box, extent), padding), extent)


def overlaps(rect: PixelRect, extent: ImageSize) -> bool:
    """True when `rect` shares a region of positive area with the image."""
    return (
        rect.w > 0
        and rect.h > 0
        and rect.right > 0
        and rect.bottom > 0
        and rect.x < extent.width
        and rect.y < extent.height
    )
