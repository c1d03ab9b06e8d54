"""Visualization helpers: draw detected items on the source image."""

from __future__ import annotations

from pathlib import Path
from uuid import UUID

from PIL import Image, ImageDraw, ImageFont

from .geometry import to_pixel_rect
from .image import image_size
from .labels import item_caption, label_color
from .types import ClothingItem


def draw_items(
    img: Image.Image,
    items: list[ClothingItem],
    out_path: Path,
    *,
    selected_id: UUID | None = None,
) -> None:
    """Draw labeled item boxes on a copy of `img` and save it to `out_path`.

    The selected item, if any, is drawn with a thicker outline.
    """
    vis = img.copy()
    dr = ImageDraw.Draw(vis)
    w, h = vis.size
    thickness = max(2, round(min(w, h) / 300))
    font_size = max(12, round(min(w, h) / 50))
    try:
        font = ImageFont.truetype("DejaVuSans.ttf", font_size)
    except OSError:  # pragma: no cover
        font = ImageFont.load_default()
    extent = image_size(vis)
    for item in items:
        rect = to_pixel_rect(item.box, extent)
        x1, y1 = round(rect.x), round(rect.y)
        x2, y2 = round(rect.right), round(rect.bottom)
        width = thickness * 2 if item.id == selected_id else thickness
        dr.rectangle([x1, y1, x2, y2], width=width, outline=label_color(item.label))
        txt = item_caption(item.label, item.confidence)
        tx, ty = x1 + width, y1 + width
        bbox = dr.textbbox((tx, ty), txt, font=font)
        fill = (30, 90, 200) if item.id == selected_id else (0, 0, 0)
        dr.rectangle(bbox, fill=fill)
        dr.text((tx, ty), txt, fill=(255, 255, 255), font=font)
    vis.save(out_path)
