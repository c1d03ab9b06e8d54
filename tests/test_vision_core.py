from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from clothes_detection.errors import InvalidImage, ProcessingFailed
from clothes_detection.vision.geometry import (
    clamp_rect,
    crop_rect_for,
    expand_rect,
    from_top_left_normalized,
    overlaps,
    to_pixel_rect,
)
from clothes_detection.vision.image import (
    crop_to_rect,
    downscale_image,
    image_size,
    load_image_bytes,
)
from clothes_detection.vision.labels import confidence_percent, item_caption, label_color
from clothes_detection.vision.types import ClothingItem, ImageSize, NormalizedBox, PixelRect
from clothes_detection.vision.vis import draw_items


def test_to_pixel_rect_flips_origin_to_top_left() -> None:
    rect = to_pixel_rect(NormalizedBox(x=0.5, y=0.5, w=0.2, h=0.1), ImageSize(200, 100))
    assert rect.x == pytest.approx(100.0)
    assert rect.y == pytest.approx(40.0)
    assert rect.w == pytest.approx(40.0)
    assert rect.h == pytest.approx(10.0)


def test_to_pixel_rect_zero_size_is_degenerate_not_an_error() -> None:
    rect = to_pixel_rect(NormalizedBox(x=0.3, y=0.3, w=0.0, h=0.2), ImageSize(50, 50))
    assert rect.w == 0.0
    assert rect.is_empty()
    assert rect.area() == 0.0


@pytest.mark.parametrize(
    "box",
    [
        NormalizedBox(0.0, 0.0, 1.0, 1.0),
        NormalizedBox(0.0, 0.0, 0.0, 0.0),
        NormalizedBox(0.25, 0.6, 0.75, 0.4),
        NormalizedBox(0.9, 0.1, 0.1, 0.05),
        NormalizedBox(0.1, 0.9, 0.3, 0.1),
    ],
)
@pytest.mark.parametrize("extent", [ImageSize(1, 1), ImageSize(640, 480), ImageSize(37, 1024)])
def test_to_pixel_rect_stays_inside_extent(box: NormalizedBox, extent: ImageSize) -> None:
    rect = to_pixel_rect(box, extent)
    eps = 1e-9
    assert -eps <= rect.x and rect.right <= extent.width + eps
    assert -eps <= rect.y and rect.bottom <= extent.height + eps


def test_from_top_left_normalized_inverts_the_pixel_transform() -> None:
    box = from_top_left_normalized(0.1, 0.2, 0.5, 0.6)
    assert (box.x, box.y, box.w, box.h) == pytest.approx((0.1, 0.4, 0.4, 0.4))
    rect = to_pixel_rect(box, ImageSize(100, 100))
    assert (rect.x, rect.y, rect.right, rect.bottom) == pytest.approx((10, 20, 50, 60))


def test_expand_then_clamp_scenario() -> None:
    extent = ImageSize(100, 100)
    expanded = expand_rect(PixelRect(0, 0, 50, 50), 10)
    assert expanded == PixelRect(-10, -10, 70, 70)
    assert clamp_rect(expanded, extent) == PixelRect(0, 0, 70, 70)


@pytest.mark.parametrize(
    "rect",
    [
        PixelRect(0, 0, 50, 50),
        PixelRect(-30, -30, 500, 500),
        PixelRect(90, 95, 40, 40),
        PixelRect(-5, 60, 10, 10),
        PixelRect(150, 150, 20, 20),
    ],
)
@pytest.mark.parametrize("padding", [0.0, 1.5, 10.0, 80.0])
def test_clamp_rect_respects_bounds(rect: PixelRect, padding: float) -> None:
    extent = ImageSize(100, 120)
    out = clamp_rect(expand_rect(rect, padding), extent)
    assert 0 <= out.x <= extent.width
    assert 0 <= out.y <= extent.height
    assert out.right <= extent.width
    assert out.bottom <= extent.height


def test_clamp_rect_outside_image_is_empty() -> None:
    out = clamp_rect(PixelRect(150, 10, 20, 20), ImageSize(100, 100))
    assert out.is_empty()


def test_crop_rect_for_composes_transform_padding_and_clamp() -> None:
    rect = crop_rect_for(NormalizedBox(0.0, 0.5, 0.5, 0.5), ImageSize(100, 100), padding=10)
    assert rect == PixelRect(0, 0, 70, 70)


def test_normalized_box_clip_keeps_box_in_unit_square() -> None:
    b = NormalizedBox(x=-0.1, y=0.8, w=0.5, h=0.4).clip()
    assert b.x == 0.0
    assert b.y == 0.8
    assert b.w == pytest.approx(0.5)
    assert b.h == pytest.approx(0.2)


def test_downscale_image_limits_longest_side_and_never_upscales() -> None:
    big = Image.new("RGB", (1280, 640))
    small = Image.new("RGB", (320, 200))
    assert downscale_image(big, 640).size == (640, 320)
    assert downscale_image(small, 640) is small


def test_load_image_bytes_decodes_and_rejects_garbage() -> None:
    buf = io.BytesIO()
    Image.new("L", (8, 4), color=128).save(buf, format="PNG")
    img = load_image_bytes(buf.getvalue())
    assert img.mode == "RGB"
    assert image_size(img) == ImageSize(8.0, 4.0)

    with pytest.raises(ProcessingFailed):
        load_image_bytes(b"not an image")


def test_crop_to_rect_rounds_outward() -> None:
    img = Image.new("RGB", (20, 10), color=(255, 0, 0))
    crop = crop_to_rect(img, PixelRect(2.4, 3.6, 9.2, 4.1))
    # floor(2.4)=2, floor(3.6)=3, ceil(11.6)=12, ceil(7.7)=8
    assert crop.size == (10, 5)


def test_crop_to_rect_rejects_empty_rect() -> None:
    img = Image.new("RGB", (20, 10))
    with pytest.raises(ProcessingFailed):
        crop_to_rect(img, PixelRect(5, 5, 0, 3))


def test_label_colors_and_captions() -> None:
    assert label_color("T-Shirt") == (66, 135, 245)
    assert label_color("trousers") == (139, 69, 19)
    assert label_color("sneakers") == label_color("shoes")
    assert label_color("scarf") == (60, 179, 113)
    assert item_caption("dress", 0.876) == "dress 0.88"
    assert confidence_percent(0.8734) == "87.3%"


def test_draw_items_modifies_pixels(tmp_path: Path) -> None:
    img = Image.new("RGB", (400, 300), color=(0, 0, 0))
    item = ClothingItem(
        label="shirt",
        confidence=0.9,
        box=NormalizedBox(0.1, 0.1, 0.5, 0.5),
        image_size=ImageSize(400, 300),
    )
    out_path = tmp_path / "vis.jpg"
    draw_items(img, [item], out_path, selected_id=item.id)
    assert out_path.is_file()
    orig = np.array(img)
    vis = np.array(Image.open(out_path).convert("RGB"))
    assert int(np.abs(orig.astype(np.int16) - vis.astype(np.int16)).sum()) > 0


@pytest.mark.parametrize(
    ("rect", "expected"),
    [
        (PixelRect(-200, -200, 20, 20), False),
        (PixelRect(-50, 10, 40, 20), False),
        (PixelRect(10, -50, 20, 40), False),
        (PixelRect(100, 10, 20, 20), False),
        (PixelRect(10, 120, 20, 20), False),
        (PixelRect(10, 10, 0, 20), False),
        (PixelRect(-10, -10, 20, 20), True),
        (PixelRect(90, 110, 40, 40), True),
    ],
)
def test_overlaps_detects_rects_outside_the_image(rect: PixelRect, expected: bool) -> None:
    assert overlaps(rect, ImageSize(100, 120)) is expected


def test_downscale_image_rejects_empty_image() -> None:
    with pytest.raises(InvalidImage):
        downscale_image(Image.new("RGB", (0, 0)))
    with pytest.raises(InvalidImage):
        downscale_image(Image.new("RGB", (10, 0)))
