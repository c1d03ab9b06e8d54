#!/usr/bin/env python3
"""Batch runner for the clothes_detection pipeline.

- Scans JPG/JPEG/PNG images under `--images_dir` (default `assets/images/`).
- Detects clothing, keeps items above the confidence threshold and crops them.
- Writes per-image outputs under `<out_root>/<image_stem>/`
  (`01_items.jpg`, `crops/`, `final.json`) and `<out_root>/summary.yaml`.

Settings come from environment variables (see `AppConfig`):
`CLOTHES_WEIGHTS`, `CLOTHES_DEVICE`, `CLOTHES_IMG_SIZE`, `DETECTOR_CONF`,
`CONF_THRESHOLD`, `CROP_PADDING`, `MAX_DIMENSION`, `CROP_WORKERS`.

Crop failures are best-effort by default: a failed crop is listed in
`final.json` and the other items are still cropped. Pass `--fail_fast` to make
any crop failure fail the whole image.
"""

import argparse
import sys
from pathlib import Path

from clothes_detection.app.wiring import build_detector
from clothes_detection.config import AppConfig
from clothes_detection.errors import ModelLoadingFailed
from clothes_detection.pipelines.clothes import run_batch


def _iter_images(images_dir: Path) -> list[Path]:
    exts = {".jpg", ".jpeg", ".png"}
    return sorted(p for p in images_dir.iterdir() if p.is_file() and p.suffix.lower() in exts)


def main(argv: list[str]) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--images_dir", type=str, default="assets/images")
    ap.add_argument("--out_root", type=str, default="outputs/clothes")
    ap.add_argument("--fail_fast", action="store_true")
    ap.add_argument("--overwrite", action="store_true")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    try:
        cfg = AppConfig.from_env()
    except ValueError as e:
        raise SystemExit(str(e)) from e

    images_dir = Path(args.images_dir).expanduser().resolve()
    if not images_dir.is_dir():
        raise SystemExit(f"--images_dir is not a directory: {images_dir}")

    image_paths = _iter_images(images_dir)
    if not image_paths:
        raise SystemExit(f"No images found under: {images_dir}")

    try:
        detector = build_detector(cfg)
    except ModelLoadingFailed as e:
        raise SystemExit(
            f"{e}\n"
            "Set the checkpoint path:\n"
            "  export CLOTHES_WEIGHTS=/path/to/best.pt\n"
        ) from e

    policy = "all-or-nothing" if args.fail_fast else "best-effort"
    print(f"Processing {len(image_paths)} images (crop policy: {policy})")
    _, failures = run_batch(
        images=image_paths,
        out_root=Path(args.out_root).expanduser().resolve(),
        detector=detector,
        confidence_threshold=cfg.confidence_threshold,
        padding=cfg.padding,
        max_dimension=cfg.max_dimension,
        fail_fast=bool(args.fail_fast),
        crop_workers=cfg.crop_workers,
        overwrite=bool(args.overwrite),
        verbose=bool(args.verbose),
    )

    if failures:
        print(f"Completed with {failures} failures.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
