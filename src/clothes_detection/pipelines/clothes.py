"""Detect → filter → crop pipeline over image files, writing outputs to disk."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from clothes_detection.pipelines.steps import (
    SupportsClothingDetection,
    crop_items,
    detect_clothing,
)
from clothes_detection.vision.image import downscale_image, ensure_dir, read_image
from clothes_detection.vision.types import (
    ClothingItem,
    CropFailure,
    CroppedImage,
    CropRequest,
    ImageProcessingRequest,
)
from clothes_detection.vision.vis import draw_items

LOG = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Configuration for a single-image clothes detection run."""

    image_path: Path
    outdir: Path
    confidence_threshold: float = 0.4
    padding: float = 10.0
    max_dimension: int = 640
    crop: bool = True
    fail_fast: bool = False
    crop_workers: int | None = None
    verbose: bool = False


@dataclass(frozen=True)
class PipelineResult:
    """Final pipeline outputs."""

    image: Path
    image_w: int
    image_h: int
    items: list[ClothingItem]
    cropped: list[CroppedImage]
    failures: list[CropFailure]
    processing_time: float


class _BoxJson(BaseModel):
    model_config = ConfigDict(extra="ignore")

    x: float
    y: float
    w: float
    h: float


class _ItemJson(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    label: str
    confidence: float
    box: _BoxJson


class _CropJson(BaseModel):
    model_config = ConfigDict(extra="ignore")

    item_id: str
    path: str
    rect: _BoxJson


class _FailureJson(BaseModel):
    model_config = ConfigDict(extra="ignore")

    item_id: str
    error: str


class _FinalJson(BaseModel):
    model_config = ConfigDict(extra="ignore")

    image: str
    image_w: int
    image_h: int
    processing_time: float
    crop_policy: str
    items: list[_ItemJson]
    crops: list[_CropJson]
    failures: list[_FailureJson]


def _crop_filename(index: int, label: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", label.lower()).strip("_") or "item"
    return f"{index:02d}_{slug}.png"


def _crop_policy(fail_fast: bool) -> str:
    return "all-or-nothing" if fail_fast else "best-effort"


def run_pipeline(cfg: PipelineConfig, *, detector: SupportsClothingDetection) -> PipelineResult:
    """Run detection and cropping for one image and write its outputs.

    Outputs (under `cfg.outdir`):
      - `01_items.jpg`: retained items drawn on the (downscaled) image
      - `crops/NN_<label>.png`: one file per cropped item
      - `final.json`: items, crop rectangles, failures and the crop policy

    Raises:
        ClothingDetectionError: On detection errors, and on the first crop
            error when `cfg.fail_fast` is set.
    """
    if cfg.verbose:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")

    outdir = cfg.outdir
    ensure_dir(outdir)

    img = downscale_image(read_image(cfg.image_path), cfg.max_dimension)
    w, h = img.size
    LOG.info("Pipeline start: image=%s size=%sx%s outdir=%s", cfg.image_path, w, h, outdir)

    result = detect_clothing(
        ImageProcessingRequest(image=img, confidence_threshold=cfg.confidence_threshold),
        detector,
    )
    draw_items(img, result.items, outdir / "01_items.jpg")

    cropped: list[CroppedImage] = []
    failures: list[CropFailure] = []
    crop_entries: list[_CropJson] = []
    if cfg.crop and result.items:
        batch = crop_items(
            [CropRequest(image=img, item=it, padding=cfg.padding) for it in result.items],
            fail_fast=cfg.fail_fast,
            max_workers=cfg.crop_workers,
        )
        cropped, failures = batch.cropped, batch.failures
        crops_dir = outdir / "crops"
        ensure_dir(crops_dir)
        for i, c in enumerate(cropped):
            path = crops_dir / _crop_filename(i, c.source_item.label)
            c.image.save(path)
            crop_entries.append(
                _CropJson(
                    item_id=str(c.source_item.id),
                    path=str(path.relative_to(outdir)),
                    rect=_BoxJson(x=c.crop_rect.x, y=c.crop_rect.y, w=c.crop_rect.w, h=c.crop_rect.h),
                )
            )
        LOG.info(
            "Cropping (%s): cropped=%s failed=%s",
            _crop_policy(cfg.fail_fast),
            len(cropped),
            len(failures),
        )

    final = _FinalJson(
        image=str(cfg.image_path),
        image_w=int(w),
        image_h=int(h),
        processing_time=float(result.processing_time),
        crop_policy=_crop_policy(cfg.fail_fast),
        items=[
            _ItemJson(
                id=str(it.id),
                label=it.label,
                confidence=float(it.confidence),
                box=_BoxJson(x=it.box.x, y=it.box.y, w=it.box.w, h=it.box.h),
            )
            for it in result.items
        ],
        crops=crop_entries,
        failures=[
            _FailureJson(item_id=str(f.request.item.id), error=str(f.error)) for f in failures
        ],
    )
    (outdir / "final.json").write_text(final.model_dump_json(indent=2), encoding="utf-8")

    return PipelineResult(
        image=cfg.image_path,
        image_w=int(w),
        image_h=int(h),
        items=list(result.items),
        cropped=cropped,
        failures=failures,
        processing_time=float(result.processing_time),
    )


def load_final_json(path: Path) -> dict[str, object]:
    """Read and validate a `final.json` written by `run_pipeline`."""
    try:
        final = _FinalJson.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise RuntimeError(f"Invalid pipeline output JSON: {path}") from e
    return final.model_dump()


def run_batch(
    *,
    images: list[Path],
    out_root: Path,
    detector: SupportsClothingDetection,
    confidence_threshold: float = 0.4,
    padding: float = 10.0,
    max_dimension: int = 640,
    fail_fast: bool = False,
    crop_workers: int | None = None,
    overwrite: bool = False,
    verbose: bool = False,
) -> tuple[list[dict[str, object]], int]:
    """Run the pipeline over `images` and write `summary.yaml` in `out_root`.

    Images whose `final.json` already exists are not reprocessed unless
    `overwrite` is set.

    Returns:
        (summary_images, failures)
    """
    ensure_dir(out_root)
    summary: list[dict[str, object]] = []
    failures = 0

    for image_path in images:
        per_outdir = out_root / image_path.stem
        final_json = per_outdir / "final.json"
        try:
            if overwrite or not final_json.exists():
                run_pipeline(
                    PipelineConfig(
                        image_path=image_path,
                        outdir=per_outdir,
                        confidence_threshold=confidence_threshold,
                        padding=padding,
                        max_dimension=max_dimension,
                        fail_fast=fail_fast,
                        crop_workers=crop_workers,
                        verbose=verbose,
                    ),
                    detector=detector,
                )
            payload = load_final_json(final_json)
            summary.append(
                {
                    "image": str(image_path),
                    "outdir": str(per_outdir),
                    "image_w": payload["image_w"],
                    "image_h": payload["image_h"],
                    "crop_policy": payload["crop_policy"],
                    "items": payload["items"],
                    "crop_failures": len(payload["failures"]),  # type: ignore[arg-type]
                }
            )
        except Exception as e:
            failures += 1
            LOG.exception("Clothes pipeline failed for image=%s", image_path)
            summary.append(
                {
                    "image": str(image_path),
                    "outdir": str(per_outdir),
                    "error": f"{type(e).__name__}: {e}",
                }
            )

    dumped = yaml.safe_dump({"images": summary}, sort_keys=False)
    (out_root / "summary.yaml").write_text(dumped, encoding="utf-8")
    return summary, failures
