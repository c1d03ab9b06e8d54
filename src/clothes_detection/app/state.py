"""Immutable session state and the transitions between its values.

The view moves idle → loading → loaded | failed. Every transition is a pure
function taking the current state and returning a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING
from uuid import UUID

from clothes_detection.errors import ClothingDetectionError
from clothes_detection.vision.types import (
    ClothingItem,
    CropFailure,
    CroppedImage,
    DetectionResult,
)

if TYPE_CHECKING:
    from PIL import Image


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Loading:
    pass


@dataclass(frozen=True, slots=True)
class Loaded:
    result: DetectionResult


@dataclass(frozen=True, slots=True)
class Failed:
    error: ClothingDetectionError


ViewState = Idle | Loading | Loaded | Failed


@dataclass(frozen=True, slots=True, kw_only=True)
class SessionState:
    """Everything the presentation layer renders for one session."""

    view: ViewState = Idle()
    image: Image.Image | None = None
    result: DetectionResult | None = None
    cropped: tuple[CroppedImage, ...] = ()
    crop_failures: tuple[CropFailure, ...] = ()
    selected_item: ClothingItem | None = None
    is_cropping: bool = False

    @property
    def items(self) -> list[ClothingItem]:
        """Detected items, only while the view is loaded."""
        if isinstance(self.view, Loaded):
            return list(self.view.result.items)
        return []

    @property
    def is_loading(self) -> bool:
        return isinstance(self.view, Loading)

    @property
    def error_message(self) -> str | None:
        if isinstance(self.view, Failed):
            return str(self.view.error)
        return None


def cleared() -> SessionState:
    return SessionState()


def image_selected(state: SessionState, image: Image.Image) -> SessionState:
    return replace(state, image=image)


def detection_started(state: SessionState) -> SessionState:
    return replace(state, view=Loading())


def detection_succeeded(state: SessionState, result: DetectionResult) -> SessionState:
    return replace(state, view=Loaded(result), result=result)


def detection_failed(state: SessionState, error: ClothingDetectionError) -> SessionState:
    return replace(state, view=Failed(error))


def item_selected(state: SessionState, item: ClothingItem | None) -> SessionState:
    return replace(state, selected_item=item)


def crop_started(state: SessionState) -> SessionState:
    return replace(state, is_cropping=True)


def crops_added(
    state: SessionState,
    cropped: list[CroppedImage],
    *,
    failures: list[CropFailure] | None = None,
    clear_selection: bool = False,
) -> SessionState:
    """Append new crops, end the cropping phase.

    `failures` replaces the recorded best-effort failures; pass the current ones
    to keep them.
    """
    return replace(
        state,
        cropped=state.cropped + tuple(cropped),
        crop_failures=tuple(failures or ()),
        is_cropping=False,
        selected_item=None if clear_selection else state.selected_item,
    )


def crop_failed(state: SessionState, error: ClothingDetectionError) -> SessionState:
    return replace(state, view=Failed(error), is_cropping=False)


def cropped_image_removed(state: SessionState, cropped_id: UUID) -> SessionState:
    return replace(state, cropped=tuple(c for c in state.cropped if c.id != cropped_id))


def cropped_images_cleared(state: SessionState) -> SessionState:
    return replace(state, cropped=(), crop_failures=())
