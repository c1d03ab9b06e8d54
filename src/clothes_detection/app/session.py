"""Detection session driven by direct calls from a presentation shell."""

import logging

from PIL import Image

from clothes_detection.app import state as st
from clothes_detection.errors import ClothingDetectionError
from clothes_detection.pipelines.steps import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_PADDING,
    SupportsClothingDetection,
    crop_item,
    crop_items,
    detect_clothing,
)
from clothes_detection.vision.image import downscale_image, load_image_bytes
from clothes_detection.vision.types import (
    ClothingItem,
    CroppedImage,
    CropRequest,
    ImageProcessingRequest,
)

LOG = logging.getLogger(__name__)


class DetectionSession:
    """Owns the current `SessionState` and applies user intents to it.

    Typed detection/cropping errors end up in a `Failed` view state. Intents
    whose precondition is missing (no image, no selected item) are no-ops.
    """

    def __init__(
        self,
        detector: SupportsClothingDetection,
        *,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        padding: float = DEFAULT_PADDING,
        max_dimension: int = 640,
        crop_workers: int | None = None,
        fail_fast: bool = True,
    ) -> None:
        self.detector = detector
        self.confidence_threshold = confidence_threshold
        self.padding = padding
        self.max_dimension = max_dimension
        self.crop_workers = crop_workers
        self.fail_fast = fail_fast
        self.state = st.SessionState()

    def select_image(self, img: Image.Image) -> st.SessionState:
        """Downscale the selected image and run detection on it."""
        try:
            prepared = downscale_image(img, self.max_dimension)
        except ClothingDetectionError as e:
            self.state = st.detection_failed(self.state, e)
            return self.state
        self.state = st.image_selected(self.state, prepared)
        return self._detect()

    def select_image_bytes(self, data: bytes) -> st.SessionState:
        try:
            img = load_image_bytes(data)
        except ClothingDetectionError as e:
            self.state = st.detection_failed(self.state, e)
            return self.state
        return self.select_image(img)

    def retry_detection(self) -> st.SessionState:
        if self.state.image is None:
            return self.state
        return self._detect()

    def _detect(self) -> st.SessionState:
        assert self.state.image is not None
        self.state = st.detection_started(self.state)
        request = ImageProcessingRequest(
            image=self.state.image,
            confidence_threshold=self.confidence_threshold,
        )
        try:
            result = detect_clothing(request, self.detector)
        except ClothingDetectionError as e:
            LOG.warning("Detection failed: %s", e)
            self.state = st.detection_failed(self.state, e)
        else:
            self.state = st.detection_succeeded(self.state, result)
        return self.state

    def select_item(self, item: ClothingItem) -> st.SessionState:
        self.state = st.item_selected(self.state, item)
        return self.state

    def crop_selected_item(self) -> st.SessionState:
        """Crop the selected item and clear the selection on success."""
        image, item = self.state.image, self.state.selected_item
        if image is None or item is None:
            return self.state
        self.state = st.crop_started(self.state)
        try:
            cropped = crop_item(CropRequest(image=image, item=item, padding=self.padding))
        except ClothingDetectionError as e:
            self.state = st.crop_failed(self.state, e)
        else:
            self.state = st.crops_added(
                self.state,
                [cropped],
                failures=list(self.state.crop_failures),
                clear_selection=True,
            )
        return self.state

    def crop_all_items(self) -> st.SessionState:
        """Crop every detected item using the session's batch policy."""
        image = self.state.image
        if image is None:
            return self.state
        self.state = st.crop_started(self.state)
        requests = [
            CropRequest(image=image, item=item, padding=self.padding)
            for item in self.state.items
        ]
        try:
            batch = crop_items(requests, fail_fast=self.fail_fast, max_workers=self.crop_workers)
        except ClothingDetectionError as e:
            self.state = st.crop_failed(self.state, e)
        else:
            self.state = st.crops_added(self.state, batch.cropped, failures=batch.failures)
        return self.state

    def remove_cropped_image(self, cropped: CroppedImage) -> st.SessionState:
        self.state = st.cropped_image_removed(self.state, cropped.id)
        return self.state

    def clear_cropped_images(self) -> st.SessionState:
        self.state = st.cropped_images_cleared(self.state)
        return self.state

    def clear(self) -> st.SessionState:
        self.state = st.cleared()
        return self.state
