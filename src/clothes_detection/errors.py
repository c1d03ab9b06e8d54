"""Typed failures raised by detection and cropping."""


class ClothingDetectionError(RuntimeError):
    """Base class for detection and cropping failures."""

    description = "Clothing detection failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.description)


class ModelLoadingFailed(ClothingDetectionError):
    description = "Failed to load the clothing detection model"


class ProcessingFailed(ClothingDetectionError):
    description = "Failed to process the image"


class InvalidImage(ClothingDetectionError):
    description = "Invalid image provided"


class DetectionFailed(ClothingDetectionError):
    """The inference adapter reported an error."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Detection failed: {reason}")
