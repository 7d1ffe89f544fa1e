"""Core Pydantic schemas for the application."""

from .picker import (
    ErrorResponse,
    MediaFile,
    MediaFileMetadata,
    MediaItemsPage,
    PhotoMetadata,
    PickedMediaItem,
    PickerSession,
    PollingConfig,
    VideoMetadata,
    duration_to_seconds,
)

__all__ = [
    "ErrorResponse",
    "MediaFile",
    "MediaFileMetadata",
    "MediaItemsPage",
    "PhotoMetadata",
    "PickedMediaItem",
    "PickerSession",
    "PollingConfig",
    "VideoMetadata",
    "duration_to_seconds",
]
