"""
Pydantic v2 schemas for the Google Photos Picker proxy and its client.

Upstream payloads are passed through verbatim by the proxy; these models
document them and give the client typed access. Unknown upstream fields are
kept (``extra="allow"``).
"""

import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)s?\s*$")


def duration_to_seconds(value) -> Optional[float]:
    """Parse a protobuf JSON duration such as ``"5s"`` or ``"2.5s"``."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _DURATION_RE.match(str(value))
    if not match:
        return None
    return float(match.group(1))


class ErrorResponse(BaseModel):
    """Error body returned by every proxy endpoint"""
    model_config = ConfigDict()

    error: str = Field(description="Human readable error message")
    code: Optional[Literal["insufficient-permissions", "media-not-ready"]] = Field(
        default=None,
        description="Machine readable code for conditions the client handles specially",
    )
    details: Optional[str] = Field(default=None, description="Raw upstream error body")


class PollingConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    pollInterval: Optional[str | float] = Field(default=None, description="Suggested poll interval, e.g. '5s'")
    timeoutIn: Optional[str | float] = Field(default=None, description="Time left before the session expires")

    @property
    def poll_interval_seconds(self) -> Optional[float]:
        return duration_to_seconds(self.pollInterval)


class PickerSession(BaseModel):
    """Picker session as returned by sessions.create / sessions.get"""
    model_config = ConfigDict(extra="allow")

    id: str
    pickerUri: Optional[str] = None
    pollingConfig: Optional[PollingConfig] = None
    expireTime: Optional[str] = None
    mediaItemsSet: bool = False


class PhotoMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    focalLength: Optional[float] = None
    apertureFNumber: Optional[float] = None
    isoEquivalent: Optional[int] = None
    exposureTime: Optional[str] = None
    cameraMake: Optional[str] = None
    cameraModel: Optional[str] = None


class VideoMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    fps: Optional[float] = None
    durationMillis: Optional[float] = None
    processingStatus: Optional[str] = None


class MediaFileMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    width: Optional[int] = None
    height: Optional[int] = None
    cameraMake: Optional[str] = None
    cameraModel: Optional[str] = None
    creationTime: Optional[str] = None
    photoMetadata: Optional[PhotoMetadata] = None
    videoMetadata: Optional[VideoMetadata] = None


class MediaFile(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    baseUrl: Optional[str] = None
    mimeType: Optional[str] = None
    filename: Optional[str] = None
    mediaFileMetadata: Optional[MediaFileMetadata] = None


class PickedMediaItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    createTime: Optional[str] = None
    type: str = "TYPE_UNSPECIFIED"
    mediaFile: MediaFile = Field(default_factory=MediaFile)


class MediaItemsPage(BaseModel):
    model_config = ConfigDict(extra="allow")

    mediaItems: List[PickedMediaItem] = Field(default_factory=list)
    nextPageToken: Optional[str] = None
