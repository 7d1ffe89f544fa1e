"""Use case for proxying picked media bytes through backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional

from core.config import settings
from core.exceptions.picker import MissingParameter, PickerProxyError, TransportError, UpstreamError
from core.services.picker_api_service import PickerAPIService

logger = logging.getLogger(__name__)

VIDEO_TYPE = "VIDEO"


@dataclass
class MediaProxyResult:
    content_stream: AsyncIterator[bytes]
    content_type: Optional[str]
    headers: Dict[str, str] = field(default_factory=dict)
    close: Optional[Callable[[], Awaitable[None]]] = None


def build_media_url(base_url: str, media_type: Optional[str], size: Optional[str] = None) -> str:
    """Append the Google Photos sizing/format suffix to a picked item's base URL."""
    if media_type == VIDEO_TYPE:
        return f"{base_url}={settings.picker.video_suffix}"
    return f"{base_url}={size or settings.picker.default_photo_size}"


class ProxyMediaItemUseCase:
    """Stream a picked photo or video with the user's bearer token attached."""

    def __init__(self, picker_service: PickerAPIService):
        self.picker_service = picker_service

    async def execute(
        self,
        token: str,
        base_url: Optional[str],
        media_type: Optional[str],
        size: Optional[str] = None,
    ) -> MediaProxyResult:
        if not base_url:
            raise MissingParameter("baseUrl", "Bad Request: No baseUrl provided")

        media_url = build_media_url(base_url, media_type, size)
        logger.debug("Proxy media started | type=%s | size=%s", media_type, size)

        try:
            fetch_result = await self.picker_service.forward_stream(media_url, token)
        except UpstreamError as exc:
            raise PickerProxyError(
                exc.status_code,
                f"Failed to fetch media from Google Photos: {exc.reason}",
                details=exc.raw_body,
            ) from exc
        except TransportError as exc:
            logger.error("Error in media proxy | type=%s | error=%s", media_type, exc)
            raise PickerProxyError(500, "Failed to proxy media URL") from exc

        return MediaProxyResult(
            content_stream=fetch_result.iter_bytes(),
            content_type=fetch_result.content_type,
            headers={"Content-Disposition": fetch_result.content_disposition},
            close=fetch_result.close,
        )
