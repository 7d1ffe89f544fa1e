"""Use case for listing the media items picked in a session."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from core.config import settings
from core.exceptions.picker import InvalidParameter, MissingParameter, PickerProxyError, TransportError, UpstreamError
from core.services.picker_api_service import PickerAPIService

logger = logging.getLogger(__name__)

FAILED_PRECONDITION_MARKER = "FAILED_PRECONDITION"


class ListPickedMediaItemsUseCase:
    """List one page of picked items, flagging the eventually-consistent not-ready state."""

    def __init__(self, picker_service: PickerAPIService, default_page_size: Optional[int] = None):
        self.picker_service = picker_service
        self.default_page_size = default_page_size or settings.picker.default_page_size

    def _resolve_page_size(self, page_size: Union[int, str, None]) -> int:
        if page_size is None or page_size == "":
            return self.default_page_size
        try:
            value = int(page_size)
        except (TypeError, ValueError):
            value = 0
        if value < 1:
            raise InvalidParameter("pageSize", "Bad Request: pageSize must be a positive integer")
        return value

    async def execute(
        self,
        token: str,
        session_id: Optional[str],
        page_size: Union[int, str, None] = None,
        page_token: Optional[str] = None,
    ) -> Any:
        if not session_id:
            raise MissingParameter("sessionId", "Bad Request: No session ID provided")

        params: Dict[str, Any] = {
            "sessionId": session_id,
            "pageSize": self._resolve_page_size(page_size),
        }
        if page_token:
            params["pageToken"] = page_token

        try:
            items_data = await self.picker_service.forward_json(
                self.picker_service.media_items_url(), "GET", token, params=params
            )
        except UpstreamError as exc:
            if exc.status_code == 400 and FAILED_PRECONDITION_MARKER in (exc.raw_body or ""):
                logger.info("Picked media items not ready yet | session_id=%s", session_id)
                raise PickerProxyError(
                    400,
                    "Google Photos Picker API error: Media items not yet ready. Please retry.",
                    code=PickerProxyError.MEDIA_NOT_READY,
                ) from exc
            raise PickerProxyError(
                exc.status_code,
                f"Google Photos Picker API error: {exc.reason}",
                details=exc.raw_body,
            ) from exc
        except TransportError as exc:
            logger.error("Error listing media items | session_id=%s | error=%s", session_id, exc)
            raise PickerProxyError(500, "Failed to list media items") from exc

        logger.info(
            "Media items retrieved | session_id=%s | count=%s | has_next_page=%s",
            session_id,
            len(items_data.get("mediaItems") or []) if isinstance(items_data, dict) else None,
            bool(items_data.get("nextPageToken")) if isinstance(items_data, dict) else False,
        )
        return items_data
