"""Use case for refreshing the status of a picker session."""

from __future__ import annotations

import logging
from typing import Any, Optional

from core.exceptions.picker import MissingParameter, PickerProxyError, TransportError, UpstreamError
from core.services.picker_api_service import PickerAPIService

logger = logging.getLogger(__name__)


class GetPickerSessionStatusUseCase:
    """Fetch a session by id. Failures pass through without relabelling."""

    def __init__(self, picker_service: PickerAPIService):
        self.picker_service = picker_service

    async def execute(self, token: str, session_id: Optional[str]) -> Any:
        if not session_id:
            raise MissingParameter("sessionId", "Bad Request: No session ID provided")

        try:
            session_data = await self.picker_service.forward_json(
                self.picker_service.session_url(session_id), "GET", token
            )
        except UpstreamError as exc:
            raise PickerProxyError(exc.status_code, f"Google Photos Picker API error: {exc.reason}") from exc
        except TransportError as exc:
            logger.error("Error getting picker session status | session_id=%s | error=%s", session_id, exc)
            raise PickerProxyError(500, "Failed to get picker session status") from exc

        logger.debug(
            "Picker session status retrieved | session_id=%s | media_items_set=%s",
            session_id,
            session_data.get("mediaItemsSet") if isinstance(session_data, dict) else None,
        )
        return session_data
