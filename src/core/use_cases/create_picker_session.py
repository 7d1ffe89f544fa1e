"""Use case for opening a new Google Photos Picker session."""

from __future__ import annotations

import logging
from typing import Any

from core.exceptions.picker import PickerProxyError, TransportError, UpstreamError
from core.services.picker_api_service import PickerAPIService

logger = logging.getLogger(__name__)

INSUFFICIENT_PERMISSIONS_MARKER = "insufficientPermissions"


def is_insufficient_permissions(error: UpstreamError) -> bool:
    return error.status_code in {401, 403} or INSUFFICIENT_PERMISSIONS_MARKER in (error.raw_body or "")


class CreatePickerSessionUseCase:
    """Create a picker session and relabel permission failures for the client."""

    def __init__(self, picker_service: PickerAPIService):
        self.picker_service = picker_service

    async def execute(self, token: str) -> Any:
        try:
            session_data = await self.picker_service.forward_json(
                self.picker_service.sessions_url(), "POST", token
            )
        except UpstreamError as exc:
            if is_insufficient_permissions(exc):
                logger.warning("Picker session refused for insufficient permissions | status=%s", exc.status_code)
                raise PickerProxyError(
                    403,
                    "Insufficient permissions granted by user.",
                    code=PickerProxyError.INSUFFICIENT_PERMISSIONS,
                ) from exc
            raise PickerProxyError(
                exc.status_code,
                f"Google Photos Picker API error: {exc.reason}",
                details=exc.raw_body,
            ) from exc
        except TransportError as exc:
            logger.error("Error creating picker session | error=%s", exc)
            raise PickerProxyError(500, "Failed to create picker session") from exc

        logger.info(
            "Picker session created | session_id=%s",
            session_data.get("id") if isinstance(session_data, dict) else None,
        )
        return session_data
