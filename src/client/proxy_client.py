"""aiohttp client for the picker proxy endpoints."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import aiohttp
from pydantic import ValidationError

from core.config import settings
from core.schemas.picker import MediaItemsPage, PickedMediaItem, PickerSession

logger = logging.getLogger(__name__)

DETAIL_SIZE = "w2048-h2048"
THUMBNAIL_SIZE = "w144-h144-c"


class PickerClientError(Exception):
    """Failure reported by the proxy (or the network on the way to it)."""

    def __init__(self, status: int, message: str, code: Optional[str] = None):
        self.status = status
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def is_insufficient_permissions(self) -> bool:
        return self.code == "insufficient-permissions"

    @property
    def is_media_not_ready(self) -> bool:
        return self.code == "media-not-ready"


@dataclass
class MediaContent:
    content_type: Optional[str]
    content_disposition: Optional[str]
    data: bytes


class PickerProxyClient:
    """Calls the proxy with the user's bearer token; one call per method."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.client.proxy_base_url).rstrip("/")
        self._timeout = timeout_seconds or settings.client.request_timeout_seconds
        self._session = session
        self._should_close_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self._timeout))
            self._should_close_session = True
        return self._session

    async def close(self):
        if self._session and not self._session.closed and self._should_close_session:
            await self._session.close()

    async def __aenter__(self):
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @staticmethod
    async def _error_from_response(response: aiohttp.ClientResponse) -> PickerClientError:
        body = await response.text()
        try:
            payload = await response.json(content_type=None)
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("error"):
            return PickerClientError(response.status, str(payload["error"]), payload.get("code"))
        message = body.strip() or response.reason or "Unknown error"
        return PickerClientError(response.status, f"{message} (HTTP {response.status})")

    async def _request_json(
        self,
        method: str,
        path: str,
        token: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        session = await self._get_session()
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        url = f"{self.base_url}/{path}"
        try:
            async with session.request(method, url, headers=headers, params=params) as response:
                if not 200 <= response.status < 300:
                    raise await self._error_from_response(response)
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Proxy request failed | method=%s | path=%s | error=%s", method, path, exc)
            raise PickerClientError(0, f"Network error: {exc or exc.__class__.__name__}") from exc
        except ValueError as exc:
            raise PickerClientError(0, f"Invalid response from proxy: {exc}") from exc

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise PickerClientError(0, f"Malformed response from proxy: {exc.error_count()} validation error(s)") from exc

    async def create_session(self, token: str) -> PickerSession:
        data = await self._request_json("POST", "create-session", token)
        return self._parse(PickerSession, data)

    async def get_session_status(self, token: str, session_id: str) -> PickerSession:
        data = await self._request_json("GET", "get-session-status", token, params={"sessionId": session_id})
        return self._parse(PickerSession, data)

    async def list_media_items(
        self,
        token: str,
        session_id: str,
        page_size: Optional[int] = None,
        page_token: Optional[str] = None,
    ) -> MediaItemsPage:
        params: Dict[str, Any] = {"sessionId": session_id}
        if page_size:
            params["pageSize"] = page_size
        if page_token:
            params["pageToken"] = page_token
        data = await self._request_json("GET", "list-media-items", token, params=params)
        return self._parse(MediaItemsPage, data or {})

    def media_url(self, token: str, item: PickedMediaItem, size: str = DETAIL_SIZE) -> Optional[str]:
        """URL usable directly as an image/video source; the token rides in the query."""
        base_url = item.mediaFile.baseUrl
        if not base_url:
            return None
        query = urlencode({"baseUrl": base_url, "type": item.type, "size": size, "accessToken": token})
        return f"{self.base_url}/proxy-media?{query}"

    async def fetch_media(self, token: str, item: PickedMediaItem, size: str = DETAIL_SIZE) -> MediaContent:
        if not item.mediaFile.baseUrl:
            raise PickerClientError(0, "No preview available for this item")

        session = await self._get_session()
        params = {"baseUrl": item.mediaFile.baseUrl, "type": item.type, "size": size}
        headers = {"Authorization": f"Bearer {token}"}
        try:
            async with session.get(f"{self.base_url}/proxy-media", params=params, headers=headers) as response:
                if not 200 <= response.status < 300:
                    raise await self._error_from_response(response)
                data = await response.read()
                return MediaContent(
                    content_type=response.headers.get("Content-Type"),
                    content_disposition=response.headers.get("Content-Disposition"),
                    data=data,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Media fetch failed | item_id=%s | error=%s", item.id, exc)
            raise PickerClientError(0, f"Network error: {exc or exc.__class__.__name__}") from exc
