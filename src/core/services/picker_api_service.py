"""Forwarder for the Google Photos Picker REST API with streaming support."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Optional

import aiohttp

from ..config import settings
from ..exceptions.picker import TransportError, UpstreamError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def _is_success(status: int) -> bool:
    return 200 <= status < 300


class MediaStreamResult:
    """Upstream media response whose body is piped through chunk by chunk."""

    def __init__(self, response: aiohttp.ClientResponse):
        self._response = response
        self._closed = False

    @property
    def status(self) -> int:
        return self._response.status

    @property
    def content_type(self) -> Optional[str]:
        return self._response.headers.get("Content-Type")

    @property
    def content_disposition(self) -> str:
        return self._response.headers.get("Content-Disposition") or "inline"

    def iter_bytes(self) -> AsyncIterator[bytes]:
        async def generator():
            try:
                async for chunk in self._response.content.iter_chunked(CHUNK_SIZE):
                    yield chunk
            finally:
                await self.close()

        return generator()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._response.close()


class PickerAPIService:
    """Issues bearer-authenticated calls to the Picker API on behalf of a user."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = (base_url or settings.picker.base_url).rstrip("/")
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.picker.timeout_seconds
        self._session = session
        self._should_close_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                connector=aiohttp.TCPConnector(limit=100, limit_per_host=30),
            )
            self._should_close_session = True
            logger.debug("Created new aiohttp.ClientSession")
        return self._session

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed and self._should_close_session:
            await self._session.close()
            logger.info("PickerAPIService session closed")

    async def __aenter__(self):
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def sessions_url(self) -> str:
        return f"{self.base_url}/sessions"

    def session_url(self, session_id: str) -> str:
        return f"{self.base_url}/sessions/{session_id}"

    def media_items_url(self) -> str:
        return f"{self.base_url}/mediaItems"

    @staticmethod
    def _headers(token: str, json_body: bool = False) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {token}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def forward_json(
        self,
        url: str,
        method: str,
        token: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Call a JSON endpoint and return the decoded payload unchanged.

        Raises:
            UpstreamError: the Picker API answered with a non-success status.
            TransportError: the call failed or the body was not valid JSON.
        """
        session = await self._get_session()
        logger.debug("Forwarding Picker API call | method=%s | url=%s", method, url)

        try:
            async with session.request(method, url, headers=self._headers(token, json_body=True), params=params) as response:
                if not _is_success(response.status):
                    raw_body = await response.text()
                    logger.error(
                        "Error from Google Photos Picker API | method=%s | url=%s | status=%s | reason=%s | body=%s",
                        method,
                        url,
                        response.status,
                        response.reason,
                        raw_body[:500],
                    )
                    raise UpstreamError(response.status, response.reason or "", raw_body)

                try:
                    return await response.json(content_type=None)
                except ValueError as exc:
                    raise TransportError(f"Invalid JSON from Picker API: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Picker API transport failure | method=%s | url=%s | error=%s", method, url, exc)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

    async def forward_stream(self, url: str, token: str) -> MediaStreamResult:
        """Open a media download and hand back a streaming result.

        The caller owns the returned result and must exhaust or close it.
        """
        session = await self._get_session()
        # Long videos must not be cut by the total timeout of JSON calls.
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self._timeout, sock_read=self._timeout)

        try:
            response = await session.get(url, headers=self._headers(token), timeout=timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Media fetch transport failure | error=%s", exc)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        if not _is_success(response.status):
            try:
                raw_body = await response.text()
            except (aiohttp.ClientError, asyncio.TimeoutError):
                raw_body = ""
            finally:
                response.close()
            logger.error(
                "Error fetching media from Google Photos | status=%s | reason=%s | body=%s",
                response.status,
                response.reason,
                raw_body[:500],
            )
            raise UpstreamError(response.status, response.reason or "", raw_body)

        return MediaStreamResult(response)
