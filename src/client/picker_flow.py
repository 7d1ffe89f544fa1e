"""
Client-side picker flow.

Drives one "pick" interaction end to end:

    IDLE -> CREATING_SESSION -> POLLING -> LISTING -> READY

with FAILED reachable from any step and SIGNED_OUT as the terminal
"go sign in again" outcome. The flow owns a single asyncio task; every wait
(poll interval, not-ready retry delay) happens inside it, so ``stop()`` is the
only cancellation needed. Each run is stamped with a generation number and
results that come back for an older generation are dropped.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from core.config import settings
from core.schemas.picker import MediaItemsPage, PickedMediaItem, PickerSession

from .credential_store import CredentialStore
from .metadata import metadata_rows
from .proxy_client import DETAIL_SIZE, MediaContent, PickerClientError, PickerProxyClient

logger = logging.getLogger(__name__)


class FlowState(str, Enum):
    IDLE = "idle"
    CREATING_SESSION = "creating_session"
    POLLING = "polling"
    LISTING = "listing"
    READY = "ready"
    FAILED = "failed"
    SIGNED_OUT = "signed_out"


Listener = Callable[[FlowState, "PickerFlow"], Any]
SleepFn = Callable[[float], Awaitable[None]]


@dataclass
class ItemDetail:
    """Detail view of a single picked item; ``error`` is shown inline."""

    item: PickedMediaItem
    rows: List[Tuple[str, str]] = field(default_factory=list)
    content: Optional[MediaContent] = None
    error: Optional[str] = None


class PickerFlow:
    def __init__(
        self,
        client: PickerProxyClient,
        credentials: CredentialStore,
        *,
        on_sign_out: Optional[Callable[[], Any]] = None,
        sleep: SleepFn = asyncio.sleep,
        default_poll_interval_ms: Optional[int] = None,
        max_list_retries: Optional[int] = None,
        list_retry_delay_ms: Optional[int] = None,
        page_size: Optional[int] = None,
    ):
        self.client = client
        self.credentials = credentials
        self._on_sign_out = on_sign_out
        self._sleep = sleep
        self.default_poll_interval_ms = (
            default_poll_interval_ms if default_poll_interval_ms is not None else settings.client.default_poll_interval_ms
        )
        self.max_list_retries = max_list_retries if max_list_retries is not None else settings.client.max_list_retries
        self.list_retry_delay_ms = (
            list_retry_delay_ms if list_retry_delay_ms is not None else settings.client.list_retry_delay_ms
        )
        self.page_size = page_size

        self.state = FlowState.IDLE
        self.session: Optional[PickerSession] = None
        self.items: List[PickedMediaItem] = []
        self.error: Optional[str] = None
        self.list_attempts = 0

        self._listeners: List[Listener] = []
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            raise RuntimeError("Picker flow already running")
        self._generation += 1
        self._task = asyncio.create_task(self._run(self._generation))
        return self._task

    async def stop(self) -> None:
        """Cancel the owned task; late results of this run are ignored."""
        self._generation += 1
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        if task is asyncio.current_task():
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Picker flow stopped")

    async def wait(self) -> FlowState:
        """Wait for the current run to reach a terminal state."""
        task = self._task
        if task is not None:
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self.state

    async def restart(self) -> asyncio.Task:
        """Discard the current session and pick again with the same credential."""
        await self.stop()
        self.session = None
        self.items = []
        self.error = None
        self.list_attempts = 0
        self.state = FlowState.IDLE
        return self.start()

    async def sign_out(self) -> None:
        await self.stop()
        self.credentials.clear()
        await self._notify_sign_out()
        self.session = None
        self.items = []
        self._set_state(FlowState.SIGNED_OUT)

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _set_state(self, state: FlowState) -> None:
        self.state = state
        logger.info("Picker flow state | state=%s", state.value)
        for listener in list(self._listeners):
            listener(state, self)

    def _transition(self, generation: int, state: FlowState) -> bool:
        if not self._is_current(generation):
            logger.debug("Ignoring stale transition | state=%s", state.value)
            return False
        self._set_state(state)
        return True

    def _fail(self, generation: int, reason: str) -> None:
        if not self._is_current(generation):
            return
        self.error = reason
        logger.error("Picker flow failed | reason=%s", reason)
        self._set_state(FlowState.FAILED)

    async def _notify_sign_out(self) -> None:
        if self._on_sign_out is None:
            return
        result = self._on_sign_out()
        if inspect.isawaitable(result):
            await result

    def poll_interval_seconds(self, session: Optional[PickerSession]) -> float:
        if session is not None and session.pollingConfig is not None:
            seconds = session.pollingConfig.poll_interval_seconds
            if seconds:
                return seconds
        return self.default_poll_interval_ms / 1000

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _run(self, generation: int) -> None:
        token = self.credentials.get()
        if not token:
            self.credentials.clear()
            self._transition(generation, FlowState.SIGNED_OUT)
            return

        session = await self._create_session(generation, token)
        if session is None:
            return

        session = await self._poll_until_set(generation, token, session)
        if session is None:
            return

        items = await self._list_items(generation, token, session)
        if items is None:
            return

        self.items = items
        self._transition(generation, FlowState.READY)

    async def _create_session(self, generation: int, token: str) -> Optional[PickerSession]:
        self._transition(generation, FlowState.CREATING_SESSION)
        try:
            session = await self.client.create_session(token)
        except PickerClientError as exc:
            if not self._is_current(generation):
                return None
            if exc.is_insufficient_permissions:
                logger.error("User did not grant sufficient permissions, signing out")
                self.credentials.clear()
                await self._notify_sign_out()
                self.error = exc.message
                self._transition(generation, FlowState.SIGNED_OUT)
                return None
            self._fail(generation, exc.message)
            return None

        if not self._is_current(generation):
            return None
        self.session = session
        logger.info("Picker session ready | session_id=%s | picker_uri=%s", session.id, session.pickerUri)
        self._transition(generation, FlowState.POLLING)
        return session

    async def _poll_until_set(self, generation: int, token: str, session: PickerSession) -> Optional[PickerSession]:
        while True:
            await self._sleep(self.poll_interval_seconds(session))
            if not self._is_current(generation):
                return None

            try:
                refreshed = await self.client.get_session_status(token, session.id)
            except PickerClientError as exc:
                self._fail(generation, f"Polling error: {exc.message}")
                return None

            if not self._is_current(generation):
                return None
            self.session = session = refreshed
            logger.debug("Polled picker session | session_id=%s | media_items_set=%s", refreshed.id, refreshed.mediaItemsSet)

            if refreshed.mediaItemsSet:
                self._transition(generation, FlowState.LISTING)
                return refreshed

    async def _list_items(self, generation: int, token: str, session: PickerSession) -> Optional[List[PickedMediaItem]]:
        items: List[PickedMediaItem] = []
        page_token = None
        while True:
            page = await self._fetch_page(generation, token, session.id, page_token)
            if page is None:
                return None
            items.extend(page.mediaItems)
            if not page.nextPageToken:
                return items
            page_token = page.nextPageToken

    async def _fetch_page(
        self,
        generation: int,
        token: str,
        session_id: str,
        page_token: Optional[str],
    ) -> Optional[MediaItemsPage]:
        retries = 0
        while True:
            self.list_attempts += 1
            try:
                page = await self.client.list_media_items(
                    token, session_id, page_size=self.page_size, page_token=page_token
                )
            except PickerClientError as exc:
                if not self._is_current(generation):
                    return None
                if not exc.is_media_not_ready:
                    self._fail(generation, f"Error fetching media items: {exc.message}")
                    return None
                if retries >= self.max_list_retries:
                    self._fail(generation, f"Media items still not ready after {self.max_list_retries} retries.")
                    return None
                retries += 1
                logger.warning(
                    "Media not ready, retrying | retry=%s/%s | delay_ms=%s",
                    retries,
                    self.max_list_retries,
                    self.list_retry_delay_ms,
                )
                await self._sleep(self.list_retry_delay_ms / 1000)
                if not self._is_current(generation):
                    return None
                continue

            if not self._is_current(generation):
                return None
            return page

    # ------------------------------------------------------------------
    # Ready state
    # ------------------------------------------------------------------

    async def open_item(self, item: PickedMediaItem, size: str = DETAIL_SIZE) -> ItemDetail:
        """Fetch full-resolution bytes for the detail view. Never changes flow state."""
        if self.state is not FlowState.READY:
            raise RuntimeError(f"Items can only be opened when ready (state={self.state.value})")

        detail = ItemDetail(item=item, rows=metadata_rows(item))
        token = self.credentials.get()
        if not token:
            detail.error = "Missing access token."
            return detail
        try:
            detail.content = await self.client.fetch_media(token, item, size=size)
        except PickerClientError as exc:
            logger.error("Error proxying media item | item_id=%s | error=%s", item.id, exc.message)
            detail.error = f"Failed to load media: {exc.message}"
        return detail
