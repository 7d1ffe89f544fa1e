"""
Unit tests for the client-side PickerFlow state machine.

The proxy client is scripted and sleeping is recorded instead of awaited,
so every test runs the whole flow instantly.
"""

import asyncio

import pytest

from client.credential_store import InMemoryCredentialStore
from client.picker_flow import FlowState, PickerFlow
from client.proxy_client import MediaContent, PickerClientError
from core.schemas.picker import MediaItemsPage, PickedMediaItem, PickerSession


def not_ready():
    return PickerClientError(400, "Google Photos Picker API error: Media items not yet ready. Please retry.", "media-not-ready")


class FakeProxyClient:
    """Replays scripted outcomes per endpoint. Exceptions are raised, anything else returned."""

    def __init__(self, create=None, statuses=None, pages=None, media=None):
        self.create = create
        self.statuses = list(statuses or [])
        self.pages = list(pages or [])
        self.media = media
        self.calls = []

    async def create_session(self, token):
        self.calls.append(("create", token))
        return self._resolve(self.create)

    async def get_session_status(self, token, session_id):
        self.calls.append(("status", session_id))
        return self._resolve(self.statuses.pop(0))

    async def list_media_items(self, token, session_id, page_size=None, page_token=None):
        self.calls.append(("list", page_token))
        return self._resolve(self.pages.pop(0))

    async def fetch_media(self, token, item, size=None):
        self.calls.append(("media", item.id, size))
        return self._resolve(self.media)

    @staticmethod
    def _resolve(outcome):
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def session(media_items_set=False, poll_interval="5s"):
    polling = {"pollInterval": poll_interval} if poll_interval is not None else None
    return PickerSession.model_validate(
        {"id": "s-1", "pickerUri": "https://photos.google.com/picker/s-1", "pollingConfig": polling, "mediaItemsSet": media_items_set}
    )


def page(*item_ids, next_page_token=None):
    return MediaItemsPage.model_validate(
        {
            "mediaItems": [
                {"id": item_id, "type": "PHOTO", "mediaFile": {"baseUrl": f"https://lh3.test/{item_id}", "filename": f"{item_id}.jpg"}}
                for item_id in item_ids
            ],
            "nextPageToken": next_page_token,
        }
    )


def make_flow(client, token="tok", **kwargs):
    sleep = RecordingSleep()
    credentials = InMemoryCredentialStore(token)
    flow = PickerFlow(client, credentials, sleep=sleep, **kwargs)
    states = []
    flow.add_listener(lambda state, _flow: states.append(state))
    return flow, credentials, sleep, states


async def run(flow):
    flow.start()
    return await flow.wait()


@pytest.mark.unit
@pytest.mark.client
class TestHappyPath:

    async def test_polls_until_set_then_lists_once(self):
        client = FakeProxyClient(
            create=session(),
            statuses=[session(), session(), session(media_items_set=True)],
            pages=[page("a", "b")],
        )
        flow, _, sleep, states = make_flow(client)

        state = await run(flow)

        assert state is FlowState.READY
        assert client.count("status") == 3
        assert client.count("list") == 1
        assert states.count(FlowState.LISTING) == 1
        assert states == [FlowState.CREATING_SESSION, FlowState.POLLING, FlowState.LISTING, FlowState.READY]
        assert [item.id for item in flow.items] == ["a", "b"]
        assert sleep.calls == [5.0, 5.0, 5.0]

    async def test_empty_selection_is_ready(self):
        client = FakeProxyClient(create=session(), statuses=[session(media_items_set=True)], pages=[page()])
        flow, _, _, _ = make_flow(client)

        assert await run(flow) is FlowState.READY
        assert flow.items == []
        assert flow.error is None

    async def test_follows_next_page_token(self):
        client = FakeProxyClient(
            create=session(),
            statuses=[session(media_items_set=True)],
            pages=[page("a", next_page_token="p2"), page("b")],
        )
        flow, _, _, _ = make_flow(client)

        await run(flow)

        assert [item.id for item in flow.items] == ["a", "b"]
        assert [call for call in client.calls if call[0] == "list"] == [("list", None), ("list", "p2")]

    async def test_poll_interval_defaults_when_missing(self):
        client = FakeProxyClient(
            create=session(poll_interval=None),
            statuses=[session(media_items_set=True, poll_interval=None)],
            pages=[page()],
        )
        flow, _, sleep, _ = make_flow(client)

        await run(flow)

        assert sleep.calls == [5.0]

    async def test_poll_interval_follows_session(self):
        client = FakeProxyClient(
            create=session(poll_interval="2.5s"),
            statuses=[session(poll_interval="1s"), session(media_items_set=True)],
            pages=[page()],
        )
        flow, _, sleep, _ = make_flow(client)

        await run(flow)

        assert sleep.calls == [2.5, 1.0]

    def test_poll_interval_seconds(self):
        flow, _, _, _ = make_flow(FakeProxyClient(), default_poll_interval_ms=3000)

        assert flow.poll_interval_seconds(session(poll_interval="5s")) == 5.0
        assert flow.poll_interval_seconds(session(poll_interval=None)) == 3.0
        assert flow.poll_interval_seconds(session(poll_interval="garbage")) == 3.0
        assert flow.poll_interval_seconds(None) == 3.0


@pytest.mark.unit
@pytest.mark.client
class TestListRetries:

    async def test_gives_up_after_bounded_retries(self):
        client = FakeProxyClient(
            create=session(),
            statuses=[session(media_items_set=True)],
            pages=[not_ready() for _ in range(6)],
        )
        flow, _, sleep, _ = make_flow(client)

        state = await run(flow)

        assert state is FlowState.FAILED
        assert client.count("list") == 6
        assert flow.list_attempts == 6
        assert flow.error == "Media items still not ready after 5 retries."
        assert sleep.calls[1:] == [2.0] * 5

    async def test_succeeds_on_third_attempt(self):
        client = FakeProxyClient(
            create=session(),
            statuses=[session(media_items_set=True)],
            pages=[not_ready(), not_ready(), page("a")],
        )
        flow, _, sleep, _ = make_flow(client)

        state = await run(flow)

        assert state is FlowState.READY
        assert flow.list_attempts == 3
        assert [item.id for item in flow.items] == ["a"]
        assert sleep.calls == [5.0, 2.0, 2.0]

    async def test_other_list_error_fails_without_retry(self):
        client = FakeProxyClient(
            create=session(),
            statuses=[session(media_items_set=True)],
            pages=[PickerClientError(500, "Failed to list media items")],
        )
        flow, _, _, _ = make_flow(client)

        assert await run(flow) is FlowState.FAILED
        assert client.count("list") == 1
        assert flow.error == "Error fetching media items: Failed to list media items"

    async def test_bad_request_without_code_is_not_retried(self):
        client = FakeProxyClient(
            create=session(),
            statuses=[session(media_items_set=True)],
            pages=[PickerClientError(400, "Bad Request: No session ID provided")],
        )
        flow, _, _, _ = make_flow(client)

        assert await run(flow) is FlowState.FAILED
        assert client.count("list") == 1


@pytest.mark.unit
@pytest.mark.client
class TestFailuresAndSignOut:

    async def test_no_token_signs_out_without_calls(self):
        client = FakeProxyClient()
        flow, _, _, states = make_flow(client, token=None)

        assert await run(flow) is FlowState.SIGNED_OUT
        assert client.calls == []
        assert states == [FlowState.SIGNED_OUT]

    async def test_insufficient_permissions_clears_credential(self):
        hook_calls = []
        client = FakeProxyClient(
            create=PickerClientError(403, "Insufficient permissions granted by user.", "insufficient-permissions")
        )
        flow, credentials, _, _ = make_flow(client, on_sign_out=lambda: hook_calls.append(True))

        state = await run(flow)

        assert state is FlowState.SIGNED_OUT
        assert credentials.get() is None
        assert hook_calls == [True]
        assert client.count("status") == 0

    async def test_async_sign_out_hook_is_awaited(self):
        hook_calls = []

        async def hook():
            hook_calls.append(True)

        client = FakeProxyClient(create=PickerClientError(403, "denied", "insufficient-permissions"))
        flow, _, _, _ = make_flow(client, on_sign_out=hook)

        await run(flow)

        assert hook_calls == [True]

    async def test_create_failure_keeps_credential(self):
        client = FakeProxyClient(create=PickerClientError(500, "Failed to create picker session"))
        flow, credentials, _, _ = make_flow(client)

        assert await run(flow) is FlowState.FAILED
        assert flow.error == "Failed to create picker session"
        assert credentials.get() == "tok"

    async def test_polling_error_fails(self):
        client = FakeProxyClient(create=session(), statuses=[PickerClientError(0, "Network error: refused")])
        flow, _, _, _ = make_flow(client)

        assert await run(flow) is FlowState.FAILED
        assert flow.error == "Polling error: Network error: refused"
        assert client.count("list") == 0

    async def test_sign_out_clears_everything(self):
        client = FakeProxyClient(create=session(), statuses=[session(media_items_set=True)], pages=[page("a")])
        flow, credentials, _, _ = make_flow(client)
        await run(flow)

        await flow.sign_out()

        assert flow.state is FlowState.SIGNED_OUT
        assert credentials.get() is None
        assert flow.items == []


@pytest.mark.unit
@pytest.mark.client
class TestCancellation:

    async def test_stop_ignores_late_responses(self):
        release = asyncio.Event()

        class SlowClient(FakeProxyClient):
            async def get_session_status(self, token, session_id):
                self.calls.append(("status", session_id))
                await release.wait()
                return session(media_items_set=True)

        client = SlowClient(create=session(), pages=[page("a")])
        flow, _, _, states = make_flow(client)
        task = flow.start()

        while client.count("status") == 0:
            await asyncio.sleep(0)
        await flow.stop()
        release.set()
        await asyncio.sleep(0)

        assert task.cancelled()
        assert flow.state is FlowState.POLLING
        assert FlowState.LISTING not in states
        assert client.count("list") == 0
        assert not flow.running

    async def test_restart_runs_a_fresh_session(self):
        client = FakeProxyClient(
            create=session(),
            statuses=[session(media_items_set=True), session(media_items_set=True)],
            pages=[page("a"), page("b")],
        )
        flow, _, _, _ = make_flow(client)
        await run(flow)

        await flow.restart()
        state = await flow.wait()

        assert state is FlowState.READY
        assert [item.id for item in flow.items] == ["b"]
        assert client.count("create") == 2

    async def test_start_twice_is_rejected(self):
        release = asyncio.Event()

        class BlockingClient(FakeProxyClient):
            async def create_session(self, token):
                await release.wait()
                return session()

        flow, _, _, _ = make_flow(BlockingClient())
        flow.start()

        with pytest.raises(RuntimeError):
            flow.start()

        await flow.stop()


@pytest.mark.unit
@pytest.mark.client
class TestOpenItem:

    async def test_open_item_requires_ready(self):
        flow, _, _, _ = make_flow(FakeProxyClient())

        with pytest.raises(RuntimeError):
            await flow.open_item(PickedMediaItem.model_validate({"id": "a"}))

    async def test_open_item_returns_content(self):
        content = MediaContent(content_type="image/jpeg", content_disposition="inline", data=b"jpeg")
        client = FakeProxyClient(create=session(), statuses=[session(media_items_set=True)], pages=[page("a")], media=content)
        flow, _, _, _ = make_flow(client)
        await run(flow)

        detail = await flow.open_item(flow.items[0])

        assert detail.content is content
        assert detail.error is None
        assert ("Filename", "a.jpg") in detail.rows
        assert client.calls[-1] == ("media", "a", "w2048-h2048")

    async def test_open_item_error_is_inline(self):
        client = FakeProxyClient(
            create=session(),
            statuses=[session(media_items_set=True)],
            pages=[page("a")],
            media=PickerClientError(404, "Failed to fetch media from Google Photos: Not Found"),
        )
        flow, _, _, _ = make_flow(client)
        await run(flow)

        detail = await flow.open_item(flow.items[0])

        assert detail.content is None
        assert detail.error == "Failed to load media: Failed to fetch media from Google Photos: Not Found"
        assert flow.state is FlowState.READY
