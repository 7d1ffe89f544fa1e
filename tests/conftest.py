"""
Pytest configuration and shared fixtures for all tests.

This file provides:
- A scripted stand-in for the Google Photos Picker API forwarder
- FastAPI test clients wired to it through the DI container
- Test data factories for picker sessions and media items
"""

import os
import sys
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from dependency_injector import providers
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport
from faker import Faker

from core.container import get_container, reset_container
from core.services.picker_api_service import PickerAPIService
from main import app

fake = Faker()

PICKER_TEST_BASE_URL = "https://picker.test/v1"


# ============================================================================
# FAKE UPSTREAM
# ============================================================================


class FakeStreamResult:
    def __init__(self, status=200, content_type="image/jpeg", content_disposition="inline", chunks=None):
        self.status = status
        self.content_type = content_type
        self.content_disposition = content_disposition
        self._chunks = chunks if chunks is not None else [b"data"]
        self.closed = False
        self.close_calls = 0

    def iter_bytes(self):
        async def generator():
            try:
                for chunk in self._chunks:
                    yield chunk
            finally:
                self.closed = True
        return generator()

    async def close(self):
        self.close_calls += 1
        self.closed = True


class FakePickerAPIService(PickerAPIService):
    """Forwarder double: replays queued outcomes and records every call.

    Each queued outcome is either a payload to return or an exception to raise.
    """

    def __init__(self):
        super().__init__(base_url=PICKER_TEST_BASE_URL, timeout_seconds=1)
        self.json_outcomes: List[Any] = []
        self.stream_outcomes: List[Any] = []
        self.json_calls: List[Dict[str, Any]] = []
        self.stream_calls: List[Dict[str, Any]] = []
        self.closed = False

    def queue_json(self, *outcomes):
        self.json_outcomes.extend(outcomes)

    def queue_stream(self, *outcomes):
        self.stream_outcomes.extend(outcomes)

    async def forward_json(self, url: str, method: str, token: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self.json_calls.append({"url": url, "method": method, "token": token, "params": params})
        outcome = self.json_outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def forward_stream(self, url: str, token: str):
        self.stream_calls.append({"url": url, "token": token})
        outcome = self.stream_outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_picker_service() -> FakePickerAPIService:
    return FakePickerAPIService()


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================


@pytest.fixture
def override_picker_service(fake_picker_service):
    """Route the container's forwarder to the fake for the duration of a test."""
    reset_container()
    container = get_container()
    container.picker_api_service.override(providers.Object(fake_picker_service))
    yield fake_picker_service
    container.picker_api_service.reset_override()
    reset_container()


@pytest.fixture
def api_client(override_picker_service) -> TestClient:
    """Sync FastAPI test client for testing endpoints."""
    return TestClient(app)


@pytest.fixture
async def async_client(override_picker_service) -> AsyncGenerator[AsyncClient, None]:
    """Async FastAPI test client for testing async endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": "Bearer test-access-token"}


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================


@pytest.fixture
def picker_session_factory():
    """Factory for upstream picker session payloads."""
    def _create_session(session_id: str = None, media_items_set: bool = False, poll_interval: str = "5s", **kwargs):
        return {
            "id": session_id or fake.uuid4(),
            "pickerUri": kwargs.get("picker_uri", f"https://photos.google.com/picker/{fake.pystr()}"),
            "pollingConfig": {"pollInterval": poll_interval, "timeoutIn": kwargs.get("timeout_in", "1799s")},
            "expireTime": kwargs.get("expire_time", "2030-01-01T00:00:00Z"),
            "mediaItemsSet": media_items_set,
        }

    return _create_session


@pytest.fixture
def media_item_factory():
    """Factory for upstream picked media item payloads."""
    def _create_item(media_type: str = "PHOTO", **kwargs):
        metadata: Dict[str, Any] = {
            "width": kwargs.get("width", 4032),
            "height": kwargs.get("height", 3024),
            "cameraMake": kwargs.get("camera_make", "Google"),
            "cameraModel": kwargs.get("camera_model", "Pixel 8"),
            "creationTime": kwargs.get("creation_time", "2024-05-01T12:30:00Z"),
        }
        if media_type == "PHOTO":
            metadata["photoMetadata"] = kwargs.get(
                "photo_metadata",
                {"focalLength": 6.9, "apertureFNumber": 1.68, "isoEquivalent": 50, "exposureTime": "0.001s"},
            )
        else:
            metadata["videoMetadata"] = kwargs.get("video_metadata", {"fps": 30, "processingStatus": "READY"})
        return {
            "id": kwargs.get("item_id", fake.uuid4()),
            "createTime": "2024-05-01T12:31:00Z",
            "type": media_type,
            "mediaFile": {
                "baseUrl": kwargs.get("base_url", f"https://lh3.googleusercontent.com/ppa/{fake.pystr()}"),
                "mimeType": kwargs.get("mime_type", "image/jpeg" if media_type == "PHOTO" else "video/mp4"),
                "filename": kwargs.get("filename", fake.file_name(extension="jpg" if media_type == "PHOTO" else "mp4")),
                "mediaFileMetadata": metadata,
            },
        }

    return _create_item


@pytest.fixture
def stream_result_factory():
    """Factory for streamed media results handed back by the fake forwarder."""
    return FakeStreamResult
