"""Picker proxy domain exceptions."""

from __future__ import annotations

from typing import Any, Dict, Optional


class MissingCredential(Exception):
    """Raised when a request carries no bearer token."""


class MissingParameter(Exception):
    """Raised when a required query parameter is absent."""

    def __init__(self, name: str, message: str):
        self.name = name
        self.message = message
        super().__init__(message)


class InvalidParameter(MissingParameter):
    """Raised when a query parameter is present but malformed."""


class UpstreamError(Exception):
    """Non-success HTTP status returned by the Picker API."""

    def __init__(self, status_code: int, reason: str, raw_body: str):
        self.status_code = status_code
        self.reason = reason
        self.raw_body = raw_body
        super().__init__(f"Upstream returned {status_code} {reason}")


class TransportError(Exception):
    """Network failure or unreadable payload while talking to the Picker API."""


class PickerProxyError(Exception):
    """Classified failure rendered by the API layer as a JSON error body."""

    INSUFFICIENT_PERMISSIONS = "insufficient-permissions"
    MEDIA_NOT_READY = "media-not-ready"

    def __init__(
        self,
        status_code: int,
        error: str,
        code: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.status_code = status_code
        self.error = error
        self.code = code
        self.details = details
        super().__init__(error)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error}
        if self.code is not None:
            payload["code"] = self.code
        if self.details is not None:
            payload["details"] = self.details
        return payload
