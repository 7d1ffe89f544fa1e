"""Single-slot durable storage for the user's bearer token."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

CREDENTIAL_KEY = "googleAccessToken"


class CredentialStore(Protocol):
    def get(self) -> Optional[str]:
        ...

    def set(self, token: str) -> None:
        ...

    def clear(self) -> None:
        ...


class InMemoryCredentialStore:
    """Credential slot that lives as long as the process."""

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileCredentialStore:
    """Credential slot persisted as ``{"googleAccessToken": ...}`` in a JSON file."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def get(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable credential file, ignoring | path=%s | error=%s", self.path, exc)
            return None
        token = data.get(CREDENTIAL_KEY) if isinstance(data, dict) else None
        return token or None

    def set(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(json.dumps({CREDENTIAL_KEY: token}))
        # The creation mode does not apply to a file that already existed.
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.debug("Could not restrict credential file permissions | path=%s", self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
