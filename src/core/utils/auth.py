"""Bearer token extraction for inbound proxy requests."""

from __future__ import annotations

from typing import Optional

from ..exceptions.picker import MissingCredential

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str], query_token: Optional[str] = None) -> str:
    """Return the bearer token from the Authorization header or the query fallback.

    The token is treated as opaque; validity is the Picker API's concern.
    """
    token = None
    if authorization and authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
    if not token and query_token:
        token = query_token.strip()
    if not token:
        raise MissingCredential("Unauthorized: No access token provided")
    return token
