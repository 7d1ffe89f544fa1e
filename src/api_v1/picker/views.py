"""Authenticated proxy endpoints for the Google Photos Picker API."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from core.config import settings
from core.container import Container, get_container
from core.exceptions.picker import MissingCredential, MissingParameter, PickerProxyError
from core.utils.auth import extract_bearer_token
from core.schemas.picker import ErrorResponse, MediaItemsPage, PickerSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Picker"])

PICKER_PATH_PREFIX = f"{settings.api_v1_prefix}/picker"
PROXY_MEDIA_PATH = f"{PICKER_PATH_PREFIX}/proxy-media"

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "3600",
}


async def missing_credential_handler(request: Request, exc: MissingCredential):
    logger.error("No access token provided | path=%s", request.url.path)
    return JSONResponse(status_code=401, content={"error": str(exc)})


async def missing_parameter_handler(request: Request, exc: MissingParameter):
    logger.error("Missing query parameter | path=%s | parameter=%s", request.url.path, exc.name)
    return JSONResponse(status_code=400, content={"error": exc.message})


async def picker_proxy_error_handler(request: Request, exc: PickerProxyError):
    logger.warning(
        "Picker proxy request failed | path=%s | status=%s | code=%s | error=%s",
        request.url.path,
        exc.status_code,
        exc.code,
        exc.error,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@router.post(
    "/create-session",
    responses={200: {"model": PickerSession}, 403: {"model": ErrorResponse}, **ERROR_RESPONSES},
)
async def create_picker_session(
    authorization: str | None = Header(None, alias="Authorization"),
    container: Container = Depends(get_container),
):
    token = extract_bearer_token(authorization)
    use_case = container.create_picker_session_use_case()
    session_data = await use_case.execute(token)
    return JSONResponse(content=session_data)


@router.get(
    "/get-session-status",
    responses={200: {"model": PickerSession}, **ERROR_RESPONSES},
)
async def get_picker_session_status(
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
    authorization: str | None = Header(None, alias="Authorization"),
    container: Container = Depends(get_container),
):
    token = extract_bearer_token(authorization)
    use_case = container.get_picker_session_status_use_case()
    session_data = await use_case.execute(token, session_id)
    return JSONResponse(content=session_data)


@router.get(
    "/list-media-items",
    responses={200: {"model": MediaItemsPage}, **ERROR_RESPONSES},
)
async def list_picked_media_items(
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
    page_size: Optional[str] = Query(default=None, alias="pageSize"),
    page_token: Optional[str] = Query(default=None, alias="pageToken"),
    authorization: str | None = Header(None, alias="Authorization"),
    container: Container = Depends(get_container),
):
    token = extract_bearer_token(authorization)
    use_case = container.list_picked_media_items_use_case()
    items_data = await use_case.execute(token, session_id, page_size=page_size, page_token=page_token)
    return JSONResponse(content=items_data)


async def proxy_media_preflight_middleware(request: Request, call_next):
    """Answer CORS preflight for the media proxy with 204 ahead of CORSMiddleware."""
    if request.method == "OPTIONS" and request.url.path.rstrip("/") == PROXY_MEDIA_PATH:
        return Response(status_code=204, headers=PREFLIGHT_HEADERS)
    return await call_next(request)


# NOTE: browsers hit this endpoint straight from <img>/<video> src, so the
# token may arrive as ?accessToken= instead of a header.
@router.get(
    "/proxy-media",
    responses={200: {"content": {"image/*": {}, "video/*": {}}}, **ERROR_RESPONSES},
)
async def proxy_media(
    base_url: Optional[str] = Query(default=None, alias="baseUrl"),
    media_type: Optional[str] = Query(default=None, alias="type"),
    size: Optional[str] = Query(default=None),
    access_token: Optional[str] = Query(default=None, alias="accessToken"),
    authorization: str | None = Header(None, alias="Authorization"),
    container: Container = Depends(get_container),
):
    token = extract_bearer_token(authorization, access_token)
    use_case = container.proxy_media_item_use_case()
    result = await use_case.execute(token, base_url, media_type, size)

    logger.debug("Proxy media streaming | type=%s | content_type=%s", media_type, result.content_type)
    # Closes the upstream response even if streaming never starts.
    background = BackgroundTask(result.close) if result.close is not None else None
    return StreamingResponse(
        result.content_stream,
        media_type=result.content_type,
        headers=result.headers,
        background=background,
    )
