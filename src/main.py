import os
import uuid

import uvicorn

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging

from core.config import settings
from core.container import get_container
from core.exceptions.picker import MissingCredential, MissingParameter, PickerProxyError
from core.logging_config import configure_logging, trace_id_ctx
from api_v1 import router as router_v1
from api_v1.picker.views import (
    missing_credential_handler,
    missing_parameter_handler,
    picker_proxy_error_handler,
    proxy_media_preflight_middleware,
)

configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Photo Picker proxy | upstream=%s", settings.picker.base_url)
    yield
    await get_container().picker_api_service().close()
    logger.info("Shutting down Photo Picker proxy")


app = FastAPI(lifespan=lifespan)
app.include_router(router=router_v1, prefix=settings.api_v1_prefix)

app.add_exception_handler(MissingCredential, missing_credential_handler)
app.add_exception_handler(MissingParameter, missing_parameter_handler)
app.add_exception_handler(PickerProxyError, picker_proxy_error_handler)

# Middleware added last runs first: trace id, then media preflight, then CORS.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.allow_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Content-Disposition", "X-Trace-Id"],
)
app.middleware("http")(proxy_media_preflight_middleware)


@app.middleware("http")
async def assign_trace_id(request: Request, call_next):
    trace_id = request.headers.get("X-Trace-Id") or uuid.uuid4().hex
    token = trace_id_ctx.set(trace_id)
    try:
        response = await call_next(request)
    finally:
        trace_id_ctx.reset(token)
    response.headers["X-Trace-Id"] = trace_id
    return response


if __name__ == "__main__":
    port = int(os.getenv("PORT", "4291"))
    host = os.getenv("HOST", "0.0.0.0")  # Allow external connections

    logger.info(
        "Starting Photo Picker proxy server | host=%s | port=%s | environment=%s",
        host,
        port,
        os.getenv("ENVIRONMENT", "development"),
    )

    uvicorn.run("main:app", host=host, port=port, reload=True)
