"""Health check endpoint for load balancers and uptime probes."""

from datetime import datetime, timezone

from fastapi import APIRouter

from core.config import settings

from .schemas import HealthCheckResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health():
    """The proxy is stateless, so being able to answer means it is healthy."""
    return HealthCheckResponse(
        healthy=True,
        service=settings.service_name,
        timestamp=datetime.now(timezone.utc),
        upstream=settings.picker.base_url,
    )
