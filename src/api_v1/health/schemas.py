"""
Pydantic v2 schemas for health check API endpoints.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class HealthCheckResponse(BaseModel):
    """Response for health check endpoints"""
    model_config = ConfigDict()

    healthy: bool = Field(description="Overall health status")
    service: str = Field(description="Service name")
    timestamp: datetime = Field(description="Health check timestamp")
    upstream: str = Field(description="Picker API base URL the proxy forwards to")
