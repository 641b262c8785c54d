"""Health check data models."""

from datetime import datetime, timezone
from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """Health status response for the region inventory server."""

    status: str = Field(
        ...,
        description="Overall health status: 'healthy' or 'degraded'",
        examples=["healthy"]
    )
    version: str = Field(
        ...,
        description="Version of the server",
        examples=["0.1.0"]
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when health check was performed"
    )
    configured_regions: int = Field(
        default=0,
        ge=0,
        description="Number of regions in the region configuration"
    )
    config_writable: bool = Field(
        ...,
        description="Whether the region configuration file can be written"
    )
