"""
Response models for infrastructure endpoints (root, health, readiness).
"""

from typing import Literal, Optional

from pydantic import Field

from ._strict_base import StrictModel


class RootResponse(StrictModel):
    """Response for root endpoint."""

    message: str = Field(description="Welcome message")
    version: str = Field(description="API version")
    docs: str = Field(description="Documentation URL")
    environment: str = Field(description="Environment name")


class HealthResponse(StrictModel):
    """Response for health check endpoint."""

    status: str = Field(description="Health status")
    service: str = Field(description="Service name")
    version: str = Field(description="API version")
    environment: str = Field(description="Environment name")
    timestamp: str = Field(description="UTC ISO8601Z timestamp of the health response")


class ReadyProbeResponse(StrictModel):
    """Response body for /ready endpoint."""

    status: Literal["ok", "db_not_ready"] = Field(description="Overall readiness status")
    active_policy_version: Optional[int] = Field(
        default=None, description="Version of the active cancellation policy, if published"
    )
