"""Health and status endpoints.

Public endpoints for health checks and provider status.
No authentication required.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from oidc_adapter.version import __version__

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Health status (ok, degraded, down)")
    version: str = Field(description="Application version")


class StatusResponse(BaseModel):
    """Provider status response."""

    status: str = Field(description="System status")
    version: str = Field(description="Application version")
    provider: str = Field(description="Provider name")
    provider_state: str = Field(description="Provider lifecycle state")
    issuer: str | None = Field(default=None, description="Discovered issuer")


@router.get("/health")
async def health() -> HealthResponse:
    """Health check endpoint.

    Returns:
        HealthResponse with status and version
    """
    return HealthResponse(
        status="ok",
        version=__version__,
    )


@router.get("/status")
async def status(request: Request) -> StatusResponse:
    """Provider status endpoint.

    Reports whether discovery has completed and which issuer was found.

    Returns:
        StatusResponse with provider details
    """
    provider = request.app.state.provider
    client = provider.client
    return StatusResponse(
        status="ok" if client else "degraded",
        version=__version__,
        provider=provider.get_provider_name(),
        provider_state=provider.state.value,
        issuer=client.metadata.issuer if client else None,
    )
