"""
Health check endpoint.

Reports which providers have credentials, for monitoring dashboards.
"""

from fastapi import APIRouter

from kycgate import __version__
from kycgate.api.dependencies import Service
from kycgate.api.schemas import HealthResponse
from kycgate.infrastructure.database import is_enabled

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(service: Service) -> HealthResponse:
    """Service status plus per-provider configuration flags."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        audit_log="enabled" if is_enabled() else "disabled",
        providers=service.provider_status(),
    )
