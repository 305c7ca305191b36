"""
Shared FastAPI dependencies: API key gate and the KYC service instance.
"""

import logging
import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from kycgate.config import Settings, get_settings
from kycgate.services import KycService

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def mask_secret(value: str) -> str:
    """Keep the first four characters of a credential for log correlation."""
    return value[:4] + "***" if len(value) > 4 else "***"


async def require_api_key(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: Annotated[str | None, Security(api_key_header)] = None,
) -> str:
    """
    Reject requests without a valid X-API-Key header.

    When no API_KEY is configured only the header's presence is checked.

    Returns:
        Masked caller identifier for the audit log
    """
    if not api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="API key is required")

    if settings.api_key and not secrets.compare_digest(api_key, settings.api_key):
        logger.warning(f"Rejected invalid API key {mask_secret(api_key)} on {request.url.path}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

    caller_id = mask_secret(api_key)
    request.state.caller_id = caller_id
    return caller_id


# Service instance (created on first use, closed on shutdown)
_kyc_service: KycService | None = None


def get_kyc_service() -> KycService:
    """Get or create the KYC service instance."""
    global _kyc_service
    if _kyc_service is None:
        _kyc_service = KycService(get_settings())
    return _kyc_service


async def close_kyc_service() -> None:
    """Release the shared HTTP client."""
    global _kyc_service
    if _kyc_service is not None:
        await _kyc_service.aclose()
        _kyc_service = None


CallerId = Annotated[str, Depends(require_api_key)]
Service = Annotated[KycService, Depends(get_kyc_service)]
