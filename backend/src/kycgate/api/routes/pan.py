"""
PAN verification endpoints.

A negative verdict is a normal 200 response with success=false; only
malformed input (400) and auth failures (401) use error statuses.
"""

import logging

from fastapi import APIRouter, Request

from kycgate.api import audit
from kycgate.api.dependencies import CallerId, Service
from kycgate.api.schemas import ApiResponse, PanVerifyRequest
from kycgate.domain.validation import mask_pan

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pan", tags=["pan"])


@router.post("/verify", response_model=ApiResponse)
@router.post("/validate", response_model=ApiResponse)
async def verify_pan(
    body: PanVerifyRequest,
    request: Request,
    caller_id: CallerId,
    service: Service,
) -> ApiResponse:
    """
    Verify a PAN against the claimed holder name.

    Providers are tried in the configured order; the first definitive
    answer (match or mismatch) is returned.
    """
    audit.note(request, payload={"panNumber": mask_pan(body.pan_number), "name": body.name})

    result = await service.verify_claim(body.pan_number, body.name, body.dob)

    data = {**result.details, "providersTried": result.providers_tried} if result.details else None
    response = ApiResponse.from_result(result, data=data)
    audit.note(request, response={"success": response.success, "provider": response.provider}, success=response.success)
    return response
