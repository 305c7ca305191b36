"""
GST verification endpoint.
"""

from fastapi import APIRouter, Request

from kycgate.api import audit
from kycgate.api.dependencies import CallerId, Service
from kycgate.api.schemas import ApiResponse, GstVerifyRequest

router = APIRouter(prefix="/gst", tags=["gst"])


@router.post("/verify", response_model=ApiResponse)
async def verify_gst(
    body: GstVerifyRequest,
    request: Request,
    caller_id: CallerId,
    service: Service,
) -> ApiResponse:
    """Look up a GSTIN and return the registered business details."""
    audit.note(request, payload={"gstNumber": body.gst_number})

    result = await service.verify_gst(body.gst_number)

    response = ApiResponse.from_result(result)
    audit.note(request, response={"success": response.success, "provider": response.provider}, success=response.success)
    return response
