"""
Aadhaar OTP, offline XML and DigiLocker KYC link endpoints.

Single-provider flow: provider errors are raised and mapped to HTTP
statuses by the application's exception handlers.
"""

import logging

from fastapi import APIRouter, Request

from kycgate.api import audit
from kycgate.api.dependencies import CallerId, Service
from kycgate.api.schemas import (
    AadhaarOfflineVerifyRequest,
    AadhaarOtpRequest,
    AadhaarOtpVerifyRequest,
    ApiResponse,
    KycDetailsRequest,
    KycLinkRequest,
)
from kycgate.domain.validation import normalize_aadhaar

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/aadhaar", tags=["aadhaar"])


@router.post("/generate-otp", response_model=ApiResponse)
async def generate_otp(
    body: AadhaarOtpRequest,
    request: Request,
    caller_id: CallerId,
    service: Service,
) -> ApiResponse:
    """Send an OTP to the mobile number linked with the Aadhaar."""
    aadhaar_number = normalize_aadhaar(body.aadhaar_number)
    audit.note(request, payload={"aadhaarNumber": "XXXXXXXX" + aadhaar_number[-4:]})

    data = await service.aadhaar.generate_otp(aadhaar_number)

    audit.note(request, response={"requestId": data.get("requestId"), "status": data.get("status")})
    return ApiResponse(success=True, message=data["message"], data=data, provider=service.aadhaar.provider_id)


@router.post("/verify-otp", response_model=ApiResponse)
async def verify_otp(
    body: AadhaarOtpVerifyRequest,
    request: Request,
    caller_id: CallerId,
    service: Service,
) -> ApiResponse:
    """Verify the OTP and return the resident's details."""
    audit.note(request, payload={"requestId": body.request_id})

    data = await service.aadhaar.verify_otp(body.request_id, body.otp)

    verified = data["verified"]
    audit.note(request, response={"verified": verified, "status": data.get("status")}, success=verified)
    return ApiResponse(
        success=verified,
        message="Aadhaar verified successfully" if verified else "Aadhaar verification failed",
        data=data,
        error=None if verified else "OTP verification failed",
        provider=service.aadhaar.provider_id,
    )


@router.get("/details/{request_id}", response_model=ApiResponse)
async def aadhaar_details(
    request_id: str,
    request: Request,
    caller_id: CallerId,
    service: Service,
) -> ApiResponse:
    """Fetch details for a previously verified Aadhaar request."""
    audit.note(request, payload={"requestId": request_id})

    data = await service.aadhaar.fetch_details(request_id)

    return ApiResponse(success=True, message="Aadhaar details fetched", data=data, provider=service.aadhaar.provider_id)


@router.post("/offline-verify", response_model=ApiResponse)
async def verify_offline(
    body: AadhaarOfflineVerifyRequest,
    request: Request,
    caller_id: CallerId,
    service: Service,
) -> ApiResponse:
    """Verify an offline e-KYC XML document."""
    audit.note(request, payload={"xmlData": f"<{len(body.xml_data)} chars>"})

    data = await service.aadhaar.verify_offline(body.xml_data)

    audit.note(request, response={"verified": data["verified"], "status": data.get("status")})
    return ApiResponse(
        success=True, message="Offline Aadhaar verified successfully", data=data, provider=service.aadhaar.provider_id
    )


@router.post("/generate-kyc-link", response_model=ApiResponse)
async def generate_kyc_link(
    body: KycLinkRequest,
    request: Request,
    caller_id: CallerId,
    service: Service,
) -> ApiResponse:
    """Send a DigiLocker KYC link to the customer's mobile number."""
    uid = normalize_aadhaar(body.uid)
    audit.note(request, payload={"uid": "XXXXXXXX" + uid[-4:], "mobile": "XXXXXX" + body.mobile[-4:]})

    data = await service.aadhaar.generate_kyc_link(
        first_name=body.first_name,
        last_name=body.last_name,
        uid=uid,
        mobile=body.mobile,
        email_id=body.email_id,
        redirection_url=body.redirection_url,
    )

    audit.note(request, response={"transactionId": data.get("transactionId")})
    return ApiResponse(
        success=True, message="KYC link sent to mobile", data=data, provider=service.aadhaar.provider_id
    )


@router.post("/kyc-details", response_model=ApiResponse)
async def kyc_details(
    body: KycDetailsRequest,
    request: Request,
    caller_id: CallerId,
    service: Service,
) -> ApiResponse:
    """DigiLocker details once the customer has completed the KYC link."""
    audit.note(request, payload={"transactionId": body.transaction_id})

    data = await service.aadhaar.fetch_kyc_details(body.transaction_id)

    succeeded = data["success"]
    audit.note(request, response={"success": succeeded}, success=succeeded)
    return ApiResponse(
        success=succeeded,
        message="KYC details retrieved" if succeeded else "KYC details not available",
        data=data,
        error=None if succeeded else "KYC not completed or failed",
        provider=service.aadhaar.provider_id,
    )
