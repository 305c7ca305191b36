"""
Pydantic schemas for API request/response validation.

Request bodies accept the camelCase names existing integrations send
(panNumber, gstNumber...) as well as snake_case.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kycgate.domain.models import CanonicalResult


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# =============================================================================
# Request Schemas
# =============================================================================

class PanVerifyRequest(_Request):
    """PAN number plus the name the caller claims is on it."""
    pan_number: str = Field(..., alias="panNumber", description="10-character PAN")
    name: str = Field(default="", description="Claimed holder name")
    dob: str | None = Field(default=None, description="Date of birth (DD/MM/YYYY), informational")


class GstVerifyRequest(_Request):
    """GSTIN lookup."""
    gst_number: str = Field(..., alias="gstNumber", description="15-character GSTIN")


class AadhaarOtpRequest(_Request):
    """Start an Aadhaar OTP flow."""
    aadhaar_number: str = Field(..., alias="aadhaarNumber", description="12-digit Aadhaar number")


class AadhaarOtpVerifyRequest(_Request):
    """Complete an Aadhaar OTP flow."""
    request_id: str = Field(..., alias="requestId", min_length=1)
    otp: str = Field(..., min_length=4, max_length=8, pattern=r"^\d+$")


class AadhaarOfflineVerifyRequest(_Request):
    """Offline e-KYC XML from the Aadhaar QR code or paperless download."""
    xml_data: str = Field(..., alias="xmlData", min_length=1)


class KycLinkRequest(_Request):
    """Customer details for a DigiLocker KYC link sent by SMS."""
    first_name: str = Field(..., alias="firstName", min_length=1)
    last_name: str = Field(..., alias="lastName", min_length=1)
    uid: str = Field(..., description="12-digit Aadhaar number")
    mobile: str = Field(..., pattern=r"^\d{10}$")
    email_id: str | None = Field(default=None, alias="emailId")
    redirection_url: str = Field(..., alias="redirectionUrl", min_length=1)


class KycDetailsRequest(_Request):
    transaction_id: str = Field(..., alias="transactionId", min_length=1)


# =============================================================================
# Response Schemas
# =============================================================================

class ApiResponse(BaseModel):
    """
    Envelope shared by every endpoint.

    `provider` is the provider that produced the answer, or "NONE" when
    every provider in the chain came back inconclusive.
    """
    success: bool
    message: str
    data: dict[str, Any] | list[Any] | None = None
    error: str | None = None
    provider: str | None = None

    @classmethod
    def from_result(cls, result: CanonicalResult, data: dict[str, Any] | None = None) -> "ApiResponse":
        """Wrap an orchestrator result; `data` defaults to the provider details."""
        message = result.message or ("Success" if result.verified else "Failed")
        return cls(
            success=result.verified,
            message=message,
            data=data if data is not None else (result.details or None),
            error=None if result.verified else message,
            provider=result.provider_used,
        )


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    audit_log: str
    providers: dict[str, bool] = {}
