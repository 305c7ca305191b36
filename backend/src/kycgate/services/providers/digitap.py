"""
Digitap integrations.

Cheque OCR authenticates with a static Basic credential and runs inside
the fallback orchestrator. Aadhaar OTP uses an OAuth bearer token from
the shared token cache and is called directly: a multi-step OTP flow
has no second provider to fall back to, so its errors are raised.
DigiLocker KYC link calls send the bare base64 credential.
"""

import logging
from typing import Any

import httpx

from kycgate.domain.errors import ConfigurationMissingError, ProviderRejectedError, TransportFailureError
from kycgate.domain.models import ChequeOcrRequest, ProviderAttemptResult
from kycgate.services.tokens import TokenCache, basic_credential, client_credentials_exchange

from .base import ProviderAdapter, response_json, send, snippet, unstructured

logger = logging.getLogger(__name__)

DIGITAP_PROVIDER_ID = "digitap"
KYC_SERVICE_ID = "4"


class DigitapChequeAdapter(ProviderAdapter[ChequeOcrRequest]):
    """
    Structured cheque OCR.

    Digitap reports failures as `{"status": "failure", ...}` bodies, on
    both 2xx and non-2xx statuses; those are definitive rejections.
    """

    provider_id = DIGITAP_PROVIDER_ID

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        client_id: str | None,
        client_secret: str | None,
        timeout: float = 60.0,
    ) -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.client_id and self.client_secret)

    async def _attempt(self, payload: ChequeOcrRequest) -> ProviderAttemptResult:
        artifact = payload.artifact
        form = {
            "clientRefId": payload.client_ref_id,
            "isCompleteImage": "yes" if payload.is_complete_image else "no",
        }
        if payload.account_holder_name:
            form["accountHolderName"] = payload.account_holder_name

        response = await send(
            self.http,
            "POST",
            f"{self.base_url}/ocr/v1/cheque",
            provider_id=self.provider_id,
            timeout=self.timeout,
            data=form,
            files={"imageUrl": ("cheque.jpg", artifact.content, artifact.declared_media_type)},
            headers={"Authorization": f"Basic {basic_credential(self.client_id, self.client_secret)}"},
        )
        data = response_json(response)
        logger.debug(f"Digitap cheque response ({response.status_code}): {snippet(data)}")

        if not isinstance(data, dict):
            return self.inconclusive(unstructured(response), raw_payload=data)

        if data.get("status") == "failure":
            details = {
                "status": data.get("status"),
                "statusCode": data.get("statusCode", response.status_code),
                "error": data.get("error"),
                "ocrReqId": data.get("ocrReqId"),
                "clientRefId": data.get("clientRefId", payload.client_ref_id),
            }
            return self.reject(data, str(data.get("error") or "Cheque OCR failed"), details=details)

        if not response.is_success:
            return self.inconclusive(unstructured(response), raw_payload=data)

        details = {
            "status": data.get("status", "success"),
            "statusCode": data.get("statusCode", response.status_code),
            "result": data.get("result"),
        }
        return self.success(data, details=details, message="Cheque OCR completed")


class DigitapAadhaarClient:
    """
    Aadhaar OTP, offline XML verification and DigiLocker KYC links.

    Example:
        client = DigitapAadhaarClient(http, tokens, base_url, client_id, client_secret)
        otp = await client.generate_otp("123412341234")
        verified = await client.verify_otp(otp["requestId"], "123456")
    """

    provider_id = DIGITAP_PROVIDER_ID

    def __init__(
        self,
        http: httpx.AsyncClient,
        tokens: TokenCache,
        base_url: str,
        client_id: str | None,
        client_secret: str | None,
        redirect_url: str | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.http = http
        self.tokens = tokens
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_url = redirect_url
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.client_id and self.client_secret)

    async def generate_otp(self, aadhaar_number: str) -> dict[str, Any]:
        """Send an OTP to the mobile number linked to the Aadhaar number."""
        body: dict[str, Any] = {"aadhaar_number": aadhaar_number}
        if self.redirect_url:
            body["redirect_url"] = self.redirect_url

        data = await self._request("POST", "/aadhaar/v1/generate-otp", json=body)
        return {
            "requestId": data.get("request_id") or data.get("ref_id"),
            "status": data.get("status") or "OTP_SENT",
            "message": data.get("message") or "OTP sent successfully",
        }

    async def verify_otp(self, request_id: str, otp: str) -> dict[str, Any]:
        """Submit the OTP and return the resident's demographic record."""
        data = await self._request(
            "POST", "/aadhaar/v1/verify-otp", json={"request_id": request_id, "otp": otp}
        )
        return {
            "status": data.get("status"),
            "name": data.get("name"),
            "dob": data.get("dob"),
            "gender": data.get("gender"),
            "address": data.get("address"),
            "maskedAadhaarNumber": data.get("masked_aadhaar_number"),
            "verified": bool(data.get("verified", data.get("status") == "SUCCESS")),
        }

    async def fetch_details(self, request_id: str) -> dict[str, Any]:
        """Fetch details for a previously verified request."""
        data = await self._request("GET", f"/aadhaar/v1/details/{request_id}")
        return {
            "name": data.get("name"),
            "dob": data.get("dob"),
            "gender": data.get("gender"),
            "address": data.get("address"),
            "state": data.get("state"),
            "district": data.get("district"),
        }

    async def verify_offline(self, xml_data: str) -> dict[str, Any]:
        """Verify a signed offline e-KYC XML document."""
        data = await self._request("POST", "/aadhaar/v1/offline-verify", json={"xml_data": xml_data})
        return {
            "status": data.get("status"),
            "name": data.get("name"),
            "dob": data.get("dob"),
            "gender": data.get("gender"),
            "address": data.get("address"),
            "maskedAadhaarNumber": data.get("masked_aadhaar"),
            "verified": True,
        }

    async def generate_kyc_link(
        self,
        *,
        first_name: str,
        last_name: str,
        uid: str,
        mobile: str,
        redirection_url: str,
        email_id: str | None = None,
    ) -> dict[str, Any]:
        """Have Digitap SMS a DigiLocker KYC link to the customer."""
        body = {
            "serviceId": KYC_SERVICE_ID,
            "uid": uid,
            "firstName": first_name,
            "lastName": last_name,
            "mobile": mobile,
            "emailId": email_id,
            "isSendOtp": True,
            "isHideExplanationScreen": False,
            "redirectionUrl": redirection_url,
        }
        response, data = await self._kyc_post("/ent/v1/kyc/generate-url", body)
        if not response.is_success:
            message = data.get("message") or f"Failed to generate KYC link ({response.status_code})"
            raise ProviderRejectedError(str(message), self.provider_id, payload=data)

        model = data.get("model") or {}
        return {
            "transactionId": model.get("transactionId"),
            "url": model.get("url"),
            "kycUrl": model.get("kycUrl"),
            "raw": data,
        }

    async def fetch_kyc_details(self, transaction_id: str) -> dict[str, Any]:
        """
        DigiLocker details for a completed KYC link.

        Pending or failed KYC is reported through `success`, not raised.
        """
        _, data = await self._kyc_post("/ent/v1/kyc/get-digilocker-details", {"transactionId": transaction_id})
        success = (
            str(data.get("code")) == "200"
            or data.get("success") is True
            or str(data.get("status", "")).lower() == "success"
        )
        return {"success": success, "transactionId": transaction_id, "raw": data}

    async def _kyc_post(self, path: str, body: dict[str, Any]) -> tuple[httpx.Response, dict[str, Any]]:
        if not self.configured:
            raise ConfigurationMissingError("Digitap client credentials are not configured", self.provider_id)

        response = await send(
            self.http,
            "POST",
            f"{self.base_url}{path}",
            provider_id=self.provider_id,
            timeout=self.timeout,
            json=body,
            headers={
                "Authorization": basic_credential(self.client_id, self.client_secret),
                "accept": "*/*",
            },
        )
        data = response_json(response)
        logger.debug(f"Digitap {path} response ({response.status_code}): {snippet(data)}")
        if not isinstance(data, dict):
            raise TransportFailureError(unstructured(response), self.provider_id)
        return response, data

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """
        Authenticated call; returns the JSON body.

        Raises:
            ConfigurationMissingError: Client credentials absent
            TransportFailureError: Network failure, token failure or unstructured error
            ProviderRejectedError: Digitap answered with a structured error
        """
        if not self.configured:
            raise ConfigurationMissingError("Digitap client credentials are not configured", self.provider_id)

        token = await self.tokens.get_token(
            self.provider_id,
            client_credentials_exchange(
                self.http,
                f"{self.base_url}/auth/token",
                self.client_id,
                self.client_secret,
                self.provider_id,
                timeout=self.timeout,
            ),
        )
        response = await send(
            self.http,
            method,
            f"{self.base_url}{path}",
            provider_id=self.provider_id,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {token}"},
            **kwargs,
        )
        data = response_json(response)

        if response.status_code == 401:
            # Token revoked server-side; next call re-authenticates
            self.tokens.invalidate(self.provider_id)

        if not isinstance(data, dict):
            raise TransportFailureError(unstructured(response), self.provider_id)

        if not response.is_success or data.get("status") == "failure":
            message = data.get("message") or data.get("error") or f"Digitap request failed ({response.status_code})"
            logger.warning(f"Digitap {path} rejected: {message}")
            raise ProviderRejectedError(str(message), self.provider_id, payload=data)

        return data
