"""
Zoop adapters: PAN advance verification with name match, and GSTIN lookup.

Zoop answers every request with a `response_code`; "100" means the
lookup succeeded. Anything else that still carries a response_code is a
structured negative answer.
"""

import logging
import uuid
from typing import Any, TypeVar

import httpx

from kycgate.domain.models import ExtractedField, ExtractedFields, ProviderAttemptResult, VerificationClaim

from .base import ProviderAdapter, response_json, send, snippet, unstructured

logger = logging.getLogger(__name__)

SUCCESS_CODE = "100"
PAN_CONSENT_TEXT = "I hereby declare my consent agreement for fetching my information via ZOOP API"
GST_CONSENT_TEXT = "I hereby declare my consent agreement for fetching my information via ZOOP API."


def _score(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


P = TypeVar("P")


class _ZoopAdapter(ProviderAdapter[P]):
    """Shared credentials and request plumbing for Zoop endpoints."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        url: str | None,
        api_key: str | None,
        app_id: str | None,
        timeout: float = 15.0,
    ) -> None:
        self.http = http
        self.url = url
        self.api_key = api_key
        self.app_id = app_id
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.url and self.api_key and self.app_id)

    async def _post(self, data: dict[str, Any]) -> tuple[httpx.Response, Any]:
        body = {"mode": "sync", "data": data, "task_id": str(uuid.uuid4())}
        response = await send(
            self.http,
            "POST",
            self.url,
            provider_id=self.provider_id,
            timeout=self.timeout,
            json=body,
            headers={"api-key": self.api_key, "app-id": self.app_id},
        )
        parsed = response_json(response)
        logger.debug(f"{self.provider_id} response ({response.status_code}): {snippet(parsed)}")
        return response, parsed


class ZoopPanAdapter(_ZoopAdapter[VerificationClaim]):
    """PAN verification with Zoop's name match score."""

    provider_id = "zoop"

    def __init__(self, *args: Any, min_name_match_score: float = 80.0, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.min_name_match_score = min_name_match_score

    async def _attempt(self, payload: VerificationClaim) -> ProviderAttemptResult:
        response, data = await self._post({
            "customer_pan_number": payload.document_number,
            "pan_holder_name": payload.claimed_name.upper(),
            "consent": "Y",
            "consent_text": PAN_CONSENT_TEXT,
        })
        if not isinstance(data, dict) or "response_code" not in data:
            return self.inconclusive(unstructured(response), raw_payload=data)

        result = data.get("result") or {}
        if str(data["response_code"]) == SUCCESS_CODE and result.get("pan_status") == "VALID":
            score = _score(result.get("name_match_score"))
            if score < self.min_name_match_score:
                return self.reject(data, f"Name match too low ({score:g}%)")

            details = {
                "pan": result.get("pan_number"),
                "name": result.get("name_on_card"),
                "firstName": result.get("user_first_name"),
                "middleName": result.get("user_middle_name"),
                "lastName": result.get("user_last_name"),
                "typeOfHolder": result.get("pan_type"),
                "aadhaarSeedingStatus": result.get("aadhaar_seeding_status"),
                "nameMatchScore": score,
            }
            fields = ExtractedFields(
                document_number=ExtractedField(value=result.get("pan_number") or payload.document_number),
                name=ExtractedField(value=result["name_on_card"]) if result.get("name_on_card") else None,
            )
            return self.success(data, fields=fields, details=details, message="PAN verified successfully")

        return self.reject(data, data.get("response_message") or "PAN not valid")


class ZoopGstAdapter(_ZoopAdapter[str]):
    """GSTIN lookup including contact info."""

    provider_id = "zoop_gst"

    def __init__(self, *args: Any, financial_year: str = "2024-25", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.financial_year = financial_year

    async def _attempt(self, payload: str) -> ProviderAttemptResult:
        response, data = await self._post({
            "business_gstin_number": payload,
            "contact_info": True,
            "financial_year": self.financial_year,
            "consent": "Y",
            "consent_text": GST_CONSENT_TEXT,
        })
        if not isinstance(data, dict) or "response_code" not in data:
            return self.inconclusive(unstructured(response), raw_payload=data)

        if str(data["response_code"]) == SUCCESS_CODE:
            result = data.get("result")
            details = result if isinstance(result, dict) else {"result": result}
            return self.success(data, details=details, message="GST verified successfully")

        return self.reject(data, data.get("response_message") or "GST verification failed")
