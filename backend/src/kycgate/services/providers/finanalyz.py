"""
Finanalyz adapters: PAN status lookup and PAN card OCR.

Both endpoints authenticate with a static `XApiKey` header and wrap the
useful part of the answer in `data.data`.
"""

import logging
from typing import Any

import httpx

from kycgate.domain.models import (
    ExtractedField,
    ExtractedFields,
    ImageArtifact,
    ProviderAttemptResult,
    VerificationClaim,
)

from .base import ProviderAdapter, response_json, send, snippet, unstructured

logger = logging.getLogger(__name__)


def _nested(data: Any, *keys: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _field(value: Any) -> ExtractedField[str] | None:
    if value is None or value == "":
        return None
    return ExtractedField(value=str(value))


class FinanalyzPanAdapter(ProviderAdapter[VerificationClaim]):
    """
    PAN status check.

    The verdict lives in `data.data.response`: code 200 with isValid true
    is a match, any other structured answer is a rejection. Finanalyz does
    not score the name, so a positive answer reports a match score of 100.
    """

    provider_id = "finanalyz"

    def __init__(
        self,
        http: httpx.AsyncClient,
        url: str | None,
        api_key: str | None,
        timeout: float = 10.0,
    ) -> None:
        self.http = http
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.url and self.api_key)

    async def _attempt(self, payload: VerificationClaim) -> ProviderAttemptResult:
        response = await send(
            self.http,
            "POST",
            self.url,
            provider_id=self.provider_id,
            timeout=self.timeout,
            json={"panNumber": payload.document_number},
            headers={"XApiKey": self.api_key, "Content-Type": "application/json"},
        )
        data = response_json(response)
        logger.debug(f"Finanalyz PAN response ({response.status_code}): {snippet(data)}")

        verdict = _nested(data, "data", "data", "response")
        if not isinstance(verdict, dict):
            if response.is_success:
                return self.inconclusive("Unrecognised response structure", raw_payload=data)
            return self.inconclusive(unstructured(response), raw_payload=data)

        if str(verdict.get("code")) == "200" and verdict.get("isValid") is True:
            details = {
                **verdict,
                "pan": verdict.get("pan"),
                "name": verdict.get("name"),
                "firstName": verdict.get("firstName"),
                "middleName": verdict.get("middleName"),
                "lastName": verdict.get("lastName"),
                "gender": verdict.get("gender"),
                "dob": verdict.get("dob"),
                "nameMatchScore": 100,
            }
            fields = ExtractedFields(
                document_number=_field(verdict.get("pan") or payload.document_number),
                name=_field(verdict.get("name")),
                date_of_birth=_field(verdict.get("dob")),
            )
            return self.success(data, fields=fields, details=details, message="PAN verified successfully")

        return self.reject(data, verdict.get("message") or "PAN verification failed")


class FinanalyzOcrAdapter(ProviderAdapter[ImageArtifact]):
    """PAN card OCR; a response carrying `data.data.pan_number` is a hit."""

    provider_id = "finanalyz_ocr"

    def __init__(
        self,
        http: httpx.AsyncClient,
        url: str | None,
        api_key: str | None,
        timeout: float = 30.0,
    ) -> None:
        self.http = http
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.url and self.api_key)

    async def _attempt(self, payload: ImageArtifact) -> ProviderAttemptResult:
        files = {
            "file": (
                payload.original_filename or "pan.jpg",
                payload.content,
                payload.declared_media_type or "image/jpeg",
            )
        }
        response = await send(
            self.http,
            "POST",
            self.url,
            provider_id=self.provider_id,
            timeout=self.timeout,
            files=files,
            headers={"XApiKey": self.api_key, "accept": "*/*"},
        )
        data = response_json(response)
        logger.debug(f"Finanalyz OCR response ({response.status_code}): {snippet(data)}")

        record = _nested(data, "data", "data")
        if not isinstance(record, dict) or not record.get("pan_number"):
            detail = "PAN not detected in image" if data is not None else unstructured(response)
            return self.inconclusive(detail, raw_payload=data)

        fields = ExtractedFields(
            document_number=_field(str(record["pan_number"]).upper()),
            name=_field(record.get("name")),
            date_of_birth=_field(record.get("dob")),
            guardian_name=_field(record.get("father_name")),
        )
        return self.success(data, fields=fields)
