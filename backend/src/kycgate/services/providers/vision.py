"""
Google Vision text detection and the adapters built on it.

Vision only returns raw text. The PAN adapter runs the heuristic field
extractor over it; the cheque adapter runs the loose cheque regexes and
is only wired in when no structured cheque vendor is configured.
"""

import base64
import logging

import httpx

from kycgate.domain.errors import ExtractionMissError, TransportFailureError
from kycgate.domain.models import ChequeOcrRequest, ImageArtifact, ProviderAttemptResult
from kycgate.services.ocr import PanFieldExtractor, parse_cheque_text

from .base import ProviderAdapter, response_json, send

logger = logging.getLogger(__name__)

VISION_PROVIDER_ID = "google_vision"


def split_lines(text: str) -> list[str]:
    """Split a Vision description into trimmed, non-empty lines."""
    return [line.strip() for line in text.split("\n") if line.strip()]


class VisionTextClient:
    """
    Thin REST client for Vision `images:annotate` with TEXT_DETECTION.

    Example:
        client = VisionTextClient(http, api_key="...")
        lines = await client.extract_lines(image_bytes)
    """

    provider_id = VISION_PROVIDER_ID

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str | None,
        base_url: str = "https://vision.googleapis.com",
        timeout: float = 30.0,
    ) -> None:
        self.http = http
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def extract_lines(self, content: bytes) -> list[str]:
        """
        Run text detection and return the full-text annotation as lines.

        Returns an empty list when Vision found no text.

        Raises:
            TransportFailureError: Network failure or an error response from Vision
        """
        body = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(content).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION"}],
                }
            ]
        }
        response = await send(
            self.http,
            "POST",
            f"{self.base_url}/v1/images:annotate",
            provider_id=self.provider_id,
            timeout=self.timeout,
            params={"key": self.api_key},
            json=body,
        )
        data = response_json(response)
        if not isinstance(data, dict):
            raise TransportFailureError(
                f"Vision API returned HTTP {response.status_code} without JSON", self.provider_id
            )

        if "error" in data:
            raise TransportFailureError(f"Vision API error: {_error_message(data['error'])}", self.provider_id)

        responses = data.get("responses") or [{}]
        first = responses[0] or {}
        if "error" in first:
            raise TransportFailureError(f"Vision API error: {_error_message(first['error'])}", self.provider_id)

        annotations = first.get("textAnnotations") or []
        if not annotations:
            logger.warning("Vision found no text in image")
            return []

        lines = split_lines(annotations[0].get("description", ""))
        logger.info(f"Vision extracted {len(lines)} text lines")
        return lines


def _error_message(error: object) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


class VisionPanOcrAdapter(ProviderAdapter[ImageArtifact]):
    """PAN card OCR: Vision text plus heuristic field extraction."""

    provider_id = VISION_PROVIDER_ID

    def __init__(self, client: VisionTextClient, extractor: PanFieldExtractor) -> None:
        self.client = client
        self.extractor = extractor

    @property
    def configured(self) -> bool:
        return self.client.configured

    async def _attempt(self, payload: ImageArtifact) -> ProviderAttemptResult:
        lines = await self.client.extract_lines(payload.content)
        if not lines:
            raise ExtractionMissError("No text detected in image", self.provider_id)

        text = "\n".join(lines)
        fields = self.extractor.extract(lines)
        raw = {"lines": lines, "text": text}

        if fields.document_number is None:
            return self.inconclusive("No valid PAN found in OCR text", raw_payload=raw, fields=fields)
        if self.extractor.is_payment_document(text):
            return self.inconclusive("Image looks like a payment document", raw_payload=raw, fields=fields)

        return self.success(raw, fields=fields)


class VisionChequeAdapter(ProviderAdapter[ChequeOcrRequest]):
    """Degraded cheque OCR used when no structured cheque vendor is configured."""

    provider_id = VISION_PROVIDER_ID

    def __init__(self, client: VisionTextClient) -> None:
        self.client = client

    @property
    def configured(self) -> bool:
        return self.client.configured

    async def _attempt(self, payload: ChequeOcrRequest) -> ProviderAttemptResult:
        lines = await self.client.extract_lines(payload.artifact.content)
        cheque = parse_cheque_text(lines)
        if cheque.is_empty:
            raise ExtractionMissError("No cheque fields found in OCR text", self.provider_id)

        details = {
            "status": "success",
            "statusCode": 200,
            "clientRefId": payload.client_ref_id,
            "result": cheque.to_result(),
        }
        return self.success({"lines": lines}, details=details)
