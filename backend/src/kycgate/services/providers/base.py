"""
Shared plumbing for provider adapters.

Every adapter wraps exactly one external call and maps whatever comes
back into a ProviderAttemptResult. Nothing raises past attempt():
transport problems, timeouts and unexpected payloads all become
INCONCLUSIVE so the orchestrator can move on to the next provider.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

import httpx

from kycgate.domain.errors import ExtractionMissError, TransportFailureError
from kycgate.domain.models import ExtractedFields, Outcome, ProviderAttemptResult

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "provider not configured"

P = TypeVar("P")


class ProviderAdapter(ABC, Generic[P]):
    """
    Abstract base for one external provider.

    Type Parameters:
        P: The request payload the adapter accepts
    """

    provider_id: str = "unknown"

    @property
    @abstractmethod
    def configured(self) -> bool:
        """True when all credentials/URLs needed for the call are present."""

    @abstractmethod
    async def _attempt(self, payload: P) -> ProviderAttemptResult:
        """Issue the provider call and normalize the response."""

    async def attempt(self, payload: P) -> ProviderAttemptResult:
        """Run one provider call; never raises."""
        if not self.configured:
            logger.warning(f"{self.provider_id} not configured, skipping")
            return self.skipped()

        logger.info(f"Attempting {self.provider_id}")
        try:
            result = await self._attempt(payload)
        except TransportFailureError as e:
            logger.error(f"{self.provider_id} request failed: {e.message}")
            return self.inconclusive(e.message)
        except ExtractionMissError as e:
            logger.warning(f"{self.provider_id}: {e.message}")
            return self.inconclusive(e.message)
        except Exception as e:
            logger.exception(f"{self.provider_id} returned an unusable response")
            return self.inconclusive(f"unexpected provider response: {e}")

        logger.info(f"{self.provider_id} -> {result.outcome.value}")
        return result

    # -------------------------------------------------------------------------
    # Result constructors
    # -------------------------------------------------------------------------

    def skipped(self) -> ProviderAttemptResult:
        return self.inconclusive(NOT_CONFIGURED)

    def success(
        self,
        raw_payload: Any,
        fields: ExtractedFields | None = None,
        details: dict[str, Any] | None = None,
        message: str | None = None,
    ) -> ProviderAttemptResult:
        return ProviderAttemptResult(
            provider_id=self.provider_id,
            outcome=Outcome.DEFINITIVE_SUCCESS,
            raw_payload=raw_payload,
            extracted_fields=fields,
            details=details or {},
            message=message,
        )

    def reject(
        self,
        raw_payload: Any,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> ProviderAttemptResult:
        logger.warning(f"{self.provider_id} rejected: {message}")
        return ProviderAttemptResult(
            provider_id=self.provider_id,
            outcome=Outcome.DEFINITIVE_REJECT,
            raw_payload=raw_payload,
            details=details or {},
            message=message,
        )

    def inconclusive(
        self,
        error_detail: str,
        raw_payload: Any = None,
        fields: ExtractedFields | None = None,
    ) -> ProviderAttemptResult:
        return ProviderAttemptResult(
            provider_id=self.provider_id,
            outcome=Outcome.INCONCLUSIVE,
            raw_payload=raw_payload,
            extracted_fields=fields,
            error_detail=error_detail,
        )


async def send(
    http: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    provider_id: str,
    timeout: float,
    **kwargs: Any,
) -> httpx.Response:
    """
    Issue a request, translating transport errors.

    Non-2xx statuses are returned, not raised: several providers put a
    structured verdict in error responses.

    Raises:
        TransportFailureError: Network error or timeout
    """
    try:
        return await http.request(method, url, timeout=timeout, **kwargs)
    except httpx.TimeoutException as e:
        raise TransportFailureError(f"{provider_id} timed out after {timeout:g}s", provider_id) from e
    except httpx.RequestError as e:
        raise TransportFailureError(f"{provider_id} network error: {e}", provider_id) from e


def response_json(response: httpx.Response) -> Any | None:
    """Parsed JSON body, or None for empty/non-JSON bodies (HTML error pages etc.)."""
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError):
        logger.warning(f"Non-JSON response from {response.request.url} (status {response.status_code})")
        return None


def unstructured(response: httpx.Response) -> str:
    """Error detail for a response that carried no usable verdict."""
    return f"HTTP {response.status_code} without a structured body"


def snippet(data: Any, limit: int = 400) -> str:
    """Truncated JSON rendering for debug logs."""
    try:
        text = json.dumps(data, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        text = repr(data)
    return text if len(text) <= limit else text[:limit] + "..."
