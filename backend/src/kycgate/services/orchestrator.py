"""
Ordered fallback across interchangeable providers.

The orchestrator walks a chain of adapters, one at a time, and stops at
the first result the continuation predicate accepts. It knows nothing
about individual providers: whether to move on is decided solely from
the normalized ProviderAttemptResult.

Exhausting the chain is a normal outcome, reported with provider NONE.
"""

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

from kycgate.domain.models import (
    NO_PROVIDER,
    CanonicalResult,
    OperationKind,
    Outcome,
    ProviderAttemptResult,
)

from .providers.base import ProviderAdapter

logger = logging.getLogger(__name__)

P = TypeVar("P")

ContinuationPredicate = Callable[[ProviderAttemptResult], bool]


def continue_on_inconclusive(result: ProviderAttemptResult) -> bool:
    """Claim verification: only an inconclusive answer moves on; a reject is final."""
    return result.outcome is Outcome.INCONCLUSIVE


def continue_on_extraction_miss(
    is_unrelated_text: Callable[[str | None], bool] | None = None,
) -> ContinuationPredicate:
    """
    OCR extraction: move on when no document number was recovered, or when
    the recognised text looks like something other than an ID document.
    """

    def should_continue(result: ProviderAttemptResult) -> bool:
        if result.outcome is not Outcome.DEFINITIVE_SUCCESS:
            return True
        fields = result.extracted_fields
        if fields is None or fields.document_number is None:
            return True
        if is_unrelated_text is None or not isinstance(result.raw_payload, dict):
            return False
        return is_unrelated_text(result.raw_payload.get("text"))

    return should_continue


class FallbackOrchestrator:
    """
    Runs an operation against an ordered provider chain.

    Example:
        orchestrator = FallbackOrchestrator()
        result = await orchestrator.run(
            OperationKind.CLAIM_VERIFICATION,
            [finanalyz, zoop],
            claim,
            continue_on_inconclusive,
        )
        result.provider_used   # "finanalyz", "zoop" or "NONE"
    """

    async def run(
        self,
        operation: OperationKind,
        chain: Sequence[ProviderAdapter[P]],
        payload: P,
        should_continue: ContinuationPredicate,
    ) -> CanonicalResult:
        """
        Try each provider in order; no provider after the stopping one is called.

        Args:
            operation: What is being done (selects the exhausted message)
            chain: Adapters in priority order
            payload: Request handed unchanged to every adapter
            should_continue: Whether a result sends the walk to the next provider

        Returns:
            CanonicalResult carrying every attempt made
        """
        attempts: list[ProviderAttemptResult] = []

        for adapter in chain:
            if not adapter.configured:
                logger.warning(f"{operation.value}: {adapter.provider_id} not configured, skipping")
                attempts.append(adapter.skipped())
                continue

            result = await adapter.attempt(payload)
            attempts.append(result)

            if not should_continue(result):
                return self._conclude(operation, result, attempts)

            logger.warning(
                f"{operation.value}: {adapter.provider_id} gave no usable answer "
                f"({result.error_detail or result.message or result.outcome.value}), trying next provider"
            )

        logger.error(f"{operation.value}: all providers exhausted ({[a.provider_id for a in attempts]})")
        return CanonicalResult(
            operation=operation,
            verified=False,
            provider_used=NO_PROVIDER,
            message=operation.exhausted_message,
            attempts=tuple(attempts),
        )

    def _conclude(
        self,
        operation: OperationKind,
        result: ProviderAttemptResult,
        attempts: list[ProviderAttemptResult],
    ) -> CanonicalResult:
        verified = result.outcome is Outcome.DEFINITIVE_SUCCESS
        logger.info(f"{operation.value}: concluded by {result.provider_id} (verified={verified})")
        return CanonicalResult(
            operation=operation,
            verified=verified,
            provider_used=result.provider_id,
            fields=result.extracted_fields,
            details=dict(result.details),
            message=result.message or ("Verification successful" if verified else "Verification failed"),
            attempts=tuple(attempts),
        )
