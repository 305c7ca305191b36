"""
Domain models for identity and document verification.

These models are what flows between the provider adapters, the fallback
orchestrator and the service layer. Provider-specific payload shapes stop
at the adapter boundary; past it everything is one of the types below.

Design Decisions:
- Frozen dataclasses: an attempt result or canonical result is never
  mutated after creation
- Outcome is a tri-state so the orchestrator never branches on provider identity
- ExtractedField carries provenance (label match vs positional guess) so
  downstream logic can treat guesses with suspicion
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

# Provider id reported when no provider produced a definitive answer.
NO_PROVIDER = "NONE"


class Outcome(Enum):
    """Normalized result of a single provider call."""
    DEFINITIVE_SUCCESS = "definitive_success"
    DEFINITIVE_REJECT = "definitive_reject"
    INCONCLUSIVE = "inconclusive"

    @property
    def is_definitive(self) -> bool:
        return self is not Outcome.INCONCLUSIVE


class Provenance(Enum):
    """How an extracted field was recovered."""
    LABEL_MATCHED = "label_matched"
    POSITIONAL_GUESS = "positional_guess"


class OperationKind(Enum):
    """Operation types walked through the fallback orchestrator."""
    CLAIM_VERIFICATION = "claim_verification"
    OCR_EXTRACTION = "ocr_extraction"
    DOCUMENT_OCR = "document_ocr"
    GST_VERIFICATION = "gst_verification"

    @property
    def exhausted_message(self) -> str:
        """Message reported when every provider in the chain came back inconclusive."""
        return _EXHAUSTED_MESSAGES[self]


_EXHAUSTED_MESSAGES = {
    OperationKind.CLAIM_VERIFICATION: "All verification providers failed; PAN could not be verified",
    OperationKind.OCR_EXTRACTION: "PAN could not be extracted from image",
    OperationKind.DOCUMENT_OCR: "Document OCR failed; no provider returned a result",
    OperationKind.GST_VERIFICATION: "GST verification failed; no provider returned a result",
}


@dataclass(frozen=True)
class VerificationClaim:
    """Caller-supplied identity assertion checked against a provider's record."""
    document_number: str
    claimed_name: str
    date_of_birth: str | None = None


@dataclass(frozen=True)
class ImageArtifact:
    """
    An uploaded document image.

    Owned by the request that uploaded it and discarded afterwards.
    """
    content: bytes
    declared_media_type: str
    original_filename: str = "upload.jpg"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ChequeOcrRequest:
    """A cheque image plus the metadata the document-OCR vendor requires."""
    artifact: ImageArtifact
    client_ref_id: str
    account_holder_name: str | None = None
    is_complete_image: bool = True


@dataclass(frozen=True)
class ExtractedField(Generic[T]):
    """
    A field recovered from OCR text or a provider payload.

    Type Parameters:
        T: The type of the extracted value
    """
    value: T
    provenance: Provenance = Provenance.LABEL_MATCHED

    @property
    def confidence(self) -> float:
        """Rough confidence: label-anchored values are trusted more than guesses."""
        return 0.95 if self.provenance is Provenance.LABEL_MATCHED else 0.6

    @property
    def requires_review(self) -> bool:
        return self.provenance is Provenance.POSITIONAL_GUESS


@dataclass(frozen=True)
class ExtractedFields:
    """Structured identity fields recovered from a document."""
    document_number: ExtractedField[str] | None = None
    name: ExtractedField[str] | None = None
    date_of_birth: ExtractedField[str] | None = None
    guardian_name: ExtractedField[str] | None = None

    @property
    def is_empty(self) -> bool:
        return not any((self.document_number, self.name, self.date_of_birth, self.guardian_name))

    def to_dict(self) -> dict[str, str]:
        """Wire shape used by the API layer (empty string for missing fields)."""
        return {
            "pan_number": _value_or_blank(self.document_number),
            "name": _value_or_blank(self.name),
            "dob": _value_or_blank(self.date_of_birth),
            "father_name": _value_or_blank(self.guardian_name),
        }

    def provenance_map(self) -> dict[str, str]:
        """Provenance tag per populated field."""
        return {
            key: extracted.provenance.value
            for key, extracted in (
                ("pan_number", self.document_number),
                ("name", self.name),
                ("dob", self.date_of_birth),
                ("father_name", self.guardian_name),
            )
            if extracted is not None
        }


def _value_or_blank(extracted: ExtractedField[str] | None) -> str:
    return extracted.value if extracted is not None else ""


@dataclass(frozen=True)
class ProviderAttemptResult:
    """
    Outcome of exactly one adapter invocation.

    `details` holds normalized provider fields for structured checks
    (PAN verification, GST, cheque OCR); `extracted_fields` holds the
    identity fields recovered from OCR paths.
    """
    provider_id: str
    outcome: Outcome
    raw_payload: Any = None
    extracted_fields: ExtractedFields | None = None
    details: dict[str, Any] = field(default_factory=dict)
    message: str | None = None
    error_detail: str | None = None

    @property
    def is_definitive(self) -> bool:
        return self.outcome.is_definitive


@dataclass(frozen=True)
class CanonicalResult:
    """
    The orchestrator's single answer for a top-level call.

    provider_used is NO_PROVIDER when the chain was exhausted; callers
    must treat that as a normal outcome, not a system fault.
    """
    operation: OperationKind
    verified: bool
    provider_used: str
    fields: ExtractedFields | None = None
    details: dict[str, Any] = field(default_factory=dict)
    message: str | None = None
    attempts: tuple[ProviderAttemptResult, ...] = ()

    @property
    def exhausted(self) -> bool:
        return self.provider_used == NO_PROVIDER

    @property
    def providers_tried(self) -> list[str]:
        return [attempt.provider_id for attempt in self.attempts]
