"""
KYC verification service.

Single entry point for the HTTP layer. Validates input, builds the
provider chains from settings, and hands each request to the fallback
orchestrator:
1. PAN + name verification (finanalyz -> zoop by default)
2. PAN card OCR (finanalyz_ocr -> google_vision by default)
3. Cheque OCR (digitap when configured, otherwise vision heuristics)
4. GST lookup (zoop)
5. Aadhaar OTP (digitap, direct)
"""

import logging
from collections.abc import Mapping, Sequence
from typing import TypeVar

import httpx

from kycgate.config import Settings
from kycgate.domain.errors import MalformedInputError
from kycgate.domain.models import ChequeOcrRequest, CanonicalResult, ImageArtifact, OperationKind
from kycgate.domain.validation import build_claim, mask_pan, normalize_gstin

from . import integrity
from .ocr import PanFieldExtractor, load_vocabulary
from .orchestrator import FallbackOrchestrator, continue_on_extraction_miss, continue_on_inconclusive
from .providers import (
    DigitapAadhaarClient,
    DigitapChequeAdapter,
    FinanalyzOcrAdapter,
    FinanalyzPanAdapter,
    ProviderAdapter,
    VisionChequeAdapter,
    VisionPanOcrAdapter,
    VisionTextClient,
    ZoopGstAdapter,
    ZoopPanAdapter,
)
from .tokens import TokenCache

logger = logging.getLogger(__name__)


P = TypeVar("P")


def resolve_chain(
    names: Sequence[str],
    available: Mapping[str, ProviderAdapter[P]],
) -> list[ProviderAdapter[P]]:
    """
    Turn configured provider ids into adapters, preserving order.

    Raises:
        ValueError: Unknown provider id (a configuration mistake, caught at startup)
    """
    chain = []
    for name in names:
        adapter = available.get(name.strip().lower())
        if adapter is None:
            raise ValueError(f"Unknown provider '{name}'; expected one of {sorted(available)}")
        chain.append(adapter)
    return chain


class KycService:
    """
    Orchestrates identity and document verification across providers.

    Example:
        service = KycService(get_settings())
        result = await service.verify_claim("AAAPL1234C", "Rahul Sharma")
        if result.verified:
            ...
        await service.aclose()
    """

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient | None = None,
        tokens: TokenCache | None = None,
        orchestrator: FallbackOrchestrator | None = None,
    ) -> None:
        """
        Initialize the service and its provider chains.

        Args:
            settings: Provider credentials and chain order
            http: Shared HTTP client (created and owned here if None)
            tokens: Bearer token cache (created if None)
            orchestrator: Fallback runner (created if None)
        """
        self.settings = settings
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient()
        self.tokens = tokens or TokenCache()
        self.orchestrator = orchestrator or FallbackOrchestrator()
        self.extractor = PanFieldExtractor(load_vocabulary(settings.extraction_vocabulary_path))

        self.vision = VisionTextClient(
            self.http,
            api_key=settings.google_vision_api_key,
            base_url=settings.google_vision_base_url,
            timeout=settings.vision_timeout_seconds,
        )

        verifiers: dict[str, ProviderAdapter] = {
            "finanalyz": FinanalyzPanAdapter(
                self.http,
                url=settings.finanalyz_pan_url,
                api_key=settings.finanalyz_x_api_key,
                timeout=settings.finanalyz_timeout_seconds,
            ),
            "zoop": ZoopPanAdapter(
                self.http,
                url=settings.zoop_pan_api_url,
                api_key=settings.zoop_api_key,
                app_id=settings.zoop_app_id,
                timeout=settings.zoop_timeout_seconds,
                min_name_match_score=settings.zoop_min_name_match_score,
            ),
        }
        readers: dict[str, ProviderAdapter] = {
            "finanalyz_ocr": FinanalyzOcrAdapter(
                self.http,
                url=settings.finanalyz_ocr_url,
                api_key=settings.finanalyz_x_api_key,
                timeout=settings.finanalyz_ocr_timeout_seconds,
            ),
            "google_vision": VisionPanOcrAdapter(self.vision, self.extractor),
        }
        self.verification_chain = resolve_chain(settings.pan_verification_chain, verifiers)
        self.ocr_chain = resolve_chain(settings.pan_ocr_chain, readers)

        self.gst_chain: list[ProviderAdapter] = [
            ZoopGstAdapter(
                self.http,
                url=settings.zoop_gst_api_url,
                api_key=settings.zoop_api_key,
                app_id=settings.zoop_app_id,
                timeout=settings.zoop_timeout_seconds,
                financial_year=settings.gst_financial_year,
            )
        ]

        # Cheque routing is fixed at startup; no runtime fallback between the two.
        cheque: ProviderAdapter
        if settings.digitap_configured:
            cheque = DigitapChequeAdapter(
                self.http,
                base_url=settings.digitap_base_url,
                client_id=settings.digitap_client_id,
                client_secret=settings.digitap_client_secret,
                timeout=settings.digitap_timeout_seconds,
            )
        else:
            cheque = VisionChequeAdapter(self.vision)
        self.cheque_chain: list[ProviderAdapter] = [cheque]

        self.aadhaar = DigitapAadhaarClient(
            self.http,
            self.tokens,
            base_url=settings.digitap_base_url,
            client_id=settings.digitap_client_id,
            client_secret=settings.digitap_client_secret,
            redirect_url=settings.aadhaar_redirect_url,
            timeout=settings.digitap_timeout_seconds,
        )

        logger.info(
            "Provider chains: "
            f"verification={[a.provider_id for a in self.verification_chain]}, "
            f"ocr={[a.provider_id for a in self.ocr_chain]}, "
            f"cheque={cheque.provider_id}"
        )

    def provider_status(self) -> dict[str, bool]:
        """Which providers have credentials configured."""
        adapters = [*self.verification_chain, *self.ocr_chain, *self.gst_chain, *self.cheque_chain]
        status = {adapter.provider_id: adapter.configured for adapter in adapters}
        status["digitap_aadhaar"] = self.aadhaar.configured
        return status

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def verify_claim(
        self,
        document_number: str | None,
        claimed_name: str | None,
        date_of_birth: str | None = None,
    ) -> CanonicalResult:
        """
        Verify a PAN against the claimed holder name.

        Raises:
            MalformedInputError: Bad PAN format or missing name (no provider is called)
        """
        claim = build_claim(document_number, claimed_name, date_of_birth)
        logger.info(f"Verifying PAN {mask_pan(claim.document_number)}")
        return await self.orchestrator.run(
            OperationKind.CLAIM_VERIFICATION,
            self.verification_chain,
            claim,
            continue_on_inconclusive,
        )

    async def extract_from_image(
        self,
        content: bytes,
        declared_media_type: str,
        filename: str | None = None,
    ) -> CanonicalResult:
        """
        Recover PAN card fields from an uploaded image.

        Raises:
            MalformedInputError: Empty, truncated or mislabelled image
        """
        artifact = self._checked_artifact(content, declared_media_type, filename)
        return await self.orchestrator.run(
            OperationKind.OCR_EXTRACTION,
            self.ocr_chain,
            artifact,
            continue_on_extraction_miss(self.extractor.is_payment_document),
        )

    async def extract_cheque(
        self,
        content: bytes,
        declared_media_type: str,
        client_ref_id: str,
        account_holder_name: str | None = None,
        is_complete_image: bool = True,
        filename: str | None = None,
    ) -> CanonicalResult:
        """
        Read a cheque image with whichever cheque path was selected at startup.

        Raises:
            MalformedInputError: Bad image or missing client reference
        """
        if not client_ref_id or not client_ref_id.strip():
            raise MalformedInputError("clientRefId is required")
        artifact = self._checked_artifact(content, declared_media_type, filename)
        request = ChequeOcrRequest(
            artifact=artifact,
            client_ref_id=client_ref_id.strip(),
            account_holder_name=account_holder_name.strip() if account_holder_name else None,
            is_complete_image=is_complete_image,
        )
        return await self.orchestrator.run(
            OperationKind.DOCUMENT_OCR,
            self.cheque_chain,
            request,
            continue_on_inconclusive,
        )

    async def verify_gst(self, gstin: str | None) -> CanonicalResult:
        """
        Look up a GSTIN.

        Raises:
            MalformedInputError: GSTIN is not 15 characters
        """
        number = normalize_gstin(gstin)
        logger.info(f"Verifying GSTIN {number[:2]}...{number[-3:]}")
        return await self.orchestrator.run(
            OperationKind.GST_VERIFICATION,
            self.gst_chain,
            number,
            continue_on_inconclusive,
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this service created it."""
        if self._owns_http:
            await self.http.aclose()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _checked_artifact(
        self,
        content: bytes,
        declared_media_type: str,
        filename: str | None,
    ) -> ImageArtifact:
        if not integrity.validate(content, declared_media_type):
            sniffed = integrity.sniff_media_type(content)
            logger.warning(
                f"Upload failed integrity check: declared={declared_media_type}, "
                f"detected={sniffed or 'unknown'}, size={len(content) if content else 0}"
            )
            raise MalformedInputError("Invalid or corrupted image file")
        return ImageArtifact(
            content=content,
            declared_media_type=declared_media_type,
            original_filename=filename or "upload.jpg",
        )
