"""
Services package - Provider integrations, fallback orchestration and OCR heuristics.
"""

from .kyc import KycService
from .orchestrator import FallbackOrchestrator
from .tokens import TokenCache

__all__ = ["KycService", "FallbackOrchestrator", "TokenCache"]
