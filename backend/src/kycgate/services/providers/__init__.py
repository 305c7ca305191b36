"""
Provider adapters - one class per external endpoint.
"""

from .base import ProviderAdapter
from .digitap import DigitapAadhaarClient, DigitapChequeAdapter
from .finanalyz import FinanalyzOcrAdapter, FinanalyzPanAdapter
from .vision import VisionChequeAdapter, VisionPanOcrAdapter, VisionTextClient
from .zoop import ZoopGstAdapter, ZoopPanAdapter

__all__ = [
    "ProviderAdapter",
    "DigitapAadhaarClient",
    "DigitapChequeAdapter",
    "FinanalyzOcrAdapter",
    "FinanalyzPanAdapter",
    "VisionChequeAdapter",
    "VisionPanOcrAdapter",
    "VisionTextClient",
    "ZoopGstAdapter",
    "ZoopPanAdapter",
]
