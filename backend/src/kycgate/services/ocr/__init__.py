"""
OCR subpackage - Heuristic field extraction from OCR text lines.
"""

from .cheque import ChequeFields, parse_cheque_text
from .extractor import PanFieldExtractor
from .vocabulary import DEFAULT_VOCABULARY, ExtractionVocabulary, load_vocabulary

__all__ = [
    "PanFieldExtractor",
    "ExtractionVocabulary",
    "DEFAULT_VOCABULARY",
    "load_vocabulary",
    "ChequeFields",
    "parse_cheque_text",
]
