"""
Keyword tables for the heuristic field extractor.

Kept apart from the extraction logic so locale coverage (Hindi labels,
regional boilerplate) can be extended by shipping a JSON file instead of
editing code. All entries are compared against upper-cased OCR lines.

JSON override format (any key may be omitted to keep the default):
    {
        "name_labels": ["NAME", "नाम"],
        "guardian_labels": ["FATHER", "पिता"],
        "dob_labels": ["DATE OF BIRTH", "DOB"],
        "skip_phrases": ["INCOME TAX", "SIGNATURE"],
        "payment_keywords": ["PAYMENT", "UPI"]
    }
"""

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionVocabulary:
    """Label, boilerplate and disqualifier keyword tables."""
    name_labels: tuple[str, ...]
    guardian_labels: tuple[str, ...]
    dob_labels: tuple[str, ...]
    # Lines containing any of these are never field values.
    skip_phrases: tuple[str, ...]
    # Any of these in the text marks it as a payment/wallet document, not an ID.
    payment_keywords: tuple[str, ...]

    def __post_init__(self) -> None:
        # Normalize every table to upper case so lookups stay case-insensitive.
        for f in fields(self):
            object.__setattr__(self, f.name, tuple(entry.upper() for entry in getattr(self, f.name)))

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: "ExtractionVocabulary | None" = None) -> "ExtractionVocabulary":
        """Overlay the given tables on top of `base` (defaults if None)."""
        base = base or DEFAULT_VOCABULARY
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown vocabulary tables: {sorted(unknown)}")
        overrides = {key: tuple(str(entry) for entry in value) for key, value in data.items()}
        return replace(base, **overrides)

    @classmethod
    def from_file(cls, path: Path) -> "ExtractionVocabulary":
        """Load overrides from a JSON file."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        logger.info(f"Loaded extraction vocabulary overrides from {path}: {sorted(data)}")
        return cls.from_dict(data)


DEFAULT_VOCABULARY = ExtractionVocabulary(
    name_labels=("NAME", "नाम", "NAM", "NAME:"),
    guardian_labels=(
        "FATHER", "पिता", "F/N", "S/O",
        "FATHER NAME", "FATHERS NAME", "FATHER'S NAME",
    ),
    dob_labels=("DATE OF BIRTH", "DOB", "जन्म", "BIRTH", "DOB:"),
    skip_phrases=(
        "INCOME TAX", "TAX DEPARTMENT", "DEPARTMENT", "GOVT", "GOVT OF INDIA",
        "PERMANENT", "ACCOUNT", "NUMBER", "CARD", "SIGNATURE", "PHOTO", "ADDRESS",
        "SIGNE", "OFFICIAL", "GOVRNMENT",
        # Devanagari boilerplate printed on PAN cards
        "हस्ताक्षर", "आयकर", "विभाग", "भारत", "सरकार", "सत्यमेव जयते",
        "स्थायी", "लेखा", "कार्ड",
    ),
    payment_keywords=("PAYMENT", "PAYMENTS", "PAYTM", "UPI"),
)


def load_vocabulary(path: Path | None) -> ExtractionVocabulary:
    """Defaults, or defaults overlaid with the JSON file at `path`."""
    if path is None:
        return DEFAULT_VOCABULARY
    return ExtractionVocabulary.from_file(path)
