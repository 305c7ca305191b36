"""
Heuristic PAN card field extraction from OCR text lines.

This module turns the line sequence produced by a vision OCR service into
structured identity fields using:
1. A fixed regex for the PAN number, anywhere in the text
2. Label proximity: the first plausible line after a recognised label
3. Positional fallback: all-caps name-shaped lines printed above the PAN number

Label matches always win; positional guesses only fill fields that are
still empty and are tagged POSITIONAL_GUESS so callers can flag them.
Extraction is deterministic: the same lines always give the same fields.
"""

import logging
import re
from collections.abc import Sequence

from kycgate.domain.models import ExtractedField, ExtractedFields, Provenance

from .vocabulary import DEFAULT_VOCABULARY, ExtractionVocabulary

logger = logging.getLogger(__name__)


# =============================================================================
# Regex Patterns
# =============================================================================

# PAN: 5 letters, 4 digits, 1 letter (no word boundaries, OCR often glues tokens)
PAN_NUMBER_PATTERN = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]")

# DD/MM/YYYY with '/', '-' or '.' separators
DATE_PATTERN = re.compile(r"\d{2}[/\-.]\d{2}[/\-.]\d{4}")

# Lines made only of digits and date punctuation are never names
NUMERIC_ONLY_PATTERN = re.compile(r"^[\d/\-.\s]+$")

# 2-5 all-caps words of letters only, e.g. "RAHUL KUMAR SHARMA"
NAME_LINE_PATTERN = re.compile(r"^[A-Z]{2,}(?:\s+[A-Z]{2,}){1,4}$")

HAS_LETTER_PATTERN = re.compile(r"[A-Z]")
NON_NAME_CHARS = re.compile(r"[^A-Za-z\s]")

# Guardian names are searched at most this many lines below the name.
GUARDIAN_LOOKAHEAD = 4


class _FieldDraft:
    """
    Mutable accumulator for one extraction run.

    Enforces precedence: a LABEL_MATCHED value is never replaced by a
    POSITIONAL_GUESS, and the first label match for a field wins.
    """

    def __init__(self) -> None:
        self._values: dict[str, ExtractedField[str]] = {}

    def offer(self, key: str, value: str | None, provenance: Provenance) -> bool:
        if not value:
            return False
        current = self._values.get(key)
        if current is not None:
            upgrade = (
                current.provenance is Provenance.POSITIONAL_GUESS
                and provenance is Provenance.LABEL_MATCHED
            )
            if not upgrade:
                return False
        self._values[key] = ExtractedField(value=value, provenance=provenance)
        return True

    def get(self, key: str) -> str | None:
        current = self._values.get(key)
        return current.value if current is not None else None

    def clean_name(self, key: str) -> None:
        """Strip everything but letters and spaces, keeping provenance."""
        current = self._values.get(key)
        if current is None:
            return
        cleaned = NON_NAME_CHARS.sub("", current.value).strip()
        if cleaned:
            self._values[key] = ExtractedField(value=cleaned, provenance=current.provenance)
        else:
            del self._values[key]

    def build(self) -> ExtractedFields:
        return ExtractedFields(
            document_number=self._values.get("document_number"),
            name=self._values.get("name"),
            date_of_birth=self._values.get("date_of_birth"),
            guardian_name=self._values.get("guardian_name"),
        )


class PanFieldExtractor:
    """
    Rule-based extractor for PAN card OCR output.

    Example:
        extractor = PanFieldExtractor()
        fields = extractor.extract(["NAME", "JOHN DOE", "PAN NUMBER", "AAAPL1234C"])
        fields.name.value        # "JOHN DOE"
        fields.name.provenance   # Provenance.LABEL_MATCHED
    """

    def __init__(self, vocabulary: ExtractionVocabulary | None = None) -> None:
        self.vocabulary = vocabulary or DEFAULT_VOCABULARY
        keywords = "|".join(re.escape(k) for k in self.vocabulary.payment_keywords)
        self._payment_pattern = re.compile(keywords, re.IGNORECASE) if keywords else None

    def extract(self, lines: Sequence[str]) -> ExtractedFields:
        """Extract PAN number, name, date of birth and guardian name."""
        if not lines:
            return ExtractedFields()

        original = [line.strip() for line in lines]
        upper = [line.upper() for line in original]
        draft = _FieldDraft()

        # Pass 1: document number anywhere in the text
        pan_match = PAN_NUMBER_PATTERN.search(" ".join(upper))
        if pan_match:
            draft.offer("document_number", pan_match.group(0), Provenance.LABEL_MATCHED)

        # Pass 2: label-anchored values
        guardian_label_index = self._label_pass(upper, original, draft)

        # Pass 3/4: positional fallbacks, only with a PAN anchor
        pan = draft.get("document_number")
        if pan:
            self._positional_pass(upper, original, pan, guardian_label_index, draft)
            self._guardian_after_name(upper, original, draft)

        draft.clean_name("name")
        draft.clean_name("guardian_name")

        fields = draft.build()
        logger.info(
            f"PAN fields extracted from {len(lines)} lines: "
            f"{fields.provenance_map() or 'nothing'}"
        )
        return fields

    def is_payment_document(self, text: str | None) -> bool:
        """True if the text looks like a payment/wallet screen rather than an ID card."""
        if not text or self._payment_pattern is None:
            return False
        return self._payment_pattern.search(text) is not None

    # -------------------------------------------------------------------------
    # Passes
    # -------------------------------------------------------------------------

    def _label_pass(
        self,
        upper: list[str],
        original: list[str],
        draft: _FieldDraft,
    ) -> int | None:
        """Fill fields from lines following a label; returns the first guardian label index."""
        vocab = self.vocabulary
        guardian_label_index: int | None = None
        pan = draft.get("document_number")

        for i, line in enumerate(upper):
            is_guardian_label = _contains_any(line, vocab.guardian_labels)

            if is_guardian_label:
                if guardian_label_index is None:
                    guardian_label_index = i
                if draft.get("guardian_name") is None:
                    draft.offer("guardian_name", self._value_after(i, upper, original, pan), Provenance.LABEL_MATCHED)
            elif _contains_any(line, vocab.name_labels) and draft.get("name") is None:
                # "FATHER'S NAME" also contains NAME; it is handled above
                draft.offer("name", self._value_after(i, upper, original, pan), Provenance.LABEL_MATCHED)

            if _contains_any(line, vocab.dob_labels) and draft.get("date_of_birth") is None:
                draft.offer("date_of_birth", self._date_after(i, upper), Provenance.LABEL_MATCHED)

        return guardian_label_index

    def _positional_pass(
        self,
        upper: list[str],
        original: list[str],
        pan: str,
        guardian_label_index: int | None,
        draft: _FieldDraft,
    ) -> None:
        """Guess name/guardian from name-shaped lines printed above the PAN number."""
        if draft.get("name") is not None and draft.get("guardian_name") is not None:
            return

        pan_index = next((i for i, line in enumerate(upper) if pan in line), None)
        if pan_index is None:
            return

        before_pan = [
            (i, original[i])
            for i, line in enumerate(upper[:pan_index])
            if line != pan and self._looks_like_name(line)
        ]
        if not before_pan:
            return

        if draft.get("name") is None:
            # Closest to the number
            draft.offer("name", before_pan[-1][1], Provenance.POSITIONAL_GUESS)

        if draft.get("guardian_name") is not None or len(before_pan) < 2:
            return

        name = (draft.get("name") or "").upper()
        if guardian_label_index is not None:
            candidates = [
                text for i, text in before_pan
                if i < guardian_label_index and text.upper() != name
            ]
            if candidates:
                draft.offer("guardian_name", candidates[-1], Provenance.POSITIONAL_GUESS)
        else:
            candidate = next((text for _, text in before_pan if text.upper() != name), None)
            draft.offer("guardian_name", candidate, Provenance.POSITIONAL_GUESS)

    def _guardian_after_name(
        self,
        upper: list[str],
        original: list[str],
        draft: _FieldDraft,
    ) -> None:
        """Look a few lines below the name for a second name-shaped line."""
        name = draft.get("name")
        if draft.get("guardian_name") is not None or not name:
            return

        name_upper = name.upper()
        name_index = next((i for i, line in enumerate(upper) if name_upper in line), None)
        if name_index is None:
            return

        stop = min(name_index + 1 + GUARDIAN_LOOKAHEAD, len(upper))
        for i in range(name_index + 1, stop):
            line = upper[i]
            if NAME_LINE_PATTERN.match(line) and not self._is_boilerplate(line) and line != name_upper:
                draft.offer("guardian_name", original[i], Provenance.POSITIONAL_GUESS)
                return

    # -------------------------------------------------------------------------
    # Line predicates
    # -------------------------------------------------------------------------

    def _value_after(
        self,
        index: int,
        upper: list[str],
        original: list[str],
        pan: str | None = None,
    ) -> str | None:
        """First plausible value line after a label line, never the PAN line."""
        for j in range(index + 1, len(upper)):
            line = upper[j]
            if pan and pan in line:
                continue
            if len(line) <= 2 or NUMERIC_ONLY_PATTERN.match(line):
                continue
            if self._is_label(line) or self._is_boilerplate(line):
                continue
            return original[j]
        return None

    def _date_after(self, index: int, upper: list[str]) -> str | None:
        """First date found on the lines after a DOB label."""
        for line in upper[index + 1:]:
            match = DATE_PATTERN.search(line)
            if match:
                return match.group(0)
        return None

    def _is_label(self, line: str) -> bool:
        vocab = self.vocabulary
        return (
            _contains_any(line, vocab.name_labels)
            or _contains_any(line, vocab.guardian_labels)
            or _contains_any(line, vocab.dob_labels)
        )

    def _is_boilerplate(self, line: str) -> bool:
        if not HAS_LETTER_PATTERN.search(line):
            return True
        return _contains_any(line, self.vocabulary.skip_phrases)

    def _looks_like_name(self, line: str) -> bool:
        return (
            NAME_LINE_PATTERN.match(line) is not None
            and 3 < len(line) < 50
            and not self._is_boilerplate(line)
        )


def _contains_any(line: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in line for keyword in keywords)
