"""Unit tests for heuristic PAN field extraction (kycgate/services/ocr)."""

import json

import pytest

from kycgate.domain.models import ExtractedFields, Provenance
from kycgate.services.ocr import (
    DEFAULT_VOCABULARY,
    ExtractionVocabulary,
    PanFieldExtractor,
    load_vocabulary,
    parse_cheque_text,
)


@pytest.fixture
def extractor() -> PanFieldExtractor:
    return PanFieldExtractor()


# ---------------------------------------------------------------------------
# Label-anchored extraction
# ---------------------------------------------------------------------------
class TestLabelMatching:

    def test_minimal_labelled_card(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["NAME", "JOHN DOE", "PAN NUMBER", "AAAPL1234C"])

        assert fields.document_number.value == "AAAPL1234C"
        assert fields.name.value == "JOHN DOE"
        assert fields.name.provenance is Provenance.LABEL_MATCHED
        assert fields.guardian_name is None

    def test_new_format_card(self, extractor: PanFieldExtractor) -> None:
        lines = [
            "INCOME TAX DEPARTMENT",
            "Permanent Account Number Card",
            "ABCDE1234F",
            "Name",
            "RAHUL KUMAR",
            "Father's Name",
            "SURESH KUMAR",
            "Date of Birth",
            "15/08/1990",
        ]
        fields = extractor.extract(lines)

        assert fields.to_dict() == {
            "pan_number": "ABCDE1234F",
            "name": "RAHUL KUMAR",
            "dob": "15/08/1990",
            "father_name": "SURESH KUMAR",
        }
        assert set(fields.provenance_map().values()) == {"label_matched"}

    def test_father_label_is_not_a_name_label(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["FATHER'S NAME", "SURESH KUMAR", "NAME", "RAHUL KUMAR"])

        assert fields.guardian_name.value == "SURESH KUMAR"
        assert fields.name.value == "RAHUL KUMAR"

    def test_label_value_skips_boilerplate_and_numbers(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["NAME", "12345", "GOVT OF INDIA", "AB", "ANITA DESAI"])
        assert fields.name.value == "ANITA DESAI"

    def test_dob_accepts_dash_and_dot_separators(self, extractor: PanFieldExtractor) -> None:
        assert extractor.extract(["DOB", "01-02-1985"]).date_of_birth.value == "01-02-1985"
        assert extractor.extract(["DOB", "01.02.1985"]).date_of_birth.value == "01.02.1985"

    def test_hindi_labels(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["नाम / Name", "PRIYA SINGH", "ABCDE1234F"])
        assert fields.name.value == "PRIYA SINGH"
        assert fields.name.provenance is Provenance.LABEL_MATCHED


# ---------------------------------------------------------------------------
# Positional fallback
# ---------------------------------------------------------------------------
class TestPositionalFallback:

    def test_old_format_card_without_labels(self, extractor: PanFieldExtractor) -> None:
        lines = [
            "आयकर विभाग",
            "INCOME TAX DEPARTMENT",
            "भारत सरकार",
            "GOVT. OF INDIA",
            "RAHUL KUMAR SHARMA",
            "SURESH KUMAR SHARMA",
            "15/08/1990",
            "Permanent Account Number",
            "ABCDE1234F",
            "Signature",
        ]
        fields = extractor.extract(lines)

        assert fields.document_number.value == "ABCDE1234F"
        # Closest name-shaped line above the number
        assert fields.name.value == "SURESH KUMAR SHARMA"
        assert fields.name.provenance is Provenance.POSITIONAL_GUESS
        assert fields.name.requires_review
        assert fields.guardian_name.value == "RAHUL KUMAR SHARMA"
        assert fields.guardian_name.provenance is Provenance.POSITIONAL_GUESS
        assert fields.date_of_birth is None

    def test_label_match_never_overwritten(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["NAME", "RAHUL KUMAR", "SURESH KUMAR", "ABCDE1234F"])

        assert fields.name.value == "RAHUL KUMAR"
        assert fields.name.provenance is Provenance.LABEL_MATCHED
        assert fields.guardian_name.value == "SURESH KUMAR"
        assert fields.guardian_name.provenance is Provenance.POSITIONAL_GUESS

    def test_guardian_is_last_candidate_before_guardian_label(self, extractor: PanFieldExtractor) -> None:
        # Label with no usable value below it still anchors the guardian position
        lines = ["AMIT VERMA", "MOHAN VERMA", "RAVI VERMA", "ABCDE1234F", "FATHER"]
        fields = extractor.extract(lines)

        assert fields.name.value == "RAVI VERMA"
        assert fields.guardian_name.value == "MOHAN VERMA"
        assert fields.guardian_name.provenance is Provenance.POSITIONAL_GUESS

    def test_guardian_is_first_distinct_candidate_without_label(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["AMIT VERMA", "MOHAN VERMA", "RAVI VERMA", "ABCDE1234F"])

        assert fields.name.value == "RAVI VERMA"
        assert fields.guardian_name.value == "AMIT VERMA"

    def test_guardian_after_name(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["ABCDE1234F", "NAME", "RAHUL KUMAR", "15/08/1990", "SURESH KUMAR"])

        assert fields.name.value == "RAHUL KUMAR"
        assert fields.guardian_name.value == "SURESH KUMAR"
        assert fields.guardian_name.provenance is Provenance.POSITIONAL_GUESS

    def test_no_document_number_disables_positional_logic(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["RAHUL KUMAR", "SURESH KUMAR", "15/08/1990"])
        assert fields.is_empty

    def test_no_document_number_keeps_label_results(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["NAME", "JOHN DOE", "OTHER PERSON"])

        assert fields.document_number is None
        assert fields.name.value == "JOHN DOE"
        assert fields.guardian_name is None


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------
class TestEdgeCases:

    def test_empty_input(self, extractor: PanFieldExtractor) -> None:
        assert extractor.extract([]) == ExtractedFields()

    def test_pan_glued_to_other_text(self, extractor: PanFieldExtractor) -> None:
        assert extractor.extract(["PAN:ABCDE1234FX"]).document_number.value == "ABCDE1234F"

    def test_first_pan_wins(self, extractor: PanFieldExtractor) -> None:
        assert extractor.extract(["ABCDE1234F", "ZYXWV9876A"]).document_number.value == "ABCDE1234F"

    def test_names_cleaned_of_punctuation(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["NAME", "JOHN D'SOUZA.", "AAAPL1234C"])
        assert fields.name.value == "JOHN DSOUZA"

    def test_pan_line_never_taken_as_label_value(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["नाम", "राम कुमार", "AAAPL1234C"])

        assert fields.document_number.value == "AAAPL1234C"
        assert fields.name is None

    def test_label_value_found_past_pan_line(self, extractor: PanFieldExtractor) -> None:
        fields = extractor.extract(["NAME", "ABCDE1234F", "MEERA NAIR"])

        assert fields.name.value == "MEERA NAIR"
        assert fields.name.provenance is Provenance.LABEL_MATCHED

    def test_repeated_extraction_is_identical(self, extractor: PanFieldExtractor) -> None:
        lines = ["INCOME TAX DEPARTMENT", "RAHUL KUMAR", "SURESH KUMAR", "ABCDE1234F"]
        assert extractor.extract(lines) == extractor.extract(list(lines))


class TestPaymentDocuments:

    @pytest.mark.parametrize("text", ["Paytm wallet", "UPI ID: x@ybl", "Payment successful"])
    def test_payment_text_flagged(self, extractor: PanFieldExtractor, text: str) -> None:
        assert extractor.is_payment_document(text)

    def test_id_card_text_not_flagged(self, extractor: PanFieldExtractor) -> None:
        assert not extractor.is_payment_document("INCOME TAX DEPARTMENT\nABCDE1234F")
        assert not extractor.is_payment_document(None)


class TestVocabulary:

    def test_override_replaces_only_given_tables(self) -> None:
        vocab = ExtractionVocabulary.from_dict({"name_labels": ["naam"]})

        assert vocab.name_labels == ("NAAM",)
        assert vocab.skip_phrases == DEFAULT_VOCABULARY.skip_phrases

    def test_unknown_table_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown vocabulary tables"):
            ExtractionVocabulary.from_dict({"surname_labels": ["X"]})

    def test_load_from_file(self, tmp_path) -> None:
        path = tmp_path / "vocab.json"
        path.write_text(json.dumps({"payment_keywords": ["gpay"]}), encoding="utf-8")

        vocab = load_vocabulary(path)

        assert PanFieldExtractor(vocab).is_payment_document("GPay receipt")
        assert not PanFieldExtractor(vocab).is_payment_document("Paytm")

    def test_defaults_without_path(self) -> None:
        assert load_vocabulary(None) is DEFAULT_VOCABULARY


class TestChequeHeuristics:

    def test_fields_recovered(self) -> None:
        lines = [
            "STATE BANK OF INDIA",
            "IFSC: SBIN0001234",
            "Date 12/03/2024",
            "A/c No. 12345678901",
            "₹ 15,000.00",
            "456789",
        ]
        cheque = parse_cheque_text(lines)

        assert cheque.ifsc_code == "SBIN0001234"
        assert cheque.account_number == "12345678901"
        assert cheque.date == "12/03/2024"
        assert cheque.amount == "15,000.00"
        assert cheque.cheque_number == "456789"

    def test_result_shape(self) -> None:
        result = parse_cheque_text(["IFSC HDFC0000123"]).to_result()

        assert result[0]["type"] == "cheque"
        assert result[0]["details"]["ifsc_code"] == {"conf": 0.9, "value": "HDFC0000123"}
        assert result[0]["details"]["account_number"]["value"] == ""

    def test_nothing_found(self) -> None:
        assert parse_cheque_text(["hello"]).is_empty
