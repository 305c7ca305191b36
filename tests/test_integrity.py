"""Unit tests for magic-byte checks in kycgate/services/integrity.py."""

from kycgate.services import integrity

PADDING = b"\x01" * 120


class TestKnownSignatures:

    def test_jpeg_declared_as_jpeg(self) -> None:
        assert integrity.validate(b"\xff\xd8\xff" + PADDING, "image/jpeg")

    def test_jpeg_declared_as_png_fails(self) -> None:
        assert not integrity.validate(b"\xff\xd8\xff" + PADDING, "image/png")

    def test_png(self) -> None:
        assert integrity.validate(b"\x89PNG\r\n\x1a\n" + PADDING, "image/png")

    def test_pdf(self) -> None:
        assert integrity.validate(b"%PDF-1.7" + PADDING, "application/pdf")

    def test_webp_needs_both_riff_and_webp_markers(self) -> None:
        assert integrity.validate(b"RIFF\x00\x00\x00\x00WEBP" + PADDING, "image/webp")
        assert not integrity.validate(b"RIFF\x00\x00\x00\x00WAVE" + PADDING, "image/webp")

    def test_tiff_both_byte_orders(self) -> None:
        assert integrity.validate(b"II*\x00" + PADDING, "image/tiff")
        assert integrity.validate(b"MM\x00*" + PADDING, "image/tiff")

    def test_bmp(self) -> None:
        assert integrity.validate(b"BM" + PADDING, "image/bmp")

    def test_media_type_parameters_and_case_ignored(self) -> None:
        assert integrity.validate(b"\xff\xd8\xff" + PADDING, "IMAGE/JPEG; charset=binary")


class TestFailClosed:

    def test_empty_buffer(self) -> None:
        assert not integrity.validate(b"", "image/jpeg")
        assert not integrity.validate(None, "image/jpeg")

    def test_below_minimum_size(self) -> None:
        assert not integrity.validate(b"\xff\xd8\xff" + b"\x01" * 50, "image/jpeg")

    def test_unknown_type_weak_check(self) -> None:
        assert integrity.validate(b"GIF89a" + PADDING, "image/gif")
        assert not integrity.validate(b"\x00\x00" + PADDING, "image/gif")


class TestSniff:

    def test_detects_png(self) -> None:
        assert integrity.sniff_media_type(b"\x89PNG" + PADDING) == "image/png"

    def test_unrecognised(self) -> None:
        assert integrity.sniff_media_type(b"hello world") is None
        assert integrity.sniff_media_type(b"") is None
