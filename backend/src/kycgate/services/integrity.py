"""
Upload integrity check based on magic-byte signatures.

Runs before any provider call so corrupt or mislabeled uploads never
consume provider quota. Fails closed: anything it cannot vouch for is
rejected.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Buffers shorter than this cannot be a real document image.
MIN_IMAGE_BYTES = 100


@dataclass(frozen=True)
class Signature:
    """A byte pattern expected at a fixed offset."""
    offset: int
    magic: bytes

    def matches(self, data: bytes) -> bool:
        return data[self.offset:self.offset + len(self.magic)] == self.magic


_JPEG = (Signature(0, b"\xff\xd8\xff"),)
_PNG = (Signature(0, b"\x89PNG"),)
_PDF = (Signature(0, b"%PDF"),)
_WEBP = (Signature(0, b"RIFF"), Signature(8, b"WEBP"))
_BMP = (Signature(0, b"BM"),)

# Each entry is a list of alternatives; an alternative matches when all its
# signatures match.
SIGNATURES: dict[str, list[tuple[Signature, ...]]] = {
    "image/jpeg": [_JPEG],
    "image/jpg": [_JPEG],
    "image/pjpeg": [_JPEG],
    "image/png": [_PNG],
    "application/pdf": [_PDF],
    "image/webp": [_WEBP],
    "image/bmp": [_BMP],
    "image/x-ms-bmp": [_BMP],
    "image/tiff": [
        (Signature(0, b"II*\x00"),),
        (Signature(0, b"MM\x00*"),),
    ],
}


def validate(data: bytes | None, declared_media_type: str | None) -> bool:
    """
    Check that a buffer's leading bytes match its declared media type.

    Unknown media types only get a weak sanity check (first two bytes
    not both zero).

    Returns:
        True if the buffer may be sent to a provider
    """
    if not data or len(data) < MIN_IMAGE_BYTES:
        logger.warning(f"Rejecting upload: {len(data) if data else 0} bytes is below minimum")
        return False

    media_type = (declared_media_type or "").split(";")[0].strip().lower()
    alternatives = SIGNATURES.get(media_type)

    if alternatives is None:
        ok = not (data[0] == 0 and data[1] == 0)
        if not ok:
            logger.warning(f"Rejecting upload: unknown type '{media_type}' with zeroed header")
        return ok

    ok = any(all(sig.matches(data) for sig in alternative) for alternative in alternatives)
    if not ok:
        logger.warning(f"Rejecting upload: signature {data[:12].hex()} does not match '{media_type}'")
    return ok


def sniff_media_type(data: bytes | None) -> str | None:
    """Best-effort media type from the leading bytes (None if unrecognised)."""
    if not data:
        return None
    for media_type, alternatives in SIGNATURES.items():
        if any(all(sig.matches(data) for sig in alternative) for alternative in alternatives):
            return media_type
    return None
