"""
Input validation rules for verification requests.

Pure functions, no I/O. Everything here runs before any provider is
contacted: a request that fails these checks never costs provider quota.
"""

import re

from .errors import MalformedInputError
from .models import VerificationClaim

PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
GSTIN_LENGTH = 15
AADHAAR_PATTERN = re.compile(r"^\d{12}$")


def is_valid_pan_format(pan: str | None) -> bool:
    """Check PAN shape (5 letters, 4 digits, 1 letter), case-insensitive."""
    if not pan or len(pan) != 10:
        return False
    return PAN_PATTERN.match(pan.upper()) is not None


def normalize_pan(pan: str | None) -> str:
    """
    Trim and upper-case a PAN.

    Raises:
        MalformedInputError: If the value is not a well-formed PAN
    """
    candidate = (pan or "").strip().upper()
    if not PAN_PATTERN.match(candidate):
        raise MalformedInputError("Invalid PAN format")
    return candidate


def mask_pan(pan: str | None) -> str | None:
    """
    Mask a PAN for display and logs.

    Example:
        >>> mask_pan("AAAPL1234C")
        'AAAPLXXXX'
    """
    if not pan or len(pan) < 5:
        return pan
    return pan[:5] + "XXXX"


def normalize_gstin(gstin: str | None) -> str:
    """Trim and upper-case a GSTIN; it must be exactly 15 characters."""
    candidate = (gstin or "").strip().upper()
    if len(candidate) != GSTIN_LENGTH:
        raise MalformedInputError("GST number must be exactly 15 characters")
    return candidate


def normalize_aadhaar(aadhaar_number: str | None) -> str:
    """Strip spaces from an Aadhaar number and require 12 digits."""
    candidate = (aadhaar_number or "").replace(" ", "").strip()
    if not AADHAAR_PATTERN.match(candidate):
        raise MalformedInputError("Aadhaar number must be 12 digits")
    return candidate


def build_claim(
    document_number: str | None,
    claimed_name: str | None,
    date_of_birth: str | None = None,
) -> VerificationClaim:
    """
    Build a normalized verification claim.

    Raises:
        MalformedInputError: Bad PAN format or empty/whitespace name
    """
    pan = normalize_pan(document_number)
    name = (claimed_name or "").strip()
    if not name:
        raise MalformedInputError("Name is required for PAN verification")
    dob = date_of_birth.strip() if date_of_birth and date_of_birth.strip() else None
    return VerificationClaim(document_number=pan, claimed_name=name, date_of_birth=dob)
