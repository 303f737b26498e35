"""Identity-number extraction from OCR'd KYC document text.

Pulls the PAN and Aadhaar numbers out of free text so they can be stored on
the applicant profile. Aadhaar numbers never start with 0 or 1 and are often
printed in groups of four.
"""

import re
from typing import Optional

PAN_PATTERN = re.compile(r"\b([A-Z]{5}[0-9]{4}[A-Z])\b")
AADHAAR_PATTERN = re.compile(r"(?<!\d)([2-9]\d{3})[\s-]?(\d{4})[\s-]?(\d{4})(?!\d)")


def extract_pan(text: str) -> Optional[str]:
    match = PAN_PATTERN.search((text or "").upper())
    return match.group(1) if match else None


def extract_aadhaar(text: str) -> Optional[str]:
    """Return the 12 Aadhaar digits without separators."""
    match = AADHAAR_PATTERN.search(text or "")
    return "".join(match.groups()) if match else None


def extract_identity_numbers(text: str) -> dict[str, Optional[str]]:
    return {
        "pan_number": extract_pan(text),
        "aadhaar_number": extract_aadhaar(text),
    }
