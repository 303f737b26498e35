"""Tests for PAN/Aadhaar extraction from OCR text."""

import pytest

from arthastra.services.document_fields import (
    extract_aadhaar,
    extract_identity_numbers,
    extract_pan,
)


class TestExtractPan:

    def test_uppercases(self):
        assert extract_pan("pan: abcde1234f") == "ABCDE1234F"

    def test_embedded_in_word_ignored(self):
        assert extract_pan("XABCDE1234FX") is None

    def test_missing(self):
        assert extract_pan("") is None
        assert extract_pan(None) is None


class TestExtractAadhaar:

    @pytest.mark.parametrize("text", [
        "Aadhaar No: 2345 6789 0123",
        "UID 2345-6789-0123 issued",
        "234567890123",
    ])
    def test_formats(self, text):
        assert extract_aadhaar(text) == "234567890123"

    def test_cannot_start_with_zero_or_one(self):
        assert extract_aadhaar("1234 5678 9012") is None

    def test_longer_numbers_ignored(self):
        assert extract_aadhaar("Account 2345678901234") is None


def test_extract_identity_numbers():
    text = "Name: ASHA RAO\nPAN ABCDE1234F\nAadhaar 9876 5432 1098"
    assert extract_identity_numbers(text) == {
        "pan_number": "ABCDE1234F",
        "aadhaar_number": "987654321098",
    }
