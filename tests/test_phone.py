"""Tests for phone number normalization."""

import pytest

from claims_intake.utils import format_phone_number


class TestFormatPhoneNumber:
    """Test normalizing phone numbers to the +254 form."""

    def test_local_number_gets_country_prefix(self):
        """Test a leading zero is replaced by +254."""
        assert format_phone_number("0712345678") == "+254712345678"

    def test_international_number_is_kept(self):
        """Test a +254 number is kept."""
        assert format_phone_number("+254712345678") == "+254712345678"

    def test_whitespace_is_removed(self):
        """Test spaces are stripped in both forms."""
        assert format_phone_number("0712 345 678") == "+254712345678"
        assert format_phone_number("+254 712 345 678") == "+254712345678"

    @pytest.mark.parametrize("number", ["712345678", "+1 555 0100", "254712345678"])
    def test_other_formats_are_rejected(self, number):
        """Test numbers without a 0 or +254 prefix are rejected."""
        with pytest.raises(ValueError):
            format_phone_number(number)
