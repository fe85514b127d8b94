"""
Tests for formatting and masking helpers.
"""

from decimal import Decimal

from wallet_monitor.utils.formatters import escape_md, format_crypto
from wallet_monitor.utils.security import mask_address


class TestFormatCrypto:
    """Test crypto amount formatting."""

    def test_trims_trailing_zeros(self):
        assert format_crypto(Decimal("1.500000")) == "1.5"

    def test_integer_has_no_point(self):
        assert format_crypto(2) == "2"

    def test_thousands_separator(self):
        assert format_crypto("1234567.25") == "1,234,567.25"

    def test_truncates_not_rounds(self):
        assert format_crypto("0.1234569") == "0.123456"

    def test_small_amount(self):
        assert format_crypto(0.000123) == "0.000123"

    def test_below_precision_is_zero(self):
        assert format_crypto("0.0000001") == "0"
        assert format_crypto("-0.0000001") == "0"

    def test_float_noise_removed(self):
        assert format_crypto(0.1 + 0.2) == "0.3"


class TestEscapeMd:
    """Test Markdown escaping."""

    def test_escapes_special_chars(self):
        assert escape_md("a_b*c`d[e") == "a\\_b\\*c\\`d\\[e"

    def test_none(self):
        assert escape_md(None) == ""


class TestMaskAddress:
    """Test address masking."""

    def test_mask(self):
        assert mask_address("0x1234567890abcdef1234567890abcdef12345678") == "0x1234...5678"

    def test_short_or_missing(self):
        assert mask_address(None) == "***"
        assert mask_address("0x12") == "***"
