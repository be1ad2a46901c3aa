"""Tests for native unit conversion."""

from decimal import Decimal

import pytest

from a402.core.exceptions import ValidationError
from a402.utils import from_wei, to_wei


class TestToWei:
    """Tests for to_wei."""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            ("0.001", 10**15),
            ("1", 10**18),
            ("1.5", 15 * 10**17),
            (".25", 25 * 10**16),
            (Decimal("0.000000000000000001"), 1),
            (3, 3 * 10**18),
            ("123456789.123456789123456789", 123456789123456789123456789),
        ],
    )
    def test_exact(self, amount, expected):
        assert to_wei(amount) == expected

    def test_truncates_extra_digits(self):
        assert to_wei("0.0000000000000000019") == 1

    def test_custom_decimals(self):
        assert to_wei("1.23", decimals=6) == 1_230_000

    @pytest.mark.parametrize("bad", ["-1", "abc", "1.2.3", "1e18", ""])
    def test_invalid(self, bad):
        with pytest.raises(ValidationError):
            to_wei(bad)


class TestFromWei:
    """Tests for from_wei."""

    @pytest.mark.parametrize(
        "wei,expected",
        [
            (10**15, "0.001"),
            (10**18, "1"),
            (0, "0"),
            (1, "0.000000000000000001"),
            ("2500000000000000000", "2.5"),
        ],
    )
    def test_formats(self, wei, expected):
        assert from_wei(wei) == expected

    def test_negative(self):
        with pytest.raises(ValidationError):
            from_wei(-1)
