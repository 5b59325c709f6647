"""
Tests for Decimal Math Utilities.

Tests verify:
1. Table multipliers are applied exactly (no float drift)
2. Monthly fees round half up, TaaS fees to the nearest $5
3. Setup fees always round UP to the next $25
4. Free-text amounts parse leniently
"""

import pytest
from decimal import Decimal
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


class TestDecimalConversion:
    """Tests for value conversion to Decimal."""

    def test_to_decimal_from_float(self):
        """Floats convert through their string form."""
        from pricing.decimal_math import to_decimal
        assert to_decimal(2.2) == Decimal("2.2")

    def test_to_decimal_from_string(self):
        from pricing.decimal_math import to_decimal
        assert to_decimal("0.75") == Decimal("0.75")

    def test_to_decimal_from_decimal(self):
        """Decimal passes through unchanged."""
        from pricing.decimal_math import to_decimal
        original = Decimal("1.35")
        assert to_decimal(original) is original

    def test_multiplier_is_exact(self):
        """150 * 2.2 is exactly 330, unlike binary floats."""
        from pricing.decimal_math import to_decimal
        assert to_decimal(150) * to_decimal(2.2) == Decimal("330")
        assert 150 * 2.2 != 330


class TestRounding:
    """Tests for the rounding helpers."""

    def test_round_half_up(self):
        from pricing.decimal_math import round_half_up
        assert round_half_up("429.5") == Decimal("430")
        assert round_half_up("429.49") == Decimal("429")
        assert round_half_up(430) == Decimal("430")

    def test_round_to_nearest_five(self):
        from pricing.decimal_math import round_to_nearest
        assert round_to_nearest(204, 5) == Decimal("205")
        assert round_to_nearest("202.4", 5) == Decimal("200")
        assert round_to_nearest("202.5", 5) == Decimal("205")

    def test_ceil_to_nearest_rounds_up(self):
        """Setup fees never round down."""
        from pricing.decimal_math import ceil_to_nearest
        assert ceil_to_nearest(1935, 25) == Decimal("1950")
        assert ceil_to_nearest("1925.01", 25) == Decimal("1950")

    def test_ceil_to_nearest_keeps_exact_multiples(self):
        from pricing.decimal_math import ceil_to_nearest
        assert ceil_to_nearest(1950, 25) == Decimal("1950")
        assert ceil_to_nearest(0, 25) == Decimal("0")

    def test_money_rounds_to_pennies(self):
        from pricing.decimal_math import money
        assert money(1950) == Decimal("1950.00")
        assert str(money(1950)) == "1950.00"
        assert money("100.995") == Decimal("101.00")


class TestParseAmount:
    """Tests for lenient free-text amount parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("5000", Decimal("5000")),
        ("  1250.50", Decimal("1250.50")),
        ("5000 flat", Decimal("5000")),
        (".5", Decimal("0.5")),
        ("-20", Decimal("-20")),
        ("1e3", Decimal("1000")),
    ])
    def test_parses_leading_number(self, text, expected):
        from pricing.decimal_math import parse_amount
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("value", [None, "", "n/a", "$500", True, False, float("nan"), float("inf")])
    def test_unparseable_is_none(self, value):
        from pricing.decimal_math import parse_amount
        assert parse_amount(value) is None

    def test_numbers_pass_through(self):
        from pricing.decimal_math import parse_amount
        assert parse_amount(12) == Decimal("12")
        assert parse_amount(0.75) == Decimal("0.75")


class TestToNumber:
    """Tests for JSON number conversion."""

    def test_whole_values_become_int(self):
        from pricing.decimal_math import to_number
        result = to_number(Decimal("1950.00"))
        assert result == 1950
        assert isinstance(result, int)

    def test_fractional_values_become_float(self):
        from pricing.decimal_math import to_number
        assert to_number(Decimal("2.2")) == 2.2


class TestLargeValues:
    """Rounding stays exact beyond the default 28-digit context."""

    def test_round_half_up(self):
        from pricing.decimal_math import round_half_up
        assert round_half_up(Decimal("1E+40")) == Decimal("1E+40")
        assert round_half_up(Decimal("1000000000000000000000000000000.5")) == \
            Decimal("1000000000000000000000000000001")

    def test_round_to_nearest(self):
        from pricing.decimal_math import round_to_nearest
        assert round_to_nearest(Decimal("1000000000000000000000000000003"), 5) == \
            Decimal("1000000000000000000000000000005")

    def test_ceil_to_nearest(self):
        from pricing.decimal_math import ceil_to_nearest
        assert ceil_to_nearest(Decimal("1000000000000000000000000000001"), 25) == \
            Decimal("1000000000000000000000000000025")

    def test_money(self):
        from pricing.decimal_math import money
        assert money(Decimal("1e30")) == Decimal("1e30")

    def test_parse_amount_bounds(self):
        from pricing.decimal_math import parse_amount
        assert parse_amount("1e100") == Decimal("1e100")
        assert parse_amount("1e101") is None
        assert parse_amount(10 ** 101) is None
        assert parse_amount("0e500") == 0
