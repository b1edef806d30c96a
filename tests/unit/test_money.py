"""
Unit tests for decimal money helpers.
"""

import pytest
from decimal import Decimal

from orderdesk.exceptions import InvalidAmount
from orderdesk.utils.money import (
    ZERO, add, multiply, percent_of, quantize_money, subtract, to_decimal, to_display_number,
    to_json_number, total,
)


class TestToDecimal:
    """Tests for to_decimal coercion."""

    def test_float_goes_through_str(self):
        """0.1 must not carry binary float noise."""
        assert to_decimal(0.1) == Decimal('0.1')
        assert to_decimal(0.1) + to_decimal(0.2) == Decimal('0.3')

    def test_accepts_int_str_and_decimal(self):
        assert to_decimal(5) == Decimal('5')
        assert to_decimal(' 12.50 ') == Decimal('12.50')
        assert to_decimal(Decimal('7.25')) == Decimal('7.25')

    @pytest.mark.parametrize('value', [None, '', '   ', 'abc', True, 'NaN', 'Infinity', [1]])
    def test_rejects_non_numeric(self, value):
        with pytest.raises(InvalidAmount):
            to_decimal(value)

    def test_default_replaces_invalid_input(self):
        assert to_decimal('abc', default=0) == ZERO
        assert to_decimal(None, default='1.5') == Decimal('1.5')

    def test_invalid_amount_is_value_error(self):
        with pytest.raises(ValueError):
            to_decimal('x')


class TestArithmetic:
    """Tests for exact arithmetic helpers."""

    def test_multiply_is_exact(self):
        assert multiply(Decimal('3'), Decimal('50000')) == Decimal('150000')
        assert multiply(Decimal('0.1'), Decimal('3')) == Decimal('0.3')

    def test_add_and_subtract(self):
        assert add(Decimal('0.1'), Decimal('0.2')) == Decimal('0.3')
        assert subtract(Decimal('200000'), Decimal('20000')) == Decimal('180000')

    def test_percent_of(self):
        assert percent_of(Decimal('200000'), Decimal('10')) == Decimal('20000')
        assert percent_of(Decimal('170000'), Decimal('8')) == Decimal('13600')
        assert percent_of(Decimal('10'), Decimal('33.333')) == Decimal('3.3333')

    def test_total_of_empty_is_zero(self):
        assert total([]) == ZERO
        assert total(Decimal('0.1') for _ in range(10)) == Decimal('1.0')


class TestQuantizeMoney:
    """Tests for rounding to the currency minor unit."""

    def test_rounds_half_up(self):
        assert quantize_money(Decimal('2.345')) == Decimal('2.35')
        assert quantize_money(Decimal('2.344')) == Decimal('2.34')
        assert quantize_money(Decimal('-2.345')) == Decimal('-2.35')

    def test_zero_places(self):
        assert quantize_money(Decimal('1234.5'), places=0) == Decimal('1235')


class TestToJsonNumber:
    """Tests for encoding Decimals in backend request bodies."""

    def test_integral_values_are_ints(self):
        assert to_json_number(Decimal('100')) == 100
        assert to_json_number(Decimal('100.00')) == 100
        assert isinstance(to_json_number(Decimal('1E+2')), int)

    def test_fractional_values_are_exact_strings(self):
        assert to_json_number(Decimal('1.50')) == '1.5'
        assert to_json_number(Decimal('0.000001')) == '0.000001'

    def test_display_number_is_float(self):
        assert to_display_number(Decimal('189000')) == 189000.0
