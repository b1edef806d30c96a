"""
Unit tests for order aggregation.
"""

import logging
import pytest
from decimal import Decimal

from orderdesk.exceptions import InvalidLineItem, PolicyConflictError
from orderdesk.models import LineItem, TaxDiscountPolicy
from orderdesk.services.order_aggregator import AggregationOptions, aggregate

PER_LINE = AggregationOptions(policy=TaxDiscountPolicy.PER_LINE)


def _line(product_id, qty, price, discount='0', tax='0'):
    return LineItem(
        product_id=product_id,
        quantity=Decimal(qty),
        unit_price=Decimal(price),
        discount_percent=Decimal(discount),
        tax_rate=Decimal(tax),
    )


class TestPerLinePolicy:
    """Discount and tax applied to each line."""

    def test_single_line_with_discount_and_tax(self, sales_line):
        totals = aggregate([sales_line], PER_LINE)

        assert totals.subtotal == Decimal('200000')
        assert totals.discount_amount == Decimal('20000')
        assert totals.taxable_amount == Decimal('180000')
        assert totals.tax_amount == Decimal('9000')
        assert totals.grand_total == Decimal('189000')

        line = totals.line_totals[0]
        assert line.subtotal == Decimal('200000')
        assert line.discount == Decimal('20000')
        assert line.taxable == Decimal('180000')
        assert line.tax == Decimal('9000')
        assert line.total == Decimal('189000')

    def test_tax_is_computed_per_line(self):
        totals = aggregate([
            _line(1, '1', '100', tax='10'),
            _line(2, '1', '100', tax='0'),
        ], PER_LINE)

        assert totals.tax_amount == Decimal('10')
        assert totals.grand_total == Decimal('210')

    def test_shipping_is_added_after_tax(self, sales_line):
        options = AggregationOptions(policy=TaxDiscountPolicy.PER_LINE, shipping_fee=Decimal('15000'))
        totals = aggregate([sales_line], options)

        assert totals.shipping_fee == Decimal('15000')
        assert totals.grand_total == Decimal('204000')

    def test_order_level_tax_rate_is_refused(self):
        with pytest.raises(PolicyConflictError):
            AggregationOptions(policy=TaxDiscountPolicy.PER_LINE, order_level_tax_rate=Decimal('8'))

    def test_flat_discount_applies_after_line_taxes(self, sales_line):
        options = AggregationOptions(
            policy=TaxDiscountPolicy.PER_LINE,
            order_level_discount_amount=Decimal('5000'),
            shipping_fee=Decimal('15000'),
        )
        totals = aggregate([sales_line], options)

        assert totals.discount_amount == Decimal('25000')
        assert totals.taxable_amount == Decimal('175000')
        assert totals.tax_amount == Decimal('9000')
        assert totals.grand_total == Decimal('199000')
        # The order detail page derives the goods amount back this way
        goods = totals.grand_total - totals.tax_amount - totals.shipping_fee + totals.discount_amount
        assert goods == totals.subtotal

    def test_order_level_discount_mode_ignores_line_percentages(self, sales_line, caplog):
        options = AggregationOptions(
            policy=TaxDiscountPolicy.PER_LINE,
            discount_mode=TaxDiscountPolicy.ORDER_LEVEL,
            order_level_discount_amount=Decimal('1000'),
        )

        with caplog.at_level(logging.WARNING, logger='orderdesk.services.order_aggregator'):
            totals = aggregate([sales_line], options)

        assert totals.line_totals[0].discount == Decimal('0')
        assert totals.tax_amount == Decimal('10000')
        assert totals.discount_amount == Decimal('1000')
        assert totals.grand_total == Decimal('209000')
        assert 'ignored' in caplog.text

    def test_discount_mode_defaults_to_policy(self):
        assert PER_LINE.discount_mode is TaxDiscountPolicy.PER_LINE
        options = AggregationOptions(policy=TaxDiscountPolicy.ORDER_LEVEL)
        assert options.discount_mode is TaxDiscountPolicy.ORDER_LEVEL

    def test_unknown_discount_mode_is_refused(self):
        with pytest.raises(PolicyConflictError):
            AggregationOptions(policy=TaxDiscountPolicy.PER_LINE, discount_mode='order_level')


class TestOrderLevelPolicy:
    """One tax rate applied to the whole order."""

    def test_tax_applied_once_to_subtotal(self, purchase_draft):
        options = AggregationOptions(
            policy=TaxDiscountPolicy.ORDER_LEVEL,
            order_level_tax_rate=purchase_draft.order_level_tax_rate,
        )
        totals = aggregate(purchase_draft.details, options)

        assert totals.total_quantity == Decimal('4')
        assert totals.subtotal == Decimal('170000')
        assert totals.discount_amount == Decimal('0')
        assert totals.taxable_amount == Decimal('170000')
        assert totals.tax_amount == Decimal('13600')
        assert totals.grand_total == Decimal('183600')

    def test_flat_discount_reduces_taxable_amount(self):
        options = AggregationOptions(
            policy=TaxDiscountPolicy.ORDER_LEVEL,
            order_level_tax_rate=Decimal('10'),
            order_level_discount_amount=Decimal('100'),
        )
        totals = aggregate([_line(1, '2', '500')], options)

        assert totals.taxable_amount == Decimal('900')
        assert totals.tax_amount == Decimal('90')
        assert totals.grand_total == Decimal('990')

    def test_line_terms_are_ignored_with_warning(self, caplog):
        options = AggregationOptions(policy=TaxDiscountPolicy.ORDER_LEVEL, order_level_tax_rate=Decimal('8'))

        with caplog.at_level(logging.WARNING, logger='orderdesk.services.order_aggregator'):
            totals = aggregate([_line(1, '1', '1000', discount='50', tax='20')], options)

        assert totals.discount_amount == Decimal('0')
        assert totals.tax_amount == Decimal('80')
        assert totals.grand_total == Decimal('1080')
        assert 'ignored' in caplog.text

    def test_unknown_policy_is_refused(self):
        with pytest.raises(PolicyConflictError):
            AggregationOptions(policy='per_line')


class TestAggregateProperties:
    """Invariants that hold for any input."""

    def test_empty_order_is_all_zero(self):
        totals = aggregate([], PER_LINE)

        for name in ('total_quantity', 'subtotal', 'discount_amount', 'taxable_amount',
                     'tax_amount', 'shipping_fee', 'grand_total'):
            assert getattr(totals, name) == Decimal('0')
        assert totals.line_totals == ()

    def test_sums_quantity_and_subtotal(self):
        lines = [_line(1, '1.5', '0.1'), _line(2, '3', '0.2'), _line(3, '0.25', '19.99')]
        totals = aggregate(lines, PER_LINE)

        assert totals.total_quantity == Decimal('4.75')
        assert totals.subtotal == Decimal('0.15') + Decimal('0.6') + Decimal('4.9975')

    def test_idempotent(self, sales_line):
        lines = [sales_line, _line(2, '3', '33.33', discount='7.5', tax='10')]

        assert aggregate(lines, PER_LINE) == aggregate(lines, PER_LINE)

    def test_line_order_does_not_change_totals(self):
        lines = [
            _line(1, '3', '19.99', discount='5', tax='10'),
            _line(2, '1', '0.01', tax='8'),
            _line(3, '7', '123.456', discount='12.5', tax='5'),
        ]
        forward = aggregate(lines, PER_LINE)
        backward = aggregate(list(reversed(lines)), PER_LINE)

        for name in ('total_quantity', 'subtotal', 'discount_amount', 'taxable_amount',
                     'tax_amount', 'grand_total'):
            assert getattr(forward, name) == getattr(backward, name)

    def test_remove_and_readd_reproduces_totals(self, sales_line):
        other = _line(2, '4', '2500', tax='8')
        before = aggregate([sales_line, other], PER_LINE)

        removed = aggregate([other], PER_LINE)
        readded = aggregate([other, sales_line], PER_LINE)

        assert removed.grand_total != before.grand_total
        assert readded.grand_total == before.grand_total
        assert readded.subtotal == before.subtotal

    def test_accepts_generator(self, sales_line):
        totals = aggregate((line for line in [sales_line]), PER_LINE)
        assert totals.grand_total == Decimal('189000')

    @pytest.mark.parametrize('field,value', [
        ('quantity', Decimal('-1')),
        ('unit_price', Decimal('-0.01')),
        ('quantity', 2.5),
        ('unit_price', Decimal('NaN')),
    ])
    def test_invalid_lines_raise(self, field, value):
        line = _line(1, '1', '10').with_changes(**{field: value})
        with pytest.raises(InvalidLineItem):
            aggregate([line], PER_LINE)


class TestAggregatedTotals:
    """Tests for the totals value object."""

    def test_quantized_rounds_money_fields(self):
        totals = aggregate([_line(1, '3', '33.333', tax='10')], PER_LINE)

        rounded = totals.quantized(2)

        assert totals.subtotal == Decimal('99.999')
        assert rounded.subtotal == Decimal('100.00')
        assert rounded.tax_amount == Decimal('10.00')
        assert rounded.total_quantity == Decimal('3')

    def test_to_dict_uses_exact_strings(self, sales_line):
        data = aggregate([sales_line], PER_LINE).to_dict()

        assert data['grand_total'] == '189000'
        assert data['lines'][0]['product_id'] == 1
        assert data['lines'][0]['tax'] == '9000'

    def test_to_dict_never_uses_exponent_notation(self):
        data = aggregate([_line(1, '1E+3', '2')], PER_LINE).to_dict()

        assert data['total_quantity'] == '1000'
        assert data['subtotal'] == '2000'
        assert data['lines'][0]['subtotal'] == '2000'
