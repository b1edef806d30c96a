"""
Unit tests for order draft editing.
"""

import pytest
from decimal import Decimal

from orderdesk.exceptions import InvalidAmount
from orderdesk.models import OrderDraft, TaxDiscountPolicy
from orderdesk.services.order_aggregator import AggregationOptions, aggregate
from orderdesk.services import order_draft_service as drafts


@pytest.fixture
def draft():
    d = drafts.add_item(OrderDraft(), 1, quantity=2, unit_price='100000', tax_rate=5)
    return drafts.add_item(d, 2, quantity='1.5', unit_price=4000)


class TestAddItem:
    """Tests for add_item."""

    def test_adds_line(self, draft):
        assert len(draft.details) == 2
        line = draft.find_line(1)
        assert line.quantity == Decimal('2')
        assert line.unit_price == Decimal('100000')
        assert line.tax_rate == Decimal('5')
        assert line.discount_percent == Decimal('0')

    def test_same_product_merges_quantity(self, draft):
        updated = drafts.add_item(draft, 1, quantity=3, unit_price=999)

        assert len(updated.details) == 2
        assert updated.find_line(1).quantity == Decimal('5')
        assert updated.find_line(1).unit_price == Decimal('100000')

    def test_keeps_insertion_order(self, draft):
        updated = drafts.add_item(draft, 3, quantity=1, unit_price=1)
        assert [line.product_id for line in updated.details] == [1, 2, 3]

    def test_invalid_quantity_raises(self):
        with pytest.raises(InvalidAmount):
            drafts.add_item(OrderDraft(), 1, quantity='lots')

    def test_input_draft_is_unchanged(self, draft):
        drafts.add_item(draft, 1, quantity=10)
        drafts.add_item(draft, 9, quantity=1)

        assert len(draft.details) == 2
        assert draft.find_line(1).quantity == Decimal('2')


class TestUpdateOperations:
    """Tests for the update_* operations."""

    def test_update_quantity(self, draft):
        updated = drafts.update_quantity(draft, 2, '4')
        assert updated.find_line(2).quantity == Decimal('4')
        assert draft.find_line(2).quantity == Decimal('1.5')

    @pytest.mark.parametrize('quantity', [0, '-1', 'abc'])
    def test_non_positive_quantity_removes_line(self, draft, quantity):
        updated = drafts.update_quantity(draft, 2, quantity)
        assert updated.find_line(2) is None
        assert len(updated.details) == 1

    def test_update_price_discount_and_tax(self, draft):
        updated = drafts.update_price(draft, 1, '90000')
        updated = drafts.update_discount(updated, 1, 10)
        updated = drafts.update_tax(updated, 1, '8')

        line = updated.find_line(1)
        assert line.unit_price == Decimal('90000')
        assert line.discount_percent == Decimal('10')
        assert line.tax_rate == Decimal('8')

    def test_update_unknown_product_is_noop(self, draft):
        assert drafts.update_price(draft, 99, 1) == draft


class TestRemoveAndClear:
    """Tests for remove_item, clear_items and item_count."""

    def test_remove_item(self, draft):
        updated = drafts.remove_item(draft, 1)
        assert [line.product_id for line in updated.details] == [2]

    def test_clear_items(self, draft):
        cleared = drafts.clear_items(draft)
        assert cleared.details == ()
        assert not cleared.is_submittable()
        assert draft.is_submittable()

    def test_item_count(self, draft):
        assert drafts.item_count(draft) == Decimal('3.5')
        assert drafts.item_count(OrderDraft()) == Decimal('0')

    def test_remove_then_readd_gives_same_totals(self, draft):
        options = AggregationOptions(policy=TaxDiscountPolicy.PER_LINE)
        before = aggregate(draft.details, options)

        line = draft.find_line(1)
        readded = drafts.add_item(
            drafts.remove_item(draft, 1), 1,
            quantity=line.quantity, unit_price=line.unit_price, tax_rate=line.tax_rate,
        )

        after = aggregate(readded.details, options)
        assert after.grand_total == before.grand_total
        assert after.tax_amount == before.tax_amount
