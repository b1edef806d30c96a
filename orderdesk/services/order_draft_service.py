"""Order draft editing operations.

Each operation takes a draft and returns a new one; the input draft is
never modified, so totals computed from an earlier draft stay valid.
"""
from decimal import Decimal
from typing import Optional

from orderdesk.models.order_draft import LineItem, OrderDraft
from orderdesk.utils.money import ZERO, add, to_decimal, total


def add_item(
    draft: OrderDraft,
    product_id: int,
    quantity=1,
    unit_price=0,
    tax_rate=0,
    notes: Optional[str] = None,
) -> OrderDraft:
    """Add product to draft or increase its quantity if already present."""
    qty = to_decimal(quantity)
    existing = draft.find_line(product_id)

    if existing:
        return draft.with_details(
            line.with_changes(quantity=add(line.quantity, qty)) if line is existing else line
            for line in draft.details
        )

    line = LineItem(
        product_id=product_id,
        quantity=qty,
        unit_price=to_decimal(unit_price, default=0),
        discount_percent=ZERO,
        tax_rate=to_decimal(tax_rate, default=0),
        notes=notes,
    )
    return draft.with_details(draft.details + (line,))


def remove_item(draft: OrderDraft, product_id: int) -> OrderDraft:
    return draft.with_details(line for line in draft.details if line.product_id != product_id)


def _update_line(draft: OrderDraft, product_id: int, **changes) -> OrderDraft:
    return draft.with_details(
        line.with_changes(**changes) if line.product_id == product_id else line
        for line in draft.details
    )


def update_quantity(draft: OrderDraft, product_id: int, quantity) -> OrderDraft:
    """Set a line's quantity; zero or less removes the line."""
    qty = to_decimal(quantity, default=0)
    if qty <= 0:
        return remove_item(draft, product_id)
    return _update_line(draft, product_id, quantity=qty)


def update_price(draft: OrderDraft, product_id: int, unit_price) -> OrderDraft:
    return _update_line(draft, product_id, unit_price=to_decimal(unit_price, default=0))


def update_discount(draft: OrderDraft, product_id: int, discount_percent) -> OrderDraft:
    return _update_line(draft, product_id, discount_percent=to_decimal(discount_percent, default=0))


def update_tax(draft: OrderDraft, product_id: int, tax_rate) -> OrderDraft:
    return _update_line(draft, product_id, tax_rate=to_decimal(tax_rate, default=0))


def clear_items(draft: OrderDraft) -> OrderDraft:
    return draft.with_details(())


def item_count(draft: OrderDraft) -> Decimal:
    """Total units across all lines (cart badge count)."""
    return total(line.quantity for line in draft.details)
