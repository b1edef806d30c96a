"""Order draft value objects: line items, drafts and their computed totals.

These are plain immutable dataclasses, not SQLAlchemy models. A draft lives
only for the request that edits or submits it; totals are always
recomputed from it.
"""
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from orderdesk.utils.money import ZERO, multiply, quantize_money


@dataclass(frozen=True)
class LineItem:
    """One product row within an order."""

    product_id: int
    quantity: Decimal
    unit_price: Decimal
    discount_percent: Decimal = ZERO
    tax_rate: Decimal = ZERO
    notes: Optional[str] = None

    # Pass-through fields for the backend body
    line_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[str] = None

    def line_subtotal(self) -> Decimal:
        return multiply(self.quantity, self.unit_price)

    def with_changes(self, **changes) -> 'LineItem':
        return replace(self, **changes)


@dataclass(frozen=True)
class OrderDraft:
    """
    An order being edited.

    ``details`` keeps insertion order for display; totals do not depend on it.
    """

    details: Tuple[LineItem, ...] = ()
    order_level_tax_rate: Optional[Decimal] = None
    order_level_discount_amount: Optional[Decimal] = None
    shipping_fee: Optional[Decimal] = None

    def __post_init__(self):
        # Accept any iterable but always store a tuple
        if not isinstance(self.details, tuple):
            object.__setattr__(self, 'details', tuple(self.details))

    def is_submittable(self) -> bool:
        return len(self.details) > 0

    def find_line(self, product_id: int) -> Optional[LineItem]:
        for line in self.details:
            if line.product_id == product_id:
                return line
        return None

    def with_details(self, details) -> 'OrderDraft':
        return replace(self, details=tuple(details))


@dataclass(frozen=True)
class LineTotals:
    """Per-line breakdown as shown in the order detail table."""

    product_id: int
    subtotal: Decimal
    discount: Decimal
    taxable: Decimal
    tax: Decimal
    total: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'subtotal': format(self.subtotal, 'f'),
            'discount': format(self.discount, 'f'),
            'taxable': format(self.taxable, 'f'),
            'tax': format(self.tax, 'f'),
            'total': format(self.total, 'f'),
        }


@dataclass(frozen=True)
class AggregatedTotals:
    """Totals derived from an OrderDraft. Never stored."""

    total_quantity: Decimal = ZERO
    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    taxable_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    shipping_fee: Decimal = ZERO
    grand_total: Decimal = ZERO
    line_totals: Tuple[LineTotals, ...] = field(default=())

    MONEY_FIELDS = (
        'subtotal', 'discount_amount', 'taxable_amount',
        'tax_amount', 'shipping_fee', 'grand_total',
    )

    def quantized(self, places: int = 2) -> 'AggregatedTotals':
        """Copy with every money field rounded to ``places`` decimals."""
        changes = {
            name: quantize_money(getattr(self, name), places)
            for name in self.MONEY_FIELDS
        }
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise with Decimals as exact strings."""
        data = {'total_quantity': format(self.total_quantity, 'f')}
        for name in self.MONEY_FIELDS:
            data[name] = format(getattr(self, name), 'f')
        data['lines'] = [line.to_dict() for line in self.line_totals]
        return data
