"""Order aggregation: reduce a list of line items into order totals.

Pure functions only. The same draft always yields the same totals, so the
confirmation preview matches what ends up in the submitted order.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from orderdesk.exceptions import InvalidLineItem, PolicyConflictError
from orderdesk.models.order_draft import AggregatedTotals, LineItem, LineTotals
from orderdesk.models.order_policy import TaxDiscountPolicy
from orderdesk.utils.money import ZERO, add, percent_of, subtract, total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregationOptions:
    """
    Policy and order-level adjustments for one aggregation.

    ``policy`` decides how tax is computed; ``discount_mode`` (defaults to
    ``policy``) decides whether line discount percentages apply. A flat
    ``order_level_discount_amount`` is accepted in both modes: under the
    ORDER_LEVEL policy it is taken off before the order tax, under PER_LINE
    it is taken off after the line taxes. An order-level tax rate under
    PER_LINE is refused.
    """

    policy: TaxDiscountPolicy
    order_level_tax_rate: Optional[Decimal] = None
    order_level_discount_amount: Optional[Decimal] = None
    shipping_fee: Optional[Decimal] = None
    discount_mode: Optional[TaxDiscountPolicy] = None

    def __post_init__(self):
        if not isinstance(self.policy, TaxDiscountPolicy):
            raise PolicyConflictError(f'Unknown tax/discount policy: {self.policy!r}')
        if self.discount_mode is None:
            object.__setattr__(self, 'discount_mode', self.policy)
        elif not isinstance(self.discount_mode, TaxDiscountPolicy):
            raise PolicyConflictError(f'Unknown discount mode: {self.discount_mode!r}')
        if self.policy is TaxDiscountPolicy.PER_LINE and self.order_level_tax_rate is not None:
            raise PolicyConflictError(
                'An order-level tax rate cannot be combined with per-line taxes'
            )


def _check_line(index: int, line: LineItem) -> None:
    for field_name in ('quantity', 'unit_price'):
        value = getattr(line, field_name)
        if not isinstance(value, Decimal) or not value.is_finite():
            raise InvalidLineItem(f'Line {index}: {field_name} must be a Decimal, got {value!r}')
        if value < 0:
            raise InvalidLineItem(f'Line {index}: {field_name} cannot be negative ({value})')


def aggregate(details: Iterable[LineItem], options: AggregationOptions) -> AggregatedTotals:
    """
    Compute the totals of an order.

    Steps:
    1. line_subtotal = quantity * unit_price for every line
    2. discount: line percentages (discount_mode PER_LINE) plus the flat
       order-level amount, if any
    3. tax: PER_LINE taxes each line on its discounted amount;
       ORDER_LEVEL applies one rate to subtotal - discount
    4. grand_total = taxable + tax + shipping

    Percentages are not clamped; out-of-range values are a validation bug
    upstream and show up in the totals.

    Args:
        details: Line items (may be empty)
        options: Policy and order-level adjustments

    Returns:
        AggregatedTotals (all zero apart from shipping and flat discount
        for an empty order)

    Raises:
        InvalidLineItem: if a quantity or unit price is negative or not a Decimal.
    """
    lines = list(details)
    line_taxes_apply = options.policy is TaxDiscountPolicy.PER_LINE
    line_discounts_apply = options.discount_mode is TaxDiscountPolicy.PER_LINE

    total_quantity = ZERO
    subtotal = ZERO
    line_discounts: List[Decimal] = []
    line_taxes: List[Decimal] = []
    breakdown: List[LineTotals] = []
    ignored_line_terms = False

    for index, line in enumerate(lines):
        _check_line(index, line)

        line_subtotal = line.line_subtotal()
        total_quantity = add(total_quantity, line.quantity)
        subtotal = add(subtotal, line_subtotal)

        if line_discounts_apply:
            line_discount = percent_of(line_subtotal, line.discount_percent)
        else:
            ignored_line_terms = ignored_line_terms or bool(line.discount_percent)
            line_discount = ZERO
        line_taxable = subtract(line_subtotal, line_discount)

        if line_taxes_apply:
            line_tax = percent_of(line_taxable, line.tax_rate)
        else:
            ignored_line_terms = ignored_line_terms or bool(line.tax_rate)
            line_tax = ZERO

        line_discounts.append(line_discount)
        line_taxes.append(line_tax)
        breakdown.append(LineTotals(
            product_id=line.product_id,
            subtotal=line_subtotal,
            discount=line_discount,
            taxable=line_taxable,
            tax=line_tax,
            total=add(line_taxable, line_tax),
        ))

    if ignored_line_terms:
        logger.warning(
            "Per-line discount/tax values ignored under order-level policy "
            f"({len(lines)} lines)"
        )

    discount_amount = add(total(line_discounts), options.order_level_discount_amount or ZERO)
    taxable_amount = subtract(subtotal, discount_amount)
    if line_taxes_apply:
        tax_amount = total(line_taxes)
    else:
        tax_amount = percent_of(taxable_amount, options.order_level_tax_rate or ZERO)

    shipping_fee = options.shipping_fee or ZERO
    grand_total = add(add(taxable_amount, tax_amount), shipping_fee)

    return AggregatedTotals(
        total_quantity=total_quantity,
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        shipping_fee=shipping_fee,
        grand_total=grand_total,
        line_totals=tuple(breakdown),
    )
