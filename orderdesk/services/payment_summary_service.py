"""Payment and customer credit summary for sales orders."""
from decimal import Decimal
from typing import Any, Dict, Optional

from orderdesk.utils.money import ZERO, subtract, to_decimal


def summarize_payment(
    grand_total: Decimal,
    paid_amount=None,
    credit_limit=None,
    current_debt=None,
) -> Dict[str, Any]:
    """
    Work out how much of a sales order goes on the customer's account.

    Args:
        grand_total: Order grand total (preview)
        paid_amount: Amount paid up front (default 0)
        credit_limit: Customer credit limit, None when unknown
        current_debt: Customer's outstanding debt (default 0)

    Returns:
        Dict with debt_amount, can_use_credit, available_credit,
        exceeds_limit and shortfall (amount still to pay up front or to
        add to the limit). Credit fields are None without a credit limit.
    """
    paid = to_decimal(paid_amount, default=0)
    debt_amount = subtract(grand_total, paid)

    summary = {
        'grand_total': grand_total,
        'paid_amount': paid,
        'debt_amount': debt_amount,
        'can_use_credit': False,
        'available_credit': None,
        'exceeds_limit': None,
        'shortfall': None,
    }

    if credit_limit is None:
        return summary

    limit = to_decimal(credit_limit, default=0)
    debt = to_decimal(current_debt, default=0)
    available = max(ZERO, subtract(limit, debt))
    exceeds: bool = debt_amount > available

    summary.update({
        'can_use_credit': limit > 0,
        'available_credit': available,
        'exceeds_limit': exceeds,
        'shortfall': subtract(debt_amount, available) if exceeds else ZERO,
    })
    return summary


def payment_summary_to_dict(summary: Dict[str, Any]) -> Dict[str, Any]:
    """JSON friendly copy (Decimals as strings)."""
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in summary.items()
    }


def credit_inputs(data: Optional[dict]) -> Dict[str, Any]:
    """Pick the customer credit fields out of a preview payload."""
    customer = (data or {}).get('customer')
    if not isinstance(customer, dict):
        customer = {}
    return {
        'paid_amount': (data or {}).get('paidAmount'),
        'credit_limit': customer.get('creditLimit'),
        'current_debt': customer.get('currentDebt'),
    }
