"""Live totals preview for purchase and sales order forms."""
import logging
from typing import Any, Dict, Mapping, Optional

from flask import current_app, has_app_context

from orderdesk.models import AggregatedTotals, OrderType
from orderdesk.services.order_aggregator import aggregate
from orderdesk.services.order_validation import parse_preview_draft
from orderdesk.services.payment_summary_service import (
    credit_inputs, payment_summary_to_dict, summarize_payment,
)
from orderdesk.services.policy_service import build_options
from orderdesk.utils.formatters import DEFAULT_LOCALE, format_currency, format_number

logger = logging.getLogger(__name__)

FORMATTED_FIELDS = ('subtotal', 'discount_amount', 'tax_amount', 'shipping_fee', 'grand_total')


def _default_locale(config: Optional[Mapping]) -> str:
    if config is None and has_app_context():
        config = current_app.config
    return (config or {}).get('DEFAULT_LOCALE') or DEFAULT_LOCALE


def format_totals(totals: AggregatedTotals, locale: str) -> Dict[str, str]:
    """Display strings for the totals block."""
    formatted = {name: format_currency(getattr(totals, name), locale) for name in FORMATTED_FIELDS}
    formatted['total_quantity'] = format_number(totals.total_quantity, locale)
    return formatted


def build_preview(
    payload,
    order_type: OrderType,
    locale: Optional[str] = None,
    config: Optional[Mapping] = None,
) -> Dict[str, Any]:
    """
    Compute the totals preview for an order form.

    The payload may be incomplete; unusable amounts count as 0 and are
    listed under ``issues``. ``totals`` carries exact decimal strings,
    ``formatted`` the display strings for ``locale``.

    Raises:
        PolicyConflictError: when the configured policy does not match the
            terms present on the order
    """
    draft, issues = parse_preview_draft(payload, order_type)
    options = build_options(order_type, draft, config)
    totals = aggregate(draft.details, options)
    locale = locale or _default_locale(config)

    totals_dict = totals.to_dict()
    lines = totals_dict.pop('lines')

    result = {
        'status': 'success',
        'order_type': order_type.value,
        'policy': options.policy.value,
        'totals': totals_dict,
        'formatted': format_totals(totals, locale),
        'lines': lines,
        'issues': issues,
        'submittable': draft.is_submittable() and not issues,
        'locale': locale,
    }

    if order_type is OrderType.SALES:
        payment = summarize_payment(totals.grand_total, **credit_inputs(payload if isinstance(payload, dict) else None))
        result['payment'] = payment_summary_to_dict(payment)

    logger.debug(f"{order_type.value} preview: {len(draft.details)} lines, total {totals.grand_total}")
    return result
