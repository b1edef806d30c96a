"""Tax/discount policy selection per order type (configuration driven)."""
from typing import Mapping, Optional

from flask import current_app, has_app_context

from orderdesk.exceptions import PolicyConflictError
from orderdesk.models.order_draft import OrderDraft
from orderdesk.models.order_policy import OrderType, TaxDiscountPolicy
from orderdesk.services.order_aggregator import AggregationOptions

DEFAULT_POLICIES = {
    OrderType.PURCHASE: TaxDiscountPolicy.ORDER_LEVEL,
    OrderType.SALES: TaxDiscountPolicy.PER_LINE,
}

CONFIG_KEYS = {
    OrderType.PURCHASE: 'PURCHASE_ORDER_POLICY',
    OrderType.SALES: 'SALES_ORDER_POLICY',
}

DISCOUNT_MODE_KEYS = {
    OrderType.PURCHASE: 'PURCHASE_ORDER_DISCOUNT_MODE',
    OrderType.SALES: 'SALES_ORDER_DISCOUNT_MODE',
}


def _setting(key: str, config: Optional[Mapping]) -> Optional[TaxDiscountPolicy]:
    if config is None and has_app_context():
        config = current_app.config

    raw = (config or {}).get(key)
    if not raw:
        return None

    try:
        return TaxDiscountPolicy(str(raw).strip().lower())
    except ValueError:
        raise PolicyConflictError(
            f'Invalid {key} setting: {raw!r} '
            f'(expected one of: {", ".join(p.value for p in TaxDiscountPolicy)})'
        )


def resolve_policy(order_type: OrderType, config: Optional[Mapping] = None) -> TaxDiscountPolicy:
    """
    Return the policy configured for an order type.

    Reads ``PURCHASE_ORDER_POLICY`` / ``SALES_ORDER_POLICY`` from ``config``
    (or the current Flask app config), falling back to the built-in defaults.
    """
    return _setting(CONFIG_KEYS[order_type], config) or DEFAULT_POLICIES[order_type]


def resolve_discount_mode(order_type: OrderType, config: Optional[Mapping] = None) -> TaxDiscountPolicy:
    """
    Return whether line discount percentages apply for an order type.

    Reads ``PURCHASE_ORDER_DISCOUNT_MODE`` / ``SALES_ORDER_DISCOUNT_MODE``;
    unset means the same mode as the tax policy.
    """
    return _setting(DISCOUNT_MODE_KEYS[order_type], config) or resolve_policy(order_type, config)


def build_options(order_type: OrderType, draft: OrderDraft, config: Optional[Mapping] = None) -> AggregationOptions:
    """
    Select the policy once for the order and build its aggregation options.

    Raises:
        PolicyConflictError: if the draft carries an order-level tax rate
            while the order type is configured for per-line taxes.
    """
    return AggregationOptions(
        policy=resolve_policy(order_type, config),
        discount_mode=resolve_discount_mode(order_type, config),
        order_level_tax_rate=draft.order_level_tax_rate,
        order_level_discount_amount=draft.order_level_discount_amount,
        shipping_fee=draft.shipping_fee,
    )
