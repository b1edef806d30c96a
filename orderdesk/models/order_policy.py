"""Order types and the tax/discount policies they use."""
import enum


class OrderType(enum.Enum):
    """Order flows handled by the service."""
    PURCHASE = "purchase"
    SALES = "sales"


class TaxDiscountPolicy(enum.Enum):
    """
    How discount and tax are applied to an order.

    PER_LINE: each line carries its own discount percent and tax rate
        (sales orders).
    ORDER_LEVEL: one tax rate and an optional flat discount for the whole
        order (purchase orders).
    """
    PER_LINE = "per_line"
    ORDER_LEVEL = "order_level"
