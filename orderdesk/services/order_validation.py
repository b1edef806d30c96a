"""Order payload validation.

Turns the JSON bodies posted by the dashboard into an order header (the
non-line fields forwarded to the backend) and an OrderDraft. Strict parsers
collect every failing field before raising ValidationError; the preview
parser never raises and reports problems alongside a usable draft.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from orderdesk.exceptions import InvalidAmount, ValidationError
from orderdesk.models.order_draft import LineItem, OrderDraft
from orderdesk.models.order_policy import OrderType
from orderdesk.utils.money import HUNDRED, ZERO, to_decimal

SALES_CHANNELS = ('retail', 'wholesale', 'online', 'distributor')
PAYMENT_METHODS = ('cash', 'bank_transfer', 'credit', 'cod')

MAX_NOTES_LENGTH = 255
MAX_ADDRESS_LENGTH = 255
MAX_BATCH_LENGTH = 100

MISSING = object()


def _path(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def _read_int(data: dict, key: str, errors: dict, prefix: str = '', required: bool = True) -> Optional[int]:
    """Read a positive integer id."""
    path = _path(prefix, key)
    raw = data.get(key, MISSING)
    if raw is MISSING or raw is None or raw == '':
        if required:
            errors[path] = 'This field is required'
        return None

    if isinstance(raw, bool):
        errors[path] = 'Must be a positive integer'
        return None
    if isinstance(raw, str) and raw.strip().isdigit():
        raw = int(raw.strip())
    if not isinstance(raw, int) or raw <= 0:
        errors[path] = 'Must be a positive integer'
        return None
    return raw


def _read_decimal(
    data: dict,
    key: str,
    errors: dict,
    prefix: str = '',
    required: bool = False,
    default: Optional[Decimal] = None,
    minimum: Optional[Decimal] = None,
    maximum: Optional[Decimal] = None,
    positive: bool = False,
) -> Optional[Decimal]:
    path = _path(prefix, key)
    raw = data.get(key, MISSING)
    if raw is MISSING or raw is None or raw == '':
        if required:
            errors[path] = 'This field is required'
        return default

    try:
        value = to_decimal(raw)
    except InvalidAmount:
        errors[path] = 'Must be a number'
        return None

    if positive and value <= 0:
        errors[path] = 'Must be greater than 0'
    elif minimum is not None and value < minimum:
        errors[path] = f'Must be at least {minimum}'
    elif maximum is not None and value > maximum:
        errors[path] = f'Must be between {minimum or 0} and {maximum}'
    else:
        return value
    return None


def _read_text(
    data: dict,
    key: str,
    errors: dict,
    prefix: str = '',
    required: bool = False,
    max_length: Optional[int] = None,
) -> Optional[str]:
    path = _path(prefix, key)
    raw = data.get(key)
    if raw is None:
        if required:
            errors[path] = 'This field is required'
        return None
    if not isinstance(raw, str):
        errors[path] = 'Must be text'
        return None

    value = raw.strip()
    if required and not value:
        errors[path] = 'This field is required'
        return None
    if max_length is not None and len(value) > max_length:
        errors[path] = f'Must be at most {max_length} characters'
        return None
    return value or None


def _read_choice(data: dict, key: str, choices, errors: dict, required: bool = True) -> Optional[str]:
    raw = data.get(key)
    if raw is None or raw == '':
        if required:
            errors[key] = 'This field is required'
        return None
    if raw not in choices:
        errors[key] = f'Must be one of: {", ".join(choices)}'
        return None
    return raw


def _ensure_mapping(payload) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError({'_': 'Request body must be a JSON object'})
    return payload


def _parse_details(raw, order_type: OrderType, errors: dict, keep_ids: bool = False) -> List[LineItem]:
    if not isinstance(raw, list):
        errors['details'] = 'Must be a list of products'
        return []
    if not raw:
        errors['details'] = 'At least one product is required'
        return []

    lines = []
    for index, item in enumerate(raw):
        prefix = f'details.{index}'
        if not isinstance(item, dict):
            errors[prefix] = 'Must be an object'
            continue

        line_errors: Dict[str, str] = {}
        fields: Dict[str, Any] = {
            'product_id': _read_int(item, 'productId', line_errors, prefix),
            'quantity': _read_decimal(item, 'quantity', line_errors, prefix, required=True, positive=True),
            'unit_price': _read_decimal(item, 'unitPrice', line_errors, prefix, required=True, minimum=ZERO),
        }

        if order_type is OrderType.SALES:
            fields['discount_percent'] = _read_decimal(
                item, 'discountPercent', line_errors, prefix, default=ZERO, minimum=ZERO, maximum=HUNDRED)
            fields['tax_rate'] = _read_decimal(
                item, 'taxRate', line_errors, prefix, default=ZERO, minimum=ZERO, maximum=HUNDRED)
            fields['warehouse_id'] = _read_int(item, 'warehouseId', line_errors, prefix, required=False)
            fields['batch_number'] = _read_text(item, 'batchNumber', line_errors, prefix, max_length=MAX_BATCH_LENGTH)
            fields['expiry_date'] = _read_text(item, 'expiryDate', line_errors, prefix)
            fields['notes'] = _read_text(item, 'notes', line_errors, prefix, max_length=MAX_NOTES_LENGTH)
        else:
            fields['notes'] = _read_text(item, 'notes', line_errors, prefix)

        if keep_ids:
            fields['line_id'] = _read_int(item, 'id', line_errors, prefix, required=False)

        if line_errors:
            errors.update(line_errors)
            continue
        lines.append(LineItem(**fields))

    return lines


def _drop_empty(header: dict) -> dict:
    return {key: value for key, value in header.items() if value is not None}


def parse_purchase_order(payload, partial: bool = False) -> Tuple[dict, OrderDraft]:
    """
    Validate a purchase order create (or update, with ``partial=True``) body.

    Purchase order lines carry only product, quantity, unit price and notes;
    tax is a single order-level ``taxRate``, required on updates that
    replace the details.

    Returns:
        (header, draft) where header holds supplierId, warehouseId,
        orderDate, expectedDeliveryDate and notes.

    Raises:
        ValidationError: with every failing field.
    """
    data = _ensure_mapping(payload)
    errors: Dict[str, str] = {}
    required = not partial

    header = {
        'supplierId': _read_int(data, 'supplierId', errors, required=required),
        'warehouseId': _read_int(data, 'warehouseId', errors, required=required),
        'orderDate': _read_text(data, 'orderDate', errors, required=required),
        'expectedDeliveryDate': _read_text(data, 'expectedDeliveryDate', errors),
        'notes': _read_text(data, 'notes', errors),
    }
    tax_rate = _read_decimal(data, 'taxRate', errors, default=None if partial else ZERO, minimum=ZERO, maximum=HUNDRED)

    details: List[LineItem] = []
    if 'details' in data or not partial:
        details = _parse_details(data.get('details'), OrderType.PURCHASE, errors, keep_ids=partial)
        # Totals of replaced lines cannot be previewed without the order's rate
        if partial and tax_rate is None and 'taxRate' not in errors:
            errors['taxRate'] = 'This field is required when details are updated'

    if errors:
        raise ValidationError(errors)

    draft = OrderDraft(details=details, order_level_tax_rate=tax_rate)
    return _drop_empty(header), draft


def parse_sales_order(payload) -> Tuple[dict, OrderDraft]:
    """
    Validate a sales order create body.

    Returns:
        (header, draft); the draft carries per-line discount/tax, the
        shipping fee and an optional flat ``discountAmount``.

    Raises:
        ValidationError: with every failing field.
    """
    data = _ensure_mapping(payload)
    errors: Dict[str, str] = {}

    header = {
        'customerId': _read_int(data, 'customerId', errors),
        'warehouseId': _read_int(data, 'warehouseId', errors, required=False),
        'orderDate': _read_text(data, 'orderDate', errors),
        'salesChannel': _read_choice(data, 'salesChannel', SALES_CHANNELS, errors),
        'deliveryAddress': _read_text(data, 'deliveryAddress', errors, max_length=MAX_ADDRESS_LENGTH),
        'paymentMethod': _read_choice(data, 'paymentMethod', PAYMENT_METHODS, errors),
        'paidAmount': _read_decimal(data, 'paidAmount', errors, default=ZERO, minimum=ZERO),
        'notes': _read_text(data, 'notes', errors, max_length=MAX_NOTES_LENGTH),
    }
    shipping_fee = _read_decimal(data, 'shippingFee', errors, default=ZERO, minimum=ZERO)
    discount_amount = _read_decimal(data, 'discountAmount', errors, minimum=ZERO)
    details = _parse_details(data.get('details'), OrderType.SALES, errors)

    if errors:
        raise ValidationError(errors)

    draft = OrderDraft(
        details=details,
        shipping_fee=shipping_fee,
        order_level_discount_amount=discount_amount,
    )
    return _drop_empty(header), draft


def _lenient_amount(data: dict, key: str, issues: dict, prefix: str = '', maximum: Optional[Decimal] = None) -> Decimal:
    """Read an amount for live preview: anything unusable counts as 0."""
    path = _path(prefix, key)
    raw = data.get(key)
    if raw is None or raw == '':
        return ZERO

    try:
        value = to_decimal(raw)
    except InvalidAmount:
        issues[path] = 'Must be a number'
        return ZERO

    if value < 0:
        issues[path] = 'Must not be negative'
        return ZERO
    if maximum is not None and value > maximum:
        issues[path] = f'Must be between 0 and {maximum}'
        return ZERO
    return value


def parse_preview_draft(payload, order_type: OrderType) -> Tuple[OrderDraft, Dict[str, str]]:
    """
    Build a draft for the live totals preview from possibly incomplete data.

    Unparsable, negative or out-of-range amounts count as 0 and are reported
    in the returned issues; lines without a product are still counted.

    Returns:
        (draft, issues)
    """
    data = payload if isinstance(payload, dict) else {}
    issues: Dict[str, str] = {}
    raw_details = data.get('details') if isinstance(data.get('details'), list) else []
    sales = order_type is OrderType.SALES

    lines = []
    for index, item in enumerate(raw_details):
        if not isinstance(item, dict):
            continue
        prefix = f'details.{index}'
        product_id = item.get('productId')
        lines.append(LineItem(
            product_id=product_id if isinstance(product_id, int) and not isinstance(product_id, bool) else 0,
            quantity=_lenient_amount(item, 'quantity', issues, prefix),
            unit_price=_lenient_amount(item, 'unitPrice', issues, prefix),
            discount_percent=_lenient_amount(item, 'discountPercent', issues, prefix, HUNDRED) if sales else ZERO,
            tax_rate=_lenient_amount(item, 'taxRate', issues, prefix, HUNDRED) if sales else ZERO,
        ))

    if sales:
        draft = OrderDraft(
            details=lines,
            shipping_fee=_lenient_amount(data, 'shippingFee', issues),
            order_level_discount_amount=_lenient_amount(data, 'discountAmount', issues),
        )
    else:
        draft = OrderDraft(
            details=lines,
            order_level_tax_rate=_lenient_amount(data, 'taxRate', issues, maximum=HUNDRED),
        )
    return draft, issues
