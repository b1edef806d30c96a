"""Order submission to the ERP backend, with preview/backend reconciliation."""
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from orderdesk.exceptions import InvalidAmount, SubmissionError
from orderdesk.models import (
    AggregatedTotals, LineItem, OrderDraft, OrderSubmission, OrderType,
    SubmissionAction, SubmissionStatus,
)
from orderdesk.services.order_aggregator import aggregate
from orderdesk.services.order_validation import parse_purchase_order, parse_sales_order
from orderdesk.services.policy_service import build_options
from orderdesk.utils.money import to_decimal, to_json_number

logger = logging.getLogger(__name__)

# (AggregatedTotals attribute, backend order field)
RECONCILED_FIELDS = (
    ('subtotal', 'subTotal'),
    ('tax_amount', 'taxAmount'),
    ('grand_total', 'totalAmount'),
)


@dataclass(frozen=True)
class Discrepancy:
    """A total where the backend disagrees with the preview."""

    field: str
    preview: Decimal
    backend: Decimal

    def to_dict(self) -> Dict[str, str]:
        return {
            'field': self.field,
            'preview': format(self.preview, 'f'),
            'backend': format(self.backend, 'f'),
            'difference': format(self.backend - self.preview, 'f'),
        }


@dataclass
class SubmissionResult:
    """What the backend persisted plus how it compares to the preview."""

    order: Dict[str, Any]
    meta: Optional[Dict[str, Any]] = None
    preview: Optional[AggregatedTotals] = None
    discrepancies: List[Discrepancy] = field(default_factory=list)
    submission_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'status': 'success',
            'data': self.order,
            'preview': self.preview.to_dict() if self.preview else None,
            'discrepancies': [d.to_dict() for d in self.discrepancies],
            'submission_id': self.submission_id,
        }
        if self.meta is not None:
            data['meta'] = self.meta
        return data


def _optional_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return to_decimal(value)
    except InvalidAmount:
        logger.warning(f"Backend returned a non-numeric total: {value!r}")
        return None


def reconcile_totals(preview: AggregatedTotals, backend_order: Dict[str, Any]) -> List[Discrepancy]:
    """
    Compare preview totals with the totals the backend computed.

    The backend is the source of truth; differences (server-side rounding,
    price changes) are reported, never raised. Fields the backend did not
    return are skipped.
    """
    discrepancies = []
    for attr, key in RECONCILED_FIELDS:
        backend_value = _optional_decimal(backend_order.get(key))
        if backend_value is None:
            continue
        preview_value = getattr(preview, attr)
        if backend_value != preview_value:
            discrepancies.append(Discrepancy(field=key, preview=preview_value, backend=backend_value))
    return discrepancies


def _serialize_line(line: LineItem, order_type: OrderType) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    if line.line_id is not None:
        body['id'] = line.line_id
    body['productId'] = line.product_id

    if order_type is OrderType.SALES and line.warehouse_id is not None:
        body['warehouseId'] = line.warehouse_id

    body['quantity'] = to_json_number(line.quantity)
    body['unitPrice'] = to_json_number(line.unit_price)

    if order_type is OrderType.SALES:
        body['discountPercent'] = to_json_number(line.discount_percent)
        body['taxRate'] = to_json_number(line.tax_rate)
        if line.batch_number:
            body['batchNumber'] = line.batch_number
        if line.expiry_date:
            body['expiryDate'] = line.expiry_date

    if line.notes:
        body['notes'] = line.notes
    return body


def build_request_body(order_type: OrderType, header: Dict[str, Any], draft: OrderDraft) -> Dict[str, Any]:
    """
    Build the JSON body for the backend.

    Only raw inputs are sent (header fields, lines, tax rate, shipping fee
    and flat discount); the backend recomputes every total on its side.
    """
    body = {
        key: to_json_number(value) if isinstance(value, Decimal) else value
        for key, value in header.items()
    }

    if order_type is OrderType.PURCHASE:
        # Unset only on partial updates, where the backend keeps its rate
        if draft.order_level_tax_rate is not None:
            body['taxRate'] = to_json_number(draft.order_level_tax_rate)
    else:
        if draft.shipping_fee is not None:
            body['shippingFee'] = to_json_number(draft.shipping_fee)
        if draft.order_level_discount_amount is not None:
            body['discountAmount'] = to_json_number(draft.order_level_discount_amount)

    if draft.details:
        body['details'] = [_serialize_line(line, order_type) for line in draft.details]
    return body


def _journal(session, record: OrderSubmission) -> Optional[int]:
    """Store a submission record. Journal failures never undo a submission."""
    try:
        session.add(record)
        session.commit()
        return record.id
    except Exception as e:
        session.rollback()
        logger.error(f"Failed to journal {record.order_type} order submission: {e}")
        return None


def _submit(
    order_type: OrderType,
    action: SubmissionAction,
    header: Dict[str, Any],
    draft: OrderDraft,
    send: Callable[[Dict[str, Any]], Dict[str, Any]],
    session,
    config=None,
) -> SubmissionResult:
    preview = None
    if draft.is_submittable():
        preview = aggregate(draft.details, build_options(order_type, draft, config))

    body = build_request_body(order_type, header, draft)
    record = OrderSubmission(
        order_type=order_type.value,
        action=action,
        preview_total=preview.grand_total if preview else None,
        request_payload=json.dumps(body),
    )

    try:
        envelope = send(body)
    except SubmissionError as e:
        record.status = SubmissionStatus.FAILED
        record.error_message = e.message
        _journal(session, record)
        logger.warning(f"{order_type.value} order {action.value} failed: {e.message}")
        raise

    order = envelope.get('data')
    if not isinstance(order, dict):
        order = {}
    discrepancies = reconcile_totals(preview, order) if preview else []

    backend_id = order.get('id')
    record.status = SubmissionStatus.SUBMITTED
    record.backend_order_id = backend_id if isinstance(backend_id, int) else None
    record.backend_order_code = order.get('poCode') or order.get('orderCode')
    record.backend_total = _optional_decimal(order.get('totalAmount'))
    record.has_discrepancy = bool(discrepancies)
    submission_id = _journal(session, record)

    if discrepancies:
        logger.warning(
            f"{order_type.value} order {backend_id}: backend totals differ from preview: "
            + ", ".join(f"{d.field} {d.preview} -> {d.backend}" for d in discrepancies)
        )
    logger.info(f"{order_type.value} order {action.value} accepted by backend (id={backend_id})")

    return SubmissionResult(
        order=order,
        meta=envelope.get('meta'),
        preview=preview,
        discrepancies=discrepancies,
        submission_id=submission_id,
    )


def submit_purchase_order(payload, client, session, order_id: Optional[int] = None, config=None) -> SubmissionResult:
    """
    Validate and send a purchase order (create, or update when ``order_id`` is given).

    Args:
        payload: Request body from the dashboard
        client: OrderBackendClient
        session: SQLAlchemy session for the submission journal
        order_id: Existing backend purchase order id for updates
        config: Mapping with the policy settings (defaults to app config)

    Returns:
        SubmissionResult

    Raises:
        ValidationError: invalid payload (nothing is sent)
        SubmissionError: backend failure (journaled, not retried)
    """
    updating = order_id is not None
    header, draft = parse_purchase_order(payload, partial=updating)

    if updating:
        action = SubmissionAction.UPDATE
        send = lambda body: client.update_purchase_order(order_id, body)  # noqa: E731
    else:
        action = SubmissionAction.CREATE
        send = client.create_purchase_order

    return _submit(OrderType.PURCHASE, action, header, draft, send, session, config)


def submit_sales_order(payload, client, session, config=None) -> SubmissionResult:
    """Validate and send a new sales order. Same contract as submit_purchase_order."""
    header, draft = parse_sales_order(payload)
    return _submit(
        OrderType.SALES, SubmissionAction.CREATE, header, draft,
        client.create_sales_order, session, config,
    )


def list_submissions(session, order_type: Optional[str] = None, limit: int = 50) -> List[OrderSubmission]:
    """Most recent submission attempts first."""
    query = session.query(OrderSubmission)
    if order_type:
        query = query.filter(OrderSubmission.order_type == order_type)
    return query.order_by(OrderSubmission.id.desc()).limit(limit).all()
