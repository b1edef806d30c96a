"""Purchase order blueprint: totals preview, submission and printing."""
from flask import Blueprint, jsonify

from orderdesk.blueprints._order_requests import json_payload, print_response, requested_locale
from orderdesk.blueprints.metrics import record_preview, record_submission
from orderdesk.database import get_session
from orderdesk.exceptions import SubmissionError
from orderdesk.models import OrderType
from orderdesk.services.backend_client import get_backend_client
from orderdesk.services.preview_service import build_preview
from orderdesk.services.submission_service import submit_purchase_order

purchase_orders_bp = Blueprint('purchase_orders', __name__, url_prefix='/purchase-orders')


@purchase_orders_bp.route('/preview', methods=['POST'])
def preview():
    """
    Recompute the totals block for the purchase order form.

    Accepts incomplete drafts; the tax rate applies once to the order
    subtotal.
    """
    payload = json_payload()
    result = build_preview(payload, OrderType.PURCHASE, locale=requested_locale(payload))
    record_preview(OrderType.PURCHASE.value, result['policy'])
    return jsonify(result)


def _submit(order_id=None):
    action = 'update' if order_id is not None else 'create'
    try:
        result = submit_purchase_order(json_payload(), get_backend_client(), get_session(), order_id=order_id)
    except SubmissionError:
        record_submission(OrderType.PURCHASE.value, action, 'failed')
        raise

    record_submission(OrderType.PURCHASE.value, action, 'submitted', result.discrepancies)
    return result


@purchase_orders_bp.route('', methods=['POST'])
def create():
    """Validate and send a new purchase order to the backend."""
    result = _submit()
    return jsonify(result.to_dict()), 201


@purchase_orders_bp.route('/<int:order_id>', methods=['PUT'])
def update(order_id):
    """Send a partial purchase order update to the backend."""
    result = _submit(order_id)
    return jsonify(result.to_dict()), 200


@purchase_orders_bp.route('/print', methods=['POST'])
def print_order():
    return print_response(json_payload(), OrderType.PURCHASE)
