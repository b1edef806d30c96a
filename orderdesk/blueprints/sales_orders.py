"""Sales order blueprint: totals preview, submission and printing."""
from flask import Blueprint, jsonify

from orderdesk.blueprints._order_requests import json_payload, print_response, requested_locale
from orderdesk.blueprints.metrics import record_preview, record_submission
from orderdesk.database import get_session
from orderdesk.exceptions import SubmissionError
from orderdesk.models import OrderType
from orderdesk.services.backend_client import get_backend_client
from orderdesk.services.preview_service import build_preview
from orderdesk.services.submission_service import submit_sales_order

sales_orders_bp = Blueprint('sales_orders', __name__, url_prefix='/sales-orders')


@sales_orders_bp.route('/preview', methods=['POST'])
def preview():
    """
    Recompute the totals block for the sales order form.

    Discount and tax apply per line; the response also carries the payment
    summary (debt and available credit when the customer is included).
    """
    payload = json_payload()
    result = build_preview(payload, OrderType.SALES, locale=requested_locale(payload))
    record_preview(OrderType.SALES.value, result['policy'])
    return jsonify(result)


@sales_orders_bp.route('', methods=['POST'])
def create():
    """Validate and send a new sales order to the backend."""
    try:
        result = submit_sales_order(json_payload(), get_backend_client(), get_session())
    except SubmissionError:
        record_submission(OrderType.SALES.value, 'create', 'failed')
        raise

    record_submission(OrderType.SALES.value, 'create', 'submitted', result.discrepancies)
    return jsonify(result.to_dict()), 201


@sales_orders_bp.route('/print', methods=['POST'])
def print_order():
    return print_response(json_payload(), OrderType.SALES)
