"""Request helpers shared by the order blueprints."""
from datetime import datetime

from flask import current_app, request, send_file

from orderdesk.models import OrderType
from orderdesk.services.order_aggregator import aggregate
from orderdesk.services.order_print_service import HEADER_FIELDS, render_order_pdf
from orderdesk.services.order_validation import parse_preview_draft
from orderdesk.services.policy_service import build_options


def json_payload():
    """Request body as parsed JSON (None when absent or malformed)."""
    return request.get_json(silent=True)


def requested_locale(payload):
    """Locale from ?locale=, then the body, else None (app default)."""
    locale = request.args.get('locale')
    if not locale and isinstance(payload, dict):
        locale = payload.get('locale')
    return locale if isinstance(locale, str) and locale else None


def product_names(payload):
    names = {}
    details = payload.get('details') if isinstance(payload, dict) else None
    for item in details if isinstance(details, list) else []:
        if isinstance(item, dict) and item.get('productId') and item.get('productName'):
            names[item['productId']] = str(item['productName'])
    return names


def print_response(payload, order_type: OrderType):
    """Render the posted order as a PDF download."""
    data = payload if isinstance(payload, dict) else {}
    draft, _ = parse_preview_draft(data, order_type)
    totals = aggregate(draft.details, build_options(order_type, draft))

    header = {key: data.get(key) for key, _ in HEADER_FIELDS[order_type]}
    header['notes'] = data.get('notes')

    pdf_buffer = render_order_pdf(
        draft, totals, order_type,
        header=header,
        locale=requested_locale(payload) or current_app.config.get('DEFAULT_LOCALE'),
        product_names=product_names(payload),
    )
    filename = f"{order_type.value}-order-{datetime.now().strftime('%Y%m%d-%H%M%S')}.pdf"
    return send_file(
        pdf_buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename
    )
