"""Main blueprint with health check and submission journal endpoints."""
from flask import Blueprint, jsonify, request
from sqlalchemy import text

from orderdesk.database import get_session
from orderdesk.exceptions import ValidationError
from orderdesk.models import OrderType
from orderdesk.services.submission_service import list_submissions

main_bp = Blueprint('main', __name__)

MAX_SUBMISSIONS_LIMIT = 200


@main_bp.route('/healthz')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        session = get_session()
        row = session.execute(text("SELECT 1 AS health_check")).fetchone()

        if row and row[0] == 1:
            return jsonify({
                'status': 'healthy',
                'database': 'connected',
            }), 200
        return jsonify({
            'status': 'unhealthy',
            'database': 'error',
            'message': 'Unexpected query result'
        }), 500

    except Exception as e:
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e),
            'message': 'Failed to connect to database'
        }), 500


@main_bp.route('/submissions')
def submissions():
    """Recent submission attempts, newest first (?type=purchase|sales&limit=N)."""
    order_type = request.args.get('type')
    errors = {}
    if order_type and order_type not in {t.value for t in OrderType}:
        errors['type'] = 'Must be one of: purchase, sales'

    limit = request.args.get('limit', 50, type=int)
    if limit is None or not 1 <= limit <= MAX_SUBMISSIONS_LIMIT:
        errors['limit'] = f'Must be between 1 and {MAX_SUBMISSIONS_LIMIT}'

    if errors:
        raise ValidationError(errors)

    records = list_submissions(get_session(), order_type=order_type, limit=limit)
    return jsonify({
        'status': 'success',
        'data': [record.to_dict() for record in records],
    })
