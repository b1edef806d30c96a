"""
Prometheus metrics blueprint.

Exposes /metrics with HTTP request metrics and order preview/submission
counters. Restrict this endpoint to the monitoring network.
"""
import time

from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST, REGISTRY

metrics_bp = Blueprint('metrics', __name__)

http_requests_total = Counter(
    'orderdesk_http_requests_total',
    'HTTP requests handled',
    ['method', 'endpoint', 'http_status'],
)

http_request_duration_seconds = Histogram(
    'orderdesk_http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_in_flight = Gauge(
    'orderdesk_http_requests_in_flight',
    'HTTP requests being processed',
)

order_previews_total = Counter(
    'orderdesk_order_previews_total',
    'Totals previews computed',
    ['order_type', 'policy'],
)

order_submissions_total = Counter(
    'orderdesk_order_submissions_total',
    'Orders sent to the backend',
    ['order_type', 'action', 'outcome'],
)

total_discrepancies_total = Counter(
    'orderdesk_total_discrepancies_total',
    'Backend totals that differed from the preview',
    ['order_type', 'field'],
)


def record_preview(order_type: str, policy: str):
    order_previews_total.labels(order_type=order_type, policy=policy).inc()


def record_submission(order_type: str, action: str, outcome: str, discrepancies=()):
    """Count a submission attempt and any total that did not reconcile."""
    order_submissions_total.labels(order_type=order_type, action=action, outcome=outcome).inc()
    for discrepancy in discrepancies:
        total_discrepancies_total.labels(order_type=order_type, field=discrepancy.field).inc()


def setup_metrics_instrumentation(app):
    """Time every request and count it by endpoint and status."""

    @app.before_request
    def start_request_timer():
        g.request_started_at = time.time()
        http_requests_in_flight.inc()

    @app.after_request
    def observe_request(response):
        started_at = g.pop('request_started_at', None)
        if started_at is None:
            return response

        # e.g. 'purchase_orders.preview'
        endpoint = request.endpoint or 'unknown'
        try:
            http_request_duration_seconds.labels(
                method=request.method, endpoint=endpoint
            ).observe(time.time() - started_at)
            http_requests_total.labels(
                method=request.method, endpoint=endpoint, http_status=response.status_code
            ).inc()
        except ValueError as e:
            app.logger.warning(f"Failed to record request metrics: {e}")
        finally:
            http_requests_in_flight.dec()
        return response


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus text exposition of the default registry."""
    return Response(generate_latest(REGISTRY), mimetype=CONTENT_TYPE_LATEST)
