"""Flask application factory."""
import logging
import os
import traceback

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from orderdesk.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    # Sentry error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Prometheus metrics instrumentation
    from orderdesk.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: trust X-Forwarded-* from the reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize database (submission journal)
    init_db(app)

    # Error Handlers
    from orderdesk.exceptions import NotFoundError, OrderDeskError

    @app.errorhandler(OrderDeskError)
    def handle_orderdesk_error(error):
        """Handle custom application exceptions."""
        log = app.logger.error if error.status_code >= 500 else app.logger.warning
        log(f"OrderDeskError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify(NotFoundError('Not Found').to_dict()), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException) and error.code < 500:
            return jsonify({'status': 'error', 'message': error.description}), error.code

        app.logger.error(f"Unhandled Exception on {request.method} {request.path}: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from orderdesk.blueprints.main import main_bp
    from orderdesk.blueprints.purchase_orders import purchase_orders_bp
    from orderdesk.blueprints.sales_orders import sales_orders_bp
    from orderdesk.blueprints.metrics import metrics_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(purchase_orders_bp)
    app.register_blueprint(sales_orders_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from orderdesk.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"ORDERDESK_BACKEND_URL={app.config.get('ORDERDESK_BACKEND_URL')}")

    return app
