"""Salesboard Flask application factory."""
from flask import Flask, render_template, request, redirect, flash, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException
from salesboard.database import init_db
import os


def wants_json() -> bool:
    """JSON responses for API routes and JSON clients."""
    return request.path.startswith('/api/') or request.is_json


def init_sentry(app):
    """Report errors to Sentry when SENTRY_DSN is set in production."""
    dsn = os.getenv('SENTRY_DSN')
    in_production = app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'
    if not dsn or not in_production:
        return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
        environment=os.getenv('FLASK_ENV', 'production'),
        release=os.getenv('GIT_COMMIT', 'unknown')
    )


def register_error_handlers(app):
    from salesboard.exceptions import SalesboardError

    @app.errorhandler(CSRFError)
    def csrf_failed(e):
        app.logger.warning(f"[CSRF] {request.path}: {e.description}")
        if wants_json():
            return jsonify({'error': 'Session expired. Reload the page.'}), 400
        flash('Your session expired or the form is invalid. Please try again.', 'warning')
        return redirect(request.referrer or '/')

    @app.errorhandler(SalesboardError)
    def salesboard_error(error):
        """Application errors: JSON body for API clients, flash + redirect for pages."""
        log = app.logger.error if error.status_code >= 500 else app.logger.warning
        log(f"[{error.status_code}] {request.method} {request.path}: {error.message}")

        if wants_json():
            return jsonify(error.to_dict()), error.status_code
        flash(error.message, 'danger')
        return redirect(request.referrer or '/')

    @app.errorhandler(404)
    def page_not_found(error):
        if wants_json():
            return jsonify({'error': 'Not Found'}), 404
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def unhandled_error(error):
        if isinstance(error, HTTPException) and error.code != 500:
            return error

        app.logger.error(f"Unhandled exception on {request.path}: {error}", exc_info=True)
        if wants_json():
            return jsonify({'error': 'Internal server error'}), 500
        return render_template('errors/500.html'), 500


def register_blueprints(app, csrf):
    from salesboard.blueprints.main import main_bp
    from salesboard.blueprints.auth import auth_bp
    from salesboard.blueprints.auth_api import auth_api_bp
    from salesboard.blueprints.dashboard import dashboard_bp
    from salesboard.blueprints.chat import chat_bp
    from salesboard.blueprints.conversations import conversations_bp
    from salesboard.blueprints.alerts import alerts_bp
    from salesboard.blueprints.metrics import metrics_bp

    # HTML forms carry CSRF tokens
    for blueprint in (main_bp, auth_bp, dashboard_bp, metrics_bp):
        app.register_blueprint(blueprint)

    # JSON APIs authenticate with the auth cookie
    for blueprint in (auth_api_bp, chat_bp, conversations_bp, alerts_bp):
        csrf.exempt(blueprint)
        app.register_blueprint(blueprint)


def create_app(config_object='config.Config'):
    """Build the app: config, extensions, auth gating, blueprints and CLI."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    csrf = CSRFProtect(app)
    init_sentry(app)

    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    init_db(app)

    from salesboard.services.cache_service import init_cache
    init_cache(app)

    from salesboard.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    from salesboard.utils.formatters import money_from_cents, datetime_short, percent
    app.jinja_env.filters.update(money=money_from_cents, datetime_short=datetime_short, percent=percent)

    from salesboard.middleware import gate_request, has_auth_cookie
    app.before_request(gate_request)

    @app.context_processor
    def inject_auth_state():
        return {'signed_in': has_auth_cookie(request.cookies)}

    register_error_handlers(app)
    register_blueprints(app, csrf)

    from salesboard.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
