"""Landing page, sign-out and health checks."""
from flask import Blueprint, jsonify, redirect, render_template, request, url_for, current_app, flash
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from salesboard.database import get_session
from salesboard.exceptions import SalesboardError
from salesboard.middleware import has_auth_cookie
from salesboard.models import SchemaEmbedding
from salesboard.services import auth_service
from salesboard.services.cache_service import get_cache

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    """Landing page; signed-in users go straight to the dashboard."""
    if has_auth_cookie(request.cookies):
        return redirect(url_for('dashboard.index'))
    return render_template('main/index.html')


@main_bp.route('/logout', methods=['GET', 'POST'])
def logout():
    """Sign out upstream (best effort), drop the cookie and show the login page."""
    try:
        auth_service.logout(auth_service.get_access_token(request.cookies))
    except SalesboardError as e:
        current_app.logger.warning(f"[AUTH] Upstream sign-out failed: {e.message}")

    response = redirect(url_for('auth.login'))
    auth_service.clear_auth_cookie(response)
    flash('Successfully signed out', 'info')
    return response


@main_bp.route('/health')
def health():
    """
    Database reachability plus text-to-SQL readiness.

    Returns 200 while the database answers, 500 otherwise. Zero stored schema
    embeddings means `flask generate-embeddings` has not been run yet; the
    service is still healthy but questions will get no schema context.
    """
    db_session = get_session()
    try:
        db_session.execute(text('SELECT 1'))
        embeddings = db_session.query(func.count(SchemaEmbedding.id)).scalar() or 0
    except SQLAlchemyError as e:
        db_session.rollback()
        current_app.logger.error(f"[HEALTH] Database check failed: {e}")
        return jsonify({'status': 'unhealthy', 'database': 'disconnected', 'error': str(e)}), 500

    return jsonify({
        'status': 'healthy',
        'database': 'connected',
        'schemaEmbeddings': embeddings,
        'textToSqlReady': embeddings > 0,
    })


@main_bp.route('/health/cache')
def health_cache():
    """Redis status. Always 200: the dashboard works without the cache."""
    cache = get_cache()
    if cache.is_available() and cache.set('health', 'check', {'ok': True}, ttl=10):
        if cache.get('health', 'check') == {'ok': True}:
            return jsonify({'status': 'ok', 'cache': 'connected'})

    return jsonify({'status': 'degraded', 'cache': 'unavailable'})
