"""
Dashboard blueprint.
Today's sales and best sellers per location, as a page and as JSON.
"""

from datetime import datetime, timezone

from flask import Blueprint, render_template, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from salesboard.blueprints.metrics import record_dashboard_cache
from salesboard.database import get_session
from salesboard.services.cache_service import get_cache
from salesboard.services.dashboard_service import get_today_sales, get_top_items


dashboard_bp = Blueprint('dashboard', __name__)

CACHE_NAMESPACE = 'dashboard'


def _cached(name, loader):
    """Cache a dashboard aggregate for the current UTC hour."""
    cache = get_cache()
    key = f"{name}:{datetime.now(timezone.utc).strftime('%Y%m%d%H')}"

    cached = cache.get(CACHE_NAMESPACE, key)
    record_dashboard_cache(cached is not None)
    if cached is not None:
        return cached

    value = loader()
    cache.set(CACHE_NAMESPACE, key, value, ttl=current_app.config.get('CACHE_DASHBOARD_TTL', 60))
    return value


def load_today_sales():
    db_session = get_session()
    return _cached('today-sales', lambda: get_today_sales(db_session))


def load_top_items():
    db_session = get_session()
    return _cached('top-items', lambda: get_top_items(db_session))


@dashboard_bp.route('/dashboard')
def index():
    """
    Dashboard home page.

    Shows for today, per location:
    - Sales total and order count
    - Top 5 items by revenue
    """
    try:
        return render_template(
            'dashboard/index.html',
            today_sales=load_today_sales(),
            top_items=load_top_items()
        )
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error loading dashboard: {e}", exc_info=True)
        return render_template(
            'dashboard/index.html',
            today_sales=[],
            top_items=[],
            error="Could not load today's sales. Please try again."
        )


@dashboard_bp.route('/api/dashboard/today-sales')
def today_sales_api():
    try:
        return jsonify({'data': load_today_sales()})
    except SQLAlchemyError as e:
        current_app.logger.error(f"[DASHBOARD] today-sales failed: {e}", exc_info=True)
        return jsonify({'error': str(e.orig if getattr(e, 'orig', None) else e)}), 500


@dashboard_bp.route('/api/dashboard/top-items')
def top_items_api():
    try:
        return jsonify({'data': load_top_items()})
    except SQLAlchemyError as e:
        current_app.logger.error(f"[DASHBOARD] top-items failed: {e}", exc_info=True)
        return jsonify({'error': str(e.orig if getattr(e, 'orig', None) else e)}), 500
