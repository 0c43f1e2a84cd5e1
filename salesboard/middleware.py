"""Middleware for auth-cookie route gating and API authentication."""
from functools import wraps
from flask import g, redirect, request, jsonify, current_app

from salesboard.exceptions import AuthError, UpstreamServiceError

LOGIN_PATH = '/auth/login'
DASHBOARD_PATH = '/dashboard'
PROTECTED_PREFIXES = (DASHBOARD_PATH, '/chat', '/notifications')
AUTH_PREFIX = '/auth'


def has_auth_cookie(cookies) -> bool:
    """True when any cookie looks like a Supabase auth token (sb-*-auth-token)."""
    return any('sb-' in name and '-auth-token' in name for name in cookies.keys())


def gate_request():
    """
    Redirect between auth pages and protected pages based on the auth cookie.

    Registered as a before_request hook. Only checks cookie presence; the
    token itself is validated by API routes that need the user.
    """
    path = request.path
    signed_in = has_auth_cookie(request.cookies)

    if not signed_in and path.startswith(PROTECTED_PREFIXES):
        return redirect(LOGIN_PATH)

    if signed_in and path.startswith(AUTH_PREFIX):
        return redirect(DASHBOARD_PATH)

    return None


def require_api_user(f):
    """
    Decorator: Require a valid auth session for JSON routes.

    Resolves the user from the auth cookie's access token and stores it in
    g.auth_user. Responds 401 JSON otherwise.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from salesboard.services.auth_service import get_access_token, get_user_for_token

        try:
            g.auth_user = get_user_for_token(get_access_token(request.cookies))
        except (AuthError, UpstreamServiceError) as e:
            current_app.logger.info(f"[AUTH] API request rejected: {e.message}")
            return jsonify({'error': 'Authentication required'}), 401

        g.user_id = g.auth_user['id']
        return f(*args, **kwargs)
    return decorated_function
