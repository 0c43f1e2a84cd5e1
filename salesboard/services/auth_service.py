"""
Authentication service.

Wraps the Supabase Auth client with the application's registration, login
and session-cookie handling. Used by both the HTML auth pages and the JSON
auth API.
"""
import base64
import json
import logging
from typing import Any, Dict, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from salesboard.database import db_session
from salesboard.exceptions import AuthError, SalesboardError
from salesboard.models import Profile
from salesboard.services.supabase_auth import get_auth_client

logger = logging.getLogger(__name__)

COOKIE_PREFIX = 'base64-'
EMAIL_CONFIRMATION_MESSAGE = 'Check your email for the confirmation link!'
PASSWORD_RESET_MESSAGE = 'Check your email for the password reset link!'
PASSWORD_UPDATED_MESSAGE = 'Password updated successfully!'


def encode_session_cookie(session_data: Dict[str, Any]) -> str:
    """Serialize the token part of a session into a cookie-safe value."""
    tokens = {
        'access_token': session_data.get('access_token'),
        'refresh_token': session_data.get('refresh_token'),
        'expires_at': session_data.get('expires_at'),
        'token_type': session_data.get('token_type', 'bearer'),
    }
    raw = json.dumps(tokens, separators=(',', ':')).encode('utf-8')
    return COOKIE_PREFIX + base64.urlsafe_b64encode(raw).decode('ascii')


def decode_session_cookie(value: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse a session cookie value; None when missing or malformed."""
    if not value:
        return None
    if value.startswith(COOKIE_PREFIX):
        value = value[len(COOKIE_PREFIX):]
    try:
        data = json.loads(base64.urlsafe_b64decode(value.encode('ascii')))
    except (ValueError, TypeError):
        return None
    if not isinstance(data, dict) or not data.get('access_token'):
        return None
    return data


def get_access_token(cookies) -> Optional[str]:
    """Access token from the request's auth cookie, if present."""
    client = get_auth_client()
    session_data = decode_session_cookie(cookies.get(client.cookie_name))
    return session_data['access_token'] if session_data else None


def set_auth_cookie(response, session_data: Dict[str, Any]):
    """Attach the auth cookie for a freshly issued session."""
    client = get_auth_client()
    response.set_cookie(
        client.cookie_name,
        encode_session_cookie(session_data),
        max_age=current_app.config.get('AUTH_COOKIE_MAX_AGE'),
        httponly=True,
        secure=current_app.config.get('SESSION_COOKIE_SECURE', False),
        samesite=current_app.config.get('SESSION_COOKIE_SAMESITE', 'Lax'),
    )
    return response


def clear_auth_cookie(response):
    """Remove the auth cookie from the browser."""
    response.delete_cookie(get_auth_client().cookie_name)
    return response


def split_session_payload(payload: Dict[str, Any]) -> Tuple[Optional[dict], Optional[dict]]:
    """
    Split a token/signup response into (user, session).

    Sign-up on projects with email confirmation returns only the user object.
    """
    if payload.get('access_token'):
        return payload.get('user'), payload
    if payload.get('id'):
        return payload, None
    return payload.get('user'), None


def ensure_user_profile(user_id: str, email: str, first_name: str, last_name: str) -> Optional[Profile]:
    """
    Make sure a Profile row exists for an auth user.

    A database trigger normally creates it; this is the fallback. Failures are
    logged and swallowed so registration still succeeds.
    """
    try:
        profile = db_session.query(Profile).filter_by(id=user_id).first()
        if profile:
            logger.info(f"[AUTH] Profile already exists for user {user_id}")
            return profile

        logger.info(f"[AUTH] Creating profile for user {user_id}")
        profile = Profile(id=user_id, email=email, first_name=first_name, last_name=last_name)
        db_session.add(profile)
        db_session.commit()
        return profile
    except SQLAlchemyError as e:
        db_session.rollback()
        logger.error(f"[AUTH] Error creating profile for {user_id}: {e}", exc_info=True)
        return None


def login(email: str, password: str) -> Tuple[dict, dict]:
    """Sign in with password. Returns (user, session)."""
    payload = get_auth_client().sign_in_with_password(email, password)
    user, session_data = split_session_payload(payload)
    logger.info(f"[AUTH] Login attempt: email={email} has_user={bool(user)} has_session={bool(session_data)}")
    return user, session_data


def register(email: str, password: str, first_name: str, last_name: str) -> Tuple[dict, Optional[dict]]:
    """
    Create an auth user and its profile.

    Returns:
        (user, session) - session is None while email confirmation is pending

    Raises:
        UpstreamServiceError: provider rejected the sign-up
        SalesboardError: provider returned no user
    """
    payload = get_auth_client().sign_up(
        email, password, user_metadata={'first_name': first_name, 'last_name': last_name}
    )
    user, session_data = split_session_payload(payload)
    if not user or not user.get('id'):
        raise SalesboardError('User creation failed', 500)

    ensure_user_profile(user['id'], email, first_name, last_name)
    return user, session_data


def logout(access_token: Optional[str]) -> None:
    """Revoke the upstream session when there is one."""
    if access_token:
        get_auth_client().sign_out(access_token)
    logger.info(f"[AUTH] Logout (had_token={bool(access_token)})")


def get_user_for_token(access_token: Optional[str]) -> dict:
    """Resolve the user of an access token or raise AuthError."""
    if not access_token:
        raise AuthError('No active session')
    user = get_auth_client().get_user(access_token)
    if not user or not user.get('id'):
        raise AuthError('No active session')
    return user


def request_password_reset(email: str, redirect_to: Optional[str] = None) -> None:
    get_auth_client().reset_password_for_email(email, redirect_to)


def update_password(access_token: Optional[str], password: str) -> dict:
    if not access_token:
        raise AuthError('No active session')
    return get_auth_client().update_user(access_token, {'password': password})
