"""
JSON authentication API.
Sign-in, registration, logout, session lookup and password recovery on top
of Supabase Auth. Errors are rendered as {"error": message} by the app's
SalesboardError handler.
"""

from flask import Blueprint, request, jsonify, current_app, Response
from typing import Tuple, Union
import logging

from salesboard.exceptions import AuthError, SalesboardError, UpstreamServiceError
from salesboard.schemas import (
    LoginRequest, RegisterRequest, ForgotPasswordRequest, ResetPasswordRequest, parse_body
)
from salesboard.services import auth_service

logger = logging.getLogger(__name__)

auth_api_bp = Blueprint('auth_api', __name__, url_prefix='/api/auth')


def _json_body():
    return request.get_json(silent=True)


@auth_api_bp.route('/login', methods=['POST'])
def login() -> Response:
    data = parse_body(LoginRequest, _json_body())
    user, session_data = auth_service.login(data.email, data.password)

    response = jsonify({'user': user, 'session': session_data})
    if session_data:
        auth_service.set_auth_cookie(response, session_data)
    return response


@auth_api_bp.route('/register', methods=['POST'])
def register() -> Union[Response, Tuple[Response, int]]:
    """Create the auth user, then make sure its profile row exists."""
    data = parse_body(RegisterRequest, _json_body())

    try:
        user, session_data = auth_service.register(
            data.email, data.password, data.first_name, data.last_name
        )
    except SalesboardError:
        raise
    except Exception as e:
        logger.exception(f"[AUTH] Registration error: {e}")
        return jsonify({'error': 'Registration failed'}), 500

    response = jsonify({
        'user': user,
        'session': session_data,
        'message': auth_service.EMAIL_CONFIRMATION_MESSAGE,
    })
    if session_data:
        auth_service.set_auth_cookie(response, session_data)
    return response


@auth_api_bp.route('/logout', methods=['POST'])
def logout() -> Response:
    auth_service.logout(auth_service.get_access_token(request.cookies))
    response = jsonify({'message': 'Successfully signed out'})
    auth_service.clear_auth_cookie(response)
    return response


@auth_api_bp.route('/session', methods=['GET'])
def session() -> Union[Response, Tuple[Response, int]]:
    """Current user for the auth cookie, or 401."""
    try:
        user = auth_service.get_user_for_token(auth_service.get_access_token(request.cookies))
    except (AuthError, UpstreamServiceError) as e:
        current_app.logger.info(f"[AUTH] Session check failed: {e.message}")
        return jsonify({'authenticated': False, 'error': e.message}), 401

    return jsonify({
        'authenticated': True,
        'user': user,
        'session': {'user': {'id': user['id']}},
    })


@auth_api_bp.route('/forgot-password', methods=['POST'])
def forgot_password() -> Response:
    data = parse_body(ForgotPasswordRequest, _json_body())
    auth_service.request_password_reset(data.email, data.redirect_to)
    return jsonify({'message': auth_service.PASSWORD_RESET_MESSAGE})


@auth_api_bp.route('/reset-password', methods=['POST'])
def reset_password() -> Response:
    data = parse_body(ResetPasswordRequest, _json_body())
    auth_service.update_password(auth_service.get_access_token(request.cookies), data.password)
    return jsonify({'message': auth_service.PASSWORD_UPDATED_MESSAGE})


@auth_api_bp.route('/reset-password', methods=['GET'])
def reset_password_session() -> Union[Response, Tuple[Response, int]]:
    """Whether the recovery link produced a usable session."""
    try:
        user = auth_service.get_user_for_token(auth_service.get_access_token(request.cookies))
    except (AuthError, UpstreamServiceError) as e:
        return jsonify({'error': e.message}), 401

    return jsonify({
        'isValid': True,
        'session': {'user': {'id': user['id'], 'email': user.get('email')}},
    })
