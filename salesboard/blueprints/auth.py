"""
Authentication pages.
Login, registration and password recovery forms backed by the same auth
service as the JSON API. Signing out lives at /logout, outside /auth.
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash, Response
from typing import Union
import logging

from salesboard.exceptions import SalesboardError
from salesboard.forms.auth_forms import LoginForm, RegisterForm, ForgotPasswordForm, ResetPasswordForm
from salesboard.services import auth_service

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login() -> Union[str, Response]:
    form = LoginForm()

    if form.validate_on_submit():
        try:
            user, session_data = auth_service.login(form.email.data.strip(), form.password.data)
        except SalesboardError as e:
            flash(e.message, 'danger')
            return render_template('auth/login.html', form=form), 400

        if not session_data:
            flash('Could not start a session. Confirm your email and try again.', 'warning')
            return render_template('auth/login.html', form=form), 400

        logger.info(f"[AUTH] Login OK: user={user.get('id') if user else None}")
        response = redirect(url_for('dashboard.index'))
        auth_service.set_auth_cookie(response, session_data)
        return response

    return render_template('auth/login.html', form=form)


@auth_bp.route('/register', methods=['GET', 'POST'])
def register() -> Union[str, Response]:
    form = RegisterForm()

    if form.validate_on_submit():
        try:
            user, session_data = auth_service.register(
                form.email.data.strip(),
                form.password.data,
                form.first_name.data.strip(),
                form.last_name.data.strip()
            )
        except SalesboardError as e:
            flash(e.message, 'danger')
            return render_template('auth/register.html', form=form), e.status_code

        if session_data:
            response = redirect(url_for('dashboard.index'))
            auth_service.set_auth_cookie(response, session_data)
            return response

        flash(auth_service.EMAIL_CONFIRMATION_MESSAGE, 'success')
        return redirect(url_for('auth.login'))

    return render_template('auth/register.html', form=form)


@auth_bp.route('/forgot-password', methods=['GET', 'POST'])
def forgot_password() -> Union[str, Response]:
    form = ForgotPasswordForm()

    if form.validate_on_submit():
        try:
            auth_service.request_password_reset(
                form.email.data.strip(),
                url_for('auth.reset_password', _external=True)
            )
        except SalesboardError as e:
            flash(e.message, 'danger')
            return render_template('auth/forgot_password.html', form=form), 400

        flash(auth_service.PASSWORD_RESET_MESSAGE, 'success')
        return redirect(url_for('auth.login'))

    return render_template('auth/forgot_password.html', form=form)


@auth_bp.route('/reset-password', methods=['GET', 'POST'])
def reset_password() -> Union[str, Response]:
    form = ResetPasswordForm()

    if form.validate_on_submit():
        token = form.access_token.data or auth_service.get_access_token(request.cookies)
        try:
            auth_service.update_password(token, form.password.data)
        except SalesboardError as e:
            flash(e.message, 'danger')
            return render_template('auth/reset_password.html', form=form), e.status_code

        flash(auth_service.PASSWORD_UPDATED_MESSAGE, 'success')
        return redirect(url_for('auth.login'))

    return render_template('auth/reset_password.html', form=form)
