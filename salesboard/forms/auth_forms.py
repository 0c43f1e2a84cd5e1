"""
Authentication forms for the HTML auth pages.
"""
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, HiddenField
from wtforms.validators import DataRequired, EqualTo, Length, Regexp

from salesboard.schemas import EMAIL_PATTERN, MIN_PASSWORD_LENGTH


def _email_field():
    return StringField(
        'Email',
        validators=[
            DataRequired(message='Email is required'),
            Regexp(EMAIL_PATTERN, message='Invalid email format')
        ],
        render_kw={'placeholder': 'you@example.com', 'autocomplete': 'email'}
    )


def _new_password_field(label='Password'):
    return PasswordField(
        label,
        validators=[
            DataRequired(message='Password is required'),
            Length(min=MIN_PASSWORD_LENGTH, message=f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        ],
        render_kw={'autocomplete': 'new-password'}
    )


class LoginForm(FlaskForm):
    """Email + password sign-in."""

    email = _email_field()
    password = PasswordField(
        'Password',
        validators=[DataRequired(message='Password is required')],
        render_kw={'autocomplete': 'current-password'}
    )


class RegisterForm(FlaskForm):
    """New account with first and last name."""

    first_name = StringField('First name', validators=[DataRequired(message='First name is required')])
    last_name = StringField('Last name', validators=[DataRequired(message='Last name is required')])
    email = _email_field()
    password = _new_password_field()
    password_confirm = PasswordField(
        'Confirm password',
        validators=[EqualTo('password', message='Passwords do not match')]
    )


class ForgotPasswordForm(FlaskForm):
    email = _email_field()


class ResetPasswordForm(FlaskForm):
    """New password after following a recovery link."""

    password = _new_password_field('New password')
    password_confirm = PasswordField(
        'Confirm password',
        validators=[EqualTo('password', message='Passwords do not match')]
    )
    # Recovery links carry the session in the URL fragment; the page script copies it here
    access_token = HiddenField()
