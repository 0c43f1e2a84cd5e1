"""
Unit tests for the auth service and the Supabase Auth client.
"""

import pytest
import requests

from salesboard.exceptions import AuthError, SalesboardError, UpstreamServiceError
from salesboard.models import Profile
from salesboard.services import auth_service
from salesboard.services.supabase_auth import SupabaseAuthClient


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=''):
        self.status_code = status_code
        self._body = body
        self.text = text
        self.content = b'x' if body is not None else b''

    def json(self):
        if self._body is None:
            raise ValueError('no json')
        return self._body


class TestSessionCookie:

    def test_roundtrip_keeps_tokens_only(self):
        value = auth_service.encode_session_cookie({
            'access_token': 'a', 'refresh_token': 'r', 'expires_at': 10, 'user': {'id': 'u'}
        })

        assert value.startswith('base64-')
        decoded = auth_service.decode_session_cookie(value)
        assert decoded['access_token'] == 'a'
        assert decoded['refresh_token'] == 'r'
        assert 'user' not in decoded

    @pytest.mark.parametrize('value', [None, '', 'base64-!!!', 'base64-e30='])
    def test_malformed_cookie_is_none(self, value):
        assert auth_service.decode_session_cookie(value) is None

    def test_split_session_payload(self):
        session_payload = {'access_token': 't', 'user': {'id': 'u1'}}
        assert auth_service.split_session_payload(session_payload) == ({'id': 'u1'}, session_payload)
        assert auth_service.split_session_payload({'id': 'u2'}) == ({'id': 'u2'}, None)
        assert auth_service.split_session_payload({}) == (None, None)


class TestSupabaseAuthClient:

    def test_cookie_name_uses_project_ref(self):
        client = SupabaseAuthClient('https://abcdefgh.supabase.co/', 'anon')
        assert client.cookie_name == 'sb-abcdefgh-auth-token'
        assert client.auth_url == 'https://abcdefgh.supabase.co/auth/v1'

    def test_requires_configuration(self):
        with pytest.raises(ValueError):
            SupabaseAuthClient('', 'anon')
        with pytest.raises(ValueError):
            SupabaseAuthClient('https://x.supabase.co', '')

    def test_sign_in_posts_password_grant(self, app_context, mocker):
        request = mocker.patch('salesboard.services.supabase_auth.requests.request',
                               return_value=FakeResponse(200, {'access_token': 't'}))
        client = SupabaseAuthClient('https://p.supabase.co', 'anon')

        assert client.sign_in_with_password('a@b.co', 'pw') == {'access_token': 't'}

        args, kwargs = request.call_args
        assert args == ('POST', 'https://p.supabase.co/auth/v1/token')
        assert kwargs['params'] == {'grant_type': 'password'}
        assert kwargs['headers']['apikey'] == 'anon'

    def test_provider_message_surfaced(self, app_context, mocker):
        mocker.patch('salesboard.services.supabase_auth.requests.request',
                     return_value=FakeResponse(400, {'error_description': 'Invalid login credentials'}))
        client = SupabaseAuthClient('https://p.supabase.co', 'anon')

        with pytest.raises(UpstreamServiceError) as exc:
            client.sign_in_with_password('a@b.co', 'bad')
        assert exc.value.message == 'Invalid login credentials'
        assert exc.value.status_code == 400

    def test_network_failure_is_503(self, app_context, mocker):
        mocker.patch('salesboard.services.supabase_auth.requests.request',
                     side_effect=requests.ConnectionError('down'))
        client = SupabaseAuthClient('https://p.supabase.co', 'anon')

        with pytest.raises(UpstreamServiceError) as exc:
            client.get_user('token')
        assert exc.value.status_code == 503


class TestRegister:

    def test_creates_profile(self, app_context, session, mocker):
        mocker.patch.object(SupabaseAuthClient, 'sign_up', return_value={'id': 'new-user', 'email': 'n@test.com'})

        user, session_data = auth_service.register('n@test.com', 'secret1', 'New', 'User')

        assert user['id'] == 'new-user'
        assert session_data is None
        profile = session.query(Profile).filter_by(id='new-user').one()
        assert profile.full_name == 'New User'

    def test_existing_profile_kept(self, app_context, session, mocker):
        session.add(Profile(id='known', email='k@test.com', first_name='Kept'))
        session.commit()
        mocker.patch.object(SupabaseAuthClient, 'sign_up', return_value={
            'access_token': 't', 'user': {'id': 'known'}
        })

        user, session_data = auth_service.register('k@test.com', 'secret1', 'Other', 'Name')

        assert session_data['access_token'] == 't'
        assert session.query(Profile).filter_by(id='known').one().first_name == 'Kept'

    def test_missing_user_fails(self, app_context, mocker):
        mocker.patch.object(SupabaseAuthClient, 'sign_up', return_value={})

        with pytest.raises(SalesboardError) as exc:
            auth_service.register('n@test.com', 'secret1', 'New', 'User')
        assert exc.value.message == 'User creation failed'
        assert exc.value.status_code == 500


class TestTokens:

    def test_get_user_requires_token(self, app_context):
        with pytest.raises(AuthError):
            auth_service.get_user_for_token(None)

    def test_update_password_requires_token(self, app_context):
        with pytest.raises(AuthError):
            auth_service.update_password('', 'secret1')

    def test_logout_without_token_skips_provider(self, app_context, mocker):
        sign_out = mocker.patch.object(SupabaseAuthClient, 'sign_out')
        auth_service.logout(None)
        sign_out.assert_not_called()
