"""
Integration tests for the HTML auth pages.
"""

from salesboard.exceptions import UpstreamServiceError
from salesboard.services.supabase_auth import SupabaseAuthClient

AUTH_COOKIE = 'sb-testproject-auth-token'

SESSION_PAYLOAD = {
    'access_token': 'access-1',
    'refresh_token': 'refresh-1',
    'expires_at': 1999999999,
    'user': {'id': 'user-1111', 'email': 'owner@test.com'},
}


class TestLoginPage:

    def test_login_redirects_to_dashboard(self, client, mocker):
        mocker.patch.object(SupabaseAuthClient, 'sign_in_with_password', return_value=SESSION_PAYLOAD)

        response = client.post('/auth/login', data={'email': 'owner@test.com', 'password': 'secret'})

        assert response.status_code == 302
        assert response.headers['Location'].endswith('/dashboard')
        assert AUTH_COOKIE in response.headers['Set-Cookie']

    def test_login_failure_shows_message(self, client, mocker):
        mocker.patch.object(SupabaseAuthClient, 'sign_in_with_password',
                            side_effect=UpstreamServiceError('Invalid login credentials', 400))

        response = client.post('/auth/login', data={'email': 'owner@test.com', 'password': 'bad'})

        assert response.status_code == 400
        assert b'Invalid login credentials' in response.data

    def test_invalid_email_not_sent_upstream(self, client, mocker):
        sign_in = mocker.patch.object(SupabaseAuthClient, 'sign_in_with_password')

        response = client.post('/auth/login', data={'email': 'nope', 'password': 'secret'})

        assert response.status_code == 200
        assert b'Invalid email format' in response.data
        sign_in.assert_not_called()


class TestRegisterPage:

    FORM = {
        'first_name': 'New',
        'last_name': 'User',
        'email': 'new@test.com',
        'password': 'secret1',
        'password_confirm': 'secret1',
    }

    def test_pending_confirmation_goes_to_login(self, client, mocker):
        mocker.patch.object(SupabaseAuthClient, 'sign_up', return_value={'id': 'new-user'})

        response = client.post('/auth/register', data=self.FORM, follow_redirects=True)

        assert response.status_code == 200
        assert b'Check your email for the confirmation link!' in response.data

    def test_mismatched_passwords(self, client, mocker):
        sign_up = mocker.patch.object(SupabaseAuthClient, 'sign_up')

        response = client.post('/auth/register', data=dict(self.FORM, password_confirm='other1'))

        assert b'Passwords do not match' in response.data
        sign_up.assert_not_called()


class TestPasswordPages:

    def test_forgot_password_sends_reset_link(self, client, mocker):
        recover = mocker.patch.object(SupabaseAuthClient, 'reset_password_for_email')

        response = client.post('/auth/forgot-password', data={'email': 'owner@test.com'}, follow_redirects=True)

        assert b'Check your email for the password reset link!' in response.data
        email, redirect_to = recover.call_args.args
        assert email == 'owner@test.com'
        assert redirect_to.endswith('/auth/reset-password')

    def test_reset_password_with_link_token(self, client, mocker):
        update = mocker.patch.object(SupabaseAuthClient, 'update_user', return_value={'id': 'user-1111'})

        response = client.post('/auth/reset-password', data={
            'password': 'newsecret', 'password_confirm': 'newsecret', 'access_token': 'recovery-token'
        }, follow_redirects=True)

        assert b'Password updated successfully!' in response.data
        update.assert_called_once_with('recovery-token', {'password': 'newsecret'})

    def test_reset_password_without_token(self, client):
        response = client.post('/auth/reset-password', data={
            'password': 'newsecret', 'password_confirm': 'newsecret'
        })

        assert response.status_code == 401
        assert b'No active session' in response.data


class TestSignOut:

    def test_sign_out_revokes_session_and_clears_cookie(self, authenticated_client, mocker):
        sign_out = mocker.patch.object(SupabaseAuthClient, 'sign_out')

        response = authenticated_client.get('/logout')

        assert response.status_code == 302
        assert response.headers['Location'].endswith('/auth/login')
        assert f'{AUTH_COOKIE}=;' in response.headers['Set-Cookie']
        sign_out.assert_called_once_with('access-token-1')

    def test_sign_out_survives_provider_error(self, authenticated_client, mocker):
        mocker.patch.object(SupabaseAuthClient, 'sign_out',
                            side_effect=UpstreamServiceError('Session not found', 400))

        response = authenticated_client.get('/logout')

        assert response.status_code == 302
        assert f'{AUTH_COOKIE}=;' in response.headers['Set-Cookie']

    def test_login_page_reachable_after_sign_out(self, authenticated_client, mocker):
        mocker.patch.object(SupabaseAuthClient, 'sign_out')

        response = authenticated_client.get('/logout', follow_redirects=True)

        assert response.status_code == 200
        assert b'Successfully signed out' in response.data
