"""
Integration tests for auth-cookie route gating.
"""

import pytest

AUTH_COOKIE = 'sb-testproject-auth-token'


def location_of(response):
    return response.headers['Location']


class TestProtectedRoutes:

    @pytest.mark.parametrize('path', ['/dashboard', '/chat', '/notifications'])
    def test_redirects_to_login_without_cookie(self, client, path):
        response = client.get(path)

        assert response.status_code == 302
        assert location_of(response).endswith('/auth/login')

    def test_unrelated_sb_cookie_does_not_count(self, client):
        client.set_cookie('sb-test-session', 'value')

        response = client.get('/dashboard')

        assert response.status_code == 302
        assert location_of(response).endswith('/auth/login')

    def test_any_project_auth_cookie_counts(self, client):
        """Only the cookie name is checked, not its project or its token."""
        client.set_cookie('sb-different-project-auth-token', 'opaque')

        response = client.get('/dashboard')

        assert response.status_code == 200
        assert b'Dashboard' in response.data


class TestAuthRoutes:

    @pytest.mark.parametrize('path', ['/auth/login', '/auth/register', '/auth/forgot-password'])
    def test_signed_in_users_sent_to_dashboard(self, client, path):
        client.set_cookie(AUTH_COOKIE, 'opaque')

        response = client.get(path)

        assert response.status_code == 302
        assert location_of(response).endswith('/dashboard')

    def test_auth_logout_path_follows_the_auth_rule(self, client):
        client.set_cookie(AUTH_COOKIE, 'opaque')

        response = client.get('/auth/logout')

        assert response.status_code == 302
        assert location_of(response).endswith('/dashboard')

    def test_auth_pages_open_without_cookie(self, client):
        assert client.get('/auth/login').status_code == 200
        assert client.get('/auth/register').status_code == 200


class TestPublicRoutes:

    def test_landing_page(self, client):
        assert client.get('/').status_code == 200

    def test_landing_redirects_signed_in(self, client):
        client.set_cookie(AUTH_COOKIE, 'opaque')
        response = client.get('/')
        assert response.status_code == 302
        assert location_of(response).endswith('/dashboard')

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json() == {
            'status': 'healthy',
            'database': 'connected',
            'schemaEmbeddings': 0,
            'textToSqlReady': False,
        }

    def test_cache_health_degraded_without_redis(self, client):
        response = client.get('/health/cache')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'degraded'

    def test_unknown_api_route_is_json(self, client):
        response = client.get('/api/nope')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'Not Found'}

    def test_metrics_endpoint(self, client):
        client.get('/health')
        response = client.get('/metrics')
        assert response.status_code == 200
        assert b'http_requests_total' in response.data
