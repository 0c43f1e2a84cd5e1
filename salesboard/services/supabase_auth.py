"""Supabase Auth (GoTrue) REST client."""
import requests
from typing import Dict, Any, Optional
from urllib.parse import urlparse
from flask import current_app

from salesboard.blueprints.metrics import record_upstream_error
from salesboard.exceptions import UpstreamServiceError


class SupabaseAuthClient:
    """Thin client for the Supabase Auth REST endpoints used by the app."""

    TIMEOUT = 10

    def __init__(self, base_url: str, api_key: str):
        """
        Initialize Supabase Auth client.

        Args:
            base_url: Project URL, e.g. https://<ref>.supabase.co
            api_key: Anon (public) key of the project
        """
        if not base_url:
            raise ValueError("SUPABASE_URL is required")
        if not api_key:
            raise ValueError("SUPABASE_ANON_KEY is required")

        self.base_url = base_url.rstrip('/')
        self.auth_url = f"{self.base_url}/auth/v1"
        self.api_key = api_key

    @property
    def project_ref(self) -> str:
        """Project reference: first label of the project host."""
        host = urlparse(self.base_url).hostname or 'local'
        return host.split('.')[0]

    @property
    def cookie_name(self) -> str:
        """Name of the session cookie, following the sb-<ref>-auth-token convention."""
        return f"sb-{self.project_ref}-auth-token"

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            'apikey': self.api_key,
            'Content-Type': 'application/json',
        }
        headers['Authorization'] = f"Bearer {access_token or self.api_key}"
        return headers

    def _request(self, method: str, path: str, access_token: Optional[str] = None,
                 **kwargs) -> Dict[str, Any]:
        url = f"{self.auth_url}{path}"
        try:
            response = requests.request(
                method, url, headers=self._headers(access_token), timeout=self.TIMEOUT, **kwargs
            )
        except requests.RequestException as e:
            current_app.logger.error(f"[AUTH] Request to {path} failed: {e}")
            record_upstream_error('supabase')
            raise UpstreamServiceError('Authentication service unavailable', 503, service='supabase')

        if response.status_code >= 400:
            message = self._error_message(response)
            current_app.logger.warning(f"[AUTH] {method} {path} -> {response.status_code}: {message}")
            record_upstream_error('supabase')
            raise UpstreamServiceError(message, 400, service='supabase')

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_message(response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        return (
            body.get('msg')
            or body.get('error_description')
            or body.get('message')
            or body.get('error')
            or f"HTTP {response.status_code}"
        )

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange email + password for a session (access/refresh tokens + user)."""
        return self._request(
            'POST', '/token', params={'grant_type': 'password'},
            json={'email': email, 'password': password}
        )

    def sign_up(self, email: str, password: str, user_metadata: Optional[dict] = None) -> Dict[str, Any]:
        """
        Register a new user.

        Returns either a session payload (auto-confirm projects) or the bare
        user object when email confirmation is pending.
        """
        payload = {'email': email, 'password': password, 'data': user_metadata or {}}
        return self._request('POST', '/signup', json=payload)

    def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""
        self._request('POST', '/logout', access_token=access_token)

    def get_user(self, access_token: str) -> Dict[str, Any]:
        """Fetch the user an access token belongs to."""
        return self._request('GET', '/user', access_token=access_token)

    def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Send the password recovery email."""
        params = {'redirect_to': redirect_to} if redirect_to else None
        self._request('POST', '/recover', params=params, json={'email': email})

    def update_user(self, access_token: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """Update the authenticated user (e.g. its password)."""
        return self._request('PUT', '/user', access_token=access_token, json=attributes)


def get_auth_client() -> SupabaseAuthClient:
    """Build an auth client from the current app config."""
    return SupabaseAuthClient(
        current_app.config.get('SUPABASE_URL', ''),
        current_app.config.get('SUPABASE_ANON_KEY', ''),
    )
