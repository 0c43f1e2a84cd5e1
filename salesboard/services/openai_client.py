"""OpenAI REST client for embeddings and SQL generation."""
import json
import requests
from typing import Dict, Any, List, Optional
from flask import current_app

from salesboard.blueprints.metrics import record_upstream_error
from salesboard.exceptions import UpstreamServiceError


GENERATE_SQL_FUNCTION = {
    'name': 'generate_sql',
    'description': 'Generate SQL query based on user question and schema',
    'parameters': {
        'type': 'object',
        'properties': {
            'sql': {
                'type': 'string',
                'description': 'PostgreSQL SELECT query',
            },
            'explanation': {
                'type': 'string',
                'description': 'Human-readable explanation of what the query does',
            },
        },
        'required': ['sql', 'explanation'],
    },
}


class OpenAIClient:
    """Client for the OpenAI embeddings and chat completions endpoints."""

    TIMEOUT = 60

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        """
        Initialize OpenAI client.

        Args:
            api_key: API key. Required.
            base_url: API root, defaults to https://api.openai.com/v1
        """
        if not api_key:
            raise ValueError("OPENAI_API_KEY is required")

        self.api_key = api_key
        self.base_url = (base_url or 'https://api.openai.com/v1').rstrip('/')
        self.headers = {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json'
        }

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = requests.post(url, json=payload, headers=self.headers, timeout=self.TIMEOUT)
        except requests.RequestException as e:
            current_app.logger.error(f"[OPENAI] Request to {path} failed: {e}")
            record_upstream_error('openai')
            raise UpstreamServiceError('Language model service unavailable', 503, service='openai')

        if response.status_code >= 400:
            try:
                message = response.json().get('error', {}).get('message')
            except ValueError:
                message = None
            message = message or f"HTTP {response.status_code}"
            current_app.logger.error(f"[OPENAI] POST {path} -> {response.status_code}: {message}")
            record_upstream_error('openai')
            raise UpstreamServiceError(message, 502, service='openai')

        return response.json()

    def embed(self, texts: List[str], model: str) -> List[List[float]]:
        """
        Create embeddings for a batch of texts.

        Returns:
            One vector per input text, in input order
        """
        data = self._post('/embeddings', {
            'model': model,
            'input': texts,
            'encoding_format': 'float',
        })
        items = sorted(data.get('data', []), key=lambda d: d.get('index', 0))
        return [item['embedding'] for item in items]

    def generate_sql(self, system_prompt: str, question: str, model: str) -> Dict[str, str]:
        """
        Ask the chat model for a query through a forced `generate_sql` function call.

        Returns:
            Dict with `sql` and `explanation`

        Raises:
            UpstreamServiceError: API error or no usable function call
        """
        data = self._post('/chat/completions', {
            'model': model,
            'messages': [
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': question},
            ],
            'functions': [GENERATE_SQL_FUNCTION],
            'function_call': {'name': 'generate_sql'},
            'temperature': 0,
        })

        choices = data.get('choices') or [{}]
        function_call = (choices[0].get('message') or {}).get('function_call') or {}
        arguments = function_call.get('arguments')
        if not arguments:
            raise UpstreamServiceError('Failed to generate SQL query', 502, service='openai')

        try:
            result = json.loads(arguments)
        except ValueError:
            raise UpstreamServiceError('Failed to generate SQL query', 502, service='openai')

        if not result.get('sql'):
            raise UpstreamServiceError('Failed to generate SQL query', 502, service='openai')

        return {'sql': result['sql'], 'explanation': result.get('explanation', '')}


def get_openai_client() -> OpenAIClient:
    """Build an OpenAI client from the current app config."""
    return OpenAIClient(
        current_app.config.get('OPENAI_API_KEY'),
        current_app.config.get('OPENAI_BASE_URL'),
    )
