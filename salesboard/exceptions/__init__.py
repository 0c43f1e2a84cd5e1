"""Custom exceptions for the Salesboard application."""


class SalesboardError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        return rv


class ValidationError(SalesboardError):
    """Raised when a request body fails validation."""
    def __init__(self, message="Invalid input", payload=None):
        super().__init__(message, 400, payload)


class AuthError(SalesboardError):
    """Raised when there is no valid authenticated session."""
    def __init__(self, message="No active session", status_code=401, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(SalesboardError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class UnsafeQueryError(SalesboardError):
    """Raised when generated SQL fails read-only validation."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class QueryExecutionError(SalesboardError):
    """Raised when a validated query fails in the database."""
    def __init__(self, message, payload=None):
        super().__init__(f"Query execution failed: {message}", 500, payload)


class UpstreamServiceError(SalesboardError):
    """
    Raised when an external service (auth provider, LLM API) rejects a call.

    The provider's message is kept as-is so routes can surface it to clients.
    """
    def __init__(self, message, status_code=400, service=None, payload=None):
        super().__init__(message, status_code, payload)
        self.service = service
