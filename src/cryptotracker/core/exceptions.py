"""CryptoTracker exception hierarchy.

This module defines the base exception class and specialized exceptions
for different error categories across the application.
"""


class CryptoTrackerError(Exception):
    """Base exception for all CryptoTracker errors.

    All custom exceptions in CryptoTracker should inherit from this class
    to enable consistent error handling and logging.
    """

    pass


class DatabaseConnectionError(CryptoTrackerError):
    """Raised when the Supabase connection fails or is not established.

    Example:
        raise DatabaseConnectionError("Supabase: Connection refused")
    """

    pass


class StoreError(CryptoTrackerError):
    """Raised when a write against the cache store fails.

    Reads never raise this; a failed read is logged and reported as
    "nothing cached" by the repositories.
    """

    pass


class ConfigurationError(CryptoTrackerError):
    """Raised when configuration is invalid or missing.

    Example:
        raise ConfigurationError("Missing required env var: SUPABASE_URL")
    """

    pass


class ExternalServiceError(CryptoTrackerError):
    """Raised when an external service call fails.

    Use this for transport errors, error statuses and unparseable
    responses from CoinGecko.

    Attributes:
        service: Name of the external service that failed.
        status_code: HTTP status code if available, None otherwise.

    Example:
        raise ExternalServiceError(service="coingecko", message="Too Many Requests", status_code=429)
    """

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")


class CircuitBreakerOpenError(CryptoTrackerError):
    """Raised when circuit breaker is open.

    Example:
        raise CircuitBreakerOpenError("Circuit is open for CoinGecko API")
    """

    pass


class DataUnavailableError(CryptoTrackerError):
    """Raised when neither the upstream nor the cache can serve a request.

    Attributes:
        retry_after: Seconds the client should wait before retrying.

    Example:
        raise DataUnavailableError("Data temporarily unavailable.", retry_after=60)
    """

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after


class TokenNotFoundError(CryptoTrackerError):
    """Raised when a token is absent from both the cache and the upstream.

    Attributes:
        token_id: The requested token id.
    """

    def __init__(self, token_id: str, message: str = "Token not found") -> None:
        super().__init__(message)
        self.message = message
        self.token_id = token_id


class ValidationError(CryptoTrackerError):
    """Raised when request input is invalid.

    Example:
        raise ValidationError("Search query is required")
    """

    pass
