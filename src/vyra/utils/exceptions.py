"""
Custom exceptions for vyra.

This module defines all custom exceptions used throughout the application.
"""


class VyraError(Exception):
    """Base exception for all vyra errors."""

    pass


class ValidationError(VyraError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = "") -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Name of the field that failed validation (optional)
        """
        self.field = field
        super().__init__(message)


class AuthError(VyraError):
    """Raised when the caller identity is missing or invalid."""

    pass


class QuotaExceededError(VyraError):
    """Raised when a user has used up the daily generation limit for their tier."""

    def __init__(self, limit: int, message: str = "") -> None:
        """
        Initialize quota error.

        Args:
            limit: The daily limit that was hit
            message: Error message (defaults to one naming the limit)
        """
        self.limit = limit
        super().__init__(message or f"Daily limit of {limit} reached.")


class ConfigurationError(VyraError):
    """Raised when there is a configuration problem."""

    pass


class APIError(VyraError):
    """Raised when an API call fails."""

    def __init__(self, message: str, status_code: int = 0, response: str = "") -> None:
        """
        Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
            response: Raw API response (if available)
        """
        self.status_code = status_code
        self.response = response
        super().__init__(message)


class NetworkError(VyraError):
    """Raised when a network operation fails."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """
        Initialize network error.

        Args:
            message: Error message
            original_error: The underlying exception that caused this error
        """
        self.original_error = original_error
        super().__init__(message)


class RequestTimeoutError(VyraError):
    """Raised when an operation times out (provider call or the whole request)."""

    pass


class UpstreamEmptyResultError(VyraError):
    """Raised when a provider call succeeds but returns nothing usable."""

    def __init__(self, message: str, response: str = "") -> None:
        self.response = response
        super().__init__(message)


class PersistenceError(VyraError):
    """Raised when a store operation or transaction cannot be applied."""

    def __init__(
        self, message: str, attempts: int = 0, original_error: Exception | None = None
    ) -> None:
        """
        Initialize persistence error.

        Args:
            message: Error message
            attempts: Number of transaction attempts made before giving up
            original_error: The underlying store exception
        """
        self.attempts = attempts
        self.original_error = original_error
        super().__init__(message)
