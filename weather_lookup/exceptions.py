"""Custom exceptions for Weather Lookup with human-readable messages."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error reporting."""

    # Generic errors
    WEATHER_LOOKUP_ERROR = "WEATHER_LOOKUP_ERROR"

    # Network errors
    BAD_URL = "BAD_URL"
    REQUEST_FAILED = "REQUEST_FAILED"
    SERVER_ERROR = "SERVER_ERROR"
    DECODE_ERROR = "DECODE_ERROR"
    UNKNOWN = "UNKNOWN"

    # Location sensor errors
    LOCATION_ERROR = "LOCATION_ERROR"
    LOCATION_DENIED = "LOCATION_DENIED"

    # Configuration errors
    CONFIG_ERROR = "CONFIG_ERROR"


class WeatherLookupException(Exception):
    """Base exception for weather lookup errors.

    All custom exceptions inherit from this class. ``message`` is what the
    view-model shows to the user through ``last_error``.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.WEATHER_LOOKUP_ERROR,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        """Initialize weather lookup exception.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            status_code: HTTP status code, when one was received
            details: Additional error context/details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class NetworkException(WeatherLookupException):
    """Fetching a remote resource failed."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, status_code, details)


class BadURLException(NetworkException):
    """The request URL was missing, malformed, or built from empty input."""

    def __init__(self, message: str = "The request URL is invalid.", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.BAD_URL, details=details)


class RequestFailedException(NetworkException):
    """Transport-level failure (DNS, connection, timeout)."""

    def __init__(
        self, message: str = "The network request failed.", details: dict[str, Any] | None = None
    ):
        super().__init__(message, code=ErrorCode.REQUEST_FAILED, details=details)


class ServerErrorException(NetworkException):
    """The server answered with a status outside 200-299."""

    def __init__(self, status_code: int, message: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(
            message or f"The server returned an error (HTTP {status_code}).",
            code=ErrorCode.SERVER_ERROR,
            status_code=status_code,
            details=details,
        )


class DecodeException(NetworkException):
    """The response body could not be decoded into the expected shape."""

    def __init__(self, cause: Exception, message: str | None = None, details: dict[str, Any] | None = None):
        self.cause = cause
        super().__init__(
            message or f"The server response could not be read: {cause}",
            code=ErrorCode.DECODE_ERROR,
            details=details,
        )


class UnknownNetworkException(NetworkException):
    """Unclassified failure while fetching."""

    def __init__(
        self, message: str = "An unknown network error occurred.", details: dict[str, Any] | None = None
    ):
        super().__init__(message, code=ErrorCode.UNKNOWN, details=details)


class LocationException(WeatherLookupException):
    """Device location errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LOCATION_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details=details)


class ConfigurationException(WeatherLookupException):
    """Configuration errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.CONFIG_ERROR, details=details)
