"""Errors raised by the catalog API client."""

from typing import Any

NETWORK_ERROR = "NETWORK_ERROR"
QUERY_TIMEOUT = "QUERY_TIMEOUT"
REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
PARSE_ERROR = "PARSE_ERROR"

_TITLES = {
    NETWORK_ERROR: "Connection Problem",
    QUERY_TIMEOUT: "Query Timeout",
    REQUEST_TIMEOUT: "Request Timeout",
    PARSE_ERROR: "Invalid Response",
    "401": "Authentication Required",
    "403": "Access Denied",
    "404": "Resource Not Found",
    "500": "Server Error",
}

_NON_RETRYABLE_CODES = {"401", "403", "404"}


class CatalogApiError(Exception):
    """Base error for failed catalog requests.

    Attributes:
        message: Human readable description
        code: Machine readable code (error kind or HTTP status as text)
        details: Optional server-supplied details
        status: HTTP status, when a response was received
    """

    default_code = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: Any = None,
        status: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details
        self.status = status

    @property
    def title(self) -> str:
        return _TITLES.get(self.code, "Error")

    @property
    def retryable(self) -> bool:
        return self.code not in _NON_RETRYABLE_CODES


class NetworkError(CatalogApiError):
    """Transport or connectivity failure."""

    default_code = NETWORK_ERROR


class HttpError(CatalogApiError):
    """Non-success HTTP response."""

    def __init__(self, status: int, message: str | None = None, details: Any = None):
        super().__init__(
            message or f"Request failed with status {status}",
            code=str(status),
            details=details,
            status=status,
        )


class RequestTimeoutError(CatalogApiError):
    """Request abandoned locally after its time budget ran out."""

    default_code = REQUEST_TIMEOUT


class ParseError(CatalogApiError):
    """Response body was not valid JSON or did not match the expected shape."""

    default_code = PARSE_ERROR
