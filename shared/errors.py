"""
Shared error handling for the SRD reference API.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class SrdApiException(Exception):
    """Base exception for SRD API services."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class NotFoundError(SrdApiException):
    """Raised when an index (or a nested segment) does not resolve to a record."""

    status_code = 404

    def __init__(self, collection: str, index: Any, details: Optional[Dict[str, Any]] = None):
        self.collection = collection
        self.index = index
        super().__init__(
            "NOT_FOUND",
            f"{collection}: no record for '{index}'",
            details or {"collection": collection, "index": str(index)},
        )


class ServiceUnavailableError(SrdApiException):
    """Backing store connectivity or timeout errors."""

    status_code = 503

    def __init__(self, service: str, message: str = "Service unavailable", details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("SERVICE_UNAVAILABLE", f"{service}: {message}", details)


class BadFilterError(SrdApiException):
    """
    A filter value that cannot be coerced.

    Internal only: the normalizer drops the offending value and carries on,
    so this never reaches an HTTP handler.
    """

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__("BAD_FILTER", f"Invalid value for {field}: {value!r}", {"field": field, "value": value})
