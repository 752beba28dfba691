"""Error types for catalog adapters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for catalog errors."""

    UNKNOWN = "unknown"
    HTTP = "http"
    NETWORK = "network"
    PARSE = "parse"
    INVALID_REQUEST = "invalid_request"


@dataclass(frozen=True, slots=True)
class CatalogError:
    """
    Base error type for catalog operations.

    Attributes:
        code: Error code identifying the type of error.
        message: Human-readable error message.
        source: Code of the catalog that produced the error.
        status_code: Upstream HTTP status, when one was received.
        details: Additional error details (optional).
    """

    code: ErrorCode
    message: str
    source: str
    status_code: int | None = None
    details: str | None = None

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"[{self.source}] {self.code.value}: {self.message}"

    @property
    def is_retryable(self) -> bool:
        """Check if this error type is retryable."""
        if self.code == ErrorCode.NETWORK:
            return True
        return self.code == ErrorCode.HTTP and self.status_code in {429, 500, 502, 503, 504}


def HttpStatusError(
    source: str,
    status_code: int,
    reason_phrase: str,
    details: str | None = None,
) -> CatalogError:
    """Create an error for a non-success upstream response."""
    return CatalogError(
        code=ErrorCode.HTTP,
        message=f"HTTP Error: {status_code} - {reason_phrase}",
        source=source,
        status_code=status_code,
        details=details,
    )


def NetworkError(
    source: str,
    message: str = "Network error",
    details: str | None = None,
) -> CatalogError:
    """Create a network error."""
    return CatalogError(
        code=ErrorCode.NETWORK,
        message=message,
        source=source,
        details=details,
    )


def ParseError(
    source: str,
    message: str = "Failed to parse response",
    details: str | None = None,
) -> CatalogError:
    """Create a parse error."""
    return CatalogError(
        code=ErrorCode.PARSE,
        message=message,
        source=source,
        details=details,
    )
