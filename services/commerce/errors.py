"""Error types for the commerce (checkout intent) service."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for commerce errors."""

    HTTP = "http"
    NETWORK = "network"
    PARSE = "parse"


@dataclass(frozen=True, slots=True)
class CommerceError:
    """
    Error returned by the commerce API client.

    Attributes:
        code: Error code identifying the type of error.
        message: Message suitable for logs and the ``details`` field.
        status_code: Upstream HTTP status, when one was received.
        details: Upstream response body or exception text.
    """

    code: ErrorCode
    message: str
    status_code: int | None = None
    details: str | None = None

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    @property
    def is_retryable(self) -> bool:
        """Check if repeating the same request may succeed."""
        if self.code == ErrorCode.NETWORK:
            return True
        return self.code == ErrorCode.HTTP and self.status_code in {429, 500, 502, 503, 504}


def ApiError(status_code: int, body: str) -> CommerceError:
    """Create an error for a non-success upstream response."""
    return CommerceError(
        code=ErrorCode.HTTP,
        message=f"Rye API Error ({status_code}): {body}",
        status_code=status_code,
        details=body,
    )


def NetworkError(message: str = "Network error", details: str | None = None) -> CommerceError:
    """Create a network error."""
    return CommerceError(code=ErrorCode.NETWORK, message=message, details=details)


def ParseError(message: str = "Invalid response from Rye API", details: str | None = None) -> CommerceError:
    """Create a parse error."""
    return CommerceError(code=ErrorCode.PARSE, message=message, details=details)


class BuyerValidationError(ValueError):
    """Raised when a required buyer field is missing."""

    def __init__(self, field: str) -> None:
        """Initialize with the wire name of the missing field."""
        self.field = field
        super().__init__(f"Missing required buyer field: {field}")


class CheckoutPollTimeoutError(Exception):
    """Raised when a checkout intent does not reach the awaited state in time."""

    def __init__(self, checkout_intent_id: str, attempts: int, elapsed: float) -> None:
        """Initialize with how long polling went on."""
        self.checkout_intent_id = checkout_intent_id
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Checkout intent {checkout_intent_id} still pending after "
            f"{attempts} polls ({elapsed:.1f}s)"
        )


class CheckoutFlowError(Exception):
    """Raised when a checkout flow action is not allowed in its current step."""
