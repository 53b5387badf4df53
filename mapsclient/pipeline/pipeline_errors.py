"""
Exceptions raised by the authenticated request pipeline.

Every failure a caller can observe is one of the MapsClientError subclasses
below, each tagged with a single FailureKind. Retryable conditions are
handled inside the RequestExecutor; only the final error leaves it.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .pipeline_decoder import ApiError


class FailureKind(str, Enum):
    """Classification of a failed attempt."""

    NETWORK = "NETWORK"
    SERVER = "SERVER"
    RATE_LIMITED = "RATE_LIMITED"
    AUTHENTICATION = "AUTHENTICATION"
    CLIENT = "CLIENT"
    DECODING = "DECODING"
    SIGNING = "SIGNING"


class MapsClientError(Exception):
    """
    Base class for all terminal pipeline errors.

    Attributes:
        message: Human-readable description
        operation: Short name of the API call that failed (e.g. "geocode")
        status_code: HTTP status of the last response, if one was received
        api_error: Structured error extracted from the response body
        body: Raw body of the last response
        attempts: Number of transport calls made before giving up
    """

    kind: FailureKind = FailureKind.CLIENT

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 status_code: Optional[int] = None,
                 api_error: Optional["ApiError"] = None,
                 body: Optional[str] = None,
                 attempts: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.status_code = status_code
        self.api_error = api_error
        self.body = body
        self.attempts = attempts

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.attempts is not None:
            parts.append(f"attempts={self.attempts}")
        if self.api_error is not None and self.api_error.message:
            parts.append(f"error={self.api_error.message!r}")
        return " ".join(parts)


class SigningError(MapsClientError):
    """Key material is malformed or the signature operation failed."""
    kind = FailureKind.SIGNING


class AuthenticationError(MapsClientError):
    """The service rejected the credentials, even after a token refresh."""
    kind = FailureKind.AUTHENTICATION


class RateLimitExceededError(MapsClientError):
    """The service kept answering 429 until the attempts ran out."""
    kind = FailureKind.RATE_LIMITED

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class NetworkError(MapsClientError):
    """No response could be obtained (connect failure, timeout, TLS)."""
    kind = FailureKind.NETWORK

    def __init__(self, message: str, reason: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reason = reason


class ServerError(MapsClientError):
    """The service kept answering 5xx until the attempts ran out."""
    kind = FailureKind.SERVER


class ClientError(MapsClientError):
    """The request was rejected as malformed (4xx); retrying cannot help."""
    kind = FailureKind.CLIENT


class DecodingError(MapsClientError):
    """A success body did not match the expected response shape."""
    kind = FailureKind.DECODING


class TransportError(Exception):
    """
    A single HTTP attempt never produced a response.

    Raised by the transport and converted to NetworkError by the executor.
    """

    def __init__(self, message: str, reason: str = "request"):
        super().__init__(message)
        self.reason = reason
