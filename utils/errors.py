"""
Typed error taxonomy shared by the fetch core, the Amazon lookup and the
provider clients.

Faults are classified where they are first observed (an HTTP status, an
httpx exception, an SDK exception) so retry decisions never depend on
matching substrings of human-readable messages.
"""

from enum import Enum

import httpx


class ErrorKind(str, Enum):
    """Failure classification."""

    VALIDATION = "validation"
    POLICY_DENIED = "policy_denied"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP_ERROR = "http_error"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


# Kinds that are always worth another attempt
TRANSIENT_KINDS = {ErrorKind.RATE_LIMITED, ErrorKind.TIMEOUT, ErrorKind.NETWORK}


class ServiceError(Exception):
    """A classified failure from an outbound call or a policy check."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Rate limits, timeouts, network faults and 5xx responses are transient."""
        if self.kind in TRANSIENT_KINDS:
            return True
        return (
            self.kind == ErrorKind.HTTP_ERROR
            and self.status_code is not None
            and self.status_code >= 500
        )

    def describe(self) -> str:
        """Short label used in logs and retrieval failure notes."""
        if self.kind == ErrorKind.RATE_LIMITED and self.status_code == 429:
            return "rate limited (429)"
        if self.kind == ErrorKind.AUTHENTICATION:
            return f"authentication failed ({self.status_code or 401})"
        if self.kind == ErrorKind.HTTP_ERROR and self.status_code is not None:
            return f"api error: {self.status_code}"
        if self.kind == ErrorKind.NETWORK:
            return "network error"
        return self.kind.value

    def __repr__(self) -> str:
        return (
            f"ServiceError(kind={self.kind.value!r}, message={self.message!r}, "
            f"status_code={self.status_code!r})"
        )


def classify_status(status_code: int, detail: str = "") -> ServiceError:
    """Build a typed error for a non-success HTTP status."""
    suffix = f": {detail}" if detail else ""
    if status_code == 429:
        return ServiceError(
            ErrorKind.RATE_LIMITED, f"HTTP 429{suffix}", status_code=429
        )
    if status_code in (401, 403):
        return ServiceError(
            ErrorKind.AUTHENTICATION,
            f"HTTP {status_code}{suffix}",
            status_code=status_code,
        )
    if status_code == 404:
        return ServiceError(ErrorKind.NOT_FOUND, f"HTTP 404{suffix}", status_code=404)
    return ServiceError(
        ErrorKind.HTTP_ERROR, f"HTTP {status_code}{suffix}", status_code=status_code
    )


def classify_transport_error(exc: Exception) -> ServiceError:
    """Build a typed error from an httpx exception raised before a response arrived."""
    if isinstance(exc, httpx.TimeoutException):
        return ServiceError(ErrorKind.TIMEOUT, f"Request timed out: {exc}")
    # InvalidURL and UnsupportedProtocol are caller mistakes, never transient
    if isinstance(exc, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return ServiceError(ErrorKind.VALIDATION, f"Invalid URL: {exc}")
    if isinstance(exc, httpx.TransportError):
        return ServiceError(ErrorKind.NETWORK, f"Network error: {exc}")
    return ServiceError(ErrorKind.UNKNOWN, str(exc) or exc.__class__.__name__)
