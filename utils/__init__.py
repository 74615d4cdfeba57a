"""Utility modules for Support Relay."""

from .errors import (
    ErrorKind,
    ServiceError,
    classify_status,
    classify_transport_error,
)
from .network import is_online
from .retry import RetryPolicy, call_with_retry

__all__ = [
    "ErrorKind",
    "ServiceError",
    "classify_status",
    "classify_transport_error",
    "is_online",
    "RetryPolicy",
    "call_with_retry",
]
