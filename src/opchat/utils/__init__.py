"""Utility modules for opchat."""

from opchat.utils.errors import (
    AuthenticationError,
    ExecutionError,
    GateStateError,
    NetworkError,
    OpchatError,
    OracleError,
    SignerUnavailableError,
    UploadError,
    ValidationError,
    classify_error,
    handle_errors,
)

__all__ = [
    "OpchatError",
    "OracleError",
    "ValidationError",
    "UploadError",
    "ExecutionError",
    "SignerUnavailableError",
    "NetworkError",
    "AuthenticationError",
    "GateStateError",
    "handle_errors",
    "classify_error",
]
