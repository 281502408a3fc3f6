"""Security utilities for opchat - credential management and log redaction."""

from opchat.security.credentials import (
    CredentialManager,
    SensitiveDataFilter,
    setup_secure_logging,
)

__all__ = ["CredentialManager", "SensitiveDataFilter", "setup_secure_logging"]
