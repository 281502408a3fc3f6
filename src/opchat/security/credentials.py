"""Credential storage for opchat.

Secrets (the language model API key and the wallet signing key) live in the
system keyring. An ``OPCHAT_<NAME>`` environment variable overrides the
keyring, and a 0600 file under ``~/.opchat`` takes over when the keyring
backend is missing or broken (WSL, containers, headless CI).
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import PasswordDeleteError

from opchat.utils.errors import ValidationError

logger = logging.getLogger(__name__)

_FALLBACK_DIR = Path.home() / ".opchat"
_FALLBACK_FILE = _FALLBACK_DIR / ".credentials"

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
SIGNING_KEY_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
REDACTED_RECORD = "[REDACTED - sensitive data]"


def is_valid_signing_key(value: Optional[str]) -> bool:
    """Check for a 32-byte hex private key, with or without 0x."""
    return bool(value) and bool(SIGNING_KEY_PATTERN.match(value.strip()))


class SensitiveDataFilter(logging.Filter):
    """Replace log records that talk about keys or secrets."""

    SENSITIVE_KEYWORDS = (
        "private_key",
        "private key",
        "signing_key",
        "signing key",
        "mnemonic",
        "seed phrase",
        "password",
        "api_key",
        "api key",
        "secret",
    )

    def filter(self, record: logging.LogRecord) -> bool:
        text = f"{record.msg} {record.args or ''}".lower()
        if any(keyword in text for keyword in self.SENSITIVE_KEYWORDS):
            record.msg = REDACTED_RECORD
            record.args = None
        return True


# =============================================================================
# Fallback file
# =============================================================================


def _read_fallback() -> dict[str, str]:
    if not _FALLBACK_FILE.exists():
        return {}
    entries: dict[str, str] = {}
    try:
        for line in _FALLBACK_FILE.read_text().splitlines():
            name, sep, value = line.partition("=")
            if sep:
                entries[name.strip()] = value.strip()
    except OSError as e:
        logger.warning(f"Could not read {_FALLBACK_FILE}: {e}")
    return entries


def _write_fallback(entries: dict[str, str]) -> bool:
    try:
        _FALLBACK_DIR.mkdir(parents=True, exist_ok=True)
        _FALLBACK_FILE.write_text("".join(f"{k}={v}\n" for k, v in entries.items()))
        _FALLBACK_FILE.chmod(0o600)
        return True
    except OSError as e:
        logger.error(f"Could not write {_FALLBACK_FILE}: {e}")
        return False


# =============================================================================
# Credential manager
# =============================================================================


class CredentialManager:
    """Stores and looks up opchat credentials."""

    SERVICE_NAME = "opchat"

    LLM_API_KEY = "llm_api_key"
    SIGNING_KEY = "wallet_signing_key"
    WALLET_ADDRESS = "wallet_address"
    STORAGE_TOKEN = "storage_token"

    # Set after the first keyring failure so later calls go straight to the file
    _keyring_broken = False

    @classmethod
    def _disable_keyring(cls, error: Exception) -> None:
        if not cls._keyring_broken:
            logger.debug(f"System keyring unavailable ({type(error).__name__}), using file storage")
        cls._keyring_broken = True

    @classmethod
    def store(cls, key_name: str, value: str) -> bool:
        """Store a credential; returns False if nothing could persist it."""
        if not cls._keyring_broken:
            try:
                keyring.set_password(cls.SERVICE_NAME, key_name, value)
                return True
            except Exception as e:
                cls._disable_keyring(e)
        entries = _read_fallback()
        entries[key_name] = value
        return _write_fallback(entries)

    @classmethod
    def get(cls, key_name: str) -> Optional[str]:
        """Look up a credential: environment, then keyring, then file."""
        env_value = os.environ.get(f"OPCHAT_{key_name.upper()}")
        if env_value:
            return env_value
        if not cls._keyring_broken:
            try:
                value = keyring.get_password(cls.SERVICE_NAME, key_name)
                if value is not None:
                    return value
            except Exception as e:
                cls._disable_keyring(e)
        return _read_fallback().get(key_name)

    @classmethod
    def delete(cls, key_name: str) -> bool:
        """Remove a credential everywhere it is stored.

        Returns:
            True if it was found and removed somewhere
        """
        removed = False
        if not cls._keyring_broken:
            try:
                keyring.delete_password(cls.SERVICE_NAME, key_name)
                removed = True
            except PasswordDeleteError:
                pass
            except Exception as e:
                cls._disable_keyring(e)

        entries = _read_fallback()
        if entries.pop(key_name, None) is not None:
            removed = _write_fallback(entries) or removed
        return removed

    # -------------------------------------------------------------------------
    # Language model
    # -------------------------------------------------------------------------

    @classmethod
    def get_llm_key(cls) -> Optional[str]:
        return cls.get(cls.LLM_API_KEY)

    @classmethod
    def set_llm_key(cls, key: str) -> bool:
        return cls.store(cls.LLM_API_KEY, key)

    @classmethod
    def get_storage_token(cls) -> Optional[str]:
        """Bearer token for the image upload endpoint, if one is configured."""
        return cls.get(cls.STORAGE_TOKEN)

    # -------------------------------------------------------------------------
    # Wallet
    # -------------------------------------------------------------------------

    @classmethod
    def get_signing_key(cls) -> Optional[str]:
        """The wallet signing key, or None when no wallet is connected."""
        return cls.get(cls.SIGNING_KEY)

    @classmethod
    def get_wallet_address(cls) -> Optional[str]:
        return cls.get(cls.WALLET_ADDRESS)

    @classmethod
    def has_wallet(cls) -> bool:
        return cls.get_signing_key() is not None and cls.get_wallet_address() is not None

    @classmethod
    def connect_wallet(cls, address: str, signing_key: Optional[str] = None) -> bool:
        """Store the wallet address and, optionally, its signing key.

        Raises:
            ValidationError: the address or key is malformed
        """
        address = address.strip()
        if not ADDRESS_PATTERN.match(address):
            raise ValidationError(
                f"Invalid wallet address: {address}",
                suggestion="Addresses start with 0x followed by 40 hex characters",
            )
        if signing_key is not None and not is_valid_signing_key(signing_key):
            raise ValidationError(
                "Invalid signing key",
                suggestion="Paste the 64-character hex private key of this wallet",
            )

        stored = cls.store(cls.WALLET_ADDRESS, address)
        if signing_key is not None:
            stored = cls.store(cls.SIGNING_KEY, signing_key.strip()) and stored
        logger.info(f"Wallet {address[:6]}...{address[-4:]} connected")
        return stored

    @classmethod
    def disconnect_wallet(cls) -> bool:
        """Forget the wallet address and signing key."""
        removed_key = cls.delete(cls.SIGNING_KEY)
        removed_address = cls.delete(cls.WALLET_ADDRESS)
        return removed_key or removed_address


def setup_secure_logging() -> None:
    """Install the redaction filter on the root and opchat loggers."""
    sensitive_filter = SensitiveDataFilter()
    logging.getLogger().addFilter(sensitive_filter)
    logging.getLogger("opchat").addFilter(sensitive_filter)
