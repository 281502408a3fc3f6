"""Error taxonomy and error handling helpers for opchat.

Conversation turns never raise: the engine turns failures into assistant
messages. These types are for the layers around it (CLI commands, setup,
collaborators) where an error is shown to the user with a suggestion.
"""

import asyncio
import functools
import logging
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

import httpx
import openai

from opchat.ui.console import console, print_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorCategory(Enum):
    """Categories of errors for user-friendly messages."""

    ORACLE = "oracle"
    VALIDATION = "validation"
    UPLOAD = "upload"
    EXECUTION = "execution"
    SIGNER = "signer"
    NETWORK = "network"
    AUTH = "authentication"
    STATE = "state"
    UNKNOWN = "unknown"


class OpchatError(Exception):
    """Base exception for opchat errors.

    Subclasses set ``category`` and ``default_suggestion``; an explicit
    suggestion always wins over the default.
    """

    category = ErrorCategory.UNKNOWN
    default_suggestion: Optional[str] = None

    def __init__(
        self,
        message: str,
        category: Optional[ErrorCategory] = None,
        suggestion: Optional[str] = None,
        original: Optional[Exception] = None,
    ):
        self.message = message
        if category is not None:
            self.category = category
        self.suggestion = suggestion or self.default_suggestion
        self.original = original
        super().__init__(message)

    def display(self) -> None:
        """Display the error to the user."""
        print_error(self.message)
        if self.suggestion:
            console.print(f"[muted]Suggestion: {self.suggestion}[/muted]")


class OracleError(OpchatError):
    """The language model call failed or returned nothing usable."""

    category = ErrorCategory.ORACLE
    default_suggestion = "Check your API key with 'opchat setup'"


class ValidationError(OpchatError):
    """Input validation errors."""

    category = ErrorCategory.VALIDATION


class UploadError(OpchatError):
    """Image validation or storage upload failed."""

    category = ErrorCategory.UPLOAD


class ExecutionError(OpchatError):
    """Blockchain submission failed."""

    category = ErrorCategory.EXECUTION
    default_suggestion = "The network may be congested. Try again later."


class SignerUnavailableError(OpchatError):
    """The wallet signing key could not be obtained."""

    category = ErrorCategory.SIGNER
    default_suggestion = "Run 'opchat setup' to connect a wallet"

    def __init__(self, message: str = "Wallet not connected", **kwargs: Any):
        super().__init__(message, **kwargs)


class NetworkError(OpchatError):
    category = ErrorCategory.NETWORK
    default_suggestion = "Check your internet connection and try again"


class AuthenticationError(OpchatError):
    category = ErrorCategory.AUTH
    default_suggestion = "Run 'opchat setup' to configure API keys"


class GateStateError(OpchatError):
    """A confirmation gate transition was attempted from the wrong state."""

    category = ErrorCategory.STATE


def _classify_http(error: httpx.HTTPError) -> Optional[OpchatError]:
    if isinstance(error, (httpx.ConnectError, httpx.ConnectTimeout)):
        return NetworkError(
            "Unable to connect to the network",
            suggestion="Check your internet connection",
            original=error,
        )
    if isinstance(error, httpx.TimeoutException):
        return NetworkError(
            "Request timed out", suggestion="The server may be slow. Try again.", original=error
        )
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status in (401, 403):
            return AuthenticationError(
                "API authentication failed",
                suggestion="Check your API key with 'opchat setup'",
                original=error,
            )
        if status == 429:
            return NetworkError(
                "Rate limit exceeded", suggestion="Wait a moment and try again", original=error
            )
        if status >= 500:
            return NetworkError(
                f"Server error (HTTP {status})",
                suggestion="The service may be experiencing issues",
                original=error,
            )
    return None


def _classify_llm(error: openai.OpenAIError) -> Optional[OpchatError]:
    if isinstance(error, openai.AuthenticationError):
        return AuthenticationError("Language model authentication failed", original=error)
    if isinstance(error, openai.RateLimitError):
        return OracleError(
            "Language model quota exceeded",
            suggestion="Wait a moment and try again",
            original=error,
        )
    # APITimeoutError is a subclass of APIConnectionError
    if isinstance(error, openai.APIConnectionError):
        return OracleError(
            "Unable to reach the language model",
            suggestion="Check your internet connection",
            original=error,
        )
    return None


def classify_error(error: Exception) -> OpchatError:
    """Map any exception onto the opchat taxonomy.

    OpchatErrors pass through unchanged; unrecognized errors become an
    UNKNOWN OpchatError carrying the original text.
    """
    if isinstance(error, OpchatError):
        return error

    classified: Optional[OpchatError] = None
    if isinstance(error, httpx.HTTPError):
        classified = _classify_http(error)
    elif isinstance(error, openai.OpenAIError):
        classified = _classify_llm(error)
    elif isinstance(error, ConnectionError):
        classified = NetworkError("Unable to connect to the network", original=error)
    if classified is not None:
        return classified

    text = str(error).lower()
    if "wallet not connected" in text or "private key" in text:
        return SignerUnavailableError(original=error)
    if "insufficient" in text and ("balance" in text or "funds" in text):
        return ExecutionError(
            "Insufficient balance for this operation",
            suggestion="Top up your wallet with BNB on opBNB",
            original=error,
        )
    if "nonce" in text:
        return ExecutionError(
            "Transaction conflict",
            suggestion="Wait for pending transactions to complete",
            original=error,
        )

    return OpchatError(str(error), original=error)


def handle_errors(
    fallback: Optional[T] = None,
    show_error: bool = True,
    reraise: bool = False,
) -> Callable:
    """Decorator to handle errors gracefully in sync and async callables.

    Args:
        fallback: Value to return on error (default None)
        show_error: Whether to display error to user
        reraise: Whether to re-raise the classified error after handling
    """

    def report(error: Exception) -> OpchatError:
        opchat_error = classify_error(error)
        if opchat_error is error:
            logger.error(f"{opchat_error.category.value} error: {opchat_error.message}", exc_info=True)
        else:
            logger.error(f"Unexpected error: {error}", exc_info=True)
        if show_error:
            opchat_error.display()
        return opchat_error

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                opchat_error = report(e)
                if reraise and opchat_error is e:
                    raise
                if reraise:
                    raise opchat_error from e
                return fallback

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                opchat_error = report(e)
                if reraise and opchat_error is e:
                    raise
                if reraise:
                    raise opchat_error from e
                return fallback

        return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

    return decorator
