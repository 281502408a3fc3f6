"""Error handling for opchat.

Provides translation of chain submission errors into human-friendly guidance.
"""

from opchat.errors.translator import (
    ErrorCategory,
    TranslatedError,
    format_error_for_chat,
    translate_error,
)

__all__ = [
    "ErrorCategory",
    "TranslatedError",
    "translate_error",
    "format_error_for_chat",
]
