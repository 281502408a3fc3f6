"""UI components for opchat - Rich console and theme."""

from opchat.ui.console import (
    console,
    format_address,
    print_assistant_message,
    print_error,
    print_success,
    print_warning,
    print_welcome,
)
from opchat.ui.theme import OpchatColors, Symbols, opchat_theme

__all__ = [
    "console",
    "print_error",
    "print_success",
    "print_warning",
    "print_welcome",
    "print_assistant_message",
    "format_address",
    "OpchatColors",
    "opchat_theme",
    "Symbols",
]
