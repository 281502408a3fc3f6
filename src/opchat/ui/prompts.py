"""Interactive prompts using InquirerPy for opchat setup."""

from typing import Callable, Optional

from InquirerPy import inquirer
from InquirerPy.base.control import Choice

from opchat.chat.actions import is_valid_address
from opchat.ui.theme import Symbols


def select_provider(current: str = "gemini") -> str:
    """Choose the language model provider.

    Returns:
        Selected provider value
    """
    choices = [
        Choice(value="gemini", name=f"{Symbols.ROBOT} Google Gemini"),
        Choice(value="openai", name=f"{Symbols.ROBOT} OpenAI"),
    ]
    return inquirer.select(
        message="Language model provider:",
        choices=choices,
        default=current,
        pointer=f"{Symbols.ARROW} ",
    ).execute()


def input_secret(prompt: str, validate: Optional[Callable[[str], bool]] = None) -> str:
    """Prompt for a secret without echoing it. Empty input means skip."""
    return (
        inquirer.secret(
            message=f"{prompt}:",
            validate=(lambda x: not x or validate(x)) if validate else None,
            invalid_message="That does not look right, try again",
        ).execute()
        or ""
    )


def input_address(prompt: str = "Wallet address", default: Optional[str] = None) -> str:
    """Prompt for a 0x wallet address. Empty input means skip."""
    return inquirer.text(
        message=f"{prompt}:",
        default=default or "",
        validate=lambda x: not x or is_valid_address(x),
        invalid_message="Invalid address (should be 0x followed by 40 hex characters)",
    ).execute()


def confirm(message: str, default: bool = False) -> bool:
    """Simple confirmation prompt.

    Args:
        message: Confirmation message
        default: Default value

    Returns:
        True if confirmed
    """
    return inquirer.confirm(
        message=message,
        default=default,
    ).execute()
