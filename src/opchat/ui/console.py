"""Rich console setup and output helpers for opchat."""

from typing import Optional

from rich import box
from rich.console import Console, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel

from opchat.ui.theme import OpchatColors, Symbols, opchat_theme

console = Console(theme=opchat_theme)

BANNER = """
[bnb] ██████╗ ██████╗  ██████╗██╗  ██╗ █████╗ ████████╗[/bnb]
[bnb]██╔═══██╗██╔══██╗██╔════╝██║  ██║██╔══██╗╚══██╔══╝[/bnb]
[bnb]██║   ██║██████╔╝██║     ███████║███████║   ██║   [/bnb]
[bnb]██║   ██║██╔═══╝ ██║     ██╔══██║██╔══██║   ██║   [/bnb]
[bnb]╚██████╔╝██║     ╚██████╗██║  ██║██║  ██║   ██║   [/bnb]
[bnb] ╚═════╝ ╚═╝      ╚═════╝╚═╝  ╚═╝╚═╝  ╚═╝   ╚═╝   [/bnb]

[muted]Create tokens, mint NFTs and send BNB on opBNB in plain English[/muted]
"""

# style name -> (symbol, border color)
STATUS_STYLES = {
    "error": (Symbols.CROSS, OpchatColors.ERROR),
    "success": (Symbols.CHECK, OpchatColors.SUCCESS),
    "warning": (Symbols.WARN, OpchatColors.WARNING),
}


def _panel(body: RenderableType, title: str, border: str) -> Panel:
    return Panel(body, title=title, title_align="left", border_style=border, box=box.ROUNDED)


def print_status(style: str, message: str, title: str) -> None:
    """Print a one-line status message (error, success, warning) in a panel."""
    symbol, border = STATUS_STYLES[style]
    console.print(_panel(f"[{style}]{symbol} {message}[/{style}]", f"[{style}]{title}[/{style}]", border))


def print_error(message: str, title: str = "Error") -> None:
    print_status("error", message, title)


def print_success(message: str, title: str = "Success") -> None:
    print_status("success", message, title)


def print_warning(message: str, title: str = "Warning") -> None:
    print_status("warning", message, title)


def print_welcome() -> None:
    console.print(BANNER)


def print_assistant_message(content: str, title: Optional[str] = None) -> None:
    """Render an assistant reply, which is markdown."""
    header = title or f"[bnb]{Symbols.ROBOT} opchat[/bnb]"
    console.print(_panel(Markdown(content), header, OpchatColors.BORDER))


def format_address(address: Optional[str], head: int = 6, tail: int = 4) -> str:
    """Shorten a 0x address for display (0x1234...abcd)."""
    if not address:
        return "Not connected"
    if len(address) <= head + tail:
        return address
    return f"{address[:head]}...{address[-tail:]}"
