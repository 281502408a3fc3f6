"""Theme and color definitions for opchat."""

from dataclasses import dataclass

from rich.theme import Theme


@dataclass(frozen=True)
class OpchatColors:
    """BNB Chain flavored palette."""

    BNB = "#f0b90b"
    PRIMARY = "#f8d12f"

    SUCCESS = "#0ecb81"
    WARNING = "#f0b90b"
    ERROR = "#f6465d"

    MUTED = "#848e9c"
    BORDER = "#474d57"


opchat_theme = Theme(
    {
        "bnb": f"bold {OpchatColors.BNB}",
        "primary": f"bold {OpchatColors.PRIMARY}",
        "prompt": f"bold {OpchatColors.PRIMARY}",
        "success": f"bold {OpchatColors.SUCCESS}",
        "warning": f"bold {OpchatColors.WARNING}",
        "error": f"bold {OpchatColors.ERROR}",
        "muted": OpchatColors.MUTED,
    }
)


class Symbols:
    CHECK = "✓"
    CROSS = "✗"
    WARN = "⚠"
    ARROW = "→"
    ROBOT = "🤖"
