"""Error Translator - Turn chain submission errors into human steps.

This module converts raw RPC/contract errors reported by the submission
layer into:
- A short human explanation
- Actionable next steps

The raw error text is always kept; translation only adds guidance.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Categories of chain errors for consistent handling."""

    INSUFFICIENT_BALANCE = "insufficient_balance"
    INVALID_ADDRESS = "invalid_address"
    NONCE_CONFLICT = "nonce_conflict"
    REVERTED = "reverted"
    GAS = "gas"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    WALLET = "wallet"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


@dataclass
class TranslatedError:
    """A human-friendly error with guidance."""

    category: ErrorCategory
    user_message: str
    recommended_actions: list[str] = field(default_factory=list)
    original_error: Optional[str] = None


# Error patterns - first match wins
ERROR_PATTERNS = [
    {
        "pattern": r"(wallet not connected|no signing key|private key)",
        "category": ErrorCategory.WALLET,
        "message": "Your wallet is not connected.",
        "actions": [
            "Run: opchat setup",
        ],
    },
    {
        "pattern": r"(insufficient|not enough|balance too low|exceeds balance)",
        "category": ErrorCategory.INSUFFICIENT_BALANCE,
        "message": "Not enough BNB to cover the amount plus gas.",
        "actions": [
            "Top up your wallet with BNB on opBNB",
            "Reduce the amount and try again",
        ],
    },
    {
        "pattern": r"(invalid.*address|bad address|checksum)",
        "category": ErrorCategory.INVALID_ADDRESS,
        "message": "The address you provided is invalid.",
        "actions": [
            "Double-check the recipient address",
            "Addresses start with 0x followed by 40 hex characters",
        ],
    },
    {
        "pattern": r"(nonce too low|nonce too high|replacement transaction underpriced|already known)",
        "category": ErrorCategory.NONCE_CONFLICT,
        "message": "Another transaction from this wallet is still pending.",
        "actions": [
            "Wait for pending transactions to confirm",
        ],
    },
    {
        "pattern": r"(execution reverted|revert|call exception)",
        "category": ErrorCategory.REVERTED,
        "message": "The contract rejected the transaction.",
        "actions": [
            "Check the parameters and try again",
        ],
    },
    {
        "pattern": r"(out of gas|gas required exceeds|intrinsic gas too low|underpriced)",
        "category": ErrorCategory.GAS,
        "message": "The transaction ran out of gas or was underpriced.",
        "actions": [
            "Try again in a few seconds",
        ],
    },
    {
        "pattern": r"(timed? ?out|timeout)",
        "category": ErrorCategory.TIMEOUT,
        "message": "The network took too long to respond.",
        "actions": [
            "Check the explorer before resubmitting",
        ],
    },
    {
        "pattern": r"(network error|connection refused|could not connect|rpc.*error|fetch failed)",
        "category": ErrorCategory.NETWORK_ERROR,
        "message": "Cannot reach the opBNB network.",
        "actions": [
            "Check your connection or RPC endpoint",
        ],
    },
    {
        "pattern": r"unsupported action",
        "category": ErrorCategory.UNSUPPORTED,
        "message": "That action cannot be executed as a transaction.",
        "actions": [],
    },
]


def translate_error(error_text: str) -> TranslatedError:
    """Translate raw error output into human-friendly format.

    Args:
        error_text: Error reported by the submission layer

    Returns:
        TranslatedError with explanation and guidance
    """
    for pattern_def in ERROR_PATTERNS:
        if re.search(pattern_def["pattern"], error_text or "", re.IGNORECASE):
            return TranslatedError(
                category=pattern_def["category"],
                user_message=pattern_def["message"],
                recommended_actions=list(pattern_def["actions"]),
                original_error=error_text[:500],
            )

    return TranslatedError(
        category=ErrorCategory.UNKNOWN,
        user_message="Something went wrong while submitting the transaction.",
        recommended_actions=[],
        original_error=error_text[:500] if error_text else None,
    )


def format_error_for_chat(translated: TranslatedError) -> str:
    """Format translated guidance as markdown for an assistant message."""
    lines = [f"_{translated.user_message}_"]

    if translated.recommended_actions:
        lines.append("")
        for action in translated.recommended_actions:
            if action.startswith("Run:"):
                cmd = action.replace("Run:", "").strip()
                lines.append(f"- Run `{cmd}`")
            else:
                lines.append(f"- {action}")

    return "\n".join(lines)
