"""Pattern-based stand-in for the language model.

Used when no API key is configured or demo mode is on. It answers in the
same fenced-JSON contract as the real model, so the rest of the pipeline
cannot tell the difference.
"""

import json
import re
from typing import Any, Optional

from opchat.chat.actions import NATIVE_SYMBOL, ActionKind

HELP_REPLY = (
    "I can help you:\n\n"
    "- **Create a token**: \"Create a gaming token called Dragon Quest\"\n"
    "- **Mint an NFT**: \"Mint an NFT called Sunrise\"\n"
    "- **Send BNB**: \"Send 0.1 BNB to 0x...\"\n\n"
    "What would you like to do?"
)

MULTIPLIERS = {
    "thousand": 1_000,
    "k": 1_000,
    "million": 1_000_000,
    "m": 1_000_000,
    "billion": 1_000_000_000,
    "b": 1_000_000_000,
    "trillion": 1_000_000_000_000,
    "t": 1_000_000_000_000,
}


class MockIntentParser:
    """Regex intent detection producing model-shaped responses."""

    # Checked top to bottom; NFT must come before token ("create a nft called x")
    PATTERNS = {
        ActionKind.UPLOAD_NFT: [
            r"\b(?:create|make|mint|upload|new)\b.*\bnfts?\b",
            r"\bnfts?\b.*\b(?:create|make|mint)\b",
        ],
        ActionKind.CREATE_TOKEN: [
            r"\b(?:create|make|launch|deploy|new)\b.*\b(?:token|coin)s?\b",
        ],
        ActionKind.SEND_TRANSACTION: [
            r"\b(?:send|transfer|pay)\b",
        ],
        ActionKind.GET_TRANSACTIONS: [
            r"\b(?:transactions?|tx history|history|activity)\b",
        ],
        ActionKind.CHECK_BALANCE: [
            r"\bbalances?\b",
            r"how much .*(?:do i have|have i got)",
        ],
    }

    NAME_PATTERN = re.compile(
        r"(?:called|named)\s+[\"']?(.+?)[\"']?(?:\s+(?:with|symbol|and|description)\b.*)?$",
        re.IGNORECASE,
    )
    NFT_DESCRIPTION_PATTERN = re.compile(r"\bdescription\s*:?\s+(.+)$", re.IGNORECASE)
    SYMBOL_PATTERN = re.compile(r"\bsymbol\s*:?\s*([A-Za-z0-9]{2,11})\b", re.IGNORECASE)
    SUPPLY_PATTERNS = [
        re.compile(
            r"(\d[\d,]*(?:\.\d+)?)\s*(thousand|million|billion|trillion|[kmbt])?\s+(?:tokens?\s+)?supply",
            re.IGNORECASE,
        ),
        re.compile(
            r"supply\s*(?:of\s*)?:?\s*(\d[\d,]*(?:\.\d+)?)\s*(thousand|million|billion|trillion|[kmbt])?\b",
            re.IGNORECASE,
        ),
    ]
    ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")
    AMOUNT_PATTERN = re.compile(
        r"\b(?:send|transfer|pay)\s+(\d+(?:\.\d+)?)\s*([A-Za-z]{2,10})?", re.IGNORECASE
    )

    @classmethod
    def detect(cls, text: str) -> Optional[ActionKind]:
        for kind, patterns in cls.PATTERNS.items():
            if any(re.search(p, text, re.IGNORECASE) for p in patterns):
                return kind
        return None

    @classmethod
    def _extract_supply(cls, text: str) -> Optional[str]:
        for pattern in cls.SUPPLY_PATTERNS:
            match = pattern.search(text)
            if match:
                number = float(match.group(1).replace(",", ""))
                unit = (match.group(2) or "").lower()
                return str(int(number * MULTIPLIERS.get(unit, 1)))
        return None

    @classmethod
    def _token(cls, text: str) -> dict[str, Any]:
        details: dict[str, Any] = {}
        name = cls.NAME_PATTERN.search(text)
        if name:
            details["name"] = name.group(1).strip()
        symbol = cls.SYMBOL_PATTERN.search(text)
        if symbol:
            details["symbol"] = symbol.group(1).upper()
        supply = cls._extract_supply(text)
        if supply:
            details["totalSupply"] = supply

        if details.get("name"):
            reply = f"I'll set up **{details['name']}** for you. Here are the details."
            return _payload(reply, ActionKind.CREATE_TOKEN, details, [], True)
        reply = "What would you like to name your token?"
        return _payload(reply, ActionKind.CREATE_TOKEN, details, ["name"], False)

    @classmethod
    def _nft(cls, text: str) -> dict[str, Any]:
        details: dict[str, Any] = {}
        name = cls.NAME_PATTERN.search(text)
        if name:
            details["name"] = name.group(1).strip()
        description = cls.NFT_DESCRIPTION_PATTERN.search(text)
        if description:
            value = description.group(1).strip()
            details["description"] = "" if value.lower() == "nothing" else value

        if details.get("name"):
            reply = f"Let's create your NFT **{details['name']}**! Please upload the image you'd like to use."
        else:
            reply = "Let's create your NFT! Please upload the image you'd like to use."
        return _payload(reply, ActionKind.UPLOAD_NFT, details, [], True)

    @classmethod
    def _transfer(cls, text: str) -> dict[str, Any]:
        details: dict[str, Any] = {"token": NATIVE_SYMBOL}
        amount = cls.AMOUNT_PATTERN.search(text)
        if amount:
            details["amount"] = amount.group(1)
            unit = amount.group(2)
            if unit and unit.lower() not in ("to", "of"):
                details["token"] = unit.upper()
        recipient = cls.ADDRESS_PATTERN.search(text)
        if recipient:
            details["recipient"] = recipient.group(0)

        missing = [f for f in ("recipient", "amount") if f not in details]
        if missing:
            reply = f"Sure! Please tell me the {' and '.join(missing)} for this transfer."
            return _payload(reply, ActionKind.SEND_TRANSACTION, details, missing, False)
        reply = f"Sending {details['amount']} {details['token']} to {details['recipient']}."
        return _payload(reply, ActionKind.SEND_TRANSACTION, details, [], True)

    @classmethod
    def parse(cls, user_input: str) -> dict[str, Any]:
        """Turn user text into a model-shaped response payload."""
        text = user_input.strip()
        kind = cls.detect(text)

        if kind == ActionKind.UPLOAD_NFT:
            return cls._nft(text)
        if kind == ActionKind.CREATE_TOKEN:
            return cls._token(text)
        if kind == ActionKind.SEND_TRANSACTION:
            return cls._transfer(text)
        if kind == ActionKind.GET_TRANSACTIONS:
            reply = "Your recent transactions are listed on the opBNB explorer for your wallet address."
            return _payload(reply, kind, {}, [], True, requires_confirmation=False)
        if kind == ActionKind.CHECK_BALANCE:
            reply = "Your balances are shown on the opBNB explorer for your wallet address."
            return _payload(reply, kind, {}, [], True, requires_confirmation=False)

        return {"response": HELP_REPLY, "action": None, "requiresConfirmation": False}

    @classmethod
    def respond(cls, user_input: str) -> str:
        """Render a response exactly as the language model would."""
        payload = cls.parse(user_input)
        return f"```json\n{json.dumps(payload, ensure_ascii=False)}\n```"


def _payload(
    reply: str,
    kind: ActionKind,
    details: dict[str, Any],
    missing: list[str],
    complete: bool,
    requires_confirmation: Optional[bool] = None,
) -> dict[str, Any]:
    return {
        "response": reply,
        "action": {
            "action": kind.value,
            "confidence": 0.8,
            "details": details,
            "missingFields": missing,
            "isComplete": complete,
        },
        "requiresConfirmation": complete if requires_confirmation is None else requires_confirmation,
    }
