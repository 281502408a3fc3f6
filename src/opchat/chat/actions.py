"""Typed blockchain actions recognized from conversation.

A ``BlockchainAction`` is what the language model's JSON answer becomes once it
has been validated. Details are typed per action kind; completeness is always
recomputed here from the field rules, never taken on trust from the model.
"""

import math
import re
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
NATIVE_SYMBOL = "BNB"


class ActionKind(str, Enum):
    """Kinds of actions the assistant can recognize."""

    # Executable (require confirmation)
    CREATE_TOKEN = "create_token"
    MINT_NFT = "mint_nft"
    SEND_TRANSACTION = "send_transaction"

    # Upload step before minting
    UPLOAD_NFT = "upload_nft"

    # Read-only
    CHECK_BALANCE = "check_balance"
    GET_TRANSACTIONS = "get_transactions"

    UNKNOWN = "unknown"


EXECUTABLE_KINDS = frozenset(
    {ActionKind.CREATE_TOKEN, ActionKind.MINT_NFT, ActionKind.SEND_TRANSACTION}
)

REQUIRED_FIELDS: dict[ActionKind, tuple[str, ...]] = {
    ActionKind.CREATE_TOKEN: ("name", "symbol", "totalSupply"),
    ActionKind.MINT_NFT: ("name", "description", "imageUrl"),
    ActionKind.SEND_TRANSACTION: ("recipient", "amount"),
    ActionKind.UPLOAD_NFT: (),
    ActionKind.CHECK_BALANCE: (),
    ActionKind.GET_TRANSACTIONS: (),
    ActionKind.UNKNOWN: (),
}


# =============================================================================
# Field validators
# =============================================================================


def is_valid_address(value: Any) -> bool:
    """Check for a 0x-prefixed 20-byte hex address."""
    return isinstance(value, str) and bool(ADDRESS_PATTERN.match(value.strip()))


def parse_amount(value: Any) -> Optional[float]:
    """Parse a positive finite amount, or return None."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        amount = float(str(value).replace(",", "").strip())
    except ValueError:
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


def parse_supply(value: Any) -> Optional[int]:
    """Parse a positive whole-number token supply (``1,000,000`` allowed)."""
    if isinstance(value, bool) or value is None:
        return None
    text = str(value).replace(",", "").replace("_", "").strip()
    if not text.isdigit():
        return None
    supply = int(text)
    return supply if supply > 0 else None


def _is_filled(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def _to_text(value: Any) -> Any:
    # The model sometimes answers numbers where strings are expected
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return str(value)
    return value


# =============================================================================
# Per-kind details
# =============================================================================


class ActionDetails(BaseModel):
    """Base for per-kind details; keys keep the camelCase wire names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _to_text(value)

    def to_wire(self) -> dict[str, Any]:
        """Dump details with wire keys, leaving out unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def invalid_fields(self, required: tuple[str, ...]) -> list[str]:
        """Return required fields that are missing or fail their check."""
        data = self.to_wire()
        return [name for name in required if not _is_filled(data.get(name))]


class TokenDetails(ActionDetails):
    name: Optional[str] = None
    symbol: Optional[str] = None
    total_supply: Optional[str] = Field(default=None, alias="totalSupply")
    decimals: Optional[str] = None

    def invalid_fields(self, required: tuple[str, ...]) -> list[str]:
        missing = super().invalid_fields(required)
        if "totalSupply" not in missing and parse_supply(self.total_supply) is None:
            missing.append("totalSupply")
        if self.decimals is not None and not (
            self.decimals.isdigit() and 0 <= int(self.decimals) <= 18
        ):
            missing.append("decimals")
        return missing


class NFTAttribute(BaseModel):
    trait_type: str
    value: Union[str, int, float]


class NFTDetails(ActionDetails):
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    attributes: list[NFTAttribute] = Field(default_factory=list)


class UploadDetails(ActionDetails):
    name: Optional[str] = None
    description: Optional[str] = None


class TransferDetails(ActionDetails):
    recipient: Optional[str] = None
    amount: Optional[str] = None
    token: Optional[str] = None

    @property
    def is_native(self) -> bool:
        return not self.token or self.token.upper() == NATIVE_SYMBOL

    def invalid_fields(self, required: tuple[str, ...]) -> list[str]:
        missing = super().invalid_fields(required)
        if "recipient" not in missing and not is_valid_address(self.recipient):
            missing.append("recipient")
        if "amount" not in missing and parse_amount(self.amount) is None:
            missing.append("amount")
        if not self.is_native and not is_valid_address(self.token):
            missing.append("token")
        return missing


class EmptyDetails(ActionDetails):
    model_config = ConfigDict(extra="allow")


DETAILS_MODELS: dict[ActionKind, type[ActionDetails]] = {
    ActionKind.CREATE_TOKEN: TokenDetails,
    ActionKind.MINT_NFT: NFTDetails,
    ActionKind.UPLOAD_NFT: UploadDetails,
    ActionKind.SEND_TRANSACTION: TransferDetails,
    ActionKind.CHECK_BALANCE: EmptyDetails,
    ActionKind.GET_TRANSACTIONS: EmptyDetails,
    ActionKind.UNKNOWN: EmptyDetails,
}


# =============================================================================
# Blockchain action
# =============================================================================


class BlockchainAction(BaseModel):
    """A structured intent extracted from conversation.

    ``details`` is kept as the plain wire mapping so it can be attached to
    messages and handed to the submission layer unchanged; ``typed_details``
    gives the validated per-kind view.
    """

    model_config = ConfigDict(populate_by_name=True)

    kind: ActionKind = Field(alias="action")
    confidence: float = 0.0
    details: dict[str, Any] = Field(default_factory=dict)
    missing_fields: list[str] = Field(default_factory=list, alias="missingFields")
    is_complete: bool = Field(default=False, alias="isComplete")

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        try:
            confidence = float(value)
        except (TypeError, ValueError):
            return 0.0
        if not math.isfinite(confidence):
            return 0.0
        return min(max(confidence, 0.0), 1.0)

    @field_validator("details", mode="before")
    @classmethod
    def _details_mapping(cls, value: Any) -> Any:
        return value if value is not None else {}

    @property
    def is_executable(self) -> bool:
        return self.kind in EXECUTABLE_KINDS

    def typed_details(self) -> ActionDetails:
        """Validate ``details`` into the model for this kind.

        Raises:
            pydantic.ValidationError: details do not fit the kind
        """
        return DETAILS_MODELS[self.kind].model_validate(self.details)

    def refresh_completeness(self) -> "BlockchainAction":
        """Recompute ``missing_fields`` and ``is_complete`` from the field rules."""
        typed = self.typed_details()
        self.details = typed.to_wire()
        if self.kind == ActionKind.UNKNOWN:
            self.missing_fields = ["action"]
        else:
            self.missing_fields = typed.invalid_fields(REQUIRED_FIELDS[self.kind])
        self.is_complete = not self.missing_fields
        return self

    def to_wire(self) -> dict[str, Any]:
        """Dump using the JSON shape the language model speaks."""
        return self.model_dump(by_alias=True, mode="json")


def build_action(
    kind: ActionKind,
    details: dict[str, Any],
    confidence: float = 0.95,
) -> BlockchainAction:
    """Create an action locally and validate it like a parsed one."""
    action = BlockchainAction(kind=kind, confidence=confidence, details=details)
    return action.refresh_completeness()
