"""Confirmation messages shown before any transaction is sent."""

import logging
from decimal import Decimal
from typing import Callable, Optional

from opchat.chat.actions import NATIVE_SYMBOL, ActionKind, BlockchainAction, parse_supply
from opchat.config.settings import Settings, get_settings
from opchat.data.chain import GasEstimator
from opchat.data.prices import PriceService
from opchat.ui.console import format_address

logger = logging.getLogger(__name__)

OPERATION_FOR_KIND = {
    ActionKind.CREATE_TOKEN: "token",
    ActionKind.MINT_NFT: "nft",
    ActionKind.SEND_TRANSACTION: "transfer",
}

# Used when the price lookup itself blows up
FALLBACK_FEE_USD = {
    "token": "$0.27",
    "nft": "$0.09",
    "transfer": "$0.009",
}

YES_NO = "(Yes/No)"


class ConfirmationComposer:
    """Renders the yes/no question for a completed action, with fee estimates.

    Fee lookups never block a confirmation: any failure is replaced by a
    fallback value.
    """

    def __init__(
        self,
        gas_estimator: GasEstimator,
        price_service: PriceService,
        settings: Optional[Settings] = None,
        wallet_address_provider: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.gas = gas_estimator
        self.prices = price_service
        self.settings = settings or get_settings()
        self._wallet_address_provider = wallet_address_provider

    @property
    def wallet_address(self) -> Optional[str]:
        """The sending wallet, looked up each time a transfer is composed."""
        if self._wallet_address_provider is not None:
            address = self._wallet_address_provider()
            if address:
                return address
        return self.settings.chain.wallet_address

    async def estimate_fee(self, operation: str) -> tuple[str, str]:
        """Return the fee for an operation as (native amount, USD string)."""
        try:
            native = await self.gas.estimate_gas(operation)
        except Exception as e:
            logger.warning(f"Gas estimate unavailable: {e}")
            native = self.settings.chain.fallback_gas_cost

        try:
            price = await self.prices.get_price()
            usd = f"${Decimal(native) * Decimal(str(price.price)):.4f}"
        except Exception as e:
            logger.warning(f"Price unavailable for fee estimate: {e}")
            usd = FALLBACK_FEE_USD.get(operation, FALLBACK_FEE_USD["transfer"])

        return native, usd

    async def compose(self, action: BlockchainAction) -> str:
        """Build the confirmation message for an action."""
        if action.kind == ActionKind.UPLOAD_NFT:
            return self._upload_message(action)

        operation = OPERATION_FOR_KIND.get(action.kind)
        if operation is None:
            return self._generic_message(action)

        native, usd = await self.estimate_fee(operation)
        fee_line = f"**Estimated Gas Cost:** ~{native} {NATIVE_SYMBOL} ({usd})"

        if action.kind == ActionKind.CREATE_TOKEN:
            return self._token_message(action, fee_line)
        if action.kind == ActionKind.MINT_NFT:
            return self._nft_message(action, fee_line)
        return self._transfer_message(action, fee_line)

    def _token_message(self, action: BlockchainAction, fee_line: str) -> str:
        details = action.details
        supply = parse_supply(details.get("totalSupply"))
        supply_text = f"{supply:,}" if supply is not None else str(details.get("totalSupply"))
        return (
            "🪙 **Token Creation Confirmation**\n\n"
            f"**Name:** {details.get('name')}\n"
            f"**Symbol:** {details.get('symbol')}\n"
            f"**Total Supply:** {supply_text}\n"
            f"**Decimals:** {details.get('decimals', '18')}\n\n"
            f"{fee_line}\n"
            f"**Network:** {self.settings.chain.network_name}\n\n"
            f"**Should I proceed with creating this token?** {YES_NO}"
        )

    def _nft_message(self, action: BlockchainAction, fee_line: str) -> str:
        details = action.details
        attributes = details.get("attributes") or []
        return (
            "🖼 **NFT Minting Confirmation**\n\n"
            f"**Name:** {details.get('name')}\n"
            f"**Description:** {details.get('description') or '-'}\n"
            f"**Image Provided:** {'Yes' if details.get('imageUrl') else 'No'}\n"
            f"**Attributes:** {len(attributes)}\n\n"
            f"{fee_line}\n"
            f"**Network:** {self.settings.chain.network_name}\n\n"
            f"**Should I proceed with minting this NFT?** {YES_NO}"
        )

    def _transfer_message(self, action: BlockchainAction, fee_line: str) -> str:
        details = action.details
        token = details.get("token") or NATIVE_SYMBOL
        return (
            "💸 **Transfer Confirmation**\n\n"
            f"**Amount:** {details.get('amount')} {token}\n"
            f"**To:** {details.get('recipient')}\n"
            f"**From:** {format_address(self.wallet_address)}\n\n"
            f"{fee_line}\n"
            f"**Network:** {self.settings.chain.network_name}\n\n"
            "⚠️ Transfers cannot be reversed. Please double-check the recipient address.\n\n"
            f"**Should I proceed with this transfer?** {YES_NO}"
        )

    @staticmethod
    def _upload_message(action: BlockchainAction) -> str:
        name = action.details.get("name")
        subject = f"**{name}**" if name else "your NFT"
        return (
            f"📤 **Ready to create {subject}!**\n\n"
            "Upload the image you'd like to mint. Supported formats: JPEG, PNG, GIF, WebP "
            "(max 100MB)."
        )

    @staticmethod
    def _generic_message(action: BlockchainAction) -> str:
        label = action.kind.value.replace("_", " ")
        return f"Do you want me to proceed with **{label}**? {YES_NO}"
