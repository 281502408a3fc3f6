"""Dispatch of confirmed actions to the chain submission layer."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from opchat.chat.actions import ActionKind, BlockchainAction
from opchat.config.settings import Settings, get_settings
from opchat.data.chain import Submitter, TransactionResult, explorer_tx_url
from opchat.errors.translator import format_error_for_chat, translate_error
from opchat.security.credentials import CredentialManager
from opchat.utils.errors import SignerUnavailableError

logger = logging.getLogger(__name__)

KeyProvider = Callable[[], Optional[str]]


@dataclass
class ExecutionResult:
    """Result of executing one confirmed action."""

    success: bool
    message: str
    tx_hash: Optional[str] = None
    error: Optional[str] = None


class ActionExecutor:
    """Sends a confirmed action to the submission layer exactly once.

    There is no retry here: a failed submission is reported and the user
    decides whether to ask again.
    """

    def __init__(
        self,
        submitter: Submitter,
        signing_key_provider: KeyProvider = CredentialManager.get_signing_key,
        wallet_address_provider: KeyProvider = CredentialManager.get_wallet_address,
        settings: Optional[Settings] = None,
    ):
        self.submitter = submitter
        self._signing_key_provider = signing_key_provider
        self._wallet_address_provider = wallet_address_provider
        self.settings = settings or get_settings()

    def _signing_key(self) -> str:
        try:
            key = self._signing_key_provider()
        except Exception as e:
            raise SignerUnavailableError(original=e) from e
        if not key:
            raise SignerUnavailableError()
        return key

    def _wallet_address(self) -> str:
        address = self._wallet_address_provider() or self.settings.chain.wallet_address
        if not address:
            raise SignerUnavailableError("Wallet address not configured")
        return address

    async def _dispatch(self, action: BlockchainAction, signing_key: str) -> TransactionResult:
        details = dict(action.details)
        if action.kind == ActionKind.CREATE_TOKEN:
            return await self.submitter.create_token(details, signing_key)
        if action.kind == ActionKind.MINT_NFT:
            return await self.submitter.mint_nft(details, self._wallet_address(), signing_key)
        if action.kind == ActionKind.SEND_TRANSACTION:
            return await self.submitter.send_transaction(details, signing_key)
        return TransactionResult(success=False, error=f"Unsupported action: {action.kind.value}")

    async def execute(self, action: BlockchainAction) -> ExecutionResult:
        """Execute a confirmed action and build the message reporting it.

        Never raises; every failure becomes a failed ExecutionResult.
        """
        try:
            signing_key = self._signing_key()
            result = await self._dispatch(action, signing_key)
        except SignerUnavailableError as e:
            logger.warning(f"Cannot execute {action.kind.value}: {e.message}")
            return self._failure(e.message)
        except Exception as e:
            logger.error(f"Submission of {action.kind.value} raised: {e}", exc_info=True)
            return self._failure(str(e) or type(e).__name__)

        if not result.success:
            logger.info(f"{action.kind.value} failed: {result.error}")
            return self._failure(result.error or "Unknown error")

        logger.info(f"{action.kind.value} succeeded: {result.hash}")
        return ExecutionResult(
            success=True,
            message=self._success_message(result),
            tx_hash=result.hash,
        )

    def _success_message(self, result: TransactionResult) -> str:
        lines = ["✅ **Transaction Successful!**", ""]
        if result.hash:
            lines.append(f"**Transaction Hash:** `{result.hash}`")
        if result.contract_address:
            lines.append(f"**Contract Address:** `{result.contract_address}`")
        if result.token_id:
            lines.append(f"**Token ID:** {result.token_id}")
        if result.hash:
            url = result.explorer_url or explorer_tx_url(result.hash, self.settings)
            lines.extend(["", f"[View on Explorer]({url})"])
        return "\n".join(lines)

    @staticmethod
    def _failure(error: str) -> ExecutionResult:
        guidance = format_error_for_chat(translate_error(error))
        return ExecutionResult(
            success=False,
            message=f"❌ **Transaction Failed**\n\n{error}\n\n{guidance}",
            error=error,
        )
