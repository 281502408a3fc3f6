"""Tests for dispatching confirmed actions."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from opchat.chat.actions import ActionKind, build_action
from opchat.commands.executor import ActionExecutor
from opchat.data.chain import DemoSubmitter, TransactionResult

ADDRESS = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"


def make_executor(settings, submitter=None, signing_key="demo-key", wallet=ADDRESS):
    return ActionExecutor(
        submitter or DemoSubmitter(settings),
        signing_key_provider=lambda: signing_key,
        wallet_address_provider=lambda: wallet,
        settings=settings,
    )


class TestActionExecutor:
    """Tests for ActionExecutor.execute."""

    @pytest.mark.asyncio
    async def test_token_success(self, settings, token_action):
        result = await make_executor(settings).execute(token_action)

        assert result.success
        assert result.tx_hash.startswith("0x")
        assert result.message.startswith("✅ **Transaction Successful!**")
        assert "**Contract Address:**" in result.message
        assert f"[View on Explorer](https://opbnbscan.com/tx/{result.tx_hash})" in result.message

    @pytest.mark.asyncio
    async def test_nft_success_has_token_id(self, settings):
        action = build_action(
            ActionKind.MINT_NFT,
            {"name": "Dawn", "description": "First light", "imageUrl": "https://x/dawn.png"},
        )
        submitter = DemoSubmitter(settings)
        result = await make_executor(settings, submitter).execute(action)

        assert result.success
        assert "**Token ID:** 1" in result.message
        assert submitter.minted["1"]["name"] == "Dawn"

    @pytest.mark.asyncio
    async def test_transfer_success(self, settings, transfer_action):
        submitter = DemoSubmitter(settings, balance=1.0)
        result = await make_executor(settings, submitter).execute(transfer_action)

        assert result.success
        assert submitter.balance == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_no_signing_key(self, settings, token_action):
        submitter = MagicMock()
        submitter.create_token = AsyncMock()
        result = await make_executor(settings, submitter, signing_key=None).execute(token_action)

        submitter.create_token.assert_not_called()
        assert not result.success
        assert "Wallet not connected" in result.message

    @pytest.mark.asyncio
    async def test_signing_key_provider_raises(self, settings, token_action):
        def broken():
            raise RuntimeError("cannot decrypt")

        executor = ActionExecutor(
            DemoSubmitter(settings), signing_key_provider=broken, settings=settings
        )
        result = await executor.execute(token_action)
        assert not result.success
        assert result.error == "Wallet not connected"

    @pytest.mark.asyncio
    async def test_read_only_unsupported(self, settings):
        action = build_action(ActionKind.CHECK_BALANCE, {})
        result = await make_executor(settings).execute(action)

        assert not result.success
        assert result.error == "Unsupported action: check_balance"

    @pytest.mark.asyncio
    async def test_collaborator_failure_verbatim(self, settings, transfer_action):
        submitter = MagicMock()
        submitter.send_transaction = AsyncMock(
            return_value=TransactionResult(success=False, error="execution reverted: paused")
        )
        result = await make_executor(settings, submitter).execute(transfer_action)

        assert result.message.startswith(
            "❌ **Transaction Failed**\n\nexecution reverted: paused\n\n"
        )
        assert "The contract rejected the transaction." in result.message

    @pytest.mark.asyncio
    async def test_collaborator_exception(self, settings, transfer_action):
        submitter = MagicMock()
        submitter.send_transaction = AsyncMock(side_effect=ConnectionError("network error"))
        result = await make_executor(settings, submitter).execute(transfer_action)

        assert not result.success
        assert "network error" in result.message
        submitter.send_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mint_without_wallet_address(self, settings):
        action = build_action(
            ActionKind.MINT_NFT,
            {"name": "Dawn", "description": "d", "imageUrl": "https://x/dawn.png"},
        )
        result = await make_executor(settings, wallet=None).execute(action)
        assert result.error == "Wallet address not configured"
