"""Tests for confirmation message composition."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from opchat.chat.actions import ActionKind, build_action
from opchat.chat.confirmation import ConfirmationComposer
from opchat.data.prices import PriceData

WALLET = "0x1111111111111111111111111111111111111111"


def make_composer(settings, gas="0.0005", price=600.0):
    gas_estimator = MagicMock()
    gas_estimator.estimate_gas = AsyncMock(return_value=gas)
    price_service = MagicMock()
    price_service.get_price = AsyncMock(return_value=PriceData(price=price, source="Test"))
    return ConfirmationComposer(
        gas_estimator, price_service, settings, wallet_address_provider=lambda: WALLET
    )


class TestEstimateFee:
    """Tests for fee estimation with fallbacks."""

    @pytest.mark.asyncio
    async def test_fee_in_usd(self, settings):
        composer = make_composer(settings, gas="0.0005", price=600.0)
        native, usd = await composer.estimate_fee("token")
        assert native == "0.0005"
        assert usd == "$0.3000"

    @pytest.mark.asyncio
    async def test_gas_failure_uses_fallback_cost(self, settings):
        composer = make_composer(settings)
        composer.gas.estimate_gas = AsyncMock(side_effect=RuntimeError("rpc down"))
        native, _ = await composer.estimate_fee("transfer")
        assert native == settings.chain.fallback_gas_cost

    @pytest.mark.asyncio
    async def test_price_failure_uses_fixed_usd(self, settings):
        composer = make_composer(settings)
        composer.prices.get_price = AsyncMock(side_effect=RuntimeError("no price"))
        _, usd = await composer.estimate_fee("nft")
        assert usd == "$0.09"


class TestCompose:
    """Tests for the per-kind confirmation texts."""

    @pytest.mark.asyncio
    async def test_token_message(self, settings, token_action):
        text = await make_composer(settings).compose(token_action)
        assert "**Name:** Dragon Quest" in text
        assert "**Symbol:** DRQU" in text
        assert "**Total Supply:** 1,000,000,000" in text
        assert "**Decimals:** 18" in text
        assert "~0.0005 BNB ($0.3000)" in text
        assert text.endswith("**Should I proceed with creating this token?** (Yes/No)")

    @pytest.mark.asyncio
    async def test_nft_message(self, settings):
        action = build_action(
            ActionKind.MINT_NFT,
            {"name": "Dawn", "description": "First light", "imageUrl": "https://x/dawn.png"},
        )
        text = await make_composer(settings).compose(action)
        assert "**Name:** Dawn" in text
        assert "**Image Provided:** Yes" in text
        assert text.endswith("**Should I proceed with minting this NFT?** (Yes/No)")

    @pytest.mark.asyncio
    async def test_transfer_message(self, settings, transfer_action, recipient):
        text = await make_composer(settings).compose(transfer_action)
        assert "**Amount:** 0.1 BNB" in text
        assert f"**To:** {recipient}" in text
        assert "**From:** 0x1111...1111" in text
        assert "cannot be reversed" in text
        assert text.endswith("**Should I proceed with this transfer?** (Yes/No)")

    @pytest.mark.asyncio
    async def test_transfer_sender_follows_wallet(self, settings, transfer_action):
        wallet = {"address": None}
        base = make_composer(settings)
        composer = ConfirmationComposer(
            base.gas,
            base.prices,
            settings,
            wallet_address_provider=lambda: wallet["address"],
        )
        wallet["address"] = "0x2222222222222222222222222222222222223333"
        text = await composer.compose(transfer_action)
        assert "**From:** 0x2222...3333" in text

    @pytest.mark.asyncio
    async def test_upload_message_skips_fees(self, settings):
        composer = make_composer(settings)
        action = build_action(ActionKind.UPLOAD_NFT, {"name": "Dawn"})
        text = await composer.compose(action)
        assert "**Dawn**" in text
        composer.gas.estimate_gas.assert_not_called()

    @pytest.mark.asyncio
    async def test_generic_message(self, settings):
        action = build_action(ActionKind.CHECK_BALANCE, {})
        text = await make_composer(settings).compose(action)
        assert text == "Do you want me to proceed with **check balance**? (Yes/No)"

    @pytest.mark.asyncio
    async def test_fee_failures_never_block(self, settings, token_action):
        composer = make_composer(settings)
        composer.gas.estimate_gas = AsyncMock(side_effect=RuntimeError("rpc down"))
        composer.prices.get_price = AsyncMock(side_effect=RuntimeError("no price"))
        text = await composer.compose(token_action)
        assert "~0.0001 BNB ($0.27)" in text
