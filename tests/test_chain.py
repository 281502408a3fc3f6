"""Tests for gas estimation and the demo submitter."""

import httpx
import pytest

from opchat.data.chain import DemoSubmitter, GasEstimator, explorer_tx_url, format_native

ADDRESS = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"


def rpc_client(payload=None, status=200, calls=None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        if payload is None:
            raise httpx.ConnectError("unreachable", request=request)
        return httpx.Response(status, json=payload)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestFormatting:
    """Tests for amount and link helpers."""

    def test_format_native(self):
        assert format_native(21000 * 10**9) == "0.000021"
        assert format_native(10**18) == "1"

    def test_explorer_url(self, settings):
        assert explorer_tx_url("0xabc", settings) == "https://opbnbscan.com/tx/0xabc"


class TestGasEstimator:
    """Tests for fee estimation over JSON-RPC."""

    @pytest.mark.asyncio
    async def test_demo_uses_default_price(self, settings):
        assert await GasEstimator(settings).estimate_gas("transfer") == "0.000021"

    @pytest.mark.asyncio
    async def test_rpc_price(self, live_settings):
        client = rpc_client({"jsonrpc": "2.0", "id": 1, "result": hex(2 * 10**9)})
        fee = await GasEstimator(live_settings, client).estimate_gas("token")
        assert fee == "0.001"

    @pytest.mark.asyncio
    async def test_gas_price_cached(self, live_settings):
        calls = []
        client = rpc_client({"jsonrpc": "2.0", "id": 1, "result": hex(10**9)}, calls=calls)
        estimator = GasEstimator(live_settings, client)
        await estimator.estimate_gas("nft")
        await estimator.estimate_gas("transfer")
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_unreachable_rpc_falls_back(self, live_settings):
        fee = await GasEstimator(live_settings, rpc_client(None)).estimate_gas("nft")
        assert fee == "0.0001"

    @pytest.mark.asyncio
    async def test_rpc_error_falls_back(self, live_settings):
        client = rpc_client({"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "x"}})
        fee = await GasEstimator(live_settings, client).estimate_gas("transfer")
        assert fee == "0.0001"

    @pytest.mark.asyncio
    async def test_http_error_falls_back(self, live_settings):
        fee = await GasEstimator(live_settings, rpc_client({}, status=503)).estimate_gas("token")
        assert fee == "0.0001"

    @pytest.mark.asyncio
    async def test_null_result_uses_default(self, live_settings):
        client = rpc_client({"jsonrpc": "2.0", "id": 1, "result": None})
        assert await GasEstimator(live_settings, client).estimate_gas("transfer") == "0.000021"


class TestDemoSubmitter:
    """Tests for the simulated submission layer."""

    @pytest.mark.asyncio
    async def test_create_token(self, settings):
        result = await DemoSubmitter(settings).create_token(
            {"name": "Moon", "symbol": "MOON", "totalSupply": "1000"}, "key"
        )
        assert result.success
        assert len(result.contract_address) == 42
        assert result.explorer_url.endswith(result.hash)

    @pytest.mark.asyncio
    async def test_create_token_bad_supply(self, settings):
        result = await DemoSubmitter(settings).create_token(
            {"name": "Moon", "symbol": "MOON", "totalSupply": "-5"}, "key"
        )
        assert result.error == "Total supply must be a positive number"

    @pytest.mark.asyncio
    async def test_hashes_unique(self, settings):
        submitter = DemoSubmitter(settings)
        details = {"recipient": ADDRESS, "amount": "0.01"}
        first = await submitter.send_transaction(details, "key")
        second = await submitter.send_transaction(details, "key")
        assert first.hash != second.hash

    @pytest.mark.asyncio
    async def test_mint_ids_increment(self, settings):
        submitter = DemoSubmitter(settings)
        details = {"name": "Dawn", "description": "d", "imageUrl": "https://x/dawn.png"}
        first = await submitter.mint_nft(details, ADDRESS, "key")
        second = await submitter.mint_nft(details, ADDRESS, "key")
        assert (first.token_id, second.token_id) == ("1", "2")

    @pytest.mark.asyncio
    async def test_mint_requires_image(self, settings):
        result = await DemoSubmitter(settings).mint_nft({"name": "Dawn"}, ADDRESS, "key")
        assert result.error == "NFT image is required"

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, settings):
        submitter = DemoSubmitter(settings, balance=0.5)
        result = await submitter.send_transaction({"recipient": ADDRESS, "amount": "1"}, "key")
        assert result.error == "Insufficient balance"
        assert submitter.balance == 0.5

    @pytest.mark.asyncio
    async def test_token_transfer_skips_native_balance(self, settings):
        submitter = DemoSubmitter(settings, balance=0.0)
        result = await submitter.send_transaction(
            {"recipient": ADDRESS, "amount": "100", "token": ADDRESS}, "key"
        )
        assert result.success
