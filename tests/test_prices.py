"""Tests for the BNB price service."""

import httpx
import pytest

from opchat.data.prices import MOCK_PRICE, PriceService


def make_client(routes: dict) -> httpx.AsyncClient:
    """Client answering by host; hosts mapped to None fail with a connect error."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = routes.get(request.url.host)
        if body is None:
            raise httpx.ConnectError("unreachable", request=request)
        return httpx.Response(200, json=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


COINGECKO = {"binancecoin": {"usd": 612.4, "usd_24h_change": 1.25}}
COINCAP = {"data": {"priceUsd": "605.10", "changePercent24Hr": "-0.5"}}
BINANCE = {"lastPrice": "601.00", "priceChangePercent": "0.10"}


class TestPriceService:
    """Tests for source fallback and caching."""

    @pytest.mark.asyncio
    async def test_demo_mode(self, settings):
        assert await PriceService(settings).get_price() == MOCK_PRICE

    @pytest.mark.asyncio
    async def test_first_source_wins(self, live_settings):
        client = make_client({"api.coingecko.com": COINGECKO, "api.coincap.io": COINCAP})
        price = await PriceService(live_settings, client).get_price()
        assert price.price == 612.4
        assert price.source == "CoinGecko"

    @pytest.mark.asyncio
    async def test_falls_through_in_order(self, live_settings):
        client = make_client({"api.binance.com": BINANCE, "api.coincap.io": COINCAP})
        price = await PriceService(live_settings, client).get_price()
        assert price.source == "CoinCap"
        assert price.change_24h == -0.5

    @pytest.mark.asyncio
    async def test_last_source(self, live_settings):
        client = make_client({"api.binance.com": BINANCE})
        price = await PriceService(live_settings, client).get_price()
        assert price.source == "Binance"
        assert price.price == 601.0

    @pytest.mark.asyncio
    async def test_fixed_fallback(self, live_settings):
        price = await PriceService(live_settings, make_client({})).get_price()
        assert price.source == "Fallback"
        assert price.price == live_settings.prices.fallback_price

    @pytest.mark.asyncio
    async def test_malformed_payload_skipped(self, live_settings):
        client = make_client({"api.coingecko.com": {"unexpected": 1}, "api.binance.com": BINANCE})
        price = await PriceService(live_settings, client).get_price()
        assert price.source == "Binance"

    @pytest.mark.asyncio
    async def test_cached(self, live_settings):
        routes = {"api.coingecko.com": COINGECKO}
        service = PriceService(live_settings, make_client(routes))
        await service.get_price()
        routes.clear()
        price = await service.get_price()
        assert price.source == "CoinGecko"

    @pytest.mark.asyncio
    async def test_last_known_after_outage(self, live_settings):
        routes = {"api.coingecko.com": COINGECKO}
        service = PriceService(live_settings, make_client(routes))
        await service.get_price()
        routes.clear()
        price = await service.refresh()
        assert price.price == 612.4

    @pytest.mark.asyncio
    async def test_formatting(self, live_settings):
        service = PriceService(live_settings, make_client({"api.coingecko.com": COINGECKO}))
        assert await service.format_price_with_change() == "$612.40 (+1.25%)"
