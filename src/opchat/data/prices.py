"""Native asset (BNB) price lookup with multi-source fallback."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Optional

import httpx

from opchat.config.settings import Settings, get_settings
from opchat.data.cache import Cache

logger = logging.getLogger(__name__)

COINGECKO_URL = "https://api.coingecko.com/api/v3/simple/price"
COINCAP_URL = "https://api.coincap.io/v2/assets/{asset_id}"
BINANCE_URL = "https://api.binance.com/api/v3/ticker/24hr"


@dataclass
class PriceData:
    """Spot price of the native asset."""

    price: float
    change_24h: float = 0.0
    source: str = "unknown"
    last_updated: datetime = field(default_factory=datetime.now)


MOCK_PRICE = PriceData(price=600.0, change_24h=1.5, source="Demo")


class PriceService:
    """Fetches the native asset price, trying each public source in order.

    Results are cached for ``prices.cache_ttl`` seconds. When every source
    fails the last known price is reused, and failing that a fixed fallback
    price, so callers always get a usable value.
    """

    CACHE_KEY = "native_price"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._client = client
        self._cache = Cache(maxsize=4, ttl=self.settings.prices.cache_ttl)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.prices.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _sources(self) -> list[tuple[str, Callable[[httpx.AsyncClient], Awaitable[PriceData]]]]:
        return [
            ("CoinGecko", self._fetch_coingecko),
            ("CoinCap", self._fetch_coincap),
            ("Binance", self._fetch_binance),
        ]

    async def _fetch_coingecko(self, client: httpx.AsyncClient) -> PriceData:
        asset_id = self.settings.prices.coingecko_id
        response = await client.get(
            COINGECKO_URL,
            params={"ids": asset_id, "vs_currencies": "usd", "include_24hr_change": "true"},
            timeout=self.settings.prices.timeout,
        )
        response.raise_for_status()
        data = response.json()[asset_id]
        return PriceData(
            price=float(data["usd"]),
            change_24h=float(data.get("usd_24h_change") or 0),
            source="CoinGecko",
        )

    async def _fetch_coincap(self, client: httpx.AsyncClient) -> PriceData:
        response = await client.get(
            COINCAP_URL.format(asset_id=self.settings.prices.coincap_id),
            timeout=self.settings.prices.timeout,
        )
        response.raise_for_status()
        data = response.json()["data"]
        return PriceData(
            price=float(data["priceUsd"]),
            change_24h=float(data.get("changePercent24Hr") or 0),
            source="CoinCap",
        )

    async def _fetch_binance(self, client: httpx.AsyncClient) -> PriceData:
        response = await client.get(
            BINANCE_URL,
            params={"symbol": self.settings.prices.binance_symbol},
            timeout=self.settings.prices.timeout,
        )
        response.raise_for_status()
        data = response.json()
        return PriceData(
            price=float(data["lastPrice"]),
            change_24h=float(data.get("priceChangePercent") or 0),
            source="Binance",
        )

    async def get_price(self) -> PriceData:
        """Get the current native asset price.

        Returns:
            PriceData from the first source that answers with a positive price
        """
        if self.settings.demo_mode:
            return MOCK_PRICE

        cached = self._cache.get(self.CACHE_KEY)
        if cached is not None:
            return cached

        client = await self._get_client()
        for name, fetch in self._sources():
            try:
                price = await fetch(client)
            except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"{name} price lookup failed: {e}")
                continue
            if price.price <= 0:
                logger.warning(f"{name} returned a non-positive price, skipping")
                continue
            logger.debug(f"BNB price {price.price} from {name}")
            self._cache.set(self.CACHE_KEY, price)
            return price

        last_known = self._cache.get_stale(self.CACHE_KEY)
        if last_known is not None:
            logger.warning("All price sources failed, reusing last known price")
            return last_known

        logger.warning("All price sources failed, using fallback price")
        return PriceData(price=self.settings.prices.fallback_price, source="Fallback")

    async def refresh(self) -> PriceData:
        """Expire the cached price and fetch again."""
        self._cache.expire(self.CACHE_KEY)
        return await self.get_price()

    async def format_price_with_change(self) -> str:
        """Format the price with its 24h change, e.g. ``$612.40 (+1.25%)``."""
        price = await self.get_price()
        sign = "+" if price.change_24h >= 0 else ""
        return f"${price.price:,.2f} ({sign}{price.change_24h:.2f}%)"
