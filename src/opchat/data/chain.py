"""opBNB chain access: gas estimation and transaction submission.

Transaction submission is reached through the ``Submitter`` protocol. The
bundled ``DemoSubmitter`` validates inputs and fabricates deterministic
receipts so the whole conversation can run without a funded wallet.
"""

import hashlib
import itertools
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Protocol

import httpx

from opchat.chat.actions import NATIVE_SYMBOL, is_valid_address, parse_amount, parse_supply
from opchat.config.settings import Settings, get_settings
from opchat.data.cache import Cache, async_cached
from opchat.data.storage import generate_nft_metadata

logger = logging.getLogger(__name__)

WEI_PER_GWEI = 10**9
WEI_PER_BNB = Decimal(10**18)

# Gas price only moves slowly on opBNB
gas_price_cache = Cache(maxsize=8, ttl=300)


@dataclass
class TransactionResult:
    """Outcome of a submission call."""

    success: bool
    hash: Optional[str] = None
    contract_address: Optional[str] = None
    token_id: Optional[str] = None
    explorer_url: Optional[str] = None
    error: Optional[str] = None


class Submitter(Protocol):
    """Signs and broadcasts the three executable operations."""

    async def create_token(self, details: dict[str, Any], signing_key: str) -> TransactionResult:
        ...

    async def mint_nft(
        self, details: dict[str, Any], recipient_address: str, signing_key: str
    ) -> TransactionResult:
        ...

    async def send_transaction(
        self, details: dict[str, Any], signing_key: str
    ) -> TransactionResult:
        ...


def explorer_tx_url(tx_hash: str, settings: Optional[Settings] = None) -> str:
    """Build the block explorer link for a transaction hash."""
    settings = settings or get_settings()
    return f"{settings.chain.explorer_url.rstrip('/')}/tx/{tx_hash}"


def format_native(wei: int) -> str:
    """Format a wei amount as a plain BNB decimal string (no exponent)."""
    value = (Decimal(wei) / WEI_PER_BNB).normalize()
    return format(value, "f")


class GasEstimator:
    """Estimates network fees for the executable operations."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.chain.rpc_timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def default_gas_price(self) -> int:
        return int(self.settings.chain.default_gas_price_gwei * WEI_PER_GWEI)

    @async_cached(gas_price_cache, key_func=lambda self: f"gas_price:{self.settings.chain.rpc_url}")
    async def get_gas_price(self) -> int:
        """Current gas price in wei via ``eth_gasPrice``.

        Raises:
            httpx.HTTPError: the RPC endpoint could not be reached
            ValueError: the endpoint answered with an RPC error
        """
        if self.settings.demo_mode:
            return self.default_gas_price

        client = await self._get_client()
        response = await client.post(
            self.settings.chain.rpc_url,
            json={"jsonrpc": "2.0", "method": "eth_gasPrice", "params": [], "id": 1},
        )
        response.raise_for_status()
        payload = response.json()
        if payload.get("error"):
            raise ValueError(f"RPC error: {payload['error']}")

        result = payload.get("result")
        if not result:
            return self.default_gas_price
        return int(result, 16)

    async def estimate_gas(self, operation: str) -> str:
        """Estimate the fee of an operation (``token``, ``nft`` or ``transfer``) in BNB.

        Never raises: on any failure the configured fallback cost is returned.
        """
        gas_limits = self.settings.chain.gas_limits
        gas_limit = gas_limits.get(operation, gas_limits.get("transfer", 21000))
        try:
            gas_price = await self.get_gas_price()
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning(f"Gas estimation failed for {operation}: {e}")
            return self.settings.chain.fallback_gas_cost
        return format_native(gas_limit * gas_price)


class DemoSubmitter:
    """Simulated submission layer with deterministic receipts."""

    def __init__(self, settings: Optional[Settings] = None, balance: Optional[float] = None):
        self.settings = settings or get_settings()
        self.balance = self.settings.chain.demo_balance if balance is None else balance
        self._nonce = itertools.count(1)
        self._token_ids = itertools.count(1)
        self.minted: dict[str, dict[str, Any]] = {}

    def _digest(self, *parts: Any) -> str:
        seed = "|".join(str(p) for p in (*parts, next(self._nonce)))
        return hashlib.sha256(seed.encode()).hexdigest()

    def _receipt(self, tx_hash: str, **extra: Any) -> TransactionResult:
        return TransactionResult(
            success=True,
            hash=tx_hash,
            explorer_url=explorer_tx_url(tx_hash, self.settings),
            **extra,
        )

    async def create_token(self, details: dict[str, Any], signing_key: str) -> TransactionResult:
        if not details.get("name") or not details.get("symbol"):
            return TransactionResult(success=False, error="Token name and symbol are required")
        if parse_supply(details.get("totalSupply")) is None:
            return TransactionResult(success=False, error="Total supply must be a positive number")

        digest = self._digest("token", details["name"], details["symbol"])
        contract = "0x" + hashlib.sha256(digest.encode()).hexdigest()[:40]
        logger.info(f"[demo] Deployed token {details['symbol']} at {contract}")
        return self._receipt("0x" + digest, contract_address=contract)

    async def mint_nft(
        self, details: dict[str, Any], recipient_address: str, signing_key: str
    ) -> TransactionResult:
        if not details.get("name"):
            return TransactionResult(success=False, error="NFT name is required")
        if not details.get("imageUrl"):
            return TransactionResult(success=False, error="NFT image is required")
        if not is_valid_address(recipient_address):
            return TransactionResult(success=False, error="Invalid recipient address")

        token_id = str(next(self._token_ids))
        self.minted[token_id] = generate_nft_metadata(
            name=details["name"],
            description=details.get("description", ""),
            image_url=details["imageUrl"],
            attributes=details.get("attributes"),
        )
        digest = self._digest("nft", details["name"], recipient_address, token_id)
        logger.info(f"[demo] Minted NFT #{token_id} to {recipient_address}")
        return self._receipt("0x" + digest, token_id=token_id)

    async def send_transaction(
        self, details: dict[str, Any], signing_key: str
    ) -> TransactionResult:
        recipient = details.get("recipient")
        if not is_valid_address(recipient):
            return TransactionResult(success=False, error="Invalid recipient address")
        amount = parse_amount(details.get("amount"))
        if amount is None:
            return TransactionResult(success=False, error="Amount must be a positive number")
        token = details.get("token") or NATIVE_SYMBOL
        if token.upper() == NATIVE_SYMBOL and amount > self.balance:
            return TransactionResult(success=False, error="Insufficient balance")

        if token.upper() == NATIVE_SYMBOL:
            self.balance -= amount
        digest = self._digest("transfer", recipient, amount)
        logger.info(f"[demo] Sent {amount} {token} to {recipient}")
        return self._receipt("0x" + digest)
