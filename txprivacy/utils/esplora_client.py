"""Async Esplora HTTP API Client.

Async client for the Esplora REST API (mempool.space, blockstream.info and
self-hosted instances) with:
- Connection pooling (TCPConnector) and a per-request timeout
- Semaphore-based limit on concurrent requests
- tenacity retries on 429 / 5xx / transport errors
- Fallback from the primary to a secondary base URL (mainnet)

Usage:
    async with EsploraAsyncClient() as client:
        tx = await client.get_transaction(txid)
        txs = await client.get_address_txs(address)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from txprivacy.config.settings import EngineConfig, get_config
from txprivacy.errors import ApiError, ApiErrorCode
from txprivacy.models import AddressInfo, Transaction, Utxo
from txprivacy.utils.retry_decorator import RetryableStatusError, parse_retry_after, retry_http

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONNECTIONS = 10
DEFAULT_CONCURRENT_REQUESTS = 4

# Errors that make the next base URL worth trying
FALLBACK_CODES = frozenset({ApiErrorCode.API_UNAVAILABLE, ApiErrorCode.NETWORK_ERROR})


class EsploraAsyncClient:
    """Async client for an Esplora-compatible explorer API.

    Example:
        async with EsploraAsyncClient() as client:
            tx = await client.get_transaction("a" * 64)
            print(f"{len(tx.vin)} inputs, {len(tx.vout)} outputs")
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        concurrent_requests: int = DEFAULT_CONCURRENT_REQUESTS,
    ):
        """Initialize client with optional config.

        Args:
            config: EngineConfig instance. If None, uses the global config.
            concurrent_requests: Maximum requests in flight
        """
        self.config = config or get_config()
        self.base_urls = self.config.base_urls
        self.concurrent_requests = concurrent_requests
        self._session: aiohttp.ClientSession | None = None
        self._semaphore: asyncio.Semaphore | None = None

    async def __aenter__(self) -> "EsploraAsyncClient":
        """Create aiohttp session with connection pooling."""
        connector = aiohttp.TCPConnector(
            limit=DEFAULT_MAX_CONNECTIONS,
            enable_cleanup_closed=True,
        )
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
        self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
        self._semaphore = asyncio.Semaphore(self.concurrent_requests)
        logger.debug(
            f"EsploraAsyncClient initialized: {', '.join(self.base_urls)}, "
            f"timeout={self.config.timeout_seconds}s, retries={self.config.max_retries}"
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None
        self._semaphore = None

    async def _fetch_once(self, url: str, as_text: bool) -> Any:
        """Single GET; maps HTTP statuses to ApiError or RetryableStatusError."""
        if not self._session:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        if not self._semaphore:
            raise RuntimeError("Semaphore not initialized.")

        async with self._semaphore:
            async with self._session.get(url) as response:
                if response.status == 200:
                    if as_text:
                        return await response.text()
                    return await response.json(content_type=None)
                if response.status == 404:
                    raise ApiError(ApiErrorCode.NOT_FOUND, f"Not found: {url}", status=404)
                if response.status == 429 or response.status >= 500:
                    raise RetryableStatusError(
                        response.status,
                        parse_retry_after(response.headers.get("Retry-After")),
                    )
                raise ApiError(
                    ApiErrorCode.API_UNAVAILABLE,
                    f"HTTP {response.status}",
                    status=response.status,
                )

    async def _fetch_with_retry(self, url: str, as_text: bool) -> Any:
        """GET with retries; always raises ApiError on failure."""
        fetch = retry_http(max_attempts=self.config.max_retries + 1)(self._fetch_once)
        try:
            return await fetch(url, as_text)
        except RetryableStatusError as e:
            if e.status == 429:
                raise ApiError(
                    ApiErrorCode.RATE_LIMITED,
                    "API rate limit reached. Try again in a moment.",
                    status=429,
                ) from e
            raise ApiError(ApiErrorCode.API_UNAVAILABLE, f"HTTP {e.status}", status=e.status) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ApiError(ApiErrorCode.NETWORK_ERROR, str(e) or type(e).__name__) from e

    async def _request(self, path: str, as_text: bool = False) -> Any:
        """Fetch ``path`` from the first base URL that answers.

        Args:
            path: API path starting with "/"
            as_text: Return the body as text instead of JSON

        Returns:
            Parsed JSON or text

        Raises:
            ApiError: When every base URL failed
        """
        for i, base_url in enumerate(self.base_urls):
            try:
                return await self._fetch_with_retry(f"{base_url}{path}", as_text)
            except ApiError as e:
                is_last = i == len(self.base_urls) - 1
                if e.code not in FALLBACK_CODES or is_last:
                    raise
                logger.warning(f"{base_url} failed ({e.code.value}), falling back to {self.base_urls[i + 1]}")
        raise ApiError(ApiErrorCode.API_UNAVAILABLE, "No API base URL configured")

    async def get_transaction(self, txid: str) -> Transaction:
        """Get a transaction by id."""
        data = await self._request(f"/tx/{txid}")
        return Transaction.model_validate(data)

    async def get_tx_hex(self, txid: str) -> str:
        """Get the raw transaction hex."""
        text = await self._request(f"/tx/{txid}/hex", as_text=True)
        return text.strip()

    async def get_address(self, address: str) -> AddressInfo:
        """Get the indexer summary of an address."""
        data = await self._request(f"/address/{address}")
        return AddressInfo.model_validate(data)

    async def get_address_txs(self, address: str) -> list[Transaction]:
        """Get the most recent transactions of an address (newest first)."""
        data = await self._request(f"/address/{address}/txs")
        return [Transaction.model_validate(tx) for tx in data]

    async def get_address_utxos(self, address: str) -> list[Utxo]:
        """Get the unspent outputs of an address."""
        data = await self._request(f"/address/{address}/utxo")
        return [Utxo.model_validate(u) for u in data]
