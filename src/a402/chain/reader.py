"""
Chain Reader: lightweight JSON-RPC transport for stateless chain reads.

Uses httpx directly (no web3.py dependency) to issue `eth_call`,
`eth_getTransactionReceipt` and `eth_getTransactionByHash`.

Configuration (pick one):
    1. Constructor: ChainReader(rpc_url="https://rpc.example/ext/bc/.../rpc")
    2. Env var:     A402_RPC_URL=https://rpc.example/ext/bc/.../rpc

For fallback, pass comma-separated URLs:
    A402_RPC_URL=https://primary.example/rpc,https://backup.example/rpc
"""

from __future__ import annotations

import itertools
import os
from typing import Any

import httpx

from a402.abi.codec import hex_to_bytes, normalize_address, to_hex
from a402.core.exceptions import ConfigurationError, RpcError, TransportError, ValidationError
from a402.core.logging import get_logger
from a402.core.types import Receipt, Transaction
from a402.resilience.retry import execute_with_retry

logger = get_logger("chain.reader")

# Environment variable for the RPC endpoint
RPC_ENV_VAR = "A402_RPC_URL"


def normalize_tx_hash(tx_hash: str) -> str:
    """
    Case-fold a transaction hash and check its shape.

    Raises:
        ValidationError: If it is not 32 bytes of 0x-prefixed hex
    """
    if not isinstance(tx_hash, str):
        raise ValidationError("Transaction hash must be a string")
    value = tx_hash.strip().lower()
    if len(value) != 66 or not value.startswith("0x"):
        raise ValidationError(f"Invalid transaction hash: {tx_hash!r}")
    try:
        bytes.fromhex(value[2:])
    except ValueError:
        raise ValidationError(f"Invalid transaction hash: {tx_hash!r}") from None
    return value


class ChainReader:
    """
    JSON-RPC reader for a single EVM chain.

    Every method is a stateless read against the latest known state. Each
    round-trip carries a timeout; if every configured provider fails the
    call raises TransportError. Retrying is the caller's decision beyond the
    small backoff applied here.

    Usage:
        reader = ChainReader(rpc_url="https://rpc.example/rpc")
        raw = await reader.call(contract, calldata)
        receipt = await reader.get_receipt("0x...")
    """

    RPC_TIMEOUT = 10.0  # seconds per JSON-RPC call

    def __init__(
        self,
        rpc_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        max_attempts: int = 3,
        retry_wait: float = 0.5,
    ) -> None:
        """
        Args:
            rpc_url: RPC endpoint URL(s). Supports comma-separated for
                     multi-provider fallback. Falls back to A402_RPC_URL env var.
            http_client: Shared httpx client (for connection pooling, or tests).
            timeout: Per-request timeout in seconds.
            max_attempts: Attempts per read when all providers fail transiently.
            retry_wait: Backoff multiplier in seconds between attempts.
        """
        raw_url = rpc_url or os.environ.get(RPC_ENV_VAR, "")
        self._rpc_urls: list[str] = [u.strip() for u in raw_url.split(",") if u.strip()]
        self._timeout = timeout or self.RPC_TIMEOUT
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait
        self._http_client = http_client
        self._owns_client = False
        self._ids = itertools.count(1)

        if not self._rpc_urls:
            raise ConfigurationError(
                f"No RPC URL configured. Set {RPC_ENV_VAR} env var or pass rpc_url to ChainReader."
            )

    @property
    def rpc_urls(self) -> list[str]:
        return list(self._rpc_urls)

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy-init HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._http_client

    async def close(self) -> None:
        """Close owned HTTP client."""
        if self._owns_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_client = False

    async def __aenter__(self) -> ChainReader:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ─── JSON-RPC Call with Multi-Provider Fallback ──────────────────

    async def request(self, method: str, params: list[Any]) -> Any:
        """
        Execute a JSON-RPC request, retrying transient transport failures.

        Returns:
            The `result` member of the response (may be None)

        Raises:
            RpcError: The node returned an error object
            TransportError: Every provider failed
        """
        return await execute_with_retry(
            self._request_once,
            method,
            params,
            attempts=self._max_attempts,
            wait_multiplier=self._retry_wait,
        )

    async def _request_once(self, method: str, params: list[Any]) -> Any:
        """
        One pass over the configured providers, in order.

        If the primary fails (timeout, HTTP error, malformed body) the next
        provider is tried. A JSON-RPC error object is a definitive answer
        from the node and is raised immediately.
        """
        client = await self._get_client()
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        last_error: TransportError | None = None
        total = len(self._rpc_urls)
        for i, rpc_url in enumerate(self._rpc_urls):
            try:
                response = await client.post(rpc_url, json=payload, timeout=self._timeout)
                response.raise_for_status()
                body = response.json()
            except httpx.TimeoutException:
                logger.warning(
                    f"RPC timeout from provider {i + 1}/{total} ({method}): "
                    f"{'falling back' if i < total - 1 else 'no more providers'}"
                )
                last_error = TransportError(f"Timeout calling {method}", url=rpc_url)
                continue
            except httpx.HTTPStatusError as e:
                logger.warning(
                    f"RPC HTTP {e.response.status_code} from provider {i + 1}/{total} ({method})"
                )
                last_error = TransportError(
                    f"HTTP {e.response.status_code} calling {method}",
                    status_code=e.response.status_code,
                    url=rpc_url,
                )
                continue
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"RPC failure from provider {i + 1}/{total} ({method}): {e}")
                last_error = TransportError(f"{type(e).__name__} calling {method}: {e}", url=rpc_url)
                continue

            if not isinstance(body, dict):
                last_error = TransportError(f"Malformed JSON-RPC response to {method}", url=rpc_url)
                continue

            if body.get("error"):
                error = body["error"]
                message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
                code = error.get("code") if isinstance(error, dict) else None
                logger.debug(f"{method} RPC error from provider {i + 1}/{total}: {error}")
                raise RpcError(message, method=method, code=code, url=rpc_url)

            return body.get("result")

        logger.error(f"All {total} RPC providers failed for {method}: {last_error}")
        raise last_error or TransportError(f"No RPC provider answered {method}")

    # ─── Reads ───────────────────────────────────────────────────────

    async def call(self, to: str, data: bytes | str, block: str = "latest") -> bytes:
        """
        eth_call against `block`. Returns raw return data.

        An empty result ("0x") comes back as b"" and is left to the decoder
        to reject.
        """
        calldata = data if isinstance(data, str) else to_hex(data)
        result = await self.request(
            "eth_call",
            [{"to": normalize_address(to), "data": calldata}, block],
        )
        return hex_to_bytes(result)

    async def get_receipt(self, tx_hash: str) -> Receipt | None:
        """eth_getTransactionReceipt; None while the transaction is not mined."""
        raw = await self.request("eth_getTransactionReceipt", [normalize_tx_hash(tx_hash)])
        if not raw:
            return None
        return Receipt.from_rpc(raw)

    async def get_transaction(self, tx_hash: str) -> Transaction | None:
        """eth_getTransactionByHash; None if the node does not know the hash."""
        raw = await self.request("eth_getTransactionByHash", [normalize_tx_hash(tx_hash)])
        if not raw:
            return None
        return Transaction.from_rpc(raw)

    async def get_chain_id(self) -> int:
        """eth_chainId, used by health checks to confirm the endpoint's network."""
        result = await self.request("eth_chainId", [])
        return int(result, 16)


__all__ = [
    "ChainReader",
    "RPC_ENV_VAR",
    "normalize_tx_hash",
]
