"""A402Gate - Main entry point for pay-per-access content gating."""

from __future__ import annotations

import os
import secrets
from typing import Any

from a402.chain.reader import ChainReader
from a402.chain.vault import VaultContract
from a402.content.resolver import ContentSourceResolver
from a402.core.config import Config
from a402.core.exceptions import AbiError, PaymentRequiredError, TransportError
from a402.core.types import AccessCheck, ContentDescriptor, PaymentCall, Resource, VerificationResult
from a402.ledger.records import VerificationLedger
from a402.storage import StorageBackend, get_storage
from a402.verify.verifier import PaymentEventShape, PaymentVerifier

# payForAccess is the payable entry point wallets call
PAYMENT_METHOD = "payForAccess(string,bytes32)"

# Data word compared with keccak256(resourceId) when require_resource_match is on
RESOURCE_DATA_WORD = 2


class A402Gate:
    """
    Paywall for one resource on one vault contract.

    Wires the chain reader, vault contract, verification table, payment
    verifier and content resolver from a single Config. The HTTP layer
    calls these methods and maps the results onto responses.

    Usage:
        async with A402Gate(Config.from_env()) as gate:
            result = await gate.verify_payment(tx_hash)
            if result.verified:
                return gate.content_payload()
    """

    def __init__(
        self,
        config: Config | None = None,
        storage: StorageBackend | None = None,
        reader: ChainReader | None = None,
        log_level: int | str | None = None,
    ) -> None:
        """
        Initialize the gate.

        Args:
            config: Configuration (default: Config.from_env())
            storage: Verification table backend (default: from config.storage_backend)
            reader: Chain reader (default: built from config.rpc_url)
            log_level: Logging level (default: config.log_level)
        """
        self._config = config or Config.from_env()

        if log_level is None:
            log_level = os.environ.get("A402_LOG_LEVEL", self._config.log_level)

        from a402.core.logging import configure_logging, get_logger

        configure_logging(level=log_level)
        self._logger = get_logger("gate")
        self._logger.info(
            f"Initializing A402 gate (chain: {self._config.caip2}, rpc: {self._config.masked_rpc_url()}, "
            f"contract: {self._config.verifier_contract}, resource: {self._config.resource_id})"
        )

        self._owns_storage = storage is None
        if storage is None:
            kwargs = {"redis_url": self._config.redis_url} if self._config.storage_backend == "redis" else {}
            storage = get_storage(self._config.storage_backend, **kwargs)
        self._storage = storage
        self._ledger = VerificationLedger(self._storage)

        self._owns_reader = reader is None
        self._reader = reader or ChainReader(
            rpc_url=self._config.rpc_url,
            timeout=self._config.rpc_timeout,
            max_attempts=self._config.rpc_max_attempts,
        )
        self._vault = VaultContract(self._reader, self._config.verifier_contract)

        event = PaymentEventShape(
            signature=self._config.payment_event_signature,
            resource_word=RESOURCE_DATA_WORD if self._config.require_resource_match else None,
        )
        self._verifier = PaymentVerifier(
            reader=self._reader,
            ledger=self._ledger,
            contract_address=self._config.verifier_contract,
            beneficiary=self._config.creator_address,
            min_amount=self._config.price_wei,
            resource_id=self._config.resource_id,
            event=event,
        )
        self._resolver = ContentSourceResolver(self._config.ipfs_gateway)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def ledger(self) -> VerificationLedger:
        return self._ledger

    @property
    def verifier(self) -> PaymentVerifier:
        return self._verifier

    @property
    def vault(self) -> VaultContract:
        return self._vault

    @property
    def resolver(self) -> ContentSourceResolver:
        return self._resolver

    async def __aenter__(self) -> A402Gate:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client and storage connections this gate owns."""
        if self._owns_reader:
            await self._reader.close()
        if self._owns_storage:
            await self._storage.close()

    # ─── Payment ─────────────────────────────────────────────────────

    async def verify_payment(self, tx_hash: str) -> VerificationResult:
        """
        Verify a submitted payment transaction.

        Raises:
            ValidationError: If tx_hash is malformed
            TransportError: If the chain could not be reached
        """
        return await self._verifier.verify(tx_hash)

    async def unlock(self, tx_hash: str | None) -> dict[str, Any]:
        """
        Content payload for an already verified payment.

        Only the verification table is consulted; the chain is never read.
        A record stored by a gate for another resource or creator does not
        unlock this one.

        Raises:
            PaymentRequiredError: If no hash was given or it is not verified
        """
        if not tx_hash:
            raise PaymentRequiredError("Payment Required", self.payment_requirements())

        record = await self._ledger.get(tx_hash)
        if record is None or not self._verifier.accepts(record):
            raise PaymentRequiredError(
                "Payment not yet verified.",
                self.payment_requirements(),
                tx_hash=tx_hash.strip().lower(),
            )
        return self.content_payload()

    def payment_requirements(self) -> dict[str, Any]:
        """Body of a 402 response: what to pay, where, and how."""
        return {
            "network": self._config.caip2,
            "chainId": self._config.chain_id,
            "verifierContract": self._config.verifier_contract,
            "creator": self._config.creator_address,
            "resourceId": self._config.resource_id,
            "amount": self._config.price,
            "amountWei": str(self._config.price_wei),
            "asset": self._config.currency,
            "lifetimeAccess": self._config.lifetime_access,
            "method": PAYMENT_METHOD,
            "description": (
                "Pay once via A402Verifier for lifetime access"
                if self._config.lifetime_access
                else "Pay via A402Verifier to unlock content"
            ),
        }

    def payment_info(self) -> dict[str, Any]:
        """Public payment parameters for wallets and widgets."""
        return {
            "chainId": self._config.chain_id,
            "caip2": self._config.caip2,
            "rpcUrl": self._config.rpc_urls[0],
            "verifierContract": self._config.verifier_contract,
            "creatorAddress": self._config.creator_address,
            "resourceId": self._config.resource_id,
            "price": self._config.price,
            "priceWei": str(self._config.price_wei),
            "currency": self._config.currency,
            "decimals": self._config.decimals,
            "lifetimeAccess": self._config.lifetime_access,
            "description": (
                "Pay once for lifetime access via A402 contract"
                if self._config.lifetime_access
                else "Pay per access via A402 contract"
            ),
        }

    @staticmethod
    def new_nonce() -> str:
        """32 random bytes as 0x-hex, for payForAccess replay protection."""
        return "0x" + secrets.token_hex(32)

    def build_payment(self, nonce: str | bytes | None = None) -> PaymentCall:
        """Unsigned payForAccess call for the configured resource and price."""
        return self._vault.build_payment(
            self._config.resource_id,
            nonce if nonce is not None else self.new_nonce(),
            self._config.price_wei,
        )

    async def get_resource(self, resource_id: str | None = None) -> Resource:
        """On-chain definition of a resource (default: the configured one)."""
        return await self._vault.get_resource(resource_id or self._config.resource_id)

    # ─── Access ──────────────────────────────────────────────────────

    async def check_access(self, user_address: str) -> AccessCheck:
        """
        Whether a user may see the content without paying again.

        Checks payments verified by this process first, then (with lifetime
        access enabled) the contract's hasAccess. A chain failure here means
        "no access", never an error.
        """
        record = await self._ledger.find_verified_by_payer(
            user_address,
            resource_id=self._config.resource_id,
            beneficiary=self._config.creator_address,
        )
        if record and self._verifier.accepts(record):
            return AccessCheck(
                has_access=True,
                source="session",
                message="Access granted (verified this session)",
                content=self.content_payload(),
            )

        if self._config.lifetime_access:
            try:
                granted = await self._vault.has_access(self._config.resource_id, user_address)
            except (TransportError, AbiError) as e:
                self._logger.warning(f"On-chain access check failed for {user_address}: {e}")
                granted = False
            if granted:
                self._logger.info(
                    f"Lifetime access confirmed on-chain for {user_address} -> {self._config.resource_id}"
                )
                return AccessCheck(
                    has_access=True,
                    source="on-chain",
                    lifetime=True,
                    message="Lifetime access confirmed, you already paid for this content!",
                    content=self.content_payload(),
                )

        return AccessCheck(
            has_access=False,
            message=(
                "No access found. Pay once to unlock this content forever."
                if self._config.lifetime_access
                else "No access found. Payment required."
            ),
        )

    # ─── Content ─────────────────────────────────────────────────────

    def content(self) -> ContentDescriptor:
        return self._resolver.classify(self._config.content_ref)

    def content_payload(self) -> dict[str, Any]:
        """{videoUrl, contentType, videoId?} for the configured content."""
        return self.content().to_payload()

    async def health(self) -> dict[str, Any]:
        """Service status, including storage reachability."""
        storage_ok = await self._storage.health_check()
        return {
            "status": "ok" if storage_ok else "degraded",
            "chain": self._config.caip2,
            "verifierContract": self._config.verifier_contract,
            "creatorAddress": self._config.creator_address,
            "lifetimeAccess": self._config.lifetime_access,
            "contentType": self.content().kind.payload_type,
            "storage": storage_ok,
        }
