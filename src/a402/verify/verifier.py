"""
Payment Verifier.

Turns an untrusted transaction hash into a verified / not-verified answer
by reading the chain. The browser that submits the hash is never trusted:
every fact used (success, destination, payer, beneficiary, amount) comes
from the node.

Flow for one hash:

    UNSEEN ──receipt absent, tx known──▶ PENDING (re-checked next request)
       │
       ├──receipt absent, tx unknown──▶ REJECTED/NOT_FOUND
       ├──status != 1────────────────▶ REJECTED/REVERTED
       ├──tx.to != contract──────────▶ REJECTED/WRONG_DESTINATION
       ├──no logs from contract──────▶ REJECTED/NO_CONTRACT_EVENTS
       ├──no qualifying event────────▶ REJECTED/NO_MATCHING_EVENT
       ├──hash stored for another gate▶ REJECTED/ALREADY_CLAIMED
       └──qualifying event───────────▶ VERIFIED (stored, terminal)

Only VERIFIED is stored. Transport failures raise to the caller and are
never recorded as an outcome. A stored record short-circuits the chain
read only when it names this verifier's beneficiary and resource and
covers its price.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from a402.abi.codec import WORD, decode_address_word, event_topic, normalize_address, read_uint
from a402.abi.keccak import keccak256
from a402.chain.reader import ChainReader, normalize_tx_hash
from a402.core.contract import AMOUNT_DATA_WORD, BENEFICIARY_TOPIC_INDEX, PAYER_TOPIC_INDEX
from a402.core.exceptions import AbiDecodeError, TruncatedDataError
from a402.core.logging import get_logger
from a402.core.types import LogEntry, RejectionReason, VerificationResult, VerificationStatus
from a402.ledger.records import VerificationLedger, VerificationRecord

logger = get_logger("verify")


@dataclass(frozen=True)
class PaymentEventShape:
    """
    Where the payment facts live in a contract event log.

    Attributes:
        signature: Event signature (e.g. "AccessPurchased(address,address,...)").
            When set, only logs whose topic0 equals its hash are considered,
            and such a log with truncated data is a decode error. When None,
            topic0 is not checked and logs that do not fit are skipped.
        payer_topic: Topic index holding the payer address
        beneficiary_topic: Topic index holding the beneficiary address
        amount_word: Data word holding the amount paid
        resource_word: Data word that must equal keccak256(resource_id),
            or None to not bind the event to a resource
    """

    signature: str | None = None
    payer_topic: int = PAYER_TOPIC_INDEX
    beneficiary_topic: int = BENEFICIARY_TOPIC_INDEX
    amount_word: int = AMOUNT_DATA_WORD
    resource_word: int | None = None

    @property
    def topic0(self) -> bytes | None:
        return event_topic(self.signature) if self.signature else None

    @property
    def min_topics(self) -> int:
        return max(self.payer_topic, self.beneficiary_topic) + 1

    @property
    def min_data_length(self) -> int:
        last_word = max(self.amount_word, self.resource_word or 0)
        return (last_word + 1) * WORD


@dataclass(frozen=True)
class PaymentEvent:
    """Payment facts decoded from one log."""

    payer: str
    beneficiary: str
    amount: int
    resource_hash: bytes | None = None


def decode_payment_event(log: LogEntry, shape: PaymentEventShape) -> PaymentEvent:
    """
    Decode one log strictly against `shape`.

    Raises:
        TruncatedDataError: If topics or data are shorter than the shape needs
        AbiDecodeError: If a topic is not a valid address word
    """
    if len(log.topics) < shape.min_topics:
        raise TruncatedDataError(
            "Log has too few topics",
            offset=0,
            needed=shape.min_topics,
            available=len(log.topics),
        )
    if len(log.data) < shape.min_data_length:
        raise TruncatedDataError(
            "Log data too short for payment event",
            offset=0,
            needed=shape.min_data_length,
            available=len(log.data),
        )
    resource_hash = None
    if shape.resource_word is not None:
        start = shape.resource_word * WORD
        resource_hash = log.data[start:start + WORD]
    return PaymentEvent(
        payer=decode_address_word(log.topics[shape.payer_topic]),
        beneficiary=decode_address_word(log.topics[shape.beneficiary_topic]),
        amount=read_uint(log.data, shape.amount_word * WORD),
        resource_hash=resource_hash,
    )


class PaymentVerifier:
    """
    Verifies that a transaction paid the beneficiary at least the price.

    Usage:
        verifier = PaymentVerifier(reader, ledger, contract, creator, price_wei)
        result = await verifier.verify("0x...")
        if result.verified:
            unlock()
    """

    def __init__(
        self,
        reader: ChainReader,
        ledger: VerificationLedger,
        contract_address: str,
        beneficiary: str,
        min_amount: int,
        resource_id: str | None = None,
        event: PaymentEventShape | None = None,
    ) -> None:
        """
        Args:
            reader: Chain reader for receipts and transactions
            ledger: Verification table (idempotence store)
            contract_address: Contract the payment must be sent to
            beneficiary: Address that must receive the payment
            min_amount: Smallest accepted amount in on-chain units
            resource_id: Resource recorded with the payment (and matched
                against the event when event.resource_word is set)
            event: Layout of the payment event
        """
        self._reader = reader
        self._ledger = ledger
        self._contract = normalize_address(contract_address)
        self._beneficiary = normalize_address(beneficiary)
        self._min_amount = min_amount
        self._resource_id = resource_id
        self._event = event or PaymentEventShape()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

        if self._event.resource_word is not None and resource_id is None:
            raise ValueError("resource_id is required when the event carries a resource word")

    @property
    def ledger(self) -> VerificationLedger:
        return self._ledger

    def accepts(self, record: VerificationRecord) -> bool:
        """
        Whether a stored record proves payment to this verifier.

        The table may be shared by gates with other creators, prices or
        resources; their records never count here.
        """
        return (
            record.verified
            and record.beneficiary.lower() == self._beneficiary
            and record.amount >= self._min_amount
            and record.resource_id == self._resource_id
        )

    async def verify(self, tx_hash: str) -> VerificationResult:
        """
        Verify a payment transaction.

        Args:
            tx_hash: Transaction hash as submitted (any case)

        Returns:
            VerificationResult; anything but VERIFIED means payment required

        Raises:
            ValidationError: If tx_hash is not a 32-byte hex hash
            TransportError: If the chain could not be reached
        """
        key = normalize_tx_hash(tx_hash)

        existing = await self._ledger.get(key)
        if existing and self.accepts(existing):
            logger.debug(f"Payment {key} already verified")
            return VerificationResult.from_record(existing, cached=True)

        # One chain check per hash at a time; later callers reuse its record
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                existing = await self._ledger.get(key)
                if existing and self.accepts(existing):
                    return VerificationResult.from_record(existing, cached=True)
                return await self._verify_on_chain(key)
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                self._locks.pop(key, None)

    async def _verify_on_chain(self, tx_hash: str) -> VerificationResult:
        try:
            outcome = await self._check_chain(tx_hash)
        except AbiDecodeError as e:
            logger.warning(f"Payment {tx_hash} rejected: malformed chain data ({e})")
            return VerificationResult.rejected(tx_hash, RejectionReason.DECODE_ERROR, detail=str(e))

        if isinstance(outcome, VerificationResult):
            if outcome.pending:
                logger.info(f"Payment {tx_hash} pending")
            else:
                logger.warning(f"Payment {tx_hash} rejected: {outcome.reason.value}")
            return outcome

        record, inserted = await self._ledger.record(
            VerificationRecord(
                tx_hash=tx_hash,
                payer=outcome.payer,
                beneficiary=outcome.beneficiary,
                amount=outcome.amount,
                resource_id=self._resource_id,
            )
        )
        if not self.accepts(record):
            # First writer wins; the hash already unlocked a different resource
            logger.warning(
                f"Payment {tx_hash} rejected: already recorded for "
                f"{record.beneficiary} / {record.resource_id}"
            )
            return VerificationResult.rejected(
                tx_hash,
                RejectionReason.ALREADY_CLAIMED,
                detail=f"recorded for resource {record.resource_id}",
            )
        if inserted:
            logger.info(f"Payment {tx_hash} verified: {outcome.amount} wei from {outcome.payer}")
        return VerificationResult.from_record(record, cached=not inserted)

    async def _check_chain(self, tx_hash: str) -> VerificationResult | PaymentEvent:
        receipt = await self._reader.get_receipt(tx_hash)
        if receipt is None:
            tx = await self._reader.get_transaction(tx_hash)
            if tx is None:
                return VerificationResult.rejected(tx_hash, RejectionReason.NOT_FOUND)
            return VerificationResult(tx_hash=tx_hash, status=VerificationStatus.PENDING)

        if not receipt.succeeded:
            return VerificationResult.rejected(tx_hash, RejectionReason.REVERTED)

        tx = await self._reader.get_transaction(tx_hash)
        if tx is None or (tx.to or "").lower() != self._contract:
            return VerificationResult.rejected(
                tx_hash,
                RejectionReason.WRONG_DESTINATION,
                detail=f"sent to {tx.to}" if tx is not None else "transaction body unavailable",
            )

        contract_logs = [log for log in receipt.logs if log.address.lower() == self._contract]
        if not contract_logs:
            return VerificationResult.rejected(tx_hash, RejectionReason.NO_CONTRACT_EVENTS)

        event = self._find_payment(contract_logs)
        if event is None:
            return VerificationResult.rejected(tx_hash, RejectionReason.NO_MATCHING_EVENT)
        return event

    def _find_payment(self, logs: list[LogEntry]) -> PaymentEvent | None:
        """First log, in log order, that pays the beneficiary enough."""
        topic0 = self._event.topic0
        resource_hash = keccak256(self._resource_id) if self._event.resource_word is not None else None

        for log in logs:
            if topic0 is not None:
                if not log.topics or log.topics[0] != topic0:
                    continue
                # Declared event: malformed data is an error, not a miss
                event = decode_payment_event(log, self._event)
            else:
                try:
                    event = decode_payment_event(log, self._event)
                except AbiDecodeError as e:
                    logger.debug(f"Skipping non-conforming log {log.log_index}: {e}")
                    continue

            if event.beneficiary != self._beneficiary:
                continue
            if event.amount < self._min_amount:
                logger.debug(f"Log {log.log_index} pays {event.amount}, below {self._min_amount}")
                continue
            if resource_hash is not None and event.resource_hash != resource_hash:
                continue
            return event
        return None
