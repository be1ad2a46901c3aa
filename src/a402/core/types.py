"""
Type definitions for A402.

Enums and data classes shared by the chain reader, the verifier, the
content resolver and the facade.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from a402.abi.codec import hex_to_bytes
from a402.core.exceptions import AbiDecodeError

if TYPE_CHECKING:
    from a402.ledger.records import VerificationRecord


def _hex_int(value: Any) -> int | None:
    """Parse an RPC quantity ("0x1a") into an int."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    data = str(value)
    try:
        return int(data, 16)
    except ValueError:
        raise AbiDecodeError(f"Invalid hex quantity: {data[:20]}") from None


def _lower(value: Any) -> str | None:
    return value.lower() if isinstance(value, str) else None


# ---------------------------------------------------------------------------
# Chain data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LogEntry:
    """A single event log from a transaction receipt."""

    address: str
    topics: tuple[bytes, ...]
    data: bytes
    log_index: int | None = None

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> LogEntry:
        """
        Parse a log object from eth_getTransactionReceipt.

        Raises:
            AbiDecodeError: If any hex field is malformed
        """
        return cls(
            address=_lower(raw.get("address")) or "",
            topics=tuple(hex_to_bytes(t) for t in raw.get("topics") or []),
            data=hex_to_bytes(raw.get("data") or "0x"),
            log_index=_hex_int(raw.get("logIndex")),
        )


@dataclass(frozen=True)
class Receipt:
    """Mined transaction outcome (eth_getTransactionReceipt)."""

    tx_hash: str
    status: int | None
    logs: tuple[LogEntry, ...] = ()
    block_number: int | None = None
    to: str | None = None
    from_address: str | None = None

    SUCCESS = 1

    @property
    def succeeded(self) -> bool:
        return self.status == self.SUCCESS

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> Receipt:
        return cls(
            tx_hash=_lower(raw.get("transactionHash")) or "",
            status=_hex_int(raw.get("status")),
            logs=tuple(LogEntry.from_rpc(log) for log in raw.get("logs") or []),
            block_number=_hex_int(raw.get("blockNumber")),
            to=_lower(raw.get("to")),
            from_address=_lower(raw.get("from")),
        )


@dataclass(frozen=True)
class Transaction:
    """Transaction body (eth_getTransactionByHash)."""

    tx_hash: str
    from_address: str | None
    to: str | None
    value: int = 0
    input: bytes = b""
    block_number: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.block_number is None

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> Transaction:
        return cls(
            tx_hash=_lower(raw.get("hash")) or "",
            from_address=_lower(raw.get("from")),
            to=_lower(raw.get("to")),
            value=_hex_int(raw.get("value")) or 0,
            input=hex_to_bytes(raw.get("input") or "0x"),
            block_number=_hex_int(raw.get("blockNumber")),
        )


# ---------------------------------------------------------------------------
# Contract data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Resource:
    """A paywalled resource as stored by the vault contract (read only)."""

    resource_id: str
    price: int
    lifetime: bool
    active: bool
    exists: bool
    content_type: str
    content_ref: str
    total_payments: int = 0
    total_revenue: int = 0

    @property
    def purchasable(self) -> bool:
        return self.exists and self.active


@dataclass(frozen=True)
class PaymentCall:
    """Unsigned payable call for a wallet to sign and broadcast."""

    to: str
    data: str
    value: int

    def to_tx_params(self, sender: str | None = None) -> dict[str, str]:
        """eth_sendTransaction params as a wallet expects them."""
        params = {"to": self.to, "data": self.data, "value": hex(self.value)}
        if sender:
            params["from"] = sender
        return params


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

class VerificationStatus(str, Enum):
    """Outcome of a payment verification attempt."""

    VERIFIED = "verified"
    PENDING = "pending"
    REJECTED = "rejected"


class RejectionReason(str, Enum):
    """Why a transaction does not count as payment."""

    NOT_FOUND = "not_found"
    REVERTED = "reverted"
    WRONG_DESTINATION = "wrong_destination"
    NO_CONTRACT_EVENTS = "no_contract_events"
    NO_MATCHING_EVENT = "no_matching_event"
    DECODE_ERROR = "decode_error"
    ALREADY_CLAIMED = "already_claimed"


_REJECTION_MESSAGES = {
    RejectionReason.NOT_FOUND: "Transaction not found",
    RejectionReason.REVERTED: "Transaction reverted on-chain",
    RejectionReason.WRONG_DESTINATION: "Transaction not sent to the verifier contract",
    RejectionReason.NO_CONTRACT_EVENTS: "No events from contract, call may have failed",
    RejectionReason.NO_MATCHING_EVENT: "Payment event not found with matching beneficiary and amount",
    RejectionReason.DECODE_ERROR: "Malformed chain data",
    RejectionReason.ALREADY_CLAIMED: "Transaction already redeemed for another resource",
}


@dataclass(frozen=True)
class VerificationResult:
    """
    Result of PaymentVerifier.verify().

    Anything other than VERIFIED means "payment required": callers must not
    unlock content on PENDING or REJECTED.
    """

    tx_hash: str
    status: VerificationStatus
    reason: RejectionReason | None = None
    payer: str | None = None
    beneficiary: str | None = None
    amount: int | None = None
    record: VerificationRecord | None = None
    cached: bool = False
    detail: str | None = None

    @property
    def verified(self) -> bool:
        return self.status == VerificationStatus.VERIFIED

    @property
    def pending(self) -> bool:
        return self.status == VerificationStatus.PENDING

    @property
    def message(self) -> str:
        if self.status == VerificationStatus.VERIFIED:
            return "Payment already verified" if self.cached else "Payment verified"
        if self.status == VerificationStatus.PENDING:
            return "Pending, try again shortly"
        base = _REJECTION_MESSAGES.get(self.reason, "Payment rejected") if self.reason else "Payment rejected"
        return f"{base}: {self.detail}" if self.detail else base

    @classmethod
    def rejected(
        cls, tx_hash: str, reason: RejectionReason, detail: str | None = None
    ) -> VerificationResult:
        return cls(tx_hash=tx_hash, status=VerificationStatus.REJECTED, reason=reason, detail=detail)

    @classmethod
    def from_record(cls, record: VerificationRecord, cached: bool) -> VerificationResult:
        return cls(
            tx_hash=record.tx_hash,
            status=VerificationStatus.VERIFIED,
            payer=record.payer,
            beneficiary=record.beneficiary,
            amount=record.amount,
            record=record,
            cached=cached,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "verified": self.verified,
            "status": self.status.value,
            "message": self.message,
        }
        if self.pending:
            data["pending"] = True
        if self.reason:
            data["error"] = self.reason.value
        if self.verified:
            data["payer"] = self.payer
            data["amount"] = str(self.amount)
        return data


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

class ContentKind(str, Enum):
    """Canonical content source classification."""

    IPFS = "ipfs"
    DIRECT_MEDIA = "direct-media"
    VIDEO_PLATFORM = "video-platform"
    UNKNOWN = "unknown"

    @property
    def payload_type(self) -> str:
        """Legacy contentType label understood by the player widget."""
        return _PAYLOAD_TYPES[self]


_PAYLOAD_TYPES = {
    ContentKind.IPFS: "ipfs",
    ContentKind.DIRECT_MEDIA: "direct",
    ContentKind.VIDEO_PLATFORM: "youtube",
    ContentKind.UNKNOWN: "unknown",
}


@dataclass(frozen=True)
class ContentDescriptor:
    """Where and how to load a piece of gated content."""

    kind: ContentKind
    resolved_locator: str
    platform_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Response payload shape consumed by the player widget."""
        payload: dict[str, Any] = {
            "videoUrl": self.resolved_locator or None,
            "contentType": self.kind.payload_type,
        }
        if self.platform_id:
            payload["videoId"] = self.platform_id
        return payload


@dataclass
class AccessCheck:
    """Result of A402Gate.check_access()."""

    has_access: bool
    source: str | None = None  # "session" | "on-chain"
    lifetime: bool = False
    message: str = ""
    content: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"hasAccess": self.has_access, "message": self.message}
        if self.source:
            data["source"] = self.source
        if self.lifetime:
            data["lifetime"] = True
        if self.has_access:
            data.update(self.content)
        return data
