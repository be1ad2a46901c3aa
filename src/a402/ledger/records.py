"""
Verification table.

Maps a normalized transaction hash to the outcome of a successful
verification. Only VERIFIED outcomes are stored: pending and rejected
transactions are re-checked on the next request. Records are never
mutated once written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from a402.core.logging import get_logger

if TYPE_CHECKING:
    from a402.storage.base import StorageBackend

logger = get_logger("ledger")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class VerificationRecord:
    """
    A verified payment.

    Attributes:
        tx_hash: Lower-cased transaction hash (the table key)
        verified: Always True for stored records
        payer: Address that paid (event topic 1)
        beneficiary: Address that received the payment (event topic 2)
        amount: Amount paid in smallest on-chain units
        timestamp: When the payment was verified (UTC)
        resource_id: Resource the payment unlocked
    """

    tx_hash: str
    payer: str
    beneficiary: str
    amount: int
    resource_id: str | None = None
    verified: bool = True
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "tx_hash": self.tx_hash,
            "verified": self.verified,
            "payer": self.payer,
            "beneficiary": self.beneficiary,
            # Decimal string: JSON numbers lose precision above 2**53
            "amount": str(self.amount),
            "timestamp": self.timestamp.isoformat(),
            "resource_id": self.resource_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VerificationRecord:
        """Create VerificationRecord from dictionary."""
        ts_str = data.get("timestamp")
        timestamp = datetime.fromisoformat(ts_str) if ts_str else _utcnow()
        return cls(
            tx_hash=data["tx_hash"],
            verified=bool(data.get("verified", True)),
            payer=data.get("payer", ""),
            beneficiary=data.get("beneficiary", ""),
            amount=int(data.get("amount", "0")),
            timestamp=timestamp,
            resource_id=data.get("resource_id"),
        )


class VerificationLedger:
    """
    Verification table using StorageBackend.

    The first record stored for a hash wins; later writes for the same hash
    return the stored record unchanged.
    """

    COLLECTION = "verifications"

    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage

    @property
    def storage(self) -> StorageBackend:
        return self._storage

    async def get(self, tx_hash: str) -> VerificationRecord | None:
        """Look up the verified record for a hash, if any."""
        data = await self._storage.get(self.COLLECTION, tx_hash.strip().lower())
        if not data:
            return None
        return VerificationRecord.from_dict(data)

    async def record(self, record: VerificationRecord) -> tuple[VerificationRecord, bool]:
        """
        Insert a record unless one already exists for its hash.

        Returns:
            (stored record, True if this call inserted it)
        """
        key = record.tx_hash.lower()
        inserted = await self._storage.save_if_absent(self.COLLECTION, key, record.to_dict())
        if inserted:
            logger.info(f"Recorded verified payment {key} from {record.payer} ({record.amount} wei)")
            return record, True

        existing = await self.get(key)
        if existing is None:
            # Deleted between the two calls; store ours
            await self._storage.save(self.COLLECTION, key, record.to_dict())
            return record, True
        logger.debug(f"Payment {key} already recorded, keeping first record")
        return existing, False

    async def find_verified_by_payer(
        self,
        payer: str,
        resource_id: str | None = None,
        beneficiary: str | None = None,
    ) -> VerificationRecord | None:
        """Most recent verified record paid by `payer`, optionally narrowed to one resource and payee."""
        filters: dict[str, Any] = {"payer": payer.lower(), "verified": True}
        if resource_id is not None:
            filters["resource_id"] = resource_id
        if beneficiary is not None:
            filters["beneficiary"] = beneficiary.lower()
        rows = await self._storage.query(self.COLLECTION, filters)
        if not rows:
            return None
        records = [VerificationRecord.from_dict(row) for row in rows]
        return max(records, key=lambda r: r.timestamp)

    async def count(self) -> int:
        return await self._storage.count(self.COLLECTION)
