"""Shared fixtures and chain-data builders for the A402 test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from a402.abi.codec import event_topic
from a402.chain.reader import ChainReader
from a402.core.types import LogEntry, Receipt, Transaction
from a402.ledger import VerificationLedger
from a402.storage.memory import InMemoryStorage

CONTRACT = "0x461da8e28b276586eb9dc4f010ebff7f126a7076"
CREATOR = "0x" + "c1" * 20
PAYER = "0x" + "a1" * 20
OTHER = "0x" + "0e" * 20
TX_HASH = "0x" + "ab" * 32
PRICE_WEI = 10**15  # 0.001 native
PAYMENT_EVENT = "AccessPurchased(address,address,bytes32,uint256)"


def word(value: int) -> bytes:
    return value.to_bytes(32, "big")


def address_topic(address: str) -> bytes:
    return bytes(12) + bytes.fromhex(address[2:])


def make_log(
    amount: int = PRICE_WEI,
    beneficiary: str = CREATOR,
    payer: str = PAYER,
    address: str = CONTRACT,
    first_word: bytes = bytes(32),
    topic0: bytes | None = None,
    log_index: int = 0,
) -> LogEntry:
    """Payment log: topics [event, payer, beneficiary], data [word0, amount]."""
    return LogEntry(
        address=address,
        topics=(topic0 or event_topic(PAYMENT_EVENT), address_topic(payer), address_topic(beneficiary)),
        data=first_word + word(amount),
        log_index=log_index,
    )


def make_receipt(logs: list[LogEntry] | None = None, status: int = 1, tx_hash: str = TX_HASH) -> Receipt:
    return Receipt(
        tx_hash=tx_hash,
        status=status,
        logs=tuple(logs if logs is not None else [make_log()]),
        block_number=100,
        to=CONTRACT,
        from_address=PAYER,
    )


def make_tx(to: str | None = CONTRACT, block_number: int | None = 100, tx_hash: str = TX_HASH) -> Transaction:
    return Transaction(
        tx_hash=tx_hash,
        from_address=PAYER,
        to=to,
        value=PRICE_WEI,
        block_number=block_number,
    )


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def ledger(storage) -> VerificationLedger:
    return VerificationLedger(storage)


@pytest.fixture
def reader() -> AsyncMock:
    """ChainReader double serving one successful payment by default."""
    mock = AsyncMock(spec=ChainReader)
    mock.get_receipt.return_value = make_receipt()
    mock.get_transaction.return_value = make_tx()
    return mock
