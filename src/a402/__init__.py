"""
A402 - Pay-per-access content gating verified on-chain.

A viewer pays the vault contract from their wallet and submits the
transaction hash; A402 reads the chain to decide whether that transaction
is a sufficient payment, then tells the caller where the content lives.

Usage:
    >>> from a402 import A402Gate, Config
    >>>
    >>> async with A402Gate(Config.from_env()) as gate:
    ...     result = await gate.verify_payment("0x...")
    ...     if result.verified:
    ...         payload = gate.content_payload()
"""

from a402.abi.codec import DecodedTuple, FieldShape, decode_return, encode_call
from a402.abi.keccak import keccak256
from a402.chain import ChainReader, VaultContract
from a402.client import A402Gate
from a402.content import ContentSourceResolver
from a402.core.config import Config
from a402.core.exceptions import (
    A402Error,
    AbiDecodeError,
    AbiEncodeError,
    AbiError,
    ConfigurationError,
    PaymentRequiredError,
    RpcError,
    TransportError,
    TruncatedDataError,
    UnsupportedTypeError,
    ValidationError,
)
from a402.core.types import (
    AccessCheck,
    ContentDescriptor,
    ContentKind,
    PaymentCall,
    Receipt,
    RejectionReason,
    Resource,
    Transaction,
    VerificationResult,
    VerificationStatus,
)
from a402.ledger import VerificationLedger, VerificationRecord
from a402.verify import PaymentEventShape, PaymentVerifier

__version__ = "0.1.0"
__all__ = [
    # Main entry point
    "A402Gate",
    "Config",
    # Core components
    "ChainReader",
    "VaultContract",
    "PaymentVerifier",
    "PaymentEventShape",
    "VerificationLedger",
    "VerificationRecord",
    "ContentSourceResolver",
    # Codec
    "keccak256",
    "encode_call",
    "decode_return",
    "FieldShape",
    "DecodedTuple",
    # Types
    "AccessCheck",
    "ContentDescriptor",
    "ContentKind",
    "PaymentCall",
    "Receipt",
    "RejectionReason",
    "Resource",
    "Transaction",
    "VerificationResult",
    "VerificationStatus",
    # Exceptions
    "A402Error",
    "ConfigurationError",
    "ValidationError",
    "TransportError",
    "RpcError",
    "AbiError",
    "AbiEncodeError",
    "UnsupportedTypeError",
    "AbiDecodeError",
    "TruncatedDataError",
    "PaymentRequiredError",
]
