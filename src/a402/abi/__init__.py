"""
Keccak-256 and Solidity ABI encoding for A402.
"""

from .codec import (
    DecodedTuple,
    FieldShape,
    canonical_signature,
    decode_return,
    encode_arguments,
    encode_call,
    event_topic,
    function_selector,
    parse_signature,
)
from .keccak import keccak, keccak256, keccak256_hex

__all__ = [
    "DecodedTuple",
    "FieldShape",
    "canonical_signature",
    "decode_return",
    "encode_arguments",
    "encode_call",
    "event_topic",
    "function_selector",
    "keccak",
    "keccak256",
    "keccak256_hex",
    "parse_signature",
]
