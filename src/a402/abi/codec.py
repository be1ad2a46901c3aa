"""
ABI codec for contract calls, return data and event logs.

Encoding follows the Solidity ABI head/tail layout:

    selector (4 bytes) | head words | tail

Static arguments occupy one 32-byte head word each. Dynamic arguments
(string, bytes) put an offset in their head word, relative to the start of
the argument block, and append `length | data padded to 32 bytes` to the
tail.

Decoding walks a declared shape (a sequence of FieldShape) and checks every
offset and length against the buffer before reading. Nothing here ever
reads past the end of the data; a response that would require it raises
TruncatedDataError.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Union

from a402.abi.keccak import keccak256
from a402.core.exceptions import (
    AbiDecodeError,
    AbiEncodeError,
    TruncatedDataError,
    UnsupportedTypeError,
)

WORD = 32

_ADDRESS_RE = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")
_SIGNATURE_RE = re.compile(r"^([A-Za-z_$][A-Za-z0-9_$]*)\((.*)\)$")
_UINT_RE = re.compile(r"^uint(\d*)$")
_UINT_ALIAS_RE = re.compile(r"\buint\b")

STATIC_TYPES = ("address", "bool", "bytes32")
DYNAMIC_TYPES = ("string", "bytes")


# ───────────────────────────────────────────────────────────────────
# Hex helpers
# ───────────────────────────────────────────────────────────────────

def hex_to_bytes(value: str | bytes | None) -> bytes:
    """
    Strictly convert 0x-prefixed hex from an RPC response into bytes.

    Raises:
        AbiDecodeError: If the value is not valid hex
    """
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise AbiDecodeError(f"Expected hex string, got {type(value).__name__}")

    text = value[2:] if value[:2] in ("0x", "0X") else value
    if len(text) % 2:
        raise AbiDecodeError(f"Hex string has odd length: {value[:20]}...")
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise AbiDecodeError(f"Invalid hex string: {value[:20]}...") from None


def to_hex(data: bytes) -> str:
    """Bytes as 0x-prefixed lowercase hex."""
    return "0x" + data.hex()


def normalize_address(address: str) -> str:
    """
    Lower-case a 20-byte hex address with 0x prefix.

    Raises:
        AbiEncodeError: If the address is malformed
    """
    if not isinstance(address, str) or not _ADDRESS_RE.match(address.strip()):
        raise AbiEncodeError(f"Invalid address: {address!r}")
    address = address.strip().lower()
    return address if address.startswith("0x") else "0x" + address


def read_word(data: bytes, offset: int) -> bytes:
    """Read one 32-byte word at a byte offset, bounds checked."""
    if offset < 0 or offset + WORD > len(data):
        raise TruncatedDataError(
            "Word read past end of data",
            offset=offset,
            needed=WORD,
            available=len(data),
        )
    return data[offset:offset + WORD]


def read_uint(data: bytes, offset: int) -> int:
    return int.from_bytes(read_word(data, offset), "big")


def decode_address_word(word: bytes) -> str:
    """
    Decode a left-padded 32-byte word into an address.

    Raises:
        AbiDecodeError: If the 12 high bytes are not zero
    """
    if len(word) != WORD:
        raise AbiDecodeError(f"Address word must be 32 bytes, got {len(word)}")
    if any(word[:12]):
        raise AbiDecodeError(f"Address word has non-zero high bytes: {word.hex()}")
    return "0x" + word[12:].hex()


# ───────────────────────────────────────────────────────────────────
# Signatures, selectors, topics
# ───────────────────────────────────────────────────────────────────

def canonical_signature(signature: str) -> str:
    """Signature as hashed on-chain: no spaces, and the `uint` alias spelled `uint256`."""
    name, paren, args = signature.replace(" ", "").partition("(")
    return name + paren + _UINT_ALIAS_RE.sub("uint256", args)


def parse_signature(signature: str) -> tuple[str, list[str]]:
    """
    Split "hasAccess(string,address)" into ("hasAccess", ["string", "address"]).

    Only flat signatures are accepted; tuple arguments are not encodable here.
    """
    match = _SIGNATURE_RE.match(canonical_signature(signature))
    if not match:
        raise AbiEncodeError(f"Malformed function signature: {signature!r}")
    name, args = match.groups()
    types = [t for t in args.split(",")] if args else []
    if any(not t for t in types):
        raise AbiEncodeError(f"Malformed function signature: {signature!r}")
    return name, types


def function_selector(signature: str) -> bytes:
    """First 4 bytes of keccak256 of the canonical signature."""
    return keccak256(canonical_signature(signature))[:4]


def event_topic(signature: str) -> bytes:
    """Full keccak256 of the canonical event signature (topics[0])."""
    return keccak256(canonical_signature(signature))


# ───────────────────────────────────────────────────────────────────
# Encoding
# ───────────────────────────────────────────────────────────────────

def _uint_bits(abi_type: str) -> int | None:
    match = _UINT_RE.match(abi_type)
    if not match:
        return None
    bits = int(match.group(1) or 256)
    if bits % 8 or not 8 <= bits <= 256:
        return None
    return bits


def is_dynamic(abi_type: str) -> bool:
    return abi_type in DYNAMIC_TYPES


def _check_supported(abi_type: str) -> None:
    if abi_type in STATIC_TYPES or abi_type in DYNAMIC_TYPES or _uint_bits(abi_type):
        return
    raise UnsupportedTypeError(abi_type)


def _encode_uint(value: Any, bits: int) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise AbiEncodeError(f"uint{bits} expects int, got {type(value).__name__}")
    if value < 0 or value >= 1 << bits:
        raise AbiEncodeError(f"Value out of range for uint{bits}: {value}")
    return value.to_bytes(WORD, "big")


def _encode_static(abi_type: str, value: Any) -> bytes:
    bits = _uint_bits(abi_type)
    if bits:
        return _encode_uint(value, bits)

    if abi_type == "address":
        raw = bytes.fromhex(normalize_address(value)[2:])
        return raw.rjust(WORD, b"\x00")

    if abi_type == "bool":
        if not isinstance(value, bool):
            raise AbiEncodeError(f"bool expects bool, got {type(value).__name__}")
        return (1 if value else 0).to_bytes(WORD, "big")

    if abi_type == "bytes32":
        if isinstance(value, str):
            try:
                value = hex_to_bytes(value)
            except AbiDecodeError:
                raise AbiEncodeError(f"bytes32 expects 32 bytes of hex: {value!r}") from None
        if not isinstance(value, (bytes, bytearray)) or len(value) != WORD:
            raise AbiEncodeError("bytes32 expects exactly 32 bytes")
        return bytes(value)

    raise UnsupportedTypeError(abi_type)


def _encode_dynamic(abi_type: str, value: Any) -> bytes:
    if abi_type == "string":
        if not isinstance(value, str):
            raise AbiEncodeError(f"string expects str, got {type(value).__name__}")
        raw = value.encode("utf-8")
    else:
        if not isinstance(value, (bytes, bytearray)):
            raise AbiEncodeError(f"bytes expects bytes, got {type(value).__name__}")
        raw = bytes(value)

    padded = raw + b"\x00" * (-len(raw) % WORD)
    return len(raw).to_bytes(WORD, "big") + padded


def encode_arguments(types: Sequence[str], args: Sequence[Any]) -> bytes:
    """
    Encode an argument list without selector.

    Raises:
        AbiEncodeError: On arity mismatch or invalid values
        UnsupportedTypeError: On types outside the supported set
    """
    if len(types) != len(args):
        raise AbiEncodeError(
            f"Expected {len(types)} arguments, got {len(args)}",
            details={"types": list(types)},
        )
    for abi_type in types:
        _check_supported(abi_type)

    head_size = WORD * len(types)
    head: list[bytes] = []
    tail = b""
    for abi_type, value in zip(types, args):
        if is_dynamic(abi_type):
            head.append((head_size + len(tail)).to_bytes(WORD, "big"))
            tail += _encode_dynamic(abi_type, value)
        else:
            head.append(_encode_static(abi_type, value))
    return b"".join(head) + tail


def encode_call(signature: str, args: Sequence[Any]) -> bytes:
    """
    Encode a contract call: selector followed by the argument block.

    Example:
        >>> encode_call("hasAccess(string,address)", ["video-001", "0xabc..."])
    """
    _, types = parse_signature(signature)
    return function_selector(signature) + encode_arguments(types, args)


# ───────────────────────────────────────────────────────────────────
# Decoding
# ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FieldShape:
    """
    Declared type of one field in a return tuple.

    For type "tuple", `components` lists the nested fields.
    """

    name: str
    type: str
    components: tuple[FieldShape, ...] = ()

    def __post_init__(self) -> None:
        if self.type == "tuple":
            if not self.components:
                raise UnsupportedTypeError("tuple", details={"field": self.name, "reason": "no components"})
        else:
            _check_supported(self.type)

    @property
    def dynamic(self) -> bool:
        if self.type == "tuple":
            return any(c.dynamic for c in self.components)
        return is_dynamic(self.type)

    @property
    def head_size(self) -> int:
        """Bytes this field occupies in its enclosing head."""
        if self.type == "tuple" and not self.dynamic:
            return sum(c.head_size for c in self.components)
        return WORD


DecodedValue = Union[int, bool, str, bytes, "DecodedTuple"]


class DecodedTuple:
    """
    Ordered, immutable result of decoding a tuple.

    Fields are accessible by name (``t["price"]``, ``t.price``) or position
    (``t[0]``).
    """

    __slots__ = ("_names", "_values")

    def __init__(self, fields: Sequence[tuple[str, DecodedValue]]) -> None:
        self._names: tuple[str, ...] = tuple(name for name, _ in fields)
        self._values: tuple[DecodedValue, ...] = tuple(value for _, value in fields)

    def __getitem__(self, key: int | str) -> DecodedValue:
        if isinstance(key, int):
            return self._values[key]
        try:
            return self._values[self._names.index(key)]
        except ValueError:
            raise KeyError(key) from None

    def __getattr__(self, name: str) -> DecodedValue:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[DecodedValue]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DecodedTuple):
            return self._names == other._names and self._values == other._values
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._names, self._values))

    def __repr__(self) -> str:
        inner = ", ".join(f"{n}={v!r}" for n, v in zip(self._names, self._values))
        return f"DecodedTuple({inner})"

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def values(self) -> tuple[DecodedValue, ...]:
        return self._values

    def as_dict(self) -> dict[str, Any]:
        """Plain dict, nested tuples converted recursively."""
        return {
            name: value.as_dict() if isinstance(value, DecodedTuple) else value
            for name, value in zip(self._names, self._values)
        }


def _decode_static(abi_type: str, word: bytes) -> DecodedValue:
    bits = _uint_bits(abi_type)
    if bits:
        value = int.from_bytes(word, "big")
        if value >> bits:
            raise AbiDecodeError(f"Value does not fit uint{bits}")
        return value
    if abi_type == "address":
        return decode_address_word(word)
    if abi_type == "bool":
        value = int.from_bytes(word, "big")
        if value not in (0, 1):
            raise AbiDecodeError(f"Invalid bool word: {word.hex()}")
        return value == 1
    if abi_type == "bytes32":
        return word
    raise UnsupportedTypeError(abi_type)


def _decode_dynamic(abi_type: str, data: bytes, offset: int) -> DecodedValue:
    length = read_uint(data, offset)
    start = offset + WORD
    if length > len(data) - start:
        raise TruncatedDataError(
            f"Dynamic {abi_type} length runs past end of data",
            offset=start,
            needed=length,
            available=max(len(data) - start, 0),
        )
    raw = data[start:start + length]
    if abi_type == "bytes":
        return raw
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise AbiDecodeError(f"String at offset {offset} is not valid UTF-8") from None


def _resolve_offset(data: bytes, base: int, head_pos: int) -> int:
    relative = read_uint(data, head_pos)
    target = base + relative
    if relative >= len(data) or target + WORD > len(data):
        raise TruncatedDataError(
            "Dynamic offset points past end of data",
            offset=target if relative < len(data) else relative,
            needed=WORD,
            available=len(data),
        )
    return target


def _decode_fields(data: bytes, base: int, shape: Sequence[FieldShape]) -> DecodedTuple:
    head_size = sum(f.head_size for f in shape)
    if base + head_size > len(data):
        raise TruncatedDataError(
            f"Data too short for {len(shape)} fields",
            offset=base,
            needed=head_size,
            available=max(len(data) - base, 0),
        )

    fields: list[tuple[str, DecodedValue]] = []
    pos = base
    for field_shape in shape:
        if field_shape.type == "tuple":
            if field_shape.dynamic:
                target = _resolve_offset(data, base, pos)
                value: DecodedValue = _decode_fields(data, target, field_shape.components)
            else:
                value = _decode_fields(data, pos, field_shape.components)
        elif field_shape.dynamic:
            value = _decode_dynamic(field_shape.type, data, _resolve_offset(data, base, pos))
        else:
            value = _decode_static(field_shape.type, read_word(data, pos))
        fields.append((field_shape.name, value))
        pos += field_shape.head_size
    return DecodedTuple(fields)


def decode_return(data: bytes | str, shape: Sequence[FieldShape]) -> DecodedTuple:
    """
    Decode return data (or a log's data section) against a declared shape.

    Offsets of top-level dynamic fields are relative to the start of `data`.

    Raises:
        TruncatedDataError: If any read would run past the buffer
        AbiDecodeError: If a word is not a valid value for its type
    """
    buffer = hex_to_bytes(data) if isinstance(data, str) else bytes(data)
    return _decode_fields(buffer, 0, shape)


def strip_selector(calldata: bytes) -> bytes:
    """Drop the 4-byte selector from encoded calldata."""
    if len(calldata) < 4:
        raise AbiDecodeError("Calldata shorter than a selector")
    return calldata[4:]


def shape_of(signature: str) -> tuple[FieldShape, ...]:
    """Positional shape mirroring a signature's own arguments (arg0, arg1, ...)."""
    _, types = parse_signature(signature)
    return tuple(FieldShape(f"arg{i}", t) for i, t in enumerate(types))


__all__ = [
    "WORD",
    "FieldShape",
    "DecodedTuple",
    "DecodedValue",
    "hex_to_bytes",
    "to_hex",
    "normalize_address",
    "read_word",
    "read_uint",
    "decode_address_word",
    "parse_signature",
    "function_selector",
    "event_topic",
    "is_dynamic",
    "encode_arguments",
    "encode_call",
    "decode_return",
    "strip_selector",
    "shape_of",
]
