"""
Keccak-256 digest used for function selectors and event topics.

This is the original Keccak submission padding (domain byte 0x01), which is
what Ethereum-style chains use. It is NOT hashlib.sha3_256: FIPS-202 SHA-3
pads with 0x06 and produces different digests for every input.

Pure Python, no dependencies. Lanes are Python ints masked to 64 bits.
"""

from __future__ import annotations

_MASK_64 = (1 << 64) - 1

_ROUNDS = 24

_ROUND_CONSTANTS = (
    0x0000000000000001, 0x0000000000008082, 0x800000000000808A, 0x8000000080008000,
    0x000000000000808B, 0x0000000080000001, 0x8000000080008081, 0x8000000000008009,
    0x000000000000008A, 0x0000000000000088, 0x0000000080008009, 0x000000008000000A,
    0x000000008000808B, 0x800000000000008B, 0x8000000000008089, 0x8000000000008003,
    0x8000000000008002, 0x8000000000000080, 0x000000000000800A, 0x800000008000000A,
    0x8000000080008081, 0x8000000000008080, 0x0000000080000001, 0x8000000080008008,
)

# Rotation offsets r[x][y]
_ROTATIONS = (
    (0, 36, 3, 41, 18),
    (1, 44, 10, 45, 2),
    (62, 6, 43, 15, 61),
    (28, 55, 25, 21, 56),
    (27, 20, 39, 8, 14),
)

# Original Keccak multi-rate padding: first pad byte 0x01, last byte |= 0x80
_DOMAIN_PADDING = 0x01
_FINAL_BIT = 0x80

SUPPORTED_BITS = (224, 256, 384, 512)


def _rotl(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (64 - shift))) & _MASK_64


def _keccak_f(state: list[int]) -> None:
    """Keccak-f[1600] permutation, in place. state[x + 5*y] is lane (x, y)."""
    for round_constant in _ROUND_CONSTANTS:
        # θ
        columns = [
            state[x] ^ state[x + 5] ^ state[x + 10] ^ state[x + 15] ^ state[x + 20]
            for x in range(5)
        ]
        for x in range(5):
            d = columns[(x - 1) % 5] ^ _rotl(columns[(x + 1) % 5], 1)
            for y in range(0, 25, 5):
                state[x + y] ^= d

        # ρ and π
        moved = [0] * 25
        for x in range(5):
            for y in range(5):
                moved[y + 5 * ((2 * x + 3 * y) % 5)] = _rotl(state[x + 5 * y], _ROTATIONS[x][y])

        # χ
        for y in range(0, 25, 5):
            row = moved[y:y + 5]
            for x in range(5):
                state[x + y] = row[x] ^ ((~row[(x + 1) % 5]) & row[(x + 2) % 5])

        # ι
        state[0] ^= round_constant


def _pad(data: bytes, rate: int) -> bytes:
    padded = bytearray(data)
    padded.append(_DOMAIN_PADDING)
    padded.extend(b"\x00" * (-len(padded) % rate))
    padded[-1] |= _FINAL_BIT
    return bytes(padded)


def keccak(data: bytes | bytearray | str, bits: int = 256) -> bytes:
    """
    Compute a Keccak digest of `bits` output bits.

    Args:
        data: Input bytes; str is UTF-8 encoded
        bits: Output width, one of 224, 256, 384, 512

    Returns:
        Digest of bits // 8 bytes
    """
    if bits not in SUPPORTED_BITS:
        raise ValueError(f"Unsupported Keccak width: {bits}. Supported: {SUPPORTED_BITS}")
    if isinstance(data, str):
        data = data.encode("utf-8")

    rate = 200 - 2 * (bits // 8)
    lanes_per_block = rate // 8
    state = [0] * 25

    padded = _pad(bytes(data), rate)
    for start in range(0, len(padded), rate):
        block = padded[start:start + rate]
        for i in range(lanes_per_block):
            state[i] ^= int.from_bytes(block[8 * i:8 * i + 8], "little")
        _keccak_f(state)

    out_len = bits // 8
    output = bytearray()
    while True:
        for i in range(lanes_per_block):
            output += state[i].to_bytes(8, "little")
        if len(output) >= out_len:
            return bytes(output[:out_len])
        _keccak_f(state)


def keccak256(data: bytes | bytearray | str) -> bytes:
    """32-byte Keccak-256 digest."""
    return keccak(data, 256)


def keccak256_hex(data: bytes | bytearray | str) -> str:
    """Keccak-256 digest as 0x-prefixed lowercase hex."""
    return "0x" + keccak256(data).hex()


__all__ = ["keccak", "keccak256", "keccak256_hex", "SUPPORTED_BITS"]
