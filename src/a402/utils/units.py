"""Native currency unit conversions for A402."""

from __future__ import annotations

from decimal import Decimal

from a402.core.exceptions import ValidationError

NATIVE_DECIMALS = 18


def to_wei(amount: str | Decimal | int, decimals: int = NATIVE_DECIMALS) -> int:
    """
    Convert a human amount ("0.001") into the smallest on-chain unit.

    Works on the decimal string so no float rounding is involved.
    Fractional digits beyond `decimals` are truncated.

    Raises:
        ValidationError: If the amount is negative or not a number
    """
    text = format(amount, "f") if isinstance(amount, Decimal) else str(amount).strip()
    if not text:
        raise ValidationError("Amount is empty")
    if text.startswith("-"):
        raise ValidationError(f"Amount must not be negative: {amount}")

    whole, _, frac = text.partition(".")
    whole = whole or "0"
    if not whole.isdigit() or (frac and not frac.isdigit()):
        raise ValidationError(f"Invalid amount: {amount!r}")

    frac = frac.ljust(decimals, "0")[:decimals]
    return int(whole + frac)


def from_wei(wei: int | str, decimals: int = NATIVE_DECIMALS) -> str:
    """
    Convert smallest units back into a human amount string.

    Trailing zeros are dropped: 1000000000000000 -> "0.001".
    """
    value = int(wei)
    if value < 0:
        raise ValidationError(f"Amount must not be negative: {wei}")

    digits = str(value).rjust(decimals + 1, "0")
    whole = digits[:-decimals] if decimals else digits
    frac = digits[-decimals:].rstrip("0") if decimals else ""
    return f"{whole}.{frac}" if frac else whole
