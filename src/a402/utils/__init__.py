"""Utility functions for A402."""

from a402.utils.units import NATIVE_DECIMALS, from_wei, to_wei

__all__ = [
    # Unit conversion
    "NATIVE_DECIMALS",
    "from_wei",
    "to_wei",
]
