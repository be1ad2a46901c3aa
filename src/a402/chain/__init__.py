"""
Chain access for A402: JSON-RPC transport and vault contract reads.
"""

from .reader import ChainReader, normalize_tx_hash
from .vault import VaultContract

__all__ = [
    "ChainReader",
    "VaultContract",
    "normalize_tx_hash",
]
