"""
Content source classification for A402.
"""

from .resolver import (
    DEFAULT_IPFS_GATEWAY,
    ContentRule,
    ContentSourceResolver,
    classify_content,
)

__all__ = [
    "DEFAULT_IPFS_GATEWAY",
    "ContentRule",
    "ContentSourceResolver",
    "classify_content",
]
