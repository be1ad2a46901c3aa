"""
Verification table for A402.
"""

from .records import VerificationLedger, VerificationRecord

__all__ = [
    "VerificationLedger",
    "VerificationRecord",
]
