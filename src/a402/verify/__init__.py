"""
Payment verification for A402.
"""

from .verifier import PaymentEvent, PaymentEventShape, PaymentVerifier, decode_payment_event

__all__ = [
    "PaymentEvent",
    "PaymentEventShape",
    "PaymentVerifier",
    "decode_payment_event",
]
