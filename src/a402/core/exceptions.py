"""
Exception hierarchy for the A402 verifier.

All package-specific exceptions inherit from A402Error for easy catching.
Verification outcomes (pending, reverted, rejected) are NOT exceptions;
they are returned as VerificationResult values. Exceptions are reserved for
transport failures, codec failures and misuse.
"""

from __future__ import annotations

from typing import Any


class A402Error(Exception):
    """
    Base exception for all A402 errors.

    Example:
        >>> try:
        ...     await gate.verify_payment(tx_hash)
        ... except A402Error as e:
        ...     print(f"Verifier error: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(A402Error):
    """
    Configuration is missing or invalid.

    Raised when:
    - No RPC endpoint is configured
    - A configured address is malformed
    """

    pass


class ValidationError(A402Error):
    """
    Input validation error.

    Raised when:
    - A transaction hash or address is malformed
    - Required parameters are missing
    """

    pass


class TransportError(A402Error):
    """
    Network or RPC communication failed.

    Always recoverable by retrying the whole operation. Never recorded as a
    verification outcome.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        self.url = url

    def is_rate_limited(self) -> bool:
        """Check if this is a rate limit error."""
        return self.status_code == 429

    def is_server_error(self) -> bool:
        """Check if this is a server-side error."""
        return self.status_code is not None and 500 <= self.status_code < 600


class RpcError(TransportError):
    """
    The node answered with a JSON-RPC error object.

    Raised when:
    - eth_call reverts (e.g. unknown resource)
    - The node rejects the method or parameters
    """

    def __init__(
        self,
        message: str,
        method: str,
        code: int | None = None,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, url=url, details=details)
        self.method = method
        self.code = code

    def __str__(self) -> str:
        return f"[{self.method}] {self.message} (code: {self.code})"


class AbiError(A402Error):
    """Base class for ABI codec failures."""

    pass


class AbiEncodeError(AbiError):
    """
    Arguments cannot be encoded for the requested call shape.

    Raised when:
    - Argument count does not match the signature
    - A value is out of range for its type
    """

    pass


class UnsupportedTypeError(AbiEncodeError):
    """An ABI type outside the supported set was requested."""

    def __init__(self, abi_type: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"Unsupported ABI type: {abi_type!r}", details)
        self.abi_type = abi_type


class AbiDecodeError(AbiError):
    """
    Response or log data from the chain is malformed.

    Treated by the verifier as a hard failure: decoding ambiguity never
    yields a verified payment.
    """

    pass


class TruncatedDataError(AbiDecodeError):
    """An offset or length points past the end of the buffer."""

    def __init__(
        self,
        message: str,
        offset: int,
        needed: int,
        available: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.offset = offset
        self.needed = needed
        self.available = available

    def __str__(self) -> str:
        return (
            f"{self.message} | offset: {self.offset}, "
            f"needed: {self.needed}, available: {self.available}"
        )


class PaymentRequiredError(A402Error):
    """
    Content was requested without a verified payment.

    Carries the payment requirements the caller should answer with
    (HTTP 402 body).
    """

    def __init__(
        self,
        message: str,
        requirements: dict[str, Any],
        tx_hash: str | None = None,
    ) -> None:
        super().__init__(message)
        self.requirements = requirements
        self.tx_hash = tx_hash
