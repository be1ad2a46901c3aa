"""
Configuration management for A402.

Handles loading configuration from environment variables and validation.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any

from a402.abi.codec import normalize_address
from a402.core.contract import (
    APERTUM_CHAIN_ID,
    APERTUM_CURRENCY,
    APERTUM_RPC_URL,
    DEFAULT_VERIFIER_CONTRACT,
    ZERO_ADDRESS,
    caip2,
)
from a402.core.exceptions import AbiEncodeError, ValidationError
from a402.utils.units import NATIVE_DECIMALS, to_wei

# Used when neither A402_CONTENT_REF nor the legacy variables are set
DEFAULT_CONTENT_REF = "dQw4w9WgXcQ"


def _get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default."""
    value = os.environ.get(name, default)
    if required and not value:
        raise ValueError(f"Required environment variable {name} is not set")
    return value


def _parse_bool(value: str | bool | None, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Verifier configuration."""

    rpc_url: str = APERTUM_RPC_URL
    verifier_contract: str = DEFAULT_VERIFIER_CONTRACT
    creator_address: str = ZERO_ADDRESS
    price: str = "0.001"
    resource_id: str = "video-001"
    content_ref: str = DEFAULT_CONTENT_REF
    lifetime_access: bool = True
    ipfs_gateway: str = "https://ipfs.io"

    # Chain
    chain_id: int = APERTUM_CHAIN_ID
    currency: str = APERTUM_CURRENCY
    decimals: int = NATIVE_DECIMALS

    # Event matching (see PaymentEventShape)
    payment_event_signature: str | None = None
    require_resource_match: bool = False

    # Transport
    rpc_timeout: float = 10.0  # seconds per JSON-RPC round-trip
    rpc_max_attempts: int = 3

    # Storage & Logging
    storage_backend: str = "memory"
    redis_url: str | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.rpc_url:
            raise ValueError("rpc_url is required")
        if not self.resource_id:
            raise ValueError("resource_id is required")
        for name in ("verifier_contract", "creator_address"):
            try:
                normalize_address(getattr(self, name))
            except AbiEncodeError:
                raise ValueError(f"{name} is not a valid address: {getattr(self, name)!r}") from None
        try:
            price_wei = to_wei(self.price, self.decimals)
        except ValidationError:
            raise ValueError(f"price is not a valid amount: {self.price!r}") from None
        if price_wei <= 0:
            raise ValueError(f"price must be positive: {self.price!r}")
        if self.rpc_timeout <= 0:
            raise ValueError("rpc_timeout must be positive")
        if self.rpc_max_attempts < 1:
            raise ValueError("rpc_max_attempts must be at least 1")

    @property
    def price_wei(self) -> int:
        """Configured price in smallest on-chain units."""
        return to_wei(self.price, self.decimals)

    @property
    def caip2(self) -> str:
        return caip2(self.chain_id)

    @property
    def rpc_urls(self) -> list[str]:
        return [u.strip() for u in self.rpc_url.split(",") if u.strip()]

    @classmethod
    def from_env(cls, **overrides: Any) -> Config:
        """
        Load configuration from environment variables.

        An override passed explicitly always wins over the environment, even
        when it is falsy, so invalid values still reach validation.
        """

        def pick(key: str, env_name: str, default: str | None = None) -> Any:
            if key in overrides:
                return overrides[key]
            return _get_env_var(env_name, default=default)

        price = pick("price", "A402_PRICE", default="0.001")
        if isinstance(price, Decimal):
            price = format(price, "f")

        # Explicit ref first, then the video-URL and video-ID variables
        if "content_ref" in overrides:
            content_ref = overrides["content_ref"]
        else:
            content_ref = (
                _get_env_var("A402_CONTENT_REF")
                or _get_env_var("A402_VIDEO_URL")
                or _get_env_var("A402_YOUTUBE_VIDEO_ID")
                or DEFAULT_CONTENT_REF
            )

        return cls(
            rpc_url=pick("rpc_url", "A402_RPC_URL", default=APERTUM_RPC_URL),
            verifier_contract=pick(
                "verifier_contract", "A402_VERIFIER_CONTRACT", default=DEFAULT_VERIFIER_CONTRACT
            ),
            creator_address=pick("creator_address", "A402_PAYMENT_ADDRESS", default=ZERO_ADDRESS),
            price=str(price),
            resource_id=pick("resource_id", "A402_RESOURCE_ID", default="video-001"),
            content_ref=content_ref,
            lifetime_access=_parse_bool(pick("lifetime_access", "A402_LIFETIME_ACCESS"), True),
            ipfs_gateway=(pick("ipfs_gateway", "A402_IPFS_GATEWAY", default=cls.ipfs_gateway) or "").rstrip("/"),
            payment_event_signature=pick("payment_event_signature", "A402_PAYMENT_EVENT_SIGNATURE") or None,
            require_resource_match=_parse_bool(
                pick("require_resource_match", "A402_REQUIRE_RESOURCE_MATCH"), False
            ),
            rpc_timeout=float(pick("rpc_timeout", "A402_RPC_TIMEOUT", default="10")),
            rpc_max_attempts=int(pick("rpc_max_attempts", "A402_RPC_MAX_ATTEMPTS", default="3")),
            storage_backend=pick("storage_backend", "A402_STORAGE_BACKEND", default="memory"),
            redis_url=pick("redis_url", "A402_REDIS_URL") or None,
            log_level=pick("log_level", "A402_LOG_LEVEL", default="INFO"),
        )

    def with_updates(self, **updates: Any) -> Config:
        """Create a new Config with updated values."""
        current = asdict(self)
        current.update(updates)
        return Config(**current)

    def masked_rpc_url(self) -> str:
        """RPC URL with the path (often an API key) hidden, for safe logging."""
        first = self.rpc_urls[0] if self.rpc_urls else ""
        scheme, sep, rest = first.partition("://")
        host = rest.split("/", 1)[0]
        return f"{scheme}{sep}{host}/..." if sep else "****"
