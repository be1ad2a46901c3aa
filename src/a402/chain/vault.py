"""
Typed reads against the paywall vault contract.

Wraps ChainReader with the contract's fixed call shapes so callers deal in
Resource objects and booleans instead of calldata.
"""

from __future__ import annotations

from a402.abi.codec import decode_return, encode_call, normalize_address, to_hex
from a402.chain.reader import ChainReader
from a402.core.contract import (
    GET_RESOURCE_SIGNATURE,
    HAS_ACCESS_SHAPE,
    HAS_ACCESS_SIGNATURE,
    PAY_FOR_ACCESS_SIGNATURE,
    RESOURCE_SHAPE,
)
from a402.core.exceptions import AbiEncodeError
from a402.core.logging import get_logger
from a402.core.types import PaymentCall, Resource

logger = get_logger("chain.vault")


class VaultContract:
    """
    Read-only view of one deployed vault contract.

    Usage:
        vault = VaultContract(reader, "0x461d...")
        if await vault.has_access("video-001", user):
            ...
    """

    def __init__(self, reader: ChainReader, address: str) -> None:
        self._reader = reader
        self._address = normalize_address(address)

    @property
    def address(self) -> str:
        return self._address

    async def has_access(self, resource_id: str, user: str) -> bool:
        """
        Whether `user` holds on-chain access to `resource_id`.

        Raises:
            TransportError: If no RPC provider answered
            AbiDecodeError: If the return data does not decode as a bool
        """
        calldata = encode_call(HAS_ACCESS_SIGNATURE, [resource_id, user])
        raw = await self._reader.call(self._address, calldata)
        granted = decode_return(raw, HAS_ACCESS_SHAPE).granted
        logger.debug(f"hasAccess({resource_id}, {user}) = {granted}")
        return granted

    async def get_resource(self, resource_id: str) -> Resource:
        """Fetch the on-chain definition and counters of a resource."""
        calldata = encode_call(GET_RESOURCE_SIGNATURE, [resource_id])
        raw = await self._reader.call(self._address, calldata)
        fields = decode_return(raw, RESOURCE_SHAPE)
        return Resource(
            resource_id=resource_id,
            price=fields.price,
            lifetime=fields.lifetime,
            active=fields.active,
            exists=fields.exists,
            content_type=fields.content_type,
            content_ref=fields.content_ref,
            total_payments=fields.total_payments,
            total_revenue=fields.total_revenue,
        )

    def build_payment(self, resource_id: str, nonce: bytes | str, value: int) -> PaymentCall:
        """
        Build the unsigned payForAccess call for a wallet to sign.

        The nonce is passed through to the contract as-is.

        Raises:
            AbiEncodeError: If the nonce is not 32 bytes or value is negative
        """
        if value < 0:
            raise AbiEncodeError(f"Payment value must not be negative: {value}")
        calldata = encode_call(PAY_FOR_ACCESS_SIGNATURE, [resource_id, nonce])
        return PaymentCall(to=self._address, data=to_hex(calldata), value=value)
