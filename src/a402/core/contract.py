"""
A402 verifier/vault contract interface.

The contract itself lives on-chain; this module only pins the parts the
verifier depends on: deployed addresses, function signatures, calldata and
return layouts, and the payment event layout. Any drift between these
constants and the deployed contract silently breaks verification, so they
are kept in one place.
"""

from __future__ import annotations

from a402.abi.codec import FieldShape


# ───────────────────────────────────────────────────────────────────
# Deployment
# ───────────────────────────────────────────────────────────────────

APERTUM_CHAIN_ID = 2786
APERTUM_RPC_URL = (
    "https://rpc.apertum.io/ext/bc/YDJ1r9RMkewATmA7B35q1bdV18aywzmdiXwd9zGBq3uQjsCnn/rpc"
)
APERTUM_CURRENCY = "APTM"

# A402Verifier (v2), lifetime access support
DEFAULT_VERIFIER_CONTRACT = "0x461dA8e28B276586EB9dC4F010EbfF7F126A7076"

ZERO_ADDRESS = "0x" + "0" * 40


def caip2(chain_id: int) -> str:
    """CAIP-2 chain identifier, e.g. eip155:2786."""
    return f"eip155:{chain_id}"


# ───────────────────────────────────────────────────────────────────
# Function signatures
# ───────────────────────────────────────────────────────────────────

# read: hasAccess(string resourceId, address user) → bool
HAS_ACCESS_SIGNATURE = "hasAccess(string,address)"

# read: getResource(string resourceId) → RESOURCE_SHAPE
GET_RESOURCE_SIGNATURE = "getResource(string)"

# write (payable): payForAccess(string resourceId, bytes32 nonce)
PAY_FOR_ACCESS_SIGNATURE = "payForAccess(string,bytes32)"


# ───────────────────────────────────────────────────────────────────
# Return shapes
# ───────────────────────────────────────────────────────────────────

HAS_ACCESS_SHAPE: tuple[FieldShape, ...] = (
    FieldShape("granted", "bool"),
)

# Fixed-then-dynamic tuple: four static words, two string offsets, counters
RESOURCE_SHAPE: tuple[FieldShape, ...] = (
    FieldShape("price", "uint256"),
    FieldShape("lifetime", "bool"),
    FieldShape("active", "bool"),
    FieldShape("exists", "bool"),
    FieldShape("content_type", "string"),
    FieldShape("content_ref", "string"),
    FieldShape("total_payments", "uint256"),
    FieldShape("total_revenue", "uint256"),
)


# ───────────────────────────────────────────────────────────────────
# Payment event layout
#
# topics[0] = event signature hash
# topics[1] = payer        (indexed address)
# topics[2] = beneficiary  (indexed address, the resource creator)
# data word 1 = amount paid in smallest units
# ───────────────────────────────────────────────────────────────────

PAYER_TOPIC_INDEX = 1
BENEFICIARY_TOPIC_INDEX = 2
AMOUNT_DATA_WORD = 1


__all__ = [
    "APERTUM_CHAIN_ID",
    "APERTUM_RPC_URL",
    "APERTUM_CURRENCY",
    "DEFAULT_VERIFIER_CONTRACT",
    "ZERO_ADDRESS",
    "HAS_ACCESS_SIGNATURE",
    "GET_RESOURCE_SIGNATURE",
    "PAY_FOR_ACCESS_SIGNATURE",
    "HAS_ACCESS_SHAPE",
    "RESOURCE_SHAPE",
    "PAYER_TOPIC_INDEX",
    "BENEFICIARY_TOPIC_INDEX",
    "AMOUNT_DATA_WORD",
    "caip2",
]
