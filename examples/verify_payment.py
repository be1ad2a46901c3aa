"""
Example: Verify a Payment and Unlock Content

Demonstrates the server-side flow of an A402 paywall:
1. Answer an unpaid request with the 402 payment requirements
2. Verify the transaction hash the wallet sends back
3. Serve the content payload once the payment is verified

Usage:
    python examples/verify_payment.py 0x<tx-hash>
"""

import asyncio
import sys

from dotenv import load_dotenv
load_dotenv()

from a402 import A402Gate, Config, PaymentRequiredError, TransportError


async def main(tx_hash: str | None):
    print("=== A402 Verification Example ===\n")

    # Reads A402_* variables (RPC URL, contract, creator, price, content)
    async with A402Gate(Config.from_env()) as gate:
        print(f"✅ Gate ready on {gate.config.caip2}")

        # Step 1: No hash yet, the caller gets a 402 body
        try:
            await gate.unlock(None)
        except PaymentRequiredError as e:
            print("💳 Payment required:")
            for key, value in e.requirements.items():
                print(f"   {key}: {value}")

        if not tx_hash:
            call = gate.build_payment()
            print(f"\n📤 Ask the wallet to send {call.value} wei to {call.to}")
            print(f"   data: {call.data[:42]}...")
            return

        # Step 2: Verify the submitted transaction
        try:
            result = await gate.verify_payment(tx_hash)
        except TransportError as e:
            print(f"❌ Chain unreachable, try again later: {e}")
            return

        print(f"\n🔎 {result.message}")
        if not result.verified:
            return

        # Step 3: Serve the content
        payload = await gate.unlock(tx_hash)
        print(f"✅ Unlocked: {payload['videoUrl']} ({payload['contentType']})")

    print("\n=== Example Complete ===")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None))
