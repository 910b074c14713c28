#!/usr/bin/env python3
"""
Token Generator Examples for jwtgen

This example walks through the token lifecycle:
- issuing a token and verifying it through the record store
- custom claims and protected claims
- re-issuing for a subject, which overwrites its record
- verifying without a store by passing the record explicitly

Run this example to see each verification outcome.
"""

import asyncio
import logging
from datetime import timedelta

from jwtgen import GeneratorConfig, MemoryRecordStore, TokenGenerator, create_token_generator


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def demo_issue_and_verify(generator: TokenGenerator):
    """Issue a token and verify it."""
    print("\n=== Issue / Verify Demo ===")

    issued = await generator.issue(
        "demo-user",
        payload={"scope": "read write", "sub": "ignored"},
    )
    print(f"✓ Token issued: {issued.token[:20]}...")
    print(f"  Record ID (kid): {issued.record.id}")
    print(f"  Expires at: {issued.record.expires_at.isoformat()}")

    result = await generator.verify(issued.token)
    if result:
        print("✓ Token verified")
        print(f"  Subject: {result.subject}")
        print(f"  Scope: {result.payload.get('scope')}")
    else:
        print(f"✗ Verification failed: {result.status.value} ({result.reason})")


async def demo_overwrite(generator: TokenGenerator):
    """Re-issuing for a subject invalidates its previous token."""
    print("\n=== Record Overwrite Demo ===")

    first = await generator.issue("demo-user")
    second = await generator.issue("demo-user", duration=timedelta(minutes=5))

    old = await generator.verify(first.token)
    new = await generator.verify(second.token)
    print(f"  First token: {'valid' if old else old.status.value}")
    print(f"  Second token: {'valid' if new else new.status.value}")


async def demo_storeless():
    """Verify with an explicit record when no store is configured."""
    print("\n=== Store-less Demo ===")

    generator = create_token_generator(id="standalone", token_lifetime={"minutes": 10})
    try:
        issued = await generator.issue({"user": 7, "tenant": "acme"})
        without = await generator.verify(issued.token)
        print(f"  Without record: {without.status.value}")
        with_record = await generator.verify(issued.token, record=issued.record.to_dict())
        print(f"  With record: {'valid' if with_record else with_record.status.value}")
    finally:
        await generator.dispose()


async def main():
    """Run all token generator examples."""
    print("jwtgen Token Generator Examples")
    print("=" * 50)

    async with TokenGenerator(GeneratorConfig(id="jwtgen-demo"), store=MemoryRecordStore()) as generator:
        await demo_issue_and_verify(generator)
        await demo_overwrite(generator)
        print(f"\n  Stats: {generator.get_stats()}")

    await demo_storeless()
    print("\n✓ All demos completed successfully!")


if __name__ == "__main__":
    asyncio.run(main())
