"""Demonstration of signing key rotation.

Steps:
1. Create a generator with a short rotation interval.
2. Issue a token under the first key pair.
3. Wait for a scheduled rotation, then force another one.
4. Verify the first token; its record still carries the key it was signed with.
5. Switch to per-issuance rotation and show every token gets its own key.
"""

import asyncio

from jwtgen import MemoryRecordStore, create_token_generator


async def main():
    store = MemoryRecordStore()
    generator = create_token_generator(key_lifetime={"seconds": 1}, store=store)
    await generator.start()

    t1 = await generator.issue("user1")
    print("Token1:", t1.token[:60], '...')
    print("Key at issuance:", generator.get_stats()["key_id"])

    await asyncio.sleep(1.5)
    print("Key after scheduled rotation:", generator.get_stats()["key_id"])
    await generator.rotate_keys()
    print("Key after forced rotation:", generator.get_stats()["key_id"])

    r1 = await generator.verify(t1.token)
    print("Validate token1 after rotation (expected True):", bool(r1))
    await generator.dispose()

    per_token = create_token_generator(key_lifetime=0, store=store)
    a = await per_token.issue("user2")
    b = await per_token.issue("user3")
    print("Distinct keys per token:", a.record.key != b.record.key)
    print("Both valid:", bool(await per_token.verify(a.token)), bool(await per_token.verify(b.token)))
    await per_token.dispose()


if __name__ == "__main__":
    asyncio.run(main())
