import uuid
from datetime import datetime, timedelta, timezone

import pytest

from jwtgen.errors import ConfigurationError, RecordStoreError
from jwtgen.token.types import TokenRecord
from jwtgen.tokenstore import MemoryRecordStore, create_record_store

pytestmark = pytest.mark.asyncio


def make_record(subject="alice", **overrides):
    now = datetime.now(timezone.utc)
    base = dict(
        id=str(uuid.uuid4()),
        subject=subject,
        issuer="gen-1",
        key="-----BEGIN PUBLIC KEY-----",
        issued_at=now,
        expires_at=now + timedelta(minutes=30),
        algorithm="ES256",
    )
    base.update(overrides)
    return TokenRecord(**base)


async def test_insert_and_find_by_id_and_subject():
    store = MemoryRecordStore()
    rec = make_record()
    await store.insert_one(rec)
    assert await store.find_one({"id": rec.id}) is rec
    assert await store.find_one({"subject": "alice"}) is rec
    assert await store.find_one({"subject": "bob"}) is None
    assert await store.count() == 1


async def test_replace_drops_old_id():
    store = MemoryRecordStore()
    first = make_record()
    second = make_record()
    await store.insert_one(first)
    assert await store.replace_one({"id": first.id}, second)
    assert await store.find_one({"id": first.id}) is None
    assert await store.find_one({"subject": "alice"}) is second
    assert await store.count() == 1


async def test_replace_missing_returns_false():
    store = MemoryRecordStore()
    assert not await store.replace_one({"id": "nope"}, make_record())
    assert await store.count() == 0


async def test_structured_subjects_are_indexed_by_value():
    store = MemoryRecordStore()
    rec = make_record(subject={"user": 7, "tenant": "acme"})
    await store.insert_one(rec)
    assert await store.find_one({"subject": {"tenant": "acme", "user": 7}}) is rec
    assert await store.find_one({"subject": "7"}) is None


async def test_delete_and_clear():
    store = create_record_store("memory")
    a, b = make_record("a"), make_record("b")
    await store.insert_one(a)
    await store.insert_one(b)
    assert await store.delete_one({"subject": "a"})
    assert not await store.delete_one({"subject": "a"})
    assert await store.clear() == 1
    assert await store.count() == 0


@pytest.mark.parametrize("query", [{}, {"key": "x"}, {"id": "x", "subject": "y"}])
async def test_bad_queries(query):
    store = MemoryRecordStore()
    with pytest.raises(RecordStoreError):
        await store.find_one(query)


async def test_factory_rejects_unexpected_options():
    with pytest.raises(ConfigurationError):
        create_record_store("memory", ttl=30)
    with pytest.raises(ConfigurationError):
        create_record_store("redis", collection="tokens")
    with pytest.raises(ConfigurationError):
        create_record_store("mongo")
