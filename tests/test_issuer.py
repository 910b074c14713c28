import asyncio
from datetime import timedelta

import jwt
import pytest

from jwtgen.auth.issuer import TokenIssuer
from jwtgen.errors import RecordStoreError, TokenIssueError
from jwtgen.token.keyring import KeyRing
from jwtgen.tokenstore.memory import MemoryRecordStore

pytestmark = pytest.mark.asyncio


def make_issuer(store=None, rotation_interval=timedelta(hours=1), **kwargs):
    ring = KeyRing(rotation_interval=rotation_interval)
    return TokenIssuer("gen-1", ring, store=store, **kwargs)


class FailingStore(MemoryRecordStore):
    async def insert_one(self, record):
        raise RecordStoreError("disk full")


async def test_record_matches_token():
    issuer = make_issuer()
    issued = await issuer.issue("alice")
    header = jwt.get_unverified_header(issued.token)
    payload = jwt.decode(issued.token, options={"verify_signature": False})

    assert header["kid"] == issued.record.id
    assert header["alg"] == "ES256"
    assert payload["sub"] == "alice" == issued.record.subject
    assert payload["iss"] == "gen-1" == issued.record.issuer
    assert payload["exp"] - payload["iat"] == 30 * 60
    assert issued.record.expires_at - issued.record.issued_at == timedelta(minutes=30)
    assert issued.record.key == issuer.key_ring.public_key


async def test_duration_override():
    issuer = make_issuer()
    issued = await issuer.issue("alice", duration={"minutes": 5})
    payload = jwt.decode(issued.token, options={"verify_signature": False})
    assert payload["exp"] - payload["iat"] == 300
    assert issued.record.expires_at - issued.record.issued_at == timedelta(minutes=5)


async def test_reserved_claims_cannot_be_overridden():
    issuer = make_issuer()
    issued = await issuer.issue(
        "alice",
        payload={"sub": "mallory", "iss": "evil", "iat": 0, "exp": 9999999999, "role": "admin"},
    )
    payload = jwt.decode(issued.token, options={"verify_signature": False})
    assert payload["sub"] == "alice"
    assert payload["iss"] == "gen-1"
    assert payload["iat"] != 0
    assert payload["exp"] != 9999999999
    assert payload["role"] == "admin"


async def test_structured_subject_is_echoed():
    issuer = make_issuer()
    subject = {"user": 42, "tenant": "acme"}
    issued = await issuer.issue(subject)
    payload = jwt.decode(issued.token, options={"verify_signature": False})
    assert payload["sub"] == subject
    assert issued.record.subject == subject


async def test_unserializable_claim_raises_issue_error():
    issuer = make_issuer()
    with pytest.raises(TokenIssueError):
        await issuer.issue("alice", payload={"blob": object()})


async def test_store_insert_then_replace():
    store = MemoryRecordStore()
    issuer = make_issuer(store=store)
    first = await issuer.issue("alice")
    second = await issuer.issue("alice")
    await issuer.issue("bob")

    assert await store.count() == 2
    assert (await store.find_one({"subject": "alice"})).id == second.record.id
    assert await store.find_one({"id": first.record.id}) is None


async def test_store_failure_propagates():
    issuer = make_issuer(store=FailingStore())
    with pytest.raises(RecordStoreError):
        await issuer.issue("alice")


async def test_per_issuance_rotation():
    issuer = make_issuer(rotation_interval=timedelta(0))
    first = await issuer.issue("alice")
    second = await issuer.issue("bob")
    assert first.record.key != second.record.key
    assert issuer.key_ring.public_key not in (first.record.key, second.record.key)


async def test_interval_mode_keeps_key_between_issues():
    issuer = make_issuer()
    first = await issuer.issue("alice")
    second = await issuer.issue("bob")
    assert first.record.key == second.record.key


async def test_background_writes_flush():
    store = MemoryRecordStore()
    issuer = make_issuer(store=store, background_writes=True)
    issued = await issuer.issue("alice")
    await issuer.flush()
    assert issuer.pending_writes == 0
    assert (await store.find_one({"subject": "alice"})).id == issued.record.id


async def test_background_write_failure_is_logged_not_raised(caplog):
    issuer = make_issuer(store=FailingStore(), background_writes=True)
    issued = await issuer.issue("alice")
    assert issued.token
    await issuer.flush()
    await asyncio.sleep(0)
    assert "Background record write failed" in caplog.text


async def test_per_issuance_rotation_survives_store_failure():
    issuer = make_issuer(store=FailingStore(), rotation_interval=timedelta(0))
    signing_key = issuer.key_ring.public_key
    with pytest.raises(RecordStoreError):
        await issuer.issue("alice")
    assert issuer.key_ring.public_key != signing_key
