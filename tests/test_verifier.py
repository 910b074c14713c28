from datetime import timedelta

import jwt
import pytest

from jwtgen.auth.issuer import TokenIssuer
from jwtgen.auth.verifier import TokenVerifier
from jwtgen.auth.verification import VerificationStatus
from jwtgen.errors import RecordStoreError
from jwtgen.token.keyring import KeyRing
from jwtgen.tokenstore.memory import MemoryRecordStore

pytestmark = pytest.mark.asyncio


class BrokenStore(MemoryRecordStore):
    async def find_one(self, query):
        raise RecordStoreError("connection reset")


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def issuer(store):
    return TokenIssuer("gen-1", KeyRing(), store=store)


async def test_success_via_store(issuer, store):
    issued = await issuer.issue("alice", payload={"role": "reader"})
    result = await TokenVerifier(store=store).verify(issued.token)
    assert result
    assert result.status is None
    assert result.subject == "alice"
    assert result.payload["role"] == "reader"
    assert result.payload["iss"] == "gen-1"


async def test_success_with_explicit_record(issuer):
    issued = await issuer.issue("alice")
    result = await TokenVerifier().verify(issued.token, record=issued.record)
    assert result.success


async def test_explicit_record_as_mapping(issuer):
    issued = await issuer.issue("alice")
    result = await TokenVerifier().verify(issued.token, record=issued.record.to_dict())
    assert result.success


async def test_no_record_source(issuer):
    issued = await issuer.issue("alice")
    result = await TokenVerifier().verify(issued.token)
    assert not result
    assert result.status == VerificationStatus.NO_RECORD
    assert result.reason == "No record source available."


async def test_no_record_found():
    orphan_issuer = TokenIssuer("gen-1", KeyRing())
    issued = await orphan_issuer.issue("alice")
    result = await TokenVerifier(store=MemoryRecordStore()).verify(issued.token)
    assert result.status == VerificationStatus.NO_RECORD
    assert issued.record.id in result.reason


@pytest.mark.parametrize("missing", ["key", "issuer", "subject"])
async def test_incomplete_record(issuer, missing):
    issued = await issuer.issue("alice")
    record = issued.record.to_dict()
    record[missing] = None
    result = await TokenVerifier().verify(issued.token, record=record)
    assert result.status == VerificationStatus.INVALID_RECORD


async def test_record_without_fields_is_invalid_not_missing(issuer):
    issued = await issuer.issue("alice")
    result = await TokenVerifier().verify(issued.token, record={})
    assert result.status == VerificationStatus.INVALID_RECORD


async def test_expired_token(issuer, store):
    issued = await issuer.issue("alice", duration=timedelta(seconds=-5))
    result = await TokenVerifier(store=store).verify(issued.token)
    assert result.status == VerificationStatus.INVALID_TOKEN


async def test_leeway_tolerates_recent_expiry(issuer, store):
    issued = await issuer.issue("alice", duration=timedelta(seconds=-5))
    result = await TokenVerifier(store=store, leeway=timedelta(seconds=60)).verify(issued.token)
    assert result.success


async def test_wrong_key(issuer):
    first = await issuer.issue("alice")
    await issuer.key_ring.rotate()
    second = await issuer.issue("bob")
    record = first.record.to_dict()
    record["key"] = second.record.key
    result = await TokenVerifier().verify(first.token, record=record)
    assert result.status == VerificationStatus.INVALID_TOKEN


async def test_issuer_mismatch(issuer):
    issued = await issuer.issue("alice")
    record = issued.record.to_dict()
    record["issuer"] = "someone-else"
    result = await TokenVerifier().verify(issued.token, record=record)
    assert result.status == VerificationStatus.INVALID_TOKEN


async def test_subject_mismatch(issuer):
    issued = await issuer.issue("alice")
    record = issued.record.to_dict()
    record["subject"] = "bob"
    result = await TokenVerifier().verify(issued.token, record=record)
    assert result.status == VerificationStatus.INVALID_TOKEN


async def test_structured_subject(issuer, store):
    subject = {"user": 42, "roles": ["a", "b"]}
    issued = await issuer.issue(subject)
    result = await TokenVerifier(store=store).verify(issued.token)
    assert result.success
    assert result.subject == subject


async def test_algorithm_pinned_by_record(issuer):
    issued = await issuer.issue("alice")
    record = issued.record.to_dict()
    record["algorithm"] = "RS256"
    result = await TokenVerifier().verify(issued.token, record=record)
    assert result.status == VerificationStatus.INVALID_TOKEN


async def test_forged_hs256_token_rejected(issuer):
    issued = await issuer.issue("alice")
    forged = jwt.encode(
        {"sub": "alice", "iss": "gen-1", "exp": 9999999999},
        "guessed-secret",
        algorithm="HS256",
        headers={"kid": issued.record.id},
    )
    result = await TokenVerifier().verify(forged, record=issued.record)
    assert result.status == VerificationStatus.INVALID_TOKEN


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c", None])
async def test_malformed_tokens(store, token):
    result = await TokenVerifier(store=store).verify(token)
    assert result.status == VerificationStatus.INVALID_TOKEN


async def test_store_errors_collapse(issuer):
    issued = await issuer.issue("alice")
    result = await TokenVerifier(store=BrokenStore()).verify(issued.token)
    assert result.status == VerificationStatus.INVALID_TOKEN


async def test_result_to_dict(issuer):
    issued = await issuer.issue("alice")
    result = await TokenVerifier().verify(issued.token)
    assert result.to_dict() == {
        "success": False,
        "status": "noRecordError",
        "reason": "No record source available.",
    }
