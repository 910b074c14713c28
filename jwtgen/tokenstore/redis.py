"""Redis-backed record store.

Layout:
- Each record is stored as a JSON blob at ``{prefix}:record:{id}``.
- The subject index is a plain string key ``{prefix}:subject:{subject_key}``
  holding the id of the subject's current record.
- Writes touching both keys run in a MULTI/EXEC pipeline.

Records do not expire unless ``ttl`` is set. Without it, records for subjects
that never authenticate again stay in Redis until deleted.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..errors import RecordStoreError
from ..token.types import TokenRecord, subject_key
from .store import RecordStore, parse_query

logger = logging.getLogger(__name__)


class RedisRecordStore(RecordStore):
    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        prefix: str = "jwtgen",
        ttl: Optional[int] = None,
        scan_page_size: int = 500,
        client: Optional["redis.Redis"] = None,
    ):
        self.url = url
        self.prefix = prefix.rstrip(":")
        self.ttl = ttl
        self.scan_page_size = scan_page_size
        self._client = client

    async def _get_client(self) -> "redis.Redis":
        if self._client is None:
            self._client = redis.from_url(self.url, decode_responses=True)
        return self._client

    # Key helpers
    def _record_key(self, record_id: str) -> str:
        return f"{self.prefix}:record:{record_id}"

    def _subject_key(self, subject: Any) -> str:
        return f"{self.prefix}:subject:{subject_key(subject)}"

    async def _get_record(self, client, record_id: Optional[str]) -> Optional[TokenRecord]:
        if not record_id:
            return None
        raw = await client.get(self._record_key(record_id))
        if not raw:
            return None
        try:
            return TokenRecord.from_json(raw)
        except (ValueError, TypeError) as e:
            logger.error(f"Decode failure for record {record_id}: {e}")
            return None

    async def _lookup(self, client, query: Mapping[str, Any]) -> Optional[TokenRecord]:
        field, value = parse_query(query)
        if field == "id":
            return await self._get_record(client, value)
        record_id = await client.get(self._subject_key(value))
        return await self._get_record(client, record_id)

    async def find_one(self, query: Mapping[str, Any]) -> Optional[TokenRecord]:
        try:
            client = await self._get_client()
            return await self._lookup(client, query)
        except RedisError as e:
            raise RecordStoreError(f"Redis lookup failed: {e}") from e

    async def insert_one(self, record: TokenRecord) -> None:
        try:
            client = await self._get_client()
            pipe = client.pipeline(transaction=True)
            pipe.set(self._record_key(record.id), record.to_json(), ex=self.ttl)
            pipe.set(self._subject_key(record.subject), record.id, ex=self.ttl)
            await pipe.execute()
        except RedisError as e:
            raise RecordStoreError(f"Redis insert failed: {e}") from e
        logger.debug("Stored record %s", record.id)

    async def replace_one(self, query: Mapping[str, Any], record: TokenRecord) -> bool:
        try:
            client = await self._get_client()
            existing = await self._lookup(client, query)
            if existing is None:
                return False
            pipe = client.pipeline(transaction=True)
            pipe.delete(self._record_key(existing.id))
            if subject_key(existing.subject) != subject_key(record.subject):
                pipe.delete(self._subject_key(existing.subject))
            pipe.set(self._record_key(record.id), record.to_json(), ex=self.ttl)
            pipe.set(self._subject_key(record.subject), record.id, ex=self.ttl)
            await pipe.execute()
        except RedisError as e:
            raise RecordStoreError(f"Redis replace failed: {e}") from e
        logger.debug("Replaced record %s with %s", existing.id, record.id)
        return True

    async def delete_one(self, query: Mapping[str, Any]) -> bool:
        try:
            client = await self._get_client()
            existing = await self._lookup(client, query)
            if existing is None:
                return False
            pipe = client.pipeline(transaction=True)
            pipe.delete(self._record_key(existing.id))
            pipe.delete(self._subject_key(existing.subject))
            removed, _ = await pipe.execute()
        except RedisError as e:
            raise RecordStoreError(f"Redis delete failed: {e}") from e
        return removed == 1

    async def count(self) -> int:
        try:
            client = await self._get_client()
            pattern = f"{self.prefix}:record:*"
            cursor = 0
            seen = set()
            while True:
                cursor, keys = await client.scan(cursor=cursor, match=pattern, count=self.scan_page_size)
                # SCAN may repeat keys across pages
                seen.update(keys)
                if cursor == 0:
                    break
            return len(seen)
        except RedisError as e:
            raise RecordStoreError(f"Redis scan failed: {e}") from e

    async def clear(self) -> int:
        """Delete every key under this store's prefix."""
        try:
            client = await self._get_client()
            pattern = f"{self.prefix}:*"
            cursor = 0
            deleted = 0
            while True:
                cursor, keys = await client.scan(cursor=cursor, match=pattern, count=self.scan_page_size)
                if keys:
                    deleted += await client.delete(*keys)
                if cursor == 0:
                    break
            return deleted
        except RedisError as e:
            raise RecordStoreError(f"Redis clear failed: {e}") from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["RedisRecordStore"]
