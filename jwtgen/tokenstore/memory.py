"""In-memory record store."""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

from ..token.types import TokenRecord, subject_key
from .store import RecordStore, parse_query

logger = logging.getLogger(__name__)


class MemoryRecordStore(RecordStore):
    """Process-local record store indexed by record id and by subject."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._records: Dict[str, TokenRecord] = {}
        self._by_subject: Dict[str, str] = {}

    def _lookup(self, query: Mapping[str, Any]) -> Optional[TokenRecord]:
        field, value = parse_query(query)
        if field == "id":
            return self._records.get(value)
        record_id = self._by_subject.get(subject_key(value))
        return self._records.get(record_id) if record_id else None

    def _unindex(self, record: TokenRecord) -> None:
        self._records.pop(record.id, None)
        key = subject_key(record.subject)
        if self._by_subject.get(key) == record.id:
            del self._by_subject[key]

    def _index(self, record: TokenRecord) -> None:
        self._records[record.id] = record
        self._by_subject[subject_key(record.subject)] = record.id

    async def find_one(self, query: Mapping[str, Any]) -> Optional[TokenRecord]:
        return self._lookup(query)

    async def insert_one(self, record: TokenRecord) -> None:
        async with self._lock:
            self._index(record)
        logger.debug(f"Inserted record {record.id}")

    async def replace_one(self, query: Mapping[str, Any], record: TokenRecord) -> bool:
        async with self._lock:
            existing = self._lookup(query)
            if existing is None:
                return False
            self._unindex(existing)
            self._index(record)
        logger.debug(f"Replaced record {existing.id} with {record.id}")
        return True

    async def delete_one(self, query: Mapping[str, Any]) -> bool:
        async with self._lock:
            existing = self._lookup(query)
            if existing is None:
                return False
            self._unindex(existing)
        return True

    async def count(self) -> int:
        return len(self._records)

    async def clear(self) -> int:
        async with self._lock:
            removed = len(self._records)
            self._records.clear()
            self._by_subject.clear()
        return removed


def create_memory_store() -> MemoryRecordStore:
    return MemoryRecordStore()


__all__ = ["MemoryRecordStore", "create_memory_store"]
