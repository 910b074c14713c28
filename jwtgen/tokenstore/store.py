"""
Record store interface.

The generator only ever asks a store for one record by subject or by id, and
writes records with insert/replace. Expiry, indexing and uniqueness beyond
that are left to the backend.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Tuple

from ..errors import RecordStoreError
from ..token.types import TokenRecord

QUERY_FIELDS = ("id", "subject")


def parse_query(query: Mapping[str, Any]) -> Tuple[str, Any]:
    """Return the single ``(field, value)`` pair of a record query.

    Raises:
        RecordStoreError: If the query is not keyed by exactly one of ``id`` or ``subject``.
    """
    if len(query) != 1:
        raise RecordStoreError(f"Record queries take exactly one field, got {sorted(query)}")
    field, value = next(iter(query.items()))
    if field not in QUERY_FIELDS:
        raise RecordStoreError(f"Unsupported record query field: {field}")
    return field, value


class RecordStore(ABC):
    """Keyed collection of token records."""

    @abstractmethod
    async def find_one(self, query: Mapping[str, Any]) -> Optional[TokenRecord]:
        """Find the record matching ``{"id": ...}`` or ``{"subject": ...}``."""

    @abstractmethod
    async def insert_one(self, record: TokenRecord) -> None:
        """Insert a new record."""

    @abstractmethod
    async def replace_one(self, query: Mapping[str, Any], record: TokenRecord) -> bool:
        """Replace the record matching ``query``. Returns False if nothing matched."""

    @abstractmethod
    async def delete_one(self, query: Mapping[str, Any]) -> bool:
        """Delete the record matching ``query``."""

    @abstractmethod
    async def count(self) -> int:
        """Number of stored records."""

    async def close(self) -> None:
        """Release backend resources."""
        pass


__all__ = ["RecordStore", "parse_query", "QUERY_FIELDS"]
