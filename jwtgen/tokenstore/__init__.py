"""
Record store package for jwtgen.

Stores hold the verification record of every issued token, addressable by
record id (the token's ``kid``) and by subject.
"""

from typing import Any

from ..errors import ConfigurationError
from .store import RecordStore, parse_query
from .memory import MemoryRecordStore, create_memory_store
from .redis import RedisRecordStore


def create_record_store(kind: str = "memory", **kwargs: Any) -> RecordStore:
    """Create a record store by backend name (``memory`` or ``redis``)."""
    if kind == "memory":
        if kwargs:
            raise ConfigurationError(f"Memory record store takes no options, got {sorted(kwargs)}")
        return MemoryRecordStore()
    if kind == "redis":
        try:
            return RedisRecordStore(**kwargs)
        except TypeError as e:
            raise ConfigurationError(f"Invalid redis record store options: {e}") from e
    raise ConfigurationError(f"Unknown record store backend: {kind}")


__all__ = [
    "RecordStore",
    "parse_query",
    "MemoryRecordStore",
    "create_memory_store",
    "RedisRecordStore",
    "create_record_store",
]
