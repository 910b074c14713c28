"""
jwtgen

Signed bearer tokens backed by per-subject verification records and
rotating asymmetric signing keys.
"""

__version__ = "0.1.0"

from .config import GeneratorConfig, parse_duration
from .errors import (
    JWTGenError,
    ConfigurationError,
    KeyGenerationError,
    RecordStoreError,
    TokenIssueError,
)
from .token import KeyRing, KeyPair, TokenRecord, IssuedToken, RESERVED_CLAIMS
from .tokenstore import RecordStore, MemoryRecordStore, RedisRecordStore, create_record_store
from .auth import TokenIssuer, TokenVerifier, VerificationResult, VerificationStatus
from .service import TokenGenerator, create_token_generator

__all__ = [
    "TokenGenerator",
    "create_token_generator",
    "GeneratorConfig",
    "parse_duration",
    "KeyRing",
    "KeyPair",
    "TokenRecord",
    "IssuedToken",
    "RESERVED_CLAIMS",
    "RecordStore",
    "MemoryRecordStore",
    "RedisRecordStore",
    "create_record_store",
    "TokenIssuer",
    "TokenVerifier",
    "VerificationResult",
    "VerificationStatus",
    "JWTGenError",
    "ConfigurationError",
    "KeyGenerationError",
    "RecordStoreError",
    "TokenIssueError",
]
