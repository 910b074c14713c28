"""
Token module initialization
"""

from .keyring import KeyRing, KeyPair, generate_key_pair
from .types import (
    TokenRecord,
    IssuedToken,
    RESERVED_CLAIMS,
    merge_claims,
    subject_key,
)

__all__ = [
    # Keys
    "KeyRing",
    "KeyPair",
    "generate_key_pair",

    # Records and claims
    "TokenRecord",
    "IssuedToken",
    "RESERVED_CLAIMS",
    "merge_claims",
    "subject_key",
]
