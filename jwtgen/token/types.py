"""
Token record types and claim handling.

A ``TokenRecord`` is the server-side half of an issued token: it carries the
public key and identity needed to verify the signed token whose ``kid``
header equals the record id.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

RESERVED_CLAIMS = ("sub", "iss", "iat", "exp")


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return datetime.fromisoformat(value)


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


@dataclass
class TokenRecord:
    """Verification record stored for every issued token."""
    id: Optional[str]
    subject: Any
    issuer: Optional[str]
    key: Optional[str]
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    algorithm: Optional[str] = None

    def is_complete(self) -> bool:
        """Check that the record carries the key and identity used for verification."""
        return not (_is_missing(self.key) or _is_missing(self.issuer) or _is_missing(self.subject))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "issuer": self.issuer,
            "key": self.key,
            "issued_at": self.issued_at.isoformat() if self.issued_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "algorithm": self.algorithm,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TokenRecord":
        """Build a record from a mapping; missing fields become ``None``."""
        return cls(
            id=data.get("id"),
            subject=data.get("subject"),
            issuer=data.get("issuer"),
            key=data.get("key"),
            issued_at=_parse_datetime(data.get("issued_at")),
            expires_at=_parse_datetime(data.get("expires_at")),
            algorithm=data.get("algorithm"),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: str) -> "TokenRecord":
        return cls.from_dict(json.loads(raw))


@dataclass
class IssuedToken:
    """A signed token together with its verification record."""
    record: TokenRecord
    token: str


def merge_claims(base: Dict[str, Any], custom: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge caller-supplied claims into ``base`` without touching reserved claims.

    Custom claims named like a reserved claim, or like a claim already present
    in ``base``, are dropped silently.
    """
    merged = dict(base)
    if not custom:
        return merged
    for claim, value in custom.items():
        if claim in RESERVED_CLAIMS or claim in merged:
            logger.debug(f"Dropping custom claim colliding with protected claim: {claim}")
            continue
        merged[claim] = value
    return merged


def subject_key(subject: Any) -> str:
    """Canonical string form of a subject, usable as a lookup key."""
    return json.dumps(subject, sort_keys=True, separators=(",", ":"), default=str)


__all__ = [
    "TokenRecord",
    "IssuedToken",
    "RESERVED_CLAIMS",
    "merge_claims",
    "subject_key",
]
