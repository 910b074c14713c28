"""Token verification result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class VerificationStatus(str, Enum):
    NO_RECORD = "noRecordError"
    INVALID_RECORD = "invalidRecordError"
    INVALID_TOKEN = "invalidTokenError"


@dataclass
class VerificationResult:
    """Outcome of verifying a token.

    On success ``subject`` and ``payload`` are set. On failure ``status``
    names the failure class and ``reason`` gives a short description.
    """
    success: bool
    subject: Any = None
    payload: Dict[str, Any] = field(default_factory=dict)
    status: Optional[VerificationStatus] = None
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, subject: Any, payload: Dict[str, Any]) -> "VerificationResult":
        return cls(success=True, subject=subject, payload=payload)

    @classmethod
    def fail(cls, status: VerificationStatus, reason: str) -> "VerificationResult":
        return cls(success=False, status=status, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "subject": self.subject, "payload": self.payload}
        return {"success": False, "status": self.status.value if self.status else None, "reason": self.reason}


__all__ = [
    "VerificationStatus",
    "VerificationResult",
]
