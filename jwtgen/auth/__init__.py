"""
Token issuance and verification.
"""

from .issuer import TokenIssuer
from .verifier import TokenVerifier, RecordLike
from .verification import VerificationResult, VerificationStatus

__all__ = [
    "TokenIssuer",
    "TokenVerifier",
    "RecordLike",
    "VerificationResult",
    "VerificationStatus",
]
