"""
Token verification against stored records.

Failures are reported, never raised. Signature, binding and expiry failures
all map to ``invalidTokenError`` so callers cannot tell which check failed.
"""

import logging
from datetime import timedelta
from typing import Any, Mapping, Optional, Union

import jwt

from ..monitoring import get_registry
from ..token.types import TokenRecord
from ..tokenstore.store import RecordStore
from .verification import VerificationResult, VerificationStatus

logger = logging.getLogger(__name__)

RecordLike = Union[TokenRecord, Mapping[str, Any]]

INVALID_TOKEN_REASON = "Token does not match key on record or is expired."


def _coerce_record(record: RecordLike) -> TokenRecord:
    if isinstance(record, TokenRecord):
        return record
    return TokenRecord.from_dict(record)


class TokenVerifier:
    """Resolve the record for a token and check the token against it."""

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        algorithm: str = "ES256",
        leeway: timedelta = timedelta(0),
    ):
        self.store = store
        self.algorithm = algorithm
        self.leeway = leeway

    async def verify(self, token: str, *, record: Optional[RecordLike] = None) -> VerificationResult:
        """
        Verify ``token``.

        Args:
            token: Encoded token
            record: Record to verify against instead of looking one up in the store

        Returns:
            VerificationResult; never raises
        """
        result = await self._verify(token, record)
        status = result.status.value if result.status else "success"
        get_registry().observe_verification(status)
        if not result.success:
            logger.warning(f"Token verification failed: {status}")
        return result

    async def _verify(self, token: str, override: Optional[RecordLike]) -> VerificationResult:
        try:
            unverified = jwt.decode_complete(token, options={"verify_signature": False})
            kid = unverified["header"].get("kid")

            if override is not None:
                token_record = _coerce_record(override)
            elif self.store is not None:
                token_record = await self.store.find_one({"id": kid}) if kid else None
            else:
                return VerificationResult.fail(VerificationStatus.NO_RECORD, "No record source available.")

            if token_record is None:
                return VerificationResult.fail(
                    VerificationStatus.NO_RECORD, f"No record found for the token (ID: '{kid}')."
                )

            if not token_record.is_complete():
                return VerificationResult.fail(
                    VerificationStatus.INVALID_RECORD, f"Token record is incomplete (ID: '{kid}')."
                )

            payload = jwt.decode(
                token,
                token_record.key,
                algorithms=[token_record.algorithm or self.algorithm],
                issuer=token_record.issuer,
                leeway=self.leeway,
                options={
                    "require": ["exp", "iss", "sub"],
                    "verify_aud": False,
                    "verify_sub": False,
                },
            )
            # Subjects may be any JSON value, so the binding is checked here.
            if payload.get("sub") != token_record.subject:
                return VerificationResult.fail(VerificationStatus.INVALID_TOKEN, INVALID_TOKEN_REASON)

            return VerificationResult.ok(token_record.subject, payload)

        except Exception as e:
            logger.debug(f"Token rejected: {type(e).__name__}")
            return VerificationResult.fail(VerificationStatus.INVALID_TOKEN, INVALID_TOKEN_REASON)


__all__ = ["TokenVerifier", "RecordLike"]
