"""
Token issuance.

Every issued token is paired with a ``TokenRecord`` holding the public key it
was signed under. The record id doubles as the token's ``kid`` header.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Set

import jwt

from ..config import DurationLike, DEFAULT_TOKEN_LIFETIME, parse_duration
from ..errors import JWTGenError, RecordStoreError, TokenIssueError
from ..monitoring import get_registry
from ..token.keyring import KeyRing
from ..token.types import IssuedToken, TokenRecord, merge_claims
from ..tokenstore.store import RecordStore

logger = logging.getLogger(__name__)


class TokenIssuer:
    """Build, sign and record tokens for subjects."""

    def __init__(
        self,
        issuer_id: str,
        key_ring: KeyRing,
        store: Optional[RecordStore] = None,
        token_lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
        background_writes: bool = False,
    ):
        self.issuer_id = issuer_id
        self.key_ring = key_ring
        self.store = store
        self.token_lifetime = token_lifetime
        self.background_writes = background_writes
        self._pending_writes: Set[asyncio.Task] = set()

    async def issue(
        self,
        subject: Any,
        *,
        duration: Optional[DurationLike] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> IssuedToken:
        """
        Issue a token for ``subject``.

        Args:
            subject: Identity echoed into the ``sub`` claim and the record; any JSON value
            duration: Lifetime for this token only, defaults to the configured lifetime
            payload: Extra claims; ``sub``, ``iss``, ``iat`` and ``exp`` are never overwritten

        Returns:
            The signed token and its verification record

        Raises:
            KeyGenerationError: If per-issuance key rotation fails
            RecordStoreError: If the record could not be written
            TokenIssueError: If the token could not be built or signed
        """
        try:
            now = datetime.now(timezone.utc)
            lifetime = parse_duration(duration) if duration is not None else self.token_lifetime
            expires_at = now + lifetime

            claims = merge_claims(
                {
                    "sub": subject,
                    "iss": self.issuer_id,
                    "iat": int(now.timestamp()),
                    "exp": int(expires_at.timestamp()),
                },
                payload,
            )

            key_pair = self.key_ring.current()
            record = TokenRecord(
                id=str(uuid.uuid4()),
                subject=subject,
                issuer=self.issuer_id,
                key=key_pair.public_key,
                issued_at=now,
                expires_at=expires_at,
                algorithm=key_pair.algorithm,
            )
            token = jwt.encode(
                claims,
                key_pair.private_key,
                algorithm=key_pair.algorithm,
                headers={"kid": record.id},
            )
        except JWTGenError:
            raise
        except Exception as e:
            logger.error(f"Token generation failed: {e}")
            raise TokenIssueError(f"Token generation failed: {e}") from e

        # Signing pair is retired before the record write.
        if self.key_ring.rotates_per_issuance:
            await self.key_ring.rotate(trigger="issuance")

        if self.store is not None:
            if self.background_writes:
                self._schedule_write(record)
            else:
                await self._persist(record)

        get_registry().observe_issued(self.issuer_id)
        logger.info(f"Issued token {record.id} expiring {expires_at.isoformat()}")
        return IssuedToken(record=record, token=token)

    async def _persist(self, record: TokenRecord) -> None:
        """Insert the record, or replace the subject's current record."""
        try:
            current = await self.store.find_one({"subject": record.subject})
            if current is None:
                await self.store.insert_one(record)
                return
            if not await self.store.replace_one({"id": current.id}, record):
                # Replaced concurrently; last write wins.
                logger.debug(f"Record {current.id} vanished before replace, inserting {record.id}")
                await self.store.insert_one(record)
        except RecordStoreError:
            raise
        except Exception as e:
            raise RecordStoreError(f"Failed to store record {record.id}: {e}") from e

    def _schedule_write(self, record: TokenRecord) -> None:
        task = asyncio.get_running_loop().create_task(self._persist(record))
        self._pending_writes.add(task)
        task.add_done_callback(self._write_done)

    def _write_done(self, task: asyncio.Task) -> None:
        self._pending_writes.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            get_registry().observe_store_failure()
            logger.error(f"Background record write failed: {exc}")

    @property
    def pending_writes(self) -> int:
        return len(self._pending_writes)

    async def flush(self) -> None:
        """Wait for background record writes scheduled so far."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)


__all__ = ["TokenIssuer"]
