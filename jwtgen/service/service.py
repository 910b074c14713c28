"""
Token generator service.

This module provides ``TokenGenerator``, which ties together the key ring,
the issuer, the verifier and an optional record store under a single
generator identity.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from ..auth.issuer import TokenIssuer
from ..auth.verification import VerificationResult
from ..auth.verifier import RecordLike, TokenVerifier
from ..config import DurationLike, GeneratorConfig
from ..token.keyring import KeyPair, KeyRing
from ..token.types import IssuedToken
from ..tokenstore.store import RecordStore

logger = logging.getLogger(__name__)


class TokenGenerator:
    """
    Issue and verify tokens signed with a rotating key pair.

    The generator id is the ``iss`` claim of every token it issues. When a
    record store is given, each issued token's record is written to it (one
    record per subject) and verification looks records up by the token's
    ``kid``. Without a store, callers keep records themselves and pass them
    to ``verify``.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None, store: Optional[RecordStore] = None):
        """Initialize the generator and its first key pair."""
        self.config = config or GeneratorConfig()
        self.store = store
        self.key_ring = KeyRing(
            algorithm=self.config.algorithm,
            rotation_interval=self.config.key_lifetime,
            rsa_key_size=self.config.rsa_key_size,
        )
        self.issuer = TokenIssuer(
            issuer_id=self.config.id,
            key_ring=self.key_ring,
            store=store,
            token_lifetime=self.config.token_lifetime,
            background_writes=self.config.background_writes,
        )
        self.verifier = TokenVerifier(
            store=store,
            algorithm=self.config.algorithm,
            leeway=self.config.leeway,
        )
        self._started = False
        self._disposed = False

        logger.info(f"Token generator {self.id} initialized ({self.config.algorithm})")

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def algorithm(self) -> str:
        return self.config.algorithm

    @property
    def token_lifetime(self):
        return self.config.token_lifetime

    @property
    def public_key(self) -> str:
        return self.key_ring.public_key

    async def start(self) -> None:
        """Start periodic key rotation, if configured.

        After ``dispose`` only an explicit call restarts rotation; ``issue``
        does not.
        """
        if self._started:
            return
        self.key_ring.start()
        self._started = True
        self._disposed = False

    async def issue(
        self,
        subject: Any,
        *,
        duration: Optional[DurationLike] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> IssuedToken:
        """
        Issue a token for a subject.

        Args:
            subject: Identity carried by the token
            duration: Lifetime override for this token
            payload: Additional custom claims

        Returns:
            IssuedToken with ``record`` and ``token``
        """
        if not self._started and not self._disposed:
            await self.start()
        return await self.issuer.issue(subject, duration=duration, payload=payload)

    async def verify(self, token: str, *, record: Optional[RecordLike] = None) -> VerificationResult:
        """
        Verify a token against its record.

        Args:
            token: Token string
            record: Explicit record, bypassing the store

        Returns:
            VerificationResult
        """
        return await self.verifier.verify(token, record=record)

    async def rotate_keys(self) -> KeyPair:
        """Replace the signing key pair now."""
        return await self.key_ring.rotate(trigger="manual")

    async def flush(self) -> None:
        """Wait for pending background record writes."""
        await self.issuer.flush()

    async def dispose(self) -> None:
        """Stop key rotation and wait for pending record writes."""
        if self._disposed:
            return
        await self.key_ring.stop()
        await self.issuer.flush()
        self._started = False
        self._disposed = True
        logger.info(f"Token generator {self.id} disposed")

    def get_stats(self) -> Dict[str, Any]:
        """Get generator statistics."""
        current = self.key_ring.current()
        return {
            "id": self.id,
            "algorithm": self.algorithm,
            "key_id": current.key_id,
            "key_created_at": current.created_at.isoformat(),
            "rotates_per_issuance": self.key_ring.rotates_per_issuance,
            "rotation_running": self.key_ring.running,
            "token_lifetime_seconds": self.token_lifetime.total_seconds(),
            "store": type(self.store).__name__ if self.store is not None else None,
            "pending_writes": self.issuer.pending_writes,
        }

    async def __aenter__(self) -> "TokenGenerator":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()


def create_token_generator(store: Optional[RecordStore] = None, **kwargs) -> TokenGenerator:
    """
    Factory function to create a token generator.

    Args:
        store: Optional record store
        **kwargs: GeneratorConfig fields

    Returns:
        Configured token generator
    """
    return TokenGenerator(GeneratorConfig(**kwargs), store=store)


__all__ = ["TokenGenerator", "create_token_generator"]
