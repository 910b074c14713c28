"""Signing key pair ownership and rotation."""

from __future__ import annotations

import asyncio
import logging
import secrets
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from ..errors import KeyGenerationError
from ..monitoring import get_registry

logger = logging.getLogger(__name__)

_EC_CURVES = {
    "ES256": ec.SECP256R1,
    "ES384": ec.SECP384R1,
    "ES512": ec.SECP521R1,
}


@dataclass(frozen=True)
class KeyPair:
    key_id: str
    algorithm: str
    public_key: str
    private_key: str
    created_at: datetime

    def __repr__(self) -> str:
        return f"KeyPair(key_id={self.key_id!r}, algorithm={self.algorithm!r}, created_at={self.created_at.isoformat()})"


def generate_key_pair(algorithm: str = "ES256", rsa_key_size: int = 2048) -> KeyPair:
    """Generate a fresh PEM-encoded key pair for the given JWS algorithm.

    Raises:
        KeyGenerationError: If the algorithm is unknown or generation fails.
    """
    try:
        if algorithm in _EC_CURVES:
            private = ec.generate_private_key(_EC_CURVES[algorithm]())
        elif algorithm.startswith(("RS", "PS")):
            private = rsa.generate_private_key(public_exponent=65537, key_size=rsa_key_size)
        elif algorithm == "EdDSA":
            private = ed25519.Ed25519PrivateKey.generate()
        else:
            raise KeyGenerationError(f"No key type for algorithm {algorithm}", algorithm)

        private_pem = private.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_pem = private.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    except KeyGenerationError:
        raise
    except Exception as e:
        raise KeyGenerationError(f"Key generation failed: {e}", algorithm) from e

    return KeyPair(
        key_id=secrets.token_hex(8),
        algorithm=algorithm,
        public_key=public_pem.decode("utf-8"),
        private_key=private_pem.decode("utf-8"),
        created_at=datetime.now(timezone.utc),
    )


class KeyRing:
    """Own the current signing key pair and replace it on a schedule.

    Exactly one pair is current. Rotation builds the new pair completely before
    swapping the single reference, so readers see either the old pair or the
    new one. With a non-positive ``rotation_interval`` no timer runs and the
    issuer is expected to call ``rotate`` after every token.
    """

    def __init__(
        self,
        algorithm: str = "ES256",
        rotation_interval: timedelta = timedelta(minutes=60),
        rsa_key_size: int = 2048,
    ):
        self.algorithm = algorithm
        self.rotation_interval = rotation_interval
        self.rsa_key_size = rsa_key_size
        self._lock = asyncio.Lock()
        self._current: KeyPair = generate_key_pair(algorithm, rsa_key_size)
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def rotates_per_issuance(self) -> bool:
        return self.rotation_interval <= timedelta(0)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def current(self) -> KeyPair:
        return self._current

    @property
    def public_key(self) -> str:
        return self._current.public_key

    @property
    def private_key(self) -> str:
        return self._current.private_key

    async def rotate(self, trigger: str = "manual") -> KeyPair:
        """Generate a new key pair and make it current.

        Raises:
            KeyGenerationError: The previous pair stays current.
        """
        async with self._lock:
            new_pair = generate_key_pair(self.algorithm, self.rsa_key_size)
            previous = self._current
            self._current = new_pair
        logger.info(f"Rotated signing key {previous.key_id} -> {new_pair.key_id} ({trigger})")
        get_registry().observe_rotation(trigger)
        return new_pair

    def start(self) -> None:
        """Start periodic rotation. Must be called from a running event loop."""
        if self.rotates_per_issuance or self.running:
            return
        self._stopped = False
        self._task = asyncio.get_running_loop().create_task(self._rotation_loop())
        logger.info(f"Key rotation scheduled every {self.rotation_interval}")

    async def stop(self) -> None:
        """Stop periodic rotation; no scheduled rotation fires after this returns."""
        self._stopped = True
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        logger.info("Key rotation stopped")

    async def _rotation_loop(self) -> None:
        interval = self.rotation_interval.total_seconds()
        while not self._stopped:
            await asyncio.sleep(interval)
            if self._stopped:
                break
            try:
                await self.rotate(trigger="scheduled")
            except KeyGenerationError as e:
                logger.error(f"Scheduled key rotation failed, keeping current key: {e}")


__all__ = [
    "KeyRing",
    "KeyPair",
    "generate_key_pair",
]
