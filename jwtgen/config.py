"""
Configuration for token generators.

Durations may be given as ``timedelta`` objects, as a number of seconds, or as
a mapping of units such as ``{"minutes": 30}``.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Mapping, Optional, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DurationLike = Union[timedelta, int, float, Mapping[str, Any]]

DEFAULT_TOKEN_LIFETIME = timedelta(minutes=30)
DEFAULT_KEY_LIFETIME = timedelta(minutes=60)
MIN_RSA_KEY_SIZE = 2048

SUPPORTED_ALGORITHMS = (
    "ES256", "ES384", "ES512",
    "RS256", "RS384", "RS512",
    "PS256", "PS384", "PS512",
    "EdDSA",
)

_UNIT_ALIASES: Dict[str, str] = {
    "week": "weeks",
    "day": "days",
    "hour": "hours",
    "minute": "minutes",
    "second": "seconds",
    "millisecond": "milliseconds",
    "microsecond": "microseconds",
}


def parse_duration(value: DurationLike) -> timedelta:
    """Normalize a duration-like value into a ``timedelta``.

    Args:
        value: timedelta, seconds as int/float, or a mapping of unit -> amount
            (singular or plural unit names, e.g. ``{"hour": 1, "minutes": 5}``)

    Returns:
        The equivalent timedelta.

    Raises:
        ConfigurationError: If the value or one of its units is not understood.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if isinstance(value, Mapping):
        kwargs: Dict[str, float] = {}
        for unit, amount in value.items():
            name = _UNIT_ALIASES.get(unit, unit)
            if name not in _UNIT_ALIASES.values():
                raise ConfigurationError(f"Unknown duration unit: {unit!r}")
            if isinstance(amount, bool) or not isinstance(amount, (int, float)):
                raise ConfigurationError(f"Invalid amount for duration unit {unit!r}: {amount!r}")
            kwargs[name] = kwargs.get(name, 0) + amount
        return timedelta(**kwargs)
    raise ConfigurationError(f"Invalid duration: {value!r}")


@dataclass
class GeneratorConfig:
    """Configuration for a token generator.

    A ``key_lifetime`` of zero or less disables periodic rotation and rotates
    the key pair after every issued token instead.
    """
    id: Optional[str] = None
    algorithm: str = "ES256"
    key_lifetime: DurationLike = DEFAULT_KEY_LIFETIME
    token_lifetime: DurationLike = DEFAULT_TOKEN_LIFETIME
    rsa_key_size: int = MIN_RSA_KEY_SIZE
    leeway: DurationLike = field(default_factory=timedelta)
    background_writes: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            self.id = str(uuid.uuid4())
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(
                f"Unsupported signing algorithm: {self.algorithm}",
                {"supported": list(SUPPORTED_ALGORITHMS)},
            )
        self.key_lifetime = parse_duration(self.key_lifetime)
        self.token_lifetime = parse_duration(self.token_lifetime)
        self.leeway = parse_duration(self.leeway)
        if self.leeway < timedelta(0):
            raise ConfigurationError("leeway must not be negative")
        if self.rsa_key_size < MIN_RSA_KEY_SIZE:
            raise ConfigurationError(f"rsa_key_size must be at least {MIN_RSA_KEY_SIZE}")

    @property
    def rotates_per_issuance(self) -> bool:
        return self.key_lifetime <= timedelta(0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GeneratorConfig":
        """Build a config from a plain mapping, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        ignored = set(data) - set(known)
        if ignored:
            logger.warning(f"Ignoring unknown generator config keys: {sorted(ignored)}")
        return cls(**known)


__all__ = [
    "GeneratorConfig",
    "parse_duration",
    "DurationLike",
    "SUPPORTED_ALGORITHMS",
    "DEFAULT_TOKEN_LIFETIME",
    "DEFAULT_KEY_LIFETIME",
]
