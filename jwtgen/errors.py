"""
Error types for jwtgen.

Verification never raises; these cover issuance and operational failures.
"""

from typing import Any, Dict, Optional


class JWTGenError(Exception):
    """Base class for all jwtgen errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(JWTGenError):
    """Invalid generator or store configuration."""
    pass


class KeyGenerationError(JWTGenError):
    """A signing key pair could not be generated."""

    def __init__(self, message: str, algorithm: Optional[str] = None):
        super().__init__(message, {"algorithm": algorithm} if algorithm else None)
        self.algorithm = algorithm


class RecordStoreError(JWTGenError):
    """The record store failed a read or write."""
    pass


class TokenIssueError(JWTGenError):
    """Token issuance failed for a reason other than keys or storage."""
    pass


__all__ = [
    "JWTGenError",
    "ConfigurationError",
    "KeyGenerationError",
    "RecordStoreError",
    "TokenIssueError",
]
