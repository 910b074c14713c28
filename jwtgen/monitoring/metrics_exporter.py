"""Prometheus metrics for token issuance, verification and key rotation.

Counters are registered once per process against the default registry and
shared by every generator through ``get_registry()``.
"""
from __future__ import annotations

from typing import Optional

from prometheus_client import Counter


class MetricsRegistry:
    def __init__(self):
        self.tokens_issued = Counter("jwtgen_tokens_issued_total", "Tokens issued", ["issuer"])
        self.verifications = Counter("jwtgen_verifications_total", "Token verifications by outcome", ["status"])
        self.key_rotations = Counter("jwtgen_key_rotations_total", "Signing key rotations", ["trigger"])
        self.store_write_failures = Counter("jwtgen_store_write_failures_total", "Failed record store writes")

    def observe_issued(self, issuer: str) -> None:
        self.tokens_issued.labels(issuer=issuer).inc()

    def observe_verification(self, status: str) -> None:
        self.verifications.labels(status=status).inc()

    def observe_rotation(self, trigger: str) -> None:
        self.key_rotations.labels(trigger=trigger).inc()

    def observe_store_failure(self) -> None:
        self.store_write_failures.inc()


_registry: Optional[MetricsRegistry] = None


def get_registry() -> MetricsRegistry:
    global _registry
    if _registry is None:
        _registry = MetricsRegistry()
    return _registry


__all__ = ["get_registry", "MetricsRegistry"]
