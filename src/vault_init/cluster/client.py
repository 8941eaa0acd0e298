"""Cluster control client protocol.

The orchestrator only needs four administrative operations from the
clustered server. Any object with these methods satisfies the protocol,
so tests can drive the orchestrator with a plain fake.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from vault_init.models import (
    BootstrapCredentialBundle,
    HealthSnapshot,
    JoinResult,
    UnsealProgress,
)


class ClusterClientError(Exception):
    """Raised when an administrative call fails (transport or remote error)."""


@runtime_checkable
class ClusterClient(Protocol):
    """Protocol for the clustered server's administrative API."""

    def health(self) -> HealthSnapshot:
        """Read the current health of this node."""
        ...

    def initialize(
        self, secret_shares: int, secret_threshold: int,
    ) -> BootstrapCredentialBundle:
        """Initialize the cluster and return the generated credentials."""
        ...

    def join_cluster(
        self,
        leader_api_addr: str,
        leader_ca_cert: str | None = None,
        leader_client_cert: str | None = None,
        leader_client_key: str | None = None,
    ) -> JoinResult:
        """Ask this node to join the raft cluster led by *leader_api_addr*."""
        ...

    def unseal_shard(self, key: str) -> UnsealProgress:
        """Submit one unseal key share."""
        ...
