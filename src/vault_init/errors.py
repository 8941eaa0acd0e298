"""Error taxonomy for vault-init.

Two families matter to the control loop:

- ``FatalError``: the process must stop. Raised for configuration problems,
  missing secret-store permissions, and bootstrap credentials that cannot be
  encoded or completed (TLS material that cannot be read).
- ``TickError``: the current poll tick ends and the next tick starts over
  from a fresh health snapshot.

Client-layer errors (``ClusterClientError``, ``SecretStoreError``) live next
to their clients and are wrapped into tick errors by the orchestrator.
"""

from __future__ import annotations


class VaultInitError(Exception):
    """Base class for all vault-init errors."""


# --- Fatal ---


class FatalError(VaultInitError):
    """Unrecoverable error. The caller is expected to terminate the process."""


class ConfigError(FatalError):
    """Raised when required configuration is missing or invalid."""


class StoreAccessError(FatalError):
    """Raised when the secret-store entry cannot be both written and read."""


class BundleEncodeError(FatalError):
    """Raised when an initialization bundle cannot be serialized."""


class TlsMaterialError(FatalError):
    """Raised when a ``@file`` TLS reference cannot be read."""


# --- Per tick ---


class TickError(VaultInitError):
    """A failure that ends the current tick. The loop keeps running."""


class HealthCheckError(TickError):
    """Raised when the cluster health cannot be read."""


class ReplicaIdentityError(TickError):
    """Raised when the replica ordinal cannot be derived from the hostname."""


class InitializeError(TickError):
    """Raised when the leader fails to initialize the cluster."""


class JoinError(TickError):
    """Raised when a follower fails to join the raft cluster."""


class JoinRejectedError(JoinError):
    """The join call succeeded but the cluster reported ``joined: false``."""


class UnsealError(TickError):
    """Raised when fetching keys or submitting an unseal shard fails."""


class BundleDecodeError(UnsealError):
    """Raised when the stored bundle cannot be deserialized."""
