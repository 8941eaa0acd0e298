"""Replica identity resolution."""

from vault_init.identity.replica import (
    ReplicaIdentityResolver,
    current_hostname,
    replica_ordinal,
    role_for_ordinal,
)

__all__ = [
    "ReplicaIdentityResolver",
    "current_hostname",
    "replica_ordinal",
    "role_for_ordinal",
]
