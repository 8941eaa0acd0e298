"""Cluster control client for the Vault administrative API."""

from vault_init.cluster.client import ClusterClient, ClusterClientError
from vault_init.cluster.tls import resolve_material

__all__ = [
    "ClusterClient",
    "ClusterClientError",
    "resolve_material",
]
