"""vault-init: a sidecar that keeps a raft-backed Vault replica initialized and unsealed."""

__version__ = "0.4.0"

# Optional backend imports (don't crash if optional deps are missing)
import contextlib

from vault_init.bootstrap.orchestrator import JoinOptions, Orchestrator
from vault_init.bootstrap.retry import RetryPolicy
from vault_init.bootstrap.ticker import Ticker
from vault_init.cluster.client import ClusterClient, ClusterClientError
from vault_init.config import VaultInitConfig, find_config, load_config
from vault_init.errors import FatalError, TickError, VaultInitError
from vault_init.identity.replica import ReplicaIdentityResolver
from vault_init.models import (
    BootstrapCredentialBundle,
    HealthSnapshot,
    JoinResult,
    ReplicaRole,
    TickOutcome,
    TickResult,
    UnsealProgress,
)
from vault_init.secrets.memory_store import InMemorySecretStore
from vault_init.secrets.store import SecretStore, SecretStoreError, check_access

with contextlib.suppress(ImportError):
    from vault_init.secrets.aws_store import AwsSecretsManagerStore

with contextlib.suppress(ImportError):
    from vault_init.cluster.hvac_client import HvacClusterClient

__all__ = [
    "AwsSecretsManagerStore",
    "BootstrapCredentialBundle",
    "ClusterClient",
    "ClusterClientError",
    "FatalError",
    "find_config",
    "HealthSnapshot",
    "HvacClusterClient",
    "InMemorySecretStore",
    "JoinOptions",
    "JoinResult",
    "load_config",
    "Orchestrator",
    "ReplicaIdentityResolver",
    "ReplicaRole",
    "RetryPolicy",
    "SecretStore",
    "SecretStoreError",
    "Ticker",
    "TickError",
    "TickOutcome",
    "TickResult",
    "UnsealProgress",
    "VaultInitConfig",
    "VaultInitError",
    "check_access",
    "__version__",
]
