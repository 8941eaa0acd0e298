"""Secret store gateway: persists the bootstrap credential bundle.

Backends: AwsSecretsManagerStore, InMemorySecretStore.
"""

from vault_init.secrets.memory_store import InMemorySecretStore
from vault_init.secrets.store import (
    SecretAccessDeniedError,
    SecretNotFoundError,
    SecretStore,
    SecretStoreError,
    build_store,
    check_access,
)

__all__ = [
    "InMemorySecretStore",
    "SecretAccessDeniedError",
    "SecretNotFoundError",
    "SecretStore",
    "SecretStoreError",
    "build_store",
    "check_access",
]
