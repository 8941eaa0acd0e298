"""Secret store protocol and error types.

Defines the interface the orchestrator uses to persist and fetch the
bootstrap credential bundle. Built-in backends: AwsSecretsManagerStore
(production) and InMemorySecretStore (development/testing).
"""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from vault_init.errors import StoreAccessError
from vault_init.models import BootstrapCredentialBundle, SecretValue, SecretVersion

logger = logging.getLogger(__name__)


class SecretStoreError(Exception):
    """Raised when a secret-store backend call fails."""


class SecretNotFoundError(SecretStoreError):
    """The secret, or its current value, does not exist."""


class SecretAccessDeniedError(SecretStoreError):
    """The caller lacks permission for the requested operation."""


@runtime_checkable
class SecretStore(Protocol):
    """Protocol for secret-store backends.

    A backend holds opaque string values keyed by secret id, with
    overwrite-on-write semantics.
    """

    def exists(self, secret_id: str) -> bool:
        """Return True if the secret entry exists (it may have no value yet).

        Raises:
            SecretStoreError: For any failure other than "not found".
        """
        ...

    def get(self, secret_id: str) -> SecretValue:
        """Fetch the current value.

        Raises:
            SecretNotFoundError: If the entry or its value is missing.
            SecretStoreError: On any other failure.
        """
        ...

    def put(self, secret_id: str, value: str) -> SecretVersion:
        """Overwrite the current value and return the new version.

        Raises:
            SecretStoreError: If the write fails.
        """
        ...


def check_access(store: SecretStore, secret_id: str) -> SecretVersion:
    """Confirm the process can both write and read *secret_id*.

    Writes a probe value, reads it back, and compares. Only the write and
    read permissions are exercised. If the entry already holds a valid
    bootstrap bundle, the probe is that bundle's exact text, so stored keys
    survive the check.

    The bundle check and the probe write are separate calls. If the leader
    stores a freshly generated bundle between them, the timestamp probe
    overwrites it. Replicas that start together before the cluster is
    initialized can hit this window; the read happens immediately before
    the write to keep it as short as the store allows.

    Raises:
        StoreAccessError: If the entry is missing, either permission is
            missing, or the read-back does not match what was written.
    """
    probe = _existing_bundle_text(store, secret_id)
    if probe is None:
        probe = str(time.time_ns())
    else:
        logger.debug("Secret %r holds a bundle, writing it back verbatim", secret_id)

    try:
        version = store.put(secret_id, probe)
    except SecretNotFoundError as exc:
        raise StoreAccessError(f"Secret {secret_id!r} does not exist: {exc}") from exc
    except SecretStoreError as exc:
        raise StoreAccessError(f"Update secret {secret_id!r}: {exc}") from exc

    try:
        current = store.get(secret_id)
    except SecretStoreError as exc:
        raise StoreAccessError(f"Get secret {secret_id!r}: {exc}") from exc

    if current.value != probe:
        raise StoreAccessError(
            f"Secret {secret_id!r} read back a different value than was written"
        )

    logger.info(
        "Secret store access confirmed for %r (version %s)",
        secret_id, version.version_id or "unknown",
    )
    return version


def _existing_bundle_text(store: SecretStore, secret_id: str) -> str | None:
    """Return the stored value if it parses as a bundle, else ``None``."""
    try:
        current = store.get(secret_id)
    except SecretNotFoundError:
        return None
    except SecretStoreError as exc:
        raise StoreAccessError(f"Get secret {secret_id!r}: {exc}") from exc

    try:
        BootstrapCredentialBundle.model_validate_json(current.value)
    except ValidationError:
        return None
    return current.value


def build_store(config: dict[str, Any]) -> SecretStore:
    """Build a secret store from a configuration dict.

    Supported keys:
    - type: ``"aws"`` (default) or ``"memory"``
    - region: AWS region (aws only)
    - endpoint_url: custom endpoint, e.g. LocalStack (aws only)
    - profile: AWS profile name (aws only)
    """
    store_type = config.get("type", "aws")

    if store_type == "aws":
        from vault_init.secrets.aws_store import AwsSecretsManagerStore

        return AwsSecretsManagerStore(
            region=config.get("region"),
            profile=config.get("profile"),
            endpoint_url=config.get("endpoint_url"),
        )

    if store_type == "memory":
        from vault_init.secrets.memory_store import InMemorySecretStore

        return InMemorySecretStore()

    raise SecretStoreError(
        f"Unknown secret store type: {store_type}. Available: 'aws', 'memory'."
    )
