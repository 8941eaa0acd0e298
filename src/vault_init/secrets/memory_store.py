"""In-memory secret store — for development and testing.

Keeps values in a dict. Nothing survives the process, so it is only useful
for local runs against a throwaway Vault and in tests.
"""

from __future__ import annotations

import uuid

from vault_init.models import SecretValue, SecretVersion
from vault_init.secrets.store import SecretAccessDeniedError, SecretNotFoundError


class InMemorySecretStore:
    """Secret store backed by a dict.

    Entries must be declared (``create()``) before they can be written,
    mirroring a pre-provisioned AWS secret. Read/write permissions can be
    revoked per entry to simulate access-control misconfiguration.
    """

    def __init__(self, secrets: dict[str, str | None] | None = None) -> None:
        self._values: dict[str, str | None] = dict(secrets or {})
        self._versions: dict[str, list[str]] = {}
        self._deny_read: set[str] = set()
        self._deny_write: set[str] = set()

    def create(self, secret_id: str) -> None:
        """Declare an entry with no value."""
        self._values.setdefault(secret_id, None)

    def deny(self, secret_id: str, *, read: bool = False, write: bool = False) -> None:
        """Revoke read and/or write permission on an entry."""
        if read:
            self._deny_read.add(secret_id)
        if write:
            self._deny_write.add(secret_id)

    def exists(self, secret_id: str) -> bool:
        return secret_id in self._values

    def get(self, secret_id: str) -> SecretValue:
        if secret_id in self._deny_read:
            raise SecretAccessDeniedError(f"get secret {secret_id!r}: access denied")
        value = self._values.get(secret_id)
        if value is None:
            raise SecretNotFoundError(f"Secret {secret_id!r} has no value")
        versions = self._versions.get(secret_id, [])
        return SecretValue(value=value, version_id=versions[-1] if versions else "")

    def put(self, secret_id: str, value: str) -> SecretVersion:
        if secret_id not in self._values:
            raise SecretNotFoundError(f"Secret {secret_id!r} does not exist")
        if secret_id in self._deny_write:
            raise SecretAccessDeniedError(
                f"update secret {secret_id!r}: access denied"
            )
        version_id = uuid.uuid4().hex
        self._values[secret_id] = value
        self._versions.setdefault(secret_id, []).append(version_id)
        return SecretVersion(name=secret_id, version_id=version_id)

    @property
    def write_count(self) -> int:
        """Total successful writes across all entries (for testing)."""
        return sum(len(v) for v in self._versions.values())
