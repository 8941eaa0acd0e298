"""Core data models for vault-init.

Defines the schemas for:
- Health snapshots (what the cluster reports each tick)
- Bootstrap credential bundles (what initialization produces and the
  secret store persists)
- Join and unseal responses
- Secret-store versions and values
- Tick results (what a poll tick did)
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Enums ---


class ReplicaRole(enum.StrEnum):
    LEADER = "leader"
    FOLLOWER = "follower"


class TickOutcome(enum.StrEnum):
    STEADY = "steady"
    BOOTSTRAPPED = "bootstrapped"
    FAILED = "failed"


class BootstrapAction(enum.StrEnum):
    INITIALIZE = "initialize"
    JOIN = "join"
    UNSEAL = "unseal"


# --- Cluster responses ---


class HealthSnapshot(BaseModel):
    """Point-in-time read of ``/v1/sys/health``.

    Only ``initialized`` and ``sealed`` drive decisions. Everything else is
    diagnostic and kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    initialized: bool
    sealed: bool
    standby: bool = False
    version: str = ""
    cluster_name: str = ""
    cluster_id: str = ""
    server_time_utc: int | None = None

    @property
    def steady(self) -> bool:
        """True when the node is initialized and unsealed."""
        return self.initialized and not self.sealed


class BootstrapCredentialBundle(BaseModel):
    """Result of cluster initialization.

    Field names match Vault's init response so the stored JSON is the
    response verbatim, plus the shares/threshold used to produce it.
    """

    keys: list[str] = Field(default_factory=list)
    keys_base64: list[str] = Field(default_factory=list)
    recovery_keys: list[str] = Field(default_factory=list)
    recovery_keys_base64: list[str] = Field(default_factory=list)
    root_token: str
    secret_shares: int | None = None
    secret_threshold: int | None = None

    @field_validator(
        "keys", "keys_base64", "recovery_keys", "recovery_keys_base64", mode="before",
    )
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        # Go clients serialize empty slices as null.
        return [] if value is None else value

    @property
    def unseal_keys(self) -> list[str]:
        """Key shares in submission order (base64 form when available)."""
        return self.keys_base64 or self.keys

    def __repr__(self) -> str:
        # Never leak key material through logs or tracebacks.
        return (
            f"BootstrapCredentialBundle(keys=<{len(self.unseal_keys)} shares>, "
            f"secret_shares={self.secret_shares}, "
            f"secret_threshold={self.secret_threshold})"
        )

    __str__ = __repr__


class JoinResult(BaseModel):
    """Response of ``/v1/sys/storage/raft/join``."""

    joined: bool = False


class UnsealProgress(BaseModel):
    """Response of ``/v1/sys/unseal`` after one key share."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sealed: bool
    progress: int = 0
    threshold: int = Field(default=0, alias="t")
    shares: int = Field(default=0, alias="n")


# --- Secret store ---


class SecretVersion(BaseModel):
    """Identifies the version written by a secret-store ``put``."""

    arn: str = ""
    name: str = ""
    version_id: str = ""


class SecretValue(BaseModel):
    """Current value of a secret-store entry."""

    value: str
    version_id: str = ""


# --- Tick results ---


class TickResult(BaseModel):
    """What a single poll tick observed and did."""

    outcome: TickOutcome
    health: HealthSnapshot | None = None
    actions: list[BootstrapAction] = Field(default_factory=list)
    error: str | None = None
