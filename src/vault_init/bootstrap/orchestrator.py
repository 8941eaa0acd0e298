"""Orchestrator — brings a Vault replica to an initialized, unsealed state.

Each tick reads a fresh health snapshot and decides what to do:

  1. Initialized and unsealed: nothing.
  2. Uninitialized: the leader (ordinal 0) initializes the cluster and
     stores the generated keys; followers join the raft cluster.
  3. Sealed (including right after step 2): fetch the stored keys and
     submit shares until the node reports it is unsealed.

Tick errors are logged and the next tick starts over. Fatal errors
propagate to the caller, which is expected to stop the process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from vault_init.bootstrap.retry import RetryPolicy
from vault_init.cluster.client import ClusterClient, ClusterClientError
from vault_init.cluster.tls import resolve_material
from vault_init.errors import (
    BundleDecodeError,
    BundleEncodeError,
    FatalError,
    HealthCheckError,
    InitializeError,
    JoinError,
    JoinRejectedError,
    TickError,
    UnsealError,
)
from vault_init.identity.replica import ReplicaIdentityResolver
from vault_init.models import (
    BootstrapAction,
    BootstrapCredentialBundle,
    HealthSnapshot,
    ReplicaRole,
    SecretVersion,
    TickOutcome,
    TickResult,
)
from vault_init.secrets.store import SecretStore, SecretStoreError, check_access

if TYPE_CHECKING:
    from vault_init.bootstrap.ticker import Ticker
    from vault_init.config import VaultInitConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JoinOptions:
    """Where followers join, and the TLS material to reach the leader.

    TLS fields are kept raw (inline PEM or ``@<path>``) and resolved at
    join time.
    """

    leader_api_addr: str = ""
    leader_ca_cert: str = ""
    leader_client_cert: str = ""
    leader_client_key: str = ""


class Orchestrator:
    """Poll-driven bootstrap state machine for one Vault replica.

    Both clients are constructed by the caller and injected; the
    orchestrator never builds its own.
    """

    def __init__(
        self,
        cluster: ClusterClient,
        store: SecretStore,
        secret_id: str,
        *,
        identity: ReplicaIdentityResolver | None = None,
        secret_shares: int = 5,
        secret_threshold: int = 3,
        join_options: JoinOptions | None = None,
        store_retry: RetryPolicy | None = None,
    ) -> None:
        self._cluster = cluster
        self._store = store
        self._secret_id = secret_id
        self._identity = identity or ReplicaIdentityResolver()
        self._secret_shares = secret_shares
        self._secret_threshold = secret_threshold
        self._join = join_options or JoinOptions()
        self._store_retry = store_retry or RetryPolicy(delay=3.0)

    @classmethod
    def from_config(
        cls,
        config: VaultInitConfig,
        cluster: ClusterClient,
        store: SecretStore,
        identity: ReplicaIdentityResolver | None = None,
    ) -> Orchestrator:
        return cls(
            cluster,
            store,
            config.secret_id,
            identity=identity,
            secret_shares=config.secret_shares,
            secret_threshold=config.secret_threshold,
            join_options=JoinOptions(
                leader_api_addr=config.raft_leader_api_addr,
                leader_ca_cert=config.raft_leader_ca_cert,
                leader_client_cert=config.raft_leader_client_cert,
                leader_client_key=config.raft_leader_client_key,
            ),
            store_retry=RetryPolicy(delay=config.store_retry_delay),
        )

    @property
    def secret_id(self) -> str:
        return self._secret_id

    # --- Lifecycle ---

    def check_access(self) -> SecretVersion:
        """Startup check: the secret entry must be writable and readable.

        Raises:
            StoreAccessError: If it is not. This is fatal.
        """
        return check_access(self._store, self._secret_id)

    def run(self, ticker: Ticker, *, max_ticks: int | None = None) -> None:
        """Tick on *ticker* until it is stopped or a fatal error occurs."""
        ticker.run(self.tick, max_ticks=max_ticks)

    def tick(self) -> TickResult:
        """Run one status check and whatever bootstrap steps it calls for.

        Only ``FatalError`` propagates. Anything else raised during the
        tick is logged and reported as a failed result, so the next tick
        still runs.
        """
        try:
            return self._check()
        except FatalError:
            raise
        except Exception as exc:
            logger.exception("Checking vault: unexpected error")
            return TickResult(
                outcome=TickOutcome.FAILED, error=f"{type(exc).__name__}: {exc}",
            )

    def _check(self) -> TickResult:
        logger.debug("Checking vault status")
        try:
            health = self.health()
        except TickError as exc:
            logger.error("Checking vault: %s", exc)
            return TickResult(outcome=TickOutcome.FAILED, error=str(exc))

        if health.steady:
            logger.debug("Nothing to do")
            return TickResult(outcome=TickOutcome.STEADY, health=health)

        actions: list[BootstrapAction] = []
        try:
            if not health.initialized:
                role = self._identity.role()
                logger.debug("Vault replica role: %s", role)
                if role is ReplicaRole.LEADER:
                    self.initialize()
                    actions.append(BootstrapAction.INITIALIZE)
                else:
                    self.join()
                    actions.append(BootstrapAction.JOIN)

            if health.sealed:
                self.unseal()
                actions.append(BootstrapAction.UNSEAL)
        except TickError as exc:
            logger.error("Checking vault: %s", exc)
            return TickResult(
                outcome=TickOutcome.FAILED,
                health=health,
                actions=actions,
                error=str(exc),
            )

        return TickResult(
            outcome=TickOutcome.BOOTSTRAPPED, health=health, actions=actions,
        )

    # --- Steps ---

    def health(self) -> HealthSnapshot:
        try:
            health = self._cluster.health()
        except ClusterClientError as exc:
            raise HealthCheckError(f"read health: {exc}") from exc
        logger.debug(
            "Got vault status: initialized=%s sealed=%s standby=%s",
            health.initialized, health.sealed, health.standby,
        )
        return health

    def initialize(self) -> SecretVersion:
        """Initialize the cluster and persist the resulting bundle.

        The write to the secret store is retried until it succeeds: the
        bundle returned by Vault exists nowhere else.
        """
        logger.info("Initializing vault server...")
        try:
            bundle = self._cluster.initialize(
                self._secret_shares, self._secret_threshold,
            )
        except ClusterClientError as exc:
            raise InitializeError(f"initialize: {exc}") from exc

        if bundle.secret_shares is None or bundle.secret_threshold is None:
            bundle = bundle.model_copy(update={
                "secret_shares": self._secret_shares,
                "secret_threshold": self._secret_threshold,
            })

        logger.info(
            "Vault server initialized successfully, uploading result to %r...",
            self._secret_id,
        )
        payload = encode_bundle(bundle)

        version = self._store_retry.call(
            lambda: self._store.put(self._secret_id, payload),
            retry_on=(SecretStoreError,),
            description=f"update secret {self._secret_id!r}",
        )
        logger.info(
            "Updated secret %s (version %s)",
            version.arn or version.name or self._secret_id, version.version_id,
        )
        logger.info("Initialization process completed")
        return version

    def join(self) -> None:
        """Join this node to the raft cluster led by the configured address.

        Raises:
            JoinError: If the call fails.
            JoinRejectedError: If Vault answers ``joined: false``.
            TlsMaterialError: If an ``@file`` TLS reference is unreadable.
        """
        logger.info("Joining RAFT cluster at %r...", self._join.leader_api_addr)
        try:
            result = self._cluster.join_cluster(
                self._join.leader_api_addr,
                leader_ca_cert=resolve_material(self._join.leader_ca_cert) or None,
                leader_client_cert=resolve_material(self._join.leader_client_cert) or None,
                leader_client_key=resolve_material(self._join.leader_client_key) or None,
            )
        except ClusterClientError as exc:
            raise JoinError(f"raft join: {exc}") from exc

        if not result.joined:
            raise JoinRejectedError(
                f"raft join: couldn't join cluster at {self._join.leader_api_addr!r}"
            )
        logger.info("Joined RAFT cluster successfully")

    def unseal(self) -> int:
        """Submit stored key shares until Vault reports no pending progress.

        Returns the number of shares submitted. A failed share aborts the
        attempt; the next call starts again from the first share.
        """
        logger.info("Fetching unseal keys from %r...", self._secret_id)
        try:
            secret = self._store.get(self._secret_id)
        except SecretStoreError as exc:
            raise UnsealError(f"get secret {self._secret_id!r}: {exc}") from exc

        bundle = decode_bundle(secret.value)
        keys = bundle.unseal_keys
        if not keys:
            raise UnsealError(f"secret {self._secret_id!r} holds no unseal keys")

        logger.info("Unseal keys received, unsealing vault server...")
        submitted = 0
        for index, key in enumerate(keys):
            try:
                status = self._cluster.unseal_shard(key)
            except ClusterClientError as exc:
                raise UnsealError(f"unseal shard {index}: {exc}") from exc
            submitted += 1
            logger.info("Unseal progress: %d (threshold %d)", status.progress, status.threshold)
            if status.progress <= 0:
                break
        else:
            raise UnsealError(
                f"submitted all {submitted} stored shares, vault is still sealed"
            )

        logger.info("Vault server unsealed successfully")
        return submitted


# --- Bundle serialization ---


def encode_bundle(bundle: BootstrapCredentialBundle) -> str:
    """Serialize a bundle for the secret store.

    Raises:
        BundleEncodeError: If the bundle cannot be serialized. Fatal: the
            keys would otherwise be lost silently.
    """
    try:
        return bundle.model_dump_json()
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise BundleEncodeError(f"couldn't serialize init response: {exc}") from exc


def decode_bundle(text: str) -> BootstrapCredentialBundle:
    """Parse a bundle read back from the secret store.

    Raises:
        BundleDecodeError: If the stored text is not a valid bundle.
    """
    try:
        return BootstrapCredentialBundle.model_validate_json(text)
    except ValidationError as exc:
        raise BundleDecodeError(
            f"unmarshal stored bundle: {exc.error_count()} validation error(s)"
        ) from None
