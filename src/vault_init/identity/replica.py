"""Replica identity: which member of the replica set this process runs beside.

StatefulSet pods get stable, ordinal-suffixed hostnames (``vault-0``,
``vault-1``, ...). The trailing digit is the ordinal; ordinal 0 is the one
replica allowed to initialize the cluster.
"""

from __future__ import annotations

import os
import socket
from collections.abc import Mapping

from vault_init.errors import ReplicaIdentityError
from vault_init.models import ReplicaRole

LEADER_ORDINAL = 0


def current_hostname(env: Mapping[str, str] | None = None) -> str:
    """``$HOSTNAME`` if set, otherwise the kernel hostname."""
    env = os.environ if env is None else env
    return env.get("HOSTNAME") or socket.gethostname()


def replica_ordinal(hostname: str) -> int:
    """Return the decimal digit at the end of *hostname*.

    Raises:
        ReplicaIdentityError: If the hostname is empty or does not end in
            a digit.
    """
    hostname = hostname.strip()
    if not hostname:
        raise ReplicaIdentityError("Hostname is empty, cannot derive replica ordinal")

    last = hostname[-1]
    if not ("0" <= last <= "9"):
        raise ReplicaIdentityError(
            f"Hostname {hostname!r} does not end in an ordinal digit"
        )
    return int(last)


def role_for_ordinal(ordinal: int) -> ReplicaRole:
    return ReplicaRole.LEADER if ordinal == LEADER_ORDINAL else ReplicaRole.FOLLOWER


class ReplicaIdentityResolver:
    """Resolves this replica's role from its hostname.

    The hostname is read on every call, so a resolver can be built once at
    startup and consulted whenever the cluster reports it is uninitialized.
    """

    def __init__(self, hostname: str | None = None) -> None:
        self._hostname = hostname

    @property
    def hostname(self) -> str:
        return self._hostname if self._hostname is not None else current_hostname()

    def ordinal(self) -> int:
        return replica_ordinal(self.hostname)

    def role(self) -> ReplicaRole:
        return role_for_ordinal(self.ordinal())
