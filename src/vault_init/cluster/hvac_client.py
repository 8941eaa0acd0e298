"""HvacClusterClient — Vault administrative API via the hvac library.

Requires: ``pip install hvac``
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

import hvac
import requests
from hvac.exceptions import VaultError
from pydantic import ValidationError

from vault_init.cluster.client import ClusterClientError
from vault_init.models import (
    BootstrapCredentialBundle,
    HealthSnapshot,
    JoinResult,
    UnsealProgress,
)

DEFAULT_VAULT_ADDR = "https://127.0.0.1:8200"

# Make /sys/health answer 200 with a JSON body in every state we care about,
# the way the Go client's Sys().Health() does.
_HEALTH_PARAMS: dict[str, Any] = {
    "standby_ok": True,
    "sealed_code": 200,
    "uninit_code": 200,
    "dr_secondary_code": 200,
    "performance_standby_code": 200,
}

_TRUTHY = frozenset({"1", "t", "true", "yes", "on"})


class HvacClusterClient:
    """Cluster client that talks to a single Vault node through ``hvac.Client``.

    The node address is the local replica (usually ``VAULT_ADDR``), not the
    raft leader: join, init and unseal always act on the node this sidecar
    runs next to.
    """

    def __init__(self, client: hvac.Client) -> None:
        self._client = client

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> HvacClusterClient:
        """Build a client from the standard Vault environment variables.

        Reads ``VAULT_ADDR``, ``VAULT_TOKEN``, ``VAULT_NAMESPACE``,
        ``VAULT_CACERT``, ``VAULT_CLIENT_CERT``, ``VAULT_CLIENT_KEY`` and
        ``VAULT_SKIP_VERIFY``.
        """
        env = os.environ if env is None else env

        verify: bool | str = True
        if env.get("VAULT_SKIP_VERIFY", "").strip().lower() in _TRUTHY:
            verify = False
        elif env.get("VAULT_CACERT"):
            verify = env["VAULT_CACERT"]

        cert: tuple[str, str] | None = None
        if env.get("VAULT_CLIENT_CERT") and env.get("VAULT_CLIENT_KEY"):
            cert = (env["VAULT_CLIENT_CERT"], env["VAULT_CLIENT_KEY"])

        client = hvac.Client(
            url=env.get("VAULT_ADDR") or DEFAULT_VAULT_ADDR,
            token=env.get("VAULT_TOKEN") or None,
            namespace=env.get("VAULT_NAMESPACE") or None,
            verify=verify,
            cert=cert,
        )
        return cls(client)

    def health(self) -> HealthSnapshot:
        data = self._call(
            "read health",
            self._client.sys.read_health_status,
            method="GET",
            **_HEALTH_PARAMS,
        )
        return self._parse(HealthSnapshot, data, "read health")

    def initialize(
        self, secret_shares: int, secret_threshold: int,
    ) -> BootstrapCredentialBundle:
        data = self._call(
            "init vault",
            self._client.sys.initialize,
            secret_shares=secret_shares,
            secret_threshold=secret_threshold,
        )
        bundle = self._parse(BootstrapCredentialBundle, data, "init vault")
        return bundle.model_copy(update={
            "secret_shares": secret_shares,
            "secret_threshold": secret_threshold,
        })

    def join_cluster(
        self,
        leader_api_addr: str,
        leader_ca_cert: str | None = None,
        leader_client_cert: str | None = None,
        leader_client_key: str | None = None,
    ) -> JoinResult:
        data = self._call(
            "raft join",
            self._client.sys.join_raft_cluster,
            leader_api_addr=leader_api_addr,
            leader_ca_cert=leader_ca_cert or None,
            leader_client_cert=leader_client_cert or None,
            leader_client_key=leader_client_key or None,
        )
        return self._parse(JoinResult, data, "raft join")

    def unseal_shard(self, key: str) -> UnsealProgress:
        data = self._call("unseal", self._client.sys.submit_unseal_key, key=key)
        return self._parse(UnsealProgress, data, "unseal")

    # --- Private ---

    def _call(self, operation: str, fn: Any, **kwargs: Any) -> dict[str, Any]:
        """Invoke an hvac method and normalise its result to a dict."""
        try:
            response = fn(**kwargs)
        except (VaultError, requests.exceptions.RequestException) as exc:
            raise ClusterClientError(f"{operation}: {exc}") from exc

        if isinstance(response, dict):
            return response

        # hvac hands back the raw requests.Response for non-200 replies.
        status = getattr(response, "status_code", None)
        try:
            body = response.json()
        except (AttributeError, ValueError) as exc:
            raise ClusterClientError(
                f"{operation}: unexpected response (status {status})"
            ) from exc
        if status is not None and status >= 400:
            raise ClusterClientError(f"{operation}: status {status}: {body}")
        if not isinstance(body, dict):
            raise ClusterClientError(f"{operation}: unexpected response body {body!r}")
        return body

    def _parse(self, model: Any, data: dict[str, Any], operation: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            # Inputs are left out: an init response carries key material.
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors(include_input=False)
            )
            raise ClusterClientError(
                f"{operation}: malformed response: {problems}"
            ) from None
