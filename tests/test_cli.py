"""Tests for the vault-init CLI."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from vault_init import __version__
from vault_init.bootstrap.orchestrator import decode_bundle
from vault_init.cli.main import cli
from vault_init.cluster.client import ClusterClientError
from vault_init.models import (
    BootstrapCredentialBundle,
    HealthSnapshot,
    JoinResult,
    UnsealProgress,
)
from vault_init.secrets.memory_store import InMemorySecretStore

SECRET_ID = "vault/unseal-keys"


def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _isolate(tmp_path: Path, monkeypatch):
    """Run every command from an empty directory and restore root logging."""
    monkeypatch.chdir(tmp_path)
    for var in ("SECRETSMANAGER_SECRET_ID", "LOG_LEVEL", "HOSTNAME"):
        monkeypatch.delenv(var, raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _cluster(*, initialized: bool, sealed: bool) -> MagicMock:
    cluster = MagicMock()
    cluster.health.return_value = HealthSnapshot(initialized=initialized, sealed=sealed)
    cluster.initialize.return_value = BootstrapCredentialBundle(
        keys_base64=["a", "b", "c", "d", "e"], root_token="hvs.root",
    )
    cluster.join_cluster.return_value = JoinResult(joined=True)
    cluster.unseal_shard.side_effect = [
        UnsealProgress(sealed=True, progress=1, t=3, n=5),
        UnsealProgress(sealed=True, progress=2, t=3, n=5),
        UnsealProgress(sealed=False, progress=0, t=3, n=5),
    ]
    return cluster


def _store() -> InMemorySecretStore:
    store = InMemorySecretStore()
    store.create(SECRET_ID)
    return store


# --- version / help ---


class TestRoot:
    def test_version(self):
        result = runner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self):
        result = runner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("run", "check-access", "status"):
            assert name in result.output


# --- run ---


class TestRunCommand:
    def test_missing_secret_id_exits_1(self):
        result = runner().invoke(cli, ["run", "--once"])
        assert result.exit_code == 1
        assert "SECRETSMANAGER_SECRET_ID" in result.output

    def test_once_leader_bootstraps(self):
        cluster = _cluster(initialized=False, sealed=True)
        store = _store()
        with patch("vault_init.cli.main._build_cluster_client", return_value=cluster), \
                patch("vault_init.cli.main._build_store", return_value=store):
            result = runner().invoke(
                cli, ["run", "--once", "--secret-id", SECRET_ID],
                env={"HOSTNAME": "vault-0"},
            )

        assert result.exit_code == 0, result.output
        cluster.initialize.assert_called_once_with(5, 3)
        cluster.join_cluster.assert_not_called()
        assert cluster.unseal_shard.call_count == 3
        stored = decode_bundle(store.get(SECRET_ID).value)
        assert len(stored.keys_base64) == 5

    def test_once_uses_env_config(self):
        cluster = _cluster(initialized=False, sealed=True)
        with patch("vault_init.cli.main._build_cluster_client", return_value=cluster), \
                patch("vault_init.cli.main._build_store", return_value=_store()):
            result = runner().invoke(cli, ["run", "--once"], env={
                "SECRETSMANAGER_SECRET_ID": SECRET_ID,
                "VAULT_SECRET_SHARES": "3",
                "VAULT_SECRET_THRESHOLD": "2",
                "HOSTNAME": "vault-0",
            })
        assert result.exit_code == 0, result.output
        cluster.initialize.assert_called_once_with(3, 2)

    def test_once_tick_failure_exits_1(self):
        cluster = _cluster(initialized=True, sealed=False)
        cluster.health.side_effect = ClusterClientError("read health: refused")
        with patch("vault_init.cli.main._build_cluster_client", return_value=cluster), \
                patch("vault_init.cli.main._build_store", return_value=_store()):
            result = runner().invoke(cli, ["run", "--once", "--secret-id", SECRET_ID])
        assert result.exit_code == 1

    def test_access_denied_is_fatal(self):
        cluster = _cluster(initialized=True, sealed=False)
        store = _store()
        store.deny(SECRET_ID, write=True)
        with patch("vault_init.cli.main._build_cluster_client", return_value=cluster), \
                patch("vault_init.cli.main._build_store", return_value=store):
            result = runner().invoke(cli, ["run", "--once", "--secret-id", SECRET_ID])
        assert result.exit_code == 1
        assert "Update secret" in result.output
        cluster.health.assert_not_called()

    def test_follower_with_unreadable_tls_file_is_fatal(self, tmp_path: Path):
        cluster = _cluster(initialized=False, sealed=True)
        store = _store()
        with patch("vault_init.cli.main._build_cluster_client", return_value=cluster), \
                patch("vault_init.cli.main._build_store", return_value=store):
            result = runner().invoke(cli, ["run", "--once", "--secret-id", SECRET_ID], env={
                "HOSTNAME": "vault-1",
                "RAFT_LEADER_CA_CERT": f"@{tmp_path / 'missing.pem'}",
            })
        assert result.exit_code == 1
        assert "TLS material" in result.output
        cluster.join_cluster.assert_not_called()


# --- check-access ---


class TestCheckAccessCommand:
    def test_ok(self):
        with patch("vault_init.cli.main._build_store", return_value=_store()):
            result = runner().invoke(cli, ["check-access", "--secret-id", SECRET_ID])
        assert result.exit_code == 0
        assert "OK" in result.output

    def test_denied(self):
        store = _store()
        store.deny(SECRET_ID, read=True)
        with patch("vault_init.cli.main._build_store", return_value=store):
            result = runner().invoke(cli, ["check-access", "--secret-id", SECRET_ID])
        assert result.exit_code == 1
        assert "DENIED" in result.output

    def test_config_file(self, tmp_path: Path):
        cfg = tmp_path / "custom.yaml"
        cfg.write_text(f"secret_id: {SECRET_ID}\n", encoding="utf-8")
        with patch("vault_init.cli.main._build_store", return_value=_store()):
            result = runner().invoke(cli, ["check-access", "--config", str(cfg)])
        assert result.exit_code == 0, result.output


# --- status ---


class TestStatusCommand:
    def test_prints_health_json(self):
        cluster = _cluster(initialized=True, sealed=True)
        with patch("vault_init.cli.main._build_cluster_client", return_value=cluster):
            result = runner().invoke(cli, ["status"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["initialized"] is True
        assert data["sealed"] is True

    def test_unreachable(self):
        cluster = MagicMock()
        cluster.health.side_effect = ClusterClientError("read health: refused")
        with patch("vault_init.cli.main._build_cluster_client", return_value=cluster):
            result = runner().invoke(cli, ["status"])
        assert result.exit_code == 1
        assert "refused" in result.output
