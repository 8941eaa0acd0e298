"""vault-init CLI — sidecar entry point.

Commands:
    run             Check secret-store access, then keep Vault initialized
                    and unsealed (poll loop)
    check-access    Only verify the secret-store entry is writable and readable
    status          Print this node's Vault health as JSON
"""

from __future__ import annotations

import json
import logging
import signal
import sys
from collections.abc import Callable
from typing import Any

import click

from vault_init import __version__
from vault_init.bootstrap.orchestrator import Orchestrator
from vault_init.bootstrap.ticker import Ticker
from vault_init.cluster.client import ClusterClient, ClusterClientError
from vault_init.config import VaultInitConfig, load_config
from vault_init.errors import FatalError
from vault_init.models import TickOutcome
from vault_init.secrets.store import SecretStore, build_store, check_access

logger = logging.getLogger("vault_init")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level, format=LOG_FORMAT, stream=sys.stdout, force=True,
    )


def _build_cluster_client() -> ClusterClient:
    from vault_init.cluster.hvac_client import HvacClusterClient

    return HvacClusterClient.from_env()


def _build_store(cfg: VaultInitConfig) -> SecretStore:
    return build_store({
        "type": "aws",
        "region": cfg.aws_region,
        "endpoint_url": cfg.aws_endpoint_url,
    })


def _load(config_path: str | None, overrides: dict[str, Any]) -> VaultInitConfig:
    """Load config and configure logging, or exit 1 on a config error."""
    try:
        cfg = load_config(config_path, overrides=overrides)
    except FatalError as e:
        _configure_logging(logging.INFO)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    _configure_logging(cfg.log_level)
    return cfg


def _config_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that needs the process config."""
    options = [
        click.option(
            "--config", "config_path", default=None,
            type=click.Path(dir_okay=False),
            help="Path to vault-init.yaml (default: auto-discover)",
        ),
        click.option(
            "--secret-id", default=None,
            help="Secrets Manager secret id (env: SECRETSMANAGER_SECRET_ID)",
        ),
        click.option(
            "--log-level", default=None,
            help="Log level name or number (env: LOG_LEVEL)",
        ),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


# --- Root group ---


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """vault-init: keep a raft-backed Vault replica initialized and unsealed."""


# --- run command ---


@cli.command()
@_config_options
@click.option(
    "--check-interval", default=None,
    help="Seconds (or 10s, 1m) between status checks (env: CHECK_INTERVAL)",
)
@click.option(
    "--secret-shares", type=int, default=None,
    help="Key shares to generate on init (env: VAULT_SECRET_SHARES)",
)
@click.option(
    "--secret-threshold", type=int, default=None,
    help="Shares required to unseal (env: VAULT_SECRET_THRESHOLD)",
)
@click.option(
    "--raft-leader-api-addr", default=None,
    help="Leader API address followers join (env: RAFT_LEADER_API_ADDR)",
)
@click.option("--once", is_flag=True, help="Run a single status check and exit")
def run(
    config_path: str | None,
    secret_id: str | None,
    log_level: str | None,
    check_interval: str | None,
    secret_shares: int | None,
    secret_threshold: int | None,
    raft_leader_api_addr: str | None,
    once: bool,
) -> None:
    """Verify secret-store access, then poll and bootstrap Vault."""
    cfg = _load(config_path, {
        "secret_id": secret_id,
        "log_level": log_level,
        "check_interval": check_interval,
        "secret_shares": secret_shares,
        "secret_threshold": secret_threshold,
        "raft_leader_api_addr": raft_leader_api_addr,
    })
    logger.info("Starting up...")

    try:
        orchestrator = Orchestrator.from_config(
            cfg, _build_cluster_client(), _build_store(cfg),
        )
        orchestrator.check_access()

        if once:
            result = orchestrator.tick()
            if result.outcome is TickOutcome.FAILED:
                sys.exit(1)
            return

        ticker = Ticker(cfg.check_interval)
        _install_signal_handlers(ticker)
        orchestrator.run(ticker)
        logger.info("Stopped after %d tick(s)", ticker.ticks)
    except FatalError as e:
        logger.critical("Fatal: %s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _install_signal_handlers(ticker: Ticker) -> None:
    """Stop the loop between ticks on SIGTERM/SIGINT."""

    def _handle(signum: int, _frame: Any) -> None:
        logger.info("Received %s, stopping", signal.Signals(signum).name)
        ticker.stop()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)


# --- check-access command ---


@cli.command("check-access")
@_config_options
def check_access_cmd(
    config_path: str | None,
    secret_id: str | None,
    log_level: str | None,
) -> None:
    """Verify the secret-store entry can be written and read."""
    cfg = _load(config_path, {"secret_id": secret_id, "log_level": log_level})
    try:
        version = check_access(_build_store(cfg), cfg.secret_id)
    except FatalError as e:
        click.echo(click.style("DENIED", fg="red") + f"  {e}", err=True)
        sys.exit(1)

    click.echo(
        click.style("OK", fg="green")
        + f"  {cfg.secret_id} (version {version.version_id or 'unknown'})"
    )


# --- status command ---


@cli.command()
def status() -> None:
    """Print this node's Vault health as JSON (uses VAULT_* env vars)."""
    try:
        health = _build_cluster_client().health()
    except ClusterClientError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(json.dumps(health.model_dump(mode="json"), indent=2))


def main() -> None:
    cli()
