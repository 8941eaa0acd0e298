"""Configuration loading for vault-init.

Settings come from environment variables (the deployment contract) and,
optionally, a ``vault-init.yaml`` file found in the current directory or one
of its parents. Explicit overrides (CLI flags) win over the environment,
which wins over the file, which wins over the defaults.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from vault_init.errors import ConfigError

CONFIG_FILENAME = "vault-init.yaml"

DEFAULT_CHECK_INTERVAL = 10.0
DEFAULT_SECRET_SHARES = 5
DEFAULT_SECRET_THRESHOLD = 3
DEFAULT_STORE_RETRY_DELAY = 3.0
DEFAULT_LOG_LEVEL = "INFO"

# Config key -> environment variable.
ENV_VARS: dict[str, str] = {
    "secret_id": "SECRETSMANAGER_SECRET_ID",
    "check_interval": "CHECK_INTERVAL",
    "secret_shares": "VAULT_SECRET_SHARES",
    "secret_threshold": "VAULT_SECRET_THRESHOLD",
    "raft_leader_api_addr": "RAFT_LEADER_API_ADDR",
    "raft_leader_ca_cert": "RAFT_LEADER_CA_CERT",
    "raft_leader_client_cert": "RAFT_LEADER_CLIENT_CERT",
    "raft_leader_client_key": "RAFT_LEADER_CLIENT_KEY",
    "store_retry_delay": "STORE_RETRY_DELAY",
    "log_level": "LOG_LEVEL",
    "aws_region": "AWS_REGION",
    "aws_endpoint_url": "AWS_ENDPOINT_URL",
}


@dataclass(frozen=True)
class VaultInitConfig:
    """Parsed vault-init process configuration."""

    secret_id: str
    check_interval: float = DEFAULT_CHECK_INTERVAL
    secret_shares: int = DEFAULT_SECRET_SHARES
    secret_threshold: int = DEFAULT_SECRET_THRESHOLD
    raft_leader_api_addr: str = ""
    raft_leader_ca_cert: str = ""
    raft_leader_client_cert: str = ""
    raft_leader_client_key: str = ""
    store_retry_delay: float = DEFAULT_STORE_RETRY_DELAY
    log_level: int = logging.INFO
    aws_region: str | None = None
    aws_endpoint_url: str | None = None
    config_path: Path | None = None


def find_config(start: Path | None = None) -> Path | None:
    """Walk from *start* (default ``cwd()``) up to the filesystem root.

    Returns the first ``vault-init.yaml`` found, or ``None``.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    path: str | Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
    auto_discover: bool = True,
) -> VaultInitConfig:
    """Build a ``VaultInitConfig``.

    Resolution order, highest first:

    1. *overrides* (``None`` values are ignored).
    2. Environment variables listed in ``ENV_VARS``.
    3. The YAML file: explicit *path* (error if missing), or auto-discovered.
    4. Built-in defaults.

    Raises:
        ConfigError: If ``secret_id`` is missing or a value is invalid.
    """
    env = os.environ if env is None else env

    config_path: Path | None = None
    if path is not None:
        config_path = Path(path).resolve()
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    elif auto_discover:
        config_path = find_config()

    raw: dict[str, Any] = {}
    if config_path is not None:
        raw.update(_read_file(config_path))

    for key, var in ENV_VARS.items():
        value = env.get(var)
        if value not in (None, ""):
            raw[key] = value

    for key, value in (overrides or {}).items():
        if key not in ENV_VARS:
            raise ConfigError(f"Unknown config key: {key}")
        if value is not None:
            raw[key] = value

    return _build(raw, config_path)


def _read_file(config_path: Path) -> dict[str, Any]:
    """Read and parse a YAML config file."""
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        )

    unknown = sorted(set(data) - set(ENV_VARS))
    if unknown:
        raise ConfigError(f"Unknown keys in {config_path}: {', '.join(unknown)}")
    return data


def _build(raw: dict[str, Any], config_path: Path | None) -> VaultInitConfig:
    secret_id = str(raw.get("secret_id") or "").strip()
    if not secret_id:
        raise ConfigError(f"{ENV_VARS['secret_id']} env is required")

    shares = _positive_int(raw, "secret_shares", DEFAULT_SECRET_SHARES)
    threshold = _positive_int(raw, "secret_threshold", DEFAULT_SECRET_THRESHOLD)
    if threshold > shares:
        raise ConfigError(
            f"secret_threshold ({threshold}) cannot exceed secret_shares ({shares})"
        )

    check_interval = parse_duration(
        raw.get("check_interval", DEFAULT_CHECK_INTERVAL), "check_interval",
    )
    if check_interval <= 0:
        raise ConfigError("check_interval must be greater than zero")

    return VaultInitConfig(
        secret_id=secret_id,
        check_interval=check_interval,
        secret_shares=shares,
        secret_threshold=threshold,
        raft_leader_api_addr=str(raw.get("raft_leader_api_addr") or ""),
        raft_leader_ca_cert=str(raw.get("raft_leader_ca_cert") or ""),
        raft_leader_client_cert=str(raw.get("raft_leader_client_cert") or ""),
        raft_leader_client_key=str(raw.get("raft_leader_client_key") or ""),
        store_retry_delay=parse_duration(
            raw.get("store_retry_delay", DEFAULT_STORE_RETRY_DELAY),
            "store_retry_delay",
        ),
        log_level=parse_log_level(raw.get("log_level", DEFAULT_LOG_LEVEL)),
        aws_region=raw.get("aws_region") or None,
        aws_endpoint_url=raw.get("aws_endpoint_url") or None,
        config_path=config_path,
    )


def _positive_int(raw: dict[str, Any], key: str, default: int) -> int:
    value = raw.get(key, default)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None
    if number < 1:
        raise ConfigError(f"{key} must be at least 1, got {number}")
    return number


# --- Value parsers ---

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: Any, name: str = "duration") -> float:
    """Parse seconds from a number or a Go-style string (``1m30s``, ``500ms``).

    Raises:
        ConfigError: If the value is not a valid non-negative duration.
    """
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a duration, got {value!r}")
    if isinstance(value, int | float):
        seconds = float(value)
    else:
        text = str(value).strip()
        try:
            seconds = float(text)
        except ValueError:
            parts = _DURATION_PART.findall(text)
            if not parts or "".join(n + u for n, u in parts) != text:
                raise ConfigError(f"{name} must be a duration, got {value!r}") from None
            seconds = sum(float(n) * _DURATION_UNITS[u] for n, u in parts)
    if seconds < 0:
        raise ConfigError(f"{name} cannot be negative, got {value!r}")
    return seconds


# Numeric levels follow Go's slog scale: -4 debug, 0 info, 4 warn, 8 error.
_SLOG_LEVELS = ((8, logging.ERROR), (4, logging.WARNING), (0, logging.INFO))


def parse_log_level(value: Any) -> int:
    """Accept a level name (``debug``, ``INFO``) or a slog number (``-4``, ``0``).

    Numbers between slog levels round down to the nearest lower level.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return _from_slog(value)
    text = str(value).strip()
    if text.lstrip("-").isdigit():
        return _from_slog(int(text))
    level = logging.getLevelName(text.upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {value!r}")
    return level


def _from_slog(number: int) -> int:
    for threshold, level in _SLOG_LEVELS:
        if number >= threshold:
            return level
    return logging.DEBUG
