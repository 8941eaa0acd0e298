"""Bootstrap orchestration: the poll loop and its retry/scheduling policies."""

from vault_init.bootstrap.orchestrator import (
    JoinOptions,
    Orchestrator,
    decode_bundle,
    encode_bundle,
)
from vault_init.bootstrap.retry import RetryPolicy
from vault_init.bootstrap.ticker import Ticker

__all__ = [
    "JoinOptions",
    "Orchestrator",
    "RetryPolicy",
    "Ticker",
    "decode_bundle",
    "encode_bundle",
]
