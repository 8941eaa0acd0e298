"""Resolution of TLS material given inline or as an ``@<path>`` reference."""

from __future__ import annotations

from pathlib import Path

from vault_init.errors import TlsMaterialError

FILE_REFERENCE_MARKER = "@"


def resolve_material(raw: str | None) -> str:
    """Return *raw* unchanged, or the contents of the file it references.

    ``"@/etc/vault/ca.pem"`` yields the contents of ``/etc/vault/ca.pem``;
    anything not starting with ``@`` (including ``""``) passes through.

    Raises:
        TlsMaterialError: If a referenced file cannot be read.
    """
    if not raw or not raw.startswith(FILE_REFERENCE_MARKER):
        return raw or ""

    path = Path(raw[len(FILE_REFERENCE_MARKER):])
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TlsMaterialError(f"Cannot read TLS material from {path}: {exc}") from exc
