"""Content fingerprints used for change detection."""

from __future__ import annotations

import hashlib


def canonicalize(content: str | bytes) -> str:
    """Normalise *content* so equivalent documents hash identically.

    Normalisation steps (applied in order):

    1. Decode bytes as UTF-8 (undecodable bytes are replaced).
    2. Strip BOM (``\\ufeff``).
    3. Replace ``\\r\\n`` with ``\\n``.
    4. Right-strip each line.
    5. Strip trailing empty lines.
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    text = content.lstrip("\ufeff")
    text = text.replace("\r\n", "\n")
    lines = [line.rstrip() for line in text.split("\n")]
    while lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines)


def content_hash(content: str | bytes) -> str:
    """Return the SHA-256 hex digest of the canonicalised *content*."""
    return hashlib.sha256(
        canonicalize(content).encode("utf-8")
    ).hexdigest()
