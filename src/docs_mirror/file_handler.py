"""File handler module: encoding-aware reads and directory-creating writes.

Used by the repository fetch strategy to read documentation files out of a
checkout, and by the sync engine to write mirrored files under the output
root.
"""

from pathlib import Path

from charset_normalizer import from_bytes

from docs_mirror.validators import validate_destination_path

# =============================================================================
# Path Resolution
# =============================================================================


def resolve_destination(base_dir: Path, dest: str) -> Path:
    """Resolve *dest* under *base_dir*, refusing paths that escape it.

    Args:
        base_dir: Job output directory.
        dest: Destination path relative to *base_dir*.

    Returns:
        Absolute path of the destination file.

    Raises:
        ValueError: If *dest* is not a safe relative path.
    """
    ok, reason = validate_destination_path(dest)
    if not ok:
        raise ValueError(reason)
    base_resolved = base_dir.resolve()
    resolved = (base_resolved / dest).resolve()
    if not resolved.is_relative_to(base_resolved):
        raise ValueError(
            f"Destination is outside output directory: {resolved} not under {base_resolved}"
        )
    return resolved


# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # ascii is a strict subset of utf-8
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a file, creating parent directories as needed.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)
