"""
Content and path validation for docs-mirror.

Checks fetched documents before they are hashed or written, so that error
pages, redirect stubs and empty bodies never replace a good local copy.
"""

from pathlib import PurePosixPath

# Only the head of a document is inspected for HTML markers.
_HTML_SNIFF_BYTES = 1024


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Content")
        reason: Description of validation failure (e.g., "is too short")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def looks_like_html(content: str) -> bool:
    """Return True if *content* looks like an HTML page.

    A cheap sniff, not a parser: the document starts with a doctype or a
    root ``<html`` tag, or mentions ``<html`` near the top.
    """
    head = content.lstrip("\ufeff \t\r\n")[:_HTML_SNIFF_BYTES].lower()
    if head.startswith("<!doctype"):
        return True
    return "<html" in head


def validate_markdown_content(
    content: str, min_length: int = 0, reject_html: bool = True
) -> tuple[bool, str]:
    """
    Validate a fetched markdown document.

    Args:
        content: The fetched body
        min_length: Minimum number of characters
        reject_html: Treat HTML pages as invalid (error and redirect pages)

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.
    """
    if reject_html and looks_like_html(content):
        return (
            False,
            format_validation_error(
                "Content", "is HTML instead of markdown"
            ),
        )

    if len(content) < min_length:
        return (
            False,
            format_validation_error(
                "Content",
                f"is too short ({len(content)} < {min_length} chars)",
            ),
        )

    return (True, "")


def validate_html_document(
    content: str, min_length: int = 0
) -> tuple[bool, str]:
    """
    Validate a fetched HTML page before conversion.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not content.strip():
        return (
            False,
            format_validation_error("Content", "cannot be empty"),
        )

    if len(content) < min_length:
        return (
            False,
            format_validation_error(
                "Content",
                f"is too short ({len(content)} < {min_length} chars)",
            ),
        )

    return (True, "")


def validate_destination_path(dest: str) -> tuple[bool, str]:
    """
    Validate a destination path relative to a job output directory.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot be absolute
        - Cannot contain '..' segments (path traversal protection)
        - Cannot have empty path segments (e.g., 'a//b.md')
    """
    if not dest or not dest.strip():
        return (
            False,
            format_validation_error("Destination", "cannot be empty"),
        )

    if dest.startswith(("/", "\\")) or PurePosixPath(dest).is_absolute():
        return (
            False,
            format_validation_error(
                "Destination", f"must be relative: '{dest}'"
            ),
        )

    parts = dest.replace("\\", "/").split("/")
    if ".." in parts:
        return (
            False,
            format_validation_error(
                "Destination", f"cannot contain '..': '{dest}'"
            ),
        )

    if "" in parts:
        return (
            False,
            format_validation_error(
                "Destination",
                f"cannot have empty path segments: '{dest}'",
            ),
        )

    return (True, "")
