"""Common types and utilities for document conversion."""

import re
from dataclasses import dataclass

import yaml

_BLANK_RUN_RE = re.compile(r"\n{3,}")


@dataclass
class ConversionResult:
    """Result of preparing a fetched document for the mirror.

    Attributes:
        text: Document written to disk (may carry a metadata header)
        body: Document content used for change detection, without any
            per-run metadata such as the sync date
        converted: True if the source was converted, False if passed through
    """

    text: str
    body: str
    converted: bool = False


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of three or more newlines into one blank line.

    Examples:
        >>> collapse_blank_lines("a\\n\\n\\n\\nb")
        'a\\n\\nb'
    """
    return _BLANK_RUN_RE.sub("\n\n", text)


def render_metadata_header(title: str, source: str, synced: str) -> str:
    """Render the YAML front matter prepended to converted pages.

    Args:
        title: Page title
        source: URL the page was fetched from
        synced: Sync date (``YYYY-MM-DD``)

    Returns:
        Front matter block followed by one blank line.
    """
    meta = yaml.safe_dump(
        {"title": title, "source": source, "synced": synced},
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=10_000,
    )
    return f"---\n{meta}---\n\n"
