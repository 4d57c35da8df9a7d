"""Conversion of fetched documents into mirrored markdown."""

from .common import (
    ConversionResult,
    collapse_blank_lines,
    render_metadata_header,
)
from .html_to_markdown import (
    extract_main_content,
    html_to_markdown,
)

__all__ = [
    "ConversionResult",
    "collapse_blank_lines",
    "extract_main_content",
    "html_to_markdown",
    "render_metadata_header",
]
