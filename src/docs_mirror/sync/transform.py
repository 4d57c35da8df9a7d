"""Validation and conversion of fetched content.

- ``MarkdownPassthrough``: validates markdown sources and passes them
  through unchanged.
- ``HtmlToMarkdown``: validates HTML pages, converts them to markdown and
  prepends a metadata header.

Both raise ``ContentRejectedError`` for content that does not look like the
expected document and ``ConversionError`` when conversion itself fails.
The ``create_transformer()`` factory picks one from a job's ``format``;
``create_extra_transformer()`` handles the supplementary markdown document.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Protocol

from docs_mirror.config_schema import (
    DEFAULT_URL_MIN_LENGTH,
    HtmlConversionConfig,
    JobConfig,
    ResourceConfig,
)
from docs_mirror.converters.common import (
    ConversionResult,
    render_metadata_header,
)
from docs_mirror.converters.html_to_markdown import html_to_markdown
from docs_mirror.errors import ContentRejectedError, ConversionError
from docs_mirror.validators import (
    validate_html_document,
    validate_markdown_content,
)

from .fetchers import FetchResult

logger = logging.getLogger(__name__)


class ContentTransformer(Protocol):
    """Protocol that all content transformers must satisfy."""

    def transform(
        self, resource: ResourceConfig, fetched: FetchResult
    ) -> ConversionResult:
        """Validate *fetched* content and prepare it for writing.

        Raises:
            ContentRejectedError: Content is not the expected document.
            ConversionError: Content could not be converted.
        """
        ...  # pragma: no cover


class MarkdownPassthrough:
    """Validate markdown content and pass it through unchanged.

    Args:
        min_length: Minimum plausible body length.
        reject_html: Reject bodies that look like HTML pages.
    """

    def __init__(self, min_length: int = 0, reject_html: bool = True) -> None:
        self.min_length = min_length
        self.reject_html = reject_html

    def transform(
        self, resource: ResourceConfig, fetched: FetchResult
    ) -> ConversionResult:
        content = fetched.content or ""
        ok, reason = validate_markdown_content(
            content, self.min_length, self.reject_html
        )
        if not ok:
            raise ContentRejectedError(reason)
        return ConversionResult(text=content, body=content)


class HtmlToMarkdown:
    """Convert HTML pages to markdown with a metadata header.

    Args:
        options: Extraction and rendering rules.
        min_length: Minimum plausible page length.
        today: Returns the sync date; replaceable in tests.
    """

    def __init__(
        self,
        options: HtmlConversionConfig | None = None,
        min_length: int = 0,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.options = options or HtmlConversionConfig()
        self.min_length = min_length
        self.today = today

    def transform(
        self, resource: ResourceConfig, fetched: FetchResult
    ) -> ConversionResult:
        content = fetched.content or ""
        ok, reason = validate_html_document(content, self.min_length)
        if not ok:
            raise ContentRejectedError(reason)

        try:
            body = html_to_markdown(content, self.options)
        except Exception as exc:
            raise ConversionError(
                f"HTML conversion failed: {exc}"
            ) from exc

        if not body:
            raise ContentRejectedError("No content left after conversion")

        header = render_metadata_header(
            resource.title or resource.label,
            fetched.source or "",
            self.today().isoformat(),
        )
        return ConversionResult(
            text=header + body + "\n", body=body, converted=True
        )


def create_transformer(job: JobConfig) -> ContentTransformer:
    """Create the transformer for *job*'s source format."""
    if job.format == "html":
        return HtmlToMarkdown(job.html, min_length=job.effective_min_length)
    return MarkdownPassthrough(
        min_length=job.effective_min_length,
        reject_html=job.strategy == "url",
    )


def create_extra_transformer(job: JobConfig) -> ContentTransformer:
    """Create the transformer for *job*'s supplementary document.

    The supplementary document is markdown fetched over HTTP whatever the
    job's own strategy and format.
    """
    min_length = (
        job.min_length if job.min_length is not None else DEFAULT_URL_MIN_LENGTH
    )
    return MarkdownPassthrough(min_length=min_length, reject_html=True)
