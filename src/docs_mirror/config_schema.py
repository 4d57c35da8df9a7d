"""Configuration schema for docs-mirror.

Defines Pydantic models for the YAML configuration: global settings, a
logging section, and one ``JobConfig`` per documentation source.  All
models are frozen; the resource lists are passed to the sync engine as
immutable configuration data.

Usage:
    from docs_mirror.config_loader import load_hierarchical_config
    from docs_mirror.config_schema import build_config

    config = build_config(load_hierarchical_config())
    job = config.jobs["claude-code"]
"""

from __future__ import annotations

import logging
from posixpath import basename
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, model_validator

from .validators import validate_destination_path

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "docs-mirror/0.3 (+https://pypi.org/project/docs-mirror/)"

# Minimum plausible body length for pages fetched over HTTP.
DEFAULT_URL_MIN_LENGTH = 50

_DEFAULT_CONTENT_SELECTORS = [
    "article",
    "main",
    '[role="main"]',
    ".devsite-article-body",
    ".devsite-content",
]

_DEFAULT_REMOVE_SELECTORS = [
    "nav",
    "header",
    "footer",
    "script",
    "style",
    "aside",
    '[role="navigation"]',
    ".devsite-nav",
    ".devsite-header",
    ".devsite-footer",
    ".devsite-toc",
    ".devsite-feedback",
    ".devsite-banner",
    ".nocontent",
    ".hide-from-toc",
]


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ResourceConfig(BaseModel):
    """One document to mirror.

    Attributes:
        slug: Page slug appended to the job's ``base_url`` (URL jobs).
        path: File path relative to the job's ``source_root`` (repository
            jobs).
        url: Absolute URL; overrides ``base_url``/``slug`` resolution.
        dest: Explicit destination path relative to the job output dir.
        title: Human-readable title.
        description: Short description of the page.
    """

    slug: str | None = None
    path: str | None = None
    url: str | None = None
    dest: str | None = None
    title: str = ""
    description: str = ""

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _require_identifier(self) -> ResourceConfig:
        if not (self.slug or self.path or self.url):
            raise ValueError(
                "resource needs at least one of 'slug', 'path' or 'url'"
            )
        return self

    @property
    def label(self) -> str:
        """Identifier shown in progress output."""
        return self.slug or self.path or self.dest or self.url or ""


class HtmlConversionConfig(BaseModel):
    """Rules for turning fetched HTML pages into markdown."""

    content_selectors: list[str] = Field(
        default_factory=lambda: list(_DEFAULT_CONTENT_SELECTORS),
        description="Candidate main-content selectors, first match wins",
    )
    remove_selectors: list[str] = Field(
        default_factory=lambda: list(_DEFAULT_REMOVE_SELECTORS),
        description="Non-content regions removed before conversion",
    )
    bullet: str = Field(default="-", min_length=1, max_length=1)
    default_code_language: str = Field(
        default="python",
        description="Fence language used when a code block has no class",
    )

    model_config = {"frozen": True}


class JobConfig(BaseModel):
    """A single documentation source and its resources."""

    strategy: Literal["url", "repository"] = "url"
    format: Literal["markdown", "html"] = "markdown"

    # URL strategy
    base_url: str | None = None
    extension: str = "md"
    timeout: float = Field(default=30.0, gt=0)

    # Repository strategy
    repo_url: str | None = None
    branch: str = "main"
    checkout_dir: str | None = None
    source_root: str = ""

    # Output
    output_dir: str | None = None
    manifest_file: str = "manifest.json"

    delay: float = Field(
        default=0.2,
        ge=0,
        description="Seconds to wait between HTTP requests",
    )
    min_length: int | None = Field(
        default=None,
        ge=0,
        description="Minimum body length; defaults depend on strategy",
    )

    resources: list[ResourceConfig] = Field(default_factory=list)
    extra: ResourceConfig | None = Field(
        default=None,
        description="Supplementary markdown document fetched from a URL",
    )
    html: HtmlConversionConfig = Field(
        default_factory=HtmlConversionConfig
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_strategy_fields(self) -> JobConfig:
        if self.extra is not None and not self.extra.url:
            raise ValueError("'extra' needs an absolute 'url'")

        if self.strategy == "url":
            needs_base = [
                r for r in self.all_resources if not r.url
            ]
            if needs_base and not self.base_url:
                raise ValueError(
                    "url jobs need 'base_url' unless every resource has a 'url'"
                )
        else:
            if not self.repo_url:
                raise ValueError("repository jobs need 'repo_url'")
            missing = [r.label for r in self.resources if not r.path]
            if missing:
                raise ValueError(
                    f"repository resources need a 'path': {missing}"
                )

        seen: set[str] = set()
        for resource in self.all_resources:
            dest = self.destination_for(resource)
            ok, reason = validate_destination_path(dest)
            if not ok:
                raise ValueError(reason)
            if dest in seen:
                raise ValueError(f"duplicate destination '{dest}'")
            seen.add(dest)
        return self

    @property
    def all_resources(self) -> list[ResourceConfig]:
        """Configured resources followed by the supplementary one, if any."""
        if self.extra is None:
            return list(self.resources)
        return [*self.resources, self.extra]

    @property
    def effective_min_length(self) -> int:
        if self.min_length is not None:
            return self.min_length
        return DEFAULT_URL_MIN_LENGTH if self.strategy == "url" else 0

    def destination_for(self, resource: ResourceConfig) -> str:
        """Return the destination path of *resource*, relative to the
        job output directory.  This is also its manifest key."""
        if resource.dest:
            return resource.dest
        if resource.slug:
            return f"{resource.slug}.{self.extension}"
        if resource.path:
            return resource.path
        name = basename(urlparse(resource.url or "").path.rstrip("/"))
        return f"{name or 'index'}.md"

    def url_for(self, resource: ResourceConfig) -> str:
        """Return the URL fetched for *resource* by the URL strategy."""
        if resource.url:
            return resource.url
        base = (self.base_url or "").rstrip("/")
        return f"{base}/{resource.slug}.{self.extension}"


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


class MirrorConfig(BaseModel):
    """Top-level configuration.

    Every section has defaults, so ``MirrorConfig()`` is valid (with no
    jobs to run).
    """

    output_root: str | None = None
    user_agent: str | None = None
    jobs: dict[str, JobConfig] = Field(default_factory=dict)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> MirrorConfig:
    """Construct a ``MirrorConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``MirrorConfig`` instance.

    Raises:
        pydantic.ValidationError: If the configuration is invalid.
    """
    if not raw_data:
        return MirrorConfig()

    config = MirrorConfig(**raw_data)
    logger.debug("Loaded configuration with %d jobs", len(config.jobs))
    return config
