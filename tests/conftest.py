"""Shared pytest fixtures for docs-mirror tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from docs_mirror.config_schema import JobConfig, ResourceConfig
from docs_mirror.sync.fetchers import FetchResult

MARKDOWN_PAGE = (
    "# Overview\n\n"
    "This page describes the product and its key capabilities in detail.\n"
)


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that fetch real documentation over the network",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring network access"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeFetcher:
    """In-memory fetcher keyed by resource label.

    A label mapped to ``None`` (or missing) is unavailable; a label mapped
    to an exception instance raises it from ``obtain()``.
    """

    def __init__(
        self,
        pages: dict | None = None,
        rate_limited: bool = True,
        revision: str | None = None,
        prepare_error: Exception | None = None,
    ) -> None:
        self.pages = dict(pages or {})
        self.rate_limited = rate_limited
        self.revision = revision
        self.prepare_error = prepare_error
        self.requested: list[str] = []
        self.closed = False

    def prepare(self) -> str | None:
        if self.prepare_error is not None:
            raise self.prepare_error
        return self.revision

    def obtain(self, resource: ResourceConfig) -> FetchResult:
        label = resource.label
        self.requested.append(label)
        content = self.pages.get(label)
        if isinstance(content, Exception):
            raise content
        source = f"https://docs.example.com/{label}.md"
        if content is None:
            return FetchResult(
                content=None, source_url=source, reason="HTTP 404"
            )
        return FetchResult(content=content, source_url=source)

    def close(self) -> None:
        self.closed = True


class FakeClock:
    """Clock that advances one minute per call."""

    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def make_job():
    """Factory for URL jobs with one resource per slug."""

    def _make(*slugs: str, **overrides) -> JobConfig:
        fields = {
            "base_url": "https://docs.example.com/en",
            "resources": [
                ResourceConfig(slug=slug, title=slug.title())
                for slug in slugs
            ],
            "delay": 0,
        }
        fields.update(overrides)
        return JobConfig(**fields)

    return _make


@pytest.fixture
def page():
    """Factory for plausible markdown pages."""

    def _page(name: str, extra: str = "") -> str:
        return MARKDOWN_PAGE.replace("Overview", name.title()) + extra

    return _page


@pytest.fixture
def fake_clock():
    return FakeClock()
