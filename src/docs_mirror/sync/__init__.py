"""Incremental documentation sync engine.

Public API for mirroring remote documentation pages into a local
directory.

Architecture
------------
Each *job* describes one documentation source: a list of resources, a
fetch strategy and an output directory with its own JSON manifest.  The
manifest records a content hash per mirrored file; a resource is written
only when its hash differs from the one recorded by the previous run.

Modules:

- ``engine``    -- ``SyncEngine``: runs one job end to end.
- ``runner``    -- ``run_jobs``: runs several jobs in sequence.
- ``fetchers``  -- ``UrlFetcher`` and ``RepositoryFetcher`` strategies.
- ``transform`` -- validation and HTML-to-markdown conversion.
- ``hashing``   -- canonical content hashing.
- ``manifest``  -- ``ManifestStore``: load/save the manifest atomically.
- ``models``    -- ``Manifest``, ``ManifestEntry``, ``ResourceOutcome``,
  ``SyncReport``, ``JobResult``: core data contracts.
- ``reporter``  -- human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from docs_mirror.config_schema import JobConfig, ResourceConfig
    from docs_mirror.sync import SyncEngine, format_sync_report

    job = JobConfig(
        base_url="https://docs.example.com/en",
        resources=[ResourceConfig(slug="overview", title="Overview")],
    )
    engine = SyncEngine("example", job, Path("docs"))

    # Preview first
    print(format_sync_report(engine.run(dry_run=True)))

    report = engine.run()
    print(format_sync_report(report))
"""

from .engine import SyncEngine
from .fetchers import FetchResult, RepositoryFetcher, UrlFetcher
from .hashing import content_hash
from .manifest import ManifestStore
from .models import (
    JobResult,
    Manifest,
    ManifestEntry,
    ResourceOutcome,
    SyncReport,
    SyncStatus,
)
from .reporter import (
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)
from .runner import run_jobs

__all__ = [
    "FetchResult",
    "JobResult",
    "Manifest",
    "ManifestEntry",
    "ManifestStore",
    "RepositoryFetcher",
    "ResourceOutcome",
    "SyncEngine",
    "SyncReport",
    "SyncStatus",
    "UrlFetcher",
    "content_hash",
    "format_dry_run_preview",
    "format_sync_report",
    "report_to_json",
    "run_jobs",
]
