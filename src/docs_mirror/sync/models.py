"""Pydantic models for the documentation sync engine.

Defines the core data contracts used across all sync modules:

- ``SyncStatus``: Terminal status of one resource.
- ``ManifestEntry``: Persisted record for one mirrored file.
- ``Manifest``: Persisted record of a whole job.
- ``ResourceOutcome``: What happened to one resource during a run.
- ``SyncReport``: Aggregate results for a full sync run.
- ``JobResult``: Outcome of one job in a multi-job run.

All models are frozen (immutable).  Manifest models use the camelCase keys
of the on-disk JSON format through field aliases.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SyncStatus(str, Enum):
    """Terminal status of a resource after a sync run."""

    NEW = "new"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class ManifestEntry(BaseModel):
    """Persisted record of one mirrored file.

    Attributes:
        slug: Page slug for URL-based jobs.
        path: Source path inside the repository for repository jobs.
        title: Human-readable title.
        description: Short description.
        hash: SHA-256 of the canonicalised content.
        last_updated: ISO 8601 timestamp of the last content change.
        source_url: URL the content was fetched from.
    """

    slug: str | None = None
    path: str | None = None
    title: str | None = None
    description: str | None = None
    hash: str
    last_updated: str = Field(alias="lastUpdated")
    source_url: str | None = Field(default=None, alias="sourceUrl")

    # Unknown keys from older manifests survive a carry-forward.
    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "allow",
    }


class Manifest(BaseModel):
    """Persisted record of all files mirrored by one job.

    Attributes:
        last_sync: ISO 8601 timestamp of the last persisted run.
        base_url: Base origin URL (URL jobs).
        source_repo: Repository URL (repository jobs).
        source_commit: Revision the mirror was taken from.
        files: Destination path -> entry.
    """

    last_sync: str = Field(default="", alias="lastSync")
    base_url: str | None = Field(default=None, alias="baseUrl")
    source_repo: str | None = Field(default=None, alias="sourceRepo")
    source_commit: str | None = Field(
        default=None, alias="sourceCommit"
    )
    files: dict[str, ManifestEntry] = Field(default_factory=dict)

    model_config = {"frozen": True, "populate_by_name": True}

    def to_json_dict(self) -> dict:
        """Return the on-disk representation (camelCase, no nulls)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ResourceOutcome(BaseModel):
    """Result of syncing one resource.

    Attributes:
        key: Destination path (manifest key).
        label: Identifier shown to the user (slug, path or URL).
        status: Terminal status.
        source: Provenance of the fetched content, if any.
        stage: Where a failure happened (fetch, validate, transform,
            write, unexpected).
        error: Failure reason.
    """

    key: str
    label: str
    status: SyncStatus
    source: str | None = None
    stage: str | None = None
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return self.status != SyncStatus.FAILED


class SyncReport(BaseModel):
    """Aggregate report for a full sync run of one job.

    Attributes:
        job_name: Name of the job.
        dry_run: Whether this was a preview run (nothing written).
        outcomes: Per-resource outcomes in processing order.
        manifest: The manifest built by the run.
        configured_total: Number of resources in the configuration,
            including the supplementary resource.
        revision: Source revision (repository jobs).
        started_at: ISO 8601 timestamp when sync started.
        completed_at: ISO 8601 timestamp when sync completed.
    """

    job_name: str
    dry_run: bool = False
    outcomes: list[ResourceOutcome] = []
    manifest: Manifest = Field(default_factory=Manifest)
    configured_total: int = 0
    revision: str | None = None
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def _with_status(self, status: SyncStatus) -> list[ResourceOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def new(self) -> list[ResourceOutcome]:
        """Outcomes with status NEW."""
        return self._with_status(SyncStatus.NEW)

    @property
    def updated(self) -> list[ResourceOutcome]:
        """Outcomes with status UPDATED."""
        return self._with_status(SyncStatus.UPDATED)

    @property
    def unchanged(self) -> list[ResourceOutcome]:
        """Outcomes with status UNCHANGED."""
        return self._with_status(SyncStatus.UNCHANGED)

    @property
    def failed(self) -> list[ResourceOutcome]:
        """Outcomes with status FAILED."""
        return self._with_status(SyncStatus.FAILED)

    @property
    def fetched_count(self) -> int:
        """New plus updated resources."""
        return len(self.new) + len(self.updated)

    def counters(self) -> dict[str, int]:
        """Summary counters of the run."""
        return {
            "fetched": self.fetched_count,
            "unchanged": len(self.unchanged),
            "failed": len(self.failed),
            "total": self.configured_total,
        }


class JobResult(BaseModel):
    """Outcome of one job in a multi-job run.

    Attributes:
        job_name: Name of the job.
        success: False if the job could not run to completion.
        duration: Wall-clock seconds spent on the job.
        report: The job's sync report when it completed.
        error: Why the job failed.
    """

    job_name: str
    success: bool
    duration: float = 0.0
    report: SyncReport | None = None
    error: str | None = None

    model_config = {"frozen": True}
