"""Core sync engine that mirrors one job's resources.

The ``SyncEngine`` ties together fetcher, transformer, hasher and manifest
store into a complete sync run.  It:

1. Prepares the fetcher (a failure here aborts the job).
2. Loads the previous manifest once; it is never mutated.
3. For each resource, in configuration order: fetches, validates and
   converts, hashes, compares against the previous entry, and writes the
   file when the content is new or changed.  The optional supplementary
   document follows, fetched over HTTP as markdown.
4. Builds a new manifest: unchanged entries are carried forward verbatim,
   changed ones are replaced, failed ones are dropped.
5. Persists the new manifest and returns an immutable ``SyncReport``.

Error handling is per-resource: a single failure never aborts the run.
In dry-run mode steps 1-4 run normally but nothing is written.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from docs_mirror.config_schema import (
    DEFAULT_USER_AGENT,
    JobConfig,
    ResourceConfig,
)
from docs_mirror.errors import ContentRejectedError, ConversionError
from docs_mirror.file_handler import resolve_destination, write_file

from .fetchers import ResourceFetcher, UrlFetcher, create_fetcher
from .hashing import content_hash
from .manifest import ManifestStore
from .models import (
    Manifest,
    ManifestEntry,
    ResourceOutcome,
    SyncReport,
    SyncStatus,
)
from .transform import (
    ContentTransformer,
    create_extra_transformer,
    create_transformer,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def output_dir_for(output_root: Path, job_name: str, job: JobConfig) -> Path:
    """Directory that receives the files and manifest of a job."""
    return Path(output_root) / (job.output_dir or job_name)


class SyncEngine:
    """Mirror the resources of one job into a local directory.

    Args:
        job_name: Name of the job.
        job: The job configuration.
        output_root: Root directory of the mirror.  Files land in
            ``output_root / job.output_dir``.
        fetcher: Fetch strategy; defaults to ``create_fetcher(job)``.
        transformer: Content transformer; defaults to
            ``create_transformer(job)``.
        store: Manifest store; defaults to the job's manifest file.
        sleep: Delay function used for rate limiting.
        clock: Returns the current time for ``lastUpdated`` stamps.
        on_outcome: Called with each ``ResourceOutcome`` as it happens.
        user_agent: ``User-Agent`` for the default URL fetchers.
        extra_fetcher: Fetcher for the supplementary resource; defaults to
            the job fetcher for URL jobs and a new ``UrlFetcher`` otherwise.
        extra_transformer: Transformer for the supplementary resource;
            defaults to ``create_extra_transformer(job)``.
    """

    def __init__(
        self,
        job_name: str,
        job: JobConfig,
        output_root: Path,
        fetcher: ResourceFetcher | None = None,
        transformer: ContentTransformer | None = None,
        store: ManifestStore | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
        on_outcome: Callable[[ResourceOutcome], None] | None = None,
        user_agent: str | None = None,
        extra_fetcher: ResourceFetcher | None = None,
        extra_transformer: ContentTransformer | None = None,
    ) -> None:
        self.job_name = job_name
        self.job = job
        self.output_dir = output_dir_for(output_root, job_name, job)

        user_agent = user_agent or DEFAULT_USER_AGENT
        self.fetcher = fetcher or create_fetcher(job_name, job, user_agent)
        self.transformer = transformer or create_transformer(job)

        self.extra_fetcher: ResourceFetcher | None = None
        self.extra_transformer: ContentTransformer | None = None
        if job.extra is not None:
            if extra_fetcher is not None:
                self.extra_fetcher = extra_fetcher
            elif job.strategy == "url":
                self.extra_fetcher = self.fetcher
            else:
                self.extra_fetcher = UrlFetcher(job, user_agent=user_agent)
            self.extra_transformer = (
                extra_transformer or create_extra_transformer(job)
            )
        self.store = store or ManifestStore(
            self.output_dir / job.manifest_file,
            base_url=job.base_url if job.strategy == "url" else None,
            source_repo=job.repo_url if job.strategy == "repository" else None,
        )
        self.sleep = sleep
        self.clock = clock
        self.on_outcome = on_outcome

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(self, dry_run: bool = False) -> SyncReport:
        """Execute a full sync run.

        Args:
            dry_run: If ``True``, fetch and compare but write nothing.

        Returns:
            A ``SyncReport`` summarising what was (or would be) done.

        Raises:
            TransportError: If the fetcher cannot establish its source.
        """
        started_at = self.clock().isoformat()
        try:
            revision = self.fetcher.prepare()
            previous = self.store.load()

            entries: dict[str, ManifestEntry] = {}
            outcomes: list[ResourceOutcome] = []
            previous_fetcher = None
            for resource, fetcher, transformer in self._plan():
                if (
                    fetcher is previous_fetcher
                    and fetcher.rate_limited
                    and self.job.delay > 0
                ):
                    self.sleep(self.job.delay)
                previous_fetcher = fetcher

                outcome, entry = self._sync_resource_safely(
                    resource, fetcher, transformer, previous, dry_run
                )
                outcomes.append(outcome)
                if entry is not None:
                    entries[outcome.key] = entry
                if self.on_outcome is not None:
                    self.on_outcome(outcome)
        finally:
            self.fetcher.close()
            if (
                self.extra_fetcher is not None
                and self.extra_fetcher is not self.fetcher
            ):
                self.extra_fetcher.close()

        manifest = self.store.empty().model_copy(
            update={"source_commit": revision, "files": entries}
        )
        if dry_run:
            logger.info("Dry run: manifest %s not written", self.store.path)
        else:
            manifest = self.store.save(manifest)

        return SyncReport(
            job_name=self.job_name,
            dry_run=dry_run,
            outcomes=outcomes,
            manifest=manifest,
            configured_total=len(self.job.all_resources),
            revision=revision,
            started_at=started_at,
            completed_at=self.clock().isoformat(),
        )

    # ------------------------------------------------------------------
    # Per-resource sync
    # ------------------------------------------------------------------

    def _plan(
        self,
    ) -> list[tuple[ResourceConfig, ResourceFetcher, ContentTransformer]]:
        """Resources in sync order, each with its fetcher and transformer."""
        plan = [
            (resource, self.fetcher, self.transformer)
            for resource in self.job.resources
        ]
        if self.job.extra is not None:
            plan.append(
                (self.job.extra, self.extra_fetcher, self.extra_transformer)
            )
        return plan

    def _sync_resource_safely(
        self,
        resource: ResourceConfig,
        fetcher: ResourceFetcher,
        transformer: ContentTransformer,
        previous: Manifest,
        dry_run: bool,
    ) -> tuple[ResourceOutcome, ManifestEntry | None]:
        """Sync one resource, counting unexpected errors as failures."""
        key = self.job.destination_for(resource)
        try:
            return self._sync_resource(
                key, resource, fetcher, transformer, previous, dry_run
            )
        except Exception as exc:
            logger.exception("Unexpected error syncing %s", key)
            return self._failed(key, resource, "unexpected", str(exc)), None

    def _sync_resource(
        self,
        key: str,
        resource: ResourceConfig,
        fetcher: ResourceFetcher,
        transformer: ContentTransformer,
        previous: Manifest,
        dry_run: bool,
    ) -> tuple[ResourceOutcome, ManifestEntry | None]:
        """Fetch, compare and (maybe) write one resource.

        Returns the outcome and the manifest entry to record, which is
        ``None`` for failed resources.
        """
        fetched = fetcher.obtain(resource)
        if not fetched.available:
            return (
                self._failed(
                    key, resource, "fetch", fetched.reason, fetched.source
                ),
                None,
            )

        try:
            result = transformer.transform(resource, fetched)
        except ContentRejectedError as exc:
            return (
                self._failed(
                    key, resource, "validate", str(exc), fetched.source
                ),
                None,
            )
        except ConversionError as exc:
            return (
                self._failed(
                    key, resource, "transform", str(exc), fetched.source
                ),
                None,
            )

        digest = content_hash(result.body)
        old_entry = previous.files.get(key)

        if old_entry is not None and old_entry.hash == digest:
            logger.debug("%s unchanged", key)
            outcome = ResourceOutcome(
                key=key,
                label=resource.label,
                status=SyncStatus.UNCHANGED,
                source=fetched.source,
            )
            return outcome, old_entry

        status = (
            SyncStatus.UPDATED if old_entry is not None else SyncStatus.NEW
        )

        if not dry_run:
            try:
                path = resolve_destination(self.output_dir, key)
                written = write_file(path, result.text)
            except (OSError, ValueError) as exc:
                return (
                    self._failed(
                        key, resource, "write", str(exc), fetched.source
                    ),
                    None,
                )
            logger.info("Wrote %s (%d bytes)", path, written)

        entry = ManifestEntry(
            slug=resource.slug,
            # Relative to the job's source root, not the repository.
            path=resource.path if fetched.source_path else None,
            title=resource.title or None,
            description=resource.description or None,
            hash=digest,
            last_updated=self.clock().isoformat(),
            source_url=fetched.source_url,
        )
        outcome = ResourceOutcome(
            key=key,
            label=resource.label,
            status=status,
            source=fetched.source,
        )
        return outcome, entry

    def _failed(
        self,
        key: str,
        resource: ResourceConfig,
        stage: str,
        error: str | None,
        source: str | None = None,
    ) -> ResourceOutcome:
        logger.warning(
            "[%s] %s failed at %s: %s", self.job_name, key, stage, error
        )
        return ResourceOutcome(
            key=key,
            label=resource.label,
            status=SyncStatus.FAILED,
            source=source,
            stage=stage,
            error=error,
        )
