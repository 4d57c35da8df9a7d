"""Sync report formatting functions.

Provides human-readable and machine-readable output for sync runs:

- ``format_job_header`` -- banner printed before a job starts.
- ``format_outcome_line`` -- one progress line per resource.
- ``format_sync_report`` -- post-sync summary counters.
- ``format_dry_run_preview`` -- dry-run preview grouped by status.
- ``format_run_summary`` -- summary of a multi-job run.
- ``format_status`` -- manifest summary for the ``status`` command.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docs_mirror.config_schema import JobConfig

    from .models import JobResult, Manifest, ResourceOutcome, SyncReport

from .models import SyncStatus

# ------------------------------------------------------------------
# Progress output
# ------------------------------------------------------------------


def format_job_header(
    job_name: str, job: JobConfig, target: str, dry_run: bool
) -> str:
    """Format the banner shown before a job runs."""
    title = f"{job_name} documentation sync"
    source = job.repo_url if job.strategy == "repository" else job.base_url
    lines = [
        title,
        "=" * len(title),
        f"Mode: {'DRY RUN' if dry_run else 'LIVE'}",
        f"Source: {source or '(per-resource URLs)'}",
        f"Target: {target}",
    ]
    return "\n".join(lines)


def format_outcome_line(outcome: ResourceOutcome) -> str:
    """Format the progress line for one resource.

    Examples:
        ``overview.md ... new``
        ``setup.md ... failed (HTTP 404)``
    """
    status = outcome.status.value
    if outcome.status == SyncStatus.FAILED and outcome.error:
        status = f"{status} ({outcome.error})"
    return f"  {outcome.key} ... {status}"


# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_sync_report(report: SyncReport) -> str:
    """Format the summary of a completed sync run.

    ``Total`` is the number of configured resources, so a mismatch with
    the sum of the other counters is visible.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    counters = report.counters()
    header = "Summary"
    if report.dry_run:
        header += " (DRY RUN)"

    lines = [
        header,
        "-" * len(header),
        f"Fetched/Updated: {counters['fetched']}",
        f"Unchanged: {counters['unchanged']}",
        f"Failed: {counters['failed']}",
        f"Total: {counters['total']}",
    ]
    if report.revision:
        lines.append(f"Source commit: {report.revision[:8]}")

    if report.failed:
        lines.append("")
        lines.append("Failures:")
        for outcome in report.failed:
            lines.append(
                f"  {outcome.key} [{outcome.stage}]: {outcome.error}"
            )

    return "\n".join(lines)


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: SyncReport) -> str:
    """Format a dry-run preview grouped by status.

    Each changed resource is listed under ``[NEW]`` or ``[UPDATED]``;
    unchanged resources are summarised by count.

    Args:
        report: A dry-run sync report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines = [
        "DRY RUN -- No files will be written",
        f"Job: {report.job_name}",
        "",
    ]

    groups: dict[SyncStatus, list[ResourceOutcome]] = defaultdict(list)
    for outcome in report.outcomes:
        groups[outcome.status].append(outcome)

    for status in (SyncStatus.NEW, SyncStatus.UPDATED, SyncStatus.FAILED):
        if status not in groups:
            continue
        lines.append(f"[{status.value.upper()}]")
        for outcome in groups[status]:
            suffix = f": {outcome.error}" if outcome.error else ""
            lines.append(f"  {outcome.key}{suffix}")
        lines.append("")

    unchanged = len(groups.get(SyncStatus.UNCHANGED, []))
    if unchanged:
        lines.append(f"Unchanged: {unchanged} files")
        lines.append("")

    if not groups.get(SyncStatus.NEW) and not groups.get(SyncStatus.UPDATED):
        lines.append("No changes needed.")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Multi-job summary
# ------------------------------------------------------------------


def format_run_summary(results: list[JobResult]) -> str:
    """Format the summary of a multi-job run."""
    title = "Summary - all jobs"
    lines = ["=" * 60, title, "=" * 60]

    successful = [r for r in results if r.success]
    failed = [r for r in results if not r.success]

    lines.append(f"Successful: {len(successful)}/{len(results)}")
    for r in successful:
        lines.append(f"  ok  {r.job_name} ({r.duration:.1f}s)")

    if failed:
        lines.append(f"Failed: {len(failed)}")
        for r in failed:
            lines.append(f"  ERR {r.job_name}: {r.error}")

    total = sum(r.duration for r in results)
    lines.append(f"Total time: {total:.1f}s")
    return "\n".join(lines)


def format_status(job_name: str, manifest: Manifest, path: str) -> str:
    """Format the stored manifest of a job for the ``status`` command."""
    lines = [
        f"Sync status for '{job_name}'",
        f"  Manifest:      {path}",
        f"  Last sync:     {manifest.last_sync or 'never'}",
        f"  Tracked files: {len(manifest.files)}",
    ]
    if manifest.base_url:
        lines.append(f"  Base URL:      {manifest.base_url}")
    if manifest.source_repo:
        lines.append(f"  Repository:    {manifest.source_repo}")
    if manifest.source_commit:
        lines.append(f"  Commit:        {manifest.source_commit[:8]}")
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation.

    Args:
        report: The sync report.

    Returns:
        Dict with job info, counters, and per-resource outcomes.
    """
    outcomes = []
    for o in report.outcomes:
        item: dict = {
            "key": o.key,
            "label": o.label,
            "status": o.status.value,
        }
        if o.source:
            item["source"] = o.source
        if o.error:
            item["stage"] = o.stage
            item["error"] = o.error
        outcomes.append(item)

    return {
        "job_name": report.job_name,
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "revision": report.revision,
        "counts": report.counters(),
        "outcomes": outcomes,
    }
