"""Run several sync jobs one after another."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from docs_mirror.errors import TransportError

from .engine import SyncEngine
from .models import JobResult, ResourceOutcome

if TYPE_CHECKING:
    from docs_mirror.config import Settings
    from docs_mirror.config_schema import JobConfig, MirrorConfig

logger = logging.getLogger(__name__)


def select_jobs(config: MirrorConfig, requested: list[str]) -> list[str]:
    """Return the job names to run, in configuration order when
    *requested* is empty and in request order otherwise."""
    if not requested:
        return list(config.jobs)
    return list(dict.fromkeys(requested))


def run_jobs(
    config: MirrorConfig,
    settings: Settings,
    on_outcome: Callable[[ResourceOutcome], None] | None = None,
    on_job_start: Callable[[str, JobConfig, SyncEngine], None] | None = None,
    engine_factory: Callable[..., SyncEngine] = SyncEngine,
) -> list[JobResult]:
    """Run the selected jobs sequentially.

    A job that cannot run (unknown name, transport failure, unexpected
    crash) is recorded as failed and the remaining jobs still run.

    Args:
        config: Validated configuration.
        settings: Resolved run settings (output root, dry run, job
            selection, user agent).
        on_outcome: Progress callback passed to every engine.
        on_job_start: Called with the job name, its configuration and the
            engine right before the job runs.
        engine_factory: Builds the engine for a job; replaceable in tests.

    Returns:
        One ``JobResult`` per selected job, in run order.
    """
    results: list[JobResult] = []

    for name in select_jobs(config, settings.jobs):
        job = config.jobs.get(name)
        if job is None:
            logger.error("Unknown job '%s'", name)
            results.append(
                JobResult(job_name=name, success=False, error="unknown job")
            )
            continue

        start = time.monotonic()
        try:
            engine = engine_factory(
                name,
                job,
                settings.output_root,
                on_outcome=on_outcome,
                user_agent=settings.user_agent,
            )
            if on_job_start is not None:
                on_job_start(name, job, engine)
            report = engine.run(dry_run=settings.dry_run)
        except TransportError as exc:
            logger.error("Job '%s' aborted: %s", name, exc)
            results.append(
                JobResult(
                    job_name=name,
                    success=False,
                    duration=time.monotonic() - start,
                    error=str(exc),
                )
            )
            continue
        except Exception as exc:
            logger.exception("Job '%s' crashed", name)
            results.append(
                JobResult(
                    job_name=name,
                    success=False,
                    duration=time.monotonic() - start,
                    error=f"unexpected error: {exc}",
                )
            )
            continue

        results.append(
            JobResult(
                job_name=name,
                success=True,
                duration=time.monotonic() - start,
                report=report,
            )
        )

    return results
