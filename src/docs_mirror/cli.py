"""Command line interface for docs-mirror.

Subcommands:

- ``sync`` (default) -- mirror the selected jobs.
- ``list`` -- show the configured jobs.
- ``status`` -- show the stored manifest of each job.
- ``init`` -- write a starter configuration file.

Reports are written to stdout; diagnostics go to stderr through logging.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .config import Settings, load_settings, parse_job_list
from .config_loader import ensure_config, load_hierarchical_config
from .config_schema import JobConfig, MirrorConfig, build_config
from .errors import ConfigError
from .logger import setup_logging
from .sync.engine import SyncEngine, output_dir_for
from .sync.manifest import ManifestStore
from .sync.models import JobResult, ResourceOutcome
from .sync.reporter import (
    format_dry_run_preview,
    format_job_header,
    format_outcome_line,
    format_run_summary,
    format_status,
    format_sync_report,
    report_to_json,
)
from .sync.runner import run_jobs, select_jobs

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_JOB_FAILED = 1
EXIT_CONFIG_ERROR = 2

_EPILOG = """
Examples:
  # Sync every configured job
  docs-mirror

  # Preview what would change for two jobs
  docs-mirror sync --dry-run --jobs claude-code,gemini-cli

  # Machine-readable report
  docs-mirror sync --json > report.json

  # Use an explicit config file and output directory
  docs-mirror --config ./mirror.yml --output-root ./skills sync

  # Show what the last sync recorded
  docs-mirror status
"""


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_job_options(parser: argparse.ArgumentParser, suppress: bool) -> None:
    default = argparse.SUPPRESS if suppress else None
    parser.add_argument(
        "--jobs",
        default=default,
        help="Comma-separated job names (default: all jobs, or DOCS_MIRROR_JOBS)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=argparse.SUPPRESS if suppress else False,
        help="Print a JSON report instead of text",
    )


def _add_sync_options(parser: argparse.ArgumentParser, suppress: bool) -> None:
    parser.add_argument(
        "--dry-run",
        "--preview",
        dest="dry_run",
        action="store_true",
        default=argparse.SUPPRESS if suppress else False,
        help="Fetch and compare without writing files or the manifest",
    )
    _add_job_options(parser, suppress)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Sync options are accepted both before and after the ``sync``
    subcommand, so ``docs-mirror --dry-run`` works without it.
    """
    parser = argparse.ArgumentParser(
        prog="docs-mirror",
        description="Keep a local mirror of remote documentation in sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=_EPILOG,
    )
    parser.add_argument(
        "--config",
        help="Config file (default: DOCS_MIRROR_CONFIG, ./docs-mirror.yml, "
        "./.docs_mirror/config.yml, ~/.config/docs_mirror/config.yml)",
    )
    parser.add_argument(
        "--output-root",
        help="Root directory of the mirror (overrides DOCS_MIRROR_OUTPUT_ROOT "
        "and the config file)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Also append log records to this file",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"docs-mirror version {__version__}",
    )
    _add_sync_options(parser, suppress=False)

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    sync_parser = subparsers.add_parser(
        "sync", help="Mirror the selected jobs (default)"
    )
    _add_sync_options(sync_parser, suppress=True)

    subparsers.add_parser("list", help="List configured jobs")

    status_parser = subparsers.add_parser(
        "status", help="Show the stored manifest of each job"
    )
    _add_job_options(status_parser, suppress=True)

    subparsers.add_parser("init", help="Write a starter config file")

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _load_config(config_path: str | None) -> MirrorConfig:
    """Load and validate the configuration.

    Raises:
        ConfigError: If a file is missing or invalid.
    """
    try:
        raw = load_hierarchical_config(config_path)
        return build_config(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration:\n{exc}") from exc
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(str(exc)) from exc


def _cmd_sync(config: MirrorConfig, settings: Settings, as_json: bool) -> int:
    def on_job_start(name: str, job: JobConfig, engine: SyncEngine) -> None:
        if not as_json:
            target = str(engine.output_dir)
            print(format_job_header(name, job, target, settings.dry_run))
            print()

    def on_outcome(outcome: ResourceOutcome) -> None:
        if not as_json:
            print(format_outcome_line(outcome), flush=True)

    results = run_jobs(
        config, settings, on_outcome=on_outcome, on_job_start=on_job_start
    )

    if as_json:
        print(json.dumps(_results_to_json(results), indent=2))
    elif not results:
        print("No jobs configured.")
    else:
        for result in results:
            if result.report is not None:
                print()
                if result.report.dry_run:
                    print(format_dry_run_preview(result.report))
                    print()
                print(format_sync_report(result.report))
                print()
        if len(results) > 1 or any(not r.success for r in results):
            print(format_run_summary(results))

    return EXIT_OK if all(r.success for r in results) else EXIT_JOB_FAILED


def _results_to_json(results: list[JobResult]) -> dict:
    jobs = []
    for result in results:
        item: dict = {
            "job_name": result.job_name,
            "success": result.success,
            "duration": round(result.duration, 3),
        }
        if result.error:
            item["error"] = result.error
        if result.report is not None:
            item["report"] = report_to_json(result.report)
        jobs.append(item)
    return {"success": all(r.success for r in results), "jobs": jobs}


def _cmd_list(config: MirrorConfig) -> int:
    if not config.jobs:
        print("No jobs configured.")
        return EXIT_OK

    for name, job in config.jobs.items():
        source = job.repo_url if job.strategy == "repository" else job.base_url
        print(
            f"{name}: {len(job.all_resources)} resources "
            f"({job.strategy}, {job.format}) {source or ''}".rstrip()
        )
    return EXIT_OK


def _cmd_status(config: MirrorConfig, settings: Settings, as_json: bool) -> int:
    exit_code = EXIT_OK
    payload = []
    for name in select_jobs(config, settings.jobs):
        job = config.jobs.get(name)
        if job is None:
            logger.error("Unknown job '%s'", name)
            exit_code = EXIT_JOB_FAILED
            continue

        directory = output_dir_for(settings.output_root, name, job)
        store = ManifestStore(directory / job.manifest_file)
        manifest = store.load()
        if as_json:
            payload.append(
                {"job_name": name, "manifest": manifest.to_json_dict()}
            )
        else:
            print(format_status(name, manifest, str(store.path)))
            print()

    if as_json:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    return exit_code


def _cmd_init(config_path: str | None) -> int:
    target = Path(config_path) if config_path else None
    path, created = ensure_config(target)
    if created:
        print(f"Created {path}")
    else:
        print(f"Config already exists: {path}")
    return EXIT_OK


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Run the command line and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv()
    setup_logging(
        debug=args.debug, log_file=args.log_file, log_format=args.log_format
    )

    command = args.command or "sync"
    if command == "init":
        return _cmd_init(args.config)

    try:
        config = _load_config(args.config)
        # The config file may carry its own log level and file.
        setup_logging(
            debug=args.debug,
            log_file=args.log_file or config.logging.file,
            log_format=args.log_format,
            level=config.logging.level,
        )
        settings = load_settings(
            output_root=args.output_root,
            dry_run=args.dry_run,
            jobs=parse_job_list(args.jobs),
            yaml_fallbacks={
                "output_root": config.output_root,
                "user_agent": config.user_agent,
            },
        )
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    match command:
        case "list":
            return _cmd_list(config)
        case "status":
            return _cmd_status(config, settings, args.json)
        case _:
            return _cmd_sync(config, settings, args.json)


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
