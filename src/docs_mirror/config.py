"""Run settings for docs-mirror.

Resolves the settings of one invocation from CLI args, environment
variables, .env files and the YAML configuration.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    DOCS_MIRROR_OUTPUT_ROOT: Root directory of the mirror (default: ./docs)
    DOCS_MIRROR_DRY_RUN: Preview without writing (default: false)
    DOCS_MIRROR_JOBS: Comma-separated job names (default: all jobs)
    DOCS_MIRROR_USER_AGENT: User-Agent header for HTTP requests
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .config_schema import DEFAULT_USER_AGENT
from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_ROOT = "docs"


@dataclass
class Settings:
    output_root: Path
    dry_run: bool = False
    jobs: list[str] = field(default_factory=list)
    user_agent: str = DEFAULT_USER_AGENT


def parse_job_list(value: str | None) -> list[str]:
    """Split a comma-separated job list, dropping blanks.

    Examples:
        >>> parse_job_list("a, b,,c")
        ['a', 'b', 'c']
    """
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.strip().lower() in ("true", "1", "yes", "on")


def validate_settings(settings: Settings) -> None:
    """Validate resolved settings.

    Raises:
        ConfigError: If the output root is unusable or the user agent is
            empty.
    """
    if settings.output_root.exists() and not settings.output_root.is_dir():
        raise ConfigError(
            f"Output root '{settings.output_root}' exists and is not a directory"
        )

    settings.user_agent = settings.user_agent.strip()
    if not settings.user_agent:
        raise ConfigError("User agent cannot be empty")


def load_settings(
    output_root: str | None = None,
    dry_run: bool = False,
    jobs: list[str] | None = None,
    yaml_fallbacks: dict | None = None,
) -> Settings:
    """Load run settings with unified precedence.

    The caller is responsible for calling ``load_dotenv()`` first so that
    .env values are visible through ``os.getenv()``.

    Args:
        output_root: ``--output-root`` CLI value.
        dry_run: ``--dry-run`` CLI flag.
        jobs: ``--jobs`` CLI value, already split.
        yaml_fallbacks: Top-level values of the YAML configuration
            (``output_root``, ``user_agent``).

    Returns:
        Validated ``Settings``.

    Raises:
        ConfigError: If a resolved value is invalid.
    """
    fb = yaml_fallbacks or {}

    root = (
        output_root
        or os.getenv("DOCS_MIRROR_OUTPUT_ROOT")
        or fb.get("output_root")
        or DEFAULT_OUTPUT_ROOT
    )

    if dry_run:
        final_dry_run = True
    else:
        env_dry_run = _get_bool_env("DOCS_MIRROR_DRY_RUN")
        final_dry_run = bool(env_dry_run) if env_dry_run is not None else False

    if jobs:
        final_jobs = list(jobs)
    else:
        final_jobs = parse_job_list(os.getenv("DOCS_MIRROR_JOBS"))

    user_agent = (
        os.getenv("DOCS_MIRROR_USER_AGENT")
        or fb.get("user_agent")
        or DEFAULT_USER_AGENT
    )

    settings = Settings(
        output_root=Path(root).expanduser(),
        dry_run=final_dry_run,
        jobs=final_jobs,
        user_agent=user_agent,
    )
    validate_settings(settings)
    logger.debug("Resolved settings: %s", settings)
    return settings
