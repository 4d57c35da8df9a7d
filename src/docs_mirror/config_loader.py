"""
Hierarchical configuration loader for docs-mirror.

Finds configuration files by convention, supports ``!include`` so each job
can live in its own file, interpolates environment variables and merges
files with "project wins" semantics.

Usage:
    from docs_mirror.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DOCS_MIRROR_CONFIG"
DEFAULT_CONFIG_NAME = "docs-mirror.yml"

# ---------------------------------------------------------------------------
# 1. Env var interpolation
# ---------------------------------------------------------------------------

# Matches ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` with environment values.

    * ``${VAR}`` becomes ``os.environ.get(VAR, "")``.
    * ``${VAR:-default}`` uses *default* when VAR is unset or empty.
    * A ``${`` without a closing ``}`` is left alone.
    """

    def _replace(match: re.Match) -> str:
        env_val = os.environ.get(match.group(1))
        if env_val:
            return env_val
        return match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# 2. YAML !include support
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader with an ``!include`` tag.

    A subclass keeps the global ``yaml.SafeLoader`` untouched.  Each load
    carries an include stack used to detect circular includes.
    """


def _include_constructor(loader: ConfigLoader, node: yaml.ScalarNode) -> Any:
    """Handle ``!include path/to/file.yml``."""
    target = Path(loader.construct_scalar(node)).expanduser()
    if not target.is_absolute():
        target = Path(loader.name).resolve().parent / target
    target = target.resolve()

    stack: list[Path] = getattr(loader, "_include_stack", [])
    if target in stack:
        chain = " -> ".join(str(p) for p in [*stack, target])
        raise ValueError(f"Circular include detected: {chain}")

    if not target.exists():
        raise FileNotFoundError(
            f"Include file not found: {target} "
            f"(referenced from {Path(loader.name).resolve()})"
        )

    return _load_yaml_with_includes(target, _include_stack=[*stack, target])


ConfigLoader.add_constructor("!include", _include_constructor)


def _load_yaml_with_includes(
    path: Path,
    *,
    _include_stack: list[Path] | None = None,
) -> Any:
    path = path.resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_stack = _include_stack or [path]  # type: ignore[attr-defined]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# 3. Convention-based file discovery
# ---------------------------------------------------------------------------


def discover_config_files(explicit: str | Path | None = None) -> list[Path]:
    """Return existing config files in precedence order (highest first).

    Search order:
        1. *explicit* (the ``--config`` option).  When given, it is the
           only file used; a missing file raises ``FileNotFoundError``.
        2. ``DOCS_MIRROR_CONFIG`` env var.
        3. ``docs-mirror.yml`` in CWD.
        4. ``.docs_mirror/config.yml`` in CWD.
        5. ``~/.config/docs_mirror/config.yml``.

    Only paths that exist on disk are returned.
    """
    if explicit is not None:
        path = Path(explicit).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        return [path]

    candidates: list[Path] = []

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    cwd = Path.cwd()
    candidates.append(cwd / DEFAULT_CONFIG_NAME)
    candidates.append(cwd / ".docs_mirror" / "config.yml")
    candidates.append(Path.home() / ".config" / "docs_mirror" / "config.yml")

    return [p for p in candidates if p.exists()]


# ---------------------------------------------------------------------------
# 3a. Config bootstrapping
# ---------------------------------------------------------------------------

STARTER_CONFIG = """\
# docs-mirror configuration
#
# Run settings can also be set via environment variables:
#   DOCS_MIRROR_OUTPUT_ROOT, DOCS_MIRROR_DRY_RUN, DOCS_MIRROR_JOBS,
#   DOCS_MIRROR_USER_AGENT, LOG_LEVEL
#
# Strings may reference the environment: ${HOME}, ${DOCS_ROOT:-./docs}

output_root: ./docs

jobs:
  # Markdown pages served next to the HTML site
  example-docs:
    strategy: url
    base_url: https://docs.example.com/en
    output_dir: example-docs
    delay: 0.2
    resources:
      - slug: overview
        title: Overview
      - slug: quickstart
        title: Quickstart

  # Markdown files inside a git repository
  # example-repo:
  #   strategy: repository
  #   repo_url: https://github.com/example/project.git
  #   branch: main
  #   source_root: docs
  #   resources:
  #     - path: index.md
  #       title: Index

  # HTML pages converted to markdown
  # example-html:
  #   format: html
  #   base_url: https://developers.example.com/docs
  #   extension: html
  #   resources:
  #     - slug: models
  #       dest: models.md
  #       title: Models

  # Jobs can also live in their own files:
  # other: !include jobs/other.yml

logging:
  level: INFO
  file: null
"""


def resolve_config_path(explicit: str | Path | None = None) -> Path:
    """Return the config file that should be used.

    The highest-precedence existing file, or ``CWD / docs-mirror.yml`` when
    none exists.  Nothing is created.
    """
    if explicit is not None:
        return Path(explicit).expanduser().resolve()
    existing = discover_config_files()
    if existing:
        return existing[0]
    return Path.cwd() / DEFAULT_CONFIG_NAME


def ensure_config(target: Path | None = None) -> tuple[Path, bool]:
    """Ensure a config file exists, writing the starter file if needed.

    Args:
        target: Explicit path to create.  When ``None``, an existing
            discovered file is reused, else ``resolve_config_path()`` is
            used.

    Returns:
        The config path and whether it was created.
    """
    if target is None:
        existing = discover_config_files()
        if existing:
            logger.debug("Config file already exists: %s", existing[0])
            return existing[0], False
        target = resolve_config_path()
    elif target.exists():
        logger.debug("Config file already exists: %s", target)
        return target, False

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", target)
    return target, True


# ---------------------------------------------------------------------------
# 4. Hierarchical merge
# ---------------------------------------------------------------------------


def load_hierarchical_config(
    config_path: str | Path | None = None,
) -> dict[str, Any]:
    """Load and merge all discovered config files.

    Files are loaded from lowest precedence to highest; top-level keys of
    a later file **replace** those of earlier ones.  Environment variables
    are interpolated after the merge.

    Args:
        config_path: Explicit config file; disables discovery.

    Returns:
        The merged dict, empty when no config file exists.
    """
    paths = discover_config_files(config_path)

    if not paths:
        logger.debug("No config files found, using defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = _load_yaml_with_includes(path)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)
