"""Fetch strategies for the sync engine.

Provides the two ways a job obtains raw documents:

- ``UrlFetcher``: one HTTP GET per resource against the job's origin.
- ``RepositoryFetcher``: one shallow clone (or fast-forward) of a git
  repository per run, then plain file reads out of the working tree.

Both satisfy the ``ResourceFetcher`` protocol and return a ``FetchResult``
per resource.  An unavailable resource is a result, not an exception; only
``RepositoryFetcher.prepare()`` raises (``TransportError``), because without
a checkout no resource of the job can be attempted.

The ``create_fetcher()`` factory maps a job's ``strategy`` to a fetcher.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

import requests

from docs_mirror.config_schema import (
    DEFAULT_USER_AGENT,
    JobConfig,
    ResourceConfig,
)
from docs_mirror.errors import TransportError
from docs_mirror.file_handler import read_file_with_encoding

logger = logging.getLogger(__name__)

# Clone/fetch of large documentation repositories can be slow.
GIT_TIMEOUT = 300


@dataclass(frozen=True)
class FetchResult:
    """Raw content of one resource, or the reason it is unavailable.

    Attributes:
        content: Fetched text, ``None`` when unavailable.
        source_url: URL the content came from (URL strategy).
        source_path: Path inside the repository (repository strategy).
        reason: Why the resource is unavailable.
    """

    content: str | None = None
    source_url: str | None = None
    source_path: str | None = None
    reason: str | None = None

    @property
    def available(self) -> bool:
        return self.content is not None

    @property
    def source(self) -> str | None:
        """Provenance string for display."""
        return self.source_url or self.source_path


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ResourceFetcher(Protocol):
    """Protocol that all fetch strategies must satisfy."""

    #: Whether the engine should pause between resources.
    rate_limited: bool

    def prepare(self) -> str | None:
        """Establish the source snapshot for the job.

        Returns:
            A source revision identifier, or ``None`` if the strategy
            has no notion of revisions.

        Raises:
            TransportError: If no resource can be fetched at all.
        """
        ...  # pragma: no cover

    def obtain(self, resource: ResourceConfig) -> FetchResult:
        """Fetch the raw content of *resource*."""
        ...  # pragma: no cover

    def close(self) -> None:
        """Release any resources held by the fetcher."""
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Direct URL
# ---------------------------------------------------------------------------


class UrlFetcher:
    """Fetch each resource with an HTTP GET.

    Args:
        job: The job configuration (base URL, extension, timeout).
        user_agent: Value of the ``User-Agent`` header.
        session: Optional ``requests.Session`` to reuse.
    """

    rate_limited = True

    def __init__(
        self,
        job: JobConfig,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        self.job = job
        self.user_agent = user_agent
        self._owns_session = session is None
        self.session = session or requests.Session()

    def prepare(self) -> str | None:
        return None

    def obtain(self, resource: ResourceConfig) -> FetchResult:
        url = self.job.url_for(resource)
        headers = {
            "User-Agent": self.user_agent,
            "Cache-Control": "no-cache",
        }
        try:
            response = self.session.get(
                url, headers=headers, timeout=self.job.timeout
            )
        except requests.RequestException as exc:
            logger.warning("Request for %s failed: %s", url, exc)
            return FetchResult(
                content=None,
                source_url=url,
                reason=f"request failed: {exc}",
            )

        if not response.ok:
            logger.warning(
                "Fetching %s returned HTTP %d", url, response.status_code
            )
            return FetchResult(
                content=None,
                source_url=url,
                reason=f"HTTP {response.status_code}",
            )

        return FetchResult(content=response.text, source_url=url)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()


# ---------------------------------------------------------------------------
# Repository snapshot
# ---------------------------------------------------------------------------


class RepositoryFetcher:
    """Read resources out of a shallow clone of a git repository.

    Args:
        job_name: Name of the job (used for the default checkout dir).
        job: The job configuration (repo URL, branch, source root).
        runner: ``subprocess.run`` compatible callable, replaceable in
            tests.
    """

    rate_limited = False

    def __init__(
        self,
        job_name: str,
        job: JobConfig,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.job = job
        self.runner = runner
        if job.checkout_dir:
            self.checkout_dir = Path(job.checkout_dir).expanduser()
        else:
            self.checkout_dir = (
                Path(tempfile.gettempdir()) / f"{job_name}-sync"
            )
        self.revision: str | None = None

    def prepare(self) -> str | None:
        """Clone the repository, or fast-forward an existing clone.

        Returns:
            The commit hash of ``HEAD`` after the update.

        Raises:
            TransportError: If git fails or is not installed.
        """
        branch = self.job.branch
        try:
            if (self.checkout_dir / ".git").exists():
                logger.info("Updating existing clone in %s", self.checkout_dir)
                self._git(
                    "fetch", "--depth", "1", "origin", branch,
                    cwd=self.checkout_dir,
                )
                self._git(
                    "reset", "--hard", "FETCH_HEAD", cwd=self.checkout_dir
                )
            else:
                logger.info(
                    "Cloning %s into %s", self.job.repo_url, self.checkout_dir
                )
                self.checkout_dir.parent.mkdir(parents=True, exist_ok=True)
                self._git(
                    "clone", "--depth", "1", "--branch", branch,
                    str(self.job.repo_url), str(self.checkout_dir),
                )
            result = self._git("rev-parse", "HEAD", cwd=self.checkout_dir)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or (
                f"exit code {exc.returncode}"
            )
            raise TransportError(
                f"{' '.join(exc.cmd[:2])} failed for {self.job.repo_url}: {detail}"
            ) from exc
        except (subprocess.TimeoutExpired, FileNotFoundError) as exc:
            raise TransportError(
                f"Failed to clone/update {self.job.repo_url}: {exc}"
            ) from exc

        self.revision = result.stdout.strip()
        logger.info("Source commit: %s", self.revision[:8])
        return self.revision

    def obtain(self, resource: ResourceConfig) -> FetchResult:
        repo_path = self._repo_path(resource)
        file_path = self.checkout_dir / repo_path
        if not file_path.is_file():
            return FetchResult(
                content=None,
                source_path=repo_path,
                reason="not found in repository",
            )

        try:
            content, encoding = read_file_with_encoding(file_path)
        except OSError as exc:
            return FetchResult(
                content=None,
                source_path=repo_path,
                reason=f"read failed: {exc}",
            )
        logger.debug("Read %s (%s)", repo_path, encoding)
        return FetchResult(content=content, source_path=repo_path)

    def close(self) -> None:
        pass

    def _repo_path(self, resource: ResourceConfig) -> str:
        root = self.job.source_root.strip("/")
        path = (resource.path or "").lstrip("/")
        return f"{root}/{path}" if root else path

    def _git(
        self, *args: str, cwd: Path | None = None
    ) -> subprocess.CompletedProcess:
        return self.runner(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            check=True,
            timeout=GIT_TIMEOUT,
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_fetcher(
    job_name: str,
    job: JobConfig,
    user_agent: str = DEFAULT_USER_AGENT,
) -> ResourceFetcher:
    """Create the fetcher for *job*'s strategy.

    Args:
        job_name: Name of the job.
        job: The job configuration.
        user_agent: ``User-Agent`` header for HTTP requests.

    Returns:
        A ``ResourceFetcher`` implementation instance.

    Raises:
        ValueError: If the strategy is not recognised.
    """
    match job.strategy:
        case "url":
            return UrlFetcher(job, user_agent=user_agent)
        case "repository":
            return RepositoryFetcher(job_name, job)
        case _:
            raise ValueError(
                f"Unknown fetch strategy: '{job.strategy}'. Valid strategies: ['repository', 'url']"
            )
