"""Manifest persistence layer.

Manages the JSON manifest that records, per mirrored file, the content hash
and provenance seen at the last sync.  Each job owns one manifest file,
usually ``manifest.json`` next to the mirrored files.

Key design choices:

* **Forgiving loads** -- a missing or unreadable manifest is treated as a
  first sync.  ``load()`` logs a warning and never raises.
* **Atomic writes** -- ``save()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Stable output** -- two-space indentation, entries in insertion order,
  and a trailing newline, so unchanged runs only differ in ``lastSync``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from .models import Manifest

logger = logging.getLogger(__name__)


class ManifestStore:
    """Load and save the manifest for one job.

    Args:
        path: Path to the manifest file.
        base_url: Default ``baseUrl`` of an empty manifest.
        source_repo: Default ``sourceRepo`` of an empty manifest.
    """

    def __init__(
        self,
        path: Path,
        base_url: str | None = None,
        source_repo: str | None = None,
    ) -> None:
        self.path = path
        self._base_url = base_url
        self._source_repo = source_repo

    def empty(self) -> Manifest:
        """Return an empty manifest with this store's provenance."""
        return Manifest(
            base_url=self._base_url, source_repo=self._source_repo
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> Manifest:
        """Load the manifest from disk.

        Returns:
            The stored manifest, or an empty one if the file is missing
            or cannot be parsed.
        """
        if not self.path.exists():
            logger.warning("No manifest at %s, starting fresh", self.path)
            return self.empty()

        # JSON, decoding and schema errors are all ValueErrors.
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
            return Manifest.model_validate(data)
        except (OSError, ValueError) as exc:
            logger.warning(
                "Failed to load manifest %s, starting fresh: %s",
                self.path,
                exc,
            )
            return self.empty()

    def save(self, manifest: Manifest) -> Manifest:
        """Persist *manifest* to disk atomically.

        The ``lastSync`` field is set to the current UTC ISO 8601 timestamp
        before writing.  Creates the parent directory if needed.

        Returns:
            The stamped manifest that was written.
        """
        stamped = manifest.model_copy(
            update={"last_sync": datetime.now(timezone.utc).isoformat()}
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(
                    stamped.to_json_dict(),
                    fh,
                    indent=2,
                    ensure_ascii=False,
                )
                fh.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

        logger.debug(
            "Saved manifest %s (%d files)", self.path, len(stamped.files)
        )
        return stamped
