"""Atomic sitemap file output.

Documents are written to a ``.tmp`` sibling and renamed into place, so a
crawler (or the web server) never sees a half-written sitemap.  The
primary directory is authoritative; the secondary (production build)
directory gets a best-effort copy when it exists.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write(path: str | Path, content: str) -> None:
    """Write *content* to *path* via ``<path>.tmp`` and an atomic rename.

    On any failure the temp file is removed (best effort) and the original
    exception propagates; *path* keeps its previous content.
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(tmp_path, path)
    except BaseException:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            logger.debug("Could not remove temp file %s", tmp_path)
        raise


class SitemapWriter:
    """Write sitemap documents to the primary and secondary directories."""

    def __init__(self, primary_dir: str | Path, secondary_dir: str | Path | None = None):
        self.primary_dir = Path(primary_dir)
        self.secondary_dir = Path(secondary_dir) if secondary_dir else None

    def ensure_primary_dir(self) -> None:
        if not self.primary_dir.exists():
            self.primary_dir.mkdir(parents=True, exist_ok=True)
            logger.info("Created output directory %s", self.primary_dir)

    def write(self, filename: str, content: str) -> Path:
        """Write *filename* to both directories and return the primary path.

        Errors writing the primary copy propagate.  The secondary copy is
        skipped when its directory is absent and only logged on failure.
        """
        primary = self.primary_dir / filename
        atomic_write(primary, content)

        if self.secondary_dir is not None and self.secondary_dir.is_dir():
            try:
                atomic_write(self.secondary_dir / filename, content)
            except OSError as exc:
                logger.warning(
                    "Could not write %s to %s: %s", filename, self.secondary_dir, exc,
                )
        return primary

    def exists(self, filename: str) -> bool:
        """Whether *filename* is present in the primary directory."""
        return (self.primary_dir / filename).is_file()
