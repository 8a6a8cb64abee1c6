"""Persisted ``lastmod`` cache.

The cache maps each canonical URL to the fingerprint of the content last
published for it and the date that content first appeared.  It is loaded
once at the start of a run and written once at the end.

Losing the cache is never fatal (the next run just treats every URL as
changed), so :class:`CacheStore` does not raise.  Instead ``load`` and
``save`` return a :class:`CacheResult` whose ``error`` the caller inspects
and decides what to do with.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Generic, TypeVar

from car_sitemap_sync.writer import atomic_write

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry:
    """Fingerprint and ``lastmod`` recorded for one URL."""

    fingerprint: str
    last_modified: date

    def to_json(self) -> dict:
        return {
            "fingerprint": self.fingerprint,
            "lastModified": self.last_modified.isoformat(),
        }

    @classmethod
    def from_json(cls, data) -> CacheEntry | None:
        """Parse one cache record, or return ``None`` if it is unusable.

        Caches written by the older generator use ``hash`` / ``lastmod``
        keys; both spellings are accepted.
        """
        if not isinstance(data, dict):
            return None
        fp = data.get("fingerprint", data.get("hash"))
        raw_date = data.get("lastModified", data.get("lastmod"))
        if not isinstance(fp, str) or not isinstance(raw_date, str):
            return None
        try:
            last_modified = date.fromisoformat(raw_date[:10])
        except ValueError:
            return None
        return cls(fingerprint=fp, last_modified=last_modified)


class CacheErrorKind(str, Enum):
    READ = "read"
    DECODE = "decode"
    WRITE = "write"


@dataclass(frozen=True)
class CacheError:
    kind: CacheErrorKind
    path: Path
    message: str

    def __str__(self) -> str:
        return f"cache {self.kind.value} failed for {self.path}: {self.message}"


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    """Outcome of a cache operation: a value plus an optional error."""

    value: T
    error: CacheError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CacheStore:
    """JSON file holding ``{url: {"fingerprint", "lastModified"}}``."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> CacheResult[dict[str, CacheEntry]]:
        """Read the whole cache.

        A missing file is a normal first run and yields an empty mapping
        with no error.  An unreadable or corrupt file also yields an empty
        mapping, with the error attached.
        """
        if not self.path.exists():
            return CacheResult({})

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            return CacheResult({}, CacheError(CacheErrorKind.READ, self.path, str(exc)))
        except ValueError as exc:
            return CacheResult({}, CacheError(CacheErrorKind.DECODE, self.path, str(exc)))

        if not isinstance(raw, dict):
            return CacheResult(
                {},
                CacheError(CacheErrorKind.DECODE, self.path, "top-level value is not an object"),
            )

        entries: dict[str, CacheEntry] = {}
        dropped = 0
        for url, data in raw.items():
            entry = CacheEntry.from_json(data)
            if entry is None:
                dropped += 1
                continue
            entries[url] = entry
        if dropped:
            logger.warning("Dropped %d malformed cache entries from %s", dropped, self.path)
        logger.debug("Loaded %d cache entries from %s", len(entries), self.path)
        return CacheResult(entries)

    def save(self, entries: dict[str, CacheEntry]) -> CacheResult[None]:
        """Write *entries* atomically, sorted by URL for minimal diffs."""
        payload = {url: entries[url].to_json() for url in sorted(entries)}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(self.path, json.dumps(payload, indent=2) + "\n")
        except OSError as exc:
            return CacheResult(None, CacheError(CacheErrorKind.WRITE, self.path, str(exc)))
        logger.debug("Saved %d cache entries to %s", len(entries), self.path)
        return CacheResult(None)
