"""Content fingerprints and ``lastmod`` resolution."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from datetime import date

from car_sitemap_sync.cache import CacheEntry


def fingerprint(payload) -> str:
    """SHA-256 of the canonical JSON form of *payload*.

    Key order and list order both matter, so callers build the payload
    with a fixed field order.
    """
    text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def resolve_last_modified(
    url: str,
    fp: str,
    cache: Mapping[str, CacheEntry],
    run_date: date,
) -> date:
    """Return the cached date if *fp* is unchanged, else *run_date*.

    The source's own update timestamp is part of *fp*, so an edit upstream
    also moves ``lastmod`` forward.
    """
    cached = cache.get(url)
    if cached is not None and cached.fingerprint == fp:
        return cached.last_modified
    return run_date


class ChangeTracker:
    """Resolve ``lastmod`` values for one run and stage them for saving.

    Every resolved URL is staged, changed or not, so the saved cache always
    reflects exactly what was published.
    """

    def __init__(self, cache: Mapping[str, CacheEntry], run_date: date):
        self.cache = cache
        self.run_date = run_date
        self.staged: dict[str, CacheEntry] = {}
        self.changed = 0
        self.unchanged = 0

    def resolve(self, url: str, fp: str) -> date:
        last_modified = resolve_last_modified(url, fp, self.cache, self.run_date)
        cached = self.cache.get(url)
        if cached is not None and cached.fingerprint == fp:
            self.unchanged += 1
        else:
            self.changed += 1
        self.staged[url] = CacheEntry(fingerprint=fp, last_modified=last_modified)
        return last_modified

    def merged(self) -> dict[str, CacheEntry]:
        """The cache to persist: prior entries overlaid with staged ones."""
        return {**self.cache, **self.staged}
