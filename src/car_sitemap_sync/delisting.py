"""Drop cache entries for items the content API no longer returns.

Runs before any document is assembled so that a sold vehicle or a
withdrawn accessory neither influences ``lastmod`` comparisons nor stays
in the persisted cache forever.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from car_sitemap_sync.cache import CacheEntry

logger = logging.getLogger(__name__)


@dataclass
class DelistingResult:
    """Outcome of cleaning one category."""

    category: str
    cache: dict[str, CacheEntry]
    total: int = 0                      # cached URLs under the prefix, before cleanup
    removed: list[str] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return len(self.removed)


def cleanup_delisted(
    cache: Mapping[str, CacheEntry],
    active_urls: Iterable[str],
    prefix: str,
    category: str,
) -> DelistingResult:
    """Return a copy of *cache* without de-listed URLs under *prefix*.

    Only keys containing *prefix* are candidates for removal, so cleaning
    one category never touches another category's entries.
    """
    active = set(active_urls)
    cleaned: dict[str, CacheEntry] = {}
    result = DelistingResult(category=category, cache=cleaned)

    for url, entry in cache.items():
        if prefix in url:
            result.total += 1
            if url not in active:
                result.removed.append(url)
                continue
        cleaned[url] = entry

    if result.removed:
        logger.info(
            "Removed %d de-listed %s from cache (%d cached)",
            result.removed_count, category, result.total,
        )
    return result
