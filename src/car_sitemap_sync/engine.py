"""Run one sitemap synchronization.

Sequence::

    fetch vehicles / articles / accessories (concurrently)
    -> de-list stale cache entries (vehicles, accessories, articles)
    -> add static pages
    -> prune invalid URLs (optional)
    -> write one sitemap per non-empty category, then the index
    -> save the cache
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

import httpx

from car_sitemap_sync.adapters import CategoryAdapter
from car_sitemap_sync.adapters.accessories import AccessoryAdapter
from car_sitemap_sync.adapters.articles import ArticleAdapter
from car_sitemap_sync.adapters.pages import StaticPageAdapter
from car_sitemap_sync.adapters.vehicles import VehicleAdapter
from car_sitemap_sync.cache import CacheEntry, CacheError, CacheStore
from car_sitemap_sync.changes import ChangeTracker
from car_sitemap_sync.delisting import DelistingResult, cleanup_delisted
from car_sitemap_sync.documents import build_entries, build_index, build_urlset
from car_sitemap_sync.fetch import ContentClient
from car_sitemap_sync.pruning import PruningStats, make_check_client, prune_invalid_urls
from car_sitemap_sync.settings import INDEX_FILENAME, Settings
from car_sitemap_sync.writer import SitemapWriter

logger = logging.getLogger(__name__)

# Number of pruned URLs listed in the run summary.
PRUNED_SAMPLE_SIZE = 10


@dataclass
class CategoryReport:
    name: str
    filename: str
    fetched: int = 0
    published: int = 0
    written: bool = False


@dataclass
class RunReport:
    """Everything a finished run wants to tell the operator."""

    run_date: date
    categories: dict[str, CategoryReport] = field(default_factory=dict)
    delisting: list[DelistingResult] = field(default_factory=list)
    pruning: PruningStats | None = None
    written: list[str] = field(default_factory=list)
    index_written: bool = False
    changed: int = 0
    unchanged: int = 0
    cache_errors: list[CacheError] = field(default_factory=list)

    @property
    def total_delisted(self) -> int:
        return sum(r.removed_count for r in self.delisting)

    @property
    def total_urls(self) -> int:
        return sum(c.published for c in self.categories.values())


class SitemapEngine:
    """Regenerate every sitemap document for one site.

    *api_transport* and *check_transport* replace the network layer of the
    content client and the reachability checker (used by tests).
    """

    def __init__(
        self,
        settings: Settings,
        *,
        run_date: date | None = None,
        api_transport: httpx.AsyncBaseTransport | None = None,
        check_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.run_date = run_date or datetime.now(timezone.utc).date()
        self._api_transport = api_transport
        self._check_transport = check_transport

        args = (settings.site_url, settings.placeholder_image)
        self.vehicles = VehicleAdapter(*args)
        self.articles = ArticleAdapter(*args)
        self.accessories = AccessoryAdapter(*args)
        self.pages = StaticPageAdapter(*args)

        self.writer = SitemapWriter(settings.output_dir, settings.secondary_dir)
        self.cache_store = CacheStore(settings.cache_path)

    @property
    def fetched_adapters(self) -> tuple[CategoryAdapter, ...]:
        return (self.vehicles, self.articles, self.accessories)

    @property
    def published_adapters(self) -> tuple[CategoryAdapter, ...]:
        """Adapters in sitemap/index order."""
        return (self.pages, self.vehicles, self.articles, self.accessories)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def fetch_all(self) -> dict[str, list]:
        """Fetch the three API collections concurrently and load them as items."""
        async with ContentClient(
            self.settings.api_url,
            timeout=self.settings.api_timeout,
            use_cloudscraper=self.settings.use_cloudscraper,
            transport=self._api_transport,
        ) as client:
            results = await asyncio.gather(
                *(client.fetch_records(a.name, a.endpoint) for a in self.fetched_adapters)
            )
        return {
            adapter.name: adapter.load(records)
            for adapter, records in zip(self.fetched_adapters, results)
        }

    def cleanup(
        self,
        cache: dict[str, CacheEntry],
        collections: dict[str, list],
    ) -> tuple[dict[str, CacheEntry], list[DelistingResult]]:
        """De-list stale cache entries, one category at a time."""
        results = []
        for adapter in (self.vehicles, self.accessories, self.articles):
            active_urls = [adapter.url(item) for item in collections[adapter.name]]
            result = cleanup_delisted(cache, active_urls, adapter.prefix, adapter.name)
            cache = result.cache
            results.append(result)
        return cache, results

    async def prune(self, collections: dict[str, list]) -> tuple[dict[str, list], PruningStats]:
        """Replace each collection with the items whose URL passes validation."""
        check_status = self.settings.check_url_status
        if check_status:
            logger.info(
                "URL status checking enabled (timeout %dms, %d concurrent)",
                self.settings.url_check_timeout_ms, self.settings.max_concurrent_checks,
            )
        else:
            logger.info("URL status checking disabled (format validation only)")

        stats = PruningStats()
        pruned: dict[str, list] = {}
        async with make_check_client(self._check_transport) as client:
            for adapter in (self.vehicles, self.articles, self.accessories, self.pages):
                result = await prune_invalid_urls(
                    collections[adapter.name],
                    adapter.url,
                    adapter.name,
                    check_status=check_status,
                    client=client,
                    batch_size=self.settings.max_concurrent_checks,
                    timeout=self.settings.url_check_timeout,
                )
                pruned[adapter.name] = result.items
                stats += result.stats
        return pruned, stats

    def publish(self, collections: dict[str, list], tracker: ChangeTracker, report: RunReport) -> None:
        """Write one sitemap per non-empty category.  Write errors propagate."""
        for adapter in self.published_adapters:
            items = collections[adapter.name]
            category = report.categories[adapter.name]
            category.published = len(items)
            if not items:
                logger.warning("No %s available; skipping %s", adapter.name, adapter.filename)
                continue
            entries = build_entries(adapter, items, tracker)
            self.writer.write(adapter.filename, build_urlset(entries))
            category.written = True
            report.written.append(adapter.filename)
            logger.info("Generated %s with %d URLs", adapter.filename, len(entries))

    def publish_index(self, written: list[str]) -> bool:
        """Write the index over the documents of this run that exist on disk."""
        existing = [name for name in written if self.writer.exists(name)]
        if not existing:
            logger.warning("No sitemaps to include in index")
            return False
        self.writer.write(
            INDEX_FILENAME, build_index(self.settings.site_url, existing, self.run_date),
        )
        logger.info("Generated %s with %d sitemaps", INDEX_FILENAME, len(existing))
        return True

    # ------------------------------------------------------------------
    async def run(self) -> RunReport:
        """Execute a full run.  Raises only if the primary output fails."""
        report = RunReport(run_date=self.run_date)
        self.writer.ensure_primary_dir()

        loaded = self.cache_store.load()
        if not loaded.ok:
            # Non-fatal: continue with an empty cache.
            logger.warning("%s; starting with an empty cache", loaded.error)
            report.cache_errors.append(loaded.error)

        collections = await self.fetch_all()
        cache, report.delisting = self.cleanup(loaded.value, collections)

        collections[self.pages.name] = self.pages.discover()
        for adapter in self.published_adapters:
            report.categories[adapter.name] = CategoryReport(
                name=adapter.name,
                filename=adapter.filename,
                fetched=len(collections[adapter.name]),
            )

        if self.settings.prune_invalid_urls:
            collections, report.pruning = await self.prune(collections)

        tracker = ChangeTracker(cache, self.run_date)
        self.publish(collections, tracker, report)
        report.index_written = self.publish_index(report.written)
        report.changed, report.unchanged = tracker.changed, tracker.unchanged

        saved = self.cache_store.save(tracker.merged())
        if not saved.ok:
            # Non-fatal: the sitemaps are already written.
            logger.warning("%s; lastmod values will reset next run", saved.error)
            report.cache_errors.append(saved.error)
        return report


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

def format_summary(report: RunReport, site_url: str) -> str:
    """Render the operator-facing run summary."""
    lines = ["", "Summary:"]
    for category in report.categories.values():
        pruned = category.fetched - category.published
        suffix = f" (pruned {pruned})" if pruned else ""
        status = category.filename if category.written else "skipped"
        lines.append(f"   - {category.name}: {category.published}{suffix} -> {status}")
    lines.append(f"   - Total URLs: {report.total_urls}")
    lines.append(f"   - lastmod: {report.changed} changed, {report.unchanged} unchanged")

    if report.total_delisted:
        lines.append("")
        lines.append(f"De-listing: {report.total_delisted} item(s) removed from cache")
        for result in report.delisting:
            if result.removed:
                lines.append(f"   - {result.category}: {result.removed_count} of {result.total}")

    stats = report.pruning
    if stats is not None and stats.pruned:
        lines.append("")
        lines.append(f"Pruning: {stats.pruned} of {stats.total} URLs removed")
        for label, count in (
            ("Invalid format", stats.invalid_format),
            ("Invalid status", stats.invalid_status),
            ("Timeouts", stats.timeouts),
            ("Errors", stats.errors),
        ):
            if count:
                lines.append(f"   - {label}: {count}")
        lines.append(f"   Sample pruned URLs (first {PRUNED_SAMPLE_SIZE}):")
        for i, detail in enumerate(stats.details[:PRUNED_SAMPLE_SIZE], 1):
            lines.append(f"      {i}. [{detail.context}] {detail.url}")
            lines.append(f"         Reason: {detail.message}")
        if len(stats.details) > PRUNED_SAMPLE_SIZE:
            lines.append(f"      ... and {len(stats.details) - PRUNED_SAMPLE_SIZE} more")

    for error in report.cache_errors:
        lines.append(f"Warning: {error}")

    if report.index_written:
        lines.append("")
        lines.append(f"Sitemap index: {site_url}/{INDEX_FILENAME}")
    return "\n".join(lines)


@dataclass(frozen=True)
class ValidationOutcome:
    returncode: int | None      # None: the validator could not be started
    stdout: str = ""
    stderr: str = ""

    @property
    def failed(self) -> bool:
        return self.returncode not in (None, 0)


def run_validation(command: tuple[str, ...] | list[str], output_dir) -> ValidationOutcome:
    """Run the post-generation validator against *output_dir*."""
    argv = [*command, "--dir", str(output_dir)]
    logger.info("Running validation: %s", " ".join(argv))
    try:
        proc = subprocess.run(argv, capture_output=True, text=True, check=False)
    except OSError as exc:
        logger.warning("Could not run validation: %s", exc)
        return ValidationOutcome(None, stderr=str(exc))
    return ValidationOutcome(proc.returncode, proc.stdout, proc.stderr)
