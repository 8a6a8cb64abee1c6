"""Per-category adapters shared by every sitemap section.

Each content category (vehicles, articles, accessories, static pages) has
one adapter that knows, for that category only:

* which raw API fields feed which item field (:attr:`FIELD_MAP`),
* which raw records count as active,
* the canonical URL, images, caption and fingerprint of an item,
* the sitemap file, ``changefreq`` and ``priority`` it is published with.

Field aliases are resolved once in :meth:`CategoryAdapter.from_record`;
everything downstream reads the declared item fields only.
"""

from __future__ import annotations

import logging

import scrapy

from car_sitemap_sync.changes import fingerprint
from car_sitemap_sync.documents import ImageRef
from car_sitemap_sync.parsing_helpers import collect_image_urls, first_present

logger = logging.getLogger(__name__)


class CategoryAdapter:
    """Base class for a sitemap content category."""

    #: Category name used in logs, stats and reports.
    name: str = ""
    #: Path segment owning this category's URLs (``None`` = never de-listed).
    prefix: str | None = None
    #: Sitemap document the category is written to.
    filename: str = ""
    #: Content API path, relative to the API base URL.
    endpoint: str | None = None
    changefreq: str = "weekly"
    priority: float = 0.5
    #: Caption used when an item has no usable title.
    default_caption: str = ""

    item_class: type[scrapy.Item] = scrapy.Item
    #: item field -> raw API keys, first non-empty one wins.
    FIELD_MAP: dict[str, tuple[str, ...]] = {}

    def __init__(self, site_url: str, placeholder_image: str):
        self.site_url = site_url.rstrip("/")
        self.placeholder_image = placeholder_image

    # ------------------------------------------------------------------
    # Raw records -> items
    # ------------------------------------------------------------------

    def is_active(self, record: dict) -> bool:
        return True

    def from_record(self, record: dict) -> scrapy.Item:
        """Map one raw API record onto this category's item fields."""
        item = self.item_class()
        for field, keys in self.FIELD_MAP.items():
            value = first_present(record, *keys)
            if value is not None:
                item[field] = value
        return item

    def load(self, records: list) -> list[scrapy.Item]:
        """Keep active records (in order) and convert them to items.

        Records without any usable identifier are dropped: they have no
        canonical URL of their own.
        """
        items = []
        skipped = 0
        unidentified = 0
        for record in records:
            if not isinstance(record, dict) or not self.is_active(record):
                skipped += 1
                continue
            item = self.from_record(record)
            if not self.identifier(item):
                unidentified += 1
                continue
            items.append(item)
        if skipped:
            logger.info("Filtered %d inactive/invalid %s records", skipped, self.name)
        if unidentified:
            logger.warning("Skipped %d %s records without slug or id", unidentified, self.name)
        return items

    # ------------------------------------------------------------------
    # Item -> sitemap data
    # ------------------------------------------------------------------

    def identifier(self, item: scrapy.Item) -> str:
        """Slug if present, id otherwise, ``""`` when neither is usable."""
        for key in ("slug", "id"):
            value = item.get(key)
            if value is not None and str(value).strip():
                return str(value).strip()
        return ""

    def url(self, item: scrapy.Item) -> str:
        return f"{self.site_url}{self.prefix}{self.identifier(item)}"

    def image_candidates(self, item: scrapy.Item) -> list[str]:
        return list(item.get("images") or [])

    def images(self, item: scrapy.Item) -> list[ImageRef]:
        caption = self.caption(item)
        urls = collect_image_urls(
            self.image_candidates(item),
            self.placeholder_image,
            site_url=self.site_url,
        )
        return [ImageRef(url=url, caption=caption) for url in urls]

    def caption(self, item: scrapy.Item) -> str:
        return self.default_caption

    def fingerprint_payload(self, item: scrapy.Item) -> dict:
        raise NotImplementedError

    def fingerprint(self, item: scrapy.Item) -> str:
        return fingerprint(self.fingerprint_payload(item))

    def changefreq_for(self, item: scrapy.Item) -> str:
        return self.changefreq

    def priority_for(self, item: scrapy.Item) -> float:
        return self.priority
