"""Adapter for the site's fixed set of static pages."""

from __future__ import annotations

from car_sitemap_sync.adapters import CategoryAdapter
from car_sitemap_sync.documents import ImageRef
from car_sitemap_sync.items import StaticPageItem

# (path, priority, changefreq)
STATIC_PAGES = (
    ("/", 1.0, "daily"),
    ("/vehicles", 0.9, "daily"),
    ("/accessories", 0.9, "daily"),
    ("/support", 0.7, "monthly"),
    ("/pricing", 0.8, "monthly"),
    ("/blogs", 0.8, "weekly"),
)


class StaticPageAdapter(CategoryAdapter):
    """Home, listing and info pages; written to the main ``sitemap.xml``."""

    name = "static pages"
    prefix = None
    filename = "sitemap.xml"
    endpoint = None

    item_class = StaticPageItem

    def discover(self) -> list[StaticPageItem]:
        """Return one item per entry of :data:`STATIC_PAGES`."""
        return [
            StaticPageItem(
                path=path,
                loc=f"{self.site_url}{path}",
                priority=priority,
                changefreq=changefreq,
            )
            for path, priority, changefreq in STATIC_PAGES
        ]

    def url(self, item: StaticPageItem) -> str:
        return item["loc"]

    def images(self, item: StaticPageItem) -> list[ImageRef]:
        return []

    def fingerprint_payload(self, item: StaticPageItem) -> dict:
        return {
            "loc": item.get("loc"),
            "priority": item.get("priority"),
            "changefreq": item.get("changefreq"),
        }

    def changefreq_for(self, item: StaticPageItem) -> str:
        return item["changefreq"]

    def priority_for(self, item: StaticPageItem) -> float:
        return item["priority"]
