"""Adapter for accessory listings."""

from __future__ import annotations

from car_sitemap_sync.adapters import CategoryAdapter
from car_sitemap_sync.items import AccessoryItem
from car_sitemap_sync.parsing_helpers import image_values, parse_bool

# Moderation states that may be published.
PUBLISHED_STATUSES = frozenset({"active", "approved"})


class AccessoryAdapter(CategoryAdapter):
    """Accessories, published under ``/accessory/<slug>``.

    Unlike vehicles, the accessories endpoint returns every listing, so an
    accessory is only published when it is flagged active *and* its
    moderation status is one of :data:`PUBLISHED_STATUSES`.
    """

    name = "accessories"
    prefix = "/accessory/"
    filename = "accessories-sitemap.xml"
    endpoint = "/api/accessories?limit=1000"
    changefreq = "weekly"
    priority = 0.6
    default_caption = "Accessory Image"

    item_class = AccessoryItem
    FIELD_MAP = {
        "id": ("id",),
        "slug": ("slug",),
        "title": ("title", "name"),
        "price": ("price",),
        "images": ("imageUrls", "images"),
        "updated_at": ("updatedAt", "createdAt"),
    }

    def is_active(self, record: dict) -> bool:
        status = str(record.get("status") or "").strip().lower()
        return parse_bool(record.get("isActive")) is True and status in PUBLISHED_STATUSES

    def from_record(self, record: dict) -> AccessoryItem:
        item = super().from_record(record)
        item["images"] = image_values(item.get("images"))
        return item

    def caption(self, item: AccessoryItem) -> str:
        return str(item.get("title") or "").strip() or self.default_caption

    def fingerprint_payload(self, item: AccessoryItem) -> dict:
        return {
            "id": item.get("id"),
            "slug": item.get("slug"),
            "title": item.get("title"),
            "price": item.get("price"),
            "updatedAt": item.get("updated_at"),
        }
