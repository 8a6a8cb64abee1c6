"""Adapter for listed vehicles.

Vehicle records come from ``/api/publicproducts``.  The API is supposed to
return only active listings, but older backends send ``isActive`` as the
string ``"true"`` and some omit it entirely, so the filter is repeated
here: a missing flag counts as active.
"""

from __future__ import annotations

from car_sitemap_sync.adapters import CategoryAdapter
from car_sitemap_sync.items import VehicleItem
from car_sitemap_sync.parsing_helpers import image_values, normalize_features, parse_bool


class VehicleAdapter(CategoryAdapter):
    """Listed vehicles, published under ``/vehicle/<slug>``."""

    name = "vehicles"
    prefix = "/vehicle/"
    filename = "vehicle-sitemap.xml"
    endpoint = "/api/publicproducts?limit=1000"
    changefreq = "weekly"
    priority = 0.6
    default_caption = "Vehicle Image"

    item_class = VehicleItem
    FIELD_MAP = {
        "id": ("id",),
        "slug": ("slug",),
        "make": ("make",),
        "model": ("model",),
        "year": ("year",),
        "features": ("features",),
        "images": ("images", "imageUrls"),
        "updated_at": ("updatedAt", "createdAt"),
    }

    def is_active(self, record: dict) -> bool:
        return parse_bool(record.get("isActive")) is not False

    def from_record(self, record: dict) -> VehicleItem:
        item = super().from_record(record)
        item["features"] = normalize_features(item.get("features"))
        item["images"] = image_values(item.get("images"))
        return item

    def caption(self, item: VehicleItem) -> str:
        parts = (item.get("year"), item.get("make"), item.get("model"))
        text = " ".join(str(p) for p in parts if p not in (None, "")).strip()
        return text or self.default_caption

    def fingerprint_payload(self, item: VehicleItem) -> dict:
        return {
            "id": item.get("id"),
            "slug": item.get("slug"),
            "make": item.get("make"),
            "model": item.get("model"),
            "year": item.get("year"),
            "features": item.get("features") or [],
            "updatedAt": item.get("updated_at"),
        }
