"""Adapter for blog articles.

Articles carry their pictures inside the post body as Cloudinary links, so
images are the featured image (if any) followed by every Cloudinary URL
found in the body text.
"""

from __future__ import annotations

import hashlib

from car_sitemap_sync.adapters import CategoryAdapter
from car_sitemap_sync.items import ArticleItem
from car_sitemap_sync.parsing_helpers import extract_cloudinary_urls, strip_markup_chars


class ArticleAdapter(CategoryAdapter):
    """Blog posts, published under ``/blogs/<slug>``."""

    name = "articles"
    prefix = "/blogs/"
    filename = "blog-sitemap.xml"
    endpoint = "/api/blogs"
    changefreq = "weekly"
    priority = 0.7
    default_caption = "Untitled Blog Post"

    item_class = ArticleItem
    FIELD_MAP = {
        "id": ("id",),
        "slug": ("slug",),
        "title": ("title",),
        "body": ("body", "content", "description"),
        "featured_image": ("image", "featuredImage", "imageUrl"),
        "updated_at": ("updatedAt", "createdAt"),
    }

    def identifier(self, item: ArticleItem) -> str:
        """Slug, else ``blog-post-<id>``, else a digest of the title.

        The digest keeps the URL stable between runs for posts the API
        sends without any identifier.
        """
        slug = str(item.get("slug") or "").strip()
        if slug:
            return slug
        if item.get("id") not in (None, ""):
            return f"blog-post-{item['id']}"
        title = str(item.get("title") or "")
        return "blog-post-" + hashlib.sha1(title.encode("utf-8")).hexdigest()[:12]

    def image_candidates(self, item: ArticleItem) -> list[str]:
        candidates = []
        featured = item.get("featured_image")
        if isinstance(featured, str):
            candidates.append(featured)
        candidates.extend(extract_cloudinary_urls(item.get("body")))
        return candidates

    def caption(self, item: ArticleItem) -> str:
        title = strip_markup_chars(str(item.get("title") or "")).strip()
        return title or self.default_caption

    def fingerprint_payload(self, item: ArticleItem) -> dict:
        return {
            "id": item.get("id"),
            "slug": item.get("slug"),
            "title": item.get("title"),
            "body": item.get("body"),
            "updatedAt": item.get("updated_at"),
        }
