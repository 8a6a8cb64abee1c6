"""Build sitemap and sitemap-index XML documents.

Output follows the sitemaps.org 0.9 protocol with Google's image
extension::

    <url>
      <loc>https://www.diksxcars.co.ke/vehicle/toyota-prado-2019</loc>
      <lastmod>2025-01-14</lastmod>
      <changefreq>weekly</changefreq>
      <priority>0.6</priority>
      <image:image>
        <image:loc>https://res.cloudinary.com/…/prado.jpg</image:loc>
        <image:caption>2019 Toyota Prado</image:caption>
      </image:image>
    </url>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING
from xml.sax.saxutils import escape

if TYPE_CHECKING:
    from car_sitemap_sync.adapters import CategoryAdapter
    from car_sitemap_sync.changes import ChangeTracker

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
IMAGE_NS = "http://www.google.com/schemas/sitemap-image/1.1"

_XML_DECL = '<?xml version="1.0" encoding="UTF-8"?>'
_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def xml_escape(text) -> str:
    """Escape the five XML-reserved characters ``< > & " '``."""
    return escape(str(text), _ENTITIES)


@dataclass(frozen=True)
class ImageRef:
    url: str
    caption: str = ""


@dataclass(frozen=True)
class UrlEntry:
    """One ``<url>`` element of a sitemap."""

    loc: str
    lastmod: date
    changefreq: str
    priority: float
    images: list[ImageRef] = field(default_factory=list)


def build_entries(
    adapter: CategoryAdapter,
    items: list,
    tracker: ChangeTracker,
) -> list[UrlEntry]:
    """Turn *items* into sitemap entries, resolving ``lastmod`` via *tracker*.

    Items keep their input order.
    """
    entries = []
    for item in items:
        url = adapter.url(item)
        lastmod = tracker.resolve(url, adapter.fingerprint(item))
        entries.append(
            UrlEntry(
                loc=url,
                lastmod=lastmod,
                changefreq=adapter.changefreq_for(item),
                priority=adapter.priority_for(item),
                images=adapter.images(item),
            )
        )
    return entries


def _image_block(image: ImageRef) -> list[str]:
    lines = ["    <image:image>", f"      <image:loc>{xml_escape(image.url)}</image:loc>"]
    if image.caption:
        lines.append(f"      <image:caption>{xml_escape(image.caption)}</image:caption>")
    lines.append("    </image:image>")
    return lines


def build_urlset(entries: list[UrlEntry]) -> str:
    """Render a ``<urlset>`` document for *entries*."""
    lines = [
        _XML_DECL,
        f'<urlset xmlns="{SITEMAP_NS}"',
        f'        xmlns:image="{IMAGE_NS}">',
    ]
    for entry in entries:
        lines += [
            "  <url>",
            f"    <loc>{xml_escape(entry.loc)}</loc>",
            f"    <lastmod>{entry.lastmod.isoformat()}</lastmod>",
            f"    <changefreq>{entry.changefreq}</changefreq>",
            f"    <priority>{entry.priority:.1f}</priority>",
        ]
        for image in entry.images:
            lines += _image_block(image)
        lines.append("  </url>")
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"


def build_index(site_url: str, filenames: list[str], lastmod: date) -> str:
    """Render a ``<sitemapindex>`` referencing *filenames* under *site_url*."""
    lines = [_XML_DECL, f'<sitemapindex xmlns="{SITEMAP_NS}">']
    for filename in filenames:
        lines += [
            "  <sitemap>",
            f"    <loc>{xml_escape(site_url.rstrip('/'))}/{xml_escape(filename)}</loc>",
            f"    <lastmod>{lastmod.isoformat()}</lastmod>",
            "  </sitemap>",
        ]
    lines.append("</sitemapindex>")
    return "\n".join(lines) + "\n"
