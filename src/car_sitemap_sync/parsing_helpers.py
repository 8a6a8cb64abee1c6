"""Shared parsing and normalisation utilities for marketplace API records.

The content API is loose about field shapes: vehicle features arrive as
JSON strings, comma lists, or real arrays, and image references are either
plain URLs or objects.  Everything here turns those shapes into canonical
ordered lists of strings so sitemap output and content fingerprints stay
stable across runs.
"""

from __future__ import annotations

import json
import re

from car_sitemap_sync.settings import MAX_IMAGES_PER_URL


# ---------------------------------------------------------------------------
# Feature lists
# ---------------------------------------------------------------------------

def _clean_sequence(values) -> list[str]:
    """Trim each element (coercing non-strings) and drop empty ones."""
    cleaned = (v.strip() if isinstance(v, str) else str(v).strip() for v in values)
    return [v for v in cleaned if v]


def normalize_features(raw) -> list[str]:
    """Normalise a vehicle feature field into an ordered list of strings.

    Accepts ``None``, a list/tuple, a JSON array string, a comma- or
    semicolon-delimited string, or a bare string.  JSON is tried before
    delimiter splitting so ``'["A", "B"]'`` is not read as comma text.
    A string that starts with ``[`` but is not valid JSON falls through to
    the delimiter rules.

    >>> normalize_features('["A", "B"]') == normalize_features("A, B") == ["A", "B"]
    True
    """
    if raw is None:
        return []

    if isinstance(raw, (list, tuple)):
        return _clean_sequence(raw)

    if not isinstance(raw, str):
        return _clean_sequence([raw])

    text = raw.strip()
    if not text:
        return []

    if text.startswith(("[", "{")):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(parsed, list):
                return _clean_sequence(parsed)

    if "," in text:
        return _clean_sequence(text.split(","))
    if ";" in text:
        return _clean_sequence(text.split(";"))
    return [text]


# ---------------------------------------------------------------------------
# Image references
# ---------------------------------------------------------------------------

_CLOUDINARY_RE = re.compile(r"https?://res\.cloudinary\.com/[^\s\"<>]+", re.IGNORECASE)


def image_value(ref) -> str:
    """Return the URL held by an image reference, or ``""``.

    References are either plain strings or objects exposing ``imageUrl``
    (or the snake_case ``image_url``).
    """
    if isinstance(ref, str):
        return ref
    if isinstance(ref, dict):
        value = ref.get("imageUrl") or ref.get("image_url") or ""
        return value if isinstance(value, str) else ""
    return ""


def image_values(refs) -> list[str]:
    """Flatten a raw image field (list of strings/objects) into URL strings."""
    if not isinstance(refs, (list, tuple)):
        return []
    return [image_value(ref) for ref in refs]


def extract_cloudinary_urls(text) -> list[str]:
    """Find every Cloudinary CDN URL embedded in free-text content."""
    if not text:
        return []
    return _CLOUDINARY_RE.findall(str(text))


def collect_image_urls(
    candidates,
    placeholder: str,
    *,
    site_url: str | None = None,
    limit: int = MAX_IMAGES_PER_URL,
) -> list[str]:
    """Apply the shared image policy to a list of raw URL strings.

    Trims, drops empties, de-duplicates by exact match (first occurrence
    wins), makes site-relative paths absolute when *site_url* is given,
    and caps the result at *limit*.  Returns ``[placeholder]`` when nothing
    usable remains.
    """
    seen: set[str] = set()
    images: list[str] = []
    for raw in candidates:
        if not isinstance(raw, str):
            continue
        url = raw.strip()
        if not url:
            continue
        if site_url and not url.startswith("http"):
            url = f"{site_url}/{url.lstrip('/')}"
        if url in seen:
            continue
        seen.add(url)
        images.append(url)
        if len(images) >= limit:
            break
    return images or [placeholder]


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------

def parse_bool(value) -> bool | None:
    """Interpret the API's mixed ``true`` / ``"true"`` flags.

    Returns ``None`` when the flag is absent so callers can decide on a
    default.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def first_present(record: dict, *keys: str):
    """Return the first non-empty value of *keys* in *record*."""
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def strip_markup_chars(text: str) -> str:
    """Drop the XML-reserved characters from a title used as a caption."""
    return re.sub(r"[<>&\"']", "", text)
