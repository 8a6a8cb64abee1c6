"""Validate the generated sitemap files before deployment.

Checks every ``<url>`` of the category sitemaps (``loc`` policy, duplicate
URLs, ``lastmod`` format and range, ``changefreq``, ``priority``) and makes
sure each sitemap-index entry points at a file that exists.  Missing
sitemap files are warnings; everything else is an error.

Usage as a CLI (run automatically after ``car-sitemap-sync generate``)::

    uv run python -m car_sitemap_sync.tools.validate_sitemaps --dir public

Usage from Python::

    from car_sitemap_sync.tools.validate_sitemaps import validate_directory
    result = validate_directory("public")
"""

from __future__ import annotations

import argparse
import re
import sys
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from urllib.parse import urlsplit

from car_sitemap_sync.documents import SITEMAP_NS
from car_sitemap_sync.settings import INDEX_FILENAME

URLSET_FILES = (
    "sitemap.xml",
    "vehicle-sitemap.xml",
    "blog-sitemap.xml",
    "accessories-sitemap.xml",
)

VALID_CHANGEFREQ = ("always", "hourly", "daily", "weekly", "monthly", "yearly", "never")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_QUERY_CHARS_RE = re.compile(r"[?&=]")
_NS = {"sm": SITEMAP_NS}
# lastmod is stamped in UTC; allow a day for hosts whose local date lags it.
FUTURE_DATE_SLACK = timedelta(days=1)


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    total_urls: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors


# ── field checks ─────────────────────────────────────────────────────
def check_loc(loc: str | None) -> str | None:
    """Return an error message for a bad ``<loc>``, or ``None``."""
    if not loc:
        return "Missing <loc> element"
    if loc.strip() != loc:
        return f'URL contains trailing/leading whitespace: "{loc}"'
    if not loc.startswith("https://"):
        return f'URL must start with https://: "{loc}"'
    if _QUERY_CHARS_RE.search(loc):
        return f'URL must not contain query strings: "{loc}"'
    return None


def check_date(value: str, today: date) -> str | None:
    if not _DATE_RE.match(value):
        return f'Invalid date format: "{value}". Must be YYYY-MM-DD'
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return f'Invalid date value: "{value}"'
    if parsed > today + FUTURE_DATE_SLACK:
        return f'Date is in the future: "{value}"'
    return None


def check_priority(value: str) -> str | None:
    try:
        number = float(value)
    except ValueError:
        return f'Invalid priority: "{value}". Must be a number between 0.0 and 1.0'
    if not 0.0 <= number <= 1.0:
        return f'Priority out of range: "{value}". Must be between 0.0 and 1.0'
    return None


def check_changefreq(value: str) -> str | None:
    if value.lower() not in VALID_CHANGEFREQ:
        return f'Invalid changefreq: "{value}". Must be one of: {", ".join(VALID_CHANGEFREQ)}'
    return None


def _text(element, tag: str) -> str | None:
    child = element.find(f"sm:{tag}", _NS)
    return child.text if child is not None else None


def _parse(path: Path, expected_root: str, result: ValidationResult):
    """Parse *path*; record a warning/error and return ``None`` on failure."""
    if not path.is_file():
        result.warnings.append(f"{path.name}: File does not exist (skipped)")
        return None
    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as exc:
        result.errors.append(f"{path.name}: Not a valid XML file ({exc})")
        return None
    if root.tag != f"{{{SITEMAP_NS}}}{expected_root}":
        result.errors.append(f"{path.name}: Root element must be <{expected_root}> in {SITEMAP_NS}")
        return None
    return root


# ── file checks ──────────────────────────────────────────────────────
def validate_urlset(path: Path, result: ValidationResult, seen: set[str], today: date) -> None:
    root = _parse(path, "urlset", result)
    if root is None:
        return

    for index, url in enumerate(root.findall("sm:url", _NS), 1):
        context = f"{path.name} (entry {index})"
        loc = _text(url, "loc")
        error = check_loc(loc)
        if error:
            result.errors.append(f"{context}: {error}")
            continue
        if loc in seen:
            result.errors.append(f'{context}: Duplicate URL found: "{loc}"')
        seen.add(loc)

        checks = (
            ("lastmod", lambda v: check_date(v, today)),
            ("changefreq", check_changefreq),
            ("priority", check_priority),
        )
        for tag, check in checks:
            value = _text(url, tag)
            if value:
                error = check(value)
                if error:
                    result.errors.append(f"{context}: {error}")
        result.total_urls += 1


def validate_index(path: Path, result: ValidationResult, today: date) -> None:
    root = _parse(path, "sitemapindex", result)
    if root is None:
        return

    for index, sitemap in enumerate(root.findall("sm:sitemap", _NS), 1):
        context = f"{path.name} (entry {index})"
        loc = _text(sitemap, "loc")
        error = check_loc(loc)
        if error:
            result.errors.append(f"{context}: {error}")
            continue
        referenced = urlsplit(loc).path.rsplit("/", 1)[-1]
        if not (path.parent / referenced).is_file():
            result.errors.append(f'{context}: References non-existent sitemap file: "{referenced}"')
        lastmod = _text(sitemap, "lastmod")
        if lastmod:
            error = check_date(lastmod, today)
            if error:
                result.errors.append(f"{context}: {error}")


def validate_directory(directory: str | Path, *, today: date | None = None) -> ValidationResult:
    """Validate all known sitemap files in *directory*."""
    directory = Path(directory)
    today = today or datetime.now(timezone.utc).date()
    result = ValidationResult()
    seen: set[str] = set()
    for filename in URLSET_FILES:
        validate_urlset(directory / filename, result, seen, today)
    validate_index(directory / INDEX_FILENAME, result, today)
    return result


# ── CLI entry-point ──────────────────────────────────────────────────
def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate generated sitemap files.")
    parser.add_argument(
        "--dir",
        default="public",
        dest="directory",
        help="Directory holding the sitemap files (default: public)",
    )
    args = parser.parse_args(argv)

    result = validate_directory(args.directory)

    print(f"Total URLs validated: {result.total_urls}")
    print(f"Errors (blocking): {len(result.errors)}")
    print(f"Warnings (non-blocking): {len(result.warnings)}")
    for i, error in enumerate(result.errors, 1):
        print(f"  ERROR {i}. {error}")
    for i, warning in enumerate(result.warnings, 1):
        print(f"  WARNING {i}. {warning}")
    print("All sitemaps are valid." if result.ok else "Validation failed.")
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
