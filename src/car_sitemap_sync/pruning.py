"""Drop items whose URLs should not appear in a sitemap.

Pruning is a pure filter over any item collection, given a function that
extracts each item's URL.  It runs in two stages:

1. **Format** (always, no I/O): the URL must be an HTTPS string without
   surrounding whitespace or query-string characters, and must parse.
2. **Reachability** (opt-in): a ``HEAD`` request per format-valid URL,
   dispatched in fixed-size batches; each batch is awaited as a whole
   before the next one starts, which bounds the number of open sockets.

Every rejection is recorded in the :class:`PruningStats` returned with the
survivors, tagged with a :class:`PruneReason`.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar
from urllib.parse import urljoin, urlsplit

import httpx

from car_sitemap_sync.settings import MAX_CONCURRENT_CHECKS, URL_CHECK_TIMEOUT_MS, USER_AGENT

logger = logging.getLogger(__name__)

T = TypeVar("T")

# A redirect is followed at most this many hops.
MAX_REDIRECT_DEPTH = 1

_QUERY_CHARS_RE = re.compile(r"[?&=]")


class PruneReason(str, Enum):
    # format stage
    MISSING = "URL is missing or invalid type"
    WHITESPACE = "URL contains whitespace"
    NOT_HTTPS = "URL must start with https://"
    QUERY_STRING = "URL contains query strings"
    MALFORMED = "Invalid URL format"
    # reachability stage
    NOT_FOUND = "URL returns 404 Not Found"
    HTTP_ERROR = "URL returns error status"
    UNEXPECTED_STATUS = "Unexpected status code"
    BAD_REDIRECT = "Redirects to invalid URL"
    TIMEOUT = "Request timeout"
    NETWORK_ERROR = "Request failed"

    @property
    def is_format(self) -> bool:
        return self in _FORMAT_REASONS


_FORMAT_REASONS = frozenset({
    PruneReason.MISSING,
    PruneReason.WHITESPACE,
    PruneReason.NOT_HTTPS,
    PruneReason.QUERY_STRING,
    PruneReason.MALFORMED,
})


@dataclass(frozen=True)
class UrlCheck:
    """Verdict for a single URL."""

    valid: bool
    reason: PruneReason | None = None
    status: int | None = None
    detail: str = ""
    redirected: bool = False

    def describe(self) -> str:
        if self.valid:
            return "ok"
        text = self.reason.value if self.reason else "invalid"
        if self.detail:
            text = f"{text} ({self.detail})"
        return text


_OK = UrlCheck(valid=True)


@dataclass(frozen=True)
class PruneDetail:
    url: object
    context: str
    reason: PruneReason
    message: str


@dataclass
class PruningStats:
    """Counters for one or more pruning passes."""

    total: int = 0
    pruned: int = 0
    invalid_format: int = 0
    invalid_status: int = 0
    timeouts: int = 0
    errors: int = 0
    by_reason: Counter = field(default_factory=Counter)
    details: list[PruneDetail] = field(default_factory=list)

    def record(self, url, context: str, check: UrlCheck) -> None:
        """Count one rejected URL."""
        reason = check.reason or PruneReason.NETWORK_ERROR
        self.pruned += 1
        self.by_reason[reason] += 1
        if reason.is_format:
            self.invalid_format += 1
        elif reason is PruneReason.TIMEOUT:
            self.timeouts += 1
        elif check.status is not None:
            self.invalid_status += 1
        else:
            self.errors += 1
        self.details.append(PruneDetail(url, context, reason, check.describe()))
        logger.debug("Pruned [%s] %s: %s", context, url, check.describe())

    def __iadd__(self, other: PruningStats) -> PruningStats:
        self.total += other.total
        self.pruned += other.pruned
        self.invalid_format += other.invalid_format
        self.invalid_status += other.invalid_status
        self.timeouts += other.timeouts
        self.errors += other.errors
        self.by_reason.update(other.by_reason)
        self.details.extend(other.details)
        return self


@dataclass
class PruneResult(Generic[T]):
    items: list[T]
    stats: PruningStats


# ---------------------------------------------------------------------------
# Stage 1: format
# ---------------------------------------------------------------------------

def validate_url_format(url) -> UrlCheck:
    """Check *url* against the sitemap URL policy without any I/O."""
    if not url or not isinstance(url, str):
        return UrlCheck(False, PruneReason.MISSING)
    if url.strip() != url:
        return UrlCheck(False, PruneReason.WHITESPACE)
    if not url.startswith("https://"):
        return UrlCheck(False, PruneReason.NOT_HTTPS)
    if _QUERY_CHARS_RE.search(url):
        return UrlCheck(False, PruneReason.QUERY_STRING)
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError for a non-numeric or out-of-range port
    except ValueError as exc:
        return UrlCheck(False, PruneReason.MALFORMED, detail=str(exc))
    if not parts.hostname:
        return UrlCheck(False, PruneReason.MALFORMED, detail="missing host")
    return _OK


# ---------------------------------------------------------------------------
# Stage 2: reachability
# ---------------------------------------------------------------------------

async def check_url_accessibility(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float = URL_CHECK_TIMEOUT_MS / 1000,
    depth: int = 0,
) -> UrlCheck:
    """Send a ``HEAD`` request to *url* and classify the response.

    A 3xx with a ``Location`` header is followed once: at ``depth == 0``
    the target is checked at ``depth == 1``; at the depth cap a redirect is
    accepted without being followed.
    """
    try:
        response = await asyncio.wait_for(
            client.head(url, follow_redirects=False, timeout=timeout),
            timeout,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        return UrlCheck(False, PruneReason.TIMEOUT)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        return UrlCheck(False, PruneReason.NETWORK_ERROR, detail=str(exc) or type(exc).__name__)

    status = response.status_code

    if 300 <= status < 400:
        location = response.headers.get("location")
        if not location:
            return UrlCheck(True, status=status)
        if depth >= MAX_REDIRECT_DEPTH:
            return UrlCheck(True, status=status, redirected=True)
        target = urljoin(url, location)
        result = await check_url_accessibility(client, target, timeout=timeout, depth=depth + 1)
        if result.valid:
            return UrlCheck(True, status=status, redirected=True)
        return UrlCheck(
            False,
            PruneReason.BAD_REDIRECT,
            status=status,
            detail=f"{target} -> {result.status or result.describe()}",
        )

    if 200 <= status < 300:
        return UrlCheck(True, status=status)
    if status == 404:
        return UrlCheck(False, PruneReason.NOT_FOUND, status=status)
    if status >= 400:
        return UrlCheck(False, PruneReason.HTTP_ERROR, status=status, detail=str(status))
    return UrlCheck(False, PruneReason.UNEXPECTED_STATUS, status=status, detail=str(status))


def make_check_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """HTTP client used for reachability checks."""
    return httpx.AsyncClient(headers={"User-Agent": USER_AGENT}, transport=transport)


async def _check_in_batches(
    client: httpx.AsyncClient,
    urls: Sequence[str],
    batch_size: int,
    timeout: float,
) -> list[UrlCheck]:
    results: list[UrlCheck] = []
    for start in range(0, len(urls), batch_size):
        batch = urls[start:start + batch_size]
        results.extend(
            await asyncio.gather(
                *(check_url_accessibility(client, url, timeout=timeout) for url in batch)
            )
        )
    return results


async def prune_invalid_urls(
    items: Sequence[T],
    get_url: Callable[[T], str],
    context: str = "items",
    *,
    check_status: bool = False,
    client: httpx.AsyncClient | None = None,
    batch_size: int = MAX_CONCURRENT_CHECKS,
    timeout: float = URL_CHECK_TIMEOUT_MS / 1000,
) -> PruneResult[T]:
    """Return the items of *items* whose URL passes validation.

    Survivors keep their input order.  With *check_status* the format-valid
    URLs are also checked over HTTP, *batch_size* at a time; a client is
    created for the call unless one is passed in.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    stats = PruningStats(total=len(items))
    kept: list[int] = []
    pending: list[tuple[int, str]] = []

    for index, item in enumerate(items):
        url = get_url(item)
        check = validate_url_format(url)
        if not check.valid:
            stats.record(url, context, check)
        elif check_status:
            pending.append((index, url))
        else:
            kept.append(index)

    if pending:
        urls = [url for _, url in pending]
        if client is None:
            async with make_check_client() as own_client:
                checks = await _check_in_batches(own_client, urls, batch_size, timeout)
        else:
            checks = await _check_in_batches(client, urls, batch_size, timeout)

        for (index, url), check in zip(pending, checks):
            if check.valid:
                kept.append(index)
            else:
                stats.record(url, context, check)

    kept.sort()
    survivors = [items[i] for i in kept]
    if stats.pruned:
        logger.info("%s: %d -> %d (pruned %d)", context, len(items), len(survivors), stats.pruned)
    return PruneResult(survivors, stats)
