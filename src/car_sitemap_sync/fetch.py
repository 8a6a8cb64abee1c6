"""Async client for the marketplace content API.

Collections are fetched with :mod:`httpx`.  When the backend sits behind
Cloudflare's bot check, set ``use_cloudscraper`` and the GET is routed
through a persistent :class:`cloudscraper.CloudScraper` session running in
a worker thread instead, the same way the browser-less scraper handler
does it.

A collection that cannot be fetched (network error, non-2xx, HTML error
page, malformed JSON) degrades to an empty list; it never aborts the run.
"""

from __future__ import annotations

import asyncio
import json
import logging

import cloudscraper
import httpx
import requests
from cloudscraper.exceptions import CloudflareException

from car_sitemap_sync.settings import API_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


class ContentFetchError(Exception):
    """The content API answered with something that is not a JSON array."""


def parse_collection(url: str, status: int, body: str) -> list:
    """Classify an API response and return its records.

    * ``204`` and an empty body are an explicit empty collection.
    * Non-2xx, an HTML page, or malformed JSON raise :class:`ContentFetchError`.
    * Valid JSON that is not an array is logged and treated as empty.
    """
    if status == 204:
        logger.info("API returned 204 No Content for %s", url)
        return []

    if not 200 <= status < 300:
        raise ContentFetchError(f"HTTP {status} from {url}: {body[:100]}")

    text = body.strip()
    if not text:
        logger.warning("Empty response from %s", url)
        return []

    if text.startswith(("<!DOCTYPE", "<!doctype", "<html")):
        raise ContentFetchError(f"API returned HTML instead of JSON for {url}: {text[:200]}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ContentFetchError(
            f"Failed to parse JSON from {url} ({len(text)} chars): {exc}"
        ) from exc

    if not isinstance(data, list):
        logger.warning("API returned non-array data for %s; treating as empty", url)
        return []
    return data


class ContentClient:
    """Fetch raw record lists from the content API.

    Use as an async context manager::

        async with ContentClient("https://backend.example.com") as client:
            records = await client.fetch_records("vehicles", "/api/publicproducts")
    """

    def __init__(
        self,
        api_url: str,
        *,
        timeout: float = API_TIMEOUT,
        use_cloudscraper: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_url.startswith("https://"):
            raise ValueError(f"Only HTTPS API URLs are supported, got {api_url!r}")
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.use_cloudscraper = use_cloudscraper
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._scraper = None

    async def __aenter__(self) -> ContentClient:
        self._client = httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=self.timeout,
            transport=self._transport,
        )
        if self.use_cloudscraper:
            self._scraper = cloudscraper.create_scraper(
                browser={"browser": "chrome", "platform": "windows", "desktop": True},
            )
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._scraper is not None:
            self._scraper.close()
            self._scraper = None

    # ------------------------------------------------------------------
    async def _get(self, url: str) -> tuple[int, str]:
        if self._scraper is not None:
            try:
                resp = await asyncio.to_thread(self._scraper.get, url, timeout=self.timeout)
            except (requests.RequestException, CloudflareException) as exc:
                raise ContentFetchError(f"cloudscraper request to {url} failed: {exc}") from exc
            return resp.status_code, resp.text

        if self._client is None:
            raise RuntimeError("ContentClient must be used as an async context manager")
        response = await self._client.get(url)
        return response.status_code, response.text

    async def get_records(self, path: str) -> list:
        """GET ``api_url + path`` and return the JSON array it holds."""
        url = f"{self.api_url}{path}"
        status, body = await self._get(url)
        return parse_collection(url, status, body)

    async def fetch_records(self, name: str, path: str) -> list:
        """Like :meth:`get_records` but any failure yields ``[]``."""
        logger.info("Fetching %s from %s%s", name, self.api_url, path)
        try:
            records = await self.get_records(path)
        except (ContentFetchError, httpx.HTTPError) as exc:
            logger.error("Error fetching %s: %s; continuing with none", name, exc)
            return []
        logger.info("Received %d %s records", len(records), name)
        return records
