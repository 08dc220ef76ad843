"""
Document Fetcher — Downloads regulation documents and reduces them to text.

HTML pages are converted to plain text with BeautifulSoup (script and
style elements dropped, whitespace collapsed). Other content types are
decoded as UTF-8 and returned trimmed.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from govscan.config import Settings, settings as default_settings
from govscan.errors import FetchError

logger = logging.getLogger("govscan.policy.fetcher")

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

_WHITESPACE_RE = re.compile(r"\s+")


def html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["script", "style"]):
        element.decompose()
    text = soup.get_text(separator=" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def extract_text(data: bytes, content_type: str, source: str) -> str:
    text = data.decode("utf-8", errors="replace")
    if "text/html" in content_type or source.lower().endswith(".html"):
        text = html_to_text(text)
    return text.strip()


class DocumentFetcher:
    """
    Fetches documents over HTTP or from disk.

    An httpx.AsyncClient may be injected (tests pass one built on
    httpx.MockTransport); otherwise one is created per request.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        config = config or default_settings
        self.timeout = config.fetch_timeout
        self.max_bytes = config.fetch_max_bytes
        self._http = http_client

    async def fetch_url(self, url: str) -> str:
        """Download a URL and return its plain text. Raises FetchError."""
        if self._http is not None:
            return await self._fetch(self._http, url)
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout), follow_redirects=True
        ) as client:
            return await self._fetch(client, url)

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> str:
        try:
            async with client.stream("GET", url, headers=BROWSER_HEADERS) as response:
                if response.status_code < 200 or response.status_code >= 300:
                    raise FetchError(
                        f"GET {url} returned HTTP {response.status_code}",
                        detail=response.reason_phrase,
                    )
                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) >= self.max_bytes:
                        logger.warning(f"{url} exceeds {self.max_bytes} bytes; truncating")
                        del body[self.max_bytes:]
                        break
                content_type = response.headers.get("content-type", "")
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            raise FetchError(f"GET {url} failed: {e}") from e

        logger.info(f"Fetched {url} ({len(body)} bytes, {content_type or 'unknown type'})")
        return extract_text(bytes(body), content_type, url)

    def read_file(self, path: str | Path) -> str:
        """Read a local document and return its plain text."""
        path = Path(path)
        data = path.read_bytes()
        suffix = path.suffix.lower()
        content_type = "text/html" if suffix in (".html", ".htm") else ""
        return extract_text(data, content_type, str(path))
