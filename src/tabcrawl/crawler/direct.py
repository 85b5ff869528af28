from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from tabcrawl.config import Settings
from tabcrawl.errors import DirectFetchError, FetchTimeout, HttpStatusError, NonHtmlContent

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Upgrade-Insecure-Requests": "1",
}


class DirectFetcher:
    """Tab-less fallback: a single bounded GET that only accepts HTML."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._client = httpx.AsyncClient(
            timeout=settings.fetch_timeout,
            headers=BROWSER_HEADERS,
            follow_redirects=True,
            transport=transport,
        )

    async def fetch(self, url: str) -> str:
        # The client timeouts apply per phase; this caps the whole exchange, body included.
        try:
            async with asyncio.timeout(self.settings.fetch_timeout):
                response = await self._client.get(url)
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise FetchTimeout() from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DirectFetchError(str(exc) or "Network error") from exc

        if not response.is_success:
            raise HttpStatusError(
                f"HTTP {response.status_code} {response.reason_phrase}".strip(),
                status=response.status_code,
            )
        content_type = response.headers.get("content-type", "")
        if "text/html" not in content_type:
            raise NonHtmlContent()
        return response.text

    async def handle(self, url: str) -> dict[str, Any]:
        try:
            html = await self.fetch(url)
        except DirectFetchError as exc:
            logger.info("Direct fetch of %s failed: %s", url, exc)
            return {"error": str(exc), "status": exc.status}
        return {"html": html}

    async def aclose(self) -> None:
        await self._client.aclose()
