from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from tabcrawl.crawler.direct import DirectFetcher
from tabcrawl.crawler.orchestrator import CrawlTabOrchestrator

logger = logging.getLogger(__name__)

FETCH_URL = "FETCH_URL"
CRAWL_TAB_OPEN = "CRAWL_TAB_OPEN"
CRAWL_TAB_FETCH = "CRAWL_TAB_FETCH"
CRAWL_TAB_EXTRACT = "CRAWL_TAB_EXTRACT"
CRAWL_TAB_CLOSE = "CRAWL_TAB_CLOSE"

# Bridge actions to message kinds.
TAB_ACTIONS = {
    "open": CRAWL_TAB_OPEN,
    "fetch": CRAWL_TAB_FETCH,
    "extract": CRAWL_TAB_EXTRACT,
    "close": CRAWL_TAB_CLOSE,
}

Handler = Callable[[Mapping[str, Any]], Awaitable[dict[str, Any]]]


@dataclass(frozen=True, slots=True)
class Route:
    handler: Handler
    default_error: str
    needs_url: bool = False


class MessageDispatcher:
    """Routes inbound crawl messages to exactly one operation each.

    Unknown message kinds get no response (``None``) so other handlers can
    claim them. Known kinds always get a payload: failures become
    ``{"error": ...}`` instead of propagating.
    """

    def __init__(self, orchestrator: CrawlTabOrchestrator, fetcher: DirectFetcher):
        self.orchestrator = orchestrator
        self.fetcher = fetcher
        self._routes: dict[str, Route] = {
            FETCH_URL: Route(self._fetch_url, "Fetch failed", needs_url=True),
            CRAWL_TAB_OPEN: Route(self._tab_open, "Failed to open tab", needs_url=True),
            CRAWL_TAB_FETCH: Route(self._tab_fetch, "Failed to fetch via tab", needs_url=True),
            CRAWL_TAB_EXTRACT: Route(self._tab_extract, "Failed to extract HTML"),
            CRAWL_TAB_CLOSE: Route(self._tab_close, "Failed to close tab"),
        }

    def handles(self, kind: str | None) -> bool:
        return kind in self._routes

    async def dispatch(self, message: Mapping[str, Any]) -> dict[str, Any] | None:
        kind = message.get("type")
        route = self._routes.get(kind) if isinstance(kind, str) else None
        if route is None:
            return None
        if route.needs_url and not message.get("url"):
            return {"error": "No URL provided"}
        try:
            return await route.handler(message)
        except Exception as exc:
            logger.warning("%s failed: %s", kind, exc, exc_info=logger.isEnabledFor(logging.DEBUG))
            return {"error": str(exc) or route.default_error}

    async def _fetch_url(self, message: Mapping[str, Any]) -> dict[str, Any]:
        return await self.fetcher.handle(message["url"])

    async def _tab_open(self, message: Mapping[str, Any]) -> dict[str, Any]:
        await self.orchestrator.open(message["url"])
        return {"success": True}

    async def _tab_fetch(self, message: Mapping[str, Any]) -> dict[str, Any]:
        html = await self.orchestrator.fetch(message["url"])
        return {"html": html}

    async def _tab_extract(self, message: Mapping[str, Any]) -> dict[str, Any]:
        html = await self.orchestrator.extract()
        return {"html": html}

    async def _tab_close(self, message: Mapping[str, Any]) -> dict[str, Any]:
        await self.orchestrator.close()
        return {"success": True}
