from __future__ import annotations

import asyncio
import logging

from tabcrawl.browser.tabs import TabBrowser
from tabcrawl.config import Settings
from tabcrawl.crawler.extractor import extract_html
from tabcrawl.crawler.waiter import TabLoadWait
from tabcrawl.errors import (
    CrawlTabError,
    NoActiveTab,
    OpenFailed,
    TabClosed,
    TabLoadTimeout,
    TabNotFound,
)
from tabcrawl.store import CrawlTabState

logger = logging.getLogger(__name__)


class CrawlTabOrchestrator:
    """Drives the single crawl tab through open, fetch, extract and close.

    Holds no session state of its own: every operation starts by reading the
    persisted tab id, so a fresh instance in a restarted process continues
    the same crawl.
    """

    def __init__(self, browser: TabBrowser, state: CrawlTabState, settings: Settings):
        self.browser = browser
        self.state = state
        self.settings = settings

    async def open(self, url: str) -> None:
        existing = await self.state.get()
        if existing is not None:
            await self._discard_tab(existing)
            await self.state.clear()

        tab_id = await self.browser.create_tab()
        await self.state.set(tab_id)
        logger.info("Opened crawl tab %s for %s", tab_id, url)
        try:
            await self._navigate(tab_id, url)
        except TabLoadTimeout as exc:
            raise OpenFailed(str(exc), tab_id=tab_id) from exc

    async def fetch(self, url: str) -> str:
        tab_id = await self._require_tab()
        logger.info("Navigating crawl tab %s to %s", tab_id, url)
        await self._navigate(tab_id, url)
        # Fixed settle time for client-side rendering; not a completion signal.
        await asyncio.sleep(self.settings.render_delay)
        return await extract_html(self.browser, tab_id)

    async def extract(self) -> str:
        tab_id = await self._require_tab()
        return await extract_html(self.browser, tab_id)

    async def close(self) -> None:
        tab_id = await self.state.get()
        if tab_id is None:
            return
        await self._discard_tab(tab_id)
        await self.state.clear()
        logger.info("Closed crawl tab %s", tab_id)

    async def _require_tab(self) -> str:
        tab_id = await self.state.get()
        if tab_id is None:
            raise NoActiveTab()
        try:
            await self.browser.get_tab(tab_id)
        except TabNotFound:
            await self.state.clear()
            logger.info("Crawl tab %s is gone; cleared session", tab_id)
            raise TabClosed(tab_id=tab_id) from None
        return tab_id

    async def _navigate(self, tab_id: str, url: str) -> None:
        with TabLoadWait(self.browser.updated, tab_id, self.settings.tab_load_timeout) as load:
            await self.browser.navigate(tab_id, url)
            await load.wait()

    async def _discard_tab(self, tab_id: str) -> None:
        try:
            await self.browser.remove_tab(tab_id)
        except CrawlTabError as exc:
            # Usually already closed by the user.
            logger.debug("Ignoring failure to close tab %s: %s", tab_id, exc)
