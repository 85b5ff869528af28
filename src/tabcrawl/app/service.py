from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from tabcrawl.app.dispatcher import MessageDispatcher
from tabcrawl.browser.tabs import BrowserSession, TabBrowser
from tabcrawl.config import Settings
from tabcrawl.crawler.direct import DirectFetcher
from tabcrawl.crawler.orchestrator import CrawlTabOrchestrator
from tabcrawl.crawler.waiter import TabRemovalWatcher
from tabcrawl.store import CrawlTabState, JsonFileStore, SessionStore

logger = logging.getLogger(__name__)


class CrawlTabService:
    """Wires the browser, session store, orchestrator and dispatcher together.

    A browser passed in by the caller is used as-is and left running on
    shutdown; otherwise a :class:`BrowserSession` is started and owned here.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        browser: TabBrowser | None = None,
        store: SessionStore | None = None,
        fetcher: DirectFetcher | None = None,
    ):
        self.settings = settings
        if store is None:
            store = JsonFileStore(settings.session_file)
        self.state = CrawlTabState(store)
        self.fetcher = fetcher or DirectFetcher(settings)
        self._browser = browser
        self._session: BrowserSession | None = None
        self._watcher: TabRemovalWatcher | None = None
        self._dispatcher: MessageDispatcher | None = None

    async def __aenter__(self) -> CrawlTabService:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    @property
    def running(self) -> bool:
        return self._dispatcher is not None

    @property
    def browser(self) -> TabBrowser:
        if self._browser is None:
            raise RuntimeError("CrawlTabService is not running")
        return self._browser

    @property
    def dispatcher(self) -> MessageDispatcher:
        if self._dispatcher is None:
            raise RuntimeError("CrawlTabService is not running")
        return self._dispatcher

    async def start(self) -> None:
        if self.running:
            return
        if self._browser is None:
            self._session = BrowserSession(self.settings)
            await self._session.__aenter__()
            self._browser = self._session
        self._watcher = TabRemovalWatcher(self._browser.removed, self.state)
        self._watcher.start()
        orchestrator = CrawlTabOrchestrator(self._browser, self.state, self.settings)
        self._dispatcher = MessageDispatcher(orchestrator, self.fetcher)
        logger.info("Crawl tab service started")

    async def dispatch(self, message: Mapping[str, Any]) -> dict[str, Any] | None:
        return await self.dispatcher.dispatch(message)

    async def shutdown(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        if self._browser is not None:
            await self._browser.removed.drain()
        self._dispatcher = None
        if self._session is not None:
            try:
                await self._session.__aexit__(None, None, None)
            finally:
                self._session = None
                self._browser = None
        await self.fetcher.aclose()
