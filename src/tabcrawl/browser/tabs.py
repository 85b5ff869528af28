from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from playwright.async_api import Browser, BrowserContext, Frame, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from tabcrawl.browser.events import EventHub, TabUpdate
from tabcrawl.config import Settings
from tabcrawl.errors import ScriptInjectionError, TabNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TabInfo:
    tab_id: str
    url: str


class TabBrowser(Protocol):
    """The tab operations and notifications the crawl orchestrator relies on."""

    updated: EventHub[TabUpdate]
    removed: EventHub[str]

    async def create_tab(self) -> str: ...

    async def get_tab(self, tab_id: str) -> TabInfo: ...

    async def navigate(self, tab_id: str, url: str) -> None: ...

    async def remove_tab(self, tab_id: str) -> None: ...

    async def execute_script(self, tab_id: str, script: str) -> Any: ...


class BrowserSession:
    """Manages a Playwright Chromium lifecycle and exposes its pages as tabs.

    With ``BROWSER_CDP_URL`` set the session attaches to an already running
    Chromium and uses its default context, so tabs (and their DevTools target
    ids) outlive this process. Otherwise a private browser is launched and
    closed together with the session.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.updated: EventHub[TabUpdate] = EventHub("tab-updated")
        self.removed: EventHub[str] = EventHub("tab-removed")
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._owns_context = False
        self._pages: dict[str, Page] = {}
        self._page_ids: dict[Page, str] = {}

    async def __aenter__(self) -> BrowserSession:
        try:
            await self._start()
        except Exception:
            await self._stop()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._stop()

    async def create_tab(self) -> str:
        page = await self._require_context().new_page()
        return await self._register(page)

    async def get_tab(self, tab_id: str) -> TabInfo:
        page = self._page(tab_id)
        return TabInfo(tab_id=tab_id, url=page.url)

    async def navigate(self, tab_id: str, url: str) -> None:
        page = self._page(tab_id)
        # Only wait for the navigation to commit; completion arrives as a TabUpdate.
        await page.goto(url, wait_until="commit")

    async def remove_tab(self, tab_id: str) -> None:
        page = self._page(tab_id)
        try:
            await page.close()
        except PlaywrightError as exc:
            raise TabNotFound(str(exc), tab_id=tab_id) from exc

    async def execute_script(self, tab_id: str, script: str) -> Any:
        page = self._page(tab_id)
        try:
            return await page.evaluate(script)
        except PlaywrightError as exc:
            raise ScriptInjectionError(str(exc), tab_id=tab_id) from exc

    async def _start(self) -> None:
        self._playwright = await async_playwright().start()
        chromium = self._playwright.chromium
        if self.settings.browser_cdp_url:
            logger.info("Attaching to Chromium at %s", self.settings.browser_cdp_url)
            self._browser = await chromium.connect_over_cdp(self.settings.browser_cdp_url)
            if self._browser.contexts:
                self._context = self._browser.contexts[0]
            else:
                self._context = await self._browser.new_context()
                self._owns_context = True
        else:
            logger.info("Launching Chromium (headless=%s)", self.settings.playwright_headless)
            self._browser = await chromium.launch(headless=self.settings.playwright_headless)
            self._context = await self._browser.new_context()
            self._owns_context = True

        timeout_ms = self.settings.tab_load_timeout * 1000
        self._context.set_default_navigation_timeout(timeout_ms)
        self._context.set_default_timeout(timeout_ms)
        self._context.on("page", self._on_page)
        for page in list(self._context.pages):
            await self._register(page)

    async def _stop(self) -> None:
        if self._context and self._owns_context:
            await self._context.close()
        self._context = None
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
        self._pages.clear()
        self._page_ids.clear()

    async def _on_page(self, page: Page) -> None:
        try:
            await self._register(page)
        except PlaywrightError as exc:
            logger.debug("Could not track new page: %s", exc)

    async def _register(self, page: Page) -> str:
        known = self._page_ids.get(page)
        if known is not None:
            return known
        tab_id = await self._target_id(page)
        if page in self._page_ids:
            return self._page_ids[page]
        self._pages[tab_id] = page
        self._page_ids[page] = tab_id

        def on_navigated(frame: Frame) -> None:
            if frame == page.main_frame:
                self.updated.emit(TabUpdate(tab_id, "loading"))

        def on_close(_page: Page) -> None:
            self._pages.pop(tab_id, None)
            self._page_ids.pop(page, None)
            self.removed.emit(tab_id)

        page.on("framenavigated", on_navigated)
        page.on("load", lambda _page: self.updated.emit(TabUpdate(tab_id, "complete")))
        page.on("close", on_close)
        logger.debug("Tracking tab %s (%s)", tab_id, page.url)
        return tab_id

    async def _target_id(self, page: Page) -> str:
        cdp = await self._require_context().new_cdp_session(page)
        try:
            info = await cdp.send("Target.getTargetInfo")
        finally:
            await cdp.detach()
        return info["targetInfo"]["targetId"]

    def _page(self, tab_id: str) -> Page:
        page = self._pages.get(tab_id)
        if page is None or page.is_closed():
            raise TabNotFound(f"No tab with id {tab_id}", tab_id=tab_id)
        return page

    def _require_context(self) -> BrowserContext:
        if not self._context:
            raise RuntimeError("BrowserSession is not running")
        return self._context
