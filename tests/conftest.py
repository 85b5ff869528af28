from __future__ import annotations

import asyncio
import itertools

import pytest

from tabcrawl.browser.events import EventHub, TabUpdate
from tabcrawl.browser.tabs import TabInfo
from tabcrawl.config import Settings
from tabcrawl.errors import ScriptInjectionError, TabNotFound


class FakeTabBrowser:
    """In-memory stand-in for BrowserSession.

    Navigations report ``complete`` on the next loop iteration unless the URL
    is listed in ``stalled``. ``pages`` maps URLs to the HTML the tab renders.
    """

    def __init__(self, pages: dict[str, str] | None = None):
        self.updated: EventHub[TabUpdate] = EventHub("tab-updated")
        self.removed: EventHub[str] = EventHub("tab-removed")
        self.pages = dict(pages or {})
        self.tabs: dict[str, str] = {}
        self.stalled: set[str] = set()
        self.navigations: list[tuple[str, str]] = []
        self.refuse_scripts = False
        self._ids = itertools.count(1)

    async def create_tab(self) -> str:
        tab_id = f"T{next(self._ids)}"
        self.tabs[tab_id] = "about:blank"
        return tab_id

    async def get_tab(self, tab_id: str) -> TabInfo:
        self._check(tab_id)
        return TabInfo(tab_id=tab_id, url=self.tabs[tab_id])

    async def navigate(self, tab_id: str, url: str) -> None:
        self._check(tab_id)
        self.tabs[tab_id] = url
        self.navigations.append((tab_id, url))
        self.updated.emit(TabUpdate(tab_id, "loading"))
        if url not in self.stalled:
            asyncio.get_running_loop().call_soon(self.updated.emit, TabUpdate(tab_id, "complete"))

    async def remove_tab(self, tab_id: str) -> None:
        self._check(tab_id)
        self.close_externally(tab_id)

    async def execute_script(self, tab_id: str, script: str):
        self._check(tab_id)
        if self.refuse_scripts:
            raise ScriptInjectionError("Cannot access contents of the page", tab_id=tab_id)
        return self.pages.get(self.tabs[tab_id])

    def close_externally(self, tab_id: str) -> None:
        del self.tabs[tab_id]
        self.removed.emit(tab_id)

    def _check(self, tab_id: str) -> None:
        if tab_id not in self.tabs:
            raise TabNotFound(f"No tab with id {tab_id}", tab_id=tab_id)


PAGES = {
    "https://a.test": "<html><body>page A</body></html>",
    "https://b.test": "<html><body>page B</body></html>",
}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        TAB_LOAD_TIMEOUT_SECONDS=0.2,
        RENDER_DELAY_SECONDS=0,
        FETCH_TIMEOUT_SECONDS=1,
        SESSION_FILE=tmp_path / "session.json",
    )


@pytest.fixture
def browser() -> FakeTabBrowser:
    return FakeTabBrowser(PAGES)
