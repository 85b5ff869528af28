from __future__ import annotations

import asyncio
import logging

from tabcrawl.browser.events import EventHub, Subscription, TabUpdate
from tabcrawl.errors import TabLoadTimeout
from tabcrawl.store import CrawlTabState

logger = logging.getLogger(__name__)


class TabLoadWait:
    """One-shot wait for a tab to report ``complete``, bounded by ``timeout`` seconds.

    Arm it before triggering the navigation so that a notification delivered
    right after the navigation call returns is not missed::

        with TabLoadWait(browser.updated, tab_id, timeout) as load:
            await browser.navigate(tab_id, url)
            await load.wait()

    The listener is released when the wait resolves, times out, or the block
    exits, whichever happens first.
    """

    def __init__(self, updates: EventHub[TabUpdate], tab_id: str, timeout: float):
        self.updates = updates
        self.tab_id = tab_id
        self.timeout = timeout
        self._future: asyncio.Future[None] | None = None
        self._subscription: Subscription | None = None

    def __enter__(self) -> TabLoadWait:
        self._future = asyncio.get_running_loop().create_future()
        self._subscription = self.updates.subscribe(self._on_update)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def release(self) -> None:
        if self._subscription is not None:
            self._subscription.release()

    async def wait(self) -> None:
        if self._future is None:
            raise RuntimeError("TabLoadWait must be entered before waiting")
        try:
            await asyncio.wait_for(self._future, self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Tab %s did not finish loading within %.1fs", self.tab_id, self.timeout)
            raise TabLoadTimeout(tab_id=self.tab_id) from None
        finally:
            self.release()

    def _on_update(self, update: TabUpdate) -> None:
        if update.tab_id != self.tab_id or update.status != "complete":
            return
        if self._future is not None and not self._future.done():
            self._future.set_result(None)
        self.release()


async def wait_for_load(updates: EventHub[TabUpdate], tab_id: str, timeout: float) -> None:
    with TabLoadWait(updates, tab_id, timeout) as load:
        await load.wait()


class TabRemovalWatcher:
    """Clears the persisted crawl tab when the browser reports it removed."""

    def __init__(self, removals: EventHub[str], state: CrawlTabState):
        self.removals = removals
        self.state = state
        self._subscription: Subscription | None = None

    def start(self) -> None:
        if self._subscription is None or not self._subscription.active:
            self._subscription = self.removals.subscribe(self.on_tab_closed)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.release()
            self._subscription = None

    async def on_tab_closed(self, tab_id: str) -> None:
        if await self.state.clear_if(tab_id):
            logger.info("Crawl tab %s was closed; cleared session", tab_id)
