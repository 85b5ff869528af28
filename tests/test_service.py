from __future__ import annotations

import asyncio

from tabcrawl.app.service import CrawlTabService
from tabcrawl.store import CRAWL_TAB_KEY, JsonFileStore


def test_shutdown_finishes_pending_removal_cleanup(browser, settings):
    store = JsonFileStore(settings.session_file)

    async def scenario():
        service = CrawlTabService(settings, browser=browser, store=store)
        await service.start()
        await service.dispatch({"type": "CRAWL_TAB_OPEN", "url": "https://a.test"})
        (tab_id,) = browser.tabs
        browser.close_externally(tab_id)
        await service.shutdown()
        return service.running

    assert asyncio.run(scenario()) is False
    assert asyncio.run(store.get(CRAWL_TAB_KEY)) is None


def test_shutdown_leaves_caller_browser_running(browser, settings):
    async def scenario():
        store = JsonFileStore(settings.session_file)
        async with CrawlTabService(settings, browser=browser, store=store) as service:
            await service.dispatch({"type": "CRAWL_TAB_OPEN", "url": "https://a.test"})
        return len(browser.removed)

    assert asyncio.run(scenario()) == 0
    assert len(browser.tabs) == 1
