from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from tabcrawl.app.api import tab_event_stream
from tabcrawl.app.service import CrawlTabService
from tabcrawl.browser.events import TabUpdate
from tabcrawl.crawler.direct import DirectFetcher
from tabcrawl.main import create_app
from tabcrawl.store import MemoryStore


def direct_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/missing":
        return httpx.Response(404)
    return httpx.Response(200, headers={"content-type": "text/html"}, text="<p>direct</p>")


@pytest.fixture
def client(browser, settings):
    fetcher = DirectFetcher(settings, transport=httpx.MockTransport(direct_handler))
    service = CrawlTabService(settings, browser=browser, store=MemoryStore(), fetcher=fetcher)
    with TestClient(create_app(service)) as test_client:
        yield test_client


def test_ping(client):
    assert client.get("/api/ping").json() == {"event": "pong"}


def test_tab_actions_echo_the_action(client, browser):
    opened = client.post("/api/tab", json={"action": "open", "url": "https://a.test"}).json()
    fetched = client.post("/api/tab", json={"action": "fetch", "url": "https://b.test"}).json()
    closed = client.post("/api/tab", json={"action": "close"}).json()
    extracted = client.post("/api/tab", json={"action": "extract"}).json()

    assert opened == {"action": "open", "success": True}
    assert fetched == {"action": "fetch", "html": "<html><body>page B</body></html>"}
    assert closed == {"action": "close", "success": True}
    assert extracted == {"action": "extract", "error": "No crawl tab open"}
    assert browser.tabs == {}


def test_tab_action_validation(client):
    assert client.post("/api/tab", json={}).json() == {
        "action": None,
        "error": "No action provided",
    }
    assert client.post("/api/tab", json={"action": "reload"}).json() == {
        "action": "reload",
        "error": "Unknown action: reload",
    }


def test_raw_messages(client):
    response = client.post("/api/messages", json={"type": "CRAWL_TAB_CLOSE"})
    assert response.status_code == 200
    assert response.json() == {"success": True}

    unknown = client.post("/api/messages", json={"type": "NOT_OURS"})
    assert unknown.status_code == 204


def test_direct_fetch_endpoint(client):
    assert client.post("/api/fetch", json={"url": "https://a.test/"}).json() == {
        "html": "<p>direct</p>"
    }
    assert client.post("/api/fetch", json={"url": "https://a.test/missing"}).json() == {
        "error": "HTTP 404 Not Found",
        "status": 404,
    }
    assert client.post("/api/fetch", json={}).json() == {"error": "No URL provided"}


def test_removed_crawl_tab_is_forgotten_by_service(client, browser):
    client.post("/api/tab", json={"action": "open", "url": "https://a.test"})
    (tab_id,) = browser.tabs
    client.portal.call(_close_and_drain, browser, tab_id)

    assert client.post("/api/tab", json={"action": "extract"}).json() == {
        "action": "extract",
        "error": "No crawl tab open",
    }


async def _close_and_drain(browser, tab_id):
    browser.close_externally(tab_id)
    await browser.removed.drain()


def test_event_stream_announces_ready_then_relays_tab_events(browser):
    async def scenario():
        stream = tab_event_stream(browser)
        events = [await anext(stream)]
        assert len(browser.updated) == 1
        assert len(browser.removed) == 1

        browser.updated.emit(TabUpdate("T1", "complete"))
        events.append(await anext(stream))
        browser.removed.emit("T1")
        events.append(await anext(stream))

        await stream.aclose()
        return events

    events = asyncio.run(scenario())

    assert [event["event"] for event in events] == ["ready", "tab-updated", "tab-removed"]
    assert json.loads(events[0]["data"]) == {"ready": True}
    assert json.loads(events[1]["data"]) == {"tab_id": "T1", "status": "complete"}
    assert json.loads(events[2]["data"]) == {"tab_id": "T1"}
    assert len(browser.updated) == 0
    assert len(browser.removed) == 0
