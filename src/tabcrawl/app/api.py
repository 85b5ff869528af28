from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from tabcrawl.app.dependencies import current_service
from tabcrawl.app.dispatcher import FETCH_URL, TAB_ACTIONS
from tabcrawl.app.service import CrawlTabService
from tabcrawl.browser.events import TabUpdate
from tabcrawl.browser.tabs import TabBrowser

router = APIRouter(prefix="/api", tags=["crawl"])


class CrawlMessage(BaseModel):
    type: str
    url: str | None = None


class TabActionRequest(BaseModel):
    action: str | None = None
    url: str | None = None


class FetchRequest(BaseModel):
    url: str | None = None


@router.post("/messages")
async def post_message(
    message: CrawlMessage, service: CrawlTabService = Depends(current_service)  # noqa: B008
):
    response = await service.dispatch(message.model_dump(exclude_none=True))
    if response is None:
        return Response(status_code=204)
    return response


@router.post("/tab")
async def tab_action(
    request: TabActionRequest, service: CrawlTabService = Depends(current_service)  # noqa: B008
) -> dict[str, Any]:
    if not request.action:
        return {"action": request.action, "error": "No action provided"}
    kind = TAB_ACTIONS.get(request.action)
    if kind is None:
        return {"action": request.action, "error": f"Unknown action: {request.action}"}

    message: dict[str, Any] = {"type": kind}
    if request.url:
        message["url"] = request.url
    response = await service.dispatch(message) or {}
    return {"action": request.action, **response}


@router.post("/fetch")
async def fetch_direct(
    request: FetchRequest, service: CrawlTabService = Depends(current_service)  # noqa: B008
) -> dict[str, Any]:
    if not request.url:
        return {"error": "No URL provided"}
    return await service.dispatch({"type": FETCH_URL, "url": request.url}) or {}


@router.get("/ping")
async def ping() -> dict[str, str]:
    return {"event": "pong"}


async def tab_event_stream(browser: TabBrowser) -> AsyncIterator[dict[str, str]]:
    """Announce readiness, then relay tab notifications until the client goes away."""
    queue: asyncio.Queue[dict[str, str]] = asyncio.Queue()

    def on_update(update: TabUpdate) -> None:
        payload = {"tab_id": update.tab_id, "status": update.status}
        queue.put_nowait({"event": "tab-updated", "data": json.dumps(payload)})

    def on_removed(tab_id: str) -> None:
        queue.put_nowait({"event": "tab-removed", "data": json.dumps({"tab_id": tab_id})})

    subscriptions = [browser.updated.subscribe(on_update), browser.removed.subscribe(on_removed)]
    try:
        yield {"event": "ready", "data": json.dumps({"ready": True})}
        while True:
            yield await queue.get()
    finally:
        for subscription in subscriptions:
            subscription.release()


@router.get("/events")
async def events(service: CrawlTabService = Depends(current_service)):  # noqa: B008
    return EventSourceResponse(tab_event_stream(service.browser))
