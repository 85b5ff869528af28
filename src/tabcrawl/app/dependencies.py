from __future__ import annotations

from functools import lru_cache

from fastapi import Request

from tabcrawl.app.service import CrawlTabService
from tabcrawl.config import get_settings


@lru_cache(maxsize=1)
def get_service() -> CrawlTabService:
    settings = get_settings()
    return CrawlTabService(settings)


def current_service(request: Request) -> CrawlTabService:
    return request.app.state.service
