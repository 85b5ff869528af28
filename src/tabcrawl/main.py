from __future__ import annotations

from fastapi import FastAPI

from tabcrawl import __version__
from tabcrawl.app.api import router as crawl_router
from tabcrawl.app.dependencies import get_service
from tabcrawl.app.service import CrawlTabService
from tabcrawl.config import configure_logging


def create_app(service: CrawlTabService | None = None) -> FastAPI:
    service = service or get_service()
    configure_logging(service.settings.log_level)

    app = FastAPI(title="Tab Crawl", version=__version__)
    app.state.service = service
    app.include_router(crawl_router)

    @app.on_event("startup")
    async def _startup():
        await service.start()

    @app.on_event("shutdown")
    async def _shutdown():
        await service.shutdown()

    return app


app = create_app()
