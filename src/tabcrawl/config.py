import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central application settings loaded from environment variables."""

    browser_cdp_url: str | None = Field(default=None, alias="BROWSER_CDP_URL")
    playwright_headless: bool = Field(default=False, alias="PLAYWRIGHT_HEADLESS")
    tab_load_timeout: float = Field(default=30.0, gt=0.0, alias="TAB_LOAD_TIMEOUT_SECONDS")
    render_delay: float = Field(default=1.5, ge=0.0, alias="RENDER_DELAY_SECONDS")
    fetch_timeout: float = Field(default=30.0, gt=0.0, alias="FETCH_TIMEOUT_SECONDS")
    session_file: Path = Field(default=Path(".tabcrawl/session.json"), alias="SESSION_FILE")
    log_level: Literal["info", "debug"] = Field(default="info", alias="LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
