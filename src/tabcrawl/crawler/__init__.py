from .direct import DirectFetcher
from .extractor import extract_html
from .orchestrator import CrawlTabOrchestrator
from .waiter import TabLoadWait, TabRemovalWatcher, wait_for_load

__all__ = [
    "CrawlTabOrchestrator",
    "DirectFetcher",
    "TabLoadWait",
    "TabRemovalWatcher",
    "extract_html",
    "wait_for_load",
]
