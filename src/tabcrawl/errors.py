from __future__ import annotations


class CrawlTabError(RuntimeError):
    """Base class for failures of a crawl tab operation."""

    default_message = "Crawl tab operation failed"

    def __init__(self, message: str | None = None, *, tab_id: str | None = None):
        super().__init__(message or self.default_message)
        self.tab_id = tab_id


class NoActiveTab(CrawlTabError):
    """Raised when an operation needs a crawl session but none is persisted."""

    default_message = "No crawl tab open"


class TabClosed(CrawlTabError):
    """Raised when the persisted crawl tab no longer exists in the browser."""

    default_message = "Crawl tab was closed"


class TabLoadTimeout(CrawlTabError):
    default_message = "Tab load timed out"


class OpenFailed(CrawlTabError):
    default_message = "Failed to open tab"


class ExtractionFailed(CrawlTabError):
    default_message = "Failed to extract HTML from tab"


class TabNotFound(CrawlTabError):
    """Raised by the browser adapter for unknown or already closed tab ids."""

    default_message = "No tab with the given id"


class ScriptInjectionError(CrawlTabError):
    """Raised by the browser adapter when the page refuses script evaluation."""

    default_message = "Script evaluation failed"


class DirectFetchError(RuntimeError):
    """Raised when the direct fetch fallback cannot return HTML.

    ``status`` is the HTTP status code for non-success responses and ``0`` for
    everything else (timeouts, transport errors, non-HTML bodies).
    """

    def __init__(self, message: str, *, status: int = 0):
        super().__init__(message)
        self.status = status


class FetchTimeout(DirectFetchError):
    def __init__(self, message: str = "Fetch timed out"):
        super().__init__(message, status=0)


class HttpStatusError(DirectFetchError):
    pass


class NonHtmlContent(DirectFetchError):
    def __init__(self, message: str = "Non-HTML content"):
        super().__init__(message, status=0)
