from __future__ import annotations

from tabcrawl.browser.tabs import TabBrowser
from tabcrawl.errors import ExtractionFailed, ScriptInjectionError

# Read-only: serializes the top document as it is currently rendered.
OUTER_HTML_SCRIPT = "() => document.documentElement.outerHTML"


async def extract_html(browser: TabBrowser, tab_id: str) -> str:
    try:
        result = await browser.execute_script(tab_id, OUTER_HTML_SCRIPT)
    except ScriptInjectionError as exc:
        raise ExtractionFailed(tab_id=tab_id) from exc
    if not result or not isinstance(result, str):
        raise ExtractionFailed(tab_id=tab_id)
    return result
