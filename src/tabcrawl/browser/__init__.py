from .events import EventHub, Subscription, TabUpdate
from .tabs import BrowserSession, TabBrowser, TabInfo

__all__ = [
    "BrowserSession",
    "EventHub",
    "Subscription",
    "TabBrowser",
    "TabInfo",
    "TabUpdate",
]
