"""Browser access: CDP connection, page wrapper and active-tab lookup."""
from .connection import BrowserConnection
from .page import Page, is_internal_url
from .tabs import TabManager

__all__ = ["BrowserConnection", "Page", "TabManager", "is_internal_url"]
