"""Tab lookup for the relay: which page is the user looking at."""
import logging
from typing import Optional

from playwright.sync_api import BrowserContext

from ..core.config import BrowserConfig
from .connection import BrowserConnection
from .page import Page

logger = logging.getLogger(__name__)


class TabManager:
    """Finds the active tab of an attached browser."""

    def __init__(self, connection: BrowserConnection) -> None:
        """Initialize tab manager.

        Args:
            connection: An attached BrowserConnection.
        """
        self._connection = connection
        self._context: Optional[BrowserContext] = None

    @classmethod
    def open(cls, config: Optional[BrowserConfig] = None) -> "TabManager":
        """Attach to Chrome and return a tab manager for it.

        Raises:
            RuntimeError: If the browser can't be reached.
        """
        connection = BrowserConnection(config)
        if not connection.connect():
            raise RuntimeError("Failed to connect to Chrome over CDP")
        return cls(connection)

    @property
    def context(self) -> BrowserContext:
        """Get the default browser context, creating one if needed."""
        if not self._context:
            browser = self._connection.browser
            if browser.contexts:
                self._context = browser.contexts[0]
            else:
                self._context = browser.new_context()
        return self._context

    def active_page(self) -> Optional[Page]:
        """The visible tab, most recently opened first.

        Returns:
            Page wrapper, or None when no tab is open.
        """
        pages = self.context.pages
        if not pages:
            return None
        for raw in reversed(pages):
            try:
                if raw.evaluate("() => document.visibilityState") == "visible":
                    return Page(raw)
            except Exception as e:
                logger.debug(f"Visibility probe failed for {raw.url}: {e}")
        return Page(pages[-1])

    def close(self) -> None:
        self._connection.close()
