"""Page wrapper with utility methods."""
import logging

from playwright.sync_api import Page as PlaywrightPage

logger = logging.getLogger(__name__)

# Pages where extensions can't inject scripts.
INTERNAL_URL_PREFIXES: tuple[str, ...] = (
    "chrome://",
    "chrome-extension://",
    "chrome-search://",
    "edge://",
    "brave://",
    "opera://",
    "vivaldi://",
    "about:",
    "devtools://",
    "view-source:",
    "moz-extension://",
)


def is_internal_url(url: str) -> bool:
    """True for browser-internal pages that refuse script injection."""
    return url.strip().lower().startswith(INTERNAL_URL_PREFIXES)


class Page:
    """Wrapper around Playwright Page with common utilities."""

    def __init__(self, page: PlaywrightPage) -> None:
        """Initialize page wrapper.

        Args:
            page: Playwright Page instance.
        """
        self._page = page

    @property
    def url(self) -> str:
        """Get current page URL."""
        return self._page.url

    @property
    def raw(self) -> PlaywrightPage:
        """Access underlying Playwright page for advanced operations."""
        return self._page

    @property
    def is_internal(self) -> bool:
        return is_internal_url(self.url)

    def title(self) -> str:
        return self._page.title()

    def goto(self, url: str, wait_until: str = "domcontentloaded", timeout: int = 30000) -> None:
        logger.info(f"Navigating to: {url}")
        self._page.goto(url, wait_until=wait_until, timeout=timeout)
