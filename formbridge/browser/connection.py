"""Chrome CDP connection for the relay's page context."""
import json
import logging
import time
import urllib.request
from typing import Iterator, Optional

from playwright.sync_api import Browser, Playwright, sync_playwright

from ..core.config import BrowserConfig

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS: float = 30.0


def backoff_delays(base: float, attempts: int) -> Iterator[float]:
    """Exponential delays, capped, one per attempt."""
    for attempt in range(attempts):
        yield min(base * (2**attempt), MAX_BACKOFF_SECONDS)


class BrowserConnection:
    """Owns the Playwright driver and the CDP-attached browser.

    Playwright sync objects are bound to the thread that created them, so
    the relay worker thread opens and closes this connection itself.
    """

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self._config = config or BrowserConfig()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def endpoint(self) -> str:
        return f"http://127.0.0.1:{self._config.cdp_port}"

    @property
    def is_connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    @property
    def browser(self) -> Browser:
        """The attached browser.

        Raises:
            RuntimeError: If not connected.
        """
        if not self._browser:
            raise RuntimeError("Not connected. Call connect() first.")
        return self._browser

    def _endpoint_ready(self) -> bool:
        try:
            with urllib.request.urlopen(f"{self.endpoint}/json/version", timeout=5) as resp:
                info = json.loads(resp.read().decode())
            logger.debug(f"CDP ready: {info.get('Browser', 'unknown')}")
            return True
        except Exception as e:
            logger.debug(f"CDP not ready: {e}")
            return False

    def connect(self) -> bool:
        """Attach to Chrome, retrying with exponential backoff.

        Returns:
            True once attached, False after all attempts fail.
        """
        attempts = self._config.connect_retries
        for attempt, delay in enumerate(backoff_delays(self._config.retry_delay, attempts), 1):
            if self._endpoint_ready():
                try:
                    self._playwright = sync_playwright().start()
                    self._browser = self._playwright.chromium.connect_over_cdp(self.endpoint)
                    logger.info(f"Attached to Chrome at {self.endpoint}")
                    return True
                except Exception as e:
                    logger.warning(f"Attach failed: {e}")
                    self.close()
            logger.info(f"Attempt {attempt}/{attempts}: waiting {delay:.1f}s for CDP")
            time.sleep(delay)

        logger.error(f"Could not attach to Chrome after {attempts} attempts")
        return False

    def close(self) -> None:
        """Release the browser and the Playwright driver."""
        if self._playwright:
            try:
                self._playwright.stop()
            except Exception as e:
                logger.debug(f"Playwright stop failed: {e}")
        self._playwright = None
        self._browser = None
