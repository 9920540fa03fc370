"""Page-context entry point: scan, enrich and fill on the active tab."""
import logging
from typing import Optional

from ..browser.page import Page
from ..executor.filler import FillExecutor
from ..extractor.scanner import DEFAULT_DESCRIPTION_LIMIT, PageScanner
from ..protocol.messages import CaptureResponse, FillFormRequest, FillResponse
from ..templates.matcher import TemplateMatcher

logger = logging.getLogger(__name__)


class ContentScript:
    """Runs page-side work for one request; always returns a response."""

    def __init__(
        self,
        page: Page,
        matcher: Optional[TemplateMatcher] = None,
        description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
        allow_selector_fallback: bool = True,
    ) -> None:
        """Initialize content script.

        Args:
            page: The active page.
            matcher: Template matcher used to tag captures.
            description_limit: Maximum length of the page description.
            allow_selector_fallback: Let fills resolve keys as CSS selectors.
        """
        self._page = page
        self._matcher = matcher
        self._description_limit = description_limit
        self._allow_selector_fallback = allow_selector_fallback

    def capture(self) -> CaptureResponse:
        try:
            schema = PageScanner(self._page, self._description_limit).scan()
            if self._matcher is not None:
                schema = self._matcher.enrich(schema)
        except Exception as e:
            logger.error(f"Capture failed: {e}")
            return CaptureResponse.failure(f"Capture failed: {e}")
        return CaptureResponse(form_schema=schema)

    def fill(self, request: FillFormRequest) -> FillResponse:
        try:
            executor = FillExecutor(self._page, self._allow_selector_fallback)
            tally = executor.fill(request.field_mappings)
        except Exception as e:
            logger.error(f"Fill failed: {e}")
            return FillResponse.failure(f"Fill failed: {e}")
        return FillResponse(results=tally.to_results())
