"""Fill executor: writes literal values into the live page."""
import logging
from collections.abc import Mapping
from typing import Optional

from playwright.sync_api import Locator

from ..browser.page import Page
from .models import FillStatus, FillTally

logger = logging.getLogger(__name__)

NO_MATCHING_OPTION = "No option matches the value"

# Sets the value the way a user would leave it and notifies page frameworks.
# Returns false, touching nothing, when a radio group or select has no
# option for the value.
SET_VALUE_SCRIPT = """
(el, value) => {
    const type = (el.type || '').toLowerCase();
    let target = el;
    if (type === 'radio') {
        const group = el.name
            ? Array.from(document.querySelectorAll(
                `input[type="radio"][name="${CSS.escape(el.name)}"]`
            ))
            : [el];
        target = group.find(r => r.value === value);
        if (!target) return false;
        target.checked = true;
    } else if (el.tagName === 'SELECT') {
        if (!Array.from(el.options).some(o => o.value === value)) return false;
        target.value = value;
    } else if (type === 'checkbox') {
        target.checked = !['', 'false', '0', 'no', 'off'].includes(String(value).trim().toLowerCase());
    } else {
        target.value = value;
    }
    for (const name of ['input', 'change', 'blur']) {
        target.dispatchEvent(new Event(name, { bubbles: true }));
    }
    return true;
}
"""


def css_string(value: str) -> str:
    """Quote a value for use inside a CSS attribute selector."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class FillExecutor:
    """Applies a literal fill request to the current page, one field at a time."""

    def __init__(self, page: Page, allow_selector_fallback: bool = True) -> None:
        """Initialize fill executor.

        Args:
            page: Page wrapper instance.
            allow_selector_fallback: Treat unresolved keys as CSS selectors.
        """
        self._page = page
        self._allow_selector_fallback = allow_selector_fallback

    def _candidate_selectors(self, key: str) -> list[str]:
        selectors = [f"[id={css_string(key)}]", f"[name={css_string(key)}]"]
        if self._allow_selector_fallback:
            # Force the CSS engine so keys can't select text= or xpath= targets.
            selectors.append(f"css={key}")
        return selectors

    def locate(self, key: str) -> Optional[Locator]:
        """Resolve a key by id, then name, then as a raw CSS selector."""
        for selector in self._candidate_selectors(key):
            locator = self._page.raw.locator(selector)
            if locator.count() > 0:
                return locator.first
        return None

    def fill(self, field_mappings: Mapping[str, str]) -> FillTally:
        """Fill every requested field.

        A failing field never stops the remaining ones.

        Args:
            field_mappings: Field key to literal value.

        Returns:
            FillTally covering every requested key.
        """
        tally = FillTally()
        for key, value in field_mappings.items():
            try:
                locator = self.locate(key)
                if locator is None:
                    logger.debug(f"Field not found: {key}")
                    tally.record_failure(key, FillStatus.NOT_FOUND, "Field not found")
                    continue
                if locator.evaluate(SET_VALUE_SCRIPT, value) is False:
                    logger.debug(f"No matching option: {key}")
                    tally.record_failure(key, FillStatus.NOT_FOUND, NO_MATCHING_OPTION)
                    continue
                tally.record_filled(key)
            except Exception as e:
                logger.warning(f"Could not fill {key}: {type(e).__name__}")
                tally.record_failure(key, FillStatus.ERROR, str(e))

        logger.info(f"Filled {len(tally.filled)}/{len(field_mappings)} fields")
        return tally
