"""Shared fixtures: raw scan records, fake pages and personal data."""
from typing import Any, Callable, Optional
from unittest.mock import Mock

import pytest
from playwright.sync_api import Page as PlaywrightPage

from formbridge.browser.page import Page
from formbridge.privacy import PersonalDataRecord


class FakeTabs:
    """Tab provider returning a fixed page."""

    def __init__(self, page: Optional[Page]) -> None:
        self.page = page
        self.closed = False

    def active_page(self) -> Optional[Page]:
        return self.page

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_control() -> Callable[..., dict]:
    """Factory for one raw control record as the scan script returns it."""

    def _make(
        tag: str = "input",
        type: str = "text",
        id: Optional[str] = None,
        name: Optional[str] = None,
        labels: Optional[dict[str, Any]] = None,
        value: Optional[str] = "",
        required: bool = False,
        selector: Optional[str] = None,
        options: Optional[list[dict]] = None,
        checked: Optional[bool] = None,
        placeholder: Optional[str] = None,
    ) -> dict:
        control = {
            "tag": tag,
            "type": type,
            "id": id,
            "name": name,
            "placeholder": placeholder,
            "required": required,
            "value": value,
            "checked": checked,
            "disabled": False,
            "readonly": False,
            "selector": selector or (f'[id="{id}"]' if id else f"form > {tag}:nth-of-type(1)"),
            "labels": labels or {},
        }
        if options is not None:
            control["options"] = options
        return control

    return _make


@pytest.fixture
def make_raw_page() -> Callable[..., dict]:
    """Factory for a whole scan result."""

    def _make(
        url: str = "https://www.gemeente.nl/inschrijving",
        title: str = "Inschrijving",
        forms: Optional[list[list[dict]]] = None,
        standalone: Optional[list[dict]] = None,
        headings: Optional[list[dict]] = None,
        errors: Optional[list[str]] = None,
        text: str = "",
    ) -> dict:
        return {
            "url": url,
            "title": title,
            "forms": forms or [],
            "standalone": standalone or [],
            "headings": headings or [],
            "errors": errors or [],
            "text": text,
        }

    return _make


@pytest.fixture
def make_page() -> Callable[..., Page]:
    """Factory for a Page wrapper around a mocked Playwright page."""

    def _make(url: str = "https://www.gemeente.nl/inschrijving", scan: Optional[dict] = None) -> Page:
        raw = Mock(spec=PlaywrightPage)
        raw.url = url
        raw.evaluate = Mock(return_value=scan)
        return Page(raw)

    return _make


@pytest.fixture
def record() -> PersonalDataRecord:
    """Personal data used across fill tests."""
    return PersonalDataRecord(
        first_name="Jan",
        last_name="Jansen",
        date_of_birth="1990-01-31",
        nationality="Dutch",
        street="Keizersgracht",
        house_number="12",
        postcode="1015CJ",
        city="Amsterdam",
        email="jan@example.com",
    )


@pytest.fixture
def fake_tabs() -> type[FakeTabs]:
    return FakeTabs
