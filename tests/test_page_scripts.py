"""Tests for the in-page scripts against a real DOM.

Skipped when no Chromium build is installed for Playwright.
"""
from typing import Iterator

import pytest
from playwright.sync_api import Browser, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from formbridge.browser.page import Page
from formbridge.executor.filler import NO_MATCHING_OPTION, FillExecutor
from formbridge.executor.models import FillStatus
from formbridge.extractor.models import PASSWORD_SENTINEL
from formbridge.extractor.scanner import SCAN_SCRIPT, PageScanner


@pytest.fixture(scope="module")
def browser() -> Iterator[Browser]:
    with sync_playwright() as p:
        try:
            chromium = p.chromium.launch()
        except PlaywrightError as e:
            pytest.skip(f"Chromium not available: {e}")
        yield chromium
        chromium.close()


@pytest.fixture
def page(browser: Browser) -> Iterator[Page]:
    raw = browser.new_page()
    yield Page(raw)
    raw.close()


def input_values(page: Page) -> list[str]:
    return page.raw.eval_on_selector_all("input", "els => els.map(e => e.value)")


class TestScanScript:
    """Tests for SCAN_SCRIPT in a live page."""

    def test_password_value_never_read(self, page: Page) -> None:
        page.raw.set_content('<form><input type="password" id="pw" value="geheim123"></form>')

        raw = page.raw.evaluate(SCAN_SCRIPT)
        schema = PageScanner(page).scan()

        assert raw["forms"][0][0]["value"] is None
        assert schema.fields[0].value == PASSWORD_SENTINEL
        assert "geheim123" not in schema.model_dump_json()

    def test_label_resolution_order(self, page: Page) -> None:
        page.raw.set_content("""
            <form>
              <label for="a">Voornaam</label><input id="a" aria-label="First name">
              <label>Achternaam <input id="b"></label>
              <input id="c" aria-label="Postcode" aria-labelledby="lc"><span id="lc">Other</span>
              <span>Woonplaats</span><input id="d">
              <p id="le">Huisnummer</p><br><input id="e" aria-labelledby="le">
              <br><input id="f">
            </form>
        """)

        labels = {f.id: f.label for f in PageScanner(page).scan().fields}

        assert labels == {
            "a": "Voornaam",
            "b": "Achternaam",
            "c": "Postcode",
            "d": "Woonplaats",
            "e": "Huisnummer",
            "f": None,
        }

    def test_skips_hidden_and_buttons(self, page: Page) -> None:
        page.raw.set_content("""
            <form>
              <input type="hidden" id="token" value="x">
              <input id="naam">
              <input type="submit" value="Verstuur">
              <button>Annuleer</button>
            </form>
            <input id="zoek">
        """)

        assert PageScanner(page).scan().field_ids() == ["naam", "zoek"]

    def test_duplicate_ids_get_distinct_selectors(self, page: Page) -> None:
        page.raw.set_content("""
            <form>
              <input id="naam" name="voornaam">
              <input id="naam" name="achternaam">
            </form>
        """)

        first, second = PageScanner(page).scan().fields

        assert (first.id, second.id) == ("naam", "form0-field1")
        assert second.selector != '[id="naam"]'
        matched = page.raw.locator(f"css={second.selector}")
        assert matched.count() == 1
        assert matched.get_attribute("name") == "achternaam"

    def test_unique_id_anchors_selector(self, page: Page) -> None:
        page.raw.set_content('<div id="adres"><input><input></div>')

        fields = PageScanner(page).scan().fields

        assert [f.selector for f in fields] == [
            '[id="adres"] > input:nth-of-type(1)',
            '[id="adres"] > input:nth-of-type(2)',
        ]


class TestSetValueScript:
    """Tests for SET_VALUE_SCRIPT in a live page."""

    def test_duplicate_id_fill_reaches_both_fields(self, page: Page) -> None:
        page.raw.set_content("""
            <form>
              <input id="naam" name="voornaam">
              <input id="naam" name="achternaam">
            </form>
        """)
        first, second = PageScanner(page).scan().fields

        tally = FillExecutor(page).fill({first.id: "Jan", second.selector: "Jansen"})

        assert len(tally.filled) == 2
        assert input_values(page) == ["Jan", "Jansen"]

    def test_text_fill_dispatches_events(self, page: Page) -> None:
        page.raw.set_content('<input id="email">')
        page.raw.evaluate("""() => {
            window.seen = [];
            const el = document.getElementById('email');
            for (const name of ['input', 'change', 'blur']) {
                el.addEventListener(name, () => window.seen.push(name));
            }
        }""")

        FillExecutor(page).fill({"email": "jan@example.com"})

        assert page.raw.evaluate("() => window.seen") == ["input", "change", "blur"]
        assert input_values(page) == ["jan@example.com"]

    def test_radio_group_by_value(self, page: Page) -> None:
        page.raw.set_content("""
            <input type="radio" name="geslacht" id="m" value="M">
            <input type="radio" name="geslacht" id="v" value="V">
        """)

        tally = FillExecutor(page).fill({"m": "V"})

        assert tally.filled == ["m"]
        assert page.raw.is_checked("#v")
        assert not page.raw.is_checked("#m")

    def test_radio_without_matching_value_is_untouched(self, page: Page) -> None:
        page.raw.set_content("""
            <input type="radio" name="geslacht" id="m" value="M">
            <input type="radio" name="geslacht" id="v" value="V">
        """)

        result = FillExecutor(page).fill({"m": "X"}).to_results()[0]

        assert (result.status, result.detail) == (FillStatus.NOT_FOUND, NO_MATCHING_OPTION)
        assert not page.raw.is_checked("#m")
        assert not page.raw.is_checked("#v")

    def test_select_without_matching_option_is_untouched(self, page: Page) -> None:
        page.raw.set_content("""
            <select id="land">
              <option value="NL" selected>Nederland</option>
              <option value="BE">Belgie</option>
            </select>
        """)
        executor = FillExecutor(page)

        missing = executor.fill({"land": "DE"}).to_results()[0]
        assert missing.status == FillStatus.NOT_FOUND
        assert page.raw.input_value("#land") == "NL"

        assert executor.fill({"land": "BE"}).filled == ["land"]
        assert page.raw.input_value("#land") == "BE"

    def test_checkbox_truthiness(self, page: Page) -> None:
        page.raw.set_content('<input type="checkbox" id="akkoord">')
        executor = FillExecutor(page)

        executor.fill({"akkoord": "yes"})
        assert page.raw.is_checked("#akkoord")

        executor.fill({"akkoord": "false"})
        assert not page.raw.is_checked("#akkoord")
