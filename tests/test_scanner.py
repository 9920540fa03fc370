"""Tests for schema building and the page scanner."""
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from formbridge.extractor.models import PASSWORD_SENTINEL, ChoiceField, FormSchema
from formbridge.extractor.scanner import SCAN_SCRIPT, PageScanner, build_schema
from formbridge.templates.models import DetectedTemplate, TemplateCategory


class TestBuildSchema:
    """Tests for turning a scan result into a FormSchema."""

    def test_field_ids_are_unique(self, make_control, make_raw_page) -> None:
        raw = make_raw_page(
            forms=[
                [make_control(id="naam"), make_control(id="naam"), make_control()],
                [make_control(), make_control(id="naam")],
            ],
            standalone=[make_control(), make_control(id="zoek")],
        )
        schema = build_schema(raw)
        ids = schema.field_ids()

        assert len(ids) == 7
        assert len(set(ids)) == len(ids)
        assert ids[:3] == ["naam", "form0-field1", "form0-field2"]
        assert ids[-2:] == ["page-field0", "zoek"]

    def test_form_fields_before_standalone(self, make_control, make_raw_page) -> None:
        raw = make_raw_page(forms=[[make_control(id="a")]], standalone=[make_control(id="b")])
        schema = build_schema(raw)

        assert [f.form_index for f in schema.fields] == [0, None]

    def test_skipped_inputs_keep_field_index(self, make_control, make_raw_page) -> None:
        raw = make_raw_page(forms=[[make_control(type="hidden"), make_control()]])
        schema = build_schema(raw)

        assert schema.field_ids() == ["form0-field1"]

    def test_password_never_carries_real_value(self, make_control, make_raw_page) -> None:
        raw = make_raw_page(forms=[[make_control(id="wachtwoord", type="password", value="geheim123")]])
        schema = build_schema(raw)

        assert schema.fields[0].value == PASSWORD_SENTINEL
        assert "geheim123" not in schema.model_dump_json()

    def test_headings_errors_and_description(self, make_raw_page) -> None:
        raw = make_raw_page(
            headings=[{"level": "h1", "text": " Verhuizing \n doorgeven "}, {"level": "H2", "text": ""}],
            errors=["Postcode is verplicht", "  Postcode is verplicht ", ""],
            text="word " * 1000,
        )
        schema = build_schema(raw, description_limit=50)

        assert [(h.level, h.text) for h in schema.headings] == [("H1", "Verhuizing doorgeven")]
        assert schema.validation_errors == ["Postcode is verplicht"]
        assert len(schema.page_description) <= 50

    def test_select_becomes_choice(self, make_control, make_raw_page) -> None:
        raw = make_raw_page(forms=[[make_control(
            tag="select", type="select-one", id="geslacht",
            options=[{"value": "M", "text": "Man"}, {"value": "V", "text": "Vrouw"}],
        )]])
        field = build_schema(raw).fields[0]

        assert isinstance(field, ChoiceField)
        assert field.option_texts() == ["Man", "Vrouw"]

    def test_captured_at_override(self, make_raw_page) -> None:
        at = datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert build_schema(make_raw_page(), captured_at=at).captured_at == at

    def test_empty_page(self, make_raw_page) -> None:
        schema = build_schema(make_raw_page(title="", text=""))

        assert schema.fields == []
        assert schema.has_content is False


class TestFormSchema:
    """Tests for schema immutability and enrichment."""

    def test_schema_is_frozen(self, make_raw_page) -> None:
        schema = build_schema(make_raw_page())
        with pytest.raises(ValidationError):
            schema.title = "changed"

    def test_with_template_returns_new_schema(self, make_raw_page) -> None:
        schema = build_schema(make_raw_page())
        detected = DetectedTemplate(
            id="gemeente-registration",
            name_en="Municipality Registration",
            name_nl="Gemeente Inschrijving",
            category=TemplateCategory.GOVERNMENT,
        )
        enriched = schema.with_template(detected)

        assert enriched is not schema
        assert schema.detected_template is None
        assert enriched.detected_template == detected

    def test_json_round_trip_keeps_variants(self, make_control, make_raw_page) -> None:
        raw = make_raw_page(forms=[[
            make_control(id="naam"),
            make_control(tag="select", type="select-one", id="land", options=[{"value": "NL", "text": "NL"}]),
            make_control(type="checkbox", id="ok", checked=True),
        ]])
        schema = build_schema(raw)
        restored = FormSchema.model_validate_json(schema.model_dump_json())

        assert [f.kind for f in restored.fields] == ["text", "choice", "toggle"]
        assert restored == schema


class TestPageScanner:
    """Tests for the live-page scanner."""

    def test_scan_evaluates_script_once(self, make_page, make_control, make_raw_page) -> None:
        page = make_page(scan=make_raw_page(forms=[[make_control(id="voornaam")]]))
        schema = PageScanner(page).scan()

        page.raw.evaluate.assert_called_once_with(SCAN_SCRIPT)
        assert schema.field_ids() == ["voornaam"]
        assert schema.url == "https://www.gemeente.nl/inschrijving"

    def test_scan_never_writes(self, make_page, make_raw_page) -> None:
        page = make_page(scan=make_raw_page())
        PageScanner(page).scan()

        page.raw.fill.assert_not_called()
        page.raw.click.assert_not_called()
