"""Tests for fill coordination around the privacy boundary."""
from pathlib import Path
from typing import Optional
from unittest.mock import Mock

import pytest

from formbridge.executor.models import FillResult, FillStatus
from formbridge.extractor.scanner import build_schema
from formbridge.host import CaptureStore, ExtensionBridge, FillCoordinator
from formbridge.host.coordinator import AMBIGUOUS_SELECTOR
from formbridge.privacy import LiteralFillRequest, PersonalDataRecord, PlaceholderToken, TokenFillProposal
from formbridge.protocol import CaptureResponse, ExtensionRuntime, FillResponse
from formbridge.relay import ExtensionRelay
from formbridge.templates.matcher import TemplateMatcher


class Recorder:
    """Stands in for the relay: records requests and fills everything."""

    def __init__(self, capture: Optional[CaptureResponse] = None) -> None:
        self.capture_response = capture
        self.requests: list[LiteralFillRequest] = []
        self.fill_response: Optional[FillResponse] = None

    def capture(self) -> Optional[CaptureResponse]:
        return self.capture_response

    def dispatch(self, request: LiteralFillRequest) -> Optional[FillResponse]:
        self.requests.append(request)
        if self.fill_response is not None:
            return self.fill_response
        return FillResponse(results=[
            FillResult(field=key, status=FillStatus.FILLED) for key in request.field_mappings
        ])


@pytest.fixture
def gemeente_schema(make_control, make_raw_page):
    return build_schema(make_raw_page(
        url="https://www.gemeente.nl/inschrijving",
        forms=[[
            make_control(id="voornaam", labels={"labelFor": "Voornaam"}),
            make_control(id="bsn"),
            make_control(selector="form > input:nth-of-type(3)", labels={"ariaLabel": "Postcode"}),
            make_control(
                tag="select", type="select-one", id="nationaliteit",
                options=[{"value": "", "text": "Kies"}, {"value": "0001", "text": "Nederlandse"}],
            ),
        ]],
    ))


def coordinator_for(recorder: Recorder, record: PersonalDataRecord, **kwargs) -> FillCoordinator:
    return FillCoordinator(capture=recorder.capture, dispatch=recorder.dispatch, record=record, **kwargs)


class TestCapture:
    """Tests for capturing through the coordinator."""

    def test_capture_records_schema(self, gemeente_schema, record, tmp_path: Path) -> None:
        store = CaptureStore(tmp_path / "captures.json")
        coordinator = coordinator_for(Recorder(CaptureResponse(form_schema=gemeente_schema)), record, store=store)

        assert coordinator.capture() == gemeente_schema
        assert coordinator.schema == gemeente_schema
        assert store.latest() == gemeente_schema

    def test_capture_failure(self, record) -> None:
        coordinator = coordinator_for(Recorder(CaptureResponse.failure("No active tab found")), record)

        assert coordinator.capture() is None
        assert coordinator.last_error == "No active tab found"

    def test_capture_timeout(self, record) -> None:
        coordinator = coordinator_for(Recorder(None), record)

        assert coordinator.capture() is None
        assert coordinator.last_error == "Capture timed out"


class TestFill:
    """Tests for substitution and dispatch."""

    def test_unresolved_fields_are_withheld(self, gemeente_schema, record) -> None:
        recorder = Recorder()
        coordinator = coordinator_for(recorder, record)
        proposal = TokenFillProposal(mappings={"voornaam": "[FIRST_NAME]", "bsn": "[BSN]"})

        report = coordinator.fill(proposal, gemeente_schema)

        assert recorder.requests[0].field_mappings == {"voornaam": "Jan"}
        assert report.unresolved == {"bsn": PlaceholderToken.BSN}
        assert report.needs_input
        assert report.summary == "1 filled, 0 failed"

    def test_nothing_resolved_dispatches_nothing(self, gemeente_schema) -> None:
        recorder = Recorder()
        coordinator = coordinator_for(recorder, PersonalDataRecord())

        report = coordinator.fill(TokenFillProposal(mappings={"voornaam": "[FIRST_NAME]"}), gemeente_schema)

        assert recorder.requests == []
        assert report.summary == "0 filled, 0 failed"
        assert list(report.unresolved) == ["voornaam"]

    def test_synthetic_ids_sent_as_selectors(self, gemeente_schema, record) -> None:
        recorder = Recorder()
        coordinator = coordinator_for(recorder, record)

        report = coordinator.fill(TokenFillProposal(mappings={"form0-field2": "[POSTCODE]"}), gemeente_schema)

        assert recorder.requests[0].field_mappings == {"form > input:nth-of-type(3)": "1015CJ"}
        assert report.filled == ["form0-field2"]

    def test_duplicate_dom_id_never_overwrites_first_field(self, make_control, make_raw_page, record) -> None:
        schema = build_schema(make_raw_page(forms=[[
            make_control(id="naam", selector='[id="naam"]'),
            make_control(id="naam", selector='[id="naam"]'),
        ]]))
        ids = schema.field_ids()
        recorder = Recorder()
        coordinator = coordinator_for(recorder, record)

        report = coordinator.fill(
            TokenFillProposal(mappings={ids[0]: "[FIRST_NAME]", ids[1]: "[LAST_NAME]"}), schema
        )

        assert ids == ["naam", "form0-field1"]
        assert recorder.requests[0].field_mappings == {"naam": "Jan"}
        assert report.filled == ["naam"]
        assert [(r.field, r.status, r.detail) for r in report.failed] == [
            ("form0-field1", FillStatus.ERROR, AMBIGUOUS_SELECTOR)
        ]

    def test_duplicate_dom_id_with_path_selector_is_sent(self, make_control, make_raw_page, record) -> None:
        schema = build_schema(make_raw_page(forms=[[
            make_control(id="naam", selector='[id="naam"]'),
            make_control(id="naam", selector="form:nth-of-type(1) > input:nth-of-type(2)"),
        ]]))
        recorder = Recorder()
        coordinator = coordinator_for(recorder, record)

        report = coordinator.fill(
            TokenFillProposal(mappings={"naam": "[FIRST_NAME]", "form0-field1": "[LAST_NAME]"}), schema
        )

        assert recorder.requests[0].field_mappings == {
            "naam": "Jan",
            "form:nth-of-type(1) > input:nth-of-type(2)": "Jansen",
        }
        assert report.filled == ["naam", "form0-field1"]

    def test_choice_literal_adapted_to_option(self, gemeente_schema, record) -> None:
        recorder = Recorder()
        coordinator = coordinator_for(recorder, record)

        coordinator.fill(TokenFillProposal(mappings={"nationaliteit": "[NATIONALITY]"}), gemeente_schema)

        assert recorder.requests[0].field_mappings == {"nationaliteit": "0001"}

    def test_partial_failure_summary(self, gemeente_schema, record) -> None:
        recorder = Recorder()
        recorder.fill_response = FillResponse(results=[
            FillResult(field="voornaam", status=FillStatus.FILLED),
            FillResult(field="nationaliteit", status=FillStatus.NOT_FOUND, detail="Field not found"),
        ])
        coordinator = coordinator_for(recorder, record)

        report = coordinator.fill(
            TokenFillProposal(mappings={"voornaam": "[FIRST_NAME]", "nationaliteit": "[NATIONALITY]"}),
            gemeente_schema,
        )

        assert report.summary == "1 filled, 1 failed"
        assert report.failed[0].field == "nationaliteit"

    def test_fill_timeout(self, gemeente_schema, record) -> None:
        coordinator = FillCoordinator(capture=Mock(), dispatch=Mock(return_value=None), record=record)

        report = coordinator.fill(TokenFillProposal(mappings={"voornaam": "[FIRST_NAME]"}), gemeente_schema)

        assert report.error == "Fill timed out"
        assert report.results == []


class TestTemplateProposal:
    """Tests for template-driven proposals."""

    def test_propose_from_template(self, gemeente_schema, record) -> None:
        coordinator = coordinator_for(Recorder(), record, matcher=TemplateMatcher())

        proposal = coordinator.propose_from_template(gemeente_schema)

        assert proposal.mappings["voornaam"] is PlaceholderToken.FIRST_NAME
        assert proposal.mappings["nationaliteit"] is PlaceholderToken.NATIONALITY

    def test_no_template_no_proposal(self, make_raw_page, record) -> None:
        schema = build_schema(make_raw_page(url="https://example.com"))
        coordinator = coordinator_for(Recorder(), record, matcher=TemplateMatcher())

        assert coordinator.propose_from_template(schema) is None

    def test_no_literals_reach_matcher_or_proposal(self, gemeente_schema) -> None:
        record = PersonalDataRecord(first_name="Wilhelmina", postcode="9999ZZ", nationality="Dutch")
        matcher = Mock(wraps=TemplateMatcher())
        coordinator = coordinator_for(Recorder(), record, matcher=matcher)

        proposal = coordinator.propose_from_template(gemeente_schema)
        coordinator.fill(proposal, gemeente_schema)

        seen = proposal.model_dump_json() + "".join(
            str(arg.model_dump_json() if hasattr(arg, "model_dump_json") else arg)
            for call in matcher.match.call_args_list
            for arg in call.args
        )
        for literal in record.literals():
            assert literal not in seen


class TestEndToEnd:
    """Capture, propose and fill through a live relay."""

    def test_capture_propose_fill(self, fake_tabs, make_page, make_control, make_raw_page, record) -> None:
        page = make_page(scan=make_raw_page(
            url="https://www.gemeente.nl/inschrijving",
            forms=[[make_control(id="voornaam"), make_control(id="achternaam"), make_control(id="bsn")]],
        ))
        written: dict[str, str] = {}

        def _locator(selector: str) -> Mock:
            locator = Mock()
            locator.first = locator
            locator.count = Mock(return_value=1 if selector.startswith("[id=") else 0)
            locator.evaluate = Mock(side_effect=lambda script, value: written.__setitem__(selector, value))
            return locator

        page.raw.locator = Mock(side_effect=_locator)
        matcher = TemplateMatcher()
        relay = ExtensionRelay(tabs_factory=lambda: fake_tabs(page), matcher=matcher)
        runtime = ExtensionRuntime()
        runtime.install(relay.extension_id, relay)
        relay.start()
        try:
            bridge = ExtensionBridge(runtime, relay.extension_id)
            bridge.connect()
            coordinator = FillCoordinator(bridge.capture_page, bridge.fill_form, record, matcher=matcher)

            schema = coordinator.capture()
            report = coordinator.fill(coordinator.propose_from_template(schema))
        finally:
            relay.stop()

        assert schema.detected_template.id == "gemeente-registration"
        assert written == {'[id="voornaam"]': "Jan", '[id="achternaam"]': "Jansen"}
        assert sorted(report.filled) == ["achternaam", "voornaam"]
        assert report.unresolved == {}
