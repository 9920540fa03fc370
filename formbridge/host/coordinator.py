"""Host-side fill orchestration around the privacy boundary."""
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..executor.filler import css_string
from ..executor.models import FillResult, FillStatus
from ..extractor.classifier import is_synthetic_id
from ..extractor.models import ChoiceField, FormSchema
from ..privacy.boundary import LiteralFillRequest, PrivacyBoundary, TokenFillProposal
from ..privacy.personal_data import PersonalDataProvider
from ..privacy.tokens import PlaceholderToken
from ..protocol.messages import CaptureResponse, FillResponse
from ..templates.matcher import TemplateMatcher
from .store import CaptureStore

logger = logging.getLogger(__name__)

CaptureFn = Callable[[], Optional[CaptureResponse]]
FillFn = Callable[[LiteralFillRequest], Optional[FillResponse]]

AMBIGUOUS_SELECTOR = "No unique selector for this field"


@dataclass
class FillReport:
    """What happened to one fill proposal."""
    results: list[FillResult] = field(default_factory=list)
    unresolved: dict[str, PlaceholderToken] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def filled(self) -> list[str]:
        return [r.field for r in self.results if r.status == FillStatus.FILLED]

    @property
    def failed(self) -> list[FillResult]:
        return [r for r in self.results if r.status != FillStatus.FILLED]

    @property
    def needs_input(self) -> bool:
        """Fields the user still has to provide values for."""
        return bool(self.unresolved)

    @property
    def summary(self) -> str:
        return f"{len(self.filled)} filled, {len(self.failed)} failed"


class FillCoordinator:
    """Owns the personal data and the only path from tokens to literals.

    Captures come in through ``capture``; fills go out through ``fill``.
    Nothing the orchestrator sees ever contains a literal.
    """

    def __init__(
        self,
        capture: CaptureFn,
        dispatch: FillFn,
        record: PersonalDataProvider,
        store: Optional[CaptureStore] = None,
        matcher: Optional[TemplateMatcher] = None,
    ) -> None:
        """Initialize coordinator.

        Args:
            capture: Requests a capture of the active page.
            dispatch: Sends a literal fill request to the page.
            record: The user's personal data.
            store: Persistence for captures.
            matcher: Template matcher used for proposals.
        """
        self._capture = capture
        self._dispatch = dispatch
        self._boundary = PrivacyBoundary(record)
        self._store = store
        self._matcher = matcher
        self._schema: Optional[FormSchema] = None
        self.last_error: Optional[str] = None

    @property
    def schema(self) -> Optional[FormSchema]:
        """The capture fills are resolved against."""
        if self._store is not None:
            return self._store.selected() or self._schema
        return self._schema

    def record_capture(self, schema: FormSchema) -> None:
        self._schema = schema
        if self._store is not None:
            self._store.add(schema)

    def capture(self) -> Optional[FormSchema]:
        """Capture the active page and keep the result.

        Returns:
            The new schema, or None on failure or timeout.
        """
        response = self._capture()
        if response is None:
            self.last_error = "Capture timed out"
            logger.warning(self.last_error)
            return None
        if not response.success or response.form_schema is None:
            self.last_error = response.error or "Capture returned no schema"
            logger.warning(f"Capture failed: {self.last_error}")
            return None

        self.last_error = None
        self.record_capture(response.form_schema)
        return response.form_schema

    def propose_from_template(self, schema: Optional[FormSchema] = None) -> Optional[TokenFillProposal]:
        """Token proposal from the template matching the capture, if any."""
        schema = schema or self.schema
        if schema is None or self._matcher is None:
            return None
        match = self._matcher.match(schema.url, schema)
        if match is None:
            return None
        return TemplateMatcher.propose_fill(match)

    def fill(self, proposal: TokenFillProposal, schema: Optional[FormSchema] = None) -> FillReport:
        """Substitute a proposal and dispatch what resolved.

        Fields whose personal data is missing are withheld and reported as
        unresolved. Synthetic field ids are sent as their captured selector;
        one without a unique selector is reported as an error and not sent.

        Args:
            proposal: Field id to placeholder token.
            schema: Capture the proposal refers to; defaults to the current one.

        Returns:
            FillReport with one result per dispatched field.
        """
        schema = schema or self.schema
        resolution = self._boundary.resolve(proposal, self._choice_options(schema))
        if resolution.unresolved:
            logger.info(f"Withholding {len(resolution.unresolved)} fields without personal data")

        targets, ambiguous = self._dispatch_keys(resolution.request.field_mappings.keys(), schema)
        skipped = [
            FillResult(field=field_id, status=FillStatus.ERROR, detail=AMBIGUOUS_SELECTOR)
            for field_id in ambiguous
        ]
        if ambiguous:
            logger.warning(f"Not filling {len(ambiguous)} fields without a unique selector: {ambiguous}")
        if not targets:
            return FillReport(results=skipped, unresolved=resolution.unresolved)

        request = LiteralFillRequest(field_mappings={
            key: resolution.request.field_mappings[field_id] for key, field_id in targets.items()
        })
        response = self._dispatch(request)
        if response is None:
            return FillReport(results=skipped, unresolved=resolution.unresolved, error="Fill timed out")
        if not response.success:
            return FillReport(results=skipped, unresolved=resolution.unresolved, error=response.error)

        results = [
            FillResult(field=targets.get(r.field, r.field), status=r.status, detail=r.detail)
            for r in response.results
        ]
        report = FillReport(results=results + skipped, unresolved=resolution.unresolved)
        logger.info(f"Fill report: {report.summary}")
        return report

    @staticmethod
    def _choice_options(schema: Optional[FormSchema]) -> dict[str, list[tuple[str, str]]]:
        if schema is None:
            return {}
        return {
            f.id: [(o.value, o.text) for o in f.options]
            for f in schema.fields
            if isinstance(f, ChoiceField)
        }

    @staticmethod
    def _dispatch_keys(field_ids, schema: Optional[FormSchema]) -> tuple[dict[str, str], list[str]]:
        """Map each field id to the key the page can resolve it by.

        A synthetic field whose selector addresses another captured field's
        DOM id, or whose key is already taken, would write into the wrong
        element. Such fields are returned as ambiguous and never sent.
        """
        dom_id_selectors = set()
        if schema is not None:
            dom_id_selectors = {
                f"[id={css_string(f.id)}]" for f in schema.fields if not is_synthetic_id(f.id)
            }

        targets: dict[str, str] = {}
        ambiguous: list[str] = []
        for field_id in field_ids:
            key = field_id
            captured = schema.get_field(field_id) if schema is not None else None
            if captured is not None and is_synthetic_id(field_id) and captured.selector:
                key = captured.selector
                if key in dom_id_selectors:
                    ambiguous.append(field_id)
                    continue
            if key in targets:
                ambiguous.append(field_id)
                continue
            targets[key] = field_id
        return targets, ambiguous
