"""Turning raw element records into typed form fields.

The collection script returns plain dicts describing each control. Every
rule that decides what a control *is* (whether it's captured, which variant
it becomes, its label, its id, its value) lives here as a plain function so
it can be exercised without a browser.
"""
import re
from enum import Enum
from typing import Any, Optional

from .models import (
    PASSWORD_SENTINEL,
    BaseFormField,
    ChoiceField,
    FieldOption,
    TextLikeField,
    ToggleField,
)

SKIPPED_INPUT_TYPES = frozenset({"hidden", "submit", "button", "reset", "image"})
TOGGLE_INPUT_TYPES = frozenset({"checkbox", "radio"})
LABEL_LIKE_TAGS = frozenset({"label", "span", "div"})
MAX_SIBLING_LABEL_LENGTH = 100

_WHITESPACE = re.compile(r"\s+")
SYNTHETIC_ID = re.compile(r"^(?:form\d+-field\d+|page-field\d+)(?:-\d+)?$")


class FieldKind(Enum):
    """Capability variants of a captured field."""
    TEXT = "text"
    CHOICE = "choice"
    TOGGLE = "toggle"


class LabelSource(Enum):
    """Keys of the label candidates gathered for each control."""
    LABEL_FOR = "labelFor"
    ANCESTOR_LABEL = "ancestorLabel"
    ARIA_LABEL = "ariaLabel"
    PREVIOUS_SIBLING = "previousSibling"
    ARIA_LABELLEDBY = "ariaLabelledBy"


# First non-empty candidate wins.
LABEL_RESOLUTION_ORDER: tuple[LabelSource, ...] = (
    LabelSource.LABEL_FOR,
    LabelSource.ANCESTOR_LABEL,
    LabelSource.ARIA_LABEL,
    LabelSource.PREVIOUS_SIBLING,
    LabelSource.ARIA_LABELLEDBY,
)


def clean_text(text: Any) -> Optional[str]:
    """Collapse whitespace; None for empty or non-string input."""
    if not isinstance(text, str):
        return None
    cleaned = _WHITESPACE.sub(" ", text).strip()
    return cleaned or None


def input_type(raw: dict[str, Any]) -> str:
    """Lower-cased input type, falling back to the tag name."""
    tag = (raw.get("tag") or "").lower()
    kind = (raw.get("type") or "").lower()
    if tag == "textarea":
        return "textarea"
    return kind or tag or "text"


def is_capturable(raw: dict[str, Any]) -> bool:
    """Whether a control is a fillable field at all."""
    tag = (raw.get("tag") or "").lower()
    if tag not in ("input", "select", "textarea"):
        return False
    return input_type(raw) not in SKIPPED_INPUT_TYPES


def field_kind(raw: dict[str, Any]) -> FieldKind:
    tag = (raw.get("tag") or "").lower()
    if tag == "select":
        return FieldKind.CHOICE
    if tag == "input" and input_type(raw) in TOGGLE_INPUT_TYPES:
        return FieldKind.TOGGLE
    return FieldKind.TEXT


def _sibling_label(candidate: Any) -> Optional[str]:
    if not isinstance(candidate, dict):
        return None
    if (candidate.get("tag") or "").lower() not in LABEL_LIKE_TAGS:
        return None
    text = clean_text(candidate.get("text"))
    if text and len(text) < MAX_SIBLING_LABEL_LENGTH:
        return text
    return None


def resolve_label(candidates: Optional[dict[str, Any]]) -> Optional[str]:
    """Pick the human label for a control from its candidates.

    Args:
        candidates: Mapping of ``LabelSource`` value to raw text (or, for
            the previous sibling, a ``{"tag", "text"}`` dict).

    Returns:
        The first usable label in ``LABEL_RESOLUTION_ORDER``, else None.
    """
    if not candidates:
        return None
    for source in LABEL_RESOLUTION_ORDER:
        value = candidates.get(source.value)
        if source is LabelSource.PREVIOUS_SIBLING:
            label = _sibling_label(value)
        else:
            label = clean_text(value)
        if label:
            return label
    return None


def captured_value(raw: dict[str, Any]) -> Optional[str]:
    """Field value as it may leave the page; passwords become the sentinel."""
    if input_type(raw) == "password":
        return PASSWORD_SENTINEL
    value = raw.get("value")
    return value if isinstance(value, str) else None


def parse_options(raw: dict[str, Any]) -> list[FieldOption]:
    options = []
    for opt in raw.get("options") or []:
        value = opt.get("value")
        text = clean_text(opt.get("text")) or ""
        options.append(
            FieldOption(
                value=value if isinstance(value, str) else text,
                text=text,
                selected=bool(opt.get("selected")),
            )
        )
    return options


class FieldIdAllocator:
    """Hands out field ids that are unique within one capture.

    The DOM id is used when present and unused; otherwise a synthetic
    ``form{i}-field{j}`` (or ``page-field{j}`` outside any form) token.
    Names are never assumed to be unique.
    """

    def __init__(self) -> None:
        self._used: set[str] = set()

    def allocate(self, dom_id: Optional[str], form_index: Optional[int], field_index: int) -> str:
        if dom_id and dom_id not in self._used:
            self._used.add(dom_id)
            return dom_id
        if form_index is None:
            base = f"page-field{field_index}"
        else:
            base = f"form{form_index}-field{field_index}"
        candidate = base
        suffix = 1
        while candidate in self._used:
            suffix += 1
            candidate = f"{base}-{suffix}"
        self._used.add(candidate)
        return candidate


def classify_field(
    raw: dict[str, Any], field_id: str, form_index: Optional[int] = None
) -> BaseFormField:
    """Build the typed field variant for one raw control record."""
    common = dict(
        id=field_id,
        name=clean_text(raw.get("name")),
        type=input_type(raw),
        tag=(raw.get("tag") or "input").lower(),
        label=resolve_label(raw.get("labels")),
        placeholder=clean_text(raw.get("placeholder")),
        required=bool(raw.get("required")),
        value=captured_value(raw),
        selector=raw.get("selector") or f'[id="{field_id}"]',
        disabled=bool(raw.get("disabled")),
        readonly=bool(raw.get("readonly")),
        form_index=form_index,
    )
    match field_kind(raw):
        case FieldKind.CHOICE:
            return ChoiceField(options=parse_options(raw), **common)
        case FieldKind.TOGGLE:
            return ToggleField(checked=bool(raw.get("checked")), **common)
        case _:
            return TextLikeField(**common)


def is_synthetic_id(field_id: str) -> bool:
    """True for ids handed out by ``FieldIdAllocator`` rather than the DOM."""
    return bool(SYNTHETIC_ID.match(field_id))
