"""Data models for captured form structure."""
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..templates.models import DetectedTemplate

# Password inputs are never captured with their real content.
PASSWORD_SENTINEL = "********"


class FieldOption(BaseModel):
    """One entry of an enumerable field."""

    model_config = ConfigDict(frozen=True)

    value: str
    text: str
    selected: bool = False


class Heading(BaseModel):
    """A page heading kept for context."""

    model_config = ConfigDict(frozen=True)

    level: str
    text: str


class BaseFormField(BaseModel):
    """Attributes shared by every captured field."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    type: str
    tag: str
    label: Optional[str] = None
    placeholder: Optional[str] = None
    required: bool = False
    value: Optional[str] = None
    selector: str
    disabled: bool = False
    readonly: bool = False
    form_index: Optional[int] = None

    @property
    def display_name(self) -> str:
        """Best human-readable name for the field."""
        return self.label or self.name or self.id


class TextLikeField(BaseFormField):
    """Free-text entry: text, email, date, textarea, password and similar."""

    kind: Literal["text"] = "text"


class ChoiceField(BaseFormField):
    """A select element with an ordered option list."""

    kind: Literal["choice"] = "choice"
    options: list[FieldOption] = []

    def option_texts(self) -> list[str]:
        return [o.text for o in self.options]


class ToggleField(BaseFormField):
    """A checkbox or radio input."""

    kind: Literal["toggle"] = "toggle"
    checked: bool = False


FormField = Annotated[
    Union[TextLikeField, ChoiceField, ToggleField],
    Field(discriminator="kind"),
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormSchema(BaseModel):
    """One capture of a page's form structure.

    Schemas are immutable. Enriching a schema with a detected template
    returns a new instance via ``with_template``.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    title: str
    captured_at: datetime = Field(default_factory=_utcnow)
    fields: list[FormField] = []
    headings: list[Heading] = []
    page_description: str = ""
    validation_errors: list[str] = []
    detected_template: Optional[DetectedTemplate] = None

    def field_ids(self) -> list[str]:
        return [f.id for f in self.fields]

    def get_field(self, field_id: str) -> Optional[BaseFormField]:
        """Look up a captured field by id."""
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def with_template(self, detected: Optional[DetectedTemplate]) -> "FormSchema":
        """Return a copy of this schema carrying the detected template."""
        return self.model_copy(update={"detected_template": detected})

    @property
    def has_content(self) -> bool:
        """Whether the capture is worth keeping (fields or page context)."""
        return bool(self.fields or self.headings or self.page_description)
