"""Form template reference data and match results."""
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ..privacy.tokens import PlaceholderToken, parse_token


class TemplateCategory(str, Enum):
    """Kinds of forms covered by the template library."""
    GOVERNMENT = "government"
    FINANCE = "finance"
    HEALTHCARE = "healthcare"
    UTILITIES = "utilities"


CATEGORY_LABELS: dict[TemplateCategory, dict[str, str]] = {
    TemplateCategory.GOVERNMENT: {"nl": "Overheid", "en": "Government"},
    TemplateCategory.FINANCE: {"nl": "Financiën", "en": "Finance"},
    TemplateCategory.HEALTHCARE: {"nl": "Zorg", "en": "Healthcare"},
    TemplateCategory.UTILITIES: {"nl": "Nutsvoorzieningen", "en": "Utilities"},
}


class FormFieldMapping(BaseModel):
    """A guessed field identifier and the token it stands for."""

    model_config = ConfigDict(frozen=True)

    form_field_id: str
    placeholder: PlaceholderToken
    required: bool = False
    description: str = ""

    @field_validator("placeholder", mode="before")
    @classmethod
    def _parse_placeholder(cls, value: object) -> PlaceholderToken:
        return parse_token(value)


class FormTemplate(BaseModel):
    """Static rule set for one known form."""

    model_config = ConfigDict(frozen=True)

    id: str
    name_nl: str
    name_en: str
    description: str = ""
    category: TemplateCategory
    url_patterns: list[str]
    fields: list[FormFieldMapping]
    tips: list[str] = []
    required_documents: list[str] = []


class DetectedTemplate(BaseModel):
    """Reference to the template a capture matched."""

    model_config = ConfigDict(frozen=True)

    id: str
    name_en: str
    name_nl: str
    category: TemplateCategory

    @classmethod
    def from_template(cls, template: FormTemplate) -> "DetectedTemplate":
        return cls(
            id=template.id,
            name_en=template.name_en,
            name_nl=template.name_nl,
            category=template.category,
        )


MatchedBy = Literal["id", "name", "label"]


class ResolvedMapping(BaseModel):
    """A template mapping bound to a captured field."""

    model_config = ConfigDict(frozen=True)

    form_field_id: str
    field_id: str
    placeholder: PlaceholderToken
    required: bool
    matched_by: MatchedBy


class FieldMapping(BaseModel):
    """Resolution table for one template against one schema."""

    model_config = ConfigDict(frozen=True)

    resolved: list[ResolvedMapping] = []
    missing: list[FormFieldMapping] = []

    def for_field(self, field_id: str) -> Optional[ResolvedMapping]:
        for entry in self.resolved:
            if entry.field_id == field_id:
                return entry
        return None

    @property
    def missing_required(self) -> list[FormFieldMapping]:
        return [m for m in self.missing if m.required]


class TemplateMatch(BaseModel):
    """Matcher output: the detected template and its field mapping."""

    model_config = ConfigDict(frozen=True)

    detected: DetectedTemplate
    mapping: FieldMapping
