"""Form structure capture: typed field models, classifier and page scanner."""
from .models import (
    PASSWORD_SENTINEL,
    BaseFormField,
    ChoiceField,
    FieldOption,
    FormField,
    FormSchema,
    Heading,
    TextLikeField,
    ToggleField,
)
from .classifier import FieldKind, classify_field, is_synthetic_id, resolve_label
from .scanner import PageScanner, build_schema

__all__ = [
    "PASSWORD_SENTINEL",
    "BaseFormField",
    "ChoiceField",
    "FieldOption",
    "FormField",
    "FormSchema",
    "Heading",
    "TextLikeField",
    "ToggleField",
    "FieldKind",
    "classify_field",
    "is_synthetic_id",
    "resolve_label",
    "PageScanner",
    "build_schema",
]
