"""Form template library and URL-based template detection.

``TemplateMatcher`` lives in ``formbridge.templates.matcher``; it depends on
the extractor models, which in turn reference ``DetectedTemplate`` here.
"""
from .models import (
    CATEGORY_LABELS,
    DetectedTemplate,
    FieldMapping,
    FormFieldMapping,
    FormTemplate,
    ResolvedMapping,
    TemplateCategory,
    TemplateMatch,
)
from .library import TemplateLibrary, get_default_library

__all__ = [
    "CATEGORY_LABELS",
    "DetectedTemplate",
    "FieldMapping",
    "FormFieldMapping",
    "FormTemplate",
    "ResolvedMapping",
    "TemplateCategory",
    "TemplateMatch",
    "TemplateLibrary",
    "get_default_library",
]
