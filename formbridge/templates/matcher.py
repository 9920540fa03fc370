"""Template detection from URL patterns and field resolution."""
import logging
import re
from typing import Optional, Sequence

from ..extractor.models import BaseFormField, FormSchema
from ..privacy.boundary import TokenFillProposal
from .library import TemplateLibrary, get_default_library
from .models import (
    DetectedTemplate,
    FieldMapping,
    FormFieldMapping,
    FormTemplate,
    MatchedBy,
    ResolvedMapping,
    TemplateMatch,
)

logger = logging.getLogger(__name__)


def resolve_field(
    mapping: FormFieldMapping, fields: Sequence[BaseFormField]
) -> Optional[tuple[BaseFormField, MatchedBy]]:
    """Find the captured field a template mapping refers to.

    Tries exact id, then exact name, then a case-insensitive substring of
    the mapping id within the field label. Within each step the first field
    in capture order wins.
    """
    target = mapping.form_field_id
    for f in fields:
        if f.id == target:
            return f, "id"
    for f in fields:
        if f.name and f.name == target:
            return f, "name"
    lowered = target.lower()
    for f in fields:
        if f.label and lowered in f.label.lower():
            return f, "label"
    return None


def resolve_mapping(template: FormTemplate, fields: Sequence[BaseFormField]) -> FieldMapping:
    """Resolve every mapping of a template against captured fields."""
    resolved: list[ResolvedMapping] = []
    missing: list[FormFieldMapping] = []
    for mapping in template.fields:
        hit = resolve_field(mapping, fields)
        if hit is None:
            missing.append(mapping)
            continue
        field, matched_by = hit
        resolved.append(
            ResolvedMapping(
                form_field_id=mapping.form_field_id,
                field_id=field.id,
                placeholder=mapping.placeholder,
                required=mapping.required,
                matched_by=matched_by,
            )
        )
    return FieldMapping(resolved=resolved, missing=missing)


class TemplateMatcher:
    """Selects the template for a capture and maps its fields to tokens."""

    def __init__(self, library: Optional[TemplateLibrary] = None) -> None:
        self._library = library or get_default_library()
        self._compiled = [
            (template, [re.compile(p, re.IGNORECASE) for p in template.url_patterns])
            for template in self._library.templates
        ]

    @property
    def library(self) -> TemplateLibrary:
        return self._library

    def detect(self, url: str) -> Optional[FormTemplate]:
        """First template, in library order, with a pattern matching the URL."""
        for template, patterns in self._compiled:
            for pattern in patterns:
                if pattern.search(url):
                    return template
        return None

    def match(self, url: str, schema: FormSchema) -> Optional[TemplateMatch]:
        """Detect the template for a URL and resolve it against a schema.

        Args:
            url: Page URL.
            schema: Captured form schema.

        Returns:
            TemplateMatch, or None when no template applies.
        """
        template = self.detect(url)
        if template is None:
            logger.info("No form template matches this page")
            return None

        mapping = resolve_mapping(template, schema.fields)
        logger.info(
            f"Template detected: {template.id} "
            f"({len(mapping.resolved)} resolved, {len(mapping.missing)} missing)"
        )
        return TemplateMatch(detected=DetectedTemplate.from_template(template), mapping=mapping)

    def enrich(self, schema: FormSchema) -> FormSchema:
        """Copy of the schema with ``detected_template`` set (or None)."""
        match = self.match(schema.url, schema)
        return schema.with_template(match.detected if match else None)

    @staticmethod
    def propose_fill(match: TemplateMatch) -> TokenFillProposal:
        """Token proposal from a match; the first mapping per field wins."""
        mappings = {}
        for entry in match.mapping.resolved:
            mappings.setdefault(entry.field_id, entry.placeholder)
        return TokenFillProposal(mappings=mappings)
