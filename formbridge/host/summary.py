"""Plain-text renderings handed to the orchestrator."""
from itertools import groupby

from ..extractor.models import PASSWORD_SENTINEL, BaseFormField, ChoiceField, FormSchema
from .coordinator import FillReport


def _field_line(field: BaseFormField) -> list[str]:
    flags = []
    if field.required:
        flags.append("*required*")
    if field.disabled:
        flags.append("disabled")
    if field.readonly:
        flags.append("readonly")
    line = f"  - {field.display_name} [id={field.id}] ({field.type})"
    if flags:
        line += " " + " ".join(flags)
    if field.value and field.value != PASSWORD_SENTINEL:
        line += f' [current: "{field.value}"]'

    lines = [line]
    if isinstance(field, ChoiceField) and field.options:
        texts = [t for t in field.option_texts() if t]
        lines.append(f"    Options: {', '.join(texts)}")
    return lines


def format_schema_for_agent(schema: FormSchema) -> str:
    """Describe a capture for the orchestrator.

    Args:
        schema: Captured form schema.

    Returns:
        Multi-line text: page, detected form, errors, sections, fields.
    """
    lines = [f"Page: {schema.title}", f"URL: {schema.url}"]
    detected = schema.detected_template
    if detected is not None:
        lines.append(f"Detected form: {detected.name_en} ({detected.name_nl}), {detected.category.value}")
    lines.append("")

    if schema.validation_errors:
        lines.append("Validation errors:")
        lines.extend(f"  - {e}" for e in schema.validation_errors)
        lines.append("")

    if schema.headings:
        lines.append("Page sections:")
        lines.extend(f"  {h.level}: {h.text}" for h in schema.headings)
        lines.append("")

    for form_index, group in groupby(schema.fields, key=lambda f: f.form_index):
        fields = list(group)
        if form_index is None:
            lines.append("Other input fields:")
        else:
            lines.append(f"Form {form_index + 1} ({len(fields)} fields):")
        for f in fields:
            lines.extend(_field_line(f))
        lines.append("")

    if not schema.fields:
        lines.append("No form fields found.")
        lines.append("")

    if schema.page_description:
        lines.append("Page text:")
        lines.append(schema.page_description)

    return "\n".join(lines).rstrip()


def summarize_fill(report: FillReport) -> str:
    """Human-readable fill outcome, one line per problem field."""
    if report.error:
        return f"Fill failed: {report.error}"
    lines = [report.summary]
    for result in report.failed:
        detail = f" ({result.detail})" if result.detail else ""
        lines.append(f"  - {result.field}: {result.status.value}{detail}")
    for field_id, token in report.unresolved.items():
        lines.append(f"  - {field_id}: needs {token.value}, ask the user")
    return "\n".join(lines)
