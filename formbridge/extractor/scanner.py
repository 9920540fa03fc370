"""Page scanner: one read-only pass over the DOM producing a FormSchema."""
import logging
from datetime import datetime
from typing import Any, Optional

from ..browser.page import Page
from .classifier import FieldIdAllocator, classify_field, clean_text, is_capturable
from .models import FormSchema, Heading

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION_LIMIT = 1500

# Collects raw records only. Password values are never read.
SCAN_SCRIPT = """
() => {
    const CONTROLS = 'input, select, textarea';

    // Only ids that occur once in the document can anchor a selector.
    function uniqueIdSelector(node) {
        if (!node.id) return null;
        const sel = `[id="${CSS.escape(node.id)}"]`;
        return document.querySelectorAll(sel).length === 1 ? sel : null;
    }

    function selectorFor(el) {
        const own = uniqueIdSelector(el);
        if (own) return own;
        const path = [];
        let node = el;
        while (node && node.nodeType === Node.ELEMENT_NODE) {
            const anchor = uniqueIdSelector(node);
            if (anchor) {
                path.unshift(anchor);
                break;
            }
            let part = node.nodeName.toLowerCase();
            let nth = 1, sib = node;
            while ((sib = sib.previousElementSibling)) {
                if (sib.nodeName === node.nodeName) nth++;
            }
            part += `:nth-of-type(${nth})`;
            path.unshift(part);
            node = node.parentElement;
        }
        return path.join(' > ');
    }

    function labelCandidates(el) {
        const out = {};
        if (el.id) {
            const forLabel = document.querySelector(`label[for="${CSS.escape(el.id)}"]`);
            if (forLabel) out.labelFor = forLabel.textContent;
        }
        const parent = el.closest('label');
        if (parent) {
            const clone = parent.cloneNode(true);
            clone.querySelectorAll(CONTROLS).forEach(c => c.remove());
            out.ancestorLabel = clone.textContent;
        }
        const aria = el.getAttribute('aria-label');
        if (aria) out.ariaLabel = aria;
        const prev = el.previousElementSibling;
        if (prev) out.previousSibling = { tag: prev.tagName.toLowerCase(), text: prev.textContent };
        const labelledBy = el.getAttribute('aria-labelledby');
        if (labelledBy) {
            const target = document.getElementById(labelledBy.split(/\\s+/)[0]);
            if (target) out.ariaLabelledBy = target.textContent;
        }
        return out;
    }

    function describe(el) {
        const tag = el.tagName.toLowerCase();
        const type = (el.getAttribute('type') || el.type || tag).toLowerCase();
        const toggle = type === 'checkbox' || type === 'radio';
        const info = {
            tag: tag,
            type: tag === 'textarea' ? 'textarea' : type,
            id: el.id || null,
            name: el.getAttribute('name'),
            placeholder: el.getAttribute('placeholder'),
            required: el.required || el.getAttribute('aria-required') === 'true',
            value: type === 'password' ? null : (el.value ?? null),
            checked: toggle ? el.checked : null,
            disabled: !!el.disabled,
            readonly: !!el.readOnly,
            selector: selectorFor(el),
            labels: labelCandidates(el),
        };
        if (tag === 'select') {
            info.options = Array.from(el.options).map(o => ({
                value: o.value, text: o.text, selected: o.selected,
            }));
        }
        return info;
    }

    const forms = Array.from(document.querySelectorAll('form')).map(
        form => Array.from(form.querySelectorAll(CONTROLS)).map(describe)
    );
    const standalone = Array.from(document.querySelectorAll(CONTROLS))
        .filter(el => !el.closest('form'))
        .map(describe);

    const headings = Array.from(document.querySelectorAll('h1, h2, h3'))
        .map(h => ({ level: h.tagName, text: h.textContent }));

    const errors = Array.from(document.querySelectorAll(
        '.error, .alert-error, [role="alert"], .validation-error, .field-error'
    )).map(e => e.textContent);

    const main = document.querySelector('main, article, [role="main"], .main-content, #main')
        || document.body;

    return {
        url: window.location.href,
        title: document.title,
        forms: forms,
        standalone: standalone,
        headings: headings,
        errors: errors,
        text: main ? main.innerText || main.textContent || '' : '',
    };
}
"""


def build_schema(
    raw: dict[str, Any],
    description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
    captured_at: Optional[datetime] = None,
) -> FormSchema:
    """Build a FormSchema from the collection script's output.

    Form fields come first in document order, then fields outside any form.

    Args:
        raw: Result of ``SCAN_SCRIPT``.
        description_limit: Maximum length of ``page_description``.
        captured_at: Capture timestamp; defaults to now.

    Returns:
        A new, immutable FormSchema.
    """
    ids = FieldIdAllocator()
    fields = []

    for form_index, controls in enumerate(raw.get("forms") or []):
        for field_index, control in enumerate(controls):
            if not is_capturable(control):
                continue
            field_id = ids.allocate(control.get("id"), form_index, field_index)
            fields.append(classify_field(control, field_id, form_index))

    for field_index, control in enumerate(raw.get("standalone") or []):
        if not is_capturable(control):
            continue
        field_id = ids.allocate(control.get("id"), None, field_index)
        fields.append(classify_field(control, field_id))

    headings = []
    for h in raw.get("headings") or []:
        text = clean_text(h.get("text"))
        if text:
            headings.append(Heading(level=str(h.get("level") or "").upper(), text=text))

    errors = [e for e in (clean_text(t) for t in raw.get("errors") or []) if e]
    description = (clean_text(raw.get("text")) or "")[:description_limit].strip()

    extra = {"captured_at": captured_at} if captured_at else {}
    return FormSchema(
        url=raw.get("url") or "",
        title=clean_text(raw.get("title")) or "",
        fields=fields,
        headings=headings,
        page_description=description,
        validation_errors=list(dict.fromkeys(errors)),
        **extra,
    )


class PageScanner:
    """Captures the form structure of a live page."""

    def __init__(self, page: Page, description_limit: int = DEFAULT_DESCRIPTION_LIMIT) -> None:
        """Initialize page scanner.

        Args:
            page: Page wrapper instance.
            description_limit: Maximum length of the page description.
        """
        self._page = page
        self._description_limit = description_limit

    def scan(self) -> FormSchema:
        """Run one pass over the current DOM.

        Returns:
            FormSchema for the page as it is right now.
        """
        logger.info(f"Scanning form structure of {self._page.url}")
        raw = self._page.raw.evaluate(SCAN_SCRIPT)
        schema = build_schema(raw, self._description_limit)
        logger.info(f"Captured {len(schema.fields)} fields, {len(schema.headings)} headings")
        return schema
