"""Static library of known form templates."""
import logging
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, model_validator

from ..privacy.tokens import TOKEN_TO_PERSONAL_KEY
from .models import FormTemplate, TemplateCategory

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_PATH = Path(__file__).parent / "data" / "templates.yaml"


class TemplateLibrary(BaseModel):
    """Ordered, versioned set of templates.

    Order is the match order: ``TemplateMatcher`` returns the first template
    whose URL patterns match.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    templates: list[FormTemplate]

    @model_validator(mode="after")
    def _check_templates(self) -> "TemplateLibrary":
        seen: set[str] = set()
        for template in self.templates:
            if template.id in seen:
                raise ValueError(f"Duplicate template id: {template.id}")
            seen.add(template.id)
            for pattern in template.url_patterns:
                try:
                    re.compile(pattern)
                except re.error as e:
                    raise ValueError(f"Bad URL pattern in {template.id}: {pattern} ({e})") from e
        return self

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "TemplateLibrary":
        """Load templates from YAML.

        Args:
            path: Template file. Defaults to the bundled library.

        Returns:
            TemplateLibrary in file order.
        """
        path = path or DEFAULT_TEMPLATES_PATH
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        library = cls(**data)
        logger.info(f"Loaded {len(library.templates)} form templates (v{library.version}) from {path.name}")
        return library

    def __len__(self) -> int:
        return len(self.templates)

    def get(self, template_id: str) -> Optional[FormTemplate]:
        """Get template by id."""
        for template in self.templates:
            if template.id == template_id:
                return template
        return None

    def by_category(self, category: TemplateCategory) -> list[FormTemplate]:
        return [t for t in self.templates if t.category == category]

    def required_personal_keys(self, template: FormTemplate) -> list[str]:
        """Personal-data keys a template needs, in first-seen order."""
        keys: list[str] = []
        for mapping in template.fields:
            key = TOKEN_TO_PERSONAL_KEY[mapping.placeholder]
            if mapping.required and key not in keys:
                keys.append(key)
        return keys

    def all_personal_keys(self) -> list[str]:
        keys: list[str] = []
        for template in self.templates:
            for mapping in template.fields:
                key = TOKEN_TO_PERSONAL_KEY[mapping.placeholder]
                if key not in keys:
                    keys.append(key)
        return keys


_default_library: Optional[TemplateLibrary] = None


def get_default_library() -> TemplateLibrary:
    """Process-wide template library, loaded on first use."""
    global _default_library
    if _default_library is None:
        _default_library = TemplateLibrary.load()
    return _default_library
