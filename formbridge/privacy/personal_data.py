"""The user's personal data, held only inside the host process."""
import logging
from pathlib import Path
from typing import Any, Optional, Protocol

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)


class PersonalDataProvider(Protocol):
    """Read-only lookup of a literal by semantic key."""

    def get(self, key: str) -> Optional[str]:
        ...


class PersonalDataRecord(BaseModel):
    """Flat semantic-key to literal mapping.

    The repr never shows values so a record can't leak through logging.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", hide_input_in_errors=True)

    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    birth_place: str = ""
    nationality: str = ""
    gender: str = ""
    street: str = ""
    house_number: str = ""
    postcode: str = ""
    city: str = ""
    phone: str = ""
    email: str = ""
    bsn: str = ""
    iban: str = ""
    document_number: str = ""
    move_date: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_to_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    def get(self, key: str) -> Optional[str]:
        """Literal for a semantic key, or None when absent or empty."""
        value = getattr(self, key, None) if key in type(self).model_fields else None
        return value or None

    def filled_keys(self) -> list[str]:
        return [k for k in type(self).model_fields if getattr(self, k)]

    def literals(self) -> set[str]:
        """All non-empty literal values."""
        return {getattr(self, k) for k in self.filled_keys()}

    def __repr__(self) -> str:
        return f"PersonalDataRecord(keys={self.filled_keys()})"

    __str__ = __repr__


def load_personal_data(path: Path) -> PersonalDataRecord:
    """Load personal data from a YAML file.

    Args:
        path: Path to the personal data YAML file.

    Returns:
        PersonalDataRecord with the loaded values.
    """
    logger.info(f"Loading personal data from {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    record = PersonalDataRecord(**data)
    logger.info(f"Personal data has {len(record.filled_keys())} filled keys")
    return record
