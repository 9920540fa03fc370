"""Placeholder tokens: the only vocabulary allowed to cross into a fill request."""
import re
from enum import Enum
from typing import Union


class PlaceholderToken(str, Enum):
    """Semantic tag standing in for one category of personal data."""
    FIRST_NAME = "[FIRST_NAME]"
    LAST_NAME = "[LAST_NAME]"
    DOB = "[DOB]"
    BIRTH_PLACE = "[BIRTH_PLACE]"
    NATIONALITY = "[NATIONALITY]"
    GENDER = "[GENDER]"
    STREET = "[STREET]"
    HOUSE_NUMBER = "[HOUSE_NUMBER]"
    POSTCODE = "[POSTCODE]"
    CITY = "[CITY]"
    PHONE = "[PHONE]"
    EMAIL = "[EMAIL]"
    BSN = "[BSN]"
    IBAN = "[IBAN]"
    DOCUMENT_NUMBER = "[DOCUMENT_NUMBER]"
    MOVE_DATE = "[MOVE_DATE]"


# Total over PlaceholderToken: every token names exactly one personal-data key.
TOKEN_TO_PERSONAL_KEY: dict[PlaceholderToken, str] = {
    PlaceholderToken.FIRST_NAME: "first_name",
    PlaceholderToken.LAST_NAME: "last_name",
    PlaceholderToken.DOB: "date_of_birth",
    PlaceholderToken.BIRTH_PLACE: "birth_place",
    PlaceholderToken.NATIONALITY: "nationality",
    PlaceholderToken.GENDER: "gender",
    PlaceholderToken.STREET: "street",
    PlaceholderToken.HOUSE_NUMBER: "house_number",
    PlaceholderToken.POSTCODE: "postcode",
    PlaceholderToken.CITY: "city",
    PlaceholderToken.PHONE: "phone",
    PlaceholderToken.EMAIL: "email",
    PlaceholderToken.BSN: "bsn",
    PlaceholderToken.IBAN: "iban",
    PlaceholderToken.DOCUMENT_NUMBER: "document_number",
    PlaceholderToken.MOVE_DATE: "move_date",
}

_TOKEN_VALUES = frozenset(t.value for t in PlaceholderToken)
TOKEN_SHAPE = re.compile(r"^\[[A-Z][A-Z_]*\]$")


def is_token(value: object) -> bool:
    """True if value is exactly one of the known token strings."""
    return isinstance(value, str) and value in _TOKEN_VALUES


def looks_like_token(value: object) -> bool:
    """True for any bracketed upper-case tag, known or not."""
    return isinstance(value, str) and bool(TOKEN_SHAPE.match(value))


def parse_token(value: Union[str, PlaceholderToken]) -> PlaceholderToken:
    """Parse a token from its wire text (``[FIRST_NAME]``) or its name.

    Raises:
        ValueError: If value is not a known token.
    """
    if isinstance(value, PlaceholderToken):
        return value
    if is_token(value):
        return PlaceholderToken(value)
    name = value.strip().strip("[]").upper() if isinstance(value, str) else ""
    if name in PlaceholderToken.__members__:
        return PlaceholderToken[name]
    raise ValueError("not a placeholder token")
