"""Privacy boundary: placeholder tokens, personal data and substitution."""
from .tokens import (
    PlaceholderToken,
    TOKEN_TO_PERSONAL_KEY,
    is_token,
    looks_like_token,
    parse_token,
)
from .personal_data import PersonalDataProvider, PersonalDataRecord, load_personal_data
from .boundary import (
    LiteralFillRequest,
    PrivacyBoundary,
    Resolution,
    TokenFillProposal,
    split_unresolved,
    substitute,
)

__all__ = [
    "PlaceholderToken",
    "TOKEN_TO_PERSONAL_KEY",
    "is_token",
    "looks_like_token",
    "parse_token",
    "PersonalDataProvider",
    "PersonalDataRecord",
    "load_personal_data",
    "LiteralFillRequest",
    "PrivacyBoundary",
    "Resolution",
    "TokenFillProposal",
    "split_unresolved",
    "substitute",
]
