"""Placeholder substitution: where tokens become literals.

Everything upstream of ``PrivacyBoundary.resolve`` (the orchestrator, the
template matcher, the extension relay's capture cache) speaks only in
``PlaceholderToken`` values. Everything downstream (the fill request sent to
the relay and executed in the page) speaks only in literals. The two request
types below refuse each other's vocabulary, so a value can't cross without
going through ``resolve``.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .choices import match_choice_option
from .personal_data import PersonalDataProvider
from .tokens import TOKEN_TO_PERSONAL_KEY, PlaceholderToken, is_token, parse_token

logger = logging.getLogger(__name__)


class TokenFillProposal(BaseModel):
    """Orchestrator fill proposal: field id -> placeholder token."""

    model_config = ConfigDict(frozen=True, hide_input_in_errors=True)

    mappings: dict[str, PlaceholderToken]

    @field_validator("mappings", mode="before")
    @classmethod
    def _parse_tokens(cls, value: Any) -> dict[str, PlaceholderToken]:
        if not isinstance(value, Mapping):
            raise ValueError("mappings must be a mapping of field id to token")
        parsed: dict[str, PlaceholderToken] = {}
        for field_id, token in value.items():
            try:
                parsed[str(field_id)] = parse_token(token)
            except ValueError:
                # The offending value may be personal data; don't echo it.
                raise ValueError(f"field {field_id!r} is not mapped to a placeholder token") from None
        return parsed

    def __len__(self) -> int:
        return len(self.mappings)


class LiteralFillRequest(BaseModel):
    """Substituted fill request: field id -> literal string."""

    model_config = ConfigDict(frozen=True, hide_input_in_errors=True)

    field_mappings: dict[str, str]

    @field_validator("field_mappings")
    @classmethod
    def _reject_tokens(cls, value: dict[str, str]) -> dict[str, str]:
        leftover = [fid for fid, v in value.items() if is_token(v)]
        if leftover:
            raise ValueError(f"unsubstituted placeholder tokens for fields {leftover}")
        return value


ProposalLike = Union[TokenFillProposal, Mapping[str, Union[str, PlaceholderToken]]]


def _as_token_map(proposal: ProposalLike) -> dict[str, PlaceholderToken]:
    if isinstance(proposal, TokenFillProposal):
        return dict(proposal.mappings)
    return dict(TokenFillProposal(mappings=proposal).mappings)


def substitute(proposal: ProposalLike, record: PersonalDataProvider) -> dict[str, str]:
    """Replace each token with the user's literal for it.

    A token whose personal-data key is missing or empty is passed through
    unchanged; callers treat any token left in the result as a field that
    could not be filled.

    Args:
        proposal: Field id to placeholder token.
        record: The user's personal data.

    Returns:
        Field id to literal (or the unresolved token text).
    """
    result: dict[str, str] = {}
    for field_id, token in _as_token_map(proposal).items():
        value = record.get(TOKEN_TO_PERSONAL_KEY[token])
        result[field_id] = value if value else token.value
    return result


def split_unresolved(
    mapping: Mapping[str, str],
) -> tuple[dict[str, str], dict[str, PlaceholderToken]]:
    """Separate substituted literals from tokens that were passed through."""
    literals: dict[str, str] = {}
    unresolved: dict[str, PlaceholderToken] = {}
    for field_id, value in mapping.items():
        if is_token(value):
            unresolved[field_id] = PlaceholderToken(value)
        else:
            literals[field_id] = value
    return literals, unresolved


@dataclass
class Resolution:
    """Outcome of one pass through the boundary."""
    request: LiteralFillRequest
    unresolved: dict[str, PlaceholderToken] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return not self.unresolved


class PrivacyBoundary:
    """Single point where token and literal vocabularies meet."""

    def __init__(self, record: PersonalDataProvider) -> None:
        self._record = record

    def resolve(
        self,
        proposal: TokenFillProposal,
        choice_options: Optional[Mapping[str, Sequence[tuple[str, str]]]] = None,
    ) -> Resolution:
        """Turn a token proposal into a dispatchable literal request.

        Args:
            proposal: The orchestrator's token proposal.
            choice_options: Optional (value, text) option lists per field id;
                literals for those fields are mapped onto an option value.

        Returns:
            Resolution holding the literal request and unresolved fields.
        """
        literals, unresolved = split_unresolved(substitute(proposal, self._record))

        for field_id, options in (choice_options or {}).items():
            if field_id not in literals:
                continue
            option_value = match_choice_option(literals[field_id], options)
            if option_value is not None:
                literals[field_id] = option_value

        logger.info(
            f"Substituted {len(literals)}/{len(proposal)} fields, "
            f"{len(unresolved)} unresolved"
        )
        return Resolution(
            request=LiteralFillRequest(field_mappings=literals),
            unresolved=unresolved,
        )
