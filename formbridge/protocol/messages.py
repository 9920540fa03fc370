"""Typed messages exchanged between the host, the relay and the page."""
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..executor.models import FillResult, FillStatus
from ..extractor.models import FormSchema
from ..privacy.boundary import LiteralFillRequest


class MessageType(str, Enum):
    """Message kinds understood by the relay."""
    PING = "PING"
    CAPTURE_PAGE = "CAPTURE_PAGE"
    CAPTURE_FORM = "CAPTURE_FORM"
    CAPTURE_FORM_FROM_POPUP = "CAPTURE_FORM_FROM_POPUP"
    FILL_FORM = "FILL_FORM"
    GET_LAST_CAPTURE = "GET_LAST_CAPTURE"
    CLEAR_LAST_CAPTURE = "CLEAR_LAST_CAPTURE"
    LIST_CAPTURES = "LIST_CAPTURES"
    SELECT_CAPTURE = "SELECT_CAPTURE"
    REMOVE_CAPTURE = "REMOVE_CAPTURE"


def new_message_id() -> str:
    return uuid.uuid4().hex


class Envelope(BaseModel):
    """One message on any channel.

    Replies carry the request's ``id`` in ``reply_to`` and the same ``type``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_message_id)
    type: MessageType
    payload: dict[str, Any] = Field(default_factory=dict)
    reply_to: Optional[str] = None

    @classmethod
    def request(cls, message_type: MessageType, payload: Union[BaseModel, dict, None] = None) -> "Envelope":
        return cls(type=message_type, payload=dump_payload(payload))

    @property
    def is_reply(self) -> bool:
        return self.reply_to is not None

    def reply(self, payload: Union[BaseModel, dict, None]) -> "Envelope":
        """Reply envelope correlated to this one."""
        return Envelope(type=self.type, payload=dump_payload(payload), reply_to=self.id)


def dump_payload(payload: Union[BaseModel, dict, None]) -> dict[str, Any]:
    if payload is None:
        return {}
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True)
    return dict(payload)


class Response(BaseModel):
    """Common shape of every reply: ``{success, error}``."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str, **kwargs: Any) -> "Response":
        return cls(success=False, error=error, **kwargs)


class PingResponse(Response):
    version: str = ""


class CaptureResponse(Response):
    """Capture result; the schema travels under the ``schema`` key."""

    form_schema: Optional[FormSchema] = Field(default=None, alias="schema")


class FillFormRequest(BaseModel):
    """Literal fill request as it travels to the page."""

    model_config = ConfigDict(frozen=True, hide_input_in_errors=True)

    field_mappings: dict[str, str] = Field(
        validation_alias=AliasChoices("field_mappings", "fieldMappings", "fillMap"),
    )

    @classmethod
    def from_literal(cls, request: LiteralFillRequest) -> "FillFormRequest":
        return cls(field_mappings=dict(request.field_mappings))


class FillResponse(Response):
    results: list[FillResult] = []

    @property
    def filled(self) -> list[str]:
        return [r.field for r in self.results if r.status == FillStatus.FILLED]

    @property
    def failed(self) -> list[FillResult]:
        return [r for r in self.results if r.status != FillStatus.FILLED]


class CaptureHistoryEntry(BaseModel):
    """A capture held by the relay, with its insertion sequence number."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sequence: int
    received_at: datetime
    form_schema: FormSchema = Field(alias="schema")


class HistoryResponse(Response):
    captures: list[CaptureHistoryEntry] = []
    selected_index: Optional[int] = None


class HistoryIndexRequest(BaseModel):
    """Index into the capture history, newest first."""

    index: int = Field(ge=0)
