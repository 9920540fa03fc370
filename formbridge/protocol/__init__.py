"""Typed request/response protocol shared by every context."""
from .messages import (
    CaptureHistoryEntry,
    CaptureResponse,
    Envelope,
    FillFormRequest,
    FillResponse,
    HistoryIndexRequest,
    HistoryResponse,
    MessageType,
    PingResponse,
    Response,
)
from .codec import decode, encode, read_payload
from .channels import Port
from .runtime import ExtensionEndpoint, ExtensionRuntime
from .timeouts import TimeoutPolicy

__all__ = [
    "CaptureHistoryEntry",
    "CaptureResponse",
    "Envelope",
    "FillFormRequest",
    "FillResponse",
    "HistoryIndexRequest",
    "HistoryResponse",
    "MessageType",
    "PingResponse",
    "Response",
    "decode",
    "encode",
    "read_payload",
    "Port",
    "ExtensionEndpoint",
    "ExtensionRuntime",
    "TimeoutPolicy",
]
