"""One-shot message client for callers without a persistent port."""
import logging
from typing import Any, Optional, TypeVar

from pydantic import BaseModel

from ..core.errors import TransportError
from ..extractor.models import FormSchema
from ..privacy.boundary import LiteralFillRequest
from ..protocol.messages import (
    CaptureResponse,
    Envelope,
    FillFormRequest,
    FillResponse,
    HistoryIndexRequest,
    HistoryResponse,
    MessageType,
    PingResponse,
)
from ..protocol.runtime import ExtensionRuntime
from ..protocol.timeouts import TimeoutPolicy

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class ExtensionClient:
    """Stateless request/response access to the relay.

    Every method returns None when the relay does not answer in time.
    Transport failures raise ``TransportError``.
    """

    def __init__(
        self,
        runtime: ExtensionRuntime,
        extension_id: str,
        policy: Optional[TimeoutPolicy] = None,
        internal: bool = False,
    ) -> None:
        """Initialize client.

        Args:
            runtime: Runtime the relay is installed in.
            extension_id: Target relay.
            policy: Per-message timeouts.
            internal: Send as the extension popup instead of a web page.
        """
        self._runtime = runtime
        self._extension_id = extension_id
        self._policy = policy or TimeoutPolicy()
        self._internal = internal

    def _send(
        self, message_type: MessageType, model: type[ResponseT], payload: Any = None
    ) -> Optional[ResponseT]:
        reply = self._runtime.send_message(
            self._extension_id,
            Envelope.request(message_type, payload),
            timeout=self._policy.for_message(message_type),
            internal=self._internal,
        )
        if reply is None:
            return None
        return model.model_validate(reply.payload)

    def ping(self) -> Optional[PingResponse]:
        return self._send(MessageType.PING, PingResponse)

    def is_available(self) -> bool:
        """True if the relay is installed and answers a ping."""
        try:
            response = self.ping()
        except TransportError as e:
            logger.debug(f"Extension unavailable: {e}")
            return False
        return response is not None and response.success

    def request_form_schema(self) -> Optional[CaptureResponse]:
        """Capture the active page through the relay."""
        message_type = MessageType.CAPTURE_FORM_FROM_POPUP if self._internal else MessageType.CAPTURE_FORM
        return self._send(message_type, CaptureResponse)

    def fill_form(self, request: LiteralFillRequest) -> Optional[FillResponse]:
        return self._send(MessageType.FILL_FORM, FillResponse, FillFormRequest.from_literal(request))

    def poll_capture(self) -> Optional[FormSchema]:
        """Take the relay's pending capture, if any, and clear it."""
        response = self._send(MessageType.GET_LAST_CAPTURE, CaptureResponse)
        if response is None or not response.success or response.form_schema is None:
            return None
        self._send(MessageType.CLEAR_LAST_CAPTURE, CaptureResponse)
        return response.form_schema

    def list_captures(self) -> Optional[HistoryResponse]:
        return self._send(MessageType.LIST_CAPTURES, HistoryResponse)

    def select_capture(self, index: int) -> Optional[CaptureResponse]:
        return self._send(MessageType.SELECT_CAPTURE, CaptureResponse, HistoryIndexRequest(index=index))

    def remove_capture(self, index: int) -> Optional[HistoryResponse]:
        return self._send(MessageType.REMOVE_CAPTURE, HistoryResponse, HistoryIndexRequest(index=index))
