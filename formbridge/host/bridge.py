"""Persistent-port client used by the host application."""
import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Optional, TypeVar

from pydantic import BaseModel

from ..core.errors import TransportError
from ..privacy.boundary import LiteralFillRequest
from ..protocol.channels import Port
from ..protocol.messages import CaptureResponse, Envelope, FillFormRequest, FillResponse, MessageType
from ..protocol.runtime import ExtensionRuntime
from ..protocol.timeouts import TimeoutPolicy

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class ExtensionBridge:
    """Talks to the relay over one persistent port.

    Each request waits on a future keyed by its envelope id. A request
    resolves to None when its timeout expires or the port closes first.
    """

    def __init__(
        self,
        runtime: ExtensionRuntime,
        extension_id: str,
        policy: Optional[TimeoutPolicy] = None,
        name: str = "formbridge-host",
    ) -> None:
        self._runtime = runtime
        self._extension_id = extension_id
        self._policy = policy or TimeoutPolicy()
        self._name = name
        self._port: Optional[Port] = None
        self._pending: dict[str, Future[Optional[Envelope]]] = {}
        self._lock = threading.Lock()

    @property
    def is_connected(self) -> bool:
        return self._port is not None and self._port.is_connected

    def connect(self) -> bool:
        """Open the port.

        Returns:
            True if connected, False if the extension is not installed.
        """
        if self.is_connected:
            return True
        try:
            port = self._runtime.connect(self._extension_id, self._name)
        except TransportError as e:
            logger.error(f"Failed to connect to extension: {e}")
            return False
        port.on_message(self._on_message)
        port.on_disconnect(self._on_disconnect)
        self._port = port
        logger.info(f"Connected to extension {self._extension_id}")
        return True

    def disconnect(self) -> None:
        port, self._port = self._port, None
        if port is not None:
            port.disconnect()
        self._resolve_all_pending()

    def capture_page(self) -> Optional[CaptureResponse]:
        """Ask the relay to capture the active page.

        Returns:
            The capture response, or None on timeout or disconnect.
        """
        return self._request(MessageType.CAPTURE_PAGE, None, CaptureResponse)

    def fill_form(self, request: LiteralFillRequest) -> Optional[FillResponse]:
        """Dispatch a substituted fill request.

        Returns:
            The fill response, or None on timeout or disconnect.
        """
        return self._request(MessageType.FILL_FORM, FillFormRequest.from_literal(request), FillResponse)

    def _request(
        self, message_type: MessageType, payload: Optional[BaseModel], model: type[ResponseT]
    ) -> Optional[ResponseT]:
        port = self._port
        if port is None or not port.is_connected:
            logger.warning(f"Not connected, cannot send {message_type.value}")
            return None

        envelope = Envelope.request(message_type, payload)
        future: Future[Optional[Envelope]] = Future()
        with self._lock:
            self._pending[envelope.id] = future
        try:
            port.post_message(envelope)
            reply = future.result(timeout=self._policy.for_message(message_type))
        except TransportError as e:
            logger.warning(f"{message_type.value} not delivered: {e}")
            return None
        except FutureTimeout:
            logger.warning(f"{message_type.value} timed out")
            return None
        finally:
            with self._lock:
                self._pending.pop(envelope.id, None)

        if reply is None:
            return None
        return model.model_validate(reply.payload)

    def _on_message(self, envelope: Envelope, port: Port) -> None:
        if envelope.reply_to is None:
            return
        with self._lock:
            future = self._pending.get(envelope.reply_to)
        if future is not None and not future.done():
            future.set_result(envelope)

    def _on_disconnect(self, port: Port) -> None:
        logger.warning("Extension port disconnected")
        self._port = None
        self._resolve_all_pending()

    def _resolve_all_pending(self) -> None:
        with self._lock:
            pending = list(self._pending.values())
        for future in pending:
            if not future.done():
                future.set_result(None)
