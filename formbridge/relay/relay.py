"""Extension relay: the background broker between host and page.

The relay owns a single worker thread. Playwright objects are bound to the
thread that created them, so the tab provider is built inside that thread
and every page-side request is queued to it, one at a time, in arrival
order. The relay holds captured schemas only; fill requests pass through
and are never stored.
"""
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum, auto
from queue import Empty, Queue
from typing import Callable, Optional, Protocol

from ..browser.page import Page
from ..core.config import ExtensionConfig, FillConfig, ScannerConfig
from ..core.errors import ProtocolError, TransportError
from ..protocol.channels import Port
from ..protocol.codec import read_payload
from ..protocol.messages import (
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
from ..templates.matcher import TemplateMatcher
from .content import ContentScript
from .history import CaptureHistory
from .session import BadgeStatus, RelaySession, SessionRegistry

logger = logging.getLogger(__name__)

QUEUE_POLL_TIMEOUT: float = 0.5
SHUTDOWN_TIMEOUT: float = 10.0

NO_ACTIVE_TAB = "No active tab found"
INTERNAL_PAGE = "Cannot capture browser internal pages (chrome://, about:, etc.)"
UNKNOWN_MESSAGE = "Unknown message type"

PORT_MESSAGES = frozenset({MessageType.CAPTURE_PAGE, MessageType.FILL_FORM})
EXTERNAL_MESSAGES = frozenset({
    MessageType.PING,
    MessageType.CAPTURE_FORM,
    MessageType.FILL_FORM,
    MessageType.GET_LAST_CAPTURE,
    MessageType.CLEAR_LAST_CAPTURE,
    MessageType.LIST_CAPTURES,
    MessageType.SELECT_CAPTURE,
    MessageType.REMOVE_CAPTURE,
})
INTERNAL_MESSAGES = frozenset({MessageType.PING, MessageType.CAPTURE_FORM_FROM_POPUP})


class TabProvider(Protocol):
    """Source of the page the user is looking at."""

    def active_page(self) -> Optional[Page]: ...

    def close(self) -> None: ...


class RelayState(Enum):
    """Lifecycle of the relay worker."""
    IDLE = "idle"
    READY = "ready"
    PROCESSING = "processing"
    STOPPED = "stopped"


class RelayCommand(Enum):
    HANDLE = auto()
    SHUTDOWN = auto()


@dataclass
class RelayTask:
    """One queued request and the future its reply resolves."""
    command: RelayCommand
    envelope: Optional[Envelope] = None
    future: Optional["Future[Envelope]"] = None


class ExtensionRelay:
    """Background broker reachable through an ExtensionRuntime."""

    def __init__(
        self,
        tabs_factory: Callable[[], Optional[TabProvider]],
        history: Optional[CaptureHistory] = None,
        matcher: Optional[TemplateMatcher] = None,
        config: Optional[ExtensionConfig] = None,
        scanner_config: Optional[ScannerConfig] = None,
        fill_config: Optional[FillConfig] = None,
    ) -> None:
        """Initialize the relay.

        Args:
            tabs_factory: Builds the tab provider; called on the worker thread.
            history: Capture history; a fresh one sized from config if omitted.
            matcher: Template matcher used to tag captures.
            config: Relay identity and history settings.
            scanner_config: Page scanner limits.
            fill_config: Fill executor behaviour.
        """
        self._config = config or ExtensionConfig()
        self._scanner_config = scanner_config or ScannerConfig()
        self._fill_config = fill_config or FillConfig()
        self._tabs_factory = tabs_factory
        self._matcher = matcher
        self.history = history if history is not None else CaptureHistory(self._config.history_capacity)
        self.sessions = SessionRegistry()
        self.badge = BadgeStatus()

        self._tabs: Optional[TabProvider] = None
        self._task_queue: Queue[RelayTask] = Queue()
        self._thread: Optional[threading.Thread] = None
        self._stop_flag = threading.Event()
        self._state = RelayState.IDLE

    @property
    def extension_id(self) -> str:
        return self._config.extension_id

    @property
    def state(self) -> RelayState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_flag.is_set()

    def start(self) -> bool:
        """Start the worker thread.

        Returns:
            True if started, False if already running.
        """
        if self.is_running:
            logger.warning("Relay already running")
            return False

        self._stop_flag.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="ExtensionRelay")
        self._thread.start()
        logger.info(f"Relay {self.extension_id} started")
        return True

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Stop the worker and fail any request still queued.

        Returns:
            True if the worker thread has exited.
        """
        if self._thread is None:
            return True
        self._stop_flag.set()
        self._task_queue.put(RelayTask(command=RelayCommand.SHUTDOWN))
        self._thread.join(timeout=timeout or SHUTDOWN_TIMEOUT)
        stopped = not self._thread.is_alive()
        self._drain()
        for session in self.sessions.connected():
            if session.port is not None:
                session.port.disconnect()
            self.sessions.close(session.caller_id)
        return stopped

    # Channel entry points

    def on_connect(self, port: Port) -> None:
        """Accept a persistent port from a caller."""
        session = self.sessions.open(port)
        port.on_message(lambda envelope, p: self._on_port_message(session, envelope))
        port.on_disconnect(lambda p: self.sessions.close(session.caller_id))
        self.badge = BadgeStatus.connected()

    def on_message(self, envelope: Envelope, internal: bool = False) -> "Future[Envelope]":
        """Accept a one-shot message.

        Args:
            envelope: Decoded request.
            internal: True for messages from the extension popup.

        Returns:
            Future resolving to the reply envelope.
        """
        allowed = INTERNAL_MESSAGES if internal else EXTERNAL_MESSAGES
        if envelope.type not in allowed:
            future: Future[Envelope] = Future()
            future.set_result(envelope.reply(Response.failure(UNKNOWN_MESSAGE)))
            return future
        return self._submit(envelope)

    def _on_port_message(self, session: RelaySession, envelope: Envelope) -> None:
        if envelope.type not in PORT_MESSAGES:
            self._post(session, envelope.reply(Response.failure(UNKNOWN_MESSAGE)))
            return
        session.requests_handled += 1
        future = self._submit(envelope)
        future.add_done_callback(lambda f: self._post_result(session, f))

    def _post_result(self, session: RelaySession, future: "Future[Envelope]") -> None:
        if future.cancelled() or future.exception() is not None:
            logger.debug(f"Dropping reply for {session.caller_id}: request did not complete")
            return
        self._post(session, future.result())

    def _post(self, session: RelaySession, reply: Envelope) -> None:
        port = session.port
        if port is None or not session.is_connected:
            logger.debug(f"Session {session.caller_id} gone; dropping {reply.type.value} reply")
            return
        try:
            port.post_message(reply)
        except TransportError as e:
            logger.debug(f"Reply to {session.caller_id} not delivered: {e}")

    def _submit(self, envelope: Envelope) -> "Future[Envelope]":
        future: Future[Envelope] = Future()
        if not self.is_running:
            future.set_exception(TransportError(f"Relay {self.extension_id} is not running"))
            return future
        self._task_queue.put(RelayTask(command=RelayCommand.HANDLE, envelope=envelope, future=future))
        return future

    def _drain(self) -> None:
        while True:
            try:
                task = self._task_queue.get_nowait()
            except Empty:
                return
            if task.future is not None and not task.future.done():
                task.future.set_exception(TransportError("Relay stopped"))

    # Worker thread

    def _run(self) -> None:
        logger.info("Relay loop starting")
        try:
            try:
                self._tabs = self._tabs_factory()
            except Exception as e:
                logger.error(f"Tab provider unavailable: {e}")
                self.badge = BadgeStatus.error()
                self._tabs = None
            self._state = RelayState.READY
            self._process_loop()
        finally:
            if self._tabs is not None:
                try:
                    self._tabs.close()
                except Exception as e:
                    logger.debug(f"Tab provider close error: {e}")
                self._tabs = None
            self._state = RelayState.STOPPED
            logger.info("Relay loop stopped")

    def _process_loop(self) -> None:
        while not self._stop_flag.is_set():
            try:
                task = self._task_queue.get(timeout=QUEUE_POLL_TIMEOUT)
            except Empty:
                continue

            if task.command == RelayCommand.SHUTDOWN:
                break

            if task.envelope is not None and task.future is not None:
                self._state = RelayState.PROCESSING
                task.future.set_result(self._handle(task.envelope))
                self._state = RelayState.READY

    def _handle(self, envelope: Envelope) -> Envelope:
        """Answer one request. Never raises."""
        logger.debug(f"Handling {envelope.type.value}")
        try:
            return envelope.reply(self._dispatch(envelope))
        except ProtocolError as e:
            return envelope.reply(Response.failure(str(e)))
        except Exception as e:
            logger.exception(f"Relay error on {envelope.type.value}: {e}")
            self.badge = BadgeStatus.error()
            return envelope.reply(Response.failure(str(e)))

    def _dispatch(self, envelope: Envelope) -> Response:
        match envelope.type:
            case MessageType.PING:
                self.badge = BadgeStatus.connected()
                return PingResponse(version=self._config.version)
            case MessageType.CAPTURE_PAGE | MessageType.CAPTURE_FORM | MessageType.CAPTURE_FORM_FROM_POPUP:
                return self._capture()
            case MessageType.FILL_FORM:
                return self._fill(read_payload(envelope, FillFormRequest))
            case MessageType.GET_LAST_CAPTURE:
                entry = self.history.selected()
                return CaptureResponse(form_schema=entry.form_schema if entry else None)
            case MessageType.CLEAR_LAST_CAPTURE:
                self.history.clear_selection()
                return Response()
            case MessageType.LIST_CAPTURES:
                return self._history_response()
            case MessageType.SELECT_CAPTURE:
                index = read_payload(envelope, HistoryIndexRequest).index
                try:
                    entry = self.history.select(index)
                except IndexError as e:
                    return CaptureResponse.failure(str(e))
                return CaptureResponse(form_schema=entry.form_schema)
            case MessageType.REMOVE_CAPTURE:
                index = read_payload(envelope, HistoryIndexRequest).index
                try:
                    self.history.remove(index)
                except IndexError as e:
                    return HistoryResponse.failure(str(e))
                return self._history_response()
        return Response.failure(UNKNOWN_MESSAGE)

    def _history_response(self) -> HistoryResponse:
        return HistoryResponse(
            captures=self.history.entries(),
            selected_index=self.history.selected_index,
        )

    def _content_script(self) -> tuple[Optional[ContentScript], Optional[str]]:
        page = self._tabs.active_page() if self._tabs is not None else None
        if page is None:
            return None, NO_ACTIVE_TAB
        if page.is_internal:
            return None, INTERNAL_PAGE
        script = ContentScript(
            page,
            matcher=self._matcher,
            description_limit=self._scanner_config.page_description_limit,
            allow_selector_fallback=self._fill_config.allow_selector_fallback,
        )
        return script, None

    def _capture(self) -> CaptureResponse:
        script, error = self._content_script()
        if script is None:
            self.badge = BadgeStatus.error()
            return CaptureResponse.failure(error)

        response = script.capture()
        if response.success and response.form_schema is not None:
            entry = self.history.add(response.form_schema)
            count = len(entry.form_schema.fields)
            self.badge = BadgeStatus.connected(str(count) if count else "")
            logger.info(f"Capture #{entry.sequence}: {count} fields")
        else:
            self.badge = BadgeStatus.warning()
        return response

    def _fill(self, request: FillFormRequest) -> FillResponse:
        script, error = self._content_script()
        if script is None:
            self.badge = BadgeStatus.error()
            return FillResponse.failure(error)

        response = script.fill(request)
        if response.success and not response.failed:
            self.badge = BadgeStatus.connected("✓")
        else:
            self.badge = BadgeStatus.warning()
        logger.info(f"Fill: {len(response.filled)} filled, {len(response.failed)} failed")
        return response
