"""Registry through which callers reach an installed relay."""
import logging
import threading
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Optional, Protocol

from ..core.errors import TransportError
from .channels import Port
from .codec import decode, encode
from .messages import Envelope

logger = logging.getLogger(__name__)


class ExtensionEndpoint(Protocol):
    """What an installed relay exposes to the runtime."""

    def on_connect(self, port: Port) -> None: ...

    def on_message(self, envelope: Envelope, internal: bool = False) -> "Future[Envelope]": ...


class ExtensionRuntime:
    """Routes ports and one-shot messages to relays by extension id."""

    def __init__(self) -> None:
        self._extensions: dict[str, ExtensionEndpoint] = {}
        self._lock = threading.Lock()

    def install(self, extension_id: str, endpoint: ExtensionEndpoint) -> None:
        with self._lock:
            self._extensions[extension_id] = endpoint
        logger.info(f"Installed extension {extension_id}")

    def uninstall(self, extension_id: str) -> None:
        with self._lock:
            self._extensions.pop(extension_id, None)

    def is_installed(self, extension_id: str) -> bool:
        with self._lock:
            return extension_id in self._extensions

    def _lookup(self, extension_id: str) -> ExtensionEndpoint:
        with self._lock:
            endpoint = self._extensions.get(extension_id)
        if endpoint is None:
            raise TransportError(f"Extension '{extension_id}' is not installed")
        return endpoint

    def connect(self, extension_id: str, name: str = "formbridge") -> Port:
        """Open a persistent port to a relay.

        Returns:
            The caller's end of the port.

        Raises:
            TransportError: If the extension is not installed.
        """
        endpoint = self._lookup(extension_id)
        caller_end, relay_end = Port.pair(name)
        endpoint.on_connect(relay_end)
        return caller_end

    def send_message(
        self,
        extension_id: str,
        envelope: Envelope,
        timeout: Optional[float] = None,
        internal: bool = False,
    ) -> Optional[Envelope]:
        """Send a one-shot message and wait for its reply.

        Args:
            extension_id: Target relay.
            envelope: Request envelope.
            timeout: Seconds to wait; None waits indefinitely.
            internal: Sent from the extension's own popup rather than a web page.

        Returns:
            The reply envelope, or None on timeout.

        Raises:
            TransportError: If the extension is not installed or the
                channel closed before a reply.
        """
        endpoint = self._lookup(extension_id)
        pending = endpoint.on_message(decode(encode(envelope)), internal=internal)
        try:
            reply = pending.result(timeout=timeout)
        except FutureTimeout:
            logger.warning(f"{envelope.type.value} timed out after {timeout}s")
            return None
        except CancelledError as e:
            raise TransportError("Message channel closed before a response was received") from e
        return decode(encode(reply))
