"""Persistent message channels between contexts."""
import logging
import threading
from typing import Callable, Optional

from ..core.errors import TransportError
from .codec import decode, encode
from .messages import Envelope

logger = logging.getLogger(__name__)

MessageListener = Callable[[Envelope, "Port"], None]
DisconnectListener = Callable[["Port"], None]


class Port:
    """One end of a persistent, bidirectional channel.

    Messages are JSON encoded on ``post_message`` and decoded on the other
    end before listeners see them. Disconnect listeners fire on the end
    that did *not* call ``disconnect``.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._peer: Optional["Port"] = None
        self._connected = False
        self._lock = threading.Lock()
        self._message_listeners: list[MessageListener] = []
        self._disconnect_listeners: list[DisconnectListener] = []

    @classmethod
    def pair(cls, name: str) -> tuple["Port", "Port"]:
        """Create two connected ends of a channel."""
        a, b = cls(name), cls(name)
        a._peer, b._peer = b, a
        a._connected = b._connected = True
        return a, b

    @property
    def is_connected(self) -> bool:
        return self._connected

    def on_message(self, listener: MessageListener) -> None:
        self._message_listeners.append(listener)

    def on_disconnect(self, listener: DisconnectListener) -> None:
        self._disconnect_listeners.append(listener)

    def post_message(self, envelope: Envelope) -> None:
        """Send an envelope to the other end.

        Raises:
            TransportError: If the channel is closed.
        """
        peer = self._peer
        if not self._connected or peer is None:
            raise TransportError(f"Port '{self.name}' is disconnected")
        peer._deliver(encode(envelope))

    def _deliver(self, data: str) -> None:
        envelope = decode(data)
        for listener in list(self._message_listeners):
            try:
                listener(envelope, self)
            except Exception as e:
                logger.error(f"Port '{self.name}' listener failed on {envelope.type.value}: {e}")

    def disconnect(self) -> None:
        """Close the channel from this end."""
        with self._lock:
            if not self._connected:
                return
            self._connected = False
            peer = self._peer
        if peer is not None:
            peer._closed_by_peer()

    def _closed_by_peer(self) -> None:
        with self._lock:
            if not self._connected:
                return
            self._connected = False
        logger.debug(f"Port '{self.name}' closed by peer")
        for listener in list(self._disconnect_listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Port '{self.name}' disconnect listener failed: {e}")
