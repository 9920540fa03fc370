"""Exceptions raised across context boundaries."""


class FormBridgeError(Exception):
    """Base class for FormBridge errors."""


class TransportError(FormBridgeError):
    """A message could not be delivered: unknown extension or closed channel."""


class ProtocolError(FormBridgeError):
    """A message could not be parsed into a known envelope or payload."""
