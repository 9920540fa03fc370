"""Core utilities: configuration, logging and errors."""
from .config import Settings, BrowserConfig, ExtensionConfig, TimeoutConfig
from .errors import FormBridgeError, ProtocolError, TransportError
from .logging import setup_logging

__all__ = [
    "Settings",
    "BrowserConfig",
    "ExtensionConfig",
    "TimeoutConfig",
    "FormBridgeError",
    "ProtocolError",
    "TransportError",
    "setup_logging",
]
