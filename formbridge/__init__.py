"""FormBridge: privacy-preserving form capture and fill for voice assistants."""

__version__ = "1.0.0"
