"""Host application side: clients, fill coordination and persistence."""
from .bridge import ExtensionBridge
from .client import ExtensionClient
from .store import CaptureStore
from .coordinator import FillCoordinator, FillReport
from .summary import format_schema_for_agent, summarize_fill

__all__ = [
    "ExtensionBridge",
    "ExtensionClient",
    "CaptureStore",
    "FillCoordinator",
    "FillReport",
    "format_schema_for_agent",
    "summarize_fill",
]
