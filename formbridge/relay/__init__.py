"""Extension relay: background broker, capture history and page entry point."""
from .history import CaptureHistory
from .session import BadgeColor, BadgeStatus, ConnectionState, RelaySession, SessionRegistry
from .content import ContentScript
from .relay import INTERNAL_PAGE, NO_ACTIVE_TAB, ExtensionRelay, RelayState, TabProvider

__all__ = [
    "CaptureHistory",
    "BadgeColor",
    "BadgeStatus",
    "ConnectionState",
    "RelaySession",
    "SessionRegistry",
    "ContentScript",
    "INTERNAL_PAGE",
    "NO_ACTIVE_TAB",
    "ExtensionRelay",
    "RelayState",
    "TabProvider",
]
