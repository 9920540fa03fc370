"""Caller-side timeout policy."""
from dataclasses import dataclass

from ..core.config import TimeoutConfig
from .messages import MessageType

CAPTURE_TYPES = frozenset({
    MessageType.CAPTURE_PAGE,
    MessageType.CAPTURE_FORM,
    MessageType.CAPTURE_FORM_FROM_POPUP,
})


@dataclass(frozen=True)
class TimeoutPolicy:
    """Seconds a caller waits for each kind of request."""
    capture: float = 30.0
    fill: float = 10.0
    default: float = 5.0

    @classmethod
    def from_config(cls, config: TimeoutConfig) -> "TimeoutPolicy":
        return cls(
            capture=config.capture_seconds,
            fill=config.fill_seconds,
            default=config.default_seconds,
        )

    def for_message(self, message_type: MessageType) -> float:
        if message_type in CAPTURE_TYPES:
            return self.capture
        if message_type == MessageType.FILL_FORM:
            return self.fill
        return self.default
