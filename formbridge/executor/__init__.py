"""Fill execution inside the page context."""
from .models import FillError, FillResult, FillStatus, FillTally
from .filler import FillExecutor

__all__ = ["FillError", "FillResult", "FillStatus", "FillTally", "FillExecutor"]
