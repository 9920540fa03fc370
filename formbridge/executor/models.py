"""Fill outcomes."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class FillStatus(str, Enum):
    """Outcome of filling one field."""
    FILLED = "filled"
    NOT_FOUND = "not_found"
    ERROR = "error"


class FillResult(BaseModel):
    """Outcome for one requested field."""

    field: str
    status: FillStatus
    detail: Optional[str] = None


class FillError(BaseModel):
    """A field that was not filled, and why."""

    field: str
    status: FillStatus = FillStatus.ERROR
    error: str


class FillTally(BaseModel):
    """Per-pass tally of filled and failed fields, in request order."""

    filled: list[str] = []
    errors: list[FillError] = []
    order: list[str] = []

    def record_filled(self, field_id: str) -> None:
        self.filled.append(field_id)
        self.order.append(field_id)

    def record_failure(self, field_id: str, status: FillStatus, error: str) -> None:
        self.errors.append(FillError(field=field_id, status=status, error=error))
        self.order.append(field_id)

    def to_results(self) -> list[FillResult]:
        """One FillResult per requested field, in request order."""
        failures = {e.field: e for e in self.errors}
        results = []
        for field_id in self.order:
            failure = failures.get(field_id)
            if failure is None:
                results.append(FillResult(field=field_id, status=FillStatus.FILLED))
            else:
                results.append(FillResult(field=field_id, status=failure.status, detail=failure.error))
        return results
