# tracker_server/processing_service/logic/validation.py
"""Write-path checks applied before an interval reaches storage."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

from tracker_server.processing_service.logic.settings import settings


class IntervalValidationError(ValueError):
    pass


def validate_interval_bounds(
    start_time: datetime,
    end_time: datetime,
    now: datetime,
    max_hours: Optional[float] = None,
) -> None:
    """Raises IntervalValidationError with a user-facing message."""
    max_hours = settings.MAX_INTERVAL_HOURS if max_hours is None else max_hours
    if end_time <= start_time:
        raise IntervalValidationError("End time must be after start time")
    if start_time > now or end_time > now:
        raise IntervalValidationError("Times in the future are not allowed")
    if (end_time - start_time).total_seconds() / 3600 > max_hours:
        raise IntervalValidationError(f"A record can span at most {max_hours:g} hours")


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap: touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def patch_values(patch: BaseModel) -> Dict[str, Any]:
    """Only the fields the client actually sent, explicit nulls included."""
    return patch.model_dump(exclude_unset=True)
