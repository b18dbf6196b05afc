import uuid
from datetime import date, datetime, time, tzinfo
from typing import Annotated, Optional, Tuple

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from tracker_server.api_service.core.database import get_db
from tracker_server.api_service.core.settings import settings
from tracker_server.shared.utils import local_day_start


def parse_date_string(date_string: str, field: str = "date") -> date:
    try:
        return date.fromisoformat(date_string)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {field} format. Please use YYYY-MM-DD."
        )


def parse_date_range(
    start_date: Optional[str],
    end_date: Optional[str],
    tz: tzinfo,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Turns optional local start/end dates into inclusive UTC-aware bounds."""
    start_after = local_day_start(parse_date_string(start_date, "start_date"), tz) if start_date else None
    start_before = (
        datetime.combine(parse_date_string(end_date, "end_date"), time.max, tzinfo=tz) if end_date else None
    )
    if start_after is not None and start_before is not None and start_after > start_before:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date."
        )
    return start_after, start_before


def get_owner_id() -> uuid.UUID:
    """
    The already-authenticated owner every query runs under.

    Authentication happens in front of this service; here it is a single
    configured owner, handed to each storage call as a plain parameter.
    """
    return settings.OWNER_ID


DBDep = Annotated[AsyncSession, Depends(get_db)]
OwnerDep = Annotated[uuid.UUID, Depends(get_owner_id)]
