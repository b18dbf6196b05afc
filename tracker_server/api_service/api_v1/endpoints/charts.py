import logging
from typing import Optional
from fastapi import APIRouter, Query

from tracker_server.api_service.api_v1.deps import DBDep, OwnerDep, parse_date_range, parse_date_string
from tracker_server.api_service.core import sources
from tracker_server.processing_service.logic.series import build_stacked_series
from tracker_server.processing_service.logic.settings import settings as engine_settings
from tracker_server.processing_service.logic.timeline import TimelinePartitioner
from tracker_server.processing_service.models import DayTimeline, StackedSeries
from tracker_server.shared.utils import timezone_from_offset

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stacked", response_model=StackedSeries)
async def read_stacked_series(
    db: DBDep,
    owner_id: OwnerDep,
    start_date: Optional[str] = Query(None, description="First local day (YYYY-MM-DD), inclusive."),
    end_date: Optional[str] = Query(None, description="Last local day (YYYY-MM-DD), inclusive."),
    cumulative: bool = Query(False, description="Running totals instead of per-day hours."),
):
    """Hours per category per day, keyed by the day each record started on."""
    tz = engine_settings.local_zone()
    start_after, start_before = parse_date_range(start_date, end_date, tz)
    intervals = await sources.fetch_intervals(
        db, owner_id, start_after=start_after, start_before=start_before
    )
    return build_stacked_series(intervals, tz, cumulative=cumulative)


@router.get("/timeline", response_model=DayTimeline)
async def read_day_timeline(
    db: DBDep,
    owner_id: OwnerDep,
    date_string: str = Query(
        ...,
        alias="date",
        description="Date in YYYY-MM-DD format.",
        pattern=r"^\d{4}-\d{2}-\d{2}$",
    ),
    tz: Optional[int] = Query(
        None, ge=-840, le=840,
        description="Browser timezone offset in minutes (UTC minus local). Server zone when omitted.",
    ),
):
    """Gap-filled 24-hour partition of one local day."""
    day = parse_date_string(date_string)
    zone = timezone_from_offset(tz) if tz is not None else engine_settings.local_zone()
    partitioner = TimelinePartitioner(engine_settings)
    window_start, window_end = partitioner.fetch_window(day, zone)
    intervals = await sources.fetch_intervals(
        db, owner_id, start_after=window_start, start_before=window_end
    )
    return partitioner.build(intervals, day, zone)
