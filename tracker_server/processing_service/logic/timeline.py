# tracker_server/processing_service/logic/timeline.py
"""
24-hour timeline for a single local day.

The day is cut into minute-aligned segments: recorded intervals clipped to
the day, and "empty" gap segments in between, so that the ordered segments
always cover minute 0 to minute 1440 exactly once.
"""

from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, List, Optional, Tuple
import logging

from tracker_server.processing_service.logic.settings import Settings as ServiceSettingsType
from tracker_server.processing_service.logic.settings import settings as default_settings
from tracker_server.processing_service.models import DayTimeline, Interval, TimelineSegment
from tracker_server.shared.utils import local_day_start, round_hours, round_minute

log = logging.getLogger(__name__)

# Constants
EMPTY_CATEGORY_ID = "empty"
MINUTES_PER_DAY = 1440


class TimelinePartitioner:
    """Builds the gap-filled minute partition of one local day."""

    def __init__(self, settings: Optional[ServiceSettingsType] = None):
        self.settings = settings or default_settings

    def day_bounds(self, day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
        day_start = local_day_start(day, tz)
        return day_start, day_start + timedelta(hours=24)

    def fetch_window(self, day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
        """
        Range of start times that can reach into `day`.

        Only intervals starting within the lookback before midnight are
        considered, so a long interval that started earlier the previous
        evening does not show up on this day.
        """
        day_start, day_end = self.day_bounds(day, tz)
        return day_start - self.settings.timeline_lookback, day_end

    def select_candidates(self, intervals: Iterable[Interval], day: date, tz: tzinfo) -> List[Interval]:
        window_start, window_end = self.fetch_window(day, tz)
        return [i for i in intervals if window_start <= i.start_time <= window_end]

    def clip_to_day(self, intervals: Iterable[Interval], day_start: datetime) -> List[TimelineSegment]:
        segments: List[TimelineSegment] = []
        for interval in intervals:
            if interval.category is None:
                continue
            raw_start = round_minute((interval.start_time - day_start).total_seconds() / 60)
            raw_end = round_minute((interval.end_time - day_start).total_seconds() / 60)
            start_minute = max(0, raw_start)
            end_minute = min(MINUTES_PER_DAY, raw_end)
            if end_minute <= 0 or start_minute >= MINUTES_PER_DAY or end_minute <= start_minute:
                continue
            segments.append(self._segment(
                start_minute, end_minute,
                interval.category.id, interval.category.name, interval.category.color,
            ))
        return sorted(segments, key=lambda s: (s.start_minute, s.end_minute))

    def fill_gaps(self, segments: List[TimelineSegment]) -> List[TimelineSegment]:
        """
        Walks the sorted segments with a cursor, inserting empty segments
        for every gap. Expects segments sorted by start_minute.
        """
        filled: List[TimelineSegment] = []
        cursor = 0

        for segment in segments:
            if segment.start_minute < cursor:
                # Overlapping input; keep the partition intact.
                log.warning(
                    f"Segment {segment.start_minute}-{segment.end_minute} overlaps the previous one "
                    f"ending at {cursor}; trimming."
                )
                if segment.end_minute <= cursor:
                    continue
                segment = self._segment(cursor, segment.end_minute, segment.category_id, segment.category_name, segment.color)
            if segment.start_minute > cursor:
                filled.append(self._empty(cursor, segment.start_minute))
            filled.append(segment)
            cursor = segment.end_minute

        if cursor < MINUTES_PER_DAY:
            filled.append(self._empty(cursor, MINUTES_PER_DAY))

        return filled

    def build(self, intervals: Iterable[Interval], day: date, tz: tzinfo) -> DayTimeline:
        day_start, _ = self.day_bounds(day, tz)
        candidates = self.select_candidates(intervals, day, tz)
        segments = self.fill_gaps(self.clip_to_day(candidates, day_start))
        log.info(f"Built timeline for {day} with {len(segments)} segments from {len(candidates)} intervals.")
        return DayTimeline(date=day.isoformat(), segments=segments)

    def _segment(self, start_minute: int, end_minute: int, category_id: str, name: str, color: str) -> TimelineSegment:
        return TimelineSegment(
            start_minute=start_minute,
            end_minute=end_minute,
            category_id=category_id,
            category_name=name,
            color=color,
            hours=round_hours((end_minute - start_minute) / 60),
        )

    def _empty(self, start_minute: int, end_minute: int) -> TimelineSegment:
        return self._segment(
            start_minute, end_minute,
            EMPTY_CATEGORY_ID, self.settings.EMPTY_SEGMENT_NAME, self.settings.EMPTY_SEGMENT_COLOR,
        )


def build_day_timeline(intervals: Iterable[Interval], day: date, tz: tzinfo) -> DayTimeline:
    return TimelinePartitioner().build(intervals, day, tz)
