# tracker_server/processing_service/logic/series.py

from datetime import tzinfo
from typing import Dict, Iterable, List, Sequence, Union

from tracker_server.processing_service.logic.bucketing import bucket_intervals
from tracker_server.processing_service.models import BucketedSeries, CategoryRef, Interval, StackedSeries
from tracker_server.shared.utils import round_hours

Row = Dict[str, Union[str, float]]


def build_series_rows(
    dates: Sequence[str],
    categories: Sequence[CategoryRef],
    buckets: Dict[str, Dict[str, float]],
    cumulative: bool = False,
) -> List[Row]:
    """
    Turns per-day buckets into chart rows keyed by "date" and category id.

    In cumulative mode each value is the running total up to and including
    that day. The running total is kept unrounded and rounded once per row.
    """
    running = {category.id: 0.0 for category in categories}
    rows: List[Row] = []
    for day in dates:
        day_hours = buckets.get(day, {})
        row: Row = {"date": day}
        for category in categories:
            value = day_hours.get(category.id, 0.0)
            if cumulative:
                running[category.id] += value
                value = running[category.id]
            row[category.id] = round_hours(value)
        rows.append(row)
    return rows


def daily_rows(series: BucketedSeries) -> List[Row]:
    """Per-day rows rounded to two decimals, zero for categories absent that day."""
    return build_series_rows(series.dates, series.categories, series.buckets, cumulative=False)


def build_stacked_series(intervals: Iterable[Interval], tz: tzinfo, cumulative: bool = False) -> StackedSeries:
    bucketed = bucket_intervals(intervals, tz)
    return StackedSeries(
        dates=bucketed.dates,
        categories=bucketed.categories,
        data=build_series_rows(bucketed.dates, bucketed.categories, bucketed.buckets, cumulative=cumulative),
    )
