# tracker_server/processing_service/logic/bucketing.py
"""
Temporal bucketing for the stacked charts.

Every interval is attributed to the calendar day its start instant falls on
in the given zone, duration and all. An interval that runs past midnight is
therefore counted in full on its start day; the day timeline is the view
that splits at midnight.
"""

import logging
from datetime import tzinfo
from typing import Dict, Iterable

import polars as pl

from tracker_server.processing_service.models import BucketedSeries, CategoryRef, Interval, duration_hours
from tracker_server.shared.utils import local_day_key

log = logging.getLogger(__name__)

BUCKET_SCHEMA = {"day": pl.Utf8, "category_id": pl.Utf8, "hours": pl.Float64}


def bucket_intervals(intervals: Iterable[Interval], tz: tzinfo) -> BucketedSeries:
    """
    Sums interval hours per (day, category).

    Args:
        intervals: Intervals in any order. Categories are listed in the order
            they are first seen, so pass them sorted by start time for a
            stable legend.
        tz: Zone whose calendar days form the buckets.

    Returns:
        A BucketedSeries with ascending day keys and unrounded totals.
    """
    categories: Dict[str, CategoryRef] = {}
    columns: Dict[str, list] = {"day": [], "category_id": [], "hours": []}
    skipped = 0

    for interval in intervals:
        if interval.category is None:
            skipped += 1
            continue
        category = interval.category
        categories.setdefault(category.id, category)
        columns["day"].append(local_day_key(interval.start_time, tz))
        columns["category_id"].append(category.id)
        columns["hours"].append(duration_hours(interval))

    if skipped:
        log.debug(f"Skipped {skipped} intervals without a category.")

    if not columns["day"]:
        return BucketedSeries(dates=[], categories=[], buckets={})

    totals = (
        pl.DataFrame(columns, schema=BUCKET_SCHEMA)
        .group_by(["day", "category_id"])
        .agg(pl.col("hours").sum())
        .sort(["day", "category_id"])
    )

    buckets: Dict[str, Dict[str, float]] = {}
    for day, category_id, hours in totals.iter_rows():
        buckets.setdefault(day, {})[category_id] = hours

    log.info(f"Bucketed {len(columns['day'])} intervals into {len(buckets)} days across {len(categories)} categories.")
    return BucketedSeries(
        dates=sorted(buckets),
        categories=list(categories.values()),
        buckets=buckets,
    )
