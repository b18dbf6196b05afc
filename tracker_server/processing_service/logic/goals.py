# tracker_server/processing_service/logic/goals.py
"""
Goal progress.

Nothing is persisted: progress is recomputed on every query from the goal's
currently active window. A daily goal "resets" simply because yesterday's
intervals fall outside today's window, and a period goal stops counting at
its deadline.

Intervals are included or excluded whole, by start time only.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Tuple

from tracker_server.processing_service.models import Goal, GoalProgress, GoalType, Interval, duration_hours
from tracker_server.shared.utils import round_hours

log = logging.getLogger(__name__)

Window = Tuple[datetime, datetime]


def daily_window(today: date, tz_offset_minutes: int = 0) -> Window:
    """
    UTC bounds of the caller's `today`, both inclusive.

    `tz_offset_minutes` is UTC minus local time in minutes (UTC+9 is -540).
    """
    offset = timedelta(minutes=tz_offset_minutes)
    start = datetime.combine(today, time.min, tzinfo=timezone.utc) + offset
    end = datetime.combine(today, time(23, 59, 59), tzinfo=timezone.utc) + offset
    return start, end


def goal_window(goal: Goal, now: datetime, today: date, tz_offset_minutes: int = 0) -> Window:
    if goal.type is GoalType.DAILY:
        return daily_window(today, tz_offset_minutes)
    end = goal.deadline if goal.deadline is not None and goal.deadline < now else now
    return goal.created_at, end


def select_goal_intervals(goal: Goal, intervals: Iterable[Interval], window: Window) -> List[Interval]:
    start, end = window
    return [
        i for i in intervals
        if start <= i.start_time <= end
        and (goal.category_id is None or i.category_id == goal.category_id)
    ]


def evaluate_goal(
    goal: Goal,
    intervals: Iterable[Interval],
    now: datetime,
    today: date,
    tz_offset_minutes: int = 0,
) -> GoalProgress:
    window = goal_window(goal, now, today, tz_offset_minutes)
    selected = select_goal_intervals(goal, intervals, window)
    total = sum(duration_hours(i) for i in selected)
    log.debug(f"Goal {goal.id}: {len(selected)} intervals, {total:.4f}h of {goal.target_hours}h.")
    return GoalProgress(
        goal=goal,
        window_start=window[0],
        window_end=window[1],
        achieved_hours=round_hours(total),
        # Threshold compares unrounded values.
        is_achieved=total >= goal.target_hours,
        progress=min(total / goal.target_hours, 1.0),
    )


def evaluate_goals(
    goals: Iterable[Goal],
    intervals: Iterable[Interval],
    now: datetime,
    today: date,
    tz_offset_minutes: int = 0,
) -> List[GoalProgress]:
    pool = list(intervals)
    return [evaluate_goal(goal, pool, now, today, tz_offset_minutes) for goal in goals]
