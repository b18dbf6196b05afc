import logging
import uuid
from datetime import datetime, time, timezone
from typing import Optional
from fastapi import APIRouter, HTTPException, Query, status

from tracker_server.api_service import schemas
from tracker_server.api_service.api_v1.deps import DBDep, OwnerDep, parse_date_string
from tracker_server.api_service.core import sources
from tracker_server.processing_service.logic.goals import evaluate_goal, goal_window
from tracker_server.processing_service.logic.settings import settings as engine_settings
from tracker_server.processing_service.models import GoalType

logger = logging.getLogger(__name__)

router = APIRouter()

DEADLINE_TIME = time(23, 59, 59)


@router.get("", response_model=schemas.GoalListResponse)
async def read_goals(
    db: DBDep,
    owner_id: OwnerDep,
    today: Optional[str] = Query(None, description="Caller's local date (YYYY-MM-DD). Defaults to the UTC date."),
    tz: int = Query(0, ge=-840, le=840, description="Browser timezone offset in minutes (UTC minus local)."),
):
    """All goals, newest first, each with progress in its active window."""
    now = datetime.now(timezone.utc)
    today_date = parse_date_string(today, "today") if today else now.date()

    goals = await sources.fetch_goals(db, owner_id)
    results = []
    for goal in goals:
        window_start, window_end = goal_window(goal, now, today_date, tz)
        intervals = await sources.fetch_intervals(
            db, owner_id,
            category_id=goal.category_id,
            start_after=window_start,
            start_before=window_end,
        )
        progress = evaluate_goal(goal, intervals, now, today_date, tz)
        results.append(schemas.GoalWithProgress.from_progress(progress))
    return schemas.GoalListResponse(goals=results)


@router.post("", response_model=schemas.Goal, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal_in: schemas.GoalCreate,
    db: DBDep,
    owner_id: OwnerDep,
):
    deadline_at = None
    if goal_in.type is GoalType.PERIOD:
        if goal_in.deadline is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A period goal needs a deadline."
            )
        # The deadline covers the whole local day.
        deadline_at = datetime.combine(goal_in.deadline, DEADLINE_TIME, tzinfo=engine_settings.local_zone())
        if deadline_at < datetime.now(timezone.utc):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The deadline must not be in the past."
            )

    if goal_in.category_id is not None:
        if await sources.get_category(db, owner_id, goal_in.category_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found"
            )

    goal = await sources.create_goal(
        db, owner_id,
        goal_type=goal_in.type,
        category_id=goal_in.category_id,
        target_hours=goal_in.target_hours,
        deadline=deadline_at,
    )
    logger.info(f"Created {goal_in.type.value} goal {goal.id}")
    return schemas.Goal.model_validate(goal)


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(
    goal_id: uuid.UUID,
    db: DBDep,
    owner_id: OwnerDep,
):
    goal = await sources.get_goal(db, owner_id, goal_id)
    if goal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Goal not found"
        )
    await sources.delete_goal(db, goal)
