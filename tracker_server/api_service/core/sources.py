# tracker_server/api_service/core/sources.py
"""
Storage collaborator for the aggregation engine.

Reads hand back engine models (Interval, Goal) with their category snapshot
joined in. Writes enforce the storage-side rules the engine relies on: no
overlapping records per owner and at most one active timer per owner.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tracker_server.api_service.core.models import (
    RECORD_OVERLAP_CONSTRAINT,
    Category as CategoryModel,
    Goal as GoalModel,
    Record as RecordModel,
    TimerSession as TimerSessionModel,
)
from tracker_server.processing_service.logic.settings import settings as engine_settings
from tracker_server.processing_service.logic.validation import intervals_overlap
from tracker_server.processing_service.models import CategoryRef, Goal, GoalType, Interval

logger = logging.getLogger(__name__)

# SQLSTATE exclusion_violation
EXCLUSION_VIOLATION = "23P01"


class IntervalOverlapError(Exception):
    """The record would overlap another record of the same owner."""


class ActiveTimerExistsError(Exception):
    """The owner already has a running timer."""


def to_category_ref(category: Optional[CategoryModel]) -> Optional[CategoryRef]:
    if category is None:
        return None
    return CategoryRef(id=category.id, name=category.name, color=category.color)


def to_interval(record: RecordModel, category: Optional[CategoryModel]) -> Interval:
    return Interval(
        id=record.id,
        category_id=record.category_id,
        category=to_category_ref(category),
        start_time=record.start_time,
        end_time=record.end_time,
    )


def to_goal(goal: GoalModel) -> Goal:
    return Goal(
        id=goal.id,
        type=goal.type,
        category_id=goal.category_id,
        category=to_category_ref(goal.category),
        target_hours=goal.target_hours,
        deadline=goal.deadline,
        created_at=goal.created_at,
    )


# --- Records ---
async def fetch_intervals(
    db: AsyncSession,
    owner_id: uuid.UUID,
    category_id: Optional[str] = None,
    start_after: Optional[datetime] = None,
    start_before: Optional[datetime] = None,
    descending: bool = False,
) -> List[Interval]:
    """Records of `owner_id` whose start time lies in [start_after, start_before]."""
    conditions = [RecordModel.owner_id == owner_id]
    if category_id is not None:
        conditions.append(RecordModel.category_id == uuid.UUID(str(category_id)))
    if start_after is not None:
        conditions.append(RecordModel.start_time >= start_after)
    if start_before is not None:
        conditions.append(RecordModel.start_time <= start_before)

    order = RecordModel.start_time.desc() if descending else RecordModel.start_time.asc()
    result = await db.execute(
        select(RecordModel)
        .options(selectinload(RecordModel.category))
        .where(and_(*conditions))
        .order_by(order)
    )
    records = result.scalars().all()
    return [to_interval(record, record.category) for record in records]


async def get_record(db: AsyncSession, owner_id: uuid.UUID, record_id: uuid.UUID) -> Optional[RecordModel]:
    result = await db.execute(
        select(RecordModel)
        .options(selectinload(RecordModel.category))
        .where(RecordModel.id == record_id, RecordModel.owner_id == owner_id)
    )
    return result.scalar_one_or_none()


async def find_overlapping_record(
    db: AsyncSession,
    owner_id: uuid.UUID,
    start_time: datetime,
    end_time: datetime,
    exclude_id: Optional[uuid.UUID] = None,
) -> Optional[RecordModel]:
    # Records are capped in length, so only those starting within that cap
    # before `start_time` can reach into the new range.
    earliest = start_time - timedelta(hours=engine_settings.MAX_INTERVAL_HOURS)
    query = select(RecordModel).where(
        RecordModel.owner_id == owner_id,
        RecordModel.start_time > earliest,
        RecordModel.start_time < end_time,
    )
    if exclude_id is not None:
        query = query.where(RecordModel.id != exclude_id)
    result = await db.execute(query)
    for record in result.scalars().all():
        if intervals_overlap(record.start_time, record.end_time, start_time, end_time):
            return record
    return None


async def _ensure_no_overlap(db, owner_id, start_time, end_time, exclude_id=None) -> None:
    clash = await find_overlapping_record(db, owner_id, start_time, end_time, exclude_id)
    if clash is not None:
        logger.info(f"Rejected record {start_time}-{end_time}: overlaps record {clash.id}")
        raise IntervalOverlapError("This time range overlaps another record")


def _is_overlap_violation(e: IntegrityError) -> bool:
    return (
        getattr(e.orig, "pgcode", None) == EXCLUSION_VIOLATION
        or getattr(e.orig, "sqlstate", None) == EXCLUSION_VIOLATION
        or RECORD_OVERLAP_CONSTRAINT in str(e.orig)
    )


async def _flush_record(db: AsyncSession) -> None:
    # The exclusion constraint settles races the pre-check cannot see.
    try:
        await db.flush()
    except IntegrityError as e:
        if _is_overlap_violation(e):
            raise IntervalOverlapError("This time range overlaps another record") from e
        raise


async def create_record(
    db: AsyncSession,
    owner_id: uuid.UUID,
    category: CategoryModel,
    start_time: datetime,
    end_time: datetime,
) -> Interval:
    await _ensure_no_overlap(db, owner_id, start_time, end_time)
    record = RecordModel(
        owner_id=owner_id,
        category_id=category.id,
        start_time=start_time,
        end_time=end_time,
    )
    db.add(record)
    await _flush_record(db)
    return to_interval(record, category)


async def update_record(
    db: AsyncSession,
    owner_id: uuid.UUID,
    record: RecordModel,
    values: Dict[str, Any],
    category: Optional[CategoryModel] = None,
) -> Interval:
    """Applies a validated patch. `category` is the new category when it changes."""
    current_category = category if category is not None else record.category
    if "start_time" in values:
        await _ensure_no_overlap(db, owner_id, values["start_time"], values["end_time"], exclude_id=record.id)
        record.start_time = values["start_time"]
        record.end_time = values["end_time"]
    if category is not None:
        record.category_id = category.id
    await _flush_record(db)
    return to_interval(record, current_category)


async def delete_record(db: AsyncSession, record: RecordModel) -> None:
    await db.delete(record)
    await db.flush()


# --- Categories ---
async def list_categories(db: AsyncSession, owner_id: uuid.UUID) -> List[CategoryModel]:
    result = await db.execute(
        select(CategoryModel)
        .where(CategoryModel.owner_id == owner_id)
        .order_by(CategoryModel.is_archived.asc(), CategoryModel.created_at.desc())
    )
    return list(result.scalars().all())


async def get_category(db: AsyncSession, owner_id: uuid.UUID, category_id: uuid.UUID) -> Optional[CategoryModel]:
    result = await db.execute(
        select(CategoryModel).where(CategoryModel.id == category_id, CategoryModel.owner_id == owner_id)
    )
    return result.scalar_one_or_none()


async def create_category(db: AsyncSession, owner_id: uuid.UUID, name: str, color: str) -> CategoryModel:
    category = CategoryModel(owner_id=owner_id, name=name, color=color)
    db.add(category)
    await db.flush()
    await db.refresh(category)
    return category


async def update_category(db: AsyncSession, category: CategoryModel, values: Dict[str, Any]) -> CategoryModel:
    for field, value in values.items():
        setattr(category, field, value)
    await db.flush()
    await db.refresh(category)
    return category


async def archive_category(db: AsyncSession, category: CategoryModel) -> CategoryModel:
    return await update_category(db, category, {"is_archived": True})


# --- Goals ---
async def fetch_goals(db: AsyncSession, owner_id: uuid.UUID) -> List[Goal]:
    result = await db.execute(
        select(GoalModel)
        .options(selectinload(GoalModel.category))
        .where(GoalModel.owner_id == owner_id)
        .order_by(GoalModel.created_at.desc())
    )
    return [to_goal(goal) for goal in result.scalars().all()]


async def get_goal(db: AsyncSession, owner_id: uuid.UUID, goal_id: uuid.UUID) -> Optional[GoalModel]:
    result = await db.execute(
        select(GoalModel).where(GoalModel.id == goal_id, GoalModel.owner_id == owner_id)
    )
    return result.scalar_one_or_none()


async def create_goal(
    db: AsyncSession,
    owner_id: uuid.UUID,
    goal_type: GoalType,
    category_id: Optional[uuid.UUID],
    target_hours: float,
    deadline: Optional[datetime],
) -> GoalModel:
    goal = GoalModel(
        owner_id=owner_id,
        type=goal_type,
        category_id=category_id,
        target_hours=target_hours,
        deadline=deadline,
    )
    db.add(goal)
    await db.flush()
    await db.refresh(goal)
    return goal


async def delete_goal(db: AsyncSession, goal: GoalModel) -> None:
    await db.delete(goal)
    await db.flush()


# --- Timer ---
async def get_active_timer(db: AsyncSession, owner_id: uuid.UUID) -> Optional[TimerSessionModel]:
    result = await db.execute(
        select(TimerSessionModel).where(
            TimerSessionModel.owner_id == owner_id,
            TimerSessionModel.is_active.is_(True),
        )
    )
    return result.scalar_one_or_none()


async def start_timer(db: AsyncSession, owner_id: uuid.UUID, start_time: datetime) -> TimerSessionModel:
    if await get_active_timer(db, owner_id) is not None:
        raise ActiveTimerExistsError("A timer is already running")
    session = TimerSessionModel(owner_id=owner_id, start_time=start_time, is_active=True)
    db.add(session)
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent start; the partial unique index decided.
        raise ActiveTimerExistsError("A timer is already running") from e
    await db.refresh(session)
    return session


async def stop_timer(db: AsyncSession, owner_id: uuid.UUID) -> bool:
    result = await db.execute(
        delete(TimerSessionModel).where(
            TimerSessionModel.owner_id == owner_id,
            TimerSessionModel.is_active.is_(True),
        )
    )
    return (result.rowcount or 0) > 0
