from typing import List, Optional
from fastapi import APIRouter, HTTPException, status, Query
from datetime import datetime, timezone
import uuid

from tracker_server.api_service import schemas
from tracker_server.api_service.api_v1.deps import DBDep, OwnerDep, parse_date_range
from tracker_server.api_service.core import sources
from tracker_server.processing_service.logic.settings import settings as engine_settings
from tracker_server.processing_service.logic.validation import (
    IntervalValidationError,
    patch_values,
    validate_interval_bounds,
)

router = APIRouter()


def check_bounds(start_time: datetime, end_time: datetime) -> None:
    try:
        validate_interval_bounds(start_time, end_time, now=datetime.now(timezone.utc))
    except IntervalValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


async def get_category_or_404(db, owner_id, category_id):
    category = await sources.get_category(db, owner_id, category_id)
    if category is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found"
        )
    return category


async def get_record_or_404(db, owner_id, record_id):
    record = await sources.get_record(db, owner_id, record_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Record not found"
        )
    return record


def overlap_conflict(e: sources.IntervalOverlapError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("", response_model=List[schemas.Record])
async def get_records(
    db: DBDep,
    owner_id: OwnerDep,
    start_date: Optional[str] = Query(None, description="First local day (YYYY-MM-DD), inclusive."),
    end_date: Optional[str] = Query(None, description="Last local day (YYYY-MM-DD), inclusive."),
):
    start_after, start_before = parse_date_range(start_date, end_date, engine_settings.local_zone())
    intervals = await sources.fetch_intervals(
        db, owner_id, start_after=start_after, start_before=start_before, descending=True
    )
    return [schemas.Record.from_interval(interval) for interval in intervals]


@router.post("", response_model=schemas.Record, status_code=status.HTTP_201_CREATED)
async def create_record(
    record_in: schemas.RecordCreate,
    db: DBDep,
    owner_id: OwnerDep,
):
    check_bounds(record_in.start_time, record_in.end_time)
    category = await get_category_or_404(db, owner_id, record_in.category_id)
    try:
        interval = await sources.create_record(
            db, owner_id, category, record_in.start_time, record_in.end_time
        )
    except sources.IntervalOverlapError as e:
        raise overlap_conflict(e)
    return schemas.Record.from_interval(interval)


@router.get("/{record_id}", response_model=schemas.Record)
async def get_record(
    record_id: uuid.UUID,
    db: DBDep,
    owner_id: OwnerDep,
):
    record = await get_record_or_404(db, owner_id, record_id)
    return schemas.Record.from_interval(sources.to_interval(record, record.category))


@router.patch("/{record_id}", response_model=schemas.Record)
async def update_record(
    record_id: uuid.UUID,
    record_update: schemas.RecordUpdate,
    db: DBDep,
    owner_id: OwnerDep,
):
    values = patch_values(record_update)
    if "start_time" in values or "end_time" in values:
        if values.get("start_time") is None or values.get("end_time") is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Both start_time and end_time are required when changing the time range."
            )
        check_bounds(values["start_time"], values["end_time"])
    if "category_id" in values and values["category_id"] is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="category_id cannot be null."
        )

    record = await get_record_or_404(db, owner_id, record_id)
    category = None
    if "category_id" in values:
        category = await get_category_or_404(db, owner_id, values["category_id"])
    try:
        interval = await sources.update_record(db, owner_id, record, values, category)
    except sources.IntervalOverlapError as e:
        raise overlap_conflict(e)
    return schemas.Record.from_interval(interval)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    record_id: uuid.UUID,
    db: DBDep,
    owner_id: OwnerDep,
):
    record = await get_record_or_404(db, owner_id, record_id)
    await sources.delete_record(db, record)
