from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime, date
import uuid

from tracker_server.processing_service.logic.settings import settings as engine_settings
from tracker_server.processing_service.models import CategoryRef, GoalProgress, GoalType, Interval
from tracker_server.shared.utils import localize


# Base schemas
class BaseSchema(BaseModel):
    """Base schema for all Pydantic models to inherit from."""
    model_config = ConfigDict(from_attributes=True)


class ClientTimesSchema(BaseSchema):
    """
    Input carrying client timestamps. Times without an offset are read as
    server-local wall time; all of them leave here as UTC.
    """

    @field_validator("start_time", "end_time", mode="after", check_fields=False)
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return localize(v, engine_settings.local_zone())


# Category schemas
class CategoryCreate(BaseSchema):
    """Schema for creating a new category."""
    name: str
    color: str

    @field_validator("name", "color")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class CategoryUpdate(BaseSchema):
    """
    Patch for a category. Only fields present in the request body are
    applied; a field that is sent must carry a value.
    """
    name: Optional[str] = None
    color: Optional[str] = None
    is_archived: Optional[bool] = None

    @field_validator("name", "color", "is_archived", mode="before")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v

    @field_validator("name", "color")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class Category(BaseSchema):
    """Schema for a category as returned by the API."""
    id: uuid.UUID
    name: str
    color: str
    is_archived: bool
    created_at: datetime
    updated_at: datetime


# Record schemas
class RecordCreate(ClientTimesSchema):
    """Schema for creating a new record."""
    category_id: uuid.UUID
    start_time: datetime
    end_time: datetime


class RecordUpdate(ClientTimesSchema):
    """
    Patch for a record. Start and end travel together: sending one without
    the other is rejected by the endpoint.
    """
    category_id: Optional[uuid.UUID] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class Record(BaseSchema):
    """Schema for a record as returned by the API."""
    id: uuid.UUID
    category_id: Optional[uuid.UUID] = None
    category: Optional[CategoryRef] = None
    start_time: datetime
    end_time: datetime
    duration_hours: float

    @classmethod
    def from_interval(cls, interval: Interval) -> "Record":
        return cls(
            id=interval.id,
            category_id=interval.category_id,
            category=interval.category,
            start_time=interval.start_time,
            end_time=interval.end_time,
            duration_hours=interval.duration_hours,
        )


# Goal schemas
class GoalCreate(BaseSchema):
    """Schema for creating a new goal. `deadline` is a local calendar date."""
    type: GoalType
    category_id: Optional[uuid.UUID] = None
    target_hours: float = Field(gt=0)
    deadline: Optional[date] = None


class Goal(BaseSchema):
    """Schema for a stored goal."""
    id: uuid.UUID
    type: GoalType
    category_id: Optional[uuid.UUID] = None
    target_hours: float
    deadline: Optional[datetime] = None
    created_at: datetime


class GoalWithProgress(BaseSchema):
    """Schema for a goal with its progress in the currently active window."""
    id: uuid.UUID
    type: GoalType
    category_id: Optional[uuid.UUID] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    target_hours: float
    deadline: Optional[datetime] = None
    achieved_hours: float
    is_achieved: bool
    progress: float
    created_at: datetime

    @classmethod
    def from_progress(cls, progress: GoalProgress) -> "GoalWithProgress":
        goal = progress.goal
        return cls(
            id=goal.id,
            type=goal.type,
            category_id=goal.category_id,
            category_name=goal.category.name if goal.category else None,
            category_color=goal.category.color if goal.category else None,
            target_hours=goal.target_hours,
            deadline=goal.deadline,
            achieved_hours=progress.achieved_hours,
            is_achieved=progress.is_achieved,
            progress=progress.progress,
            created_at=goal.created_at,
        )


class GoalListResponse(BaseSchema):
    goals: List[GoalWithProgress]


# Timer schemas
class TimerStart(ClientTimesSchema):
    start_time: datetime


class TimerSession(BaseSchema):
    """Schema for a timer session as returned by the API."""
    id: uuid.UUID
    start_time: datetime
    is_active: bool
    created_at: datetime


class TimerResponse(BaseSchema):
    data: Optional[TimerSession] = None


# System schemas
class SystemStatus(BaseSchema):
    """Schema for the system status response."""
    status: str
    version: str
    database_connected: bool
