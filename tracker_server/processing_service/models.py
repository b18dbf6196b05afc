# tracker_server/processing_service/models.py

import enum
import logging
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, Dict, List, Union
from datetime import datetime

from tracker_server.shared.utils import ensure_utc

log = logging.getLogger(__name__)


class GoalType(str, enum.Enum):
    DAILY = "daily"
    PERIOD = "period"


# --- Inputs, as handed over by the storage collaborator ---
class CategoryRef(BaseModel):
    """The id/name/color snapshot of a category joined onto an interval or goal."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str
    color: str

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        return str(v)


class Interval(BaseModel):
    """
    One recorded span of time attributed to a category.

    `category` is None when the referenced category could not be joined
    (deleted or not visible); such intervals drop out of every aggregate.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    category_id: Optional[str] = None
    category: Optional[CategoryRef] = None
    start_time: datetime
    end_time: datetime

    @field_validator('id', 'category_id', mode='before')
    @classmethod
    def coerce_ids(cls, v):
        return None if v is None else str(v)

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def to_utc(cls, v):
        if isinstance(v, str):
            v = datetime.fromisoformat(v.replace('Z', '+00:00'))
        if isinstance(v, datetime):
            return ensure_utc(v)
        raise ValueError("Invalid datetime format")

    @property
    def duration_hours(self) -> float:
        return duration_hours(self)


def duration_hours(interval: Interval) -> float:
    seconds = (interval.end_time - interval.start_time).total_seconds()
    if seconds <= 0:
        log.warning(f"Interval {interval.id} has end_time <= start_time; counting it as zero hours.")
        return 0.0
    return seconds / 3600


class Goal(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: GoalType
    category_id: Optional[str] = None
    category: Optional[CategoryRef] = None
    target_hours: float = Field(gt=0)
    deadline: Optional[datetime] = None
    created_at: datetime

    @field_validator('id', 'category_id', mode='before')
    @classmethod
    def coerce_ids(cls, v):
        return None if v is None else str(v)

    @field_validator('deadline', 'created_at', mode='before')
    @classmethod
    def to_utc(cls, v):
        if isinstance(v, str):
            v = datetime.fromisoformat(v.replace('Z', '+00:00'))
        return ensure_utc(v) if isinstance(v, datetime) else v

    @model_validator(mode='after')
    def check_deadline(self):
        if self.type is GoalType.PERIOD and self.deadline is None:
            raise ValueError("A period goal needs a deadline")
        if self.type is GoalType.DAILY and self.deadline is not None:
            raise ValueError("A daily goal cannot have a deadline")
        return self


# --- Derived, recomputed per query ---
class BucketedSeries(BaseModel):
    dates: List[str]
    categories: List[CategoryRef]
    # day key -> category id -> unrounded hours
    buckets: Dict[str, Dict[str, float]]


class StackedSeries(BaseModel):
    dates: List[str]
    categories: List[CategoryRef]
    data: List[Dict[str, Union[str, float]]]


class TimelineSegment(BaseModel):
    start_minute: int = Field(ge=0, le=1440)
    end_minute: int = Field(ge=0, le=1440)
    category_id: str
    category_name: str
    color: str
    hours: float


class DayTimeline(BaseModel):
    date: str
    segments: List[TimelineSegment]


class GoalProgress(BaseModel):
    goal: Goal
    window_start: datetime
    window_end: datetime
    achieved_hours: float
    is_achieved: bool
    progress: float
