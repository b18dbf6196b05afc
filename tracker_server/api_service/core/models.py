from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, Enum, Float, ForeignKey, Index, Text, UUID, text
)
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import datetime
from typing import Optional
import uuid as uuid_pkg

from .database import Base
from tracker_server.processing_service.models import GoalType

# No two records of one owner may share any instant; ranges are half-open.
RECORD_OVERLAP_CONSTRAINT = "ex_records_owner_no_overlap"


class Category(Base):
    """A user-defined label that records and goals point at."""
    __tablename__ = "categories"

    id: Mapped[uuid_pkg.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid_pkg.uuid4)
    owner_id: Mapped[uuid_pkg.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    color: Mapped[str] = mapped_column(Text, nullable=False)
    # Archived categories stay in historical charts but are hidden from new entries.
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    records = relationship("Record", back_populates="category")


class Record(Base):
    """One time-boxed activity instance."""
    __tablename__ = "records"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_records_end_after_start"),
        Index("ix_records_owner_start", "owner_id", "start_time"),
    )

    id: Mapped[uuid_pkg.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid_pkg.uuid4)
    owner_id: Mapped[uuid_pkg.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    category_id: Mapped[uuid_pkg.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("categories.id"), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="records")


Record.__table__.append_constraint(
    ExcludeConstraint(
        (Record.__table__.c.owner_id, "="),
        (func.tstzrange(Record.__table__.c.start_time, Record.__table__.c.end_time), "&&"),
        name=RECORD_OVERLAP_CONSTRAINT,
        using="gist",
    )
)


class Goal(Base):
    """A daily or deadline-bound target. Created and deleted, never updated."""
    __tablename__ = "goals"
    __table_args__ = (
        CheckConstraint("target_hours > 0", name="ck_goals_target_positive"),
    )

    id: Mapped[uuid_pkg.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid_pkg.uuid4)
    owner_id: Mapped[uuid_pkg.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    type: Mapped[GoalType] = mapped_column(
        Enum(GoalType, name="goal_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    # NULL means all categories combined.
    category_id: Mapped[Optional[uuid_pkg.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True
    )
    target_hours: Mapped[float] = mapped_column(Float, nullable=False)
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    category = relationship("Category")


class TimerSession(Base):
    """The running stopwatch. At most one active row per owner."""
    __tablename__ = "timer_sessions"
    __table_args__ = (
        Index(
            "uq_timer_sessions_active_owner", "owner_id",
            unique=True,
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[uuid_pkg.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid_pkg.uuid4)
    owner_id: Mapped[uuid_pkg.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
