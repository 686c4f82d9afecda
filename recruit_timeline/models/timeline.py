from datetime import datetime
import enum

from sqlalchemy import Integer, String, Boolean, DateTime, Enum, Index, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recruit_timeline.db.base import Base


class TimelinePhase(str, enum.Enum):
    onboarding = "onboarding"
    building = "building"
    active = "active"
    maintaining = "maintaining"
    archived = "archived"


class UserTimeline(Base):
    """Per-user aggregate root. At most one active row per user."""

    __tablename__ = "user_timelines"
    __table_args__ = (
        Index(
            "uq_user_timelines_active_user",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    current_phase: Mapped[TimelinePhase] = mapped_column(
        Enum(TimelinePhase, name="timeline_phase_enum"),
        nullable=False,
        default=TimelinePhase.onboarding,
    )
    sport: Mapped[str] = mapped_column(String(32), nullable=False, default="football")
    role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    graduation_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    completion_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    has_blocking_tasks: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    generation_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_activity_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_notification_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    tasks: Mapped[list["TaskInstance"]] = relationship(  # noqa: F821
        back_populates="timeline", cascade="all, delete-orphan"
    )
