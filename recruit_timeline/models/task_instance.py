"""
TaskInstance: one materialized TaskDefinition on one user's timeline.

Status machine (enforced by services/timeline_engine.py):
  pending → in_progress → complete
  pending | in_progress → skipped
  pending → blocked → pending      (set externally, e.g. unmet dependency)
complete and skipped are terminal.

The (timeline_id, task_definition_id) unique constraint is the final guard
against duplicate materialization under concurrent regeneration.
"""
from datetime import datetime
import enum

from sqlalchemy import (
    Integer, Boolean, DateTime, Enum, ForeignKey, JSON, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recruit_timeline.db.base import Base
from recruit_timeline.models.task_definition import TaskDefinition, TaskPriority


class TaskStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    complete = "complete"
    skipped = "skipped"
    blocked = "blocked"


class TaskInstance(Base):
    __tablename__ = "task_instances"
    __table_args__ = (
        UniqueConstraint("timeline_id", "task_definition_id", name="uq_task_instance_timeline_def"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    timeline_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_timelines.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_definition_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("task_definitions.id"), nullable=False
    )
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status_enum"),
        nullable=False,
        default=TaskStatus.pending,
        index=True,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, name="task_priority_enum"),
        nullable=False,
        default=TaskPriority.medium,
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    trigger_context: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    timeline: Mapped["UserTimeline"] = relationship(back_populates="tasks")  # noqa: F821
    definition: Mapped[TaskDefinition] = relationship(lazy="joined")
