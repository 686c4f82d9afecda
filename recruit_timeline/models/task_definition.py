"""
TaskDefinition: the catalog of guidance rules.

Seeded and versioned out-of-band (migration 0002); the engine only reads it.

`triggers` holds a JSON list of tagged predicates, e.g.
  [{"kind": "field_missing", "facts": ["has_highlight_video"]},
   {"kind": "seasonal_match", "events": ["recruiting_season_peak"]}]
Validated into typed predicates by services/triggers.py.
"""
from datetime import datetime
import enum

from sqlalchemy import Integer, String, Text, Boolean, DateTime, Enum, JSON, func
from sqlalchemy.orm import Mapped, mapped_column

from recruit_timeline.db.base import Base


class TaskPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class TaskDefinition(Base):
    __tablename__ = "task_definitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    task_key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    why_it_matters: Mapped[str] = mapped_column(Text, nullable=False, default="")
    how_to_complete: Mapped[str] = mapped_column(Text, nullable=False, default="")
    estimated_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    base_priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, name="task_priority_enum"),
        nullable=False,
        default=TaskPriority.medium,
    )
    dependencies: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    triggers: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    blocks_sharing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    applicable_sports: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=lambda: ["football"]
    )
    applicable_roles: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=lambda: ["high_school", "transfer_portal"]
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
