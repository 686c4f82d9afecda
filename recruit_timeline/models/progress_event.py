"""
ProgressEvent: append-only audit trail of athlete actions.

event_type examples: "field_updated", "task_started", "task_completed",
"task_skipped", "profile_viewed". Never updated or deleted by the engine.
"""
from datetime import datetime

from sqlalchemy import Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import Mapped, mapped_column

from recruit_timeline.db.base import Base


class ProgressEvent(Base):
    __tablename__ = "progress_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    task_instance_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("task_instances.id", ondelete="CASCADE"), nullable=True
    )
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    event_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    trigger_source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
