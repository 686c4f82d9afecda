"""
SeasonalEvent: a recurring yearly calendar window (e.g. signing period).

A window whose start is later in the year than its end wraps across New
Year (Dec 1 → Feb 28). Missing end_month means the window ends in the start
month; missing end_day means it runs to the end of the end month.
"""
from datetime import date, datetime

from sqlalchemy import Integer, String, Text, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from recruit_timeline.db.base import Base


class SeasonalEvent(Base):
    __tablename__ = "seasonal_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    event_key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_month: Mapped[int] = mapped_column(Integer, nullable=False)
    start_day: Mapped[int] = mapped_column(Integer, nullable=False)
    end_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sport: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    priority_boost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def is_open_on(self, day: date) -> bool:
        start = (self.start_month, self.start_day)
        end = (self.end_month or self.start_month, self.end_day or 31)
        current = (day.month, day.day)
        if start <= end:
            return start <= current <= end
        return current >= start or current <= end
