"""
AthleteProfile: owned by the profile subsystem, read-only here.

Only the columns the timeline engine derives facts from are mapped.
"""
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Integer, String, Numeric, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from recruit_timeline.db.base import Base


class AthleteProfile(Base):
    __tablename__ = "athlete_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="high_school")
    sport: Mapped[str | None] = mapped_column(String(32), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    high_school_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    graduation_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gpa: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    height_inches: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weight_lbs: Mapped[int | None] = mapped_column(Integer, nullable=True)
    forty_yard_dash: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    vertical_jump_inches: Mapped[Decimal | None] = mapped_column(Numeric(4, 1), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    highlight_video_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    transcript_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    ncaa_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
