"""
Context Builder: where in the recruiting year the athlete is, and how
engaged they are.

Pure: takes the clock reading, the sport's seasonal calendar and the last
activity timestamp; reads nothing else.

Seasons (football calendar)
---------------------------
  Jan–Mar  signing_season      (National Signing Day periods)
  Apr–Jul  off_season
  Aug–Oct  recruiting_season   (peak coach contact)
  Nov–Dec  prep_season

Engagement
----------
  no recorded activity            → medium
  ≤ HIGH_ENGAGEMENT_MAX_DAYS      → high
  ≤ MEDIUM_ENGAGEMENT_MAX_DAYS    → medium
  otherwise                       → low
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional

from recruit_timeline.core.clock import ensure_utc
from recruit_timeline.models.seasonal_event import SeasonalEvent


class RecruitingSeason(str, enum.Enum):
    off_season = "off_season"
    prep_season = "prep_season"
    recruiting_season = "recruiting_season"
    signing_season = "signing_season"


class EngagementTier(str, enum.Enum):
    high = "high"
    medium = "medium"
    low = "low"


@dataclass(frozen=True)
class ActiveSeasonalEvent:
    event_key: str
    title: str
    # shown to clients only; ranking applies a flat +1 for any seasonal match
    priority_boost: int = 0


@dataclass(frozen=True)
class TimelineContext:
    reference_time: datetime
    current_season: RecruitingSeason
    engagement: EngagementTier
    days_since_last_activity: int = 0
    active_events: tuple[ActiveSeasonalEvent, ...] = field(default_factory=tuple)

    @property
    def current_year(self) -> int:
        return self.reference_time.year

    @property
    def active_event_keys(self) -> frozenset[str]:
        return frozenset(e.event_key for e in self.active_events)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reference_time": self.reference_time.isoformat(),
            "current_season": self.current_season.value,
            "engagement": self.engagement.value,
            "days_since_last_activity": self.days_since_last_activity,
            "active_events": [e.event_key for e in self.active_events],
            "event_boosts": {e.event_key: e.priority_boost for e in self.active_events},
        }


def season_for(day: date) -> RecruitingSeason:
    month = day.month
    if month <= 3:
        return RecruitingSeason.signing_season
    if month <= 7:
        return RecruitingSeason.off_season
    if month <= 10:
        return RecruitingSeason.recruiting_season
    return RecruitingSeason.prep_season


def engagement_for(
    days_since_last_activity: Optional[int],
    high_max_days: int = 3,
    medium_max_days: int = 14,
) -> EngagementTier:
    if days_since_last_activity is None:
        return EngagementTier.medium
    if days_since_last_activity <= high_max_days:
        return EngagementTier.high
    if days_since_last_activity <= medium_max_days:
        return EngagementTier.medium
    return EngagementTier.low


def active_seasonal_events(
    events: Iterable[SeasonalEvent], day: date
) -> tuple[ActiveSeasonalEvent, ...]:
    return tuple(
        ActiveSeasonalEvent(
            event_key=ev.event_key,
            title=ev.title,
            priority_boost=ev.priority_boost or 0,
        )
        for ev in events
        if ev.is_active and ev.is_open_on(day)
    )


def build_context(
    now: datetime,
    seasonal_events: Iterable[SeasonalEvent],
    last_activity_at: Optional[datetime],
    high_max_days: int = 3,
    medium_max_days: int = 14,
) -> TimelineContext:
    now = ensure_utc(now)
    last = ensure_utc(last_activity_at)

    days_since: Optional[int] = None
    if last is not None:
        days_since = max(0, (now - last).days)

    return TimelineContext(
        reference_time=now,
        current_season=season_for(now.date()),
        engagement=engagement_for(days_since, high_max_days, medium_max_days),
        days_since_last_activity=days_since or 0,
        active_events=active_seasonal_events(seasonal_events, now.date()),
    )
