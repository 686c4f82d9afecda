"""
Profile facts: the read-only snapshot of an athlete the engine reasons about.

Public API
----------
UserProfileFacts                     : frozen, flat fact record
PROFILE_FACT_FIELDS                  : names usable in field_missing triggers
profile_completion(...)               -> int
ProfileFactsProvider.get_facts(uid)   -> UserProfileFacts   (protocol)
SqlProfileFactsProvider(db)          : reads athlete_profiles
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recruit_timeline.core.errors import PersistenceError, ProfileNotFoundError
from recruit_timeline.models.athlete_profile import AthleteProfile

DEFAULT_SPORT = "football"


@dataclass(frozen=True)
class UserProfileFacts:
    user_id: int
    role: str
    sport: str = DEFAULT_SPORT
    first_name: Optional[str] = None
    position: Optional[str] = None
    high_school_name: Optional[str] = None
    graduation_year: Optional[int] = None
    gpa: Optional[Decimal] = None
    has_profile_image: bool = False
    has_physical_measurements: bool = False
    has_performance_metrics: bool = False
    has_academic_info: bool = False
    has_contact_info: bool = False
    has_highlight_video: bool = False
    has_transcript: bool = False
    has_ncaa_id: bool = False
    is_public: bool = False
    profile_completion: int = 0


# Identity fields never make sense as "missing"
_NON_FACT_FIELDS = {"user_id", "role", "sport"}

PROFILE_FACT_FIELDS: frozenset[str] = frozenset(
    f.name for f in dataclasses.fields(UserProfileFacts) if f.name not in _NON_FACT_FIELDS
)


def profile_completion(
    first_name: Optional[str],
    graduation_year: Optional[int],
    position: Optional[str],
    has_highlight_video: bool,
    gpa: Optional[Decimal],
) -> int:
    """Share of the five core recruiting fields that are filled, 0–100."""
    factors = [first_name, graduation_year, position, has_highlight_video, gpa]
    filled = sum(1 for f in factors if f)
    pct = Decimal(filled * 100) / Decimal(len(factors))
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ProfileFactsProvider(Protocol):
    def get_facts(self, user_id: int) -> UserProfileFacts:  # pragma: no cover - protocol definition
        ...


class SqlProfileFactsProvider:
    """Derives facts from the profile subsystem's athlete_profiles table."""

    def __init__(self, db: Session):
        self.db = db

    def get_facts(self, user_id: int) -> UserProfileFacts:
        try:
            profile: Optional[AthleteProfile] = (
                self.db.query(AthleteProfile)
                .filter(AthleteProfile.user_id == user_id)
                .first()
            )
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc), operation="get_facts") from exc

        if profile is None:
            raise ProfileNotFoundError(user_id)
        return facts_from_profile(profile)


def facts_from_profile(profile: AthleteProfile) -> UserProfileFacts:
    has_highlight_video = bool(profile.highlight_video_url)
    return UserProfileFacts(
        user_id=profile.user_id,
        role=profile.role,
        sport=profile.sport or DEFAULT_SPORT,
        first_name=profile.first_name,
        position=profile.position,
        high_school_name=profile.high_school_name,
        graduation_year=profile.graduation_year,
        gpa=profile.gpa,
        has_profile_image=bool(profile.profile_image_url),
        has_physical_measurements=bool(profile.height_inches and profile.weight_lbs),
        has_performance_metrics=bool(profile.forty_yard_dash or profile.vertical_jump_inches),
        has_academic_info=profile.gpa is not None,
        has_contact_info=bool(profile.contact_email or profile.phone),
        has_highlight_video=has_highlight_video,
        has_transcript=bool(profile.transcript_url),
        has_ncaa_id=bool(profile.ncaa_id),
        is_public=profile.is_public,
        profile_completion=profile_completion(
            profile.first_name,
            profile.graduation_year,
            profile.position,
            has_highlight_video,
            profile.gpa,
        ),
    )
