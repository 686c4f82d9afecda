"""
Achievement Awarder: one-time milestone awards.

  first_task_complete  exactly one task complete (records that task)
  task_streak_5        five or more tasks complete
  profile_complete     profile completion reported at 100%

Every check runs on every call; the store's insert-if-absent makes repeats
no-ops.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from recruit_timeline.models.task_instance import TaskStatus
from recruit_timeline.services.profile_facts import UserProfileFacts
from recruit_timeline.services.task_view import TimelineTask

if TYPE_CHECKING:
    from recruit_timeline.services.store import TimelineStore

logger = logging.getLogger(__name__)


FIRST_TASK_COMPLETE = "first_task_complete"
TASK_STREAK_5 = "task_streak_5"
PROFILE_COMPLETE = "profile_complete"

STREAK_THRESHOLD = 5


@dataclass(frozen=True)
class AchievementAward:
    key: str
    title: str
    description: str
    icon: Optional[str] = None
    trigger_task_id: Optional[int] = None


def milestones(
    tasks: Iterable[TimelineTask], facts: Optional[UserProfileFacts] = None
) -> list[AchievementAward]:
    """Awards the current state qualifies for (before the existence check)."""
    completed = [t for t in tasks if t.status == TaskStatus.complete]
    awards: list[AchievementAward] = []

    if len(completed) == 1:
        awards.append(AchievementAward(
            key=FIRST_TASK_COMPLETE,
            title="First Step Complete!",
            description="You completed your first recruiting task. Keep the momentum going!",
            icon="🎯",
            trigger_task_id=completed[0].id,
        ))

    if len(completed) >= STREAK_THRESHOLD:
        awards.append(AchievementAward(
            key=TASK_STREAK_5,
            title="On Fire!",
            description="You've completed 5 recruiting tasks. Coaches notice prepared athletes.",
            icon="🔥",
        ))

    if facts is not None and facts.profile_completion >= 100:
        awards.append(AchievementAward(
            key=PROFILE_COMPLETE,
            title="Profile Complete!",
            description="Your recruiting profile is 100% complete. Coaches love prepared athletes.",
            icon="✅",
        ))

    return awards


def award_milestones(
    store: "TimelineStore",
    user_id: int,
    tasks: Iterable[TimelineTask],
    facts: Optional[UserProfileFacts] = None,
) -> list[str]:
    """Persist any newly earned awards; returns the keys actually inserted."""
    awarded: list[str] = []
    for award in milestones(tasks, facts):
        if store.award_achievement_if_absent(user_id, award):
            logger.info("Awarded %s to user %s", award.key, user_id)
            awarded.append(award.key)
    return awarded
