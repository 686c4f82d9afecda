"""
Tests for the notification scheduler (pure: no database).
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from recruit_timeline.core.config import Settings
from recruit_timeline.models.notification import NotificationType
from recruit_timeline.models.task_definition import TaskPriority
from recruit_timeline.models.task_instance import TaskStatus
from recruit_timeline.services.context import (
    ActiveSeasonalEvent,
    EngagementTier,
    RecruitingSeason,
    TimelineContext,
)
from recruit_timeline.services.notifier import (
    NUDGE_PRIORITY_CRITICAL,
    NUDGE_PRIORITY_DEFAULT,
    delay_hours_for,
    plan_notification,
)
from recruit_timeline.services.task_view import TimelineTask

NOW = datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)


def _task(
    id: int,
    priority: TaskPriority = TaskPriority.high,
    status: TaskStatus = TaskStatus.pending,
    blocks_sharing: bool = False,
    trigger_context: dict | None = None,
) -> TimelineTask:
    return TimelineTask(
        id=id,
        task_definition_id=id,
        task_key=f"task_{id}",
        title=f"Task {id}",
        description="",
        why_it_matters="",
        how_to_complete="",
        estimated_minutes=7,
        blocks_sharing=blocks_sharing,
        status=status,
        priority=priority,
        order_index=30,
        trigger_context=trigger_context or {"reason": "field_missing"},
    )


def _context(engagement: EngagementTier = EngagementTier.medium, events=()) -> TimelineContext:
    return TimelineContext(
        reference_time=NOW,
        current_season=RecruitingSeason.recruiting_season,
        engagement=engagement,
        active_events=tuple(events),
    )


class TestQualification:
    def test_nothing_qualifies(self):
        tasks = [_task(1, TaskPriority.medium), _task(2, TaskPriority.low)]
        assert plan_notification(tasks, _context()) is None

    def test_empty_timeline(self):
        assert plan_notification([], _context()) is None

    def test_non_pending_ignored(self):
        tasks = [
            _task(1, TaskPriority.critical, status=TaskStatus.complete),
            _task(2, TaskPriority.critical, status=TaskStatus.in_progress),
        ]
        assert plan_notification(tasks, _context()) is None

    def test_first_qualifying_task_in_order_wins(self):
        tasks = [_task(1, TaskPriority.medium), _task(2, TaskPriority.high), _task(3, TaskPriority.critical)]
        draft = plan_notification(tasks, _context())
        assert draft.task_instance_id == 2
        assert draft.cta_url == "/dashboard/tasks/2"


class TestTiming:
    def test_delay_by_engagement(self):
        assert plan_notification([_task(1)], _context(EngagementTier.high)).scheduled_for == NOW + timedelta(hours=4)
        assert plan_notification([_task(1)], _context(EngagementTier.medium)).scheduled_for == NOW + timedelta(hours=24)
        assert plan_notification([_task(1)], _context(EngagementTier.low)).scheduled_for == NOW + timedelta(hours=72)

    def test_delays_are_configurable(self):
        cfg = Settings(NUDGE_DELAY_HOURS_LOW=120)
        assert delay_hours_for(EngagementTier.low, cfg) == 120


class TestContent:
    def test_priority_by_task_priority(self):
        assert plan_notification([_task(1, TaskPriority.critical)], _context()).priority == NUDGE_PRIORITY_CRITICAL
        assert plan_notification([_task(1, TaskPriority.high)], _context()).priority == NUDGE_PRIORITY_DEFAULT

    def test_nudge_template(self):
        draft = plan_notification([_task(1)], _context())
        assert draft.notification_type == NotificationType.nudge
        assert draft.title == "Ready for your next step?"
        assert draft.message == "Your Task 1 is waiting. It only takes about 7 minutes."

    def test_critical_template_for_sharing_blockers(self):
        draft = plan_notification([_task(1, blocks_sharing=True)], _context())
        assert draft.notification_type == NotificationType.critical
        assert "blocking your profile" in draft.message

    def test_seasonal_template_names_the_window(self):
        task = _task(1, trigger_context={"reason": "seasonal", "events": ["recruiting_season_peak"]})
        events = [ActiveSeasonalEvent("recruiting_season_peak", "Peak Recruiting Season", 3)]
        draft = plan_notification([task], _context(events=events))
        assert draft.notification_type == NotificationType.seasonal
        assert draft.message == "It's Peak Recruiting Season - the ideal time to Task 1."
