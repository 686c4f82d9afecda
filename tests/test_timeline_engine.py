"""
Tests for the timeline engine orchestrator against a real (SQLite) store.

Scenarios:
  A) Missing highlight video during recruiting season → field_missing reason,
     seasonal boost, sorted ahead of low-priority work
  B) First completed task → exactly one first_task_complete award
  C) Graduation next year + GraduationProximity(1) on a medium rule
  D) No applicable definitions → empty timeline, 0% complete, no error

Additional coverage:
  - No duplicate instances across regenerations; generation_version bumps
  - A store failure rolls back the whole run
  - Phase progression, notification scheduling, task transitions,
    progress events, dashboard
"""
from __future__ import annotations

import pytest
from datetime import timedelta

from sqlalchemy.exc import OperationalError

from recruit_timeline.core.clock import ensure_utc
from recruit_timeline.core.errors import (
    InvalidTransitionError,
    PersistenceError,
    ProfileNotFoundError,
    TaskInstanceNotFoundError,
)
from recruit_timeline.models import (
    Achievement,
    Notification,
    NotificationType,
    ProgressEvent,
    TaskInstance,
    TaskPriority,
    TimelinePhase,
    UserTimeline,
)
from recruit_timeline.models.task_instance import TaskStatus
from recruit_timeline.services.catalog import SqlTaskCatalog
from recruit_timeline.services.profile_facts import SqlProfileFactsProvider
from recruit_timeline.services.store import SqlTimelineStore
from recruit_timeline.services.timeline_engine import (
    TimelineEngine,
    can_transition,
    completion_percentage,
    initial_phase,
)

MISSING_VIDEO = [{"kind": "field_missing", "facts": ["has_highlight_video"]}]
ALWAYS = [{"kind": "profile_completion_at_least", "threshold": 0}]


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_a_highlight_video_in_recruiting_season(
        self, timeline_engine, make_profile, make_definition, make_seasonal_event
    ):
        make_profile(user_id=1)
        make_seasonal_event("recruiting_season_peak", (8, 1), (10, 31), priority_boost=3)
        make_definition("low_priority_chore", ALWAYS, base_priority=TaskPriority.low, estimated_minutes=30)
        make_definition(
            "upload_highlight_video",
            MISSING_VIDEO + [{"kind": "seasonal_match", "events": ["recruiting_season_peak"]}],
            base_priority=TaskPriority.high,
            estimated_minutes=15,
        )

        result = timeline_engine.generate_user_timeline(1)

        keys = [t.task_key for t in result.ordered_tasks]
        video = result.ordered_tasks[keys.index("upload_highlight_video")]
        assert video.trigger_reason == "field_missing"
        assert video.trigger_context["matched"] == ["field_missing", "seasonal"]
        assert video.priority == TaskPriority.critical
        assert keys.index("upload_highlight_video") < keys.index("low_priority_chore")
        assert result.context.current_season.value == "recruiting_season"

    def test_b_first_completed_task_awarded_once(self, db, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("task_one", ALWAYS)
        make_definition("task_two", ALWAYS)
        result = timeline_engine.generate_user_timeline(1)
        first = result.ordered_tasks[0]

        timeline_engine.start_task(first.id)
        timeline_engine.complete_task(first.id)
        regenerated = timeline_engine.generate_user_timeline(1)

        rows = db.query(Achievement).filter(Achievement.achievement_key == "first_task_complete").all()
        assert len(rows) == 1
        assert rows[0].trigger_task_id == first.id
        assert regenerated.achievements_awarded == []

    def test_c_graduation_proximity_on_medium_rule(self, timeline_engine, make_profile, make_definition, clock):
        make_profile(user_id=1, graduation_year=clock.now().year + 1)
        make_definition(
            "upload_transcript",
            [{"kind": "graduation_proximity", "years_threshold": 1}],
            base_priority=TaskPriority.medium,
        )

        task = timeline_engine.generate_user_timeline(1).ordered_tasks[0]
        assert task.trigger_reason == "graduation_proximity"
        # medium + 2 levels on the low/medium/high/critical ladder
        assert task.priority == TaskPriority.critical

    def test_d_no_applicable_definitions(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1, sport="basketball")
        make_definition("football_only", ALWAYS)

        result = timeline_engine.generate_user_timeline(1)
        assert result.ordered_tasks == []
        assert result.timeline.completion_percentage == 0
        assert result.timeline.has_blocking_tasks is False
        assert result.notification is None


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

class TestGeneration:
    def test_unknown_user(self, timeline_engine):
        with pytest.raises(ProfileNotFoundError):
            timeline_engine.generate_user_timeline(404)

    def test_no_duplicates_across_runs(self, db, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("task_one", ALWAYS)
        make_definition("task_two", MISSING_VIDEO)

        first = timeline_engine.generate_user_timeline(1)
        second = timeline_engine.generate_user_timeline(1)

        assert len(first.created_task_ids) == 2
        assert second.created_task_ids == []
        assert [t.id for t in second.ordered_tasks] == [t.id for t in first.ordered_tasks]
        assert db.query(TaskInstance).count() == 2
        assert db.query(UserTimeline).count() == 1
        assert second.timeline.generation_version == 2

    def test_regeneration_does_not_raise_engagement(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("update_stats", [{"kind": "engagement_level_in", "levels": ["high"]}])

        first = timeline_engine.generate_user_timeline(1)
        second = timeline_engine.generate_user_timeline(1)

        assert first.context.engagement.value == "medium"
        assert second.context.engagement.value == "medium"
        assert first.created_task_ids == []
        assert second.created_task_ids == []
        assert second.timeline.last_activity_at is None

    def test_new_rule_added_later(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("task_one", ALWAYS)
        timeline_engine.generate_user_timeline(1)

        make_definition("task_two", ALWAYS)
        result = timeline_engine.generate_user_timeline(1)
        assert len(result.created_task_ids) == 1
        assert len(result.ordered_tasks) == 2

    def test_materialized_task_survives_fact_change(self, db, timeline_engine, make_profile, make_definition):
        profile = make_profile(user_id=1)
        make_definition("upload_highlight_video", MISSING_VIDEO)
        timeline_engine.generate_user_timeline(1)

        profile.highlight_video_url = "https://hudl.com/v/1"
        db.commit()
        result = timeline_engine.generate_user_timeline(1)
        assert [t.task_key for t in result.ordered_tasks] == ["upload_highlight_video"]

    def test_non_triggering_rule_not_materialized(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1, highlight_video_url="https://hudl.com/v/1")
        make_definition("upload_highlight_video", MISSING_VIDEO)
        assert timeline_engine.generate_user_timeline(1).ordered_tasks == []

    def test_role_filtering(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1, role="transfer_portal")
        make_definition("portal_task", ALWAYS, applicable_roles=["transfer_portal"])
        make_definition("hs_task", ALWAYS, applicable_roles=["high_school"])
        keys = [t.task_key for t in timeline_engine.generate_user_timeline(1).ordered_tasks]
        assert keys == ["portal_task"]

    def test_malformed_definition_skipped(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("broken", [{"kind": "astrology"}])
        make_definition("fine", ALWAYS)
        keys = [t.task_key for t in timeline_engine.generate_user_timeline(1).ordered_tasks]
        assert keys == ["fine"]

    def test_blocking_flag(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("blocker", ALWAYS, blocks_sharing=True)
        result = timeline_engine.generate_user_timeline(1)
        assert result.timeline.has_blocking_tasks is True

        task_id = result.ordered_tasks[0].id
        timeline_engine.start_task(task_id)
        timeline_engine.complete_task(task_id)
        assert timeline_engine.generate_user_timeline(1).timeline.has_blocking_tasks is False

    def test_completion_monotonic_as_tasks_finish(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        for key in ("a", "b", "c"):
            make_definition(f"task_{key}", ALWAYS)
        result = timeline_engine.generate_user_timeline(1)
        seen = [result.timeline.completion_percentage]

        for task in result.ordered_tasks:
            timeline_engine.start_task(task.id)
            timeline_engine.complete_task(task.id)
            seen.append(timeline_engine.generate_user_timeline(1).timeline.completion_percentage)

        assert seen == [0, 33, 67, 100]

    def test_trigger_context_persisted(self, db, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("upload_highlight_video", MISSING_VIDEO)
        timeline_engine.generate_user_timeline(1)
        instance = db.query(TaskInstance).one()
        assert instance.trigger_context["reason"] == "field_missing"
        assert instance.trigger_context["field"] == "has_highlight_video"
        assert instance.trigger_context["season"] == "recruiting_season"


class TestPhase:
    @pytest.mark.parametrize("completion,expected", [
        (0, TimelinePhase.onboarding),
        (29, TimelinePhase.onboarding),
        (30, TimelinePhase.building),
        (69, TimelinePhase.building),
        (70, TimelinePhase.active),
    ])
    def test_initial_phase(self, completion, expected):
        assert initial_phase(completion) == expected

    def test_new_timeline_phase_from_profile(self, timeline_engine, make_profile):
        # first_name, graduation_year, position filled: 3 of 5
        make_profile(user_id=1)
        assert timeline_engine.generate_user_timeline(1).timeline.current_phase == TimelinePhase.building

    def test_phase_moves_forward_only(self, db, timeline_engine, make_profile):
        profile = make_profile(user_id=1, highlight_video_url="https://hudl.com/v/1")
        assert timeline_engine.generate_user_timeline(1).timeline.current_phase == TimelinePhase.active

        profile.highlight_video_url = None
        profile.position = None
        db.commit()
        assert timeline_engine.generate_user_timeline(1).timeline.current_phase == TimelinePhase.active

    def test_maintaining_when_everything_complete(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("only_task", ALWAYS)
        task = timeline_engine.generate_user_timeline(1).ordered_tasks[0]
        timeline_engine.start_task(task.id)
        timeline_engine.complete_task(task.id)
        assert timeline_engine.generate_user_timeline(1).timeline.current_phase == TimelinePhase.maintaining

    def test_completion_rounding(self):
        assert completion_percentage([]) == 0


class TestNotifications:
    def test_single_nudge_for_top_task(self, db, timeline_engine, make_profile, make_definition, clock):
        make_profile(user_id=1)
        make_definition("first", ALWAYS, base_priority=TaskPriority.high)
        make_definition("second", ALWAYS, base_priority=TaskPriority.critical)

        result = timeline_engine.generate_user_timeline(1)
        assert db.query(Notification).count() == 1
        notification = result.notification
        assert notification.task_instance_id == result.ordered_tasks[0].id
        assert notification.notification_type == NotificationType.nudge
        assert notification.priority == 8
        # brand-new timeline: no prior activity, medium engagement
        assert ensure_utc(notification.scheduled_for) == clock.now() + timedelta(hours=24)

    def test_recent_activity_shortens_delay(self, timeline_engine, make_profile, make_definition, clock):
        make_profile(user_id=1)
        make_definition("first", ALWAYS, base_priority=TaskPriority.high)
        timeline_engine.generate_user_timeline(1)
        timeline_engine.track_progress_event(1, "field_updated", {"field": "gpa"})

        clock.advance(days=1)
        result = timeline_engine.generate_user_timeline(1)
        assert result.context.engagement.value == "high"
        assert ensure_utc(result.notification.scheduled_for) == clock.now() + timedelta(hours=4)

    def test_no_nudge_for_medium_tasks(self, db, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("chore", ALWAYS, base_priority=TaskPriority.medium)
        assert timeline_engine.generate_user_timeline(1).notification is None
        assert db.query(Notification).count() == 0


# ---------------------------------------------------------------------------
# Failure atomicity
# ---------------------------------------------------------------------------

class _FailingStore(SqlTimelineStore):
    def insert_notification(self, user_id, draft):
        with self._guard("insert_notification"):
            raise OperationalError("INSERT INTO notifications", {}, Exception("disk I/O error"))


class TestAtomicity:
    def test_store_failure_rolls_back_everything(self, db, clock, test_settings, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("urgent", ALWAYS, base_priority=TaskPriority.critical)
        engine = TimelineEngine(
            store=_FailingStore(db),
            facts_provider=SqlProfileFactsProvider(db),
            catalog=SqlTaskCatalog(db),
            clock=clock,
            cfg=test_settings,
        )

        with pytest.raises(PersistenceError) as exc_info:
            engine.generate_user_timeline(1)

        assert exc_info.value.details == {"operation": "insert_notification"}
        assert db.query(UserTimeline).count() == 0
        assert db.query(TaskInstance).count() == 0
        assert db.query(Notification).count() == 0


# ---------------------------------------------------------------------------
# Task transitions & progress events
# ---------------------------------------------------------------------------

class TestTransitions:
    @pytest.mark.parametrize("current,target,allowed", [
        (TaskStatus.pending, TaskStatus.in_progress, True),
        (TaskStatus.pending, TaskStatus.skipped, True),
        (TaskStatus.pending, TaskStatus.blocked, True),
        (TaskStatus.pending, TaskStatus.complete, False),
        (TaskStatus.in_progress, TaskStatus.complete, True),
        (TaskStatus.in_progress, TaskStatus.skipped, True),
        (TaskStatus.in_progress, TaskStatus.pending, False),
        (TaskStatus.blocked, TaskStatus.pending, True),
        (TaskStatus.blocked, TaskStatus.in_progress, False),
        (TaskStatus.complete, TaskStatus.in_progress, False),
        (TaskStatus.skipped, TaskStatus.pending, False),
    ])
    def test_status_machine(self, current, target, allowed):
        assert can_transition(current, target) is allowed

    @pytest.fixture()
    def task_id(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("only_task", ALWAYS)
        return timeline_engine.generate_user_timeline(1).ordered_tasks[0].id

    def test_start_then_complete_stamps_times(self, timeline_engine, task_id, clock):
        started = timeline_engine.start_task(task_id)
        assert started.status == TaskStatus.in_progress
        assert started.started_at == clock.now()

        clock.advance(minutes=10)
        done = timeline_engine.complete_task(task_id)
        assert done.status == TaskStatus.complete
        assert done.completed_at == clock.now()

    def test_terminal_status(self, timeline_engine, task_id):
        timeline_engine.skip_task(task_id)
        with pytest.raises(InvalidTransitionError) as exc_info:
            timeline_engine.start_task(task_id)
        assert exc_info.value.details == {"instance_id": task_id, "from": "skipped", "to": "in_progress"}

    def test_cannot_complete_without_starting(self, timeline_engine, task_id):
        with pytest.raises(InvalidTransitionError):
            timeline_engine.complete_task(task_id)

    def test_block_and_unblock(self, timeline_engine, task_id):
        assert timeline_engine.block_task(task_id).status == TaskStatus.blocked
        assert timeline_engine.unblock_task(task_id).status == TaskStatus.pending

    def test_unknown_instance(self, timeline_engine):
        with pytest.raises(TaskInstanceNotFoundError):
            timeline_engine.start_task(999)

    def test_transitions_logged(self, db, timeline_engine, task_id):
        timeline_engine.start_task(task_id)
        timeline_engine.complete_task(task_id)
        events = db.query(ProgressEvent).order_by(ProgressEvent.id).all()
        assert [e.event_type for e in events] == ["task_started", "task_completed"]
        assert events[1].event_data == {"from": "in_progress", "to": "complete", "task_key": "only_task"}
        assert all(e.task_instance_id == task_id for e in events)
        assert all(e.trigger_source == "user_action" for e in events)

    def test_completion_awards_immediately(self, db, timeline_engine, task_id):
        timeline_engine.start_task(task_id)
        timeline_engine.complete_task(task_id)
        assert db.query(Achievement).filter(Achievement.achievement_key == "first_task_complete").count() == 1


class TestProgressEvents:
    def test_event_recorded_and_activity_bumped(self, db, timeline_engine, make_profile, clock):
        make_profile(user_id=1)
        timeline_engine.generate_user_timeline(1)

        clock.advance(days=20)
        event = timeline_engine.track_progress_event(1, "field_updated", {"field": "gpa"})

        assert event.id is not None
        assert event.event_data == {"field": "gpa"}
        timeline = db.query(UserTimeline).one()
        assert ensure_utc(timeline.last_activity_at) == clock.now()

    def test_event_without_timeline(self, db, timeline_engine):
        timeline_engine.track_progress_event(5, "profile_viewed")
        assert db.query(ProgressEvent).count() == 1
        assert db.query(UserTimeline).count() == 0

    def test_unknown_task_instance(self, timeline_engine):
        with pytest.raises(TaskInstanceNotFoundError):
            timeline_engine.track_progress_event(1, "field_updated", {}, task_instance_id=42)

    def test_other_users_task_instance(self, db, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("only_task", ALWAYS)
        task = timeline_engine.generate_user_timeline(1).ordered_tasks[0]

        with pytest.raises(TaskInstanceNotFoundError):
            timeline_engine.track_progress_event(2, "task_started", {}, task_instance_id=task.id)
        assert db.query(ProgressEvent).count() == 0

    def test_own_task_instance(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("only_task", ALWAYS)
        task = timeline_engine.generate_user_timeline(1).ordered_tasks[0]

        event = timeline_engine.track_progress_event(1, "field_updated", {}, task_instance_id=task.id)
        assert event.task_instance_id == task.id


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

class TestDashboard:
    def test_without_timeline(self, timeline_engine):
        view = timeline_engine.get_dashboard(1)
        assert view.phase == TimelinePhase.onboarding
        assert view.completion_percentage == 0
        assert view.next_tasks == []
        assert view.achievements == []

    def test_next_tasks_limited_to_pending(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        for i in range(5):
            make_definition(f"task_{i}", ALWAYS)
        tasks = timeline_engine.generate_user_timeline(1).ordered_tasks
        timeline_engine.start_task(tasks[0].id)

        view = timeline_engine.get_dashboard(1)
        assert len(view.next_tasks) == 3
        assert all(t.status == TaskStatus.pending for t in view.next_tasks)
        assert tasks[0].id not in [t.id for t in view.next_tasks]

    def test_recent_achievements(self, timeline_engine, make_profile, make_definition):
        make_profile(user_id=1)
        make_definition("only_task", ALWAYS)
        task = timeline_engine.generate_user_timeline(1).ordered_tasks[0]
        timeline_engine.start_task(task.id)
        timeline_engine.complete_task(task.id)

        view = timeline_engine.get_dashboard(1)
        assert [a.achievement_key for a in view.achievements] == ["first_task_complete"]
