"""
TimelineStore: the persistence boundary of the engine.

Everything the engine reads or writes crosses this interface; the engine
holds no state of its own between calls.

SqlTimelineStore
----------------
* Write methods flush only. `unit_of_work()` commits once at the end and
  rolls back everything on any failure, so a generation run never leaves a
  partial write behind.
* Every SQLAlchemyError is re-raised as PersistenceError.
* Uniqueness (one instance per timeline+definition, one achievement per
  user+key, one active timeline per user) is enforced by DB constraints.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any, ContextManager, Generator, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recruit_timeline.core.errors import PersistenceError
from recruit_timeline.models.achievement import Achievement
from recruit_timeline.models.notification import Notification
from recruit_timeline.models.progress_event import ProgressEvent
from recruit_timeline.models.seasonal_event import SeasonalEvent
from recruit_timeline.models.task_definition import TaskPriority
from recruit_timeline.models.task_instance import TaskInstance, TaskStatus
from recruit_timeline.models.timeline import TimelinePhase, UserTimeline
from recruit_timeline.services.profile_facts import UserProfileFacts

if TYPE_CHECKING:
    from recruit_timeline.services.achievements import AchievementAward
    from recruit_timeline.services.catalog import TaskRule
    from recruit_timeline.services.notifier import NotificationDraft


class TimelineStore(Protocol):  # pragma: no cover - protocol definition
    def unit_of_work(self) -> ContextManager[None]: ...

    def get_active_timeline(self, user_id: int) -> Optional[UserTimeline]: ...

    def create_timeline(
        self, facts: UserProfileFacts, phase: TimelinePhase, now: datetime
    ) -> UserTimeline: ...

    def update_timeline_metadata(
        self,
        timeline: UserTimeline,
        *,
        completion_percentage: int,
        has_blocking_tasks: bool,
        phase: TimelinePhase,
        generated_at: datetime,
        facts: Optional[UserProfileFacts] = None,
    ) -> UserTimeline: ...

    def list_instances(self, timeline_id: int) -> list[TaskInstance]: ...

    def get_instance(self, instance_id: int) -> Optional[TaskInstance]: ...

    def insert_instance(
        self,
        timeline_id: int,
        rule: "TaskRule",
        priority: TaskPriority,
        order_index: int,
        trigger_context: dict[str, Any],
    ) -> TaskInstance: ...

    def update_instance_status(
        self, instance: TaskInstance, status: TaskStatus, now: datetime
    ) -> TaskInstance: ...

    def insert_notification(self, user_id: int, draft: "NotificationDraft") -> Notification: ...

    def award_achievement_if_absent(self, user_id: int, award: "AchievementAward") -> bool: ...

    def list_achievements(self, user_id: int, limit: int) -> list[Achievement]: ...

    def insert_progress_event(
        self,
        user_id: int,
        event_type: str,
        data: dict[str, Any],
        task_instance_id: Optional[int] = None,
        trigger_source: str = "user_action",
    ) -> ProgressEvent: ...

    def touch_last_activity(self, user_id: int, now: datetime) -> bool: ...

    def list_seasonal_events(self, sport: str) -> list[SeasonalEvent]: ...


class SqlTimelineStore:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    @contextmanager
    def unit_of_work(self) -> Generator[None, None, None]:
        try:
            yield
            with self._guard("commit"):
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    @contextmanager
    def _guard(self, operation: str) -> Generator[None, None, None]:
        try:
            yield
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc), operation=operation) from exc

    # ------------------------------------------------------------------
    # Timelines
    # ------------------------------------------------------------------

    def get_active_timeline(self, user_id: int) -> Optional[UserTimeline]:
        with self._guard("get_active_timeline"):
            return (
                self.db.query(UserTimeline)
                .filter(UserTimeline.user_id == user_id, UserTimeline.is_active == True)  # noqa: E712
                .first()
            )

    def create_timeline(
        self, facts: UserProfileFacts, phase: TimelinePhase, now: datetime
    ) -> UserTimeline:
        with self._guard("create_timeline"):
            timeline = UserTimeline(
                user_id=facts.user_id,
                sport=facts.sport,
                role=facts.role,
                graduation_year=facts.graduation_year,
                position=facts.position,
                current_phase=phase,
                completion_percentage=0,
                has_blocking_tasks=False,
                generation_version=0,
                generated_at=now,
                # only athlete actions count as activity
                last_activity_at=None,
                is_active=True,
            )
            self.db.add(timeline)
            self.db.flush()
            return timeline

    def update_timeline_metadata(
        self,
        timeline: UserTimeline,
        *,
        completion_percentage: int,
        has_blocking_tasks: bool,
        phase: TimelinePhase,
        generated_at: datetime,
        facts: Optional[UserProfileFacts] = None,
    ) -> UserTimeline:
        with self._guard("update_timeline_metadata"):
            timeline.completion_percentage = completion_percentage
            timeline.has_blocking_tasks = has_blocking_tasks
            timeline.current_phase = phase
            timeline.generated_at = generated_at
            timeline.generation_version = (timeline.generation_version or 0) + 1
            if facts is not None:
                timeline.sport = facts.sport
                timeline.role = facts.role
                timeline.graduation_year = facts.graduation_year
                timeline.position = facts.position
            self.db.flush()
            return timeline

    def touch_last_activity(self, user_id: int, now: datetime) -> bool:
        """Bump last_activity_at on the active timeline. False if none exists."""
        timeline = self.get_active_timeline(user_id)
        if timeline is None:
            return False
        with self._guard("touch_last_activity"):
            timeline.last_activity_at = now
            self.db.flush()
        return True

    # ------------------------------------------------------------------
    # Task instances
    # ------------------------------------------------------------------

    def list_instances(self, timeline_id: int) -> list[TaskInstance]:
        with self._guard("list_instances"):
            return (
                self.db.query(TaskInstance)
                .filter(TaskInstance.timeline_id == timeline_id)
                .order_by(TaskInstance.id.asc())
                .all()
            )

    def get_instance(self, instance_id: int) -> Optional[TaskInstance]:
        with self._guard("get_instance"):
            return self.db.get(TaskInstance, instance_id)

    def insert_instance(
        self,
        timeline_id: int,
        rule: "TaskRule",
        priority: TaskPriority,
        order_index: int,
        trigger_context: dict[str, Any],
    ) -> TaskInstance:
        with self._guard("insert_instance"):
            instance = TaskInstance(
                timeline_id=timeline_id,
                task_definition_id=rule.id,
                status=TaskStatus.pending,
                priority=priority,
                order_index=order_index,
                trigger_context=trigger_context,
                is_pinned=False,
                is_visible=True,
            )
            self.db.add(instance)
            self.db.flush()
            return instance

    def update_instance_status(
        self, instance: TaskInstance, status: TaskStatus, now: datetime
    ) -> TaskInstance:
        with self._guard("update_instance_status"):
            instance.status = status
            if status == TaskStatus.in_progress and instance.started_at is None:
                instance.started_at = now
            if status == TaskStatus.complete:
                instance.completed_at = now
            self.db.flush()
            return instance

    # ------------------------------------------------------------------
    # Notifications, achievements, progress events
    # ------------------------------------------------------------------

    def insert_notification(self, user_id: int, draft: "NotificationDraft") -> Notification:
        with self._guard("insert_notification"):
            notification = Notification(
                user_id=user_id,
                task_instance_id=draft.task_instance_id,
                notification_type=draft.notification_type,
                title=draft.title,
                message=draft.message,
                cta_text=draft.cta_text,
                cta_url=draft.cta_url,
                scheduled_for=draft.scheduled_for,
                priority=draft.priority,
            )
            self.db.add(notification)
            self.db.flush()
            return notification

    def award_achievement_if_absent(self, user_id: int, award: "AchievementAward") -> bool:
        """Insert-if-absent; never updates an existing award."""
        with self._guard("award_achievement"):
            exists = (
                self.db.query(Achievement.id)
                .filter(
                    Achievement.user_id == user_id,
                    Achievement.achievement_key == award.key,
                )
                .first()
                is not None
            )
            if exists:
                return False
            self.db.add(Achievement(
                user_id=user_id,
                achievement_key=award.key,
                title=award.title,
                description=award.description,
                icon=award.icon,
                trigger_task_id=award.trigger_task_id,
            ))
            self.db.flush()
            return True

    def list_achievements(self, user_id: int, limit: int) -> list[Achievement]:
        with self._guard("list_achievements"):
            return (
                self.db.query(Achievement)
                .filter(Achievement.user_id == user_id, Achievement.is_visible == True)  # noqa: E712
                .order_by(Achievement.created_at.desc(), Achievement.id.desc())
                .limit(limit)
                .all()
            )

    def insert_progress_event(
        self,
        user_id: int,
        event_type: str,
        data: dict[str, Any],
        task_instance_id: Optional[int] = None,
        trigger_source: str = "user_action",
    ) -> ProgressEvent:
        with self._guard("insert_progress_event"):
            event = ProgressEvent(
                user_id=user_id,
                task_instance_id=task_instance_id,
                event_type=event_type,
                event_data=data or {},
                trigger_source=trigger_source,
            )
            self.db.add(event)
            self.db.flush()
            return event

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    def list_seasonal_events(self, sport: str) -> list[SeasonalEvent]:
        with self._guard("list_seasonal_events"):
            return (
                self.db.query(SeasonalEvent)
                .filter(SeasonalEvent.sport == sport, SeasonalEvent.is_active == True)  # noqa: E712
                .order_by(SeasonalEvent.id.asc())
                .all()
            )
