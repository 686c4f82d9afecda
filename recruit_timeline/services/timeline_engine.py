"""
Timeline Engine: the orchestrator.

Public API
----------
TimelineEngine.generate_user_timeline(user_id)              -> TimelineResult
TimelineEngine.track_progress_event(user_id, type, data, id) -> ProgressEvent
TimelineEngine.start_task / complete_task / skip_task /
               block_task / unblock_task(instance_id)       -> TimelineTask
TimelineEngine.get_dashboard(user_id)                       -> DashboardView

Generation run
--------------
  1. Read profile facts (ProfileNotFoundError if none).
  2. Load the active timeline, build the context, create the timeline if
     the user has none.
  3. For every applicable rule not yet materialized: evaluate → rank →
     insert a pending instance carrying its trigger context.
  4. Recompute completion %, blocking flag, phase; bump generation_version.
  5. Schedule at most one nudge; award milestones.
  6. Return every instance in timeline order.

Steps 2-5 run inside one store unit of work: any failure rolls the whole
run back. Re-running with unchanged facts inserts nothing new; only
generation_version moves.

The engine is stateless between calls. Concurrent runs for the same user
must be serialized by the caller; the DB unique constraints are the last
line against duplicates.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from recruit_timeline.core.clock import Clock, SystemClock, ensure_utc
from recruit_timeline.core.config import Settings, settings as default_settings
from recruit_timeline.core.errors import InvalidTransitionError, TaskInstanceNotFoundError
from recruit_timeline.models.achievement import Achievement
from recruit_timeline.models.notification import Notification
from recruit_timeline.models.progress_event import ProgressEvent
from recruit_timeline.models.task_instance import TaskStatus
from recruit_timeline.models.timeline import TimelinePhase, UserTimeline
from recruit_timeline.services.achievements import award_milestones
from recruit_timeline.services.catalog import TaskCatalog
from recruit_timeline.services.context import TimelineContext, build_context
from recruit_timeline.services.notifier import plan_notification
from recruit_timeline.services.priority import order_tasks, rank
from recruit_timeline.services.profile_facts import ProfileFactsProvider
from recruit_timeline.services.store import TimelineStore
from recruit_timeline.services.task_view import TimelineTask
from recruit_timeline.services.triggers import evaluate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Task status machine
# ---------------------------------------------------------------------------

ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.pending: frozenset({TaskStatus.in_progress, TaskStatus.skipped, TaskStatus.blocked}),
    TaskStatus.in_progress: frozenset({TaskStatus.complete, TaskStatus.skipped}),
    TaskStatus.blocked: frozenset({TaskStatus.pending}),
    TaskStatus.complete: frozenset(),
    TaskStatus.skipped: frozenset(),
}

TERMINAL_STATUSES = frozenset({TaskStatus.complete, TaskStatus.skipped})


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    return TaskStatus(target) in ALLOWED_TRANSITIONS[TaskStatus(current)]


class ProgressEventType:
    FIELD_UPDATED = "field_updated"
    TASK_STARTED = "task_started"
    TASK_COMPLETED = "task_completed"
    TASK_SKIPPED = "task_skipped"
    TASK_BLOCKED = "task_blocked"
    TASK_UNBLOCKED = "task_unblocked"


# ---------------------------------------------------------------------------
# Timeline metadata
# ---------------------------------------------------------------------------

_PHASE_ORDER = (
    TimelinePhase.onboarding,
    TimelinePhase.building,
    TimelinePhase.active,
    TimelinePhase.maintaining,
    TimelinePhase.archived,
)


def initial_phase(profile_completion: int) -> TimelinePhase:
    if profile_completion < 30:
        return TimelinePhase.onboarding
    if profile_completion < 70:
        return TimelinePhase.building
    return TimelinePhase.active


def next_phase(
    current: TimelinePhase, profile_completion: int, tasks: list[TimelineTask]
) -> TimelinePhase:
    """Forward only: a timeline never drops back a phase on its own."""
    candidate = initial_phase(profile_completion)
    if tasks and all(t.status == TaskStatus.complete for t in tasks):
        candidate = TimelinePhase.maintaining
    current = TimelinePhase(current)
    if _PHASE_ORDER.index(candidate) > _PHASE_ORDER.index(current):
        return candidate
    return current


def completion_percentage(tasks: list[TimelineTask]) -> int:
    if not tasks:
        return 0
    done = sum(1 for t in tasks if t.status == TaskStatus.complete)
    pct = Decimal(done * 100) / Decimal(len(tasks))
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def has_blocking_tasks(tasks: Iterable[TimelineTask]) -> bool:
    return any(t.blocks_sharing and t.status != TaskStatus.complete for t in tasks)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class TimelineResult:
    timeline: UserTimeline
    ordered_tasks: list[TimelineTask]
    context: TimelineContext
    generated_at: datetime
    created_task_ids: list[int] = field(default_factory=list)
    notification: Optional[Notification] = None
    achievements_awarded: list[str] = field(default_factory=list)


@dataclass
class DashboardView:
    """The "What's next" widget."""
    phase: TimelinePhase
    completion_percentage: int
    has_blocking_tasks: bool
    last_activity_at: Optional[datetime]
    next_tasks: list[TimelineTask]
    achievements: list[Achievement]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class TimelineEngine:
    def __init__(
        self,
        store: TimelineStore,
        facts_provider: ProfileFactsProvider,
        catalog: TaskCatalog,
        clock: Optional[Clock] = None,
        cfg: Optional[Settings] = None,
    ):
        self.store = store
        self.facts_provider = facts_provider
        self.catalog = catalog
        self.clock = clock or SystemClock()
        self.cfg = cfg or default_settings

    def _now(self) -> datetime:
        return ensure_utc(self.clock.now())

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_user_timeline(self, user_id: int) -> TimelineResult:
        facts = self.facts_provider.get_facts(user_id)
        now = self._now()

        with self.store.unit_of_work():
            timeline = self.store.get_active_timeline(user_id)
            context = build_context(
                now,
                self.store.list_seasonal_events(facts.sport),
                timeline.last_activity_at if timeline is not None else None,
                high_max_days=self.cfg.HIGH_ENGAGEMENT_MAX_DAYS,
                medium_max_days=self.cfg.MEDIUM_ENGAGEMENT_MAX_DAYS,
            )
            if timeline is None:
                timeline = self.store.create_timeline(
                    facts, initial_phase(facts.profile_completion), now
                )
                logger.info("Created timeline %s for user %s", timeline.id, user_id)

            instances = self.store.list_instances(timeline.id)
            materialized = {i.task_definition_id for i in instances}
            created_ids: list[int] = []

            for rule in self.catalog.list_applicable(facts.sport, facts.role):
                if rule.id in materialized:
                    continue
                trigger = evaluate(rule, facts, context)
                if not trigger.triggered:
                    continue
                priority, order_index = rank(rule, trigger, context)
                trigger_context: dict[str, Any] = trigger.to_context()
                trigger_context["season"] = context.current_season.value
                instance = self.store.insert_instance(
                    timeline.id, rule, priority, order_index, trigger_context
                )
                materialized.add(rule.id)
                instances.append(instance)
                created_ids.append(instance.id)

            tasks = order_tasks(TimelineTask.from_instance(i) for i in instances)

            timeline = self.store.update_timeline_metadata(
                timeline,
                completion_percentage=completion_percentage(tasks),
                has_blocking_tasks=has_blocking_tasks(tasks),
                phase=next_phase(timeline.current_phase, facts.profile_completion, tasks),
                generated_at=now,
                facts=facts,
            )

            notification = None
            draft = plan_notification(tasks, context, self.cfg)
            if draft is not None:
                notification = self.store.insert_notification(user_id, draft)

            awarded = award_milestones(self.store, user_id, tasks, facts)

        logger.info(
            "Generated timeline %s v%s for user %s: %d tasks (%d new), %d%% complete",
            timeline.id,
            timeline.generation_version,
            user_id,
            len(tasks),
            len(created_ids),
            timeline.completion_percentage,
        )
        return TimelineResult(
            timeline=timeline,
            ordered_tasks=tasks,
            context=context,
            generated_at=now,
            created_task_ids=created_ids,
            notification=notification,
            achievements_awarded=awarded,
        )

    # ------------------------------------------------------------------
    # Progress tracking
    # ------------------------------------------------------------------

    def track_progress_event(
        self,
        user_id: int,
        event_type: str,
        data: Optional[dict[str, Any]] = None,
        task_instance_id: Optional[int] = None,
        trigger_source: str = "user_action",
    ) -> ProgressEvent:
        """Append to the audit log and mark the user as active now."""
        with self.store.unit_of_work():
            if task_instance_id is not None:
                instance = self.store.get_instance(task_instance_id)
                # another athlete's task is reported as unknown
                if instance is None or instance.timeline.user_id != user_id:
                    raise TaskInstanceNotFoundError(task_instance_id)
            event = self.store.insert_progress_event(
                user_id, event_type, data or {}, task_instance_id, trigger_source
            )
            self.store.touch_last_activity(user_id, self._now())
        return event

    # ------------------------------------------------------------------
    # Task transitions
    # ------------------------------------------------------------------

    def start_task(self, instance_id: int) -> TimelineTask:
        return self._transition(instance_id, TaskStatus.in_progress, ProgressEventType.TASK_STARTED)

    def complete_task(self, instance_id: int) -> TimelineTask:
        return self._transition(instance_id, TaskStatus.complete, ProgressEventType.TASK_COMPLETED)

    def skip_task(self, instance_id: int) -> TimelineTask:
        return self._transition(instance_id, TaskStatus.skipped, ProgressEventType.TASK_SKIPPED)

    def block_task(self, instance_id: int) -> TimelineTask:
        return self._transition(
            instance_id, TaskStatus.blocked, ProgressEventType.TASK_BLOCKED, trigger_source="system_trigger"
        )

    def unblock_task(self, instance_id: int) -> TimelineTask:
        return self._transition(
            instance_id, TaskStatus.pending, ProgressEventType.TASK_UNBLOCKED, trigger_source="system_trigger"
        )

    def _transition(
        self,
        instance_id: int,
        target: TaskStatus,
        event_type: str,
        trigger_source: str = "user_action",
    ) -> TimelineTask:
        now = self._now()
        with self.store.unit_of_work():
            instance = self.store.get_instance(instance_id)
            if instance is None:
                raise TaskInstanceNotFoundError(instance_id)
            current = TaskStatus(instance.status)
            if not can_transition(current, target):
                raise InvalidTransitionError(instance_id, current.value, target.value)

            instance = self.store.update_instance_status(instance, target, now)
            user_id = instance.timeline.user_id
            self.store.insert_progress_event(
                user_id,
                event_type,
                {"from": current.value, "to": target.value, "task_key": instance.definition.task_key},
                instance.id,
                trigger_source,
            )
            if trigger_source == "user_action":
                self.store.touch_last_activity(user_id, now)
            if target == TaskStatus.complete:
                siblings = self.store.list_instances(instance.timeline_id)
                award_milestones(self.store, user_id, [TimelineTask.from_instance(i) for i in siblings])
            task = TimelineTask.from_instance(instance)

        logger.info("Task instance %s: %s → %s", instance_id, current.value, target.value)
        return task

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def get_dashboard(self, user_id: int) -> DashboardView:
        timeline = self.store.get_active_timeline(user_id)
        if timeline is None:
            return DashboardView(
                phase=TimelinePhase.onboarding,
                completion_percentage=0,
                has_blocking_tasks=False,
                last_activity_at=None,
                next_tasks=[],
                achievements=[],
            )

        tasks = order_tasks(TimelineTask.from_instance(i) for i in self.store.list_instances(timeline.id))
        next_tasks = [t for t in tasks if t.status == TaskStatus.pending and t.is_visible]
        return DashboardView(
            phase=TimelinePhase(timeline.current_phase),
            completion_percentage=timeline.completion_percentage,
            has_blocking_tasks=timeline.has_blocking_tasks,
            last_activity_at=timeline.last_activity_at,
            next_tasks=next_tasks[: self.cfg.DASHBOARD_TASK_LIMIT],
            achievements=self.store.list_achievements(user_id, self.cfg.DASHBOARD_ACHIEVEMENT_LIMIT),
        )
