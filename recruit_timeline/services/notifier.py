"""
Notification Scheduler: at most one nudge per generation run.

Rules
-----
  Candidates : pending tasks with priority high or critical, in timeline order
  Pick       : the first candidate only (no flooding)
  Delay      : engagement high → 4h, low → 72h, otherwise 24h
  Priority   : 8 if the task is critical, else 6
  Template   : "critical" if the task blocks sharing,
               "seasonal" if it fired on a seasonal window,
               otherwise "nudge"
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from recruit_timeline.core.config import Settings, settings as default_settings
from recruit_timeline.models.notification import NotificationType
from recruit_timeline.models.task_definition import TaskPriority
from recruit_timeline.models.task_instance import TaskStatus
from recruit_timeline.services.context import EngagementTier, TimelineContext
from recruit_timeline.services.task_view import TimelineTask


NUDGE_PRIORITY_CRITICAL = 8
NUDGE_PRIORITY_DEFAULT = 6

_QUALIFYING_PRIORITIES = frozenset({TaskPriority.high, TaskPriority.critical})

TEMPLATES: dict[NotificationType, dict[str, str]] = {
    NotificationType.nudge: {
        "title": "Ready for your next step?",
        "message": "Your {task_title} is waiting. It only takes about {estimated_minutes} minutes.",
        "cta_text": "Let's do this",
    },
    NotificationType.seasonal: {
        "title": "Perfect timing for recruiting!",
        "message": "It's {season_name} - the ideal time to {task_title}.",
        "cta_text": "Take advantage",
    },
    NotificationType.critical: {
        "title": "Important: Action needed",
        "message": "Your {task_title} is blocking your profile from being shared with coaches.",
        "cta_text": "Fix this now",
    },
}


@dataclass(frozen=True)
class NotificationDraft:
    task_instance_id: Optional[int]
    notification_type: NotificationType
    title: str
    message: str
    cta_text: Optional[str]
    cta_url: Optional[str]
    scheduled_for: datetime
    priority: int


def delay_hours_for(engagement: EngagementTier, cfg: Settings = default_settings) -> int:
    if engagement == EngagementTier.high:
        return cfg.NUDGE_DELAY_HOURS_HIGH
    if engagement == EngagementTier.low:
        return cfg.NUDGE_DELAY_HOURS_LOW
    return cfg.NUDGE_DELAY_HOURS_DEFAULT


def qualifying_tasks(ordered_tasks: Iterable[TimelineTask]) -> list[TimelineTask]:
    return [
        t for t in ordered_tasks
        if t.status == TaskStatus.pending and t.priority in _QUALIFYING_PRIORITIES
    ]


def _season_name(task: TimelineTask, context: TimelineContext) -> str:
    fired_on = task.trigger_context.get("events") or []
    for event in context.active_events:
        if event.event_key in fired_on:
            return event.title
    return context.current_season.value.replace("_", " ")


def _template_for(task: TimelineTask) -> NotificationType:
    if task.blocks_sharing:
        return NotificationType.critical
    if task.trigger_reason == "seasonal":
        return NotificationType.seasonal
    return NotificationType.nudge


def plan_notification(
    ordered_tasks: Iterable[TimelineTask],
    context: TimelineContext,
    cfg: Settings = default_settings,
) -> Optional[NotificationDraft]:
    """Return the single nudge to schedule, or None when nothing qualifies."""
    candidates = qualifying_tasks(ordered_tasks)
    if not candidates:
        return None

    top = candidates[0]
    kind = _template_for(top)
    template = TEMPLATES[kind]
    values = {
        "task_title": top.title,
        "estimated_minutes": top.estimated_minutes,
        "season_name": _season_name(top, context),
    }
    return NotificationDraft(
        task_instance_id=top.id,
        notification_type=kind,
        title=template["title"],
        message=template["message"].format(**values),
        cta_text=template["cta_text"],
        cta_url=f"/dashboard/tasks/{top.id}",
        scheduled_for=context.reference_time + timedelta(hours=delay_hours_for(context.engagement, cfg)),
        priority=NUDGE_PRIORITY_CRITICAL if top.priority == TaskPriority.critical else NUDGE_PRIORITY_DEFAULT,
    )
