"""
Read model of a task instance joined with its definition: what the athlete
actually sees in the timeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from recruit_timeline.models.task_definition import TaskPriority
from recruit_timeline.models.task_instance import TaskInstance, TaskStatus


@dataclass
class TimelineTask:
    id: int
    task_definition_id: int
    task_key: str
    title: str
    description: str
    why_it_matters: str
    how_to_complete: str
    estimated_minutes: int
    blocks_sharing: bool
    status: TaskStatus
    priority: TaskPriority
    order_index: int
    is_pinned: bool = False
    is_visible: bool = True
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    trigger_context: dict[str, Any] = field(default_factory=dict)

    @property
    def trigger_reason(self) -> Optional[str]:
        return self.trigger_context.get("reason")

    @classmethod
    def from_instance(cls, instance: TaskInstance) -> "TimelineTask":
        definition = instance.definition
        return cls(
            id=instance.id,
            task_definition_id=instance.task_definition_id,
            task_key=definition.task_key,
            title=definition.title,
            description=definition.description,
            why_it_matters=definition.why_it_matters or "",
            how_to_complete=definition.how_to_complete or "",
            estimated_minutes=definition.estimated_minutes,
            blocks_sharing=bool(definition.blocks_sharing),
            status=TaskStatus(instance.status),
            priority=TaskPriority(instance.priority),
            order_index=instance.order_index,
            is_pinned=bool(instance.is_pinned),
            is_visible=bool(instance.is_visible),
            started_at=instance.started_at,
            completed_at=instance.completed_at,
            trigger_context=dict(instance.trigger_context or {}),
        )
