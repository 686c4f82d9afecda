"""
Timeline API schemas.

POST /timeline/{user_id}/generate          → TimelineResponse
GET  /timeline/{user_id}/dashboard         → DashboardResponse
POST /timeline/{user_id}/events            ← ProgressEventRequest
                                           → ProgressEventResponse
POST /timeline/tasks/{instance_id}/{action} → TaskResponse
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from recruit_timeline.models.notification import NotificationType
from recruit_timeline.models.task_definition import TaskPriority
from recruit_timeline.models.task_instance import TaskStatus
from recruit_timeline.models.timeline import TimelinePhase


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_key: str
    title: str
    description: str
    why_it_matters: str
    how_to_complete: str
    estimated_minutes: int
    blocks_sharing: bool
    status: TaskStatus
    priority: TaskPriority
    order_index: int = Field(description="Lower sorts earlier.")
    is_pinned: bool
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    trigger_reason: Optional[str] = Field(
        default=None,
        description='Why the task appeared: "field_missing" | "profile_completion" | '
        '"seasonal" | "graduation_proximity" | "engagement_level".',
    )
    trigger_context: dict[str, Any] = Field(default_factory=dict)


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_instance_id: Optional[int] = None
    notification_type: NotificationType
    title: str
    message: str
    cta_text: Optional[str] = None
    cta_url: Optional[str] = None
    scheduled_for: Optional[datetime] = None
    priority: int


class AchievementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    achievement_key: str
    title: str
    description: str
    icon: Optional[str] = None
    is_new: bool
    created_at: Optional[datetime] = None


class TimelineResponse(BaseModel):
    timeline_id: int
    user_id: int
    phase: TimelinePhase
    completion_percentage: int = Field(ge=0, le=100)
    has_blocking_tasks: bool
    generation_version: int
    generated_at: datetime
    context: dict[str, Any] = Field(description="Season, engagement tier and open calendar windows.")
    tasks: list[TaskResponse]
    created_task_ids: list[int]
    notification: Optional[NotificationResponse] = None
    achievements_awarded: list[str]


class DashboardResponse(BaseModel):
    phase: TimelinePhase
    completion_percentage: int
    has_blocking_tasks: bool
    last_activity_at: Optional[datetime] = None
    next_tasks: list[TaskResponse]
    achievements: list[AchievementResponse]


class ProgressEventRequest(BaseModel):
    event_type: str = Field(
        min_length=1,
        max_length=50,
        description='e.g. "field_updated", "profile_viewed".',
        examples=["field_updated"],
    )
    data: dict[str, Any] = Field(default_factory=dict)
    task_instance_id: Optional[int] = None


class ProgressEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    event_type: str
    event_data: dict[str, Any]
    task_instance_id: Optional[int] = None
    trigger_source: Optional[str] = None
    created_at: Optional[datetime] = None
