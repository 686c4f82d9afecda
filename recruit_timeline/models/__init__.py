from .task_definition import TaskDefinition, TaskPriority
from .timeline import UserTimeline, TimelinePhase
from .task_instance import TaskInstance, TaskStatus
from .progress_event import ProgressEvent
from .notification import Notification, NotificationType
from .achievement import Achievement
from .seasonal_event import SeasonalEvent
from .athlete_profile import AthleteProfile

__all__ = [
    "TaskDefinition",
    "TaskPriority",
    "UserTimeline",
    "TimelinePhase",
    "TaskInstance",
    "TaskStatus",
    "ProgressEvent",
    "Notification",
    "NotificationType",
    "Achievement",
    "SeasonalEvent",
    "AthleteProfile",
]
