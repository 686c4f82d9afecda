"""
Timeline router: thin HTTP host over TimelineEngine.

POST /timeline/{user_id}/generate           : (re)generate the athlete's timeline
GET  /timeline/{user_id}/dashboard          : "What's next" widget
POST /timeline/{user_id}/events             : record a progress event
POST /timeline/tasks/{instance_id}/{action} : start | complete | skip | block | unblock
"""
from __future__ import annotations

import enum

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from recruit_timeline.core.clock import Clock, SystemClock
from recruit_timeline.db.base import get_db
from recruit_timeline.schemas.common import ErrorResponse
from recruit_timeline.schemas.timeline import (
    AchievementResponse,
    DashboardResponse,
    NotificationResponse,
    ProgressEventRequest,
    ProgressEventResponse,
    TaskResponse,
    TimelineResponse,
)
from recruit_timeline.services.catalog import SqlTaskCatalog
from recruit_timeline.services.profile_facts import SqlProfileFactsProvider
from recruit_timeline.services.store import SqlTimelineStore
from recruit_timeline.services.timeline_engine import TimelineEngine, TimelineResult

router = APIRouter(prefix="/timeline", tags=["timeline"])


class TaskAction(str, enum.Enum):
    start = "start"
    complete = "complete"
    skip = "skip"
    block = "block"
    unblock = "unblock"


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_clock() -> Clock:
    return SystemClock()


def get_timeline_engine(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> TimelineEngine:
    return TimelineEngine(
        store=SqlTimelineStore(db),
        facts_provider=SqlProfileFactsProvider(db),
        catalog=SqlTaskCatalog(db),
        clock=clock,
    )


def _timeline_to_response(result: TimelineResult) -> TimelineResponse:
    timeline = result.timeline
    return TimelineResponse(
        timeline_id=timeline.id,
        user_id=timeline.user_id,
        phase=timeline.current_phase,
        completion_percentage=timeline.completion_percentage,
        has_blocking_tasks=timeline.has_blocking_tasks,
        generation_version=timeline.generation_version,
        generated_at=result.generated_at,
        context=result.context.to_dict(),
        tasks=[TaskResponse.model_validate(t) for t in result.ordered_tasks],
        created_task_ids=result.created_task_ids,
        notification=(
            NotificationResponse.model_validate(result.notification)
            if result.notification is not None
            else None
        ),
        achievements_awarded=result.achievements_awarded,
    )


# ---------------------------------------------------------------------------
# POST /timeline/{user_id}/generate
# ---------------------------------------------------------------------------

@router.post(
    "/{user_id}/generate",
    response_model=TimelineResponse,
    summary="Generate or refresh an athlete's recruiting timeline",
    responses={
        404: {"model": ErrorResponse, "description": "No athlete profile for this user."},
        503: {"model": ErrorResponse, "description": "Database unavailable; nothing was written."},
    },
)
def generate_timeline(
    user_id: int = Path(ge=1),
    engine: TimelineEngine = Depends(get_timeline_engine),
):
    """
    Evaluate every applicable catalog rule against the athlete's profile and
    the recruiting calendar, materialize the ones that fire, and return the
    full timeline in display order.

    Idempotent for unchanged facts: only `generation_version` moves.
    """
    return _timeline_to_response(engine.generate_user_timeline(user_id))


# ---------------------------------------------------------------------------
# GET /timeline/{user_id}/dashboard
# ---------------------------------------------------------------------------

@router.get(
    "/{user_id}/dashboard",
    response_model=DashboardResponse,
    summary="What's next for this athlete",
)
def get_dashboard(
    user_id: int = Path(ge=1),
    engine: TimelineEngine = Depends(get_timeline_engine),
):
    view = engine.get_dashboard(user_id)
    return DashboardResponse(
        phase=view.phase,
        completion_percentage=view.completion_percentage,
        has_blocking_tasks=view.has_blocking_tasks,
        last_activity_at=view.last_activity_at,
        next_tasks=[TaskResponse.model_validate(t) for t in view.next_tasks],
        achievements=[AchievementResponse.model_validate(a) for a in view.achievements],
    )


# ---------------------------------------------------------------------------
# POST /timeline/{user_id}/events
# ---------------------------------------------------------------------------

@router.post(
    "/{user_id}/events",
    response_model=ProgressEventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an athlete progress event",
    responses={404: {"model": ErrorResponse, "description": "Unknown task instance."}},
)
def track_event(
    payload: ProgressEventRequest,
    user_id: int = Path(ge=1),
    engine: TimelineEngine = Depends(get_timeline_engine),
):
    """Appends to the audit trail and marks the athlete active now."""
    event = engine.track_progress_event(
        user_id,
        payload.event_type,
        payload.data,
        task_instance_id=payload.task_instance_id,
    )
    return ProgressEventResponse.model_validate(event)


# ---------------------------------------------------------------------------
# POST /timeline/tasks/{instance_id}/{action}
# ---------------------------------------------------------------------------

@router.post(
    "/tasks/{instance_id}/{action}",
    response_model=TaskResponse,
    summary="Move a task through its lifecycle",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown task instance."},
        409: {"model": ErrorResponse, "description": "Transition not allowed from the current status."},
    },
)
def transition_task(
    action: TaskAction,
    instance_id: int = Path(ge=1),
    engine: TimelineEngine = Depends(get_timeline_engine),
):
    """
    ### Allowed transitions
    | From | Actions |
    |---|---|
    | `pending`     | start, skip, block |
    | `in_progress` | complete, skip |
    | `blocked`     | unblock |
    | `complete`, `skipped` | none (terminal) |
    """
    handlers = {
        TaskAction.start: engine.start_task,
        TaskAction.complete: engine.complete_task,
        TaskAction.skip: engine.skip_task,
        TaskAction.block: engine.block_task,
        TaskAction.unblock: engine.unblock_task,
    }
    return TaskResponse.model_validate(handlers[action](instance_id))
