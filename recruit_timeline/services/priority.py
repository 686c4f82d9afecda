"""
Priority & Ordering Engine.

Priority ladder: low < medium < high < critical. Boosts are cumulative and
the result is clamped at critical:
  +1  a seasonal_match predicate matched
  +2  a graduation_proximity predicate matched with ≤ 1 year remaining
  +1  the task blocks profile sharing

Order index (lower surfaces first):
  base   critical=10  high=30  medium=50  low=70
  -5     quick win (estimated_minutes ≤ 5)
  -10    contact / highlight task during recruiting_season

Pinning is a separate sort dimension, never folded into the order index.
"""
from __future__ import annotations

from typing import Protocol

from recruit_timeline.models.task_definition import TaskPriority
from recruit_timeline.services.catalog import TaskRule
from recruit_timeline.services.context import RecruitingSeason, TimelineContext
from recruit_timeline.services.triggers import TriggerKind, TriggerResult


PRIORITY_LADDER: tuple[TaskPriority, ...] = (
    TaskPriority.low,
    TaskPriority.medium,
    TaskPriority.high,
    TaskPriority.critical,
)

ORDER_BASE = {
    TaskPriority.critical: 10,
    TaskPriority.high: 30,
    TaskPriority.medium: 50,
    TaskPriority.low: 70,
}

SEASONAL_BOOST = 1
GRADUATION_BOOST = 2
GRADUATION_BOOST_MAX_YEARS = 1
BLOCKS_SHARING_BOOST = 1

QUICK_WIN_MINUTES = 5
QUICK_WIN_BONUS = 5
RECRUITING_FOCUS_BONUS = 10

# Task keys carrying one of these tokens are coach-contact or film work
_RECRUITING_FOCUS_TOKENS = frozenset({"coach", "coaches", "contact", "highlight", "highlights"})


def priority_rank(priority: TaskPriority | str) -> int:
    return PRIORITY_LADDER.index(TaskPriority(priority))


def boost(priority: TaskPriority, levels: int) -> TaskPriority:
    """Move `levels` rungs up the ladder, never past critical."""
    index = min(priority_rank(priority) + max(levels, 0), len(PRIORITY_LADDER) - 1)
    return PRIORITY_LADDER[index]


def boost_levels(rule: TaskRule, trigger: TriggerResult) -> int:
    levels = 0
    if trigger.matched(TriggerKind.seasonal) is not None:
        levels += SEASONAL_BOOST
    graduation = trigger.matched(TriggerKind.graduation_proximity)
    if graduation is not None and graduation.detail["years_remaining"] <= GRADUATION_BOOST_MAX_YEARS:
        levels += GRADUATION_BOOST
    if rule.blocks_sharing:
        levels += BLOCKS_SHARING_BOOST
    return levels


def compute_priority(rule: TaskRule, trigger: TriggerResult) -> TaskPriority:
    return boost(rule.base_priority, boost_levels(rule, trigger))


def is_recruiting_focus(task_key: str) -> bool:
    return not _RECRUITING_FOCUS_TOKENS.isdisjoint(task_key.lower().split("_"))


def compute_order_index(rule: TaskRule, priority: TaskPriority, context: TimelineContext) -> int:
    order = ORDER_BASE[TaskPriority(priority)]
    if rule.estimated_minutes <= QUICK_WIN_MINUTES:
        order -= QUICK_WIN_BONUS
    if context.current_season == RecruitingSeason.recruiting_season and is_recruiting_focus(rule.key):
        order -= RECRUITING_FOCUS_BONUS
    return order


def rank(rule: TaskRule, trigger: TriggerResult, context: TimelineContext) -> tuple[TaskPriority, int]:
    priority = compute_priority(rule, trigger)
    return priority, compute_order_index(rule, priority, context)


class Orderable(Protocol):
    id: int
    is_pinned: bool
    order_index: int
    priority: TaskPriority


def instance_sort_key(task: Orderable) -> tuple[int, int, int, int]:
    """pinned DESC, order_index ASC, priority DESC, id ASC."""
    return (
        0 if task.is_pinned else 1,
        task.order_index,
        -priority_rank(task.priority),
        task.id or 0,
    )


def order_tasks(tasks):
    return sorted(tasks, key=instance_sort_key)
