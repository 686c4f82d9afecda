"""
Task Catalog: the registry of guidance rules, filtered to what can apply to
an athlete's sport and role.

A definition with a malformed trigger config is logged and skipped; it never
blocks the rest of the catalog.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recruit_timeline.core.errors import InvalidTaskDefinitionError, PersistenceError
from recruit_timeline.models.task_definition import TaskDefinition, TaskPriority
from recruit_timeline.services.triggers import TriggerPredicate, parse_triggers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskRule:
    """Parsed, immutable view of one TaskDefinition row."""
    id: int
    key: str
    title: str
    description: str = ""
    why_it_matters: str = ""
    how_to_complete: str = ""
    estimated_minutes: int = 10
    base_priority: TaskPriority = TaskPriority.medium
    triggers: tuple[TriggerPredicate, ...] = ()
    dependencies: frozenset[str] = field(default_factory=frozenset)
    blocks_sharing: bool = False
    applicable_sports: frozenset[str] = field(default_factory=lambda: frozenset({"football"}))
    applicable_roles: frozenset[str] = field(
        default_factory=lambda: frozenset({"high_school", "transfer_portal"})
    )
    is_active: bool = True

    def applies_to(self, sport: str, role: str) -> bool:
        return self.is_active and sport in self.applicable_sports and role in self.applicable_roles


def rule_from_definition(definition: TaskDefinition) -> TaskRule:
    """Raises InvalidTaskDefinitionError if the stored trigger config is malformed."""
    return TaskRule(
        id=definition.id,
        key=definition.task_key,
        title=definition.title,
        description=definition.description or "",
        why_it_matters=definition.why_it_matters or "",
        how_to_complete=definition.how_to_complete or "",
        estimated_minutes=definition.estimated_minutes if definition.estimated_minutes is not None else 10,
        base_priority=TaskPriority(definition.base_priority),
        triggers=parse_triggers(definition.task_key, definition.triggers),
        dependencies=frozenset(definition.dependencies or ()),
        blocks_sharing=bool(definition.blocks_sharing),
        applicable_sports=frozenset(definition.applicable_sports or ()),
        applicable_roles=frozenset(definition.applicable_roles or ()),
        is_active=bool(definition.is_active),
    )


def load_rules(definitions: Iterable[TaskDefinition]) -> list[TaskRule]:
    """Parse definitions, skipping (and logging) the malformed ones."""
    rules: list[TaskRule] = []
    for definition in definitions:
        try:
            rules.append(rule_from_definition(definition))
        except InvalidTaskDefinitionError as exc:
            logger.warning("Skipping task definition %s: %s", exc.task_key, exc.details["reason"])
    return rules


def filter_applicable(rules: Iterable[TaskRule], sport: str, role: str) -> list[TaskRule]:
    return [r for r in rules if r.applies_to(sport, role)]


class TaskCatalog(Protocol):
    def list_applicable(self, sport: str, role: str) -> list[TaskRule]:  # pragma: no cover - protocol definition
        ...


class SqlTaskCatalog:
    """Reads task_definitions; sport/role membership is checked in Python so
    the JSON list columns work the same on PostgreSQL and SQLite."""

    def __init__(self, db: Session):
        self.db = db

    def list_applicable(self, sport: str, role: str) -> list[TaskRule]:
        try:
            definitions: list[TaskDefinition] = (
                self.db.query(TaskDefinition)
                .filter(TaskDefinition.is_active == True)  # noqa: E712
                .order_by(TaskDefinition.id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc), operation="list_task_definitions") from exc

        candidates = [
            d for d in definitions
            if sport in (d.applicable_sports or ()) and role in (d.applicable_roles or ())
        ]
        return filter_applicable(load_rules(candidates), sport, role)
