"""
Trigger Evaluator: decides whether a catalog rule currently applies to an
athlete.

Predicate vocabulary (closed; stored as JSON, discriminated on "kind")
----------------------------------------------------------------------
  field_missing                {"facts": [...]}          any named fact falsy / None
  profile_completion_at_least  {"threshold": 0-100}      completion % >= threshold
  seasonal_match               {"events": [...]}         any listed event window open now
  graduation_proximity         {"years_threshold": n}    grad_year - current_year <= n
  engagement_level_in          {"levels": [...]}         engagement tier listed

Semantics
---------
Any matching predicate triggers the rule (logical OR). The first match in
configured order is the recorded reason; every match is kept so the
priority engine can apply boosts for all of them. A rule with no
predicates never triggers.

Deterministic and side-effect free: no DB, no clock.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Any, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from recruit_timeline.core.errors import InvalidTaskDefinitionError
from recruit_timeline.services.context import EngagementTier, TimelineContext
from recruit_timeline.services.profile_facts import PROFILE_FACT_FIELDS, UserProfileFacts

if TYPE_CHECKING:
    from recruit_timeline.services.catalog import TaskRule


# ---------------------------------------------------------------------------
# Reasons
# ---------------------------------------------------------------------------

class TriggerKind(str, enum.Enum):
    field_missing = "field_missing"
    profile_completion = "profile_completion"
    seasonal = "seasonal"
    graduation_proximity = "graduation_proximity"
    engagement_level = "engagement_level"


@dataclass(frozen=True)
class TriggerReason:
    kind: TriggerKind
    detail: dict[str, Any] = field(default_factory=dict)

    def to_context(self) -> dict[str, Any]:
        return {"reason": self.kind.value, **self.detail}


@dataclass(frozen=True)
class TriggerResult:
    triggered: bool
    reason: Optional[TriggerReason] = None
    matches: tuple[TriggerReason, ...] = ()

    def matched(self, kind: TriggerKind) -> Optional[TriggerReason]:
        for m in self.matches:
            if m.kind == kind:
                return m
        return None

    def to_context(self) -> dict[str, Any]:
        """Audit payload stored on the task instance."""
        if self.reason is None:
            return {}
        payload = self.reason.to_context()
        payload["matched"] = [m.kind.value for m in self.matches]
        return payload


NOT_TRIGGERED = TriggerResult(triggered=False)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

class _Predicate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class FieldMissing(_Predicate):
    kind: Literal["field_missing"] = "field_missing"
    facts: tuple[str, ...] = Field(min_length=1)

    @field_validator("facts")
    @classmethod
    def _known_facts(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [name for name in value if name not in PROFILE_FACT_FIELDS]
        if unknown:
            raise ValueError(f"unknown profile facts: {', '.join(unknown)}")
        return value

    def match(self, facts: UserProfileFacts, context: TimelineContext) -> Optional[TriggerReason]:
        for name in self.facts:
            if not getattr(facts, name):
                return TriggerReason(TriggerKind.field_missing, {"field": name})
        return None


class ProfileCompletionAtLeast(_Predicate):
    kind: Literal["profile_completion_at_least"] = "profile_completion_at_least"
    threshold: int = Field(ge=0, le=100)

    def match(self, facts: UserProfileFacts, context: TimelineContext) -> Optional[TriggerReason]:
        if facts.profile_completion >= self.threshold:
            return TriggerReason(
                TriggerKind.profile_completion,
                {"threshold": self.threshold, "profile_completion": facts.profile_completion},
            )
        return None


class SeasonalMatch(_Predicate):
    kind: Literal["seasonal_match"] = "seasonal_match"
    events: tuple[str, ...] = Field(min_length=1)

    def match(self, facts: UserProfileFacts, context: TimelineContext) -> Optional[TriggerReason]:
        open_keys = context.active_event_keys
        hits = [key for key in self.events if key in open_keys]
        if hits:
            return TriggerReason(TriggerKind.seasonal, {"events": hits})
        return None


class GraduationProximity(_Predicate):
    kind: Literal["graduation_proximity"] = "graduation_proximity"
    years_threshold: int

    def match(self, facts: UserProfileFacts, context: TimelineContext) -> Optional[TriggerReason]:
        if not facts.graduation_year:
            return None
        years_remaining = facts.graduation_year - context.current_year
        if years_remaining <= self.years_threshold:
            return TriggerReason(
                TriggerKind.graduation_proximity,
                {"years_remaining": years_remaining, "years_threshold": self.years_threshold},
            )
        return None


class EngagementLevelIn(_Predicate):
    kind: Literal["engagement_level_in"] = "engagement_level_in"
    levels: tuple[EngagementTier, ...] = Field(min_length=1)

    def match(self, facts: UserProfileFacts, context: TimelineContext) -> Optional[TriggerReason]:
        if context.engagement in self.levels:
            return TriggerReason(TriggerKind.engagement_level, {"level": context.engagement.value})
        return None


TriggerPredicate = Annotated[
    Union[FieldMissing, ProfileCompletionAtLeast, SeasonalMatch, GraduationProximity, EngagementLevelIn],
    Field(discriminator="kind"),
]

_TRIGGER_LIST = TypeAdapter(list[TriggerPredicate])


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _summarize(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def parse_triggers(task_key: str, raw: Any) -> tuple[TriggerPredicate, ...]:
    """
    Validate a stored trigger config into typed predicates.
    Raises InvalidTaskDefinitionError on anything outside the vocabulary.
    """
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise InvalidTaskDefinitionError(task_key, "triggers must be a list of predicates")
    try:
        return tuple(_TRIGGER_LIST.validate_python(raw))
    except ValidationError as exc:
        raise InvalidTaskDefinitionError(task_key, _summarize(exc)) from exc


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def evaluate_predicates(
    predicates: Sequence[TriggerPredicate],
    facts: UserProfileFacts,
    context: TimelineContext,
) -> TriggerResult:
    matches = []
    for predicate in predicates:
        reason = predicate.match(facts, context)
        if reason is not None:
            matches.append(reason)
    if not matches:
        return NOT_TRIGGERED
    return TriggerResult(triggered=True, reason=matches[0], matches=tuple(matches))


def evaluate(rule: "TaskRule", facts: UserProfileFacts, context: TimelineContext) -> TriggerResult:
    """Does `rule` apply to this athlete right now?"""
    return evaluate_predicates(rule.triggers, facts, context)
