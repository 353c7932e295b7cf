"""Decision strategies the council uses to answer events.

A strategy maps an event and a :class:`DecisionContext` to an
:class:`EventResolution`. Strategies are pure: they read the context and
never mutate it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from .effects import effect_department
from .models import (
    Agenda,
    CouncilMember,
    Department,
    DepartmentState,
    Effect,
    EffectKind,
    Estate,
    EventCategory,
    EventOption,
    KPIReport,
    MandateGoal,
    PriorityLevel,
    Region,
    ResourcePool,
    ResponsePosture,
    Severity,
    SimulationEvent,
    ThreatLevel,
    TrustLevels,
)

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_THRESHOLD = -40.0

PRIORITY_WEIGHTS: Dict[PriorityLevel, float] = {
    PriorityLevel.NEGLECT: 0.85,
    PriorityLevel.STEADY: 1.0,
    PriorityLevel.PUSH: 1.2,
}

_SEVERITY_PENALTY: Dict[Severity, float] = {
    Severity.MAJOR: 60.0,
    Severity.MODERATE: 35.0,
    Severity.MINOR: 10.0,
}

_STABILITY_MULTIPLIER: Dict[ThreatLevel, float] = {
    ThreatLevel.CRITICAL: 4.0,
    ThreatLevel.MODERATE: 2.5,
    ThreatLevel.LOW: 1.5,
}

_TYPE_MULTIPLIER: Dict[EffectKind, float] = {
    EffectKind.LOYALTY: 2.2,
    EffectKind.THREAT: -6.0,
    EffectKind.WEALTH: 1.8,
    EffectKind.TREASURY: 1.2,
    EffectKind.REPUTATION: 0.9,
    EffectKind.INFRASTRUCTURE: 1.4,
}


class CostProfile(NamedTuple):
    gold: float
    influence: float
    labor: float
    severity: float


POSTURE_COSTS: Dict[ResponsePosture, CostProfile] = {
    ResponsePosture.FORCEFUL: CostProfile(1.0, 1.15, 0.9, -8.0),
    ResponsePosture.DIPLOMATIC: CostProfile(1.1, 0.8, 1.0, -2.0),
    ResponsePosture.COVERT: CostProfile(1.05, 1.0, 0.95, -5.0),
    ResponsePosture.BALANCED: CostProfile(1.0, 1.0, 1.0, 0.0),
}


@dataclass
class ResponsePostureSettings:
    """Default response posture with per-category overrides."""

    default: ResponsePosture = ResponsePosture.BALANCED
    per_category: Dict[EventCategory, ResponsePosture] = field(default_factory=dict)

    def for_category(self, category: EventCategory) -> ResponsePosture:
        return self.per_category.get(category, self.default)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default": self.default.value,
            "per_category": {key.value: value.value for key, value in self.per_category.items()},
        }

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "ResponsePostureSettings":
        data = data or {}
        return ResponsePostureSettings(
            default=ResponsePosture(data.get("default", ResponsePosture.BALANCED.value)),
            per_category={
                EventCategory(key): ResponsePosture(value)
                for key, value in (data.get("per_category") or {}).items()
            },
        )


@dataclass
class DecisionContext:
    """Snapshot of the empire handed to a strategy for one event."""

    quarter: int
    resources: ResourcePool
    estates: List[Estate]
    regions: List[Region]
    departments: List[DepartmentState]
    trust: TrustLevels
    agenda: Agenda
    council: List[CouncilMember]
    posture: ResponsePosture = ResponsePosture.BALANCED
    kpis: Optional[KPIReport] = None
    rejection_threshold: float = DEFAULT_REJECTION_THRESHOLD


@dataclass(frozen=True)
class EventResolution:
    option_id: Optional[str] = None
    defer: bool = False
    notes: Optional[str] = None


Strategy = Callable[[SimulationEvent, DecisionContext], EventResolution]


def _agenda_weight(effect: Effect, context: DecisionContext) -> float:
    department = effect_department(effect)
    if department is None:
        return 1.0
    weight = PRIORITY_WEIGHTS[context.agenda.priority(department)]
    if effect.value < 0 and weight > 1:
        return 1 / weight
    return weight


def _posture_weight(effect: Effect, posture: ResponsePosture) -> float:
    kind = effect.kind
    if posture == ResponsePosture.FORCEFUL:
        if kind in (EffectKind.THREAT, EffectKind.SECURITY_PRESSURE):
            return 1.8 if effect.value < 0 else 0.7
        if kind in (EffectKind.LOYALTY, EffectKind.STABILITY):
            return 1.2
    elif posture == ResponsePosture.DIPLOMATIC:
        if kind in (EffectKind.REPUTATION, EffectKind.INFLUENCE):
            return 1.4 if effect.value > 0 else 0.6
        if kind == EffectKind.THREAT:
            return 1.1 if effect.value < 0 else 0.8
    elif posture == ResponsePosture.COVERT:
        if kind in (EffectKind.SECURITY_PRESSURE, EffectKind.THREAT):
            return 1.5 if effect.value < 0 else 0.8
        if kind == EffectKind.LOYALTY:
            return 1.1
    return 1.0


def _mandate_weight(effect: Effect, agenda: Agenda) -> float:
    """Weight from the first open mandate the effect speaks to."""

    kind = effect.kind
    for mandate in agenda.mandates:
        if mandate.is_closed:
            continue
        goal = mandate.goal
        if goal == MandateGoal.STABILIZE_REGION:
            if (
                kind == EffectKind.LOYALTY
                and mandate.target.kind == "region"
                and effect.target == mandate.target.name
            ):
                return 1.5
            if kind == EffectKind.STABILITY:
                return 1.2
        elif goal == MandateGoal.FORTIFY_BORDER:
            if kind in (EffectKind.THREAT, EffectKind.SECURITY_PRESSURE):
                return 1.6 if effect.value < 0 else 0.6
        elif goal == MandateGoal.BOOST_ECONOMY:
            if kind in (EffectKind.TREASURY, EffectKind.WEALTH, EffectKind.INFRASTRUCTURE):
                return 1.4 if effect.value > 0 else 0.7
        elif goal == MandateGoal.ADVANCE_SCIENCE:
            if kind == EffectKind.SCIENCE or (
                kind == EffectKind.TREASURY and effect.target == "influence"
            ):
                return 1.3
        elif goal == MandateGoal.IMPROVE_DIPLOMACY:
            if kind in (EffectKind.REPUTATION, EffectKind.INFLUENCE):
                return 1.4
        elif goal == MandateGoal.SUPPRESS_UNREST:
            if kind in (EffectKind.STABILITY, EffectKind.UNREST):
                return 1.5
        elif goal == MandateGoal.EXPAND_INFLUENCE:
            if kind in (EffectKind.INFLUENCE, EffectKind.REPUTATION):
                return 1.35
    return 1.0


def score_effect(effect: Effect, context: DecisionContext) -> float:
    score = effect.value * (1 + effect.duration * 0.2 if effect.duration else 1)
    if effect.kind == EffectKind.STABILITY:
        level = context.kpis.stability.threat_level if context.kpis else ThreatLevel.LOW
        multiplier = _STABILITY_MULTIPLIER[level]
    else:
        multiplier = _TYPE_MULTIPLIER.get(effect.kind, 1.0)
    return (
        score
        * multiplier
        * _agenda_weight(effect, context)
        * _posture_weight(effect, context.posture)
        * _mandate_weight(effect, context.agenda)
    )


def council_support_bonus(council: List[CouncilMember], department: Department) -> float:
    supporters = [member for member in council if department in member.departments()]
    if not supporters:
        return 0.0
    aggregate = sum(
        member.motivation * 0.5 + member.loyalty * 0.3 - member.stress * 0.2
        for member in supporters
    )
    return aggregate * 5


def score_option(event: SimulationEvent, option: EventOption, context: DecisionContext) -> float:
    """Net attractiveness of ``option`` for ``event`` under ``context``."""

    profile = POSTURE_COSTS[context.posture]
    severity_penalty = max(0.0, _SEVERITY_PENALTY[event.severity] + profile.severity)
    effects = sum(score_effect(effect, context) for effect in option.effects)

    cost = option.cost or ResourcePool()
    cost_score = (
        cost.gold * 1.4 * profile.gold
        + cost.influence * 1.8 * profile.influence
        + cost.labor * 0.8 * profile.labor
    )

    trust = context.trust.advisor
    trust_bonus = (trust - 0.75) * 40 if trust > 0.75 else 0.0
    stability_debt = 0.0
    threat_debt = 0.0
    if context.kpis is not None:
        if context.kpis.stability.threat_level != ThreatLevel.LOW:
            stability_debt = 25.0
        if context.kpis.security_index.threat_level != ThreatLevel.LOW:
            threat_debt = 35.0

    departments: List[Department] = []
    for effect in option.effects:
        department = effect_department(effect)
        if department is not None and department not in departments:
            departments.append(department)
    council_bonus = sum(
        council_support_bonus(context.council, department) for department in departments
    )

    return (
        effects
        - cost_score
        + trust_bonus
        + stability_debt
        + threat_debt
        - severity_penalty
        + len(option.follow_ups) * 5
        + council_bonus
    )


def pragmatic_strategy(event: SimulationEvent, context: DecisionContext) -> EventResolution:
    actionable = [option for option in event.options if option.actionable]
    if not actionable:
        return EventResolution(defer=True, notes="No useful options")

    best: Optional[EventOption] = None
    best_score = float("-inf")
    for option in actionable:
        score = score_option(event, option, context)
        logger.debug("Scored %s/%s at %.2f", event.id, option.id, score)
        if score > best_score:
            best, best_score = option, score

    if best is None or best_score < context.rejection_threshold:
        return EventResolution(defer=True, notes="Deferred: every option is too risky")
    return EventResolution(option_id=best.id)


def manual_strategy(event: SimulationEvent, context: DecisionContext) -> EventResolution:
    """Never resolve; carry the council's recommendation for the ruler."""

    base = pragmatic_strategy(event, context)
    if base.option_id:
        return EventResolution(
            option_id=base.option_id,
            defer=True,
            notes=base.notes or "Manual control: the council recommends an option and awaits the ruler",
        )
    return EventResolution(
        defer=True, notes=base.notes or "Manual control: the ruler must decide"
    )


def hybrid_strategy(event: SimulationEvent, context: DecisionContext) -> EventResolution:
    base = pragmatic_strategy(event, context)
    requires_ruler = (
        event.severity == Severity.MAJOR
        or (context.trust.advisor < 0.6 and event.severity != Severity.MINOR)
        or base.option_id is None
    )
    if requires_ruler:
        return EventResolution(
            option_id=base.option_id,
            defer=True,
            notes=base.notes or "Hybrid control: a critical event is passed to the ruler for approval",
        )
    return base


def default_strategy(event: SimulationEvent, context: DecisionContext) -> EventResolution:
    """Pick the affordable option with the best raw value for its price."""

    best: Optional[EventOption] = None
    best_score = float("-inf")
    for option in event.options:
        if not context.resources.covers(option.cost):
            continue
        cost = option.cost or ResourcePool()
        score = sum(effect.value for effect in option.effects) - (
            cost.gold * 0.8 + cost.influence * 1.1 + cost.labor * 0.3
        )
        if score > best_score:
            best, best_score = option, score
    if best is None:
        return EventResolution(defer=True, notes="No affordable option")
    return EventResolution(option_id=best.id)


STRATEGIES: Dict[str, Strategy] = {
    "pragmatic": pragmatic_strategy,
    "manual": manual_strategy,
    "hybrid": hybrid_strategy,
    "default": default_strategy,
}


def get_strategy(key: str) -> Strategy:
    try:
        return STRATEGIES[key]
    except KeyError:
        raise KeyError(f"Unknown decision strategy '{key}'") from None


__all__ = [
    "CostProfile",
    "DEFAULT_REJECTION_THRESHOLD",
    "DecisionContext",
    "EventResolution",
    "POSTURE_COSTS",
    "PRIORITY_WEIGHTS",
    "ResponsePostureSettings",
    "STRATEGIES",
    "Strategy",
    "council_support_bonus",
    "default_strategy",
    "get_strategy",
    "hybrid_strategy",
    "manual_strategy",
    "pragmatic_strategy",
    "score_effect",
    "score_option",
]
