"""Effect kinds, their owning departments and how they change the empire.

Every consumer (option scoring, consultation topic inference, effect
application) reads the single :data:`EFFECT_RULES` table so an effect kind
can never be interpreted differently in two places.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from .models import (
    Department,
    Effect,
    EffectKind,
    Estate,
    Region,
    ResourcePool,
    Specialization,
)

logger = logging.getLogger(__name__)

ALL_REGIONS = "all"
WHOLE_EMPIRE = "empire"
TRADE_PROVINCES = "trade_provinces"


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


@dataclass
class GlobalModifiers:
    """Empire-wide modifiers that effects accumulate and quarters decay."""

    stability: float = 0.0
    threat: float = 0.0
    budget: float = 0.0
    reputation: Dict[str, float] = field(default_factory=dict)
    security_pressure: float = 0.0
    security_stage: int = 0
    security_recovery: int = 0

    def decay(self, rates: Dict[str, float]) -> None:
        self.stability = round(self.stability * rates["stability"], 2)
        self.threat = round(self.threat * rates["threat"], 2)
        self.budget = round(self.budget * rates["budget"], 2)
        self.security_pressure = round(
            max(0.0, self.security_pressure * rates["security_pressure"]), 2
        )
        for key in list(self.reputation):
            self.reputation[key] = round(self.reputation[key] * rates["reputation"], 2)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "GlobalModifiers":
        return GlobalModifiers(
            stability=float(data.get("stability", 0.0)),
            threat=float(data.get("threat", 0.0)),
            budget=float(data.get("budget", 0.0)),
            reputation={key: float(value) for key, value in data.get("reputation", {}).items()},
            security_pressure=float(data.get("security_pressure", 0.0)),
            security_stage=int(data.get("security_stage", 0)),
            security_recovery=int(data.get("security_recovery", 0)),
        )


@dataclass
class TimedEffect:
    """An effect re-applied at the start of each remaining quarter."""

    effect: Effect
    remaining: int
    source: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "TimedEffect":
        return TimedEffect(
            effect=Effect.from_dict(data["effect"]),
            remaining=int(data["remaining"]),
            source=data["source"],
        )


@dataclass
class EffectScope:
    """The live objects an effect is allowed to touch."""

    resources: ResourcePool
    regions: List[Region]
    estates: List[Estate]
    modifiers: GlobalModifiers

    def region(self, name: Optional[str]) -> Optional[Region]:
        for region in self.regions:
            if region.name == name:
                return region
        return None

    def estate(self, name: Optional[str]) -> Optional[Estate]:
        for estate in self.estates:
            if estate.name == name:
                return estate
        return None


def _apply_treasury(effect: Effect, scope: EffectScope) -> None:
    if effect.target in ("gold", "influence", "labor"):
        current = getattr(scope.resources, effect.target)
        setattr(scope.resources, effect.target, max(0.0, current + effect.value))


def _apply_infrastructure(effect: Effect, scope: EffectScope) -> None:
    region = scope.region(effect.target)
    if region is not None:
        region.infrastructure = clamp(region.infrastructure + effect.value, 0, 150)
    elif not effect.target or effect.target.lower() == ALL_REGIONS:
        for region in scope.regions:
            region.infrastructure = clamp(region.infrastructure + effect.value, 0, 150)


def _apply_wealth(effect: Effect, scope: EffectScope) -> None:
    if effect.target.lower() == TRADE_PROVINCES:
        targets = [r for r in scope.regions if r.specialization == Specialization.TRADE]
    else:
        region = scope.region(effect.target)
        targets = [region] if region is not None else []
    for region in targets:
        region.wealth = max(5.0, region.wealth + effect.value)


def _apply_loyalty(effect: Effect, scope: EffectScope) -> None:
    region = scope.region(effect.target)
    if region is not None:
        region.loyalty = clamp(region.loyalty + effect.value, 0, 100)
    elif not effect.target or effect.target.lower() == WHOLE_EMPIRE:
        for region in scope.regions:
            region.loyalty = clamp(region.loyalty + effect.value, 0, 100)


def _apply_influence(effect: Effect, scope: EffectScope) -> None:
    scope.resources.influence = max(0.0, scope.resources.influence + effect.value)


def _apply_satisfaction(effect: Effect, scope: EffectScope) -> None:
    estate = scope.estate(effect.target)
    if estate is not None:
        estate.satisfaction = clamp(estate.satisfaction + effect.value, 0, 100)


def _apply_stability(effect: Effect, scope: EffectScope) -> None:
    scope.modifiers.stability += effect.value


def _apply_unrest(effect: Effect, scope: EffectScope) -> None:
    scope.modifiers.stability -= effect.value


def _apply_reputation(effect: Effect, scope: EffectScope) -> None:
    key = effect.target.lower() or WHOLE_EMPIRE
    reputation = scope.modifiers.reputation
    reputation[key] = reputation.get(key, 0.0) + effect.value


def _apply_threat(effect: Effect, scope: EffectScope) -> None:
    scope.modifiers.threat += effect.value


def _apply_security_pressure(effect: Effect, scope: EffectScope) -> None:
    modifiers = scope.modifiers
    modifiers.security_pressure = round(max(0.0, modifiers.security_pressure + effect.value), 2)


def _apply_budget(effect: Effect, scope: EffectScope) -> None:
    scope.modifiers.budget += effect.value


def _apply_nothing(effect: Effect, scope: EffectScope) -> None:
    logger.debug("Effect kind %s has no direct application", effect.kind.value)


class EffectRule(NamedTuple):
    department: Optional[Department]
    apply: Callable[[Effect, EffectScope], None]


EFFECT_RULES: Dict[EffectKind, EffectRule] = {
    EffectKind.TREASURY: EffectRule(Department.ECONOMY, _apply_treasury),
    EffectKind.WEALTH: EffectRule(Department.ECONOMY, _apply_wealth),
    EffectKind.INFRASTRUCTURE: EffectRule(Department.ECONOMY, _apply_infrastructure),
    EffectKind.REPUTATION: EffectRule(Department.DIPLOMACY, _apply_reputation),
    EffectKind.INFLUENCE: EffectRule(Department.DIPLOMACY, _apply_influence),
    EffectKind.LOYALTY: EffectRule(Department.INTERNAL, _apply_loyalty),
    EffectKind.STABILITY: EffectRule(Department.INTERNAL, _apply_stability),
    EffectKind.UNREST: EffectRule(Department.INTERNAL, _apply_unrest),
    EffectKind.THREAT: EffectRule(Department.MILITARY, _apply_threat),
    EffectKind.SECURITY_PRESSURE: EffectRule(Department.MILITARY, _apply_security_pressure),
    EffectKind.SCIENCE: EffectRule(Department.SCIENCE, _apply_nothing),
    EffectKind.BUDGET: EffectRule(None, _apply_budget),
    EffectKind.SATISFACTION: EffectRule(None, _apply_satisfaction),
}


def effect_department(effect: Effect) -> Optional[Department]:
    return EFFECT_RULES[effect.kind].department


def apply_effect(
    effect: Effect,
    scope: EffectScope,
    timed_effects: Optional[List[TimedEffect]] = None,
    source: str = "",
) -> None:
    """Apply ``effect`` once and schedule its remaining duration, if any."""

    EFFECT_RULES[effect.kind].apply(effect, scope)
    if timed_effects is not None and effect.duration and effect.duration > 1:
        timed_effects.append(
            TimedEffect(
                effect=Effect(effect.kind, effect.target, effect.value),
                remaining=effect.duration - 1,
                source=source,
            )
        )


def apply_timed_effects(timed_effects: List[TimedEffect], scope: EffectScope) -> None:
    """Re-apply every pending timed effect and drop the exhausted ones."""

    for index in range(len(timed_effects) - 1, -1, -1):
        timed = timed_effects[index]
        apply_effect(timed.effect, scope)
        timed.remaining -= 1
        if timed.remaining <= 0:
            logger.debug("Timed effect from %s expired", timed.source)
            del timed_effects[index]


__all__ = [
    "ALL_REGIONS",
    "EFFECT_RULES",
    "EffectRule",
    "EffectScope",
    "GlobalModifiers",
    "TRADE_PROVINCES",
    "TimedEffect",
    "WHOLE_EMPIRE",
    "apply_effect",
    "apply_timed_effects",
    "clamp",
    "effect_department",
]
