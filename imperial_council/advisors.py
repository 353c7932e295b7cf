"""Budget-allocation advisors.

An advisor is any object with ``name``, ``description`` and
``allocate_budget(context)``. Implementations must be pure functions of the
context: save/resume exactness depends on re-running an advisor with the same
context yielding the same weights.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Protocol

from .models import (
    DEPARTMENTS,
    Agenda,
    CouncilMember,
    Decree,
    Department,
    DepartmentState,
    Estate,
    ResourcePool,
    TrustLevels,
)

logger = logging.getLogger(__name__)

Allocation = Dict[Department, float]

LOW_TRUST = 0.4
HIGH_TRUST = 0.75


@dataclass
class AdvisorContext:
    """Read-only copies of the state an advisor may consult."""

    resources: ResourcePool
    estates: List[Estate]
    departments: List[DepartmentState]
    decree: Decree
    trust: TrustLevels
    agenda: Agenda
    council: List[CouncilMember]


class Advisor(Protocol):
    name: str
    description: str

    def allocate_budget(self, context: AdvisorContext) -> Mapping[Department, float]:
        ...


def equal_split() -> Allocation:
    share = 1 / len(DEPARTMENTS)
    return {department: share for department in DEPARTMENTS}


def normalize_allocation(allocation: Optional[Mapping[Department, float]]) -> Allocation:
    """Normalise raw weights to sum to one over the fixed department set.

    Missing, negative and non-finite weights count as zero, as does every
    weight of a value that is not a mapping; when nothing usable remains
    the budget is split evenly.
    """

    filled: Allocation = {}
    total = 0.0
    source: Mapping[Department, float] = allocation if isinstance(allocation, Mapping) else {}
    for department in DEPARTMENTS:
        try:
            value = float(source.get(department, 0.0))
        except (TypeError, ValueError):
            value = 0.0
        if not math.isfinite(value) or value < 0:
            value = 0.0
        filled[department] = value
        total += value

    if total <= 0:
        logger.warning("Degenerate allocation %r; falling back to an equal split", allocation)
        return equal_split()

    return {department: filled[department] / total for department in DEPARTMENTS}


def apply_trust_pressure(allocation: Allocation, context: AdvisorContext) -> Allocation:
    """Shift weight towards estates that distrust the crown.

    An estate below :data:`LOW_TRUST` pulls its favoured department up in
    proportion to the deficit; an estate above :data:`HIGH_TRUST` lets it
    relax slightly.
    """

    adjusted = dict(allocation)
    for estate in context.estates:
        trust = context.trust.estates.get(estate.name, 0.5)
        department = estate.favored_department
        current = adjusted.get(department, 0.0)
        if trust < LOW_TRUST:
            adjusted[department] = current + (LOW_TRUST - trust) * 0.5
        elif trust > HIGH_TRUST:
            adjusted[department] = max(0.0, current - (trust - HIGH_TRUST) * 0.2)
    return adjusted


class BalancedChancellor:
    """Splits the budget evenly, nudging lagging departments upwards."""

    key = "balanced_chancellor"
    name = "Balanced Chancellor"
    description = "Spreads funds evenly and tops up the least efficient departments."

    def allocate_budget(self, context: AdvisorContext) -> Allocation:
        base = 1 / len(DEPARTMENTS)
        if not context.departments:
            return equal_split()
        best = max(department.efficiency for department in context.departments)
        allocation: Allocation = {}
        for department in context.departments:
            allocation[department.name] = base + (best - department.efficiency) * 0.15
        return normalize_allocation(allocation)


class MilitaristMarshal:
    """Funds the army and internal order at the expense of diplomacy."""

    key = "militarist_marshal"
    name = "Militarist Marshal"
    description = "Backs the military and internal order; surges when estates grow restless."

    def allocate_budget(self, context: AdvisorContext) -> Allocation:
        allocation: Allocation = {
            Department.MILITARY: 0.45,
            Department.INTERNAL: 0.2,
            Department.ECONOMY: 0.2,
            Department.DIPLOMACY: 0.05,
            Department.SCIENCE: 0.1,
        }
        unrest = sum(1 for estate in context.estates if estate.satisfaction < 45)
        if unrest:
            allocation[Department.INTERNAL] += unrest * 0.05
            allocation[Department.MILITARY] += unrest * 0.05
        return normalize_allocation(apply_trust_pressure(allocation, context))


class ReformistScholar:
    """Invests in the economy and science to grow long-term income."""

    key = "reformist_scholar"
    name = "Reformist Scholar"
    description = "Favours economy and science; shifts money to the economy when gold runs low."

    def allocate_budget(self, context: AdvisorContext) -> Allocation:
        allocation: Allocation = {
            Department.ECONOMY: 0.35,
            Department.SCIENCE: 0.25,
            Department.DIPLOMACY: 0.15,
            Department.INTERNAL: 0.15,
            Department.MILITARY: 0.1,
        }
        if context.resources.gold < 120:
            pressure = 0.1
            allocation[Department.ECONOMY] += pressure
            allocation[Department.MILITARY] = max(0.05, allocation[Department.MILITARY] - pressure / 2)
        return normalize_allocation(apply_trust_pressure(allocation, context))


ADVISORS: Dict[str, Callable[[], Advisor]] = {
    BalancedChancellor.key: BalancedChancellor,
    MilitaristMarshal.key: MilitaristMarshal,
    ReformistScholar.key: ReformistScholar,
}


def get_advisor(key: str) -> Advisor:
    """Instantiate a registered advisor by key."""

    try:
        factory = ADVISORS[key]
    except KeyError:
        raise KeyError(f"Unknown advisor '{key}'") from None
    return factory()


__all__ = [
    "ADVISORS",
    "Advisor",
    "AdvisorContext",
    "Allocation",
    "BalancedChancellor",
    "MilitaristMarshal",
    "ReformistScholar",
    "apply_trust_pressure",
    "equal_split",
    "get_advisor",
    "normalize_allocation",
]
