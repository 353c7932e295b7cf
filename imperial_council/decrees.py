"""Decree modifiers: tax policy and investment priority multipliers."""
from __future__ import annotations

from typing import Dict, FrozenSet

from .models import Department, InvestmentPriority, Specialization, TaxPolicy

_TAX_INCOME: Dict[TaxPolicy, float] = {
    TaxPolicy.LOW: 0.9,
    TaxPolicy.STANDARD: 1.0,
    TaxPolicy.HIGH: 1.15,
}

_TAX_LOYALTY: Dict[TaxPolicy, float] = {
    TaxPolicy.LOW: 1.02,
    TaxPolicy.STANDARD: 1.0,
    TaxPolicy.HIGH: 0.97,
}

# Estates that welcome a given tax policy, and the (welcome, others) deltas.
_TAX_BENEFICIARIES: Dict[TaxPolicy, FrozenSet[str]] = {
    TaxPolicy.LOW: frozenset({"peasantry", "bourgeoisie"}),
    TaxPolicy.HIGH: frozenset({"nobility", "clergy"}),
}
_TAX_SATISFACTION: Dict[TaxPolicy, tuple] = {
    TaxPolicy.LOW: (3.0, -1.0),
    TaxPolicy.HIGH: (2.0, -3.0),
}

_BUDGET_BOOST: Dict[InvestmentPriority, Dict[Department, float]] = {
    InvestmentPriority.INFRASTRUCTURE: {
        Department.ECONOMY: 1.2,
        Department.INTERNAL: 1.2,
    },
    InvestmentPriority.MILITARY: {
        Department.MILITARY: 1.35,
        Department.INTERNAL: 1.1,
    },
    InvestmentPriority.INNOVATION: {
        Department.SCIENCE: 1.4,
        Department.ECONOMY: 1.1,
    },
    InvestmentPriority.STABILITY: {
        Department.INTERNAL: 1.3,
        Department.DIPLOMACY: 1.1,
    },
}
_BUDGET_BOOST_DEFAULT: Dict[InvestmentPriority, float] = {
    InvestmentPriority.BALANCED: 1.0,
    InvestmentPriority.INFRASTRUCTURE: 0.95,
    InvestmentPriority.MILITARY: 0.85,
    InvestmentPriority.INNOVATION: 0.9,
    InvestmentPriority.STABILITY: 0.9,
}

_DEVELOPMENT: Dict[InvestmentPriority, Dict[Specialization, float]] = {
    InvestmentPriority.INFRASTRUCTURE: {Specialization.INDUSTRY: 1.3},
    InvestmentPriority.INNOVATION: {Specialization.TRADE: 1.2},
    InvestmentPriority.MILITARY: {Specialization.AGRICULTURE: 1.05},
}
_DEVELOPMENT_DEFAULT: Dict[InvestmentPriority, float] = {
    InvestmentPriority.BALANCED: 1.0,
    InvestmentPriority.INFRASTRUCTURE: 1.15,
    InvestmentPriority.INNOVATION: 1.1,
    InvestmentPriority.MILITARY: 1.0,
    InvestmentPriority.STABILITY: 1.05,
}


def tax_income_modifier(policy: TaxPolicy) -> float:
    return _TAX_INCOME.get(TaxPolicy(policy), 1.0)


def tax_loyalty_modifier(policy: TaxPolicy) -> float:
    return _TAX_LOYALTY.get(TaxPolicy(policy), 1.0)


def tax_satisfaction_delta(policy: TaxPolicy, estate_name: str) -> float:
    """Per-month satisfaction change an estate feels under ``policy``."""

    policy = TaxPolicy(policy)
    if policy not in _TAX_SATISFACTION:
        return 0.0
    welcome, others = _TAX_SATISFACTION[policy]
    return welcome if estate_name in _TAX_BENEFICIARIES[policy] else others


def priority_budget_boost(priority: InvestmentPriority, department: Department) -> float:
    priority = InvestmentPriority(priority)
    table = _BUDGET_BOOST.get(priority, {})
    return table.get(Department(department), _BUDGET_BOOST_DEFAULT[priority])


def priority_development_multiplier(
    priority: InvestmentPriority, specialization: Specialization
) -> float:
    priority = InvestmentPriority(priority)
    table = _DEVELOPMENT.get(priority, {})
    return table.get(Specialization(specialization), _DEVELOPMENT_DEFAULT[priority])


__all__ = [
    "priority_budget_boost",
    "priority_development_multiplier",
    "tax_income_modifier",
    "tax_loyalty_modifier",
    "tax_satisfaction_delta",
]
