"""Tests for decree multipliers."""
from __future__ import annotations

import pytest

from imperial_council.decrees import (
    priority_budget_boost,
    priority_development_multiplier,
    tax_income_modifier,
    tax_loyalty_modifier,
    tax_satisfaction_delta,
)
from imperial_council.models import (
    DEPARTMENTS,
    Department,
    InvestmentPriority,
    Specialization,
    TaxPolicy,
)


@pytest.mark.parametrize(
    "policy, income, loyalty",
    [
        (TaxPolicy.LOW, 0.9, 1.02),
        (TaxPolicy.STANDARD, 1.0, 1.0),
        (TaxPolicy.HIGH, 1.15, 0.97),
    ],
)
def test_tax_policy_modifiers(policy, income, loyalty):
    """Tax policy scales income and loyalty by fixed factors."""

    assert tax_income_modifier(policy) == income
    assert tax_loyalty_modifier(policy) == loyalty


@pytest.mark.parametrize(
    "policy, estate, expected",
    [
        (TaxPolicy.LOW, "peasantry", 3.0),
        (TaxPolicy.LOW, "nobility", -1.0),
        (TaxPolicy.HIGH, "clergy", 2.0),
        (TaxPolicy.HIGH, "guilds", -3.0),
        (TaxPolicy.STANDARD, "peasantry", 0.0),
    ],
)
def test_tax_satisfaction_delta(policy, estate, expected):
    """Estates welcome or resent a tax policy depending on who benefits."""

    assert tax_satisfaction_delta(policy, estate) == expected


@pytest.mark.parametrize(
    "priority, department, expected",
    [
        (InvestmentPriority.INFRASTRUCTURE, Department.ECONOMY, 1.2),
        (InvestmentPriority.INFRASTRUCTURE, Department.MILITARY, 0.95),
        (InvestmentPriority.MILITARY, Department.MILITARY, 1.35),
        (InvestmentPriority.INNOVATION, Department.SCIENCE, 1.4),
        (InvestmentPriority.STABILITY, Department.ECONOMY, 0.9),
    ],
)
def test_priority_budget_boost(priority, department, expected):
    """Investment priority boosts its departments and trims the rest."""

    assert priority_budget_boost(priority, department) == expected


def test_balanced_priority_is_neutral():
    """A balanced decree leaves every multiplier at one."""

    for department in DEPARTMENTS:
        assert priority_budget_boost(InvestmentPriority.BALANCED, department) == 1.0
    for specialization in Specialization:
        assert priority_development_multiplier(InvestmentPriority.BALANCED, specialization) == 1.0


def test_development_multiplier_prefers_matching_specialization():
    """Infrastructure investment develops industrial regions fastest."""

    assert priority_development_multiplier(
        InvestmentPriority.INFRASTRUCTURE, Specialization.INDUSTRY
    ) == 1.3
    assert priority_development_multiplier(
        InvestmentPriority.INFRASTRUCTURE, Specialization.TRADE
    ) == 1.15
