"""Tests for the budget-allocation advisors."""
from __future__ import annotations

import math

import pytest

from imperial_council.advisors import (
    ADVISORS,
    AdvisorContext,
    ReformistScholar,
    apply_trust_pressure,
    equal_split,
    get_advisor,
    normalize_allocation,
)
from imperial_council.engine import initial_trust
from imperial_council.models import DEPARTMENTS, Department, ResourcePool
from imperial_council.scenario import load_baseline_config


def build_context(gold: float = 320.0) -> AdvisorContext:
    config = load_baseline_config()
    return AdvisorContext(
        resources=ResourcePool(gold, 85.0, 150.0),
        estates=config.estates,
        departments=config.departments,
        decree=config.decree,
        trust=initial_trust(config.estates),
        agenda=config.agenda,
        council=config.council,
    )


def test_normalize_allocation_falls_back_to_equal_split():
    """An empty, all-zero or non-mapping allocation becomes an even split."""

    assert normalize_allocation({}) == equal_split()
    assert normalize_allocation(None) == equal_split()
    assert normalize_allocation({department: 0.0 for department in DEPARTMENTS}) == equal_split()
    assert normalize_allocation([0.2] * 5) == equal_split()
    assert normalize_allocation("economy") == equal_split()


def test_normalize_allocation_discards_invalid_weights():
    """NaN, negative and missing weights count as zero."""

    allocation = normalize_allocation(
        {Department.ECONOMY: math.nan, Department.MILITARY: -1.0, Department.SCIENCE: 2.0}
    )

    assert allocation[Department.SCIENCE] == pytest.approx(1.0)
    assert allocation[Department.ECONOMY] == 0.0
    assert allocation[Department.MILITARY] == 0.0
    assert set(allocation) == set(DEPARTMENTS)


@pytest.mark.parametrize("key", sorted(ADVISORS))
def test_registered_advisors_return_normalised_allocations(key):
    """Every bundled advisor covers all departments and sums to one."""

    advisor = get_advisor(key)
    allocation = advisor.allocate_budget(build_context())

    assert set(allocation) == set(DEPARTMENTS)
    assert sum(allocation.values()) == pytest.approx(1.0)
    assert all(value >= 0 for value in allocation.values())


def test_advisors_are_pure_functions_of_context():
    """Calling an advisor twice with the same context gives the same weights."""

    context = build_context()
    advisor = get_advisor("militarist_marshal")

    assert advisor.allocate_budget(context) == advisor.allocate_budget(context)


def test_reformist_scholar_favours_economy_when_gold_runs_low():
    """A thin treasury shifts the reformist's budget towards the economy."""

    advisor = ReformistScholar()
    rich = advisor.allocate_budget(build_context(gold=300.0))
    poor = advisor.allocate_budget(build_context(gold=50.0))

    assert poor[Department.ECONOMY] > rich[Department.ECONOMY]
    assert poor[Department.MILITARY] < rich[Department.MILITARY]


def test_trust_pressure_lifts_distrustful_estate_department():
    """An estate below the low-trust line pulls its favoured department up."""

    context = build_context()
    context.trust.estates["nobility"] = 0.2
    base = {department: 0.2 for department in DEPARTMENTS}

    adjusted = apply_trust_pressure(base, context)

    assert adjusted[Department.MILITARY] == pytest.approx(0.2 + 0.1)
    assert adjusted[Department.SCIENCE] == pytest.approx(0.2)


def test_get_advisor_rejects_unknown_key():
    """Unknown advisor keys raise a KeyError naming the key."""

    with pytest.raises(KeyError, match="court_jester"):
        get_advisor("court_jester")
