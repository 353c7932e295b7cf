"""Tests for effect application and timed effects."""
from __future__ import annotations

import pytest

from imperial_council.effects import (
    EFFECT_RULES,
    EffectScope,
    GlobalModifiers,
    TimedEffect,
    apply_effect,
    apply_timed_effects,
    effect_department,
)
from imperial_council.models import Department, Effect, EffectKind, ResourcePool
from imperial_council.scenario import load_baseline_config


def build_scope(gold: float = 100.0) -> EffectScope:
    config = load_baseline_config()
    return EffectScope(
        resources=ResourcePool(gold, 20.0, 30.0),
        regions=config.regions,
        estates=config.estates,
        modifiers=GlobalModifiers(),
    )


def test_every_effect_kind_has_a_rule():
    """The rule table covers the closed set of effect kinds."""

    assert set(EFFECT_RULES) == set(EffectKind)


@pytest.mark.parametrize(
    "kind, department",
    [
        (EffectKind.TREASURY, Department.ECONOMY),
        (EffectKind.LOYALTY, Department.INTERNAL),
        (EffectKind.THREAT, Department.MILITARY),
        (EffectKind.REPUTATION, Department.DIPLOMACY),
        (EffectKind.SCIENCE, Department.SCIENCE),
        (EffectKind.BUDGET, None),
    ],
)
def test_effect_department(kind, department):
    """Each effect kind maps to the department that owns it."""

    assert effect_department(Effect(kind, "", 1.0)) == department


def test_treasury_effect_never_drives_gold_negative():
    """Draining more gold than available leaves the treasury at zero."""

    scope = build_scope(gold=30.0)
    apply_effect(Effect(EffectKind.TREASURY, "gold", -500.0), scope)

    assert scope.resources.gold == 0.0


def test_loyalty_effect_on_empire_reaches_every_region():
    """An empire-wide loyalty effect moves every region and clamps at 100."""

    scope = build_scope()
    apply_effect(Effect(EffectKind.LOYALTY, "empire", 45.0), scope)

    assert all(region.loyalty <= 100 for region in scope.regions)
    assert scope.region("Capital March").loyalty == 100
    assert scope.region("Forge Country").loyalty == pytest.approx(97.0)


def test_unrest_lowers_stability_modifier():
    """Unrest is negative stability."""

    scope = build_scope()
    apply_effect(Effect(EffectKind.UNREST, "Grain Belt", 2.0), scope)

    assert scope.modifiers.stability == -2.0


def test_timed_effect_repeats_for_remaining_quarters():
    """A three-quarter effect applies now and on the next two quarters."""

    scope = build_scope(gold=0.0)
    timed = []
    apply_effect(Effect(EffectKind.TREASURY, "gold", 10.0, duration=3), scope, timed, source="test")

    assert scope.resources.gold == 10.0
    assert timed == [TimedEffect(Effect(EffectKind.TREASURY, "gold", 10.0), 2, "test")]

    apply_timed_effects(timed, scope)
    apply_timed_effects(timed, scope)
    apply_timed_effects(timed, scope)

    assert scope.resources.gold == 30.0
    assert timed == []


def test_modifier_decay_rounds_to_two_places():
    """Decay multiplies each modifier and keeps two decimals."""

    modifiers = GlobalModifiers(stability=3.0, threat=1.0, budget=-15.0, security_pressure=1.4)
    modifiers.reputation["guilds"] = -3.0
    modifiers.decay(
        {
            "stability": 0.85,
            "threat": 0.9,
            "budget": 0.75,
            "security_pressure": 0.92,
            "reputation": 0.9,
        }
    )

    assert modifiers.stability == 2.55
    assert modifiers.threat == 0.9
    assert modifiers.budget == -11.25
    assert modifiers.security_pressure == 1.29
    assert modifiers.reputation["guilds"] == -2.7
