"""Tests for council decision strategies."""
from __future__ import annotations

from typing import List, Optional

import pytest

from imperial_council.engine import CampaignState
from imperial_council.models import (
    Effect,
    EffectKind,
    EventCategory,
    EventOption,
    FailureClause,
    KPIEntry,
    KPIReport,
    ResourcePool,
    ResponsePosture,
    Severity,
    SimulationEvent,
    ThreatLevel,
)
from imperial_council.scenario import load_baseline_config
from imperial_council.strategies import (
    STRATEGIES,
    DecisionContext,
    ResponsePostureSettings,
    default_strategy,
    get_strategy,
    hybrid_strategy,
    manual_strategy,
    pragmatic_strategy,
    score_effect,
)


def build_context(
    posture: ResponsePosture = ResponsePosture.BALANCED, kpis: Optional[KPIReport] = None
) -> DecisionContext:
    state = CampaignState.initial(load_baseline_config())
    return DecisionContext(
        quarter=1,
        resources=state.resources,
        estates=state.estates,
        regions=state.regions,
        departments=state.departments,
        trust=state.trust,
        agenda=state.agenda,
        council=state.council,
        posture=posture,
        kpis=kpis,
    )


def build_event(options: List[EventOption], severity: Severity = Severity.MODERATE) -> SimulationEvent:
    return SimulationEvent(
        id="test.event",
        title="Test event",
        description="",
        category=EventCategory.SOCIAL_UNREST,
        severity=severity,
        options=options,
        failure=FailureClause(timeout=2),
    )


def loyalty_option(option_id: str, cost: Optional[ResourcePool] = None) -> EventOption:
    return EventOption(
        id=option_id,
        description=option_id,
        effects=[Effect(EffectKind.LOYALTY, "Grain Belt", 10.0)],
        cost=cost,
    )


def build_kpis(stability: ThreatLevel) -> KPIReport:
    calm = KPIEntry(value=70.0, trend=0.0, threat_level=ThreatLevel.LOW)
    return KPIReport(
        stability=KPIEntry(value=40.0, trend=0.0, threat_level=stability),
        economic_growth=calm,
        security_index=calm,
        active_crises=calm,
    )


def test_pragmatic_prefers_cheaper_equivalent_option():
    """With identical effects the cheaper option scores higher."""

    event = build_event([loyalty_option("costly", ResourcePool(gold=100)), loyalty_option("cheap")])

    resolution = pragmatic_strategy(event, build_context())

    assert resolution.option_id == "cheap"
    assert resolution.defer is False


def test_pragmatic_defers_when_every_option_is_too_risky():
    """A best score below the rejection threshold defers the event."""

    event = build_event([loyalty_option("ruinous", ResourcePool(gold=1000))])

    resolution = pragmatic_strategy(event, build_context())

    assert resolution.defer is True
    assert resolution.option_id is None


def test_pragmatic_defers_without_actionable_options():
    """Options with neither effects nor follow-ups are ignored."""

    event = build_event([EventOption(id="shrug", description="Do nothing")])

    assert pragmatic_strategy(event, build_context()).defer is True


def test_manual_strategy_recommends_but_never_resolves():
    """Manual control carries the recommendation while deferring."""

    event = build_event([loyalty_option("cheap")])

    resolution = manual_strategy(event, build_context())

    assert resolution.defer is True
    assert resolution.option_id == "cheap"


def test_hybrid_passes_major_events_to_the_ruler():
    """Major events are always deferred to the ruler in hybrid mode."""

    event = build_event([loyalty_option("cheap")], severity=Severity.MAJOR)

    resolution = hybrid_strategy(event, build_context())

    assert resolution.defer is True
    assert resolution.option_id == "cheap"


def test_hybrid_resolves_minor_events_with_trusted_council():
    """A trusted council settles minor events itself."""

    context = build_context()
    context.trust.advisor = 0.8
    event = build_event([loyalty_option("cheap")], severity=Severity.MINOR)

    resolution = hybrid_strategy(event, context)

    assert resolution.defer is False
    assert resolution.option_id == "cheap"


def test_default_strategy_skips_unaffordable_options():
    """The affordable-default strategy only considers options it can pay for."""

    lavish = EventOption(
        id="lavish",
        description="",
        effects=[Effect(EffectKind.TREASURY, "gold", 100.0)],
        cost=ResourcePool(gold=10_000),
    )
    modest = EventOption(
        id="modest", description="", effects=[Effect(EffectKind.TREASURY, "gold", 5.0)]
    )

    assert default_strategy(build_event([lavish, modest]), build_context()).option_id == "modest"
    assert default_strategy(build_event([lavish]), build_context()).defer is True


def test_stability_weight_follows_stability_threat():
    """Stability effects weigh more when stability is critical."""

    effect = Effect(EffectKind.STABILITY, "empire", 2.0)
    calm = score_effect(effect, build_context())
    critical = score_effect(effect, build_context(kpis=build_kpis(ThreatLevel.CRITICAL)))

    assert critical / calm == pytest.approx(4.0 / 1.5)


def test_forceful_posture_values_threat_reduction_more():
    """A forceful posture rewards cutting the threat."""

    effect = Effect(EffectKind.THREAT, "border", -2.0)

    balanced = score_effect(effect, build_context(ResponsePosture.BALANCED))
    forceful = score_effect(effect, build_context(ResponsePosture.FORCEFUL))

    assert forceful > balanced > 0


def test_strategies_do_not_mutate_context():
    """Strategies are pure: the context is unchanged after a decision."""

    context = build_context()
    before = repr(context)
    event = build_event([loyalty_option("cheap"), loyalty_option("costly", ResourcePool(gold=50))])
    for strategy in STRATEGIES.values():
        strategy(event, context)

    assert repr(context) == before


def test_posture_settings_fall_back_to_default():
    """Categories without an override use the default posture."""

    settings = ResponsePostureSettings.from_dict(
        {"default": "diplomatic", "per_category": {"military_threat": "forceful"}}
    )

    assert settings.for_category(EventCategory.MILITARY_THREAT) == ResponsePosture.FORCEFUL
    assert settings.for_category(EventCategory.DISCOVERY) == ResponsePosture.DIPLOMATIC
    assert ResponsePostureSettings.from_dict(settings.to_dict()) == settings


def test_get_strategy_rejects_unknown_key():
    """Unknown strategy keys raise a KeyError."""

    with pytest.raises(KeyError):
        get_strategy("coin_flip")
