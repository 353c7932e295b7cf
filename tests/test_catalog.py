"""Tests for the event template catalog."""
from __future__ import annotations

import pytest

from imperial_council.catalog import (
    EventCatalog,
    TemplateContext,
    UnknownTemplateError,
    load_catalog,
    loyalty_decline_event,
    milestone_event,
    treasury_depletion_event,
)
from imperial_council.models import EffectKind, EventCategory, Severity


def test_bundled_catalog_is_consistent():
    """Every follow-up and escalation in the bundled catalog resolves."""

    catalog = load_catalog()

    assert catalog.validate() == []
    assert "security.border.crisis" in catalog
    assert len(catalog) == len(catalog.ids())


def test_validate_reports_dangling_references():
    """A follow-up that names a missing template is reported."""

    catalog = EventCatalog(
        {
            "a": {
                "category": "discovery",
                "severity": "minor",
                "options": [{"id": "go", "follow_ups": ["missing"]}],
            }
        }
    )

    assert catalog.validate() == ["a: unknown follow-up missing"]


def test_instantiate_substitutes_region_context():
    """Titles, effect targets and origin come from the trigger context."""

    event = loyalty_decline_event(load_catalog(), "Grain Belt", 41.26)

    assert event.title == "Loyalty in Grain Belt is slipping"
    assert "41.3" in event.description
    assert event.category == EventCategory.SOCIAL_UNREST
    assert event.severity == Severity.MODERATE
    assert event.origin.region == "Grain Belt"
    appease = event.option("appease_population")
    assert appease.effects[0].kind == EffectKind.LOYALTY
    assert appease.effects[0].target == "Grain Belt"
    assert appease.effects[0].duration == 3


def test_instantiate_without_region_uses_variants():
    """Region-less events pick the *_no_region variants and skip region effects."""

    event = load_catalog().instantiate("kpi.security.alert", TemplateContext(threat_level="critical"))

    assert event.title == "Security alert on the imperial borders"
    assert "critical" in event.description
    mobilize = event.option("mobilize_reserves")
    assert all(effect.kind != EffectKind.LOYALTY for effect in mobilize.effects)


def test_milestone_event_formats_level():
    """Milestone levels render without trailing decimals."""

    event = milestone_event(load_catalog(), "Forge Country", 55.0)

    assert event.origin.milestone == 55.0
    assert event.conditions == {"regions.Forge Country.infrastructure": ">= 55"}


def test_treasury_event_rounds_reading():
    """The treasury reading on the origin is rounded to one decimal."""

    event = treasury_depletion_event(load_catalog(), 12.34)

    assert event.origin.treasury == 12.3
    assert event.origin.region is None


def test_follow_up_inherits_origin_and_source():
    """A follow-up keeps the parent's region and records the parent id."""

    catalog = load_catalog()
    parent = loyalty_decline_event(catalog, "Forge Country", 40.0)
    child = catalog.follow_up("region.loyalty.uprising", parent)

    assert child.origin.region == "Forge Country"
    assert child.origin.source == "region.loyalty.decline"


def test_unknown_template_raises_key_error():
    """Unknown template ids raise :class:`UnknownTemplateError`."""

    with pytest.raises(UnknownTemplateError):
        load_catalog().instantiate("no.such.template")
    assert issubclass(UnknownTemplateError, KeyError)


def test_instances_do_not_share_state():
    """Mutating an instance never leaks back into the catalog."""

    catalog = load_catalog()
    first = treasury_depletion_event(catalog, 10.0)
    first.options.clear()
    second = treasury_depletion_event(catalog, 10.0)

    assert second.options
