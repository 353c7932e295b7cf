"""Tests for mandates, projects and council morale."""
from __future__ import annotations

import pytest

from imperial_council.agenda import (
    adjust_council_morale,
    agenda_budget_weights,
    agenda_highlights,
    assign_mandates,
    council_reports,
    evaluate_mandates,
    snapshot_project,
    update_projects,
)
from imperial_council.models import (
    DEPARTMENTS,
    Department,
    MandateStatus,
    PriorityLevel,
    Project,
)
from imperial_council.scenario import load_baseline_config


def build_config():
    return load_baseline_config()


def test_every_open_mandate_gets_exactly_one_owner():
    """Assignment hands each open mandate to a single eligible member."""

    config = build_config()
    config.agenda.mandates[2].status = MandateStatus.COMPLETED

    assign_mandates(config.agenda, config.council)

    owners = {}
    for member in config.council:
        for mandate_id in member.assigned_mandates:
            owners.setdefault(mandate_id, []).append(member.id)
    assert sorted(owners) == ["mandate_border_fort", "mandate_capital_stability"]
    assert all(len(members) == 1 for members in owners.values())


def test_agenda_weights_are_normalised_and_follow_priorities():
    """Pushed departments outweigh steady ones and weights sum to one."""

    config = build_config()

    weights = agenda_budget_weights(config.agenda, config.council)

    assert set(weights) == set(DEPARTMENTS)
    assert sum(weights.values()) == pytest.approx(1.0)
    assert config.agenda.priority(Department.ECONOMY) == PriorityLevel.PUSH
    assert weights[Department.ECONOMY] > weights[Department.SCIENCE]


def test_project_progress_gain_is_bounded():
    """A quarter's project gain stays between 0.001 and 0.08."""

    projects = [
        Project(id="small", name="Small", focus="science"),
        Project(id="big", name="Big", focus="security"),
        Project(id="idle", name="Idle", focus="astrology"),
    ]
    spending = {Department.SCIENCE: 0.1, Department.MILITARY: 400.0, Department.INTERNAL: 400.0}

    update_projects(projects, spending, 420.0)

    assert projects[0].progress == 0.001
    assert projects[1].progress == 0.08
    assert projects[2].progress == 0.0


def test_project_snapshot_counts_milestones():
    """Reached milestones are those at or below the current progress."""

    project = Project(id="p", name="P", focus="economy", milestones=[0.25, 0.5, 1.0], progress=0.5)

    snapshot = snapshot_project(project)

    assert snapshot.milestones_reached == 2
    assert snapshot.progress == 0.5


def test_first_evaluation_fixes_baseline_and_target():
    """The first evaluation records the baseline and marks the mandate not started."""

    config = build_config()
    mandate = config.agenda.mandates[0]

    reports = evaluate_mandates(
        config.agenda, 1, config.initial_resources, config.regions, config.departments, None
    )

    assert mandate.baseline_value == 68.0
    assert mandate.target_value == pytest.approx(68.0 + 10 * 1.4)
    assert mandate.issued_quarter == 1
    assert reports[0].status == MandateStatus.NOT_STARTED


def test_reaching_target_completes_mandate_and_lifts_owner():
    """Hitting the target completes the mandate and motivates its owner."""

    config = build_config()
    agenda = config.agenda
    assign_mandates(agenda, config.council)
    evaluate_mandates(agenda, 1, config.initial_resources, config.regions, config.departments, None)

    capital = next(region for region in config.regions if region.name == "Capital March")
    capital.loyalty = agenda.mandates[0].target_value + 1
    reports = evaluate_mandates(
        agenda, 2, config.initial_resources, config.regions, config.departments, None
    )

    assert reports[0].status == MandateStatus.COMPLETED
    assert reports[0].progress == 1.0

    owner = next(m for m in config.council if "mandate_capital_stability" in m.assigned_mandates)
    before = owner.motivation
    adjust_council_morale(config.council, reports[:1])
    assert owner.motivation == pytest.approx(min(0.95, round(before + 0.06, 3)))


def test_council_reports_and_highlights_cover_the_council():
    """One report per member and the three heaviest departments highlighted."""

    config = build_config()
    assign_mandates(config.agenda, config.council)
    weights = agenda_budget_weights(config.agenda, config.council)
    mandate_reports = evaluate_mandates(
        config.agenda, 1, config.initial_resources, config.regions, config.departments, None
    )

    reports = council_reports(config.council, mandate_reports, weights)
    highlights = agenda_highlights(config.agenda, weights)

    assert [report.advisor_id for report in reports] == [member.id for member in config.council]
    assert len(highlights) == 3
    assert highlights[0].department == max(weights, key=weights.get)
