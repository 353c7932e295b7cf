"""Tests for the campaign session: commits, control commands and snapshots."""
from __future__ import annotations

import json
from typing import List

import pytest
import yaml

import imperial_council.catalog as catalog_module
from imperial_council.catalog import EventCatalog, treasury_depletion_event
from imperial_council.engine import CampaignState
from imperial_council.interventions import HandlerDecision
from imperial_council.models import ControlMode, OutcomeStatus, ResolutionMode
from imperial_council.scenario import ControlSettings, load_baseline_config
from imperial_council.session import Session
from imperial_council.store import SnapshotStore


class RecordingHandler:
    def __init__(self):
        self.presented: List[str] = []
        self.recorded = []

    def present(self, panel, context):
        self.presented.append(panel.event.id)
        return HandlerDecision.postpone()

    def record(self, entry):
        self.recorded.append(entry)


class AusterityHandler(RecordingHandler):
    def present(self, panel, context):
        self.presented.append(panel.event.id)
        if panel.event.id == "treasury.depletion":
            return HandlerDecision.select("austerity_measure")
        return HandlerDecision.postpone()


class BrokenRecorder(RecordingHandler):
    def record(self, entry):
        raise RuntimeError("log sink offline")


class BrokenAdvisor:
    key = "broken"
    name = "Broken"
    description = "Always fails."

    def allocate_budget(self, context):
        raise RuntimeError("advisor crashed")


def build_session(mode: ControlMode = ControlMode.ADVISOR, **overrides) -> Session:
    config = load_baseline_config(control=ControlSettings(initial_mode=mode), **overrides)
    return Session(config)


def certain_escalation_catalog(tmp_path) -> EventCatalog:
    """The bundled catalog with every escalation clause set to always fire."""

    source = catalog_module._DATA_PATH / catalog_module.DEFAULT_CATALOG_FILE
    data = yaml.safe_load(source.read_text(encoding="utf-8"))
    for template in data["templates"].values():
        for clause in template.get("escalation") or []:
            clause["chance"] = 1.0
    path = tmp_path / "events.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return EventCatalog.from_yaml(path)


def test_failed_quarter_leaves_session_untouched():
    """An exception mid-quarter commits nothing."""

    config = load_baseline_config()
    session = Session(config, advisor=BrokenAdvisor())
    before = session.export_state()

    with pytest.raises(RuntimeError):
        session.advance_quarter()

    assert session.current_quarter == 0
    assert session.reports == []
    assert session.export_state() == before


def test_run_stops_at_quarter_limit():
    """Running completes the campaign; further advances are refused."""

    session = build_session()

    reports = session.run()

    assert [report.quarter for report in reports] == [1, 2, 3, 4]
    assert session.is_complete
    with pytest.raises(Session.CampaignCompleteError):
        session.advance_quarter()


def test_extend_quarters_allows_more_quarters():
    """Extending the campaign reopens it."""

    session = build_session(quarters=1)
    session.advance_quarter()

    assert session.extend_quarters(2) == 3
    assert not session.is_complete
    session.advance_quarter()
    assert session.current_quarter == 2
    with pytest.raises(ValueError):
        session.extend_quarters(0)


def test_mode_switch_takes_effect_next_quarter():
    """Switching to advisor mode logs once and stops presenting events."""

    session = build_session(ControlMode.MANUAL, quarters=3)
    handler = RecordingHandler()
    session.advance_quarter(handler)
    history_before = len(session.state.control.history)
    presented_before = len(handler.presented)

    assert session.set_control_mode(ControlMode.ADVISOR, "delegating") is True
    assert session.control_mode == ControlMode.ADVISOR
    assert session.current_quarter == 1
    assert session.set_control_mode(ControlMode.ADVISOR) is False

    history = session.state.control.history
    assert len(history) == history_before + 1
    assert history[-1].quarter == 2
    assert history[-1].triggered_by == "operator"

    report = session.advance_quarter(handler)
    assert len(handler.presented) == presented_before
    assert report.control_mode == ControlMode.ADVISOR
    assert all(
        outcome.resolution_mode == ResolutionMode.COUNCIL
        for outcome in report.outcomes
        if outcome.status != OutcomeStatus.FAILED
    )


def test_snapshot_resume_continues_identically():
    """A resumed session produces the same reports as the original."""

    session = build_session(quarters=4, seed=7)
    session.advance_quarter()
    session.advance_quarter()

    snapshot = json.loads(json.dumps(session.export_state()))
    resumed = Session.from_state(session.config, snapshot)

    assert resumed.current_quarter == 2
    assert [r.to_dict() for r in resumed.reports] == [r.to_dict() for r in session.reports]

    left = [session.advance_quarter().to_dict() for _ in range(2)]
    right = [resumed.advance_quarter().to_dict() for _ in range(2)]
    assert left == right


def test_escalation_after_resume_replays_identically(tmp_path):
    """Escalations rolled after a resume match the uninterrupted session."""

    catalog = certain_escalation_catalog(tmp_path)
    config = load_baseline_config(
        control=ControlSettings(initial_mode=ControlMode.MANUAL), quarters=3, seed=11
    )
    state = CampaignState.initial(config)
    state.pending_events.append(treasury_depletion_event(catalog, 10.0))
    session = Session(config, catalog=catalog, state=state)

    snapshot = json.loads(json.dumps(session.export_state()))
    resumed = Session.from_state(config, snapshot, catalog=catalog)
    rng_before = snapshot["state"]["rng"]

    left = [session.advance_quarter(AusterityHandler()).to_dict() for _ in range(2)]
    right = [resumed.advance_quarter(AusterityHandler()).to_dict() for _ in range(2)]

    assert left == right
    assert resumed.state.rng.export_state() != rng_before
    assert resumed.state.rng.export_state() == session.state.rng.export_state()
    second_quarter = [outcome["event"]["id"] for outcome in right[1]["outcomes"]]
    assert "treasury.default" in second_quarter


@pytest.mark.parametrize(
    "snapshot",
    [
        {"schema_version": 999, "state": {}},
        {"state": {}},
        {"schema_version": 1},
        {"schema_version": 1, "state": {"quarter": 1}},
    ],
)
def test_incompatible_snapshots_are_rejected(snapshot):
    """Wrong versions and malformed snapshots raise SnapshotVersionError."""

    with pytest.raises(Session.SnapshotVersionError):
        Session.from_state(load_baseline_config(), snapshot)


def test_save_and_load_through_store(tmp_path):
    """Sessions persist to and restore from the snapshot store."""

    store = SnapshotStore(tmp_path / "snapshots.db")
    session = build_session()
    session.advance_quarter()

    session.save(store, "first")
    loaded = Session.load(session.config, store, "first")

    assert store.names() == ["first"]
    assert loaded.current_quarter == 1
    assert loaded.export_state() == session.export_state()
    with pytest.raises(KeyError):
        Session.load(session.config, store, "missing")


def test_record_mirrors_every_log_entry():
    """Handlers with ``record`` see each committed log entry once."""

    session = build_session(ControlMode.MANUAL, quarters=3)
    handler = RecordingHandler()

    session.run(handler)

    assert handler.recorded == session.intervention_log


def test_broken_recorder_does_not_block_commit():
    """A failing ``record`` never undoes a committed quarter."""

    session = build_session(ControlMode.MANUAL)
    report = session.advance_quarter(BrokenRecorder())

    assert session.current_quarter == 1
    assert session.reports[-1] == report


def test_kpi_summary_and_result():
    """The summary averages each KPI and the result totals the campaign."""

    session = build_session()
    assert session.kpi_summary() == {"quarters": 0, "latest": None, "averages": {}}

    reports = session.run()
    summary = session.kpi_summary()
    result = session.build_result()

    assert summary["quarters"] == 4
    assert set(summary["latest"]) == {"stability", "economic_growth", "security_index", "active_crises"}
    stability = [report.kpis.stability.value for report in reports]
    assert summary["averages"]["stability"] == pytest.approx(sum(stability) / 4, abs=0.01)
    assert result["totals"]["expenses"] == pytest.approx(
        sum(report.expenses.total for report in reports), abs=0.01
    )
    assert result["control_state"]["mode"] == "advisor"
    assert result["final_state"]["quarter"] == 4
    assert len(result["reports"]) == 4
    assert json.loads(json.dumps(result)) == result


def test_treasury_never_goes_negative():
    """No quarter leaves the treasury below zero."""

    session = build_session(ControlMode.MANUAL, quarters=8)

    for report in session.run(RecordingHandler()):
        assert report.treasury.gold >= 0


def test_state_property_is_a_copy():
    """Mutating the exposed state leaves the session alone."""

    session = build_session()
    view = session.state
    view.resources.gold = -1

    assert session.state.resources.gold == 320
