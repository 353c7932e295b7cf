"""Tests for the interactive operator console."""
from __future__ import annotations

import io
from pathlib import Path

from imperial_council.catalog import load_catalog, treasury_depletion_event
from imperial_council.interventions import DecisionAction, build_intervention_panel
from imperial_council.models import ActiveEvent, AdvisorPreview, ControlMode
from imperial_council.scenario import ControlSettings, load_baseline_config
from imperial_council.session import Session
from imperial_council.store import SnapshotStore
from imperial_council.strategies import DecisionContext
from imperial_council.tools import play_campaign


def build_console(tmp_path, quarters: int = 4):
    config = load_baseline_config(quarters=quarters)
    out = io.StringIO()
    handler = play_campaign.ConsoleHandler(reader=lambda prompt: "defer", out=out)
    store = SnapshotStore(tmp_path / "snapshots.db")
    console = play_campaign.Console(config, Session(config), store, handler, out=out)
    return console, out


def build_panel(session: Session):
    state = session.state
    active = ActiveEvent(
        event=treasury_depletion_event(load_catalog(), 10.0), remaining_time=1, origin_quarter=1
    )
    context = DecisionContext(
        quarter=1,
        resources=state.resources,
        estates=state.estates,
        regions=state.regions,
        departments=state.departments,
        trust=state.trust,
        agenda=state.agenda,
        council=state.council,
    )
    preview = AdvisorPreview(option_id="austerity_measure")
    return build_intervention_panel(active, 1, preview, context), context


def test_handler_reprompts_until_valid_choice():
    """Unknown answers are rejected until a valid option id is given."""

    answers = iter(["bribe", "", "emergency_loan"])
    out = io.StringIO()
    handler = play_campaign.ConsoleHandler(reader=lambda prompt: next(answers), out=out)
    panel, context = build_panel(Session(load_baseline_config()))

    decision = handler.present(panel, context)

    assert decision.action == DecisionAction.SELECT
    assert decision.option_id == "emergency_loan"
    text = out.getvalue()
    assert "Unknown choice 'bribe'" in text
    assert "Council suggests: austerity_measure" in text
    assert "- emergency_loan" in text


def test_handler_maps_defer_and_council():
    """The keywords ``defer`` and ``council`` map to their decisions."""

    panel, context = build_panel(Session(load_baseline_config()))
    defer = play_campaign.ConsoleHandler(reader=lambda prompt: "defer", out=io.StringIO())
    council = play_campaign.ConsoleHandler(reader=lambda prompt: " council ", out=io.StringIO())

    assert defer.present(panel, context).action == DecisionAction.DEFER
    assert council.present(panel, context).action == DecisionAction.COUNCIL


def test_status_and_next_print_progress(tmp_path):
    """Status shows the quarter counter; next prints the quarter report."""

    console, out = build_console(tmp_path)

    assert console.execute("status") is True
    assert console.execute("next") is True

    text = out.getvalue()
    assert "Quarter 0/4, mode advisor" in text
    assert "Quarter 1 (advisor mode)" in text
    assert "stability:" in text
    assert console.session.current_quarter == 1


def test_next_after_completion_suggests_extend(tmp_path):
    """A finished campaign asks the operator to extend it."""

    console, out = build_console(tmp_path, quarters=1)
    console.execute("next")
    console.execute("next")
    console.execute("extend 2")

    text = out.getvalue()
    assert "Use 'extend <n>' to continue." in text
    assert "Campaign now runs 3 quarters" in text
    assert console.session.total_quarters == 3


def test_extend_rejects_non_positive(tmp_path):
    """Invalid extensions are reported, not raised."""

    console, out = build_console(tmp_path)
    console.execute("extend 0")
    console.execute("extend many")

    assert out.getvalue().count("Cannot extend") == 2
    assert console.session.total_quarters == 4


def test_mode_command(tmp_path):
    """Mode shows, validates and switches the control mode."""

    console, out = build_console(tmp_path)
    console.execute("mode")
    console.execute("mode tyranny")
    console.execute("mode manual taking the reins")
    console.execute("mode manual")

    text = out.getvalue()
    assert "Current mode: advisor" in text
    assert "Mode must be one of: manual, advisor, hybrid" in text
    assert "Mode set to manual from quarter 1" in text
    assert "Already in manual mode" in text
    assert console.session.control_mode == ControlMode.MANUAL
    assert console.session.state.control.history[-1].reason == "taking the reins"


def test_save_and_load_commands(tmp_path):
    """Snapshots are saved, listed and loaded by name."""

    console, out = build_console(tmp_path)
    console.execute("next")
    console.execute("save")
    console.execute("save first")
    console.execute("next")
    console.execute("load")
    console.execute("load missing")
    console.execute("load first")

    text = out.getvalue()
    assert "Saved 'autosave' at quarter 1" in text
    assert "Saved snapshots: autosave, first" in text
    assert "No snapshot named 'missing'" in text
    assert "Loaded 'first' at quarter 1" in text
    assert console.session.current_quarter == 1


def test_unknown_and_quit_commands(tmp_path):
    """Unknown commands are reported; quit stops the loop."""

    console, out = build_console(tmp_path)

    assert console.execute("") is True
    assert console.execute("dance") is True
    assert console.execute("quit") is False
    assert "Unknown command 'dance'" in out.getvalue()


def test_parser_defaults():
    """The parser defaults to the bundled scenario and a local snapshot file."""

    args = play_campaign.build_parser().parse_args([])

    assert args.config is None
    assert args.snapshots == Path("imperial_council.db")
    assert args.resume is None
    assert args.verbose is False


def test_build_config_applies_overrides():
    """Command-line overrides replace the scenario values."""

    args = play_campaign.build_parser().parse_args(
        ["--quarters", "9", "--seed", "5", "--mode", "hybrid"]
    )

    config = play_campaign._build_config(args)

    assert config.quarters == 9
    assert config.seed == 5
    assert config.control.initial_mode == ControlMode.HYBRID
    assert isinstance(config.control, ControlSettings)
