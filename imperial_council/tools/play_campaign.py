"""Interactive operator console for running a campaign quarter by quarter."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, TextIO

from ..interventions import HandlerDecision, InterventionPanel
from ..models import ControlMode, InterventionLogEntry, QuarterlyReport
from ..scenario import CampaignConfig, load_baseline_config, load_config
from ..session import Session
from ..store import SnapshotStore
from ..strategies import DecisionContext

DEFAULT_SNAPSHOT = "autosave"


class ConsoleHandler:
    """Asks the operator to decide each event routed to the ruler."""

    def __init__(self, reader: Callable[[str], str] = input, out: TextIO = sys.stdout) -> None:
        self._read = reader
        self._out = out

    def present(self, panel: InterventionPanel, context: DecisionContext) -> HandlerDecision:
        self._print(f"\n[{panel.event.severity.value}] {panel.event.title}")
        self._print(f"  {panel.event.description}")
        for line in panel.context_summary:
            self._print(f"  {line}")
        self._print(f"  Quarters left: {panel.remaining_time}")
        if panel.failure.description:
            self._print(f"  If ignored: {panel.failure.description}")
        for option in panel.options:
            cost = option.cost
            price = f" (cost {cost.gold:.0f}g/{cost.influence:.0f}i/{cost.labor:.0f}l)" if cost else ""
            self._print(f"  - {option.id}: {option.description}{price}")
        suggestion = panel.advisor_preview.option_id or "defer"
        self._print(f"  Council suggests: {suggestion}")

        valid = {option.id for option in panel.options}
        while True:
            answer = self._read("Choose option id, 'defer' or 'council': ").strip()
            if answer == "defer":
                return HandlerDecision.postpone()
            if answer == "council":
                return HandlerDecision.handoff()
            if answer in valid:
                return HandlerDecision.select(answer)
            self._print(f"Unknown choice '{answer}'.")

    def record(self, entry: InterventionLogEntry) -> None:
        choice = entry.option_id or "-"
        self._print(f"  log: {entry.event_id} {entry.status.value} via {entry.mode.value} ({choice})")

    def _print(self, text: str) -> None:
        print(text, file=self._out)


def format_report(report: QuarterlyReport) -> str:
    lines: List[str] = [f"Quarter {report.quarter} ({report.control_mode.value} mode)"]
    lines.append(
        f"  Treasury: {report.treasury.gold:.1f} gold, "
        f"{report.treasury.influence:.1f} influence, {report.treasury.labor:.1f} labor"
    )
    lines.append(f"  Income {report.incomes.gold:.1f} / spent {report.expenses.total:.1f}")
    for name, entry in report.kpis.entries().items():
        lines.append(f"  {name}: {entry.value:.2f} ({entry.trend:+.2f}, {entry.threat_level.value})")
    for outcome in report.outcomes:
        lines.append(f"  {outcome.event.title}: {outcome.status.value}")
    for highlight in report.agenda_highlights:
        lines.append(f"  * {highlight.department.value} ({highlight.priority.value}): {highlight.commentary}")
    return "\n".join(lines)


def format_status(session: Session) -> str:
    state = session.state
    lines = [
        f"Quarter {session.current_quarter}/{session.total_quarters}, mode {session.control_mode.value}",
        f"Treasury: {state.resources.gold:.1f} gold",
        f"Active events: {len(state.active_events)}",
        f"Advisor trust: {state.trust.advisor * 100:.1f}%",
    ]
    return "\n".join(lines)


class Console:
    """Dispatches operator commands against a :class:`Session`."""

    def __init__(
        self,
        config: CampaignConfig,
        session: Session,
        store: SnapshotStore,
        handler: ConsoleHandler,
        out: TextIO = sys.stdout,
    ) -> None:
        self.config = config
        self.session = session
        self.store = store
        self.handler = handler
        self._out = out
        self._commands: Dict[str, Callable[[List[str]], bool]] = {
            "next": self.cmd_next,
            "mode": self.cmd_mode,
            "extend": self.cmd_extend,
            "save": self.cmd_save,
            "load": self.cmd_load,
            "status": self.cmd_status,
            "quit": self.cmd_quit,
        }

    def execute(self, line: str) -> bool:
        """Run one command line; returns ``False`` when the console should stop."""

        parts = line.split()
        if not parts:
            return True
        command = self._commands.get(parts[0])
        if command is None:
            self._print(f"Unknown command '{parts[0]}'. Try: {', '.join(self._commands)}")
            return True
        return command(parts[1:])

    def cmd_next(self, args: List[str]) -> bool:
        try:
            report = self.session.advance_quarter(self.handler)
        except Session.CampaignCompleteError as exc:
            self._print(f"{exc}. Use 'extend <n>' to continue.")
            return True
        self._print(format_report(report))
        return True

    def cmd_mode(self, args: List[str]) -> bool:
        if not args:
            self._print(f"Current mode: {self.session.control_mode.value}")
            return True
        try:
            mode = ControlMode(args[0])
        except ValueError:
            self._print("Mode must be one of: " + ", ".join(mode.value for mode in ControlMode))
            return True
        reason = " ".join(args[1:]) or None
        if self.session.set_control_mode(mode, reason):
            self._print(f"Mode set to {mode.value} from quarter {self.session.current_quarter + 1}")
        else:
            self._print(f"Already in {mode.value} mode")
        return True

    def cmd_extend(self, args: List[str]) -> bool:
        try:
            total = self.session.extend_quarters(int(args[0]) if args else 1)
        except ValueError as exc:
            self._print(f"Cannot extend: {exc}")
            return True
        self._print(f"Campaign now runs {total} quarters")
        return True

    def cmd_save(self, args: List[str]) -> bool:
        name = args[0] if args else DEFAULT_SNAPSHOT
        self.session.save(self.store, name)
        self._print(f"Saved '{name}' at quarter {self.session.current_quarter}")
        return True

    def cmd_load(self, args: List[str]) -> bool:
        if not args:
            self._print("Saved snapshots: " + (", ".join(self.store.names()) or "none"))
            return True
        try:
            self.session = Session.load(self.config, self.store, args[0])
        except KeyError:
            self._print(f"No snapshot named '{args[0]}'")
            return True
        except Session.SnapshotVersionError as exc:
            self._print(f"Cannot load '{args[0]}': {exc}")
            return True
        self._print(f"Loaded '{args[0]}' at quarter {self.session.current_quarter}")
        return True

    def cmd_status(self, args: List[str]) -> bool:
        self._print(format_status(self.session))
        return True

    def cmd_quit(self, args: List[str]) -> bool:
        return False

    def _print(self, text: str) -> None:
        print(text, file=self._out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play an imperial council campaign interactively.")
    parser.add_argument(
        "--config",
        type=Path,
        help="Campaign YAML file (default: bundled baseline scenario).",
    )
    parser.add_argument(
        "--snapshots",
        type=Path,
        default=Path("imperial_council.db"),
        help="SQLite file for saved snapshots (default: imperial_council.db).",
    )
    parser.add_argument("--resume", type=str, help="Snapshot name to resume from.")
    parser.add_argument("--quarters", type=int, help="Override the campaign length.")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ControlMode],
        help="Initial control mode override.",
    )
    parser.add_argument("--seed", type=int, help="Override the scenario RNG seed.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def _build_config(args: argparse.Namespace) -> CampaignConfig:
    config = load_config(args.config) if args.config else load_baseline_config()
    if args.quarters is not None:
        config.quarters = args.quarters
    if args.seed is not None:
        config.seed = args.seed
    if args.mode:
        config.control.initial_mode = ControlMode(args.mode)
    config.validate()
    return config


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    config = _build_config(args)
    store = SnapshotStore(args.snapshots)
    session = Session.load(config, store, args.resume) if args.resume else Session(config)
    console = Console(config, session, store, ConsoleHandler())
    print(format_status(session))
    while True:
        try:
            line = input("council> ")
        except EOFError:
            break
        if not console.execute(line):
            break


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
