"""Externally facing campaign handle with exact-resume snapshots."""
from __future__ import annotations

import copy
import json
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from .advisors import Advisor
from .catalog import EventCatalog
from .config import Settings, get_settings
from .engine import CampaignState, QuarterEngine
from .interventions import InterventionHandler
from .models import (
    ControlMode,
    InterventionLogEntry,
    QuarterlyReport,
    ResourcePool,
)
from .scenario import CampaignConfig
from .store import SnapshotStore

logger = logging.getLogger(__name__)

OPERATOR_TRIGGER = "operator"


class Session:
    """Owns the live campaign state and the ordered report history.

    Quarters are computed on a copy of the live state and committed only
    when every step succeeded, so an interrupted quarter leaves the session
    exactly as it was.
    """

    class SnapshotVersionError(RuntimeError):
        """Raised when a snapshot cannot be restored by this engine."""

    class CampaignCompleteError(RuntimeError):
        """Raised when advancing past the campaign's quarter limit."""

    def __init__(
        self,
        config: CampaignConfig,
        *,
        catalog: Optional[EventCatalog] = None,
        settings: Optional[Settings] = None,
        advisor: Optional[Advisor] = None,
        state: Optional[CampaignState] = None,
        reports: Optional[List[QuarterlyReport]] = None,
    ) -> None:
        config.validate()
        self.config = config
        self.settings = settings or get_settings()
        self.engine = QuarterEngine(config, catalog=catalog, settings=self.settings, advisor=advisor)
        self._state = state or CampaignState.initial(config)
        self._reports: List[QuarterlyReport] = list(reports or [])

    # ------------------------------------------------------------------
    # Quarter flow
    # ------------------------------------------------------------------
    @property
    def current_quarter(self) -> int:
        """Last committed quarter; 0 before the campaign starts."""

        return self._state.quarter

    @property
    def total_quarters(self) -> int:
        return self._state.total_quarters

    @property
    def is_complete(self) -> bool:
        return self._state.quarter >= self._state.total_quarters

    @property
    def control_mode(self) -> ControlMode:
        return self._state.control.mode

    @property
    def reports(self) -> List[QuarterlyReport]:
        return list(self._reports)

    @property
    def intervention_log(self) -> List[InterventionLogEntry]:
        return list(self._state.intervention_log)

    @property
    def state(self) -> CampaignState:
        """Read-only view of the live state; mutate through session methods."""

        return copy.deepcopy(self._state)

    def advance_quarter(self, handler: Optional[InterventionHandler] = None) -> QuarterlyReport:
        if self.is_complete:
            raise Session.CampaignCompleteError(
                f"Campaign finished after {self._state.total_quarters} quarters"
            )
        working = copy.deepcopy(self._state)
        logged_before = len(working.intervention_log)
        try:
            report = self.engine.advance_quarter(working, handler)
        except Exception:
            logger.exception(
                "Quarter %d failed; live state left at quarter %d",
                self._state.quarter + 1,
                self._state.quarter,
            )
            raise

        self._state = working
        self._reports.append(report)
        logger.info(
            "Committed quarter %d: treasury %.2f gold, %d outcome(s)",
            report.quarter,
            report.treasury.gold,
            len(report.outcomes),
        )
        self._mirror_log(handler, working.intervention_log[logged_before:])
        return report

    @staticmethod
    def _mirror_log(
        handler: Optional[InterventionHandler], entries: List[InterventionLogEntry]
    ) -> None:
        record = getattr(handler, "record", None)
        if record is None:
            return
        for entry in entries:
            try:
                record(entry)
            except Exception:
                logger.debug("Handler failed to record %s", entry.event_id, exc_info=True)

    def run(self, handler: Optional[InterventionHandler] = None) -> List[QuarterlyReport]:
        """Advance until the quarter limit; returns the reports produced."""

        produced: List[QuarterlyReport] = []
        while not self.is_complete:
            produced.append(self.advance_quarter(handler))
        return produced

    # ------------------------------------------------------------------
    # Control commands
    # ------------------------------------------------------------------
    def set_control_mode(
        self,
        mode: ControlMode,
        reason: Optional[str] = None,
        triggered_by: str = OPERATOR_TRIGGER,
    ) -> bool:
        """Switch mode at once; ``False`` if already active.

        The change is visible through :attr:`control_mode` immediately and is
        logged against the next quarter, the first one it governs.
        """

        return self._state.control.set_mode(
            ControlMode(mode), self._state.quarter + 1, reason, triggered_by
        )

    def extend_quarters(self, quarters: int) -> int:
        if quarters < 1:
            raise ValueError("Extension must add at least one quarter")
        self._state.total_quarters += quarters
        logger.info("Campaign extended by %d to %d quarters", quarters, self._state.total_quarters)
        return self._state.total_quarters

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def export_state(self) -> Dict[str, Any]:
        raw = {
            "schema_version": self.settings.snapshot_schema_version,
            "state": self._state.to_dict(),
            "reports": [report.to_dict() for report in self._reports],
        }
        return json.loads(json.dumps(raw))

    @classmethod
    def from_state(
        cls,
        config: CampaignConfig,
        snapshot: Dict[str, Any],
        *,
        catalog: Optional[EventCatalog] = None,
        settings: Optional[Settings] = None,
        advisor: Optional[Advisor] = None,
    ) -> "Session":
        settings = settings or get_settings()
        version = snapshot.get("schema_version") if isinstance(snapshot, dict) else None
        if version != settings.snapshot_schema_version:
            raise Session.SnapshotVersionError(
                f"Snapshot schema {version!r} does not match {settings.snapshot_schema_version}"
            )
        try:
            state = CampaignState.from_dict(snapshot["state"])
            reports = [QuarterlyReport.from_dict(item) for item in snapshot.get("reports", [])]
        except (KeyError, TypeError, ValueError) as exc:
            raise Session.SnapshotVersionError(f"Malformed snapshot: {exc}") from exc
        return cls(
            config,
            catalog=catalog,
            settings=settings,
            advisor=advisor,
            state=state,
            reports=reports,
        )

    def save(self, store: SnapshotStore, name: str) -> None:
        store.write(name, self.export_state())
        logger.info("Saved snapshot %s at quarter %d", name, self._state.quarter)

    @classmethod
    def load(
        cls,
        config: CampaignConfig,
        store: SnapshotStore,
        name: str,
        **kwargs: Any,
    ) -> "Session":
        session = cls.from_state(config, store.read(name), **kwargs)
        logger.info("Loaded snapshot %s at quarter %d", name, session.current_quarter)
        return session

    # ------------------------------------------------------------------
    # Report feed
    # ------------------------------------------------------------------
    def kpi_summary(self) -> Dict[str, Any]:
        """Latest KPI entries plus the per-KPI average across all reports."""

        if not self._reports:
            return {"quarters": 0, "latest": None, "averages": {}}
        latest = self._reports[-1].kpis.entries()
        averages: Dict[str, float] = {}
        for metric in latest:
            values = [report.kpis.entries()[metric].value for report in self._reports]
            averages[metric] = round(sum(values) / len(values), 2)
        return {
            "quarters": len(self._reports),
            "latest": json.loads(json.dumps({key: asdict(entry) for key, entry in latest.items()})),
            "averages": averages,
        }

    def build_result(self) -> Dict[str, Any]:
        incomes = ResourcePool()
        expenses = 0.0
        for report in self._reports:
            incomes = incomes.plus(report.incomes)
            expenses += report.expenses.total
        control = self._state.control
        raw = {
            "reports": [report.to_dict() for report in self._reports],
            "kpi_summary": self.kpi_summary(),
            "totals": {"incomes": asdict(incomes.rounded()), "expenses": round(expenses, 2)},
            "final_state": self._state.to_dict(),
            "intervention_log": [asdict(entry) for entry in self._state.intervention_log],
            "control_state": {
                "mode": control.mode.value,
                "history": [asdict(entry) for entry in control.history],
            },
        }
        return json.loads(json.dumps(raw))


__all__ = ["OPERATOR_TRIGGER", "Session"]
