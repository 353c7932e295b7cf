"""Control-mode state: who resolves events, and when that changes."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .models import (
    ControlMode,
    ControlModeLogEntry,
    ControlTransition,
    EventCategory,
    ResolutionMode,
    Severity,
    SimulationEvent,
)
from .strategies import Strategy, get_strategy

logger = logging.getLogger(__name__)

DEFAULT_MODE_STRATEGIES: Dict[ControlMode, str] = {
    ControlMode.MANUAL: "manual",
    ControlMode.ADVISOR: "pragmatic",
    ControlMode.HYBRID: "hybrid",
}

SCHEDULE_TRIGGER = "schedule"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class HybridRouting:
    """Routing table for hybrid mode: category first, then severity.

    Anything the table does not mention is resolved by the council.
    """

    categories: Dict[EventCategory, ResolutionMode] = field(default_factory=dict)
    severities: Dict[Severity, ResolutionMode] = field(default_factory=dict)

    def route(self, event: SimulationEvent) -> ResolutionMode:
        if event.category in self.categories:
            return self.categories[event.category]
        return self.severities.get(event.severity, ResolutionMode.COUNCIL)

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "HybridRouting":
        data = data or {}
        return HybridRouting(
            categories={
                EventCategory(key): ResolutionMode(value)
                for key, value in (data.get("categories") or {}).items()
            },
            severities={
                Severity(key): ResolutionMode(value)
                for key, value in (data.get("severities") or {}).items()
            },
        )


@dataclass
class ControlState:
    """Current control mode with its append-only history."""

    mode: ControlMode = ControlMode.ADVISOR
    pending: List[ControlTransition] = field(default_factory=list)
    history: List[ControlModeLogEntry] = field(default_factory=list)
    routing: HybridRouting = field(default_factory=HybridRouting)
    strategies: Dict[ControlMode, str] = field(
        default_factory=lambda: dict(DEFAULT_MODE_STRATEGIES)
    )

    def __post_init__(self) -> None:
        self.pending = sorted(self.pending, key=lambda transition: transition.quarter)

    def _log(
        self,
        quarter: int,
        reason: Optional[str],
        triggered_by: Optional[str],
        timestamp: Optional[str],
    ) -> ControlModeLogEntry:
        if self.history:
            quarter = max(quarter, self.history[-1].quarter)
        entry = ControlModeLogEntry(
            quarter=quarter,
            mode=self.mode,
            timestamp=timestamp or utc_timestamp(),
            reason=reason,
            triggered_by=triggered_by,
        )
        self.history.append(entry)
        return entry

    def start(self, quarter: int = 1, timestamp: Optional[str] = None) -> None:
        """Record the initial mode; a no-op once history exists."""

        if not self.history:
            self._log(quarter, "campaign start", "initial", timestamp)

    def set_mode(
        self,
        mode: ControlMode,
        quarter: int,
        reason: Optional[str] = None,
        triggered_by: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> bool:
        """Switch to ``mode``; returns ``False`` when already in it."""

        mode = ControlMode(mode)
        if mode == self.mode:
            return False
        previous = self.mode
        self.mode = mode
        self._log(quarter, reason, triggered_by, timestamp)
        logger.info(
            "Control mode %s -> %s at quarter %d (%s)",
            previous.value,
            mode.value,
            quarter,
            reason or "no reason given",
        )
        return True

    def apply_scheduled(self, quarter: int, timestamp: Optional[str] = None) -> None:
        while self.pending and self.pending[0].quarter <= quarter:
            transition = self.pending.pop(0)
            self.set_mode(
                transition.mode,
                quarter,
                transition.reason,
                transition.triggered_by or SCHEDULE_TRIGGER,
                timestamp,
            )

    def routes_to_player(self, event: SimulationEvent) -> bool:
        if self.mode == ControlMode.MANUAL:
            return True
        if self.mode == ControlMode.HYBRID:
            return self.routing.route(event) == ResolutionMode.PLAYER
        return False

    def council_strategy(self) -> Strategy:
        return get_strategy(self.strategies[ControlMode.ADVISOR])

    def strategy_for(self, event: SimulationEvent) -> Strategy:
        """Strategy that previews (and, without a ruler, decides) ``event``."""

        if self.mode == ControlMode.HYBRID and not self.routes_to_player(event):
            return self.council_strategy()
        return get_strategy(self.strategies[self.mode])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "pending": [asdict(transition) for transition in self.pending],
            "history": [asdict(entry) for entry in self.history],
            "routing": {
                "categories": {k.value: v.value for k, v in self.routing.categories.items()},
                "severities": {k.value: v.value for k, v in self.routing.severities.items()},
            },
            "strategies": {mode.value: key for mode, key in self.strategies.items()},
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ControlState":
        strategies = dict(DEFAULT_MODE_STRATEGIES)
        for mode, key in (data.get("strategies") or {}).items():
            strategies[ControlMode(mode)] = key
        return ControlState(
            mode=ControlMode(data.get("mode", ControlMode.ADVISOR.value)),
            pending=[ControlTransition.from_dict(item) for item in data.get("pending", [])],
            history=[ControlModeLogEntry.from_dict(item) for item in data.get("history", [])],
            routing=HybridRouting.from_dict(data.get("routing")),
            strategies=strategies,
        )


__all__ = [
    "ControlState",
    "DEFAULT_MODE_STRATEGIES",
    "HybridRouting",
    "SCHEDULE_TRIGGER",
    "utc_timestamp",
]
