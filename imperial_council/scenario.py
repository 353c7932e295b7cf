"""Campaign configuration and the bundled baseline scenario."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .advisors import ADVISORS
from .control import DEFAULT_MODE_STRATEGIES, ControlState, HybridRouting
from .models import (
    DEPARTMENTS,
    Agenda,
    ControlMode,
    ControlTransition,
    CouncilMember,
    Decree,
    DepartmentState,
    Estate,
    Region,
    ResourcePool,
    TrustLevels,
)
from .strategies import STRATEGIES, ResponsePostureSettings

logger = logging.getLogger(__name__)

_DATA_PATH = Path(__file__).parent / "data"
BASELINE_FILE = "baseline.yaml"


class ConfigurationError(ValueError):
    """Raised when a campaign configuration cannot be simulated."""


@dataclass
class ControlSettings:
    initial_mode: ControlMode = ControlMode.ADVISOR
    transitions: List[ControlTransition] = field(default_factory=list)
    routing: HybridRouting = field(default_factory=HybridRouting)
    strategies: Dict[ControlMode, str] = field(
        default_factory=lambda: dict(DEFAULT_MODE_STRATEGIES)
    )

    def build_state(self) -> ControlState:
        return ControlState(
            mode=self.initial_mode,
            pending=list(self.transitions),
            routing=copy.deepcopy(self.routing),
            strategies=dict(self.strategies),
        )

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "ControlSettings":
        data = data or {}
        strategies = dict(DEFAULT_MODE_STRATEGIES)
        for mode, key in (data.get("strategies") or {}).items():
            strategies[ControlMode(mode)] = key
        return ControlSettings(
            initial_mode=ControlMode(data.get("initial_mode", ControlMode.ADVISOR.value)),
            transitions=[ControlTransition.from_dict(item) for item in data.get("transitions") or []],
            routing=HybridRouting.from_dict(data.get("routing")),
            strategies=strategies,
        )


@dataclass
class CampaignConfig:
    """Everything needed to start a campaign; never mutated by a session."""

    quarters: int
    base_quarter_budget: float
    initial_resources: ResourcePool
    regions: List[Region]
    estates: List[Estate]
    departments: List[DepartmentState]
    council: List[CouncilMember]
    agenda: Agenda
    decree: Decree
    advisor: str = "reformist_scholar"
    response_posture: ResponsePostureSettings = field(default_factory=ResponsePostureSettings)
    control: ControlSettings = field(default_factory=ControlSettings)
    initial_trust: Optional[TrustLevels] = None
    seed: int = 1

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` describing every problem found."""

        problems: List[str] = []
        if self.quarters < 1:
            problems.append("quarters must be at least 1")
        if self.base_quarter_budget < 0:
            problems.append("base_quarter_budget must not be negative")
        if not self.regions:
            problems.append("at least one region is required")
        if not self.estates:
            problems.append("at least one estate is required")
        region_names = [region.name for region in self.regions]
        if len(set(region_names)) != len(region_names):
            problems.append("region names must be unique")
        estate_names = [estate.name for estate in self.estates]
        if len(set(estate_names)) != len(estate_names):
            problems.append("estate names must be unique")
        department_names = sorted(department.name.value for department in self.departments)
        if department_names != sorted(department.value for department in DEPARTMENTS):
            problems.append(
                "departments must list each of "
                + ", ".join(department.value for department in DEPARTMENTS)
                + " exactly once"
            )
        if self.advisor not in ADVISORS:
            problems.append(f"unknown advisor '{self.advisor}'")
        for mode, key in self.control.strategies.items():
            if key not in STRATEGIES:
                problems.append(f"unknown strategy '{key}' for {mode.value} mode")
        for transition in self.control.transitions:
            if transition.quarter < 1:
                problems.append(f"transition to {transition.mode.value} before quarter 1")
        if problems:
            raise ConfigurationError("; ".join(problems))

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "CampaignConfig":
        """Build a config, translating bad enum names into configuration errors."""

        try:
            trust = data.get("initial_trust")
            return CampaignConfig(
                quarters=int(data["quarters"]),
                base_quarter_budget=float(data["base_quarter_budget"]),
                initial_resources=ResourcePool.from_dict(data.get("initial_resources")),
                regions=[Region.from_dict(item) for item in data.get("regions") or []],
                estates=[Estate.from_dict(item) for item in data.get("estates") or []],
                departments=[DepartmentState.from_dict(item) for item in data.get("departments") or []],
                council=[CouncilMember.from_dict(item) for item in data.get("council") or []],
                agenda=Agenda.from_dict(data.get("agenda") or {}),
                decree=Decree.from_dict(data["decree"]),
                advisor=data.get("advisor", "reformist_scholar"),
                response_posture=ResponsePostureSettings.from_dict(data.get("response_posture")),
                control=ControlSettings.from_dict(data.get("control")),
                initial_trust=TrustLevels.from_dict(trust) if trust else None,
                seed=int(data.get("seed", 1)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid campaign configuration: {exc}") from exc


def _load_yaml_resource(filename: str) -> Dict[str, Any]:
    path = _DATA_PATH / filename
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_config(path: Path) -> CampaignConfig:
    with Path(path).open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    config = CampaignConfig.from_dict(data)
    config.validate()
    return config


def load_baseline_config(**overrides: Any) -> CampaignConfig:
    """Return a fresh baseline config with ``overrides`` replacing fields."""

    config = CampaignConfig.from_dict(_load_yaml_resource(BASELINE_FILE))
    if overrides:
        try:
            config = replace(config, **overrides)
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc
    config.validate()
    logger.debug("Loaded baseline config with overrides %s", sorted(overrides))
    return config


__all__ = [
    "BASELINE_FILE",
    "CampaignConfig",
    "ConfigurationError",
    "ControlSettings",
    "load_baseline_config",
    "load_config",
]
