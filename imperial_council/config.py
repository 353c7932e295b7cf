"""Configuration loading utilities for the imperial council engine."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml


DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"


@dataclass(frozen=True)
class Settings:
    """Typed view over the settings YAML file."""

    quarter_duration: int
    budget_cap_ratio: float
    minimum_budget: float
    loyalty_factor_bounds: Tuple[float, float]
    rejection_threshold: float
    security_thresholds: Tuple[float, ...]
    security_pressure_cap: float
    decay: Dict[str, float]
    default_seed: int
    snapshot_schema_version: int

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Settings":
        engine_cfg = data.get("engine", {})
        budget_cfg = data.get("budget", {})
        strategy_cfg = data.get("strategy", {})
        security_cfg = data.get("security", {})
        snapshot_cfg = data.get("snapshot", {})
        loyalty_bounds = engine_cfg.get("loyalty_factor_bounds", [0.3, 1.2])
        decay_cfg = data.get("decay", {})
        return Settings(
            quarter_duration=int(engine_cfg.get("quarter_duration", 3)),
            budget_cap_ratio=float(budget_cfg.get("cap_ratio", 0.6)),
            minimum_budget=float(budget_cfg.get("minimum", 60)),
            loyalty_factor_bounds=(float(loyalty_bounds[0]), float(loyalty_bounds[1])),
            rejection_threshold=float(strategy_cfg.get("rejection_threshold", -40)),
            security_thresholds=tuple(
                float(value) for value in security_cfg.get("thresholds", [0.8, 2.6, 4.2])
            ),
            security_pressure_cap=float(security_cfg.get("pressure_cap", 6)),
            decay={
                "stability": float(decay_cfg.get("stability", 0.85)),
                "threat": float(decay_cfg.get("threat", 0.9)),
                "budget": float(decay_cfg.get("budget", 0.75)),
                "security_pressure": float(decay_cfg.get("security_pressure", 0.92)),
                "reputation": float(decay_cfg.get("reputation", 0.9)),
            },
            default_seed=int(engine_cfg.get("default_seed", 1)),
            snapshot_schema_version=int(snapshot_cfg.get("schema_version", 1)),
        )


class SettingsLoader:
    """Loads and caches settings from YAML configuration files."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH
        self._cache: Settings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> Settings:
        if self._cache is not None and not force:
            return self._cache
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        self._cache = Settings.from_dict(data)
        return self._cache


_DEFAULT_LOADER = SettingsLoader()


def get_settings() -> Settings:
    """Convenience accessor for default settings."""

    return _DEFAULT_LOADER.load()


__all__ = ["DEFAULT_SETTINGS_PATH", "Settings", "SettingsLoader", "get_settings"]
