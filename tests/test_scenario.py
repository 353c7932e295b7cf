"""Tests for campaign configuration loading and validation."""
from __future__ import annotations

import copy
from pathlib import Path

import pytest
import yaml

import imperial_council.scenario as scenario_module
from imperial_council.models import ControlMode, ControlTransition
from imperial_council.scenario import (
    BASELINE_FILE,
    CampaignConfig,
    ConfigurationError,
    ControlSettings,
    load_baseline_config,
    load_config,
)


def baseline_data():
    path = Path(scenario_module.__file__).parent / "data" / BASELINE_FILE
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def test_baseline_config_is_valid():
    """The bundled baseline loads and validates."""

    config = load_baseline_config()

    assert config.quarters == 4
    assert config.advisor == "reformist_scholar"
    assert [region.name for region in config.regions] == [
        "Capital March",
        "Grain Belt",
        "Forge Country",
    ]
    assert config.control.initial_mode == ControlMode.ADVISOR


def test_baseline_configs_are_independent():
    """Each call returns a fresh config."""

    first = load_baseline_config()
    first.regions[0].loyalty = 1

    assert load_baseline_config().regions[0].loyalty == 68


def test_overrides_replace_fields():
    """Keyword overrides replace config fields."""

    config = load_baseline_config(quarters=10, seed=99)

    assert (config.quarters, config.seed) == (10, 99)
    with pytest.raises(ConfigurationError):
        load_baseline_config(no_such_field=1)


@pytest.mark.parametrize(
    "mutate, message",
    [
        (lambda config: setattr(config, "quarters", 0), "quarters must be at least 1"),
        (lambda config: config.regions.append(copy.deepcopy(config.regions[0])), "region names must be unique"),
        (lambda config: setattr(config, "advisor", "oracle"), "unknown advisor 'oracle'"),
        (lambda config: config.departments.pop(), "departments must list each of"),
        (lambda config: setattr(config, "estates", []), "at least one estate is required"),
        (
            lambda config: setattr(
                config,
                "control",
                ControlSettings(transitions=[ControlTransition(quarter=0, mode=ControlMode.MANUAL)]),
            ),
            "transition to manual before quarter 1",
        ),
    ],
)
def test_validate_reports_problems(mutate, message):
    """Invalid configurations raise with a descriptive message."""

    config = load_baseline_config()
    mutate(config)

    with pytest.raises(ConfigurationError, match=message):
        config.validate()


def test_bad_enum_names_become_configuration_errors():
    """Unknown enum values surface as ConfigurationError."""

    data = baseline_data()
    data["regions"][0]["specialization"] = "mining"

    with pytest.raises(ConfigurationError):
        CampaignConfig.from_dict(data)


def test_load_config_from_file(tmp_path):
    """A YAML campaign file loads and validates."""

    data = baseline_data()
    data["quarters"] = 6
    data["control"] = {"initial_mode": "hybrid", "routing": {"severities": {"major": "player"}}}
    path = tmp_path / "campaign.yaml"
    path.write_text(yaml.safe_dump(data))

    config = load_config(path)

    assert config.quarters == 6
    assert config.control.initial_mode == ControlMode.HYBRID


def test_load_config_rejects_invalid_file(tmp_path):
    """Validation runs on loaded files."""

    data = baseline_data()
    data["quarters"] = 0
    path = tmp_path / "campaign.yaml"
    path.write_text(yaml.safe_dump(data))

    with pytest.raises(ConfigurationError):
        load_config(path)
