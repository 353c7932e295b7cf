"""Event template catalog and instantiation helpers."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml

from .models import (
    Effect,
    EscalationClause,
    EventCategory,
    EventOption,
    EventOrigin,
    FailureClause,
    ResourcePool,
    Severity,
    SimulationEvent,
)

logger = logging.getLogger(__name__)

_DATA_PATH = Path(__file__).parent / "data"
DEFAULT_CATALOG_FILE = "events.yaml"

MILESTONE_EVENT = "region.infrastructure.milestone"
LOYALTY_DECLINE_EVENT = "region.loyalty.decline"
DISSATISFACTION_EVENT = "estate.dissatisfaction"
TREASURY_DEPLETION_EVENT = "treasury.depletion"

_DISPLAY_FALLBACKS = {
    "region": "the region",
    "estate": "the estate",
    "milestone": "a new level",
    "loyalty": "an unknown level",
    "satisfaction": "an unknown level",
    "treasury": "an unknown amount of",
    "threat_level": "unknown",
}


class UnknownTemplateError(KeyError):
    """Raised when an event template id is not present in the catalog."""


class _Values(dict):
    def __missing__(self, key: str) -> str:
        return ""


@dataclass
class TemplateContext:
    """Values substituted into a template when it is instantiated."""

    region: Optional[str] = None
    estate: Optional[str] = None
    milestone: Optional[float] = None
    loyalty: Optional[float] = None
    satisfaction: Optional[float] = None
    treasury: Optional[float] = None
    threat_level: Optional[str] = None
    source: Optional[str] = None

    @staticmethod
    def from_origin(origin: Optional[EventOrigin], source: Optional[str] = None) -> "TemplateContext":
        if origin is None:
            return TemplateContext(source=source)
        return TemplateContext(
            region=origin.region,
            estate=origin.estate,
            milestone=origin.milestone,
            loyalty=origin.loyalty,
            satisfaction=origin.satisfaction,
            treasury=origin.treasury,
            source=source or origin.source,
        )

    def origin(self) -> EventOrigin:
        return EventOrigin(
            region=self.region,
            estate=self.estate,
            milestone=self.milestone,
            loyalty=self.loyalty,
            satisfaction=self.satisfaction,
            treasury=self.treasury,
            source=self.source,
        )

    def display_values(self) -> _Values:
        values = _Values()
        for item in fields(self):
            raw = getattr(self, item.name)
            if raw is None:
                values[item.name] = _DISPLAY_FALLBACKS.get(item.name, "")
            elif isinstance(raw, float):
                values[item.name] = f"{raw:.1f}" if item.name != "milestone" else f"{raw:g}"
            else:
                values[item.name] = str(raw)
        return values

    def target_values(self) -> _Values:
        values = _Values()
        for item in fields(self):
            raw = getattr(self, item.name)
            values[item.name] = "" if raw is None else (f"{raw:g}" if isinstance(raw, float) else str(raw))
        return values


def _load_yaml_resource(filename: str) -> Dict[str, Any]:
    path = _DATA_PATH / filename
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _applies(entry: Mapping[str, Any], has_region: bool) -> bool:
    when = entry.get("when")
    if when is None:
        return True
    if when == "region":
        return has_region
    if when == "no_region":
        return not has_region
    logger.warning("Ignoring unknown template condition %r", when)
    return True


def _variant(template: Mapping[str, Any], key: str, has_region: bool) -> Any:
    if not has_region and f"{key}_no_region" in template:
        return template[f"{key}_no_region"]
    return template.get(key)


class EventCatalog:
    """Immutable registry of event templates keyed by id."""

    def __init__(self, templates: Mapping[str, Mapping[str, Any]]) -> None:
        self._templates: Dict[str, Dict[str, Any]] = {
            key: copy.deepcopy(dict(value)) for key, value in templates.items()
        }

    @classmethod
    def from_yaml(cls, path: Path) -> "EventCatalog":
        with Path(path).open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        return cls(data.get("templates", {}))

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def ids(self) -> List[str]:
        return sorted(self._templates)

    def validate(self) -> List[str]:
        """Return a list of problems such as dangling follow-up references."""

        problems: List[str] = []
        for template_id, template in self._templates.items():
            try:
                EventCategory(template["category"])
                Severity(template["severity"])
            except (KeyError, ValueError) as exc:
                problems.append(f"{template_id}: invalid category or severity ({exc})")
            if not template.get("options"):
                problems.append(f"{template_id}: no options")
            references: List[str] = []
            for option in template.get("options", []):
                references.extend(option.get("follow_ups", []))
            references.extend(item["follow_up"] for item in template.get("escalation", []))
            for reference in references:
                if reference not in self._templates:
                    problems.append(f"{template_id}: unknown follow-up {reference}")
        return problems

    def instantiate(
        self, template_id: str, context: Optional[TemplateContext] = None
    ) -> SimulationEvent:
        """Render ``template_id`` with ``context`` into a fresh event."""

        try:
            template = self._templates[template_id]
        except KeyError:
            raise UnknownTemplateError(template_id) from None

        context = context or TemplateContext()
        has_region = bool(context.region)
        display = context.display_values()
        targets = context.target_values()

        def text(value: Optional[str]) -> str:
            return (value or "").format_map(display)

        def effects(entries: Iterable[Mapping[str, Any]]) -> List[Effect]:
            rendered: List[Effect] = []
            for entry in entries:
                if not _applies(entry, has_region):
                    continue
                data = dict(entry)
                data["target"] = str(entry.get("target", "")).format_map(targets)
                rendered.append(Effect.from_dict(data))
            return rendered

        options: List[EventOption] = []
        for option in template.get("options", []):
            cost = option.get("cost")
            options.append(
                EventOption(
                    id=option["id"],
                    description=text(option.get("description")),
                    effects=effects(option.get("effects", [])),
                    cost=ResourcePool.from_dict(cost) if cost else None,
                    follow_ups=list(option.get("follow_ups", [])),
                    cooldown=option.get("cooldown"),
                )
            )

        failure = template.get("failure", {})
        escalation = [
            EscalationClause(
                chance=float(item["chance"]),
                follow_up=item["follow_up"],
                description=text(item.get("description")),
            )
            for item in template.get("escalation", [])
            if _applies(item, has_region)
        ]

        return SimulationEvent(
            id=template_id,
            title=text(_variant(template, "title", has_region)),
            description=text(_variant(template, "description", has_region)),
            category=EventCategory(template["category"]),
            severity=Severity(template["severity"]),
            options=options,
            failure=FailureClause(
                timeout=int(failure.get("timeout", 1)),
                effects=effects(failure.get("effects", [])),
                description=text(failure.get("description")),
            ),
            factions=[text(item) for item in _variant(template, "factions", has_region) or []],
            triggers=[item.format_map(targets) for item in template.get("triggers", [])],
            conditions={
                key.format_map(targets): str(value).format_map(display)
                for key, value in (template.get("conditions") or {}).items()
            },
            escalation=escalation,
            origin=context.origin(),
        )

    def follow_up(self, template_id: str, parent: SimulationEvent) -> SimulationEvent:
        """Instantiate a follow-up inheriting the parent's origin."""

        return self.instantiate(
            template_id, TemplateContext.from_origin(parent.origin, source=parent.id)
        )


_DEFAULT_CATALOG: Optional[EventCatalog] = None


def load_catalog() -> EventCatalog:
    """Return the bundled catalog, loading it on first use."""

    global _DEFAULT_CATALOG
    if _DEFAULT_CATALOG is None:
        data = _load_yaml_resource(DEFAULT_CATALOG_FILE)
        _DEFAULT_CATALOG = EventCatalog(data.get("templates", {}))
        logger.debug("Loaded %d event templates", len(_DEFAULT_CATALOG))
    return _DEFAULT_CATALOG


def milestone_event(catalog: EventCatalog, region: str, milestone: float) -> SimulationEvent:
    return catalog.instantiate(
        MILESTONE_EVENT, TemplateContext(region=region, milestone=milestone, source="region")
    )


def loyalty_decline_event(catalog: EventCatalog, region: str, loyalty: float) -> SimulationEvent:
    return catalog.instantiate(
        LOYALTY_DECLINE_EVENT,
        TemplateContext(region=region, loyalty=round(loyalty, 1), source="region"),
    )


def estate_dissatisfaction_event(
    catalog: EventCatalog, estate: str, satisfaction: float
) -> SimulationEvent:
    return catalog.instantiate(
        DISSATISFACTION_EVENT,
        TemplateContext(estate=estate, satisfaction=round(satisfaction, 1), source="estate"),
    )


def treasury_depletion_event(catalog: EventCatalog, gold: float) -> SimulationEvent:
    return catalog.instantiate(
        TREASURY_DEPLETION_EVENT, TemplateContext(treasury=round(gold, 1), source="treasury")
    )


__all__ = [
    "DEFAULT_CATALOG_FILE",
    "DISSATISFACTION_EVENT",
    "EventCatalog",
    "LOYALTY_DECLINE_EVENT",
    "MILESTONE_EVENT",
    "TREASURY_DEPLETION_EVENT",
    "TemplateContext",
    "UnknownTemplateError",
    "estate_dissatisfaction_event",
    "load_catalog",
    "loyalty_decline_event",
    "milestone_event",
    "treasury_depletion_event",
]
