"""Event intervention state machine.

Each quarter every active event is either presented to the ruler through an
:class:`InterventionHandler` or decided by the council's strategy. The
outcome is one of resolved, deferred or failed; every outcome produces a
single :class:`~.models.InterventionLogEntry`.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Protocol, Tuple

from .catalog import EventCatalog, UnknownTemplateError
from .control import utc_timestamp
from .effects import EffectScope, apply_effect, clamp
from .models import (
    ActiveEvent,
    AdvisorPreview,
    EventOption,
    EventOutcome,
    FailureClause,
    InterventionLogEntry,
    OutcomeStatus,
    ResolutionMode,
    ResourcePool,
    ResponsePosture,
    Severity,
    SimulationEvent,
    TrustLevels,
)
from .strategies import DecisionContext, EventResolution, ResponsePostureSettings

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .engine import CampaignState

logger = logging.getLogger(__name__)

TRUST_BOUNDS = (0.1, 0.95)
DEFAULT_ESTATE_TRUST = 0.5

SEVERITY_TRUST_WEIGHT: Dict[Severity, float] = {
    Severity.MAJOR: 0.05,
    Severity.MODERATE: 0.03,
    Severity.MINOR: 0.015,
}

ESTATE_RESOLVED_TRUST = 0.025
ESTATE_FAILED_TRUST = -0.03


def adjust_advisor_trust(trust: TrustLevels, delta: float) -> None:
    trust.advisor = clamp(round(trust.advisor + delta, 3), *TRUST_BOUNDS)


def adjust_estate_trust(trust: TrustLevels, estate: str, delta: float) -> None:
    current = trust.estates.get(estate, DEFAULT_ESTATE_TRUST)
    trust.estates[estate] = clamp(round(current + delta, 3), *TRUST_BOUNDS)


def apply_outcome_trust(trust: TrustLevels, event: SimulationEvent, status: OutcomeStatus) -> None:
    """Move advisor and origin-estate trust after a resolution or failure."""

    weight = SEVERITY_TRUST_WEIGHT[event.severity]
    estate = event.origin.estate if event.origin is not None else None
    if status == OutcomeStatus.RESOLVED:
        adjust_advisor_trust(trust, weight)
        if estate:
            adjust_estate_trust(trust, estate, ESTATE_RESOLVED_TRUST)
    elif status == OutcomeStatus.FAILED:
        adjust_advisor_trust(trust, -weight)
        if estate:
            adjust_estate_trust(trust, estate, ESTATE_FAILED_TRUST)


@dataclass(frozen=True)
class InterventionPanel:
    """Everything the ruler sees when asked to decide an event."""

    event: SimulationEvent
    quarter: int
    remaining_time: int
    failure: FailureClause
    options: List[EventOption]
    advisor_preview: AdvisorPreview
    context_summary: List[str]


def build_intervention_panel(
    active: ActiveEvent,
    quarter: int,
    preview: AdvisorPreview,
    context: DecisionContext,
) -> InterventionPanel:
    event = active.event
    summary: List[str] = []
    origin = event.origin
    if origin is not None:
        if origin.region:
            summary.append(f"Region: {origin.region}")
        if origin.estate:
            summary.append(f"Estate: {origin.estate}")
        if origin.source:
            summary.append(f"Source: {origin.source}")
    summary.append(f"Treasury: {context.resources.gold:.1f} gold")
    summary.append(f"Advisor trust: {context.trust.advisor * 100:.1f}%")
    return InterventionPanel(
        event=copy.deepcopy(event),
        quarter=quarter,
        remaining_time=active.remaining_time,
        failure=copy.deepcopy(event.failure),
        options=copy.deepcopy(event.options),
        advisor_preview=preview,
        context_summary=summary,
    )


class DecisionAction(str, Enum):
    SELECT = "select"
    DEFER = "defer"
    COUNCIL = "council"


@dataclass(frozen=True)
class HandlerDecision:
    """The ruler's answer to an :class:`InterventionPanel`."""

    action: DecisionAction
    option_id: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def select(cls, option_id: str, notes: Optional[str] = None) -> "HandlerDecision":
        return cls(DecisionAction.SELECT, option_id=option_id, notes=notes)

    @classmethod
    def postpone(cls, notes: Optional[str] = None) -> "HandlerDecision":
        return cls(DecisionAction.DEFER, notes=notes)

    @classmethod
    def handoff(cls, notes: Optional[str] = None) -> "HandlerDecision":
        return cls(DecisionAction.COUNCIL, notes=notes)


class InterventionHandler(Protocol):
    """Presents events to the ruler.

    Handlers may also define ``record(entry)`` to mirror committed
    intervention log entries; it is optional and best effort.
    """

    def present(self, panel: InterventionPanel, context: DecisionContext) -> HandlerDecision:
        ...


def enqueue_events(
    active: List[ActiveEvent], incoming: List[SimulationEvent], quarter: int
) -> List[ActiveEvent]:
    """Add triggered events to the active list, merging repeats of a trigger.

    A repeat of an already active trigger is dropped and leaves the
    running countdown untouched, so a condition that persists every
    quarter still fails on schedule. Returns the newly created entries.
    """

    added: List[ActiveEvent] = []
    for event in incoming:
        existing = next((item for item in active if item.event.same_trigger(event)), None)
        if existing is not None:
            logger.debug(
                "Merged repeat trigger %s (%d quarter(s) left)", event.id, existing.remaining_time
            )
            continue
        entry = ActiveEvent(
            event=event,
            remaining_time=max(1, event.failure.timeout),
            origin_quarter=quarter,
        )
        active.append(entry)
        added.append(entry)
    return added


ContextFactory = Callable[[ResponsePosture], DecisionContext]


class EventResolver:
    """Runs the intervention pass and the countdown for active events."""

    def __init__(
        self,
        catalog: EventCatalog,
        postures: Optional[ResponsePostureSettings] = None,
        *,
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self._catalog = catalog
        self._postures = postures or ResponsePostureSettings()
        self._clock = clock

    # ------------------------------------------------------------------
    # Intervention pass
    # ------------------------------------------------------------------
    def resolve(
        self,
        state: "CampaignState",
        quarter: int,
        handler: Optional[InterventionHandler],
        context_for: ContextFactory,
    ) -> List[EventOutcome]:
        """Decide every active event once, in insertion order.

        Resolved events leave the active list and their follow-ups join the
        end of it, so they are decided in the same pass. A follow-up that
        repeats a trigger already resolved this quarter waits for the next
        quarter instead, as does any escalation rolled on resolution.
        """

        outcomes: List[EventOutcome] = []
        resolved: List[SimulationEvent] = []
        index = 0
        while index < len(state.active_events):
            active = state.active_events[index]
            event = active.event
            context = context_for(self._postures.for_category(event.category))
            suggestion = state.control.strategy_for(event)(event, context)
            preview = AdvisorPreview(option_id=suggestion.option_id, notes=suggestion.notes)

            mode = ResolutionMode.COUNCIL
            resolution = suggestion
            if handler is not None and state.control.routes_to_player(event):
                mode, resolution = self._consult_handler(
                    state, handler, active, quarter, preview, context
                )

            outcome = self._settle(state, active, quarter, mode, resolution, preview)
            outcomes.append(outcome)
            self._log(state, active, quarter, outcome)

            if outcome.status != OutcomeStatus.RESOLVED:
                active.last_mode = mode
                active.last_preview = preview
                index += 1
                continue

            del state.active_events[index]
            resolved.append(event)
            if not active.escalated:
                self._roll_escalation(state, active)
            option = event.option(outcome.selected_option_id)
            for template_id in option.follow_ups if option is not None else []:
                self._queue_follow_up(state, template_id, event, resolved, quarter)
        return outcomes

    def _consult_handler(
        self,
        state: "CampaignState",
        handler: InterventionHandler,
        active: ActiveEvent,
        quarter: int,
        preview: AdvisorPreview,
        context: DecisionContext,
    ) -> Tuple[ResolutionMode, EventResolution]:
        event = active.event
        panel = build_intervention_panel(active, quarter, preview, context)
        try:
            decision = handler.present(panel, copy.deepcopy(context))
        except Exception as exc:
            logger.warning(
                "Intervention handler failed on %s; deferring", event.id, exc_info=True
            )
            return ResolutionMode.PLAYER, EventResolution(
                defer=True, notes=f"Handler error: {exc}"
            )

        if not isinstance(decision, HandlerDecision) or not isinstance(
            decision.action, DecisionAction
        ):
            logger.warning("Intervention handler returned %r for %s; deferring", decision, event.id)
            return ResolutionMode.PLAYER, EventResolution(
                defer=True, notes="Handler returned an invalid decision"
            )

        if decision.action == DecisionAction.COUNCIL:
            handed = state.control.council_strategy()(event, context)
            notes = decision.notes or handed.notes or "Handed to the council"
            return ResolutionMode.COUNCIL, EventResolution(
                option_id=handed.option_id, defer=handed.defer, notes=notes
            )
        if decision.action == DecisionAction.DEFER:
            return ResolutionMode.PLAYER, EventResolution(
                defer=True, notes=decision.notes or "Deferred by the ruler"
            )
        return ResolutionMode.PLAYER, EventResolution(
            option_id=decision.option_id, notes=decision.notes
        )

    def _settle(
        self,
        state: "CampaignState",
        active: ActiveEvent,
        quarter: int,
        mode: ResolutionMode,
        resolution: EventResolution,
        preview: AdvisorPreview,
    ) -> EventOutcome:
        event = active.event

        def deferred(notes: Optional[str]) -> EventOutcome:
            logger.debug("Deferred %s in quarter %d: %s", event.id, quarter, notes)
            return EventOutcome(
                event=copy.deepcopy(event),
                status=OutcomeStatus.DEFERRED,
                selected_option_id=None,
                applied_effects=[],
                resolution_mode=mode,
                advisor_preview=preview,
                notes=notes,
            )

        if resolution.defer or not resolution.option_id:
            return deferred(resolution.notes or "Deferred")

        option = event.option(resolution.option_id)
        if option is None:
            logger.warning("Unknown option %r for %s; deferring", resolution.option_id, event.id)
            return deferred(f"Unknown option '{resolution.option_id}'")
        if not state.resources.covers(option.cost):
            return deferred(f"Cannot afford option '{option.id}'")

        self._pay(state.resources, option.cost)
        scope = EffectScope(state.resources, state.regions, state.estates, state.modifiers)
        for effect in option.effects:
            apply_effect(effect, scope, state.timed_effects, source=event.id)
        apply_outcome_trust(state.trust, event, OutcomeStatus.RESOLVED)
        logger.debug("Resolved %s with %s (%s)", event.id, option.id, mode.value)
        return EventOutcome(
            event=copy.deepcopy(event),
            status=OutcomeStatus.RESOLVED,
            selected_option_id=option.id,
            applied_effects=copy.deepcopy(option.effects),
            resolution_mode=mode,
            advisor_preview=preview,
            notes=resolution.notes,
        )

    @staticmethod
    def _pay(resources: ResourcePool, cost: Optional[ResourcePool]) -> None:
        if cost is None:
            return
        resources.gold = max(0.0, resources.gold - cost.gold)
        resources.influence = max(0.0, resources.influence - cost.influence)
        resources.labor = max(0.0, resources.labor - cost.labor)

    def _queue_follow_up(
        self,
        state: "CampaignState",
        template_id: str,
        parent: SimulationEvent,
        resolved: List[SimulationEvent],
        quarter: int,
    ) -> None:
        try:
            follow_up = self._catalog.follow_up(template_id, parent)
        except UnknownTemplateError:
            logger.warning("Skipping unknown follow-up %s from %s", template_id, parent.id)
            return
        if any(event.same_trigger(follow_up) for event in resolved):
            state.pending_events.append(follow_up)
            return
        enqueue_events(state.active_events, [follow_up], quarter)

    # ------------------------------------------------------------------
    # Countdown
    # ------------------------------------------------------------------
    def countdown(self, state: "CampaignState", quarter: int) -> List[EventOutcome]:
        """Tick events triggered before ``quarter``; fail or escalate them."""

        outcomes: List[EventOutcome] = []
        scope = EffectScope(state.resources, state.regions, state.estates, state.modifiers)
        for active in list(state.active_events):
            if active.origin_quarter >= quarter:
                continue
            active.remaining_time -= 1
            event = active.event
            if active.remaining_time <= 0:
                for effect in event.failure.effects:
                    apply_effect(effect, scope, state.timed_effects, source=event.id)
                apply_outcome_trust(state.trust, event, OutcomeStatus.FAILED)
                outcome = EventOutcome(
                    event=copy.deepcopy(event),
                    status=OutcomeStatus.FAILED,
                    selected_option_id=None,
                    applied_effects=copy.deepcopy(event.failure.effects),
                    resolution_mode=active.last_mode,
                    advisor_preview=active.last_preview or AdvisorPreview(option_id=None),
                    notes=event.failure.description or "Timed out",
                )
                state.active_events.remove(active)
                outcomes.append(outcome)
                self._log(state, active, quarter, outcome)
                logger.debug("Event %s failed in quarter %d", event.id, quarter)
                continue
            if not active.escalated:
                self._roll_escalation(state, active)
        return outcomes

    def _roll_escalation(self, state: "CampaignState", active: ActiveEvent) -> None:
        event = active.event
        for clause in event.escalation:
            fired = state.rng.chance(clause.chance)
            logger.debug(
                "Escalation roll %s -> %s at %.2f: %s", event.id, clause.follow_up, clause.chance, fired
            )
            if not fired:
                continue
            try:
                follow_up = self._catalog.follow_up(clause.follow_up, event)
            except UnknownTemplateError:
                logger.warning("Skipping unknown escalation %s from %s", clause.follow_up, event.id)
                continue
            state.pending_events.append(follow_up)
            active.escalated = True

    # ------------------------------------------------------------------
    # Log
    # ------------------------------------------------------------------
    def _log(
        self,
        state: "CampaignState",
        active: ActiveEvent,
        quarter: int,
        outcome: EventOutcome,
    ) -> InterventionLogEntry:
        entry = InterventionLogEntry(
            event_id=outcome.event.id,
            event_title=outcome.event.title,
            quarter=quarter,
            mode=outcome.resolution_mode,
            status=outcome.status,
            option_id=outcome.selected_option_id,
            notes=outcome.notes,
            advisor_option_id=outcome.advisor_preview.option_id,
            advisor_notes=outcome.advisor_preview.notes,
            remaining_time=max(0, active.remaining_time),
            timestamp=self._clock(),
        )
        state.intervention_log.append(entry)
        return entry


__all__ = [
    "ContextFactory",
    "DecisionAction",
    "EventResolver",
    "HandlerDecision",
    "InterventionHandler",
    "InterventionPanel",
    "SEVERITY_TRUST_WEIGHT",
    "adjust_advisor_trust",
    "adjust_estate_trust",
    "apply_outcome_trust",
    "build_intervention_panel",
    "enqueue_events",
]
