"""Council consultation threads.

Each quarter the council is consulted on up to three topics: the most
threatened KPI, the most serious event outcome and the weakest department.
Threads are derived from a :class:`~.strategies.DecisionContext` and the
quarter's outcomes only; generating them never touches live state.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .effects import effect_department
from .models import (
    KPI_NAMES,
    ConsultationResponse,
    ConsultationStance,
    ConsultationThread,
    CouncilMember,
    Department,
    DepartmentState,
    Effect,
    EventOutcome,
    KPIEntry,
    OutcomeStatus,
    Severity,
    ThreatLevel,
)
from .strategies import DecisionContext

KPI_DEPARTMENTS: Dict[str, Department] = {
    "stability": Department.INTERNAL,
    "economic_growth": Department.ECONOMY,
    "security_index": Department.MILITARY,
    "active_crises": Department.INTERNAL,
}

KPI_LABELS: Dict[str, str] = {
    "stability": "Stability",
    "economic_growth": "Economic growth",
    "security_index": "Security index",
    "active_crises": "Active crises",
}

DEPARTMENT_LABELS: Dict[Department, str] = {
    Department.ECONOMY: "Economy",
    Department.DIPLOMACY: "Diplomacy",
    Department.INTERNAL: "Internal affairs",
    Department.MILITARY: "War office",
    Department.SCIENCE: "Science",
}

_THREAT_RANK: Dict[ThreatLevel, int] = {
    ThreatLevel.LOW: 0,
    ThreatLevel.MODERATE: 1,
    ThreatLevel.CRITICAL: 2,
}
_SEVERITY_RANK: Dict[Severity, int] = {Severity.MINOR: 1, Severity.MODERATE: 2, Severity.MAJOR: 3}
_STATUS_RANK: Dict[OutcomeStatus, int] = {
    OutcomeStatus.DEFERRED: 1,
    OutcomeStatus.RESOLVED: 2,
    OutcomeStatus.FAILED: 3,
}

ADVISOR_LIMIT = 3


def kpi_stance(entry: KPIEntry) -> ConsultationStance:
    if entry.threat_level == ThreatLevel.CRITICAL or entry.trend < -0.25:
        return ConsultationStance.ESCALATE
    if entry.threat_level == ThreatLevel.MODERATE or entry.trend < -0.05:
        return ConsultationStance.CAUTION
    return ConsultationStance.SUPPORT


def department_stance(efficiency: float) -> ConsultationStance:
    if efficiency < 0.95:
        return ConsultationStance.ESCALATE
    if efficiency < 1.1:
        return ConsultationStance.CAUTION
    return ConsultationStance.SUPPORT


def event_stance(outcome: EventOutcome) -> ConsultationStance:
    if outcome.status == OutcomeStatus.FAILED or outcome.event.severity == Severity.MAJOR:
        return ConsultationStance.ESCALATE
    if outcome.event.severity == Severity.MODERATE or outcome.status == OutcomeStatus.DEFERRED:
        return ConsultationStance.CAUTION
    return ConsultationStance.SUPPORT


def pick_advisors(
    council: List[CouncilMember], department: Optional[Department], limit: int = ADVISOR_LIMIT
) -> List[CouncilMember]:
    """Specialists for ``department`` by competence, else the most competent."""

    by_competence = sorted(council, key=lambda member: -member.competence)
    if department is None:
        return by_competence[:limit]
    specialists = [member for member in by_competence if department in member.departments()]
    if specialists:
        return specialists[:limit]
    return by_competence[:limit]


def _unique(entries: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for entry in entries:
        if entry and entry not in seen:
            seen.append(entry)
    return seen


def _summarise(topic: str, responses: List[ConsultationResponse]) -> str:
    escalations = sum(1 for response in responses if response.stance == ConsultationStance.ESCALATE)
    cautions = sum(1 for response in responses if response.stance == ConsultationStance.CAUTION)
    if escalations:
        return f"{topic}: intervention required, {escalations} advisor(s) demand immediate action."
    if cautions:
        return f"{topic}: the council has the situation in hand but asks for closer attention."
    return f"{topic}: the council confirms stability and recommends consolidating the gains."


def _signed(value: float) -> str:
    return f"+{value:.2f}" if value > 0 else f"{value:.2f}"


def _kpi_thread(context: DecisionContext) -> Optional[ConsultationThread]:
    if context.kpis is None:
        return None
    entries = context.kpis.entries()
    ranked = sorted(
        KPI_NAMES,
        key=lambda name: (-_THREAT_RANK[entries[name].threat_level], -abs(entries[name].trend)),
    )
    key = ranked[0]
    entry = entries[key]
    department = KPI_DEPARTMENTS[key]
    label = DEPARTMENT_LABELS[department]
    stance = kpi_stance(entry)
    estate = next((e for e in context.estates if e.favored_department == department), None)

    responses: List[ConsultationResponse] = []
    for advisor in pick_advisors(context.council, department):
        rationale = [
            f"Value {entry.value:.2f} with trend {_signed(entry.trend)} and threat level {entry.threat_level.value}.",
            f"Treasury holds {context.resources.gold:.0f} gold and {context.resources.influence:.0f} influence.",
        ]
        if estate is not None:
            trust = context.trust.estates.get(estate.name, 0.5)
            rationale.append(
                f"The {estate.name} expect action (trust {round(trust * 100)}%)."
            )
        if stance == ConsultationStance.ESCALATE:
            action = f"Reallocate budget to {label} at once and commit the reserves."
            verdict = "critical"
        elif stance == ConsultationStance.CAUTION:
            action = f"Set checkpoints and earmark up to 10% extra funding for {label}."
            verdict = "unstable"
        else:
            action = f"Confirm the current course and lock in the gains through {label} projects."
            verdict = "stable"
        responses.append(
            ConsultationResponse(
                advisor_id=advisor.id,
                advisor_name=advisor.name,
                stance=stance,
                summary=f"{advisor.name} rates the indicator as {verdict}.",
                rationale=rationale,
                recommended_action=action,
            )
        )

    topic = f"KPI: {KPI_LABELS[key]}"
    return ConsultationThread(
        id=f"kpi:{key}",
        kind="kpi",
        topic=topic,
        prompt=f"Ask the council about {KPI_LABELS[key].lower()}.",
        summary=_summarise(topic, responses),
        responses=responses,
        recommendations=_unique(response.recommended_action for response in responses),
        handoff_target=f"Coordination staff: {label}",
        related_department=department,
        related_kpi=key,
    )


def _outcome_department(outcome: EventOutcome, context: DecisionContext) -> Optional[Department]:
    effects: List[Effect] = list(outcome.applied_effects)
    option = outcome.event.option(outcome.selected_option_id)
    if option is not None:
        effects.extend(option.effects)
    for effect in effects:
        department = effect_department(effect)
        if department is not None:
            return department
    origin = outcome.event.origin
    if origin is not None and origin.estate:
        for estate in context.estates:
            if estate.name == origin.estate:
                return estate.favored_department
    return None


def _event_thread(
    context: DecisionContext, outcomes: List[EventOutcome]
) -> Optional[ConsultationThread]:
    if not outcomes:
        return None
    focus = sorted(
        outcomes,
        key=lambda item: (-_SEVERITY_RANK[item.event.severity], -_STATUS_RANK[item.status]),
    )[0]
    department = _outcome_department(focus, context)
    stance = event_stance(focus)
    label = DEPARTMENT_LABELS[department] if department is not None else "the council"
    origin = focus.event.origin

    responses: List[ConsultationResponse] = []
    for advisor in pick_advisors(context.council, department):
        rationale = [
            f"A {focus.event.severity.value} event with status '{focus.status.value}'."
        ]
        if origin is not None and origin.region:
            rationale.append(f"Region: {origin.region}.")
        if origin is not None and origin.estate:
            rationale.append(f"Estate involved: {origin.estate}.")
        if focus.notes:
            rationale.append(f"Note: {focus.notes}.")
        if stance == ConsultationStance.ESCALATE:
            action = f"Escalate the incident and appoint an operations staff under {label}."
            verdict = "immediate intervention"
        elif stance == ConsultationStance.CAUTION:
            action = f"Order monitoring and prepare a response plan for {label}."
            verdict = "closer oversight"
        else:
            action = f"Consolidate the result and spread the practice through {label}."
            verdict = "staying the course"
        responses.append(
            ConsultationResponse(
                advisor_id=advisor.id,
                advisor_name=advisor.name,
                stance=stance,
                summary=f"{advisor.name} proposes {verdict}.",
                rationale=rationale,
                recommended_action=action,
            )
        )

    if department is not None:
        handoff: Optional[str] = f"Hand execution to: {DEPARTMENT_LABELS[department]}"
    else:
        handoff = origin.region if origin is not None else None

    topic = f"Event: {focus.event.title}"
    return ConsultationThread(
        id=f"event:{focus.event.id}",
        kind="event",
        topic=topic,
        prompt=f"Gather advice on '{focus.event.title}'.",
        summary=_summarise(topic, responses),
        responses=responses,
        recommendations=_unique(response.recommended_action for response in responses),
        handoff_target=handoff,
        related_department=department,
        related_event_id=focus.event.id,
    )


def _department_thread(context: DecisionContext) -> Optional[ConsultationThread]:
    if not context.departments:
        return None
    focus: DepartmentState = sorted(context.departments, key=lambda item: item.efficiency)[0]
    label = DEPARTMENT_LABELS[focus.name]
    stance = department_stance(focus.efficiency)
    estate = next((e for e in context.estates if e.favored_department == focus.name), None)

    responses: List[ConsultationResponse] = []
    for advisor in pick_advisors(context.council, focus.name):
        rationale = [
            f"Current efficiency {focus.efficiency:.2f}, quarterly budget {focus.budget:.1f} gold.",
            f"Cumulative investment: {focus.cumulative_investment:.1f} gold.",
        ]
        if estate is not None:
            rationale.append(
                f"The {estate.name} rate the situation at {round(estate.satisfaction)}."
            )
        if stance == ConsultationStance.ESCALATE:
            action = f"Appoint a crisis team and raise funding for {label}."
            verdict = "asks for intervention"
        elif stance == ConsultationStance.CAUTION:
            action = f"Audit the processes and hold an extra reserve for {label}."
            verdict = "warns of risks"
        else:
            action = f"Lock in the efficiency gains and expand the {label} programmes."
            verdict = "backs the current strategy"
        responses.append(
            ConsultationResponse(
                advisor_id=advisor.id,
                advisor_name=advisor.name,
                stance=stance,
                summary=f"{advisor.name} {verdict}.",
                rationale=rationale,
                recommended_action=action,
            )
        )

    topic = f"Department: {label}"
    return ConsultationThread(
        id=f"department:{focus.name.value}",
        kind="department",
        topic=topic,
        prompt=f"Clarify the plan of action for {label}.",
        summary=_summarise(topic, responses),
        responses=responses,
        recommendations=_unique(response.recommended_action for response in responses),
        handoff_target=f"Hand execution to: {label}",
        related_department=focus.name,
    )


def generate_consultations(
    context: DecisionContext, outcomes: List[EventOutcome]
) -> List[ConsultationThread]:
    """Build the quarter's consultation threads in KPI, event, department order."""

    threads: List[ConsultationThread] = []
    for thread in (
        _kpi_thread(context),
        _event_thread(context, outcomes),
        _department_thread(context),
    ):
        if thread is not None:
            threads.append(thread)
    return threads


__all__ = [
    "ADVISOR_LIMIT",
    "DEPARTMENT_LABELS",
    "KPI_DEPARTMENTS",
    "department_stance",
    "event_stance",
    "generate_consultations",
    "kpi_stance",
    "pick_advisors",
]
