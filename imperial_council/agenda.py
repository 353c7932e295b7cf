"""Strategic agenda: mandates, projects and council morale."""
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from .effects import clamp
from .models import (
    DEPARTMENTS,
    Agenda,
    AgendaHighlight,
    CouncilMember,
    CouncilReport,
    Department,
    DepartmentState,
    KPIReport,
    Mandate,
    MandateGoal,
    MandateProgressReport,
    MandateStatus,
    MandateUrgency,
    PriorityLevel,
    Project,
    ProjectSnapshot,
    Region,
    ResourcePool,
)
from .strategies import PRIORITY_WEIGHTS

logger = logging.getLogger(__name__)

URGENCY_WEIGHTS: Dict[MandateUrgency, float] = {
    MandateUrgency.LOW: 0.04,
    MandateUrgency.MEDIUM: 0.08,
    MandateUrgency.HIGH: 0.14,
}

GOAL_IMPACT: Dict[MandateGoal, Dict[Department, float]] = {
    MandateGoal.STABILIZE_REGION: {
        Department.INTERNAL: 1.0,
        Department.ECONOMY: 0.4,
        Department.MILITARY: 0.3,
    },
    MandateGoal.FORTIFY_BORDER: {
        Department.MILITARY: 1.2,
        Department.INTERNAL: 0.4,
        Department.DIPLOMACY: 0.2,
    },
    MandateGoal.BOOST_ECONOMY: {
        Department.ECONOMY: 1.2,
        Department.SCIENCE: 0.4,
        Department.DIPLOMACY: 0.2,
    },
    MandateGoal.ADVANCE_SCIENCE: {Department.SCIENCE: 1.3, Department.ECONOMY: 0.3},
    MandateGoal.IMPROVE_DIPLOMACY: {
        Department.DIPLOMACY: 1.3,
        Department.ECONOMY: 0.2,
        Department.INTERNAL: 0.2,
    },
    MandateGoal.SUPPRESS_UNREST: {Department.INTERNAL: 1.1, Department.MILITARY: 0.5},
    MandateGoal.EXPAND_INFLUENCE: {
        Department.DIPLOMACY: 0.9,
        Department.ECONOMY: 0.4,
        Department.SCIENCE: 0.3,
    },
}

_TARGET_GAIN: Dict[MandateGoal, float] = {
    MandateGoal.STABILIZE_REGION: 10,
    MandateGoal.FORTIFY_BORDER: 14,
    MandateGoal.BOOST_ECONOMY: 16,
    MandateGoal.ADVANCE_SCIENCE: 0.28,
    MandateGoal.IMPROVE_DIPLOMACY: 0.25,
    MandateGoal.SUPPRESS_UNREST: 9,
    MandateGoal.EXPAND_INFLUENCE: 30,
}

_URGENCY_GAIN: Dict[MandateUrgency, float] = {
    MandateUrgency.HIGH: 1.4,
    MandateUrgency.MEDIUM: 1.0,
    MandateUrgency.LOW: 0.6,
}

_COMMENTARY: Dict[MandateGoal, str] = {
    MandateGoal.STABILIZE_REGION: "Loyalty moved by {delta} points",
    MandateGoal.FORTIFY_BORDER: "Security index changed by {delta}",
    MandateGoal.BOOST_ECONOMY: "Financial indicators shifted by {delta}",
    MandateGoal.ADVANCE_SCIENCE: "Research efficiency {delta}",
    MandateGoal.IMPROVE_DIPLOMACY: "Diplomatic efficiency {delta}",
    MandateGoal.SUPPRESS_UNREST: "Imperial stability {delta}",
    MandateGoal.EXPAND_INFLUENCE: "Influence reserve {delta}",
}

_CONFIDENCE_SHIFT: Dict[MandateStatus, float] = {
    MandateStatus.COMPLETED: 0.08,
    MandateStatus.ON_TRACK: 0.04,
    MandateStatus.IN_PROGRESS: 0.01,
    MandateStatus.AT_RISK: -0.05,
    MandateStatus.FAILED: -0.1,
    MandateStatus.NOT_STARTED: -0.02,
}

# (motivation, stress) shift per assigned mandate status.
_MORALE_SHIFT: Dict[MandateStatus, tuple] = {
    MandateStatus.COMPLETED: (0.06, -0.05),
    MandateStatus.ON_TRACK: (0.03, -0.02),
    MandateStatus.IN_PROGRESS: (0.01, 0.0),
    MandateStatus.AT_RISK: (-0.04, 0.04),
    MandateStatus.FAILED: (-0.07, 0.06),
}

_HIGHLIGHT_COMMENTARY: Dict[PriorityLevel, str] = {
    PriorityLevel.PUSH: "Priority reinforcement",
    PriorityLevel.NEGLECT: "Funding is being cut",
    PriorityLevel.STEADY: "Budget is spread evenly",
}


def project_focus_departments(focus: str) -> List[Department]:
    if focus == "security":
        return [Department.MILITARY, Department.INTERNAL]
    if focus == "administration":
        return [Department.INTERNAL, Department.ECONOMY]
    try:
        return [Department(focus)]
    except ValueError:
        return []


def _assignment_score(member: CouncilMember, mandate: Mandate) -> float:
    favored = 0.15 if mandate.goal in member.favored_mandates else 0.0
    caution = member.caution * (0.15 if mandate.urgency == MandateUrgency.HIGH else 0.05)
    return (
        member.competence
        + favored
        + (member.motivation - 0.5) * 0.2
        + member.loyalty * 0.1
        - caution
        - member.stress * 0.15
    )


def assign_mandates(agenda: Agenda, council: List[CouncilMember]) -> None:
    """Give every open mandate to the best-scoring eligible council member."""

    for member in council:
        member.assigned_mandates = []

    for mandate in agenda.mandates:
        if mandate.is_closed:
            continue
        goal_departments = set(GOAL_IMPACT.get(mandate.goal, {}))
        best: Optional[CouncilMember] = None
        best_score = float("-inf")
        for member in council:
            departments = member.departments()
            if not departments:
                continue
            if goal_departments and not goal_departments.intersection(departments):
                continue
            score = _assignment_score(member, mandate)
            if score > best_score:
                best, best_score = member, score
        if best is not None:
            best.assigned_mandates.append(mandate.id)


def mandate_weights(agenda: Agenda) -> Dict[Department, float]:
    weights = {department: 1.0 for department in DEPARTMENTS}
    for mandate in agenda.mandates:
        if mandate.is_closed:
            continue
        momentum = 1 - min(0.7, mandate.progress * 0.6)
        multiplier = URGENCY_WEIGHTS.get(mandate.urgency, 0.04) * momentum
        for department, impact in GOAL_IMPACT.get(mandate.goal, {}).items():
            weights[department] *= 1 + multiplier * impact
    return weights


def agenda_budget_weights(agenda: Agenda, council: List[CouncilMember]) -> Dict[Department, float]:
    """Normalised per-department weights from priorities, mandates and council."""

    by_mandate = mandate_weights(agenda)
    weights = {
        department: PRIORITY_WEIGHTS[agenda.priority(department)] * by_mandate[department]
        for department in DEPARTMENTS
    }
    for member in council:
        modifier = 1 + member.competence * 0.12 + (member.motivation - 0.5) * 0.1 - member.stress * 0.08
        for department in member.departments():
            weights[department] *= modifier

    total = sum(weights.values())
    if total <= 0:
        return {department: 1 / len(DEPARTMENTS) for department in DEPARTMENTS}
    return {department: weights[department] / total for department in DEPARTMENTS}


def update_projects(
    projects: List[Project], spending: Mapping[Department, float], effective_budget: float
) -> None:
    if effective_budget <= 0:
        return
    for project in projects:
        departments = project_focus_departments(project.focus)
        if not departments:
            continue
        share = sum(spending.get(department, 0.0) for department in departments) / effective_budget
        if share <= 0:
            continue
        gain = clamp(round(share * 0.25, 3), 0.001, 0.08)
        project.progress = clamp(round(project.progress + gain, 3), 0, 1)


def snapshot_project(project: Project) -> ProjectSnapshot:
    milestones = project.milestones or [1.0]
    return ProjectSnapshot(
        id=project.id,
        name=project.name,
        focus=project.focus,
        progress=project.progress,
        milestones_reached=sum(1 for milestone in milestones if project.progress >= milestone),
    )


def _find_region(regions: List[Region], name: Optional[str]) -> Optional[Region]:
    for region in regions:
        if region.name == name:
            return region
    return None


def _find_department(departments: List[DepartmentState], name: Department) -> Optional[DepartmentState]:
    for department in departments:
        if department.name == name:
            return department
    return None


def mandate_metric(
    mandate: Mandate,
    resources: ResourcePool,
    regions: List[Region],
    departments: List[DepartmentState],
    kpis: Optional[KPIReport],
) -> float:
    goal = mandate.goal
    if goal == MandateGoal.STABILIZE_REGION:
        region = _find_region(regions, mandate.target.name) if mandate.target.kind == "region" else None
        if region is not None:
            return region.loyalty
        return kpis.stability.value if kpis else 50.0
    if goal == MandateGoal.FORTIFY_BORDER:
        return kpis.security_index.value if kpis else 50.0
    if goal == MandateGoal.BOOST_ECONOMY:
        if mandate.target.kind == "region":
            region = _find_region(regions, mandate.target.name)
            return region.wealth if region is not None else 100.0
        return resources.gold
    if goal == MandateGoal.ADVANCE_SCIENCE:
        science = _find_department(departments, Department.SCIENCE)
        return science.efficiency if science is not None else 0.8
    if goal == MandateGoal.IMPROVE_DIPLOMACY:
        diplomacy = _find_department(departments, Department.DIPLOMACY)
        return diplomacy.efficiency if diplomacy is not None else 0.9
    if goal == MandateGoal.SUPPRESS_UNREST:
        return kpis.stability.value if kpis else 50.0
    if goal == MandateGoal.EXPAND_INFLUENCE:
        return resources.influence
    return resources.gold


def _mandate_status(normalized: float, elapsed: int, horizon: int) -> MandateStatus:
    expected = (elapsed + 1) / horizon if horizon > 0 else 1.0
    if normalized >= 1:
        return MandateStatus.COMPLETED
    if elapsed >= horizon:
        return MandateStatus.COMPLETED if normalized >= 0.6 else MandateStatus.FAILED
    if normalized >= expected * 0.9:
        return MandateStatus.ON_TRACK
    if normalized >= expected * 0.6:
        return MandateStatus.IN_PROGRESS
    if normalized <= 0.05 and elapsed == 0:
        return MandateStatus.NOT_STARTED
    return MandateStatus.AT_RISK


def evaluate_mandates(
    agenda: Agenda,
    quarter: int,
    resources: ResourcePool,
    regions: List[Region],
    departments: List[DepartmentState],
    kpis: Optional[KPIReport],
) -> List[MandateProgressReport]:
    """Measure each mandate against its baseline and update status and confidence.

    The first evaluation fixes the mandate's baseline and target; progress
    only ever ratchets upwards.
    """

    reports: List[MandateProgressReport] = []
    for mandate in agenda.mandates:
        if mandate.issued_quarter is None:
            mandate.issued_quarter = quarter
        current = mandate_metric(mandate, resources, regions, departments, kpis)
        if mandate.baseline_value is None:
            mandate.baseline_value = current
            mandate.target_value = current + _TARGET_GAIN.get(mandate.goal, 8) * _URGENCY_GAIN[
                mandate.urgency
            ]

        baseline = mandate.baseline_value
        target = mandate.target_value if mandate.target_value is not None else baseline + 1
        span = max(0.001, abs(target - baseline))
        delta = current - baseline if target >= baseline else baseline - current
        normalized = clamp(round(delta / span, 3), 0, 1.4)
        mandate.progress = max(mandate.progress, normalized)

        elapsed = max(0, quarter - mandate.issued_quarter)
        mandate.status = _mandate_status(normalized, elapsed, mandate.horizon)
        mandate.confidence = clamp(
            round(mandate.confidence + _CONFIDENCE_SHIFT[mandate.status], 3), 0.2, 0.95
        )

        metric_delta = current - baseline
        formatted = f"+{metric_delta:.1f}" if metric_delta >= 0 else f"{metric_delta:.1f}"
        commentary = _COMMENTARY.get(mandate.goal, "Assessment moved by {delta}").format(
            delta=formatted
        )
        mandate.last_report = commentary
        reports.append(
            MandateProgressReport(
                mandate_id=mandate.id,
                label=mandate.label,
                status=mandate.status,
                progress=round(min(1.0, mandate.progress), 3),
                confidence=round(mandate.confidence, 3),
                commentary=commentary,
            )
        )
    return reports


def agenda_highlights(agenda: Agenda, weights: Mapping[Department, float]) -> List[AgendaHighlight]:
    ranked = sorted(DEPARTMENTS, key=lambda department: -weights.get(department, 0.0))
    highlights: List[AgendaHighlight] = []
    for department in ranked[:3]:
        priority = agenda.priority(department)
        highlights.append(
            AgendaHighlight(
                department=department,
                priority=priority,
                commentary=_HIGHLIGHT_COMMENTARY[priority],
            )
        )
    return highlights


def adjust_council_morale(
    council: List[CouncilMember], reports: List[MandateProgressReport]
) -> None:
    by_id = {report.mandate_id: report for report in reports}
    for member in council:
        motivation_shift = 0.0
        stress_shift = 0.0
        for mandate_id in member.assigned_mandates:
            report = by_id.get(mandate_id)
            if report is None or report.status not in _MORALE_SHIFT:
                continue
            motivation, stress = _MORALE_SHIFT[report.status]
            motivation_shift += motivation
            stress_shift += stress
        member.motivation = clamp(round(member.motivation + motivation_shift, 3), 0.3, 0.95)
        member.stress = clamp(round(member.stress + stress_shift, 3), 0, 1)


def council_reports(
    council: List[CouncilMember],
    reports: List[MandateProgressReport],
    weights: Mapping[Department, float],
) -> List[CouncilReport]:
    """One summary per council member; records it as their last summary."""

    by_id = {report.mandate_id: report for report in reports}
    results: List[CouncilReport] = []
    for member in council:
        departments = member.departments()
        focus = departments[0] if departments else None
        assigned = [by_id[mid] for mid in member.assigned_mandates if mid in by_id]
        alerts: List[str] = []
        summary = "Keeps the administration steady"
        if assigned:
            critical = next(
                (
                    entry
                    for entry in assigned
                    if entry.status in (MandateStatus.AT_RISK, MandateStatus.FAILED)
                ),
                None,
            )
            success = next(
                (entry for entry in assigned if entry.status == MandateStatus.COMPLETED), None
            )
            if critical is not None:
                summary = f"Raises the alarm over mandate '{critical.label}'"
                alerts.append(critical.commentary)
            elif success is not None:
                summary = f"Reports success on '{success.label}'"
            else:
                progress = sum(entry.progress for entry in assigned) / len(assigned)
                summary = f"Oversees mandates (progress {progress * 100:.0f}%)"
        elif focus is not None and weights.get(focus, 0.0) > 0.3:
            summary = "Concentrates on the priority direction"

        member.last_quarter_summary = summary
        results.append(
            CouncilReport(
                advisor_id=member.id,
                advisor_name=member.name,
                portfolio=member.portfolio,
                summary=summary,
                confidence=round(member.loyalty * 0.5 + member.motivation * 0.5, 3),
                focus_department=focus,
                alerts=alerts,
            )
        )
    return results


__all__ = [
    "GOAL_IMPACT",
    "URGENCY_WEIGHTS",
    "adjust_council_morale",
    "agenda_budget_weights",
    "agenda_highlights",
    "assign_mandates",
    "council_reports",
    "evaluate_mandates",
    "mandate_metric",
    "mandate_weights",
    "project_focus_departments",
    "snapshot_project",
    "update_projects",
]
