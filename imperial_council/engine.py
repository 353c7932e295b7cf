"""Live campaign state and the quarterly simulation engine."""
from __future__ import annotations

import copy
import json
import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .advisors import Advisor, AdvisorContext, equal_split, get_advisor, normalize_allocation
from .agenda import (
    adjust_council_morale,
    agenda_budget_weights,
    agenda_highlights,
    assign_mandates,
    council_reports,
    evaluate_mandates,
    snapshot_project,
    update_projects,
)
from .catalog import (
    EventCatalog,
    TemplateContext,
    estate_dissatisfaction_event,
    load_catalog,
    loyalty_decline_event,
    milestone_event,
    treasury_depletion_event,
)
from .config import Settings, get_settings
from .consultations import generate_consultations
from .control import ControlState
from .decrees import (
    priority_budget_boost,
    priority_development_multiplier,
    tax_income_modifier,
    tax_loyalty_modifier,
    tax_satisfaction_delta,
)
from .effects import EffectScope, GlobalModifiers, TimedEffect, apply_timed_effects, clamp
from .interventions import (
    EventResolver,
    InterventionHandler,
    adjust_advisor_trust,
    enqueue_events,
)
from .models import (
    DEPARTMENTS,
    ActiveEvent,
    Agenda,
    CouncilMember,
    Decree,
    Department,
    DepartmentSnapshot,
    DepartmentState,
    Estate,
    EstateSnapshot,
    EventOutcome,
    ExpenseReport,
    InterventionLogEntry,
    KPIEntry,
    KPIReport,
    OutcomeStatus,
    QuarterlyReport,
    Region,
    RegionSnapshot,
    ResourcePool,
    ResponsePosture,
    Severity,
    SimulationEvent,
    ThreatLevel,
    TrustLevels,
)
from .rng import DeterministicRNG
from .scenario import CampaignConfig
from .strategies import PRIORITY_WEIGHTS, DecisionContext

logger = logging.getLogger(__name__)

INITIAL_ADVISOR_TRUST = 0.6

STABILITY_CRISIS_EVENT = "kpi.stability.crisis"
RECESSION_EVENT = "kpi.economy.recession"
# Event raised on reaching each stage of the security ladder, with its threat label.
SECURITY_STAGE_EVENTS: Tuple[Tuple[str, str], ...] = (
    ("kpi.security.alert", "moderate"),
    ("security.border.skirmish", "moderate"),
    ("security.border.crisis", "critical"),
)

LOYALTY_ALERT = 45
SATISFACTION_ALERT = 35
TREASURY_ALERT_RATIO = 0.3


def initial_trust(estates: List[Estate], initial: Optional[TrustLevels] = None) -> TrustLevels:
    trust = TrustLevels(advisor=initial.advisor if initial is not None else INITIAL_ADVISOR_TRUST)
    for estate in estates:
        existing = initial.estates.get(estate.name) if initial is not None else None
        trust.estates[estate.name] = (
            existing if existing is not None else clamp(estate.satisfaction / 100, 0.25, 0.85)
        )
    return trust


@dataclass
class CampaignState:
    """Everything that changes while a campaign runs.

    ``quarter`` is the last committed quarter (0 before the first one).
    """

    quarter: int
    total_quarters: int
    resources: ResourcePool
    regions: List[Region]
    estates: List[Estate]
    departments: List[DepartmentState]
    council: List[CouncilMember]
    agenda: Agenda
    decree: Decree
    trust: TrustLevels
    control: ControlState
    rng: DeterministicRNG
    modifiers: GlobalModifiers = field(default_factory=GlobalModifiers)
    timed_effects: List[TimedEffect] = field(default_factory=list)
    active_events: List[ActiveEvent] = field(default_factory=list)
    pending_events: List[SimulationEvent] = field(default_factory=list)
    intervention_log: List[InterventionLogEntry] = field(default_factory=list)
    previous_kpis: Optional[KPIReport] = None
    previous_total_wealth: float = 0.0

    @staticmethod
    def initial(config: CampaignConfig) -> "CampaignState":
        config = copy.deepcopy(config)
        control = config.control.build_state()
        control.start(1)
        return CampaignState(
            quarter=0,
            total_quarters=config.quarters,
            resources=config.initial_resources,
            regions=config.regions,
            estates=config.estates,
            departments=config.departments,
            council=config.council,
            agenda=config.agenda,
            decree=config.decree,
            trust=initial_trust(config.estates, config.initial_trust),
            control=control,
            rng=DeterministicRNG(config.seed),
            previous_total_wealth=sum(region.wealth for region in config.regions),
        )

    def scope(self) -> EffectScope:
        return EffectScope(self.resources, self.regions, self.estates, self.modifiers)

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-compatible mapping of the full live state."""

        raw = {
            "quarter": self.quarter,
            "total_quarters": self.total_quarters,
            "resources": asdict(self.resources),
            "regions": [asdict(region) for region in self.regions],
            "estates": [asdict(estate) for estate in self.estates],
            "departments": [asdict(department) for department in self.departments],
            "council": [asdict(member) for member in self.council],
            "agenda": asdict(self.agenda),
            "decree": asdict(self.decree),
            "trust": asdict(self.trust),
            "control": self.control.to_dict(),
            "rng": self.rng.export_state(),
            "modifiers": asdict(self.modifiers),
            "timed_effects": [asdict(timed) for timed in self.timed_effects],
            "active_events": [asdict(active) for active in self.active_events],
            "pending_events": [asdict(event) for event in self.pending_events],
            "intervention_log": [asdict(entry) for entry in self.intervention_log],
            "previous_kpis": asdict(self.previous_kpis) if self.previous_kpis else None,
            "previous_total_wealth": self.previous_total_wealth,
        }
        return json.loads(json.dumps(raw))

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "CampaignState":
        kpis = data.get("previous_kpis")
        return CampaignState(
            quarter=int(data["quarter"]),
            total_quarters=int(data["total_quarters"]),
            resources=ResourcePool.from_dict(data["resources"]),
            regions=[Region.from_dict(item) for item in data["regions"]],
            estates=[Estate.from_dict(item) for item in data["estates"]],
            departments=[DepartmentState.from_dict(item) for item in data["departments"]],
            council=[CouncilMember.from_dict(item) for item in data["council"]],
            agenda=Agenda.from_dict(data["agenda"]),
            decree=Decree.from_dict(data["decree"]),
            trust=TrustLevels.from_dict(data["trust"]),
            control=ControlState.from_dict(data["control"]),
            rng=DeterministicRNG.from_state(data["rng"]),
            modifiers=GlobalModifiers.from_dict(data.get("modifiers") or {}),
            timed_effects=[TimedEffect.from_dict(item) for item in data.get("timed_effects", [])],
            active_events=[ActiveEvent.from_dict(item) for item in data.get("active_events", [])],
            pending_events=[
                SimulationEvent.from_dict(item) for item in data.get("pending_events", [])
            ],
            intervention_log=[
                InterventionLogEntry.from_dict(item) for item in data.get("intervention_log", [])
            ],
            previous_kpis=KPIReport.from_dict(kpis) if kpis else None,
            previous_total_wealth=float(data.get("previous_total_wealth", 0.0)),
        )


def threat_level(metric: str, value: float) -> ThreatLevel:
    """Fixed threat bands per KPI."""

    if metric == "stability":
        if value < 50:
            return ThreatLevel.CRITICAL
        return ThreatLevel.MODERATE if value < 65 else ThreatLevel.LOW
    if metric == "economic_growth":
        if value < -8:
            return ThreatLevel.CRITICAL
        return ThreatLevel.MODERATE if value < 0 else ThreatLevel.LOW
    if metric == "security_index":
        if value < 40:
            return ThreatLevel.CRITICAL
        return ThreatLevel.MODERATE if value < 60 else ThreatLevel.LOW
    if metric == "active_crises":
        if value >= 3:
            return ThreatLevel.CRITICAL
        return ThreatLevel.MODERATE if value >= 1 else ThreatLevel.LOW
    return ThreatLevel.LOW


def kpi_entry(metric: str, value: float, previous: Optional[KPIEntry]) -> KPIEntry:
    value = round(value, 2)
    trend = round(value - previous.value, 2) if previous is not None else 0.0
    return KPIEntry(value=value, trend=trend, threat_level=threat_level(metric, value))


def region_risk(
    region: Region, active_events: List[ActiveEvent], threat: float
) -> Tuple[float, List[str]]:
    """Score a region's risk in [0, 1] and name the contributing factors."""

    score = 0.0
    factors: List[str] = []
    if region.loyalty < LOYALTY_ALERT:
        score += 0.45
        factors.append("Loyalty critically low")
    elif region.loyalty < 60:
        score += 0.25
        factors.append("Loyalty slipping")
    if region.infrastructure < 45:
        score += 0.15
        factors.append("Infrastructure lagging")
    if region.wealth < 120:
        score += 0.15
        factors.append("Thin tax base")
    crises = sum(
        1
        for active in active_events
        if active.event.origin is not None and active.event.origin.region == region.name
    )
    if crises:
        score += min(0.3, 0.1 * crises)
        factors.append(f"{crises} unresolved event(s)")
    if threat > 1 and region.loyalty < 60:
        score += 0.1
        factors.append("Exposed to border threat")
    if not factors:
        factors.append("No significant threats")
    return round(min(1.0, score), 2), factors


class QuarterEngine:
    """Advances a :class:`CampaignState` by one quarter at a time."""

    def __init__(
        self,
        config: CampaignConfig,
        catalog: Optional[EventCatalog] = None,
        settings: Optional[Settings] = None,
        advisor: Optional[Advisor] = None,
    ) -> None:
        self.config = config
        self.catalog = catalog or load_catalog()
        self.settings = settings or get_settings()
        self.advisor = advisor or get_advisor(config.advisor)
        self.resolver = EventResolver(self.catalog, config.response_posture)

    # ------------------------------------------------------------------
    # Quarter pipeline
    # ------------------------------------------------------------------
    def advance_quarter(
        self, state: CampaignState, handler: Optional[InterventionHandler] = None
    ) -> QuarterlyReport:
        """Mutate ``state`` through one quarter and return its report.

        Callers wanting all-or-nothing semantics run this on a copy.
        """

        quarter = state.quarter + 1
        state.control.apply_scheduled(quarter)
        apply_timed_effects(state.timed_effects, state.scope())

        incomes = self._collect_income(state)
        state.resources.gold += incomes.gold
        state.resources.influence += incomes.influence
        state.resources.labor += incomes.labor

        assign_mandates(state.agenda, state.council)
        weights = agenda_budget_weights(state.agenda, state.council)
        allocation = self._allocate(state, weights)

        effective_budget = max(
            self.settings.minimum_budget, self.config.base_quarter_budget + state.modifiers.budget
        )
        spending, expenses = self._spend(state, allocation, effective_budget)

        self._update_departments(state, spending, effective_budget)
        update_projects(state.agenda.projects, spending, effective_budget)
        triggered = self._update_regions(state, spending)
        self._update_estates(state, spending)

        triggered.extend(self._condition_events(state, effective_budget))
        triggered.extend(self._kpi_events(state))
        incoming = state.pending_events + triggered
        state.pending_events = []
        enqueue_events(state.active_events, incoming, quarter)

        def context_for(posture: ResponsePosture) -> DecisionContext:
            return self._decision_context(state, quarter, posture, state.previous_kpis)

        outcomes = self.resolver.resolve(state, quarter, handler, context_for)
        outcomes.extend(self.resolver.countdown(state, quarter))

        kpis = self._compute_kpis(state, spending, effective_budget)

        mandate_reports = evaluate_mandates(
            state.agenda, quarter, state.resources, state.regions, state.departments, kpis
        )
        adjust_council_morale(state.council, mandate_reports)
        reports_by_member = council_reports(state.council, mandate_reports, weights)
        highlights = agenda_highlights(state.agenda, weights)

        self._update_trust(state, outcomes, kpis)

        consultations = generate_consultations(
            self._decision_context(
                state, quarter, self.config.response_posture.default, kpis
            ),
            outcomes,
        )

        report = QuarterlyReport(
            quarter=quarter,
            incomes=incomes.rounded(),
            expenses=expenses,
            treasury=state.resources.rounded(),
            regions=self._snapshot_regions(state),
            estates=[
                EstateSnapshot(estate.name, round(estate.satisfaction, 1), round(estate.influence, 1))
                for estate in state.estates
            ],
            departments=self._snapshot_departments(state, spending),
            projects=[snapshot_project(project) for project in state.agenda.projects],
            outcomes=outcomes,
            kpis=kpis,
            trust=state.trust.copy(),
            threat_level=round(state.modifiers.threat, 2),
            council_reports=reports_by_member,
            mandate_progress=mandate_reports,
            agenda_highlights=highlights,
            consultations=consultations,
            control_mode=state.control.mode,
        )

        state.modifiers.decay(self.settings.decay)
        state.previous_kpis = kpis
        state.previous_total_wealth = sum(region.wealth for region in state.regions)
        state.quarter = quarter
        return report

    # ------------------------------------------------------------------
    # Economy
    # ------------------------------------------------------------------
    @staticmethod
    def _efficiency(state: CampaignState, department: Department) -> float:
        for entry in state.departments:
            if entry.name == department:
                return entry.efficiency
        return 1.0

    def _region_income(
        self, region: Region, state: CampaignState, economy: float, science: float
    ) -> ResourcePool:
        low, high = self.settings.loyalty_factor_bounds
        loyalty_factor = clamp(region.loyalty / 100 + state.modifiers.stability * 0.01, low, high)
        infrastructure_factor = 1 + region.infrastructure / 120
        specialization = priority_development_multiplier(
            state.decree.investment_priority, region.specialization
        )
        wealth_contribution = region.wealth * 0.015 * (1 + economy * 0.05)
        output = region.resource_output
        gold = (
            (output.gold * infrastructure_factor * loyalty_factor + wealth_contribution)
            * tax_income_modifier(state.decree.tax_policy)
            * specialization
        )
        influence = (output.influence * loyalty_factor + science * 1.2) * specialization
        labor = output.labor * (1 + region.population / 2_000_000) * specialization
        return ResourcePool(gold, influence, labor).scaled(self.settings.quarter_duration)

    def _collect_income(self, state: CampaignState) -> ResourcePool:
        economy = self._efficiency(state, Department.ECONOMY)
        science = self._efficiency(state, Department.SCIENCE)
        total = ResourcePool()
        for region in state.regions:
            total = total.plus(self._region_income(region, state, economy, science))
        return total

    def _allocate(
        self, state: CampaignState, weights: Mapping[Department, float]
    ) -> Dict[Department, float]:
        context = AdvisorContext(
            resources=copy.deepcopy(state.resources),
            estates=copy.deepcopy(state.estates),
            departments=copy.deepcopy(state.departments),
            decree=copy.deepcopy(state.decree),
            trust=state.trust.copy(),
            agenda=copy.deepcopy(state.agenda),
            council=copy.deepcopy(state.council),
        )
        base = normalize_allocation(self.advisor.allocate_budget(context))
        priority = state.decree.investment_priority
        weighted = {
            department: base[department]
            * priority_budget_boost(priority, department)
            * weights.get(department, 1.0)
            for department in DEPARTMENTS
        }
        total = sum(weighted.values())
        if total <= 0:
            return equal_split()
        return {department: weighted[department] / total for department in DEPARTMENTS}

    def _spend(
        self,
        state: CampaignState,
        allocation: Mapping[Department, float],
        effective_budget: float,
    ) -> Tuple[Dict[Department, float], ExpenseReport]:
        gold = state.resources.gold
        available = min(effective_budget, gold * self.settings.budget_cap_ratio)
        spending = {department: allocation[department] * available for department in DEPARTMENTS}
        planned = sum(spending.values())
        if planned > gold:
            ratio = gold / planned if planned > 0 else 0.0
            spending = {department: value * ratio for department, value in spending.items()}
            planned = gold
        expenses = ExpenseReport(
            departments={department: round(spending[department], 2) for department in DEPARTMENTS},
            total=round(planned, 2),
        )
        state.resources.gold = max(0.0, gold - expenses.total)
        return spending, expenses

    def _update_departments(
        self, state: CampaignState, spending: Mapping[Department, float], effective_budget: float
    ) -> None:
        months = self.settings.quarter_duration
        priority = state.decree.investment_priority
        for department in state.departments:
            spent = spending.get(department.name, 0.0)
            department.budget = spent
            department.cumulative_investment += spent
            investment_ratio = spent / effective_budget
            priority_bonus = priority_budget_boost(priority, department.name) - 1
            strategic_bonus = PRIORITY_WEIGHTS[state.agenda.priority(department.name)] - 1
            council_support = sum(
                member.competence * 0.02 + (member.motivation - 0.5) * 0.015 - member.stress * 0.01
                for member in state.council
                if department.name in member.departments()
            )
            delta = (
                investment_ratio * 0.08
                + priority_bonus * 0.02
                + strategic_bonus * 0.015
                + council_support
                - 0.01
            ) * months
            department.efficiency = clamp(department.efficiency + delta, 0.6, 2.5)

    def _update_regions(
        self, state: CampaignState, spending: Mapping[Department, float]
    ) -> List[SimulationEvent]:
        months = self.settings.quarter_duration
        economy = spending.get(Department.ECONOMY, 0.0)
        internal = spending.get(Department.INTERNAL, 0.0)
        military = spending.get(Department.MILITARY, 0.0)
        science = spending.get(Department.SCIENCE, 0.0)
        loyalty_modifier = tax_loyalty_modifier(state.decree.tax_policy)
        events: List[SimulationEvent] = []
        for region in state.regions:
            development = priority_development_multiplier(
                state.decree.investment_priority, region.specialization
            )
            gain = (economy * 0.03 + science * 0.01) * development * months
            if gain > 0.01:
                before = region.infrastructure
                region.infrastructure = clamp(before + gain, 0, 120)
                level = math.floor(region.infrastructure / 5)
                if math.floor(before / 5) != level:
                    events.append(milestone_event(self.catalog, region.name, float(level * 5)))

            wealth_gain = economy * 0.04 * (1 + region.infrastructure / 100) * months
            region.wealth = max(10.0, region.wealth + wealth_gain - 0.5 * months)

            shift = ((internal * 0.02 + military * 0.015) * loyalty_modifier - economy * 0.005) * months
            base = region.loyalty * loyalty_modifier ** months
            region.loyalty = clamp(base + shift, 20, 100)
        return events

    def _update_estates(self, state: CampaignState, spending: Mapping[Department, float]) -> None:
        months = self.settings.quarter_duration
        for estate in state.estates:
            favored = spending.get(estate.favored_department, 0.0)
            delta = (favored * 0.1 + tax_satisfaction_delta(state.decree.tax_policy, estate.name)) * months
            estate.satisfaction = clamp(estate.satisfaction + delta - months, 10, 90)
            estate.influence = clamp(estate.influence + (favored * 0.02 - 0.1) * months, 5, 40)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------
    def _condition_events(
        self, state: CampaignState, effective_budget: float
    ) -> List[SimulationEvent]:
        events: List[SimulationEvent] = []
        for region in state.regions:
            if region.loyalty < LOYALTY_ALERT:
                events.append(loyalty_decline_event(self.catalog, region.name, region.loyalty))
        for estate in state.estates:
            if estate.satisfaction < SATISFACTION_ALERT:
                events.append(
                    estate_dissatisfaction_event(self.catalog, estate.name, estate.satisfaction)
                )
        if state.resources.gold < effective_budget * TREASURY_ALERT_RATIO:
            events.append(treasury_depletion_event(self.catalog, state.resources.gold))
        return events

    def _kpi_events(self, state: CampaignState) -> List[SimulationEvent]:
        kpis = state.previous_kpis
        if kpis is None or not state.regions:
            return []
        weakest = min(state.regions, key=lambda region: region.loyalty)
        events: List[SimulationEvent] = []
        if kpis.stability.threat_level != ThreatLevel.LOW:
            events.append(
                self.catalog.instantiate(
                    STABILITY_CRISIS_EVENT,
                    TemplateContext(
                        region=weakest.name,
                        loyalty=round(weakest.loyalty, 1),
                        threat_level=kpis.stability.threat_level.value,
                        source="kpi",
                    ),
                )
            )
        if kpis.economic_growth.value <= 0:
            events.append(
                self.catalog.instantiate(
                    RECESSION_EVENT,
                    TemplateContext(threat_level=kpis.economic_growth.threat_level.value, source="kpi"),
                )
            )
        events.extend(self._security_ladder(state, kpis, weakest))
        return events

    def _security_ladder(
        self, state: CampaignState, kpis: KPIReport, border: Region
    ) -> List[SimulationEvent]:
        """Move security pressure along the escalation ladder.

        Sustained non-low security threat accumulates pressure; each threshold
        crossed raises the stage and triggers that stage's event. Quiet
        quarters bleed pressure and threat and step the stage back down.
        """

        modifiers = state.modifiers
        thresholds = self.settings.security_thresholds
        level = kpis.security_index.threat_level
        if level == ThreatLevel.LOW:
            modifiers.security_recovery = min(modifiers.security_recovery + 1, 4)
            modifiers.security_pressure = round(max(0.0, modifiers.security_pressure - 1), 2)
            while (
                modifiers.security_stage > 0
                and modifiers.security_pressure < thresholds[modifiers.security_stage - 1] - 0.7
            ):
                modifiers.security_stage -= 1
            if modifiers.threat > 0:
                modifiers.threat = round(max(0.0, modifiers.threat - 0.35), 2)
            return []

        critical = level == ThreatLevel.CRITICAL
        modifiers.security_pressure = round(
            min(self.settings.security_pressure_cap, modifiers.security_pressure + (1.4 if critical else 0.65)),
            2,
        )
        modifiers.threat = round(modifiers.threat + (0.5 if critical else 0.25), 2)
        modifiers.security_recovery = 0

        events: List[SimulationEvent] = []
        while (
            modifiers.security_stage < len(thresholds)
            and modifiers.security_pressure >= thresholds[modifiers.security_stage]
        ):
            modifiers.security_stage += 1
            if modifiers.security_stage > len(SECURITY_STAGE_EVENTS):
                continue
            template_id, label = SECURITY_STAGE_EVENTS[modifiers.security_stage - 1]
            logger.info("Security escalation reached stage %d", modifiers.security_stage)
            events.append(
                self.catalog.instantiate(
                    template_id,
                    TemplateContext(
                        region=border.name,
                        loyalty=round(border.loyalty, 1),
                        threat_level=label,
                        source="security",
                    ),
                )
            )
        return events

    # ------------------------------------------------------------------
    # Measurement
    # ------------------------------------------------------------------
    def _decision_context(
        self,
        state: CampaignState,
        quarter: int,
        posture: ResponsePosture,
        kpis: Optional[KPIReport],
    ) -> DecisionContext:
        return DecisionContext(
            quarter=quarter,
            resources=state.resources,
            estates=state.estates,
            regions=state.regions,
            departments=state.departments,
            trust=state.trust,
            agenda=state.agenda,
            council=state.council,
            posture=posture,
            kpis=kpis,
            rejection_threshold=self.settings.rejection_threshold,
        )

    def _compute_kpis(
        self, state: CampaignState, spending: Mapping[Department, float], effective_budget: float
    ) -> KPIReport:
        previous = state.previous_kpis
        regions = state.regions
        average_loyalty = sum(region.loyalty for region in regions) / len(regions)
        stability = clamp(average_loyalty + state.modifiers.stability, 0, 100)
        growth = sum(region.wealth for region in regions) - state.previous_total_wealth
        military_share = spending.get(Department.MILITARY, 0.0) / max(1.0, effective_budget) * 100
        lowest_loyalty = min(region.loyalty for region in regions)
        security = clamp(
            min(lowest_loyalty, min(100.0, military_share)) - max(0.0, state.modifiers.threat) * 5,
            0,
            100,
        )
        crises = sum(1 for active in state.active_events if active.event.severity != Severity.MINOR)
        return KPIReport(
            stability=kpi_entry("stability", stability, previous.stability if previous else None),
            economic_growth=kpi_entry(
                "economic_growth", growth, previous.economic_growth if previous else None
            ),
            security_index=kpi_entry(
                "security_index", security, previous.security_index if previous else None
            ),
            active_crises=kpi_entry(
                "active_crises", crises, previous.active_crises if previous else None
            ),
        )

    @staticmethod
    def _update_trust(
        state: CampaignState, outcomes: List[EventOutcome], kpis: KPIReport
    ) -> None:
        trust = state.trust
        for estate in state.estates:
            trust.estates[estate.name] = clamp(estate.satisfaction / 100, 0.1, 0.95)
        if any(outcome.status == OutcomeStatus.FAILED for outcome in outcomes):
            adjust_advisor_trust(trust, -0.02)
        elif any(
            outcome.status == OutcomeStatus.RESOLVED and outcome.event.severity != Severity.MINOR
            for outcome in outcomes
        ):
            adjust_advisor_trust(trust, 0.01)
        if kpis.stability.trend > 0:
            adjust_advisor_trust(trust, 0.005)
        elif kpis.stability.trend < 0:
            adjust_advisor_trust(trust, -0.005)

    @staticmethod
    def _snapshot_regions(state: CampaignState) -> List[RegionSnapshot]:
        snapshots: List[RegionSnapshot] = []
        for region in state.regions:
            score, factors = region_risk(region, state.active_events, state.modifiers.threat)
            snapshots.append(
                RegionSnapshot(
                    name=region.name,
                    wealth=round(region.wealth, 1),
                    loyalty=round(region.loyalty, 1),
                    infrastructure=round(region.infrastructure, 1),
                    risk_score=score,
                    risk_factors=factors,
                )
            )
        return snapshots

    @staticmethod
    def _snapshot_departments(
        state: CampaignState, spending: Mapping[Department, float]
    ) -> List[DepartmentSnapshot]:
        total = sum(spending.values())
        return [
            DepartmentSnapshot(
                name=department.name,
                efficiency=round(department.efficiency, 3),
                budget=round(department.budget, 2),
                cumulative_investment=round(department.cumulative_investment, 2),
                spending_share=round(spending.get(department.name, 0.0) / total, 3) if total > 0 else 0.0,
            )
            for department in state.departments
        ]


__all__ = [
    "CampaignState",
    "QuarterEngine",
    "SECURITY_STAGE_EVENTS",
    "initial_trust",
    "kpi_entry",
    "region_risk",
    "threat_level",
]
