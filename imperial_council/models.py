"""Core data models for the imperial council simulation."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Department(str, Enum):
    """Closed set of government departments that receive budget."""

    ECONOMY = "economy"
    DIPLOMACY = "diplomacy"
    INTERNAL = "internal"
    MILITARY = "military"
    SCIENCE = "science"


DEPARTMENTS: Tuple[Department, ...] = tuple(Department)


class Portfolio(str, Enum):
    """Council portfolios; the extra ones map onto several departments."""

    ECONOMY = "economy"
    DIPLOMACY = "diplomacy"
    INTERNAL = "internal"
    MILITARY = "military"
    SCIENCE = "science"
    NAVY = "navy"
    INTELLIGENCE = "intelligence"
    LOGISTICS = "logistics"


_PORTFOLIO_DEPARTMENTS: Dict[Portfolio, Tuple[Department, ...]] = {
    Portfolio.ECONOMY: (Department.ECONOMY,),
    Portfolio.DIPLOMACY: (Department.DIPLOMACY,),
    Portfolio.INTERNAL: (Department.INTERNAL,),
    Portfolio.MILITARY: (Department.MILITARY,),
    Portfolio.SCIENCE: (Department.SCIENCE,),
    Portfolio.NAVY: (Department.MILITARY,),
    Portfolio.INTELLIGENCE: (Department.INTERNAL, Department.MILITARY),
    Portfolio.LOGISTICS: (Department.ECONOMY, Department.INTERNAL),
}


def portfolio_departments(portfolio: Portfolio) -> Tuple[Department, ...]:
    return _PORTFOLIO_DEPARTMENTS.get(Portfolio(portfolio), ())


class Specialization(str, Enum):
    TRADE = "trade"
    AGRICULTURE = "agriculture"
    INDUSTRY = "industry"


class TaxPolicy(str, Enum):
    LOW = "low"
    STANDARD = "standard"
    HIGH = "high"


class InvestmentPriority(str, Enum):
    BALANCED = "balanced"
    INFRASTRUCTURE = "infrastructure"
    MILITARY = "military"
    INNOVATION = "innovation"
    STABILITY = "stability"


class PriorityLevel(str, Enum):
    NEGLECT = "neglect"
    STEADY = "steady"
    PUSH = "push"


class MandateGoal(str, Enum):
    STABILIZE_REGION = "stabilize_region"
    FORTIFY_BORDER = "fortify_border"
    BOOST_ECONOMY = "boost_economy"
    ADVANCE_SCIENCE = "advance_science"
    IMPROVE_DIPLOMACY = "improve_diplomacy"
    SUPPRESS_UNREST = "suppress_unrest"
    EXPAND_INFLUENCE = "expand_influence"


class MandateUrgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MandateStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    COMPLETED = "completed"
    FAILED = "failed"


class Severity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


class EventCategory(str, Enum):
    ECONOMIC_CRISIS = "economic_crisis"
    NATURAL_DISASTER = "natural_disaster"
    POLITICAL_INTRIGUE = "political_intrigue"
    SOCIAL_UNREST = "social_unrest"
    MILITARY_THREAT = "military_threat"
    DISCOVERY = "discovery"
    DIPLOMATIC_CRISIS = "diplomatic_crisis"


class EffectKind(str, Enum):
    """Closed set of effect kinds understood by scoring and application."""

    TREASURY = "treasury"
    WEALTH = "wealth"
    INFRASTRUCTURE = "infrastructure"
    REPUTATION = "reputation"
    INFLUENCE = "influence"
    LOYALTY = "loyalty"
    STABILITY = "stability"
    UNREST = "unrest"
    THREAT = "threat"
    SECURITY_PRESSURE = "security_pressure"
    SCIENCE = "science"
    BUDGET = "budget"
    SATISFACTION = "satisfaction"


class ThreatLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    CRITICAL = "critical"


class ControlMode(str, Enum):
    MANUAL = "manual"
    ADVISOR = "advisor"
    HYBRID = "hybrid"


class OutcomeStatus(str, Enum):
    RESOLVED = "resolved"
    FAILED = "failed"
    DEFERRED = "deferred"


class ResponsePosture(str, Enum):
    BALANCED = "balanced"
    FORCEFUL = "forceful"
    DIPLOMATIC = "diplomatic"
    COVERT = "covert"


class ConsultationStance(str, Enum):
    SUPPORT = "support"
    CAUTION = "caution"
    ESCALATE = "escalate"


# ---------------------------------------------------------------------------
# Resources and entities
# ---------------------------------------------------------------------------


@dataclass
class ResourcePool:
    gold: float = 0.0
    influence: float = 0.0
    labor: float = 0.0

    def plus(self, other: "ResourcePool") -> "ResourcePool":
        return ResourcePool(
            self.gold + other.gold,
            self.influence + other.influence,
            self.labor + other.labor,
        )

    def minus(self, other: "ResourcePool") -> "ResourcePool":
        return ResourcePool(
            self.gold - other.gold,
            self.influence - other.influence,
            self.labor - other.labor,
        )

    def scaled(self, factor: float) -> "ResourcePool":
        return ResourcePool(self.gold * factor, self.influence * factor, self.labor * factor)

    def covers(self, cost: Optional["ResourcePool"]) -> bool:
        """Return ``True`` when every component of ``cost`` is available."""

        if cost is None:
            return True
        return (
            self.gold >= cost.gold
            and self.influence >= cost.influence
            and self.labor >= cost.labor
        )

    def rounded(self, digits: int = 2) -> "ResourcePool":
        return ResourcePool(
            round(self.gold, digits), round(self.influence, digits), round(self.labor, digits)
        )

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "ResourcePool":
        data = data or {}
        return ResourcePool(
            gold=float(data.get("gold", 0.0)),
            influence=float(data.get("influence", 0.0)),
            labor=float(data.get("labor", 0.0)),
        )


@dataclass
class Region:
    name: str
    population: int
    wealth: float
    loyalty: float
    infrastructure: float
    specialization: Specialization
    resource_output: ResourcePool

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Region":
        return Region(
            name=data["name"],
            population=int(data["population"]),
            wealth=float(data["wealth"]),
            loyalty=float(data["loyalty"]),
            infrastructure=float(data["infrastructure"]),
            specialization=Specialization(data["specialization"]),
            resource_output=ResourcePool.from_dict(data["resource_output"]),
        )


@dataclass
class Estate:
    name: str
    influence: float
    satisfaction: float
    favored_department: Department

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Estate":
        return Estate(
            name=data["name"],
            influence=float(data["influence"]),
            satisfaction=float(data["satisfaction"]),
            favored_department=Department(data["favored_department"]),
        )


@dataclass
class DepartmentState:
    name: Department
    efficiency: float
    budget: float = 0.0
    cumulative_investment: float = 0.0

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "DepartmentState":
        return DepartmentState(
            name=Department(data["name"]),
            efficiency=float(data["efficiency"]),
            budget=float(data.get("budget", 0.0)),
            cumulative_investment=float(data.get("cumulative_investment", 0.0)),
        )


@dataclass
class CouncilMember:
    """A named council member together with their live morale state."""

    id: str
    name: str
    portfolio: Portfolio
    competence: float
    loyalty: float
    traits: List[str] = field(default_factory=list)
    favored_mandates: List[MandateGoal] = field(default_factory=list)
    caution: float = 0.5
    stress: float = 0.3
    motivation: float = 0.5
    assigned_mandates: List[str] = field(default_factory=list)
    last_quarter_summary: Optional[str] = None

    def departments(self) -> Tuple[Department, ...]:
        return portfolio_departments(self.portfolio)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "CouncilMember":
        loyalty = float(data["loyalty"])
        motivation = data.get("motivation")
        if motivation is None:
            motivation = min(0.9, max(0.35, 0.55 + (loyalty - 0.5) * 0.4))
        return CouncilMember(
            id=data["id"],
            name=data["name"],
            portfolio=Portfolio(data["portfolio"]),
            competence=float(data["competence"]),
            loyalty=loyalty,
            traits=list(data.get("traits", [])),
            favored_mandates=[MandateGoal(goal) for goal in data.get("favored_mandates", [])],
            caution=float(data.get("caution", 0.5)),
            stress=float(data.get("stress", 0.3)),
            motivation=float(motivation),
            assigned_mandates=list(data.get("assigned_mandates", [])),
            last_quarter_summary=data.get("last_quarter_summary"),
        )


@dataclass
class MandateTarget:
    kind: str = "global"
    name: Optional[str] = None

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> "MandateTarget":
        data = data or {}
        return MandateTarget(kind=data.get("kind", "global"), name=data.get("name"))


@dataclass
class Mandate:
    id: str
    label: str
    goal: MandateGoal
    target: MandateTarget
    urgency: MandateUrgency
    horizon: int
    notes: str = ""
    progress: float = 0.0
    status: MandateStatus = MandateStatus.NOT_STARTED
    confidence: float = 0.55
    issued_quarter: Optional[int] = None
    baseline_value: Optional[float] = None
    target_value: Optional[float] = None
    last_report: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.status in (MandateStatus.COMPLETED, MandateStatus.FAILED)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Mandate":
        return Mandate(
            id=data["id"],
            label=data["label"],
            goal=MandateGoal(data["goal"]),
            target=MandateTarget.from_dict(data.get("target")),
            urgency=MandateUrgency(data["urgency"]),
            horizon=int(data["horizon"]),
            notes=data.get("notes", ""),
            progress=float(data.get("progress", 0.0)),
            status=MandateStatus(data.get("status", MandateStatus.NOT_STARTED.value)),
            confidence=float(data.get("confidence", 0.55)),
            issued_quarter=data.get("issued_quarter"),
            baseline_value=data.get("baseline_value"),
            target_value=data.get("target_value"),
            last_report=data.get("last_report"),
        )


@dataclass
class Project:
    id: str
    name: str
    focus: str
    description: str = ""
    milestones: List[float] = field(default_factory=list)
    progress: float = 0.0
    owner_advisor_id: Optional[str] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Project":
        return Project(
            id=data["id"],
            name=data["name"],
            focus=data["focus"],
            description=data.get("description", ""),
            milestones=[float(value) for value in data.get("milestones", [])],
            progress=float(data.get("progress", 0.0)),
            owner_advisor_id=data.get("owner_advisor_id"),
        )


@dataclass
class Agenda:
    """Standing strategic plan: department priorities, mandates and projects."""

    name: str
    priorities: Dict[Department, PriorityLevel]
    mandates: List[Mandate] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)

    def priority(self, department: Department) -> PriorityLevel:
        return self.priorities.get(department, PriorityLevel.STEADY)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Agenda":
        priorities = {
            Department(name): PriorityLevel(level)
            for name, level in (data.get("priorities") or {}).items()
        }
        for department in DEPARTMENTS:
            priorities.setdefault(department, PriorityLevel.STEADY)
        return Agenda(
            name=data.get("name", ""),
            priorities=priorities,
            mandates=[Mandate.from_dict(item) for item in data.get("mandates", [])],
            projects=[Project.from_dict(item) for item in data.get("projects", [])],
        )


@dataclass
class Decree:
    name: str
    investment_priority: InvestmentPriority
    tax_policy: TaxPolicy

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Decree":
        return Decree(
            name=data.get("name", ""),
            investment_priority=InvestmentPriority(data["investment_priority"]),
            tax_policy=TaxPolicy(data["tax_policy"]),
        )


@dataclass
class TrustLevels:
    advisor: float
    estates: Dict[str, float] = field(default_factory=dict)

    def copy(self) -> "TrustLevels":
        return TrustLevels(self.advisor, dict(self.estates))

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "TrustLevels":
        return TrustLevels(
            advisor=float(data["advisor"]),
            estates={name: float(value) for name, value in (data.get("estates") or {}).items()},
        )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass
class Effect:
    kind: EffectKind
    target: str
    value: float
    duration: Optional[int] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Effect":
        duration = data.get("duration")
        return Effect(
            kind=EffectKind(data["kind"]),
            target=str(data.get("target", "")),
            value=float(data["value"]),
            duration=int(duration) if duration is not None else None,
        )


@dataclass
class EventOption:
    id: str
    description: str
    effects: List[Effect] = field(default_factory=list)
    cost: Optional[ResourcePool] = None
    follow_ups: List[str] = field(default_factory=list)
    cooldown: Optional[int] = None

    @property
    def actionable(self) -> bool:
        return bool(self.effects or self.follow_ups)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "EventOption":
        cost = data.get("cost")
        return EventOption(
            id=data["id"],
            description=data.get("description", ""),
            effects=[Effect.from_dict(item) for item in data.get("effects", [])],
            cost=ResourcePool.from_dict(cost) if cost else None,
            follow_ups=list(data.get("follow_ups", [])),
            cooldown=data.get("cooldown"),
        )


@dataclass
class FailureClause:
    timeout: int
    effects: List[Effect] = field(default_factory=list)
    description: str = ""

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "FailureClause":
        return FailureClause(
            timeout=int(data.get("timeout", 1)),
            effects=[Effect.from_dict(item) for item in data.get("effects", [])],
            description=data.get("description", ""),
        )


@dataclass
class EscalationClause:
    chance: float
    follow_up: str
    description: str = ""

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "EscalationClause":
        return EscalationClause(
            chance=float(data["chance"]),
            follow_up=data["follow_up"],
            description=data.get("description", ""),
        )


@dataclass
class EventOrigin:
    """Which region, estate or metric triggered an event."""

    region: Optional[str] = None
    estate: Optional[str] = None
    milestone: Optional[float] = None
    loyalty: Optional[float] = None
    satisfaction: Optional[float] = None
    treasury: Optional[float] = None
    source: Optional[str] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "EventOrigin":
        return EventOrigin(**{key: data.get(key) for key in EventOrigin.__dataclass_fields__})


@dataclass
class SimulationEvent:
    id: str
    title: str
    description: str
    category: EventCategory
    severity: Severity
    options: List[EventOption]
    failure: FailureClause
    factions: List[str] = field(default_factory=list)
    triggers: List[str] = field(default_factory=list)
    conditions: Dict[str, str] = field(default_factory=dict)
    escalation: List[EscalationClause] = field(default_factory=list)
    origin: Optional[EventOrigin] = None

    def option(self, option_id: Optional[str]) -> Optional[EventOption]:
        for candidate in self.options:
            if candidate.id == option_id:
                return candidate
        return None

    def same_trigger(self, other: "SimulationEvent") -> bool:
        """Two events share a trigger when id and origin region/estate match."""

        mine = self.origin or EventOrigin()
        theirs = other.origin or EventOrigin()
        return (
            self.id == other.id
            and mine.region == theirs.region
            and mine.estate == theirs.estate
        )

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SimulationEvent":
        origin = data.get("origin")
        return SimulationEvent(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            category=EventCategory(data["category"]),
            severity=Severity(data["severity"]),
            options=[EventOption.from_dict(item) for item in data.get("options", [])],
            failure=FailureClause.from_dict(data["failure"]),
            factions=list(data.get("factions", [])),
            triggers=list(data.get("triggers", [])),
            conditions=dict(data.get("conditions", {})),
            escalation=[EscalationClause.from_dict(item) for item in data.get("escalation", [])],
            origin=EventOrigin.from_dict(origin) if origin else None,
        )


@dataclass(frozen=True)
class AdvisorPreview:
    """What the automated strategy would have chosen for an event."""

    option_id: Optional[str]
    notes: Optional[str] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "AdvisorPreview":
        return AdvisorPreview(option_id=data.get("option_id"), notes=data.get("notes"))


class ResolutionMode(str, Enum):
    PLAYER = "player"
    COUNCIL = "council"


@dataclass
class ActiveEvent:
    """A triggered event awaiting resolution.

    ``last_mode`` and ``last_preview`` remember who handled the event most
    recently so a forced failure can be attributed.
    """

    event: SimulationEvent
    remaining_time: int
    origin_quarter: int
    escalated: bool = False
    last_mode: ResolutionMode = ResolutionMode.COUNCIL
    last_preview: Optional[AdvisorPreview] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ActiveEvent":
        preview = data.get("last_preview")
        return ActiveEvent(
            event=SimulationEvent.from_dict(data["event"]),
            remaining_time=int(data["remaining_time"]),
            origin_quarter=int(data["origin_quarter"]),
            escalated=bool(data.get("escalated", False)),
            last_mode=ResolutionMode(data.get("last_mode", ResolutionMode.COUNCIL.value)),
            last_preview=AdvisorPreview.from_dict(preview) if preview else None,
        )


@dataclass(frozen=True)
class EventOutcome:
    event: SimulationEvent
    status: OutcomeStatus
    selected_option_id: Optional[str]
    applied_effects: List[Effect]
    resolution_mode: ResolutionMode
    advisor_preview: AdvisorPreview
    notes: Optional[str] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "EventOutcome":
        return EventOutcome(
            event=SimulationEvent.from_dict(data["event"]),
            status=OutcomeStatus(data["status"]),
            selected_option_id=data.get("selected_option_id"),
            applied_effects=[Effect.from_dict(item) for item in data.get("applied_effects", [])],
            resolution_mode=ResolutionMode(data["resolution_mode"]),
            advisor_preview=AdvisorPreview.from_dict(data.get("advisor_preview") or {}),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class InterventionLogEntry:
    event_id: str
    event_title: str
    quarter: int
    mode: ResolutionMode
    status: OutcomeStatus
    option_id: Optional[str]
    notes: Optional[str]
    advisor_option_id: Optional[str]
    advisor_notes: Optional[str]
    remaining_time: int
    timestamp: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "InterventionLogEntry":
        return InterventionLogEntry(
            event_id=data["event_id"],
            event_title=data["event_title"],
            quarter=int(data["quarter"]),
            mode=ResolutionMode(data["mode"]),
            status=OutcomeStatus(data["status"]),
            option_id=data.get("option_id"),
            notes=data.get("notes"),
            advisor_option_id=data.get("advisor_option_id"),
            advisor_notes=data.get("advisor_notes"),
            remaining_time=int(data["remaining_time"]),
            timestamp=data["timestamp"],
        )


# ---------------------------------------------------------------------------
# Control mode
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ControlTransition:
    """A control-mode switch scheduled for the start of a quarter."""

    quarter: int
    mode: ControlMode
    reason: Optional[str] = None
    triggered_by: Optional[str] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ControlTransition":
        return ControlTransition(
            quarter=int(data["quarter"]),
            mode=ControlMode(data["mode"]),
            reason=data.get("reason"),
            triggered_by=data.get("triggered_by"),
        )


@dataclass(frozen=True)
class ControlModeLogEntry:
    quarter: int
    mode: ControlMode
    timestamp: str
    reason: Optional[str] = None
    triggered_by: Optional[str] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ControlModeLogEntry":
        return ControlModeLogEntry(
            quarter=int(data["quarter"]),
            mode=ControlMode(data["mode"]),
            timestamp=data["timestamp"],
            reason=data.get("reason"),
            triggered_by=data.get("triggered_by"),
        )


# ---------------------------------------------------------------------------
# KPIs and reports
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KPIEntry:
    value: float
    trend: float
    threat_level: ThreatLevel

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "KPIEntry":
        return KPIEntry(
            value=float(data["value"]),
            trend=float(data["trend"]),
            threat_level=ThreatLevel(data["threat_level"]),
        )


KPI_NAMES: Tuple[str, ...] = ("stability", "economic_growth", "security_index", "active_crises")


@dataclass(frozen=True)
class KPIReport:
    stability: KPIEntry
    economic_growth: KPIEntry
    security_index: KPIEntry
    active_crises: KPIEntry

    def entries(self) -> Dict[str, KPIEntry]:
        return {name: getattr(self, name) for name in KPI_NAMES}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "KPIReport":
        return KPIReport(**{name: KPIEntry.from_dict(data[name]) for name in KPI_NAMES})


@dataclass(frozen=True)
class RegionSnapshot:
    name: str
    wealth: float
    loyalty: float
    infrastructure: float
    risk_score: float
    risk_factors: List[str]

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "RegionSnapshot":
        return RegionSnapshot(
            name=data["name"],
            wealth=float(data["wealth"]),
            loyalty=float(data["loyalty"]),
            infrastructure=float(data["infrastructure"]),
            risk_score=float(data["risk_score"]),
            risk_factors=list(data.get("risk_factors", [])),
        )


@dataclass(frozen=True)
class EstateSnapshot:
    name: str
    satisfaction: float
    influence: float

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "EstateSnapshot":
        return EstateSnapshot(data["name"], float(data["satisfaction"]), float(data["influence"]))


@dataclass(frozen=True)
class DepartmentSnapshot:
    name: Department
    efficiency: float
    budget: float
    cumulative_investment: float
    spending_share: float

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "DepartmentSnapshot":
        return DepartmentSnapshot(
            name=Department(data["name"]),
            efficiency=float(data["efficiency"]),
            budget=float(data["budget"]),
            cumulative_investment=float(data["cumulative_investment"]),
            spending_share=float(data["spending_share"]),
        )


@dataclass(frozen=True)
class ProjectSnapshot:
    id: str
    name: str
    focus: str
    progress: float
    milestones_reached: int

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ProjectSnapshot":
        return ProjectSnapshot(
            id=data["id"],
            name=data["name"],
            focus=data["focus"],
            progress=float(data["progress"]),
            milestones_reached=int(data["milestones_reached"]),
        )


@dataclass(frozen=True)
class ExpenseReport:
    departments: Dict[Department, float]
    total: float

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ExpenseReport":
        return ExpenseReport(
            departments={Department(name): float(value) for name, value in data["departments"].items()},
            total=float(data["total"]),
        )


@dataclass(frozen=True)
class MandateProgressReport:
    mandate_id: str
    label: str
    status: MandateStatus
    progress: float
    confidence: float
    commentary: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "MandateProgressReport":
        return MandateProgressReport(
            mandate_id=data["mandate_id"],
            label=data["label"],
            status=MandateStatus(data["status"]),
            progress=float(data["progress"]),
            confidence=float(data["confidence"]),
            commentary=data["commentary"],
        )


@dataclass(frozen=True)
class CouncilReport:
    advisor_id: str
    advisor_name: str
    portfolio: Portfolio
    summary: str
    confidence: float
    focus_department: Optional[Department] = None
    alerts: List[str] = field(default_factory=list)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "CouncilReport":
        focus = data.get("focus_department")
        return CouncilReport(
            advisor_id=data["advisor_id"],
            advisor_name=data["advisor_name"],
            portfolio=Portfolio(data["portfolio"]),
            summary=data["summary"],
            confidence=float(data["confidence"]),
            focus_department=Department(focus) if focus else None,
            alerts=list(data.get("alerts", [])),
        )


@dataclass(frozen=True)
class AgendaHighlight:
    department: Department
    priority: PriorityLevel
    commentary: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "AgendaHighlight":
        return AgendaHighlight(
            department=Department(data["department"]),
            priority=PriorityLevel(data["priority"]),
            commentary=data["commentary"],
        )


@dataclass(frozen=True)
class ConsultationResponse:
    advisor_id: str
    advisor_name: str
    stance: ConsultationStance
    summary: str
    rationale: List[str]
    recommended_action: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ConsultationResponse":
        return ConsultationResponse(
            advisor_id=data["advisor_id"],
            advisor_name=data["advisor_name"],
            stance=ConsultationStance(data["stance"]),
            summary=data["summary"],
            rationale=list(data.get("rationale", [])),
            recommended_action=data["recommended_action"],
        )


@dataclass(frozen=True)
class ConsultationThread:
    id: str
    kind: str
    topic: str
    prompt: str
    summary: str
    responses: List[ConsultationResponse]
    recommendations: List[str]
    handoff_target: Optional[str] = None
    related_department: Optional[Department] = None
    related_kpi: Optional[str] = None
    related_event_id: Optional[str] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ConsultationThread":
        department = data.get("related_department")
        return ConsultationThread(
            id=data["id"],
            kind=data["kind"],
            topic=data["topic"],
            prompt=data["prompt"],
            summary=data["summary"],
            responses=[ConsultationResponse.from_dict(item) for item in data.get("responses", [])],
            recommendations=list(data.get("recommendations", [])),
            handoff_target=data.get("handoff_target"),
            related_department=Department(department) if department else None,
            related_kpi=data.get("related_kpi"),
            related_event_id=data.get("related_event_id"),
        )


@dataclass(frozen=True)
class QuarterlyReport:
    """Immutable record of one committed quarter."""

    quarter: int
    incomes: ResourcePool
    expenses: ExpenseReport
    treasury: ResourcePool
    regions: List[RegionSnapshot]
    estates: List[EstateSnapshot]
    departments: List[DepartmentSnapshot]
    projects: List[ProjectSnapshot]
    outcomes: List[EventOutcome]
    kpis: KPIReport
    trust: TrustLevels
    threat_level: float
    council_reports: List[CouncilReport]
    mandate_progress: List[MandateProgressReport]
    agenda_highlights: List[AgendaHighlight]
    consultations: List[ConsultationThread]
    control_mode: ControlMode

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "QuarterlyReport":
        return QuarterlyReport(
            quarter=int(data["quarter"]),
            incomes=ResourcePool.from_dict(data["incomes"]),
            expenses=ExpenseReport.from_dict(data["expenses"]),
            treasury=ResourcePool.from_dict(data["treasury"]),
            regions=[RegionSnapshot.from_dict(item) for item in data["regions"]],
            estates=[EstateSnapshot.from_dict(item) for item in data["estates"]],
            departments=[DepartmentSnapshot.from_dict(item) for item in data["departments"]],
            projects=[ProjectSnapshot.from_dict(item) for item in data["projects"]],
            outcomes=[EventOutcome.from_dict(item) for item in data["outcomes"]],
            kpis=KPIReport.from_dict(data["kpis"]),
            trust=TrustLevels.from_dict(data["trust"]),
            threat_level=float(data["threat_level"]),
            council_reports=[CouncilReport.from_dict(item) for item in data["council_reports"]],
            mandate_progress=[
                MandateProgressReport.from_dict(item) for item in data["mandate_progress"]
            ],
            agenda_highlights=[
                AgendaHighlight.from_dict(item) for item in data["agenda_highlights"]
            ],
            consultations=[ConsultationThread.from_dict(item) for item in data["consultations"]],
            control_mode=ControlMode(data["control_mode"]),
        )


__all__ = [
    "ActiveEvent",
    "AdvisorPreview",
    "Agenda",
    "AgendaHighlight",
    "ConsultationResponse",
    "ConsultationStance",
    "ConsultationThread",
    "ControlMode",
    "ControlModeLogEntry",
    "ControlTransition",
    "CouncilMember",
    "CouncilReport",
    "DEPARTMENTS",
    "Decree",
    "Department",
    "DepartmentSnapshot",
    "DepartmentState",
    "Effect",
    "EffectKind",
    "EscalationClause",
    "Estate",
    "EstateSnapshot",
    "EventCategory",
    "EventOption",
    "EventOrigin",
    "EventOutcome",
    "ExpenseReport",
    "FailureClause",
    "InterventionLogEntry",
    "InvestmentPriority",
    "KPIEntry",
    "KPIReport",
    "KPI_NAMES",
    "Mandate",
    "MandateGoal",
    "MandateProgressReport",
    "MandateStatus",
    "MandateTarget",
    "MandateUrgency",
    "OutcomeStatus",
    "Portfolio",
    "PriorityLevel",
    "Project",
    "ProjectSnapshot",
    "QuarterlyReport",
    "Region",
    "RegionSnapshot",
    "ResolutionMode",
    "ResourcePool",
    "ResponsePosture",
    "Severity",
    "SimulationEvent",
    "Specialization",
    "TaxPolicy",
    "ThreatLevel",
    "TrustLevels",
    "portfolio_departments",
]
