"""
Heritage Risk Engine - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the Heritage Risk Engine.

This module defines the enums, dataclasses and exceptions
shared by scoring, derived-state management and the
temporal analyzers.

============================================================
DESIGN PRINCIPLES
============================================================
- Closed enums for threat type, priority and uncertainty
- Priority carries an explicit total ordering
- Assessments are immutable; derived fields are computed,
  never supplied
- Report types expose to_dict() for presentation layers

============================================================
ABC SCALE
============================================================
A = Probability (1-5)
B = Loss of Value (1-5)
C = Fraction Affected (1-5)

Magnitude = A + B + C (3-15)

============================================================
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4


MIN_COMPONENT = 1
MAX_COMPONENT = 5
MIN_MAGNITUDE = 3 * MIN_COMPONENT
MAX_MAGNITUDE = 3 * MAX_COMPONENT


# ============================================================
# ENUMS
# ============================================================


class ThreatType(str, Enum):
    """The nine threat categories an assessment can address."""

    EARTHQUAKE = "earthquake"
    FLOODING = "flooding"
    WEATHERING = "weathering"
    VEGETATION = "vegetation"
    URBAN_DEVELOPMENT = "urban-development"
    TOURISM_PRESSURE = "tourism-pressure"
    LOOTING = "looting"
    CONFLICT = "conflict"
    CLIMATE_CHANGE = "climate-change"


class RiskPriority(str, Enum):
    """
    Priority category derived from magnitude.

    Ordering (lowest to highest):
    LOW < MEDIUM_HIGH < HIGH < VERY_HIGH < EXTREMELY_HIGH
    """

    LOW = "low"
    MEDIUM_HIGH = "medium-high"
    HIGH = "high"
    VERY_HIGH = "very-high"
    EXTREMELY_HIGH = "extremely-high"

    @classmethod
    def ordered(cls) -> List["RiskPriority"]:
        """Return all priorities from lowest to highest."""
        return [cls.LOW, cls.MEDIUM_HIGH, cls.HIGH, cls.VERY_HIGH, cls.EXTREMELY_HIGH]

    @classmethod
    def from_magnitude(cls, magnitude: int) -> "RiskPriority":
        """
        Classify a magnitude into a priority.

        Thresholds are inclusive lower bounds, evaluated highest-first:
        13+ extremely-high, 10+ very-high, 7+ high, 4+ medium-high.

        Raises:
            InvalidComponentError: If magnitude is outside 3-15
        """
        if (
            isinstance(magnitude, bool)
            or not isinstance(magnitude, int)
            or not MIN_MAGNITUDE <= magnitude <= MAX_MAGNITUDE
        ):
            raise InvalidComponentError(
                f"Risk magnitude must be an integer between "
                f"{MIN_MAGNITUDE} and {MAX_MAGNITUDE}, got {magnitude!r}",
                component="magnitude",
                value=magnitude,
            )
        if magnitude >= 13:
            return cls.EXTREMELY_HIGH
        elif magnitude >= 10:
            return cls.VERY_HIGH
        elif magnitude >= 7:
            return cls.HIGH
        elif magnitude >= 4:
            return cls.MEDIUM_HIGH
        return cls.LOW

    @property
    def severity_order(self) -> int:
        """Zero-based position in the ordering."""
        return _PRIORITY_ORDER[self]

    @property
    def weight(self) -> int:
        """Sorting weight, 1 (low) to 5 (extremely-high)."""
        return _PRIORITY_ORDER[self] + 1

    @property
    def description(self) -> str:
        """Guidance text for the priority level."""
        return _PRIORITY_DESCRIPTIONS[self]

    def escalate(self, steps: int) -> "RiskPriority":
        """Move up the scale by `steps`, saturating at EXTREMELY_HIGH."""
        if steps <= 0:
            return self
        ordered = RiskPriority.ordered()
        return ordered[min(len(ordered) - 1, self.severity_order + steps)]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RiskPriority):
            return NotImplemented
        return self.severity_order < other.severity_order

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RiskPriority):
            return NotImplemented
        return self.severity_order <= other.severity_order

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, RiskPriority):
            return NotImplemented
        return self.severity_order > other.severity_order

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, RiskPriority):
            return NotImplemented
        return self.severity_order >= other.severity_order


_PRIORITY_ORDER: Dict[RiskPriority, int] = {
    RiskPriority.LOW: 0,
    RiskPriority.MEDIUM_HIGH: 1,
    RiskPriority.HIGH: 2,
    RiskPriority.VERY_HIGH: 3,
    RiskPriority.EXTREMELY_HIGH: 4,
}

_PRIORITY_DESCRIPTIONS: Dict[RiskPriority, str] = {
    RiskPriority.EXTREMELY_HIGH: "Immediate action required - critical threat to heritage value",
    RiskPriority.VERY_HIGH: "Urgent action needed - significant threat requiring prompt response",
    RiskPriority.HIGH: "Action required - notable threat that should be addressed soon",
    RiskPriority.MEDIUM_HIGH: "Moderate concern - should be monitored and planned for",
    RiskPriority.LOW: "Low priority - routine monitoring sufficient",
}


class UncertaintyLevel(str, Enum):
    """Confidence of the assessor in the ABC scores."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SiteStatus(str, Enum):
    """Operational status of a heritage site."""

    ACTIVE = "active"
    AT_RISK = "at-risk"
    CRITICAL = "critical"
    STABLE = "stable"


class TrendDirection(str, Enum):
    """Direction of a fitted linear trend."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class OverallTrend(str, Enum):
    """Fleet-level trend across sites."""

    IMPROVING = "improving"
    DETERIORATING = "deteriorating"
    MIXED = "mixed"


class EvolutionDirection(str, Enum):
    """Direction of a single threat's magnitude over time."""

    ESCALATING = "escalating"
    STABLE = "stable"
    IMPROVING = "improving"


# ============================================================
# HELPERS
# ============================================================


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_component(name: str, value: Any) -> int:
    """
    Check one ABC component.

    Only true integers in [1, 5] are accepted. Floats (even 1.0)
    and booleans are rejected; nothing is clamped or rounded.

    Raises:
        InvalidComponentError: On any invalid value
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidComponentError(
            f"{name} must be an integer between {MIN_COMPONENT} and "
            f"{MAX_COMPONENT}, got {value!r}",
            component=name,
            value=value,
        )
    if not MIN_COMPONENT <= value <= MAX_COMPONENT:
        raise InvalidComponentError(
            f"{name} must be between {MIN_COMPONENT} and {MAX_COMPONENT}, got {value}",
            component=name,
            value=value,
        )
    return value


# ============================================================
# ASSESSMENT
# ============================================================


@dataclass(frozen=True)
class Assessment:
    """
    One ABC risk assessment of a threat at a site.

    `magnitude` and `priority` are computed from the three
    components and cannot be passed in. Use `with_updates()`
    to produce a replacement with recomputed fields.
    """

    site_id: str
    threat_type: ThreatType
    probability: int
    loss_of_value: int
    fraction_affected: int
    assessment_date: datetime
    uncertainty_level: UncertaintyLevel = UncertaintyLevel.LOW
    assessor: str = ""
    notes: str = ""
    assessment_id: str = field(default_factory=lambda: f"assessment-{uuid4().hex}")

    magnitude: int = field(init=False)
    priority: RiskPriority = field(init=False)

    def __post_init__(self) -> None:
        probability = validate_component("probability", self.probability)
        loss_of_value = validate_component("loss_of_value", self.loss_of_value)
        fraction_affected = validate_component("fraction_affected", self.fraction_affected)
        magnitude = probability + loss_of_value + fraction_affected

        object.__setattr__(self, "threat_type", ThreatType(self.threat_type))
        object.__setattr__(self, "uncertainty_level", UncertaintyLevel(self.uncertainty_level))
        object.__setattr__(self, "assessment_date", ensure_utc(self.assessment_date))
        object.__setattr__(self, "magnitude", magnitude)
        object.__setattr__(self, "priority", RiskPriority.from_magnitude(magnitude))

    @property
    def adjusted_priority(self) -> RiskPriority:
        """Priority after the canonical uncertainty escalation."""
        return self.priority.escalate(UNCERTAINTY_ESCALATION_STEPS[self.uncertainty_level])

    def with_updates(self, **changes: Any) -> "Assessment":
        """
        Return a copy with `changes` applied and derived fields recomputed.

        Raises:
            ValueError: If a derived field is passed
        """
        for derived in ("magnitude", "priority"):
            if derived in changes:
                raise ValueError(f"{derived} is derived and cannot be set")
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.assessment_id,
            "site_id": self.site_id,
            "threat_type": self.threat_type.value,
            "probability": self.probability,
            "loss_of_value": self.loss_of_value,
            "fraction_affected": self.fraction_affected,
            "magnitude": self.magnitude,
            "priority": self.priority.value,
            "uncertainty_level": self.uncertainty_level.value,
            "assessment_date": self.assessment_date.isoformat(),
            "assessor": self.assessor,
            "notes": self.notes,
        }


# Levels an uncertainty moves a priority up the scale. Read-only.
UNCERTAINTY_ESCALATION_STEPS: Mapping[UncertaintyLevel, int] = MappingProxyType({
    UncertaintyLevel.LOW: 0,
    UncertaintyLevel.MEDIUM: 1,
    UncertaintyLevel.HIGH: 2,
})


@dataclass(frozen=True)
class RiskCalculation:
    """Full result of scoring one set of ABC components."""

    magnitude: int
    base_priority: RiskPriority
    adjusted_priority: RiskPriority
    description: str
    weight: int


# ============================================================
# SITE
# ============================================================


@dataclass(frozen=True)
class Location:
    """Geographic position of a site."""

    latitude: float
    longitude: float
    address: str = ""
    country: str = ""


@dataclass(frozen=True)
class RiskProfile:
    """
    Aggregate risk state of a site.

    Always derived from the site's assessments; never authored.
    """

    overall_risk: RiskPriority
    last_updated: datetime
    active_threats: List[ThreatType] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_risk": self.overall_risk.value,
            "last_updated": self.last_updated.isoformat(),
            "active_threats": [t.value for t in self.active_threats],
        }


@dataclass
class Site:
    """A heritage site and its derived risk projection."""

    site_id: str
    name: str
    location: Optional[Location] = None
    description: str = ""
    significance: str = ""
    status: SiteStatus = SiteStatus.ACTIVE
    images: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    risk_profile: RiskProfile = field(
        default_factory=lambda: RiskProfile(
            overall_risk=RiskPriority.LOW,
            last_updated=utc_now(),
        )
    )
    last_assessment: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.site_id,
            "name": self.name,
            "location": (
                {
                    "latitude": self.location.latitude,
                    "longitude": self.location.longitude,
                    "address": self.location.address,
                    "country": self.location.country,
                }
                if self.location
                else None
            ),
            "description": self.description,
            "significance": self.significance,
            "status": self.status.value,
            "images": list(self.images),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "risk_profile": self.risk_profile.to_dict(),
            "last_assessment": self.last_assessment.isoformat() if self.last_assessment else None,
        }


# ============================================================
# TIME SERIES AND REPORTS
# ============================================================


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One assessment projected onto a scalar metric."""

    date: datetime
    value: float
    site_id: str
    site_name: str
    threat_type: Optional[ThreatType] = None
    priority: Optional[RiskPriority] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "value": self.value,
            "site_id": self.site_id,
            "site_name": self.site_name,
            "threat_type": self.threat_type.value if self.threat_type else None,
            "priority": self.priority.value if self.priority else None,
        }


@dataclass(frozen=True)
class TrendReport:
    """Linear trend of one metric for one site."""

    metric: str
    site_id: str
    site_name: str
    data_points: List[TimeSeriesPoint]
    trend: TrendDirection
    trend_strength: float
    average_value: float
    change_rate: float
    forecast: List[TimeSeriesPoint]
    slope: float
    intercept: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "site_id": self.site_id,
            "site_name": self.site_name,
            "data_points": [p.to_dict() for p in self.data_points],
            "trend": self.trend.value,
            "trend_strength": self.trend_strength,
            "average_value": self.average_value,
            "change_rate": self.change_rate,
            "forecast": [p.to_dict() for p in self.forecast],
        }


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class SiteCorrelation:
    """Pearson correlation between two sites' series."""

    site_a: str
    site_b: str
    correlation: float
    site_a_name: str = ""
    site_b_name: str = ""


@dataclass(frozen=True)
class ComparativeReport:
    """Trend comparison across several sites."""

    metric: str
    time_range: Optional[TimeRange]
    sites: List[TrendReport]
    overall_trend: OverallTrend
    correlations: List[SiteCorrelation]

    def correlation_between(self, site_a: str, site_b: str) -> Optional[float]:
        """Look up a pair in either order."""
        for item in self.correlations:
            if {item.site_a, item.site_b} == {site_a, site_b}:
                return item.correlation
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "time_range": (
                {
                    "start": self.time_range.start.isoformat(),
                    "end": self.time_range.end.isoformat(),
                }
                if self.time_range
                else None
            ),
            "sites": [s.to_dict() for s in self.sites],
            "overall_trend": self.overall_trend.value,
            "correlations": [
                {"site_a": c.site_a, "site_b": c.site_b, "correlation": c.correlation}
                for c in self.correlations
            ],
        }


@dataclass(frozen=True)
class TimelineEntry:
    date: datetime
    magnitude: int
    priority: RiskPriority
    assessor: str
    notes: str


@dataclass(frozen=True)
class CriticalPeriod:
    """Maximal run of timeline entries at or above the high-risk floor."""

    start: datetime
    end: datetime
    peak_magnitude: int
    reason: str = ""
    ongoing: bool = False


@dataclass(frozen=True)
class ThreatEvolutionReport:
    """How one threat at one site developed over time."""

    threat_type: ThreatType
    site_id: str
    site_name: str
    timeline: List[TimelineEntry]
    evolution: EvolutionDirection
    critical_periods: List[CriticalPeriod]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threat_type": self.threat_type.value,
            "site_id": self.site_id,
            "site_name": self.site_name,
            "timeline": [
                {
                    "date": e.date.isoformat(),
                    "magnitude": e.magnitude,
                    "priority": e.priority.value,
                    "assessor": e.assessor,
                    "notes": e.notes,
                }
                for e in self.timeline
            ],
            "evolution": self.evolution.value,
            "critical_periods": [
                {
                    "start": p.start.isoformat(),
                    "end": p.end.isoformat(),
                    "peak_magnitude": p.peak_magnitude,
                    "reason": p.reason,
                    "ongoing": p.ongoing,
                }
                for p in self.critical_periods
            ],
        }


# ============================================================
# ERROR TYPES
# ============================================================


class HeritageRiskError(Exception):
    """Base exception for heritage risk engine errors."""

    pass


class InvalidComponentError(HeritageRiskError, ValueError):
    """Raised when an ABC component or magnitude is out of range or not an integer."""

    def __init__(self, message: str, component: Optional[str] = None, value: Any = None) -> None:
        super().__init__(message)
        self.component = component
        self.value = value


class InsufficientDataError(HeritageRiskError):
    """Raised when a trend needs at least two data points."""

    pass


class NoDataError(HeritageRiskError):
    """Raised when a threat timeline has no entries."""

    pass


class ReferentialIntegrityError(HeritageRiskError):
    """Raised when an assessment references a site that does not exist."""

    def __init__(self, site_id: str) -> None:
        super().__init__(f"Site {site_id!r} does not exist")
        self.site_id = site_id


class AssessmentNotFoundError(HeritageRiskError):
    """Raised when updating an assessment id that is not stored."""

    def __init__(self, assessment_id: str) -> None:
        super().__init__(f"Assessment {assessment_id!r} not found")
        self.assessment_id = assessment_id


class DuplicateAssessmentError(HeritageRiskError):
    """Raised when adding an assessment whose id is already stored."""

    def __init__(self, assessment_id: str, site_id: str) -> None:
        super().__init__(
            f"Assessment {assessment_id!r} already exists on site {site_id!r}; use update_assessment"
        )
        self.assessment_id = assessment_id
        self.site_id = site_id


class RepositoryError(HeritageRiskError):
    """
    Raised when the persistent store fails.

    The original exception is chained as __cause__.
    """

    def __init__(self, message: str, operation: str = "") -> None:
        super().__init__(message)
        self.operation = operation
