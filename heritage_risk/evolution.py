"""
Heritage Risk Engine - Threat Evolution Analyzer.

============================================================
PURPOSE
============================================================
Follows a single threat at a single site through time.

- evolution: first vs last magnitude
  (> +1 escalating, < -1 improving, otherwise stable)
- critical periods: maximal runs of entries with magnitude
  >= 10 (very-high and above)

A period closes on the first entry below the floor; its end
is the date of the entry before it. A period still open at
the end of the timeline is closed at the last date and
marked ongoing.

============================================================
"""

from typing import Iterable, List, Optional

from .config import EvolutionConfig
from .types import (
    Assessment,
    CriticalPeriod,
    EvolutionDirection,
    NoDataError,
    ThreatEvolutionReport,
    ThreatType,
    TimelineEntry,
)


def classify_evolution(timeline: List[TimelineEntry], change_threshold: int = 1) -> EvolutionDirection:
    if len(timeline) < 2:
        return EvolutionDirection.STABLE

    change = timeline[-1].magnitude - timeline[0].magnitude
    if change > change_threshold:
        return EvolutionDirection.ESCALATING
    if change < -change_threshold:
        return EvolutionDirection.IMPROVING
    return EvolutionDirection.STABLE


def detect_critical_periods(
    timeline: List[TimelineEntry],
    threat_type: ThreatType,
    high_risk_magnitude: int = 10,
) -> List[CriticalPeriod]:
    """Scan an ordered timeline for runs at or above the floor."""
    periods: List[CriticalPeriod] = []
    current: List[TimelineEntry] = []

    for index, entry in enumerate(timeline):
        if entry.magnitude >= high_risk_magnitude:
            current.append(entry)
            continue

        if current:
            periods.append(
                CriticalPeriod(
                    start=current[0].date,
                    end=timeline[index - 1].date,
                    peak_magnitude=max(e.magnitude for e in current),
                    reason=f"High risk period for {threat_type.value}",
                )
            )
            current = []

    if current:
        periods.append(
            CriticalPeriod(
                start=current[0].date,
                end=timeline[-1].date,
                peak_magnitude=max(e.magnitude for e in current),
                reason=f"Ongoing high risk period for {threat_type.value}",
                ongoing=True,
            )
        )

    return periods


def analyze_threat_evolution(
    assessments: Iterable[Assessment],
    site_id: str,
    threat_type: ThreatType,
    site_name: Optional[str] = None,
    config: Optional[EvolutionConfig] = None,
) -> ThreatEvolutionReport:
    """
    Build the timeline of one threat at one site.

    Args:
        assessments: Assessments to draw from; other sites and
            threats are ignored
        site_id: Site to analyse
        threat_type: Threat to analyse
        site_name: Display name, defaults to "Site <id>"
        config: Floors and thresholds

    Raises:
        NoDataError: If no assessment matches
    """
    config = config or EvolutionConfig()
    threat_type = ThreatType(threat_type)

    matching = sorted(
        (a for a in assessments if a.site_id == site_id and a.threat_type == threat_type),
        key=lambda a: a.assessment_date,
    )
    if not matching:
        raise NoDataError(f"No assessments found for threat {threat_type.value} at site {site_id}")

    timeline = [
        TimelineEntry(
            date=a.assessment_date,
            magnitude=a.magnitude,
            priority=a.priority,
            assessor=a.assessor,
            notes=a.notes,
        )
        for a in matching
    ]

    return ThreatEvolutionReport(
        threat_type=threat_type,
        site_id=site_id,
        site_name=site_name if site_name is not None else f"Site {site_id}",
        timeline=timeline,
        evolution=classify_evolution(timeline, config.change_threshold),
        critical_periods=detect_critical_periods(timeline, threat_type, config.high_risk_magnitude),
    )


class ThreatEvolutionAnalyzer:
    """Threat evolution analysis bound to a configuration."""

    def __init__(self, config: Optional[EvolutionConfig] = None):
        self.config = config or EvolutionConfig()

    def analyze(
        self,
        assessments: Iterable[Assessment],
        site_id: str,
        threat_type: ThreatType,
        site_name: Optional[str] = None,
    ) -> ThreatEvolutionReport:
        return analyze_threat_evolution(assessments, site_id, threat_type, site_name, self.config)
