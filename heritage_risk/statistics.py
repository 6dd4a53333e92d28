"""
Heritage Risk Engine - Assessment Statistics.

============================================================
PURPOSE
============================================================
Summary counts and filtering over assessments and sites,
as consumed by dashboards and report screens.

All functions are pure; callers pass "now" explicitly.

============================================================
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .dates import add_months
from .types import Assessment, RiskPriority, Site, ThreatType


AT_RISK_PRIORITIES = (RiskPriority.HIGH, RiskPriority.VERY_HIGH, RiskPriority.EXTREMELY_HIGH)


@dataclass(frozen=True)
class AssessmentStatistics:
    total_assessments: int
    assessments_by_site: Dict[str, int]
    assessments_by_threat: Dict[str, int]
    assessments_by_priority: Dict[str, int]
    recent_assessments: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_assessments": self.total_assessments,
            "assessments_by_site": dict(self.assessments_by_site),
            "assessments_by_threat": dict(self.assessments_by_threat),
            "assessments_by_priority": dict(self.assessments_by_priority),
            "recent_assessments": self.recent_assessments,
        }


@dataclass(frozen=True)
class DashboardStats:
    total_sites: int
    sites_at_risk: int
    total_assessments: int
    recent_assessments: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_sites": self.total_sites,
            "sites_at_risk": self.sites_at_risk,
            "total_assessments": self.total_assessments,
            "recent_assessments": self.recent_assessments,
        }


@dataclass(frozen=True)
class AssessmentSearchCriteria:
    """All criteria are optional and combined with AND."""

    site_id: Optional[str] = None
    threat_type: Optional[ThreatType] = None
    priority: Optional[RiskPriority] = None
    assessor: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    search_term: Optional[str] = None
    site_ids: Optional[List[str]] = None


@dataclass(frozen=True)
class SiteSearchCriteria:
    """All criteria are optional and combined with AND."""

    country: Optional[str] = None
    risk_level: Optional[RiskPriority] = None
    search_term: Optional[str] = None


def _recent(assessments: Iterable[Assessment], now: datetime) -> List[Assessment]:
    one_month_ago = add_months(now, -1)
    return [a for a in assessments if a.assessment_date >= one_month_ago]


def get_assessment_statistics(assessments: Iterable[Assessment], now: datetime) -> AssessmentStatistics:
    """Counts by site, threat and priority plus last-month activity."""
    assessments = list(assessments)
    by_site: Dict[str, int] = {}
    by_threat: Dict[str, int] = {}
    by_priority: Dict[str, int] = {}

    for a in assessments:
        by_site[a.site_id] = by_site.get(a.site_id, 0) + 1
        by_threat[a.threat_type.value] = by_threat.get(a.threat_type.value, 0) + 1
        by_priority[a.priority.value] = by_priority.get(a.priority.value, 0) + 1

    return AssessmentStatistics(
        total_assessments=len(assessments),
        assessments_by_site=by_site,
        assessments_by_threat=by_threat,
        assessments_by_priority=by_priority,
        recent_assessments=len(_recent(assessments, now)),
    )


def get_dashboard_stats(
    sites: Iterable[Site],
    assessments: Iterable[Assessment],
    now: datetime,
) -> DashboardStats:
    """
    Headline numbers for a dashboard.

    A site is at risk when its overall risk is high or above.
    `sites` should come from DerivedStateManager.get_sites() so
    their profiles are current.
    """
    sites = list(sites)
    assessments = list(assessments)
    return DashboardStats(
        total_sites=len(sites),
        sites_at_risk=sum(1 for s in sites if s.risk_profile.overall_risk in AT_RISK_PRIORITIES),
        total_assessments=len(assessments),
        recent_assessments=len(_recent(assessments, now)),
    )


def get_recent_assessments(assessments: Iterable[Assessment], limit: int = 10) -> List[Assessment]:
    """The `limit` most recent assessments, newest first."""
    return sorted(assessments, key=lambda a: a.assessment_date, reverse=True)[:limit]


def search_assessments(
    assessments: Iterable[Assessment],
    criteria: AssessmentSearchCriteria,
) -> List[Assessment]:
    """
    Filter assessments, newest first.

    assessor and search_term match case-insensitively as
    substrings; search_term looks at notes and assessor.
    """
    results = []
    assessor = criteria.assessor.lower() if criteria.assessor else None
    term = criteria.search_term.lower() if criteria.search_term else None

    for a in assessments:
        if criteria.site_id is not None and a.site_id != criteria.site_id:
            continue
        if criteria.site_ids is not None and a.site_id not in criteria.site_ids:
            continue
        if criteria.threat_type is not None and a.threat_type != ThreatType(criteria.threat_type):
            continue
        if criteria.priority is not None and a.priority != RiskPriority(criteria.priority):
            continue
        if assessor and assessor not in a.assessor.lower():
            continue
        if criteria.start is not None and a.assessment_date < criteria.start:
            continue
        if criteria.end is not None and a.assessment_date > criteria.end:
            continue
        if term and term not in a.notes.lower() and term not in a.assessor.lower():
            continue
        results.append(a)

    return sorted(results, key=lambda a: a.assessment_date, reverse=True)


def search_sites(sites: Iterable[Site], criteria: SiteSearchCriteria) -> List[Site]:
    """
    Filter sites, keeping their input order.

    country and search_term match case-insensitively as
    substrings; search_term looks at name, description and
    significance. A site without a location never matches a
    country. risk_level is compared with the current overall
    risk, so pass sites from DerivedStateManager.get_sites().
    """
    results = []
    country = criteria.country.lower() if criteria.country else None
    term = criteria.search_term.lower() if criteria.search_term else None
    risk_level = RiskPriority(criteria.risk_level) if criteria.risk_level is not None else None

    for site in sites:
        if country and (site.location is None or country not in site.location.country.lower()):
            continue
        if risk_level is not None and site.risk_profile.overall_risk != risk_level:
            continue
        if term and not any(
            term in text.lower() for text in (site.name, site.description, site.significance)
        ):
            continue
        results.append(site)

    return results
