"""
Tests for the Threat Evolution Analyzer.

============================================================
PURPOSE
============================================================
Tests for threat timelines, evolution direction and
critical period detection.

============================================================
"""

from datetime import datetime, timezone

import pytest

from heritage_risk.config import EvolutionConfig
from heritage_risk.evolution import (
    ThreatEvolutionAnalyzer,
    analyze_threat_evolution,
)
from heritage_risk.types import (
    EvolutionDirection,
    NoDataError,
    RiskPriority,
    ThreatType,
)


def utc(year, month, day):
    return datetime(year, month, day, tzinfo=timezone.utc)


# ============================================================
# FIXTURES
# ============================================================


@pytest.fixture
def timeline(make_assessment):
    """Flooding assessments at site-1, one per month."""

    def _timeline(magnitudes, threat_type=ThreatType.FLOODING, site_id="site-1"):
        return [
            make_assessment(
                site_id=site_id,
                threat_type=threat_type,
                magnitude=m,
                assessment_date=utc(2024, i + 1, 1),
            )
            for i, m in enumerate(magnitudes)
        ]

    return _timeline


# ============================================================
# EVOLUTION TESTS
# ============================================================


class TestEvolutionDirection:
    """Tests for escalating / improving / stable classification."""

    def test_escalating_scenario(self, timeline):
        """Test magnitudes 9 then 12 escalate."""
        report = analyze_threat_evolution(timeline([9, 12]), "site-1", ThreatType.FLOODING)

        assert report.evolution == EvolutionDirection.ESCALATING
        assert [e.magnitude for e in report.timeline] == [9, 12]
        assert report.timeline[1].priority == RiskPriority.VERY_HIGH

    def test_improving(self, timeline):
        report = analyze_threat_evolution(timeline([12, 8]), "site-1", ThreatType.FLOODING)
        assert report.evolution == EvolutionDirection.IMPROVING

    def test_change_of_one_is_stable(self, timeline):
        """Test a change of exactly 1 is not enough."""
        assert analyze_threat_evolution(timeline([8, 9]), "site-1", "flooding").evolution == EvolutionDirection.STABLE
        assert analyze_threat_evolution(timeline([9, 8]), "site-1", "flooding").evolution == EvolutionDirection.STABLE

    def test_change_of_two(self, timeline):
        report = analyze_threat_evolution(timeline([7, 9]), "site-1", ThreatType.FLOODING)
        assert report.evolution == EvolutionDirection.ESCALATING

    def test_only_endpoints_matter(self, timeline):
        report = analyze_threat_evolution(timeline([6, 15, 3, 7]), "site-1", ThreatType.FLOODING)
        assert report.evolution == EvolutionDirection.STABLE

    def test_single_entry_stable(self, timeline):
        report = analyze_threat_evolution(timeline([15]), "site-1", ThreatType.FLOODING)

        assert report.evolution == EvolutionDirection.STABLE
        assert len(report.timeline) == 1

    def test_no_data(self, timeline):
        """Test other threats and sites do not count."""
        assessments = timeline([9, 12], threat_type=ThreatType.LOOTING)

        with pytest.raises(NoDataError):
            analyze_threat_evolution(assessments, "site-1", ThreatType.FLOODING)
        with pytest.raises(NoDataError):
            analyze_threat_evolution(assessments, "site-2", ThreatType.LOOTING)

    def test_timeline_sorted(self, timeline):
        assessments = list(reversed(timeline([4, 8, 12])))

        report = analyze_threat_evolution(assessments, "site-1", ThreatType.FLOODING)

        assert [e.date for e in report.timeline] == [utc(2024, 1, 1), utc(2024, 2, 1), utc(2024, 3, 1)]

    def test_site_name(self, timeline):
        default = analyze_threat_evolution(timeline([4]), "site-1", ThreatType.FLOODING)
        named = analyze_threat_evolution(timeline([4]), "site-1", ThreatType.FLOODING, site_name="Petra")

        assert default.site_name == "Site site-1"
        assert named.site_name == "Petra"


# ============================================================
# CRITICAL PERIOD TESTS
# ============================================================


class TestCriticalPeriods:
    """Tests for critical period detection."""

    def test_no_high_risk(self, timeline):
        report = analyze_threat_evolution(timeline([4, 9, 7]), "site-1", ThreatType.FLOODING)
        assert report.critical_periods == []

    def test_ongoing_period_at_end(self, timeline):
        """Test both entries >= 10 form one open period."""
        report = analyze_threat_evolution(timeline([10, 12]), "site-1", ThreatType.FLOODING)

        assert len(report.critical_periods) == 1
        period = report.critical_periods[0]
        assert period.start == utc(2024, 1, 1)
        assert period.end == utc(2024, 2, 1)
        assert period.peak_magnitude == 12
        assert period.ongoing is True
        assert period.reason == "Ongoing high risk period for flooding"

    def test_closed_period_ends_on_previous_entry(self, timeline):
        """Test end is the last high entry, not the first low one."""
        report = analyze_threat_evolution(timeline([5, 11, 13, 6]), "site-1", ThreatType.FLOODING)

        assert len(report.critical_periods) == 1
        period = report.critical_periods[0]
        assert period.start == utc(2024, 2, 1)
        assert period.end == utc(2024, 3, 1)
        assert period.peak_magnitude == 13
        assert period.ongoing is False
        assert period.reason == "High risk period for flooding"

    def test_multiple_periods(self, timeline):
        report = analyze_threat_evolution(timeline([10, 4, 14, 15, 3, 12]), "site-1", ThreatType.FLOODING)

        periods = report.critical_periods
        assert [(p.start.month, p.end.month) for p in periods] == [(1, 1), (3, 4), (6, 6)]
        assert [p.peak_magnitude for p in periods] == [10, 15, 12]
        assert [p.ongoing for p in periods] == [False, False, True]

    def test_periods_within_timeline(self, timeline):
        """Test every period lies inside the timeline and start <= end."""
        report = analyze_threat_evolution(timeline([11, 3, 10, 10, 9]), "site-1", ThreatType.FLOODING)
        first, last = report.timeline[0].date, report.timeline[-1].date

        for period in report.critical_periods:
            assert first <= period.start <= period.end <= last

    def test_custom_floor(self, timeline):
        config = EvolutionConfig(high_risk_magnitude=13)
        report = analyze_threat_evolution(timeline([12, 13]), "site-1", ThreatType.FLOODING, config=config)

        assert len(report.critical_periods) == 1
        assert report.critical_periods[0].start == utc(2024, 2, 1)

    def test_analyzer_and_to_dict(self, timeline):
        report = ThreatEvolutionAnalyzer().analyze(timeline([9, 12]), "site-1", ThreatType.FLOODING, "Petra")
        data = report.to_dict()

        assert data["evolution"] == "escalating"
        assert data["threat_type"] == "flooding"
        assert data["critical_periods"][0]["peak_magnitude"] == 12
        assert data["critical_periods"][0]["ongoing"] is True
