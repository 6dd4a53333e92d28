"""
Tests for the Comparative Analyzer.

============================================================
PURPOSE
============================================================
Tests for cross-site trend aggregation and correlation.

============================================================
"""

from datetime import datetime, timezone

import pytest

from heritage_risk.comparative import (
    ComparativeAnalyzer,
    calculate_correlation,
    classify_overall_trend,
    perform_comparative_analysis,
)
from heritage_risk.types import OverallTrend, Site, TrendDirection


def utc(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


# ============================================================
# FIXTURES
# ============================================================


@pytest.fixture
def sites():
    return [
        Site(site_id="site-1", name="Petra"),
        Site(site_id="site-2", name="Angkor Wat"),
        Site(site_id="site-3", name="Machu Picchu"),
    ]


@pytest.fixture
def build(make_assessment):
    """Build monthly assessments for a site from a list of magnitudes."""

    def _build(site_id, magnitudes, start_month=1):
        return [
            make_assessment(site_id=site_id, magnitude=m, assessment_date=utc(2024, start_month + i, 1))
            for i, m in enumerate(magnitudes)
        ]

    return _build


# ============================================================
# CORRELATION TESTS
# ============================================================


class TestCalculateCorrelation:
    """Tests for calculate_correlation."""

    def test_self_correlation(self):
        assert calculate_correlation([4, 8, 12], [4, 8, 12]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert calculate_correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

    def test_symmetric(self):
        a, b = [3, 7, 5, 9], [4, 4, 10, 8]
        assert calculate_correlation(a, b) == calculate_correlation(b, a)

    def test_bounded(self):
        value = calculate_correlation([3, 7, 5, 9, 2], [4, 4, 10, 8, 15])
        assert -1.0 <= value <= 1.0

    def test_zero_variance(self):
        """Test a constant series correlates at 0."""
        assert calculate_correlation([5, 5, 5], [1, 2, 3]) == 0.0

    def test_too_few_pairs(self):
        assert calculate_correlation([5], [1, 2, 3]) == 0.0
        assert calculate_correlation([], []) == 0.0

    def test_truncated_to_shorter(self):
        """Test values are paired by index up to the shorter series."""
        assert calculate_correlation([1, 2, 3], [2, 4, 6, 100]) == pytest.approx(1.0)


# ============================================================
# AGGREGATION TESTS
# ============================================================


class TestComparativeAnalysis:
    """Tests for perform_comparative_analysis."""

    def test_deteriorating(self, sites, build):
        """Test increasing risk dominating."""
        assessments = build("site-1", [4, 8, 12]) + build("site-2", [3, 6, 9])

        report = perform_comparative_analysis(assessments, sites)

        assert report.overall_trend == OverallTrend.DETERIORATING
        assert [r.site_id for r in report.sites] == ["site-1", "site-2"]
        assert report.metric == "average_risk_magnitude"

    def test_improving(self, sites, build):
        assessments = build("site-1", [12, 8, 4]) + build("site-2", [9, 6, 3])

        report = perform_comparative_analysis(assessments, sites)

        assert report.overall_trend == OverallTrend.IMPROVING

    def test_tie_is_mixed(self, sites, build):
        assessments = build("site-1", [4, 8, 12]) + build("site-2", [12, 8, 4])

        report = perform_comparative_analysis(assessments, sites)

        assert report.overall_trend == OverallTrend.MIXED

    def test_stable_majority_is_mixed(self, sites, build):
        """Test a direction must strictly exceed the stable count."""
        assessments = (
            build("site-1", [4, 8, 12])
            + build("site-2", [6, 6, 6])
            + build("site-3", [9, 9, 9])
        )

        report = perform_comparative_analysis(assessments, sites)

        assert [r.trend for r in report.sites] == [
            TrendDirection.INCREASING,
            TrendDirection.STABLE,
            TrendDirection.STABLE,
        ]
        assert report.overall_trend == OverallTrend.MIXED

    def test_sites_with_too_little_data_skipped(self, sites, build, make_assessment):
        """Test single assessments and single-day series are skipped."""
        assessments = (
            build("site-1", [4, 8, 12])
            + build("site-2", [5])
            + [
                make_assessment(site_id="site-3", assessment_date=utc(2024, 1, 1, 8)),
                make_assessment(site_id="site-3", assessment_date=utc(2024, 1, 1, 9)),
            ]
        )

        report = perform_comparative_analysis(assessments, sites)

        assert [r.site_id for r in report.sites] == ["site-1"]
        assert report.correlations == []

    def test_site_names_attached(self, sites, build):
        report = perform_comparative_analysis(build("site-1", [4, 8]), sites)

        assert report.sites[0].site_name == "Petra"

    def test_correlations_every_pair(self, sites, build):
        assessments = build("site-1", [4, 8, 12]) + build("site-2", [3, 6, 9]) + build("site-3", [12, 8, 4])

        report = perform_comparative_analysis(assessments, sites)

        assert len(report.correlations) == 3
        assert report.correlation_between("site-1", "site-2") == 1.0
        assert report.correlation_between("site-3", "site-1") == -1.0
        first = report.correlations[0]
        assert (first.site_a_name, first.site_b_name) == ("Petra", "Angkor Wat")

    def test_time_range(self, sites, build):
        assessments = build("site-1", [4, 8, 12], start_month=2) + build("site-2", [3, 6], start_month=1)

        report = perform_comparative_analysis(assessments, sites)

        assert report.time_range.start == utc(2024, 1, 1)
        assert report.time_range.end == utc(2024, 4, 1)

    def test_no_qualifying_sites(self, sites):
        report = perform_comparative_analysis([], sites)

        assert report.sites == []
        assert report.time_range is None
        assert report.overall_trend == OverallTrend.MIXED
        assert report.to_dict()["time_range"] is None

    def test_classify_overall_trend_empty(self):
        assert classify_overall_trend([]) == OverallTrend.MIXED

    def test_analyzer_wrapper(self, sites, build):
        analyzer = ComparativeAnalyzer()
        report = analyzer.analyze(build("site-1", [12, 8, 4]), sites, metric="custom")

        assert report.metric == "custom"
        assert analyzer.correlation([1, 2], [2, 4]) == pytest.approx(1.0)
