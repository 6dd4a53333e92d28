"""
Heritage Risk Engine - Comparative Analyzer.

============================================================
PURPOSE
============================================================
Runs the Trend Analyzer per site and compares the results.

============================================================
AGGREGATION
============================================================
- decreasing risk counts as improving
- increasing risk counts as deteriorating
- whichever of improving/deteriorating strictly exceeds both
  other counts decides the overall trend, otherwise mixed

Correlations are Pearson coefficients over the sites' raw
values paired by index, truncated to the shorter series.

============================================================
"""

import logging
import math
from typing import Iterable, List, Optional, Sequence

from .config import TrendConfig
from .trends import analyze_trend, generate_risk_time_series
from .types import (
    Assessment,
    ComparativeReport,
    OverallTrend,
    Site,
    SiteCorrelation,
    TimeRange,
    TrendDirection,
    TrendReport,
)


logger = logging.getLogger(__name__)

COMPARATIVE_METRIC = "average_risk_magnitude"


def calculate_correlation(series_a: Sequence[float], series_b: Sequence[float]) -> float:
    """
    Pearson correlation coefficient of two series.

    Values are paired by index up to the shorter length.
    Returns 0.0 when fewer than 2 pairs exist or either
    series has zero variance.
    """
    n = min(len(series_a), len(series_b))
    if n < 2:
        return 0.0

    a = list(series_a[:n])
    b = list(series_b[:n])

    sum_a = math.fsum(a)
    sum_b = math.fsum(b)
    sum_ab = math.fsum(x * y for x, y in zip(a, b))
    sum_aa = math.fsum(x * x for x in a)
    sum_bb = math.fsum(y * y for y in b)

    numerator = n * sum_ab - sum_a * sum_b
    variance_a = n * sum_aa - sum_a * sum_a
    variance_b = n * sum_bb - sum_b * sum_b
    if variance_a <= 0 or variance_b <= 0:
        return 0.0

    correlation = numerator / math.sqrt(variance_a * variance_b)
    return max(-1.0, min(1.0, correlation))


def classify_overall_trend(reports: Iterable[TrendReport]) -> OverallTrend:
    reports = list(reports)
    improving = sum(1 for r in reports if r.trend == TrendDirection.DECREASING)
    deteriorating = sum(1 for r in reports if r.trend == TrendDirection.INCREASING)
    stable = sum(1 for r in reports if r.trend == TrendDirection.STABLE)

    if improving > deteriorating and improving > stable:
        return OverallTrend.IMPROVING
    if deteriorating > improving and deteriorating > stable:
        return OverallTrend.DETERIORATING
    return OverallTrend.MIXED


def perform_comparative_analysis(
    assessments: Iterable[Assessment],
    sites: Iterable[Site],
    metric: str = COMPARATIVE_METRIC,
    config: Optional[TrendConfig] = None,
) -> ComparativeReport:
    """
    Compare risk trends across sites.

    Sites with fewer than 2 assessments, or fewer than 2
    distinct assessment days, are skipped.

    Args:
        assessments: Assessments of all sites
        sites: Sites to compare, in report order
        metric: Metric name carried into each TrendReport
        config: Trend configuration

    Returns:
        ComparativeReport
    """
    config = config or TrendConfig()
    assessments = list(assessments)

    reports: List[TrendReport] = []
    for site in sites:
        site_assessments = [a for a in assessments if a.site_id == site.site_id]
        if len(site_assessments) < config.minimum_points:
            continue

        series = generate_risk_time_series(site_assessments, site.site_id, site_name=site.name)
        if len(series) < config.minimum_points:
            continue

        reports.append(analyze_trend(series, metric, config))

    correlations: List[SiteCorrelation] = []
    for i in range(len(reports)):
        for j in range(i + 1, len(reports)):
            report_a, report_b = reports[i], reports[j]
            correlation = calculate_correlation(
                [p.value for p in report_a.data_points],
                [p.value for p in report_b.data_points],
            )
            correlations.append(
                SiteCorrelation(
                    site_a=report_a.site_id,
                    site_b=report_b.site_id,
                    correlation=round(correlation, config.round_digits),
                    site_a_name=report_a.site_name,
                    site_b_name=report_b.site_name,
                )
            )

    all_dates = [p.date for r in reports for p in r.data_points]
    time_range = TimeRange(start=min(all_dates), end=max(all_dates)) if all_dates else None

    overall_trend = classify_overall_trend(reports)
    logger.debug(
        f"Comparative analysis over {len(reports)} sites: {overall_trend.value}"
    )

    return ComparativeReport(
        metric=metric,
        time_range=time_range,
        sites=reports,
        overall_trend=overall_trend,
        correlations=correlations,
    )


class ComparativeAnalyzer:
    """Comparative analysis bound to a trend configuration."""

    def __init__(self, config: Optional[TrendConfig] = None):
        self.config = config or TrendConfig()

    def analyze(
        self,
        assessments: Iterable[Assessment],
        sites: Iterable[Site],
        metric: str = COMPARATIVE_METRIC,
    ) -> ComparativeReport:
        return perform_comparative_analysis(assessments, sites, metric, self.config)

    @staticmethod
    def correlation(series_a: Sequence[float], series_b: Sequence[float]) -> float:
        return calculate_correlation(series_a, series_b)
