"""
Heritage Risk Engine - Trend Analyzer.

============================================================
PURPOSE
============================================================
Time-series projection of assessments and linear trend
analysis with a short forecast.

============================================================
METHOD
============================================================
1. Sort points by date
2. Ordinary least squares of value against the 0-based
   sequence index (observations are treated as equally
   spaced, not regressed on calendar time)
3. trend_strength = tanh(slope), always in [-1, 1]
4. |trend_strength| < 0.1 -> stable
5. Forecast the next 3 indices, one calendar month apart,
   clamped to be non-negative

Sequence-index forecasting assumes roughly monthly
assessments. Irregular cadences still forecast one month
per step.

============================================================
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import TrendConfig
from .dates import add_months
from .types import (
    Assessment,
    InsufficientDataError,
    ThreatType,
    TimeSeriesPoint,
    TrendDirection,
    TrendReport,
)


DEFAULT_METRIC = "risk_magnitude"


def generate_risk_time_series(
    assessments: Iterable[Assessment],
    site_id: Optional[str] = None,
    threat_type: Optional[ThreatType] = None,
    site_name: Optional[str] = None,
) -> List[TimeSeriesPoint]:
    """
    Project assessments onto their magnitude.

    Only the latest assessment per site and calendar day is
    kept. Points are returned oldest first.

    Args:
        assessments: Assessments to project
        site_id: Keep only this site
        threat_type: Keep only this threat
        site_name: Name attached to every point. Defaults to
            "Site <id>".
    """
    latest: dict = {}
    for assessment in assessments:
        if site_id is not None and assessment.site_id != site_id:
            continue
        if threat_type is not None and assessment.threat_type != ThreatType(threat_type):
            continue

        key = (assessment.site_id, assessment.assessment_date.date())
        current = latest.get(key)
        if current is None or current.assessment_date < assessment.assessment_date:
            latest[key] = assessment

    points = [
        TimeSeriesPoint(
            date=a.assessment_date,
            value=a.magnitude,
            site_id=a.site_id,
            site_name=site_name if site_name is not None else f"Site {a.site_id}",
            threat_type=a.threat_type,
            priority=a.priority,
        )
        for a in latest.values()
    ]
    return sorted(points, key=lambda p: p.date)


def fit_linear_trend(values: Sequence[float]) -> Tuple[float, float]:
    """
    Least-squares fit of values against their index.

    Returns:
        (slope, intercept)

    Raises:
        InsufficientDataError: With fewer than 2 values
    """
    n = len(values)
    if n < 2:
        raise InsufficientDataError(
            f"At least 2 data points required for trend analysis, got {n}"
        )

    sum_x = n * (n - 1) / 2
    sum_xx = (n - 1) * n * (2 * n - 1) / 6
    sum_y = math.fsum(values)
    sum_xy = math.fsum(i * y for i, y in enumerate(values))

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def classify_trend(trend_strength: float, stable_threshold: float = 0.1) -> TrendDirection:
    if abs(trend_strength) < stable_threshold:
        return TrendDirection.STABLE
    return TrendDirection.INCREASING if trend_strength > 0 else TrendDirection.DECREASING


def analyze_trend(
    data_points: Sequence[TimeSeriesPoint],
    metric: str = DEFAULT_METRIC,
    config: Optional[TrendConfig] = None,
) -> TrendReport:
    """
    Fit and classify a trend for one site's series.

    Args:
        data_points: Points for a single site. Not mutated.
        metric: Name of the metric being analysed
        config: Thresholds and forecast horizon

    Returns:
        TrendReport

    Raises:
        InsufficientDataError: With fewer than 2 points
    """
    config = config or TrendConfig()
    if len(data_points) < config.minimum_points:
        raise InsufficientDataError(
            f"At least {config.minimum_points} data points required "
            f"for trend analysis, got {len(data_points)}"
        )

    points = sorted(data_points, key=lambda p: p.date)
    values = [p.value for p in points]
    n = len(values)

    slope, intercept = fit_linear_trend(values)
    trend_strength = math.tanh(slope)
    trend = classify_trend(trend_strength, config.stable_threshold)

    average_value = math.fsum(values) / n
    first_value, last_value = values[0], values[-1]
    change_rate = ((last_value - first_value) / first_value) * 100 if first_value != 0 else 0.0

    first = points[0]
    last_date = points[-1].date
    forecast = [
        TimeSeriesPoint(
            date=add_months(last_date, step),
            value=max(0.0, intercept + slope * (n + step - 1)),
            site_id=first.site_id,
            site_name=first.site_name,
        )
        for step in range(1, config.forecast_horizon + 1)
    ]

    return TrendReport(
        metric=metric,
        site_id=first.site_id,
        site_name=first.site_name,
        data_points=points,
        trend=trend,
        trend_strength=trend_strength,
        average_value=round(average_value, config.round_digits),
        change_rate=round(change_rate, config.round_digits),
        forecast=forecast,
        slope=slope,
        intercept=intercept,
    )


class TrendAnalyzer:
    """Trend analysis bound to a configuration."""

    def __init__(self, config: Optional[TrendConfig] = None):
        self.config = config or TrendConfig()

    def time_series(
        self,
        assessments: Iterable[Assessment],
        site_id: Optional[str] = None,
        threat_type: Optional[ThreatType] = None,
        site_name: Optional[str] = None,
    ) -> List[TimeSeriesPoint]:
        return generate_risk_time_series(assessments, site_id, threat_type, site_name)

    def analyze(self, data_points: Sequence[TimeSeriesPoint], metric: str = DEFAULT_METRIC) -> TrendReport:
        return analyze_trend(data_points, metric, self.config)

    def analyze_site(
        self,
        assessments: Iterable[Assessment],
        site_id: str,
        site_name: Optional[str] = None,
        threat_type: Optional[ThreatType] = None,
        metric: str = DEFAULT_METRIC,
    ) -> TrendReport:
        """
        Project and analyse one site's magnitudes.

        Raises:
            InsufficientDataError: With fewer than 2 distinct days
        """
        points = self.time_series(assessments, site_id, threat_type, site_name)
        return self.analyze(points, metric)
