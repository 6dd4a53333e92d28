"""
Heritage Risk Engine - Configuration.

============================================================
PURPOSE
============================================================
Configuration dataclasses for derived-state caching and the
temporal analyzers. ABC priority thresholds and the uncertainty
table are fixed by the method and live in types.py.

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable configurations
- Defaults are the production values
- Passed explicitly to the components that need them

============================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict


# ============================================================
# DERIVED STATE CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class DerivedStateConfig:
    """
    Derived-state caching and recency rules.

    cache_ttl_seconds: age after which a cached site projection
        is recomputed. 0 disables caching.
    recency_window_years: assessments older than this do not
        contribute to a site's active threats.
    """

    cache_ttl_seconds: float = 300.0          # 5 minutes
    recency_window_years: int = 2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "recency_window_years": self.recency_window_years,
        }


# ============================================================
# TREND CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class TrendConfig:
    """
    Trend Analyzer parameters.

    A series is stable when |tanh(slope)| < stable_threshold.
    Forecast points are one month apart.
    """

    stable_threshold: float = 0.1
    forecast_horizon: int = 3                 # months
    round_digits: int = 2
    minimum_points: int = 2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stable_threshold": self.stable_threshold,
            "forecast_horizon": self.forecast_horizon,
            "round_digits": self.round_digits,
            "minimum_points": self.minimum_points,
        }


@dataclass(frozen=True)
class EvolutionConfig:
    """
    Threat Evolution Analyzer parameters.

    high_risk_magnitude: entries at or above this magnitude
        (very-high and above) form critical periods.
    change_threshold: first-to-last magnitude change beyond
        which a threat is escalating or improving.
    """

    high_risk_magnitude: int = 10
    change_threshold: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "high_risk_magnitude": self.high_risk_magnitude,
            "change_threshold": self.change_threshold,
        }


# ============================================================
# AGGREGATE CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class HeritageRiskConfig:
    """Complete engine configuration."""

    derived_state: DerivedStateConfig = field(default_factory=DerivedStateConfig)
    trend: TrendConfig = field(default_factory=TrendConfig)
    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)

    engine_version: str = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "derived_state": self.derived_state.to_dict(),
            "trend": self.trend.to_dict(),
            "evolution": self.evolution.to_dict(),
            "engine_version": self.engine_version,
        }


def get_default_config() -> HeritageRiskConfig:
    """Default configuration."""
    return HeritageRiskConfig()


def get_uncached_config() -> HeritageRiskConfig:
    """
    Configuration with derived-state caching disabled.

    Every read recomputes site profiles from the repository.
    Useful for batch jobs and tests.
    """
    return HeritageRiskConfig(
        derived_state=DerivedStateConfig(cache_ttl_seconds=0.0),
    )
