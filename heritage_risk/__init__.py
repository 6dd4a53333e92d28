"""
Heritage Risk Engine - Package.

============================================================
PURPOSE
============================================================
Risk analytics for cultural heritage sites, based on the
ABC method of heritage risk assessment.

============================================================
WHAT IT IS
============================================================
- Deterministic ABC scoring of individual threats
- Site risk profiles derived from stored assessments
- Time-series trend, comparison and threat evolution reports

============================================================
WHAT IT IS NOT
============================================================
- NOT a user interface, API or authentication layer
- NOT a source of authored risk profiles (profiles are
  always derived)

============================================================
SCORING
============================================================
A (probability), B (loss of value), C (fraction affected)
each 1-5. Magnitude = A + B + C, 3-15.

Classification:
- 13-15: extremely-high
- 10-12: very-high
- 7-9:   high
- 4-6:   medium-high
- 3:     low

============================================================
USAGE
============================================================
    from datetime import datetime, timezone
    from heritage_risk import (
        DerivedStateManager,
        InMemoryAssessmentRepository,
        Site,
        ThreatType,
        create_assessment,
    )

    repository = InMemoryAssessmentRepository(
        sites=[Site(site_id="petra", name="Petra")]
    )
    manager = DerivedStateManager(repository)

    await manager.add_assessment(
        create_assessment(
            site_id="petra",
            threat_type=ThreatType.FLOODING,
            probability=4,
            loss_of_value=4,
            fraction_affected=3,
            assessment_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
    )

    site = await manager.get_site("petra")
    print(f"Overall risk: {site.risk_profile.overall_risk.value}")

============================================================
"""

# Types
from .types import (
    # Constants
    MIN_COMPONENT,
    MAX_COMPONENT,
    MIN_MAGNITUDE,
    MAX_MAGNITUDE,

    # Enums
    ThreatType,
    RiskPriority,
    UncertaintyLevel,
    SiteStatus,
    TrendDirection,
    OverallTrend,
    EvolutionDirection,

    # Domain types
    Assessment,
    RiskCalculation,
    Location,
    RiskProfile,
    Site,

    # Report types
    TimeSeriesPoint,
    TrendReport,
    TimeRange,
    SiteCorrelation,
    ComparativeReport,
    TimelineEntry,
    CriticalPeriod,
    ThreatEvolutionReport,

    # Exceptions
    HeritageRiskError,
    InvalidComponentError,
    InsufficientDataError,
    NoDataError,
    ReferentialIntegrityError,
    AssessmentNotFoundError,
    DuplicateAssessmentError,
    RepositoryError,
)

# Configuration
from .config import (
    DerivedStateConfig,
    TrendConfig,
    EvolutionConfig,
    HeritageRiskConfig,
    get_default_config,
    get_uncached_config,
)

# Scoring
from .scoring import (
    calculate_magnitude,
    categorize_priority,
    apply_uncertainty_matrix,
    get_priority_weight,
    get_priority_description,
    calculate_risk,
    create_assessment,
    get_component_description,
)

# Derived state
from .cache import RiskProfileCache
from .derived_state import (
    DerivedStateManager,
    derive_risk_profile,
)

# Analyzers
from .trends import (
    TrendAnalyzer,
    generate_risk_time_series,
    analyze_trend,
)
from .comparative import (
    ComparativeAnalyzer,
    perform_comparative_analysis,
    calculate_correlation,
)
from .evolution import (
    ThreatEvolutionAnalyzer,
    analyze_threat_evolution,
)
from .statistics import (
    AssessmentStatistics,
    DashboardStats,
    AssessmentSearchCriteria,
    SiteSearchCriteria,
    get_assessment_statistics,
    get_dashboard_stats,
    get_recent_assessments,
    search_assessments,
    search_sites,
)

# Persistence
from .repository import (
    AssessmentRepository,
    InMemoryAssessmentRepository,
    SqlAlchemyAssessmentRepository,
)


__all__ = [
    # Constants
    "MIN_COMPONENT",
    "MAX_COMPONENT",
    "MIN_MAGNITUDE",
    "MAX_MAGNITUDE",

    # Enums
    "ThreatType",
    "RiskPriority",
    "UncertaintyLevel",
    "SiteStatus",
    "TrendDirection",
    "OverallTrend",
    "EvolutionDirection",

    # Domain types
    "Assessment",
    "RiskCalculation",
    "Location",
    "RiskProfile",
    "Site",

    # Report types
    "TimeSeriesPoint",
    "TrendReport",
    "TimeRange",
    "SiteCorrelation",
    "ComparativeReport",
    "TimelineEntry",
    "CriticalPeriod",
    "ThreatEvolutionReport",

    # Exceptions
    "HeritageRiskError",
    "InvalidComponentError",
    "InsufficientDataError",
    "NoDataError",
    "ReferentialIntegrityError",
    "AssessmentNotFoundError",
    "DuplicateAssessmentError",
    "RepositoryError",

    # Configuration
    "DerivedStateConfig",
    "TrendConfig",
    "EvolutionConfig",
    "HeritageRiskConfig",
    "get_default_config",
    "get_uncached_config",

    # Scoring
    "calculate_magnitude",
    "categorize_priority",
    "apply_uncertainty_matrix",
    "get_priority_weight",
    "get_priority_description",
    "calculate_risk",
    "create_assessment",
    "get_component_description",

    # Derived state
    "RiskProfileCache",
    "DerivedStateManager",
    "derive_risk_profile",

    # Analyzers
    "TrendAnalyzer",
    "generate_risk_time_series",
    "analyze_trend",
    "ComparativeAnalyzer",
    "perform_comparative_analysis",
    "calculate_correlation",
    "ThreatEvolutionAnalyzer",
    "analyze_threat_evolution",
    "AssessmentStatistics",
    "DashboardStats",
    "AssessmentSearchCriteria",
    "SiteSearchCriteria",
    "get_assessment_statistics",
    "get_dashboard_stats",
    "get_recent_assessments",
    "search_assessments",
    "search_sites",

    # Persistence
    "AssessmentRepository",
    "InMemoryAssessmentRepository",
    "SqlAlchemyAssessmentRepository",
]


__version__ = "1.0.0"
