"""
Heritage Risk Engine - ABC Scoring.

============================================================
PURPOSE
============================================================
Pure scoring functions for the ABC method:

1. Validate the three components
2. Sum them into a magnitude (3-15)
3. Classify the magnitude into a priority
4. Escalate the priority for assessment uncertainty

============================================================
USAGE
============================================================
    from heritage_risk.scoring import calculate_risk
    from heritage_risk.types import UncertaintyLevel

    result = calculate_risk(4, 3, 2, UncertaintyLevel.MEDIUM)
    print(result.magnitude)           # 9
    print(result.base_priority)       # RiskPriority.HIGH
    print(result.adjusted_priority)   # RiskPriority.VERY_HIGH

============================================================
"""

from datetime import datetime
from typing import Any, Dict, Optional

from .types import (
    UNCERTAINTY_ESCALATION_STEPS,
    Assessment,
    RiskCalculation,
    RiskPriority,
    ThreatType,
    UncertaintyLevel,
    validate_component,
)


def calculate_magnitude(probability: Any, loss_of_value: Any, fraction_affected: Any) -> int:
    """
    Sum the ABC components into a magnitude.

    Args:
        probability: A component, likelihood of the threat (1-5)
        loss_of_value: B component, heritage value lost (1-5)
        fraction_affected: C component, share of the site affected (1-5)

    Returns:
        Magnitude (3-15)

    Raises:
        InvalidComponentError: If any component is not an integer in [1, 5]
    """
    return (
        validate_component("probability", probability)
        + validate_component("loss_of_value", loss_of_value)
        + validate_component("fraction_affected", fraction_affected)
    )


def categorize_priority(magnitude: int) -> RiskPriority:
    """
    Classify a magnitude into a priority level.

    Raises:
        InvalidComponentError: If magnitude is outside 3-15
    """
    return RiskPriority.from_magnitude(magnitude)


def apply_uncertainty_matrix(
    priority: RiskPriority,
    uncertainty_level: UncertaintyLevel,
) -> RiskPriority:
    """
    Escalate a priority to account for assessment uncertainty.

    Low uncertainty leaves the priority unchanged; higher
    uncertainty moves it up the scale, never past
    extremely-high and never down.
    """
    steps = UNCERTAINTY_ESCALATION_STEPS[UncertaintyLevel(uncertainty_level)]
    return RiskPriority(priority).escalate(steps)


def get_priority_weight(priority: RiskPriority) -> int:
    """Numeric weight for sorting, higher is more urgent."""
    return RiskPriority(priority).weight


def get_priority_description(priority: RiskPriority) -> str:
    """Human-readable guidance for a priority level."""
    return RiskPriority(priority).description


def calculate_risk(
    probability: int,
    loss_of_value: int,
    fraction_affected: int,
    uncertainty_level: UncertaintyLevel = UncertaintyLevel.LOW,
) -> RiskCalculation:
    """
    Score a complete set of ABC components.

    Returns:
        RiskCalculation with magnitude, base and adjusted priority
    """
    magnitude = calculate_magnitude(probability, loss_of_value, fraction_affected)
    base_priority = categorize_priority(magnitude)
    adjusted_priority = apply_uncertainty_matrix(base_priority, uncertainty_level)

    return RiskCalculation(
        magnitude=magnitude,
        base_priority=base_priority,
        adjusted_priority=adjusted_priority,
        description=adjusted_priority.description,
        weight=adjusted_priority.weight,
    )


def create_assessment(
    site_id: str,
    threat_type: ThreatType,
    probability: int,
    loss_of_value: int,
    fraction_affected: int,
    assessment_date: datetime,
    uncertainty_level: UncertaintyLevel = UncertaintyLevel.LOW,
    assessor: str = "",
    notes: str = "",
    assessment_id: Optional[str] = None,
) -> Assessment:
    """Build an Assessment, generating an id when none is given."""
    kwargs: Dict[str, Any] = {}
    if assessment_id is not None:
        kwargs["assessment_id"] = assessment_id
    return Assessment(
        site_id=site_id,
        threat_type=ThreatType(threat_type),
        probability=probability,
        loss_of_value=loss_of_value,
        fraction_affected=fraction_affected,
        assessment_date=assessment_date,
        uncertainty_level=UncertaintyLevel(uncertainty_level),
        assessor=assessor,
        notes=notes,
        **kwargs,
    )


# ============================================================
# COMPONENT GUIDANCE
# ============================================================


_COMPONENT_DESCRIPTIONS: Dict[str, Dict[int, str]] = {
    # Probability
    "A": {
        1: "Very unlikely to occur in the next 100 years",
        2: "Unlikely to occur in the next 100 years",
        3: "Possible to occur in the next 100 years",
        4: "Likely to occur in the next 100 years",
        5: "Very likely or certain to occur in the next 100 years",
    },
    # Loss of value
    "B": {
        1: "Negligible loss of heritage value",
        2: "Minor loss of heritage value",
        3: "Moderate loss of heritage value",
        4: "Major loss of heritage value",
        5: "Complete loss of heritage value",
    },
    # Fraction affected
    "C": {
        1: "Less than 1% of the site affected",
        2: "1-10% of the site affected",
        3: "10-50% of the site affected",
        4: "50-90% of the site affected",
        5: "More than 90% of the site affected",
    },
}


def get_component_description(component: str, value: int) -> str:
    """
    Guidance text for one ABC component score.

    Args:
        component: 'A' (probability), 'B' (loss of value) or 'C' (fraction affected)
        value: Score 1-5

    Returns:
        Description, or 'Invalid value' for unknown input
    """
    return _COMPONENT_DESCRIPTIONS.get(component.upper(), {}).get(value, "Invalid value")
