"""Shared fixtures for heritage risk tests."""

from datetime import datetime, timezone
from typing import Callable, Optional

import pytest

from heritage_risk.types import (
    Assessment,
    Site,
    ThreatType,
    UncertaintyLevel,
)


def _utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def make_assessment() -> Callable[..., Assessment]:
    """
    Factory for assessments.

    Components default to 1/1/1 (magnitude 3, low). Pass
    `magnitude` to have components chosen for you.
    """
    counter = {"n": 0}

    def _make(
        site_id: str = "site-1",
        threat_type: ThreatType = ThreatType.FLOODING,
        probability: int = 1,
        loss_of_value: int = 1,
        fraction_affected: int = 1,
        assessment_date: datetime = _utc(2024, 1, 1),
        uncertainty_level: UncertaintyLevel = UncertaintyLevel.LOW,
        assessor: str = "J. Smith",
        notes: str = "",
        assessment_id: str = "",
        magnitude: Optional[int] = None,
    ) -> Assessment:
        counter["n"] += 1
        if magnitude is not None:
            probability = min(5, magnitude - 2)
            loss_of_value = min(5, magnitude - probability - 1)
            fraction_affected = magnitude - probability - loss_of_value
        return Assessment(
            site_id=site_id,
            threat_type=threat_type,
            probability=probability,
            loss_of_value=loss_of_value,
            fraction_affected=fraction_affected,
            assessment_date=assessment_date,
            uncertainty_level=uncertainty_level,
            assessor=assessor,
            notes=notes,
            assessment_id=assessment_id or f"assessment-{counter['n']}",
        )

    return _make


@pytest.fixture
def sample_sites():
    """Two heritage sites without assessments."""
    created = _utc(2023, 1, 1)
    return [
        Site(site_id="site-1", name="Petra", created_at=created, updated_at=created),
        Site(site_id="site-2", name="Angkor Wat", created_at=created, updated_at=created),
    ]
