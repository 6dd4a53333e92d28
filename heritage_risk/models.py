"""
Heritage Risk Engine - Persistence Layer.

============================================================
PURPOSE
============================================================
ORM models backing the SQLAlchemy assessment repository.

============================================================
MODELS
============================================================
1. SiteRecord: Heritage site with its last derived projection
2. AssessmentRecord: One ABC assessment (child of SiteRecord)

The risk profile columns on SiteRecord are a projection
written by the Derived-State Manager. They are never read
back as a source of truth; profiles are always recomputed
from AssessmentRecord rows.

============================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.engine import Base

from .types import (
    Assessment,
    Location,
    RiskPriority,
    RiskProfile,
    Site,
    SiteStatus,
    ThreatType,
    UncertaintyLevel,
    ensure_utc,
)


# ============================================================
# SITE MODEL
# ============================================================


class SiteRecord(Base):
    """
    Heritage site row.

    ============================================================
    RELATIONSHIPS
    ============================================================
    - Has many AssessmentRecord

    ============================================================
    """

    __tablename__ = "heritage_sites"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    address: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    significance: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=SiteStatus.ACTIVE.value)
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Derived projection, see module docstring
    overall_risk: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RiskPriority.LOW.value,
        comment="Projection of the highest assessment priority",
    )
    active_threats: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    risk_profile_updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_assessment: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    assessments: Mapped[List["AssessmentRecord"]] = relationship(
        "AssessmentRecord",
        back_populates="site",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"SiteRecord(id={self.id}, name={self.name}, overall_risk={self.overall_risk})"

    def apply(self, site: Site) -> None:
        """Copy all fields of a domain Site onto this row."""
        self.name = site.name
        self.latitude = site.location.latitude if site.location else None
        self.longitude = site.location.longitude if site.location else None
        self.address = site.location.address if site.location else ""
        self.country = site.location.country if site.location else ""
        self.description = site.description
        self.significance = site.significance
        self.status = site.status.value
        self.images = list(site.images)
        self.overall_risk = site.risk_profile.overall_risk.value
        self.active_threats = [t.value for t in site.risk_profile.active_threats]
        self.risk_profile_updated_at = site.risk_profile.last_updated
        self.last_assessment = site.last_assessment
        self.created_at = site.created_at
        self.updated_at = site.updated_at

    @classmethod
    def from_domain(cls, site: Site) -> "SiteRecord":
        record = cls(id=site.site_id)
        record.apply(site)
        return record

    def to_domain(self) -> Site:
        location = None
        if self.latitude is not None and self.longitude is not None:
            location = Location(
                latitude=self.latitude,
                longitude=self.longitude,
                address=self.address,
                country=self.country,
            )
        return Site(
            site_id=self.id,
            name=self.name,
            location=location,
            description=self.description,
            significance=self.significance,
            status=SiteStatus(self.status),
            images=list(self.images or []),
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
            risk_profile=RiskProfile(
                overall_risk=RiskPriority(self.overall_risk),
                last_updated=ensure_utc(self.risk_profile_updated_at),
                active_threats=[ThreatType(t) for t in self.active_threats or []],
            ),
            last_assessment=ensure_utc(self.last_assessment) if self.last_assessment else None,
        )


# ============================================================
# ASSESSMENT MODEL
# ============================================================


class AssessmentRecord(Base):
    """
    ABC assessment row.

    magnitude and priority are stored for querying but are
    recomputed from the components when loaded.
    """

    __tablename__ = "risk_assessments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    site_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("heritage_sites.id", ondelete="CASCADE"),
        nullable=False,
    )

    threat_type: Mapped[str] = mapped_column(String(32), nullable=False)
    probability: Mapped[int] = mapped_column(Integer, nullable=False, comment="A component (1-5)")
    loss_of_value: Mapped[int] = mapped_column(Integer, nullable=False, comment="B component (1-5)")
    fraction_affected: Mapped[int] = mapped_column(Integer, nullable=False, comment="C component (1-5)")
    magnitude: Mapped[int] = mapped_column(Integer, nullable=False, comment="A + B + C (3-15)")
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    uncertainty_level: Mapped[str] = mapped_column(String(10), nullable=False)

    assessment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    assessor: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    site: Mapped["SiteRecord"] = relationship("SiteRecord", back_populates="assessments")

    __table_args__ = (
        Index("ix_risk_assessments_site_id", "site_id"),
        Index("ix_risk_assessments_date", "assessment_date"),
        Index("ix_risk_assessments_site_threat", "site_id", "threat_type"),
    )

    def __repr__(self) -> str:
        return (
            f"AssessmentRecord(id={self.id}, site={self.site_id}, "
            f"threat={self.threat_type}, magnitude={self.magnitude})"
        )

    def apply(self, assessment: Assessment) -> None:
        self.site_id = assessment.site_id
        self.threat_type = assessment.threat_type.value
        self.probability = assessment.probability
        self.loss_of_value = assessment.loss_of_value
        self.fraction_affected = assessment.fraction_affected
        self.magnitude = assessment.magnitude
        self.priority = assessment.priority.value
        self.uncertainty_level = assessment.uncertainty_level.value
        self.assessment_date = assessment.assessment_date
        self.assessor = assessment.assessor
        self.notes = assessment.notes

    @classmethod
    def from_domain(cls, assessment: Assessment) -> "AssessmentRecord":
        record = cls(id=assessment.assessment_id)
        record.apply(assessment)
        return record

    def to_domain(self) -> Assessment:
        return Assessment(
            assessment_id=self.id,
            site_id=self.site_id,
            threat_type=ThreatType(self.threat_type),
            probability=self.probability,
            loss_of_value=self.loss_of_value,
            fraction_affected=self.fraction_affected,
            uncertainty_level=UncertaintyLevel(self.uncertainty_level),
            assessment_date=ensure_utc(self.assessment_date),
            assessor=self.assessor,
            notes=self.notes,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.to_domain().to_dict()
