"""
Heritage Risk Engine - Repository.

============================================================
PURPOSE
============================================================
The persistent-store contract consumed by the engine, plus
two implementations:

- InMemoryAssessmentRepository: process-local dict store
- SqlAlchemyAssessmentRepository: AsyncSession-backed store

The engine does not assume atomicity across calls. Every
call may suspend and may fail with RepositoryError.

============================================================
"""

import logging
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AssessmentRecord, SiteRecord
from .types import Assessment, RepositoryError, Site


logger = logging.getLogger(__name__)


class AssessmentRepository(ABC):
    """
    Store of sites and assessments.

    ============================================================
    METHODS
    ============================================================
    - list_sites / get_site / put_site
    - list_assessments / get_assessment
    - put_assessment / delete_assessment

    ============================================================
    """

    @abstractmethod
    async def list_sites(self) -> List[Site]:
        """All sites, in insertion order."""

    @abstractmethod
    async def get_site(self, site_id: str) -> Optional[Site]:
        """A single site, or None."""

    @abstractmethod
    async def put_site(self, site: Site) -> None:
        """Insert or replace a site."""

    @abstractmethod
    async def list_assessments(self, site_id: Optional[str] = None) -> List[Assessment]:
        """Assessments of one site, or of every site when site_id is None."""

    @abstractmethod
    async def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        """A single assessment, or None."""

    @abstractmethod
    async def put_assessment(self, assessment: Assessment) -> None:
        """Insert or replace an assessment."""

    @abstractmethod
    async def delete_assessment(self, assessment_id: str) -> bool:
        """Delete an assessment. Returns False if it did not exist."""


# ============================================================
# IN-MEMORY IMPLEMENTATION
# ============================================================


class InMemoryAssessmentRepository(AssessmentRepository):
    """
    Dict-backed repository.

    Sites are copied on the way in and out so callers cannot
    mutate stored state by reference.
    """

    def __init__(
        self,
        sites: Optional[List[Site]] = None,
        assessments: Optional[List[Assessment]] = None,
    ) -> None:
        self._sites: Dict[str, Site] = {}
        self._assessments: Dict[str, Assessment] = {}
        for site in sites or []:
            self._sites[site.site_id] = deepcopy(site)
        for assessment in assessments or []:
            self._assessments[assessment.assessment_id] = assessment

    async def list_sites(self) -> List[Site]:
        return [deepcopy(site) for site in self._sites.values()]

    async def get_site(self, site_id: str) -> Optional[Site]:
        site = self._sites.get(site_id)
        return deepcopy(site) if site is not None else None

    async def put_site(self, site: Site) -> None:
        self._sites[site.site_id] = deepcopy(site)

    async def list_assessments(self, site_id: Optional[str] = None) -> List[Assessment]:
        return [
            a for a in self._assessments.values()
            if site_id is None or a.site_id == site_id
        ]

    async def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        return self._assessments.get(assessment_id)

    async def put_assessment(self, assessment: Assessment) -> None:
        self._assessments[assessment.assessment_id] = assessment

    async def delete_assessment(self, assessment_id: str) -> bool:
        return self._assessments.pop(assessment_id, None) is not None


# ============================================================
# SQLALCHEMY IMPLEMENTATION
# ============================================================


class SqlAlchemyAssessmentRepository(AssessmentRepository):
    """
    Repository over an async SQLAlchemy session.

    Each write commits; a failed write rolls back and raises
    RepositoryError with the database error chained.
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: SQLAlchemy async session
        """
        self._session = session

    # --------------------------------------------------------
    # READ OPERATIONS
    # --------------------------------------------------------

    async def list_sites(self) -> List[Site]:
        try:
            result = await self._session.execute(select(SiteRecord).order_by(SiteRecord.created_at))
            return [record.to_domain() for record in result.scalars().all()]
        except SQLAlchemyError as e:
            raise self._wrap(e, "list_sites") from e

    async def get_site(self, site_id: str) -> Optional[Site]:
        try:
            record = await self._session.get(SiteRecord, site_id)
            return record.to_domain() if record is not None else None
        except SQLAlchemyError as e:
            raise self._wrap(e, "get_site") from e

    async def list_assessments(self, site_id: Optional[str] = None) -> List[Assessment]:
        stmt = select(AssessmentRecord).order_by(AssessmentRecord.assessment_date)
        if site_id is not None:
            stmt = stmt.where(AssessmentRecord.site_id == site_id)
        try:
            result = await self._session.execute(stmt)
            return [record.to_domain() for record in result.scalars().all()]
        except SQLAlchemyError as e:
            raise self._wrap(e, "list_assessments") from e

    async def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        try:
            record = await self._session.get(AssessmentRecord, assessment_id)
            return record.to_domain() if record is not None else None
        except SQLAlchemyError as e:
            raise self._wrap(e, "get_assessment") from e

    # --------------------------------------------------------
    # WRITE OPERATIONS
    # --------------------------------------------------------

    async def put_site(self, site: Site) -> None:
        try:
            record = await self._session.get(SiteRecord, site.site_id)
            if record is None:
                self._session.add(SiteRecord.from_domain(site))
            else:
                record.apply(site)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise self._wrap(e, "put_site") from e

    async def put_assessment(self, assessment: Assessment) -> None:
        try:
            record = await self._session.get(AssessmentRecord, assessment.assessment_id)
            if record is None:
                self._session.add(AssessmentRecord.from_domain(assessment))
            else:
                record.apply(assessment)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise self._wrap(e, "put_assessment") from e

    async def delete_assessment(self, assessment_id: str) -> bool:
        try:
            result = await self._session.execute(
                delete(AssessmentRecord).where(AssessmentRecord.id == assessment_id)
            )
            await self._session.commit()
            return (result.rowcount or 0) > 0
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise self._wrap(e, "delete_assessment") from e

    def _wrap(self, error: Exception, operation: str) -> RepositoryError:
        logger.error(f"Database error in {operation}: {error}", exc_info=True)
        return RepositoryError(f"{operation} failed: {error}", operation=operation)
