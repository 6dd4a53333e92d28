"""
Heritage Risk Engine - Derived-State Manager.

============================================================
PURPOSE
============================================================
Keeps each site's risk profile consistent with its current
assessments without recomputing every profile on every read.

============================================================
RULES
============================================================
- overall_risk: highest priority among all of the site's
  assessments
- active_threats: distinct threat types assessed within the
  recency window (two years by default)
- last_updated / last_assessment: latest assessment date over
  ALL assessments, not only the recent ones
- No assessments: {low, [], now}

============================================================
CONSISTENCY
============================================================
Every mutation:
1. Persists the change to the repository
2. Recomputes the affected site from its full assessment set
3. Invalidates the affected cache entries

A failed assessment write raises before anything is
invalidated, so the cache still reflects the last
successfully persisted state. Once the assessment write has
succeeded the affected entries are invalidated even if
writing the refreshed projection fails.

============================================================
USAGE
============================================================
    repository = InMemoryAssessmentRepository(sites=[...])
    manager = DerivedStateManager(repository)

    await manager.add_assessment(assessment)
    sites = await manager.get_sites()

============================================================
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Iterable, List, Optional

from core.clock import ClockProtocol, SystemClock

from .cache import RiskProfileCache
from .config import HeritageRiskConfig
from .dates import subtract_years
from .repository import AssessmentRepository
from .types import (
    Assessment,
    AssessmentNotFoundError,
    DuplicateAssessmentError,
    ReferentialIntegrityError,
    RiskPriority,
    RiskProfile,
    Site,
    ThreatType,
)


logger = logging.getLogger(__name__)


# ============================================================
# PURE DERIVATION
# ============================================================


def derive_risk_profile(
    assessments: Iterable[Assessment],
    now: datetime,
    recency_window_years: int = 2,
) -> RiskProfile:
    """
    Compute a site's risk profile from its assessments.

    Args:
        assessments: All assessments attributed to the site
        now: Reference time for the recency window
        recency_window_years: Width of the active-threat window

    Returns:
        RiskProfile
    """
    assessments = list(assessments)
    if not assessments:
        return RiskProfile(overall_risk=RiskPriority.LOW, last_updated=now, active_threats=[])

    overall_risk = max(a.priority for a in assessments)

    window_start = subtract_years(now, recency_window_years)
    active_threats: List[ThreatType] = []
    for assessment in assessments:
        if assessment.assessment_date >= window_start and assessment.threat_type not in active_threats:
            active_threats.append(assessment.threat_type)

    last_updated = max(a.assessment_date for a in assessments)

    return RiskProfile(
        overall_risk=overall_risk,
        last_updated=last_updated,
        active_threats=active_threats,
    )


def latest_assessment_date(assessments: Iterable[Assessment], now: datetime) -> datetime:
    """Latest assessment date, or `now` when there are none."""
    dates = [a.assessment_date for a in assessments]
    return max(dates) if dates else now


# ============================================================
# MANAGER
# ============================================================


class DerivedStateManager:
    """
    Serves sites with derived risk profiles.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    1. Derive profiles from the repository's assessments
    2. Cache projections for the configured TTL
    3. Route assessment mutations through the repository
    4. Recompute and invalidate exactly the affected sites

    ============================================================
    """

    def __init__(
        self,
        repository: AssessmentRepository,
        cache: Optional[RiskProfileCache] = None,
        config: Optional[HeritageRiskConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        """
        Args:
            repository: Source of truth for sites and assessments
            cache: Projection cache. Built from config when omitted.
            config: Engine configuration. Uses defaults if not provided.
            clock: Time source. Uses the system clock if not provided.
        """
        self.config = config or HeritageRiskConfig()
        self._repository = repository
        self._cache = cache if cache is not None else RiskProfileCache(
            ttl_seconds=self.config.derived_state.cache_ttl_seconds
        )
        self._clock = clock or SystemClock()

    @property
    def cache(self) -> RiskProfileCache:
        return self._cache

    @property
    def repository(self) -> AssessmentRepository:
        return self._repository

    # --------------------------------------------------------
    # READS
    # --------------------------------------------------------

    async def get_sites(self) -> List[Site]:
        """
        All sites with up-to-date risk profiles.

        Served entirely from the cache while the fleet index and
        every site entry are fresh; otherwise stale or missing
        sites are recomputed from the repository.
        """
        now = self._clock.now()

        site_ids = self._cache.get_index(now)
        if site_ids is not None:
            cached = [self._cache.get(site_id, now) for site_id in site_ids]
            if all(site is not None for site in cached):
                logger.debug(f"Serving {len(cached)} sites from cache")
                return cached  # type: ignore[return-value]

        sites = await self._repository.list_sites()
        result: List[Site] = []
        for site in sites:
            cached_site = self._cache.get(site.site_id, now)
            if cached_site is None:
                cached_site = await self._refresh_site(site, now)
                self._cache.put(cached_site, now)
            result.append(cached_site)

        self._cache.put_index([site.site_id for site in result], now)
        logger.debug(f"Derived risk profiles for {len(result)} sites")
        return result

    async def get_site(self, site_id: str) -> Optional[Site]:
        """One site with an up-to-date risk profile, or None."""
        now = self._clock.now()
        cached = self._cache.get(site_id, now)
        if cached is not None:
            return cached

        site = await self._repository.get_site(site_id)
        if site is None:
            return None
        site = await self._refresh_site(site, now)
        self._cache.put(site, now)
        return site

    async def get_assessments_for_site(self, site_id: str) -> List[Assessment]:
        """A site's assessments, newest first."""
        assessments = await self._repository.list_assessments(site_id)
        return sorted(assessments, key=lambda a: a.assessment_date, reverse=True)

    async def get_all_assessments(self) -> List[Assessment]:
        return await self._repository.list_assessments()

    # --------------------------------------------------------
    # MUTATIONS
    # --------------------------------------------------------

    async def add_assessment(self, assessment: Assessment) -> Assessment:
        """
        Store a new assessment and refresh its site.

        Raises:
            DuplicateAssessmentError: If the id is already stored
            ReferentialIntegrityError: If the site does not exist
            RepositoryError: If the store fails
        """
        existing = await self._repository.get_assessment(assessment.assessment_id)
        if existing is not None:
            raise DuplicateAssessmentError(assessment.assessment_id, existing.site_id)

        site = await self._require_site(assessment.site_id)

        await self._persist(self._repository.put_assessment(assessment), "put_assessment")
        try:
            await self._recompute_and_store(site)
        finally:
            self._cache.invalidate(site.site_id)

        logger.info(
            f"Added assessment {assessment.assessment_id} "
            f"({assessment.threat_type.value}, magnitude={assessment.magnitude}) "
            f"to site {site.site_id}"
        )
        return assessment

    async def update_assessment(self, assessment_id: str, **changes: Any) -> Assessment:
        """
        Replace fields of an existing assessment and refresh its site.

        Magnitude and priority are recomputed from the components.
        When site_id changes, both the old and new site are refreshed.

        Raises:
            AssessmentNotFoundError: If the id is unknown
            ReferentialIntegrityError: If the target site does not exist
            RepositoryError: If the store fails
        """
        existing = await self._repository.get_assessment(assessment_id)
        if existing is None:
            raise AssessmentNotFoundError(assessment_id)

        changes.pop("assessment_id", None)
        updated = existing.with_updates(**changes)

        target_site = await self._require_site(updated.site_id)
        previous_site = None
        if updated.site_id != existing.site_id:
            previous_site = await self._repository.get_site(existing.site_id)

        await self._persist(self._repository.put_assessment(updated), "put_assessment")

        try:
            await self._recompute_and_store(target_site)
            if previous_site is not None:
                await self._recompute_and_store(previous_site)
        finally:
            self._cache.invalidate(target_site.site_id)
            self._cache.invalidate(existing.site_id)

        logger.info(f"Updated assessment {assessment_id} on site {updated.site_id}")
        return updated

    async def delete_assessment(self, assessment_id: str) -> bool:
        """
        Delete an assessment and refresh its site.

        Returns:
            False if the assessment did not exist

        Raises:
            RepositoryError: If the store fails
        """
        existing = await self._repository.get_assessment(assessment_id)
        if existing is None:
            return False

        deleted = await self._persist(
            self._repository.delete_assessment(assessment_id), "delete_assessment"
        )
        if not deleted:
            return False

        try:
            site = await self._repository.get_site(existing.site_id)
            if site is not None:
                await self._recompute_and_store(site)
        finally:
            self._cache.invalidate(existing.site_id)

        logger.info(f"Deleted assessment {assessment_id} from site {existing.site_id}")
        return True

    def invalidate_all(self) -> None:
        """Drop every cached projection."""
        self._cache.invalidate_all()

    # --------------------------------------------------------
    # INTERNALS
    # --------------------------------------------------------

    async def _require_site(self, site_id: str) -> Site:
        site = await self._repository.get_site(site_id)
        if site is None:
            raise ReferentialIntegrityError(site_id)
        return site

    async def _persist(self, operation: Any, name: str) -> Any:
        try:
            return await operation
        except Exception as e:
            logger.error(f"Repository {name} failed: {e}")
            raise

    async def _refresh_site(self, site: Site, now: datetime) -> Site:
        assessments = await self._repository.list_assessments(site.site_id)
        return replace(
            site,
            risk_profile=derive_risk_profile(
                assessments,
                now,
                self.config.derived_state.recency_window_years,
            ),
            last_assessment=latest_assessment_date(assessments, now),
        )

    async def _recompute_and_store(self, site: Site) -> Site:
        now = self._clock.now()
        refreshed = await self._refresh_site(site, now)
        refreshed.updated_at = now
        await self._persist(self._repository.put_site(refreshed), "put_site")
        return refreshed
