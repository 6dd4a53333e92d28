"""
Heritage Risk Engine - Risk Profile Cache.

============================================================
PURPOSE
============================================================
Time-bounded cache of derived site projections, owned by a
DerivedStateManager and passed to it explicitly.

- Per-site entries: get(site_id, now) / put(site, now)
- Fleet index: the ordered site ids of the last full listing
- invalidate(site_id) drops the site and the fleet index

An entry is stale once its age exceeds the TTL. A TTL of
zero disables caching entirely.

============================================================
"""

from copy import deepcopy
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from .types import Site


@dataclass(frozen=True)
class CacheEntry:
    site: Site
    cached_at: datetime


@dataclass(frozen=True)
class CacheIndex:
    site_ids: List[str]
    cached_at: datetime


class RiskProfileCache:
    """TTL cache of Site projections keyed by site id."""

    def __init__(self, ttl_seconds: float = 300.0):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._ttl_seconds = ttl_seconds
        self._entries: Dict[str, CacheEntry] = {}
        self._index: Optional[CacheIndex] = None

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def enabled(self) -> bool:
        return self._ttl_seconds > 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, site_id: object) -> bool:
        return site_id in self._entries

    def _is_fresh(self, cached_at: datetime, now: datetime) -> bool:
        age = (now - cached_at).total_seconds()
        return 0 <= age <= self._ttl_seconds

    # --------------------------------------------------------
    # PER-SITE ENTRIES
    # --------------------------------------------------------

    def get(self, site_id: str, now: datetime) -> Optional[Site]:
        """
        Cached projection for a site, or None if absent or stale.

        Stale entries are evicted on access. A copy is returned.
        """
        if not self.enabled:
            return None
        entry = self._entries.get(site_id)
        if entry is None:
            return None
        if not self._is_fresh(entry.cached_at, now):
            del self._entries[site_id]
            return None
        return deepcopy(entry.site)

    def put(self, site: Site, now: datetime) -> None:
        if not self.enabled:
            return
        self._entries[site.site_id] = CacheEntry(site=deepcopy(site), cached_at=now)

    # --------------------------------------------------------
    # FLEET INDEX
    # --------------------------------------------------------

    def get_index(self, now: datetime) -> Optional[List[str]]:
        """Site ids of the last full listing, or None if absent or stale."""
        if not self.enabled or self._index is None:
            return None
        if not self._is_fresh(self._index.cached_at, now):
            self._index = None
            return None
        return list(self._index.site_ids)

    def put_index(self, site_ids: List[str], now: datetime) -> None:
        if not self.enabled:
            return
        self._index = CacheIndex(site_ids=list(site_ids), cached_at=now)

    # --------------------------------------------------------
    # INVALIDATION
    # --------------------------------------------------------

    def invalidate(self, site_id: str) -> None:
        """Drop one site's projection and the fleet index."""
        self._entries.pop(site_id, None)
        self._index = None

    def invalidate_all(self) -> None:
        self._entries.clear()
        self._index = None
