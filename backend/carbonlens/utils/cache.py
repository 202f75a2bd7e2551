"""
Memoization cache for pre-computed tercile assignments and total-based carbon prices.

The cache is an explicit object handed to the services that use it. Entries are
keyed by a composite (dataset, method, parameters) key and are write-once: every
value is a deterministic function of its key, so a racing second write stores the
same result. Lifecycle is owned by the caller: populate when a dataset is loaded
(see ``precompute_terciles``) and call ``invalidate_dataset`` when it is replaced.
"""

from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Sequence, Union

from loguru import logger

from carbonlens.config import settings
from carbonlens.domain.models import SectorGranularity, TercileMethod


DatasetId = Union[int, str]


@dataclass(frozen=True)
class TercileCacheKey:
    """Key for tercile assignments of one dataset / method / scope / peer group level."""

    dataset_id: DatasetId
    method: TercileMethod
    include_scope3: bool
    granularity: SectorGranularity = SectorGranularity.SECTOR


@dataclass(frozen=True)
class CarbonPriceCacheKey:
    """Key for total-based carbon price results."""

    dataset_id: DatasetId
    method: TercileMethod
    include_scope3: bool
    winsorize: bool
    winsorize_percentile: int
    granularity: SectorGranularity = SectorGranularity.SECTOR


CacheKey = Union[TercileCacheKey, CarbonPriceCacheKey]


class AnalysisCache:
    """In-memory read-through memo for per-dataset computations."""

    def __init__(self, enabled: Optional[bool] = None):
        self.enabled = settings.cache_enabled if enabled is None else enabled
        self._entries: Dict[Hashable, tuple] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey) -> Optional[List[Any]]:
        """Return a copy of the cached rows, or None on a miss."""
        if not self.enabled:
            return None
        if key in self._entries:
            self.hits += 1
            logger.debug(f"Cache hit: {key}")
            return list(self._entries[key])
        self.misses += 1
        logger.debug(f"Cache miss: {key}")
        return None

    def put(self, key: CacheKey, rows: Sequence[Any]) -> None:
        """Store rows for key. Rewriting an existing key replaces it with the same values."""
        if not self.enabled:
            return
        self._entries[key] = tuple(rows)
        logger.debug(f"Cache set: {key} ({len(rows)} rows)")

    def __contains__(self, key: CacheKey) -> bool:
        return self.enabled and key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def invalidate_dataset(self, dataset_id: DatasetId) -> int:
        """Drop every entry belonging to dataset_id. Returns the number removed."""
        stale = [k for k in self._entries if getattr(k, "dataset_id", None) == dataset_id]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.info(f"Invalidated {len(stale)} cache entries for dataset {dataset_id}")
        return len(stale)

    def clear(self) -> None:
        """Clear all cache entries."""
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        logger.debug("Cache cleared")
