"""
Tercile Pre-computation Service

Computes carbon-intensity tercile assignments for every observation date of a
dataset, under both ranking methods (absolute, sector-relative) and both scope
choices (scope 1+2, scope 1+2+3). Assignments are computed once when a dataset
is loaded and memoized; the total-based carbon price engine reads them back
instead of re-ranking on every request.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from carbonlens.domain.classification import assign_terciles
from carbonlens.domain.dataset import Dataset
from carbonlens.domain.intensity import observation_intensity
from carbonlens.domain.models import (
    SectorGranularity,
    Tercile,
    TercileAssignment,
    TercileMethod,
    TimeSeriesObservation,
)
from carbonlens.log_config import logger
from carbonlens.utils.cache import AnalysisCache, TercileCacheKey

SCOPE_OPTIONS = (False, True)


def _sector_relative_terciles(
    dataset: Dataset,
    observations: Iterable[TimeSeriesObservation],
    intensities: Dict[int, Optional[float]],
    granularity: SectorGranularity,
) -> Dict[int, Optional[Tercile]]:
    group_of = granularity.accessor()
    groups: Dict[str, List[Tuple[int, Optional[float]]]] = {}
    for obs in observations:
        group = group_of(dataset.company(obs.company_id))
        if not group:
            continue
        groups.setdefault(group, []).append((obs.company_id, intensities[obs.company_id]))

    assignments: Dict[int, Optional[Tercile]] = {}
    for items in groups.values():
        assignments.update(assign_terciles(items))
    return assignments


def compute_terciles_for_date(
    dataset: Dataset,
    on: date,
    method: TercileMethod,
    include_scope3: bool,
    granularity: SectorGranularity = SectorGranularity.SECTOR,
) -> List[TercileAssignment]:
    """Tercile assignments for every observation on a single date."""
    method = TercileMethod(method)
    observations = dataset.observations_on(on)
    intensities = {
        obs.company_id: observation_intensity(obs, include_scope3) for obs in observations
    }

    if method is TercileMethod.ABSOLUTE:
        buckets = assign_terciles(list(intensities.items()))
    else:
        buckets = _sector_relative_terciles(dataset, observations, intensities, granularity)

    return [
        TercileAssignment(
            company_id=obs.company_id,
            date=on,
            method=method,
            include_scope3=include_scope3,
            carbon_intensity=intensities[obs.company_id],
            tercile=buckets.get(obs.company_id),
        )
        for obs in observations
    ]


def compute_tercile_assignments(
    dataset: Dataset,
    method: TercileMethod,
    include_scope3: bool,
    granularity: SectorGranularity = SectorGranularity.SECTOR,
) -> List[TercileAssignment]:
    """Tercile assignments across all dates for one method / scope combination."""
    assignments: List[TercileAssignment] = []
    dates = dataset.dates()

    for idx, on in enumerate(dates):
        if idx % 20 == 0:
            logger.debug(f"Computing terciles for date {idx + 1}/{len(dates)}: {on.isoformat()}")
        assignments.extend(
            compute_terciles_for_date(dataset, on, method, include_scope3, granularity)
        )
    return assignments


def get_or_compute_terciles(
    dataset: Dataset,
    method: TercileMethod,
    include_scope3: bool,
    cache: AnalysisCache,
    granularity: SectorGranularity = SectorGranularity.SECTOR,
) -> List[TercileAssignment]:
    """Read-through lookup of tercile assignments."""
    granularity = SectorGranularity(granularity)
    key = TercileCacheKey(dataset.dataset_id, TercileMethod(method), include_scope3, granularity)
    cached = cache.get(key)
    if cached is not None:
        return cached

    assignments = compute_tercile_assignments(dataset, key.method, include_scope3, granularity)
    cache.put(key, assignments)
    return assignments


def precompute_terciles(
    dataset: Dataset,
    cache: AnalysisCache,
    granularity: SectorGranularity = SectorGranularity.SECTOR,
) -> int:
    """
    Populate the cache with every method / scope combination for a freshly loaded dataset.

    Any previous entries for the same dataset id are invalidated first, so a
    re-upload never serves results computed from the old data.

    Returns:
        Total number of assignments computed
    """
    granularity = SectorGranularity(granularity)
    cache.invalidate_dataset(dataset.dataset_id)

    dates = dataset.dates()
    logger.info(
        f"Starting tercile computation for dataset {dataset.dataset_id}: "
        f"{len(dates)} dates, {len(dataset.companies)} companies"
    )

    total = 0
    for method in TercileMethod:
        for include_scope3 in SCOPE_OPTIONS:
            assignments = compute_tercile_assignments(dataset, method, include_scope3, granularity)
            cache.put(
                TercileCacheKey(dataset.dataset_id, method, include_scope3, granularity), assignments
            )
            total += len(assignments)

    logger.info(f"Completed tercile computation: {total} assignments")
    return total
