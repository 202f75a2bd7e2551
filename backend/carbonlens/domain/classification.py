"""
Tercile classification of companies into climate-aligned portfolios.

Three independent axes are computed per peer group (or across the whole
universe for the absolute method):

- low carbon: lowest third by carbon intensity at the analysis date
- decarbonizing: lowest third by 2050 emission target (more negative = more ambitious)
- solutions: highest third by SDG alignment score

A company may sit on several axes. The baseline is everything left over.
Tercile size is floor(n / 3), so groups of fewer than three companies yield
no classification at all.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from carbonlens.domain.dataset import Dataset
from carbonlens.domain.intensity import observation_intensity
from carbonlens.domain.models import (
    AnalysisParameters,
    Company,
    InvestmentType,
    Tercile,
    TercileMethod,
)
from carbonlens.domain.regions import map_geography_to_region

RankedItem = Tuple[int, Optional[float]]


@dataclass
class Classification:
    """Company ids per climate axis, plus the baseline complement."""

    low_carbon: List[int] = field(default_factory=list)
    decarbonizing: List[int] = field(default_factory=list)
    solutions: List[int] = field(default_factory=list)
    baseline: List[int] = field(default_factory=list)

    def portfolio(self, investment_type: InvestmentType) -> List[int]:
        """Climate portfolio for an investment type."""
        return {
            InvestmentType.LOW_CARBON: self.low_carbon,
            InvestmentType.DECARBONIZING: self.decarbonizing,
            InvestmentType.SOLUTIONS: self.solutions,
        }[InvestmentType(investment_type)]


def _sorted_valid(items: Sequence[RankedItem], descending: bool = False) -> List[Tuple[int, float]]:
    # sorted() is stable: tied values keep their input order
    valid = [(company_id, value) for company_id, value in items if value is not None]
    return sorted(valid, key=lambda item: item[1], reverse=descending)


def assign_terciles(items: Sequence[RankedItem]) -> Dict[int, Optional[Tercile]]:
    """
    Bucket companies into bottom / middle / top thirds by ascending value.

    Args:
        items: (company_id, value) pairs; a None value gets no bucket

    Returns:
        Mapping of every input company id to a Tercile or None
    """
    ranked = _sorted_valid(items)
    n = len(ranked)
    k = n // 3

    assignments: Dict[int, Optional[Tercile]] = {}
    for idx, (company_id, _) in enumerate(ranked):
        if idx < k:
            assignments[company_id] = Tercile.BOTTOM
        elif idx >= n - k:
            assignments[company_id] = Tercile.TOP
        else:
            assignments[company_id] = Tercile.MIDDLE

    for company_id, _ in items:
        assignments.setdefault(company_id, None)
    return assignments


def lowest_third(items: Sequence[RankedItem]) -> List[int]:
    """Ids of the floor(n/3) smallest values."""
    ranked = _sorted_valid(items)
    return [company_id for company_id, _ in ranked[: len(ranked) // 3]]


def highest_third(items: Sequence[RankedItem]) -> List[int]:
    """Ids of the floor(n/3) largest values."""
    ranked = _sorted_valid(items, descending=True)
    return [company_id for company_id, _ in ranked[: len(ranked) // 3]]


def lowest_percentile(items: Sequence[RankedItem], percentile: float) -> List[int]:
    """Ids of the floor(n * percentile / 100) smallest values."""
    ranked = _sorted_valid(items)
    cutoff = math.floor(len(ranked) * (percentile / 100))
    return [company_id for company_id, _ in ranked[:cutoff]]


def partition_companies(
    companies: Sequence[Company],
    method: TercileMethod,
    group_of: Callable[[Company], Optional[str]],
) -> List[List[Company]]:
    """
    Split companies into ranking universes.

    Absolute ranking uses a single universe. Sector-relative ranking groups by
    ``group_of`` and leaves out companies without a group value.
    """
    if method is TercileMethod.ABSOLUTE:
        return [list(companies)]

    groups: Dict[str, List[Company]] = {}
    for company in companies:
        key = group_of(company)
        if not key:
            continue
        groups.setdefault(key, []).append(company)
    return list(groups.values())


def filter_companies(
    dataset: Dataset,
    parameters: AnalysisParameters,
    sector: Optional[str] = None,
    region: Optional[str] = None,
) -> List[Company]:
    """Restrict the universe to a macro-region and/or a sector (or industry) value."""
    companies = dataset.companies
    if region:
        companies = [c for c in companies if map_geography_to_region(c.geography) == region]
    if sector:
        group_of = parameters.sector_granularity.accessor()
        companies = [c for c in companies if group_of(c) == sector]
    return companies


def _intensities(
    dataset: Dataset, companies: Sequence[Company], on: date, include_scope3: bool
) -> List[RankedItem]:
    return [
        (c.id, observation_intensity(dataset.observation(c.id, on), include_scope3))
        for c in companies
    ]


def _classify_group(
    group: Sequence[Company],
    dataset: Dataset,
    on: date,
    parameters: AnalysisParameters,
    result: Classification,
) -> None:
    intensities = [
        item for item in _intensities(dataset, group, on, parameters.include_scope3)
        if item[1] is not None
    ]

    if parameters.tercile_approach:
        targets = [(c.id, c.emission_target_2050) for c in group]
        scores = [(c.id, c.sdg_alignment_score) for c in group]
        result.low_carbon.extend(lowest_third(intensities))
        result.decarbonizing.extend(lowest_third(targets))
        result.solutions.extend(highest_third(scores))
        return

    result.low_carbon.extend(lowest_percentile(intensities, parameters.low_carbon_percentile))
    result.decarbonizing.extend(
        c.id for c in group
        if c.emission_target_2050 is not None
        and c.emission_target_2050 <= parameters.decarbonizing_target
    )
    result.solutions.extend(
        c.id for c in group
        if c.sdg_alignment_score is not None
        and c.sdg_alignment_score >= parameters.solutions_score
    )


def classify_companies(
    dataset: Dataset,
    on: date,
    parameters: AnalysisParameters,
    sector: Optional[str] = None,
    region: Optional[str] = None,
) -> Classification:
    """
    Classify companies into low-carbon, decarbonizing, solutions and baseline sets.

    Args:
        dataset: Companies and observations
        on: Analysis date (observations must match it exactly)
        parameters: Scope, granularity, ranking method and approach
        sector: Optional sector (or industry) value to restrict the universe to
        region: Optional macro-region to restrict the universe to

    Returns:
        Classification with company ids per axis
    """
    companies = filter_companies(dataset, parameters, sector=sector, region=region)
    result = Classification()

    groups = partition_companies(
        companies, parameters.classification, parameters.sector_granularity.accessor()
    )
    for group in groups:
        _classify_group(group, dataset, on, parameters, result)

    climate = set(result.low_carbon) | set(result.decarbonizing) | set(result.solutions)
    result.baseline = [c.id for c in companies if c.id not in climate]
    return result
