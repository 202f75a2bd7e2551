"""
Total-Based Carbon Price Service

Implied carbon price from portfolio totals of the top (most carbon intensive)
and bottom (least intensive) terciles:

    bottom P/E          = bottom total market cap / bottom total net profit
    target top profit   = top total market cap / bottom P/E
    implied price       = (top profit - target top profit) / top emissions * 1,000,000

Market cap and profit are in $M, emissions in tCO2, so the ratio is $M/tCO2
and the final factor converts it to $/tCO2. A negative price means the
low-carbon tercile trades at a lower multiple than the high-carbon one.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

import numpy as np

from carbonlens.config import settings
from carbonlens.domain.dataset import Dataset
from carbonlens.domain.intensity import total_emissions
from carbonlens.domain.models import (
    SectorGranularity,
    Tercile,
    TercileAggregate,
    TercileMethod,
    TimeSeriesObservation,
)
from carbonlens.domain.winsorize import symmetric_bounds, winsorize_by_count
from carbonlens.log_config import logger
from carbonlens.services.tercile_calculator import get_or_compute_terciles
from carbonlens.utils.cache import AnalysisCache, CarbonPriceCacheKey
from carbonlens.utils.errors import ConfigurationError


@dataclass(frozen=True)
class _GroupTotals:
    """Summed financials for one tercile at one date."""

    market_cap: float
    profit: float
    emissions: float
    avg_pe: float
    count: int

    @property
    def pe_ratio(self) -> float:
        """Aggregate P/E of the group; 0 when the group is loss-making overall."""
        return self.market_cap / self.profit if self.profit > 0 else 0.0


def implied_carbon_price_from_totals(
    top_market_cap: float,
    top_profit: float,
    top_emissions: float,
    bottom_pe_ratio: float,
) -> float:
    """Implied carbon price in $/tCO2; 0 when bottom P/E or top emissions are not positive."""
    if bottom_pe_ratio <= 0 or top_emissions <= 0:
        return 0.0
    adjusted_top_profit = top_market_cap / bottom_pe_ratio
    profit_difference = top_profit - adjusted_top_profit
    return (profit_difference / top_emissions) * 1_000_000


class TotalCarbonPriceEngine:
    """Computes (and memoizes) total-based carbon prices from pre-computed terciles."""

    def __init__(self, cache: AnalysisCache):
        self.cache = cache

    def _group_totals(
        self,
        observations: List[TimeSeriesObservation],
        include_scope3: bool,
        winsorize_percentile: Optional[int],
    ) -> Optional[_GroupTotals]:
        valid = [
            obs for obs in observations
            if obs.market_cap is not None
            and obs.net_profit is not None
            and (obs.scope1_emissions is not None or obs.scope2_emissions is not None)
        ]
        if not valid:
            return None

        market_caps = [obs.market_cap for obs in valid]
        profits = [obs.net_profit for obs in valid]
        emissions = [
            total_emissions(obs.scope1_emissions, obs.scope2_emissions, obs.scope3_emissions, include_scope3)
            for obs in valid
        ]
        pe_ratios = [pe for pe in (obs.price_earnings or 0.0 for obs in valid) if pe > 0]

        if winsorize_percentile is not None and len(market_caps) > settings.winsorize_min_group_size:
            lower, upper = symmetric_bounds(winsorize_percentile)
            market_caps = winsorize_by_count(market_caps, lower, upper)
            profits = winsorize_by_count(profits, lower, upper)
            emissions = winsorize_by_count(emissions, lower, upper)
            pe_ratios = winsorize_by_count(pe_ratios, lower, upper)

        return _GroupTotals(
            market_cap=float(sum(market_caps)),
            profit=float(sum(profits)),
            emissions=float(sum(emissions)),
            avg_pe=float(np.mean(pe_ratios)) if pe_ratios else 0.0,
            count=len(valid),
        )

    def calculate(
        self,
        dataset: Dataset,
        method: TercileMethod = TercileMethod.ABSOLUTE,
        include_scope3: bool = False,
        winsorize: bool = False,
        winsorize_percentile: int = 5,
        granularity: SectorGranularity = SectorGranularity.SECTOR,
    ) -> List[TercileAggregate]:
        """
        Calculate the total-based implied carbon price for every date.

        Args:
            dataset: Companies and observations
            method: Tercile ranking method (absolute or sector_relative)
            include_scope3: Use scope 1+2+3 for ranking and totals
            winsorize: Clamp per-company arrays before summing (groups > min size only)
            winsorize_percentile: Tail percentile for winsorization (0-50)
            granularity: Peer group level for sector_relative ranking

        Returns:
            One TercileAggregate per date where both terciles have usable data

        Raises:
            ConfigurationError: If method, granularity or percentile is invalid
        """
        try:
            method = TercileMethod(method)
        except ValueError as e:
            raise ConfigurationError(f"Unknown tercile method '{method}'") from e
        try:
            granularity = SectorGranularity(granularity)
        except ValueError as e:
            raise ConfigurationError(f"Unknown sector granularity '{granularity}'") from e
        if not 0 <= winsorize_percentile <= 50:
            raise ConfigurationError(
                f"winsorize_percentile must be within [0, 50], got {winsorize_percentile}"
            )

        key = CarbonPriceCacheKey(
            dataset_id=dataset.dataset_id,
            method=method,
            include_scope3=include_scope3,
            winsorize=winsorize,
            winsorize_percentile=winsorize_percentile,
            granularity=granularity,
        )
        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Using cached carbon price results ({len(cached)} dates)")
            return cached

        logger.info(f"Computing carbon prices from pre-computed terciles for dataset {dataset.dataset_id}")
        terciles = get_or_compute_terciles(dataset, method, include_scope3, self.cache, granularity)

        by_date: Dict[date, Dict[Tercile, List[int]]] = {}
        for assignment in terciles:
            if assignment.tercile is None:
                continue
            buckets = by_date.setdefault(assignment.date, {})
            buckets.setdefault(assignment.tercile, []).append(assignment.company_id)

        results: List[TercileAggregate] = []
        for on in sorted(by_date):
            top_ids = by_date[on].get(Tercile.TOP, [])
            bottom_ids = by_date[on].get(Tercile.BOTTOM, [])
            if not top_ids or not bottom_ids:
                continue

            percentile = winsorize_percentile if winsorize else None
            top = self._group_totals(
                [dataset.observation(cid, on) for cid in top_ids], include_scope3, percentile
            )
            if top is None:
                continue
            bottom = self._group_totals(
                [dataset.observation(cid, on) for cid in bottom_ids], include_scope3, percentile
            )
            if bottom is None:
                continue

            results.append(
                TercileAggregate(
                    date=on,
                    top_tercile_emissions=top.emissions,
                    top_tercile_profit=top.profit,
                    top_tercile_market_cap=top.market_cap,
                    top_tercile_pe_ratio=top.pe_ratio,
                    top_tercile_avg_pe_ratio=top.avg_pe,
                    top_tercile_company_count=top.count,
                    bottom_tercile_emissions=bottom.emissions,
                    bottom_tercile_profit=bottom.profit,
                    bottom_tercile_market_cap=bottom.market_cap,
                    bottom_tercile_pe_ratio=bottom.pe_ratio,
                    bottom_tercile_avg_pe_ratio=bottom.avg_pe,
                    bottom_tercile_company_count=bottom.count,
                    implied_carbon_price=implied_carbon_price_from_totals(
                        top.market_cap, top.profit, top.emissions, bottom.pe_ratio
                    ),
                )
            )

        self.cache.put(key, results)
        logger.info(f"Computed {len(results)} carbon price results")
        return results
