"""
Portfolio aggregation: average carbon intensity and P/E over a company subset.
"""

from datetime import date
from typing import Iterable, List, Optional

import numpy as np

from carbonlens.config import settings
from carbonlens.domain.dataset import Dataset
from carbonlens.domain.intensity import observation_intensity
from carbonlens.domain.models import PortfolioMetrics
from carbonlens.domain.winsorize import symmetric_bounds, winsorize


def calculate_portfolio_metrics(
    company_ids: Iterable[int],
    dataset: Dataset,
    on: date,
    include_scope3: bool = False,
    winsorize_percentile: Optional[int] = None,
) -> Optional[PortfolioMetrics]:
    """
    Calculate portfolio metrics for a set of companies at a date.

    A company contributes only if it has an observation on exactly ``on``, a
    defined carbon intensity, and a strictly positive P/E. Negative or zero
    P/E ratios are meaningless for ratio comparison and are dropped from both
    the averages and the count.

    Args:
        company_ids: Portfolio members
        dataset: Companies and observations
        on: Analysis date
        include_scope3: Include scope 3 in carbon intensity
        winsorize_percentile: Tail percentile to clamp intensities and P/Es
            with before averaging; only applied to groups larger than
            ``settings.winsorize_min_group_size``

    Returns:
        PortfolioMetrics, or None if no member qualifies
    """
    intensities: List[float] = []
    pe_ratios: List[float] = []

    for company_id in dict.fromkeys(company_ids):
        obs = dataset.observation(company_id, on)
        if obs is None:
            continue

        intensity = observation_intensity(obs, include_scope3)
        if intensity is None or obs.price_earnings is None or obs.price_earnings <= 0:
            continue

        intensities.append(intensity)
        pe_ratios.append(obs.price_earnings)

    if not intensities:
        return None

    if winsorize_percentile is not None and len(intensities) > settings.winsorize_min_group_size:
        lower, upper = symmetric_bounds(winsorize_percentile)
        intensities = winsorize(intensities, lower, upper)
        pe_ratios = winsorize(pe_ratios, lower, upper)

    return PortfolioMetrics(
        avg_carbon_intensity=float(np.mean(intensities)),
        avg_pe_ratio=float(np.mean(pe_ratios)),
        portfolio_size=len(intensities),
    )
