"""
Carbon intensity: emissions normalized by market capitalization.

Pure functions with no side effects. Intensity is expressed in tCO2e per $1M
of market cap and is undefined (None) only when market cap is missing or not
positive. Missing scope values count as zero, so a company reporting no
emissions at all has a valid intensity of 0.0.
"""

from typing import Optional

from carbonlens.domain.models import TimeSeriesObservation


def total_emissions(
    scope1: Optional[float],
    scope2: Optional[float],
    scope3: Optional[float],
    include_scope3: bool = False,
) -> float:
    """Scope 1 + 2 (+ 3) emissions with missing scopes treated as zero."""
    total = (scope1 or 0.0) + (scope2 or 0.0)
    if include_scope3:
        total += scope3 or 0.0
    return total


def calculate_carbon_intensity(
    scope1: Optional[float],
    scope2: Optional[float],
    scope3: Optional[float],
    market_cap: Optional[float],
    include_scope3: bool = False,
) -> Optional[float]:
    """
    Calculate carbon intensity (emissions per $1M of market cap).

    Args:
        scope1: Scope 1 emissions in tCO2e, or None
        scope2: Scope 2 emissions in tCO2e, or None
        scope3: Scope 3 emissions in tCO2e, or None
        market_cap: Market capitalization in currency units, or None
        include_scope3: Add scope 3 to the numerator

    Returns:
        float intensity, or None when market cap is missing or <= 0

    Example:
        >>> calculate_carbon_intensity(1000, 500, 2000, 10_000_000)
        150.0
    """
    if market_cap is None or market_cap <= 0:
        return None

    emissions = total_emissions(scope1, scope2, scope3, include_scope3)
    return emissions / (market_cap / 1_000_000)


def observation_intensity(
    observation: Optional[TimeSeriesObservation],
    include_scope3: bool = False,
) -> Optional[float]:
    """Carbon intensity for an observation, None if the observation is missing."""
    if observation is None:
        return None
    return calculate_carbon_intensity(
        observation.scope1_emissions,
        observation.scope2_emissions,
        observation.scope3_emissions,
        observation.market_cap,
        include_scope3,
    )
