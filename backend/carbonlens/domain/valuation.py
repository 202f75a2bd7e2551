"""
Valuation premium and implied carbon price from climate vs baseline portfolios.

Two interchangeable methodologies share the same inputs:

Relative:
    premium   = PE_climate / PE_baseline - 1
    diff      = intensity_baseline - intensity_climate
    price     = premium * PE_baseline / diff          (0 if diff <= 0)

DCF:
    pv_factor = sum(1 / (1 + r)^t for t in 1..H)
    price     = premium * PE_baseline / (diff * pv_factor)   (0 if diff <= 0)

Prices are floored at zero in both cases.
"""

from typing import Optional

from carbonlens.config import settings
from carbonlens.domain.models import Methodology, PortfolioMetrics, ValuationResult
from carbonlens.utils.errors import ConfigurationError


def present_value_factor(discount_rate: float, horizon_years: int) -> float:
    """Annuity factor: present value of 1 per year for ``horizon_years`` years."""
    return sum(1 / (1 + discount_rate) ** t for t in range(1, horizon_years + 1))


def _premium_and_diff(climate: PortfolioMetrics, baseline: PortfolioMetrics):
    premium = (climate.avg_pe_ratio / baseline.avg_pe_ratio) - 1
    intensity_diff = baseline.avg_carbon_intensity - climate.avg_carbon_intensity
    return premium, intensity_diff


def calculate_relative_valuation(
    climate: PortfolioMetrics, baseline: PortfolioMetrics
) -> Optional[ValuationResult]:
    """
    Relative P/E methodology.

    Returns None when the baseline P/E is not positive (premium undefined).
    """
    if baseline.avg_pe_ratio <= 0:
        return None

    premium, intensity_diff = _premium_and_diff(climate, baseline)
    price = (premium * baseline.avg_pe_ratio) / intensity_diff if intensity_diff > 0 else 0.0

    return ValuationResult(
        valuation_premium=premium,
        implied_carbon_price=max(0.0, price),
        methodology=Methodology.RELATIVE,
    )


def calculate_dcf_valuation(
    climate: PortfolioMetrics,
    baseline: PortfolioMetrics,
    discount_rate: Optional[float] = None,
    horizon_years: Optional[int] = None,
) -> Optional[ValuationResult]:
    """
    DCF methodology: the valuation gap is the present value of a constant
    carbon cost on the intensity differential over the horizon.
    """
    if baseline.avg_pe_ratio <= 0:
        return None

    rate = settings.dcf_discount_rate if discount_rate is None else discount_rate
    horizon = settings.dcf_horizon_years if horizon_years is None else horizon_years

    premium, intensity_diff = _premium_and_diff(climate, baseline)
    if intensity_diff <= 0:
        return ValuationResult(
            valuation_premium=premium, implied_carbon_price=0.0, methodology=Methodology.DCF
        )

    valuation_diff = premium * baseline.avg_pe_ratio
    price = valuation_diff / (intensity_diff * present_value_factor(rate, horizon))

    return ValuationResult(
        valuation_premium=premium,
        implied_carbon_price=max(0.0, price),
        methodology=Methodology.DCF,
    )


def calculate_valuation(
    climate: PortfolioMetrics,
    baseline: PortfolioMetrics,
    methodology: Methodology,
) -> Optional[ValuationResult]:
    """Dispatch to the configured methodology."""
    try:
        methodology = Methodology(methodology)
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown valuation methodology '{methodology}'",
            details={"allowed": [m.value for m in Methodology]},
        ) from e

    if methodology is Methodology.DCF:
        return calculate_dcf_valuation(climate, baseline)
    return calculate_relative_valuation(climate, baseline)
