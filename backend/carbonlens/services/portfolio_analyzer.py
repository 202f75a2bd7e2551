"""
Portfolio Analyzer Service

Runs the climate portfolio vs baseline comparison across dates, investment
types, sectors and regions:

1. Classify companies (per peer group) into low carbon / decarbonizing /
   solutions portfolios and a baseline
2. Aggregate average carbon intensity and P/E for each side
3. Back out the valuation premium and implied carbon price
4. Map the price onto an implied annual decarbonization rate

Combinations with no usable data are skipped, never raised.
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from carbonlens.domain.aggregation import calculate_portfolio_metrics
from carbonlens.domain.classification import classify_companies
from carbonlens.domain.dataset import Dataset
from carbonlens.domain.decarbonization import calculate_implied_decarb_rate
from carbonlens.domain.models import (
    AnalysisParameters,
    AnalysisResult,
    InvestmentType,
    SectorGranularity,
)
from carbonlens.domain.regions import resolve_region
from carbonlens.domain.valuation import calculate_valuation
from carbonlens.log_config import get_logger
from carbonlens.utils.errors import ConfigurationError

log = get_logger(__name__)


def parse_parameters(options: Optional[Mapping[str, Any]] = None) -> AnalysisParameters:
    """
    Validate a raw option mapping into AnalysisParameters.

    Threshold options may be nested under a ``thresholds`` key, as upstream
    clients send them; they are flattened before validation.

    Raises:
        ConfigurationError: On unknown keys or out-of-range / mistyped values
    """
    raw: Dict[str, Any] = dict(options or {})
    thresholds = raw.pop("thresholds", None)
    if thresholds is not None:
        if not isinstance(thresholds, Mapping):
            raise ConfigurationError("thresholds must be a mapping", details={"thresholds": thresholds})
        raw.update(thresholds)

    try:
        return AnalysisParameters.model_validate(raw)
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid analysis parameters",
            details={
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ]
            },
        ) from e


def analyze_portfolio(
    investment_type: InvestmentType,
    dataset: Dataset,
    on: date,
    parameters: AnalysisParameters,
    sector: Optional[str] = None,
    region: Optional[str] = None,
) -> Optional[AnalysisResult]:
    """
    Compare one climate portfolio against its baseline at a date.

    Args:
        investment_type: Which climate axis forms the portfolio
        dataset: Companies and observations
        on: Analysis date
        parameters: Analysis options
        sector: Restrict to one sector (or industry) value
        region: Restrict to one macro-region (a country is mapped to its region)

    Returns:
        AnalysisResult, or None if either side is empty or valuation is undefined
    """
    investment_type = InvestmentType(investment_type)
    if region:
        region = resolve_region(region)
    classification = classify_companies(dataset, on, parameters, sector=sector, region=region)

    climate_ids = classification.portfolio(investment_type)
    if not climate_ids or not classification.baseline:
        return None

    percentile = parameters.winsorize_percentile if parameters.winsorize else None
    climate = calculate_portfolio_metrics(
        climate_ids, dataset, on, parameters.include_scope3, winsorize_percentile=percentile
    )
    baseline = calculate_portfolio_metrics(
        classification.baseline, dataset, on, parameters.include_scope3, winsorize_percentile=percentile
    )
    if climate is None or baseline is None:
        return None

    valuation = calculate_valuation(climate, baseline, parameters.methodology)
    if valuation is None:
        return None

    return AnalysisResult(
        date=on,
        investment_type=investment_type,
        sector=sector,
        region=region,
        avg_carbon_intensity=climate.avg_carbon_intensity,
        avg_pe_ratio=climate.avg_pe_ratio,
        valuation_premium=valuation.valuation_premium,
        implied_carbon_price=valuation.implied_carbon_price,
        implied_decarb_rate=calculate_implied_decarb_rate(valuation.implied_carbon_price),
        portfolio_size=climate.portfolio_size,
        companies=list(dict.fromkeys(climate_ids)),
        methodology=valuation.methodology,
        baseline_avg_carbon_intensity=baseline.avg_carbon_intensity,
        baseline_avg_pe_ratio=baseline.avg_pe_ratio,
        baseline_portfolio_size=baseline.portfolio_size,
    )


def _resolve_regions(geographies: Optional[Iterable[str]]) -> List[str]:
    # Deduplicate after mapping; several countries share a region
    if not geographies:
        return []
    return list(dict.fromkeys(resolve_region(g) for g in geographies))


def run_full_analysis(
    dataset: Dataset,
    parameters: AnalysisParameters,
    sectors: Optional[Iterable[str]] = None,
    geographies: Optional[Iterable[str]] = None,
    dates: Optional[Iterable[date]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[AnalysisResult]:
    """
    Run the analysis for every date and investment type.

    For each pair the aggregate (whole universe) comparison comes first,
    then one run per requested sector, then one per unique requested region.

    Args:
        dataset: Companies and observations
        parameters: Analysis options
        sectors: Sector (or industry, per granularity) values to break down by
        geographies: Countries or region names to break down by
        dates: Explicit analysis dates; defaults to every observed date
        start_date: Inclusive lower bound when ``dates`` is not given
        end_date: Inclusive upper bound when ``dates`` is not given

    Returns:
        Results in date, investment type, dimension order
    """
    analysis_dates = (
        sorted(set(dates)) if dates is not None else dataset.dates(start_date, end_date)
    )
    sector_list = list(dict.fromkeys(sectors or []))
    region_list = _resolve_regions(geographies)

    results: List[AnalysisResult] = []
    skipped = 0

    for on in analysis_dates:
        for investment_type in InvestmentType:
            combinations = (
                [(None, None)]
                + [(sector, None) for sector in sector_list]
                + [(None, region) for region in region_list]
            )
            for sector, region in combinations:
                result = analyze_portfolio(
                    investment_type, dataset, on, parameters, sector=sector, region=region
                )
                if result is None:
                    skipped += 1
                    log.debug(
                        "analysis_skipped",
                        date=on.isoformat(),
                        investment_type=investment_type.value,
                        sector=sector,
                        region=region,
                    )
                    continue
                results.append(result)

    log.info(
        "analysis_completed",
        dataset_id=dataset.dataset_id,
        dates=len(analysis_dates),
        results=len(results),
        skipped=skipped,
        methodology=parameters.methodology.value,
        classification=parameters.classification.value,
    )
    return results


def available_dimensions(
    dataset: Dataset, granularity: SectorGranularity = SectorGranularity.SECTOR
) -> Dict[str, List[str]]:
    """Sectors (or industries), raw geographies and macro-regions present in a dataset."""
    granularity = SectorGranularity(granularity)
    return {
        "sectors": dataset.sectors(granularity),
        "geographies": dataset.geographies(),
        "regions": dataset.regions(),
    }
