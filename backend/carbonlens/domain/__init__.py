"""
Pure climate-finance computations: intensity, winsorization, classification,
aggregation and valuation.
"""
from .models import (
    AnalysisParameters,
    AnalysisResult,
    Company,
    InvestmentType,
    Methodology,
    PortfolioMetrics,
    SectorGranularity,
    Tercile,
    TercileAggregate,
    TercileAssignment,
    TercileMethod,
    TimeSeriesObservation,
    ValuationResult,
)
from .dataset import Dataset
from .intensity import calculate_carbon_intensity
from .winsorize import winsorize, winsorize_by_count
from .regions import map_geography_to_region
from .decarbonization import calculate_implied_decarb_rate

__all__ = [
    "AnalysisParameters",
    "AnalysisResult",
    "Company",
    "Dataset",
    "InvestmentType",
    "Methodology",
    "PortfolioMetrics",
    "SectorGranularity",
    "Tercile",
    "TercileAggregate",
    "TercileAssignment",
    "TercileMethod",
    "TimeSeriesObservation",
    "ValuationResult",
    "calculate_carbon_intensity",
    "calculate_implied_decarb_rate",
    "map_geography_to_region",
    "winsorize",
    "winsorize_by_count",
]
