"""
Domain models for companies, observations, analysis parameters and derived results.

Every numeric field that can be unknown is Optional[float]; ``None`` means
"not reported", while 0.0 is a real value.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Methodology(str, Enum):
    """Valuation methodology used to back out the implied carbon price."""

    RELATIVE = "relative"
    DCF = "dcf"


class SectorGranularity(str, Enum):
    """Which company classification level defines a peer group."""

    SECTOR = "sector"
    INDUSTRY = "industry"

    def accessor(self) -> Callable[["Company"], Optional[str]]:
        """Resolve the granularity into a plain field accessor."""
        if self is SectorGranularity.INDUSTRY:
            return lambda company: company.industry
        return lambda company: company.sector


class TercileMethod(str, Enum):
    """Ranking universe: all companies, or each peer group separately."""

    ABSOLUTE = "absolute"
    SECTOR_RELATIVE = "sector_relative"


class Tercile(str, Enum):
    BOTTOM = "bottom"
    MIDDLE = "middle"
    TOP = "top"


class InvestmentType(str, Enum):
    """Climate-aligned portfolio axes."""

    LOW_CARBON = "low_carbon"
    DECARBONIZING = "decarbonizing"
    SOLUTIONS = "solutions"


class Company(BaseModel):
    """Static company identity, immutable for an analysis run."""

    model_config = ConfigDict(frozen=True, from_attributes=True, str_strip_whitespace=True)

    id: int
    isin: Optional[str] = None
    name: Optional[str] = None
    geography: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    sdg_alignment_score: Optional[float] = None
    emission_target_2050: Optional[float] = None  # -0.5 = 50% reduction


class TimeSeriesObservation(BaseModel):
    """One snapshot of a company's market and emissions data."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    company_id: int
    date: date
    total_return_index: Optional[float] = None
    market_cap: Optional[float] = None
    price_earnings: Optional[float] = None
    scope1_emissions: Optional[float] = None
    scope2_emissions: Optional[float] = None
    scope3_emissions: Optional[float] = None
    net_profit: Optional[float] = None


class AnalysisParameters(BaseModel):
    """
    Options for one analysis run.

    Accepts both snake_case names and the camelCase keys used by upstream
    clients (``includeScope3``, ``sectorGranularity``...). Unknown keys are
    rejected so that a misspelled option fails the run instead of silently
    falling back to a default.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    include_scope3: bool = Field(
        default=False, validation_alias=AliasChoices("include_scope3", "includeScope3")
    )
    methodology: Methodology = Field(default=Methodology.RELATIVE)
    sector_granularity: SectorGranularity = Field(
        default=SectorGranularity.SECTOR,
        validation_alias=AliasChoices("sector_granularity", "sectorGranularity"),
    )
    classification: TercileMethod = Field(default=TercileMethod.SECTOR_RELATIVE)
    tercile_approach: bool = Field(
        default=True,
        validation_alias=AliasChoices("tercile_approach", "tercileApproach", "tertileApproach"),
    )

    # Threshold approach (tercile_approach=False)
    low_carbon_percentile: float = Field(
        default=25.0, ge=0, le=100,
        validation_alias=AliasChoices("low_carbon_percentile", "lowCarbonPercentile"),
    )
    decarbonizing_target: float = Field(
        default=-0.5, validation_alias=AliasChoices("decarbonizing_target", "decarbonizingTarget")
    )
    solutions_score: float = Field(
        default=2.0, validation_alias=AliasChoices("solutions_score", "solutionsScore")
    )

    winsorize: bool = False
    winsorize_percentile: int = Field(
        default=5, ge=0, le=50,
        validation_alias=AliasChoices("winsorize_percentile", "winsorizePercentile"),
    )


@dataclass(frozen=True)
class PortfolioMetrics:
    """Averages over the qualifying members of a portfolio at one date."""

    avg_carbon_intensity: float
    avg_pe_ratio: float
    portfolio_size: int


@dataclass(frozen=True)
class ValuationResult:
    valuation_premium: float
    implied_carbon_price: float
    methodology: Methodology


@dataclass(frozen=True)
class TercileAssignment:
    """Pre-computed bucket for a company at a date under one method / scope choice."""

    company_id: int
    date: date
    method: TercileMethod
    include_scope3: bool
    carbon_intensity: Optional[float]
    tercile: Optional[Tercile]


@dataclass(frozen=True)
class TercileAggregate:
    """Portfolio totals for the top and bottom intensity terciles at one date."""

    date: date
    top_tercile_emissions: float
    top_tercile_profit: float
    top_tercile_market_cap: float
    top_tercile_pe_ratio: float
    top_tercile_avg_pe_ratio: float
    top_tercile_company_count: int
    bottom_tercile_emissions: float
    bottom_tercile_profit: float
    bottom_tercile_market_cap: float
    bottom_tercile_pe_ratio: float
    bottom_tercile_avg_pe_ratio: float
    bottom_tercile_company_count: int
    implied_carbon_price: float


class AnalysisResult(BaseModel):
    """Climate portfolio vs baseline comparison for one date and dimension."""

    model_config = ConfigDict(frozen=True)

    date: date
    investment_type: InvestmentType
    sector: Optional[str] = None
    region: Optional[str] = None
    avg_carbon_intensity: float
    avg_pe_ratio: float
    valuation_premium: float
    implied_carbon_price: float = Field(..., ge=0.0)
    implied_decarb_rate: float = Field(..., ge=0.0)
    portfolio_size: int = Field(..., ge=1)
    companies: List[int] = Field(default_factory=list)
    methodology: Methodology

    baseline_avg_carbon_intensity: float
    baseline_avg_pe_ratio: float
    baseline_portfolio_size: int = Field(..., ge=1)
