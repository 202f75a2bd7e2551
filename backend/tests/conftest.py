"""
Shared pytest fixtures for the CarbonLens test suite.

Provides company / observation factories and small in-memory datasets with
hand-checkable intensities and P/E ratios.
"""

import os
import sys
from datetime import date

import pytest

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from carbonlens.domain.dataset import Dataset
from carbonlens.domain.models import Company, TimeSeriesObservation
from carbonlens.utils.cache import AnalysisCache

ANALYSIS_DATE = date(2023, 12, 31)
PRIOR_DATE = date(2022, 12, 31)


@pytest.fixture
def analysis_date() -> date:
    return ANALYSIS_DATE


@pytest.fixture
def make_company():
    """Factory for Company records with sensible defaults."""

    def _make(company_id: int, **overrides) -> Company:
        fields = {
            "id": company_id,
            "isin": f"TEST{company_id:08d}",
            "name": f"Test Company {company_id}",
            "geography": "United States",
            "sector": "Energy",
            "industry": "Oil & Gas",
        }
        fields.update(overrides)
        return Company(**fields)

    return _make


@pytest.fixture
def make_observation():
    """Factory for TimeSeriesObservation records (market cap defaults to $1M)."""

    def _make(company_id: int, on: date = ANALYSIS_DATE, **overrides) -> TimeSeriesObservation:
        fields = {
            "company_id": company_id,
            "date": on,
            "market_cap": 1_000_000,
            "price_earnings": 20.0,
            "scope1_emissions": 100.0,
            "scope2_emissions": 0.0,
            "net_profit": 50_000.0,
        }
        fields.update(overrides)
        return TimeSeriesObservation(**fields)

    return _make


@pytest.fixture
def nine_company_dataset(make_company, make_observation) -> Dataset:
    """
    Nine Energy companies where company i has:
    - intensity i * 100 (scope 1 = i * 100, market cap $1M)
    - P/E 30 - i
    - 2050 target -i / 10 (company 9 most ambitious)
    - SDG score i * 0.5 (company 9 highest)
    """
    companies = [
        make_company(
            i,
            emission_target_2050=-i / 10,
            sdg_alignment_score=i * 0.5,
        )
        for i in range(1, 10)
    ]
    observations = [
        make_observation(i, scope1_emissions=i * 100.0, price_earnings=30.0 - i)
        for i in range(1, 10)
    ]
    return Dataset(companies, observations, dataset_id=1)


@pytest.fixture
def sector_dataset(make_company, make_observation) -> Dataset:
    """
    Two sectors of six companies over two dates.

    Energy (ids 1-6, United States / Canada) has intensities 100..600; Technology
    (ids 11-16, Germany / Japan) has intensities 10..60. P/E falls as intensity
    rises inside each sector.
    """
    companies = []
    observations = []
    for offset, sector, industry, geographies, scale in (
        (0, "Energy", "Oil & Gas", ("United States", "Canada"), 100.0),
        (10, "Technology", "Software", ("Germany", "Japan"), 10.0),
    ):
        for rank in range(1, 7):
            company_id = offset + rank
            companies.append(
                make_company(
                    company_id,
                    sector=sector,
                    industry=industry,
                    geography=geographies[rank % 2],
                    emission_target_2050=-rank / 10,
                    sdg_alignment_score=float(rank),
                )
            )
            for on in (PRIOR_DATE, ANALYSIS_DATE):
                observations.append(
                    make_observation(
                        company_id,
                        on=on,
                        scope1_emissions=rank * scale,
                        price_earnings=30.0 - rank,
                        net_profit=1_000.0 * rank,
                    )
                )
    return Dataset(companies, observations, dataset_id=2)


@pytest.fixture
def cache() -> AnalysisCache:
    return AnalysisCache(enabled=True)
