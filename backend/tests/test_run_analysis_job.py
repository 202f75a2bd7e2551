"""
Tests for the CSV batch analysis job.
"""

from datetime import date

import pandas as pd
import pytest

from carbonlens.utils.errors import ConfigurationError
from jobs.run_analysis import load_companies, load_observations, run_analysis


@pytest.fixture
def csv_inputs(tmp_path):
    """Nine-company dataset written as CSV, with one gap in the optional columns."""
    companies = pd.DataFrame(
        {
            "id": list(range(1, 10)),
            "isin": [f"XS{i:010d}" for i in range(1, 10)],
            "name": [f"Company {i}" for i in range(1, 10)],
            "geography": ["United States"] * 8 + [None],
            "sector": ["Energy"] * 9,
            "industry": ["Oil & Gas"] * 9,
            "sdg_alignment_score": [i * 0.5 for i in range(1, 10)],
            "emission_target_2050": [-i / 10 for i in range(1, 10)],
        }
    )
    observations = pd.DataFrame(
        {
            "company_id": list(range(1, 10)),
            "date": ["2023-12-31"] * 9,
            "market_cap": [1_000_000] * 9,
            "price_earnings": [30.0 - i for i in range(1, 10)],
            "scope1_emissions": [i * 100.0 for i in range(1, 10)],
            "scope2_emissions": [0.0] * 8 + [None],
            "net_profit": [50_000.0] * 9,
        }
    )

    companies_path = tmp_path / "companies.csv"
    observations_path = tmp_path / "observations.csv"
    companies.to_csv(companies_path, index=False)
    observations.to_csv(observations_path, index=False)
    return str(companies_path), str(observations_path)


class TestLoaders:
    """Tests for CSV -> model loading."""

    def test_load_companies(self, csv_inputs):
        companies = load_companies(csv_inputs[0])

        assert len(companies) == 9
        assert companies[0].id == 1
        assert companies[0].emission_target_2050 == pytest.approx(-0.1)
        assert companies[8].geography is None

    def test_load_observations(self, csv_inputs):
        observations = load_observations(csv_inputs[1])

        assert len(observations) == 9
        assert observations[0].date == date(2023, 12, 31)
        assert observations[0].market_cap == 1_000_000
        assert observations[8].scope2_emissions is None
        assert observations[0].scope3_emissions is None

    def test_missing_required_column(self, tmp_path):
        path = tmp_path / "bad.csv"
        pd.DataFrame({"market_cap": [1.0]}).to_csv(path, index=False)

        with pytest.raises(ValueError):
            load_observations(str(path))


class TestRunAnalysis:
    """Tests for the end-to-end job."""

    def test_writes_results_and_tercile_prices(self, csv_inputs, tmp_path):
        output = tmp_path / "results.csv"
        tercile_output = tmp_path / "terciles.csv"

        stats = run_analysis(
            *csv_inputs,
            output_path=str(output),
            sectors=["all"],
            tercile_output_path=str(tercile_output),
        )

        assert stats["companies"] == 9
        assert stats["observations"] == 9
        assert stats["results"] == 6  # aggregate + Energy, three investment types each
        assert stats["tercile_results"] == 1

        results = pd.read_csv(output)
        assert len(results) == 6
        low_carbon = results[(results["investment_type"] == "low_carbon") & results["sector"].isna()].iloc[0]
        assert low_carbon["companies"] == "1;2;3"
        assert low_carbon["implied_carbon_price"] == pytest.approx(0.01)

        terciles = pd.read_csv(tercile_output)
        assert list(terciles["top_tercile_company_count"]) == [3]

    def test_invalid_options_raise(self, csv_inputs, tmp_path):
        with pytest.raises(ConfigurationError):
            run_analysis(*csv_inputs, output_path=str(tmp_path / "out.csv"), options={"methodology": "capm"})
