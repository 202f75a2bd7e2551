"""
Unit tests for portfolio aggregation.
"""

from datetime import date

import pytest

from carbonlens.domain.aggregation import calculate_portfolio_metrics
from carbonlens.domain.dataset import Dataset


class TestPortfolioMetrics:
    """Tests for calculate_portfolio_metrics."""

    def test_negative_pe_excluded_from_count_and_averages(
        self, make_company, make_observation, analysis_date
    ):
        dataset = Dataset(
            [make_company(1), make_company(2)],
            [
                make_observation(1, scope1_emissions=100.0, price_earnings=15.0),
                make_observation(2, scope1_emissions=900.0, price_earnings=-4.0),
            ],
        )

        metrics = calculate_portfolio_metrics([1, 2], dataset, analysis_date)

        assert metrics.portfolio_size == 1
        assert metrics.avg_carbon_intensity == pytest.approx(100.0)
        assert metrics.avg_pe_ratio == pytest.approx(15.0)

    def test_zero_and_missing_pe_excluded(self, make_company, make_observation, analysis_date):
        dataset = Dataset(
            [make_company(i) for i in range(1, 4)],
            [
                make_observation(1, price_earnings=0.0),
                make_observation(2, price_earnings=None),
                make_observation(3, price_earnings=10.0),
            ],
        )

        metrics = calculate_portfolio_metrics([1, 2, 3], dataset, analysis_date)

        assert metrics.portfolio_size == 1

    def test_averages(self, nine_company_dataset, analysis_date):
        metrics = calculate_portfolio_metrics([1, 2, 3], nine_company_dataset, analysis_date)

        assert metrics.avg_carbon_intensity == pytest.approx(200.0)
        assert metrics.avg_pe_ratio == pytest.approx(28.0)
        assert metrics.portfolio_size == 3

    def test_no_qualifying_company_returns_none(self, make_company, make_observation, analysis_date):
        dataset = Dataset([make_company(1)], [make_observation(1, market_cap=None)])

        assert calculate_portfolio_metrics([1], dataset, analysis_date) is None
        assert calculate_portfolio_metrics([], dataset, analysis_date) is None

    def test_exact_date_match_only(self, nine_company_dataset):
        assert calculate_portfolio_metrics([1, 2, 3], nine_company_dataset, date(2023, 12, 30)) is None

    def test_duplicate_ids_counted_once(self, nine_company_dataset, analysis_date):
        metrics = calculate_portfolio_metrics([1, 1, 2], nine_company_dataset, analysis_date)

        assert metrics.portfolio_size == 2

    def test_scope3_included(self, make_company, make_observation, analysis_date):
        dataset = Dataset(
            [make_company(1)],
            [make_observation(1, scope1_emissions=100.0, scope3_emissions=300.0)],
        )

        metrics = calculate_portfolio_metrics([1], dataset, analysis_date, include_scope3=True)

        assert metrics.avg_carbon_intensity == pytest.approx(400.0)


class TestPortfolioMetricsWinsorized:
    """Winsorization only kicks in above the minimum group size."""

    def _dataset(self, make_company, make_observation, size):
        # Company `size` is an extreme outlier
        companies = [make_company(i) for i in range(1, size + 1)]
        observations = [
            make_observation(i, scope1_emissions=100_000.0 if i == size else float(i))
            for i in range(1, size + 1)
        ]
        return Dataset(companies, observations)

    def test_small_group_not_winsorized(self, make_company, make_observation, analysis_date):
        dataset = self._dataset(make_company, make_observation, 10)
        ids = list(range(1, 11))

        plain = calculate_portfolio_metrics(ids, dataset, analysis_date)
        clamped = calculate_portfolio_metrics(ids, dataset, analysis_date, winsorize_percentile=10)

        assert clamped == plain

    def test_large_group_winsorized(self, make_company, make_observation, analysis_date):
        dataset = self._dataset(make_company, make_observation, 21)
        ids = list(range(1, 22))

        plain = calculate_portfolio_metrics(ids, dataset, analysis_date)
        clamped = calculate_portfolio_metrics(ids, dataset, analysis_date, winsorize_percentile=10)

        assert clamped.portfolio_size == plain.portfolio_size == 21
        assert clamped.avg_carbon_intensity < plain.avg_carbon_intensity
        assert clamped.avg_pe_ratio == pytest.approx(20.0)
