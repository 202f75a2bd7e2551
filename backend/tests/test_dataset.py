"""
Unit tests for the in-memory Dataset index.
"""

from datetime import date

import pytest

from carbonlens.domain.dataset import Dataset
from carbonlens.domain.models import SectorGranularity
from carbonlens.utils.errors import DatasetError, DuplicateObservationError, UnknownCompanyError


class TestDatasetIndexing:
    """Tests for building a Dataset."""

    def test_duplicate_observation_raises(self, make_company, make_observation):
        with pytest.raises(DuplicateObservationError) as exc_info:
            Dataset([make_company(1)], [make_observation(1), make_observation(1)])

        assert exc_info.value.details["company_id"] == 1
        assert isinstance(exc_info.value, DatasetError)

    def test_duplicate_company_raises(self, make_company, make_observation):
        with pytest.raises(DatasetError) as exc_info:
            Dataset([make_company(1), make_company(1, sector="Technology")], [make_observation(1)])

        assert exc_info.value.details == {"company_id": 1}

    def test_missing_id_gets_unique_cache_namespace(self, make_company):
        first = Dataset([make_company(1)], [])
        second = Dataset([make_company(1)], [])

        assert first.dataset_id != second.dataset_id
        assert Dataset([], [], dataset_id=0).dataset_id == 0

    def test_unknown_company_raises(self, make_company, make_observation):
        with pytest.raises(UnknownCompanyError):
            Dataset([make_company(1)], [make_observation(2)])

    def test_exact_date_lookup(self, make_company, make_observation, analysis_date):
        dataset = Dataset([make_company(1)], [make_observation(1, on=analysis_date)])

        assert dataset.observation(1, analysis_date) is not None
        assert dataset.observation(1, date(2023, 12, 30)) is None
        assert len(dataset) == 1


class TestDatasetDimensions:
    """Tests for dates, sectors, geographies and regions."""

    def test_dates_sorted_and_filtered(self, sector_dataset):
        assert sector_dataset.dates() == [date(2022, 12, 31), date(2023, 12, 31)]
        assert sector_dataset.dates(start=date(2023, 1, 1)) == [date(2023, 12, 31)]
        assert sector_dataset.dates(end=date(2023, 1, 1)) == [date(2022, 12, 31)]
        assert sector_dataset.date_range() == (date(2022, 12, 31), date(2023, 12, 31))

    def test_empty_dataset(self):
        dataset = Dataset([], [])
        assert dataset.dates() == []
        assert dataset.date_range() is None
        assert dataset.regions() == []

    def test_sectors_by_granularity(self, sector_dataset):
        assert sector_dataset.sectors() == ["Energy", "Technology"]
        assert sector_dataset.sectors(SectorGranularity.INDUSTRY) == ["Oil & Gas", "Software"]

    def test_geographies_and_regions(self, sector_dataset):
        assert sector_dataset.geographies() == ["Canada", "Germany", "Japan", "United States"]
        assert sector_dataset.regions() == ["Asia-Pacific", "Europe", "North America"]

    def test_observations_on_keeps_load_order(self, nine_company_dataset, analysis_date):
        ids = [obs.company_id for obs in nine_company_dataset.observations_on(analysis_date)]
        assert ids == list(range(1, 10))
