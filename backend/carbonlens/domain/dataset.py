"""
In-memory dataset of companies and their time-series observations.

The dataset is the only input the analysis engine reads. It indexes
observations by (company_id, date) so every lookup is an exact date match.
"""

import uuid
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple, Union

from carbonlens.domain.models import Company, SectorGranularity, TimeSeriesObservation
from carbonlens.domain.regions import map_geography_to_region
from carbonlens.utils.errors import DatasetError, DuplicateObservationError, UnknownCompanyError


class Dataset:
    """
    Companies + observations for one uploaded dataset.

    ``dataset_id`` namespaces cached results. A dataset built without one
    gets a fresh random id, so it never shares cache entries with another.
    """

    def __init__(
        self,
        companies: Iterable[Company],
        observations: Iterable[TimeSeriesObservation],
        dataset_id: Optional[Union[int, str]] = None,
    ):
        self.dataset_id = dataset_id if dataset_id is not None else uuid.uuid4().hex
        self.companies: List[Company] = list(companies)
        self._companies_by_id: Dict[int, Company] = {}
        self._observations: Dict[Tuple[int, date], TimeSeriesObservation] = {}
        self._observations_by_date: Dict[date, List[TimeSeriesObservation]] = {}

        for company in self.companies:
            if company.id in self._companies_by_id:
                raise DatasetError(
                    f"Duplicate company id {company.id}",
                    details={"company_id": company.id},
                )
            self._companies_by_id[company.id] = company

        for obs in observations:
            if obs.company_id not in self._companies_by_id:
                raise UnknownCompanyError(
                    f"Observation references unknown company {obs.company_id}",
                    details={"company_id": obs.company_id, "date": obs.date.isoformat()},
                )
            key = (obs.company_id, obs.date)
            if key in self._observations:
                raise DuplicateObservationError(
                    f"Duplicate observation for company {obs.company_id} on {obs.date.isoformat()}",
                    details={"company_id": obs.company_id, "date": obs.date.isoformat()},
                )
            self._observations[key] = obs
            self._observations_by_date.setdefault(obs.date, []).append(obs)

    def __len__(self) -> int:
        return len(self._observations)

    def company(self, company_id: int) -> Optional[Company]:
        return self._companies_by_id.get(company_id)

    def observation(self, company_id: int, on: date) -> Optional[TimeSeriesObservation]:
        """Observation for a company on exactly this date."""
        return self._observations.get((company_id, on))

    def observations_on(self, on: date) -> List[TimeSeriesObservation]:
        """All observations at a date, in load order."""
        return list(self._observations_by_date.get(on, []))

    def dates(self, start: Optional[date] = None, end: Optional[date] = None) -> List[date]:
        """Sorted unique observation dates, optionally limited to [start, end]."""
        return sorted(
            d for d in self._observations_by_date
            if (start is None or d >= start) and (end is None or d <= end)
        )

    def date_range(self) -> Optional[Tuple[date, date]]:
        all_dates = self.dates()
        if not all_dates:
            return None
        return all_dates[0], all_dates[-1]

    def sectors(self, granularity: SectorGranularity = SectorGranularity.SECTOR) -> List[str]:
        """Sorted distinct sector (or industry) values."""
        accessor = granularity.accessor()
        return sorted({accessor(c) for c in self.companies if accessor(c)})

    def geographies(self) -> List[str]:
        return sorted({c.geography for c in self.companies if c.geography})

    def regions(self) -> List[str]:
        """Sorted distinct macro-regions of companies with a known geography."""
        return sorted({map_geography_to_region(g) for g in self.geographies()})
