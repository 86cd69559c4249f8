"""
Base classes and interfaces for health metric sources
"""

from abc import ABC, abstractmethod
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from .core import (
    AggregationMode,
    CategorySample,
    CorrelationSample,
    QuantitySample,
    SleepValue,
    StandardIndicator,
)


class MetricSourceInfo(BaseModel):
    """Metric source information model"""

    slug: str = Field(..., description="Source unique identifier")
    name: str = Field(..., description="Source display name")
    description: str = Field(default="", description="Source description")


class MetricSource(ABC):
    """
    Metric source abstract base class

    Defines the queries the digest pipeline issues against a health data store.
    Constraints:
    - every timestamp passed in or returned is timezone aware
    - windows are half-open, [start, end)
    - implementations raise AuthorizationError, InvalidMetricError or
      QueryFailure; any other exception is treated as a QueryFailure by callers
    """

    @property
    @abstractmethod
    def info(self) -> MetricSourceInfo:
        """Get source information"""
        pass

    @abstractmethod
    async def request_authorization(self, read_scopes: Iterable[StandardIndicator]) -> None:
        """
        Ask for read access to every indicator in `read_scopes`

        Raises:
            AuthorizationError: the store is unavailable or access was denied
        """
        pass

    @abstractmethod
    async def get_biological_sex(self) -> str:
        """
        Read the biological sex characteristic

        Returns:
            Raw store value, mapped onto BiologicalSex by the caller
        """
        pass

    @abstractmethod
    async def query_statistics(
        self,
        indicator: StandardIndicator,
        unit: str,
        mode: AggregationMode,
        start: datetime,
        end: datetime,
        tz: tzinfo,
    ) -> List[Optional[float]]:
        """
        Compute one statistic per calendar day of `tz` between `start` and `end`

        Buckets are anchored at local midnight. A bucket without samples is None.

        Args:
            indicator: Quantity indicator to aggregate
            unit: Unit of the returned values
            mode: Sum or average per bucket
            start: Local midnight of the first day
            end: Local midnight after the last day

        Returns:
            One value per day, oldest first
        """
        pass

    @abstractmethod
    async def query_samples(
        self,
        indicator: StandardIndicator,
        unit: str,
        start: datetime,
        end: datetime,
    ) -> List[QuantitySample]:
        """
        Fetch raw quantity samples starting inside [start, end), ascending by start
        """
        pass

    @abstractmethod
    async def query_category_samples(
        self,
        indicator: StandardIndicator,
        start: datetime,
        end: datetime,
        values: Iterable[SleepValue],
    ) -> List[CategorySample]:
        """
        Fetch category samples whose value is in `values` and whose interval
        intersects [start, end), ascending by start
        """
        pass

    @abstractmethod
    async def query_correlation(
        self,
        correlation: StandardIndicator,
        components: Iterable[StandardIndicator],
        unit: str,
        start: datetime,
        end: datetime,
    ) -> List[CorrelationSample]:
        """
        Fetch correlation samples taken inside [start, end), ascending by time

        Each sample carries the values of `components` found in the store,
        keyed by component identifier.
        """
        pass
