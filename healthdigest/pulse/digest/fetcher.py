"""
Per-metric fetches for the digest

Each fetch issues its own query (or queries) against a MetricSource and
returns data aligned with the calendar index. Failures propagate as
HealthDataError subclasses; the service decides what a failure means for
the records. The only exception is sleep, where every day is fetched
independently and a failed day counts as 0.0 hours.
"""

import asyncio
import logging
from datetime import date
from typing import Awaitable, Dict, List, Optional, Tuple, TypeVar

from .day_index import CalendarIndex
from .models import BloodPressureReading, ScalarMetric
from ..base import MetricSource
from ..core import (
    ALL_ASLEEP_VALUES,
    AggregationMode,
    BiologicalSex,
    HealthDataError,
    HealthDataType,
    QueryFailure,
    StandardIndicator,
    require_indicator,
)

T = TypeVar("T")


# Daily aggregates written positionally into DailyRecord fields
SCALAR_METRICS: Tuple[ScalarMetric, ...] = (
    ScalarMetric("steps", StandardIndicator.STEPS, "count", AggregationMode.SUM),
    ScalarMetric("activeEnergy", StandardIndicator.ACTIVE_ENERGY, "kcal", AggregationMode.SUM),
    ScalarMetric("exerciseMinutes", StandardIndicator.EXERCISE_TIME, "min", AggregationMode.SUM),
    ScalarMetric("bodyWeight", StandardIndicator.BODY_MASS, "lb", AggregationMode.AVERAGE),
    ScalarMetric("heartRate", StandardIndicator.HEART_RATE, "count/min", AggregationMode.AVERAGE),
    ScalarMetric("restingHeartRate", StandardIndicator.RESTING_HEART_RATE, "count/min", AggregationMode.AVERAGE),
)

BLOOD_PRESSURE_COMPONENTS = (
    StandardIndicator.BLOOD_PRESSURE_SYSTOLIC,
    StandardIndicator.BLOOD_PRESSURE_DIASTOLIC,
)

# Everything the digest reads
READ_SCOPES: Tuple[StandardIndicator, ...] = tuple(m.indicator for m in SCALAR_METRICS) + (
    StandardIndicator.SLEEP_ANALYSIS,
    StandardIndicator.BLOOD_PRESSURE,
    *BLOOD_PRESSURE_COMPONENTS,
    StandardIndicator.BIOLOGICAL_SEX,
)


class HealthDataFetcher:
    """Fetches every digest metric from one MetricSource"""

    def __init__(
        self,
        source: MetricSource,
        sleep_boundary_hour: int = 15,
        zero_fill_average: bool = False,
    ):
        self.source = source
        self.sleep_boundary_hour = sleep_boundary_hour
        self.zero_fill_average = zero_fill_average

    async def _query(self, metric: str, awaitable: Awaitable[T]) -> T:
        """Await a store query, turning unexpected errors into QueryFailure"""
        try:
            return await awaitable
        except HealthDataError:
            raise
        except Exception as e:
            raise QueryFailure(f"{metric} query failed: {str(e)}", metric=metric) from e

    # ------------------------------------------------------------------
    # Authorization and characteristics
    # ------------------------------------------------------------------

    async def request_authorization(self) -> None:
        """Raises AuthorizationError when the store refuses read access"""
        await self.source.request_authorization(READ_SCOPES)

    async def fetch_biological_sex(self) -> BiologicalSex:
        raw = await self._query(
            StandardIndicator.BIOLOGICAL_SEX.identifier,
            self.source.get_biological_sex(),
        )
        sex = BiologicalSex.from_raw(raw)
        if sex == BiologicalSex.UNKNOWN:
            logging.warning(f"[HealthDataFetcher] Unrecognized biological sex value: {raw!r}")
        return sex

    # ------------------------------------------------------------------
    # Scalar per day
    # ------------------------------------------------------------------

    def _fill_empty(self, mode: AggregationMode) -> Optional[float]:
        if mode == AggregationMode.SUM or self.zero_fill_average:
            return 0.0
        return None

    async def fetch_scalar_per_day(
        self,
        index: CalendarIndex,
        indicator: StandardIndicator | str,
        unit: str,
        mode: AggregationMode,
    ) -> List[Optional[float]]:
        """
        One value per day of the index, oldest first

        Empty buckets become 0.0 for sum metrics; for average metrics they
        stay None unless zero filling is enabled. Positions the store did
        not return at all are None.

        Raises:
            InvalidMetricError: indicator unknown or not aggregatable with `mode`
            QueryFailure: the store query failed
        """
        std_indicator = require_indicator(indicator, HealthDataType.SERIES, mode)
        start, end = index.window()

        raw = await self._query(
            std_indicator.identifier,
            self.source.query_statistics(std_indicator, unit, mode, start, end, index.tz),
        )

        if len(raw) != len(index):
            logging.warning(
                f"[HealthDataFetcher] {std_indicator.identifier}: expected {len(index)} buckets, got {len(raw)}"
            )

        empty = self._fill_empty(mode)
        values: List[Optional[float]] = []
        for position in range(len(index)):
            if position >= len(raw):
                values.append(None)
            elif raw[position] is None:
                values.append(empty)
            else:
                values.append(float(raw[position]))

        return values

    async def fetch_scalar_metric(self, index: CalendarIndex, metric: ScalarMetric) -> List[Optional[float]]:
        return await self.fetch_scalar_per_day(index, metric.indicator, metric.unit, metric.mode)

    # ------------------------------------------------------------------
    # Heart rate raw samples
    # ------------------------------------------------------------------

    async def fetch_heart_rate_samples(self, index: CalendarIndex) -> Dict[date, List[float]]:
        """Individual heart rate readings of the window grouped by day key"""
        start, end = index.window()
        samples = await self._query(
            StandardIndicator.HEART_RATE.identifier,
            self.source.query_samples(StandardIndicator.HEART_RATE, "count/min", start, end),
        )

        grouped: Dict[date, List[float]] = {}
        for sample in samples:
            key = index.key_for(sample.start)
            if key is None:
                continue
            grouped.setdefault(key, []).append(sample.value)

        return grouped

    # ------------------------------------------------------------------
    # Sleep
    # ------------------------------------------------------------------

    async def _fetch_sleep_day(self, index: CalendarIndex, day: date) -> float:
        try:
            start, end = index.sleep_window(day, self.sleep_boundary_hour)
            samples = await self.source.query_category_samples(
                StandardIndicator.SLEEP_ANALYSIS, start, end, ALL_ASLEEP_VALUES
            )
        except Exception as e:
            logging.warning(f"[HealthDataFetcher] Sleep for {day.isoformat()} unavailable, counting 0h: {str(e)}")
            return 0.0

        seconds = sum(s.duration_seconds for s in samples)
        return seconds / 3600

    async def fetch_sleep_hours(self, index: CalendarIndex) -> List[float]:
        """
        Hours asleep per day of the index, oldest first

        Day D covers [D-1 at the boundary hour, D at the boundary hour).
        Every asleep sample intersecting the window counts with its full
        duration; overlapping samples are not merged. A sample crossing the
        boundary counts toward both adjacent days, so summing the series can
        double count boundary naps.
        """
        return list(await asyncio.gather(*(self._fetch_sleep_day(index, day) for day in index)))

    # ------------------------------------------------------------------
    # Blood pressure
    # ------------------------------------------------------------------

    async def fetch_blood_pressure(self, index: CalendarIndex) -> Dict[date, List[BloodPressureReading]]:
        """
        Paired readings of the window grouped by day key, in store order

        Raises:
            QueryFailure: the query failed or a reading lacks a component
        """
        start, end = index.window()
        correlations = await self._query(
            StandardIndicator.BLOOD_PRESSURE.identifier,
            self.source.query_correlation(
                StandardIndicator.BLOOD_PRESSURE, BLOOD_PRESSURE_COMPONENTS, "mmHg", start, end
            ),
        )

        systolic_id, diastolic_id = (c.identifier for c in BLOOD_PRESSURE_COMPONENTS)

        grouped: Dict[date, List[BloodPressureReading]] = {}
        for correlation in correlations:
            if systolic_id not in correlation.values or diastolic_id not in correlation.values:
                raise QueryFailure(
                    f"Blood pressure reading at {correlation.timestamp.isoformat()} is missing a component",
                    metric=StandardIndicator.BLOOD_PRESSURE.identifier,
                )

            key = index.key_for(correlation.timestamp)
            if key is None:
                continue

            grouped.setdefault(key, []).append(
                BloodPressureReading(
                    systolic=correlation.values[systolic_id],
                    diastolic=correlation.values[diastolic_id],
                )
            )

        return grouped
