"""Shared fixtures: an in-memory MetricSource whose answers and failures are scripted per test."""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

import pytest

from healthdigest.pulse.base import MetricSource, MetricSourceInfo
from healthdigest.pulse.core import (
    AuthorizationError,
    CategorySample,
    CorrelationSample,
    QuantitySample,
    StandardIndicator,
)
from healthdigest.utils.config import DigestConfig


class StubMetricSource(MetricSource):
    """
    MetricSource returning canned data.

    `statistics` maps an indicator to the list returned by query_statistics.
    `failures` maps a query name (or "statistics:<identifier>") to an
    exception raised instead of answering.
    """

    def __init__(
        self,
        statistics: Optional[Dict[StandardIndicator, List[Optional[float]]]] = None,
        heart_rate_samples: Optional[List[QuantitySample]] = None,
        sleep_samples: Optional[List[CategorySample]] = None,
        correlations: Optional[List[CorrelationSample]] = None,
        biological_sex: str = "female",
        failures: Optional[Dict[str, BaseException]] = None,
        deny_authorization: bool = False,
    ):
        self.statistics = statistics or {}
        self.heart_rate_samples = heart_rate_samples or []
        self.sleep_samples = sleep_samples or []
        self.correlations = correlations or []
        self.biological_sex = biological_sex
        self.failures = failures or {}
        self.deny_authorization = deny_authorization

        self.calls: List[str] = []
        self.sleep_windows: List[tuple] = []

    def _maybe_fail(self, name: str):
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    @property
    def info(self) -> MetricSourceInfo:
        return MetricSourceInfo(slug="stub", name="Stub")

    async def request_authorization(self, read_scopes: Iterable[StandardIndicator]) -> None:
        self.calls.append("authorization")
        if self.deny_authorization:
            raise AuthorizationError("denied")

    async def get_biological_sex(self) -> str:
        self._maybe_fail("biologicalSex")
        return self.biological_sex

    async def query_statistics(self, indicator, unit, mode, start, end, tz):
        self._maybe_fail(f"statistics:{indicator.identifier}")
        return list(self.statistics.get(indicator, [None] * 14))

    async def query_samples(self, indicator, unit, start, end):
        self._maybe_fail("samples")
        return [s for s in self.heart_rate_samples if start <= s.start < end]

    async def query_category_samples(self, indicator, start, end, values):
        self.sleep_windows.append((start, end))
        self._maybe_fail("category")
        wanted = set(values)
        return [s for s in self.sleep_samples if s.value in wanted and s.overlaps(start, end)]

    async def query_correlation(self, correlation, components, unit, start, end):
        self._maybe_fail("correlation")
        return [c for c in self.correlations if start <= c.timestamp < end]


@pytest.fixture
def tz():
    """Reference timezone with a DST transition inside the test window."""
    return ZoneInfo("America/New_York")


@pytest.fixture
def now(tz):
    """Reference instant: 2024-03-20 09:30 local time."""
    return datetime(2024, 3, 20, 9, 30, tzinfo=tz)


@pytest.fixture
def digest_config():
    return DigestConfig(timezone="America/New_York")


@pytest.fixture
def make_source() -> Callable[..., StubMetricSource]:
    def factory(**kwargs: Any) -> StubMetricSource:
        return StubMetricSource(**kwargs)

    return factory

