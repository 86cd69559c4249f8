"""
Digest Module

Aligns health metrics of different shapes onto one calendar of day keys
and merges them into a fixed-length series of DailyRecords.

Main components:
- CalendarIndex: reference instant -> ordered day keys
- HealthDataFetcher: one fetch per metric against a MetricSource
- HealthDigestService: concurrent fan-out, barrier and merge
"""

from .day_index import CalendarIndex, day_key, start_of_day
from .fetcher import READ_SCOPES, SCALAR_METRICS, HealthDataFetcher
from .models import BloodPressureReading, DailyRecord, DigestStats, ScalarMetric
from .service import HealthDigestService, records_to_json

__all__ = [
    "CalendarIndex",
    "day_key",
    "start_of_day",
    "READ_SCOPES",
    "SCALAR_METRICS",
    "HealthDataFetcher",
    "BloodPressureReading",
    "DailyRecord",
    "DigestStats",
    "ScalarMetric",
    "HealthDigestService",
    "records_to_json",
]
