"""
Health Digest Service

Builds the 14-day digest: authorizes, fans out one fetch per metric,
waits for all of them and merges whatever succeeded into one DailyRecord
per day. A failed metric only leaves its own fields absent; a refused
authorization aborts the run before any fetch.
"""

import asyncio
import json
import logging
import time
from datetime import date, datetime
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Tuple

from .day_index import CalendarIndex
from .fetcher import SCALAR_METRICS, HealthDataFetcher
from .models import DailyRecord, DigestStats
from ..base import MetricSource
from ..core import BiologicalSex
from ...utils.config import DigestConfig
from ...utils.req_ctx import new_trace_id, set_req_ctx

SLEEP_FIELD = "sleepHours"
SEX_FIELD = "biologicalSex"
HEART_RATE_SAMPLES_FIELD = "heartRateSamples"
BLOOD_PRESSURE_FIELD = "bloodPressureReadings"


class HealthDigestService:
    """
    Service for the 14-day health digest

    Stateless between calls: every aggregation builds a fresh index and
    fresh records, so repeated calls against an unchanged store with the
    same reference time return identical results.
    """

    def __init__(
            self,
            source: MetricSource,
            config: Optional[DigestConfig] = None,
            fetcher: Optional[HealthDataFetcher] = None,
    ):
        """
        Initialize service with dependency injection

        Args:
            source: Health data store to read from
            config: Timezone, sleep boundary and fill options (default: DigestConfig())
            fetcher: Fetcher implementation (default: HealthDataFetcher over `source`)
        """
        self.config = config or DigestConfig()
        self.fetcher = fetcher or HealthDataFetcher(
            source,
            sleep_boundary_hour=self.config.sleep_boundary_hour,
            zero_fill_average=self.config.zero_fill_average,
        )

        logging.info(
            f"Initialized HealthDigestService with {type(source).__name__}, timezone={self.config.timezone_name}"
        )

    @property
    def tz(self):
        return self.config.tz

    async def request_access(self) -> None:
        """
        Ask the store for read access to every digest metric

        Raises:
            AuthorizationError: store unavailable or access denied
        """
        await self.fetcher.request_authorization()

    async def aggregate(self, now: Optional[datetime] = None) -> Tuple[DailyRecord, ...]:
        """
        Build the digest for the DIGEST_DAYS days before `now`

        Args:
            now: Reference instant (default: current time). Naive values are
                read in the configured timezone.

        Returns:
            One record per day, oldest first, ending yesterday

        Raises:
            AuthorizationError: access was refused; no records are produced
        """
        records, _ = await self.aggregate_with_stats(now)
        return records

    async def aggregate_json(self, now: Optional[datetime] = None, indent: Optional[int] = None) -> str:
        return records_to_json(await self.aggregate(now), indent=indent)

    async def aggregate_with_stats(self, now: Optional[datetime] = None) -> Tuple[Tuple[DailyRecord, ...], DigestStats]:
        start_time = time.time()
        trace_id = new_trace_id()

        with set_req_ctx({"trace_id": trace_id}):
            await self.request_access()

            if now is None:
                now = datetime.now(self.tz)
            elif now.tzinfo is None:
                now = now.replace(tzinfo=self.tz)

            index = CalendarIndex.build(now, self.tz)
            slots: List[Dict[str, Any]] = [{"day": day, SEX_FIELD: BiologicalSex.NOT_SET} for day in index]

            logging.info(
                f"[HealthDigest] Aggregating {index[0].isoformat()}..{index[-1].isoformat()} "
                f"for reference {now.isoformat()}"
            )

            jobs: Dict[str, Awaitable[Any]] = {
                SEX_FIELD: self.fetcher.fetch_biological_sex(),
                **{m.record_field: self.fetcher.fetch_scalar_metric(index, m) for m in SCALAR_METRICS},
                HEART_RATE_SAMPLES_FIELD: self.fetcher.fetch_heart_rate_samples(index),
                SLEEP_FIELD: self.fetcher.fetch_sleep_hours(index),
                BLOOD_PRESSURE_FIELD: self.fetcher.fetch_blood_pressure(index),
            }

            # Wait for every fetch; one failure must not cancel the others
            results = await asyncio.gather(*jobs.values(), return_exceptions=True)

            stats = DigestStats(
                executed_at=now,
                first_day=index[0],
                last_day=index[-1],
                execution_time_ms=0.0,
                trace_id=trace_id,
            )

            outcomes: Dict[str, Any] = {}
            for name, result in zip(jobs, results):
                if isinstance(result, BaseException) and not isinstance(result, Exception):
                    raise result

                if isinstance(result, Exception):
                    logging.warning(f"[HealthDigest] {name} unavailable: {type(result).__name__}: {str(result)}")
                    stats.failed[name] = str(result)
                    continue

                outcomes[name] = result
                stats.fetched.append(name)

            self._merge(index, slots, outcomes)
            records = tuple(DailyRecord(**slot) for slot in slots)

            stats.execution_time_ms = (time.time() - start_time) * 1000
            logging.info(
                f"[HealthDigest] Completed: {len(stats.fetched)} metrics fetched, "
                f"{len(stats.failed)} failed, {stats.execution_time_ms:.2f}ms",
                extra={"encrypted_info": [r.model_dump(mode="json") for r in records]},
            )

        return records, stats

    @staticmethod
    def _merge(index: CalendarIndex, slots: List[Dict[str, Any]], outcomes: Dict[str, Any]) -> None:
        """Write each successful fetch into the pre-allocated day slots"""
        if SEX_FIELD in outcomes:
            for slot in slots:
                slot[SEX_FIELD] = outcomes[SEX_FIELD]

        # Positional series: element i belongs to day i of the index
        for name in [m.record_field for m in SCALAR_METRICS] + [SLEEP_FIELD]:
            series: Optional[Sequence[Optional[float]]] = outcomes.get(name)
            if series is None:
                continue
            for position, value in enumerate(series[:len(slots)]):
                if value is not None:
                    slots[position][name] = value

        # Keyed groups: matched by day key, days outside the index are dropped
        for name in (HEART_RATE_SAMPLES_FIELD, BLOOD_PRESSURE_FIELD):
            grouped: Optional[Dict[date, list]] = outcomes.get(name)
            if grouped is None:
                continue
            for slot in slots:
                slot[name] = tuple(grouped.get(slot["day"], []))

            ignored = [day for day in grouped if day not in index]
            if ignored:
                logging.debug(f"[HealthDigest] {name}: ignored {len(ignored)} days outside the window")


def records_to_json(records: Sequence[DailyRecord], indent: Optional[int] = None) -> str:
    """Serialize records as a JSON array; absent fields are null"""
    return json.dumps(
        [record.model_dump(mode="json") for record in records],
        ensure_ascii=False,
        indent=indent,
        separators=None if indent else (",", ":"),
    )
