"""
Apple Health metric source

Serves digest queries from an Apple Health export (the payload the Flutter
`health` plugin produces). Records are normalized once, at load time, into
the standard unit of their indicator; queries convert on the way out.
"""

import json
import logging
import time
from collections import defaultdict
from datetime import date, datetime, time as dt_time, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError

from .models import (
    FLUTTER_SLEEP_VALUE_MAPPING,
    FLUTTER_TO_RECORD_TYPE_MAPPING,
    AppleHealthExport,
    AppleHealthRecord,
    FlutterHealthTypeEnum,
    MetaInfo,
)
from ..base import MetricSource, MetricSourceInfo
from ..core import (
    AggregationMode,
    AuthorizationError,
    CategorySample,
    CorrelationSample,
    HealthDataType,
    InvalidMetricError,
    QuantitySample,
    QueryFailure,
    SleepValue,
    StandardIndicator,
    convert_to_standard,
    convert_unit,
    get_indicator_by_str,
    require_indicator,
)


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, dt_time.min, tzinfo=tz)


class AppleHealthStore(MetricSource):
    """In-memory MetricSource over one Apple Health export"""

    def __init__(self, records: Iterable[AppleHealthRecord], meta_info: Optional[MetaInfo] = None):
        self.meta_info = meta_info or MetaInfo()

        self._timezone_cache: Dict[str, ZoneInfo] = {}
        self._default_tz = self._get_timezone(self.meta_info.timezone)

        # Standard-unit samples per quantity indicator
        self._quantities: Dict[StandardIndicator, List[QuantitySample]] = defaultdict(list)
        self._categories: List[CategorySample] = []
        # Correlation key -> {component identifier: standard-unit sample}
        self._correlation_parts: Dict[str, Dict[str, QuantitySample]] = {}

        t1 = time.time()
        total = 0
        kept = 0
        for record in records:
            total += 1
            if self._ingest(record):
                kept += 1

        for samples in self._quantities.values():
            samples.sort(key=lambda s: s.start)
        self._categories.sort(key=lambda s: s.start)

        logging.info(
            f"[AppleHealthStore] Loaded {kept}/{total} records in {(time.time() - t1) * 1000:.2f}ms"
        )

    #-------------------------------------------------------------------------
    # Construction
    #-------------------------------------------------------------------------

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "AppleHealthStore":
        """
        Build a store from a decoded export payload

        Records that fail validation are logged and skipped; a malformed
        `metaInfo` fails the whole load.
        """
        try:
            export = AppleHealthExport.model_validate(payload)
        except ValidationError as e:
            raise QueryFailure(f"Invalid Apple Health export: {str(e)}", user_message="Health export is malformed") from e

        records = []
        for record_data in export.healthData:
            try:
                records.append(AppleHealthRecord(**record_data))
            except (ValidationError, TypeError) as e:
                logging.error(f"Invalid record format: {str(e)}")

        return cls(records, export.metaInfo)

    @classmethod
    def from_file(cls, path: str) -> "AppleHealthStore":
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as e:
            raise QueryFailure(f"Failed to read health export '{path}': {str(e)}", user_message="Health export could not be read") from e

        if not isinstance(payload, dict):
            raise QueryFailure(f"Health export '{path}' is not a JSON object")

        return cls.from_payload(payload)

    #-------------------------------------------------------------------------

    def _get_timezone(self, name: Optional[str]) -> tzinfo:
        name = name or "UTC"
        if len(name) > 64:
            name = "UTC"

        if name not in self._timezone_cache:
            try:
                self._timezone_cache[name] = ZoneInfo(name)
            except (ZoneInfoNotFoundError, ValueError):
                logging.warning(f"Unknown timezone '{name}', using UTC")
                self._timezone_cache[name] = ZoneInfo("UTC")
        return self._timezone_cache[name]

    def _ingest(self, record: AppleHealthRecord) -> bool:
        if not record.is_known_type():
            logging.warning(
                f"UNMAPPED_HEALTH_TYPE: '{record.type}' not found in mapping. "
                f"Record UUID: {record.uuid}. This record will be DISCARDED."
            )
            return False

        flutter_type = FlutterHealthTypeEnum(record.type)
        indicator = FLUTTER_TO_RECORD_TYPE_MAPPING[flutter_type]

        tz = self._get_timezone(record.timezone) if record.timezone else self._default_tz
        date_from = record.dateFrom if record.dateFrom is not None else record.dateTo
        date_to = record.dateTo if record.dateTo is not None else record.dateFrom
        if date_from is None:
            logging.warning(f"Record {record.uuid} has no timestamp, discarded")
            return False

        start = datetime.fromtimestamp(date_from / 1000, tz=tz)
        end = datetime.fromtimestamp(date_to / 1000, tz=tz)
        if end < start:
            logging.warning(f"Record {record.uuid} ends before it starts, discarded")
            return False

        if flutter_type in FLUTTER_SLEEP_VALUE_MAPPING:
            self._categories.append(
                CategorySample(
                    start=start,
                    end=end,
                    value=FLUTTER_SLEEP_VALUE_MAPPING[flutter_type],
                    source=record.sourceName or record.sourceId,
                )
            )
            return True

        raw_value = record.numeric_value
        if raw_value is None:
            logging.warning(f"Record {record.uuid} ({record.type}) has no numeric value, discarded")
            return False

        value, unit = convert_to_standard(indicator, raw_value, record.unitSymbol or record.unit)
        if unit != indicator.value.standard_unit:
            logging.warning(
                f"Record {record.uuid} ({record.type}) unit '{unit}' cannot be converted to "
                f"'{indicator.value.standard_unit}', discarded"
            )
            return False

        sample = QuantitySample(
            start=start,
            end=end if end != start else None,
            value=value,
            unit=unit,
            source=record.sourceName or record.sourceId,
        )
        self._quantities[indicator].append(sample)

        if indicator.identifier in StandardIndicator.BLOOD_PRESSURE.value.components:
            # Components without an explicit correlation id pair by timestamp
            key = record.correlationId or f"@{date_from}"
            self._correlation_parts.setdefault(key, {})[indicator.identifier] = sample

        return True

    #-------------------------------------------------------------------------
    # MetricSource
    #-------------------------------------------------------------------------

    @property
    def info(self) -> MetricSourceInfo:
        return MetricSourceInfo(
            slug="apple_health",
            name="Apple Health",
            description="Health data from an Apple Health export",
        )

    def _granted_indicators(self) -> Optional[Set[StandardIndicator]]:
        if self.meta_info.grantedTypes is None:
            return None

        flutter_types = {t.value for t in FlutterHealthTypeEnum}

        granted = set()
        for name in self.meta_info.grantedTypes:
            if name in flutter_types:
                granted.add(FLUTTER_TO_RECORD_TYPE_MAPPING[FlutterHealthTypeEnum(name)])
                continue

            indicator = get_indicator_by_str(name)
            if indicator is not None:
                granted.add(indicator)

        return granted

    async def request_authorization(self, read_scopes: Iterable[StandardIndicator]) -> None:
        if not self.meta_info.healthDataAvailable:
            raise AuthorizationError(
                "Health data is not available on this device",
                user_message="Health data is not available",
            )

        granted = self._granted_indicators()
        if granted is None:
            return

        denied = []
        for scope in read_scopes:
            if scope in granted:
                continue

            components = [get_indicator_by_str(name) for name in scope.value.components]
            if components and all(c in granted for c in components):
                continue

            denied.append(scope.identifier)

        if denied:
            raise AuthorizationError(
                f"Read access denied for: {', '.join(sorted(denied))}",
                user_message="Health data access was not granted",
            )

        logging.info(f"[AppleHealthStore] Read access granted for {len(granted)} indicators")

    async def get_biological_sex(self) -> str:
        return self.meta_info.biologicalSex or "notSet"

    def _convert_out(self, indicator: StandardIndicator, value: float, unit: str) -> float:
        converted, success = convert_unit(value, indicator.value.standard_unit, unit)
        if not success:
            raise QueryFailure(
                f"Cannot express {indicator.identifier} in '{unit}'",
                metric=indicator.identifier,
            )
        return converted

    async def query_statistics(
        self,
        indicator: StandardIndicator,
        unit: str,
        mode: AggregationMode,
        start: datetime,
        end: datetime,
        tz: tzinfo,
    ) -> List[Optional[float]]:
        require_indicator(indicator, HealthDataType.SERIES, mode)

        if start.tzinfo is None or end.tzinfo is None:
            raise QueryFailure("Statistics window must be timezone aware", metric=indicator.identifier)

        buckets: List[Tuple[datetime, datetime]] = []
        day = start.astimezone(tz).date()
        bucket_start = start
        while bucket_start < end:
            day = day + timedelta(days=1)
            bucket_end = min(_local_midnight(day, tz), end)
            buckets.append((bucket_start, bucket_end))
            bucket_start = bucket_end

        samples = self._quantities.get(indicator, [])

        results: List[Optional[float]] = []
        for bucket_start, bucket_end in buckets:
            values = [s.value for s in samples if bucket_start <= s.start < bucket_end]
            if not values:
                results.append(None)
                continue

            aggregate = sum(values) if mode == AggregationMode.SUM else sum(values) / len(values)
            results.append(self._convert_out(indicator, aggregate, unit))

        return results

    async def query_samples(
        self,
        indicator: StandardIndicator,
        unit: str,
        start: datetime,
        end: datetime,
    ) -> List[QuantitySample]:
        require_indicator(indicator, HealthDataType.SERIES)

        return [
            s.model_copy(update={"value": self._convert_out(indicator, s.value, unit), "unit": unit})
            for s in self._quantities.get(indicator, [])
            if start <= s.start < end
        ]

    async def query_category_samples(
        self,
        indicator: StandardIndicator,
        start: datetime,
        end: datetime,
        values: Iterable[SleepValue],
    ) -> List[CategorySample]:
        require_indicator(indicator, HealthDataType.CATEGORY)

        wanted = set(values)
        return [s for s in self._categories if s.value in wanted and s.overlaps(start, end)]

    async def query_correlation(
        self,
        correlation: StandardIndicator,
        components: Iterable[StandardIndicator],
        unit: str,
        start: datetime,
        end: datetime,
    ) -> List[CorrelationSample]:
        require_indicator(correlation, HealthDataType.CORRELATION)

        component_list = list(components)
        for component in component_list:
            if component.identifier not in correlation.value.components:
                raise InvalidMetricError(
                    f"{component.identifier} is not a component of {correlation.identifier}",
                    metric=component.identifier,
                )

        samples = []
        for parts in self._correlation_parts.values():
            timestamp = min(p.start for p in parts.values())
            if not (start <= timestamp < end):
                continue

            samples.append(
                CorrelationSample(
                    timestamp=timestamp,
                    values={
                        c.identifier: self._convert_out(c, parts[c.identifier].value, unit)
                        for c in component_list
                        if c.identifier in parts
                    },
                    unit=unit,
                )
            )

        samples.sort(key=lambda s: s.timestamp)
        return samples
