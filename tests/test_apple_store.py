"""Tests for the Apple Health export store."""

import asyncio
import json
from datetime import date, datetime, timezone

import pytest

from healthdigest.pulse.apple import AppleHealthStore
from healthdigest.pulse.core import (
    AggregationMode,
    AuthorizationError,
    BiologicalSex,
    InvalidMetricError,
    QueryFailure,
    SleepValue,
    StandardIndicator,
)
from healthdigest.pulse.digest import CalendarIndex, HealthDataFetcher, HealthDigestService
from healthdigest.pulse.digest.fetcher import READ_SCOPES

SYSTOLIC = StandardIndicator.BLOOD_PRESSURE_SYSTOLIC.identifier
DIASTOLIC = StandardIndicator.BLOOD_PRESSURE_DIASTOLIC.identifier


def ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def record(uuid, type_, start, end=None, value=None, unit=None, **extra):
    data = {
        "uuid": uuid,
        "type": type_,
        "dateFrom": ms(start),
        "dateTo": ms(end or start),
        "value": {"numericValue": value} if value is not None else {},
        "unit": unit,
    }
    data.update(extra)
    return data


def payload(records, **meta):
    meta_info = {"timezone": "America/New_York"}
    meta_info.update(meta)
    return {"request_id": "req-1", "metaInfo": meta_info, "healthData": records}


@pytest.fixture
def index(now, tz):
    return CalendarIndex.build(now, tz)


class TestLoading:
    """Tests for from_payload and from_file."""

    def test_unknown_and_invalid_records_discarded(self, tz):
        """Should keep mapped records and drop unknown types and malformed entries."""
        store = AppleHealthStore.from_payload(
            payload(
                [
                    record("a", "STEPS", datetime(2024, 3, 10, 9, tzinfo=tz), value=1200, unit="COUNT"),
                    record("b", "BLOOD_GLUCOSE", datetime(2024, 3, 10, 9, tzinfo=tz), value=5.4, unit="MILLIMOLES_PER_LITER"),
                    {"type": "STEPS", "dateFrom": "not a timestamp"},
                    record("c", "STEPS", datetime(2024, 3, 10, 10, tzinfo=tz), unit="COUNT"),
                ]
            )
        )

        samples = asyncio.run(
            store.query_samples(
                StandardIndicator.STEPS, "count", datetime(2024, 3, 10, tzinfo=tz), datetime(2024, 3, 11, tzinfo=tz)
            )
        )

        assert [s.value for s in samples] == [1200.0]

    def test_malformed_meta_info_fails_load(self):
        """Should raise QueryFailure when the export metadata cannot be parsed."""
        with pytest.raises(QueryFailure):
            AppleHealthStore.from_payload({"metaInfo": {"healthDataAvailable": "maybe"}, "healthData": []})

    def test_from_file(self, tmp_path, tz):
        """Should load an export written to disk."""
        path = tmp_path / "export.json"
        path.write_text(
            json.dumps(payload([record("a", "STEPS", datetime(2024, 3, 10, 9, tzinfo=tz), value=10, unit="COUNT")]))
        )

        store = AppleHealthStore.from_file(str(path))

        assert store.info.slug == "apple_health"

    def test_from_missing_file(self, tmp_path):
        """Should raise QueryFailure for an unreadable export."""
        with pytest.raises(QueryFailure):
            AppleHealthStore.from_file(str(tmp_path / "missing.json"))


class TestAuthorization:
    """Tests for request_authorization."""

    def test_all_granted_when_no_grant_list(self):
        """Should grant everything when the export has no grant list."""
        store = AppleHealthStore.from_payload(payload([]))

        asyncio.run(store.request_authorization(READ_SCOPES))

    def test_unavailable_store(self):
        """Should refuse access when health data is unavailable on the device."""
        store = AppleHealthStore.from_payload(payload([], healthDataAvailable=False))

        with pytest.raises(AuthorizationError):
            asyncio.run(store.request_authorization(READ_SCOPES))

    def test_correlation_granted_through_components(self):
        """Should grant blood pressure when both components are granted."""
        granted = [
            "STEPS",
            "ACTIVE_ENERGY_BURNED",
            "EXERCISE_TIME",
            "WEIGHT",
            "HEART_RATE",
            "RESTING_HEART_RATE",
            "SLEEP_ASLEEP",
            "BLOOD_PRESSURE_SYSTOLIC",
            "BLOOD_PRESSURE_DIASTOLIC",
            "biologicalSex",
        ]
        store = AppleHealthStore.from_payload(payload([], grantedTypes=granted))

        asyncio.run(store.request_authorization(READ_SCOPES))

    def test_denied_scope(self):
        """Should name the denied scopes."""
        store = AppleHealthStore.from_payload(payload([], grantedTypes=["STEPS"]))

        with pytest.raises(AuthorizationError) as exc_info:
            asyncio.run(store.request_authorization(READ_SCOPES))

        assert "heartRates" in str(exc_info.value)
        assert "steps" not in str(exc_info.value).split(": ", 1)[1].split(", ")


class TestStatistics:
    """Tests for query_statistics."""

    def test_average_converted_to_requested_unit(self, index, tz):
        """Should average kilogram readings per day and answer in pounds."""
        store = AppleHealthStore.from_payload(
            payload(
                [
                    record("w1", "WEIGHT", datetime(2024, 3, 10, 7, tzinfo=tz), value=70.0, unit="KILOGRAM"),
                    record("w2", "WEIGHT", datetime(2024, 3, 10, 21, tzinfo=tz), value=72.0, unit="KILOGRAM"),
                    record("w3", "WEIGHT", datetime(2024, 3, 12, 7, tzinfo=tz), value=154.0, unit="POUND"),
                ]
            )
        )
        start, end = index.window()

        values = asyncio.run(
            store.query_statistics(StandardIndicator.BODY_MASS, "lb", AggregationMode.AVERAGE, start, end, tz)
        )

        assert len(values) == 14
        assert values[index.position(date(2024, 3, 10))] == pytest.approx(71.0 * 2.20462)
        assert values[index.position(date(2024, 3, 12))] == pytest.approx(154.0, rel=1e-4)
        assert values[index.position(date(2024, 3, 11))] is None

    def test_sum_buckets_by_local_start(self, index, tz):
        """Should add samples into the local day their start falls in."""
        store = AppleHealthStore.from_payload(
            payload(
                [
                    record("s1", "STEPS", datetime(2024, 3, 19, 8, tzinfo=tz), value=3000, unit="COUNT"),
                    record("s2", "STEPS", datetime(2024, 3, 19, 23, 30, tzinfo=tz), value=4500, unit="COUNT"),
                    record("s3", "STEPS", datetime(2024, 3, 20, 0, 10, tzinfo=tz), value=999, unit="COUNT"),
                ]
            )
        )
        start, end = index.window()

        values = asyncio.run(
            store.query_statistics(StandardIndicator.STEPS, "count", AggregationMode.SUM, start, end, tz)
        )

        assert values[-1] == 7500.0
        assert values[:-1] == [None] * 13

    def test_category_indicator_rejected(self, index, tz):
        """Should refuse a scalar query for sleep analysis."""
        store = AppleHealthStore.from_payload(payload([]))
        start, end = index.window()

        with pytest.raises(InvalidMetricError):
            asyncio.run(
                store.query_statistics(StandardIndicator.SLEEP_ANALYSIS, "", AggregationMode.SUM, start, end, tz)
            )

    def test_incompatible_unit_fails(self, index, tz):
        """Should raise QueryFailure when the requested unit cannot express the metric."""
        store = AppleHealthStore.from_payload(
            payload([record("w1", "WEIGHT", datetime(2024, 3, 10, 7, tzinfo=tz), value=70.0, unit="KILOGRAM")])
        )
        start, end = index.window()

        with pytest.raises(QueryFailure):
            asyncio.run(
                store.query_statistics(StandardIndicator.BODY_MASS, "min", AggregationMode.AVERAGE, start, end, tz)
            )


class TestSleepAndBloodPressure:
    """Tests for category and correlation queries."""

    def test_category_samples_overlap_window(self, tz):
        """Should return asleep samples that intersect the window, clipped nowhere."""
        store = AppleHealthStore.from_payload(
            payload(
                [
                    record("n1", "SLEEP_LIGHT", datetime(2024, 3, 14, 23, tzinfo=tz), datetime(2024, 3, 15, 3, tzinfo=tz)),
                    record("n2", "SLEEP_IN_BED", datetime(2024, 3, 14, 22, tzinfo=tz), datetime(2024, 3, 15, 7, tzinfo=tz)),
                    record("n3", "SLEEP_REM", datetime(2024, 3, 15, 14, tzinfo=tz), datetime(2024, 3, 15, 15, 30, tzinfo=tz)),
                    record("n4", "SLEEP_DEEP", datetime(2024, 3, 15, 16, tzinfo=tz), datetime(2024, 3, 15, 17, tzinfo=tz)),
                ]
            )
        )

        samples = asyncio.run(
            store.query_category_samples(
                StandardIndicator.SLEEP_ANALYSIS,
                datetime(2024, 3, 14, 15, tzinfo=tz),
                datetime(2024, 3, 15, 15, tzinfo=tz),
                [SleepValue.ASLEEP_CORE, SleepValue.ASLEEP_REM, SleepValue.ASLEEP_DEEP],
            )
        )

        assert [s.value for s in samples] == [SleepValue.ASLEEP_CORE, SleepValue.ASLEEP_REM]
        assert samples[1].duration_seconds == 90 * 60

    def test_sleep_hours_across_dst_change(self, index, tz):
        """Should report elapsed hours for an exported night spanning the clock change."""
        store = AppleHealthStore.from_payload(
            payload(
                [
                    record(
                        "n1",
                        "SLEEP_ASLEEP",
                        datetime(2024, 3, 10, 4, tzinfo=timezone.utc),
                        datetime(2024, 3, 10, 11, tzinfo=timezone.utc),
                    ),
                ]
            )
        )

        hours = asyncio.run(HealthDataFetcher(store).fetch_sleep_hours(index))

        assert hours[index.position(date(2024, 3, 10))] == pytest.approx(7.0)

    def test_components_pair_by_correlation_id_or_timestamp(self, tz):
        """Should pair systolic and diastolic by correlation id, else by identical timestamp."""
        store = AppleHealthStore.from_payload(
            payload(
                [
                    record("p1", "BLOOD_PRESSURE_SYSTOLIC", datetime(2024, 3, 10, 8, tzinfo=tz), value=120, unit="MILLIMETER_OF_MERCURY", correlationId="bp-1"),
                    record("p2", "BLOOD_PRESSURE_DIASTOLIC", datetime(2024, 3, 10, 8, 0, 1, tzinfo=tz), value=80, unit="MILLIMETER_OF_MERCURY", correlationId="bp-1"),
                    record("p3", "BLOOD_PRESSURE_SYSTOLIC", datetime(2024, 3, 11, 8, tzinfo=tz), value=130, unit="MILLIMETER_OF_MERCURY"),
                    record("p4", "BLOOD_PRESSURE_DIASTOLIC", datetime(2024, 3, 11, 8, tzinfo=tz), value=85, unit="MILLIMETER_OF_MERCURY"),
                ]
            )
        )

        readings = asyncio.run(
            store.query_correlation(
                StandardIndicator.BLOOD_PRESSURE,
                [StandardIndicator.BLOOD_PRESSURE_SYSTOLIC, StandardIndicator.BLOOD_PRESSURE_DIASTOLIC],
                "mmHg",
                datetime(2024, 3, 6, tzinfo=tz),
                datetime(2024, 3, 20, tzinfo=tz),
            )
        )

        assert [(r.values[SYSTOLIC], r.values[DIASTOLIC]) for r in readings] == [(120.0, 80.0), (130.0, 85.0)]
        assert readings[0].timestamp == datetime(2024, 3, 10, 8, tzinfo=tz)

    def test_foreign_component_rejected(self, tz):
        """Should refuse a component that does not belong to the correlation."""
        store = AppleHealthStore.from_payload(payload([]))

        with pytest.raises(InvalidMetricError):
            asyncio.run(
                store.query_correlation(
                    StandardIndicator.BLOOD_PRESSURE,
                    [StandardIndicator.STEPS],
                    "mmHg",
                    datetime(2024, 3, 6, tzinfo=tz),
                    datetime(2024, 3, 20, tzinfo=tz),
                )
            )


class TestDigestOverExport:
    """End-to-end aggregation against an export."""

    def test_aggregate(self, tz, now, digest_config):
        """Should produce a digest with every metric in its day."""
        store = AppleHealthStore.from_payload(
            payload(
                [
                    record("s1", "STEPS", datetime(2024, 3, 19, 8, tzinfo=tz), value=3000, unit="COUNT"),
                    record("s2", "STEPS", datetime(2024, 3, 19, 18, tzinfo=tz), value=4500, unit="COUNT"),
                    record("e1", "ACTIVE_ENERGY_BURNED", datetime(2024, 3, 19, 18, tzinfo=tz), value=320, unit="KILOCALORIE"),
                    record("w1", "WEIGHT", datetime(2024, 3, 19, 7, tzinfo=tz), value=70.0, unit="KILOGRAM"),
                    record("h1", "HEART_RATE", datetime(2024, 3, 19, 9, tzinfo=tz), value=60, unit="BEATS_PER_MINUTE"),
                    record("h2", "HEART_RATE", datetime(2024, 3, 19, 10, tzinfo=tz), value=80, unit="BEATS_PER_MINUTE"),
                    record("z1", "SLEEP_ASLEEP", datetime(2024, 3, 18, 23, tzinfo=tz), datetime(2024, 3, 19, 6, tzinfo=tz)),
                    record("p1", "BLOOD_PRESSURE_SYSTOLIC", datetime(2024, 3, 17, 8, tzinfo=tz), value=118, unit="MILLIMETER_OF_MERCURY"),
                    record("p2", "BLOOD_PRESSURE_DIASTOLIC", datetime(2024, 3, 17, 8, tzinfo=tz), value=76, unit="MILLIMETER_OF_MERCURY"),
                ],
                biologicalSex="female",
            )
        )

        records = asyncio.run(HealthDigestService(store, digest_config).aggregate(now))
        last = records[-1]

        assert len(records) == 14
        assert last.day == date(2024, 3, 19)
        assert last.biologicalSex == BiologicalSex.FEMALE
        assert last.steps == 7500.0
        assert last.activeEnergy == 320.0
        assert last.bodyWeight == pytest.approx(70.0 * 2.20462)
        assert last.heartRate == 70.0
        assert last.heartRateSamples == (60.0, 80.0)
        assert last.sleepHours == pytest.approx(7.0)
        assert last.restingHeartRate is None
        assert records[0].steps == 0.0
        assert records[-3].bloodPressureReadings[0].systolic == 118.0
        assert records[-3].day == date(2024, 3, 17)
