"""
Health Indicator Definitions

Static registry of the metric identifiers the digest pipeline knows about.
Every query against a metric source goes through this registry, so an
unknown identifier is rejected before any store access.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from .constants import AggregationMode
from .exceptions import InvalidMetricError


# ============================================================================
# CORE ENUMS AND DATA STRUCTURES
# ============================================================================

class HealthDataType(Enum):
    """
    Enum representing the shape of health data.

    Attributes:
        SERIES: Timestamped quantity samples (steps, heart rate) that can be bucketed per day.
        CATEGORY: Interval samples carrying an enumerated value (sleep analysis).
        CORRELATION: Samples pairing several quantity components (blood pressure).
        CHARACTERISTIC: A static, per-user value (biological sex).
    """
    SERIES = "series"
    CATEGORY = "category"
    CORRELATION = "correlation"
    CHARACTERISTIC = "characteristic"


@dataclass
class CategoryInfo:
    """Category information"""
    name: str


@dataclass
class IndicatorInfo:
    """Indicator information"""
    category: CategoryInfo
    standard_unit: str
    data_type: HealthDataType = HealthDataType.SERIES
    name: str = ""  # lowerCamelCase
    description: str = ""
    aggregation_methods: Optional[List[AggregationMode]] = None
    """
    Statistics a scalar-per-day query may compute for this indicator.

    Examples:
        - [SUM]: For steps, energy, exercise minutes
        - [AVERAGE]: For body mass, heart rate
        - None: Not queryable as a daily scalar
    """
    components: List[str] = field(default_factory=list)
    """Indicator names of the components of a correlation indicator"""


class Categories(Enum):
    """Health indicator categories with embedded CategoryInfo"""

    VITAL_SIGNS = CategoryInfo(name="Vital Signs")
    BODY_COMPOSITION = CategoryInfo(name="Body Composition")
    ACTIVITY = CategoryInfo(name="Activity Metrics")
    SLEEP = CategoryInfo(name="Sleep Metrics")
    PROFILE = CategoryInfo(name="Profile")


# ============================================================================
# STANDARD INDICATORS
# ============================================================================

class StandardIndicator(Enum):
    """Supported health indicators"""

    STEPS = IndicatorInfo(
        category=Categories.ACTIVITY.value,
        standard_unit="count",
        name="steps",
        description="Walking step count",
        aggregation_methods=[AggregationMode.SUM],
    )
    ACTIVE_ENERGY = IndicatorInfo(
        category=Categories.ACTIVITY.value,
        standard_unit="kcal",
        name="activeEnergy",
        description="Active energy burned",
        aggregation_methods=[AggregationMode.SUM],
    )
    EXERCISE_TIME = IndicatorInfo(
        category=Categories.ACTIVITY.value,
        standard_unit="min",
        name="exerciseTime",
        description="Minutes of exercise",
        aggregation_methods=[AggregationMode.SUM],
    )
    BODY_MASS = IndicatorInfo(
        category=Categories.BODY_COMPOSITION.value,
        standard_unit="kg",
        name="bodyMass",
        description="Body weight",
        aggregation_methods=[AggregationMode.AVERAGE],
    )
    HEART_RATE = IndicatorInfo(
        category=Categories.VITAL_SIGNS.value,
        standard_unit="count/min",
        name="heartRates",
        description="Number of heartbeats per minute",
        aggregation_methods=[AggregationMode.AVERAGE],
    )
    RESTING_HEART_RATE = IndicatorInfo(
        category=Categories.VITAL_SIGNS.value,
        standard_unit="count/min",
        name="restingHeartRates",
        description="Heart rate at rest",
        aggregation_methods=[AggregationMode.AVERAGE],
    )
    BLOOD_PRESSURE_SYSTOLIC = IndicatorInfo(
        category=Categories.VITAL_SIGNS.value,
        standard_unit="mmHg",
        name="systolicPressures",
        description="Blood pressure during heart systole",
    )
    BLOOD_PRESSURE_DIASTOLIC = IndicatorInfo(
        category=Categories.VITAL_SIGNS.value,
        standard_unit="mmHg",
        name="diastolicPressures",
        description="Blood pressure during heart diastole",
    )
    BLOOD_PRESSURE = IndicatorInfo(
        category=Categories.VITAL_SIGNS.value,
        standard_unit="mmHg",
        name="bloodPressure",
        description="Paired systolic and diastolic reading",
        data_type=HealthDataType.CORRELATION,
        components=["systolicPressures", "diastolicPressures"],
    )
    SLEEP_ANALYSIS = IndicatorInfo(
        category=Categories.SLEEP.value,
        standard_unit="",
        name="sleepAnalysis",
        description="Sleep stage intervals",
        data_type=HealthDataType.CATEGORY,
    )
    BIOLOGICAL_SEX = IndicatorInfo(
        category=Categories.PROFILE.value,
        standard_unit="",
        name="biologicalSex",
        description="Biological sex characteristic",
        data_type=HealthDataType.CHARACTERISTIC,
    )

    @property
    def identifier(self) -> str:
        """Return the string identifier used by metric sources."""
        return self.value.name


# ============================================================================
# UTILITY VARIABLES AND FUNCTIONS
# ============================================================================

# Valid indicators set for fast lookup
VALID_INDICATORS: Set[str] = {indicator.identifier for indicator in StandardIndicator}

_INDICATOR_LOOKUP: Dict[str, StandardIndicator] = {
    indicator.identifier: indicator for indicator in StandardIndicator
}


def is_valid_indicator(indicator: str) -> bool:
    """Check if indicator is a valid standard indicator"""
    return indicator in VALID_INDICATORS


def get_standard_unit(indicator: str) -> str:
    """Get standard unit for indicator"""
    std_indicator = _INDICATOR_LOOKUP.get(indicator)
    if std_indicator:
        return std_indicator.value.standard_unit
    raise InvalidMetricError(f"Unknown indicator: {indicator}", metric=indicator)


def get_indicator_by_str(indicator: str) -> Optional[StandardIndicator]:
    """
    Get StandardIndicator enum member by string identifier

    Args:
        indicator: The indicator string to search for

    Returns:
        StandardIndicator enum member if found, None otherwise
    """
    if not indicator:
        return None

    std_indicator = _INDICATOR_LOOKUP.get(indicator)
    if std_indicator is None:
        logging.warning(f"indicator {indicator} not found in StandardIndicator")
    return std_indicator


def require_indicator(
    indicator: "StandardIndicator | str",
    data_type: Optional[HealthDataType] = None,
    mode: Optional[AggregationMode] = None,
) -> StandardIndicator:
    """
    Resolve an indicator and check it supports the requested query shape.

    Raises:
        InvalidMetricError: unknown identifier, wrong data type or unsupported aggregation mode
    """
    std_indicator = indicator if isinstance(indicator, StandardIndicator) else _INDICATOR_LOOKUP.get(indicator)
    if std_indicator is None:
        raise InvalidMetricError(f"Unknown indicator: {indicator}", metric=str(indicator))

    info = std_indicator.value
    if data_type is not None and info.data_type != data_type:
        raise InvalidMetricError(
            f"Indicator {info.name} is {info.data_type.value}, expected {data_type.value}",
            metric=info.name,
        )

    if mode is not None and mode not in (info.aggregation_methods or []):
        raise InvalidMetricError(
            f"Indicator {info.name} does not support {mode.value} aggregation",
            metric=info.name,
        )

    return std_indicator
