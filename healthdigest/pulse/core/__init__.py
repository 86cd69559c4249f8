"""
Core module

Provides common functionalities for all metric sources, including:
- Metric registry and unit conversion
- Common data models and enumerations
- Error taxonomy
"""

from .constants import (
    ALL_ASLEEP_VALUES,
    DIGEST_DAYS,
    AggregationMode,
    BiologicalSex,
    SleepValue,
)
from .exceptions import (
    AuthorizationError,
    HealthDataError,
    InvalidMetricError,
    QueryFailure,
)
from .indicators_info import (
    HealthDataType,
    StandardIndicator,
    get_indicator_by_str,
    get_standard_unit,
    is_valid_indicator,
    require_indicator,
)
from .models import (
    CategorySample,
    CorrelationSample,
    QuantitySample,
)
from .units import convert_to_standard, convert_unit, normalize_unit

__all__ = [
    # Constants and enumerations
    "ALL_ASLEEP_VALUES",
    "DIGEST_DAYS",
    "AggregationMode",
    "BiologicalSex",
    "SleepValue",
    # Errors
    "HealthDataError",
    "AuthorizationError",
    "InvalidMetricError",
    "QueryFailure",
    # Indicator management
    "HealthDataType",
    "StandardIndicator",
    "get_indicator_by_str",
    "get_standard_unit",
    "is_valid_indicator",
    "require_indicator",
    # Data models
    "CategorySample",
    "CorrelationSample",
    "QuantitySample",
    # Unit management
    "convert_to_standard",
    "convert_unit",
    "normalize_unit",
]
