"""
Core constants and enumerations module

Defines constants and enumerations shared by metric sources and the digest pipeline
"""

from enum import Enum
from typing import FrozenSet


# Number of days covered by one digest, ending yesterday
DIGEST_DAYS = 14


class AggregationMode(str, Enum):
    """Per-bucket statistic computed by a scalar-per-day query"""

    SUM = "sum"  # cumulative metrics (steps, energy, minutes)
    AVERAGE = "average"  # discrete metrics (weight, heart rate)


class BiologicalSex(str, Enum):
    """Biological sex characteristic as reported in the digest"""

    FEMALE = "Female"
    MALE = "Male"
    OTHER = "Other"
    NOT_SET = "NotSet"
    UNKNOWN = "Unknown"

    @classmethod
    def from_raw(cls, raw: object) -> "BiologicalSex":
        """Map a store value (e.g. `female`, `notSet`, `BiologicalSex.male`) onto the enum"""
        if isinstance(raw, cls):
            return raw

        if not isinstance(raw, str):
            return cls.UNKNOWN

        key = raw.strip().rsplit(".", 1)[-1].replace("_", "").replace(" ", "").lower()
        return _BIOLOGICAL_SEX_LOOKUP.get(key, cls.UNKNOWN)


_BIOLOGICAL_SEX_LOOKUP = {
    "female": BiologicalSex.FEMALE,
    "male": BiologicalSex.MALE,
    "other": BiologicalSex.OTHER,
    "notset": BiologicalSex.NOT_SET,
}


class SleepValue(str, Enum):
    """Sleep analysis category values"""

    IN_BED = "inBed"
    AWAKE = "awake"
    ASLEEP_UNSPECIFIED = "asleepUnspecified"
    ASLEEP_CORE = "asleepCore"
    ASLEEP_DEEP = "asleepDeep"
    ASLEEP_REM = "asleepREM"


# Category values counted as sleep time
ALL_ASLEEP_VALUES: FrozenSet[SleepValue] = frozenset(
    {
        SleepValue.ASLEEP_UNSPECIFIED,
        SleepValue.ASLEEP_CORE,
        SleepValue.ASLEEP_DEEP,
        SleepValue.ASLEEP_REM,
    }
)
