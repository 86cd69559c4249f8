"""
Data models for the digest module

DailyRecord is the output contract: one per calendar day of the window,
serialized with camelCase field names. Optional fields are absent (None)
when the metric could not be fetched, which is distinct from a present 0.0.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..core import AggregationMode, BiologicalSex, StandardIndicator


class BloodPressureReading(BaseModel):
    """One paired blood pressure reading, in mmHg"""

    model_config = ConfigDict(frozen=True)

    systolic: float = Field(..., description="Systolic pressure (mmHg)")
    diastolic: float = Field(..., description="Diastolic pressure (mmHg)")


class DailyRecord(BaseModel):
    """Normalized health snapshot of one calendar day"""

    model_config = ConfigDict(frozen=True)

    day: date = Field(..., description="Canonical day key (local date)")
    biologicalSex: BiologicalSex = Field(default=BiologicalSex.NOT_SET, description="Same on every record of a run")
    steps: Optional[float] = Field(default=None, description="Step count total")
    activeEnergy: Optional[float] = Field(default=None, description="Active energy total (kcal)")
    exerciseMinutes: Optional[float] = Field(default=None, description="Exercise time total (min)")
    bodyWeight: Optional[float] = Field(default=None, description="Average body weight (lb)")
    sleepHours: Optional[float] = Field(default=None, description="Asleep time attributed to the day (h)")
    heartRate: Optional[float] = Field(default=None, description="Average heart rate (count/min)")
    restingHeartRate: Optional[float] = Field(default=None, description="Average resting heart rate (count/min)")
    bloodPressureReadings: Optional[Tuple[BloodPressureReading, ...]] = Field(
        default=None,
        description="Readings of the day in store order; None when blood pressure could not be fetched",
    )
    heartRateSamples: Optional[Tuple[float, ...]] = Field(
        default=None,
        exclude=True,
        description="Raw heart rate readings of the day; not part of the serialized record",
    )


@dataclass(frozen=True)
class ScalarMetric:
    """
    A metric fetched as one aggregate per day

    `record_field` names the DailyRecord attribute the series is written into.
    """
    record_field: str
    indicator: StandardIndicator
    unit: str
    mode: AggregationMode


@dataclass
class DigestStats:
    """Statistics for one aggregation run"""
    executed_at: datetime
    first_day: date
    last_day: date
    execution_time_ms: float
    trace_id: str = ""
    fetched: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)  # metric -> error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "executed_at": self.executed_at.isoformat(),
            "first_day": self.first_day.isoformat(),
            "last_day": self.last_day.isoformat(),
            "execution_time_ms": self.execution_time_ms,
            "trace_id": self.trace_id,
            "fetched": self.fetched,
            "failed": self.failed,
        }
