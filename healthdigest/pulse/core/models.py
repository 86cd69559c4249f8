"""
Core data models module

Defines the sample shapes returned by every MetricSource query
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import SleepValue


class QuantitySample(BaseModel):
    """One instantaneous or interval quantity reading, already in the queried unit"""

    model_config = ConfigDict(frozen=True)

    start: datetime = Field(..., description="Sample start time (timezone aware)")
    end: Optional[datetime] = Field(default=None, description="Sample end time, None for instantaneous readings")
    value: float = Field(..., description="Numeric value")
    unit: str = Field(default="", description="Unit of value")
    source: Optional[str] = Field(default=None, description="Recording device or app")


class CategorySample(BaseModel):
    """An interval carrying an enumerated value, e.g. one sleep stage"""

    model_config = ConfigDict(frozen=True)

    start: datetime = Field(..., description="Interval start (timezone aware)")
    end: datetime = Field(..., description="Interval end (timezone aware)")
    value: SleepValue = Field(..., description="Category value")
    source: Optional[str] = Field(default=None, description="Recording device or app")

    @model_validator(mode="after")
    def _check_interval(self) -> "CategorySample":
        if self.end.timestamp() < self.start.timestamp():
            raise ValueError(f"Category sample ends before it starts: {self.start} > {self.end}")
        return self

    @property
    def duration_seconds(self) -> float:
        # Elapsed seconds, whatever the tzinfo of either end
        return self.end.timestamp() - self.start.timestamp()

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Whether the sample intersects the half-open window [start, end)"""
        return self.start < end and self.end > start


class CorrelationSample(BaseModel):
    """Several quantity components recorded together, e.g. a blood pressure reading"""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="Reading time (timezone aware)")
    values: Dict[str, float] = Field(default_factory=dict, description="Component indicator name -> value")
    unit: str = Field(default="", description="Unit shared by all components")
