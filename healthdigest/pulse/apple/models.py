"""
Apple Health
Export record models and health type mappings
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..core import SleepValue, StandardIndicator


class FlutterHealthTypeEnum(str, Enum):
    """Flutter Health Types - type names used by Apple Health exports"""

    HEART_RATE = "HEART_RATE"
    RESTING_HEART_RATE = "RESTING_HEART_RATE"
    BLOOD_PRESSURE_SYSTOLIC = "BLOOD_PRESSURE_SYSTOLIC"
    BLOOD_PRESSURE_DIASTOLIC = "BLOOD_PRESSURE_DIASTOLIC"
    STEPS = "STEPS"
    ACTIVE_ENERGY_BURNED = "ACTIVE_ENERGY_BURNED"
    EXERCISE_TIME = "EXERCISE_TIME"
    WEIGHT = "WEIGHT"
    SLEEP_ASLEEP = "SLEEP_ASLEEP"
    SLEEP_AWAKE = "SLEEP_AWAKE"
    SLEEP_DEEP = "SLEEP_DEEP"
    SLEEP_IN_BED = "SLEEP_IN_BED"
    SLEEP_LIGHT = "SLEEP_LIGHT"
    SLEEP_REM = "SLEEP_REM"


FLUTTER_TO_RECORD_TYPE_MAPPING: Dict[FlutterHealthTypeEnum, StandardIndicator] = {
    # Vital signs
    FlutterHealthTypeEnum.HEART_RATE: StandardIndicator.HEART_RATE,
    FlutterHealthTypeEnum.RESTING_HEART_RATE: StandardIndicator.RESTING_HEART_RATE,
    FlutterHealthTypeEnum.BLOOD_PRESSURE_SYSTOLIC: StandardIndicator.BLOOD_PRESSURE_SYSTOLIC,
    FlutterHealthTypeEnum.BLOOD_PRESSURE_DIASTOLIC: StandardIndicator.BLOOD_PRESSURE_DIASTOLIC,
    # Activity and fitness
    FlutterHealthTypeEnum.STEPS: StandardIndicator.STEPS,
    FlutterHealthTypeEnum.ACTIVE_ENERGY_BURNED: StandardIndicator.ACTIVE_ENERGY,
    FlutterHealthTypeEnum.EXERCISE_TIME: StandardIndicator.EXERCISE_TIME,
    # Body measurements
    FlutterHealthTypeEnum.WEIGHT: StandardIndicator.BODY_MASS,
    # Sleep types
    FlutterHealthTypeEnum.SLEEP_ASLEEP: StandardIndicator.SLEEP_ANALYSIS,
    FlutterHealthTypeEnum.SLEEP_AWAKE: StandardIndicator.SLEEP_ANALYSIS,
    FlutterHealthTypeEnum.SLEEP_DEEP: StandardIndicator.SLEEP_ANALYSIS,
    FlutterHealthTypeEnum.SLEEP_IN_BED: StandardIndicator.SLEEP_ANALYSIS,
    FlutterHealthTypeEnum.SLEEP_LIGHT: StandardIndicator.SLEEP_ANALYSIS,
    FlutterHealthTypeEnum.SLEEP_REM: StandardIndicator.SLEEP_ANALYSIS,
}

FLUTTER_SLEEP_VALUE_MAPPING: Dict[FlutterHealthTypeEnum, SleepValue] = {
    FlutterHealthTypeEnum.SLEEP_ASLEEP: SleepValue.ASLEEP_UNSPECIFIED,
    FlutterHealthTypeEnum.SLEEP_AWAKE: SleepValue.AWAKE,
    FlutterHealthTypeEnum.SLEEP_DEEP: SleepValue.ASLEEP_DEEP,
    FlutterHealthTypeEnum.SLEEP_IN_BED: SleepValue.IN_BED,
    FlutterHealthTypeEnum.SLEEP_LIGHT: SleepValue.ASLEEP_CORE,
    FlutterHealthTypeEnum.SLEEP_REM: SleepValue.ASLEEP_REM,
}


class MetaInfo(BaseModel):
    """Export metadata"""

    timezone: str = Field(default="UTC", description="timezone")
    taskId: Optional[str] = Field(None, description="task id")
    biologicalSex: Optional[str] = Field(None, description="Biological sex characteristic, e.g. 'female' or 'notSet'")
    healthDataAvailable: bool = Field(default=True, description="Whether health data is available on the device")
    grantedTypes: Optional[List[str]] = Field(
        None,
        description="Types the user granted read access to (Flutter types or indicator names), None grants all",
    )


class AppleHealthRecord(BaseModel):
    """Apple Health record"""

    uuid: str = Field(..., description="Unique record identifier")
    sourceId: Optional[str] = Field(None, description="Data source ID")
    sourceName: Optional[str] = Field(None, description="Data source name")
    type: Union[FlutterHealthTypeEnum, str] = Field(..., description="Data type")
    dateFrom: Optional[int] = Field(None, description="Start timestamp (milliseconds)")
    dateTo: Optional[int] = Field(None, description="End timestamp (milliseconds)")
    timezone: Optional[str] = Field(None, description="Timezone, defaults to the export timezone")
    value: Dict[str, Any] = Field(default_factory=dict, description="Numeric data")
    unit: Optional[str] = Field(None, description="Unit")
    unitSymbol: Optional[str] = Field(None, description="Unit symbol")
    correlationId: Optional[str] = Field(None, description="Shared by the components of one correlation reading")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: Union[FlutterHealthTypeEnum, str]) -> str:
        """Validate health data type, lenient mode: accept all types"""
        if isinstance(v, FlutterHealthTypeEnum):
            return v.value
        return v

    def is_known_type(self) -> bool:
        """Check if it's a known health data type"""
        try:
            FlutterHealthTypeEnum(self.type)
            return True
        except ValueError:
            return False

    @property
    def numeric_value(self) -> Optional[float]:
        raw = self.value.get("numericValue") if isinstance(self.value, dict) else None
        if raw is None:
            return None
        try:
            return float(raw)
        except (TypeError, ValueError):
            return None


class AppleHealthExport(BaseModel):
    """Apple Health export payload"""

    request_id: Optional[str] = Field(None, description="Request ID")
    metaInfo: MetaInfo = Field(default_factory=MetaInfo, description="Metadata information")
    healthData: List[Dict[str, Any]] = Field(default_factory=list, description="Raw health data records")
