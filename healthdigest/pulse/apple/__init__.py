"""
Apple Health metric source
"""

from .models import (
    FLUTTER_SLEEP_VALUE_MAPPING,
    FLUTTER_TO_RECORD_TYPE_MAPPING,
    AppleHealthExport,
    AppleHealthRecord,
    FlutterHealthTypeEnum,
    MetaInfo,
)
from .store import AppleHealthStore

__all__ = [
    "AppleHealthExport",
    "AppleHealthRecord",
    "AppleHealthStore",
    "FLUTTER_SLEEP_VALUE_MAPPING",
    "FLUTTER_TO_RECORD_TYPE_MAPPING",
    "FlutterHealthTypeEnum",
    "MetaInfo",
]
